"""
Reply chunking per channel policy.

Splits one LLM reply into bounded-length chunks by sentence or paragraph.
Units are packed greedily while the chunk stays within ``max_length``; a
unit that is too long on its own is split on word boundaries. A single
word longer than ``max_length`` is emitted as-is rather than cut mid-word.

Usage:
    chunks = ResponseChunker().chunk(reply, MessageSource.CHAT, persona.response_chunking)
"""

import logging
import re
from typing import Optional

from convo_engine.schemas.message_schema import (
    ChunkBy,
    ChunkingPolicy,
    ChunkingRule,
    MessageSource,
    ResponseChunk,
)

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY_RE = re.compile(r"(?<=[.!?])\s+")
_PARAGRAPH_BOUNDARY_RE = re.compile(r"\n\s*\n")
_WHITESPACE_RE = re.compile(r"\s+")

PARAGRAPH_JOINER = "\n\n"


def split_words(text: str, max_length: int) -> list[str]:
    """Pack whitespace-delimited words into pieces no longer than ``max_length``."""
    pieces: list[str] = []
    current = ""
    for word in _WHITESPACE_RE.split(text.strip()):
        if not word:
            continue
        candidate = f"{current} {word}" if current else word
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current:
            pieces.append(current)
        current = word
    if current:
        pieces.append(current)
    return pieces


def _pack(units: list[str], max_length: int, joiner: str, split_oversized) -> list[str]:
    chunks: list[str] = []
    current = ""
    for unit in units:
        unit = unit.strip()
        if not unit:
            continue
        candidate = f"{current}{joiner}{unit}" if current else unit
        if len(candidate) <= max_length:
            current = candidate
            continue
        if current:
            chunks.append(current)
            current = ""
        if len(unit) <= max_length:
            current = unit
        else:
            chunks.extend(split_oversized(unit, max_length))
    if current:
        chunks.append(current)
    return chunks


def split_sentences(text: str, max_length: int) -> list[str]:
    return _pack(_SENTENCE_BOUNDARY_RE.split(text), max_length, " ", split_words)


def split_paragraphs(text: str, max_length: int) -> list[str]:
    return _pack(_PARAGRAPH_BOUNDARY_RE.split(text), max_length, PARAGRAPH_JOINER, split_sentences)


class ResponseChunker:
    """Splits replies into ResponseChunks according to a persona's chunking policy."""

    def chunk(
        self,
        text: str,
        channel: MessageSource,
        policy: Optional[ChunkingPolicy] = None,
        response_to_message_id: Optional[str] = None,
    ) -> list[ResponseChunk]:
        rule = self._active_rule(channel, policy)
        if rule is None:
            return [
                ResponseChunk(
                    text=text,
                    index=0,
                    total=1,
                    delay_ms=0,
                    response_to_message_id=response_to_message_id,
                )
            ]

        if rule.chunk_by == ChunkBy.PARAGRAPH:
            pieces = split_paragraphs(text, rule.max_length)
        else:
            pieces = split_sentences(text, rule.max_length)

        pieces = [piece.strip() for piece in pieces if piece.strip()]
        total = len(pieces)
        logger.debug(
            "Chunked %d chars for %s by %s into %d chunk(s)",
            len(text), channel.value, rule.chunk_by.value, total,
        )
        return [
            ResponseChunk(
                text=piece,
                index=index,
                total=total,
                delay_ms=0 if index == 0 else rule.delay_between_chunks,
                response_to_message_id=response_to_message_id,
            )
            for index, piece in enumerate(pieces)
        ]

    @staticmethod
    def _active_rule(
        channel: MessageSource, policy: Optional[ChunkingPolicy]
    ) -> Optional[ChunkingRule]:
        """The rule to split with, or None when the reply goes out whole."""
        if policy is None or not policy.enabled:
            return None
        rule = policy.rule_for(channel)
        if rule is None or rule.chunk_by == ChunkBy.NONE or rule.max_length == -1:
            return None
        return rule
