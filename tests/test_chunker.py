"""Tests for reply chunking per channel policy."""

import pytest

from convo_engine.delivery.chunker import ResponseChunker, split_words
from convo_engine.schemas.message_schema import ChunkBy, ChunkingPolicy, ChunkingRule, MessageSource

THREE_SENTENCES = "Hi there! How are you? I am fine."


def policy(max_length=20, chunk_by=ChunkBy.SENTENCE, delay=1000, enabled=True, channel=MessageSource.CHAT):
    rule = ChunkingRule(max_length=max_length, chunk_by=chunk_by, delay_between_chunks=delay)
    return ChunkingPolicy(enabled=enabled, rules={channel: rule})


@pytest.fixture
def chunker():
    return ResponseChunker()


class TestPassThrough:
    @pytest.mark.parametrize(
        "chunking",
        [
            None,
            policy(enabled=False),
            policy(chunk_by=ChunkBy.NONE),
            policy(max_length=-1),
            policy(channel=MessageSource.SMS),
        ],
    )
    def test_single_unmodified_chunk(self, chunker, chunking):
        text = "  Hello there. This stays whole.  "
        chunks = chunker.chunk(text, MessageSource.CHAT, chunking)
        assert len(chunks) == 1
        assert chunks[0].text == text
        assert chunks[0].index == 0
        assert chunks[0].total == 1
        assert chunks[0].delay_ms == 0


class TestSentenceChunking:
    def test_splits_into_sentences(self, chunker):
        chunks = chunker.chunk(THREE_SENTENCES, MessageSource.CHAT, policy(max_length=20))
        assert [c.text for c in chunks] == ["Hi there!", "How are you?", "I am fine."]
        assert [c.index for c in chunks] == [0, 1, 2]
        assert all(c.total == 3 for c in chunks)

    def test_packs_sentences_that_fit(self, chunker):
        chunks = chunker.chunk(THREE_SENTENCES, MessageSource.CHAT, policy(max_length=120))
        assert [c.text for c in chunks] == [THREE_SENTENCES]

    def test_delays_follow_rule(self, chunker):
        chunks = chunker.chunk(THREE_SENTENCES, MessageSource.CHAT, policy(max_length=20, delay=750))
        assert [c.delay_ms for c in chunks] == [0, 750, 750]

    def test_long_sentence_splits_on_words(self, chunker):
        text = "one two three four five six seven eight nine ten"
        chunks = chunker.chunk(text, MessageSource.CHAT, policy(max_length=15))
        assert [c.text for c in chunks] == ["one two three", "four five six", "seven eight", "nine ten"]

    def test_single_overlong_word_is_kept_whole(self, chunker):
        chunks = chunker.chunk("supercalifragilistic", MessageSource.CHAT, policy(max_length=5))
        assert [c.text for c in chunks] == ["supercalifragilistic"]

    def test_empty_text_yields_no_chunks(self, chunker):
        assert chunker.chunk("   ", MessageSource.CHAT, policy()) == []

    def test_reply_target_is_carried(self, chunker):
        chunks = chunker.chunk(THREE_SENTENCES, MessageSource.CHAT, policy(), response_to_message_id="msg-9")
        assert all(c.response_to_message_id == "msg-9" for c in chunks)


class TestParagraphChunking:
    TEXT = "First para here.\n\nSecond para here."

    def test_paragraphs_packed_when_they_fit(self, chunker):
        chunks = chunker.chunk(self.TEXT, MessageSource.CHAT, policy(max_length=100, chunk_by=ChunkBy.PARAGRAPH))
        assert [c.text for c in chunks] == [self.TEXT]

    def test_paragraphs_split_when_too_long(self, chunker):
        chunks = chunker.chunk(self.TEXT, MessageSource.CHAT, policy(max_length=20, chunk_by=ChunkBy.PARAGRAPH))
        assert [c.text for c in chunks] == ["First para here.", "Second para here."]


class TestChunkingLaws:
    TEXTS = [
        THREE_SENTENCES,
        "A fairly long opening sentence that goes on for a while. Short one. Another medium sentence here!",
        "Para one has words.\n\nPara two has more words in it.\n\nThree.",
        "no punctuation at all just a long run of words that keeps going and going",
    ]

    @pytest.mark.parametrize("text", TEXTS)
    @pytest.mark.parametrize("chunk_by", [ChunkBy.SENTENCE, ChunkBy.PARAGRAPH])
    @pytest.mark.parametrize("max_length", [10, 25, 60])
    def test_joining_chunks_restores_words(self, chunker, text, chunk_by, max_length):
        chunks = chunker.chunk(text, MessageSource.CHAT, policy(max_length=max_length, chunk_by=chunk_by))
        assert " ".join(c.text for c in chunks).split() == text.split()

    @pytest.mark.parametrize("text", TEXTS)
    @pytest.mark.parametrize("max_length", [10, 25, 60])
    def test_chunks_respect_max_length(self, chunker, text, max_length):
        chunks = chunker.chunk(text, MessageSource.CHAT, policy(max_length=max_length))
        for c in chunks:
            assert len(c.text) <= max_length or len(c.text.split()) == 1


class TestSplitWords:
    def test_packs_words(self):
        assert split_words("a b c d", 3) == ["a b", "c d"]
