"""
LLM reply generation.

``OpenAIReplyGenerator`` asks a chat completion model for one reply;
``StaticReplyGenerator`` returns canned text for tests and the local
simulation.
"""

import logging
from dataclasses import dataclass
from typing import Any, Protocol

from openai import AsyncOpenAI

from convo_engine.config import ModelConfig, settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplyRequest:
    system_prompt: str
    user_message: str
    persona_id: str = ""


class ReplyGenerator(Protocol):
    async def generate(self, request: ReplyRequest) -> str:
        ...


class OpenAIReplyGenerator:
    """Generates replies with the OpenAI chat completions API."""

    def __init__(self, client: Any = None, config: ModelConfig = settings.model) -> None:
        self.config = config
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            self._client = AsyncOpenAI()
        return self._client

    async def generate(self, request: ReplyRequest) -> str:
        response = await self.client.chat.completions.create(
            model=self.config.llm_model,
            messages=[
                {"role": "system", "content": request.system_prompt},
                {"role": "user", "content": request.user_message},
            ],
            temperature=self.config.llm_temperature,
            max_tokens=self.config.llm_max_tokens,
        )
        choice = response.choices[0] if response.choices else None
        text = (choice.message.content or "") if choice and choice.message else ""
        logger.info("Generated %d-char reply for persona '%s'", len(text), request.persona_id)
        return text.strip()


class StaticReplyGenerator:
    """Returns a fixed reply and remembers the requests it saw."""

    def __init__(self, reply: str) -> None:
        self.reply = reply
        self.requests: list[ReplyRequest] = []

    async def generate(self, request: ReplyRequest) -> str:
        self.requests.append(request)
        return self.reply
