"""
Human pacing model for chunked delivery.

The first chunk waits as if a person read the inbound message, typed the
chunk and was briefly busy; later chunks wait for typing plus a short
"thinking" pause:

    first      = reading(inbound) + typing(chunk) + uniform(min_busy, max_busy)
    subsequent = typing(chunk) + uniform(min_thinking, max_thinking)

Speeds are characters per second, busy/thinking bounds are seconds, and
every result is in integer milliseconds. The model only computes delays;
the delivery pipeline does the waiting.

Usage:
    model = DeliveryTimingModel.from_overrides(company.agent_timing)
    delay = model.delay_for(0, inbound_text, chunk.text)
"""

import dataclasses
import logging
import math
import random
from dataclasses import dataclass
from typing import Any, Optional

from convo_engine.config import TimingConfig, settings

logger = logging.getLogger(__name__)

# Company records store timing overrides with camelCase keys.
_OVERRIDE_KEYS: dict[str, str] = {
    "readingSpeed": "reading_speed",
    "typingSpeed": "typing_speed",
    "minBusyTime": "min_busy_time",
    "maxBusyTime": "max_busy_time",
    "minThinkingTime": "min_thinking_time",
    "maxThinkingTime": "max_thinking_time",
}


@dataclass(frozen=True)
class ChunkDelay:
    """One chunk's delay and its components, kept for logging."""

    index: int
    reading_ms: int
    typing_ms: int
    pause_ms: int

    @property
    def total_ms(self) -> int:
        return self.reading_ms + self.typing_ms + self.pause_ms


def merge_timing_overrides(
    overrides: Optional[dict[str, Any]], base: TimingConfig = settings.timing
) -> TimingConfig:
    """Overlay per-tenant values on ``base``; missing or falsy values keep the default."""
    if not overrides:
        return base
    changes: dict[str, float] = {}
    for key, value in overrides.items():
        attr = _OVERRIDE_KEYS.get(key)
        if attr is None or not value:
            continue
        changes[attr] = float(value)
    return dataclasses.replace(base, **changes)


class DeliveryTimingModel:
    """Computes per-chunk pacing delays from a TimingConfig."""

    def __init__(
        self,
        config: TimingConfig = settings.timing,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config
        self._rng = rng or random.Random()

    @classmethod
    def from_overrides(
        cls,
        overrides: Optional[dict[str, Any]],
        rng: Optional[random.Random] = None,
    ) -> "DeliveryTimingModel":
        return cls(merge_timing_overrides(overrides), rng=rng)

    # ------------------------------------------------------------------ #
    # Components
    # ------------------------------------------------------------------ #

    def reading_time_ms(self, inbound_text: str) -> int:
        return math.floor(len(inbound_text) / self.config.reading_speed * 1000)

    def typing_time_ms(self, chunk_text: str) -> int:
        return math.floor(len(chunk_text) / self.config.typing_speed * 1000)

    def busy_time_ms(self) -> int:
        return int(self._rng.uniform(self.config.min_busy_time, self.config.max_busy_time) * 1000)

    def thinking_time_ms(self) -> int:
        return int(
            self._rng.uniform(self.config.min_thinking_time, self.config.max_thinking_time) * 1000
        )

    # ------------------------------------------------------------------ #
    # Delays
    # ------------------------------------------------------------------ #

    def delay_for(self, index: int, inbound_text: str, chunk_text: str) -> ChunkDelay:
        if index == 0:
            return ChunkDelay(
                index=index,
                reading_ms=self.reading_time_ms(inbound_text),
                typing_ms=self.typing_time_ms(chunk_text),
                pause_ms=self.busy_time_ms(),
            )
        return ChunkDelay(
            index=index,
            reading_ms=0,
            typing_ms=self.typing_time_ms(chunk_text),
            pause_ms=self.thinking_time_ms(),
        )

    def first_chunk_delay_ms(self, inbound_text: str, chunk_text: str) -> int:
        return self.delay_for(0, inbound_text, chunk_text).total_ms

    def subsequent_chunk_delay_ms(self, chunk_text: str) -> int:
        return self.delay_for(1, "", chunk_text).total_ms
