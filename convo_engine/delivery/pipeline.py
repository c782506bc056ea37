"""
Paced, sequential delivery of reply chunks.

Each chunk is held back by its computed pacing delay and then published as
an outbound ``chat.message`` event. Chunks go out strictly in order; a
failed publish is logged and the remaining chunks are still attempted.
Every outbound message carries the persona origin markers the router uses
to drop it if it comes back around.

Usage:
    pipeline = DeliveryPipeline(publisher, timing_model)
    report = await pipeline.deliver(invocation, persona_name, chunks)
"""

import asyncio
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from convo_engine.config import RouterConfig, settings
from convo_engine.delivery.timing import DeliveryTimingModel
from convo_engine.errors import PublishError
from convo_engine.logging_context import get_trace_logger
from convo_engine.routing.publisher import EventPublisher
from convo_engine.schemas.message_schema import (
    AgentInvocation,
    DeliveryReport,
    OutboundMessage,
    OutboundMetadata,
    ResponseChunk,
)
from convo_engine.utils import generate_agent_message_id, to_iso, utc_now

logger = get_trace_logger(__name__)

SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], datetime]


class DeliveryPipeline:
    """Sleeps, stamps and publishes each chunk of one reply."""

    def __init__(
        self,
        publisher: EventPublisher,
        timing: Optional[DeliveryTimingModel] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = utc_now,
        config: RouterConfig = settings.router,
    ) -> None:
        self.publisher = publisher
        self.timing = timing or DeliveryTimingModel()
        self._sleep = sleep
        self._clock = clock
        self.config = config

    def build_message(
        self,
        invocation: AgentInvocation,
        persona_name: str,
        chunk: ResponseChunk,
        sent_at: datetime,
    ) -> OutboundMessage:
        persona_id = invocation.user_id
        return OutboundMessage(
            tenant_id=invocation.tenant_id,
            channel_id=invocation.channel_id,
            user_id=persona_id,
            user_name=persona_name,
            message=chunk.text,
            message_id=generate_agent_message_id(),
            timestamp=to_iso(sent_at),
            sender_id=persona_id,
            agent_id=persona_id,
            connection_id=invocation.connection_id,
            metadata=OutboundMetadata(
                agent_id=persona_id,
                original_message_id=invocation.message_id or "",
                recipient_id=invocation.sender_id,
            ),
            current_chunk=chunk.index + 1,
            total_chunks=chunk.total,
        )

    async def deliver(
        self,
        invocation: AgentInvocation,
        persona_name: str,
        chunks: list[ResponseChunk],
    ) -> DeliveryReport:
        report = DeliveryReport(started_at=self._clock())
        previous: Optional[datetime] = None

        for chunk in chunks:
            delay = self.timing.delay_for(chunk.index, invocation.text, chunk.text)
            logger.info(
                "Chunk %d/%d delay %dms (reading=%dms typing=%dms pause=%dms)",
                chunk.index + 1, chunk.total, delay.total_ms,
                delay.reading_ms, delay.typing_ms, delay.pause_ms,
            )
            await self._sleep(delay.total_ms / 1000)

            sent_at = self._clock()
            if previous is not None and sent_at <= previous:
                sent_at = previous + timedelta(milliseconds=1)
            previous = sent_at

            message = self.build_message(invocation, persona_name, chunk, sent_at)
            try:
                self.publisher.publish(
                    self.config.outbound_event_source,
                    self.config.outbound_detail_type,
                    message.to_detail(),
                )
            except PublishError:
                logger.exception(
                    "Failed to publish chunk %d/%d for persona '%s'",
                    chunk.index + 1, chunk.total, invocation.user_id,
                )
                report.failed_indexes.append(chunk.index)
                continue
            report.sent.append(message)

        report.finished_at = self._clock()
        logger.info(
            "Delivered %d/%d chunk(s) for persona '%s'",
            len(report.sent), len(chunks), invocation.user_id,
        )
        return report
