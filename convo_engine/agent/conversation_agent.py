"""
One persona's reply turn.

Loads company, persona and channel state (best-effort), resolves the goal
instruction for the active goal, asks the LLM for a reply, then chunks and
delivers it with human pacing. Lookup failures fall back to defaults; a
reply generation failure propagates to the caller.

Usage:
    agent = ConversationAgent(generator, publisher, companies, personas, states)
    report = await agent.respond(invocation)
"""

import asyncio
import random
from typing import Any, Callable, Optional

from convo_engine.agent.reply_generator import ReplyGenerator, ReplyRequest
from convo_engine.config import AppConfig, ChunkingConfig, settings
from convo_engine.delivery.chunker import ResponseChunker
from convo_engine.delivery.pipeline import ClockFn, DeliveryPipeline, SleepFn
from convo_engine.delivery.timing import DeliveryTimingModel
from convo_engine.errors import PublishError
from convo_engine.goals.fields import captured_text
from convo_engine.goals.resolver import GoalInstructionResolver
from convo_engine.logging_context import get_trace_logger
from convo_engine.prompts.prompt_templates import build_reply_prompt
from convo_engine.routing.directories import ChannelStateStore, CompanyDirectory, PersonaDirectory
from convo_engine.routing.publisher import EventPublisher
from convo_engine.schemas.directory_schema import CompanyInfo, PersonaRecord
from convo_engine.schemas.goal_schema import ChannelState, GoalContext, GoalInstruction
from convo_engine.schemas.message_schema import (
    AgentInvocation,
    ChunkBy,
    ChunkingPolicy,
    ChunkingRule,
    DeliveryReport,
    MessageSource,
)
from convo_engine.utils import to_iso, utc_now

logger = get_trace_logger(__name__)

CHAT_RECEIVED_DETAIL_TYPE = "chat.received"


def resolve_chunking_policy(
    persona: Optional[PersonaRecord], config: ChunkingConfig = settings.chunking
) -> ChunkingPolicy:
    """The persona's explicit policy, else a verbosity-aware default.

    Low-verbosity personas answer in a single sentence, so chunking is off.
    Otherwise chat replies go out roughly one sentence per message.
    """
    if persona is not None and persona.response_chunking and persona.response_chunking.rules:
        return persona.response_chunking

    verbosity = config.default_verbosity
    if persona is not None and persona.verbosity:
        verbosity = persona.verbosity
    if verbosity <= config.low_verbosity_threshold:
        return ChunkingPolicy(enabled=False)
    return ChunkingPolicy(
        enabled=True,
        rules={
            MessageSource.CHAT: ChunkingRule(
                chunk_by=ChunkBy.SENTENCE,
                max_length=config.chat_max_length,
                delay_between_chunks=config.chat_delay_ms,
            )
        },
    )


class ConversationAgent:
    """Generates, chunks and delivers one persona's reply to an inbound message."""

    def __init__(
        self,
        generator: ReplyGenerator,
        publisher: EventPublisher,
        companies: CompanyDirectory,
        personas: PersonaDirectory,
        channel_states: ChannelStateStore,
        resolver: Optional[GoalInstructionResolver] = None,
        chunker: Optional[ResponseChunker] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = utc_now,
        rng: Optional[random.Random] = None,
        config: AppConfig = settings,
    ) -> None:
        self.generator = generator
        self.publisher = publisher
        self.companies = companies
        self.personas = personas
        self.channel_states = channel_states
        self.resolver = resolver or GoalInstructionResolver()
        self.chunker = chunker or ResponseChunker()
        self._sleep = sleep
        self._clock = clock
        self._rng = rng
        self.config = config

    async def respond(self, invocation: AgentInvocation) -> DeliveryReport:
        self._emit_received(invocation)

        company = self._best_effort(
            "company", self.companies.get_company, invocation.tenant_id
        )
        persona = self._best_effort(
            "persona", self.personas.get_persona, invocation.user_id, invocation.tenant_id
        )
        state = None
        if invocation.channel_id:
            state = self._best_effort(
                "channel state", self.channel_states.get_state,
                invocation.channel_id, invocation.tenant_id,
            )

        instruction = self.goal_instruction(invocation, company, state)
        user_name = captured_text(state.captured_data, "firstName") if state else None
        prompt = build_reply_prompt(
            invocation.user_name,
            persona.system_prompt if persona else "",
            instruction,
            user_name,
        )
        reply = await self.generator.generate(
            ReplyRequest(system_prompt=prompt, user_message=invocation.text, persona_id=invocation.user_id)
        )

        policy = resolve_chunking_policy(persona, self.config.chunking)
        chunks = self.chunker.chunk(reply, invocation.source, policy, invocation.message_id)
        logger.info("Reply split into %d chunk(s)", len(chunks))

        timing = DeliveryTimingModel.from_overrides(
            company.agent_timing if company else None, rng=self._rng
        )
        pipeline = DeliveryPipeline(
            self.publisher, timing, sleep=self._sleep, clock=self._clock, config=self.config.router
        )
        return await pipeline.deliver(invocation, invocation.user_name, chunks)

    def goal_instruction(
        self,
        invocation: AgentInvocation,
        company: Optional[CompanyInfo],
        state: Optional[ChannelState],
    ) -> Optional[GoalInstruction]:
        """Instruction for the channel's active goal, or None when there is none."""
        if state is None or state.active_goal is None:
            return None
        goal = state.active_goal
        # Values captured on the goal this turn win over older persisted values.
        captured = {
            name: state.captured_data[name]
            for name in goal.fields_needed
            if name in state.captured_data
        }
        captured.update(goal.fields_captured)
        context = GoalContext.for_goal(
            goal.model_copy(update={"fields_captured": captured}),
            company_info=company,
            channel_state=state,
            user_name=captured_text(state.captured_data, "firstName"),
            last_user_message=invocation.text,
        )
        return self.resolver.resolve(context)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _emit_received(self, invocation: AgentInvocation) -> None:
        try:
            self.publisher.publish(
                self.config.router.agent_event_source,
                CHAT_RECEIVED_DETAIL_TYPE,
                {
                    "channelId": invocation.channel_id,
                    "tenantId": invocation.tenant_id,
                    "personaId": invocation.user_id,
                    "timestamp": to_iso(self._clock()),
                },
            )
        except PublishError:
            logger.warning("Failed to publish %s", CHAT_RECEIVED_DETAIL_TYPE, exc_info=True)

    @staticmethod
    def _best_effort(label: str, lookup: Callable[..., Any], *args: Any) -> Any:
        try:
            return lookup(*args)
        except Exception:
            logger.warning("Failed to load %s for %s", label, args, exc_info=True)
            return None
