"""
Inbound event routing with loop prevention and persona fan-out.

Every inbound event is classified before anything else happens. Events a
bot authored (its own broadcast, agent markers, ``agent-`` message ids) are
dropped, as are external events addressed to a human rather than one of
the channel's bot personas. Everything else is fanned out sequentially:
one reply turn per bot persona assigned to the channel.

Lookups are best-effort and degrade to defaults. Only an unresolvable
tenant or contact identity is fatal.

Usage:
    router = OriginRouter(responder=agent.respond, channels=..., personas=...,
                          contacts=..., publisher=...)
    result = await router.route(raw_event)
    result.outcome  # RouteOutcome.PROCESSED
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Awaitable, Callable, Optional, Union

from convo_engine.config import RouterConfig, settings
from convo_engine.errors import PublishError, UnresolvableIdentityError
from convo_engine.logging_context import get_trace_logger, set_trace_id
from convo_engine.routing.directories import (
    ChannelDirectory,
    ContactDirectory,
    PersonaDirectory,
)
from convo_engine.routing.publisher import EventPublisher
from convo_engine.schemas.message_schema import (
    AgentInvocation,
    InboundDetail,
    InboundEvent,
    MessageSource,
)
from convo_engine.utils import parse_iso, to_iso, utc_now

logger = get_trace_logger(__name__)

AGENT_MESSAGE_PREFIX = "agent-"
AGENT_TYPE = "agent"
PERSONA_ORIGIN = "persona"
AGENT_ERROR_DETAIL_TYPE = "agent.error"

Responder = Callable[[AgentInvocation], Awaitable[Any]]


class RouteOutcome(str, Enum):
    PROCESSED = "processed"
    DROPPED_SELF_ORIGIN = "dropped_self_origin"
    DROPPED_FOR_HUMAN = "dropped_for_human"


@dataclass
class RouteResult:
    """What the router decided for one event, and why."""

    outcome: RouteOutcome
    reason: str = ""
    invocations: list[AgentInvocation] = field(default_factory=list)
    responses: list[Any] = field(default_factory=list)

    @property
    def dropped(self) -> bool:
        return self.outcome != RouteOutcome.PROCESSED


def anonymous_contact_key(channel_id: str) -> str:
    return f"channel-{channel_id}@anonymous.com"


def bot_origin_reason(detail: InboundDetail, bot_ids: list[str]) -> Optional[str]:
    """Why ``detail`` looks bot-authored, or None when it looks human.

    Any single marker is enough. Missing markers never count as bot.
    """
    meta = detail.metadata
    if detail.sender_id and detail.sender_id in bot_ids:
        return f"sender '{detail.sender_id}' is a bot persona on this channel"
    if detail.user_type == AGENT_TYPE or detail.sender_type == AGENT_TYPE:
        return "user/sender type is agent"
    if meta is not None and meta.sender_type == AGENT_TYPE:
        return "metadata sender type is agent"
    if detail.message_id and detail.message_id.startswith(AGENT_MESSAGE_PREFIX):
        return f"message id '{detail.message_id}' has agent prefix"
    if detail.origin_marker == PERSONA_ORIGIN or (meta is not None and meta.origin_marker == PERSONA_ORIGIN):
        return "origin marker is persona"
    if detail.is_agent_generated or (meta is not None and meta.is_agent_generated):
        return "flagged as agent generated"
    if detail.agent_id or (meta is not None and meta.agent_id):
        return "carries an agent id"
    return None


class OriginRouter:
    """Classifies inbound events and fans human messages out to bot personas."""

    def __init__(
        self,
        responder: Responder,
        channels: ChannelDirectory,
        personas: PersonaDirectory,
        contacts: ContactDirectory,
        publisher: EventPublisher,
        config: RouterConfig = settings.router,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.responder = responder
        self.channels = channels
        self.personas = personas
        self.contacts = contacts
        self.publisher = publisher
        self.config = config
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Entry point
    # ------------------------------------------------------------------ #

    async def route(self, event: Union[InboundEvent, dict[str, Any]]) -> RouteResult:
        if not isinstance(event, InboundEvent):
            event = InboundEvent.model_validate(event)
        detail = event.detail
        set_trace_id(detail.message_id or "NO_MESSAGE_ID")

        is_external = event.detail_type == self.config.external_detail_type
        logger.info(
            "Routing %s event from %s (channel=%s user=%s sender=%s)",
            event.detail_type, event.source, detail.channel_id,
            detail.user_id, detail.sender_id,
        )

        bot_ids = self._channel_bot_ids(detail.channel_id)

        drop = self._classify(event, detail, bot_ids, is_external)
        if drop is not None:
            logger.info("Dropped (%s): %s", drop.outcome.value, drop.reason)
            return drop

        self._log_message_age(detail)

        tenant_id = self._resolve_tenant(detail)
        contact_key = self._resolve_contact(detail, tenant_id, is_external)
        persona_ids = self._persona_ids(detail, bot_ids)
        if not persona_ids:
            logger.warning("No persona to respond on channel '%s'", detail.channel_id)
            return RouteResult(outcome=RouteOutcome.PROCESSED, reason="no persona assigned")

        result = RouteResult(outcome=RouteOutcome.PROCESSED)
        for persona_id in persona_ids:
            invocation = AgentInvocation(
                tenant_id=tenant_id,
                channel_id=detail.channel_id,
                user_id=persona_id,
                user_name=self._persona_name(persona_id, tenant_id),
                sender_id=detail.sender_id,
                text=detail.body,
                message_id=detail.message_id,
                source=MessageSource.CHAT if is_external else (detail.source or MessageSource.CHAT),
                contact_key=contact_key,
                conversation_id=detail.conversation_id or detail.channel_id,
                connection_id=detail.connection_id,
                received_at=detail.timestamp,
            )
            logger.info("Invoking persona '%s' (%s)", persona_id, invocation.user_name)
            result.invocations.append(invocation)
            result.responses.append(await self.responder(invocation))
        return result

    # ------------------------------------------------------------------ #
    # Classification
    # ------------------------------------------------------------------ #

    def _classify(
        self,
        event: InboundEvent,
        detail: InboundDetail,
        bot_ids: list[str],
        is_external: bool,
    ) -> Optional[RouteResult]:
        reason = bot_origin_reason(detail, bot_ids)
        if reason is None and event.detail_type == self.config.native_chat_detail_type:
            if detail.user_id and detail.user_id == detail.sender_id:
                reason = "user id equals sender id"
        if reason is not None:
            return RouteResult(outcome=RouteOutcome.DROPPED_SELF_ORIGIN, reason=reason)

        # An empty bot list means the lookup failed or nothing is assigned; treat as not-for-human.
        if is_external and bot_ids and detail.user_id not in bot_ids:
            return RouteResult(
                outcome=RouteOutcome.DROPPED_FOR_HUMAN,
                reason=f"recipient '{detail.user_id}' is not a bot persona on this channel",
            )
        return None

    def _channel_bot_ids(self, channel_id: Optional[str]) -> list[str]:
        if not channel_id:
            return []
        try:
            record = self.channels.get_channel(channel_id)
        except Exception:
            logger.warning("Channel lookup failed for '%s'", channel_id, exc_info=True)
            return []
        if record is None:
            logger.warning("Channel '%s' not found", channel_id)
            return []
        return record.bot_ids()

    def _persona_ids(self, detail: InboundDetail, bot_ids: list[str]) -> list[str]:
        if detail.persona_ids:
            return list(detail.persona_ids)
        if bot_ids:
            return bot_ids
        return [detail.user_id] if detail.user_id else []

    # ------------------------------------------------------------------ #
    # Identity
    # ------------------------------------------------------------------ #

    def _resolve_tenant(self, detail: InboundDetail) -> str:
        tenant_id = detail.tenant_id or (detail.metadata.tenant_id if detail.metadata else None)
        if not tenant_id and detail.user_id:
            persona = self._lookup_persona(detail.user_id)
            tenant_id = persona.tenant_id if persona else None
        if not tenant_id:
            raise UnresolvableIdentityError(
                f"no tenant id for persona '{detail.user_id}'", detail.message_id or ""
            )
        return tenant_id

    def _resolve_contact(self, detail: InboundDetail, tenant_id: str, is_external: bool) -> str:
        if detail.email_lc:
            return detail.email_lc
        if detail.phone_e164:
            contact = self.contacts.resolve_contact_from_phone(tenant_id, detail.phone_e164)
            if contact:
                return contact
            reason = f"could not resolve contact for phone {detail.phone_e164}"
            self._publish_error(tenant_id, reason, detail)
            raise UnresolvableIdentityError(reason, detail.message_id or "")
        if detail.channel_id and (is_external or detail.source in (None, MessageSource.CHAT)):
            return anonymous_contact_key(detail.channel_id)
        reason = "no contact key derivable"
        self._publish_error(tenant_id, reason, detail)
        raise UnresolvableIdentityError(reason, detail.message_id or "")

    def _lookup_persona(self, persona_id: str, tenant_id: Optional[str] = None):
        try:
            return self.personas.get_persona(persona_id, tenant_id)
        except Exception:
            logger.warning("Persona lookup failed for '%s'", persona_id, exc_info=True)
            return None

    def _persona_name(self, persona_id: str, tenant_id: str) -> str:
        persona = self._lookup_persona(persona_id, tenant_id)
        if persona is None or not persona.name:
            return self.config.default_persona_name
        return persona.name

    def _publish_error(self, tenant_id: str, message: str, detail: InboundDetail) -> None:
        error_detail = {
            "tenantId": tenant_id,
            "error": message,
            "context": {
                "channelId": detail.channel_id,
                "messageId": detail.message_id,
                "source": detail.source.value if detail.source else None,
            },
            "timestamp": to_iso(self._clock()),
        }
        try:
            self.publisher.publish(
                self.config.agent_event_source, AGENT_ERROR_DETAIL_TYPE, error_detail
            )
        except PublishError:
            logger.exception("Failed to publish agent error event")

    def _log_message_age(self, detail: InboundDetail) -> None:
        raw = (detail.metadata.timestamp if detail.metadata else None) or detail.timestamp
        sent_at = parse_iso(raw) if raw else None
        if sent_at is None:
            return
        age = (self._clock() - sent_at).total_seconds()
        logger.info("Message age: %.1fs (timestamp: %s)", age, raw)
