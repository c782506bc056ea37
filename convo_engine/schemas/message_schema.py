"""Inbound event, outbound message and chunking models."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class MessageSource(str, Enum):
    SMS = "sms"
    CHAT = "chat"
    EMAIL = "email"
    API = "api"
    AGENT = "agent"


class ChunkBy(str, Enum):
    SENTENCE = "sentence"
    PARAGRAPH = "paragraph"
    NONE = "none"


class ChunkingRule(BaseModel):
    """Per-channel chunking rule. ``max_length == -1`` means no limit."""

    model_config = _CAMEL

    max_length: int = -1
    chunk_by: ChunkBy = ChunkBy.NONE
    delay_between_chunks: int = 0


class ChunkingPolicy(BaseModel):
    """A persona's response chunking configuration."""

    model_config = _CAMEL

    enabled: bool = False
    rules: dict[MessageSource, ChunkingRule] = Field(default_factory=dict)

    def rule_for(self, channel: MessageSource) -> Optional[ChunkingRule]:
        return self.rules.get(channel)


class ResponseChunk(BaseModel):
    """One piece of a reply. ``delay_ms`` is the configured gap, not the pacing delay."""

    model_config = _CAMEL

    text: str
    index: int
    total: int
    delay_ms: int = 0
    response_to_message_id: Optional[str] = None


class InboundMetadata(BaseModel):
    """Free-form metadata on an inbound message; only origin markers are typed."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    origin_marker: Optional[str] = None
    is_agent_generated: Optional[bool] = None
    agent_id: Optional[str] = None
    sender_type: Optional[str] = None
    user_type: Optional[str] = None
    tenant_id: Optional[str] = None
    timestamp: Optional[str] = None
    original_message_id: Optional[str] = None


class InboundDetail(BaseModel):
    """The ``detail`` of an inbound event, native or externally sourced."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow")

    tenant_id: Optional[str] = None
    channel_id: Optional[str] = None
    user_id: Optional[str] = None
    sender_id: Optional[str] = None
    text: Optional[str] = None
    content: Optional[str] = None
    message_id: Optional[str] = None
    timestamp: Optional[str] = None
    metadata: Optional[InboundMetadata] = None
    user_type: Optional[str] = None
    sender_type: Optional[str] = None
    origin_marker: Optional[str] = None
    agent_id: Optional[str] = None
    is_agent_generated: Optional[bool] = None
    persona_ids: list[str] = Field(default_factory=list)
    source: Optional[MessageSource] = None
    connection_id: Optional[str] = None
    conversation_id: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("conversation_id", "conversationId")
    )
    email_lc: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("email_lc", "emailLc")
    )
    phone_e164: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("phone_e164", "phoneE164")
    )

    @property
    def body(self) -> str:
        """Message text; external events carry it as ``content``."""
        return self.text if self.text is not None else (self.content or "")


class InboundEvent(BaseModel):
    """EventBridge-shaped envelope consumed by the router."""

    model_config = ConfigDict(populate_by_name=True)

    source: str = ""
    detail_type: str = Field(
        default="", validation_alias=AliasChoices("detail-type", "detailType", "detail_type")
    )
    detail: InboundDetail = Field(default_factory=InboundDetail)


class AgentInvocation(BaseModel):
    """Context handed to one persona's reply turn after routing."""

    model_config = _CAMEL

    tenant_id: str
    channel_id: Optional[str] = None
    user_id: str
    user_name: str
    sender_id: Optional[str] = None
    text: str
    message_id: Optional[str] = None
    source: MessageSource = MessageSource.CHAT
    contact_key: str
    conversation_id: Optional[str] = None
    connection_id: Optional[str] = None
    received_at: Optional[str] = None


class OutboundMetadata(BaseModel):
    """Markers that let the router recognise and drop this message later."""

    model_config = _CAMEL

    origin_marker: str = "persona"
    agent_id: str
    original_message_id: str
    recipient_id: Optional[str] = None
    sender_type: str = "agent"


class OutboundMessage(BaseModel):
    """One delivered chunk, published as a ``chat.message`` event."""

    model_config = _CAMEL

    tenant_id: str
    channel_id: Optional[str] = None
    user_id: str
    user_name: str
    user_type: str = "agent"
    message: str
    message_id: str
    timestamp: str
    sender_id: str
    sender_type: str = "agent"
    origin_marker: str = "persona"
    agent_id: str
    connection_id: Optional[str] = None
    message_type: str = "text"
    metadata: OutboundMetadata
    current_chunk: int
    total_chunks: int

    def to_detail(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)


class DeliveryReport(BaseModel):
    """Outcome of delivering one reply."""

    sent: list[OutboundMessage] = Field(default_factory=list)
    failed_indexes: list[int] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return len(self.sent) + len(self.failed_indexes)
