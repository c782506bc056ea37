"""Goal, goal context and goal instruction models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from convo_engine.schemas.directory_schema import CompanyInfo

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class GoalKind(str, Enum):
    """Goal families with dedicated instruction builders."""

    CONTACT_INFO = "contact_info"
    SCHEDULING = "scheduling"
    IDENTITY = "identity"
    BODY_METRICS = "body_metrics"
    INJURIES = "injuries"
    GENERIC = "generic"

    @classmethod
    def classify(cls, goal_id: str = "", goal_type: str = "") -> "GoalKind":
        """Map a goal id/type pair onto a kind. Order matters: contact before identity."""
        goal_id = goal_id.lower().replace("-", "_")
        goal_type = goal_type.lower()
        if "contact_info" in goal_id:
            return cls.CONTACT_INFO
        if "schedule" in goal_id or goal_type in ("scheduling", "schedule_appointment"):
            return cls.SCHEDULING
        if "identity" in goal_id or "name" in goal_id:
            return cls.IDENTITY
        if "body_metrics" in goal_id:
            return cls.BODY_METRICS
        if "injuries" in goal_id or "limitations" in goal_id:
            return cls.INJURIES
        return cls.GENERIC


class Goal(BaseModel):
    """A slot-filling objective; mutated as fields are extracted from user turns."""

    model_config = _CAMEL

    goal_id: str
    goal_type: str = "collect_info"
    goal_name: str = ""
    fields_needed: list[str] = Field(default_factory=list)
    fields_captured: dict[str, Any] = Field(default_factory=dict)

    @property
    def kind(self) -> GoalKind:
        return GoalKind.classify(self.goal_id, self.goal_type)


class ChannelState(BaseModel):
    """Per-channel conversation state owned by an external store."""

    model_config = _CAMEL

    channel_id: Optional[str] = None
    captured_data: dict[str, Any] = Field(default_factory=dict)
    active_goal: Optional[Goal] = None
    last_processed_message_id: Optional[str] = None


class GoalContext(BaseModel):
    """Typed context for one resolver call, validated once at the boundary."""

    model_config = _CAMEL

    goal_id: str = ""
    goal_type: str = ""
    goal_name: str = ""
    fields_needed: list[str] = Field(default_factory=list)
    fields_captured: dict[str, Any] = Field(default_factory=dict)
    company_info: Optional[CompanyInfo] = None
    channel_state: Optional[ChannelState] = None
    user_name: Optional[str] = None
    last_user_message: Optional[str] = None
    detected_intent: Optional[str] = None

    @property
    def kind(self) -> GoalKind:
        return GoalKind.classify(self.goal_id, self.goal_type)

    @classmethod
    def for_goal(cls, goal: Goal, **extra: Any) -> "GoalContext":
        return cls(
            goal_id=goal.goal_id,
            goal_type=goal.goal_type,
            goal_name=goal.goal_name,
            fields_needed=list(goal.fields_needed),
            fields_captured=dict(goal.fields_captured),
            **extra,
        )


class GoalInstruction(BaseModel):
    """Steering for the next LLM turn. Ephemeral, never persisted."""

    model_config = _CAMEL

    instruction: str = ""
    examples: list[str] = Field(default_factory=list)
    target_fields: list[str] = Field(default_factory=list)

    @classmethod
    def none(cls) -> "GoalInstruction":
        """The idempotent "no question needed" result."""
        return cls()

    @property
    def is_empty(self) -> bool:
        return not self.instruction and not self.target_fields
