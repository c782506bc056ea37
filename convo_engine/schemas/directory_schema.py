"""Records supplied by external collaborators: channels, personas, companies."""

from typing import Any, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from convo_engine.schemas.message_schema import ChunkingPolicy
from convo_engine.schemas.scheduling_schema import BusinessHours, normalize_weekday_keys

_CAMEL = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ChannelRecord(BaseModel):
    """Channel configuration; the bot persona list partitions humans from bots."""

    model_config = _CAMEL

    channel_id: str
    tenant_id: Optional[str] = None
    bot_employee_ids: list[str] = Field(default_factory=list)
    bot_employee_id: Optional[str] = None
    persona_id: Optional[str] = None

    def bot_ids(self) -> list[str]:
        """All bot persona ids, including the legacy singular fields, de-duplicated in order."""
        ids: list[str] = []
        for candidate in [*self.bot_employee_ids, self.bot_employee_id, self.persona_id]:
            if candidate and candidate not in ids:
                ids.append(candidate)
        return ids


class PersonaRecord(BaseModel):
    model_config = _CAMEL

    persona_id: str
    tenant_id: Optional[str] = None
    name: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("name", "personaName", "persona_name")
    )
    system_prompt: str = ""
    verbosity: Optional[int] = None
    response_chunking: Optional[ChunkingPolicy] = None


class CompanyInfo(BaseModel):
    """Company configuration; business hours are read-only to the solver."""

    model_config = _CAMEL

    tenant_id: Optional[str] = None
    name: Optional[str] = None
    business_hours: BusinessHours = Field(default_factory=dict)
    agent_timing: Optional[dict[str, float]] = None

    @field_validator("business_hours", mode="before")
    @classmethod
    def _lowercase_weekdays(cls, value: Any) -> Any:
        return {} if value is None else normalize_weekday_keys(value)
