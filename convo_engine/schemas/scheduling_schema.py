"""Business hours and offerable slot models."""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

WEEKDAYS: tuple[str, ...] = (
    "monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday",
)


class BusinessInterval(BaseModel):
    """One open interval within a weekday, as 24h hour strings ("17" or "17:00")."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    start: str = Field(alias="from")
    end: str = Field(alias="to")

    @property
    def start_hour(self) -> int:
        return int(self.start.split(":")[0])

    @property
    def end_hour(self) -> int:
        return int(self.end.split(":")[0])


BusinessHours = dict[str, list[BusinessInterval]]

_BUSINESS_HOURS_ADAPTER = TypeAdapter(BusinessHours)


def normalize_weekday_keys(value: Any) -> Any:
    """Lower-case day names and treat a null day as closed."""
    if isinstance(value, dict):
        return {str(day).lower(): hours or [] for day, hours in value.items()}
    return value


def coerce_business_hours(value: Optional[Any]) -> BusinessHours:
    """Validate raw or already-parsed business hours into ``BusinessHours``."""
    if not value:
        return {}
    return _BUSINESS_HOURS_ADAPTER.validate_python(normalize_weekday_keys(value))


class TimeSlot(BaseModel):
    """Offerable times on one weekday, e.g. ``Monday: ["6pm", "7pm"]``."""

    day: str
    times: list[str] = Field(default_factory=list)
