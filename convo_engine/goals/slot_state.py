"""
Slot bookkeeping for a single goal.

Tracks which fields a goal needs, which captured values are valid, and the
capture history (attempts and overwritten values) for diagnostics. A goal is
complete once every required field holds a valid value; optional fields
such as body fat percentage never block completion.

Usage:
    state = SlotState.from_goal(goal)
    state.capture("email", "a@b.com")
    state.missing_fields()   # ["phone"]
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from convo_engine.goals.fields import (
    AUTO_EXTRACTED_FIELDS,
    OPTIONAL_FIELDS,
    captured_text,
    is_field_valid,
)
from convo_engine.schemas.goal_schema import Goal, GoalContext

logger = logging.getLogger(__name__)


@dataclass
class FieldHistory:
    """Capture attempts and overwritten values for one field."""

    attempts: int = 0
    previous_values: list[Any] = field(default_factory=list)


@dataclass
class SlotState:
    """Which fields a goal needs and which are captured."""

    fields_needed: list[str]
    fields_captured: dict[str, Any] = field(default_factory=dict)
    history: dict[str, FieldHistory] = field(default_factory=dict)

    @classmethod
    def from_goal(cls, goal: Goal) -> "SlotState":
        return cls(
            fields_needed=list(goal.fields_needed),
            fields_captured=dict(goal.fields_captured),
        )

    @classmethod
    def from_context(cls, context: GoalContext) -> "SlotState":
        return cls(
            fields_needed=list(context.fields_needed),
            fields_captured=dict(context.fields_captured),
        )

    def needs(self, name: str) -> bool:
        """True when the goal asks for ``name`` and it is not yet valid."""
        return name in self.fields_needed and not self.is_valid(name)

    def is_valid(self, name: str) -> bool:
        return is_field_valid(name, self.fields_captured.get(name))

    def value(self, name: str) -> Optional[str]:
        return captured_text(self.fields_captured, name)

    def capture(self, name: str, value: Any) -> bool:
        """Record an extracted value. Returns whether it satisfies the field."""
        entry = self.history.setdefault(name, FieldHistory())
        entry.attempts += 1
        if name in self.fields_captured:
            entry.previous_values.append(self.fields_captured[name])
        self.fields_captured[name] = value
        valid = self.is_valid(name)
        logger.debug("Captured '%s' = %r (valid=%s)", name, value, valid)
        return valid

    def missing_fields(self) -> list[str]:
        """Needed fields without a valid value, in declaration order.

        Auto-extracted fields are excluded since they are never asked for.
        """
        return [
            name for name in self.fields_needed
            if name not in AUTO_EXTRACTED_FIELDS and not self.is_valid(name)
        ]

    def required_missing(self) -> list[str]:
        return [name for name in self.missing_fields() if name not in OPTIONAL_FIELDS]

    def is_complete(self) -> bool:
        """True when every needed, non-optional field is valid."""
        return not self.required_missing()

    def to_goal(self, goal: Goal) -> Goal:
        return goal.model_copy(update={"fields_captured": dict(self.fields_captured)})

    def get_stats(self) -> dict[str, Any]:
        required = [n for n in self.fields_needed if n not in OPTIONAL_FIELDS]
        filled = len(required) - len(self.required_missing())
        return {
            "total_attempts": sum(h.attempts for h in self.history.values()),
            "total_corrections": sum(len(h.previous_values) for h in self.history.values()),
            "fields_filled": filled,
            "fields_required": len(required),
            "fill_rate": filled / len(required) if required else 1.0,
        }
