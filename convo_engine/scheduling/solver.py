"""
Appointment slot negotiation for scheduling goals.

Decides which of six stages the conversation is in and builds the matching
instruction. Rejection of earlier offers is checked first; otherwise the
stage follows from what has been captured:

    RENEGOTIATE     user pushed back on offered times ("later than 6")
    ASK_PREFERENCE  no date, no time preference yet
    OFFER_DAYS      vague preference ("evening"), no date
    OFFER_TIMES     date known, no specific time
    CONFIRM         date and specific time captured
    FALLBACK        nothing to compute (no business hours / no matches)

Usage:
    solver = AvailabilitySolver(company_info.business_hours)
    instruction = solver.solve(context)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from convo_engine.config import SchedulingConfig, settings
from convo_engine.goals.fields import (
    captured_text,
    humanize_field_name,
    is_date_like,
    is_field_valid,
    natural_join,
)
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction
from convo_engine.schemas.scheduling_schema import BusinessHours, TimeSlot, coerce_business_hours
from convo_engine.scheduling.availability import (
    filter_times,
    format_hour,
    format_slot_options,
    slots_after_hour,
    slots_before_hour,
    slots_for_period,
    times_for_day,
)
from convo_engine.scheduling.time_preference import (
    Renegotiation,
    TimeKind,
    TimePreference,
    TimeRelation,
    detect_renegotiation,
    parse_time_preference,
    period_for_hour,
    to_24h,
)

logger = logging.getLogger(__name__)

DATE_FIELD = "preferredDate"
TIME_FIELD = "preferredTime"


class SchedulingStage(str, Enum):
    RENEGOTIATE = "renegotiate"
    ASK_PREFERENCE = "ask_preference"
    OFFER_DAYS = "offer_days"
    OFFER_TIMES = "offer_times"
    CONFIRM = "confirm"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class SchedulingSnapshot:
    """What the conversation has established so far."""

    date_value: Optional[str]
    has_date: bool
    preference: TimePreference
    renegotiation: Renegotiation

    @property
    def has_specific_time(self) -> bool:
        return self.preference.kind == TimeKind.SPECIFIC


class AvailabilitySolver:
    """Turns business hours plus free-text time language into concrete offers."""

    def __init__(
        self,
        business_hours: Optional[Any] = None,
        config: SchedulingConfig = settings.scheduling,
    ) -> None:
        self.business_hours: BusinessHours = coerce_business_hours(business_hours)
        self.config = config

    # ------------------------------------------------------------------ #
    # Stage detection
    # ------------------------------------------------------------------ #

    def snapshot(self, context: GoalContext) -> SchedulingSnapshot:
        date_value = captured_text(context.fields_captured, DATE_FIELD)
        preference = parse_time_preference(captured_text(context.fields_captured, TIME_FIELD))
        renegotiation = detect_renegotiation(context.last_user_message, context.detected_intent)
        snap = SchedulingSnapshot(
            date_value=date_value,
            has_date=bool(date_value) and is_date_like(date_value),
            preference=preference,
            renegotiation=renegotiation,
        )
        logger.debug(
            "Scheduling snapshot: date=%r (valid=%s) time=%r (%s) rejection=%s later=%s "
            "earlier=%s hour=%s",
            date_value, snap.has_date, preference.raw, preference.kind.value,
            renegotiation.is_rejection, renegotiation.wants_later,
            renegotiation.wants_earlier, renegotiation.mentioned_hour,
        )
        return snap

    def stage_for(self, snap: SchedulingSnapshot) -> SchedulingStage:
        if snap.renegotiation.is_rejection and self.business_hours:
            return SchedulingStage.RENEGOTIATE
        if not snap.preference.has_preference and not snap.has_date:
            return SchedulingStage.ASK_PREFERENCE
        if snap.has_date and snap.has_specific_time:
            return SchedulingStage.CONFIRM
        if not self.business_hours:
            return SchedulingStage.FALLBACK
        if not snap.has_date:
            return SchedulingStage.OFFER_DAYS
        return SchedulingStage.OFFER_TIMES

    def solve(self, context: GoalContext) -> GoalInstruction:
        snap = self.snapshot(context)
        stage = self.stage_for(snap)
        logger.info("Scheduling stage for goal '%s': %s", context.goal_id, stage.value)

        if stage == SchedulingStage.RENEGOTIATE:
            return self._renegotiate(snap)
        if stage == SchedulingStage.ASK_PREFERENCE:
            return self._ask_preference(context)
        if stage == SchedulingStage.CONFIRM:
            return self._confirm(snap)
        if stage == SchedulingStage.OFFER_DAYS:
            return self._offer_days(snap)
        if stage == SchedulingStage.OFFER_TIMES:
            instruction = self._offer_times(snap)
            if instruction is not None:
                return instruction
        return self._fallback(context, snap)

    # ------------------------------------------------------------------ #
    # Slot queries
    # ------------------------------------------------------------------ #

    def renegotiation_bound(self, renegotiation: Renegotiation) -> int:
        """24h bound from the mentioned hour, defaulting when none (or 0) is mentioned."""
        if not renegotiation.mentioned_hour:
            return self.config.default_renegotiation_hour
        return to_24h(renegotiation.mentioned_hour, renegotiation.meridiem)

    def slots_for_preference(self, preference: TimePreference) -> list[TimeSlot]:
        per_day = self.config.max_times_per_day
        if preference.relation == TimeRelation.AFTER and preference.hour is not None:
            return slots_after_hour(self.business_hours, preference.hour, per_day)
        if preference.relation == TimeRelation.BEFORE and preference.hour is not None:
            return slots_before_hour(self.business_hours, preference.hour, per_day)
        period = preference.period
        if period is None and preference.hour is not None:
            period = period_for_hour(preference.hour)
        return slots_for_period(self.business_hours, period, per_day)

    def times_for_date(self, date_value: str, preference: TimePreference) -> list[str]:
        times = times_for_day(
            self.business_hours,
            date_value,
            max_times=self.config.max_day_sample_times,
            step=self.config.day_sample_step_hours,
        )
        if not preference.has_preference or preference.kind == TimeKind.SPECIFIC:
            return times
        if preference.relation == TimeRelation.AFTER:
            return filter_times(times, after_hour=preference.hour)
        if preference.relation == TimeRelation.BEFORE:
            return filter_times(times, before_hour=preference.hour)
        return filter_times(times, period=preference.period)

    # ------------------------------------------------------------------ #
    # Instructions per stage
    # ------------------------------------------------------------------ #

    def _renegotiate(self, snap: SchedulingSnapshot) -> GoalInstruction:
        reneg = snap.renegotiation
        bound = self.renegotiation_bound(reneg)
        per_day = self.config.max_times_per_day

        if reneg.wants_later:
            slots = slots_after_hour(self.business_hours, bound, per_day, reneg.skip_days)
            if slots:
                options = format_slot_options(slots)
                first = slots[0]
                return GoalInstruction(
                    instruction=(
                        f"The user turned down the earlier times and wants something LATER "
                        f"(after {format_hour(bound)}).\n"
                        f"Offer these open slots: {options}\n"
                        "Be accommodating, they have schedule constraints."
                    ),
                    examples=[
                        f'"No problem! How about {first.day} at {first.times[0]}?"',
                        f'"Got you. Later options: {options}. Which one works?"',
                        f'"Totally understand! What about {options}?"',
                    ],
                    target_fields=[DATE_FIELD],
                )
            return self._no_slots_for_bound("after", bound)

        if reneg.wants_earlier:
            slots = slots_before_hour(self.business_hours, bound, per_day, reneg.skip_days)
            if slots:
                options = format_slot_options(slots)
                first = slots[0]
                return GoalInstruction(
                    instruction=(
                        f"The user wants EARLIER times (before {format_hour(bound)}).\n"
                        f"Offer these open slots: {options}"
                    ),
                    examples=[
                        f'"Earlier works! How about {first.day} at {first.times[0]}?"',
                        f'"Sure thing, I can do {options}. Pick your favorite!"',
                    ],
                    target_fields=[DATE_FIELD],
                )
            return self._no_slots_for_bound("before", bound)

        return GoalInstruction(
            instruction=(
                "The user turned down the offered times. Ask which days or times "
                "would suit them better. Stay accommodating."
            ),
            examples=[
                '"No worries! What times work better for your schedule?"',
                '"I hear you! When are you usually free?"',
                '"Let\'s find something that works. What\'s your ideal time?"',
            ],
            target_fields=[TIME_FIELD, DATE_FIELD],
        )

    def _no_slots_for_bound(self, direction: str, bound: int) -> GoalInstruction:
        return GoalInstruction(
            instruction=(
                f"There are no open slots {direction} {format_hour(bound)}. "
                "Apologize briefly and ask whether a different day would work."
            ),
            examples=[
                f'"Sorry, we don\'t have anything {direction} {format_hour(bound)}. '
                'Would a different day work better?"',
                '"I hear you! Which day gives you more flexibility?"',
            ],
            target_fields=[DATE_FIELD],
        )

    def _ask_preference(self, context: GoalContext) -> GoalInstruction:
        name = context.user_name or "friend"
        return GoalInstruction(
            instruction=(
                "Ask whether they prefer mornings, afternoons or evenings.\n"
                "This narrows down which open slots to offer."
            ),
            examples=[
                f'"Are you more of a morning person or an evening person, {name}?"',
                '"What works better for you, mornings or evenings?"',
                '"Do you prefer early sessions or something after work?"',
            ],
            target_fields=[TIME_FIELD],
        )

    def _offer_days(self, snap: SchedulingSnapshot) -> GoalInstruction:
        preference = snap.preference
        slots = self.slots_for_preference(preference)
        if slots:
            options = format_slot_options(slots)
            first = slots[0]
            return GoalInstruction(
                instruction=(
                    f'The user prefers "{preference.raw}". Offer specific open slots.\n'
                    f"Options based on business hours: {options}\n"
                    "Ask which day and time works for them."
                ),
                examples=[
                    f'"We\'ve got {options}. Which works for you?"',
                    f'"I can do {options}. What\'s your pick?"',
                    f'"How about {first.day} at {first.times[0]}? I have other times too!"',
                ],
                target_fields=[DATE_FIELD],
            )
        if preference.relation == TimeRelation.AFTER and preference.hour is not None:
            return self._no_slots_for_bound("after", preference.hour)
        return GoalInstruction(
            instruction="Ask which specific day works for them.",
            examples=[
                '"What day works best for you this week?"',
                '"When were you thinking, this week or next?"',
            ],
            target_fields=[DATE_FIELD],
        )

    def _offer_times(self, snap: SchedulingSnapshot) -> Optional[GoalInstruction]:
        date_value = snap.date_value or ""
        times = self.times_for_date(date_value, snap.preference)
        if not times:
            return None
        options = ", ".join(times)
        note = (
            f" (filtered for {snap.preference.raw})"
            if snap.preference.kind == TimeKind.VAGUE
            else ""
        )
        second = times[1] if len(times) > 1 else times[0]
        return GoalInstruction(
            instruction=(
                f'The user picked "{date_value}"{note}. They still need a SPECIFIC time.\n'
                f"Open times: {options}\n"
                'Ask them to pick one, like "7pm" or "7:30".'
            ),
            examples=[
                f'"On {date_value} I\'ve got {options}. What time works?"',
                f'"Perfect! For {date_value}, how about {times[0]} or {second}?"',
            ],
            target_fields=[TIME_FIELD],
        )

    def _confirm(self, snap: SchedulingSnapshot) -> GoalInstruction:
        when = f"{snap.date_value} at {snap.preference.raw}"
        return GoalInstruction(
            instruction="Both the date and a specific time are captured. Confirm the appointment.",
            examples=[
                f'"Locked in for {when}!"',
                f'"You\'re all set, see you {when}!"',
            ],
            target_fields=[],
        )

    def _fallback(self, context: GoalContext, snap: SchedulingSnapshot) -> GoalInstruction:
        missing = [
            f for f in (context.fields_needed or [DATE_FIELD, TIME_FIELD])
            if not is_field_valid(f, context.fields_captured.get(f))
        ]
        if not missing:
            missing = [TIME_FIELD]
        labels = natural_join([humanize_field_name(f) for f in missing])
        return GoalInstruction(
            instruction=f"Ask for their {labels} in a natural, conversational way.",
            examples=[f'"What {labels} works for you?"'],
            target_fields=missing,
        )


def solve_scheduling(context: GoalContext) -> GoalInstruction:
    """Entry point registered for scheduling goals."""
    hours = context.company_info.business_hours if context.company_info else {}
    return AvailabilitySolver(hours).solve(context)
