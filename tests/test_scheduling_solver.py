"""Tests for scheduling stage detection and slot negotiation."""

import re

import pytest

from convo_engine.goals import GoalInstructionResolver
from convo_engine.scheduling.solver import AvailabilitySolver, SchedulingStage
from convo_engine.scheduling.time_preference import parse_clock_hour, parse_time_preference
from convo_engine.schemas.directory_schema import CompanyInfo
from convo_engine.schemas.scheduling_schema import BusinessInterval
from tests.conftest import EVENING_HOURS, make_company, make_scheduling_context


def _offered_hours(instruction_text: str) -> list[int]:
    """24h hours listed on the "Offer these open slots" line."""
    line = next(l for l in instruction_text.splitlines() if l.startswith("Offer these open slots:"))
    return [parse_clock_hour(t) for t in re.findall(r"\d{1,2}(?:am|pm)", line)]


@pytest.fixture
def resolver():
    return GoalInstructionResolver()


class TestStageDetection:
    @pytest.mark.parametrize(
        "captured, message, expected",
        [
            ({}, None, SchedulingStage.ASK_PREFERENCE),
            ({"preferredTime": "evening"}, None, SchedulingStage.OFFER_DAYS),
            ({"preferredDate": "Monday"}, None, SchedulingStage.OFFER_TIMES),
            ({"preferredDate": "Tuesday", "preferredTime": "6pm"}, None, SchedulingStage.CONFIRM),
            ({"preferredTime": "evening"}, "can we do later than 6", SchedulingStage.RENEGOTIATE),
        ],
    )
    def test_stage(self, captured, message, expected):
        context = make_scheduling_context(captured, last_user_message=message)
        solver = AvailabilitySolver(context.company_info.business_hours)
        assert solver.stage_for(solver.snapshot(context)) == expected

    def test_no_business_hours_is_fallback(self):
        context = make_scheduling_context({"preferredTime": "evening"}, business_hours={})
        solver = AvailabilitySolver({})
        assert solver.stage_for(solver.snapshot(context)) == SchedulingStage.FALLBACK


class TestAskAndOffer:
    def test_ask_preference(self, resolver):
        instruction = resolver.resolve(make_scheduling_context())
        assert instruction.target_fields == ["preferredTime"]
        assert "mornings" in instruction.instruction

    def test_evening_preference_offers_monday(self, resolver):
        context = make_scheduling_context({"preferredTime": "evening"}, business_hours=EVENING_HOURS)
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["preferredDate"]
        assert "Monday at 5pm or 6pm" in instruction.instruction

    def test_after_preference_with_nothing_open(self, resolver):
        context = make_scheduling_context({"preferredTime": "after 9"}, business_hours=EVENING_HOURS)
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["preferredDate"]
        assert "no open slots after 9pm" in instruction.instruction

    def test_offer_times_for_picked_day(self, resolver):
        instruction = resolver.resolve(make_scheduling_context({"preferredDate": "Monday"}))
        assert instruction.target_fields == ["preferredTime"]
        assert "9am, 11am, 5pm, 7pm" in instruction.instruction

    def test_offer_times_filtered_by_period(self, resolver):
        context = make_scheduling_context({"preferredDate": "Monday", "preferredTime": "evening"})
        instruction = resolver.resolve(context)
        assert "Open times: 5pm, 7pm" in instruction.instruction
        assert "(filtered for evening)" in instruction.instruction

    def test_closed_day_falls_back_to_asking_time(self, resolver):
        instruction = resolver.resolve(make_scheduling_context({"preferredDate": "Sunday"}))
        assert instruction.target_fields == ["preferredTime"]

    def test_confirm_has_no_targets(self, resolver):
        context = make_scheduling_context({"preferredDate": "Tuesday", "preferredTime": "6pm"})
        instruction = resolver.resolve(context)
        assert instruction.target_fields == []
        assert "Confirm" in instruction.instruction
        assert any("Tuesday at 6pm" in example for example in instruction.examples)

    def test_fallback_without_business_hours(self, resolver):
        context = make_scheduling_context({"preferredTime": "evening"}, business_hours={})
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["preferredDate", "preferredTime"]

    def test_missing_company_info_behaves_like_no_hours(self, resolver):
        context = make_scheduling_context({"preferredTime": "evening"}).model_copy(update={"company_info": None})
        assert resolver.resolve(context).target_fields == ["preferredDate", "preferredTime"]


class TestBusinessHoursShapes:
    def test_raw_dict_hours_are_validated(self):
        solver = AvailabilitySolver({"monday": [{"from": "17", "to": "21"}]})
        assert isinstance(solver.business_hours["monday"][0], BusinessInterval)
        assert solver.times_for_date("Monday", parse_time_preference(None)) == ["5pm", "7pm"]

    def test_capitalised_day_names_produce_slots(self):
        solver = AvailabilitySolver({"Monday": [{"from": "17", "to": "21"}]})
        assert list(solver.business_hours) == ["monday"]
        assert solver.times_for_date("monday", parse_time_preference(None)) == ["5pm", "7pm"]

    def test_raw_dict_hours_offer_days(self):
        solver = AvailabilitySolver(EVENING_HOURS)
        instruction = solver.solve(make_scheduling_context({"preferredTime": "evening"}))
        assert "Monday at 5pm or 6pm" in instruction.instruction

    def test_null_day_is_closed(self):
        company = CompanyInfo.model_validate({"businessHours": {"Monday": [{"from": "17", "to": "21"}], "sunday": None}})
        assert company.business_hours["sunday"] == []
        assert company.business_hours["monday"][0].start_hour == 17

    def test_null_business_hours_is_empty(self):
        assert CompanyInfo.model_validate({"businessHours": None}).business_hours == {}

    def test_resolver_skips_null_closed_day(self, resolver):
        hours = {**EVENING_HOURS, "sunday": None}
        instruction = resolver.resolve(make_scheduling_context({"preferredDate": "Sunday"}, business_hours=hours))
        assert instruction.target_fields == ["preferredTime"]

    def test_resolver_accepts_raw_context_with_null_day(self, resolver):
        instruction = resolver.resolve({
            "goalId": "schedule_consultation",
            "goalType": "scheduling",
            "fieldsNeeded": ["preferredDate", "preferredTime"],
            "fieldsCaptured": {"preferredTime": "evening"},
            "companyInfo": {
                "businessHours": {"Monday": [{"from": "17", "to": "21"}], "Sunday": None},
            },
        })
        assert "Monday at 5pm or 6pm" in instruction.instruction


class TestRenegotiation:
    def test_later_than_six_offers_only_later_slots(self, resolver):
        context = make_scheduling_context(
            {"preferredTime": "evening"}, last_user_message="can we do later than 6"
        )
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["preferredDate"]
        hours = _offered_hours(instruction.instruction)
        assert hours
        assert all(hour > 18 for hour in hours)

    def test_no_later_slots_apologizes(self, resolver):
        context = make_scheduling_context(
            {"preferredTime": "evening"},
            business_hours=EVENING_HOURS,
            last_user_message="later than 9 please",
        )
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["preferredDate"]
        assert "no open slots after 9pm" in instruction.instruction

    def test_earlier_offers_only_earlier_slots(self, resolver):
        context = make_scheduling_context(
            {"preferredTime": "evening"}, last_user_message="too late, anything earlier than 6?"
        )
        instruction = resolver.resolve(context)
        hours = _offered_hours(instruction.instruction)
        assert hours
        assert all(hour < 18 for hour in hours)

    def test_skipped_day_is_not_offered(self, resolver):
        context = make_scheduling_context(
            {"preferredTime": "evening"}, last_user_message="later than 6, not monday"
        )
        instruction = resolver.resolve(context)
        line = next(l for l in instruction.instruction.splitlines() if l.startswith("Offer"))
        assert "Monday" not in line
        assert "Tuesday" in line

    def test_objection_without_direction_asks_again(self, resolver):
        context = make_scheduling_context(
            {"preferredTime": "evening"}, last_user_message="hmm not sure", detected_intent="objection"
        )
        assert resolver.resolve(context).target_fields == ["preferredTime", "preferredDate"]

    def test_rejection_without_hours_uses_normal_stages(self, resolver):
        context = make_scheduling_context({}, business_hours={}, last_user_message="later")
        assert resolver.resolve(context).target_fields == ["preferredTime"]

    def test_default_bound_when_no_hour_mentioned(self):
        context = make_scheduling_context({}, last_user_message="something later please")
        solver = AvailabilitySolver(make_company().business_hours)
        assert solver.renegotiation_bound(solver.snapshot(context).renegotiation) == 18

    def test_explicit_meridiem_bound(self):
        context = make_scheduling_context({}, last_user_message="later, after 10am")
        solver = AvailabilitySolver(make_company().business_hours)
        assert solver.renegotiation_bound(solver.snapshot(context).renegotiation) == 10
