"""Tests for field validity, humanized labels and slot state."""

import pytest

from convo_engine.goals.fields import (
    captured_text,
    humanize_field_name,
    is_field_valid,
    natural_join,
    unwrap_value,
)
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import Goal


class TestFieldValidity:
    @pytest.mark.parametrize("value", ["a@b.com", "Sam.Lee@Example.org"])
    def test_valid_email(self, value):
        assert is_field_valid("email", value)

    @pytest.mark.parametrize("value", ["a@b", "not an email", ""])
    def test_invalid_email(self, value):
        assert not is_field_valid("email", value)

    def test_phone_digit_bounds(self):
        assert is_field_valid("phone", "0412 345 678")
        assert not is_field_valid("phone", "123")

    @pytest.mark.parametrize("value", ["Tuesday", "next mon", "12/5", "the 10th", "tomorrow"])
    def test_date_like_values(self, value):
        assert is_field_valid("preferredDate", value)

    def test_vague_date_is_invalid(self):
        assert not is_field_valid("preferredDate", "soon")

    @pytest.mark.parametrize("value", ["6pm", "7:30", "18:00", "10 am"])
    def test_specific_time_is_valid(self, value):
        assert is_field_valid("preferredTime", value)

    @pytest.mark.parametrize("value", ["evening", "later than 6", "mornings"])
    def test_vague_time_is_invalid(self, value):
        assert not is_field_valid("preferredTime", value)

    def test_fields_without_predicate_need_any_text(self):
        assert is_field_valid("primaryGoal", "lose weight")
        assert not is_field_valid("primaryGoal", "   ")

    @pytest.mark.parametrize("value", [None, "null", "none_captured", "undefined"])
    def test_placeholders_count_as_absent(self, value):
        assert not is_field_valid("primaryGoal", value)

    def test_value_envelope_is_unwrapped(self):
        assert unwrap_value({"value": "a@b.com"}) == "a@b.com"
        assert is_field_valid("email", {"value": "a@b.com"})
        assert captured_text({"email": {"value": "a@b.com"}}, "email") == "a@b.com"


class TestHumanizing:
    def test_known_labels(self):
        assert humanize_field_name("firstName") == "first name"
        assert humanize_field_name("bodyFatPercentage") == "body fat percentage"
        assert humanize_field_name("primaryGoal") == "main goal"

    def test_camel_case_fallback(self):
        assert humanize_field_name("favoriteWorkoutStyle") == "favorite workout style"

    def test_natural_join(self):
        assert natural_join([]) == ""
        assert natural_join(["a"]) == "a"
        assert natural_join(["a", "b"]) == "a and b"
        assert natural_join(["a", "b", "c"]) == "a, b, and c"


class TestSlotState:
    def test_missing_fields_in_declaration_order(self):
        state = SlotState.from_goal(Goal(goal_id="g", fields_needed=["email", "phone"]))
        assert state.missing_fields() == ["email", "phone"]

    def test_invalid_capture_stays_missing(self):
        state = SlotState(fields_needed=["email"])
        assert state.capture("email", "nope") is False
        assert state.missing_fields() == ["email"]

    def test_capture_completes_goal(self):
        state = SlotState(fields_needed=["email", "phone"])
        state.capture("email", "a@b.com")
        state.capture("phone", "0412 345 678")
        assert state.is_complete()

    def test_optional_field_never_blocks_completion(self):
        state = SlotState(
            fields_needed=["height", "weight", "bodyFatPercentage"],
            fields_captured={"height": "180cm", "weight": "80kg"},
        )
        assert state.missing_fields() == ["bodyFatPercentage"]
        assert state.required_missing() == []
        assert state.is_complete()

    def test_auto_extracted_fields_are_never_missing(self):
        state = SlotState(fields_needed=["motivationReason", "motivationCategories"])
        assert state.missing_fields() == ["motivationReason"]

    def test_corrections_are_tracked(self):
        state = SlotState(fields_needed=["firstName"])
        state.capture("firstName", "Sam")
        state.capture("firstName", "Samantha")
        stats = state.get_stats()
        assert stats["total_attempts"] == 2
        assert stats["total_corrections"] == 1
        assert state.history["firstName"].previous_values == ["Sam"]
        assert stats["fill_rate"] == 1.0

    def test_to_goal_carries_captured_values(self):
        goal = Goal(goal_id="g", fields_needed=["email"])
        state = SlotState.from_goal(goal)
        state.capture("email", "a@b.com")
        assert state.to_goal(goal).fields_captured == {"email": "a@b.com"}
        assert goal.fields_captured == {}
