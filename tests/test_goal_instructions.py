"""Tests for goal instruction resolution across goal kinds."""

import pytest

from convo_engine.goals import GoalInstructionResolver, resolve_goal_instruction
from convo_engine.goals import registry
from convo_engine.schemas.goal_schema import GoalInstruction, GoalKind
from tests.conftest import make_goal_context


@pytest.fixture
def resolver():
    return GoalInstructionResolver()


class TestGoalKindClassification:
    @pytest.mark.parametrize(
        "goal_id, goal_type, expected",
        [
            ("collect_contact_info", "collect_info", GoalKind.CONTACT_INFO),
            ("schedule_consultation", "collect_info", GoalKind.SCHEDULING),
            ("pick_slot", "schedule_appointment", GoalKind.SCHEDULING),
            ("identity", "collect_info", GoalKind.IDENTITY),
            ("collect_name", "collect_info", GoalKind.IDENTITY),
            ("body_metrics", "collect_info", GoalKind.BODY_METRICS),
            ("injuries_limitations", "collect_info", GoalKind.INJURIES),
            ("fitness_goals", "collect_info", GoalKind.GENERIC),
        ],
    )
    def test_classify(self, goal_id, goal_type, expected):
        assert GoalKind.classify(goal_id, goal_type) == expected


class TestContactInfo:
    def test_nothing_captured_asks_for_both(self, resolver):
        context = make_goal_context("collect_contact_info", ["email", "phone"])
        assert resolver.resolve(context).target_fields == ["email", "phone"]

    def test_email_captured_asks_only_phone(self, resolver):
        context = make_goal_context("collect_contact_info", ["email", "phone"], {"email": "a@b.com"})
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["phone"]
        assert "phone" in instruction.instruction

    def test_phone_captured_asks_only_email(self, resolver):
        context = make_goal_context("collect_contact_info", ["email", "phone"], {"phone": "0412 345 678"})
        assert resolver.resolve(context).target_fields == ["email"]

    def test_invalid_email_is_still_asked(self, resolver):
        context = make_goal_context("collect_contact_info", ["email", "phone"], {"email": "not-an-email"})
        assert resolver.resolve(context).target_fields == ["email", "phone"]

    def test_picked_session_is_referenced(self, resolver):
        context = make_goal_context(
            "collect_contact_info",
            ["email", "phone"],
            {"email": "a@b.com"},
            captured_data={"preferredDate": "Tuesday", "preferredTime": "6pm"},
        )
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["phone"]
        assert "to confirm Tuesday at 6pm" in instruction.instruction

    def test_both_missing_with_session(self, resolver):
        context = make_goal_context(
            "collect_contact_info",
            ["email", "phone"],
            captured_data={"preferredDate": "Tuesday", "preferredTime": "6pm"},
        )
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["email", "phone"]
        assert "Tuesday at 6pm" in instruction.instruction

    def test_all_captured_returns_empty(self, resolver):
        context = make_goal_context(
            "collect_contact_info", ["email", "phone"], {"email": "a@b.com", "phone": "0412345678"}
        )
        assert resolver.resolve(context).is_empty


class TestIdentity:
    def test_asks_full_name(self, resolver):
        context = make_goal_context("identity", ["firstName", "lastName"])
        assert resolver.resolve(context).target_fields == ["firstName", "lastName"]

    def test_first_name_known_asks_last(self, resolver):
        context = make_goal_context("identity", ["firstName", "lastName"], {"firstName": "Sam"})
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["lastName"]
        assert "Sam" in instruction.instruction

    def test_one_letter_name_is_not_accepted(self, resolver):
        context = make_goal_context("identity", ["firstName", "lastName"], {"firstName": "S", "lastName": "Lee"})
        assert resolver.resolve(context).target_fields == ["firstName"]


class TestBodyMetrics:
    FIELDS = ["height", "weight", "bodyFatPercentage"]

    def test_asks_height_and_weight_together(self, resolver):
        context = make_goal_context("body_metrics", self.FIELDS)
        assert resolver.resolve(context).target_fields == ["height", "weight"]

    def test_single_metric_missing(self, resolver):
        context = make_goal_context("body_metrics", self.FIELDS, {"height": "180cm"})
        assert resolver.resolve(context).target_fields == ["weight"]

    def test_optional_body_fat_asked_last(self, resolver):
        context = make_goal_context("body_metrics", self.FIELDS, {"height": "180cm", "weight": "80kg"})
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["bodyFatPercentage"]
        assert "Optionally" in instruction.instruction


class TestInjuries:
    def test_asks_for_limitations(self, resolver):
        context = make_goal_context("injuries_limitations", ["physicalLimitations"])
        assert resolver.resolve(context).target_fields == ["physicalLimitations"]

    def test_none_is_a_complete_answer(self, resolver):
        context = make_goal_context("injuries_limitations", ["physicalLimitations"], {"physicalLimitations": "none"})
        assert resolver.resolve(context).is_empty


class TestGenericGoals:
    def test_multiple_fields_asked_naturally(self, resolver):
        context = make_goal_context("fitness_goals", ["primaryGoal", "motivationReason", "timeline"])
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["primaryGoal", "motivationReason", "timeline"]
        assert "main goal, motivation, and timeline" in instruction.instruction
        assert "primaryGoal" not in instruction.instruction

    def test_motivation_categories_never_asked(self, resolver):
        context = make_goal_context("fitness_goals", ["motivationReason", "motivationCategories"])
        assert resolver.resolve(context).target_fields == ["motivationReason"]

    def test_primary_goal_references_earlier_answers(self, resolver):
        context = make_goal_context(
            "fitness_goals",
            ["primaryGoal", "motivationReason", "timeline"],
            {"motivationReason": "wedding", "timeline": "June"},
        )
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["primaryGoal"]
        assert "wedding" in instruction.instruction
        assert "June" in instruction.instruction

    def test_unknown_field_gets_humanized_label(self, resolver):
        context = make_goal_context("fitness_goals", ["favoriteWorkoutStyle"])
        assert "favorite workout style" in resolver.resolve(context).instruction

    def test_unknown_goal_type_falls_back_to_generic(self, resolver):
        context = make_goal_context("mystery", ["timeline"], goal_type="whatever")
        instruction = resolver.resolve(context)
        assert instruction.target_fields == ["timeline"]

    def test_no_fields_needed_returns_empty(self, resolver):
        assert resolver.resolve(make_goal_context("fitness_goals", [])).is_empty


class TestResolverInput:
    def test_accepts_camel_case_dict(self):
        instruction = resolve_goal_instruction({
            "goalId": "collect_contact_info_1",
            "fieldsNeeded": ["email", "phone"],
            "fieldsCaptured": {"email": {"value": "a@b.com"}},
        })
        assert instruction.target_fields == ["phone"]

    def test_resolving_twice_is_idempotent(self, resolver):
        context = make_goal_context("collect_contact_info", ["email", "phone"])
        assert resolver.resolve(context) == resolver.resolve(context)


class TestRegistry:
    def test_every_kind_has_a_builder(self):
        assert set(registry.get_registered_kinds()) == set(GoalKind)

    def test_registered_builder_is_used(self, resolver, monkeypatch):
        registry.get_registered_kinds()
        custom = GoalInstruction(instruction="custom", target_fields=["physicalLimitations"])
        monkeypatch.setitem(registry._BUILDER_REGISTRY, GoalKind.INJURIES, lambda context: custom)
        context = make_goal_context("injuries_limitations", ["physicalLimitations"])
        assert resolver.resolve(context) is custom
