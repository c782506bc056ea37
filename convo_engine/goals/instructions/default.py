"""
Generic instructions for goals without a dedicated builder.

Asks for every still-missing field in one natural question, with a few
single-field special cases (motivation, timeline, main goal) that read
better with tailored phrasing.
"""

import logging

from convo_engine.goals.fields import captured_text, humanize_field_name, natural_join
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction

logger = logging.getLogger(__name__)


def ask_for_fields(fields: list[str]) -> GoalInstruction:
    """Plain conversational ask for ``fields``, labels humanized."""
    labels = natural_join([humanize_field_name(f) for f in fields])
    return GoalInstruction(
        instruction=(
            f"Ask about their {labels} in a natural, conversational way.\n"
            "Don't make it feel like a form. Never use the field names literally."
        ),
        examples=[f'"Could you tell me your {labels}?"'],
        target_fields=list(fields),
    )


def _primary_goal_instruction(context: GoalContext) -> GoalInstruction:
    motivation = captured_text(context.fields_captured, "motivationReason")
    timeline = captured_text(context.fields_captured, "timeline")

    if motivation and timeline:
        return GoalInstruction(
            instruction=(
                "Ask what specific result they want to achieve.\n"
                f'Reference what they already shared (motivation: "{motivation}", '
                f'timeline: "{timeline}") to show you were listening.'
            ),
            examples=[
                f'"Love that {motivation} motivation! By {timeline}, what result are you going for?"',
                f'"Got it, {timeline} is the target. What exactly do you want to achieve by then?"',
            ],
            target_fields=["primaryGoal"],
        )
    if motivation:
        return GoalInstruction(
            instruction=f'Ask what specific goal they want to achieve, referencing their motivation ("{motivation}").',
            examples=[f'"What specific result are you going for with the {motivation}?"'],
            target_fields=["primaryGoal"],
        )
    if timeline:
        return GoalInstruction(
            instruction=f'Ask what specific goal they want to achieve by their timeline ("{timeline}").',
            examples=[f'"By {timeline}, what are you looking to accomplish?"'],
            target_fields=["primaryGoal"],
        )
    return GoalInstruction(
        instruction="Ask what their main goal is.",
        examples=['"What\'s your main goal?"', '"What are you looking to achieve?"'],
        target_fields=["primaryGoal"],
    )


def build_default_instruction(context: GoalContext) -> GoalInstruction:
    missing = SlotState.from_context(context).missing_fields()
    if not missing:
        return GoalInstruction.none()

    if len(missing) > 1:
        return ask_for_fields(missing)

    field_name = missing[0]
    if field_name == "motivationReason":
        return GoalInstruction(
            instruction="Ask what is driving or motivating them. Keep it casual.",
            examples=[
                '"What\'s driving this change for you?"',
                '"What made you decide now is the time?"',
            ],
            target_fields=[field_name],
        )
    if field_name == "timeline":
        return GoalInstruction(
            instruction="Ask about their timeline for reaching the goal.",
            examples=['"When are you looking to hit this goal?"', '"What\'s your timeline for this?"'],
            target_fields=[field_name],
        )
    if field_name == "primaryGoal":
        return _primary_goal_instruction(context)

    label = humanize_field_name(field_name)
    return GoalInstruction(
        instruction=f"Ask for their {label}.",
        examples=[f'"What\'s your {label}?"'],
        target_fields=[field_name],
    )
