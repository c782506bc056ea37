"""Height and weight together, then an optional body fat question."""

from convo_engine.goals.instructions.default import ask_for_fields
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction


def build_body_metrics_instruction(context: GoalContext) -> GoalInstruction:
    slots = SlotState.from_context(context)
    needs_height = slots.needs("height")
    needs_weight = slots.needs("weight")

    if needs_height and needs_weight:
        return GoalInstruction(
            instruction=(
                "Ask for their height and weight together, casually and without judgment.\n"
                "It's just a baseline for their program."
            ),
            examples=[
                '"Quick one, what\'s your height and weight right now? Just so I know where you\'re starting!"',
                '"No judgment zone here. What are we working with height and weight-wise?"',
            ],
            target_fields=["height", "weight"],
        )
    if needs_height:
        return GoalInstruction(
            instruction="Ask for their height. Keep it casual.",
            examples=['"And how tall are you?"'],
            target_fields=["height"],
        )
    if needs_weight:
        return GoalInstruction(
            instruction="Ask for their weight. Keep it casual and non-judgmental.",
            examples=['"And what\'s your current weight?"'],
            target_fields=["weight"],
        )

    if slots.needs("bodyFatPercentage"):
        return GoalInstruction(
            instruction="Optionally ask if they know their body fat percentage. Don't push if they don't.",
            examples=['"Do you happen to know your body fat percentage? No worries if not!"'],
            target_fields=["bodyFatPercentage"],
        )

    missing = slots.missing_fields()
    return ask_for_fields(missing) if missing else GoalInstruction.none()
