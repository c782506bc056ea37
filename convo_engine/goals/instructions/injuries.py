"""Injuries and limitations: a single caring ask where "none" is a full answer."""

from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction


def build_injuries_instruction(context: GoalContext) -> GoalInstruction:
    missing = SlotState.from_context(context).missing_fields()
    if not missing:
        return GoalInstruction.none()
    return GoalInstruction(
        instruction=(
            "Ask if they have any injuries, physical limitations or health conditions "
            "to know about, framed around keeping them safe.\n"
            'Accept "none" or "no" as a complete answer and don\'t push for details.'
        ),
        examples=[
            '"Any injuries or physical limitations I should know about? Want to keep you safe!"',
            '"For your safety, anything we need to work around?"',
        ],
        target_fields=missing,
    )
