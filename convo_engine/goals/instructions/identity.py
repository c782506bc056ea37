"""Name collection: ask for the full name once, then only what is missing."""

from convo_engine.goals.instructions.default import ask_for_fields
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction


def build_identity_instruction(context: GoalContext) -> GoalInstruction:
    slots = SlotState.from_context(context)
    needs_first = slots.needs("firstName")
    needs_last = slots.needs("lastName")

    if needs_first and needs_last:
        return GoalInstruction(
            instruction=(
                "Ask for their name. First name only or full name both work.\n"
                "Keep it natural, not like a form."
            ),
            examples=['"What\'s your name?"', '"Who am I talking to?"', '"What should I call you?"'],
            target_fields=["firstName", "lastName"],
        )

    if needs_last:
        first_name = slots.value("firstName")
        if first_name:
            return GoalInstruction(
                instruction=f"You have their first name ({first_name}). Ask only for their last name.",
                examples=[f'"And your last name, {first_name}?"', f'"Got it, {first_name}! Last name?"'],
                target_fields=["lastName"],
            )
        return GoalInstruction(
            instruction="Ask for their last name.",
            examples=['"What\'s your last name?"'],
            target_fields=["lastName"],
        )

    if needs_first:
        return GoalInstruction(
            instruction="Ask for their first name only.",
            examples=['"What\'s your first name?"', '"What should I call you?"'],
            target_fields=["firstName"],
        )

    missing = slots.missing_fields()
    return ask_for_fields(missing) if missing else GoalInstruction.none()
