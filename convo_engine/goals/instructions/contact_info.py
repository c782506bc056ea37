"""
Contact info (email + phone) instructions.

Both missing: ask together. One missing: ask only for that one. When a
date or time has already been picked, the ask is framed as confirming
that session ("to confirm Tuesday at 6pm").
"""

from typing import Optional

from convo_engine.goals.fields import captured_text
from convo_engine.goals.instructions.default import ask_for_fields
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction


def scheduling_context(context: GoalContext) -> Optional[str]:
    """"Tuesday at 6pm" from previously captured scheduling data, if any."""
    sources = [context.fields_captured]
    if context.channel_state is not None:
        sources.insert(0, context.channel_state.captured_data)

    date_value = time_value = None
    for source in sources:
        date_value = date_value or captured_text(source, "preferredDate")
        time_value = time_value or captured_text(source, "preferredTime")

    if date_value and time_value:
        return f"{date_value} at {time_value}"
    return date_value or time_value


def build_contact_info_instruction(context: GoalContext) -> GoalInstruction:
    slots = SlotState.from_context(context)
    needs_email = slots.needs("email")
    needs_phone = slots.needs("phone")
    session = scheduling_context(context)

    if needs_email and needs_phone:
        if session:
            return GoalInstruction(
                instruction=(
                    f"Ask for BOTH email AND phone to confirm their {session} session.\n"
                    "They already picked a time, contact info locks it in."
                ),
                examples=[
                    f'"To lock in {session}, what\'s your email and phone?"',
                    f'"Perfect! To confirm {session}, drop me your email and number."',
                ],
                target_fields=["email", "phone"],
            )
        return GoalInstruction(
            instruction=(
                "Ask for BOTH email AND phone in ONE question.\n"
                "Keep it casual and explain it's to get them scheduled."
            ),
            examples=[
                '"What\'s your email and phone number so I can get you scheduled?"',
                '"To get you on the calendar, what\'s your email and phone?"',
            ],
            target_fields=["email", "phone"],
        )

    suffix = f" to confirm {session}" if session else ""

    if needs_phone:
        acknowledge = "Acknowledge you have their email. " if slots.is_valid("email") else ""
        return GoalInstruction(
            instruction=f"{acknowledge}Ask for their phone number only{suffix}.",
            examples=[
                f'"What\'s the best phone number{suffix}?"',
                '"Drop me your number and we\'re all set!"',
            ],
            target_fields=["phone"],
        )

    if needs_email:
        acknowledge = "Acknowledge you have their number. " if slots.is_valid("phone") else ""
        return GoalInstruction(
            instruction=f"{acknowledge}Ask for their email address only{suffix}.",
            examples=[
                f'"What\'s your email so I can send the confirmation{suffix}?"',
                '"What email should I send your session details to?"',
            ],
            target_fields=["email"],
        )

    missing = slots.missing_fields()
    return ask_for_fields(missing) if missing else GoalInstruction.none()
