"""
Goal instruction resolution.

Turns the active goal plus conversation context into a GoalInstruction that
steers the next LLM turn. The context is validated once into a GoalContext;
dispatch goes through the goal kind registry, with unknown kinds falling
through to the generic builder.

Usage:
    resolver = GoalInstructionResolver()
    instruction = resolver.resolve({
        "goalId": "collect_contact_info_1",
        "fieldsNeeded": ["email", "phone"],
        "fieldsCaptured": {},
    })
    instruction.target_fields  # ["email", "phone"]
"""

import logging
from typing import Any, Union

from convo_engine.goals.registry import get_builder
from convo_engine.goals.slot_state import SlotState
from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction, GoalKind

logger = logging.getLogger(__name__)


class GoalInstructionResolver:
    """Decides what is still missing for a goal and how to ask for it."""

    def resolve(self, context: Union[GoalContext, dict[str, Any]]) -> GoalInstruction:
        if not isinstance(context, GoalContext):
            context = GoalContext.model_validate(context)

        kind = context.kind
        slots = SlotState.from_context(context)

        # Scheduling always runs the solver so a complete goal still gets a confirmation.
        if kind != GoalKind.SCHEDULING and not slots.missing_fields():
            logger.debug("Goal '%s' has nothing missing", context.goal_id)
            return GoalInstruction.none()

        instruction = get_builder(kind)(context)
        logger.info(
            "Goal '%s' (%s) -> targets %s",
            context.goal_id, kind.value, instruction.target_fields,
        )
        return instruction


def resolve_goal_instruction(context: Union[GoalContext, dict[str, Any]]) -> GoalInstruction:
    """Functional shortcut for ``GoalInstructionResolver().resolve``."""
    return GoalInstructionResolver().resolve(context)
