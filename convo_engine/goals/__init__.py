from convo_engine.goals.resolver import GoalInstructionResolver, resolve_goal_instruction
from convo_engine.goals.slot_state import SlotState

__all__ = ["GoalInstructionResolver", "resolve_goal_instruction", "SlotState"]
