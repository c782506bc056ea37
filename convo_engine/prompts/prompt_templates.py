"""Dynamic prompt construction that injects the current goal instruction."""

from typing import Optional

from convo_engine.goals.fields import humanize_field_name, natural_join
from convo_engine.prompts.system_prompts import CHAT_STYLE_RULES, DEFAULT_SYSTEM_PROMPT
from convo_engine.schemas.goal_schema import GoalInstruction


def build_goal_section(instruction: GoalInstruction, user_name: Optional[str] = None) -> str:
    """The GOAL block for the system prompt; empty when no question is needed."""
    if instruction.is_empty:
        return ""
    lines = [f"GOAL: {instruction.instruction}"]
    if instruction.examples:
        lines.append("EXAMPLES:")
        lines.extend(f"- {example}" for example in instruction.examples)
    if instruction.target_fields:
        asking = natural_join([humanize_field_name(f) for f in instruction.target_fields])
        lines.append(f"\nAsk for: {asking}. Keep it to 1-2 sentences.")
    if user_name:
        lines.append(f"Use their name ({user_name}) if it fits.")
    return "\n".join(lines)


def build_reply_prompt(
    persona_name: str,
    persona_prompt: str = "",
    instruction: Optional[GoalInstruction] = None,
    user_name: Optional[str] = None,
) -> str:
    """Full system prompt for one reply turn."""
    parts = [
        f"You are {persona_name}.",
        (persona_prompt or DEFAULT_SYSTEM_PROMPT).strip(),
        CHAT_STYLE_RULES.strip(),
    ]
    if instruction is not None:
        goal = build_goal_section(instruction, user_name)
        if goal:
            parts.append(goal)
    return "\n\n".join(parts)
