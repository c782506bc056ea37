from convo_engine.goals.instructions.body_metrics import build_body_metrics_instruction
from convo_engine.goals.instructions.contact_info import build_contact_info_instruction
from convo_engine.goals.instructions.default import ask_for_fields, build_default_instruction
from convo_engine.goals.instructions.identity import build_identity_instruction
from convo_engine.goals.instructions.injuries import build_injuries_instruction

__all__ = [
    "build_body_metrics_instruction",
    "build_contact_info_instruction",
    "build_default_instruction",
    "build_identity_instruction",
    "build_injuries_instruction",
    "ask_for_fields",
]
