"""
Instruction builder registry keyed by goal kind.

Each goal kind maps to one builder ``(GoalContext) -> GoalInstruction``.
Built-in builders are registered on first lookup rather than at import
time: the scheduling solver depends on goal field helpers, so eager
registration would import it while this package is still initializing.
"""

import logging
from typing import Callable

from convo_engine.schemas.goal_schema import GoalContext, GoalInstruction, GoalKind

logger = logging.getLogger(__name__)

InstructionBuilder = Callable[[GoalContext], GoalInstruction]

_BUILDER_REGISTRY: dict[GoalKind, InstructionBuilder] = {}
_builtins_loaded = False


def register_builder(kind: GoalKind, builder: InstructionBuilder) -> None:
    """Register (or replace) the instruction builder for a goal kind."""
    _BUILDER_REGISTRY[kind] = builder
    logger.debug("Instruction builder registered: %s", kind.value)


def get_builder(kind: GoalKind) -> InstructionBuilder:
    """Builder for ``kind``, falling back to the generic builder."""
    if not _builtins_loaded:
        _auto_register()
    builder = _BUILDER_REGISTRY.get(kind)
    if builder is None:
        logger.debug("No builder for %s, using generic", kind.value)
        builder = _BUILDER_REGISTRY[GoalKind.GENERIC]
    return builder


def get_registered_kinds() -> list[GoalKind]:
    if not _builtins_loaded:
        _auto_register()
    return list(_BUILDER_REGISTRY.keys())


def _auto_register() -> None:
    """Register all built-in builders. Explicit registrations made earlier are kept."""
    global _builtins_loaded
    from convo_engine.goals.instructions.body_metrics import build_body_metrics_instruction
    from convo_engine.goals.instructions.contact_info import build_contact_info_instruction
    from convo_engine.goals.instructions.default import build_default_instruction
    from convo_engine.goals.instructions.identity import build_identity_instruction
    from convo_engine.goals.instructions.injuries import build_injuries_instruction
    from convo_engine.scheduling.solver import solve_scheduling

    builtins: dict[GoalKind, InstructionBuilder] = {
        GoalKind.CONTACT_INFO: build_contact_info_instruction,
        GoalKind.SCHEDULING: solve_scheduling,
        GoalKind.IDENTITY: build_identity_instruction,
        GoalKind.BODY_METRICS: build_body_metrics_instruction,
        GoalKind.INJURIES: build_injuries_instruction,
        GoalKind.GENERIC: build_default_instruction,
    }
    for kind, builder in builtins.items():
        if kind not in _BUILDER_REGISTRY:
            register_builder(kind, builder)
    _builtins_loaded = True
