"""
Maintenance request workflow graph.

    New -> In Progress -> Repaired
     |          |            |
     +----------+------------+----> Scrap (terminal)

Shared by the stage endpoint and anything that renders the next possible
stages, so there is exactly one copy of the rules.
"""
from typing import Dict, FrozenSet, List

from gearguard.models.maintenance import MaintenanceStage

_FORWARD: Dict[MaintenanceStage, FrozenSet[MaintenanceStage]] = {
    MaintenanceStage.NEW: frozenset({MaintenanceStage.IN_PROGRESS}),
    MaintenanceStage.IN_PROGRESS: frozenset({MaintenanceStage.REPAIRED}),
    MaintenanceStage.REPAIRED: frozenset(),
    MaintenanceStage.SCRAP: frozenset(),
}

_STAGE_ORDER = list(MaintenanceStage)


def is_terminal(stage: MaintenanceStage) -> bool:
    return stage == MaintenanceStage.SCRAP


def is_valid_transition(from_stage: MaintenanceStage, to_stage: MaintenanceStage) -> bool:
    """
    True when a request may move from *from_stage* to *to_stage*.

    Same-stage pairs are not transitions and return False; callers treat
    them as a no-op before asking.
    """
    if is_terminal(from_stage) or from_stage == to_stage:
        return False
    if to_stage == MaintenanceStage.SCRAP:
        return True
    return to_stage in _FORWARD[from_stage]


def allowed_targets(from_stage: MaintenanceStage) -> List[MaintenanceStage]:
    """Legal next stages in workflow order."""
    return [s for s in _STAGE_ORDER if is_valid_transition(from_stage, s)]


def requires_confirmation(to_stage: MaintenanceStage) -> bool:
    """Scrap deactivates the equipment and cannot be undone."""
    return to_stage == MaintenanceStage.SCRAP
