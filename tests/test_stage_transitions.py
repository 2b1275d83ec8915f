import pytest

from gearguard.models.maintenance import MaintenanceStage as S
from gearguard.services.stage_transitions import (
    allowed_targets,
    is_terminal,
    is_valid_transition,
    requires_confirmation,
)

LEGAL = {
    (S.NEW, S.IN_PROGRESS),
    (S.NEW, S.SCRAP),
    (S.IN_PROGRESS, S.REPAIRED),
    (S.IN_PROGRESS, S.SCRAP),
    (S.REPAIRED, S.SCRAP),
}


@pytest.mark.parametrize("from_stage", list(S))
@pytest.mark.parametrize("to_stage", list(S))
def test_transition_table(from_stage, to_stage):
    assert is_valid_transition(from_stage, to_stage) is ((from_stage, to_stage) in LEGAL)


def test_scrap_is_terminal():
    assert is_terminal(S.SCRAP)
    assert allowed_targets(S.SCRAP) == []
    assert not any(is_valid_transition(S.SCRAP, s) for s in S)


def test_repaired_can_only_be_scrapped():
    assert allowed_targets(S.REPAIRED) == [S.SCRAP]
    assert not is_valid_transition(S.REPAIRED, S.NEW)
    assert not is_valid_transition(S.REPAIRED, S.IN_PROGRESS)


def test_allowed_targets_follow_workflow_order():
    assert allowed_targets(S.NEW) == [S.IN_PROGRESS, S.SCRAP]
    assert allowed_targets(S.IN_PROGRESS) == [S.REPAIRED, S.SCRAP]


def test_same_stage_is_not_a_transition():
    for stage in S:
        assert not is_valid_transition(stage, stage)


def test_only_scrap_needs_confirmation():
    assert requires_confirmation(S.SCRAP)
    assert not any(requires_confirmation(s) for s in S if s != S.SCRAP)
