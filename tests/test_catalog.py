"""Tests for the static catalog: stages, reference users and industry templates."""

import dataclasses

import pytest

from catalog import (
    DEFAULT_INDUSTRY,
    INDUSTRY_TEMPLATES,
    REFERENCE_USERS,
    STAGE_INDEX,
    WORKFLOW_STAGES,
)
from model import ProjectStage
from service import WorkflowService


class TestWorkflowStages:
    def test_stages_follow_declared_order(self):
        assert [s.id for s in WORKFLOW_STAGES] == list(ProjectStage)

    def test_order_is_identical_across_calls(self):
        svc = WorkflowService()
        assert [s.id for s in svc.get_workflow_stages()] == [s.id for s in svc.get_workflow_stages()]

    def test_stage_index_matches_positions(self):
        for i, stage in enumerate(WORKFLOW_STAGES):
            assert STAGE_INDEX[stage.id] == i

    def test_only_last_stage_cannot_advance(self):
        assert [s.can_advance for s in WORKFLOW_STAGES] == [True] * 6 + [False]

    def test_required_approvers_are_reference_users(self):
        user_ids = {u.id for u in REFERENCE_USERS}
        for stage in WORKFLOW_STAGES:
            assert set(stage.required_approvers) <= user_ids

    def test_stages_are_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            WORKFLOW_STAGES[0].name = "Renamed"


class TestIndustryTemplates:
    def test_shipped_industries(self):
        assert set(INDUSTRY_TEMPLATES) == {"technology", "pharmaceutical"}
        assert DEFAULT_INDUSTRY in INDUSTRY_TEMPLATES

    def test_technology_template_shape(self):
        tech = INDUSTRY_TEMPLATES["technology"]
        assert len(tech.gates) == 7
        assert sum(g.estimated_duration for g in tech.gates) == 435

    def test_pharmaceutical_template_shape(self):
        assert len(INDUSTRY_TEMPLATES["pharmaceutical"].gates) == 8

    def test_registry_is_read_only(self):
        with pytest.raises(TypeError):
            INDUSTRY_TEMPLATES["marine_biology"] = INDUSTRY_TEMPLATES["technology"]

    def test_every_gate_has_deliverables(self):
        for template in INDUSTRY_TEMPLATES.values():
            for gate in template.gates:
                assert gate.deliverables
