"""Tests for WorkflowService and UserDirectory."""

import uuid
from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from catalog import (
    DAVID_KIM_ID,
    EMILY_RODRIGUEZ_ID,
    MIKE_CHEN_ID,
    SARAH_JOHNSON_ID,
    WORKFLOW_STAGES,
)
from model import (
    ApprovalStatus,
    EvidenceType,
    Project,
    ProjectStage,
    ProjectStatus,
    RequirementKind,
    UserRole,
)
from service import TransitionOutcome, UserDirectory, WorkflowService


def _satisfy_initial_assessment(workflow, project):
    """Verified scope + risk evidence and Emily's approval for the first stage."""
    for category in ("project_scope", "risk_assessment"):
        project, evidence = workflow.add_evidence(
            project, SARAH_JOHNSON_ID, EvidenceType.DOCUMENT, f"{category} doc", category=category
        )
        project, _ = workflow.verify_evidence(project, evidence.id, EMILY_RODRIGUEZ_ID)
    project, approval = workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)
    project, _ = workflow.record_decision(project, approval.id, True, EMILY_RODRIGUEZ_ID)
    return project


# ---------------------------------------------------------------------------
# UserDirectory
# ---------------------------------------------------------------------------

class TestUserDirectory:
    def test_display_name_known_user(self):
        assert UserDirectory().display_name(MIKE_CHEN_ID) == "Mike Chen"

    def test_display_name_unknown_user(self):
        directory = UserDirectory()
        assert directory.display_name(uuid.uuid4()) == "Unknown"
        assert directory.display_name(None) == "Unknown"

    def test_list_users_by_role(self):
        legal = UserDirectory().list_users(UserRole.LEGAL)
        assert {u.name for u in legal} == {"Sarah Johnson", "Lisa Wang"}


# ---------------------------------------------------------------------------
# Creation & updates
# ---------------------------------------------------------------------------

class TestCreateProject:
    def test_new_project_is_draft_at_first_stage(self, project):
        assert project.status == ProjectStatus.DRAFT
        assert project.stage == ProjectStage.INITIAL_ASSESSMENT
        assert project.created_at == project.updated_at

    def test_seed_audit_entry(self, project):
        assert len(project.audit_trail) == 1
        entry = project.audit_trail[0]
        assert entry.action == "project_created"
        assert entry.description == "Project created by Sarah Johnson"
        assert entry.user_id == SARAH_JOHNSON_ID

    def test_unknown_creator_renders_as_unknown(self, workflow):
        p = workflow.create_project("X", "", created_by=uuid.uuid4())
        assert p.audit_trail[0].description == "Project created by Unknown"

    def test_duplicates_dropped_in_order(self, workflow):
        p = workflow.create_project(
            "X", "",
            created_by=MIKE_CHEN_ID,
            tags=["a", " b ", "a", ""],
            assigned_users=[MIKE_CHEN_ID, SARAH_JOHNSON_ID, MIKE_CHEN_ID],
        )
        assert p.tags == ("a", "b")
        assert p.assigned_users == (MIKE_CHEN_ID, SARAH_JOHNSON_ID)

    def test_blank_name_rejected(self, workflow):
        with pytest.raises(ValueError):
            workflow.create_project("   ", "", created_by=MIKE_CHEN_ID)


class TestUpdateProject:
    def test_update_records_changed_fields(self, workflow, project):
        updated = workflow.update_project(project, MIKE_CHEN_ID, name="Renamed", description=project.description)
        assert updated.name == "Renamed"
        entry = updated.audit_trail[-1]
        assert entry.action == "project_updated"
        assert entry.details == {"fields": ["name"]}
        assert updated.updated_at > project.updated_at

    def test_no_changes_returns_same_project(self, workflow, project):
        assert workflow.update_project(project, MIKE_CHEN_ID, name=project.name) is project


# ---------------------------------------------------------------------------
# Stage lookups & transitions
# ---------------------------------------------------------------------------

class TestStageNavigation:
    @pytest.mark.parametrize("stage", list(ProjectStage))
    def test_next_stage_undefined_only_at_last_stage(self, workflow, project, stage):
        nxt = workflow.get_next_stage(replace(project, stage=stage))
        assert (nxt is None) == (stage == WORKFLOW_STAGES[-1].id)

    def test_current_stage(self, workflow, project):
        assert workflow.get_current_stage(project).name == "Initial Assessment"


class TestAdvanceStage:
    def test_advance_to_next_stage(self, workflow, project):
        result = workflow.advance_stage(project, MIKE_CHEN_ID)
        assert result.outcome == TransitionOutcome.ADVANCED
        assert result.project.stage == ProjectStage.LEGAL_REVIEW

    def test_advance_to_explicit_target(self, workflow, project):
        result = workflow.advance_stage(project, MIKE_CHEN_ID, target_stage=ProjectStage.TECHNICAL_REVIEW)
        advanced = result.project
        assert advanced.stage == ProjectStage.TECHNICAL_REVIEW
        assert advanced.updated_at > project.updated_at
        assert advanced.audit_trail[:-1] == project.audit_trail
        new_entry = advanced.audit_trail[-1]
        assert new_entry.stage == ProjectStage.TECHNICAL_REVIEW
        assert new_entry.action == "stage_advanced"
        assert new_entry.description == "Project advanced to Technical Review"

    @pytest.mark.parametrize("current,target", [
        (ProjectStage.LEGAL_REVIEW, ProjectStage.LEGAL_REVIEW),
        (ProjectStage.LEGAL_REVIEW, ProjectStage.INITIAL_ASSESSMENT),
        (ProjectStage.IMPLEMENTATION, ProjectStage.LEGAL_REVIEW),
    ])
    def test_target_must_be_later(self, workflow, project, current, target):
        with pytest.raises(ValueError):
            workflow.advance_stage(replace(project, stage=current), MIKE_CHEN_ID, target_stage=target)

    def test_audit_details_are_read_only(self, workflow, project):
        entry = workflow.advance_stage(project, MIKE_CHEN_ID).project.audit_trail[-1]
        assert entry.details == {"from_stage": "initial_assessment", "to_stage": "legal_review"}
        with pytest.raises(TypeError):
            entry.details["to_stage"] = "monitoring"

    def test_repeated_advances_keep_timestamps_increasing(self, workflow, project):
        p = project
        for _ in range(len(WORKFLOW_STAGES) - 1):
            p = workflow.advance_stage(p, MIKE_CHEN_ID).project
        stamps = [e.timestamp for e in p.audit_trail]
        assert stamps == sorted(stamps)
        assert len(set(stamps)) == len(stamps)
        assert p.stage == ProjectStage.MONITORING

    def test_no_next_stage_leaves_project_unchanged(self, workflow, project):
        at_end = replace(project, stage=ProjectStage.MONITORING)
        result = workflow.advance_stage(at_end, MIKE_CHEN_ID)
        assert result.outcome == TransitionOutcome.NO_NEXT_STAGE
        assert result.project is at_end

    def test_unenforced_advance_ignores_requirements(self, workflow, project):
        assert workflow.check_requirements(project)
        assert workflow.advance_stage(project, MIKE_CHEN_ID).advanced

    def test_enforced_advance_reports_every_missing_item(self, workflow, project):
        result = workflow.advance_stage(project, MIKE_CHEN_ID, enforce_requirements=True)
        assert result.outcome == TransitionOutcome.REQUIREMENTS_NOT_MET
        assert result.project is project
        unmet = {(u.kind, u.requirement) for u in result.unmet_requirements}
        assert unmet == {
            (RequirementKind.APPROVAL, str(EMILY_RODRIGUEZ_ID)),
            (RequirementKind.EVIDENCE, "project_scope"),
            (RequirementKind.EVIDENCE, "risk_assessment"),
        }

    def test_enforced_advance_succeeds_once_satisfied(self, workflow, project):
        ready = _satisfy_initial_assessment(workflow, project)
        assert workflow.check_requirements(ready) == []
        result = workflow.advance_stage(ready, MIKE_CHEN_ID, enforce_requirements=True)
        assert result.outcome == TransitionOutcome.ADVANCED

    def test_unverified_evidence_does_not_count(self, workflow, project):
        p, _ = workflow.add_evidence(
            project, SARAH_JOHNSON_ID, EvidenceType.DOCUMENT, "Scope", category="project_scope"
        )
        assert "project_scope" in {u.requirement for u in workflow.check_requirements(p)}

    def test_rejected_approval_does_not_count(self, workflow, project):
        p, approval = workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)
        p, _ = workflow.record_decision(p, approval.id, False, EMILY_RODRIGUEZ_ID)
        assert str(EMILY_RODRIGUEZ_ID) in {u.requirement for u in workflow.check_requirements(p)}


class TestRevertStage:
    def test_revert_to_earlier_stage(self, workflow, project):
        p = workflow.advance_stage(project, MIKE_CHEN_ID, target_stage=ProjectStage.TECHNICAL_REVIEW).project
        reverted = workflow.revert_stage(p, ProjectStage.LEGAL_REVIEW, MIKE_CHEN_ID)
        assert reverted.stage == ProjectStage.LEGAL_REVIEW
        assert reverted.audit_trail[-1].action == "stage_reverted"

    def test_stage_without_revert_refuses(self, workflow, project):
        p = replace(project, stage=ProjectStage.IMPLEMENTATION)
        with pytest.raises(ValueError):
            workflow.revert_stage(p, ProjectStage.LEGAL_REVIEW, MIKE_CHEN_ID)

    def test_target_must_be_earlier(self, workflow, project):
        p = replace(project, stage=ProjectStage.LEGAL_REVIEW)
        with pytest.raises(ValueError):
            workflow.revert_stage(p, ProjectStage.LEGAL_REVIEW, MIKE_CHEN_ID)
        with pytest.raises(ValueError):
            workflow.revert_stage(p, ProjectStage.COMPLIANCE_CHECK, MIKE_CHEN_ID)


# ---------------------------------------------------------------------------
# Status lifecycle
# ---------------------------------------------------------------------------

class TestChangeStatus:
    def test_happy_path_to_completed(self, workflow, project):
        p = project
        for s in (ProjectStatus.IN_REVIEW, ProjectStatus.PENDING_APPROVAL,
                  ProjectStatus.APPROVED, ProjectStatus.COMPLETED):
            p = workflow.change_status(p, s, DAVID_KIM_ID)
        assert p.status == ProjectStatus.COMPLETED
        assert p.actual_completion == p.updated_at
        assert p.audit_trail[-1].action == "status_changed"

    @pytest.mark.parametrize("start,target", [
        (ProjectStatus.DRAFT, ProjectStatus.APPROVED),
        (ProjectStatus.DRAFT, ProjectStatus.DRAFT),
        (ProjectStatus.APPROVED, ProjectStatus.IN_REVIEW),
        (ProjectStatus.REJECTED, ProjectStatus.IN_REVIEW),
        (ProjectStatus.COMPLETED, ProjectStatus.DRAFT),
    ])
    def test_transitions_outside_lifecycle_rejected(self, workflow, project, start, target):
        with pytest.raises(ValueError):
            workflow.change_status(replace(project, status=start), target, DAVID_KIM_ID)


# ---------------------------------------------------------------------------
# Evidence & approvals
# ---------------------------------------------------------------------------

class TestEvidence:
    def test_add_then_verify(self, workflow, project):
        p, ev = workflow.add_evidence(
            project, SARAH_JOHNSON_ID, EvidenceType.LINK, "DPIA", url="https://example.com/dpia"
        )
        assert not ev.verified
        assert p.audit_trail[-1].action == "evidence_uploaded"
        p, verified = workflow.verify_evidence(p, ev.id, EMILY_RODRIGUEZ_ID)
        assert verified.verified
        assert verified.verified_by == EMILY_RODRIGUEZ_ID
        assert p.evidence == (verified,)
        assert p.audit_trail[-1].action == "evidence_verified"

    def test_reverify_rejected(self, workflow, project):
        p, ev = workflow.add_evidence(project, SARAH_JOHNSON_ID, EvidenceType.DOCUMENT, "Scope")
        p, _ = workflow.verify_evidence(p, ev.id, EMILY_RODRIGUEZ_ID)
        with pytest.raises(ValueError):
            workflow.verify_evidence(p, ev.id, EMILY_RODRIGUEZ_ID)


class TestApprovals:
    def test_request_defaults_to_current_stage(self, workflow, project):
        p, approval = workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)
        assert approval.stage == ProjectStage.INITIAL_ASSESSMENT
        assert approval.status == ApprovalStatus.PENDING
        assert p.audit_trail[-1].action == "approval_requested"

    def test_duplicate_pending_request_rejected(self, workflow, project):
        p, _ = workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)
        with pytest.raises(ValueError):
            workflow.request_approval(p, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)

    def test_unknown_evidence_reference_rejected(self, workflow, project):
        with pytest.raises(ValueError):
            workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID, evidence_ids=[uuid.uuid4()])

    def test_decision_is_final(self, workflow, project):
        p, approval = workflow.request_approval(project, EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID)
        p, decided = workflow.record_decision(p, approval.id, True, EMILY_RODRIGUEZ_ID, "Looks fine")
        assert decided.status == ApprovalStatus.APPROVED
        assert decided.completed_at is not None
        assert p.audit_trail[-1].action == "approval_approved"
        with pytest.raises(ValueError):
            workflow.record_decision(p, approval.id, False, EMILY_RODRIGUEZ_ID)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

class TestDashboardStats:
    NOW = datetime(2025, 6, 15, 12, 0, tzinfo=timezone.utc)

    def _project(self, status, stage=ProjectStage.INITIAL_ASSESSMENT, **kw):
        created = kw.pop("created_at", self.NOW - timedelta(days=10))
        return Project(name="p", status=status, stage=stage, created_at=created,
                       updated_at=kw.pop("updated_at", self.NOW), **kw)

    def test_histogram_covers_every_stage_and_sums_to_total(self, workflow):
        projects = [
            self._project(ProjectStatus.DRAFT),
            self._project(ProjectStatus.IN_REVIEW, ProjectStage.LEGAL_REVIEW),
            self._project(ProjectStatus.IN_REVIEW, ProjectStage.LEGAL_REVIEW),
        ]
        stats = workflow.dashboard_stats(projects, now=self.NOW)
        assert set(stats.stage_histogram) == set(ProjectStage)
        assert sum(stats.stage_histogram.values()) == stats.total == 3
        assert stats.stage_histogram[ProjectStage.MONITORING] == 0

    def test_empty_collection(self, workflow):
        stats = workflow.dashboard_stats([], now=self.NOW)
        assert stats.total == 0
        assert stats.average_completion_days == 0.0
        assert sum(stats.stage_histogram.values()) == 0

    def test_active_and_pending_counts(self, workflow):
        projects = [
            self._project(ProjectStatus.DRAFT),
            self._project(ProjectStatus.PENDING_APPROVAL),
            self._project(ProjectStatus.APPROVED),
            self._project(ProjectStatus.REJECTED),
        ]
        stats = workflow.dashboard_stats(projects, now=self.NOW)
        assert stats.active == 2
        assert stats.pending_approval == 1

    def test_completed_this_month_uses_actual_completion_then_updated_at(self, workflow):
        projects = [
            self._project(ProjectStatus.COMPLETED, actual_completion=self.NOW - timedelta(days=2)),
            self._project(ProjectStatus.COMPLETED, actual_completion=None),
            self._project(ProjectStatus.COMPLETED,
                          actual_completion=datetime(2025, 5, 30, tzinfo=timezone.utc),
                          created_at=datetime(2025, 5, 20, tzinfo=timezone.utc)),
        ]
        stats = workflow.dashboard_stats(projects, now=self.NOW)
        assert stats.completed_this_month == 2

    def test_average_completion_days(self, workflow):
        projects = [
            self._project(ProjectStatus.COMPLETED, created_at=self.NOW - timedelta(days=4),
                          actual_completion=self.NOW),
            self._project(ProjectStatus.COMPLETED, created_at=self.NOW - timedelta(days=8),
                          actual_completion=self.NOW),
        ]
        assert workflow.dashboard_stats(projects, now=self.NOW).average_completion_days == 6.0
