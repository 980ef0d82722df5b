"""Tests for the in-memory backend and its demo seed."""

from application import GetDashboardStatsUseCase, ListProjectsUseCase
from catalog import MIKE_CHEN_ID
from infrastructure import seed_demo_projects
from model import ApprovalStatus, ProjectStage, ProjectStatus


def test_fresh_database_has_no_projects(uow):
    assert ListProjectsUseCase().execute(uow) == []
    assert len(uow.users.list_all()) == 5


def test_demo_seed_populates_dashboard(db, uow):
    bot, platform = seed_demo_projects(db)

    assert (bot.stage, bot.status) == (ProjectStage.LEGAL_REVIEW, ProjectStatus.IN_REVIEW)
    assert (platform.stage, platform.status) == (ProjectStage.COMPLIANCE_CHECK, ProjectStatus.PENDING_APPROVAL)
    assert bot.created_by == platform.created_by == MIKE_CHEN_ID
    assert all(e.verified for e in bot.evidence + platform.evidence)
    assert [a.status for a in platform.approvals] == [ApprovalStatus.APPROVED] * 3

    stats = GetDashboardStatsUseCase().execute(uow)
    assert stats.total == 2
    assert stats.pending_approval == 1
    assert stats.stage_histogram["legal_review"] == 1
    assert stats.stage_histogram["compliance_check"] == 1


def test_demo_audit_trails_start_with_creation(db):
    for project in seed_demo_projects(db):
        assert project.audit_trail[0].action == "project_created"
        stamps = [e.timestamp for e in project.audit_trail]
        assert stamps == sorted(stamps)
