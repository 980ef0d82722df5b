"""
application.py

Application layer for the AI Compliance Gate.

Overview
--------
The application layer sits between the presentation layer (API / MCP) and
the domain / service layer.  It is responsible for:

  1. Defining clean output DTOs (dataclasses) that carry only the data the
     presentation layer needs — no raw domain objects are leaked upward.
  2. Declaring abstract Repository interfaces so that the application layer
     remains fully persistence-agnostic (implementations live in
     infrastructure.py).
  3. Declaring the UnitOfWork abstraction, which also hands out the
     per-project write lock every mutating use case holds.
  4. Implementing Use Case handlers — one class per user-facing operation —
     that orchestrate service calls, repository reads/writes and the
     activity-log side effect in the correct order.

Structure
---------
DTOs
    UserDTO, WorkflowStageDTO
    ProjectDTO, EvidenceDTO, ApprovalDTO, AuditEntryDTO
    UnmetRequirementDTO, StageProgressDTO, StageTransitionDTO
    DashboardStatsDTO
    RoadmapPlanDTO, RoadmapGateDTO, RoadmapCheckpointDTO, RoadmapResourceDTO,
    BudgetRangeDTO, IndustryDTO
    ActivityLogEntryDTO

Repository interfaces
    AbstractUserRepository
    AbstractProjectRepository
    AbstractRoadmapRepository
    AbstractActivityLogRepository

Unit of Work
    AbstractUnitOfWork

Use Cases
    --- Reference data ---
    ListUsersUseCase, GetUserUseCase, ListWorkflowStagesUseCase

    --- Projects ---
    CreateProjectUseCase, UpdateProjectUseCase, GetProjectUseCase,
    ListProjectsUseCase, ChangeProjectStatusUseCase

    --- Stage workflow ---
    GetStageProgressUseCase, AdvanceStageUseCase, RevertStageUseCase

    --- Evidence & approvals ---
    AddEvidenceUseCase, VerifyEvidenceUseCase,
    RequestApprovalUseCase, DecideApprovalUseCase

    --- Audit & dashboard ---
    GetAuditTrailUseCase, ExportAuditTrailUseCase, GetDashboardStatsUseCase

    --- Roadmaps ---
    GenerateRoadmapUseCase, GetRoadmapUseCase, ListRoadmapsUseCase,
    ListIndustriesUseCase

    --- Activity log ---
    RecordMonitoringActionUseCase, RecordFormSubmissionUseCase,
    RecordChatMessageUseCase, RecordPrivacyCheckpointUseCase,
    RecordComplianceCheckUseCase, ListActivityUseCase

Design notes
------------
- Use cases receive and return DTOs only; no domain objects cross the
  application boundary.
- Each use case accepts a UnitOfWork as its sole dependency.
- Every project mutation is mirrored into the activity log under the
  WORKFLOW category inside the same unit of work.
- All timestamps flowing out are ISO-8601 strings (UTC).
- Errors bubble up as ApplicationError (business) or NotFoundError.
"""

from __future__ import annotations

import abc
import contextlib
import logging
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, List, Mapping, Optional

from model import (
    ActivityCategory,
    ActivityLogEntry,
    Approval,
    AuditEntry,
    ComplianceCheckStatus,
    Evidence,
    EvidenceType,
    Priority,
    Project,
    ProjectStage,
    ProjectStatus,
    RoadmapCheckpoint,
    RoadmapGate,
    RoadmapPlan,
    RoadmapResource,
    UnmetRequirement,
    User,
    UserRole,
    WorkflowStage,
)
from service import (
    ActivityLogService,
    GenerationCancelled,
    RoadmapService,
    StageTransition,
    UserDirectory,
    WorkflowService,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ApplicationError(Exception):
    """Raised when a use case cannot complete due to a business rule violation."""


class NotFoundError(ApplicationError):
    """Raised when a requested entity does not exist."""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _fmt(dt: Optional[datetime]) -> Optional[str]:
    """Convert a datetime to an ISO-8601 UTC string, or None."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.isoformat()


def _ids(values) -> List[str]:
    return [str(v) for v in values]


def _thaw(value: Any) -> Any:
    """Plain-JSON copy of a frozen details payload; callers may edit it freely."""
    if isinstance(value, Mapping):
        return {k: _thaw(v) for k, v in value.items()}
    if isinstance(value, tuple):
        return [_thaw(v) for v in value]
    return value


# ===========================================================================
# DTO DEFINITIONS
# ===========================================================================

# ---------------------------------------------------------------------------
# Reference data DTOs
# ---------------------------------------------------------------------------

@dataclass
class UserDTO:
    id: str
    name: str
    email: str
    role: str
    department: str
    avatar: Optional[str]


@dataclass
class WorkflowStageDTO:
    id: str
    name: str
    description: str
    order: int                      # 1-based position in the workflow
    required_approvers: List[str]
    required_evidence: List[str]
    estimated_duration: int
    can_advance: bool
    can_revert: bool


# ---------------------------------------------------------------------------
# Project DTOs
# ---------------------------------------------------------------------------

@dataclass
class EvidenceDTO:
    id: str
    type: str
    title: str
    description: str
    url: Optional[str]
    file_path: Optional[str]
    category: Optional[str]
    uploaded_by: Optional[str]
    uploaded_at: Optional[str]
    verified: bool
    verified_by: Optional[str]
    verified_at: Optional[str]


@dataclass
class ApprovalDTO:
    id: str
    approver_id: Optional[str]
    approver_name: str
    stage: str
    status: str
    comments: Optional[str]
    requested_at: Optional[str]
    completed_at: Optional[str]
    evidence: List[str]


@dataclass
class AuditEntryDTO:
    id: str
    action: str
    description: str
    user_id: Optional[str]
    user_name: str
    timestamp: Optional[str]
    details: Optional[Dict[str, Any]]
    stage: Optional[str]


@dataclass
class ProjectDTO:
    id: str
    name: str
    description: str
    status: str
    stage: str
    priority: str
    created_at: Optional[str]
    updated_at: Optional[str]
    created_by: Optional[str]
    created_by_name: str
    assigned_users: List[str]
    required_users: List[str]
    tags: List[str]
    estimated_completion: Optional[str]
    actual_completion: Optional[str]
    evidence: List[EvidenceDTO] = field(default_factory=list)
    approvals: List[ApprovalDTO] = field(default_factory=list)
    audit_trail: List[AuditEntryDTO] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Stage workflow DTOs
# ---------------------------------------------------------------------------

@dataclass
class UnmetRequirementDTO:
    kind: str
    stage: str
    requirement: str
    detail: str


@dataclass
class StageProgressDTO:
    project_id: str
    current_stage: WorkflowStageDTO
    next_stage: Optional[WorkflowStageDTO]
    unmet_requirements: List[UnmetRequirementDTO]
    ready_to_advance: bool


@dataclass
class StageTransitionDTO:
    outcome: str
    project: ProjectDTO
    unmet_requirements: List[UnmetRequirementDTO] = field(default_factory=list)


@dataclass
class DashboardStatsDTO:
    total: int
    active: int
    pending_approval: int
    completed_this_month: int
    average_completion_days: float
    stage_histogram: Dict[str, int]


# ---------------------------------------------------------------------------
# Roadmap DTOs
# ---------------------------------------------------------------------------

@dataclass
class RoadmapGateDTO:
    id: str
    name: str
    description: str
    order: int
    estimated_duration: int
    depends_on: List[str]
    dependencies: List[str]
    required_resources: List[str]
    deliverables: List[str]
    success_criteria: List[str]
    risk_level: str
    status: str


@dataclass
class RoadmapCheckpointDTO:
    id: str
    gate_id: str
    name: str
    description: str
    order: int
    estimated_duration: int
    required_evidence: List[str]
    approvers: List[str]
    status: str


@dataclass
class RoadmapResourceDTO:
    id: str
    name: str
    role: str
    department: str
    expertise: List[str]
    availability: str
    contact_info: Dict[str, Optional[str]]
    estimated_time_commitment: int


@dataclass
class BudgetRangeDTO:
    min: int
    max: int
    currency: str


@dataclass
class RoadmapPlanDTO:
    id: str
    project_title: str
    project_description: str
    industry: str
    complexity: str
    estimated_total_duration: int
    estimated_budget: BudgetRangeDTO
    gates: List[RoadmapGateDTO]
    checkpoints: List[RoadmapCheckpointDTO]
    resources: List[RoadmapResourceDTO]
    risks: List[str]
    assumptions: List[str]
    created_at: Optional[str]
    updated_at: Optional[str]
    created_by: str


@dataclass
class IndustryDTO:
    key: str
    label: str
    gate_count: int
    estimated_total_duration: int


# ---------------------------------------------------------------------------
# Activity log DTOs
# ---------------------------------------------------------------------------

@dataclass
class ActivityLogEntryDTO:
    id: str
    action: str
    description: str
    user_id: Optional[str]
    user_name: str
    timestamp: Optional[str]
    details: Optional[Dict[str, Any]]
    category: str


# ===========================================================================
# DTO ASSEMBLERS
# ===========================================================================

class _Assembler:
    """Converts domain model instances into DTOs."""

    @staticmethod
    def user(u: User) -> UserDTO:
        return UserDTO(
            id=str(u.id),
            name=u.name,
            email=u.email,
            role=u.role.value,
            department=u.department,
            avatar=u.avatar,
        )

    @staticmethod
    def workflow_stage(s: WorkflowStage, order: int) -> WorkflowStageDTO:
        return WorkflowStageDTO(
            id=s.id.value,
            name=s.name,
            description=s.description,
            order=order,
            required_approvers=_ids(s.required_approvers),
            required_evidence=list(s.required_evidence),
            estimated_duration=s.estimated_duration,
            can_advance=s.can_advance,
            can_revert=s.can_revert,
        )

    @staticmethod
    def evidence(e: Evidence) -> EvidenceDTO:
        return EvidenceDTO(
            id=str(e.id),
            type=e.type.value,
            title=e.title,
            description=e.description,
            url=e.url,
            file_path=e.file_path,
            category=e.category,
            uploaded_by=str(e.uploaded_by) if e.uploaded_by else None,
            uploaded_at=_fmt(e.uploaded_at),
            verified=e.verified,
            verified_by=str(e.verified_by) if e.verified_by else None,
            verified_at=_fmt(e.verified_at),
        )

    @staticmethod
    def approval(a: Approval, directory: UserDirectory) -> ApprovalDTO:
        return ApprovalDTO(
            id=str(a.id),
            approver_id=str(a.approver_id) if a.approver_id else None,
            approver_name=directory.display_name(a.approver_id),
            stage=a.stage.value,
            status=a.status.value,
            comments=a.comments,
            requested_at=_fmt(a.requested_at),
            completed_at=_fmt(a.completed_at),
            evidence=_ids(a.evidence),
        )

    @staticmethod
    def audit_entry(e: AuditEntry, directory: UserDirectory) -> AuditEntryDTO:
        return AuditEntryDTO(
            id=str(e.id),
            action=e.action,
            description=e.description,
            user_id=str(e.user_id) if e.user_id else None,
            user_name=directory.display_name(e.user_id),
            timestamp=_fmt(e.timestamp),
            details=_thaw(e.details),
            stage=e.stage.value if e.stage else None,
        )

    @staticmethod
    def project(p: Project, directory: UserDirectory) -> ProjectDTO:
        return ProjectDTO(
            id=str(p.id),
            name=p.name,
            description=p.description,
            status=p.status.value,
            stage=p.stage.value,
            priority=p.priority.value,
            created_at=_fmt(p.created_at),
            updated_at=_fmt(p.updated_at),
            created_by=str(p.created_by) if p.created_by else None,
            created_by_name=directory.display_name(p.created_by),
            assigned_users=_ids(p.assigned_users),
            required_users=_ids(p.required_users),
            tags=list(p.tags),
            estimated_completion=_fmt(p.estimated_completion),
            actual_completion=_fmt(p.actual_completion),
            evidence=[_Assembler.evidence(e) for e in p.evidence],
            approvals=[_Assembler.approval(a, directory) for a in p.approvals],
            audit_trail=[_Assembler.audit_entry(e, directory) for e in p.audit_trail],
        )

    @staticmethod
    def unmet(u: UnmetRequirement) -> UnmetRequirementDTO:
        return UnmetRequirementDTO(
            kind=u.kind.value,
            stage=u.stage.value,
            requirement=u.requirement,
            detail=u.detail,
        )

    @staticmethod
    def transition(t: StageTransition, directory: UserDirectory) -> StageTransitionDTO:
        return StageTransitionDTO(
            outcome=t.outcome.value,
            project=_Assembler.project(t.project, directory),
            unmet_requirements=[_Assembler.unmet(u) for u in t.unmet_requirements],
        )

    @staticmethod
    def gate(g: RoadmapGate) -> RoadmapGateDTO:
        return RoadmapGateDTO(
            id=str(g.id),
            name=g.name,
            description=g.description,
            order=g.order,
            estimated_duration=g.estimated_duration,
            depends_on=_ids(g.depends_on),
            dependencies=list(g.dependencies),
            required_resources=_ids(g.required_resources),
            deliverables=list(g.deliverables),
            success_criteria=list(g.success_criteria),
            risk_level=g.risk_level.value,
            status=g.status.value,
        )

    @staticmethod
    def checkpoint(c: RoadmapCheckpoint) -> RoadmapCheckpointDTO:
        return RoadmapCheckpointDTO(
            id=str(c.id),
            gate_id=str(c.gate_id),
            name=c.name,
            description=c.description,
            order=c.order,
            estimated_duration=c.estimated_duration,
            required_evidence=list(c.required_evidence),
            approvers=_ids(c.approvers),
            status=c.status.value,
        )

    @staticmethod
    def resource(r: RoadmapResource) -> RoadmapResourceDTO:
        return RoadmapResourceDTO(
            id=str(r.id),
            name=r.name,
            role=r.role,
            department=r.department,
            expertise=list(r.expertise),
            availability=r.availability.value,
            contact_info={"email": r.contact_info.email, "phone": r.contact_info.phone},
            estimated_time_commitment=r.estimated_time_commitment,
        )

    @staticmethod
    def roadmap(plan: RoadmapPlan) -> RoadmapPlanDTO:
        return RoadmapPlanDTO(
            id=str(plan.id),
            project_title=plan.project_title,
            project_description=plan.project_description,
            industry=plan.industry,
            complexity=plan.complexity.value,
            estimated_total_duration=plan.estimated_total_duration,
            estimated_budget=BudgetRangeDTO(
                min=plan.estimated_budget.min,
                max=plan.estimated_budget.max,
                currency=plan.estimated_budget.currency,
            ),
            gates=[_Assembler.gate(g) for g in plan.gates],
            checkpoints=[_Assembler.checkpoint(c) for c in plan.checkpoints],
            resources=[_Assembler.resource(r) for r in plan.resources],
            risks=list(plan.risks),
            assumptions=list(plan.assumptions),
            created_at=_fmt(plan.created_at),
            updated_at=_fmt(plan.updated_at),
            created_by=plan.created_by,
        )

    @staticmethod
    def activity(e: ActivityLogEntry, directory: UserDirectory) -> ActivityLogEntryDTO:
        return ActivityLogEntryDTO(
            id=str(e.id),
            action=e.action,
            description=e.description,
            user_id=str(e.user_id) if e.user_id else None,
            user_name=directory.display_name(e.user_id),
            timestamp=_fmt(e.timestamp),
            details=_thaw(e.details),
            category=e.category.value,
        )


# ===========================================================================
# REPOSITORY INTERFACES
# ===========================================================================

class AbstractUserRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, user_id: uuid.UUID) -> Optional[User]: ...
    @abc.abstractmethod
    def list_all(self) -> List[User]: ...


class AbstractProjectRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, project_id: uuid.UUID) -> Optional[Project]: ...
    @abc.abstractmethod
    def list_all(self) -> List[Project]: ...
    @abc.abstractmethod
    def save(self, project: Project) -> None: ...


class AbstractRoadmapRepository(abc.ABC):
    @abc.abstractmethod
    def get(self, plan_id: uuid.UUID) -> Optional[RoadmapPlan]: ...
    @abc.abstractmethod
    def list_all(self) -> List[RoadmapPlan]: ...
    @abc.abstractmethod
    def save(self, plan: RoadmapPlan) -> None: ...


class AbstractActivityLogRepository(abc.ABC):
    @abc.abstractmethod
    def append(self, entry: ActivityLogEntry) -> None: ...
    @abc.abstractmethod
    def list_all(self) -> List[ActivityLogEntry]: ...


# ===========================================================================
# UNIT OF WORK
# ===========================================================================

class AbstractUnitOfWork(abc.ABC):
    """
    Groups all repositories under a single transactional boundary.
    Use as a context manager:

        with uow, uow.project_lock(project_id):
            uow.projects.save(project)
            uow.commit()
    """
    users: AbstractUserRepository
    projects: AbstractProjectRepository
    roadmaps: AbstractRoadmapRepository
    activity_log: AbstractActivityLogRepository

    def __enter__(self) -> "AbstractUnitOfWork":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        else:
            self.commit()

    @abc.abstractmethod
    def commit(self) -> None: ...

    @abc.abstractmethod
    def rollback(self) -> None: ...

    @abc.abstractmethod
    def project_lock(self, project_id: uuid.UUID) -> contextlib.AbstractContextManager:
        """Serialise read-transform-save sequences on one project."""


# ===========================================================================
# SERVICE SINGLETONS (shared across use cases)
# ===========================================================================

_roadmap_svc = RoadmapService()
_activity_svc = ActivityLogService()


# ===========================================================================
# USE CASE HELPERS
# ===========================================================================

def _directory(uow: AbstractUnitOfWork) -> UserDirectory:
    return UserDirectory(uow.users.list_all())


def _workflow(uow: AbstractUnitOfWork) -> WorkflowService:
    return WorkflowService(_directory(uow))


def _get_project_or_raise(uow: AbstractUnitOfWork, project_id: uuid.UUID) -> Project:
    project = uow.projects.get(project_id)
    if project is None:
        raise NotFoundError(f"Project {project_id} not found.")
    return project


@contextlib.contextmanager
def _locked_project(uow: AbstractUnitOfWork, project_id: uuid.UUID) -> Iterator[Project]:
    """Hold the project's write lock and yield its current record."""
    with uow.project_lock(project_id):
        yield _get_project_or_raise(uow, project_id)


def _save_and_log(uow: AbstractUnitOfWork, project: Project) -> None:
    """Persist the project and mirror its newest audit entry to the activity log."""
    uow.projects.save(project)
    entry = project.audit_trail[-1]
    uow.activity_log.append(_activity_svc.log_workflow_event(project, entry))
    logger.info("Project %s: %s", project.id, entry.action)


# ===========================================================================
# USE CASES — REFERENCE DATA
# ===========================================================================

class ListUsersUseCase:
    def execute(self, uow: AbstractUnitOfWork, role: Optional[UserRole] = None) -> List[UserDTO]:
        with uow:
            return [_Assembler.user(u) for u in _directory(uow).list_users(role)]


class GetUserUseCase:
    def execute(self, user_id: uuid.UUID, uow: AbstractUnitOfWork) -> UserDTO:
        with uow:
            user = uow.users.get(user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found.")
            return _Assembler.user(user)


class ListWorkflowStagesUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[WorkflowStageDTO]:
        with uow:
            stages = _workflow(uow).get_workflow_stages()
            return [_Assembler.workflow_stage(s, i) for i, s in enumerate(stages, start=1)]


# ===========================================================================
# USE CASES — PROJECTS
# ===========================================================================

@dataclass
class CreateProjectCommand:
    name: str
    description: str
    acting_user_id: uuid.UUID
    priority: Priority = Priority.MEDIUM
    tags: List[str] = field(default_factory=list)
    assigned_users: List[uuid.UUID] = field(default_factory=list)
    required_users: List[uuid.UUID] = field(default_factory=list)
    estimated_completion: Optional[datetime] = None


class CreateProjectUseCase:
    """
    Create a draft project at the first review stage.  The creator becomes
    the author of the seed audit entry.
    """

    def execute(self, cmd: CreateProjectCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            workflow = _workflow(uow)
            try:
                project = workflow.create_project(
                    name=cmd.name,
                    description=cmd.description,
                    created_by=cmd.acting_user_id,
                    priority=cmd.priority,
                    tags=cmd.tags,
                    assigned_users=cmd.assigned_users,
                    required_users=cmd.required_users,
                    estimated_completion=cmd.estimated_completion,
                )
            except ValueError as exc:
                raise ApplicationError(str(exc)) from exc
            _save_and_log(uow, project)
            uow.commit()
            return _Assembler.project(project, workflow.directory)


@dataclass
class UpdateProjectCommand:
    project_id: uuid.UUID
    acting_user_id: uuid.UUID
    name: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[Priority] = None
    tags: Optional[List[str]] = None
    assigned_users: Optional[List[uuid.UUID]] = None
    required_users: Optional[List[uuid.UUID]] = None
    estimated_completion: Optional[datetime] = None


class UpdateProjectUseCase:
    def execute(self, cmd: UpdateProjectCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    updated = workflow.update_project(
                        project,
                        acting_user_id=cmd.acting_user_id,
                        name=cmd.name,
                        description=cmd.description,
                        priority=cmd.priority,
                        tags=cmd.tags,
                        assigned_users=cmd.assigned_users,
                        required_users=cmd.required_users,
                        estimated_completion=cmd.estimated_completion,
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                if updated is not project:
                    _save_and_log(uow, updated)
            uow.commit()
            return _Assembler.project(updated, workflow.directory)


class GetProjectUseCase:
    def execute(self, project_id: uuid.UUID, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            project = _get_project_or_raise(uow, project_id)
            return _Assembler.project(project, _directory(uow))


@dataclass
class ProjectFilter:
    status: Optional[ProjectStatus] = None
    stage: Optional[ProjectStage] = None
    priority: Optional[Priority] = None
    search: Optional[str] = None        # case-insensitive, name or description


class ListProjectsUseCase:
    def execute(
        self,
        uow: AbstractUnitOfWork,
        project_filter: Optional[ProjectFilter] = None,
    ) -> List[ProjectDTO]:
        f = project_filter or ProjectFilter()
        needle = f.search.strip().lower() if f.search else ""
        with uow:
            directory = _directory(uow)
            projects = uow.projects.list_all()
            if f.status is not None:
                projects = [p for p in projects if p.status == f.status]
            if f.stage is not None:
                projects = [p for p in projects if p.stage == f.stage]
            if f.priority is not None:
                projects = [p for p in projects if p.priority == f.priority]
            if needle:
                projects = [
                    p for p in projects
                    if needle in p.name.lower() or needle in p.description.lower()
                ]
            projects = sorted(projects, key=lambda p: p.updated_at, reverse=True)
            return [_Assembler.project(p, directory) for p in projects]


@dataclass
class ChangeProjectStatusCommand:
    project_id: uuid.UUID
    status: ProjectStatus
    acting_user_id: uuid.UUID


class ChangeProjectStatusUseCase:
    def execute(self, cmd: ChangeProjectStatusCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    project = workflow.change_status(project, cmd.status, cmd.acting_user_id)
                except ValueError as exc:
                    logger.warning("Project %s: status change refused: %s", cmd.project_id, exc)
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.project(project, workflow.directory)


# ===========================================================================
# USE CASES — STAGE WORKFLOW
# ===========================================================================

class GetStageProgressUseCase:
    def execute(self, project_id: uuid.UUID, uow: AbstractUnitOfWork) -> StageProgressDTO:
        with uow:
            workflow = _workflow(uow)
            project = _get_project_or_raise(uow, project_id)
            stages = workflow.get_workflow_stages()
            current = workflow.get_current_stage(project)
            nxt = workflow.get_next_stage(project)
            unmet = workflow.check_requirements(project)
            return StageProgressDTO(
                project_id=str(project.id),
                current_stage=_Assembler.workflow_stage(current, stages.index(current) + 1),
                next_stage=_Assembler.workflow_stage(nxt, stages.index(nxt) + 1) if nxt else None,
                unmet_requirements=[_Assembler.unmet(u) for u in unmet],
                ready_to_advance=nxt is not None and current.can_advance and not unmet,
            )


@dataclass
class AdvanceStageCommand:
    project_id: uuid.UUID
    acting_user_id: uuid.UUID
    target_stage: Optional[ProjectStage] = None
    enforce_requirements: bool = False


class AdvanceStageUseCase:
    """
    Move a project to its next stage.

    Running out of stages, or (when enforced) missing approvals/evidence, is
    reported through the returned outcome rather than raised.
    """

    def execute(self, cmd: AdvanceStageCommand, uow: AbstractUnitOfWork) -> StageTransitionDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    transition = workflow.advance_stage(
                        project,
                        acting_user_id=cmd.acting_user_id,
                        target_stage=cmd.target_stage,
                        enforce_requirements=cmd.enforce_requirements,
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                if transition.advanced:
                    _save_and_log(uow, transition.project)
                else:
                    logger.warning(
                        "Project %s: advance refused (%s)", cmd.project_id, transition.outcome.value
                    )
            uow.commit()
            return _Assembler.transition(transition, workflow.directory)


@dataclass
class RevertStageCommand:
    project_id: uuid.UUID
    target_stage: ProjectStage
    acting_user_id: uuid.UUID


class RevertStageUseCase:
    def execute(self, cmd: RevertStageCommand, uow: AbstractUnitOfWork) -> ProjectDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    project = workflow.revert_stage(project, cmd.target_stage, cmd.acting_user_id)
                except ValueError as exc:
                    logger.warning("Project %s: revert refused: %s", cmd.project_id, exc)
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.project(project, workflow.directory)


# ===========================================================================
# USE CASES — EVIDENCE & APPROVALS
# ===========================================================================

@dataclass
class AddEvidenceCommand:
    project_id: uuid.UUID
    acting_user_id: uuid.UUID
    type: EvidenceType
    title: str
    description: str = ""
    url: Optional[str] = None
    file_path: Optional[str] = None
    category: Optional[str] = None


class AddEvidenceUseCase:
    def execute(self, cmd: AddEvidenceCommand, uow: AbstractUnitOfWork) -> EvidenceDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    project, evidence = workflow.add_evidence(
                        project,
                        acting_user_id=cmd.acting_user_id,
                        evidence_type=cmd.type,
                        title=cmd.title,
                        description=cmd.description,
                        url=cmd.url,
                        file_path=cmd.file_path,
                        category=cmd.category,
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.evidence(evidence)


@dataclass
class VerifyEvidenceCommand:
    project_id: uuid.UUID
    evidence_id: uuid.UUID
    acting_user_id: uuid.UUID


class VerifyEvidenceUseCase:
    def execute(self, cmd: VerifyEvidenceCommand, uow: AbstractUnitOfWork) -> EvidenceDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                if workflow.find_evidence(project, cmd.evidence_id) is None:
                    raise NotFoundError(f"Evidence {cmd.evidence_id} not found.")
                try:
                    project, evidence = workflow.verify_evidence(
                        project, cmd.evidence_id, cmd.acting_user_id
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.evidence(evidence)


@dataclass
class RequestApprovalCommand:
    project_id: uuid.UUID
    approver_id: uuid.UUID
    acting_user_id: uuid.UUID
    stage: Optional[ProjectStage] = None
    evidence_ids: List[uuid.UUID] = field(default_factory=list)


class RequestApprovalUseCase:
    def execute(self, cmd: RequestApprovalCommand, uow: AbstractUnitOfWork) -> ApprovalDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                try:
                    project, approval = workflow.request_approval(
                        project,
                        approver_id=cmd.approver_id,
                        acting_user_id=cmd.acting_user_id,
                        stage=cmd.stage,
                        evidence_ids=cmd.evidence_ids,
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.approval(approval, workflow.directory)


@dataclass
class DecideApprovalCommand:
    project_id: uuid.UUID
    approval_id: uuid.UUID
    approved: bool
    acting_user_id: uuid.UUID
    comments: Optional[str] = None


class DecideApprovalUseCase:
    def execute(self, cmd: DecideApprovalCommand, uow: AbstractUnitOfWork) -> ApprovalDTO:
        with uow:
            workflow = _workflow(uow)
            with _locked_project(uow, cmd.project_id) as project:
                if workflow.find_approval(project, cmd.approval_id) is None:
                    raise NotFoundError(f"Approval {cmd.approval_id} not found.")
                try:
                    project, approval = workflow.record_decision(
                        project,
                        approval_id=cmd.approval_id,
                        approved=cmd.approved,
                        acting_user_id=cmd.acting_user_id,
                        comments=cmd.comments,
                    )
                except ValueError as exc:
                    raise ApplicationError(str(exc)) from exc
                _save_and_log(uow, project)
            uow.commit()
            return _Assembler.approval(approval, workflow.directory)


# ===========================================================================
# USE CASES — AUDIT TRAIL & DASHBOARD
# ===========================================================================

class GetAuditTrailUseCase:
    def execute(self, project_id: uuid.UUID, uow: AbstractUnitOfWork) -> List[AuditEntryDTO]:
        with uow:
            project = _get_project_or_raise(uow, project_id)
            directory = _directory(uow)
            return [_Assembler.audit_entry(e, directory) for e in project.audit_trail]


class ExportAuditTrailUseCase:
    """Flat rows for CSV/spreadsheet export, oldest first."""

    def execute(self, project_id: uuid.UUID, uow: AbstractUnitOfWork) -> List[Dict[str, Any]]:
        with uow:
            project = _get_project_or_raise(uow, project_id)
            directory = _directory(uow)
            return [
                {
                    "project_id": str(project.id),
                    "project_name": project.name,
                    "timestamp": _fmt(e.timestamp),
                    "action": e.action,
                    "description": e.description,
                    "user": directory.display_name(e.user_id),
                    "stage": e.stage.value if e.stage else "",
                }
                for e in project.audit_trail
            ]


class GetDashboardStatsUseCase:
    def execute(
        self,
        uow: AbstractUnitOfWork,
        now: Optional[datetime] = None,
    ) -> DashboardStatsDTO:
        with uow:
            stats = _workflow(uow).dashboard_stats(uow.projects.list_all(), now=now)
            return DashboardStatsDTO(
                total=stats.total,
                active=stats.active,
                pending_approval=stats.pending_approval,
                completed_this_month=stats.completed_this_month,
                average_completion_days=stats.average_completion_days,
                stage_histogram={stage.value: n for stage, n in stats.stage_histogram.items()},
            )


# ===========================================================================
# USE CASES — ROADMAPS
# ===========================================================================

@dataclass
class GenerateRoadmapCommand:
    description: str
    industry: str
    created_by: str = "current-user"
    cancel_event: Optional[threading.Event] = None


class GenerateRoadmapUseCase:
    def execute(self, cmd: GenerateRoadmapCommand, uow: AbstractUnitOfWork) -> RoadmapPlanDTO:
        with uow:
            try:
                plan = _roadmap_svc.generate(
                    description=cmd.description,
                    industry=cmd.industry,
                    created_by=cmd.created_by,
                    cancel_event=cmd.cancel_event,
                )
            except GenerationCancelled as exc:
                logger.warning("Roadmap generation cancelled for industry=%s", cmd.industry)
                raise ApplicationError(str(exc)) from exc
            uow.roadmaps.save(plan)
            uow.commit()
            return _Assembler.roadmap(plan)


class GetRoadmapUseCase:
    def execute(self, plan_id: uuid.UUID, uow: AbstractUnitOfWork) -> RoadmapPlanDTO:
        with uow:
            plan = uow.roadmaps.get(plan_id)
            if plan is None:
                raise NotFoundError(f"Roadmap {plan_id} not found.")
            return _Assembler.roadmap(plan)


class ListRoadmapsUseCase:
    def execute(self, uow: AbstractUnitOfWork) -> List[RoadmapPlanDTO]:
        with uow:
            plans = sorted(uow.roadmaps.list_all(), key=lambda p: p.created_at, reverse=True)
            return [_Assembler.roadmap(p) for p in plans]


class ListIndustriesUseCase:
    def execute(self) -> List[IndustryDTO]:
        return [
            IndustryDTO(
                key=t.key,
                label=t.label,
                gate_count=len(t.gates),
                estimated_total_duration=sum(g.estimated_duration for g in t.gates),
            )
            for t in _roadmap_svc.list_industries()
        ]


# ===========================================================================
# USE CASES — ACTIVITY LOG
# ===========================================================================

def _append_activity(uow: AbstractUnitOfWork, entry: ActivityLogEntry) -> ActivityLogEntryDTO:
    uow.activity_log.append(entry)
    uow.commit()
    logger.info("Activity %s (%s) by %s", entry.action, entry.category.value, entry.user_id)
    return _Assembler.activity(entry, _directory(uow))


@dataclass
class RecordMonitoringActionCommand:
    action: str
    description: str
    user_id: uuid.UUID
    details: Optional[Dict[str, Any]] = None


class RecordMonitoringActionUseCase:
    def execute(self, cmd: RecordMonitoringActionCommand, uow: AbstractUnitOfWork) -> ActivityLogEntryDTO:
        with uow:
            entry = _activity_svc.log_monitoring_action(
                cmd.action, cmd.description, cmd.user_id, cmd.details
            )
            return _append_activity(uow, entry)


@dataclass
class RecordFormSubmissionCommand:
    form_name: str
    user_id: uuid.UUID
    form_data: Dict[str, Any] = field(default_factory=dict)


class RecordFormSubmissionUseCase:
    def execute(self, cmd: RecordFormSubmissionCommand, uow: AbstractUnitOfWork) -> ActivityLogEntryDTO:
        with uow:
            entry = _activity_svc.log_form_submission(cmd.form_name, cmd.user_id, cmd.form_data)
            return _append_activity(uow, entry)


@dataclass
class RecordChatMessageCommand:
    message: str
    user_id: uuid.UUID
    is_user_message: bool = True


class RecordChatMessageUseCase:
    def execute(self, cmd: RecordChatMessageCommand, uow: AbstractUnitOfWork) -> ActivityLogEntryDTO:
        with uow:
            entry = _activity_svc.log_chat_message(cmd.message, cmd.user_id, cmd.is_user_message)
            return _append_activity(uow, entry)


@dataclass
class RecordPrivacyCheckpointCommand:
    user_id: uuid.UUID
    evidence_type: str
    file_name: Optional[str] = None


class RecordPrivacyCheckpointUseCase:
    def execute(self, cmd: RecordPrivacyCheckpointCommand, uow: AbstractUnitOfWork) -> ActivityLogEntryDTO:
        with uow:
            entry = _activity_svc.log_privacy_checkpoint(cmd.user_id, cmd.evidence_type, cmd.file_name)
            return _append_activity(uow, entry)


@dataclass
class RecordComplianceCheckCommand:
    user_id: uuid.UUID
    check_type: str
    status: ComplianceCheckStatus


class RecordComplianceCheckUseCase:
    def execute(self, cmd: RecordComplianceCheckCommand, uow: AbstractUnitOfWork) -> ActivityLogEntryDTO:
        with uow:
            entry = _activity_svc.log_compliance_check(cmd.user_id, cmd.check_type, cmd.status)
            return _append_activity(uow, entry)


class ListActivityUseCase:
    """Newest-first activity, optionally narrowed by category and/or user."""

    def execute(
        self,
        uow: AbstractUnitOfWork,
        category: Optional[ActivityCategory] = None,
        user_id: Optional[uuid.UUID] = None,
        limit: int = 50,
    ) -> List[ActivityLogEntryDTO]:
        with uow:
            entries = uow.activity_log.list_all()
            if category is not None:
                entries = _activity_svc.by_category(entries, category)
            if user_id is not None:
                entries = _activity_svc.by_user(entries, user_id)
            directory = _directory(uow)
            return [_Assembler.activity(e, directory) for e in _activity_svc.recent(entries, limit)]
