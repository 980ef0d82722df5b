"""
service.py

Service layer for the AI Compliance Gate.

Responsibilities
----------------
Each service class encapsulates the business logic for its domain.
Services receive and return domain model instances (from model.py).
No persistence is handled here — callers are responsible for storing
and retrieving models via a repository layer of their choosing.

Services
--------
- UserDirectory          – reference-user lookup and display-name resolution
- WorkflowService        – project lifecycle, stage transitions, evidence,
                           approvals and dashboard aggregation
- RoadmapService         – roadmap generation from industry templates
- ActivityLogService     – categorised activity log entries and queries

Design notes
------------
- Projects are frozen; every mutating method returns a *new* Project built
  with dataclasses.replace, with one AuditEntry appended and updated_at
  moved strictly forward.
- UTC datetimes are used throughout.
- Business rule violations raise a ValueError with a descriptive message.
- Unknown user ids are never an error; they render as "Unknown".
- Methods that would normally persist data return the new object(s) so the
  caller can hand them to a repository.
"""

from __future__ import annotations

import copy
import logging
import math
import threading
import uuid
from dataclasses import dataclass, replace
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from catalog import (
    BUDGET_CURRENCY,
    COMMON_ASSUMPTIONS,
    COMMON_RISKS,
    COMPLEXITY_KEYWORDS,
    COMPLEXITY_RISKS,
    DAILY_RATES,
    DEFAULT_INDUSTRY,
    INDUSTRY_TEMPLATES,
    REFERENCE_USERS,
    STAGE_INDEX,
    WORKFLOW_STAGES,
    IndustryTemplate,
)
from model import (
    ActivityCategory,
    ActivityLogEntry,
    Approval,
    ApprovalStatus,
    AuditEntry,
    BudgetRange,
    CheckpointStatus,
    ComplexityTier,
    ComplianceCheckStatus,
    ContactInfo,
    Evidence,
    EvidenceType,
    GateStatus,
    Priority,
    Project,
    ProjectStage,
    ProjectStatus,
    RequirementKind,
    RoadmapCheckpoint,
    RoadmapGate,
    RoadmapPlan,
    RoadmapResource,
    UnmetRequirement,
    User,
    UserRole,
    WorkflowStage,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _next_tick(previous: datetime) -> datetime:
    """Current UTC time, nudged past `previous` so timestamps never repeat."""
    now = _utcnow()
    if now <= previous:
        return previous + timedelta(microseconds=1)
    return now


def _unique(items: Iterable[Any]) -> Tuple[Any, ...]:
    """De-duplicate while preserving first-seen order."""
    return tuple(dict.fromkeys(items))


def _clean_tags(tags: Iterable[str]) -> Tuple[str, ...]:
    return _unique(t.strip() for t in tags if t and t.strip())


def freeze_details(value: Any) -> Any:
    """
    Read-only deep copy of a details payload.

    Mappings become MappingProxyType views over private dicts and lists/sets
    become tuples, so nothing the caller still holds can reach a stored entry.
    """
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze_details(v) for k, v in value.items()})
    if isinstance(value, (list, tuple, set, frozenset)):
        return tuple(freeze_details(v) for v in value)
    return copy.deepcopy(value)


def stage_definition(stage_id: ProjectStage) -> WorkflowStage:
    return WORKFLOW_STAGES[STAGE_INDEX[stage_id]]


# ---------------------------------------------------------------------------
# UserDirectory
# ---------------------------------------------------------------------------

class UserDirectory:
    """
    Read-only view over the reference users.

    Project records keep bare user ids; names are resolved here at display
    time so an unknown id degrades to a placeholder instead of failing.
    """

    UNKNOWN = "Unknown"

    def __init__(self, users: Iterable[User] = REFERENCE_USERS):
        self._users: Dict[uuid.UUID, User] = {u.id: u for u in users}

    def get(self, user_id: Optional[uuid.UUID]) -> Optional[User]:
        if user_id is None:
            return None
        return self._users.get(user_id)

    def display_name(self, user_id: Optional[uuid.UUID]) -> str:
        user = self.get(user_id)
        return user.name if user else self.UNKNOWN

    def list_users(self, role: Optional[UserRole] = None) -> List[User]:
        users = list(self._users.values())
        if role is not None:
            users = [u for u in users if u.role == role]
        return users


# ---------------------------------------------------------------------------
# WorkflowService
# ---------------------------------------------------------------------------

class TransitionOutcome(str, Enum):
    ADVANCED = "advanced"
    NO_NEXT_STAGE = "no_next_stage"
    REQUIREMENTS_NOT_MET = "requirements_not_met"


@dataclass(frozen=True)
class StageTransition:
    """
    Result of an advance attempt.  Only ADVANCED carries a changed project;
    the other outcomes return the input project untouched.
    """
    project: Project
    outcome: TransitionOutcome
    unmet_requirements: Tuple[UnmetRequirement, ...] = ()

    @property
    def advanced(self) -> bool:
        return self.outcome == TransitionOutcome.ADVANCED


@dataclass(frozen=True)
class DashboardStats:
    total: int
    active: int
    pending_approval: int
    completed_this_month: int
    average_completion_days: float
    stage_histogram: Mapping[ProjectStage, int]


_ACTIVE_STATUSES = frozenset({
    ProjectStatus.DRAFT,
    ProjectStatus.IN_REVIEW,
    ProjectStatus.PENDING_APPROVAL,
})

_STATUS_TRANSITIONS: Mapping[ProjectStatus, frozenset] = {
    ProjectStatus.DRAFT: frozenset({ProjectStatus.IN_REVIEW}),
    ProjectStatus.IN_REVIEW: frozenset({ProjectStatus.PENDING_APPROVAL, ProjectStatus.REJECTED}),
    ProjectStatus.PENDING_APPROVAL: frozenset({
        ProjectStatus.APPROVED,
        ProjectStatus.REJECTED,
        ProjectStatus.IN_REVIEW,
    }),
    ProjectStatus.APPROVED: frozenset({ProjectStatus.COMPLETED}),
    ProjectStatus.REJECTED: frozenset(),
    ProjectStatus.COMPLETED: frozenset(),
}


class WorkflowService:
    """
    Moves projects through the fixed review-stage sequence and keeps their
    audit trail.

    Stage advancement is gated only by the existence of a next stage unless
    the caller asks for requirement enforcement, in which case every
    required approver must have approved and every required evidence
    category must be covered by verified evidence for the stage being left.
    """

    def __init__(self, directory: Optional[UserDirectory] = None):
        self.directory = directory or UserDirectory()

    # --- Stage lookups ------------------------------------------------------

    def get_workflow_stages(self) -> List[WorkflowStage]:
        return list(WORKFLOW_STAGES)

    def get_current_stage(self, project: Project) -> WorkflowStage:
        return stage_definition(project.stage)

    def get_next_stage(self, project: Project) -> Optional[WorkflowStage]:
        """Return the following catalog stage, or None at the last stage."""
        index = STAGE_INDEX[project.stage]
        if index == len(WORKFLOW_STAGES) - 1:
            return None
        return WORKFLOW_STAGES[index + 1]

    # --- Creation & updates -------------------------------------------------

    def create_project(
        self,
        name: str,
        description: str,
        created_by: uuid.UUID,
        priority: Priority = Priority.MEDIUM,
        tags: Sequence[str] = (),
        assigned_users: Sequence[uuid.UUID] = (),
        required_users: Sequence[uuid.UUID] = (),
        estimated_completion: Optional[datetime] = None,
    ) -> Project:
        """Create and return a new draft Project (unsaved)."""
        if not name.strip():
            raise ValueError("Project name must not be empty.")
        now = _utcnow()
        seed = AuditEntry(
            action="project_created",
            description=f"Project created by {self.directory.display_name(created_by)}",
            user_id=created_by,
            timestamp=now,
        )
        return Project(
            name=name,
            description=description,
            status=ProjectStatus.DRAFT,
            stage=WORKFLOW_STAGES[0].id,
            created_at=now,
            updated_at=now,
            created_by=created_by,
            assigned_users=_unique(assigned_users),
            required_users=_unique(required_users),
            audit_trail=(seed,),
            tags=_clean_tags(tags),
            priority=priority,
            estimated_completion=estimated_completion,
        )

    def update_project(
        self,
        project: Project,
        acting_user_id: uuid.UUID,
        name: Optional[str] = None,
        description: Optional[str] = None,
        priority: Optional[Priority] = None,
        tags: Optional[Sequence[str]] = None,
        assigned_users: Optional[Sequence[uuid.UUID]] = None,
        required_users: Optional[Sequence[uuid.UUID]] = None,
        estimated_completion: Optional[datetime] = None,
    ) -> Project:
        """Apply field-level updates.  Returns the input when nothing changes."""
        changes: Dict[str, Any] = {}
        if name is not None:
            if not name.strip():
                raise ValueError("Project name must not be empty.")
            changes["name"] = name
        if description is not None:
            changes["description"] = description
        if priority is not None:
            changes["priority"] = priority
        if tags is not None:
            changes["tags"] = _clean_tags(tags)
        if assigned_users is not None:
            changes["assigned_users"] = _unique(assigned_users)
        if required_users is not None:
            changes["required_users"] = _unique(required_users)
        if estimated_completion is not None:
            changes["estimated_completion"] = estimated_completion

        changes = {k: v for k, v in changes.items() if getattr(project, k) != v}
        if not changes:
            return project
        return self._record(
            project,
            action="project_updated",
            description=f"Project details updated: {', '.join(sorted(changes))}",
            user_id=acting_user_id,
            changes=changes,
            details={"fields": sorted(changes)},
        )

    def change_status(
        self,
        project: Project,
        new_status: ProjectStatus,
        acting_user_id: uuid.UUID,
    ) -> Project:
        """
        Move the project to a new review status.

        Allowed moves follow _STATUS_TRANSITIONS; REJECTED and COMPLETED are
        terminal.  Entering COMPLETED stamps actual_completion.
        """
        allowed = _STATUS_TRANSITIONS[project.status]
        if new_status not in allowed:
            raise ValueError(
                f"Cannot change status from '{project.status.value}' to '{new_status.value}'."
            )
        ts = _next_tick(project.updated_at)
        changes: Dict[str, Any] = {"status": new_status}
        if new_status == ProjectStatus.COMPLETED:
            changes["actual_completion"] = ts
        return self._record(
            project,
            action="status_changed",
            description=f"Status changed from {project.status.value} to {new_status.value}",
            user_id=acting_user_id,
            changes=changes,
            details={"from_status": project.status.value, "to_status": new_status.value},
            at=ts,
        )

    # --- Stage transitions --------------------------------------------------

    def check_requirements(self, project: Project) -> List[UnmetRequirement]:
        """List the approvals and verified evidence the current stage still lacks."""
        stage = self.get_current_stage(project)
        approved_by = {
            a.approver_id
            for a in project.approvals
            if a.stage == stage.id and a.status == ApprovalStatus.APPROVED
        }
        verified_categories = {
            e.category for e in project.evidence if e.verified and e.category
        }

        unmet: List[UnmetRequirement] = []
        for approver_id in stage.required_approvers:
            if approver_id not in approved_by:
                unmet.append(UnmetRequirement(
                    kind=RequirementKind.APPROVAL,
                    stage=stage.id,
                    requirement=str(approver_id),
                    detail=f"Awaiting approval from {self.directory.display_name(approver_id)}",
                ))
        for category in stage.required_evidence:
            if category not in verified_categories:
                unmet.append(UnmetRequirement(
                    kind=RequirementKind.EVIDENCE,
                    stage=stage.id,
                    requirement=category,
                    detail=f"No verified '{category}' evidence",
                ))
        return unmet

    def advance_stage(
        self,
        project: Project,
        acting_user_id: uuid.UUID,
        target_stage: Optional[ProjectStage] = None,
        enforce_requirements: bool = False,
    ) -> StageTransition:
        """
        Move the project to `target_stage` (the next catalog stage when omitted).

        Returns NO_NEXT_STAGE at the end of the sequence and, with
        enforce_requirements, REQUIREMENTS_NOT_MET while check_requirements
        reports anything.  Neither outcome touches the project.
        An explicit target must lie after the current stage; moving backwards
        goes through revert_stage, which honours can_revert.
        """
        current = self.get_current_stage(project)
        if target_stage is not None and STAGE_INDEX[target_stage] <= STAGE_INDEX[current.id]:
            raise ValueError("A project can only be advanced to a later stage.")
        next_stage = self.get_next_stage(project)
        if next_stage is None or not current.can_advance:
            return StageTransition(project=project, outcome=TransitionOutcome.NO_NEXT_STAGE)

        if enforce_requirements:
            unmet = self.check_requirements(project)
            if unmet:
                return StageTransition(
                    project=project,
                    outcome=TransitionOutcome.REQUIREMENTS_NOT_MET,
                    unmet_requirements=tuple(unmet),
                )

        target = stage_definition(target_stage or next_stage.id)
        updated = self._record(
            project,
            action="stage_advanced",
            description=f"Project advanced to {target.name}",
            user_id=acting_user_id,
            changes={"stage": target.id},
            details={"from_stage": current.id.value, "to_stage": target.id.value},
            stage=target.id,
        )
        return StageTransition(project=updated, outcome=TransitionOutcome.ADVANCED)

    def revert_stage(
        self,
        project: Project,
        target_stage: ProjectStage,
        acting_user_id: uuid.UUID,
    ) -> Project:
        """Send the project back to an earlier stage, if the current one allows it."""
        current = self.get_current_stage(project)
        if not current.can_revert:
            raise ValueError(f"Stage '{current.name}' does not allow reverting.")
        if STAGE_INDEX[target_stage] >= STAGE_INDEX[current.id]:
            raise ValueError("A project can only be reverted to an earlier stage.")

        target = stage_definition(target_stage)
        return self._record(
            project,
            action="stage_reverted",
            description=f"Project reverted to {target.name}",
            user_id=acting_user_id,
            changes={"stage": target.id},
            details={"from_stage": current.id.value, "to_stage": target.id.value},
            stage=target.id,
        )

    # --- Evidence -----------------------------------------------------------

    def find_evidence(self, project: Project, evidence_id: uuid.UUID) -> Optional[Evidence]:
        return next((e for e in project.evidence if e.id == evidence_id), None)

    def add_evidence(
        self,
        project: Project,
        acting_user_id: uuid.UUID,
        evidence_type: EvidenceType,
        title: str,
        description: str = "",
        url: Optional[str] = None,
        file_path: Optional[str] = None,
        category: Optional[str] = None,
    ) -> Tuple[Project, Evidence]:
        """Attach an unverified evidence item to the project."""
        if not title.strip():
            raise ValueError("Evidence title must not be empty.")
        ts = _next_tick(project.updated_at)
        evidence = Evidence(
            type=evidence_type,
            title=title,
            description=description,
            url=url,
            file_path=file_path,
            category=category,
            uploaded_by=acting_user_id,
            uploaded_at=ts,
        )
        updated = self._record(
            project,
            action="evidence_uploaded",
            description=f"Evidence uploaded: {title}",
            user_id=acting_user_id,
            changes={"evidence": project.evidence + (evidence,)},
            details={"evidence_id": str(evidence.id), "type": evidence_type.value, "category": category},
            stage=project.stage,
            at=ts,
        )
        return updated, evidence

    def verify_evidence(
        self,
        project: Project,
        evidence_id: uuid.UUID,
        acting_user_id: uuid.UUID,
    ) -> Tuple[Project, Evidence]:
        """Mark an evidence item verified.  Verified evidence is final."""
        evidence = self.find_evidence(project, evidence_id)
        if evidence is None:
            raise ValueError(f"Evidence {evidence_id} is not attached to this project.")
        if evidence.verified:
            raise ValueError(f"Evidence '{evidence.title}' is already verified.")

        ts = _next_tick(project.updated_at)
        verified = replace(evidence, verified=True, verified_by=acting_user_id, verified_at=ts)
        updated = self._record(
            project,
            action="evidence_verified",
            description=(
                f"Evidence verified by {self.directory.display_name(acting_user_id)}: "
                f"{evidence.title}"
            ),
            user_id=acting_user_id,
            changes={
                "evidence": tuple(verified if e.id == evidence_id else e for e in project.evidence)
            },
            details={"evidence_id": str(evidence_id)},
            stage=project.stage,
            at=ts,
        )
        return updated, verified

    # --- Approvals ----------------------------------------------------------

    def find_approval(self, project: Project, approval_id: uuid.UUID) -> Optional[Approval]:
        return next((a for a in project.approvals if a.id == approval_id), None)

    def request_approval(
        self,
        project: Project,
        approver_id: uuid.UUID,
        acting_user_id: uuid.UUID,
        stage: Optional[ProjectStage] = None,
        evidence_ids: Sequence[uuid.UUID] = (),
    ) -> Tuple[Project, Approval]:
        """Open a pending approval for `stage` (defaults to the current stage)."""
        stage = stage or project.stage
        for a in project.approvals:
            if a.approver_id == approver_id and a.stage == stage and a.status == ApprovalStatus.PENDING:
                raise ValueError(
                    f"{self.directory.display_name(approver_id)} already has a pending "
                    f"approval for stage '{stage.value}'."
                )
        known_evidence = {e.id for e in project.evidence}
        missing = [str(eid) for eid in evidence_ids if eid not in known_evidence]
        if missing:
            raise ValueError(f"Unknown evidence referenced: {', '.join(missing)}.")

        ts = _next_tick(project.updated_at)
        approval = Approval(
            approver_id=approver_id,
            stage=stage,
            status=ApprovalStatus.PENDING,
            requested_at=ts,
            evidence=_unique(evidence_ids),
        )
        updated = self._record(
            project,
            action="approval_requested",
            description=(
                f"Approval requested from {self.directory.display_name(approver_id)} "
                f"for {stage_definition(stage).name}"
            ),
            user_id=acting_user_id,
            changes={"approvals": project.approvals + (approval,)},
            details={"approval_id": str(approval.id), "approver_id": str(approver_id)},
            stage=stage,
            at=ts,
        )
        return updated, approval

    def record_decision(
        self,
        project: Project,
        approval_id: uuid.UUID,
        approved: bool,
        acting_user_id: uuid.UUID,
        comments: Optional[str] = None,
    ) -> Tuple[Project, Approval]:
        """Approve or reject a pending approval.  A decision cannot be changed."""
        approval = self.find_approval(project, approval_id)
        if approval is None:
            raise ValueError(f"Approval {approval_id} does not belong to this project.")
        if approval.status != ApprovalStatus.PENDING:
            raise ValueError("Only PENDING approvals can be decided.")

        ts = _next_tick(project.updated_at)
        status = ApprovalStatus.APPROVED if approved else ApprovalStatus.REJECTED
        decided = replace(approval, status=status, comments=comments, completed_at=ts)
        updated = self._record(
            project,
            action=f"approval_{status.value}",
            description=(
                f"{stage_definition(approval.stage).name} {status.value} by "
                f"{self.directory.display_name(acting_user_id)}"
            ),
            user_id=acting_user_id,
            changes={
                "approvals": tuple(decided if a.id == approval_id else a for a in project.approvals)
            },
            details={"approval_id": str(approval_id), "comments": comments},
            stage=approval.stage,
            at=ts,
        )
        return updated, decided

    # --- Dashboard ----------------------------------------------------------

    def dashboard_stats(
        self,
        projects: Sequence[Project],
        now: Optional[datetime] = None,
    ) -> DashboardStats:
        """
        Fold the project collection into dashboard counters.

        A completed project counts towards completed_this_month by its
        actual_completion, or by updated_at when no completion was stamped.
        """
        now = now or _utcnow()
        histogram: Dict[ProjectStage, int] = {stage.id: 0 for stage in WORKFLOW_STAGES}
        completion_days: List[float] = []
        completed_this_month = 0

        for p in projects:
            histogram[p.stage] += 1
            if p.status != ProjectStatus.COMPLETED:
                continue
            finished = (p.actual_completion or p.updated_at).astimezone(timezone.utc)
            if (finished.year, finished.month) == (now.year, now.month):
                completed_this_month += 1
            completion_days.append((finished - p.created_at).total_seconds() / 86400)

        average = round(sum(completion_days) / len(completion_days), 1) if completion_days else 0.0
        return DashboardStats(
            total=len(projects),
            active=sum(1 for p in projects if p.status in _ACTIVE_STATUSES),
            pending_approval=sum(1 for p in projects if p.status == ProjectStatus.PENDING_APPROVAL),
            completed_this_month=completed_this_month,
            average_completion_days=average,
            stage_histogram=histogram,
        )

    # --- Private helpers ----------------------------------------------------

    def _record(
        self,
        project: Project,
        action: str,
        description: str,
        user_id: uuid.UUID,
        changes: Optional[Dict[str, Any]] = None,
        details: Optional[Dict[str, Any]] = None,
        stage: Optional[ProjectStage] = None,
        at: Optional[datetime] = None,
    ) -> Project:
        """Replace the project with `changes` applied and one audit entry appended."""
        ts = at or _next_tick(project.updated_at)
        entry = AuditEntry(
            action=action,
            description=description,
            user_id=user_id,
            timestamp=ts,
            details=freeze_details(details),
            stage=stage,
        )
        return replace(
            project,
            **(changes or {}),
            audit_trail=project.audit_trail + (entry,),
            updated_at=ts,
        )


# ---------------------------------------------------------------------------
# RoadmapService
# ---------------------------------------------------------------------------

class GenerationCancelled(Exception):
    """Raised when a roadmap generation is cancelled part-way through."""


class RoadmapService:
    """
    Builds a RoadmapPlan from a free-text description and an industry key.

    The pipeline is deterministic: identical inputs give identical gates,
    checkpoints, resources, risks and assumptions.  Only ids and timestamps
    differ between runs.
    """

    def __init__(
        self,
        templates: Mapping[str, IndustryTemplate] = INDUSTRY_TEMPLATES,
        default_industry: str = DEFAULT_INDUSTRY,
    ):
        self._templates = templates
        self._default_industry = default_industry

    def list_industries(self) -> List[IndustryTemplate]:
        return list(self._templates.values())

    def resolve_template(self, industry: str) -> IndustryTemplate:
        """Gates and resources for unknown industries come from the default template."""
        return self._templates.get(industry) or self._templates[self._default_industry]

    def industry_template(self, industry: str) -> Optional[IndustryTemplate]:
        """Exact-key lookup; None for industries without a template of their own."""
        return self._templates.get(industry)

    def generate(
        self,
        description: str,
        industry: str = DEFAULT_INDUSTRY,
        created_by: str = "current-user",
        cancel_event: Optional[threading.Event] = None,
    ) -> RoadmapPlan:
        template = self.resolve_template(industry)
        own = self.industry_template(industry)
        _raise_if_cancelled(cancel_event)

        gates = self.build_gates(template)
        checkpoints = self.build_checkpoints(gates)
        resources = self.build_resources(template)
        _raise_if_cancelled(cancel_event)

        total_duration = sum(g.estimated_duration for g in gates)
        complexity = self.assess_complexity(description, total_duration)
        _raise_if_cancelled(cancel_event)

        now = _utcnow()
        plan = RoadmapPlan(
            project_title=self.extract_title(description),
            project_description=description,
            industry=industry,
            complexity=complexity,
            estimated_total_duration=total_duration,
            estimated_budget=self.estimate_budget(complexity, total_duration),
            gates=gates,
            checkpoints=checkpoints,
            resources=resources,
            risks=self.generate_risks(own.risks if own else (), complexity),
            assumptions=self.generate_assumptions(own.assumptions if own else ()),
            created_at=now,
            updated_at=now,
            created_by=created_by,
        )
        logger.info(
            "Generated roadmap %s: template=%s complexity=%s duration=%sd gates=%d",
            plan.id, template.key, complexity.value, total_duration, len(gates),
        )
        return plan

    # --- Pipeline steps -----------------------------------------------------

    def build_gates(self, template: IndustryTemplate) -> Tuple[RoadmapGate, ...]:
        gates: List[RoadmapGate] = []
        for order, gt in enumerate(template.gates, start=1):
            previous = gates[-1] if gates else None
            gates.append(RoadmapGate(
                name=gt.name,
                description=gt.description,
                order=order,
                estimated_duration=gt.estimated_duration,
                depends_on=(previous.id,) if previous else (),
                dependencies=(previous.name,) if previous else (),
                deliverables=gt.deliverables,
                success_criteria=gt.success_criteria,
                risk_level=gt.risk_level,
                status=GateStatus.NOT_STARTED,
            ))
        return tuple(gates)

    def build_checkpoints(self, gates: Sequence[RoadmapGate]) -> Tuple[RoadmapCheckpoint, ...]:
        checkpoints: List[RoadmapCheckpoint] = []
        for gate in gates:
            if not gate.deliverables:
                continue
            share = math.ceil(gate.estimated_duration / len(gate.deliverables))
            for order, deliverable in enumerate(gate.deliverables, start=1):
                checkpoints.append(RoadmapCheckpoint(
                    gate_id=gate.id,
                    name=f"{gate.name} - {deliverable}",
                    description=f"Checkpoint for {deliverable}",
                    order=order,
                    estimated_duration=share,
                    required_evidence=(deliverable,),
                    status=CheckpointStatus.NOT_STARTED,
                ))
        return tuple(checkpoints)

    def build_resources(self, template: IndustryTemplate) -> Tuple[RoadmapResource, ...]:
        return tuple(
            RoadmapResource(
                name=rt.name,
                role=rt.role,
                department=rt.department,
                expertise=rt.expertise,
                availability=rt.availability,
                contact_info=ContactInfo(email=rt.email),
                estimated_time_commitment=rt.estimated_time_commitment,
            )
            for rt in template.resources
        )

    # --- Heuristics ---------------------------------------------------------

    @staticmethod
    def extract_title(description: str) -> str:
        """First five words of the description, with an ellipsis if cut."""
        words = description.split()
        return " ".join(words[:5]) + ("..." if len(words) > 5 else "")

    @staticmethod
    def assess_complexity(description: str, total_duration: int) -> ComplexityTier:
        word_count = len(description.split())
        lowered = description.lower()
        if total_duration > 365 or any(k in lowered for k in COMPLEXITY_KEYWORDS):
            return ComplexityTier.ENTERPRISE
        if total_duration > 180 or word_count > 50:
            return ComplexityTier.COMPLEX
        if total_duration > 90 or word_count > 30:
            return ComplexityTier.MODERATE
        return ComplexityTier.SIMPLE

    @staticmethod
    def estimate_budget(complexity: ComplexityTier, total_duration: int) -> BudgetRange:
        rate_min, rate_max = DAILY_RATES[complexity]
        return BudgetRange(
            min=rate_min * total_duration,
            max=rate_max * total_duration,
            currency=BUDGET_CURRENCY,
        )

    @staticmethod
    def generate_risks(industry_risks: Sequence[str], complexity: ComplexityTier) -> Tuple[str, ...]:
        return COMMON_RISKS + tuple(industry_risks) + COMPLEXITY_RISKS.get(complexity, ())

    @staticmethod
    def generate_assumptions(industry_assumptions: Sequence[str]) -> Tuple[str, ...]:
        return COMMON_ASSUMPTIONS + tuple(industry_assumptions)


def _raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise GenerationCancelled("Roadmap generation was cancelled.")


# ---------------------------------------------------------------------------
# ActivityLogService
# ---------------------------------------------------------------------------

class ActivityLogService:
    """
    Creates and queries ActivityLogEntry records.
    Entries are append-only; nothing here edits or removes them, and their
    details are frozen copies of whatever the caller passed in.
    """

    def log_monitoring_action(
        self,
        action: str,
        description: str,
        user_id: uuid.UUID,
        details: Optional[Dict[str, Any]] = None,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action=action,
            description=description,
            user_id=user_id,
            details=freeze_details(details),
            category=ActivityCategory.MONITORING,
        )

    def log_form_submission(
        self,
        form_name: str,
        user_id: uuid.UUID,
        form_data: Dict[str, Any],
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action="form_submitted",
            description=f"Monitoring checklist form submitted: {form_name}",
            user_id=user_id,
            details=freeze_details({"form_name": form_name, "form_data": form_data}),
            category=ActivityCategory.FORM_SUBMISSION,
        )

    def log_chat_message(
        self,
        message: str,
        user_id: uuid.UUID,
        is_user_message: bool,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action="chat_message_sent" if is_user_message else "chat_message_received",
            description="User sent chat message" if is_user_message else "Copilot responded to user",
            user_id=user_id,
            details=freeze_details({"message": message, "is_user_message": is_user_message}),
            category=ActivityCategory.CHAT,
        )

    def log_privacy_checkpoint(
        self,
        user_id: uuid.UUID,
        evidence_type: str,
        file_name: Optional[str] = None,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action="privacy_checkpoint_completed",
            description=f"Privacy checkpoint completed with {evidence_type} evidence",
            user_id=user_id,
            details=freeze_details({"evidence_type": evidence_type, "file_name": file_name}),
            category=ActivityCategory.PRIVACY,
        )

    def log_compliance_check(
        self,
        user_id: uuid.UUID,
        check_type: str,
        status: ComplianceCheckStatus,
    ) -> ActivityLogEntry:
        return ActivityLogEntry(
            action="compliance_check_performed",
            description=f"Compliance check performed: {check_type} - {status.value}",
            user_id=user_id,
            details=freeze_details({"check_type": check_type, "status": status.value}),
            category=ActivityCategory.COMPLIANCE,
        )

    def log_workflow_event(self, project: Project, entry: AuditEntry) -> ActivityLogEntry:
        """Mirror a project audit entry into the activity log."""
        return ActivityLogEntry(
            action=entry.action,
            description=f"{project.name}: {entry.description}",
            user_id=entry.user_id,
            timestamp=entry.timestamp,
            details=freeze_details({
                "project_id": str(project.id),
                "stage": entry.stage.value if entry.stage else None,
            }),
            category=ActivityCategory.WORKFLOW,
        )

    # --- Queries ------------------------------------------------------------

    def by_category(
        self,
        entries: Iterable[ActivityLogEntry],
        category: ActivityCategory,
    ) -> List[ActivityLogEntry]:
        return [e for e in entries if e.category == category]

    def by_user(
        self,
        entries: Iterable[ActivityLogEntry],
        user_id: uuid.UUID,
    ) -> List[ActivityLogEntry]:
        return [e for e in entries if e.user_id == user_id]

    def recent(
        self,
        entries: Iterable[ActivityLogEntry],
        limit: int = 50,
    ) -> List[ActivityLogEntry]:
        """Newest first, at most `limit` entries."""
        return sorted(entries, key=lambda e: e.timestamp, reverse=True)[:limit]
