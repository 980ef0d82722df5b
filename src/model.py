"""
model.py

Domain models for the AI Compliance Gate: stage-gated project approvals and
generated compliance roadmaps.

Entities
--------
- User
- WorkflowStage
- Project
- Evidence
- Approval
- AuditEntry
- UnmetRequirement
- RoadmapGate
- RoadmapCheckpoint
- RoadmapResource
- RoadmapPlan
- ActivityLogEntry

Workflow entities are frozen dataclasses: a Project is changed only by
replacing the whole record (``dataclasses.replace``), which keeps the audit
trail append-only and lets repositories hand out stored records without
defensive copying.
UUID primary keys are used throughout for portability.
Timestamps are always stored in UTC.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping, Optional, Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class UserRole(str, Enum):
    LEGAL = "legal"
    IT = "it"
    ADMIN = "admin"
    APPROVER = "approver"


class ProjectStatus(str, Enum):
    """
    Review status of a project.

    DRAFT, IN_REVIEW and PENDING_APPROVAL count as "active" on the dashboard.
    REJECTED and COMPLETED are terminal; projects are never deleted.
    """
    DRAFT = "draft"
    IN_REVIEW = "in_review"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    COMPLETED = "completed"


class ProjectStage(str, Enum):
    """The seven review stages, declared in workflow order."""
    INITIAL_ASSESSMENT = "initial_assessment"
    LEGAL_REVIEW = "legal_review"
    TECHNICAL_REVIEW = "technical_review"
    COMPLIANCE_CHECK = "compliance_check"
    FINAL_APPROVAL = "final_approval"
    IMPLEMENTATION = "implementation"
    MONITORING = "monitoring"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class EvidenceType(str, Enum):
    DOCUMENT = "document"
    LINK = "link"
    SCREENSHOT = "screenshot"
    CERTIFICATION = "certification"
    ASSESSMENT = "assessment"


class ApprovalStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequirementKind(str, Enum):
    """What a stage is still missing before it may be left."""
    APPROVAL = "approval"
    EVIDENCE = "evidence"


class RiskLevel(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class GateStatus(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"


class CheckpointStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    NOT_STARTED = "not_started"


class ResourceAvailability(str, Enum):
    AVAILABLE = "available"
    PARTIALLY_AVAILABLE = "partially_available"
    UNAVAILABLE = "unavailable"


class ComplexityTier(str, Enum):
    """Coarse size of a generated roadmap, cheapest first."""
    SIMPLE = "simple"
    MODERATE = "moderate"
    COMPLEX = "complex"
    ENTERPRISE = "enterprise"


class ActivityCategory(str, Enum):
    """
    Category of an activity log entry.

    WORKFLOW entries mirror project audit-trail events; the remaining
    categories come from the monitoring checklist and the chat panel.
    """
    MONITORING = "monitoring"
    PRIVACY = "privacy"
    COMPLIANCE = "compliance"
    FORM_SUBMISSION = "form_submission"
    CHAT = "chat"
    WORKFLOW = "workflow"


class ComplianceCheckStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    PENDING = "pending"


# ---------------------------------------------------------------------------
# Reference data
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class User:
    """A reviewer or requester.  Users are seeded reference data."""
    id: uuid.UUID
    name: str
    email: str
    role: UserRole
    department: str
    avatar: Optional[str] = None


@dataclass(frozen=True)
class WorkflowStage:
    """
    Catalog entry for one review stage.

    `required_approvers` are user ids; `required_evidence` are evidence
    category names matched against Evidence.category.
    """
    id: ProjectStage
    name: str
    description: str
    required_approvers: Tuple[uuid.UUID, ...]
    required_evidence: Tuple[str, ...]
    estimated_duration: int          # days
    can_advance: bool
    can_revert: bool


# ---------------------------------------------------------------------------
# Workflow Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Evidence:
    """
    An artifact attached to a project in support of a review decision.

    Upload and verification are separate acts; once `verified` is set the
    record is never replaced again.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    type: EvidenceType = EvidenceType.DOCUMENT
    title: str = ""
    description: str = ""
    url: Optional[str] = None
    file_path: Optional[str] = None
    category: Optional[str] = None   # stage requirement it satisfies, e.g. "risk_assessment"
    uploaded_by: Optional[uuid.UUID] = None
    uploaded_at: datetime = field(default_factory=_utcnow)
    verified: bool = False
    verified_by: Optional[uuid.UUID] = None
    verified_at: Optional[datetime] = None


@dataclass(frozen=True)
class Approval:
    """A per-stage, per-approver decision record."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    approver_id: Optional[uuid.UUID] = None
    stage: ProjectStage = ProjectStage.INITIAL_ASSESSMENT
    status: ApprovalStatus = ApprovalStatus.PENDING
    comments: Optional[str] = None
    requested_at: datetime = field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None
    evidence: Tuple[uuid.UUID, ...] = ()     # Evidence.id references


@dataclass(frozen=True)
class AuditEntry:
    """
    Immutable record of one action on a project.

    Entries are appended to Project.audit_trail and never edited or removed.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    action: str = ""
    description: str = ""
    user_id: Optional[uuid.UUID] = None
    timestamp: datetime = field(default_factory=_utcnow)
    details: Optional[Mapping[str, Any]] = None
    stage: Optional[ProjectStage] = None


@dataclass(frozen=True)
class Project:
    """
    The unit under compliance review.

    A project starts as DRAFT at the first catalog stage and walks the stage
    sequence.  Every change produces a new Project with a later `updated_at`;
    `audit_trail` only ever grows at its tail.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    description: str = ""
    status: ProjectStatus = ProjectStatus.DRAFT
    stage: ProjectStage = ProjectStage.INITIAL_ASSESSMENT

    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    created_by: Optional[uuid.UUID] = None

    assigned_users: Tuple[uuid.UUID, ...] = ()
    required_users: Tuple[uuid.UUID, ...] = ()
    evidence: Tuple[Evidence, ...] = ()
    approvals: Tuple[Approval, ...] = ()
    audit_trail: Tuple[AuditEntry, ...] = ()
    tags: Tuple[str, ...] = ()
    priority: Priority = Priority.MEDIUM

    estimated_completion: Optional[datetime] = None
    actual_completion: Optional[datetime] = None


@dataclass(frozen=True)
class UnmetRequirement:
    """One approval or evidence item a stage still lacks."""
    kind: RequirementKind
    stage: ProjectStage
    requirement: str        # approver id or evidence category
    detail: str = ""


# ---------------------------------------------------------------------------
# Roadmap Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RoadmapGate:
    """
    One phase of a generated roadmap.

    `depends_on` holds predecessor gate ids and is the dependency edge used
    internally.  `dependencies` repeats the same edge as predecessor names for
    display only.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    description: str = ""
    order: int = 0                      # 1-based
    estimated_duration: int = 0         # days
    depends_on: Tuple[uuid.UUID, ...] = ()
    dependencies: Tuple[str, ...] = ()
    required_resources: Tuple[uuid.UUID, ...] = ()
    deliverables: Tuple[str, ...] = ()
    success_criteria: Tuple[str, ...] = ()
    risk_level: RiskLevel = RiskLevel.MEDIUM
    status: GateStatus = GateStatus.NOT_STARTED


@dataclass(frozen=True)
class RoadmapCheckpoint:
    """A deliverable-sized unit of work inside a gate."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    gate_id: uuid.UUID = field(default_factory=uuid.uuid4)   # FK → RoadmapGate.id
    name: str = ""
    description: str = ""
    order: int = 0                      # position within the gate, 1-based
    estimated_duration: int = 0         # days
    required_evidence: Tuple[str, ...] = ()
    approvers: Tuple[uuid.UUID, ...] = ()
    status: CheckpointStatus = CheckpointStatus.NOT_STARTED


@dataclass(frozen=True)
class ContactInfo:
    email: str
    phone: Optional[str] = None


@dataclass(frozen=True)
class RoadmapResource:
    """A recommended person/role for carrying out the roadmap."""
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    name: str = ""
    role: str = ""
    department: str = ""
    expertise: Tuple[str, ...] = ()
    availability: ResourceAvailability = ResourceAvailability.AVAILABLE
    contact_info: ContactInfo = field(default_factory=lambda: ContactInfo(email=""))
    estimated_time_commitment: int = 0  # hours per week


@dataclass(frozen=True)
class BudgetRange:
    min: int
    max: int
    currency: str = "USD"


@dataclass(frozen=True)
class RoadmapPlan:
    """
    A generated roadmap.  Plans are never edited; regenerating creates a new
    plan with new identities throughout.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    project_title: str = ""
    project_description: str = ""
    industry: str = ""
    complexity: ComplexityTier = ComplexityTier.SIMPLE
    estimated_total_duration: int = 0   # days
    estimated_budget: BudgetRange = field(default_factory=lambda: BudgetRange(min=0, max=0))
    gates: Tuple[RoadmapGate, ...] = ()
    checkpoints: Tuple[RoadmapCheckpoint, ...] = ()
    resources: Tuple[RoadmapResource, ...] = ()
    risks: Tuple[str, ...] = ()
    assumptions: Tuple[str, ...] = ()
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    created_by: str = ""


# ---------------------------------------------------------------------------
# Activity Log
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActivityLogEntry:
    """
    Cross-project record of user activity (checklists, chat, workflow events).
    Entries are append-only and consumed for display.
    """
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    action: str = ""
    description: str = ""
    user_id: Optional[uuid.UUID] = None
    timestamp: datetime = field(default_factory=_utcnow)
    details: Optional[Mapping[str, Any]] = None
    category: ActivityCategory = ActivityCategory.MONITORING
