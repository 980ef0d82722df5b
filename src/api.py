"""
api.py

REST API layer for the AI Compliance Gate.

Framework : FastAPI
Actor     : the optional X-Actor-Id header carries the acting user's UUID;
            requests without it act as the configured default actor
            (config.SETTINGS.default_actor_id).  Every mutating endpoint
            passes the resolved id to its use case command.

Structure
---------
  Routers (all prefixed under /api/v1)
  ├── /users                         — reference users
  ├── /workflow/stages               — the review-stage catalog
  ├── /projects                      — project CRUD & status lifecycle
  │   ├── /{project_id}/stage        — stage progress & unmet requirements
  │   ├── /{project_id}/advance      — advance to the next stage
  │   ├── /{project_id}/revert       — send back to an earlier stage
  │   ├── /{project_id}/evidence     — evidence upload & verification
  │   ├── /{project_id}/approvals    — approval requests & decisions
  │   └── /{project_id}/audit        — audit trail (+ /export)
  ├── /dashboard                     — aggregate project counters
  ├── /roadmaps                      — roadmap generation & retrieval
  └── /activity                      — categorised activity log

Error handling
--------------
  NotFoundError      → 404
  ApplicationError   → 422
  ValueError         → 422
  Unhandled          → 500 (FastAPI default)

Response envelope
-----------------
  Success  : { "data": <payload> }
  Error    : { "detail": "<message>" }

Running
-------
  uvicorn api:app --reload
"""

from __future__ import annotations

import dataclasses
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Path, Query, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_mcp import FastApiMCP
from pydantic import BaseModel, Field, field_validator

from application import (
    # Exceptions
    ApplicationError,
    NotFoundError,
    # Use-case commands
    AddEvidenceCommand,
    AdvanceStageCommand,
    ChangeProjectStatusCommand,
    CreateProjectCommand,
    DecideApprovalCommand,
    GenerateRoadmapCommand,
    ProjectFilter,
    RecordChatMessageCommand,
    RecordComplianceCheckCommand,
    RecordFormSubmissionCommand,
    RecordMonitoringActionCommand,
    RecordPrivacyCheckpointCommand,
    RequestApprovalCommand,
    RevertStageCommand,
    UpdateProjectCommand,
    VerifyEvidenceCommand,
    # Use-case classes
    CreateProjectUseCase,
    UpdateProjectUseCase,
    AbstractUnitOfWork,
)
from config import SETTINGS, Settings
from infrastructure import InMemoryUnitOfWork
from model import (
    ActivityCategory,
    ComplianceCheckStatus,
    EvidenceType,
    Priority,
    ProjectStage,
    ProjectStatus,
    UserRole,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# App bootstrap
# ---------------------------------------------------------------------------

app = FastAPI(
    title="AI Compliance Gate API",
    version="1.0.0",
    description=(
        "REST API for tracking AI projects through a stage-gated compliance "
        "review: evidence, approvals, audit trail, dashboard counters, "
        "generated compliance roadmaps and a categorised activity log."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(SETTINGS.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def log_startup_settings():
    logger.info(
        "Compliance gate API starting: strict_stage_gates=%s default_actor=%s mcp=%s",
        SETTINGS.strict_stage_gates, SETTINGS.default_actor_id, SETTINGS.mcp_enabled,
    )


# ---------------------------------------------------------------------------
# Global exception handlers
# ---------------------------------------------------------------------------

@app.exception_handler(NotFoundError)
async def not_found_handler(request, exc: NotFoundError):
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(ApplicationError)
async def application_error_handler(request, exc: ApplicationError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ValueError)
async def value_error_handler(request, exc: ValueError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------

def get_uow() -> AbstractUnitOfWork:
    """Returns the in-memory Unit of Work (no database required)."""
    return InMemoryUnitOfWork()


def get_settings() -> Settings:
    return SETTINGS


def get_actor_id(
    x_actor_id: Optional[str] = Header(default=None, alias="X-Actor-Id"),
    settings: Settings = Depends(get_settings),
) -> uuid.UUID:
    """Resolve the acting user from the X-Actor-Id header, or the default actor."""
    if not x_actor_id:
        return settings.default_actor_id
    try:
        return uuid.UUID(x_actor_id.strip())
    except ValueError as exc:
        raise ApplicationError(f"X-Actor-Id must be a UUID, got {x_actor_id!r}.") from exc


# ---------------------------------------------------------------------------
# Envelope helper
# ---------------------------------------------------------------------------

def _ok(data: Any) -> Dict:
    """Wrap a DTO or list of DTOs in the standard success envelope."""
    if dataclasses.is_dataclass(data):
        return {"data": dataclasses.asdict(data)}
    if isinstance(data, list):
        return {
            "data": [
                dataclasses.asdict(item) if dataclasses.is_dataclass(item) else item
                for item in data
            ]
        }
    return {"data": data}


def _one_of(field_name: str, value: str, enum_cls) -> str:
    valid = {m.value for m in enum_cls}
    if value not in valid:
        raise ValueError(f"{field_name} must be one of: {sorted(valid)}")
    return value


# ===========================================================================
# REQUEST BODY SCHEMAS  (Pydantic v2)
# ===========================================================================

# ---------------------------------------------------------------------------
# Project schemas
# ---------------------------------------------------------------------------

class CreateProjectRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = Field(default="")
    priority: str = Field(default=Priority.MEDIUM.value, description="low, medium, high or critical")
    tags: List[str] = Field(default_factory=list)
    assigned_users: List[uuid.UUID] = Field(default_factory=list)
    required_users: List[uuid.UUID] = Field(default_factory=list)
    estimated_completion: Optional[datetime] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        return _one_of("priority", v, Priority)


class UpdateProjectRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = None
    priority: Optional[str] = None
    tags: Optional[List[str]] = None
    assigned_users: Optional[List[uuid.UUID]] = None
    required_users: Optional[List[uuid.UUID]] = None
    estimated_completion: Optional[datetime] = None

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: Optional[str]) -> Optional[str]:
        return _one_of("priority", v, Priority) if v is not None else v


class ChangeStatusRequest(BaseModel):
    status: str = Field(..., description="Target review status.")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _one_of("status", v, ProjectStatus)


# ---------------------------------------------------------------------------
# Stage workflow schemas
# ---------------------------------------------------------------------------

class AdvanceStageRequest(BaseModel):
    target_stage: Optional[str] = Field(
        default=None, description="Defaults to the next stage in the workflow."
    )

    @field_validator("target_stage")
    @classmethod
    def validate_stage(cls, v: Optional[str]) -> Optional[str]:
        return _one_of("target_stage", v, ProjectStage) if v is not None else v


class RevertStageRequest(BaseModel):
    target_stage: str

    @field_validator("target_stage")
    @classmethod
    def validate_stage(cls, v: str) -> str:
        return _one_of("target_stage", v, ProjectStage)


# ---------------------------------------------------------------------------
# Evidence & approval schemas
# ---------------------------------------------------------------------------

class AddEvidenceRequest(BaseModel):
    type: str = Field(..., description="document, link, screenshot, certification or assessment")
    title: str = Field(..., min_length=1, max_length=300)
    description: str = Field(default="")
    url: Optional[str] = None
    file_path: Optional[str] = None
    category: Optional[str] = Field(
        default=None, description="Stage evidence requirement this item satisfies."
    )

    @field_validator("type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        return _one_of("type", v, EvidenceType)


class RequestApprovalRequest(BaseModel):
    approver_id: uuid.UUID
    stage: Optional[str] = Field(default=None, description="Defaults to the current stage.")
    evidence_ids: List[uuid.UUID] = Field(default_factory=list)

    @field_validator("stage")
    @classmethod
    def validate_stage(cls, v: Optional[str]) -> Optional[str]:
        return _one_of("stage", v, ProjectStage) if v is not None else v


class DecideApprovalRequest(BaseModel):
    decision: str = Field(..., description="approved or rejected")
    comments: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("decision")
    @classmethod
    def validate_decision(cls, v: str) -> str:
        if v not in {"approved", "rejected"}:
            raise ValueError("decision must be one of: ['approved', 'rejected']")
        return v


# ---------------------------------------------------------------------------
# Roadmap schemas
# ---------------------------------------------------------------------------

class GenerateRoadmapRequest(BaseModel):
    description: str = Field(..., min_length=1, max_length=10000)
    industry: str = Field(default="technology", description="Unknown industries use the technology gates and resources.")


# ---------------------------------------------------------------------------
# Activity schemas
# ---------------------------------------------------------------------------

class MonitoringActionRequest(BaseModel):
    action: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    details: Optional[Dict[str, Any]] = None


class FormSubmissionRequest(BaseModel):
    form_name: str = Field(..., min_length=1, max_length=200)
    form_data: Dict[str, Any] = Field(default_factory=dict)


class ChatMessageRequest(BaseModel):
    message: str = Field(..., min_length=1)
    is_user_message: bool = True


class PrivacyCheckpointRequest(BaseModel):
    evidence_type: str = Field(..., min_length=1, max_length=100)
    file_name: Optional[str] = None


class ComplianceCheckRequest(BaseModel):
    check_type: str = Field(..., min_length=1, max_length=200)
    status: str = Field(..., description="passed, failed or pending")

    @field_validator("status")
    @classmethod
    def validate_status(cls, v: str) -> str:
        return _one_of("status", v, ComplianceCheckStatus)


# ===========================================================================
# ROUTERS
# ===========================================================================

api_v1 = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Users & workflow catalog
# ---------------------------------------------------------------------------

user_router = APIRouter(prefix="/users", tags=["Users"])


@user_router.get("", summary="List reference users")
def list_users(
    role: Optional[UserRole] = Query(default=None),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ListUsersUseCase
    result = ListUsersUseCase().execute(uow, role=role)
    return _ok(result)


@user_router.get("/{user_id}", summary="Get a user by ID")
def get_user(
    user_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetUserUseCase
    result = GetUserUseCase().execute(user_id, uow)
    return _ok(result)


workflow_router = APIRouter(prefix="/workflow", tags=["Workflow"])


@workflow_router.get("/stages", summary="List the review stages in order")
def list_workflow_stages(
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ListWorkflowStagesUseCase
    result = ListWorkflowStagesUseCase().execute(uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------

project_router = APIRouter(prefix="/projects", tags=["Projects"])


@project_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Create a new compliance project",
)
def create_project(
    body: CreateProjectRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Creates a draft project at the Initial Assessment stage.  The acting
    user is recorded as its creator.
    """
    cmd = CreateProjectCommand(
        name=body.name,
        description=body.description,
        acting_user_id=actor_id,
        priority=Priority(body.priority),
        tags=body.tags,
        assigned_users=body.assigned_users,
        required_users=body.required_users,
        estimated_completion=body.estimated_completion,
    )
    result = CreateProjectUseCase().execute(cmd, uow)
    return _ok(result)


@project_router.get("", summary="List projects, optionally filtered")
def list_projects(
    status_filter: Optional[ProjectStatus] = Query(default=None, alias="status"),
    stage: Optional[ProjectStage] = Query(default=None),
    priority: Optional[Priority] = Query(default=None),
    search: Optional[str] = Query(default=None, description="Matches name or description."),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ListProjectsUseCase
    project_filter = ProjectFilter(status=status_filter, stage=stage, priority=priority, search=search)
    result = ListProjectsUseCase().execute(uow, project_filter)
    return _ok(result)


@project_router.get("/{project_id}", summary="Get a project by ID")
def get_project(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetProjectUseCase
    result = GetProjectUseCase().execute(project_id, uow)
    return _ok(result)


@project_router.patch("/{project_id}", summary="Update project details")
def update_project(
    body: UpdateProjectRequest,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    cmd = UpdateProjectCommand(
        project_id=project_id,
        acting_user_id=actor_id,
        name=body.name,
        description=body.description,
        priority=Priority(body.priority) if body.priority else None,
        tags=body.tags,
        assigned_users=body.assigned_users,
        required_users=body.required_users,
        estimated_completion=body.estimated_completion,
    )
    result = UpdateProjectUseCase().execute(cmd, uow)
    return _ok(result)


@project_router.post("/{project_id}/status", summary="Change the project's review status")
def change_project_status(
    body: ChangeStatusRequest,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ChangeProjectStatusUseCase
    cmd = ChangeProjectStatusCommand(
        project_id=project_id,
        status=ProjectStatus(body.status),
        acting_user_id=actor_id,
    )
    result = ChangeProjectStatusUseCase().execute(cmd, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Stage workflow
# ---------------------------------------------------------------------------

stage_router = APIRouter(prefix="/projects/{project_id}", tags=["Stage Workflow"])


@stage_router.get("/stage", summary="Current stage, next stage and unmet requirements")
def get_stage_progress(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetStageProgressUseCase
    result = GetStageProgressUseCase().execute(project_id, uow)
    return _ok(result)


@stage_router.post("/advance", summary="Advance the project to its next stage")
def advance_stage(
    body: Optional[AdvanceStageRequest] = None,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    settings: Settings = Depends(get_settings),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    """
    Always answers 200.  `outcome` is `advanced`, `no_next_stage` (already at
    the final stage) or `requirements_not_met` (strict mode only, with the
    missing approvals and evidence listed).
    """
    from application import AdvanceStageUseCase
    target = body.target_stage if body else None
    cmd = AdvanceStageCommand(
        project_id=project_id,
        acting_user_id=actor_id,
        target_stage=ProjectStage(target) if target else None,
        enforce_requirements=settings.strict_stage_gates,
    )
    result = AdvanceStageUseCase().execute(cmd, uow)
    return _ok(result)


@stage_router.post("/revert", summary="Send the project back to an earlier stage")
def revert_stage(
    body: RevertStageRequest,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RevertStageUseCase
    cmd = RevertStageCommand(
        project_id=project_id,
        target_stage=ProjectStage(body.target_stage),
        acting_user_id=actor_id,
    )
    result = RevertStageUseCase().execute(cmd, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Evidence
# ---------------------------------------------------------------------------

evidence_router = APIRouter(prefix="/projects/{project_id}/evidence", tags=["Evidence"])


@evidence_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Attach evidence to a project",
)
def add_evidence(
    body: AddEvidenceRequest,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import AddEvidenceUseCase
    cmd = AddEvidenceCommand(
        project_id=project_id,
        acting_user_id=actor_id,
        type=EvidenceType(body.type),
        title=body.title,
        description=body.description,
        url=body.url,
        file_path=body.file_path,
        category=body.category,
    )
    result = AddEvidenceUseCase().execute(cmd, uow)
    return _ok(result)


@evidence_router.post("/{evidence_id}/verify", summary="Mark evidence as verified")
def verify_evidence(
    project_id: uuid.UUID = Path(...),
    evidence_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import VerifyEvidenceUseCase
    cmd = VerifyEvidenceCommand(
        project_id=project_id,
        evidence_id=evidence_id,
        acting_user_id=actor_id,
    )
    result = VerifyEvidenceUseCase().execute(cmd, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Approvals
# ---------------------------------------------------------------------------

approval_router = APIRouter(prefix="/projects/{project_id}/approvals", tags=["Approvals"])


@approval_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Request a stage approval",
)
def request_approval(
    body: RequestApprovalRequest,
    project_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RequestApprovalUseCase
    cmd = RequestApprovalCommand(
        project_id=project_id,
        approver_id=body.approver_id,
        acting_user_id=actor_id,
        stage=ProjectStage(body.stage) if body.stage else None,
        evidence_ids=body.evidence_ids,
    )
    result = RequestApprovalUseCase().execute(cmd, uow)
    return _ok(result)


@approval_router.post("/{approval_id}/decision", summary="Approve or reject a pending approval")
def decide_approval(
    body: DecideApprovalRequest,
    project_id: uuid.UUID = Path(...),
    approval_id: uuid.UUID = Path(...),
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import DecideApprovalUseCase
    cmd = DecideApprovalCommand(
        project_id=project_id,
        approval_id=approval_id,
        approved=body.decision == "approved",
        acting_user_id=actor_id,
        comments=body.comments,
    )
    result = DecideApprovalUseCase().execute(cmd, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Audit Trail
# ---------------------------------------------------------------------------

audit_router = APIRouter(prefix="/projects/{project_id}/audit", tags=["Audit Trail"])


@audit_router.get("", summary="Get the full audit trail for a project")
def get_audit_trail(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetAuditTrailUseCase
    result = GetAuditTrailUseCase().execute(project_id, uow)
    return _ok(result)


@audit_router.get("/export", summary="Export the audit trail as flat rows")
def export_audit_trail(
    project_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ExportAuditTrailUseCase
    result = ExportAuditTrailUseCase().execute(project_id, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------

dashboard_router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@dashboard_router.get("", summary="Aggregate project counters")
def get_dashboard(
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetDashboardStatsUseCase
    result = GetDashboardStatsUseCase().execute(uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Roadmaps
# ---------------------------------------------------------------------------

roadmap_router = APIRouter(prefix="/roadmaps", tags=["Roadmaps"])


# Registered before /{plan_id} so "industries" is not parsed as an id.
@roadmap_router.get("/industries", summary="List the industry templates")
def list_industries():
    from application import ListIndustriesUseCase
    result = ListIndustriesUseCase().execute()
    return _ok(result)


@roadmap_router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Generate a compliance roadmap from a project description",
)
def generate_roadmap(
    body: GenerateRoadmapRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GenerateRoadmapUseCase
    cmd = GenerateRoadmapCommand(
        description=body.description,
        industry=body.industry,
        created_by=str(actor_id),
    )
    result = GenerateRoadmapUseCase().execute(cmd, uow)
    return _ok(result)


@roadmap_router.get("", summary="List generated roadmaps, newest first")
def list_roadmaps(
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ListRoadmapsUseCase
    result = ListRoadmapsUseCase().execute(uow)
    return _ok(result)


@roadmap_router.get("/{plan_id}", summary="Get a generated roadmap")
def get_roadmap(
    plan_id: uuid.UUID = Path(...),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import GetRoadmapUseCase
    result = GetRoadmapUseCase().execute(plan_id, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Activity log
# ---------------------------------------------------------------------------

activity_router = APIRouter(prefix="/activity", tags=["Activity Log"])


@activity_router.get("", summary="Recent activity, newest first")
def list_activity(
    category: Optional[ActivityCategory] = Query(default=None),
    user_id: Optional[uuid.UUID] = Query(default=None),
    limit: Optional[int] = Query(default=None, ge=1, le=1000),
    settings: Settings = Depends(get_settings),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import ListActivityUseCase
    result = ListActivityUseCase().execute(
        uow,
        category=category,
        user_id=user_id,
        limit=limit or settings.recent_activity_limit,
    )
    return _ok(result)


@activity_router.post("/monitoring", status_code=status.HTTP_201_CREATED, summary="Log a monitoring action")
def log_monitoring_action(
    body: MonitoringActionRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RecordMonitoringActionUseCase
    cmd = RecordMonitoringActionCommand(
        action=body.action,
        description=body.description,
        user_id=actor_id,
        details=body.details,
    )
    result = RecordMonitoringActionUseCase().execute(cmd, uow)
    return _ok(result)


@activity_router.post("/forms", status_code=status.HTTP_201_CREATED, summary="Log a checklist form submission")
def log_form_submission(
    body: FormSubmissionRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RecordFormSubmissionUseCase
    cmd = RecordFormSubmissionCommand(
        form_name=body.form_name,
        user_id=actor_id,
        form_data=body.form_data,
    )
    result = RecordFormSubmissionUseCase().execute(cmd, uow)
    return _ok(result)


@activity_router.post("/chat", status_code=status.HTTP_201_CREATED, summary="Log a chat message")
def log_chat_message(
    body: ChatMessageRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RecordChatMessageUseCase
    cmd = RecordChatMessageCommand(
        message=body.message,
        user_id=actor_id,
        is_user_message=body.is_user_message,
    )
    result = RecordChatMessageUseCase().execute(cmd, uow)
    return _ok(result)


@activity_router.post("/privacy", status_code=status.HTTP_201_CREATED, summary="Log a privacy checkpoint")
def log_privacy_checkpoint(
    body: PrivacyCheckpointRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RecordPrivacyCheckpointUseCase
    cmd = RecordPrivacyCheckpointCommand(
        user_id=actor_id,
        evidence_type=body.evidence_type,
        file_name=body.file_name,
    )
    result = RecordPrivacyCheckpointUseCase().execute(cmd, uow)
    return _ok(result)


@activity_router.post(
    "/compliance-checks",
    status_code=status.HTTP_201_CREATED,
    summary="Log a compliance check result",
)
def log_compliance_check(
    body: ComplianceCheckRequest,
    actor_id: uuid.UUID = Depends(get_actor_id),
    uow: AbstractUnitOfWork = Depends(get_uow),
):
    from application import RecordComplianceCheckUseCase
    cmd = RecordComplianceCheckCommand(
        user_id=actor_id,
        check_type=body.check_type,
        status=ComplianceCheckStatus(body.status),
    )
    result = RecordComplianceCheckUseCase().execute(cmd, uow)
    return _ok(result)


# ---------------------------------------------------------------------------
# Register all routers
# ---------------------------------------------------------------------------

api_v1.include_router(user_router)
api_v1.include_router(workflow_router)
api_v1.include_router(project_router)
api_v1.include_router(stage_router)
api_v1.include_router(evidence_router)
api_v1.include_router(approval_router)
api_v1.include_router(audit_router)
api_v1.include_router(dashboard_router)
api_v1.include_router(roadmap_router)
api_v1.include_router(activity_router)

app.include_router(api_v1)


# ===========================================================================
# HEALTH CHECK
# ===========================================================================

@app.get("/health", tags=["Health"], summary="Service health check")
def health():
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# MCP Server — exposes all API routes as MCP tools
# Accessible at: http://localhost:8000/mcp
# ---------------------------------------------------------------------------
if SETTINGS.mcp_enabled:
    mcp = FastApiMCP(app)
    mcp.mount()


# ===========================================================================
# OPENAPI CUSTOMISATION — tag order and descriptions
# ===========================================================================

tags_metadata = [
    {
        "name": "Health",
        "description": "Liveness probe.",
    },
    {
        "name": "Users",
        "description": "Seeded reference users who review, approve and own projects.",
    },
    {
        "name": "Workflow",
        "description": (
            "The fixed seven-stage review workflow, with each stage's required "
            "approvers, required evidence categories and estimated duration."
        ),
    },
    {
        "name": "Projects",
        "description": (
            "AI projects under compliance review.  Projects start as drafts at the "
            "Initial Assessment stage and are never deleted."
        ),
    },
    {
        "name": "Stage Workflow",
        "description": (
            "Advance or revert a project's stage.  With STRICT_STAGE_GATES enabled, "
            "advancing requires every approval and verified evidence item the "
            "current stage asks for."
        ),
    },
    {
        "name": "Evidence",
        "description": "Upload evidence and verify it as a separate step.",
    },
    {
        "name": "Approvals",
        "description": "Per-stage approval requests, each decided exactly once.",
    },
    {
        "name": "Audit Trail",
        "description": "Append-only history of every action taken on a project.",
    },
    {
        "name": "Dashboard",
        "description": "Totals, active and pending counts, monthly completions, stage histogram.",
    },
    {
        "name": "Roadmaps",
        "description": (
            "Generate a gated compliance roadmap (gates, checkpoints, resources, "
            "budget, risks and assumptions) from a free-text description."
        ),
    },
    {
        "name": "Activity Log",
        "description": (
            "Cross-project activity from monitoring checklists, privacy checkpoints, "
            "compliance checks, the chat panel and workflow events."
        ),
    },
]

app.openapi_tags = tags_metadata
