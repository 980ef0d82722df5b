"""
infrastructure.py

In-memory implementation of all repository interfaces and the Unit of Work.

This is a self-contained backend that stores everything in plain Python
dicts keyed by UUID.  It is intentionally simple — suitable for local
development, demos and integration testing without a real database.
Reference users are seeded from the catalog when a database is created;
seed_demo_projects() optionally adds two sample projects.

Writes to one project are serialised with a per-project threading.Lock,
handed out by InMemoryUnitOfWork.project_lock().  Stored records are frozen
dataclasses, so repositories return them directly without copying.

To swap in a real database later, implement the same Abstract* interfaces
from application.py and override get_uow() in api.py:

    app.dependency_overrides[get_uow] = lambda: SqlAlchemyUnitOfWork(session)
"""

from __future__ import annotations

import contextlib
import threading
import uuid
from typing import Dict, Iterable, Iterator, List, Optional

from application import (
    AbstractActivityLogRepository,
    AbstractProjectRepository,
    AbstractRoadmapRepository,
    AbstractUnitOfWork,
    AbstractUserRepository,
)
from catalog import (
    DAVID_KIM_ID,
    EMILY_RODRIGUEZ_ID,
    MIKE_CHEN_ID,
    REFERENCE_USERS,
    SARAH_JOHNSON_ID,
)
from model import (
    ActivityLogEntry,
    EvidenceType,
    Priority,
    Project,
    ProjectStatus,
    RoadmapPlan,
    User,
)
from service import WorkflowService


# ---------------------------------------------------------------------------
# Generic in-memory store
# ---------------------------------------------------------------------------

class _Store(dict):
    """A plain dict with typed fetch/put helpers."""

    def fetch(self, key: uuid.UUID):
        return self.get(key)

    def put(self, obj) -> None:
        self[obj.id] = obj

    def all(self) -> list:
        return list(self.values())


# ---------------------------------------------------------------------------
# Shared in-memory database (module-level singleton)
# Persists for the lifetime of the process — restarting uvicorn resets it.
# ---------------------------------------------------------------------------

class InMemoryDatabase:
    def __init__(self, users: Iterable[User] = REFERENCE_USERS):
        self.users = _Store()
        self.projects = _Store()
        self.roadmaps = _Store()
        self.activity_log: List[ActivityLogEntry] = []
        self._project_locks: Dict[uuid.UUID, threading.Lock] = {}
        self.activity_lock = threading.Lock()
        self._locks_guard = threading.Lock()
        for user in users:
            self.users.put(user)

    def lock_for(self, project_id: uuid.UUID) -> threading.Lock:
        with self._locks_guard:
            lock = self._project_locks.get(project_id)
            if lock is None:
                lock = self._project_locks[project_id] = threading.Lock()
            return lock


_db = InMemoryDatabase()


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------

class InMemoryUserRepository(AbstractUserRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, user_id):           return self._s.fetch(user_id)
    def list_all(self):               return self._s.all()


class InMemoryProjectRepository(AbstractProjectRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, project_id):        return self._s.fetch(project_id)
    def list_all(self):               return self._s.all()
    def save(self, project: Project): self._s.put(project)


class InMemoryRoadmapRepository(AbstractRoadmapRepository):
    def __init__(self, store: _Store): self._s = store
    def get(self, plan_id):           return self._s.fetch(plan_id)
    def list_all(self):               return self._s.all()
    def save(self, plan: RoadmapPlan): self._s.put(plan)


class InMemoryActivityLogRepository(AbstractActivityLogRepository):
    def __init__(self, entries: List[ActivityLogEntry], lock: threading.Lock):
        self._entries = entries
        self._lock = lock

    def append(self, entry: ActivityLogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def list_all(self) -> List[ActivityLogEntry]:
        with self._lock:
            return list(self._entries)


# ---------------------------------------------------------------------------
# Unit of Work
# ---------------------------------------------------------------------------

class InMemoryUnitOfWork(AbstractUnitOfWork):
    """
    Wraps all in-memory repositories.  commit() and rollback() are no-ops
    because dict mutations are immediate — there is no transaction to manage.
    In a real SQL implementation, commit() would call session.commit().
    """

    def __init__(self, db: InMemoryDatabase = _db):
        self._db = db
        self.users        = InMemoryUserRepository(db.users)
        self.projects     = InMemoryProjectRepository(db.projects)
        self.roadmaps     = InMemoryRoadmapRepository(db.roadmaps)
        self.activity_log = InMemoryActivityLogRepository(db.activity_log, db.activity_lock)

    def commit(self)   -> None: pass   # no-op for in-memory
    def rollback(self) -> None: pass   # no-op for in-memory

    @contextlib.contextmanager
    def project_lock(self, project_id: uuid.UUID) -> Iterator[None]:
        with self._db.lock_for(project_id):
            yield


# ---------------------------------------------------------------------------
# Demo data
# ---------------------------------------------------------------------------

def seed_demo_projects(db: InMemoryDatabase, workflow: Optional[WorkflowService] = None) -> List[Project]:
    """
    Store two sample projects so a fresh server has something on the dashboard.

    Both are built through WorkflowService, so their evidence, approvals and
    audit trails look exactly like those of projects created over the API.
    """
    workflow = workflow or WorkflowService()

    bot = workflow.create_project(
        name="AI-Powered Customer Service Bot",
        description="Implementation of an AI chatbot for customer service automation",
        created_by=MIKE_CHEN_ID,
        priority=Priority.HIGH,
        tags=["AI", "Customer Service", "Automation"],
        assigned_users=[MIKE_CHEN_ID, SARAH_JOHNSON_ID],
        required_users=[SARAH_JOHNSON_ID, EMILY_RODRIGUEZ_ID],
    )
    bot, scope = workflow.add_evidence(
        bot, MIKE_CHEN_ID, EvidenceType.DOCUMENT, "Project Scope Document",
        description="Detailed project scope and requirements", category="project_scope",
    )
    bot, _ = workflow.verify_evidence(bot, scope.id, EMILY_RODRIGUEZ_ID)
    bot = _approve(workflow, bot, EMILY_RODRIGUEZ_ID)
    bot = workflow.advance_stage(bot, EMILY_RODRIGUEZ_ID).project
    bot = workflow.change_status(bot, ProjectStatus.IN_REVIEW, EMILY_RODRIGUEZ_ID)

    platform = workflow.create_project(
        name="Data Analytics Platform",
        description="Enterprise data analytics platform with ML capabilities",
        created_by=MIKE_CHEN_ID,
        priority=Priority.CRITICAL,
        tags=["Analytics", "ML", "Data"],
        assigned_users=[MIKE_CHEN_ID, DAVID_KIM_ID],
        required_users=[SARAH_JOHNSON_ID, EMILY_RODRIGUEZ_ID, DAVID_KIM_ID],
    )
    platform, architecture = workflow.add_evidence(
        platform, MIKE_CHEN_ID, EvidenceType.DOCUMENT, "Technical Architecture",
        description="Technical architecture and security assessment", category="technical_assessment",
    )
    platform, _ = workflow.verify_evidence(platform, architecture.id, EMILY_RODRIGUEZ_ID)
    for approver in (EMILY_RODRIGUEZ_ID, SARAH_JOHNSON_ID, MIKE_CHEN_ID):
        platform = _approve(workflow, platform, approver)
        platform = workflow.advance_stage(platform, approver).project
    platform = workflow.change_status(platform, ProjectStatus.IN_REVIEW, MIKE_CHEN_ID)
    platform = workflow.change_status(platform, ProjectStatus.PENDING_APPROVAL, MIKE_CHEN_ID)

    projects = [bot, platform]
    for project in projects:
        db.projects.put(project)
    return projects


def _approve(workflow: WorkflowService, project: Project, approver_id: uuid.UUID) -> Project:
    """Request and grant an approval for the project's current stage."""
    project, approval = workflow.request_approval(project, approver_id, MIKE_CHEN_ID)
    project, _ = workflow.record_decision(project, approval.id, True, approver_id)
    return project
