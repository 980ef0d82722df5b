"""
Shared pytest fixtures for the AI Compliance Gate test suite.

Provides:
    - db: fresh InMemoryDatabase seeded with the reference users
    - uow: unit of work bound to that database
    - workflow: WorkflowService over the reference users
    - project: a draft project created by Sarah Johnson
    - client: TestClient whose get_uow dependency points at `db`
    - strict_client: same, with STRICT_STAGE_GATES turned on
"""

import pytest
from fastapi.testclient import TestClient

from api import app, get_settings, get_uow
from catalog import MIKE_CHEN_ID, SARAH_JOHNSON_ID
from config import Settings
from infrastructure import InMemoryDatabase, InMemoryUnitOfWork
from model import Priority
from service import WorkflowService


@pytest.fixture
def db():
    return InMemoryDatabase()


@pytest.fixture
def uow(db):
    return InMemoryUnitOfWork(db)


@pytest.fixture
def workflow():
    return WorkflowService()


@pytest.fixture
def project(workflow):
    return workflow.create_project(
        name="Customer Support Chatbot",
        description="LLM assistant answering billing questions",
        created_by=SARAH_JOHNSON_ID,
        priority=Priority.HIGH,
        tags=["chatbot", "llm"],
        assigned_users=[SARAH_JOHNSON_ID, MIKE_CHEN_ID],
    )


@pytest.fixture
def client(db):
    app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork(db)
    app.dependency_overrides[get_settings] = lambda: Settings()
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def strict_client(db):
    app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork(db)
    app.dependency_overrides[get_settings] = lambda: Settings(strict_stage_gates=True)
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
