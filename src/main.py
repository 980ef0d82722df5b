"""
main.py

Entry point for the AI Compliance Gate API.

Wires the in-memory infrastructure into the FastAPI app, configures logging
from LOG_LEVEL and starts uvicorn with the host/port/reload settings from
config.py.

Usage
-----
    # Option 1 — run directly
    python main.py

    # Option 2 — run via uvicorn CLI (recommended for development)
    uvicorn main:app --reload --port 8000

    # Option 3 — strict stage gates on a custom port
    STRICT_STAGE_GATES=true COMPLIANCE_PORT=8080 python main.py

    # Option 4 — start with the two sample projects on the dashboard
    SEED_DEMO_DATA=true python main.py

Once running, open your browser at:
    http://localhost:8000/docs      ← Swagger UI  (try every endpoint interactively)
    http://localhost:8000/redoc     ← ReDoc
    http://localhost:8000/health    ← liveness check
    http://localhost:8000/mcp       ← MCP server (when MCP_ENABLED)

Quick-start walkthrough (use Swagger UI or curl)
-------------------------------------------------
1.  GET   /api/v1/users                          — pick a reference user id
2.  POST  /api/v1/projects                       — create a project
                                                   X-Actor-Id: <user-id>  (optional)
3.  POST  /api/v1/projects/{id}/evidence         — attach evidence with a category
4.  POST  /api/v1/projects/{id}/evidence/{eid}/verify — verify it
5.  POST  /api/v1/projects/{id}/approvals        — request an approval
6.  POST  /api/v1/projects/{id}/approvals/{aid}/decision — approve it
7.  GET   /api/v1/projects/{id}/stage            — check what is still missing
8.  POST  /api/v1/projects/{id}/advance          — move to the next stage
9.  GET   /api/v1/projects/{id}/audit            — review the audit trail
10. POST  /api/v1/roadmaps                       — generate a compliance roadmap
"""

import uvicorn

from api import app, get_uow
from config import SETTINGS, configure_logging
from infrastructure import InMemoryUnitOfWork, _db, seed_demo_projects


# ---------------------------------------------------------------------------
# Wire the concrete Unit of Work into the FastAPI dependency system.
# To swap databases, replace InMemoryUnitOfWork with your SQL implementation.
# ---------------------------------------------------------------------------

app.dependency_overrides[get_uow] = lambda: InMemoryUnitOfWork()

if SETTINGS.seed_demo_data:
    seed_demo_projects(_db)


if __name__ == "__main__":
    configure_logging(SETTINGS.log_level)
    uvicorn.run(
        "main:app",
        host=SETTINGS.host,
        port=SETTINGS.port,
        reload=SETTINGS.reload,
        log_level=SETTINGS.log_level.lower(),
    )
