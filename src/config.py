"""
config.py

Runtime configuration for the AI Compliance Gate API.

Settings are read from environment variables once, at import, into the
frozen SETTINGS object.  Tests that need different values build their own
Settings instance and pass it explicitly.

Variables
---------
  COMPLIANCE_HOST        bind host for uvicorn            (127.0.0.1)
  COMPLIANCE_PORT        bind port for uvicorn            (8000)
  COMPLIANCE_RELOAD      uvicorn auto-reload              (false)
  LOG_LEVEL              root log level                   (INFO)
  STRICT_STAGE_GATES     refuse to advance a project until the stage's
                         approvals and verified evidence are in place (false)
  DEFAULT_ACTOR_ID       user id assumed when a request carries no
                         X-Actor-Id header                (Mike Chen)
  RECENT_ACTIVITY_LIMIT  default size of the recent-activity listing (50)
  CORS_ORIGINS           comma-separated allowed origins  (*)
  MCP_ENABLED            mount the MCP server at /mcp     (true)
  SEED_DEMO_DATA         store two sample projects at startup (false)
"""

from __future__ import annotations

import logging
import os
import uuid
from dataclasses import dataclass
from typing import Tuple

from catalog import MIKE_CHEN_ID


def _str_setting(name: str, default: str) -> str:
    return os.getenv(name, default)


def _int_setting(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}") from exc


def _bool_setting(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _uuid_setting(name: str, default: uuid.UUID) -> uuid.UUID:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return uuid.UUID(value.strip())
    except ValueError as exc:
        raise ValueError(f"Environment variable {name} must be a UUID, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    host: str = "127.0.0.1"
    port: int = 8000
    reload: bool = False
    log_level: str = "INFO"
    strict_stage_gates: bool = False
    default_actor_id: uuid.UUID = MIKE_CHEN_ID
    recent_activity_limit: int = 50
    cors_origins: Tuple[str, ...] = ("*",)
    mcp_enabled: bool = True
    seed_demo_data: bool = False


def load_settings() -> Settings:
    defaults = Settings()
    origins = _str_setting("CORS_ORIGINS", ",".join(defaults.cors_origins))
    return Settings(
        host=_str_setting("COMPLIANCE_HOST", defaults.host),
        port=_int_setting("COMPLIANCE_PORT", defaults.port),
        reload=_bool_setting("COMPLIANCE_RELOAD", defaults.reload),
        log_level=_str_setting("LOG_LEVEL", defaults.log_level).upper(),
        strict_stage_gates=_bool_setting("STRICT_STAGE_GATES", defaults.strict_stage_gates),
        default_actor_id=_uuid_setting("DEFAULT_ACTOR_ID", defaults.default_actor_id),
        recent_activity_limit=_int_setting("RECENT_ACTIVITY_LIMIT", defaults.recent_activity_limit),
        cors_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
        mcp_enabled=_bool_setting("MCP_ENABLED", defaults.mcp_enabled),
        seed_demo_data=_bool_setting("SEED_DEMO_DATA", defaults.seed_demo_data),
    )


def configure_logging(level: str) -> None:
    """Install a single stream handler on the root logger."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
    )


SETTINGS = load_settings()
