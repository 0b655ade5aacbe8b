"""Configuration utilities for the survey stepper service.

This module loads application configuration with the following rules:
- Primary source: `stepper_config.json` at the project root (optional).
- Overrides: optional text files under `config/`, then environment variables.
- Validation: Pydantic models enforce allowed values and constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_STEPPER_CONFIG = Path("stepper_config.json")
logger = logging.getLogger(__name__)

STORE_MEMORY = "memory"
STORE_SQL = "sql"

# Scope cleared by a step save with preserveOtherSteps=false
RESET_SCOPE_SESSION = "session"
RESET_SCOPE_STEP = "step"


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Failed to read override %s: %s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


def _truthy(value: object) -> bool:
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


class StorageConfig(BaseModel):
    backend: str = Field(default=STORE_MEMORY)

    @field_validator("backend")
    @classmethod
    def backend_must_be_known(cls, v: str) -> str:
        allowed = {STORE_MEMORY, STORE_SQL}
        if v not in allowed:
            raise ValueError(f"storage.backend must be one of {sorted(allowed)}")
        return v


class DatabaseConfig(BaseModel):
    dsn: str
    auto_migrate: bool = Field(default=True)

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class AnswersConfig(BaseModel):
    reset_scope: str = Field(default=RESET_SCOPE_SESSION)

    @field_validator("reset_scope")
    @classmethod
    def scope_must_be_allowed(cls, v: str) -> str:
        allowed = {RESET_SCOPE_SESSION, RESET_SCOPE_STEP}
        if v not in allowed:
            raise ValueError(f"answers.reset_scope must be one of {sorted(allowed)}")
        return v


class NavigationConfig(BaseModel):
    enforce_step_validation: bool = Field(default=False)


class ConcurrencyConfig(BaseModel):
    require_if_match: bool = Field(default=False)


class CorsConfig(BaseModel):
    allowed_origins: list[str] = Field(default_factory=lambda: ["*"])


class ClientConfig(BaseModel):
    base_url: str = Field(default="http://localhost:8000")
    timeout_seconds: float = Field(default=10.0, gt=0)


class AppConfig(BaseModel):
    storage: StorageConfig = Field(default_factory=StorageConfig)
    database: DatabaseConfig = Field(
        default_factory=lambda: DatabaseConfig(dsn="sqlite+pysqlite:///:memory:")
    )
    answers: AnswersConfig = Field(default_factory=AnswersConfig)
    navigation: NavigationConfig = Field(default_factory=NavigationConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)
    cors: CorsConfig = Field(default_factory=CorsConfig)
    client: ClientConfig = Field(default_factory=ClientConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:  # pragma: no cover - defensive
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) stepper_config.json at project root
    4) Defaults suitable for local development
    """

    base = _read_json_file(ROOT_STEPPER_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        if isinstance(cur, list):
            return ",".join(str(item) for item in cur)
        return str(cur) if cur is not None else default

    backend = (
        _env("SESSION_STORE_BACKEND") or _read_config_file("storage.backend") or _base("storage.backend", STORE_MEMORY)
    ).strip().lower()

    dsn = (
        _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )
    auto_migrate_text = (
        _env("AUTO_APPLY_MIGRATIONS") or _read_config_file("database.auto_migrate") or _base("database.auto_migrate", "true")
    )

    reset_scope = (
        _env("ANSWER_RESET_SCOPE") or _read_config_file("answers.reset_scope") or _base("answers.reset_scope", RESET_SCOPE_SESSION)
    ).strip().lower()

    enforce_text = (
        _env("ENFORCE_STEP_VALIDATION")
        or _read_config_file("navigation.enforce_step_validation")
        or _base("navigation.enforce_step_validation", "false")
    )
    require_if_match_text = (
        _env("REQUIRE_IF_MATCH")
        or _read_config_file("concurrency.require_if_match")
        or _base("concurrency.require_if_match", "false")
    )

    origins_text = _env("ALLOWED_ORIGINS") or _read_config_file("cors.allowed_origins") or _base("cors.allowed_origins", "*")
    origins = [o.strip() for o in str(origins_text).split(",") if o.strip()] or ["*"]

    client_url = _env("STEPPER_API_URL") or _read_config_file("client.base_url") or _base("client.base_url", "http://localhost:8000")
    client_timeout_text = (
        _env("STEPPER_API_TIMEOUT") or _read_config_file("client.timeout_seconds") or _base("client.timeout_seconds", "10")
    )

    try:
        cfg = AppConfig(
            storage=StorageConfig(backend=backend),
            database=DatabaseConfig(dsn=dsn, auto_migrate=_truthy(auto_migrate_text)),
            answers=AnswersConfig(reset_scope=reset_scope),
            navigation=NavigationConfig(enforce_step_validation=_truthy(enforce_text)),
            concurrency=ConcurrencyConfig(require_if_match=_truthy(require_if_match_text)),
            cors=CorsConfig(allowed_origins=origins),
            client=ClientConfig(base_url=str(client_url).rstrip("/"), timeout_seconds=float(str(client_timeout_text).strip())),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "StorageConfig",
    "DatabaseConfig",
    "AnswersConfig",
    "NavigationConfig",
    "ConcurrencyConfig",
    "CorsConfig",
    "ClientConfig",
    "STORE_MEMORY",
    "STORE_SQL",
    "RESET_SCOPE_SESSION",
    "RESET_SCOPE_STEP",
    "load_config",
]
