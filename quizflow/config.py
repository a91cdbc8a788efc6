"""Configuration utilities for the quiz service and quiz client.

This module loads application configuration with the following rules:
- Primary source: `quizflow_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("quizflow_config.json")
DEFAULT_ALLOWED_UPLOAD_TYPES = ["image/jpeg", "image/jpg", "image/png", "image/webp"]
logger = logging.getLogger(__name__)


def _read_config_file(rel_path: str) -> Optional[str]:
    path = CONFIG_DIR / rel_path
    try:
        if path.exists():
            return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("config_override_unreadable path=%s error=%s", path, e)
        return None
    return None


def _env(key: str, default: Optional[str] = None) -> Optional[str]:
    return os.environ.get(key, default)


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class UploadsConfig(BaseModel):
    directory: str = "public/uploads"
    url_prefix: str = "/uploads/"
    allowed_types: List[str] = Field(default_factory=lambda: list(DEFAULT_ALLOWED_UPLOAD_TYPES))

    @field_validator("url_prefix")
    @classmethod
    def prefix_slashes(cls, v: str) -> str:
        v = "/" + v.strip("/") + "/"
        return v


class ClientConfig(BaseModel):
    api_base_url: str = "http://localhost:8000"
    timeout_seconds: float = Field(default=10.0, gt=0)
    storage_dir: str = ".quizflow"
    storage_namespace: str = "quizflow"
    snapshot_max_age_days: int = Field(default=10, gt=0)


class AppConfig(BaseModel):
    database: DatabaseConfig
    uploads: UploadsConfig
    client: ClientConfig


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:  # pragma: no cover
        logger.error("config_json_unreadable path=%s error=%s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) quizflow_config.json at project root (primary base)
    4) Safe defaults for development
    """

    base = _read_json_file(ROOT_CONFIG)

    def _base(path: str, default: Optional[str] = None) -> Optional[str]:
        cur: object = base
        for key in path.split("."):
            if not isinstance(cur, dict) or key not in cur:
                return default
            cur = cur[key]
        return str(cur) if cur is not None else default

    def _pick(env_key: str, file_key: str, base_key: str, default: Optional[str] = None) -> Optional[str]:
        return _env(env_key) or _read_config_file(file_key) or _base(base_key, default)

    dsn = _pick("DATABASE_URL", "database.url", "database.dsn", "sqlite+pysqlite:///:memory:")

    uploads_dir = _pick("QUIZ_UPLOADS_DIR", "uploads.directory", "uploads.directory", "public/uploads")
    url_prefix = _pick("QUIZ_UPLOADS_URL_PREFIX", "uploads.url_prefix", "uploads.url_prefix", "/uploads/")
    allowed_text = _pick("QUIZ_UPLOAD_TYPES", "uploads.allowed_types", "uploads.allowed_types")
    allowed = (
        [t.strip() for t in str(allowed_text).strip("[]").replace("'", "").split(",") if t.strip()]
        if allowed_text
        else list(DEFAULT_ALLOWED_UPLOAD_TYPES)
    )

    api_base_url = _pick("QUIZ_API_BASE_URL", "client.api_base_url", "client.api_base_url", "http://localhost:8000")
    timeout_text = _pick("QUIZ_API_TIMEOUT_SECONDS", "client.timeout_seconds", "client.timeout_seconds", "10")
    storage_dir = _pick("QUIZ_STORAGE_DIR", "client.storage_dir", "client.storage_dir", ".quizflow")
    namespace = _pick("QUIZ_STORAGE_NAMESPACE", "client.storage_namespace", "client.storage_namespace", "quizflow")
    max_age_text = _pick(
        "QUIZ_SNAPSHOT_MAX_AGE_DAYS", "client.snapshot_max_age_days", "client.snapshot_max_age_days", "10"
    )

    try:
        return AppConfig(
            database=DatabaseConfig(dsn=dsn),
            uploads=UploadsConfig(directory=uploads_dir, url_prefix=url_prefix, allowed_types=allowed),
            client=ClientConfig(
                api_base_url=api_base_url,
                timeout_seconds=float(str(timeout_text).strip()),
                storage_dir=storage_dir,
                storage_namespace=namespace,
                snapshot_max_age_days=int(str(max_age_text).strip()),
            ),
        )
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "UploadsConfig",
    "ClientConfig",
    "load_config",
]
