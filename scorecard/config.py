"""Configuration utilities for the scorecard service.

This module loads application configuration with the following rules:
- Primary source: `scorecard_config.json` at the project root.
- Overrides: environment variables, then optional text files under `config/`.
- Validation: Pydantic models enforce required fields and value constraints.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError as PydanticValidationError, field_validator


CONFIG_DIR = Path("config")
ROOT_CONFIG = Path("scorecard_config.json")
logger = logging.getLogger(__name__)


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


class DatabaseConfig(BaseModel):
    dsn: str

    @field_validator("dsn")
    @classmethod
    def dsn_must_be_non_empty(cls, v: str) -> str:
        if not isinstance(v, str) or not v.strip():
            raise ValueError("database.dsn must be a non-empty string")
        return v


class FlowConfig(BaseModel):
    endowed_progress: int = Field(default=8, ge=0, lt=100)
    auto_advance_ms: int = Field(default=600, ge=0)
    interstitial_ms: int = Field(default=2200, ge=0)
    next_lock_ms: int = Field(default=350, ge=0)


class PersistenceConfig(BaseModel):
    answer_store: str = "sql"
    retry_attempts: int = Field(default=3, ge=0)
    retry_base_ms: int = Field(default=500, ge=0)

    @field_validator("answer_store")
    @classmethod
    def store_must_be_allowed(cls, v: str) -> str:
        allowed = {"sql", "memory"}
        if v not in allowed:
            raise ValueError(f"persistence.answer_store must be one of {sorted(allowed)}")
        return v


class BenchmarkConfig(BaseModel):
    min_sample_size: int = Field(default=10, ge=0)


class CsvConfig(BaseModel):
    export_include_header: bool = Field(default=True)


class AppConfig(BaseModel):
    database: DatabaseConfig
    flow: FlowConfig = Field(default_factory=FlowConfig)
    persistence: PersistenceConfig = Field(default_factory=PersistenceConfig)
    benchmarks: BenchmarkConfig = Field(default_factory=BenchmarkConfig)
    csv: CsvConfig = Field(default_factory=CsvConfig)


def _read_json_file(path: Path) -> dict:
    try:
        if path.exists():
            return json.loads(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.error("Failed to read JSON config %s: %s", path, e)
    return {}


def load_config() -> AppConfig:
    """Load configuration with validation.

    Precedence (highest first):
    1) Environment variables
    2) Text files in `config/` (optional)
    3) scorecard_config.json at project root (primary base)
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

    def _setting(env_key: str, file_key: str, base_path: str, default: str) -> str:
        return str(_env(env_key) or _read_config_file(file_key) or _base(base_path, default)).strip()

    dsn = (
        _env("TEST_DATABASE_URL")
        or _env("DATABASE_URL")
        or _read_config_file("database.url")
        or _base("database.dsn")
        or "sqlite+pysqlite:///:memory:"
    )

    try:
        cfg = AppConfig(
            database=DatabaseConfig(dsn=dsn),
            flow=FlowConfig(
                endowed_progress=int(_setting("FLOW_ENDOWED_PROGRESS", "flow.endowed_progress", "flow.endowed_progress", "8")),
                auto_advance_ms=int(_setting("FLOW_AUTO_ADVANCE_MS", "flow.auto_advance_ms", "flow.auto_advance_ms", "600")),
                interstitial_ms=int(_setting("FLOW_INTERSTITIAL_MS", "flow.interstitial_ms", "flow.interstitial_ms", "2200")),
                next_lock_ms=int(_setting("FLOW_NEXT_LOCK_MS", "flow.next_lock_ms", "flow.next_lock_ms", "350")),
            ),
            persistence=PersistenceConfig(
                answer_store=_setting("ANSWER_STORE", "persistence.answer_store", "persistence.answer_store", "sql"),
                retry_attempts=int(_setting("ANSWER_RETRY_ATTEMPTS", "persistence.retry_attempts", "persistence.retry_attempts", "3")),
                retry_base_ms=int(_setting("ANSWER_RETRY_BASE_MS", "persistence.retry_base_ms", "persistence.retry_base_ms", "500")),
            ),
            benchmarks=BenchmarkConfig(
                min_sample_size=int(_setting("BENCHMARK_MIN_SAMPLE", "benchmarks.min_sample_size", "benchmarks.min_sample_size", "10")),
            ),
            csv=CsvConfig(
                export_include_header=_setting(
                    "CSV_EXPORT_INCLUDE_HEADER", "csv.export.include_header", "csv.export_include_header", "true"
                ).lower()
                == "true",
            ),
        )
        return cfg
    except (PydanticValidationError, ValueError) as e:
        logger.error("Invalid application configuration: %s", e)
        raise


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "FlowConfig",
    "PersistenceConfig",
    "BenchmarkConfig",
    "CsvConfig",
    "load_config",
]
