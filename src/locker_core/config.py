from __future__ import annotations

import json
import logging
from enum import StrEnum
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

DEFAULT_DATA_DIR = "data"

_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class HashScheme(StrEnum):
    ARGON2 = "argon2"
    SHA256 = "sha256"


class HasherConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    scheme: HashScheme = HashScheme.ARGON2
    time_cost: int = Field(default=3, ge=1)
    memory_cost_kib: int = Field(default=65_536, ge=8)
    parallelism: int = Field(default=4, ge=1)

    @field_validator("scheme", mode="before")
    @classmethod
    def normalize_scheme(cls, value: object) -> str:
        return str(value or "").strip().lower()


class LockerConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    data_dir: str = DEFAULT_DATA_DIR
    log_level: str = "INFO"
    hasher: HasherConfig = Field(default_factory=HasherConfig)

    @field_validator("data_dir")
    @classmethod
    def validate_data_dir(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("data_dir must not be empty")
        return normalized

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in _LOG_LEVELS:
            raise ValueError(f"Unknown log level: {value}")
        return normalized

    def apply_logging(self) -> None:
        logging.getLogger().setLevel(self.log_level)


def load_config(path: str | Path) -> LockerConfig:
    raw = Path(path).read_text(encoding="utf-8")
    payload = _parse_yaml_or_json(raw)
    try:
        return LockerConfig.model_validate(payload)
    except ValidationError as exc:
        raise ValueError(f"Invalid configuration: {exc}") from exc


def _parse_yaml_or_json(raw: str) -> dict[str, Any]:
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        try:
            parsed = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise ValueError(f"Configuration is neither JSON nor YAML: {exc}") from exc
    if parsed is None:
        return {}
    if not isinstance(parsed, dict):
        raise ValueError("Configuration root must be an object.")
    return parsed
