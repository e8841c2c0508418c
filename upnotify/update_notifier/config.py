from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator
from pydantic.alias_generators import to_camel

from upnotify.update_notifier.checker import DEFAULT_FETCH_TIMEOUT_SECONDS
from upnotify.update_notifier.staleness import DEFAULT_UPDATE_CHECK_INTERVAL_SECONDS


class Registry(StrEnum):
    PYPI = "pypi"
    NPM = "npm"


class PackageInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    version: str = Field(min_length=1)


class UpdateNotifierConfig(BaseModel):
    model_config = ConfigDict(
        frozen=True, alias_generator=to_camel, populate_by_name=True
    )

    cache_dir: Path
    pkg: PackageInfo
    update_check_interval: float = Field(
        default=DEFAULT_UPDATE_CHECK_INTERVAL_SECONDS, ge=0
    )
    registry: Registry = Registry.PYPI
    registry_url: str | None = None
    fetch_timeout: float = Field(default=DEFAULT_FETCH_TIMEOUT_SECONDS, gt=0)

    @field_validator("cache_dir")
    @classmethod
    def _cache_dir_must_be_a_directory(cls, value: Path) -> Path:
        value = value.expanduser()
        if value.exists() and not value.is_dir():
            raise ValueError(f"{value} exists and is not a directory")
        return value


class UpdateNotifierConfigError(Exception):
    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


def load_update_notifier_config(
    raw: Mapping[str, Any] | UpdateNotifierConfig,
) -> UpdateNotifierConfig:
    if isinstance(raw, UpdateNotifierConfig):
        return raw
    try:
        return UpdateNotifierConfig.model_validate(dict(raw))
    except ValidationError as exc:
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        raise UpdateNotifierConfigError(
            f"Invalid update notifier configuration: {details}"
        ) from exc
