"""issuegraph configuration: Pydantic model, TOML load, and environment overlays."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, SecretStr, field_validator, model_validator

from issuegraph.core.constants import (
    CONFIG_FILENAME,
    DEFAULT_DEPENDENCIES_DEEPNESS,
    DEFAULT_HTTP_TIMEOUT_SECONDS,
    _default_config_dir,
)
from issuegraph.core.exceptions import ConfigError, ConfigNotFoundError


def issuegraph_dir() -> Path:
    """Return the issuegraph config directory (not created)."""
    return _default_config_dir()


# ---------------------------------------------------------------------------
# Instance sub-models
# ---------------------------------------------------------------------------


class SecretConfig(BaseModel):
    """An inline secret or a command whose stdout is the secret."""

    model_config = {"extra": "forbid"}

    value: SecretStr | None = None
    command: str | None = None

    @model_validator(mode="after")
    def exactly_one_source(self) -> SecretConfig:
        if (self.value is None) == (self.command is None):
            raise ValueError("A secret needs exactly one of 'value' or 'command'")
        return self


class AccessConfig(BaseModel):
    kind: Literal["token", "jsessionid"] = "token"
    secret: SecretConfig


class CustomFieldsConfig(BaseModel):
    """Provider field names (e.g. ``customfield_10008``) for the well-known fields."""

    reason: str | None = None
    epic_link: str | None = None
    epic_name: str | None = None
    planned_start: str | None = None
    planned_end: str | None = None
    story_points: str | None = None


class InstanceConfig(BaseModel):
    """One tracker server endpoint."""

    tracker: str = "jira"
    base_url: str
    access: AccessConfig
    custom_fields: CustomFieldsConfig = Field(default_factory=CustomFieldsConfig)
    relations_map: list[tuple[str, str]] = Field(default_factory=list)
    timeout_seconds: float = DEFAULT_HTTP_TIMEOUT_SECONDS

    @field_validator("base_url")
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"base_url must be an http(s) URL, got {v!r}")
        return v.rstrip("/")

    @field_validator("tracker")
    @classmethod
    def validate_tracker(cls, v: str) -> str:
        if v != "jira":
            raise ValueError(f"Unknown tracker {v!r}. Supported: jira")
        return v

    @field_validator("timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if not (1.0 <= v <= 600.0):
            raise ValueError("timeout_seconds must be between 1 and 600")
        return v


# ---------------------------------------------------------------------------
# Report sub-models
# ---------------------------------------------------------------------------


class QueryConfig(BaseModel):
    instance: str
    jql: str


class RelationSubjectConfig(BaseModel):
    instance: str
    key: str


class ForeignRelationConfig(BaseModel):
    """A relation declared by hand, typically between two instances."""

    model_config = {"populate_by_name": True}

    from_: RelationSubjectConfig = Field(alias="from")
    to: RelationSubjectConfig
    kind: str


class ReportConfig(BaseModel):
    queries: list[QueryConfig] = Field(min_length=1)
    foreign_relations: list[ForeignRelationConfig] = Field(default_factory=list)
    dependencies_deepness: int = DEFAULT_DEPENDENCIES_DEEPNESS
    ignore_fetch_errors: bool = False

    @field_validator("dependencies_deepness")
    @classmethod
    def validate_deepness(cls, v: int) -> int:
        if v < 0:
            raise ValueError("dependencies_deepness must not be negative")
        return v


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "text"  # "text" | "json"

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR"}
        if v.upper() not in allowed:
            raise ValueError(f"Log level must be one of: {allowed}")
        return v.upper()


# ---------------------------------------------------------------------------
# Root config
# ---------------------------------------------------------------------------


class IssueGraphConfig(BaseModel):
    """Root issuegraph configuration model."""

    default_instance: str = ""
    instances: dict[str, InstanceConfig] = Field(min_length=1)
    reports: dict[str, ReportConfig] = Field(default_factory=dict)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def instance_references_exist(self) -> IssueGraphConfig:
        if not self.default_instance:
            self.default_instance = next(iter(self.instances))

        def check(name: str, where: str) -> None:
            if name not in self.instances:
                declared = ", ".join(sorted(self.instances))
                raise ValueError(f"{where} refers to unknown instance {name!r} ({declared})")

        check(self.default_instance, "default_instance")
        for report_name, report in self.reports.items():
            for query in report.queries:
                check(query.instance, f"report {report_name!r} query")
            for relation in report.foreign_relations:
                check(relation.from_.instance, f"report {report_name!r} foreign relation")
                check(relation.to.instance, f"report {report_name!r} foreign relation")
        return self

    def report(self, name: str) -> ReportConfig:
        if name not in self.reports:
            available = ", ".join(sorted(self.reports)) or "(none)"
            raise ConfigError(f"Unknown report {name!r}. Available: {available}")
        return self.reports[name]


# ---------------------------------------------------------------------------
# Load
# ---------------------------------------------------------------------------


def _config_file_path() -> Path:
    if env_path := os.environ.get("ISSUEGRAPH_CONFIG"):
        return Path(env_path)
    return issuegraph_dir() / CONFIG_FILENAME


def load_config(path: Path | str | None = None) -> IssueGraphConfig:
    """
    Load IssueGraphConfig from a TOML file, overlaid with environment variables.

    Priority (highest to lowest):
      1. Environment variables (ISSUEGRAPH_*)
      2. Config file (platform config dir / config.toml, or ISSUEGRAPH_CONFIG)
    """
    import tomllib

    cfg_path = Path(path) if path is not None else _config_file_path()

    if not cfg_path.exists():
        raise ConfigNotFoundError(f"Config file not found: {cfg_path}")

    try:
        with open(cfg_path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as exc:
        raise ConfigError(f"Cannot read config file {cfg_path}: {exc}") from exc

    _apply_env_overrides(data)

    try:
        return IssueGraphConfig.model_validate(data)
    except ValueError as exc:
        raise ConfigError(f"Invalid config at {cfg_path}: {exc}") from exc


def _apply_env_overrides(data: dict[str, Any]) -> None:
    """Overlay ISSUEGRAPH_* environment variables onto parsed TOML."""
    if level := os.environ.get("ISSUEGRAPH_LOG_LEVEL", ""):
        data.setdefault("logging", {})["level"] = level
    if instance := os.environ.get("ISSUEGRAPH_DEFAULT_INSTANCE", ""):
        data["default_instance"] = instance
    if timeout := os.environ.get("ISSUEGRAPH_HTTP_TIMEOUT", ""):
        try:
            seconds = float(timeout)
        except ValueError as exc:
            raise ConfigError(f"ISSUEGRAPH_HTTP_TIMEOUT is not a number: {timeout!r}") from exc
        for instance_data in data.get("instances", {}).values():
            instance_data["timeout_seconds"] = seconds
