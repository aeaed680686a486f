"""
TabCaption Configuration — typed options with change notification, and YAML loading.

Usage:
    from tabcaption.engine.config import Options, load_config

    config = load_config("tabcaption.yaml")
    options = Options.from_model(config.options)
    options.template_changed.connect(on_template_changed)
    options.template = "$(Filename)"
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from tabcaption.engine.errors import ConfigError
from tabcaption.engine.events import Signal

DEFAULT_TEMPLATE = "$(ProjectName ':')$(FolderPath)$(Filename)"

MIN_LOGGING_LEVEL = 0
MAX_LOGGING_LEVEL = 4

DEFAULT_MAX_FAILURES = 5
DEFAULT_RETRY_DELAY_MS = 2000


# ---------------------------------------------------------------------------
# Pydantic models for tabcaption.yaml
# ---------------------------------------------------------------------------

class OptionsModel(BaseModel):
    """The six user options, normalized."""
    enabled: bool = True
    template: str = DEFAULT_TEMPLATE
    ignore_builtin_projects: bool = True
    ignore_single_project: bool = True
    logging: bool = False
    logging_level: int = 2

    @field_validator("template")
    @classmethod
    def default_empty_template(cls, v: str) -> str:
        return v if v else DEFAULT_TEMPLATE

    @field_validator("logging_level")
    @classmethod
    def clamp_logging_level(cls, v: int) -> int:
        return max(MIN_LOGGING_LEVEL, min(MAX_LOGGING_LEVEL, v))


class SyncConfig(BaseModel):
    max_failures: int = DEFAULT_MAX_FAILURES
    retry_delay_ms: int = DEFAULT_RETRY_DELAY_MS

    @field_validator("max_failures", "retry_delay_ms")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"must be at least 1, got {v}")
        return v


class TabCaptionConfig(BaseModel):
    """Root model for tabcaption.yaml."""
    options: OptionsModel = OptionsModel()
    sync: SyncConfig = SyncConfig()


# ---------------------------------------------------------------------------
# Options — live, observable option values
# ---------------------------------------------------------------------------

class Options:
    """
    Mutable option values with one Signal per field.

    Every setter normalizes the value through OptionsModel (empty template
    becomes the default, logging_level is clamped to [0, 4]) and emits the
    field's signal only if the normalized value differs from the current
    one. The catch-all `changed` signal receives the field name.
    """

    FIELDS: Tuple[str, ...] = (
        "enabled",
        "template",
        "ignore_builtin_projects",
        "ignore_single_project",
        "logging",
        "logging_level",
    )

    def __init__(self, model: Optional[OptionsModel] = None):
        self._model = model or OptionsModel()

        self.enabled_changed = Signal("enabled_changed")
        self.template_changed = Signal("template_changed")
        self.ignore_builtin_projects_changed = Signal("ignore_builtin_projects_changed")
        self.ignore_single_project_changed = Signal("ignore_single_project_changed")
        self.logging_changed = Signal("logging_changed")
        self.logging_level_changed = Signal("logging_level_changed")
        self.changed = Signal("changed")

    @classmethod
    def from_model(cls, model: OptionsModel) -> "Options":
        return cls(model.model_copy())

    def snapshot(self) -> OptionsModel:
        """Return a copy of the current values."""
        return self._model.model_copy()

    def update(self, **fields: Any) -> None:
        """Apply several fields in the order given; each emits as usual."""
        for name, value in fields.items():
            if name not in self.FIELDS:
                raise ConfigError(f"Unknown option: {name}", option=name)
            setattr(self, name, value)

    # -- fields --------------------------------------------------------------

    @property
    def enabled(self) -> bool:
        return self._model.enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._set("enabled", value)

    @property
    def template(self) -> str:
        return self._model.template

    @template.setter
    def template(self, value: str) -> None:
        self._set("template", value)

    @property
    def ignore_builtin_projects(self) -> bool:
        return self._model.ignore_builtin_projects

    @ignore_builtin_projects.setter
    def ignore_builtin_projects(self, value: bool) -> None:
        self._set("ignore_builtin_projects", value)

    @property
    def ignore_single_project(self) -> bool:
        return self._model.ignore_single_project

    @ignore_single_project.setter
    def ignore_single_project(self, value: bool) -> None:
        self._set("ignore_single_project", value)

    @property
    def logging(self) -> bool:
        return self._model.logging

    @logging.setter
    def logging(self, value: bool) -> None:
        self._set("logging", value)

    @property
    def logging_level(self) -> int:
        return self._model.logging_level

    @logging_level.setter
    def logging_level(self, value: int) -> None:
        self._set("logging_level", value)

    def _set(self, field: str, value: Any) -> None:
        data = self._model.model_dump()
        data[field] = value
        try:
            model = OptionsModel(**data)
        except ValidationError as e:
            raise ConfigError(
                f"Invalid value for option '{field}': {value!r}",
                option=field,
                validation_errors=e.errors(),
            ) from e

        if getattr(model, field) == getattr(self._model, field):
            return

        self._model = model
        getattr(self, f"{field}_changed").emit()
        self.changed.emit(field)

    def __repr__(self) -> str:
        fields = ", ".join(f"{f}={getattr(self, f)!r}" for f in self.FIELDS)
        return f"Options({fields})"


# ---------------------------------------------------------------------------
# Config Loading
# ---------------------------------------------------------------------------

def load_config(config_path: Optional[str] = None) -> TabCaptionConfig:
    """
    Load and validate tabcaption.yaml.

    Args:
        config_path: Path to the YAML file. If None or missing, defaults are used.

    Returns:
        Validated TabCaptionConfig instance.
    """
    if config_path is None:
        return TabCaptionConfig()

    path = Path(config_path)
    if not path.exists():
        return TabCaptionConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Could not parse {path}: {e}", config_path=str(path)) from e

    if not isinstance(raw, dict):
        raise ConfigError(
            f"Top level of {path} must be a mapping", config_path=str(path),
        )

    config_data: Dict[str, Any] = {
        "options": raw.get("options") or {},
        "sync": raw.get("sync") or {},
    }

    try:
        return TabCaptionConfig(**config_data)
    except ValidationError as e:
        raise ConfigError(
            f"Invalid configuration in {path}",
            config_path=str(path),
            validation_errors=e.errors(),
        ) from e
