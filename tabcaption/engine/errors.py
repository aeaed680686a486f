"""
TabCaption Error Hierarchy — Structured exceptions for the caption engine.

Most runtime failures in the caption engine are *not* errors: unknown
variables expand to their own name, malformed template syntax is left
untouched and transient host failures feed the retry policy. The exceptions
below cover the remaining cases: bad configuration, registry misuse, host
adapters signalling a transient failure, and posting to a dead dispatcher.

Hierarchy:
    TabCaptionError
    ├── ConfigError                  — Invalid options / YAML config
    ├── EnvironmentUnavailableError  — Host not ready (raised by adapters)
    ├── VariableError                — Variable registry misuse
    └── DispatcherError              — Dispatcher not running
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional


class TabCaptionError(Exception):
    """
    Base error for all caption engine failures.
    Any keyword context is kept on the instance and serialized by to_dict().
    """

    def __init__(self, message: str, **context: Any):
        self.message = message
        self.error_type: str = self.__class__.__name__
        self.context: Dict[str, Any] = context
        self.timestamp: str = datetime.now(timezone.utc).isoformat()
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize error to a JSON-compatible dict for logging."""
        return {
            "error_type": self.error_type,
            "message": self.message,
            "timestamp": self.timestamp,
            "context": {k: str(v) for k, v in self.context.items()},
        }

    def to_json(self) -> str:
        """Serialize to JSON string."""
        return json.dumps(self.to_dict(), default=str)

    def __repr__(self) -> str:
        parts = [f"{self.error_type}: {self.message}"]
        for key, value in self.context.items():
            parts.append(f"{key}={value}")
        return " | ".join(parts)


class ConfigError(TabCaptionError):
    """Configuration error — invalid option values or an unreadable YAML file."""

    def __init__(self, message: str, **context: Any):
        self.config_path: Optional[str] = context.get("config_path")
        self.validation_errors: Optional[list] = context.get("validation_errors")
        super().__init__(message, **context)

    def to_dict(self) -> Dict[str, Any]:
        d = super().to_dict()
        d["config_path"] = self.config_path
        d["validation_errors"] = self.validation_errors
        return d


class EnvironmentUnavailableError(TabCaptionError):
    """
    The host environment could not answer right now, typically because a
    project is still loading. Adapters raise this from Solution.documents;
    the synchronizer treats it as a transient failure and retries.
    """
    pass


class VariableError(TabCaptionError):
    """Variable registry misuse — invalid or duplicate variable name."""

    def __init__(self, message: str, **context: Any):
        self.variable: Optional[str] = context.get("variable")
        super().__init__(message, **context)


class DispatcherError(TabCaptionError):
    """Work was posted to a dispatcher that is not running."""
    pass
