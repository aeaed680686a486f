"""
TabCaption Variable Registry — named variables available to templates.

A variable is a function (document, context) -> str. The context carries
the live Options and the Solution so that variables such as ProjectName can
honour the ignore-* options; for a given context every variable is a pure
function of the document.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Dict, List, Optional

from tabcaption.engine.errors import VariableError

if TYPE_CHECKING:
    from tabcaption.engine.config import Options
    from tabcaption.environment.ports import Document, Solution

logger = logging.getLogger("tabcaption.template.registry")

VARIABLE_NAME = re.compile(r"^[a-zA-Z]+$")


@dataclass
class ExpansionContext:
    """What a variable may consult besides the document itself."""
    options: "Options"
    solution: Optional["Solution"] = None


VariableHandler = Callable[["Document", ExpansionContext], str]


@dataclass
class VariableDefinition:
    """A registered variable."""

    name: str                # e.g., "ProjectName"
    handler: VariableHandler
    description: str = ""


class VariableRegistry:
    """
    In-memory variable table keyed by exact (case-sensitive) name.

    Usage:
        registry = VariableRegistry()
        registry.register(VariableDefinition("Filename", filename))
        value = registry.resolve("Filename").handler(document, context)
    """

    def __init__(self) -> None:
        self._variables: Dict[str, VariableDefinition] = {}

    def register(self, definition: VariableDefinition, replace: bool = False) -> None:
        """Register a variable. Names must match [a-zA-Z]+ to be reachable from a template."""
        if not VARIABLE_NAME.match(definition.name):
            raise VariableError(
                f"Invalid variable name: {definition.name!r}",
                variable=definition.name,
            )
        if definition.name in self._variables and not replace:
            raise VariableError(
                f"Variable already registered: {definition.name}",
                variable=definition.name,
            )
        self._variables[definition.name] = definition
        logger.debug(f"Registered variable: {definition.name}")

    def unregister(self, name: str) -> None:
        """Remove a variable if present."""
        self._variables.pop(name, None)

    def resolve(self, name: str) -> Optional[VariableDefinition]:
        return self._variables.get(name)

    def contains(self, name: str) -> bool:
        return name in self._variables

    def names(self) -> List[str]:
        """Registered names, in registration order."""
        return list(self._variables.keys())

    def describe(self) -> Dict[str, str]:
        """Name → description, for settings pages and the CLI."""
        return {name: d.description for name, d in self._variables.items()}

    @property
    def count(self) -> int:
        return len(self._variables)

    def clear(self) -> None:
        self._variables.clear()
