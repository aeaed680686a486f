"""
TabCaption Template Engine.

    from tabcaption.template import TemplateExpander, build_default_registry

    expander = TemplateExpander(build_default_registry(), options, solution)
    caption = expander.expand(document, "$(ProjectName ':')$(Filename)")
"""

from tabcaption.template.expander import TemplateExpander
from tabcaption.template.registry import (
    ExpansionContext,
    VariableDefinition,
    VariableRegistry,
)
from tabcaption.template.variables import (
    BUILTIN_VARIABLES,
    VARIABLE_NAMES,
    build_default_registry,
)

__all__ = [
    "TemplateExpander",
    "ExpansionContext",
    "VariableDefinition",
    "VariableRegistry",
    "BUILTIN_VARIABLES",
    "VARIABLE_NAMES",
    "build_default_registry",
]
