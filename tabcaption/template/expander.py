"""
TabCaption Template Expander — turns a template into a caption.

Template syntax:
    $(Name)              replaced by the variable's value
    $(Name 'text')       replaced by the value followed by text, or by
                         nothing at all if the value is empty

Names are [a-zA-Z]+ with optional whitespace around them. An unknown name
is replaced by the name itself so that typos show up in the caption.
Anything that is not a complete token ("$(word", "$(word1)") is left as is.

Expansion repeatedly replaces the leftmost token and rescans from the
start, so "$($(bad))" collapses to "bad". Text inserted by a known variable
(its value and quoted text) is never re-parsed: a token that starts or ends
inside it is skipped.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING, List, Optional, Tuple

from tabcaption.engine.logging import VARIABLES
from tabcaption.template.registry import ExpansionContext, VariableRegistry

if TYPE_CHECKING:
    from tabcaption.engine.config import Options
    from tabcaption.environment.ports import Document, Solution

logger = logging.getLogger("tabcaption.template.expander")

TOKEN = re.compile(r"\$\(\s*([a-zA-Z]+)\s*(?:'(.*?)')?\s*\)", re.DOTALL)

Span = Tuple[int, int]


class TemplateExpander:
    """
    Expands templates against documents.

    Usage:
        expander = TemplateExpander(build_default_registry(), options, solution)
        caption = expander.expand(document)                 # options.template
        caption = expander.expand(document, "$(Filename)")
    """

    def __init__(
        self,
        registry: VariableRegistry,
        options: "Options",
        solution: Optional["Solution"] = None,
    ):
        self.registry = registry
        self.options = options
        self.solution = solution

    def expand(self, document: "Document", template: Optional[str] = None) -> str:
        if template is None:
            template = self.options.template

        context = ExpansionContext(options=self.options, solution=self.solution)
        s = template
        protected: List[Span] = []

        logger.log(VARIABLES, f"making caption for {document.path} using template {template}")

        while True:
            m = self._find(s, protected)
            if m is None:
                break

            name = m.group(1)
            text = m.group(2) or ""
            definition = self.registry.resolve(name)

            if definition is not None:
                value = definition.handler(document, context)
                # don't append the text if the value was empty
                replacement = value + text if value else ""
                logger.log(VARIABLES, f"  . variable {name} replaced by '{replacement}'")
            else:
                replacement = name
                logger.log(VARIABLES, f"  . variable {name} not found")

            start, end = m.span()
            s = s[:start] + replacement + s[end:]
            protected = _shift(protected, start, end, len(replacement))

            if definition is not None and replacement:
                protected.append((start, start + len(replacement)))

        logger.log(VARIABLES, f"  . caption is now {s}")
        return s

    @staticmethod
    def _find(s: str, protected: List[Span]) -> Optional["re.Match[str]"]:
        """Leftmost token that does not start or end inside protected text."""
        pos = 0
        while True:
            m = TOKEN.search(s, pos)
            if m is None:
                return None
            if not _overlaps(m.start(), m.end(), protected):
                return m
            pos = m.start() + 1


def _overlaps(start: int, end: int, protected: List[Span]) -> bool:
    for a, b in protected:
        if a <= start < b or a < end <= b:
            return True
    return False


def _shift(protected: List[Span], start: int, end: int, length: int) -> List[Span]:
    """Move spans after a replacement of [start, end) by `length` characters."""
    delta = length - (end - start)
    shifted: List[Span] = []
    for a, b in protected:
        if b <= start:
            shifted.append((a, b))
        elif a >= end:
            shifted.append((a + delta, b + delta))
        # spans inside the replaced token are gone
    return shifted
