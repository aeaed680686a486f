"""TabCaption Environment — host ports and the in-memory reference environment."""

from tabcaption.environment.memory import (  # noqa: F401
    MemoryDocument,
    MemoryProject,
    MemorySolution,
    MemoryTreeItem,
)
from tabcaption.environment.ports import Document, LogSink, Project, Solution, TreeItem  # noqa: F401

__all__ = [
    "Document",
    "LogSink",
    "Project",
    "Solution",
    "TreeItem",
    "MemoryDocument",
    "MemoryProject",
    "MemorySolution",
    "MemoryTreeItem",
]
