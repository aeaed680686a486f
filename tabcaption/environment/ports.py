"""
TabCaption Environment Ports — what the engine needs from a host.

A host adapter (IDE plugin, test double, the in-memory environment) provides
objects satisfying these protocols. The engine only reads them and calls
set_caption() / reset_caption(); it never creates or destroys documents.
"""

from __future__ import annotations

from typing import List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Project(Protocol):
    """A project; built-in projects are synthetic containers like "Miscellaneous Files"."""

    @property
    def name(self) -> str: ...

    @property
    def is_builtin(self) -> bool: ...


@runtime_checkable
class TreeItem(Protocol):
    """A node in a project tree. The project root has no parent."""

    @property
    def name(self) -> str: ...

    @property
    def parent(self) -> Optional["TreeItem"]: ...

    @property
    def is_folder(self) -> bool: ...


@runtime_checkable
class Document(Protocol):
    """An open document, identified by its full path."""

    @property
    def path(self) -> str: ...

    @property
    def name(self) -> str: ...

    @property
    def project(self) -> Optional[Project]: ...

    @property
    def tree_item(self) -> Optional[TreeItem]: ...

    def set_caption(self, text: str) -> bool:
        """Returns False if the caption could not be applied yet."""
        ...

    def reset_caption(self) -> None: ...


@runtime_checkable
class Solution(Protocol):
    """The set of loaded projects and open documents."""

    @property
    def documents(self) -> List[Document]:
        """Snapshot of open documents; may raise while projects are loading."""
        ...

    @property
    def has_single_project(self) -> bool: ...


@runtime_checkable
class LogSink(Protocol):
    """Destination for log lines, e.g. an output pane."""

    def output(self, line: str) -> None: ...
