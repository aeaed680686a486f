"""
TabCaption In-Memory Environment — a host without a host.

Implements the environment ports over plain Python objects and fires the
change events the way a real adapter would after normalizing its host's
signals:

    open / move / rename a document       → document_changed(document)
    add / remove / rename project/folder  → containers_changed()

Used by the test suite and by the CLI's expand command. Failure knobs
(MemoryDocument.surface_ready, MemorySolution.fail_enumerations) reproduce
the transient failures seen while a real host is loading projects.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from tabcaption.engine.errors import EnvironmentUnavailableError
from tabcaption.engine.events import ChangeEventSource

logger = logging.getLogger("tabcaption.environment.memory")


class MemoryTreeItem:
    """A node in a project tree: the project root, a folder or a file."""

    def __init__(
        self,
        name: str,
        parent: Optional["MemoryTreeItem"] = None,
        is_folder: bool = False,
        project: Optional["MemoryProject"] = None,
    ):
        self.name = name
        self.parent = parent
        self.is_folder = is_folder
        self.project = project if project is not None else (parent.project if parent else None)
        self.children: List[MemoryTreeItem] = []
        if parent is not None:
            parent.children.append(self)

    def detach(self) -> None:
        if self.parent is not None:
            self.parent.children.remove(self)
            self.parent = None

    def attach(self, parent: "MemoryTreeItem") -> None:
        self.detach()
        self.parent = parent
        self.project = parent.project
        parent.children.append(self)

    def find(self, name: str) -> Optional["MemoryTreeItem"]:
        for child in self.children:
            if child.name == name:
                return child
        return None

    def directory_names(self) -> List[str]:
        """Names of the folders from the project root down to this item's parent."""
        names: List[str] = []
        parent = self.parent
        while parent is not None and parent.parent is not None:
            names.append(parent.name)
            parent = parent.parent
        names.reverse()
        return names

    def __repr__(self) -> str:
        kind = "folder" if self.is_folder else "item"
        return f"MemoryTreeItem({self.name!r}, {kind})"


class MemoryProject:
    """A project with its own tree; the root item is never a folder."""

    def __init__(self, name: str, is_builtin: bool = False, directory: Optional[str] = None):
        self.name = name
        self.is_builtin = is_builtin
        self.directory = directory if directory is not None else f"/projects/{name}"
        self.root = MemoryTreeItem(name, project=self)

    def __repr__(self) -> str:
        return f"MemoryProject({self.name!r}, builtin={self.is_builtin})"


class MemoryDocument:
    """
    An open document. Its name and project follow its tree item, and so
    does its path unless one was given explicitly, so moving or renaming
    the item is immediately visible.

    set_caption() returns False while surface_ready is False, or while
    failures_before_ready is above zero (decremented on every attempt).
    """

    def __init__(
        self,
        tree_item: Optional[MemoryTreeItem] = None,
        path: str = "",
        surface_ready: bool = True,
    ):
        self._tree_item = tree_item
        self._path = path
        self.surface_ready = surface_ready
        self.failures_before_ready = 0
        self.caption: Optional[str] = None
        self.set_attempts = 0
        self.reset_count = 0

    @property
    def path(self) -> str:
        # an explicit path wins; otherwise it follows the tree
        item = self._tree_item
        if self._path or item is None or item.project is None:
            return self._path
        parts = [item.project.directory.rstrip("/"), *item.directory_names(), item.name]
        return "/".join(parts)

    @property
    def name(self) -> str:
        if self._tree_item is not None:
            return self._tree_item.name
        parts = [p for p in self._path.replace("\\", "/").split("/") if p]
        return parts[-1] if parts else ""

    @property
    def project(self) -> Optional[MemoryProject]:
        return self._tree_item.project if self._tree_item is not None else None

    @property
    def tree_item(self) -> Optional[MemoryTreeItem]:
        return self._tree_item

    def set_caption(self, text: str) -> bool:
        self.set_attempts += 1
        if not self.surface_ready:
            return False
        if self.failures_before_ready > 0:
            self.failures_before_ready -= 1
            return False
        self.caption = text
        return True

    def reset_caption(self) -> None:
        self.reset_count += 1
        self.caption = self.name

    def __repr__(self) -> str:
        return f"MemoryDocument({self.path!r}, caption={self.caption!r})"


class MemorySolution:
    """
    Projects plus open documents, with a ChangeEventSource in `events`.

    Set fail_enumerations to N to make the next N reads of `documents`
    raise EnvironmentUnavailableError.
    """

    def __init__(self) -> None:
        self.events = ChangeEventSource()
        self.projects: List[MemoryProject] = []
        self.open_documents: List[MemoryDocument] = []
        self.fail_enumerations = 0
        self.enumeration_count = 0

    # -- Solution port -------------------------------------------------------

    @property
    def documents(self) -> List[MemoryDocument]:
        self.enumeration_count += 1
        if self.fail_enumerations > 0:
            self.fail_enumerations -= 1
            raise EnvironmentUnavailableError("solution is still loading")
        return list(self.open_documents)

    @property
    def has_single_project(self) -> bool:
        return sum(1 for p in self.projects if not p.is_builtin) == 1

    # -- projects ------------------------------------------------------------

    def add_project(self, name: str, is_builtin: bool = False, directory: Optional[str] = None) -> MemoryProject:
        project = MemoryProject(name, is_builtin=is_builtin, directory=directory)
        self.projects.append(project)
        logger.debug(f"project {name} added")
        self.events.notify_containers_changed()
        return project

    def remove_project(self, project: MemoryProject) -> None:
        self.projects.remove(project)
        self.open_documents = [d for d in self.open_documents if d.project is not project]
        logger.debug(f"project {project.name} removed")
        self.events.notify_containers_changed()

    def rename_project(self, project: MemoryProject, name: str) -> None:
        project.name = name
        project.root.name = name
        logger.debug(f"project renamed to {name}")
        self.events.notify_containers_changed()

    def find_project(self, name: str) -> Optional[MemoryProject]:
        for project in self.projects:
            if project.name == name:
                return project
        return None

    # -- folders -------------------------------------------------------------

    def add_folder(self, parent: MemoryTreeItem, name: str) -> MemoryTreeItem:
        folder = MemoryTreeItem(name, parent=parent, is_folder=True)
        self.events.notify_containers_changed()
        return folder

    def add_folders(self, parent: MemoryTreeItem, path: str) -> MemoryTreeItem:
        """Create (or reuse) nested folders "a/b/c" under parent; returns the last one."""
        current = parent
        for name in [p for p in path.split("/") if p]:
            existing = current.find(name)
            if existing is not None and existing.is_folder:
                current = existing
            else:
                current = MemoryTreeItem(name, parent=current, is_folder=True)
        self.events.notify_containers_changed()
        return current

    def rename_folder(self, folder: MemoryTreeItem, name: str) -> None:
        folder.name = name
        self.events.notify_containers_changed()

    def remove_folder(self, folder: MemoryTreeItem) -> None:
        folder.detach()
        self.events.notify_containers_changed()

    # -- documents -----------------------------------------------------------

    def add_file(self, parent: MemoryTreeItem, name: str) -> MemoryTreeItem:
        return MemoryTreeItem(name, parent=parent)

    def open_document(
        self,
        item: Optional[MemoryTreeItem] = None,
        path: str = "",
        surface_ready: bool = True,
    ) -> MemoryDocument:
        """Open a file from the tree, or an external file by path when item is None."""
        document = MemoryDocument(item, path=path, surface_ready=surface_ready)
        self.open_documents.append(document)
        self.events.notify_document_changed(document)
        return document

    def close_document(self, document: MemoryDocument) -> None:
        self.open_documents.remove(document)

    def move_document(self, document: MemoryDocument, parent: MemoryTreeItem) -> None:
        item = document.tree_item
        if item is None:
            raise ValueError("external documents cannot be moved in the tree")
        item.attach(parent)
        self.events.notify_document_changed(document)

    def rename_document(self, document: MemoryDocument, name: str) -> None:
        item = document.tree_item
        if item is None:
            raise ValueError("external documents cannot be renamed in the tree")
        item.name = name
        self.events.notify_document_changed(document)
