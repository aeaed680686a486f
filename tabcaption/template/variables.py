"""
TabCaption Built-in Variables.

    ProjectName    name of the document's project
    ParentDir      name of the directory containing the file on disk
    Filename       file name, with extension
    FullPath       full path of the file on disk
    FolderPath     folders between the project root and the document, "a/b/c"
    ParentFolder   innermost of those folders
"""

from __future__ import annotations

from typing import TYPE_CHECKING, List

from tabcaption.template.registry import ExpansionContext, VariableDefinition, VariableRegistry
from tabcaption.utilities.utils import split_path

if TYPE_CHECKING:
    from tabcaption.environment.ports import Document


def project_name(document: "Document", context: ExpansionContext) -> str:
    options = context.options

    if options.ignore_single_project and context.solution is not None:
        if context.solution.has_single_project:
            return ""

    project = document.project
    if project is None:
        return ""

    if options.ignore_builtin_projects and project.is_builtin:
        return ""

    return project.name or ""


def parent_dir(document: "Document", context: ExpansionContext) -> str:
    parts = split_path(document.path)
    if len(parts) < 2:
        return ""
    return parts[-2]


def filename(document: "Document", context: ExpansionContext) -> str:
    parts = split_path(document.path)
    if not parts:
        return ""
    return parts[-1]


def full_path(document: "Document", context: ExpansionContext) -> str:
    return document.path


def folder_names(document: "Document") -> List[str]:
    """
    Names of the folders containing the document's tree item, root first.

    In a built-in project the first collected folder is a synthetic
    container (such as "External Dependencies") and is dropped.
    """
    item = document.tree_item
    if item is None:
        return []

    names: List[str] = []
    parent = item.parent
    while parent is not None:
        if parent.is_folder:
            names.append(parent.name)
        parent = parent.parent
    names.reverse()

    project = document.project
    if project is not None and project.is_builtin and names:
        names = names[1:]

    return names


def folder_path(document: "Document", context: ExpansionContext) -> str:
    return "/".join(folder_names(document))


def parent_folder(document: "Document", context: ExpansionContext) -> str:
    names = folder_names(document)
    return names[-1] if names else ""


BUILTIN_VARIABLES = (
    VariableDefinition(
        "ProjectName", project_name,
        "Name of the project containing the document",
    ),
    VariableDefinition(
        "ParentDir", parent_dir,
        "Name of the directory containing the file on disk",
    ),
    VariableDefinition(
        "Filename", filename,
        "File name, with extension",
    ),
    VariableDefinition(
        "FullPath", full_path,
        "Full path of the file on disk",
    ),
    VariableDefinition(
        "FolderPath", folder_path,
        "Folders between the project root and the document, separated by '/'",
    ),
    VariableDefinition(
        "ParentFolder", parent_folder,
        "Folder directly containing the document in the project tree",
    ),
)

VARIABLE_NAMES = tuple(v.name for v in BUILTIN_VARIABLES)


def build_default_registry() -> VariableRegistry:
    """A new registry holding the six built-in variables."""
    registry = VariableRegistry()
    for definition in BUILTIN_VARIABLES:
        registry.register(definition)
    return registry
