"""Resolve slash-delimited paths against the Box folder tree.

Nothing here is cached: every call walks the tree from the root again and
issues one child listing per path segment, parent before child. A segment
that does not exist yields ``None``; it is never an error.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from boxwalk.box.models import File, Folder, Item

logger = logging.getLogger(__name__)

_CURRENT_DIR_PREFIX = re.compile(r"^\./")
_CURRENT_DIR_FOLDER = re.compile(r"(^\.$)|(^\./)")
ROOT_PATHS = frozenset({"", "/"})


def split_path(path: str) -> list[str]:
    """Split a path into segment names.

    Exactly one leading and one trailing slash are ignored. Interior empty
    segments are kept as literal empty names; trailing empty segments are
    dropped, so ``"a/"``, ``"/a/"`` and ``"a"`` all give ``["a"]``.
    """
    if path.startswith("/"):
        path = path[1:]
    if path.endswith("/"):
        path = path[:-1]
    segments = path.split("/") if path else []
    while segments and segments[-1] == "":
        segments.pop()
    return segments


def folder_from_segments(root: Folder, segments: list[str]) -> Folder | None:
    """Walk ``segments`` down from ``root``, one child-folder lookup per segment."""
    folder = root
    for segment in segments:
        matches = folder.folders(segment)
        if not matches:
            logger.debug(
                "[folder_from_segments] segment not found; parent_id:%s;segment:%s",
                folder.id,
                segment,
            )
            return None
        folder = matches[0]
    return folder


def resolve_folder(root: Folder, path: str | None = "/") -> Folder | None:
    """Return the folder at ``path``, or None if any segment is missing.

    ``"."``, ``""`` and ``"/"`` name the root; a leading ``"./"`` is ignored.
    """
    if path is None:
        path = "/"
    path = _CURRENT_DIR_FOLDER.sub("", path, count=1)
    if path in ROOT_PATHS:
        return root
    return folder_from_segments(root, split_path(path))


def _parent_and_name(root: Folder, path: str) -> tuple[Folder | None, str | None]:
    segments = split_path(_CURRENT_DIR_PREFIX.sub("", path, count=1))
    if not segments:
        return None, None
    name = segments.pop()
    return folder_from_segments(root, segments), name


def resolve_file(root: Folder, path: str) -> File | None:
    """Return the file at ``path``, or None if it or any parent folder is missing."""
    parent, name = _parent_and_name(root, path)
    if parent is None or name is None:
        return None
    matches = parent.files(name)
    return matches[0] if matches else None


def resolve_item(root: Folder, path: str) -> Item | None:
    """Return the folder, file or web link at ``path``, or None.

    The last segment is matched against every child of its parent, whatever
    its type.
    """
    parent, name = _parent_and_name(root, path)
    if parent is None or name is None:
        return None
    matches = parent.children_named(name)
    return matches[0] if matches else None


def ensure_folder_path(root: Folder, path: str) -> Folder | None:
    """Return the folder at ``path``, creating any missing segments.

    Safe to run concurrently with other callers building the same tree:
    when a create loses the race (the name is already in use) the winner's
    folder is looked up and used instead. This is not atomic. If the
    conflicting folder is deleted before that lookup, the result is None.
    """
    folder = root
    for segment in split_path(path):
        matches = folder.folders(segment)
        if matches:
            folder = matches[0]
            continue

        creation = folder.create_subfolder(segment)
        if creation.folder is not None:
            folder = creation.folder
            continue

        matches = folder.folders(segment)
        if not matches:
            logger.warning(
                "[ensure_folder_path] folder vanished after name conflict; parent_id:%s;segment:%s",
                folder.id,
                segment,
            )
            return None
        folder = matches[0]
    return folder
