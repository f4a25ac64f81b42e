"""Item model for Box folders, files, web links, users and events."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from boxwalk.box.paging import FIELD_ENTRIES, PageIterator
from boxwalk.box.session import BoxItemNameInUse

if TYPE_CHECKING:
    from boxwalk.box.session import BoxSession

logger = logging.getLogger(__name__)

# Box API JSON field names
FIELD_ID = "id"
FIELD_NAME = "name"
FIELD_TYPE = "type"
FIELD_PARENT = "parent"
FIELD_SOURCE = "source"
FIELD_CHUNK_SIZE = "chunk_size"
FIELD_NEXT_STREAM_POSITION = "next_stream_position"
FIELD_CONTEXT_INFO_CONFLICTS = "conflicts"

# Item type discriminators
TYPE_FOLDER = "folder"
TYPE_FILE = "file"
TYPE_WEB_LINK = "web_link"
TYPE_USER = "user"
TYPE_EVENT = "event"

ROOT_FOLDER_ID = "0"
DEFAULT_ITEMS_LIMIT = 1000


class Item:
    """A Box object wrapping the raw attributes the API returned.

    Server attributes are readable as attributes (``user.role``) or by key
    (``item["role"]``). Values are a snapshot of the response they came from
    and are never refreshed automatically. Two items are equal when they have
    the same type and id.
    """

    item_type = ""

    def __init__(self, session: BoxSession, raw: dict[str, Any]) -> None:
        self._session = session
        self._raw = raw

    def __getattr__(self, name: str) -> Any:
        # Only reached for names not defined on the class.
        raw = self.__dict__.get("_raw", {})
        if name in raw:
            return raw[name]
        raise AttributeError(f"{type(self).__name__} has no attribute {name!r}")

    def __getitem__(self, key: str) -> Any:
        return self._raw[key]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Item):
            return NotImplemented
        return type(self) is type(other) and self.id == other.id

    def __hash__(self) -> int:
        return hash((type(self), self.id))

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, name={self.name!r})"

    @property
    def raw(self) -> dict[str, Any]:
        return self._raw

    @property
    def id(self) -> str:
        return str(self._raw.get(FIELD_ID, ""))

    @property
    def name(self) -> str:
        return str(self._raw.get(FIELD_NAME, ""))

    @property
    def type(self) -> str:
        return str(self._raw.get(FIELD_TYPE, self.item_type))

    def get(self, key: str, default: Any = None) -> Any:
        return self._raw.get(key, default)

    def reload_meta(self) -> Item:
        """Replace the raw attributes with a fresh copy from the API."""
        self._raw = self._session.get(f"/{self.item_type}s/{self.id}")
        return self


class Folder(Item):
    """A Box folder."""

    item_type = TYPE_FOLDER

    def items(self, limit: int = DEFAULT_ITEMS_LIMIT) -> PageIterator[Item]:
        """Lazily enumerate every child of this folder, one page at a time."""

        def fetch_page(offset: int, page_limit: int) -> dict[str, Any]:
            return self._session.get(f"/folders/{self.id}/items?limit={page_limit}&offset={offset}")

        return PageIterator(fetch_page, lambda raw: item_factory(self._session, raw), limit=limit)

    def children_named(self, name: str, item_type: str | None = None) -> list[Item]:
        """Return children whose name equals ``name`` exactly, in listing order.

        Args:
            name: Exact child name to match.
            item_type: Restrict matches to one type discriminator (e.g. "folder").
        """
        return [
            item
            for item in self.items()
            if item.name == name and (item_type is None or item.type == item_type)
        ]

    def folders(self, name: str | None = None) -> list[Folder]:
        """Return child folders, optionally only those named ``name``."""
        return [
            item
            for item in self.items()
            if isinstance(item, Folder) and (name is None or item.name == name)
        ]

    def files(self, name: str | None = None) -> list[File]:
        """Return child files, optionally only those named ``name``."""
        return [
            item
            for item in self.items()
            if isinstance(item, File) and (name is None or item.name == name)
        ]

    def create_subfolder(self, name: str) -> FolderCreation:
        """Create a child folder.

        A same-named sibling is not an error: the result is tagged
        ``already_exists`` and the caller decides how to recover.

        Raises:
            BoxApiError: For any failure other than a naming collision.
        """
        try:
            raw = self._session.post(
                "/folders", {FIELD_NAME: name, FIELD_PARENT: {FIELD_ID: self.id}}
            )
        except BoxItemNameInUse:
            logger.info(
                "[create_subfolder] name already in use; parent_id:%s;name:%s",
                self.id,
                name,
            )
            return FolderCreation.already_exists()
        logger.info("[create_subfolder] created folder; parent_id:%s;name:%s", self.id, name)
        return FolderCreation.created(Folder(self._session, raw))

    def upload_file(self, name: str, data: bytes, overwrite: bool = True) -> File | None:
        """Upload ``data`` as a file named ``name`` in this folder.

        When a file of that name exists and ``overwrite`` is true, a new
        version of the existing file is uploaded instead.

        Returns:
            The uploaded File.

        Raises:
            BoxItemNameInUse: If the name is taken and ``overwrite`` is false.
        """
        try:
            response = self._session.upload(self.id, name, data)
        except BoxItemNameInUse as exc:
            conflict = exc.context_info.get(FIELD_CONTEXT_INFO_CONFLICTS)
            if not overwrite or not isinstance(conflict, dict) or FIELD_ID not in conflict:
                raise
            response = self._session.upload(self.id, name, data, file_id=str(conflict[FIELD_ID]))
        entries = response.get(FIELD_ENTRIES, [])
        return File(self._session, entries[0]) if entries else None


class File(Item):
    """A Box file."""

    item_type = TYPE_FILE

    def download(self) -> bytes:
        return self._session.get_content(f"/files/{self.id}/content")


class WebLink(Item):
    """A Box bookmark."""

    item_type = TYPE_WEB_LINK


class User(Item):
    """A Box user."""

    item_type = TYPE_USER


class Event(Item):
    """One entry of the Box event stream."""

    item_type = TYPE_EVENT

    @property
    def id(self) -> str:
        return str(self._raw.get("event_id", ""))

    @property
    def source(self) -> Item | None:
        raw_source = self._raw.get(FIELD_SOURCE)
        if not isinstance(raw_source, dict):
            return None
        return item_factory(self._session, raw_source)


class EventResponse:
    """One page of the Box event stream."""

    def __init__(self, session: BoxSession, raw: dict[str, Any]) -> None:
        self._raw = raw
        self.entries: list[Event] = [Event(session, entry) for entry in raw.get(FIELD_ENTRIES, [])]
        self.chunk_size: int = int(raw.get(FIELD_CHUNK_SIZE, len(self.entries)))
        self.next_stream_position: Any = raw.get(FIELD_NEXT_STREAM_POSITION)

    def __iter__(self) -> Iterator[Event]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


@dataclass(frozen=True)
class FolderCreation:
    """Result of a create-folder call: the new folder, or a naming collision."""

    folder: Folder | None

    @classmethod
    def created(cls, folder: Folder) -> FolderCreation:
        return cls(folder=folder)

    @classmethod
    def already_exists(cls) -> FolderCreation:
        return cls(folder=None)

    @property
    def is_created(self) -> bool:
        return self.folder is not None


_ITEM_CLASSES: dict[str, type[Item]] = {
    TYPE_FOLDER: Folder,
    TYPE_FILE: File,
    TYPE_WEB_LINK: WebLink,
    TYPE_USER: User,
    TYPE_EVENT: Event,
}


def item_factory(session: BoxSession, raw: dict[str, Any]) -> Item:
    """Wrap a raw Box entry in the Item subclass named by its ``type`` field."""
    cls = _ITEM_CLASSES.get(raw.get(FIELD_TYPE, ""), Item)
    return cls(session, raw)
