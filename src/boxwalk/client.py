"""Box client facade — path-addressed access to folders, files, search and events."""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from typing import TYPE_CHECKING, Any

from boxwalk.box import paths
from boxwalk.box.models import (
    ROOT_FOLDER_ID,
    EventResponse,
    File,
    Folder,
    Item,
    User,
    item_factory,
)
from boxwalk.box.paging import FIELD_ENTRIES, PageIterator
from boxwalk.box.query import (
    DEFAULT_SEARCH_LIMIT,
    STREAM_TYPE_ALL,
    USERS_DEFAULTS,
    events_query,
    query_params_with_default,
    search_path,
    url_with_query_params,
)
from boxwalk.box.session import BoxSession, box_session_from_config

if TYPE_CHECKING:
    from boxwalk.config import AppConfig

logger = logging.getLogger(__name__)


class BoxClient:
    """Addresses Box items by path and enumerates paged collections."""

    def __init__(self, session: BoxSession) -> None:
        """Initialise the client.

        Args:
            session: Authenticated BoxSession used for every request.
        """
        self._session = session

    # ------------------------------------------------------------------
    # Lookup by id
    # ------------------------------------------------------------------

    def root_folder(self) -> Folder:
        return self.folder_by_id(ROOT_FOLDER_ID)

    def folder_by_id(self, folder_id: str) -> Folder:
        folder = Folder(self._session, {"id": folder_id})
        folder.reload_meta()
        return folder

    def file_by_id(self, file_id: str) -> File:
        file = File(self._session, {"id": file_id})
        file.reload_meta()
        return file

    # ------------------------------------------------------------------
    # Lookup by path
    # ------------------------------------------------------------------

    @staticmethod
    def split_path(path: str) -> list[str]:
        return paths.split_path(path)

    def folder(self, path: str | None = "/") -> Folder | None:
        """Return the folder at ``path``, or None when any segment is missing."""
        return paths.resolve_folder(self.root_folder(), path)

    def file(self, path: str) -> File | None:
        """Return the file at ``path``, or None."""
        return paths.resolve_file(self.root_folder(), path)

    def item(self, path: str) -> Item | None:
        """Return the folder, file or web link at ``path``, or None."""
        return paths.resolve_item(self.root_folder(), path)

    def download(self, path: str) -> bytes | None:
        """Return the content of the file at ``path``, or None if it does not exist."""
        file = self.file(path)
        return file.download() if file is not None else None

    # ------------------------------------------------------------------
    # Creation and upload
    # ------------------------------------------------------------------

    def create_folder(self, path: str) -> Folder | None:
        """Return the folder at ``path``, creating missing folders along the way."""
        folder = paths.ensure_folder_path(self.root_folder(), path)
        logger.info(
            "[create_folder] ensured folder path; path:%s;folder_id:%s",
            path,
            folder.id if folder is not None else None,
        )
        return folder

    def upload_data(self, path: str, data: bytes, overwrite: bool = True) -> File | None:
        """Upload ``data`` to ``path``, creating its parent folders first.

        Returns:
            The uploaded File, or None if the parent folder could not be materialised.
        """
        segments = paths.split_path(path)
        if not segments:
            raise ValueError(f"Upload path has no file name: {path!r}")
        file_name = segments.pop()
        folder = self.create_folder("/".join(segments))
        if folder is None:
            return None
        return folder.upload_file(file_name, data, overwrite)

    def upload_file(self, local_path: str, remote_path: str, overwrite: bool = True) -> File | None:
        """Upload a local file into the folder ``remote_path``, creating it if needed."""
        folder = self.create_folder(remote_path)
        return self._upload_file_to_folder(local_path, folder, overwrite)

    def upload_file_by_folder_id(
        self, local_path: str, folder_id: str, overwrite: bool = True
    ) -> File | None:
        folder = self.folder_by_id(folder_id)
        return self._upload_file_to_folder(local_path, folder, overwrite)

    def _upload_file_to_folder(
        self, local_path: str, folder: Folder | None, overwrite: bool
    ) -> File | None:
        if folder is None:
            return None
        file_name = os.path.basename(local_path)
        with open(local_path, "rb") as fh:
            data = fh.read()
        return folder.upload_file(file_name, data, overwrite)

    # ------------------------------------------------------------------
    # Paged collections
    # ------------------------------------------------------------------

    def search(
        self,
        query: str,
        item_limit: int = DEFAULT_SEARCH_LIMIT,
        offset: int = 0,
        scope: str | None = None,
        file_extensions: Iterable[str] | str | None = None,
        content_types: Iterable[str] | str | None = None,
        item_types: Iterable[str] | str | None = None,
    ) -> PageIterator[Item]:
        """Lazily search Box, fetching one page of ``item_limit`` results at a time.

        Each call starts a new walk from ``offset``; the returned iterator
        cannot be restarted.

        Args:
            query: Text to search for.
            item_limit: Page size sent as ``limit``.
            offset: Offset of the first result.
            scope: "user_content" or "enterprise_content".
            file_extensions: Only match these extensions, e.g. ["pdf", "png"].
            content_types: Fields to match in, e.g. ["name", "description", "file_content"].
            item_types: Item types to return, e.g. ["folder", "file", "web_link"].

        Returns:
            Iterator of Item values in server order.
        """
        file_extensions = _materialized(file_extensions)
        content_types = _materialized(content_types)
        item_types = _materialized(item_types)

        def fetch_page(page_offset: int, limit: int) -> dict[str, Any]:
            return self._session.get(
                search_path(
                    query,
                    limit=limit,
                    offset=page_offset,
                    scope=scope,
                    file_extensions=file_extensions,
                    content_types=content_types,
                    item_types=item_types,
                )
            )

        return PageIterator(
            fetch_page,
            lambda raw: item_factory(self._session, raw),
            limit=item_limit,
            offset=offset,
        )

    def event_response(
        self,
        stream_position: Any = 0,
        stream_type: Any = STREAM_TYPE_ALL,
        limit: Any = 100,
    ) -> EventResponse:
        """Fetch one page of the event stream.

        Invalid arguments are coerced rather than rejected; see
        ``boxwalk.box.query.events_query``. Callers continue the stream by
        passing the response's ``next_stream_position`` back in.
        """
        resp = self._session.get(f"/events?{events_query(stream_position, stream_type, limit)}")
        return EventResponse(self._session, resp)

    def me(self, **query_params: Any) -> User:
        """Return the current user; extra keyword arguments become query parameters."""
        resp = self._session.get(url_with_query_params("/users/me", query_params))
        return User(self._session, resp)

    def users(self, **query_params: Any) -> list[Item]:
        """Return one page of enterprise users.

        Keyword arguments override the ``filter_term``, ``limit`` and
        ``offset`` defaults; any other keys (e.g. ``fields="role"``) are
        passed through as query parameters.
        """
        params = query_params_with_default(query_params, USERS_DEFAULTS)
        resp = self._session.get(url_with_query_params("/users", params))
        return [item_factory(self._session, entry) for entry in resp.get(FIELD_ENTRIES, [])]


def _materialized(values: Iterable[str] | str | None) -> list[str] | None:
    # A plain string is one value, not a sequence of characters.
    if not values:
        return None
    if isinstance(values, str):
        return [values]
    return list(values)


def box_client_from_config(config: AppConfig) -> BoxClient:
    """Construct a BoxClient from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BoxClient instance.
    """
    return BoxClient(box_session_from_config(config))
