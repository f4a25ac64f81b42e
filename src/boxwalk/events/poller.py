"""Event stream poller with stream position persistence in Azure Blob Storage."""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import BlobServiceClient

from boxwalk.box.models import Event
from boxwalk.box.query import STREAM_POSITION_NOW

if TYPE_CHECKING:
    from boxwalk.client import BoxClient
    from boxwalk.config import AppConfig

logger = logging.getLogger(__name__)


class EventPoller:
    """Polls the Box event stream and remembers where it left off."""

    def __init__(
        self,
        client: BoxClient,
        storage_connection_string: str,
        container: str,
        blob: str,
        stream_type: str = "changes",
        limit: int = 100,
    ) -> None:
        """Initialise the event poller.

        Args:
            client: BoxClient used to fetch event pages.
            storage_connection_string: Azure Storage connection string for position persistence.
            container: Blob container name for stream position storage.
            blob: Blob path for the stream position file.
            stream_type: Event stream to read ("all", "changes", "sync" or "admin_logs").
            limit: Max events fetched per poll.
        """
        self._client = client
        self._blob_service = BlobServiceClient.from_connection_string(storage_connection_string)
        self._container = container
        self._blob = blob
        self._stream_type = stream_type
        self._limit = limit

    def get_stream_position(self) -> str | None:
        """Read the persisted stream position from blob storage.

        Returns:
            The stored position, or None if nothing has been saved yet
            (i.e. this is the first run).
        """
        try:
            container_client = self._blob_service.get_container_client(self._container)
            blob_client = container_client.get_blob_client(self._blob)
            data = blob_client.download_blob().readall()
            return data.decode("utf-8").strip()
        except ResourceNotFoundError:
            logger.info("[get_stream_position] no stream position found in blob storage; first run")
            return None

    def save_stream_position(self, position: str) -> None:
        """Write the stream position to blob storage, creating the container if needed."""
        container_client = self._blob_service.get_container_client(self._container)
        with contextlib.suppress(ResourceExistsError):
            container_client.create_container()

        blob_client = container_client.get_blob_client(self._blob)
        blob_client.upload_blob(position.encode("utf-8"), overwrite=True)
        logger.info("[save_stream_position] saved stream position; position:%s", position)

    def poll(self) -> list[Event]:
        """Fetch the events recorded since the previous poll.

        The first run starts at ``"now"`` so historical events are skipped.
        The new position is saved only after the page was fetched, so a
        failed request is retried from the same position next time.

        Returns:
            Events in stream order.
        """
        position = self.get_stream_position()
        stream_position: int | str = STREAM_POSITION_NOW
        if position is not None and position.isdigit():
            stream_position = int(position)
        response = self._client.event_response(stream_position, self._stream_type, self._limit)
        logger.info(
            "[poll] fetched events; stream_position:%s;event_count:%d",
            stream_position,
            len(response.entries),
        )
        if response.next_stream_position is not None:
            self.save_stream_position(str(response.next_stream_position))
        return response.entries


def event_poller_from_config(client: BoxClient, config: AppConfig) -> EventPoller:
    """Construct an EventPoller from application configuration.

    Args:
        client: BoxClient instance.
        config: Application configuration instance.

    Returns:
        Configured EventPoller instance.
    """
    return EventPoller(
        client=client,
        storage_connection_string=config.storage_connection_string,
        container=config.events_container,
        blob=config.events_blob,
        stream_type=config.events_stream_type,
        limit=config.events_limit,
    )
