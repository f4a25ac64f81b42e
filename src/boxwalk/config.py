"""Application configuration loaded from environment variables."""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class AppConfig:
    """Centralized application configuration.

    Required fields have no defaults and will cause a KeyError at startup
    if the corresponding environment variable is missing. Event polling
    settings have sensible defaults but can be overridden via environment
    variables.
    """

    # Required — no defaults, fail at startup if missing
    client_id: str
    client_secret: str
    enterprise_id: str

    # Only the event poller needs blob storage
    storage_connection_string: str = ""

    # Domain constants — defaults provided, overridable via env
    events_container: str = "boxwalk-state"
    events_blob: str = "events/stream-position.txt"
    events_stream_type: str = "changes"
    events_limit: int = 100
    http_timeout: float = 30.0


def load_config() -> AppConfig:
    """Construct an AppConfig from environment variables.

    Required environment variables:
        BW_CLIENT_ID: Box application client ID.
        BW_CLIENT_SECRET: Box application client secret.
        BW_ENTERPRISE_ID: Box enterprise ID used as the token subject.

    Optional environment variables (with defaults):
        AzureWebJobsStorage: Azure Storage connection string for the event poller.
        BW_EVENTS_CONTAINER: Blob container for stream position storage.
        BW_EVENTS_BLOB: Blob path for the stream position file.
        BW_EVENTS_STREAM_TYPE: Event stream to poll (default: changes).
        BW_EVENTS_LIMIT: Max events fetched per poll (default: 100).
        BW_HTTP_TIMEOUT: Socket timeout in seconds for Box requests (default: 30).

    Returns:
        Configured AppConfig instance.
    """
    return AppConfig(
        client_id=os.environ["BW_CLIENT_ID"],
        client_secret=os.environ["BW_CLIENT_SECRET"],
        enterprise_id=os.environ["BW_ENTERPRISE_ID"],
        storage_connection_string=os.environ.get("AzureWebJobsStorage", ""),  # noqa: SIM112
        events_container=os.environ.get("BW_EVENTS_CONTAINER", "boxwalk-state"),
        events_blob=os.environ.get("BW_EVENTS_BLOB", "events/stream-position.txt"),
        events_stream_type=os.environ.get("BW_EVENTS_STREAM_TYPE", "changes"),
        events_limit=int(os.environ.get("BW_EVENTS_LIMIT", "100")),
        http_timeout=float(os.environ.get("BW_HTTP_TIMEOUT", "30")),
    )
