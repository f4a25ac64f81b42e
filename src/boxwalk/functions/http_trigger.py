"""HTTP trigger blueprint — health check and manual poll endpoints."""

import json
import logging

import azure.functions as func

from boxwalk import __version__
from boxwalk.client import box_client_from_config
from boxwalk.config import load_config
from boxwalk.events.poller import event_poller_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.route(route="health", methods=["GET"], auth_level=func.AuthLevel.ANONYMOUS)
def health_check(req: func.HttpRequest) -> func.HttpResponse:
    """Health check endpoint. Returns service status and version."""
    logger.info("[health_check] health check requested")

    try:
        body = json.dumps({"status": "ok", "version": __version__})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[health_check] health check failed", exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")


@bp.route(route="poll", methods=["POST"], auth_level=func.AuthLevel.FUNCTION)
def manual_poll(req: func.HttpRequest) -> func.HttpResponse:
    """Manual poll endpoint — reads new Box events on demand.

    Requires a function key for authentication. Runs the same logic as the
    timer trigger but returns the events in the HTTP response.
    """
    logger.info("[manual_poll] manual poll requested")

    try:
        config = load_config()
        poller = event_poller_from_config(box_client_from_config(config), config)
        events = poller.poll()

        results = []
        for event in events:
            source = event.source
            results.append(
                {
                    "event_id": event.id,
                    "event_type": event.get("event_type", ""),
                    "source_id": source.id if source is not None else None,
                    "source_name": source.name if source is not None else None,
                }
            )
        logger.info("[manual_poll] event polling complete; event_count:%d", len(events))

        body = json.dumps({"status": "ok", "events_read": len(events), "results": results})
        return func.HttpResponse(body, status_code=200, mimetype="application/json")

    except Exception:
        logger.error("[manual_poll] manual poll failed", exc_info=True)
        error_body = json.dumps({"status": "error", "message": "Internal server error"})
        return func.HttpResponse(error_body, status_code=500, mimetype="application/json")
