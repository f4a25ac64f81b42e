"""Timer trigger blueprint — scheduled entry point for Box event polling."""

import logging

import azure.functions as func

from boxwalk.client import box_client_from_config
from boxwalk.config import load_config
from boxwalk.events.poller import event_poller_from_config

logger = logging.getLogger(__name__)

bp = func.Blueprint()


@bp.timer_trigger(
    schedule="0 */5 * * * *",
    arg_name="timer",
    run_on_startup=False,
)
def timer_trigger(timer: func.TimerRequest) -> None:
    """Scheduled trigger that reads new Box events.

    Runs every 5 minutes and logs each event read since the previous run.
    """
    logger.info("Timer trigger fired")

    try:
        if timer.past_due:
            logger.warning("Timer trigger is past due")

        config = load_config()
        poller = event_poller_from_config(box_client_from_config(config), config)
        events = poller.poll()
        for event in events:
            source = event.source
            logger.info(
                "Event %s: %s on %s",
                event.id,
                event.get("event_type", ""),
                source.name if source is not None else "-",
            )
        logger.info("Event polling complete — %d event(s) read", len(events))

    except Exception:
        logger.exception("Timer trigger failed")
        raise
