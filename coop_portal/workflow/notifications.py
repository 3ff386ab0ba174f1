"""
Fire-and-forget change notifications.

Engine components call ``publish_change`` only after their unit of work is
committed. A failing handler is logged and skipped; it never reaches the caller.
"""
import logging

from coop_portal.workflow.handlers import CHANGE_HANDLERS

logger = logging.getLogger(__name__)


def publish_change(event: str, payload: dict) -> None:
    for handler in CHANGE_HANDLERS.get(event, []):
        try:
            handler(event, payload)
        except Exception:
            logger.warning(
                "change handler %s failed for %s",
                getattr(handler, "__name__", handler),
                event,
                exc_info=True,
            )


def notify_safely(notify, event: str, payload: dict) -> None:
    """Call an injected notifier without letting it fail the operation."""
    try:
        notify(event, payload)
    except Exception:
        logger.warning("notification %s could not be delivered", event, exc_info=True)
