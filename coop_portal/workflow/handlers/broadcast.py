"""
Default change handlers.

They stand in for the real-time broadcast layer: each one announces the change
on the log so operators can follow state changes without a socket client.
"""
import logging

from coop_portal.workflow.handlers.config import change_handler

logger = logging.getLogger(__name__)

BROADCAST_EVENTS = (
    "application.created",
    "application.status_changed",
    "workflow.staff.advanced",
    "workflow.supervisor.advanced",
    "workflow.supervisor.assigned",
    "committee.decision_recorded",
    "document_number.allocated",
    "print.created",
    "print.reprinted",
)


def broadcast_change(event: str, payload: dict) -> None:
    logger.info("broadcast %s %s", event, payload)


for _event in BROADCAST_EVENTS:
    change_handler(_event)(broadcast_change)
