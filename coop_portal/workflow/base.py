import uuid
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from sqlalchemy.orm import Session

from coop_portal.database.models.application import Application
from coop_portal.workflow.errors import NotFoundError
from coop_portal.workflow.notifications import notify_safely, publish_change

Notifier = Callable[[str, dict], None]
Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_uuid(value: Union[str, uuid.UUID]) -> Optional[uuid.UUID]:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        return None


class EngineComponent:
    """Shared plumbing: injected session, change notifier and clock."""

    def __init__(self, db: Session, notify: Notifier = publish_change, clock: Clock = utcnow):
        self.db = db
        self.notify = notify
        self.clock = clock

    def _get_application(self, application_id, lock: bool = False) -> Application:
        app_uuid = as_uuid(application_id)
        if app_uuid is None:
            raise NotFoundError(f"Application {application_id} not found")

        query = self.db.query(Application).filter(Application.id == app_uuid)
        if lock:
            # Row-level lock: serializes check-then-write per application
            query = query.with_for_update()
        application = query.first()

        if not application:
            raise NotFoundError(f"Application {application_id} not found")
        return application

    def _publish(self, event: str, payload: dict) -> None:
        notify_safely(self.notify, event, payload)
