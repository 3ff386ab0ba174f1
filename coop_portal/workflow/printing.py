"""
Print record manager.

Each application gets its own document number the first time it is printed.
Printing again is a reported no-op, and reprinting reuses the stored number.
"""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from coop_portal.database.models.application import Application, ApplicationStatus
from coop_portal.database.models.document import PrintRecord
from coop_portal.settings import DEFAULT_TEMPLATE_KIND, PRINT_REQUIRES_APPROVAL
from coop_portal.workflow.base import EngineComponent
from coop_portal.workflow.errors import (
    InvalidTransitionError,
    NotFoundError,
    WorkflowError,
    WorkflowValidationError,
)
from coop_portal.workflow.sequencer import DEFAULT_LANGUAGE, DocumentNumberSequencer

logger = logging.getLogger(__name__)

PRINTABLE_STATUSES = (ApplicationStatus.APPROVED, ApplicationStatus.COMPLETED)


@dataclass
class PrintFailure:
    application_id: str
    code: str
    message: str


@dataclass
class PrintBatchResult:
    printed: List[PrintRecord] = field(default_factory=list)
    already_printed: List[PrintRecord] = field(default_factory=list)
    failed: List[PrintFailure] = field(default_factory=list)


class PrintRecordManager(EngineComponent):

    def __init__(
        self,
        db: Session,
        sequencer: Optional[DocumentNumberSequencer] = None,
        require_approval: bool = PRINT_REQUIRES_APPROVAL,
        **kwargs,
    ):
        super().__init__(db, **kwargs)
        self.sequencer = sequencer or DocumentNumberSequencer(db, **kwargs)
        self.require_approval = require_approval

    def _get_record(self, application: Application) -> Optional[PrintRecord]:
        return (
            self.db.query(PrintRecord)
            .filter(PrintRecord.application_id == application.id)
            .first()
        )

    def print_batch(
        self,
        application_ids: Iterable,
        document_date: date,
        language=DEFAULT_LANGUAGE,
        template_kind: str = DEFAULT_TEMPLATE_KIND,
        actor_id: Optional[str] = None,
    ) -> PrintBatchResult:
        """Print every application independently; one failure never aborts the rest."""
        if not isinstance(document_date, date):
            raise WorkflowValidationError("A document date is required to print")

        result = PrintBatchResult()

        # Keep request order, drop repeats
        for application_id in dict.fromkeys(str(app_id) for app_id in application_ids):
            try:
                record, created = self._print_one(application_id, document_date, language, template_kind, actor_id)
            except WorkflowError as e:
                self.db.rollback()
                logger.warning("print skipped for %s: %s (%s)", application_id, e.message, e.code)
                result.failed.append(PrintFailure(application_id, e.code, e.message))
                continue
            except SQLAlchemyError as e:
                self.db.rollback()
                logger.exception("print failed for %s", application_id)
                result.failed.append(PrintFailure(application_id, "error", str(e)))
                continue

            if created:
                result.printed.append(record)
                self._publish(
                    "print.created",
                    {
                        "application_id": application_id,
                        "document_number": record.document_number,
                    },
                )
            else:
                result.already_printed.append(record)

        logger.info(
            "print batch: %s printed, %s already printed, %s failed",
            len(result.printed), len(result.already_printed), len(result.failed),
        )
        return result

    def _print_one(self, application_id, document_date, language, template_kind, actor_id):
        application = self._get_application(application_id, lock=True)

        existing = self._get_record(application)
        if existing:
            return existing, False

        if self.require_approval and application.status not in PRINTABLE_STATUSES:
            raise InvalidTransitionError(
                f"Application {application_id} is {application.status.value}; only approved applications can be printed",
                expected=[s.value for s in PRINTABLE_STATUSES],
            )

        allocated = self.sequencer.allocate(template_kind, language)
        record = PrintRecord(
            application_id=application.id,
            document_number=allocated.document_number,
            template_kind=allocated.template_kind,
            language=allocated.language,
            document_date=document_date,
            printed_at=self.clock(),
            printed_by=actor_id,
            print_count=1,
        )
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        return record, True

    def reprint(self, application_id, actor_id: Optional[str] = None) -> PrintRecord:
        """Refresh printed_at on the existing record. Never allocates a number."""
        application = self._get_application(application_id, lock=True)
        record = self._get_record(application)
        if not record:
            raise NotFoundError(f"Application {application_id} has not been printed yet")

        record.printed_at = self.clock()
        record.printed_by = actor_id or record.printed_by
        record.print_count = (record.print_count or 1) + 1
        self.db.commit()
        self.db.refresh(record)

        logger.info("reprinted %s for application %s", record.document_number, application_id)
        self._publish(
            "print.reprinted",
            {"application_id": str(application.id), "document_number": record.document_number},
        )
        return record

    def list_printable(self) -> List[Application]:
        """Approved and completed applications, newest first, with their print record loaded."""
        return (
            self.db.query(Application)
            .options(joinedload(Application.print_record))
            .filter(Application.status.in_(PRINTABLE_STATUSES))
            .order_by(Application.submitted_at.desc())
            .all()
        )
