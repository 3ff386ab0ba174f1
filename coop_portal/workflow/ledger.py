"""
Application status ledger.

Owns the canonical status of an application and accepts only the transitions
in ``ALLOWED_TRANSITIONS``. Approval and rejection are explicit staff or
committee actions; the ledger only checks they happen in order. ``completed``
additionally requires the staff tracker to have sent the documents to the
company and, when the application needs committee approvals, a satisfied
quorum.
"""
import logging
from typing import List, Optional

from coop_portal.database.models.application import (
    Application,
    ApplicationStatus,
    ApplicationStatusHistory,
)
from coop_portal.database.models.workflow import StaffWorkflowState
from coop_portal.workflow.base import EngineComponent
from coop_portal.workflow.errors import InvalidTransitionError, WorkflowValidationError

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    ApplicationStatus.SUBMITTED: (ApplicationStatus.UNDER_REVIEW,),
    ApplicationStatus.UNDER_REVIEW: (
        ApplicationStatus.APPROVED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.NEEDS_CHANGES,
    ),
    ApplicationStatus.NEEDS_CHANGES: (ApplicationStatus.UNDER_REVIEW,),
    ApplicationStatus.APPROVED: (ApplicationStatus.COMPLETED,),
    ApplicationStatus.REJECTED: (),
    ApplicationStatus.COMPLETED: (),
}


class ApplicationStatusLedger(EngineComponent):

    def create(
        self,
        student_id: str,
        internship_id: Optional[str] = None,
        company_name: Optional[str] = None,
        required_approvals: int = 0,
        actor_id: Optional[str] = None,
    ) -> Application:
        """Record a student submission. The application starts as ``submitted``."""
        if required_approvals < 0:
            raise WorkflowValidationError("required_approvals must be zero or more")

        now = self.clock()
        application = Application(
            student_id=student_id,
            internship_id=internship_id,
            company_name=company_name,
            status=ApplicationStatus.SUBMITTED,
            required_approvals=required_approvals,
            current_approvals=0,
            submitted_at=now,
            last_updated_at=now,
        )
        self.db.add(application)
        self.db.flush()

        self.db.add(
            ApplicationStatusHistory(
                application_id=application.id,
                from_status=None,
                to_status=ApplicationStatus.SUBMITTED,
                notes="Application submitted by student",
                changed_by=actor_id or student_id,
                created_at=now,
            )
        )
        self.db.commit()
        self.db.refresh(application)

        logger.info("application %s submitted by %s", application.id, student_id)
        self._publish("application.created", {"application_id": str(application.id)})
        return application

    def get(self, application_id) -> Application:
        return self._get_application(application_id)

    def history(self, application_id) -> List[ApplicationStatusHistory]:
        application = self._get_application(application_id)
        return (
            self.db.query(ApplicationStatusHistory)
            .filter(ApplicationStatusHistory.application_id == application.id)
            .order_by(ApplicationStatusHistory.created_at.asc())
            .all()
        )

    def completion_blockers(self, application: Application) -> List[str]:
        """Conditions still preventing ``completed``; empty when it may complete."""
        blockers = []
        if application.status != ApplicationStatus.APPROVED:
            blockers.append("approved")

        staff_state = (
            self.db.query(StaffWorkflowState)
            .filter(StaffWorkflowState.application_id == application.id)
            .first()
        )
        if staff_state is None or not staff_state.sent_to_company:
            blockers.append("sent_to_company")

        if application.required_approvals > 0 and application.current_approvals < application.required_approvals:
            blockers.append("committee_quorum")
        return blockers

    def transition(
        self,
        application_id,
        to_status,
        actor_id: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> Application:
        try:
            to_status = ApplicationStatus(to_status)
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown application status: {to_status}",
                expected=[s.value for s in ApplicationStatus],
            )

        application = self._get_application(application_id, lock=True)
        current = application.status

        if current == ApplicationStatus.COMPLETED:
            raise InvalidTransitionError(
                f"Application {application_id} is completed and accepts no further transitions; use an administrative override",
                expected=[],
            )

        allowed = ALLOWED_TRANSITIONS[current]
        if to_status not in allowed:
            raise InvalidTransitionError(
                f"Cannot move application from {current.value} to {to_status.value}",
                expected=[s.value for s in allowed],
            )

        if to_status == ApplicationStatus.COMPLETED:
            blockers = self.completion_blockers(application)
            if blockers:
                raise InvalidTransitionError(
                    f"Application {application_id} cannot be completed yet: waiting for {', '.join(blockers)}",
                    expected=blockers,
                )

        return self._apply(application, to_status, actor_id, notes, is_override=False)

    def resubmit(self, application_id, actor_id: Optional[str] = None, notes: Optional[str] = None) -> Application:
        """Student resubmitted the requested information."""
        application = self._get_application(application_id)
        if application.status != ApplicationStatus.NEEDS_CHANGES:
            raise InvalidTransitionError(
                f"Only applications needing changes can be resubmitted (currently {application.status.value})",
                expected=[ApplicationStatus.NEEDS_CHANGES.value],
            )
        return self.transition(application_id, ApplicationStatus.UNDER_REVIEW, actor_id, notes or "Student resubmitted")

    def complete(self, application_id, actor_id: Optional[str] = None, notes: Optional[str] = None) -> Application:
        return self.transition(application_id, ApplicationStatus.COMPLETED, actor_id, notes)

    def override(self, application_id, to_status, actor_id: str, reason: str) -> Application:
        """Out-of-band administrative correction, allowed from any status."""
        if not reason or not reason.strip():
            raise WorkflowValidationError("An override requires a reason")
        if not actor_id:
            raise WorkflowValidationError("An override requires the acting administrator")
        try:
            to_status = ApplicationStatus(to_status)
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown application status: {to_status}",
                expected=[s.value for s in ApplicationStatus],
            )

        application = self._get_application(application_id, lock=True)
        logger.warning(
            "administrative override on application %s: %s -> %s by %s (%s)",
            application.id, application.status.value, to_status.value, actor_id, reason,
        )
        return self._apply(application, to_status, actor_id, reason, is_override=True)

    def _apply(self, application: Application, to_status: ApplicationStatus, actor_id, notes, is_override: bool) -> Application:
        from_status = application.status
        now = self.clock()

        application.status = to_status
        application.last_updated_at = now
        self.db.add(
            ApplicationStatusHistory(
                application_id=application.id,
                from_status=from_status,
                to_status=to_status,
                notes=notes,
                changed_by=actor_id,
                is_override=is_override,
                created_at=now,
            )
        )
        self.db.commit()
        self.db.refresh(application)

        logger.info("application %s: %s -> %s", application.id, from_status.value, to_status.value)
        self._publish(
            "application.status_changed",
            {
                "application_id": str(application.id),
                "from_status": from_status.value,
                "to_status": to_status.value,
                "is_override": is_override,
            },
        )
        return application
