"""
Committee approval aggregator.

``Application.current_approvals`` is a cache of the number of ``approved``
decision rows. It is recomputed from those rows on every decision and never
incremented on its own.
"""
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError

from coop_portal.database.models.application import Application, ApplicationStatus
from coop_portal.database.models.workflow import CommitteeApproval, CommitteeDecisionStatus
from coop_portal.workflow.base import EngineComponent
from coop_portal.workflow.errors import (
    DuplicateDecisionError,
    InvalidTransitionError,
    WorkflowValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class QuorumStatus:
    application_id: str
    current_approvals: int
    required_approvals: int
    quorum_satisfied: bool
    rejections: int = 0
    decisions: List[CommitteeApproval] = field(default_factory=list)


def quorum_satisfied(current_approvals: int, required_approvals: int) -> bool:
    # Rejections neither count towards nor veto the quorum
    return current_approvals >= required_approvals


class CommitteeApprovalAggregator(EngineComponent):

    def _count(self, application: Application, status: CommitteeDecisionStatus) -> int:
        return (
            self.db.query(func.count(CommitteeApproval.id))
            .filter(
                CommitteeApproval.application_id == application.id,
                CommitteeApproval.status == status,
            )
            .scalar()
        ) or 0

    def _find_decision(self, application: Application, member_id: str) -> Optional[CommitteeApproval]:
        return (
            self.db.query(CommitteeApproval)
            .filter(
                CommitteeApproval.application_id == application.id,
                CommitteeApproval.member_id == member_id,
            )
            .first()
        )

    def record_decision(self, application_id, member_id: str, status, reason: Optional[str] = None) -> QuorumStatus:
        """Record one member's decision and recompute the approval count."""
        try:
            status = CommitteeDecisionStatus(status)
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown committee decision: {status}",
                expected=[s.value for s in CommitteeDecisionStatus],
            )
        if not member_id or not member_id.strip():
            raise WorkflowValidationError("member_id is required")
        member_id = member_id.strip()
        reason = reason.strip() if reason else None
        if status == CommitteeDecisionStatus.REJECTED and not reason:
            raise WorkflowValidationError("A reason is required when rejecting")

        application = self._get_application(application_id, lock=True)
        if application.status == ApplicationStatus.COMPLETED:
            raise InvalidTransitionError(
                f"Application {application.id} is completed; committee decisions are closed"
            )

        existing = self._find_decision(application, member_id)
        if existing:
            raise DuplicateDecisionError(
                f"Member {member_id} already recorded {existing.status.value} for application {application.id}",
                expected=existing.status.value,
            )

        self.db.add(
            CommitteeApproval(
                application_id=application.id,
                member_id=member_id,
                status=status,
                reason=reason,
                decided_at=self.clock(),
            )
        )
        try:
            self.db.flush()
        except IntegrityError:
            # Lost a race with the same member's concurrent request
            self.db.rollback()
            raise DuplicateDecisionError(
                f"Member {member_id} already recorded a decision for application {application_id}"
            )

        application.current_approvals = self._count(application, CommitteeDecisionStatus.APPROVED)
        application.last_updated_at = self.clock()
        self.db.commit()
        self.db.refresh(application)

        result = QuorumStatus(
            application_id=str(application.id),
            current_approvals=application.current_approvals,
            required_approvals=application.required_approvals,
            quorum_satisfied=quorum_satisfied(application.current_approvals, application.required_approvals),
        )
        logger.info(
            "application %s: committee member %s %s (%s/%s)",
            application.id, member_id, status.value, result.current_approvals, result.required_approvals,
        )
        self._publish(
            "committee.decision_recorded",
            {
                "application_id": result.application_id,
                "member_id": member_id,
                "status": status.value,
                "current_approvals": result.current_approvals,
                "quorum_satisfied": result.quorum_satisfied,
            },
        )
        return result

    def summary(self, application_id) -> QuorumStatus:
        application = self._get_application(application_id)
        decisions = (
            self.db.query(CommitteeApproval)
            .filter(CommitteeApproval.application_id == application.id)
            .order_by(CommitteeApproval.decided_at.asc(), CommitteeApproval.member_id.asc())
            .all()
        )
        approvals = sum(1 for d in decisions if d.status == CommitteeDecisionStatus.APPROVED)
        return QuorumStatus(
            application_id=str(application.id),
            current_approvals=approvals,
            required_approvals=application.required_approvals,
            quorum_satisfied=quorum_satisfied(approvals, application.required_approvals),
            rejections=len(decisions) - approvals,
            decisions=decisions,
        )
