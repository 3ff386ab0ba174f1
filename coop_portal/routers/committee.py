from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from coop_portal.database.config.db import get_db
from coop_portal.schema.committee import (
    CommitteeDecisionRequest,
    CommitteeDecisionResponse,
    CommitteeSummaryResponse,
)
from coop_portal.utils.auth import get_actor_id
from coop_portal.utils.errors import to_http_exception
from coop_portal.workflow.committee import CommitteeApprovalAggregator
from coop_portal.workflow.errors import WorkflowError

committee_router = APIRouter(
    prefix="/committee",
    tags=["Committee"],
)


@committee_router.post(
    "/decisions",
    response_model=CommitteeDecisionResponse,
    status_code=status.HTTP_201_CREATED,
)
def record_committee_decision(
    request: CommitteeDecisionRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Record one member's decision and return the recomputed quorum.

    A member decides once per application; a second decision returns 409.
    """
    try:
        result = CommitteeApprovalAggregator(db).record_decision(
            request.application_id,
            request.member_id or actor_id,
            request.status,
            reason=request.reason,
        )
        return CommitteeDecisionResponse.model_validate(result)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error recording committee decision: {str(e)}",
        )


@committee_router.get("/{application_id}", response_model=CommitteeSummaryResponse)
def get_committee_summary(application_id: UUID, db: Session = Depends(get_db)):
    try:
        summary = CommitteeApprovalAggregator(db).summary(application_id)
        return CommitteeSummaryResponse.model_validate(summary, from_attributes=True)
    except WorkflowError as e:
        raise to_http_exception(e)
