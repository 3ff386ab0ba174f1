from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from coop_portal.database.config.db import get_db
from coop_portal.schema.application import (
    ApplicationCreate,
    ApplicationResponse,
    StatusTransitionRequest,
    NotesRequest,
    StatusOverrideRequest,
    StatusHistoryResponse,
    SupervisorAssignRequest,
)
from coop_portal.schema.workflow import SupervisorWorkflowResponse
from coop_portal.utils.auth import get_actor_id
from coop_portal.utils.errors import to_http_exception
from coop_portal.workflow.errors import WorkflowError
from coop_portal.workflow.ledger import ApplicationStatusLedger
from coop_portal.workflow.trackers import SupervisorWorkflowTracker

application_router = APIRouter(
    prefix="/applications",
    tags=["Applications"],
)


@application_router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_application(
    application: ApplicationCreate,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Submit a placement application.

    The application starts as `submitted` with a first history entry.
    """
    try:
        return ApplicationStatusLedger(db).create(
            student_id=application.student_id,
            internship_id=application.internship_id,
            company_name=application.company_name,
            required_approvals=application.required_approvals,
            actor_id=actor_id,
        )
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error creating application: {str(e)}",
        )


@application_router.get("/{application_id}", response_model=ApplicationResponse)
def get_application(application_id: UUID, db: Session = Depends(get_db)):
    try:
        return ApplicationStatusLedger(db).get(application_id)
    except WorkflowError as e:
        raise to_http_exception(e)


@application_router.get("/{application_id}/history", response_model=List[StatusHistoryResponse])
def get_application_history(application_id: UUID, db: Session = Depends(get_db)):
    """Ledger history, oldest first. Overrides are flagged with `is_override`."""
    try:
        return ApplicationStatusLedger(db).history(application_id)
    except WorkflowError as e:
        raise to_http_exception(e)


@application_router.post("/{application_id}/status", response_model=ApplicationResponse)
def transition_application(
    application_id: UUID,
    request: StatusTransitionRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Move the application along the normal status graph.

    Out-of-order moves return 409 with the allowed targets in `expected`.
    """
    try:
        return ApplicationStatusLedger(db).transition(
            application_id, request.status, actor_id=actor_id, notes=request.notes
        )
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating application status: {str(e)}",
        )


@application_router.post("/{application_id}/resubmit", response_model=ApplicationResponse)
def resubmit_application(
    application_id: UUID,
    request: Optional[NotesRequest] = None,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    notes = request.notes if request else None
    try:
        return ApplicationStatusLedger(db).resubmit(application_id, actor_id=actor_id, notes=notes)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error resubmitting application: {str(e)}",
        )


@application_router.post("/{application_id}/complete", response_model=ApplicationResponse)
def complete_application(
    application_id: UUID,
    request: Optional[NotesRequest] = None,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Complete an approved application.

    Unmet conditions (`sent_to_company`, `committee_quorum`) are listed in `expected`.
    """
    notes = request.notes if request else None
    try:
        return ApplicationStatusLedger(db).complete(application_id, actor_id=actor_id, notes=notes)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error completing application: {str(e)}",
        )


@application_router.post("/{application_id}/override", response_model=ApplicationResponse)
def override_application_status(
    application_id: UUID,
    request: StatusOverrideRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Administrative correction. Allowed from any status and recorded as an override."""
    try:
        return ApplicationStatusLedger(db).override(
            application_id, request.status, actor_id=actor_id, reason=request.reason
        )
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error overriding application status: {str(e)}",
        )


@application_router.post("/{application_id}/supervisor", response_model=SupervisorWorkflowResponse)
def assign_supervisor(
    application_id: UUID,
    request: SupervisorAssignRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Assign the faculty supervisor. Requires the staff `approved` step."""
    try:
        tracker_status = SupervisorWorkflowTracker(db).assign(
            application_id, request.supervisor_id, actor_id=actor_id
        )
        return SupervisorWorkflowResponse.from_status(tracker_status)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error assigning supervisor: {str(e)}",
        )
