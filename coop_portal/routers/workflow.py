from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from coop_portal.database.config.db import get_db
from coop_portal.schema.workflow import (
    StaffActionRequest,
    StaffWorkflowResponse,
    SupervisorActionRequest,
    SupervisorWorkflowResponse,
)
from coop_portal.utils.auth import get_actor_id
from coop_portal.utils.errors import to_http_exception
from coop_portal.workflow.errors import WorkflowError
from coop_portal.workflow.trackers import StaffWorkflowTracker, SupervisorWorkflowTracker

workflow_router = APIRouter(
    prefix="/workflow",
    tags=["Staff and Supervisor Workflow"],
)


# ==================== STAFF ====================


@workflow_router.post("/staff/actions", response_model=StaffWorkflowResponse)
def advance_staff_workflow(
    request: StaffActionRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Record the next staff step.

    Steps run in order: received, reviewed, approved, sent_to_company.
    Anything else returns 409 with the expected step in `expected`.
    """
    try:
        tracker_status = StaffWorkflowTracker(db).advance(
            request.application_id, request.action, notes=request.notes, actor_id=actor_id
        )
        return StaffWorkflowResponse.from_status(tracker_status)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error recording staff action: {str(e)}",
        )


@workflow_router.get("/staff/{application_id}", response_model=StaffWorkflowResponse)
def get_staff_workflow(application_id: UUID, db: Session = Depends(get_db)):
    try:
        return StaffWorkflowResponse.from_status(StaffWorkflowTracker(db).status(application_id))
    except WorkflowError as e:
        raise to_http_exception(e)


# ==================== SUPERVISOR ====================


@workflow_router.post("/supervisor/actions", response_model=SupervisorWorkflowResponse)
def advance_supervisor_workflow(
    request: SupervisorActionRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Record the next supervisor step. Only the assigned supervisor may act.

    `appointment_scheduled` requires `appointment_date`.
    """
    try:
        tracker_status = SupervisorWorkflowTracker(db).advance(
            request.application_id,
            request.action,
            notes=request.notes,
            actor_id=actor_id,
            appointment_date=request.appointment_date,
            appointment_location=request.appointment_location,
        )
        return SupervisorWorkflowResponse.from_status(tracker_status)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error recording supervisor action: {str(e)}",
        )


@workflow_router.get("/supervisor/{application_id}", response_model=SupervisorWorkflowResponse)
def get_supervisor_workflow(application_id: UUID, db: Session = Depends(get_db)):
    try:
        return SupervisorWorkflowResponse.from_status(SupervisorWorkflowTracker(db).status(application_id))
    except WorkflowError as e:
        raise to_http_exception(e)
