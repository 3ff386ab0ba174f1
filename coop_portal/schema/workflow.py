from dataclasses import asdict
from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from coop_portal.database.models.workflow import StaffStep, SupervisorStep


class StaffActionRequest(BaseModel):
    """Record the next staff step for an application."""
    application_id: UUID
    action: StaffStep = Field(..., description="received, reviewed, approved or sent_to_company")
    notes: Optional[str] = None


class SupervisorActionRequest(BaseModel):
    """Record the next supervisor step. Scheduling needs an appointment date."""
    application_id: UUID
    action: SupervisorStep = Field(..., description="assignment_received, confirmed or appointment_scheduled")
    notes: Optional[str] = None
    appointment_date: Optional[datetime] = None
    appointment_location: Optional[str] = Field(None, max_length=255)


class StepStatusResponse(BaseModel):
    step: str
    done: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    completed_by: Optional[str] = None


class TrackerResponse(BaseModel):
    application_id: UUID
    current_step: str
    is_completed: bool
    steps: List[StepStatusResponse]

    @classmethod
    def from_status(cls, tracker_status):
        data = asdict(tracker_status)
        return cls(**data.pop("flags"), **data.pop("details"), **data)


class StaffWorkflowResponse(TrackerResponse):
    received: bool
    reviewed: bool
    approved: bool
    sent_to_company: bool


class SupervisorWorkflowResponse(TrackerResponse):
    supervisor_id: Optional[str] = None
    assignment_received: bool
    confirmed: bool
    appointment_scheduled: bool
    appointment_date: Optional[datetime] = None
    appointment_location: Optional[str] = None
