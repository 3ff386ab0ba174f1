from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID
from datetime import datetime

# Import enums from models
from coop_portal.database.models.application import ApplicationStatus


# ==================== APPLICATION ====================

class ApplicationCreate(BaseModel):
    """Student submission of a placement application."""
    student_id: str = Field(..., min_length=1, max_length=64, description="Owning student")
    internship_id: Optional[str] = Field(None, max_length=64, description="Chosen internship, if any")
    company_name: Optional[str] = Field(None, max_length=255)
    required_approvals: int = Field(default=0, ge=0, description="Committee approvals needed before completion")


class ApplicationResponse(BaseModel):
    id: UUID
    student_id: str
    internship_id: Optional[str]
    company_name: Optional[str]
    status: ApplicationStatus
    required_approvals: int
    current_approvals: int
    supervisor_id: Optional[str]
    supervisor_assigned_at: Optional[datetime]
    submitted_at: datetime
    last_updated_at: Optional[datetime]

    class Config:
        from_attributes = True


# ==================== LEDGER TRANSITIONS ====================

class StatusTransitionRequest(BaseModel):
    """Explicit staff or committee status change."""
    status: ApplicationStatus
    notes: Optional[str] = None


class NotesRequest(BaseModel):
    """Body for resubmit and complete; both only carry an optional note."""
    notes: Optional[str] = None


class StatusOverrideRequest(BaseModel):
    """Administrative correction outside the normal transition graph."""
    status: ApplicationStatus
    reason: str = Field(..., description="Why the override was needed; kept in history")


class StatusHistoryResponse(BaseModel):
    id: UUID
    application_id: UUID
    from_status: Optional[ApplicationStatus]
    to_status: ApplicationStatus
    notes: Optional[str]
    is_override: bool
    changed_by: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class SupervisorAssignRequest(BaseModel):
    supervisor_id: str = Field(..., description="Faculty supervisor to assign")
