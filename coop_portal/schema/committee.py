from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime

from coop_portal.database.models.workflow import CommitteeDecisionStatus


class CommitteeDecisionRequest(BaseModel):
    """One committee member's decision. A reason is required when rejecting."""
    application_id: UUID
    member_id: Optional[str] = Field(None, description="Defaults to the caller (X-User-Id)")
    status: CommitteeDecisionStatus
    reason: Optional[str] = None


class CommitteeDecisionResponse(BaseModel):
    application_id: UUID
    current_approvals: int
    required_approvals: int
    quorum_satisfied: bool

    class Config:
        from_attributes = True


class CommitteeApprovalResponse(BaseModel):
    member_id: str
    status: CommitteeDecisionStatus
    reason: Optional[str]
    decided_at: datetime

    class Config:
        from_attributes = True


class CommitteeSummaryResponse(CommitteeDecisionResponse):
    rejections: int
    decisions: List[CommitteeApprovalResponse]
