import uuid
from sqlalchemy import (
    Column, String, Boolean, DateTime, Text, Integer,
    ForeignKey, Index, CheckConstraint, Uuid
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from coop_portal.database.config.db import Base
from coop_portal.database.models.types import enum_column


# ==================== ENUMS ====================

class ApplicationStatus(str, Enum):
    """Ledger status of a placement application."""
    SUBMITTED = "submitted"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    NEEDS_CHANGES = "needs_changes"
    COMPLETED = "completed"


# ==================== MODELS ====================

class Application(Base):
    """Internship/co-op placement application submitted by a student.

    Rows are never deleted: print records must stay traceable to a stable
    application identity.
    """
    __tablename__ = "applications"

    # Primary Key
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )

    # ==================== EXTERNAL REFERENCES ====================
    # Owned by the student/internship collaborators, read-mostly here
    student_id = Column(String(64), nullable=False, index=True)
    internship_id = Column(String(64), nullable=True)
    company_name = Column(String(255), nullable=True)

    # ==================== LEDGER ====================
    status = Column(
        enum_column(ApplicationStatus, "applicationstatus"),
        nullable=False,
        default=ApplicationStatus.SUBMITTED,
        index=True,
    )

    # ==================== COMMITTEE QUORUM ====================
    required_approvals = Column(Integer, nullable=False, default=0)
    # Materialized count of approved CommitteeApproval rows, always recomputed
    current_approvals = Column(Integer, nullable=False, default=0)

    # ==================== SUPERVISOR ====================
    supervisor_id = Column(String(64), nullable=True, index=True)
    supervisor_assigned_at = Column(DateTime(timezone=True), nullable=True)

    # ==================== IMPORTANT DATES ====================
    submitted_at = Column(DateTime(timezone=True), nullable=False)
    last_updated_at = Column(DateTime(timezone=True), nullable=True)

    # ==================== METADATA ====================
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # ==================== RELATIONSHIPS ====================
    status_history = relationship(
        "ApplicationStatusHistory",
        back_populates="application",
        order_by="ApplicationStatusHistory.created_at",
    )
    staff_workflow = relationship("StaffWorkflowState", back_populates="application", uselist=False)
    supervisor_workflow = relationship("SupervisorWorkflowState", back_populates="application", uselist=False)
    committee_approvals = relationship("CommitteeApproval", back_populates="application")
    print_record = relationship("PrintRecord", back_populates="application", uselist=False)

    # ==================== INDEXES ====================
    __table_args__ = (
        CheckConstraint("required_approvals >= 0", name="ck_application_required_approvals"),
        CheckConstraint("current_approvals >= 0", name="ck_application_current_approvals"),
        Index("ix_application_student_status", "student_id", "status"),
        Index("ix_application_status_submitted", "status", "submitted_at"),
    )


class ApplicationStatusHistory(Base):
    """Audit trail for ledger status changes, including administrative overrides."""
    __tablename__ = "application_status_history"

    # Primary Key
    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )

    application_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # ==================== STATUS CHANGE ====================
    from_status = Column(
        enum_column(ApplicationStatus, "applicationstatus"),
        nullable=True,  # Null for first entry
    )
    to_status = Column(
        enum_column(ApplicationStatus, "applicationstatus"),
        nullable=False,
    )
    notes = Column(Text, nullable=True)
    is_override = Column(Boolean, default=False, nullable=False)

    # ==================== CHANGED BY ====================
    changed_by = Column(String(64), nullable=True)  # Null = system change

    # ==================== METADATA ====================
    created_at = Column(DateTime(timezone=True), nullable=False)

    # ==================== RELATIONSHIPS ====================
    application = relationship("Application", back_populates="status_history")

    # ==================== INDEXES ====================
    __table_args__ = (
        Index("ix_status_history_application_created", "application_id", "created_at"),
    )
