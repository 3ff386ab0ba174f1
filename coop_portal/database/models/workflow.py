import uuid
from sqlalchemy import (
    Column, String, DateTime, Text, ForeignKey, Index, UniqueConstraint, Uuid
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from coop_portal.database.config.db import Base
from coop_portal.database.models.types import enum_column


# ==================== ENUMS ====================
# Member order is the workflow order.

class StaffStep(str, Enum):
    """Administrative staff document handling steps."""
    RECEIVED = "received"
    REVIEWED = "reviewed"
    APPROVED = "approved"
    SENT_TO_COMPANY = "sent_to_company"


class SupervisorStep(str, Enum):
    """Faculty supervisor steps after assignment."""
    ASSIGNMENT_RECEIVED = "assignment_received"
    CONFIRMED = "confirmed"
    APPOINTMENT_SCHEDULED = "appointment_scheduled"


class CommitteeDecisionStatus(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"


# ==================== ORDERED STEPS ====================

class OrderedStepsMixin:
    """Tracker state stored as the last completed step of an ordered enum.

    Per-step flags are derived from that single position, so a later step can
    never be recorded while an earlier one is unset. Each step keeps its own
    ``<step>_at``, ``<step>_notes`` and ``<step>_by`` audit columns.
    """

    STEPS = None

    @classmethod
    def step_order(cls):
        return list(cls.STEPS)

    def _position(self) -> int:
        if self.current_step is None:
            return -1
        return self.step_order().index(self.STEPS(self.current_step))

    def is_done(self, step) -> bool:
        return self.step_order().index(self.STEPS(step)) <= self._position()

    @property
    def next_step(self):
        position = self._position() + 1
        steps = self.step_order()
        return steps[position] if position < len(steps) else None

    def mark(self, step, at, notes=None, actor_id=None):
        step = self.STEPS(step)
        if step != self.next_step:
            raise ValueError(f"{step.value} is not the next step")
        self.current_step = step
        setattr(self, f"{step.value}_at", at)
        setattr(self, f"{step.value}_notes", notes)
        setattr(self, f"{step.value}_by", actor_id)


# ==================== MODELS ====================

class StaffWorkflowState(OrderedStepsMixin, Base):
    """Staff sub-workflow, created lazily on the first staff action."""
    __tablename__ = "staff_workflow_states"

    STEPS = StaffStep

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
        unique=True,
        nullable=False,
    )

    current_step = Column(enum_column(StaffStep, "staffstep"), nullable=True)

    received_at = Column(DateTime(timezone=True), nullable=True)
    received_notes = Column(Text, nullable=True)
    received_by = Column(String(64), nullable=True)

    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_notes = Column(Text, nullable=True)
    reviewed_by = Column(String(64), nullable=True)

    approved_at = Column(DateTime(timezone=True), nullable=True)
    approved_notes = Column(Text, nullable=True)
    approved_by = Column(String(64), nullable=True)

    sent_to_company_at = Column(DateTime(timezone=True), nullable=True)
    sent_to_company_notes = Column(Text, nullable=True)
    sent_to_company_by = Column(String(64), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    application = relationship("Application", back_populates="staff_workflow")

    @property
    def received(self) -> bool:
        return self.is_done(StaffStep.RECEIVED)

    @property
    def reviewed(self) -> bool:
        return self.is_done(StaffStep.REVIEWED)

    @property
    def approved(self) -> bool:
        return self.is_done(StaffStep.APPROVED)

    @property
    def sent_to_company(self) -> bool:
        return self.is_done(StaffStep.SENT_TO_COMPANY)


class SupervisorWorkflowState(OrderedStepsMixin, Base):
    """Supervisor sub-workflow, created when a supervisor is assigned."""
    __tablename__ = "supervisor_workflow_states"

    STEPS = SupervisorStep

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
        unique=True,
        nullable=False,
    )
    supervisor_id = Column(String(64), nullable=False, index=True)

    current_step = Column(enum_column(SupervisorStep, "supervisorstep"), nullable=True)

    assignment_received_at = Column(DateTime(timezone=True), nullable=True)
    assignment_received_notes = Column(Text, nullable=True)
    assignment_received_by = Column(String(64), nullable=True)

    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    confirmed_notes = Column(Text, nullable=True)
    confirmed_by = Column(String(64), nullable=True)

    appointment_scheduled_at = Column(DateTime(timezone=True), nullable=True)
    appointment_scheduled_notes = Column(Text, nullable=True)
    appointment_scheduled_by = Column(String(64), nullable=True)

    # Set together with the appointment_scheduled step
    appointment_date = Column(DateTime(timezone=True), nullable=True)
    appointment_location = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    application = relationship("Application", back_populates="supervisor_workflow")

    @property
    def assignment_received(self) -> bool:
        return self.is_done(SupervisorStep.ASSIGNMENT_RECEIVED)

    @property
    def confirmed(self) -> bool:
        return self.is_done(SupervisorStep.CONFIRMED)

    @property
    def appointment_scheduled(self) -> bool:
        return self.is_done(SupervisorStep.APPOINTMENT_SCHEDULED)


class CommitteeApproval(Base):
    """One immutable decision per (application, committee member)."""
    __tablename__ = "committee_approvals"

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
    member_id = Column(String(64), nullable=False)
    status = Column(enum_column(CommitteeDecisionStatus, "committeedecisionstatus"), nullable=False)
    reason = Column(Text, nullable=True)  # Required when rejected
    decided_at = Column(DateTime(timezone=True), nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    application = relationship("Application", back_populates="committee_approvals")

    __table_args__ = (
        UniqueConstraint("application_id", "member_id", name="uq_committee_application_member"),
        Index("ix_committee_application_status", "application_id", "status"),
    )
