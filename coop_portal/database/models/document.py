import uuid
from sqlalchemy import (
    Column, String, DateTime, Date, Integer, ForeignKey, Index,
    UniqueConstraint, CheckConstraint, Uuid
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from enum import Enum

from coop_portal.database.config.db import Base
from coop_portal.database.models.types import enum_column


class DocumentLanguage(str, Enum):
    THAI = "thai"
    ENGLISH = "english"


class DocumentNumberSequence(Base):
    """Per (template kind, language) counter used to mint document numbers.

    ``current_number`` is the next number to hand out. It only ever grows.
    """
    __tablename__ = "document_number_sequences"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    template_kind = Column(String(50), nullable=False)
    language = Column(enum_column(DocumentLanguage, "documentlanguage"), nullable=False)

    prefix = Column(String(20), nullable=False, default="DOC")
    digit_width = Column(Integer, nullable=False, default=6)
    suffix = Column(String(20), nullable=False, default="")
    current_number = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("template_kind", "language", name="uq_sequence_template_language"),
        CheckConstraint("current_number >= 1", name="ck_sequence_current_number"),
        CheckConstraint("digit_width >= 1", name="ck_sequence_digit_width"),
    )


class PrintRecord(Base):
    """Durable evidence that a document number was issued for an application."""
    __tablename__ = "print_records"

    id = Column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        unique=True,
        nullable=False,
    )
    # One active print record per application
    application_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("applications.id", ondelete="RESTRICT"),
        unique=True,
        nullable=False,
    )

    document_number = Column(String(100), nullable=False, index=True)
    template_kind = Column(String(50), nullable=False)
    language = Column(enum_column(DocumentLanguage, "documentlanguage"), nullable=False)
    document_date = Column(Date, nullable=False)

    printed_at = Column(DateTime(timezone=True), nullable=False)
    printed_by = Column(String(64), nullable=True)
    print_count = Column(Integer, nullable=False, default=1)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    application = relationship("Application", back_populates="print_record")

    __table_args__ = (
        UniqueConstraint("template_kind", "language", "document_number", name="uq_print_record_document_number"),
        Index("ix_print_record_printed_at", "printed_at"),
    )
