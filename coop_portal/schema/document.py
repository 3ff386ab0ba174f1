from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime, date

from coop_portal.database.models.application import ApplicationStatus
from coop_portal.database.models.document import DocumentLanguage
from coop_portal.settings import DEFAULT_DOCUMENT_LANGUAGE, DEFAULT_TEMPLATE_KIND


# ==================== DOCUMENT NUMBERS ====================

class DocumentNumberRequest(BaseModel):
    """Standalone number generation. Always consumes a number."""
    language: DocumentLanguage = DocumentLanguage(DEFAULT_DOCUMENT_LANGUAGE)
    template_kind: str = Field(default=DEFAULT_TEMPLATE_KIND, min_length=1, max_length=50)


class DocumentNumberResponse(BaseModel):
    document_number: str
    number: int
    template_kind: str
    language: DocumentLanguage

    class Config:
        from_attributes = True


class NextDocumentNumberResponse(BaseModel):
    """Preview of the next number; nothing is reserved."""
    document_number: str
    template_kind: str
    language: DocumentLanguage


class NumberTemplateUpdate(BaseModel):
    """Partial update of a numbering template. Checked by the sequencer."""
    prefix: Optional[str] = None
    digit_width: Optional[int] = None
    suffix: Optional[str] = None
    current_number: Optional[int] = None


class NumberTemplateResponse(BaseModel):
    id: UUID
    template_kind: str
    language: DocumentLanguage
    prefix: str
    digit_width: int
    suffix: str
    current_number: int
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    class Config:
        from_attributes = True


# ==================== PRINTING ====================

class PrintRequest(BaseModel):
    """Print a batch of applications. Document numbers are always server generated."""
    application_ids: List[str] = Field(..., min_length=1)
    document_date: date
    language: DocumentLanguage = DocumentLanguage(DEFAULT_DOCUMENT_LANGUAGE)
    template_kind: str = Field(default=DEFAULT_TEMPLATE_KIND, min_length=1, max_length=50)


class PrintRecordResponse(BaseModel):
    id: UUID
    application_id: UUID
    document_number: str
    template_kind: str
    language: DocumentLanguage
    document_date: date
    printed_at: datetime
    printed_by: Optional[str]
    print_count: int

    class Config:
        from_attributes = True


class PrintFailureResponse(BaseModel):
    application_id: str
    code: str
    message: str

    class Config:
        from_attributes = True


class PrintBatchResponse(BaseModel):
    printed: List[PrintRecordResponse]
    already_printed: List[PrintRecordResponse]
    failed: List[PrintFailureResponse]

    class Config:
        from_attributes = True


class PrintableApplicationResponse(BaseModel):
    """Approved or completed application with its print record, if printed."""
    id: UUID
    student_id: str
    company_name: Optional[str]
    status: ApplicationStatus
    submitted_at: datetime
    print_record: Optional[PrintRecordResponse]

    class Config:
        from_attributes = True
