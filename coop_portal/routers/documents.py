from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from coop_portal.database.config.db import get_db
from coop_portal.database.models.document import DocumentLanguage
from coop_portal.schema.document import (
    DocumentNumberRequest,
    DocumentNumberResponse,
    NextDocumentNumberResponse,
    NumberTemplateUpdate,
    NumberTemplateResponse,
)
from coop_portal.settings import DEFAULT_TEMPLATE_KIND
from coop_portal.utils.errors import to_http_exception
from coop_portal.workflow.errors import WorkflowError
from coop_portal.workflow.sequencer import DocumentNumberSequencer

document_router = APIRouter(
    prefix="/documents",
    tags=["Document Numbers"],
)


@document_router.post(
    "/number",
    response_model=DocumentNumberResponse,
    status_code=status.HTTP_201_CREATED,
)
def generate_document_number(request: DocumentNumberRequest, db: Session = Depends(get_db)):
    """
    Allocate a document number outside the print flow.

    The number is consumed even if it is only used as a preview.
    """
    try:
        return DocumentNumberSequencer(db).generate(request.template_kind, request.language)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error generating document number: {str(e)}",
        )


@document_router.get("/number-templates/{language}", response_model=NumberTemplateResponse)
def get_number_template(
    language: DocumentLanguage,
    template_kind: str = DEFAULT_TEMPLATE_KIND,
    db: Session = Depends(get_db),
):
    """Numbering template for a language; defaults are provisioned on first use."""
    try:
        return DocumentNumberSequencer(db).get_template(template_kind, language)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)


@document_router.put("/number-templates/{language}", response_model=NumberTemplateResponse)
def update_number_template(
    language: DocumentLanguage,
    template_update: NumberTemplateUpdate,
    template_kind: str = DEFAULT_TEMPLATE_KIND,
    db: Session = Depends(get_db),
):
    """
    Update prefix, digit width, suffix or the next number.

    The next number can only move forward.
    """
    update_data = template_update.model_dump(exclude_unset=True)
    try:
        return DocumentNumberSequencer(db).update_template(template_kind, language, **update_data)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error updating number template: {str(e)}",
        )


@document_router.get("/number-templates/{language}/next", response_model=NextDocumentNumberResponse)
def peek_document_number(
    language: DocumentLanguage,
    template_kind: str = DEFAULT_TEMPLATE_KIND,
    db: Session = Depends(get_db),
):
    """The number the next allocation would return. Nothing is reserved."""
    try:
        document_number = DocumentNumberSequencer(db).peek(template_kind, language)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)

    return NextDocumentNumberResponse(
        document_number=document_number,
        template_kind=template_kind,
        language=language,
    )
