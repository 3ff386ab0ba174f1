from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from typing import List, Optional
from uuid import UUID

from coop_portal.database.config.db import get_db
from coop_portal.schema.document import (
    PrintRequest,
    PrintBatchResponse,
    PrintRecordResponse,
    PrintFailureResponse,
    PrintableApplicationResponse,
)
from coop_portal.utils.auth import get_actor_id
from coop_portal.utils.errors import to_http_exception
from coop_portal.workflow.errors import WorkflowError
from coop_portal.workflow.printing import PrintRecordManager

print_router = APIRouter(
    prefix="/print",
    tags=["Document Printing"],
)


@print_router.get("/applications", response_model=List[PrintableApplicationResponse])
def list_printable_applications(db: Session = Depends(get_db)):
    """Approved and completed applications with their print record, newest first."""
    return PrintRecordManager(db).list_printable()


@print_router.post("", response_model=PrintBatchResponse)
def print_applications(
    request: PrintRequest,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """
    Print a batch of applications.

    Each application is handled on its own: new prints get a fresh document
    number, already printed ones are reported with their existing number, and
    failures are listed per item without affecting the rest.
    """
    try:
        result = PrintRecordManager(db).print_batch(
            request.application_ids,
            request.document_date,
            language=request.language,
            template_kind=request.template_kind,
            actor_id=actor_id,
        )
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error printing applications: {str(e)}",
        )

    return PrintBatchResponse(
        printed=[PrintRecordResponse.model_validate(r) for r in result.printed],
        already_printed=[PrintRecordResponse.model_validate(r) for r in result.already_printed],
        failed=[PrintFailureResponse.model_validate(f) for f in result.failed],
    )


@print_router.post("/{application_id}/reprint", response_model=PrintRecordResponse)
def reprint_application(
    application_id: UUID,
    actor_id: Optional[str] = Depends(get_actor_id),
    db: Session = Depends(get_db),
):
    """Reprint with the stored document number. 404 if the application was never printed."""
    try:
        return PrintRecordManager(db).reprint(application_id, actor_id=actor_id)
    except WorkflowError as e:
        db.rollback()
        raise to_http_exception(e)
    except Exception as e:
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error reprinting application: {str(e)}",
        )
