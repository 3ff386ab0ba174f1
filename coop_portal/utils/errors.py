"""
Engine error to HTTP response mapping.
"""
from fastapi import HTTPException, status

from coop_portal.workflow.errors import WorkflowError

ERROR_STATUS_CODES = {
    "invalid_transition": status.HTTP_409_CONFLICT,
    "not_found": status.HTTP_404_NOT_FOUND,
    "duplicate": status.HTTP_409_CONFLICT,
    "validation": status.HTTP_400_BAD_REQUEST,
    "not_assigned": status.HTTP_403_FORBIDDEN,
    "sequence_conflict": status.HTTP_503_SERVICE_UNAVAILABLE,
}


def to_http_exception(error: WorkflowError) -> HTTPException:
    """Detail is ``{"code", "message", "expected"?}`` so UIs can explain a refused action."""
    return HTTPException(
        status_code=ERROR_STATUS_CODES.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.to_dict(),
    )
