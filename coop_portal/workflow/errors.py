"""
Typed errors raised by the workflow engine.

Every error carries a stable ``code`` so routers (and UIs behind them) can tell
apart a disabled action from a missing record without parsing messages.
"""
from typing import Any, Optional


class WorkflowError(Exception):
    code = "workflow_error"

    def __init__(self, message: str, expected: Optional[Any] = None):
        super().__init__(message)
        self.message = message
        self.expected = expected

    def to_dict(self) -> dict:
        detail = {"code": self.code, "message": self.message}
        if self.expected is not None:
            detail["expected"] = self.expected
        return detail


class InvalidTransitionError(WorkflowError):
    """Action out of order, or the application is in a state that refuses it."""
    code = "invalid_transition"


class NotFoundError(WorkflowError):
    code = "not_found"


class DuplicateDecisionError(WorkflowError):
    code = "duplicate"


class WorkflowValidationError(WorkflowError):
    """Request rejected before any state was touched."""
    code = "validation"


class NotAssignedError(WorkflowError):
    """The acting supervisor is not the one assigned to the application."""
    code = "not_assigned"


class SequenceConflictError(WorkflowError):
    code = "sequence_conflict"
