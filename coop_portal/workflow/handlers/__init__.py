from coop_portal.workflow.handlers.config import CHANGE_HANDLERS, change_handler
from coop_portal.workflow.handlers import broadcast  # noqa: F401  registers default handlers

__all__ = ["CHANGE_HANDLERS", "change_handler"]
