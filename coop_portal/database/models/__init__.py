# Import models in dependency order
from coop_portal.database.models.application import (
    Application,
    ApplicationStatus,
    ApplicationStatusHistory,
)
from coop_portal.database.models.workflow import (
    CommitteeApproval,
    CommitteeDecisionStatus,
    StaffStep,
    StaffWorkflowState,
    SupervisorStep,
    SupervisorWorkflowState,
)
from coop_portal.database.models.document import (
    DocumentLanguage,
    DocumentNumberSequence,
    PrintRecord,
)

__all__ = [
    "Application",
    "ApplicationStatus",
    "ApplicationStatusHistory",
    "CommitteeApproval",
    "CommitteeDecisionStatus",
    "StaffStep",
    "StaffWorkflowState",
    "SupervisorStep",
    "SupervisorWorkflowState",
    "DocumentLanguage",
    "DocumentNumberSequence",
    "PrintRecord",
]
