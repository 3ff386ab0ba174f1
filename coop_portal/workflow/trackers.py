"""
Staff and supervisor sub-workflows.

Both are an ordered list of named steps advanced one at a time through
``advance``. Asking for anything but the next unset step fails with an
``InvalidTransitionError`` naming the step that is expected instead; UIs show
that message to explain a disabled button.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from coop_portal.database.models.application import Application, ApplicationStatus
from coop_portal.database.models.workflow import (
    StaffStep,
    StaffWorkflowState,
    SupervisorStep,
    SupervisorWorkflowState,
)
from coop_portal.workflow.base import EngineComponent
from coop_portal.workflow.errors import (
    InvalidTransitionError,
    NotAssignedError,
    WorkflowValidationError,
)

logger = logging.getLogger(__name__)


@dataclass
class StepStatus:
    step: str
    done: bool
    completed_at: Optional[datetime] = None
    notes: Optional[str] = None
    completed_by: Optional[str] = None


@dataclass
class TrackerStatus:
    application_id: str
    current_step: str
    is_completed: bool
    steps: List[StepStatus] = field(default_factory=list)
    flags: Dict[str, bool] = field(default_factory=dict)
    details: Dict[str, Any] = field(default_factory=dict)


class StepTracker(EngineComponent):
    """Generic ordered-step tracker; subclasses name the model and the hooks."""

    state_model = None
    label = "workflow"
    event_name = None

    @property
    def steps(self):
        return self.state_model.STEPS

    def _coerce_step(self, step):
        try:
            return self.steps(step)
        except ValueError:
            raise WorkflowValidationError(
                f"Unknown {self.label} action: {step}",
                expected=[s.value for s in self.steps],
            )

    def _load_state(self, application: Application):
        return (
            self.db.query(self.state_model)
            .filter(self.state_model.application_id == application.id)
            .first()
        )

    def _new_state(self, application: Application):
        return self.state_model(application_id=application.id)

    def _check_application(self, application: Application, actor_id: Optional[str]) -> None:
        if application.status == ApplicationStatus.REJECTED:
            raise InvalidTransitionError(
                f"Application {application.id} was rejected; {self.label} actions are closed"
            )

    def _validate_details(self, step, details: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    def _apply_details(self, state, step, details: Dict[str, Any]) -> None:
        pass

    def _details(self, state) -> Dict[str, Any]:
        return {}

    def build_status(self, application: Application, state) -> TrackerStatus:
        steps = []
        for step in self.steps:
            done = state is not None and state.is_done(step)
            steps.append(
                StepStatus(
                    step=step.value,
                    done=done,
                    completed_at=getattr(state, f"{step.value}_at") if done else None,
                    notes=getattr(state, f"{step.value}_notes") if done else None,
                    completed_by=getattr(state, f"{step.value}_by") if done else None,
                )
            )

        next_step = state.next_step if state is not None else list(self.steps)[0]
        return TrackerStatus(
            application_id=str(application.id),
            current_step=next_step.value if next_step else "completed",
            is_completed=next_step is None,
            steps=steps,
            flags={s.step: s.done for s in steps},
            details=self._details(state) if state is not None else {},
        )

    def status(self, application_id) -> TrackerStatus:
        application = self._get_application(application_id)
        return self.build_status(application, self._load_state(application))

    def advance(self, application_id, step, notes: Optional[str] = None, actor_id: Optional[str] = None, **details) -> TrackerStatus:
        """Record ``step`` if and only if it is the next unset step."""
        step = self._coerce_step(step)
        # Payload problems are reported before anything is read or written
        details = self._validate_details(step, details)

        application = self._get_application(application_id, lock=True)
        self._check_application(application, actor_id)

        state = self._load_state(application)
        is_new = state is None
        if is_new:
            state = self._new_state(application)

        expected = state.next_step
        if step != expected:
            if expected is None:
                message = f"The {self.label} workflow is already complete"
            elif state.is_done(step):
                message = f"{step.value} is already recorded; the next {self.label} step is {expected.value}"
            else:
                message = f"{step.value} cannot be recorded before {expected.value}"
            raise InvalidTransitionError(message, expected=expected.value if expected else None)

        state.mark(step, self.clock(), notes, actor_id)
        self._apply_details(state, step, details)
        if is_new:
            self.db.add(state)
        self.db.commit()
        self.db.refresh(state)

        logger.info("application %s: %s step %s recorded by %s", application.id, self.label, step.value, actor_id)
        self._publish(
            self.event_name,
            {"application_id": str(application.id), "step": step.value, "actor_id": actor_id},
        )
        return self.build_status(application, state)


class StaffWorkflowTracker(StepTracker):
    """received -> reviewed -> approved -> sent_to_company, owned by staff."""

    state_model = StaffWorkflowState
    label = "staff"
    event_name = "workflow.staff.advanced"


class SupervisorWorkflowTracker(StepTracker):
    """assignment_received -> confirmed -> appointment_scheduled, owned by the assigned supervisor."""

    state_model = SupervisorWorkflowState
    label = "supervisor"
    event_name = "workflow.supervisor.advanced"

    def _new_state(self, application: Application):
        return self.state_model(application_id=application.id, supervisor_id=application.supervisor_id)

    def _check_application(self, application: Application, actor_id: Optional[str]) -> None:
        super()._check_application(application, actor_id)
        if not application.supervisor_id:
            raise InvalidTransitionError(
                f"No supervisor has been assigned to application {application.id}",
                expected="assign_supervisor",
            )
        if actor_id != application.supervisor_id:
            raise NotAssignedError(
                f"Only the assigned supervisor can act on application {application.id}"
            )

    def _validate_details(self, step, details: Dict[str, Any]) -> Dict[str, Any]:
        if step != SupervisorStep.APPOINTMENT_SCHEDULED:
            return {}

        appointment_date = details.get("appointment_date")
        if isinstance(appointment_date, str):
            if not appointment_date.strip():
                appointment_date = None
            else:
                try:
                    appointment_date = datetime.fromisoformat(appointment_date.strip())
                except ValueError:
                    raise WorkflowValidationError(f"Invalid appointment date: {appointment_date}")
        if appointment_date is None:
            raise WorkflowValidationError("An appointment date is required to schedule the appointment")
        if not isinstance(appointment_date, datetime):
            raise WorkflowValidationError(
                f"Appointment date must include a time of day: {appointment_date!r}"
            )

        location = details.get("appointment_location")
        if location is not None:
            location = location.strip() or None
        return {"appointment_date": appointment_date, "appointment_location": location}

    def _apply_details(self, state, step, details: Dict[str, Any]) -> None:
        if step == SupervisorStep.APPOINTMENT_SCHEDULED:
            state.appointment_date = details["appointment_date"]
            state.appointment_location = details["appointment_location"]

    def _details(self, state) -> Dict[str, Any]:
        return {
            "supervisor_id": state.supervisor_id,
            "appointment_date": state.appointment_date,
            "appointment_location": state.appointment_location,
        }

    def schedule_appointment(
        self,
        application_id,
        appointment_date,
        appointment_location: Optional[str] = None,
        notes: Optional[str] = None,
        actor_id: Optional[str] = None,
    ) -> TrackerStatus:
        return self.advance(
            application_id,
            SupervisorStep.APPOINTMENT_SCHEDULED,
            notes=notes,
            actor_id=actor_id,
            appointment_date=appointment_date,
            appointment_location=appointment_location,
        )

    def assign(self, application_id, supervisor_id: str, actor_id: Optional[str] = None) -> TrackerStatus:
        """Assign the faculty supervisor once staff have approved the documents."""
        if not supervisor_id or not supervisor_id.strip():
            raise WorkflowValidationError("supervisor_id is required")
        supervisor_id = supervisor_id.strip()

        application = self._get_application(application_id, lock=True)
        if application.status == ApplicationStatus.REJECTED:
            raise InvalidTransitionError(f"Application {application.id} was rejected")

        staff_state = (
            self.db.query(StaffWorkflowState)
            .filter(StaffWorkflowState.application_id == application.id)
            .first()
        )
        if staff_state is None or not staff_state.is_done(StaffStep.APPROVED):
            raise InvalidTransitionError(
                "A supervisor can only be assigned after staff approve the documents",
                expected=StaffStep.APPROVED.value,
            )

        state = self._load_state(application)
        if application.supervisor_id == supervisor_id and state is not None:
            return self.build_status(application, state)
        if state is not None and state.current_step is not None:
            raise InvalidTransitionError(
                f"Supervisor {application.supervisor_id} has already started on application {application.id}",
                expected=None,
            )

        application.supervisor_id = supervisor_id
        application.supervisor_assigned_at = self.clock()
        if state is None:
            state = self._new_state(application)
            self.db.add(state)
        else:
            state.supervisor_id = supervisor_id
        self.db.commit()
        self.db.refresh(state)

        logger.info("application %s assigned to supervisor %s by %s", application.id, supervisor_id, actor_id)
        self._publish(
            "workflow.supervisor.assigned",
            {"application_id": str(application.id), "supervisor_id": supervisor_id},
        )
        return self.build_status(application, state)
