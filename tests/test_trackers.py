"""
Staff and supervisor tracker tests.
"""
from datetime import date, datetime

import pytest

from coop_portal.database.models.application import ApplicationStatus
from coop_portal.database.models.workflow import (
    StaffStep,
    StaffWorkflowState,
    SupervisorStep,
    SupervisorWorkflowState,
)
from coop_portal.workflow.errors import (
    InvalidTransitionError,
    NotAssignedError,
    NotFoundError,
    WorkflowValidationError,
)
from coop_portal.workflow.trackers import StaffWorkflowTracker, SupervisorWorkflowTracker

SUPERVISOR = "lecturer-9"


@pytest.fixture
def staff(db, engine_kwargs):
    return StaffWorkflowTracker(db, **engine_kwargs)


@pytest.fixture
def supervisor(db, engine_kwargs):
    return SupervisorWorkflowTracker(db, **engine_kwargs)


@pytest.fixture
def assigned_application(staff, supervisor, make_application):
    application = make_application(ApplicationStatus.UNDER_REVIEW)
    staff.advance(application.id, StaffStep.RECEIVED, actor_id="staff-1")
    staff.advance(application.id, StaffStep.REVIEWED, actor_id="staff-1")
    staff.advance(application.id, StaffStep.APPROVED, actor_id="staff-1")
    supervisor.assign(application.id, SUPERVISOR, actor_id="staff-1")
    return application


class TestStaffTracker:

    def test_out_of_order_step_names_expected(self, staff, db, make_application):
        application = make_application()

        with pytest.raises(InvalidTransitionError) as exc:
            staff.advance(application.id, "reviewed")

        assert exc.value.expected == "received"
        assert "received" in exc.value.message
        # Nothing was created
        assert db.query(StaffWorkflowState).count() == 0

    def test_steps_in_order(self, staff, make_application, notifier):
        application = make_application()

        status = staff.advance(application.id, "received", notes="Paper copy in tray", actor_id="staff-1")
        assert status.flags == {
            "received": True,
            "reviewed": False,
            "approved": False,
            "sent_to_company": False,
        }
        assert status.current_step == "reviewed"
        assert status.steps[0].notes == "Paper copy in tray"
        assert status.steps[0].completed_by == "staff-1"
        assert status.steps[0].completed_at is not None

        for step in ("reviewed", "approved", "sent_to_company"):
            status = staff.advance(application.id, step, actor_id="staff-1")

        assert status.is_completed is True
        assert status.current_step == "completed"
        assert notifier.names().count("workflow.staff.advanced") == 4

    def test_repeating_a_step_is_refused(self, staff, make_application):
        application = make_application()
        staff.advance(application.id, StaffStep.RECEIVED)

        with pytest.raises(InvalidTransitionError) as exc:
            staff.advance(application.id, StaffStep.RECEIVED)

        assert exc.value.expected == "reviewed"

    def test_completed_tracker_refuses_more(self, staff, make_application):
        application = make_application()
        for step in StaffStep:
            staff.advance(application.id, step)

        with pytest.raises(InvalidTransitionError) as exc:
            staff.advance(application.id, StaffStep.SENT_TO_COMPANY)

        assert exc.value.expected is None

    def test_failed_advance_leaves_state_unchanged(self, staff, make_application):
        application = make_application()
        staff.advance(application.id, StaffStep.RECEIVED)

        with pytest.raises(InvalidTransitionError):
            staff.advance(application.id, StaffStep.APPROVED)

        status = staff.status(application.id)
        assert status.flags["received"] is True
        assert status.flags["reviewed"] is False
        assert status.flags["approved"] is False

    def test_unknown_step(self, staff, make_application):
        application = make_application()

        with pytest.raises(WorkflowValidationError) as exc:
            staff.advance(application.id, "archived")

        assert exc.value.expected == ["received", "reviewed", "approved", "sent_to_company"]

    def test_rejected_application_is_closed(self, staff, make_application):
        application = make_application(ApplicationStatus.REJECTED)

        with pytest.raises(InvalidTransitionError):
            staff.advance(application.id, StaffStep.RECEIVED)

    def test_status_without_state(self, staff, make_application):
        application = make_application()

        status = staff.status(application.id)

        assert status.current_step == "received"
        assert status.is_completed is False
        assert not any(status.flags.values())

    def test_unknown_application(self, staff):
        with pytest.raises(NotFoundError):
            staff.status("00000000-0000-0000-0000-000000000000")


class TestSupervisorAssignment:

    def test_requires_staff_approval(self, staff, supervisor, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW)
        staff.advance(application.id, StaffStep.RECEIVED)

        with pytest.raises(InvalidTransitionError) as exc:
            supervisor.assign(application.id, SUPERVISOR)

        assert exc.value.expected == "approved"

    def test_assignment_creates_state(self, supervisor, db, assigned_application, notifier):
        status = supervisor.status(assigned_application.id)

        assert status.details["supervisor_id"] == SUPERVISOR
        assert status.current_step == "assignment_received"
        assert db.query(SupervisorWorkflowState).count() == 1
        assert "workflow.supervisor.assigned" in notifier.names()

    def test_reassign_before_any_step(self, supervisor, ledger, db, assigned_application):
        supervisor.assign(assigned_application.id, "lecturer-3")

        state = db.query(SupervisorWorkflowState).one()
        assert state.supervisor_id == "lecturer-3"
        assert ledger.get(assigned_application.id).supervisor_id == "lecturer-3"

    def test_reassign_after_supervisor_started(self, supervisor, assigned_application):
        supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)

        with pytest.raises(InvalidTransitionError):
            supervisor.assign(assigned_application.id, "lecturer-3")

    def test_supervisor_id_required(self, supervisor, assigned_application):
        with pytest.raises(WorkflowValidationError):
            supervisor.assign(assigned_application.id, "  ")


class TestSupervisorTracker:

    def test_only_assigned_supervisor_may_act(self, supervisor, assigned_application):
        with pytest.raises(NotAssignedError):
            supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id="lecturer-3")

    def test_no_supervisor_assigned(self, supervisor, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW)

        with pytest.raises(InvalidTransitionError) as exc:
            supervisor.advance(application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)

        assert exc.value.expected == "assign_supervisor"

    def test_schedule_requires_date(self, supervisor, assigned_application):
        supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)
        supervisor.advance(assigned_application.id, SupervisorStep.CONFIRMED, actor_id=SUPERVISOR)

        with pytest.raises(WorkflowValidationError):
            supervisor.schedule_appointment(assigned_application.id, None, actor_id=SUPERVISOR)
        with pytest.raises(WorkflowValidationError):
            supervisor.schedule_appointment(assigned_application.id, "", actor_id=SUPERVISOR)

        status = supervisor.status(assigned_application.id)
        assert status.flags["appointment_scheduled"] is False
        assert status.details["appointment_date"] is None

    def test_plain_date_is_rejected(self, supervisor, assigned_application):
        supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)
        supervisor.advance(assigned_application.id, SupervisorStep.CONFIRMED, actor_id=SUPERVISOR)

        with pytest.raises(WorkflowValidationError):
            supervisor.schedule_appointment(assigned_application.id, date(2025, 7, 15), actor_id=SUPERVISOR)

        status = supervisor.status(assigned_application.id)
        assert status.flags["appointment_scheduled"] is False

    def test_date_is_checked_before_order(self, supervisor, assigned_application):
        # Validation errors win over ordering errors
        with pytest.raises(WorkflowValidationError):
            supervisor.schedule_appointment(assigned_application.id, None, actor_id=SUPERVISOR)

    def test_full_supervisor_flow(self, supervisor, assigned_application, notifier):
        supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)
        supervisor.advance(assigned_application.id, SupervisorStep.CONFIRMED, actor_id=SUPERVISOR)

        status = supervisor.schedule_appointment(
            assigned_application.id,
            "2025-07-15T10:00:00",
            appointment_location=" Building 3, Room 204 ",
            actor_id=SUPERVISOR,
        )

        assert status.is_completed is True
        assert status.details["appointment_date"] == datetime(2025, 7, 15, 10, 0)
        assert status.details["appointment_location"] == "Building 3, Room 204"
        assert notifier.names().count("workflow.supervisor.advanced") == 3

    def test_rejected_application_is_closed(self, supervisor, ledger, assigned_application):
        ledger.transition(assigned_application.id, ApplicationStatus.REJECTED, actor_id="staff-1")

        with pytest.raises(InvalidTransitionError):
            supervisor.advance(assigned_application.id, SupervisorStep.ASSIGNMENT_RECEIVED, actor_id=SUPERVISOR)
