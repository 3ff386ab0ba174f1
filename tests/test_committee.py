"""
Committee approval aggregator tests.
"""
import pytest

from coop_portal.database.models.application import Application, ApplicationStatus
from coop_portal.database.models.workflow import CommitteeApproval, CommitteeDecisionStatus
from coop_portal.workflow.committee import CommitteeApprovalAggregator
from coop_portal.workflow.errors import (
    DuplicateDecisionError,
    InvalidTransitionError,
    NotFoundError,
    WorkflowValidationError,
)


@pytest.fixture
def committee(db, engine_kwargs):
    return CommitteeApprovalAggregator(db, **engine_kwargs)


def approved_rows(db, application_id):
    return (
        db.query(CommitteeApproval)
        .filter(
            CommitteeApproval.application_id == application_id,
            CommitteeApproval.status == CommitteeDecisionStatus.APPROVED,
        )
        .count()
    )


class TestRecordDecision:

    def test_quorum_scenario(self, committee, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=2)

        first = committee.record_decision(application.id, "member-1", "approved")
        assert first.current_approvals == 1
        assert first.quorum_satisfied is False

        second = committee.record_decision(application.id, "member-2", "approved")
        assert second.current_approvals == 2
        assert second.required_approvals == 2
        assert second.quorum_satisfied is True

    def test_duplicate_decision_is_refused(self, committee, db, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=2)
        committee.record_decision(application.id, "member-1", "approved")

        with pytest.raises(DuplicateDecisionError) as exc:
            committee.record_decision(application.id, "member-1", "rejected", reason="Changed my mind")

        assert exc.value.expected == "approved"
        assert db.get(Application, application.id).current_approvals == 1
        assert db.query(CommitteeApproval).count() == 1

    def test_rejection_requires_reason(self, committee, db, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=1)

        with pytest.raises(WorkflowValidationError):
            committee.record_decision(application.id, "member-1", "rejected")
        with pytest.raises(WorkflowValidationError):
            committee.record_decision(application.id, "member-1", "rejected", reason="   ")

        assert db.query(CommitteeApproval).count() == 0

    def test_rejection_does_not_count(self, committee, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=1)

        result = committee.record_decision(
            application.id, "member-1", CommitteeDecisionStatus.REJECTED, reason="Company not accredited"
        )

        assert result.current_approvals == 0
        assert result.quorum_satisfied is False

    def test_zero_required_is_satisfied(self, committee, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW)

        result = committee.record_decision(application.id, "member-1", "approved")

        assert result.quorum_satisfied is True

    def test_unknown_status(self, committee, make_application):
        application = make_application()

        with pytest.raises(WorkflowValidationError):
            committee.record_decision(application.id, "member-1", "abstain")

    def test_unknown_application(self, committee):
        with pytest.raises(NotFoundError):
            committee.record_decision("3b241101-e2bb-4255-8caf-4136c566a962", "member-1", "approved")

    def test_completed_application_is_closed(self, committee, ledger, make_application):
        application = make_application()
        ledger.override(application.id, ApplicationStatus.COMPLETED, actor_id="admin-1", reason="Imported")

        with pytest.raises(InvalidTransitionError):
            committee.record_decision(application.id, "member-1", "approved")

    def test_count_matches_rows(self, committee, db, make_application, notifier):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=3)
        decisions = [
            ("member-1", "approved", None),
            ("member-2", "rejected", "Schedule conflict"),
            ("member-3", "approved", None),
            ("member-4", "approved", None),
        ]

        for member_id, status, reason in decisions:
            result = committee.record_decision(application.id, member_id, status, reason=reason)
            assert result.current_approvals == approved_rows(db, application.id)

        assert result.current_approvals == 3
        assert result.quorum_satisfied is True
        assert notifier.names().count("committee.decision_recorded") == 4


class TestSummary:

    def test_summary_is_derived_from_rows(self, committee, make_application):
        application = make_application(ApplicationStatus.UNDER_REVIEW, required_approvals=2)
        committee.record_decision(application.id, "member-1", "approved")
        committee.record_decision(application.id, "member-2", "rejected", reason="Incomplete documents")

        summary = committee.summary(application.id)

        assert summary.current_approvals == 1
        assert summary.rejections == 1
        assert summary.quorum_satisfied is False
        assert [d.member_id for d in summary.decisions] == ["member-1", "member-2"]
        assert summary.decisions[1].reason == "Incomplete documents"
