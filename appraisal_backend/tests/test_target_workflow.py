import uuid

import pytest

from api.target_models import AuditEntry, TargetSetting, TargetStatus
from api.target_workflow import FailureKind, TargetWorkflow, UNSET

pytestmark = pytest.mark.django_db

FEEDBACK = 'Please add more detail here'


def audit_actions(record_id):
    return list(
        AuditEntry.objects.filter(target_id=str(record_id)).order_by('id').values_list('action', flat=True)
    )


@pytest.fixture
def draft(workflow, employee, actor, valid_targets):
    result = workflow.create(actor(employee), valid_targets, cycle_year=2025)
    assert result.ok, result.failure
    return result.value


@pytest.fixture
def submitted(workflow, employee, actor, draft):
    result = workflow.submit(actor(employee), draft.id)
    assert result.ok, result.failure
    return result.value


class TestCreate:

    def test_creates_draft(self, workflow, employee, manager, actor, valid_targets):
        result = workflow.create(
            actor(employee), valid_targets, cycle_year=2025,
            current_role='Backend engineer', long_term_goal='Lead a team',
        )

        assert result.ok
        record = result.value
        assert record.status is TargetStatus.DRAFT
        assert record.manager_id == manager.pk
        assert record.current_role == 'Backend engineer'
        assert record.targets == valid_targets
        assert audit_actions(record.id) == ['create_target_draft']

    def test_defaults_to_current_year(self, workflow, employee, actor, valid_targets):
        from django.utils import timezone

        result = workflow.create(actor(employee), valid_targets)

        assert result.value.cycle_year == timezone.now().year

    def test_strict_validation_unless_draft(self, workflow, employee, actor, make_targets):
        incomplete = make_targets(30, 30, 30)

        strict = workflow.create(actor(employee), incomplete, cycle_year=2025)
        relaxed = workflow.create(actor(employee), incomplete, cycle_year=2025, is_draft=True)

        assert strict.failure.kind is FailureKind.VALIDATION_FAILED
        assert any(error.field == 'targets' for error in strict.failure.errors)
        assert relaxed.ok

    def test_requires_manager(self, workflow, make_employee, actor, valid_targets):
        loner = make_employee('EMP099')

        result = workflow.create(actor(loner), valid_targets, cycle_year=2025)

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert result.failure.message == 'You must have a manager assigned to create targets'
        assert not TargetSetting.objects.exists()

    def test_invalid_cycle_year(self, workflow, employee, actor, valid_targets):
        result = workflow.create(actor(employee), valid_targets, cycle_year=1999)

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert result.failure.errors[0].field == 'cycleYear'

    def test_duplicate_is_conflict(self, workflow, employee, actor, draft, valid_targets):
        result = workflow.create(actor(employee), valid_targets, cycle_year=2025)

        assert result.failure.kind is FailureKind.CONFLICT
        assert result.failure.existing_id == draft.id
        assert result.failure.current_status is TargetStatus.DRAFT
        assert audit_actions(draft.id) == ['create_target_draft']

    def test_concurrent_create_loses_on_unique_constraint(self, employee, actor, valid_targets):
        """Both creators pass the advisory pre-check; the database decides."""
        first = TargetWorkflow()
        second = TargetWorkflow()
        second.store.find_by_employee_and_year = lambda employee_id, cycle_year: None

        winner = first.create(actor(employee), valid_targets, cycle_year=2025)
        loser = second.create(actor(employee), valid_targets, cycle_year=2025)

        assert winner.ok
        assert loser.failure.kind is FailureKind.CONFLICT
        assert loser.failure.message == 'Target setting already exists for this year. Use PUT to update.'
        assert loser.failure.existing_id == winner.value.id
        assert TargetSetting.objects.filter(employee=employee, cycle_year=2025).count() == 1

    def test_unauthenticated(self, workflow, valid_targets):
        assert workflow.create(None, valid_targets).failure.kind is FailureKind.UNAUTHORIZED


class TestHappyPath:

    def test_create_submit_approve(self, workflow, employee, manager, other_manager, actor, make_targets):
        record = workflow.create(actor(employee), make_targets(40, 35, 25), cycle_year=2025).value
        assert record.status is TargetStatus.DRAFT

        submitted = workflow.submit(actor(employee), record.id).value
        assert submitted.status is TargetStatus.SUBMITTED_TO_MANAGER
        assert submitted.submitted_at is not None

        approved = workflow.approve(actor(manager), record.id).value
        assert approved.status is TargetStatus.MANAGER_APPROVED
        assert approved.approved_at is not None

        rejected = workflow.approve(actor(other_manager), record.id)
        assert rejected.failure.kind is FailureKind.FORBIDDEN

        assert audit_actions(record.id) == [
            'create_target_draft',
            'submit_targets_to_manager',
            'approve_targets',
        ]

    def test_clock_is_injected(self, employee, actor, valid_targets):
        from datetime import datetime, timezone as dt_timezone

        fixed = datetime(2025, 3, 1, 9, 30, tzinfo=dt_timezone.utc)
        workflow = TargetWorkflow(clock=lambda: fixed)
        record = workflow.create(actor(employee), valid_targets, cycle_year=2025).value

        assert workflow.submit(actor(employee), record.id).value.submitted_at == fixed


class TestSubmit:

    def test_second_submit_conflicts(self, workflow, employee, actor, submitted):
        result = workflow.submit(actor(employee), submitted.id)

        assert result.failure.kind is FailureKind.CONFLICT
        assert result.failure.current_status is TargetStatus.SUBMITTED_TO_MANAGER
        assert result.failure.message == (
            'Cannot submit target in submitted_to_manager state. '
            'Only draft or revision_requested targets can be submitted.'
        )
        assert audit_actions(submitted.id).count('submit_targets_to_manager') == 1

    def test_lost_race_observes_winner_state(self, employee, actor, draft):
        """A submit that read the record before a concurrent submit committed."""
        workflow = TargetWorkflow()
        stale = workflow.store.find_by_id(draft.id)
        assert workflow.submit(actor(employee), draft.id).ok

        workflow.store.find_by_id = lambda target_setting_id: stale
        result = workflow.submit(actor(employee), draft.id)

        assert result.failure.kind is FailureKind.CONFLICT
        assert result.failure.current_status is TargetStatus.SUBMITTED_TO_MANAGER
        assert audit_actions(draft.id).count('submit_targets_to_manager') == 1

    def test_validates_list_stored_at_write_time(self, employee, actor, draft):
        """A draft save committed after submit read the record must not slip through."""
        workflow = TargetWorkflow()
        stale = workflow.store.find_by_id(draft.id)
        assert TargetWorkflow().update(actor(employee), draft.id, [{'kpi': 'x'}]).ok

        workflow.store.find_by_id = lambda target_setting_id: stale
        result = workflow.submit(actor(employee), draft.id)

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        stored = TargetWorkflow().store.find_by_id(draft.id)
        assert stored.status is TargetStatus.DRAFT
        assert stored.targets == [{'kpi': 'x'}]
        assert 'submit_targets_to_manager' not in audit_actions(draft.id)

    def test_audit_records_locked_previous_status(self, workflow, employee, actor, draft):
        workflow.submit(actor(employee), draft.id)

        entry = AuditEntry.objects.get(target_id=str(draft.id), action='submit_targets_to_manager')
        assert entry.details['previous_status'] == 'draft'

    def test_invalid_weight_sum_stays_draft(self, workflow, employee, actor, make_targets):
        record = workflow.create(actor(employee), make_targets(30, 30, 30), cycle_year=2025, is_draft=True).value

        result = workflow.submit(actor(employee), record.id)

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert 'Total weight of all targets must equal exactly 100% (currently 90%)' in [
            error.message for error in result.failure.errors
        ]
        assert workflow.store.find_by_id(record.id).status is TargetStatus.DRAFT
        assert audit_actions(record.id) == ['create_target_draft']

    def test_only_owner(self, workflow, other_employee, manager, actor, draft):
        assert workflow.submit(actor(other_employee), draft.id).failure.kind is FailureKind.FORBIDDEN
        assert workflow.submit(actor(manager), draft.id).failure.kind is FailureKind.FORBIDDEN

    def test_not_found_before_forbidden(self, workflow, other_employee, actor):
        result = workflow.submit(actor(other_employee), uuid.uuid4())

        assert result.failure.kind is FailureKind.NOT_FOUND

    def test_forbidden_before_conflict(self, workflow, other_employee, actor, submitted):
        assert workflow.submit(actor(other_employee), submitted.id).failure.kind is FailureKind.FORBIDDEN


class TestRevisionLoop:

    def test_request_revision_update_resubmit(self, workflow, employee, manager, actor, submitted, make_targets):
        revised = workflow.request_revision(actor(manager), submitted.id, FEEDBACK)
        assert revised.value.status is TargetStatus.REVISION_REQUESTED
        assert revised.value.approved_at is None

        updated = workflow.update(actor(employee), submitted.id, make_targets(50, 30, 20))
        assert updated.value.status is TargetStatus.DRAFT

        resubmitted = workflow.submit(actor(employee), submitted.id)
        assert resubmitted.value.status is TargetStatus.SUBMITTED_TO_MANAGER
        assert [t['weight'] for t in resubmitted.value.targets] == [50, 30, 20]

        entry = AuditEntry.objects.get(target_id=str(submitted.id), action='request_target_revision')
        assert entry.details['feedback'] == FEEDBACK
        assert entry.actor_id == manager.pk
        assert entry.actor_role == 'manager'

    def test_submit_straight_from_revision_requested(self, workflow, employee, manager, actor, submitted):
        workflow.request_revision(actor(manager), submitted.id, FEEDBACK)

        assert workflow.submit(actor(employee), submitted.id).value.status is TargetStatus.SUBMITTED_TO_MANAGER

    @pytest.mark.parametrize('feedback', [None, '', 'too short'])
    def test_feedback_required_before_any_write(self, workflow, manager, actor, submitted, feedback):
        result = workflow.request_revision(actor(manager), submitted.id, feedback)

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert workflow.store.find_by_id(submitted.id).status is TargetStatus.SUBMITTED_TO_MANAGER
        assert 'request_target_revision' not in audit_actions(submitted.id)

    def test_review_conflict_names_state(self, workflow, manager, actor, draft):
        result = workflow.approve(actor(manager), draft.id)

        assert result.failure.kind is FailureKind.CONFLICT
        assert 'in draft state' in result.failure.message

    def test_approved_cannot_be_reviewed_again(self, workflow, manager, actor, submitted):
        workflow.approve(actor(manager), submitted.id)

        result = workflow.request_revision(actor(manager), submitted.id, FEEDBACK)

        assert result.failure.kind is FailureKind.CONFLICT
        assert result.failure.current_status is TargetStatus.MANAGER_APPROVED


class TestReviewDispatch:

    def test_approve(self, workflow, manager, actor, submitted):
        assert workflow.review(actor(manager), submitted.id, 'approve').value.status is TargetStatus.MANAGER_APPROVED

    def test_request_revision(self, workflow, manager, actor, submitted):
        result = workflow.review(actor(manager), submitted.id, 'request_revision', FEEDBACK)

        assert result.value.status is TargetStatus.REVISION_REQUESTED

    def test_unknown_action(self, workflow, manager, actor, submitted):
        result = workflow.review(actor(manager), submitted.id, 'reject')

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert result.failure.errors[0].field == 'action'


class TestManagerOfRecord:

    def test_line_manager_change_does_not_move_approval(self, workflow, employee, manager, other_manager, actor, submitted):
        employee.change_line_manager(other_manager)

        assert workflow.approve(actor(other_manager), submitted.id).failure.kind is FailureKind.FORBIDDEN
        assert workflow.approve(actor(manager), submitted.id).ok

    def test_hr_admin_cannot_approve(self, workflow, hr_admin, actor, submitted):
        assert workflow.approve(actor(hr_admin), submitted.id).failure.kind is FailureKind.FORBIDDEN


class TestUpdate:

    def test_keeps_optional_fields_when_unset(self, workflow, employee, actor, valid_targets):
        record = workflow.create(actor(employee), valid_targets, cycle_year=2025, current_role='Analyst').value

        updated = workflow.update(actor(employee), record.id, valid_targets, long_term_goal='Principal')

        assert updated.value.current_role == 'Analyst'
        assert updated.value.long_term_goal == 'Principal'

    def test_clear_optional_field(self, workflow, employee, actor, valid_targets):
        record = workflow.create(actor(employee), valid_targets, cycle_year=2025, current_role='Analyst').value

        updated = workflow.update(actor(employee), record.id, valid_targets, current_role=None)

        assert updated.value.current_role is None

    def test_relaxed_validation(self, workflow, employee, actor, draft):
        result = workflow.update(actor(employee), draft.id, [{'taskDescription': 'wip'}])

        assert result.ok
        assert result.value.targets == [{'taskDescription': 'wip'}]
        assert audit_actions(draft.id) == ['create_target_draft', 'update_target_draft']

    def test_rejects_non_list(self, workflow, employee, actor, draft, valid_targets):
        result = workflow.update(actor(employee), draft.id, 'nope')

        assert result.failure.kind is FailureKind.VALIDATION_FAILED
        assert workflow.store.find_by_id(draft.id).targets == valid_targets

    def test_not_editable_once_submitted(self, workflow, employee, actor, submitted, valid_targets):
        result = workflow.update(actor(employee), submitted.id, valid_targets)

        assert result.failure.kind is FailureKind.CONFLICT
        assert result.failure.message.startswith('Cannot update target in submitted_to_manager state.')

    def test_only_owner(self, workflow, manager, actor, draft, valid_targets):
        assert workflow.update(actor(manager), draft.id, valid_targets).failure.kind is FailureKind.FORBIDDEN

    def test_unset_sentinel_repr(self):
        assert repr(UNSET) == 'UNSET'


class TestReads:

    def test_get_allowed(self, workflow, employee, manager, hr_admin, actor, draft):
        for viewer in (employee, manager, hr_admin):
            assert workflow.get(actor(viewer), draft.id).value.id == draft.id

    def test_get_forbidden_for_unrelated_employee(self, workflow, other_employee, other_manager, actor, draft):
        assert workflow.get(actor(other_employee), draft.id).failure.kind is FailureKind.FORBIDDEN
        assert workflow.get(actor(other_manager), draft.id).failure.kind is FailureKind.FORBIDDEN

    def test_get_not_found(self, workflow, employee, actor):
        assert workflow.get(actor(employee), 'missing').failure.kind is FailureKind.NOT_FOUND

    def test_list(self, workflow, employee, other_employee, actor, draft, valid_targets):
        workflow.create(actor(other_employee), valid_targets, cycle_year=2025)

        result = workflow.list(actor(employee), cycle_year=2025)

        assert [record.id for record in result.value] == [draft.id]

    def test_list_rejects_unknown_status(self, workflow, employee, actor):
        assert workflow.list(actor(employee), status='archived').failure.kind is FailureKind.VALIDATION_FAILED

    def test_pending_approvals(self, workflow, manager, actor, submitted):
        pending = workflow.pending_approvals(actor(manager)).value

        assert [record.id for record in pending] == [submitted.id]

    def test_pending_requires_manager_role(self, workflow, employee, actor):
        assert workflow.pending_approvals(actor(employee)).failure.kind is FailureKind.FORBIDDEN

    def test_activity_log_newest_first(self, workflow, employee, actor, submitted):
        entries = workflow.activity_log(actor(employee), submitted.id).value

        assert [entry.action for entry in entries] == ['submit_targets_to_manager', 'create_target_draft']

    def test_activity_log_read_rule(self, workflow, other_employee, actor, submitted):
        assert workflow.activity_log(actor(other_employee), submitted.id).failure.kind is FailureKind.FORBIDDEN
