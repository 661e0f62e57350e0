# api/target_workflow.py - Target setting state machine
"""
Transitions:

    (none)                          --create-->           draft
    draft | revision_requested      --update-->           draft
    draft | revision_requested      --submit-->           submitted_to_manager
    submitted_to_manager            --approve-->          manager_approved
    submitted_to_manager            --request_revision--> revision_requested

Business-rule failures come back as TransitionResult values. Only
infrastructure errors (database, corrupt rows) are raised.

Checks run in the order not_found -> forbidden -> conflict -> validation,
and nothing is written or audited unless every check passes.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Tuple
import logging

from django.db import transaction
from django.utils import timezone

from .models import Employee
from .target_models import TargetStatus, EDITABLE_STATUSES, REVIEWABLE_STATUSES
from .target_permissions import can_view_target_setting, has_role
from .target_store import (
    TargetSettingStore,
    DuplicateTargetSettingError,
    StaleTransitionError,
    TargetSettingNotFoundError,
    TARGET_TYPE,
)
from .target_validators import (
    FieldError,
    validate_cycle_year,
    validate_draft_targets,
    validate_feedback,
    validate_target_list,
)
from .audit_service import AuditSink

logger = logging.getLogger(__name__)


class _Unset:
    def __repr__(self):
        return 'UNSET'


UNSET = _Unset()


class FailureKind(str, Enum):
    UNAUTHORIZED = 'unauthorized'
    FORBIDDEN = 'forbidden'
    NOT_FOUND = 'not_found'
    CONFLICT = 'conflict'
    VALIDATION_FAILED = 'validation_failed'


@dataclass(frozen=True)
class WorkflowFailure:
    kind: FailureKind
    message: str
    errors: Tuple[FieldError, ...] = ()
    current_status: Optional[TargetStatus] = None
    existing_id: Any = None


@dataclass(frozen=True)
class TransitionResult:
    value: Any = None
    failure: Optional[WorkflowFailure] = None

    @property
    def ok(self):
        return self.failure is None

    @classmethod
    def success(cls, value):
        return cls(value=value)

    @classmethod
    def fail(cls, kind, message, errors=(), current_status=None, existing_id=None):
        return cls(failure=WorkflowFailure(
            kind=kind,
            message=message,
            errors=tuple(errors),
            current_status=current_status,
            existing_id=existing_id,
        ))


# verb -> (past participle, allowed source states)
TRANSITION_RULES = {
    'update': ('updated', EDITABLE_STATUSES),
    'submit': ('submitted', EDITABLE_STATUSES),
    'approve': ('reviewed', REVIEWABLE_STATUSES),
    'request revision for': ('reviewed', REVIEWABLE_STATUSES),
}

REVIEW_APPROVE = 'approve'
REVIEW_REQUEST_REVISION = 'request_revision'
REVIEW_ACTIONS = (REVIEW_APPROVE, REVIEW_REQUEST_REVISION)


def _status_value(status):
    return status.value if isinstance(status, TargetStatus) else status


def _conflict(verb, current_status):
    past, allowed = TRANSITION_RULES[verb]
    allowed_text = ' or '.join(s.value for s in allowed)
    return TransitionResult.fail(
        FailureKind.CONFLICT,
        f"Cannot {verb} target in {_status_value(current_status)} state. "
        f"Only {allowed_text} targets can be {past}.",
        current_status=current_status,
    )


def _not_found(target_setting_id):
    return TransitionResult.fail(FailureKind.NOT_FOUND, f"Target setting {target_setting_id} not found")


def _unauthorized():
    return TransitionResult.fail(FailureKind.UNAUTHORIZED, 'Authentication required')


class TargetWorkflow:
    """Target setting workflow; every operation takes the acting employee first"""

    def __init__(self, store=None, audit=None, clock=timezone.now):
        self.store = store or TargetSettingStore()
        self.audit = audit or AuditSink()
        self.clock = clock

    # ============ CREATE ============

    def create(self, actor, targets, cycle_year=None, is_draft=False, current_role=None, long_term_goal=None):
        if actor is None:
            return _unauthorized()

        if actor.manager_id is None:
            logger.info(f"Employee {actor.id} tried to create targets without a manager")
            return TransitionResult.fail(
                FailureKind.VALIDATION_FAILED,
                'You must have a manager assigned to create targets',
                errors=[FieldError('managerId', 'No manager assigned')],
            )

        checked = validate_draft_targets(targets) if is_draft else validate_target_list(targets)
        if not checked.ok:
            return TransitionResult.fail(FailureKind.VALIDATION_FAILED, 'Validation failed', errors=checked.errors)

        year = validate_cycle_year(cycle_year)
        if not year.ok:
            return TransitionResult.fail(FailureKind.VALIDATION_FAILED, 'Invalid cycle year', errors=year.errors)

        existing = self.store.find_by_employee_and_year(actor.id, year.value)
        if existing is not None:
            return self._already_exists(actor, year.value, existing.id, existing.status)

        try:
            with transaction.atomic():
                record = self.store.create(
                    employee_id=actor.id,
                    manager_id=actor.manager_id,
                    cycle_year=year.value,
                    targets=list(targets),
                    current_role=current_role,
                    long_term_goal=long_term_goal,
                )
                self.audit.record(
                    actor, Employee.ROLE_EMPLOYEE, 'create_target_draft', TARGET_TYPE, record.id,
                    {'cycle_year': record.cycle_year, 'target_count': len(record.targets), 'is_draft': bool(is_draft)},
                )
        except DuplicateTargetSettingError as e:
            existing = self.store.find_by_employee_and_year(actor.id, year.value)
            return self._already_exists(
                actor, year.value, e.existing_id, existing.status if existing else None
            )

        logger.info(f"Target setting {record.id} created by employee {actor.id} for {record.cycle_year}")
        return TransitionResult.success(record)

    def _already_exists(self, actor, cycle_year, existing_id, current_status):
        logger.info(f"Employee {actor.id} already has target setting {existing_id} for {cycle_year}")
        return TransitionResult.fail(
            FailureKind.CONFLICT,
            'Target setting already exists for this year. Use PUT to update.',
            current_status=current_status,
            existing_id=existing_id,
        )

    # ============ EMPLOYEE TRANSITIONS ============

    def update(self, actor, target_setting_id, targets, current_role=UNSET, long_term_goal=UNSET):
        """Draft save. Always lands in draft, including from revision_requested."""
        if actor is None:
            return _unauthorized()

        record = self.store.find_by_id(target_setting_id)
        if record is None:
            return _not_found(target_setting_id)

        if record.employee_id != actor.id:
            logger.warning(f"Employee {actor.id} tried to update target setting {record.id} they do not own")
            return TransitionResult.fail(FailureKind.FORBIDDEN, 'You can only update your own targets')

        if record.status not in EDITABLE_STATUSES:
            return _conflict('update', record.status)

        checked = validate_draft_targets(targets)
        if not checked.ok:
            return TransitionResult.fail(FailureKind.VALIDATION_FAILED, 'Validation failed', errors=checked.errors)

        patch = {
            'targets': checked.value,
            'status': TargetStatus.DRAFT,
        }
        if current_role is not UNSET:
            patch['current_role'] = current_role
        if long_term_goal is not UNSET:
            patch['long_term_goal'] = long_term_goal

        return self._apply(
            actor, record, 'update', patch,
            audit_action='update_target_draft',
            actor_role=Employee.ROLE_EMPLOYEE,
            details={'target_count': len(checked.value)},
        )

    def submit(self, actor, target_setting_id):
        if actor is None:
            return _unauthorized()

        record = self.store.find_by_id(target_setting_id)
        if record is None:
            return _not_found(target_setting_id)

        if record.employee_id != actor.id:
            logger.warning(f"Employee {actor.id} tried to submit target setting {record.id} they do not own")
            return TransitionResult.fail(FailureKind.FORBIDDEN, 'You can only submit your own targets')

        if record.status not in EDITABLE_STATUSES:
            return _conflict('submit', record.status)

        return self._apply(
            actor, record, 'submit',
            {'status': TargetStatus.SUBMITTED_TO_MANAGER, 'submitted_at': self.clock()},
            audit_action='submit_targets_to_manager',
            actor_role=Employee.ROLE_EMPLOYEE,
            details={'manager_id': record.manager_id},
            precondition=self._check_submittable,
        )

    def _check_submittable(self, locked):
        # runs against the locked row, so a draft save racing the submit is seen
        checked = validate_target_list(locked.targets)
        if checked.ok:
            return None
        logger.info(f"Target setting {locked.id} failed validation on submit")
        return TransitionResult.fail(
            FailureKind.VALIDATION_FAILED,
            'Targets must be complete before submission',
            errors=checked.errors,
            current_status=locked.status,
        )

    # ============ MANAGER TRANSITIONS ============

    def approve(self, actor, target_setting_id):
        if actor is None:
            return _unauthorized()

        record, failure = self._load_for_review(actor, target_setting_id, 'approve')
        if failure is not None:
            return failure

        return self._apply(
            actor, record, 'approve',
            {'status': TargetStatus.MANAGER_APPROVED, 'approved_at': self.clock()},
            audit_action='approve_targets',
            actor_role=Employee.ROLE_MANAGER,
            details={'employee_id': record.employee_id},
        )

    def request_revision(self, actor, target_setting_id, feedback):
        if actor is None:
            return _unauthorized()

        record, failure = self._load_for_review(actor, target_setting_id, 'request revision for')
        if failure is not None:
            return failure

        checked = validate_feedback(feedback)
        if not checked.ok:
            return TransitionResult.fail(
                FailureKind.VALIDATION_FAILED,
                checked.errors[0].message,
                errors=checked.errors,
                current_status=record.status,
            )

        return self._apply(
            actor, record, 'request revision for',
            {'status': TargetStatus.REVISION_REQUESTED, 'approved_at': None},
            audit_action='request_target_revision',
            actor_role=Employee.ROLE_MANAGER,
            details={'employee_id': record.employee_id, 'feedback': checked.value},
        )

    def review(self, actor, target_setting_id, action, feedback=None):
        if action == REVIEW_APPROVE:
            return self.approve(actor, target_setting_id)
        if action == REVIEW_REQUEST_REVISION:
            return self.request_revision(actor, target_setting_id, feedback)
        return TransitionResult.fail(
            FailureKind.VALIDATION_FAILED,
            'Invalid action',
            errors=[FieldError('action', 'Action must be one of approve, request_revision')],
        )

    def _load_for_review(self, actor, target_setting_id, verb):
        record = self.store.find_by_id(target_setting_id)
        if record is None:
            return None, _not_found(target_setting_id)

        # manager-of-record only; the employee's current line manager has no say
        if record.manager_id != actor.id:
            logger.warning(f"Employee {actor.id} is not the manager of record for target setting {record.id}")
            return None, TransitionResult.fail(
                FailureKind.FORBIDDEN, 'Only the assigned manager can review these targets'
            )

        if record.status not in REVIEWABLE_STATUSES:
            return None, _conflict(verb, record.status)

        return record, None

    def _apply(self, actor, record, verb, patch, audit_action, actor_role, details, precondition=None):
        """
        Lock the row, re-check its state (and precondition) on the locked
        copy, then write conditionally and audit.
        """
        _, allowed = TRANSITION_RULES[verb]
        try:
            with transaction.atomic():
                locked = self.store.find_for_update(record.id)
                if locked is None:
                    return _not_found(record.id)
                if locked.status not in allowed:
                    logger.info(f"Lost race to {verb} target setting {record.id}; now {locked.status.value}")
                    return _conflict(verb, locked.status)
                if precondition is not None:
                    failure = precondition(locked)
                    if failure is not None:
                        return failure

                updated = self.store.update(record.id, patch, expected_statuses=allowed)
                self.audit.record(
                    actor, actor_role, audit_action, TARGET_TYPE, record.id,
                    {'previous_status': locked.status.value, **details},
                )
        except StaleTransitionError as e:
            logger.info(f"Lost race to {verb} target setting {record.id}; now {_status_value(e.current_status)}")
            return _conflict(verb, e.current_status)
        except TargetSettingNotFoundError:
            return _not_found(record.id)

        logger.info(
            f"Target setting {record.id}: {locked.status.value} -> {updated.status.value} "
            f"({audit_action} by {actor.id})"
        )
        return TransitionResult.success(updated)

    # ============ READS ============

    def get(self, actor, target_setting_id):
        if actor is None:
            return _unauthorized()

        record = self.store.find_by_id(target_setting_id)
        if record is None:
            return _not_found(target_setting_id)

        if not can_view_target_setting(actor, record):
            logger.warning(f"Employee {actor.id} denied read access to target setting {record.id}")
            return TransitionResult.fail(FailureKind.FORBIDDEN, 'You do not have access to these targets')

        return TransitionResult.success(record)

    def list(self, actor, cycle_year=None, status=None):
        if actor is None:
            return _unauthorized()

        if cycle_year is not None:
            year = validate_cycle_year(cycle_year)
            if not year.ok:
                return TransitionResult.fail(FailureKind.VALIDATION_FAILED, 'Invalid cycle year', errors=year.errors)
            cycle_year = year.value

        if status is not None and status not in TargetStatus.values:
            return TransitionResult.fail(
                FailureKind.VALIDATION_FAILED,
                'Invalid status',
                errors=[FieldError('status', f'Unknown status {status}')],
            )

        return TransitionResult.success(
            self.store.list_accessible_to(actor, cycle_year=cycle_year, status=status)
        )

    def pending_approvals(self, actor):
        if actor is None:
            return _unauthorized()

        if not has_role(actor.id, Employee.ROLE_MANAGER):
            return TransitionResult.fail(FailureKind.FORBIDDEN, 'Only managers have pending approvals')

        return TransitionResult.success(self.store.pending_for_manager(actor))

    def activity_log(self, actor, target_setting_id):
        result = self.get(actor, target_setting_id)
        if not result.ok:
            return result
        return TransitionResult.success(list(self.store.activity_for(result.value.id)))
