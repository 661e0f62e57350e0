# api/target_store.py - Persistence for target settings
"""
The store is the only place that sees the serialized ``targets`` text.
Everything handed to the workflow is a TargetSettingRecord with the
target list already decoded and the status parsed into TargetStatus.

Concurrency:
- create relies on the (employee, cycle_year) unique constraint
- update can be made conditional on the current status, so two racing
  transitions on the same row cannot both win
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional
import json
import logging

from django.core.exceptions import ValidationError
from django.db import IntegrityError, transaction
from django.db.models import Q
from django.utils import timezone

from .target_models import TargetSetting, TargetStatus, AuditEntry

logger = logging.getLogger(__name__)

TARGET_TYPE = 'target_setting'


class TargetStoreError(Exception):
    pass


class CorruptTargetSettingError(TargetStoreError):
    """Stored row cannot be decoded (bad targets blob or unknown status)"""


class TargetSettingNotFoundError(TargetStoreError):
    pass


class DuplicateTargetSettingError(TargetStoreError):
    def __init__(self, employee_id, cycle_year, existing_id=None):
        self.employee_id = employee_id
        self.cycle_year = cycle_year
        self.existing_id = existing_id
        super().__init__(f"Target setting already exists for employee {employee_id} in {cycle_year}")


class StaleTransitionError(TargetStoreError):
    """Conditional update matched no row because the status moved on"""
    def __init__(self, current_status):
        self.current_status = current_status
        super().__init__(f"Target setting is now in {current_status} state")


@dataclass(frozen=True)
class PersonRef:
    id: int
    employee_id: str
    full_name: str
    email: str = ''


@dataclass(frozen=True)
class TargetSettingRecord:
    id: object
    employee_id: int
    manager_id: int
    cycle_year: int
    status: TargetStatus
    targets: list = field(default_factory=list)
    current_role: Optional[str] = None
    long_term_goal: Optional[str] = None
    submitted_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    employee: Optional[PersonRef] = None
    manager: Optional[PersonRef] = None


def serialize_targets(targets):
    return json.dumps(list(targets))


def deserialize_targets(raw, record_id=None):
    try:
        targets = json.loads(raw) if raw else []
    except (TypeError, ValueError) as e:
        raise CorruptTargetSettingError(f"Target setting {record_id} has an undecodable targets blob") from e
    if not isinstance(targets, list):
        raise CorruptTargetSettingError(f"Target setting {record_id} targets blob is not a list")
    return targets


def parse_status(raw, record_id=None):
    try:
        return TargetStatus(raw)
    except ValueError as e:
        raise CorruptTargetSettingError(f"Target setting {record_id} has unknown status {raw!r}") from e


def _person(employee):
    if employee is None:
        return None
    return PersonRef(
        id=employee.pk,
        employee_id=employee.employee_id,
        full_name=employee.full_name,
        email=employee.email or '',
    )


class TargetSettingStore:
    """Target setting persistence backed by the Django ORM"""

    def _base_queryset(self):
        return TargetSetting.objects.select_related('employee', 'manager')

    def to_record(self, instance):
        return TargetSettingRecord(
            id=instance.pk,
            employee_id=instance.employee_id,
            manager_id=instance.manager_id,
            cycle_year=instance.cycle_year,
            status=parse_status(instance.status, instance.pk),
            targets=deserialize_targets(instance.targets, instance.pk),
            current_role=instance.current_role,
            long_term_goal=instance.long_term_goal,
            submitted_at=instance.submitted_at,
            approved_at=instance.approved_at,
            created_at=instance.created_at,
            updated_at=instance.updated_at,
            employee=_person(instance.employee),
            manager=_person(instance.manager),
        )

    # ============ READS ============

    def find_by_id(self, target_setting_id):
        try:
            instance = self._base_queryset().get(pk=target_setting_id)
        except (TargetSetting.DoesNotExist, ValidationError, ValueError):
            return None
        return self.to_record(instance)

    def find_for_update(self, target_setting_id):
        """Read the row under a row lock. Must run inside transaction.atomic()."""
        try:
            instance = TargetSetting.objects.select_for_update().get(pk=target_setting_id)
        except (TargetSetting.DoesNotExist, ValidationError, ValueError):
            return None
        return self.to_record(instance)

    def find_by_employee_and_year(self, employee_id, cycle_year):
        instance = self._base_queryset().filter(
            employee_id=employee_id,
            cycle_year=cycle_year
        ).first()
        return self.to_record(instance) if instance else None

    def accessible_queryset(self, actor):
        """
        - HR admin: all records
        - Manager: own, direct reports', and records where they are manager-of-record
        - Everyone else: own records only
        """
        queryset = self._base_queryset()

        if actor.is_hr_admin:
            return queryset

        if actor.is_manager:
            return queryset.filter(
                Q(employee_id=actor.id) |
                Q(employee__line_manager_id=actor.id) |
                Q(manager_id=actor.id)
            )

        return queryset.filter(employee_id=actor.id)

    def list_accessible_to(self, actor, cycle_year=None, status=None) -> List[TargetSettingRecord]:
        queryset = self.accessible_queryset(actor)
        if cycle_year is not None:
            queryset = queryset.filter(cycle_year=cycle_year)
        if status is not None:
            queryset = queryset.filter(status=TargetStatus(status).value)
        return [self.to_record(instance) for instance in queryset.order_by('-cycle_year', '-created_at')]

    def pending_for_manager(self, actor):
        queryset = self._base_queryset().filter(
            manager_id=actor.id,
            status=TargetStatus.SUBMITTED_TO_MANAGER,
        ).order_by('submitted_at')
        return [self.to_record(instance) for instance in queryset]

    def activity_for(self, target_setting_id):
        return AuditEntry.objects.filter(
            target_type=TARGET_TYPE,
            target_id=str(target_setting_id),
        ).select_related('actor').order_by('-created_at', '-id')

    # ============ WRITES ============

    def create(self, employee_id, manager_id, cycle_year, targets, current_role=None, long_term_goal=None):
        try:
            with transaction.atomic():
                instance = TargetSetting.objects.create(
                    employee_id=employee_id,
                    manager_id=manager_id,
                    cycle_year=cycle_year,
                    status=TargetStatus.DRAFT,
                    targets=serialize_targets(targets),
                    current_role=current_role,
                    long_term_goal=long_term_goal,
                )
        except IntegrityError:
            existing_id = TargetSetting.objects.filter(
                employee_id=employee_id,
                cycle_year=cycle_year
            ).values_list('id', flat=True).first()
            if existing_id is None:
                raise
            logger.info(
                f"Unique constraint rejected duplicate target setting for employee {employee_id} / {cycle_year}"
            )
            raise DuplicateTargetSettingError(employee_id, cycle_year, existing_id=existing_id)

        return self.find_by_id(instance.pk)

    def update(self, target_setting_id, patch, expected_statuses=None):
        """
        Apply patch (model field names) to one row.
        With expected_statuses the UPDATE only matches while the row is still
        in one of those states; otherwise StaleTransitionError is raised.
        """
        values = dict(patch)
        if 'targets' in values:
            values['targets'] = serialize_targets(values['targets'])
        if 'status' in values:
            values['status'] = TargetStatus(values['status']).value
        # queryset.update() skips auto_now
        values['updated_at'] = timezone.now()

        with transaction.atomic():
            queryset = TargetSetting.objects.filter(pk=target_setting_id)
            if expected_statuses is not None:
                queryset = queryset.filter(
                    status__in=[TargetStatus(s).value for s in expected_statuses]
                )

            if not queryset.update(**values):
                current = TargetSetting.objects.filter(
                    pk=target_setting_id
                ).values_list('status', flat=True).first()
                if current is None:
                    raise TargetSettingNotFoundError(f"Target setting {target_setting_id} not found")
                raise StaleTransitionError(parse_status(current, target_setting_id))

        return self.find_by_id(target_setting_id)
