# api/target_permissions.py - Actor resolution and read-access rules

from dataclasses import dataclass
from typing import FrozenSet, Optional

from rest_framework.exceptions import NotAuthenticated
import logging

from .models import Employee

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Actor:
    """Authenticated caller, passed explicitly to every workflow operation"""
    id: int
    roles: FrozenSet[str] = frozenset()
    manager_id: Optional[int] = None

    def has_role(self, role):
        return role in self.roles

    @property
    def is_hr_admin(self):
        return self.has_role(Employee.ROLE_HR_ADMIN)

    @property
    def is_manager(self):
        return self.has_role(Employee.ROLE_MANAGER)


def actor_from_employee(employee):
    return Actor(
        id=employee.pk,
        roles=frozenset(employee.roles or []),
        manager_id=employee.line_manager_id,
    )


def get_current_actor(request):
    """
    Resolve request.user to an active employee profile.
    Raises NotAuthenticated when there is no resolvable actor.
    """
    user = getattr(request, 'user', None)
    if user is None or not user.is_authenticated:
        raise NotAuthenticated('Authentication credentials were not provided.')

    try:
        employee = Employee.objects.get(user=user)
    except Employee.DoesNotExist:
        logger.warning(f"User {user.username} has no active employee profile")
        raise NotAuthenticated('Employee profile not found')

    return actor_from_employee(employee)


def has_role(actor_id, role):
    """Fresh directory lookup; unknown or deactivated employees have no roles"""
    roles = Employee.objects.filter(pk=actor_id).values_list('roles', flat=True).first()
    if not roles:
        return False
    return role in roles


def can_view_target_setting(actor, record):
    """
    Read access:
    - Owner (the employee)
    - Manager-of-record
    - HR admin
    """
    if record.employee_id == actor.id:
        return True
    if record.manager_id == actor.id:
        return True
    return actor.is_hr_admin


def can_export_target_settings(actor):
    return actor.is_hr_admin
