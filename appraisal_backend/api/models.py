# api/models.py - Employee directory consumed by the target-setting workflow

from django.db import models
from django.contrib.auth.models import User
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)


class ActiveManager(models.Manager):
    """Manager that excludes soft-deleted objects"""
    def get_queryset(self):
        return super().get_queryset().filter(is_deleted=False)


class AllObjectsManager(models.Manager):
    """Manager that includes soft-deleted objects"""
    def get_queryset(self):
        return super().get_queryset()


# Base model with soft delete functionality
class SoftDeleteModel(models.Model):
    is_deleted = models.BooleanField(default=False, db_index=True)
    deleted_at = models.DateTimeField(null=True, blank=True)
    deleted_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='deleted_%(class)ss')

    objects = ActiveManager()  # Default manager excludes deleted
    all_objects = AllObjectsManager()  # Manager that includes deleted

    class Meta:
        abstract = True

    def soft_delete(self, user=None):
        """Soft delete the object"""
        self.is_deleted = True
        self.deleted_at = timezone.now()
        self.deleted_by = user
        self.save()

    def restore(self):
        """Restore a soft-deleted object"""
        self.is_deleted = False
        self.deleted_at = None
        self.deleted_by = None
        self.save()


class Employee(SoftDeleteModel):
    ROLE_EMPLOYEE = 'employee'
    ROLE_MANAGER = 'manager'
    ROLE_HR_ADMIN = 'hr_admin'

    ROLE_CHOICES = [
        (ROLE_EMPLOYEE, 'Employee'),
        (ROLE_MANAGER, 'Manager'),
        (ROLE_HR_ADMIN, 'HR Administrator'),
    ]

    # Basic Information
    user = models.OneToOneField(User, on_delete=models.CASCADE, related_name='employee_profile')
    employee_id = models.CharField(max_length=50, unique=True, help_text="HC Number")
    full_name = models.CharField(max_length=300)
    email = models.EmailField(blank=True)

    # Job Information
    department = models.CharField(max_length=200, blank=True)
    grade = models.CharField(max_length=50, blank=True)
    job_title = models.CharField(max_length=200, blank=True)

    # Management Hierarchy
    line_manager = models.ForeignKey(
        'self',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='direct_reports',
        help_text="Line manager for this employee"
    )

    # Role tags, e.g. ["employee", "manager"]
    roles = models.JSONField(default=list, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['employee_id']
        verbose_name = "Employee"
        verbose_name_plural = "Employees"
        indexes = [
            models.Index(fields=['is_deleted'], name='api_employe_is_dele_5b8f1c_idx'),
            models.Index(fields=['line_manager'], name='api_employe_line_ma_0d2e47_idx'),
        ]

    def __str__(self):
        return f"{self.employee_id} - {self.full_name}"

    def has_role(self, role):
        return role in (self.roles or [])

    @property
    def is_hr_admin(self):
        return self.has_role(self.ROLE_HR_ADMIN)

    @property
    def is_manager(self):
        return self.has_role(self.ROLE_MANAGER)

    def deactivate(self, user=None):
        """Deactivate employee (soft delete). Existing target settings keep their references."""
        logger.info(f"Deactivating employee {self.employee_id}")
        self.soft_delete(user=user)

    def change_line_manager(self, new_manager):
        """
        Change line manager.
        Target settings already created keep the manager they were created with.
        """
        old_manager = self.line_manager
        self.line_manager = new_manager
        self.save(update_fields=['line_manager', 'updated_at'])
        logger.info(
            f"Line manager of {self.employee_id} changed: "
            f"{old_manager.employee_id if old_manager else None} -> "
            f"{new_manager.employee_id if new_manager else None}"
        )
        return old_manager


# Feature model modules; imported here so the app registry loads them with models.py
from .target_models import TargetSetting, AuditEntry  # noqa: E402,F401
