# api/target_models.py

from django.db import models
import uuid


class TargetStatus(models.TextChoices):
    DRAFT = 'draft', 'Draft'
    SUBMITTED_TO_MANAGER = 'submitted_to_manager', 'Submitted to Manager'
    REVISION_REQUESTED = 'revision_requested', 'Revision Requested'
    MANAGER_APPROVED = 'manager_approved', 'Manager Approved'
    SUBMITTED_TO_HR = 'submitted_to_hr', 'Submitted to HR'
    TARGET_SETTING_COMPLETE = 'target_setting_complete', 'Target Setting Complete'


EDITABLE_STATUSES = (TargetStatus.DRAFT, TargetStatus.REVISION_REQUESTED)
REVIEWABLE_STATUSES = (TargetStatus.SUBMITTED_TO_MANAGER,)


class Difficulty(models.TextChoices):
    L1 = 'L1', 'L1 - Highest complexity'
    L2 = 'L2', 'L2 - Moderate complexity'
    L3 = 'L3', 'L3 - Lowest complexity'

    @property
    def multiplier(self):
        return DIFFICULTY_MULTIPLIERS[self.value]


DIFFICULTY_MULTIPLIERS = {
    'L1': 1.25,
    'L2': 1.0,
    'L3': 0.75,
}


class TargetSetting(models.Model):
    """One employee's performance targets for one appraisal cycle"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    employee = models.ForeignKey('Employee', on_delete=models.PROTECT, related_name='target_settings')
    # Manager at creation time; not re-resolved when the line manager changes
    manager = models.ForeignKey('Employee', on_delete=models.PROTECT, related_name='managed_target_settings')
    cycle_year = models.IntegerField()

    status = models.CharField(
        max_length=30,
        choices=TargetStatus.choices,
        default=TargetStatus.DRAFT,
        db_index=True,
    )

    # JSON list of targets; only the store reads and writes this text
    targets = models.TextField(default='[]')

    current_role = models.TextField(null=True, blank=True)
    long_term_goal = models.TextField(null=True, blank=True)

    submitted_at = models.DateTimeField(null=True, blank=True)
    approved_at = models.DateTimeField(null=True, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'target_settings'
        ordering = ['-cycle_year', '-created_at']
        constraints = [
            models.UniqueConstraint(
                fields=['employee', 'cycle_year'],
                name='unique_target_setting_per_employee_year',
            ),
        ]
        indexes = [
            models.Index(fields=['manager', 'status'], name='target_sett_manager_3c9a1e_idx'),
            models.Index(fields=['cycle_year'], name='target_sett_cycle_y_8f4b2d_idx'),
        ]

    def __str__(self):
        return f"{self.employee.full_name} - {self.cycle_year} ({self.get_status_display()})"


class AuditEntry(models.Model):
    """Append-only record of a state-changing action"""
    actor = models.ForeignKey(
        'Employee',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='audit_entries'
    )
    actor_role = models.CharField(max_length=30)
    action = models.CharField(max_length=100, db_index=True)
    target_type = models.CharField(max_length=50)
    target_id = models.CharField(max_length=64, db_index=True)
    details = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'audit_entries'
        ordering = ['-created_at']
        verbose_name = "Audit Entry"
        verbose_name_plural = "Audit Entries"

    def __str__(self):
        return f"{self.action} on {self.target_type}:{self.target_id}"
