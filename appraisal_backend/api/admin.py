# api/admin.py - Employee directory and target setting admin

from django.contrib import admin
from django.utils.html import format_html
from django.db import models

from .models import Employee
from .target_models import TargetSetting, AuditEntry, TargetStatus
from .target_store import deserialize_targets, CorruptTargetSettingError


class BaseModelAdmin(admin.ModelAdmin):
    """Base admin class with common styling"""
    from django.forms import TextInput, Textarea

    formfield_overrides = {
        models.CharField: {'widget': TextInput(attrs={'size': '40'})},
        models.TextField: {'widget': Textarea(attrs={'rows': 4, 'cols': 60})},
    }


class SoftDeleteAdminMixin:
    """Mixin to handle soft delete functionality in admin"""
    actions = ['restore_selected']

    def get_queryset(self, request):
        # Show all objects including soft-deleted for admin
        if hasattr(self.model, 'all_objects'):
            return self.model.all_objects.get_queryset()
        return super().get_queryset(request)

    def delete_model(self, request, obj):
        """Override delete to use soft delete"""
        if hasattr(obj, 'soft_delete'):
            obj.soft_delete(user=request.user)
        else:
            super().delete_model(request, obj)

    def delete_queryset(self, request, queryset):
        """Override bulk delete to use soft delete"""
        for obj in queryset:
            if hasattr(obj, 'soft_delete'):
                obj.soft_delete(user=request.user)
            else:
                obj.delete()

    @admin.action(description="Restore selected soft-deleted items")
    def restore_selected(self, request, queryset):
        count = 0
        for obj in queryset:
            if hasattr(obj, 'restore') and obj.is_deleted:
                obj.restore()
                count += 1

        self.message_user(request, f'Successfully restored {count} items.')


@admin.register(Employee)
class EmployeeAdmin(SoftDeleteAdminMixin, BaseModelAdmin):
    list_display = (
        'employee_id', 'full_name', 'email', 'department', 'grade',
        'line_manager_display', 'roles_display', 'is_deleted_display'
    )
    list_filter = ('department', 'is_deleted', 'created_at')
    search_fields = ('employee_id', 'full_name', 'email', 'user__username', 'job_title')
    ordering = ('employee_id',)
    autocomplete_fields = ['user', 'line_manager']
    readonly_fields = ('created_at', 'updated_at', 'deleted_at', 'deleted_by')

    fieldsets = (
        ('Basic Information', {
            'fields': ('user', 'employee_id', 'full_name', 'email')
        }),
        ('Job Information', {
            'fields': ('department', 'grade', 'job_title', 'line_manager')
        }),
        ('Access', {
            'fields': ('roles',),
            'description': 'JSON list of role tags: "employee", "manager", "hr_admin"'
        }),
        ('Status', {
            'fields': ('is_deleted', 'deleted_at', 'deleted_by', 'created_at', 'updated_at'),
            'classes': ('collapse',)
        }),
    )

    def line_manager_display(self, obj):
        return obj.line_manager.full_name if obj.line_manager else '-'
    line_manager_display.short_description = 'Line Manager'

    def roles_display(self, obj):
        return ', '.join(obj.roles or []) or '-'
    roles_display.short_description = 'Roles'

    def is_deleted_display(self, obj):
        if obj.is_deleted:
            return format_html('<span style="color: red;">Deactivated</span>')
        return format_html('<span style="color: green;">Active</span>')
    is_deleted_display.short_description = 'Status'


@admin.register(TargetSetting)
class TargetSettingAdmin(BaseModelAdmin):
    list_display = (
        'employee', 'manager', 'cycle_year', 'status_display',
        'target_count', 'submitted_at', 'approved_at', 'updated_at'
    )
    list_filter = ('status', 'cycle_year')
    search_fields = ('employee__employee_id', 'employee__full_name', 'manager__full_name')
    ordering = ('-cycle_year', '-created_at')
    raw_id_fields = ('employee', 'manager')
    # workflow fields only move through the API
    readonly_fields = ('id', 'status', 'submitted_at', 'approved_at', 'created_at', 'updated_at')

    STATUS_COLORS = {
        TargetStatus.DRAFT: 'gray',
        TargetStatus.SUBMITTED_TO_MANAGER: 'orange',
        TargetStatus.REVISION_REQUESTED: 'red',
        TargetStatus.MANAGER_APPROVED: 'green',
        TargetStatus.SUBMITTED_TO_HR: 'blue',
        TargetStatus.TARGET_SETTING_COMPLETE: 'darkgreen',
    }

    def status_display(self, obj):
        color = self.STATUS_COLORS.get(obj.status, 'black')
        return format_html('<span style="color: {};">{}</span>', color, obj.get_status_display())
    status_display.short_description = 'Status'

    def target_count(self, obj):
        try:
            return len(deserialize_targets(obj.targets, obj.pk))
        except CorruptTargetSettingError:
            return format_html('<span style="color: red;">{}</span>', 'corrupt')
    target_count.short_description = 'Targets'


@admin.register(AuditEntry)
class AuditEntryAdmin(admin.ModelAdmin):
    list_display = ('created_at', 'action', 'actor', 'actor_role', 'target_type', 'target_id')
    list_filter = ('action', 'actor_role', 'target_type', 'created_at')
    search_fields = ('target_id', 'actor__full_name', 'actor__employee_id')
    ordering = ('-created_at',)
    readonly_fields = ('actor', 'actor_role', 'action', 'target_type', 'target_id', 'details', 'created_at')

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False
