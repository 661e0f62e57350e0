# api/serializers.py - Directory serializers

from rest_framework import serializers
from django.contrib.auth.models import User
import logging

from .models import Employee

logger = logging.getLogger(__name__)


class UserSerializer(serializers.ModelSerializer):
    full_name = serializers.SerializerMethodField()

    class Meta:
        model = User
        fields = ['id', 'username', 'email', 'first_name', 'last_name', 'full_name']
        read_only_fields = ['id', 'username']

    def get_full_name(self, obj):
        return f"{obj.first_name} {obj.last_name}".strip()


class ManagerSummarySerializer(serializers.ModelSerializer):
    employeeId = serializers.CharField(source='employee_id')
    fullName = serializers.CharField(source='full_name')

    class Meta:
        model = Employee
        fields = ['id', 'employeeId', 'fullName']


class EmployeeProfileSerializer(serializers.ModelSerializer):
    employeeId = serializers.CharField(source='employee_id')
    fullName = serializers.CharField(source='full_name')
    jobTitle = serializers.CharField(source='job_title')
    manager = ManagerSummarySerializer(source='line_manager', allow_null=True)

    class Meta:
        model = Employee
        fields = ['id', 'employeeId', 'fullName', 'email', 'department', 'grade', 'jobTitle', 'roles', 'manager']


class EmployeeVerifySerializer(serializers.ModelSerializer):
    """Public-facing lookup by HC number"""
    employeeId = serializers.CharField(source='employee_id')
    fullName = serializers.CharField(source='full_name')
    manager = serializers.SerializerMethodField()
    status = serializers.SerializerMethodField()

    class Meta:
        model = Employee
        fields = ['employeeId', 'fullName', 'grade', 'department', 'manager', 'status']

    def get_manager(self, obj):
        if not obj.line_manager:
            return None
        return {
            'fullName': obj.line_manager.full_name,
            'employeeId': obj.line_manager.employee_id,
        }

    def get_status(self, obj):
        return 'Active'
