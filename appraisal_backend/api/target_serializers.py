# api/target_serializers.py

from rest_framework import serializers

from .target_models import AuditEntry
from .target_validators import summarize_weights
from .target_workflow import REVIEW_ACTIONS


# ============ REQUEST SERIALIZERS ============
# Shape only. Target rules live in target_validators so that drafts and
# submissions can be checked differently.

class TargetSettingCreateSerializer(serializers.Serializer):
    targets = serializers.JSONField()
    cycleYear = serializers.IntegerField(required=False, allow_null=True)
    isDraft = serializers.BooleanField(required=False, default=False)
    currentRole = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    longTermGoal = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class TargetSettingUpdateSerializer(serializers.Serializer):
    targets = serializers.JSONField()
    currentRole = serializers.CharField(required=False, allow_null=True, allow_blank=True)
    longTermGoal = serializers.CharField(required=False, allow_null=True, allow_blank=True)


class TargetReviewSerializer(serializers.Serializer):
    action = serializers.ChoiceField(choices=REVIEW_ACTIONS)
    feedback = serializers.CharField(required=False, allow_null=True, allow_blank=True, trim_whitespace=False)


# ============ RESPONSE SERIALIZERS ============

class PersonRefSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    employeeId = serializers.CharField(source='employee_id')
    fullName = serializers.CharField(source='full_name')
    email = serializers.CharField()


class TargetSettingSerializer(serializers.Serializer):
    """Serializes a TargetSettingRecord (targets already decoded)"""
    id = serializers.UUIDField()
    employeeId = serializers.IntegerField(source='employee_id')
    managerId = serializers.IntegerField(source='manager_id')
    cycleYear = serializers.IntegerField(source='cycle_year')
    status = serializers.CharField()
    targets = serializers.JSONField()
    currentRole = serializers.CharField(source='current_role', allow_null=True)
    longTermGoal = serializers.CharField(source='long_term_goal', allow_null=True)
    submittedAt = serializers.DateTimeField(source='submitted_at', allow_null=True)
    approvedAt = serializers.DateTimeField(source='approved_at', allow_null=True)
    createdAt = serializers.DateTimeField(source='created_at', allow_null=True)
    updatedAt = serializers.DateTimeField(source='updated_at', allow_null=True)
    employee = PersonRefSerializer(allow_null=True)
    manager = PersonRefSerializer(allow_null=True)


class TargetSettingDetailSerializer(TargetSettingSerializer):
    weightSummary = serializers.SerializerMethodField()

    def get_weightSummary(self, record):
        summary = summarize_weights(record.targets)
        return {
            'totalWeight': summary['total_weight'],
            'remaining': summary['remaining'],
            'isBalanced': summary['is_balanced'],
            'overBy': summary['over_by'],
            'underBy': summary['under_by'],
            'weightedDifficulty': summary['weighted_difficulty'],
        }


class AuditEntrySerializer(serializers.ModelSerializer):
    actorId = serializers.IntegerField(source='actor_id', allow_null=True)
    actorName = serializers.SerializerMethodField()
    actorRole = serializers.CharField(source='actor_role')
    createdAt = serializers.DateTimeField(source='created_at')

    class Meta:
        model = AuditEntry
        fields = ['id', 'action', 'actorId', 'actorName', 'actorRole', 'details', 'createdAt']

    def get_actorName(self, obj):
        return obj.actor.full_name if obj.actor else None
