# api/target_filters.py

from django import forms
from django.conf import settings
from django_filters import rest_framework as django_filters

from .target_models import TargetSetting, TargetStatus


class IntegerFilter(django_filters.NumberFilter):
    field_class = forms.IntegerField


class TargetSettingFilter(django_filters.FilterSet):
    """Query parameters accepted by GET /api/targets/"""
    cycleYear = IntegerFilter(
        field_name='cycle_year',
        min_value=settings.APPRAISAL_SETTINGS.get('MIN_CYCLE_YEAR', 2020),
        max_value=settings.APPRAISAL_SETTINGS.get('MAX_CYCLE_YEAR', 2100),
    )
    status = django_filters.ChoiceFilter(field_name='status', choices=TargetStatus.choices)

    class Meta:
        model = TargetSetting
        fields = ['cycleYear', 'status']
