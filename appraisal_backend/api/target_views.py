# api/target_views.py - Target setting endpoints

from rest_framework import viewsets, status
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.permissions import IsAuthenticated
from django.http import HttpResponse
from drf_yasg.utils import swagger_auto_schema, no_body
from drf_yasg import openapi
import logging
import io
import openpyxl
from openpyxl.styles import Font, PatternFill, Border, Side
from openpyxl.utils import get_column_letter

from .target_filters import TargetSettingFilter
from .target_models import TargetSetting
from .target_permissions import get_current_actor, can_export_target_settings
from .target_serializers import (
    TargetSettingCreateSerializer,
    TargetSettingUpdateSerializer,
    TargetReviewSerializer,
    TargetSettingSerializer,
    TargetSettingDetailSerializer,
    AuditEntrySerializer,
)
from .target_workflow import TargetWorkflow, FailureKind, UNSET

logger = logging.getLogger(__name__)


FAILURE_STATUS_CODES = {
    FailureKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    FailureKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    FailureKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    FailureKind.CONFLICT: status.HTTP_409_CONFLICT,
    FailureKind.VALIDATION_FAILED: status.HTTP_400_BAD_REQUEST,
}


def failure_response(failure):
    body = {'error': failure.message}
    if failure.errors:
        body['details'] = [error.as_dict() for error in failure.errors]
    if failure.current_status is not None:
        body['currentStatus'] = getattr(failure.current_status, 'value', failure.current_status)
    if failure.existing_id is not None:
        body['targetId'] = str(failure.existing_id)
    return Response(body, status=FAILURE_STATUS_CODES[failure.kind])


def bad_request(serializer):
    return Response({
        'error': 'Validation failed',
        'details': serializer.errors
    }, status=status.HTTP_400_BAD_REQUEST)


class TargetSettingViewSet(viewsets.ViewSet):
    """
    Employee target setting per appraisal cycle.

    Employees draft and submit, the manager-of-record approves or asks for
    a revision, HR admins can read and export everything.
    """
    permission_classes = [IsAuthenticated]
    workflow_class = TargetWorkflow

    def get_workflow(self):
        return self.workflow_class()

    @swagger_auto_schema(
        manual_parameters=[
            openapi.Parameter('cycleYear', openapi.IN_QUERY, type=openapi.TYPE_INTEGER),
            openapi.Parameter('status', openapi.IN_QUERY, type=openapi.TYPE_STRING),
        ],
        responses={200: TargetSettingSerializer(many=True)}
    )
    def list(self, request):
        """Target settings visible to the caller, newest cycle first"""
        actor = get_current_actor(request)

        filterset = TargetSettingFilter(request.query_params, queryset=TargetSetting.objects.none())
        if not filterset.is_valid():
            return Response({
                'error': 'Invalid filters',
                'details': filterset.errors
            }, status=status.HTTP_400_BAD_REQUEST)

        filters = filterset.form.cleaned_data
        result = self.get_workflow().list(
            actor,
            cycle_year=filters.get('cycleYear'),
            status=filters.get('status') or None,
        )
        if not result.ok:
            return failure_response(result.failure)

        return Response({'targets': TargetSettingSerializer(result.value, many=True).data})

    @swagger_auto_schema(
        request_body=TargetSettingCreateSerializer,
        responses={201: TargetSettingDetailSerializer, 400: 'Validation failed', 409: 'Already exists'}
    )
    def create(self, request):
        """
        Create the caller's target setting for a cycle.

        isDraft=true saves incomplete targets; otherwise the full rules apply
        (3-5 targets, weights totalling 100%).
        """
        actor = get_current_actor(request)

        serializer = TargetSettingCreateSerializer(data=request.data)
        if not serializer.is_valid():
            return bad_request(serializer)
        data = serializer.validated_data

        result = self.get_workflow().create(
            actor,
            data['targets'],
            cycle_year=data.get('cycleYear'),
            is_draft=data.get('isDraft', False),
            current_role=data.get('currentRole'),
            long_term_goal=data.get('longTermGoal'),
        )
        if not result.ok:
            return failure_response(result.failure)

        return Response(TargetSettingDetailSerializer(result.value).data, status=status.HTTP_201_CREATED)

    @swagger_auto_schema(responses={200: TargetSettingDetailSerializer})
    def retrieve(self, request, pk=None):
        actor = get_current_actor(request)

        result = self.get_workflow().get(actor, pk)
        if not result.ok:
            return failure_response(result.failure)

        return Response(TargetSettingDetailSerializer(result.value).data)

    @swagger_auto_schema(
        request_body=TargetSettingUpdateSerializer,
        responses={200: TargetSettingDetailSerializer}
    )
    def update(self, request, pk=None):
        """Save a draft. A record in revision_requested goes back to draft."""
        actor = get_current_actor(request)

        serializer = TargetSettingUpdateSerializer(data=request.data)
        if not serializer.is_valid():
            return bad_request(serializer)
        data = serializer.validated_data

        result = self.get_workflow().update(
            actor,
            pk,
            data['targets'],
            current_role=data.get('currentRole', UNSET),
            long_term_goal=data.get('longTermGoal', UNSET),
        )
        if not result.ok:
            return failure_response(result.failure)

        return Response(TargetSettingDetailSerializer(result.value).data)

    @swagger_auto_schema(method='post', request_body=no_body, responses={200: TargetSettingSerializer})
    @action(detail=True, methods=['post'])
    def submit(self, request, pk=None):
        """Submit the stored targets to the manager-of-record"""
        actor = get_current_actor(request)

        result = self.get_workflow().submit(actor, pk)
        if not result.ok:
            return failure_response(result.failure)

        return Response({
            'success': True,
            'message': 'Targets submitted to manager',
            'target': TargetSettingSerializer(result.value).data
        })

    @swagger_auto_schema(method='post', request_body=TargetReviewSerializer, responses={200: TargetSettingSerializer})
    @action(detail=True, methods=['post'])
    def approve(self, request, pk=None):
        """
        Manager review.

        {"action": "approve"} or
        {"action": "request_revision", "feedback": "at least 10 characters"}
        """
        actor = get_current_actor(request)

        serializer = TargetReviewSerializer(data=request.data)
        if not serializer.is_valid():
            return bad_request(serializer)
        review_action = serializer.validated_data['action']
        feedback = serializer.validated_data.get('feedback')

        result = self.get_workflow().review(actor, pk, review_action, feedback)
        if not result.ok:
            return failure_response(result.failure)

        return Response({
            'success': True,
            'message': 'Targets approved' if review_action == 'approve' else 'Revision requested',
            'feedback': feedback.strip() if feedback and review_action == 'request_revision' else None,
            'target': TargetSettingSerializer(result.value).data
        })

    @swagger_auto_schema(method='get', responses={200: TargetSettingSerializer(many=True)})
    @action(detail=False, methods=['get'])
    def pending(self, request):
        """Submissions waiting for the caller's review, oldest first"""
        actor = get_current_actor(request)

        result = self.get_workflow().pending_approvals(actor)
        if not result.ok:
            return failure_response(result.failure)

        return Response({
            'count': len(result.value),
            'targets': TargetSettingSerializer(result.value, many=True).data
        })

    @swagger_auto_schema(method='get', responses={200: AuditEntrySerializer(many=True)})
    @action(detail=True, methods=['get'])
    def activity_log(self, request, pk=None):
        actor = get_current_actor(request)

        result = self.get_workflow().activity_log(actor, pk)
        if not result.ok:
            return failure_response(result.failure)

        return Response({'activities': AuditEntrySerializer(result.value, many=True).data})

    @swagger_auto_schema(
        method='get',
        manual_parameters=[openapi.Parameter('cycleYear', openapi.IN_QUERY, type=openapi.TYPE_INTEGER)]
    )
    @action(detail=False, methods=['get'])
    def export_excel(self, request):
        """HR admin export of target settings to Excel"""
        actor = get_current_actor(request)

        if not can_export_target_settings(actor):
            return Response({
                'error': 'Only HR administrators can export target settings'
            }, status=status.HTTP_403_FORBIDDEN)

        filterset = TargetSettingFilter(request.query_params, queryset=TargetSetting.objects.none())
        if not filterset.is_valid():
            return Response({
                'error': 'Invalid filters',
                'details': filterset.errors
            }, status=status.HTTP_400_BAD_REQUEST)
        filters = filterset.form.cleaned_data

        result = self.get_workflow().list(
            actor,
            cycle_year=filters.get('cycleYear'),
            status=filters.get('status') or None,
        )
        if not result.ok:
            return failure_response(result.failure)

        records = result.value
        workbook = build_target_workbook(records)

        output = io.BytesIO()
        workbook.save(output)
        output.seek(0)

        response = HttpResponse(
            output.read(),
            content_type='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
        suffix = filters.get('cycleYear') or 'all'
        response['Content-Disposition'] = f'attachment; filename="Target_Settings_{suffix}.xlsx"'

        logger.info(f"HR admin {actor.id} exported {len(records)} target settings")
        return response


def build_target_workbook(records):
    wb = openpyxl.Workbook()

    header_fill = PatternFill(start_color='366092', end_color='366092', fill_type='solid')
    header_font = Font(bold=True, color='FFFFFF', size=11)
    border = Border(
        left=Side(style='thin'),
        right=Side(style='thin'),
        top=Side(style='thin'),
        bottom=Side(style='thin')
    )

    # ========== SUMMARY SHEET ==========
    ws_summary = wb.active
    ws_summary.title = 'Summary'
    headers = ['Employee ID', 'Employee', 'Manager', 'Cycle Year', 'Status', 'Targets', 'Total Weight %', 'Submitted', 'Approved']
    for col, header in enumerate(headers, 1):
        cell = ws_summary.cell(row=1, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.border = border

    for idx, record in enumerate(records, 2):
        weights = [t.get('weight') for t in record.targets if isinstance(t, dict)]
        ws_summary.cell(row=idx, column=1, value=record.employee.employee_id if record.employee else '')
        ws_summary.cell(row=idx, column=2, value=record.employee.full_name if record.employee else '')
        ws_summary.cell(row=idx, column=3, value=record.manager.full_name if record.manager else '')
        ws_summary.cell(row=idx, column=4, value=record.cycle_year)
        ws_summary.cell(row=idx, column=5, value=record.status.label)
        ws_summary.cell(row=idx, column=6, value=len(record.targets))
        ws_summary.cell(row=idx, column=7, value=sum(w for w in weights if isinstance(w, int) and not isinstance(w, bool)))
        ws_summary.cell(row=idx, column=8, value=record.submitted_at.strftime('%Y-%m-%d %H:%M') if record.submitted_at else '')
        ws_summary.cell(row=idx, column=9, value=record.approved_at.strftime('%Y-%m-%d %H:%M') if record.approved_at else '')

    # ========== TARGETS SHEET ==========
    ws_targets = wb.create_sheet('Targets')
    headers = ['Employee ID', 'Cycle Year', '#', 'Task Description', 'KPI', 'Weight %', 'Difficulty']
    for col, header in enumerate(headers, 1):
        cell = ws_targets.cell(row=1, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font
        cell.border = border

    row = 2
    for record in records:
        for number, target in enumerate(record.targets, 1):
            if not isinstance(target, dict):
                continue
            ws_targets.cell(row=row, column=1, value=record.employee.employee_id if record.employee else '')
            ws_targets.cell(row=row, column=2, value=record.cycle_year)
            ws_targets.cell(row=row, column=3, value=number)
            ws_targets.cell(row=row, column=4, value=str(target.get('taskDescription', '')))
            ws_targets.cell(row=row, column=5, value=str(target.get('kpi', '')))
            ws_targets.cell(row=row, column=6, value=str(target.get('weight', '')))
            ws_targets.cell(row=row, column=7, value=str(target.get('difficulty', '')))
            row += 1

    # ========== AUTO-ADJUST COLUMN WIDTHS ==========
    for ws in [ws_summary, ws_targets]:
        for column in ws.columns:
            max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
            ws.column_dimensions[get_column_letter(column[0].column)].width = min(max_length + 2, 50)

    return wb
