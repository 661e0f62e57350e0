# api/views.py - Current user and directory lookups

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from drf_yasg.utils import swagger_auto_schema
from drf_yasg import openapi
import logging

from .models import Employee
from .serializers import UserSerializer, EmployeeProfileSerializer, EmployeeVerifySerializer
from .target_permissions import get_current_actor

logger = logging.getLogger(__name__)


@swagger_auto_schema(
    method='get',
    operation_description="Get current user and employee profile",
    responses={
        200: openapi.Response(
            description="User information retrieved successfully",
            schema=openapi.Schema(
                type=openapi.TYPE_OBJECT,
                properties={
                    'success': openapi.Schema(type=openapi.TYPE_BOOLEAN),
                    'user': openapi.Schema(type=openapi.TYPE_OBJECT),
                    'employee': openapi.Schema(type=openapi.TYPE_OBJECT),
                    'roles': openapi.Schema(type=openapi.TYPE_ARRAY, items=openapi.Schema(type=openapi.TYPE_STRING)),
                }
            )
        ),
        401: openapi.Response(description="Unauthorized - Invalid or missing token")
    },
    security=[{'Bearer': []}]
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def user_info(request):
    """Get current user info"""
    actor = get_current_actor(request)
    employee = Employee.objects.select_related('user', 'line_manager').get(pk=actor.id)

    logger.info(f'[{request.user.username}] Employee profile found: {employee.employee_id}')

    return Response({
        'success': True,
        'user': UserSerializer(request.user).data,
        'employee': EmployeeProfileSerializer(employee).data,
        'roles': sorted(actor.roles),
    }, status=status.HTTP_200_OK)


@swagger_auto_schema(
    method='get',
    operation_description="Look up an active employee by HC number",
    manual_parameters=[
        openapi.Parameter('employeeId', openapi.IN_QUERY, type=openapi.TYPE_STRING, required=True)
    ],
    responses={200: EmployeeVerifySerializer, 400: 'Employee ID is required', 404: 'Not found'}
)
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_employee(request):
    employee_id = (request.query_params.get('employeeId') or '').strip()
    if not employee_id:
        return Response({'error': 'Employee ID is required'}, status=status.HTTP_400_BAD_REQUEST)

    employee = Employee.objects.select_related('line_manager').filter(employee_id=employee_id).first()
    if employee is None:
        return Response({
            'error': f'Employee ID "{employee_id}" not found'
        }, status=status.HTTP_404_NOT_FOUND)

    return Response(EmployeeVerifySerializer(employee).data)
