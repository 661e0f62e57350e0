"""
Pytest configuration and fixtures
"""
import pytest
from django.contrib.auth.models import User
from rest_framework.test import APIClient

from api.models import Employee
from api.target_permissions import actor_from_employee
from api.target_workflow import TargetWorkflow


@pytest.fixture
def make_employee(db):
    """Factory creating a user plus an employee profile"""
    def _make(employee_id, roles=None, line_manager=None, full_name=None, **extra):
        username = employee_id.lower()
        user = User.objects.create_user(
            username=username,
            email=f'{username}@test.com',
            password='secret-pass-123',
        )
        return Employee.objects.create(
            user=user,
            employee_id=employee_id,
            full_name=full_name or f'Employee {employee_id}',
            email=user.email,
            roles=roles or [Employee.ROLE_EMPLOYEE],
            line_manager=line_manager,
            **extra
        )
    return _make


@pytest.fixture
def manager(make_employee):
    return make_employee('MGR001', roles=['employee', 'manager'], full_name='Maria Manager', department='Engineering')


@pytest.fixture
def other_manager(make_employee):
    return make_employee('MGR002', roles=['employee', 'manager'], full_name='Omar Othermanager')


@pytest.fixture
def hr_admin(make_employee):
    return make_employee('HR001', roles=['employee', 'hr_admin'], full_name='Hana Admin', department='HR')


@pytest.fixture
def employee(make_employee, manager):
    return make_employee('EMP001', line_manager=manager, full_name='Erin Employee', department='Engineering', grade='T1')


@pytest.fixture
def other_employee(make_employee, other_manager):
    return make_employee('EMP002', line_manager=other_manager, full_name='Owen Otheremployee')


@pytest.fixture
def actor():
    """Resolve an Employee into the Actor value the workflow expects"""
    return actor_from_employee


@pytest.fixture
def workflow():
    return TargetWorkflow()


@pytest.fixture
def client_for():
    """APIClient authenticated as the given employee"""
    def _client(employee):
        client = APIClient()
        client.force_authenticate(user=employee.user)
        return client
    return _client


@pytest.fixture
def valid_targets():
    return [
        {
            'taskDescription': 'Deliver the quarterly reporting pipeline',
            'kpi': 'Reports shipped on time',
            'weight': 40,
            'difficulty': 'L1',
        },
        {
            'taskDescription': 'Reduce open incident backlog',
            'kpi': 'Backlog under 20 tickets',
            'weight': 35,
            'difficulty': 'L2',
        },
        {
            'taskDescription': 'Mentor two junior engineers',
            'kpi': 'Two mentees onboarded',
            'weight': 25,
            'difficulty': 'L3',
        },
    ]


@pytest.fixture
def make_targets():
    """Build a list of otherwise valid targets with the given weights"""
    def _make(*weights):
        return [
            {
                'taskDescription': f'Complete deliverable number {index}',
                'kpi': f'Milestone {index} signed off',
                'weight': weight,
                'difficulty': 'L2',
            }
            for index, weight in enumerate(weights, 1)
        ]
    return _make
