# api/management/commands/seed_appraisal_users.py
from django.core.management.base import BaseCommand
from django.contrib.auth.models import User
from django.db import transaction
from api.models import Employee
import logging

logger = logging.getLogger(__name__)


SEED_USERS = [
    {
        'username': 'hr.admin',
        'email': 'admin@prdcv.com',
        'employee_id': 'HR001',
        'full_name': 'HR Admin',
        'department': 'HR',
        'grade': 'Senior',
        'roles': [Employee.ROLE_EMPLOYEE, Employee.ROLE_HR_ADMIN],
        'manager': None,
    },
    {
        'username': 'manager',
        'email': 'manager@test.com',
        'employee_id': 'MGR001',
        'full_name': 'Test Manager',
        'department': 'Engineering',
        'grade': 'M1',
        'roles': [Employee.ROLE_EMPLOYEE, Employee.ROLE_MANAGER],
        'manager': None,
    },
    {
        'username': 'employee',
        'email': 'employee@test.com',
        'employee_id': 'EMP001',
        'full_name': 'Test Employee',
        'department': 'Engineering',
        'grade': 'T1',
        'roles': [Employee.ROLE_EMPLOYEE],
        'manager': 'MGR001',
    },
]


class Command(BaseCommand):
    help = 'Create the HR admin, a manager and an employee reporting to that manager (idempotent)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--password',
            type=str,
            default='changeme123',
            help='Password for newly created users',
        )

    @transaction.atomic
    def handle(self, *args, **options):
        password = options['password']
        created_count = 0

        for data in SEED_USERS:
            user, user_created = User.objects.get_or_create(
                username=data['username'],
                defaults={'email': data['email']}
            )
            if user_created:
                user.set_password(password)
                user.save()

            manager = None
            if data['manager']:
                manager = Employee.all_objects.get(employee_id=data['manager'])

            employee, created = Employee.all_objects.get_or_create(
                employee_id=data['employee_id'],
                defaults={
                    'user': user,
                    'full_name': data['full_name'],
                    'email': data['email'],
                    'department': data['department'],
                    'grade': data['grade'],
                    'roles': data['roles'],
                    'line_manager': manager,
                }
            )

            if created:
                created_count += 1
                self.stdout.write(self.style.SUCCESS(f"Created {employee.employee_id} - {employee.full_name}"))
            else:
                self.stdout.write(f"Exists  {employee.employee_id} - {employee.full_name}")

        logger.info(f"Seeded appraisal users: {created_count} created")
        self.stdout.write(self.style.SUCCESS(f"Done: {created_count} employees created"))
