from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion
import uuid


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='Employee',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('is_deleted', models.BooleanField(db_index=True, default=False)),
                ('deleted_at', models.DateTimeField(blank=True, null=True)),
                ('employee_id', models.CharField(help_text='HC Number', max_length=50, unique=True)),
                ('full_name', models.CharField(max_length=300)),
                ('email', models.EmailField(blank=True, max_length=254)),
                ('department', models.CharField(blank=True, max_length=200)),
                ('grade', models.CharField(blank=True, max_length=50)),
                ('job_title', models.CharField(blank=True, max_length=200)),
                ('roles', models.JSONField(blank=True, default=list)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('deleted_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='deleted_employees', to=settings.AUTH_USER_MODEL)),
                ('line_manager', models.ForeignKey(blank=True, help_text='Line manager for this employee', null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='direct_reports', to='api.employee')),
                ('user', models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name='employee_profile', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'verbose_name': 'Employee',
                'verbose_name_plural': 'Employees',
                'ordering': ['employee_id'],
                'indexes': [
                    models.Index(fields=['is_deleted'], name='api_employe_is_dele_5b8f1c_idx'),
                    models.Index(fields=['line_manager'], name='api_employe_line_ma_0d2e47_idx'),
                ],
            },
        ),
        migrations.CreateModel(
            name='TargetSetting',
            fields=[
                ('id', models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ('cycle_year', models.IntegerField()),
                ('status', models.CharField(choices=[('draft', 'Draft'), ('submitted_to_manager', 'Submitted to Manager'), ('revision_requested', 'Revision Requested'), ('manager_approved', 'Manager Approved'), ('submitted_to_hr', 'Submitted to HR'), ('target_setting_complete', 'Target Setting Complete')], db_index=True, default='draft', max_length=30)),
                ('targets', models.TextField(default='[]')),
                ('current_role', models.TextField(blank=True, null=True)),
                ('long_term_goal', models.TextField(blank=True, null=True)),
                ('submitted_at', models.DateTimeField(blank=True, null=True)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('employee', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='target_settings', to='api.employee')),
                ('manager', models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name='managed_target_settings', to='api.employee')),
            ],
            options={
                'db_table': 'target_settings',
                'ordering': ['-cycle_year', '-created_at'],
                'indexes': [
                    models.Index(fields=['manager', 'status'], name='target_sett_manager_3c9a1e_idx'),
                    models.Index(fields=['cycle_year'], name='target_sett_cycle_y_8f4b2d_idx'),
                ],
            },
        ),
        migrations.AddConstraint(
            model_name='targetsetting',
            constraint=models.UniqueConstraint(fields=('employee', 'cycle_year'), name='unique_target_setting_per_employee_year'),
        ),
        migrations.CreateModel(
            name='AuditEntry',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('actor_role', models.CharField(max_length=30)),
                ('action', models.CharField(db_index=True, max_length=100)),
                ('target_type', models.CharField(max_length=50)),
                ('target_id', models.CharField(db_index=True, max_length=64)),
                ('details', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('actor', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='audit_entries', to='api.employee')),
            ],
            options={
                'verbose_name': 'Audit Entry',
                'verbose_name_plural': 'Audit Entries',
                'db_table': 'audit_entries',
                'ordering': ['-created_at'],
            },
        ),
    ]
