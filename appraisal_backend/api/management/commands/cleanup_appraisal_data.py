# api/management/commands/cleanup_appraisal_data.py
from django.core.management.base import BaseCommand
from django.db import transaction
from django.utils import timezone
from api.target_models import TargetSetting, AuditEntry
from api.target_store import TARGET_TYPE
import logging

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = 'Delete target settings and their audit entries (administrative cleanup, bypasses the workflow)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--cycle-year',
            type=int,
            help='Only remove target settings of this cycle year',
        )
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='Show what would be deleted without deleting',
        )

    def handle(self, *args, **options):
        cycle_year = options.get('cycle_year')
        dry_run = options.get('dry_run', False)

        self.stdout.write(self.style.SUCCESS(f'Target setting cleanup started at {timezone.now()}'))
        if dry_run:
            self.stdout.write(self.style.WARNING('DRY RUN MODE - No changes will be made'))

        targets = TargetSetting.objects.all()
        if cycle_year:
            targets = targets.filter(cycle_year=cycle_year)

        target_ids = [str(pk) for pk in targets.values_list('id', flat=True)]
        audit_entries = AuditEntry.objects.filter(target_type=TARGET_TYPE, target_id__in=target_ids)

        target_count = len(target_ids)
        audit_count = audit_entries.count()

        if dry_run:
            self.stdout.write(f'Would delete {target_count} target settings and {audit_count} audit entries')
            return

        with transaction.atomic():
            audit_entries.delete()
            targets.delete()

        logger.info(f"Cleanup removed {target_count} target settings, {audit_count} audit entries (cycle year: {cycle_year or 'all'})")
        self.stdout.write(self.style.SUCCESS(
            f'Deleted {target_count} target settings and {audit_count} audit entries'
        ))
