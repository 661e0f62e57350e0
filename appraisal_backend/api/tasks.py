# api/tasks.py
from celery import shared_task
from django.utils import timezone
import logging

logger = logging.getLogger(__name__)

# ==================== AUDIT TASKS ====================

@shared_task(name='api.tasks.write_audit_entry')
def write_audit_entry(actor_id, actor_role, action, target_type, target_id, details=None):
    """
    Write an audit entry queued by AuditSink after the transition committed.
    Failures are logged and reported in the task result, never retried.
    """
    from .audit_service import write_entry

    try:
        entry = write_entry(
            actor_id=actor_id,
            actor_role=actor_role,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details,
        )
        logger.info(f"Audit entry {entry.pk}: {action} on {target_type}:{target_id}")

        return {
            'success': True,
            'audit_entry_id': entry.pk,
            'timestamp': timezone.now().isoformat()
        }

    except Exception as e:
        logger.error(f"Audit entry {action} on {target_type}:{target_id} failed: {str(e)}")
        return {
            'success': False,
            'error': str(e),
            'timestamp': timezone.now().isoformat()
        }
