# api/audit_service.py - Fire-and-forget audit trail for workflow transitions

from django.conf import settings
from django.db import transaction
import logging

from .target_models import AuditEntry

logger = logging.getLogger(__name__)


def write_entry(actor_id, actor_role, action, target_type, target_id, details=None):
    """Insert one audit row. Raises on database errors; callers decide what to do."""
    return AuditEntry.objects.create(
        actor_id=actor_id,
        actor_role=actor_role,
        action=action,
        target_type=target_type,
        target_id=str(target_id),
        details=details or {},
    )


class AuditSink:
    """
    Records audit entries without ever failing the caller.

    Synchronous mode writes inside a savepoint so a failed insert does not
    poison the surrounding transaction. Async mode queues the Celery task
    once the transition has committed.
    """

    def __init__(self, async_mode=None):
        self._async_mode = async_mode

    @property
    def async_mode(self):
        if self._async_mode is not None:
            return self._async_mode
        return getattr(settings, 'APPRAISAL_SETTINGS', {}).get('AUDIT_ASYNC', False)

    def record(self, actor, actor_role, action, target_type, target_id, details=None):
        payload = {
            'actor_id': actor.id if actor is not None else None,
            'actor_role': actor_role,
            'action': action,
            'target_type': target_type,
            'target_id': str(target_id),
            'details': details or {},
        }

        if self.async_mode:
            transaction.on_commit(lambda: self._dispatch(payload))
            return

        try:
            with transaction.atomic():
                write_entry(**payload)
        except Exception:
            logger.exception(
                f"Audit write failed for {action} on {target_type}:{target_id}; transition kept"
            )

    def _dispatch(self, payload):
        from .tasks import write_audit_entry

        try:
            write_audit_entry.delay(**payload)
        except Exception:
            logger.exception(
                f"Could not queue audit entry {payload['action']} for "
                f"{payload['target_type']}:{payload['target_id']}"
            )
