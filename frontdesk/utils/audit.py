"""
Best-effort audit trail for front-office actions.

The blueprints call ``log_audit`` after the action itself has committed;
a failure to record it must never undo or fail the booking, signature or
deletion it describes.
"""
import json
import logging
from typing import Optional

from frontdesk.extensions import db
from frontdesk.models import AuditLog
from frontdesk.models.audit_log import AUDIT_ACTIONS

logger = logging.getLogger(__name__)


def log_audit(
    entity_type: str,
    action: str,
    user_id: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict] = None,
) -> Optional[AuditLog]:
    """Record ``action`` on ``entity_type``/``entity_id``; returns the entry, or None if it was not stored."""
    if action not in AUDIT_ACTIONS:
        logger.warning("Unexpected audit action %r on %s", action, entity_type)

    entry = AuditLog(
        entity_type=entity_type,
        entity_id=None if entity_id is None else str(entity_id),
        action=action,
        user_id=user_id,
        details=json.dumps(details, default=str, sort_keys=True) if details else None,
    )
    try:
        db.session.add(entry)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.warning("Could not record %s %s %s: %s", action, entity_type, entity_id, e)
        return None
    return entry
