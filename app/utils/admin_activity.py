"""
Admin Activity Logging Utility
"""
import logging
from typing import Optional, Dict, Any
from sqlalchemy.orm import Session
from app.models.admin_activity_log import AdminActivityLog

logger = logging.getLogger(__name__)


def log_admin_activity(
    db: Session,
    admin_id: Optional[str],
    action: str,
    entity_type: Optional[str] = "category",
    entity_id: Optional[str] = None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None
) -> Optional[AdminActivityLog]:
    """
    Record an admin action in the activity log

    The row is only added to the session: it is committed (or rolled back)
    together with the change it records. A failure to build the entry is
    logged and never fails the action itself.

    Args:
        db: Database session
        admin_id: ID of the admin performing the action
        action: Action name (e.g., 'category_created', 'category_moved')
        entity_type: Type of entity
        entity_id: ID of the entity being acted upon
        old_values: Field values before the change
        new_values: Field values after the change
    """
    details = {}
    if old_values is not None:
        details["old_values"] = old_values
    if new_values is not None:
        details["new_values"] = new_values

    try:
        activity_log = AdminActivityLog(
            admin_id=str(admin_id) if admin_id is not None else None,
            action=action,
            entity_type=entity_type,
            entity_id=str(entity_id) if entity_id is not None else None,
            details=details or None
        )
        db.add(activity_log)
    except Exception as e:
        logger.error(f"Failed to record admin activity '{action}' for {entity_type} {entity_id}: {str(e)}")
        return None

    return activity_log
