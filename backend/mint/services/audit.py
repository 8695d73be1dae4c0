from __future__ import annotations
from typing import Any, Dict, Optional
from sqlalchemy.orm import Session
from mint.models.audit import AuditLog


def add_audit(
    session: Session,
    actor_user_id: int,
    action: str,
    entity: Optional[str] = None,
    entity_id=None,
    old_values: Optional[Dict[str, Any]] = None,
    new_values: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """Persist an audit log entry within the caller's session.

    Parameters:
      action: short action code e.g. USER.ROLE.ASSIGN, USER.ROLE.REVOKE, USER.STATUS.SET
      entity: optional entity name (User, Role, etc.)
      entity_id: optional primary key (stored as string)
      old_values / new_values: JSON-safe dictionaries (shallow copied)
    """
    log = AuditLog(
        actor_user_id=actor_user_id or 0,
        action=action,
        entity=entity,
        entity_id=str(entity_id) if entity_id is not None else None,
        old_values=dict(old_values) if old_values else None,
        new_values=dict(new_values) if new_values else None,
    )
    session.add(log)
    # No commit here; caller's transaction boundary controls durability.
    return log


__all__ = ['add_audit']
