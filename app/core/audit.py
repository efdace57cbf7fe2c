import uuid
from datetime import datetime
from typing import Any, Dict
from loguru import logger
from sqlmodel import Session

from app.db.schema import AuditLog, AuditAction, ActorRole
from app.db import core


def _perform_audit_log(
    actor_id: uuid.UUID,
    actor_role: ActorRole,
    entity_type: str,
    entity_id: uuid.UUID,
    action: AuditAction,
    changes: Dict[str, Any],
):
    """
    Background worker.
    Creates its OWN session, the request session is closed by the time this runs.
    """
    try:
        with Session(core.engine) as session:
            log_entry = AuditLog(
                actor_id=actor_id,
                actor_role=actor_role,
                entity_type=entity_type,
                entity_id=entity_id,
                action=action,
                changes=changes,
                timestamp=datetime.utcnow()
            )
            session.add(log_entry)
            session.commit()

    except Exception:
        # Auditing must never break the request that triggered it
        logger.exception(
            f"Audit log failed for {entity_type} {entity_id} ({action.value})")
