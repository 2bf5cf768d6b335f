from typing import Optional, Any, Dict

from core.models import AuditEvent


def log_action(*, user_id: Optional[int], action: str, object_type: Optional[str] = None,
               object_id: Optional[int] = None, detail: Optional[Dict[str, Any]] = None) -> AuditEvent:
    """Persist one audit row. Callers must not put clinical plaintext in ``detail``."""
    return AuditEvent.objects.create(
        user_id=user_id,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail or {},
    )
