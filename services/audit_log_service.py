"""
Audit log writer.

Fire-and-forget from the caller's point of view: a failed write is
logged and swallowed so it never changes an import's outcome.
"""

from typing import Any, Mapping, Optional
import structlog

from config import get_admin_client, get_supabase_client, settings

logger = structlog.get_logger(__name__)


def extract_request_metadata(headers: Mapping[str, str]) -> dict[str, str]:
    """
    Pull client address and user agent from request headers.

    Proxy headers are checked first: X-Forwarded-For (first hop),
    X-Real-IP, CF-Connecting-IP.
    """
    lowered = {k.lower(): v for k, v in headers.items()}
    forwarded = lowered.get("x-forwarded-for")
    ip_address = (
        (forwarded.split(",")[0].strip() if forwarded else None)
        or lowered.get("x-real-ip")
        or lowered.get("cf-connecting-ip")
        or "unknown"
    )
    return {
        "ip_address": ip_address,
        "user_agent": lowered.get("user-agent") or "unknown",
    }


class AuditLogService:
    def __init__(self, client=None, table: Optional[str] = None):
        self.db = client or get_admin_client() or get_supabase_client()
        self.table = table or settings.audit_log_table

    def record(
        self,
        actor_id: str,
        action: str,
        entity: str,
        entity_id: str,
        payload: dict[str, Any],
        request_metadata: Optional[dict[str, str]] = None,
    ) -> Optional[dict]:
        """Write one audit entry. Returns the stored row, or None on failure."""
        metadata = request_metadata or {}
        try:
            result = self.db.table(self.table).insert({
                "user_id": actor_id,
                "action": action,
                "entity_type": entity,
                "entity_id": entity_id,
                "new_value": payload,
                "ip_address": metadata.get("ip_address"),
                "user_agent": metadata.get("user_agent"),
            }).execute()
        except Exception as e:
            logger.warning(
                "audit_log_failed",
                action=action,
                entity=entity,
                entity_id=entity_id,
                error=str(e),
            )
            return None

        logger.info(
            "audit_log_recorded",
            action=action,
            entity=entity,
            entity_id=entity_id,
        )
        return result.data[0] if result.data else None


_service: Optional[AuditLogService] = None


def get_audit_log_service() -> AuditLogService:
    global _service
    if _service is None:
        _service = AuditLogService()
    return _service
