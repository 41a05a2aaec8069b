"""
Bulk applier for import candidates.

Each item is applied on its own: a failure is caught, counted and
reported, and the loop moves on. There is no cross-item transaction,
so items applied before a failure (or before a caller-side abort)
stay applied.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Callable, Optional, Sequence
import structlog

from models.bulk_import import ImportAction, RowError
from services.duplicate_resolver import CandidateItem
from services.inventory_store import InventoryStore
from utils.sanitize import Sanitizer, sanitize_text

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ImportProgress:
    """
    Snapshot of an apply run.

    A new snapshot is produced after every item; nothing is shared
    or mutated between runs.
    """
    total: int
    processed: int = 0
    successful: int = 0
    failed: int = 0
    status: str = "idle"

    @property
    def percent(self) -> int:
        if self.total == 0:
            return 100
        return int(self.processed * 100 / self.total)

    def advance(self, ok: bool) -> "ImportProgress":
        return replace(
            self,
            processed=self.processed + 1,
            successful=self.successful + (1 if ok else 0),
            failed=self.failed + (0 if ok else 1),
        )


@dataclass
class ApplyOutcome:
    success_count: int = 0
    failed_count: int = 0
    errors: list[RowError] = field(default_factory=list)
    progress: Optional[ImportProgress] = None


def apply_candidates(
    candidates: Sequence[CandidateItem],
    store: InventoryStore,
    actor_id: str,
    sanitizer: Sanitizer = sanitize_text,
    on_progress: Optional[Callable[[ImportProgress], None]] = None,
) -> ApplyOutcome:
    """
    Apply every candidate independently.

    Args:
        candidates: CREATE/UPDATE items in file order
        store: Target store
        actor_id: Importing principal, recorded on created items
        sanitizer: Applied to item name, batch, category and notes
        on_progress: Called with a fresh ImportProgress after each item

    Returns:
        ApplyOutcome with counts, one "general" error per failed item
        and the final progress snapshot
    """
    outcome = ApplyOutcome()
    progress = ImportProgress(total=len(candidates), status="processing")

    logger.info("import_apply_started", items=len(candidates))

    for item in candidates:
        try:
            if item.action == ImportAction.UPDATE:
                store.update(item.target_id, _update_fields(item, sanitizer))
            else:
                store.create(_create_fields(item, actor_id, sanitizer))
        except Exception as e:
            outcome.failed_count += 1
            outcome.errors.append(RowError(
                row=0,
                field="general",
                value=item.display_name,
                message=_error_message(e),
            ))
            logger.warning(
                "import_item_failed",
                row=item.row_number,
                action=item.action.value,
                item_name=item.display_name,
                error=str(e),
                error_type=type(e).__name__,
            )
            progress = progress.advance(ok=False)
        else:
            outcome.success_count += 1
            progress = progress.advance(ok=True)

        if on_progress is not None:
            on_progress(progress)

    outcome.progress = replace(progress, status="completed")

    logger.info(
        "import_apply_finished",
        succeeded=outcome.success_count,
        failed=outcome.failed_count,
    )

    return outcome


def _create_fields(item: CandidateItem, actor_id: str, sanitizer: Sanitizer) -> dict[str, Any]:
    data = item.data
    fields: dict[str, Any] = {
        "item_name": sanitizer(data.item_name),
        "batch": sanitizer(data.batch),
        "quantity": data.quantity,
        "reject": data.reject,
        "destination": data.destination.value,
        "entered_by_id": actor_id,
    }
    if data.category:
        fields["category"] = sanitizer(data.category)
    if data.notes:
        fields["notes"] = sanitizer(data.notes)
    return fields


def _update_fields(item: CandidateItem, sanitizer: Sanitizer) -> dict[str, Any]:
    """Only the updatable fields; name, batch and attribution stay as stored."""
    data = item.data
    fields: dict[str, Any] = {
        "quantity": data.quantity,
        "reject": data.reject,
        "destination": data.destination.value,
        "updated_at": datetime.now(timezone.utc).isoformat(),
    }
    if data.category:
        fields["category"] = sanitizer(data.category)
    if data.notes:
        fields["notes"] = sanitizer(data.notes)
    return fields


def _error_message(e: Exception) -> str:
    message = getattr(e, "message", None) or str(e)
    return message or "Failed to import item"
