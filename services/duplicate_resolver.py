"""
Duplicate resolution for bulk imports.

Decides, per valid row, whether it creates a new record, updates an
existing one, or is dropped, according to the chosen duplicate
handling policy and the (item_name, batch) natural key.

Lookups only see what is already persisted. The key is sanitized the
same way the applier sanitizes what it stores, so a re-imported row
finds its own record. Rows of the same file are not compared with each
other: two rows sharing a natural key both resolve to CREATE under
"skip" (and both to UPDATE of the same record under "update", last one
wins).
"""

from dataclasses import dataclass, field
from typing import Iterable, Optional
import structlog

from models.bulk_import import DuplicateHandling, ImportAction, ImportRowData
from services.inventory_store import InventoryStore
from services.row_validator import ValidRow
from utils.sanitize import Sanitizer, sanitize_text

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class CandidateItem:
    """A valid row with the action the applier must take."""
    row_number: int
    data: ImportRowData
    action: ImportAction = ImportAction.CREATE
    target_id: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.data.item_name


@dataclass
class ResolutionResult:
    candidates: list[CandidateItem] = field(default_factory=list)
    duplicates: list[str] = field(default_factory=list)

    @property
    def create_count(self) -> int:
        return sum(1 for c in self.candidates if c.action == ImportAction.CREATE)

    @property
    def update_count(self) -> int:
        return sum(1 for c in self.candidates if c.action == ImportAction.UPDATE)


def resolve_duplicates(
    valid_rows: Iterable[ValidRow],
    handling: DuplicateHandling,
    store: InventoryStore,
    sanitizer: Sanitizer = sanitize_text,
) -> ResolutionResult:
    """
    Assign an action to every valid row, in file order.

    Args:
        valid_rows: Rows that passed validation
        handling: skip, update or create
        store: Used for one point lookup per row (none under create)
        sanitizer: Same sanitizer the applier uses, applied to the key

    Returns:
        ResolutionResult with candidates and the skipped natural keys
        formatted as "<item name> - <batch>"

    Raises:
        DatabaseError: If a lookup fails
    """
    result = ResolutionResult()

    for valid in valid_rows:
        if handling == DuplicateHandling.CREATE:
            result.candidates.append(CandidateItem(valid.row_number, valid.data))
            continue

        existing = store.find_by_natural_key(
            sanitizer(valid.data.item_name),
            sanitizer(valid.data.batch),
        )

        if existing is None:
            result.candidates.append(CandidateItem(valid.row_number, valid.data))
        elif handling == DuplicateHandling.SKIP:
            result.duplicates.append(valid.data.display_name)
        else:
            result.candidates.append(CandidateItem(
                row_number=valid.row_number,
                data=valid.data,
                action=ImportAction.UPDATE,
                target_id=existing.id,
            ))

    logger.info(
        "import_duplicates_resolved",
        handling=handling.value,
        creates=result.create_count,
        updates=result.update_count,
        skipped=len(result.duplicates),
    )

    return result
