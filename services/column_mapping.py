"""
Column mapping resolver.

Pure functions binding upload headers to the import target fields.
Auto-detection is a case-insensitive substring match against an
ordered synonym list per field; nothing here touches session state.
"""

from typing import Optional, Sequence

from exceptions import MappingIncompleteError
from models.bulk_import import ColumnMapping, TargetField, REQUIRED_FIELDS


# Order matters twice: fields are resolved top to bottom, and within a
# field the first synonym that matches any header wins.
SYNONYMS: dict[TargetField, tuple[str, ...]] = {
    TargetField.ITEM_NAME: ("itemname", "item_name", "item name", "name", "product"),
    TargetField.BATCH: ("batch", "batch number", "batch_number", "batchnumber", "lot"),
    TargetField.QUANTITY: ("quantity", "qty", "amount", "count"),
    TargetField.REJECT: ("reject", "rejected", "defect", "defective"),
    TargetField.DESTINATION: ("destination", "dest", "location", "site"),
    TargetField.CATEGORY: ("category", "cat", "type", "class"),
    TargetField.NOTES: ("notes", "note", "comments", "comment", "remarks", "description"),
}


def auto_detect_mapping(headers: Sequence[str]) -> ColumnMapping:
    """
    Build a mapping from scratch by scanning headers.

    A header claimed by an earlier field is not offered to later ones.

    ["Product", "Lot", "Qty", "Site"] -> itemName=Product, batch=Lot,
    quantity=Qty, destination=Site
    """
    return seed_mapping(headers, ColumnMapping())


def seed_mapping(
    headers: Sequence[str],
    current: Optional[ColumnMapping] = None,
) -> ColumnMapping:
    """
    Fill unbound fields of current from the headers.

    Fields already bound (manual choices) are never overwritten and
    their headers are not reused for other fields.
    """
    mapping = current or ColumnMapping()
    claimed = set(mapping.bound_fields().values())

    for target in TargetField:
        if mapping.get(target) is not None:
            continue
        header = _match_header(target, headers, claimed)
        if header is not None:
            mapping = mapping.bind(target, header)
            claimed.add(header)

    return mapping


def is_complete(mapping: ColumnMapping) -> bool:
    """True when every required field is bound."""
    return not missing_required_fields(mapping)


def missing_required_fields(mapping: ColumnMapping) -> list[TargetField]:
    return [field for field in REQUIRED_FIELDS if mapping.get(field) is None]


def ensure_complete(mapping: ColumnMapping) -> None:
    """
    Raises:
        MappingIncompleteError: A required field is unbound
    """
    missing = missing_required_fields(mapping)
    if missing:
        raise MappingIncompleteError([field.value for field in missing])


def shared_headers(mapping: ColumnMapping) -> dict[str, list[TargetField]]:
    """
    Headers bound to more than one target field.

    Allowed by the mapping itself, but the same cell then lands in
    several fields; callers should warn before validating.
    """
    by_header: dict[str, list[TargetField]] = {}
    for field, header in mapping.bound_fields().items():
        by_header.setdefault(header, []).append(field)
    return {header: fields for header, fields in by_header.items() if len(fields) > 1}


def _match_header(
    target: TargetField,
    headers: Sequence[str],
    claimed: set[str],
) -> Optional[str]:
    lowered = [(header, str(header).lower()) for header in headers]
    for synonym in SYNONYMS[target]:
        for header, lower in lowered:
            if header in claimed:
                continue
            if synonym in lower:
                return header
    return None
