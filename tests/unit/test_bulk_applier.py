"""
Unit tests for the bulk applier.

Each item is applied independently: failures are counted and reported
without stopping the loop or undoing earlier items.
"""

from models.bulk_import import DuplicateHandling, ImportAction
from services.bulk_applier import ImportProgress, apply_candidates
from services.duplicate_resolver import resolve_duplicates
from services.row_validator import validate_rows
from tests.factories import ImportRowFactory, InMemoryInventoryStore, InventoryItemFactory


def _candidates(mapping, rows, store, handling=DuplicateHandling.CREATE):
    valid = validate_rows(rows, mapping).valid_rows
    return resolve_duplicates(valid, handling, store).candidates


# ===================
# CREATE / UPDATE
# ===================

class TestApply:
    """Tests for apply_candidates."""

    def test_creates_with_actor_attribution(self, full_mapping, store):
        candidates = _candidates(full_mapping, ImportRowFactory.create_batch(3), store)

        outcome = apply_candidates(candidates, store, actor_id="user-42")

        assert outcome.success_count == 3
        assert outcome.failed_count == 0
        assert store.count() == 3
        assert all(f["entered_by_id"] == "user-42" for f in store.created)

    def test_text_fields_are_sanitized(self, full_mapping, store):
        rows = [ImportRowFactory.create(item_name="Gauze\x00 Pads", notes="see\x07 label")]
        candidates = _candidates(full_mapping, rows, store)

        apply_candidates(candidates, store, actor_id="user-1")

        assert store.created[0]["item_name"] == "Gauze Pads"
        assert store.created[0]["notes"] == "see label"

    def test_custom_sanitizer(self, full_mapping, store):
        candidates = _candidates(full_mapping, [ImportRowFactory.create(item_name="gauze")], store)

        apply_candidates(candidates, store, actor_id="user-1", sanitizer=str.upper)

        assert store.created[0]["item_name"] == "GAUZE"

    def test_update_keeps_name_batch_and_attribution(self, full_mapping):
        store = InMemoryInventoryStore(items=[
            InventoryItemFactory.create(
                id="item-1",
                item_name="Gauze Pads",
                batch="G-001",
                quantity=10,
                entered_by_id="user-original",
            ),
        ])
        rows = [ImportRowFactory.create(
            item_name="Gauze Pads",
            batch="G-001",
            quantity="75",
            reject="2",
            destination="FOZAN",
        )]
        candidates = _candidates(full_mapping, rows, store, DuplicateHandling.UPDATE)

        outcome = apply_candidates(candidates, store, actor_id="user-new")

        assert outcome.success_count == 1
        assert store.count() == 1
        item = store.items["item-1"]
        assert item["quantity"] == 75
        assert item["reject"] == 2
        assert item["destination"] == "FOZAN"
        assert item["entered_by_id"] == "user-original"
        item_id, fields = store.updated[0]
        assert item_id == "item-1"
        assert "item_name" not in fields
        assert "updated_at" in fields

    def test_empty_candidates(self, store):
        outcome = apply_candidates([], store, actor_id="user-1")

        assert outcome.success_count == 0
        assert outcome.progress.percent == 100
        assert outcome.progress.status == "completed"


# ===================
# FAILURE ISOLATION
# ===================

class TestFailures:
    """Per-item failures."""

    def test_failure_does_not_stop_the_loop(self, full_mapping):
        store = InMemoryInventoryStore(fail_on={"Syringes"})
        rows = [
            ImportRowFactory.create(item_name="Gauze Pads"),
            ImportRowFactory.create(item_name="Syringes"),
            ImportRowFactory.create(item_name="Bandage"),
        ]
        candidates = _candidates(full_mapping, rows, store)

        outcome = apply_candidates(candidates, store, actor_id="user-1")

        assert outcome.success_count == 2
        assert outcome.failed_count == 1
        assert store.count() == 2
        error = outcome.errors[0]
        assert error.row == 0
        assert error.field == "general"
        assert error.value == "Syringes"
        assert error.message == "Insert failed"

    def test_unexpected_exception_is_isolated(self, full_mapping, store):
        class ExplodingStore(InMemoryInventoryStore):
            def create(self, fields):
                raise RuntimeError("connection reset")

        broken = ExplodingStore()
        candidates = _candidates(full_mapping, ImportRowFactory.create_batch(2), broken)

        outcome = apply_candidates(candidates, broken, actor_id="user-1")

        assert outcome.failed_count == 2
        assert outcome.errors[0].message == "connection reset"

    def test_counts_never_exceed_candidates(self, full_mapping):
        store = InMemoryInventoryStore(fail_on={"Bandage"})
        rows = [ImportRowFactory.create(item_name=n) for n in ("Gauze", "Bandage", "Tape", "Bandage")]
        candidates = _candidates(full_mapping, rows, store)

        outcome = apply_candidates(candidates, store, actor_id="user-1")

        assert outcome.success_count + outcome.failed_count == len(candidates)


# ===================
# PROGRESS
# ===================

class TestProgress:
    """Progress snapshots."""

    def test_snapshot_after_each_item(self, full_mapping):
        store = InMemoryInventoryStore(fail_on={"Tape"})
        rows = [ImportRowFactory.create(item_name=n) for n in ("Gauze", "Tape", "Swab", "Mask")]
        candidates = _candidates(full_mapping, rows, store)
        seen: list[ImportProgress] = []

        outcome = apply_candidates(candidates, store, actor_id="user-1", on_progress=seen.append)

        assert [p.processed for p in seen] == [1, 2, 3, 4]
        assert [p.percent for p in seen] == [25, 50, 75, 100]
        assert seen[1].failed == 1
        assert seen[-1].successful == 3
        assert outcome.progress.status == "completed"

    def test_snapshots_are_independent(self):
        start = ImportProgress(total=2, status="processing")

        advanced = start.advance(ok=True)

        assert start.processed == 0
        assert advanced.processed == 1
        assert advanced.successful == 1

    def test_action_enum_on_candidates(self, full_mapping, store):
        candidates = _candidates(full_mapping, [ImportRowFactory.create()], store)

        assert candidates[0].action == ImportAction.CREATE
