# merge/engine.py
import logging
from contextlib import nullcontext
from dataclasses import dataclass, field
from datetime import datetime, timezone

from errors import DedupeError, RecordNotFound, SchemaSkew, StoreError
from merge.survivorship import merge_contact_records, merge_deal_records
from store.base import Eq, Store
from store.schema import CONTACTS, DEALS, OPTIONAL_COLUMNS, REFERENCES

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    success: bool
    error: str | None = None
    merged: dict | None = None
    warnings: list[str] = field(default_factory=list)


def _update_target(store: Store, table: str, entity: str, merged: dict) -> dict:
    values = {k: v for k, v in merged.items() if k != "id"}
    try:
        rows = store.update(table, values, Eq("id", merged["id"]))
    except SchemaSkew as e:
        if e.column not in OPTIONAL_COLUMNS or e.column not in values:
            raise
        logger.warning("%s.%s missing on this deployment; merging without it", table, e.column)
        values.pop(e.column)
        rows = store.update(table, values, Eq("id", merged["id"]))
    if not rows:
        raise RecordNotFound(entity, merged["id"], side="target")
    return rows[0]


def repoint_references(store: Store, table: str, source_id, target_id) -> int:
    moved = 0
    for ref_table, column in REFERENCES.get(table, []):
        rows = store.update(ref_table, {column: target_id}, Eq(column, source_id))
        moved += len(rows)
    return moved


def finish_merge(store: Store, table: str, source_id, target_id, result: MergeResult):
    """Re-point references and drop the source. Failures are logged, not raised."""
    try:
        moved = repoint_references(store, table, source_id, target_id)
        logger.info("Re-pointed %d reference(s) from %s to %s", moved, source_id, target_id)
    except StoreError as e:
        logger.warning("Failed to re-point references from %s to %s: %s", source_id, target_id, e)
        result.warnings.append(f"references not re-pointed: {e}")

    try:
        store.delete(table, Eq("id", source_id))
    except StoreError as e:
        logger.warning("Failed to delete source %s after merge: %s", source_id, e)
        result.warnings.append(f"source not deleted: {e}")


def _merge(store: Store, table: str, entity: str, merge_fn, source_id, target_id,
           now: datetime | None = None) -> MergeResult:
    """
    1) Fetch source, then target (either missing fails the merge)
    2) Consolidate fields, target wins
    3) Update target, re-point references, delete source
       - inside store.transaction() when the store has one
    Returns: MergeResult
    """
    if source_id == target_id:
        return MergeResult(success=False, error=f"Cannot merge a {entity} into itself")

    try:
        source = store.get(table, source_id)
        if source is None:
            raise RecordNotFound(entity, source_id, side="source")
        target = store.get(table, target_id)
        if target is None:
            raise RecordNotFound(entity, target_id, side="target")

        merged_at = (now or datetime.now(timezone.utc)).isoformat()
        merged = merge_fn(target, source, merged_at)

        transaction = getattr(store, "transaction", None)
        with transaction() if transaction else nullcontext():
            updated = _update_target(store, table, entity, merged)
            result = MergeResult(success=True, merged=updated)
            finish_merge(store, table, source_id, target_id, result)
    except DedupeError as e:
        logger.info("Merge of %s %s into %s failed: %s", entity, source_id, target_id, e)
        return MergeResult(success=False, error=str(e))

    logger.info("Merged %s %s into %s", entity, source_id, target_id)
    return result


def merge_contacts(store: Store, source_id, target_id, now: datetime | None = None) -> MergeResult:
    return _merge(store, CONTACTS, "contact", merge_contact_records, source_id, target_id, now)


def merge_deals(store: Store, source_id, target_id, now: datetime | None = None) -> MergeResult:
    return _merge(store, DEALS, "deal", merge_deal_records, source_id, target_id, now)
