# guard/common.py
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from errors import DuplicateConflict, RecordNotFound, SchemaSkew, StoreError
from matching.models import DeduplicationResult, SuggestedAction, display_name
from store.base import Eq, Store
from store.schema import OPTIONAL_COLUMNS

logger = logging.getLogger(__name__)

TAGS_UNAVAILABLE = "tags feature not available - tags column does not exist"


@dataclass
class WriteResult:
    record: dict
    message: str
    duplicates: DeduplicationResult | None = None
    dropped_columns: list[str] = field(default_factory=list)

    @property
    def tags_unavailable(self) -> bool:
        return "tags" in self.dropped_columns


def _retry_without_optional(write, values: dict, table: str):
    """Run write(values); on a missing optional column, drop it and retry once."""
    try:
        return write(values), []
    except SchemaSkew as e:
        if e.column not in OPTIONAL_COLUMNS or e.column not in values:
            raise
        logger.warning("%s.%s does not exist on this deployment; retrying without it", table, e.column)
        trimmed = {k: v for k, v in values.items() if k != e.column}
        return write(trimmed), [e.column]


def insert_record(store: Store, table: str, values: dict) -> tuple[dict, list[str]]:
    return _retry_without_optional(lambda v: store.insert(table, v), values, table)


def update_record(store: Store, table: str, entity: str, record_id, changes: dict) -> WriteResult:
    values = {k: v for k, v in changes.items() if k != "id"}
    values["updated_at"] = datetime.now(timezone.utc).isoformat()

    rows, dropped = _retry_without_optional(
        lambda v: store.update(table, v, Eq("id", record_id)), values, table
    )
    if not rows:
        raise RecordNotFound(entity, record_id)
    record = rows[0]
    message = f'{entity.capitalize()} "{display_name(record)}" updated successfully'
    if dropped:
        message += f" ({TAGS_UNAVAILABLE})"
    return WriteResult(record=record, message=message, dropped_columns=dropped)


def describe_match(result: DeduplicationResult, entity: str) -> str:
    top = result.strongest
    return f"Existing {entity}: {display_name(top.matched_record)} (ID: {top.candidate_id})"


def blocked(result: DeduplicationResult, entity: str) -> DuplicateConflict:
    message = (
        f"{result.message}\n\n{describe_match(result, entity)}\n\n"
        f"To proceed, merge into the existing {entity} with merge_{entity}s, "
        f"update it with update_{entity}, or create with different identifying details."
    )
    return DuplicateConflict(result, entity, message)


def guarded_create(store: Store, table: str, entity: str, candidate, check) -> WriteResult:
    """
    Duplicate-check `candidate` with `check(store, candidate)` and insert it
    unless the strongest match calls for a merge.
    """
    result = check(store, candidate)
    if result.suggested_action is SuggestedAction.MERGE:
        logger.info("Blocked %s create: %s", entity, result.message)
        raise blocked(result, entity)

    try:
        record, dropped = insert_record(store, table, candidate.to_row())
    except StoreError as e:
        if not e.is_unique_violation:
            raise
        recheck = check(store, candidate)
        if not recheck.is_duplicate:
            raise
        message = f"Duplicate detected: {recheck.message}\n\n{describe_match(recheck, entity)}\n\nError: {e}"
        raise DuplicateConflict(recheck, entity, message) from e

    name = display_name(record)
    if result.suggested_action is SuggestedAction.UPDATE:
        top = result.strongest
        message = (f"{result.message}\n\n{entity.capitalize()} \"{name}\" created successfully "
                   f"(potential duplicate exists: {display_name(top.matched_record)}, ID: {top.candidate_id})")
    else:
        message = f'{entity.capitalize()} "{name}" created successfully'
    if dropped:
        message += f" ({TAGS_UNAVAILABLE})"

    logger.info("Created %s %s", entity, record.get("id"))
    return WriteResult(record=record, message=message, duplicates=result, dropped_columns=dropped)
