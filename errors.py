"""
Error taxonomy for duplicate detection, guarded creation and merges.

Store clients report failures as a (code, message) pair. ERROR_CODE_KINDS maps
the codes we know about to an ErrorKind; message sniffing is only used when a
store hands us a code we do not recognise (or none at all).
"""
import re
from enum import Enum


class ErrorKind(str, Enum):
    UNIQUE_VIOLATION = "unique_violation"
    UNDEFINED_COLUMN = "undefined_column"
    OTHER = "other"


# PostgreSQL SQLSTATE / PostgREST codes
ERROR_CODE_KINDS: dict[str, ErrorKind] = {
    "23505": ErrorKind.UNIQUE_VIOLATION,   # unique_violation
    "42703": ErrorKind.UNDEFINED_COLUMN,   # undefined_column
    "PGRST204": ErrorKind.UNDEFINED_COLUMN,  # column missing from schema cache
    "42P01": ErrorKind.OTHER,              # undefined_table
    "23502": ErrorKind.OTHER,              # not_null_violation
    "23514": ErrorKind.OTHER,              # check_violation
}

_COLUMN_NAME = re.compile(r"""column\s+["']?(?:\w+\.)?(\w+)["']?|["'](\w+)["']\s+column""", re.I)


class DedupeError(Exception):
    """Base class for every error raised by this package."""


class RecordNotFound(DedupeError):
    def __init__(self, entity: str, record_id, side: str | None = None):
        self.entity = entity
        self.record_id = record_id
        self.side = side
        label = f"{side.capitalize()} {entity}" if side else entity.capitalize()
        super().__init__(f"{label} not found: {record_id}")


class DuplicateConflict(DedupeError):
    """A create was refused because the record already exists under another id."""

    def __init__(self, result, entity: str, message: str | None = None):
        self.result = result
        self.entity = entity
        super().__init__(message or result.message)

    @property
    def matches(self):
        return self.result.matches


class StoreError(DedupeError):
    def __init__(self, message: str, code: str | None = None,
                 kind: ErrorKind = ErrorKind.OTHER, column: str | None = None):
        self.message = message
        self.code = code
        self.kind = kind
        self.column = column
        super().__init__(message)

    @property
    def is_unique_violation(self) -> bool:
        return self.kind is ErrorKind.UNIQUE_VIOLATION


class SchemaSkew(StoreError):
    """The deployment's table lacks a column the write referenced."""


def classify_error(code: str | None, message: str) -> ErrorKind:
    if code and code in ERROR_CODE_KINDS:
        return ERROR_CODE_KINDS[code]
    msg = (message or "").lower()
    if "column" in msg and ("does not exist" in msg or "could not find" in msg):
        return ErrorKind.UNDEFINED_COLUMN
    if "duplicate" in msg or "unique" in msg:
        return ErrorKind.UNIQUE_VIOLATION
    return ErrorKind.OTHER


def column_from_message(message: str) -> str | None:
    m = _COLUMN_NAME.search(message or "")
    if not m:
        return None
    return m.group(1) or m.group(2)


def store_error(code: str | None, message: str) -> StoreError:
    """Build the StoreError subclass matching a raw store failure."""
    kind = classify_error(code, message)
    if kind is ErrorKind.UNDEFINED_COLUMN:
        return SchemaSkew(message, code=code, kind=kind, column=column_from_message(message))
    return StoreError(message, code=code, kind=kind)
