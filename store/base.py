"""
Backing store contract.

The dedupe core never owns a database connection. Callers build a store
handle once per process and pass it into every operation; anything that
implements Store below will do (a PostgREST client wrapper, a SQL DAL, or the
in-process FrameStore).
"""
import re
from dataclasses import dataclass
from typing import Any, Iterable, Protocol


@dataclass(frozen=True)
class Eq:
    column: str
    value: Any

    def matches(self, value) -> bool:
        return value is not None and value == self.value


@dataclass(frozen=True)
class ILike:
    """SQL ILIKE: case-insensitive, full-string, `%` and `_` wildcards."""
    column: str
    pattern: str

    def matches(self, value) -> bool:
        return isinstance(value, str) and _ilike_regex(self.pattern).fullmatch(value) is not None


@dataclass(frozen=True)
class NotNull:
    column: str

    def matches(self, value) -> bool:
        return value is not None


@dataclass(frozen=True)
class Overlaps:
    column: str
    values: Iterable[str]

    def __post_init__(self):
        object.__setattr__(self, "values", tuple(self.values))

    def matches(self, value) -> bool:
        if not isinstance(value, (list, tuple, set)):
            return False
        return bool(set(value) & set(self.values))


Filter = Eq | ILike | NotNull | Overlaps


def _ilike_regex(pattern: str) -> re.Pattern:
    parts = []
    for ch in pattern:
        if ch == "%":
            parts.append(".*")
        elif ch == "_":
            parts.append(".")
        else:
            parts.append(re.escape(ch))
    return re.compile("".join(parts), re.IGNORECASE | re.DOTALL)


class Store(Protocol):
    """CRUD surface the core consumes. Failures raise errors.StoreError."""

    def select(self, table: str, *filters: Filter) -> list[dict]: ...

    def get(self, table: str, record_id) -> dict | None: ...

    def insert(self, table: str, values: dict) -> dict: ...

    def update(self, table: str, values: dict, *filters: Filter) -> list[dict]: ...

    def delete(self, table: str, *filters: Filter) -> int: ...
