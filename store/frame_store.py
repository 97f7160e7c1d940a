"""
In-process backing store: one pandas DataFrame per table.

Behaves like the relational store the core normally talks to, including the
two failure signals the Creation Guard depends on: writes that name a column
the table does not have fail with SchemaSkew (code 42703), and writes that
collide on a configured unique column fail with a StoreError (code 23505).
"""
import logging
import math
import os
import uuid
from contextlib import contextmanager
from datetime import datetime, timezone

import pandas as pd

from errors import store_error
from io_utils.readers import load_table
from io_utils.writers import ensure_outdir, write_table
from store.base import Eq, Filter
from store.schema import DEFAULT_SCHEMA

logger = logging.getLogger(__name__)


def utcnow() -> str:
    return datetime.now(timezone.utc).isoformat()


def _clean(value):
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, (list, tuple, set)):
        return list(value)
    return value


def _frame(rows: list[dict], columns) -> pd.DataFrame:
    return pd.DataFrame(rows, columns=list(columns), dtype=object)


class FrameStore:
    def __init__(self, schema: dict[str, list[str]] | None = None,
                 unique: dict[str, list[str]] | None = None):
        schema = schema if schema is not None else DEFAULT_SCHEMA
        self.unique = {t: list(cols) for t, cols in (unique or {}).items()}
        self._frames: dict[str, pd.DataFrame] = {
            table: _frame([], cols) for table, cols in schema.items()
        }

    # ---- helpers ----
    def _table(self, table: str) -> pd.DataFrame:
        if table not in self._frames:
            raise store_error("42P01", f'relation "{table}" does not exist')
        return self._frames[table]

    def _check_columns(self, table: str, columns):
        known = self._frames[table].columns
        for col in columns:
            if col not in known:
                raise store_error("42703", f'column "{col}" of relation "{table}" does not exist')

    def _mask(self, table: str, filters) -> pd.Series:
        df = self._table(table)
        self._check_columns(table, [f.column for f in filters])
        mask = pd.Series(True, index=df.index, dtype=bool)
        for f in filters:
            mask &= df[f.column].map(lambda v, f=f: f.matches(_clean(v))).astype(bool)
        return mask

    def _check_unique(self, table: str, row: dict, skip=None):
        df = self._frames[table]
        for col in self.unique.get(table, []):
            value = row.get(col)
            if value is None or col not in df.columns:
                continue
            clash = df[col].map(lambda v: _clean(v) == value).astype(bool)
            if skip is not None:
                clash &= ~skip
            if clash.any():
                raise store_error(
                    "23505",
                    f'duplicate key value violates unique constraint "{table}_{col}_key"',
                )

    @staticmethod
    def _records(df: pd.DataFrame) -> list[dict]:
        return [{k: _clean(v) for k, v in row.items()} for row in df.to_dict("records")]

    # ---- Store protocol ----
    def select(self, table: str, *filters: Filter) -> list[dict]:
        df = self._table(table)
        return self._records(df.loc[self._mask(table, filters)])

    def get(self, table: str, record_id) -> dict | None:
        rows = self.select(table, Eq("id", record_id))
        return rows[0] if rows else None

    def insert(self, table: str, values: dict) -> dict:
        df = self._table(table)
        self._check_columns(table, values.keys())
        row = {col: None for col in df.columns}
        row.update({k: _clean(v) for k, v in values.items()})
        if row.get("id") is None:
            row["id"] = str(uuid.uuid4())
        now = utcnow()
        for col in ("created_at", "updated_at"):
            if col in df.columns and row.get(col) is None:
                row[col] = now
        if df["id"].map(lambda v: _clean(v) == row["id"]).astype(bool).any():
            raise store_error("23505", f'duplicate key value violates unique constraint "{table}_pkey"')
        self._check_unique(table, row)
        self._frames[table] = _frame(self._records(df) + [row], df.columns)
        return dict(row)

    def update(self, table: str, values: dict, *filters: Filter) -> list[dict]:
        df = self._table(table)
        self._check_columns(table, values.keys())
        mask = self._mask(table, filters)
        if not mask.any():
            return []
        values = {k: _clean(v) for k, v in values.items()}
        self._check_unique(table, values, skip=mask)
        rows = self._records(df)
        updated = []
        for i, hit in enumerate(mask.tolist()):
            if hit:
                rows[i].update(values)
                updated.append(dict(rows[i]))
        self._frames[table] = _frame(rows, df.columns)
        return updated

    def delete(self, table: str, *filters: Filter) -> int:
        df = self._table(table)
        mask = self._mask(table, filters)
        self._frames[table] = df.loc[~mask].reset_index(drop=True)
        return int(mask.sum())

    @contextmanager
    def transaction(self):
        """Snapshot every table; restore it if the block raises."""
        snapshot = {t: df.copy() for t, df in self._frames.items()}
        try:
            yield self
        except BaseException:
            self._frames = snapshot
            raise

    # ---- bulk access ----
    def frame(self, table: str) -> pd.DataFrame:
        return self._table(table).copy()

    @classmethod
    def from_dir(cls, path, schema: dict[str, list[str]] | None = None,
                 unique: dict[str, list[str]] | None = None) -> "FrameStore":
        """Load `<table>.csv` files; missing files start as empty tables."""
        schema = {t: list(cols) for t, cols in (schema or DEFAULT_SCHEMA).items()}
        loaded = {}
        for table in schema:
            csv_path = os.path.join(path, f"{table}.csv")
            if os.path.exists(csv_path):
                df = load_table(csv_path)
                extra = [c for c in df.columns if c not in schema[table]]
                schema[table] += extra
                loaded[table] = df
        store = cls(schema=schema, unique=unique)
        for table, df in loaded.items():
            store._frames[table] = _frame(store._records(df), schema[table])
            logger.debug("Loaded %d %s from %s", len(df), table, path)
        return store

    def to_dir(self, path):
        ensure_outdir(path)
        for table, df in self._frames.items():
            write_table(df, os.path.join(path, f"{table}.csv"))
