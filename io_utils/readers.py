import math

import pandas as pd

from matching.models import ContactCandidate, DealCandidate
from store.schema import LIST_COLUMNS, NUMERIC_COLUMNS

TAG_SEP = ";"


def clean_columns(df: pd.DataFrame) -> pd.DataFrame:
    df.columns = df.columns.str.strip().str.lower().str.replace(" ", "_")
    return df


def split_tags(value):
    """'VIP; Enterprise' -> ['VIP', 'Enterprise']; blank -> None."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    if isinstance(value, (list, tuple, set)):
        return list(value)
    tags = [t.strip() for t in str(value).split(TAG_SEP) if t.strip()]
    return tags


def load_table(path) -> pd.DataFrame | None:
    """
    Read a CSV as strings, normalise headers, turn blanks into None and parse
    the list and numeric columns the store knows about.
    """
    if path is None:
        return None
    df = pd.read_csv(path, dtype=str, keep_default_na=False)
    df = clean_columns(df)
    df = df.astype(object).where(df != "", None)
    for col in LIST_COLUMNS & set(df.columns):
        df[col] = df[col].map(split_tags).astype(object)
    for col in NUMERIC_COLUMNS & set(df.columns):
        df[col] = pd.to_numeric(df[col], errors="coerce").astype(object)
    return df


def _value(row: dict, key: str):
    v = row.get(key)
    if isinstance(v, float) and math.isnan(v):
        return None
    return v


def contact_candidates(df: pd.DataFrame):
    """Yield (row_number, ContactCandidate | ValueError) for an import file."""
    if "first_name" not in df.columns or "last_name" not in df.columns:
        raise KeyError("Expected 'first_name' and 'last_name' in contacts import file.")
    has_tags = "tags" in df.columns
    for n, row in enumerate(df.to_dict("records"), start=1):
        try:
            yield n, ContactCandidate(
                first_name=_value(row, "first_name") or "",
                last_name=_value(row, "last_name") or "",
                email=_value(row, "email"),
                phone=_value(row, "phone"),
                role=_value(row, "role"),
                account_id=_value(row, "account_id"),
                tags=(split_tags(row.get("tags")) or []) if has_tags else None,
            )
        except ValueError as e:
            yield n, e


def deal_candidates(df: pd.DataFrame):
    """Yield (row_number, DealCandidate | ValueError) for an import file."""
    if "name" not in df.columns:
        raise KeyError("Expected 'name' in deals import file.")
    has_tags = "tags" in df.columns
    for n, row in enumerate(df.to_dict("records"), start=1):
        try:
            yield n, DealCandidate(
                name=_value(row, "name") or "",
                account_id=_value(row, "account_id"),
                pipeline_id=_value(row, "pipeline_id"),
                amount=_value(row, "amount"),
                stage=_value(row, "stage"),
                status=_value(row, "status") or "open",
                close_date=_value(row, "close_date"),
                tags=(split_tags(row.get("tags")) or []) if has_tags else None,
            )
        except ValueError as e:
            yield n, e
