import pytest

from store.frame_store import FrameStore
from store.schema import DEFAULT_SCHEMA


@pytest.fixture
def schema_without():
    """DEFAULT_SCHEMA as seen on a deployment that lacks `table.column`."""
    def _schema(table, column):
        schema = {t: list(cols) for t, cols in DEFAULT_SCHEMA.items()}
        schema[table].remove(column)
        return schema
    return _schema


@pytest.fixture
def store():
    return FrameStore()


@pytest.fixture
def seed():
    """Insert rows into a table and return them as stored."""
    def _seed(store, table, *rows):
        return [store.insert(table, dict(row)) for row in rows]
    return _seed
