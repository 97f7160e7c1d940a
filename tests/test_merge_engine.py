"""
Tests for the merge engine.

Covers the consolidated record, interaction re-pointing, missing source or
target, and the failures that must not flip a merge to unsuccessful.
"""

from datetime import datetime, timezone

import pytest

from errors import store_error
from merge.engine import merge_contacts, merge_deals
from store.base import Eq
from store.frame_store import FrameStore
from store.schema import CONTACTS, DEALS, INTERACTIONS

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


class FailingDeleteStore(FrameStore):
    def delete(self, table, *filters):
        raise store_error(None, f"permission denied for table {table}")


class FailingRepointStore(FrameStore):
    def update(self, table, values, *filters):
        if table == INTERACTIONS:
            raise store_error(None, "canceling statement due to statement timeout")
        return super().update(table, values, *filters)


def seed_contacts(store):
    store.insert(CONTACTS, {"id": "src", "first_name": "Ann", "last_name": "Lee",
                            "email": "a@x.com", "phone": None, "tags": ["VIP"]})
    store.insert(CONTACTS, {"id": "tgt", "first_name": "Ann", "last_name": "Lee",
                            "email": None, "phone": "555-1111", "tags": ["Ent"]})
    store.insert(CONTACTS, {"id": "other", "first_name": "Bob", "last_name": "Ray"})
    store.insert(INTERACTIONS, {"id": "i1", "type": "call", "contact_id": "src"})
    store.insert(INTERACTIONS, {"id": "i2", "type": "email", "contact_id": "src"})
    store.insert(INTERACTIONS, {"id": "i3", "type": "meeting", "contact_id": "other"})


class TestMergeContacts:
    def test_merged_record(self, store):
        seed_contacts(store)

        result = merge_contacts(store, "src", "tgt", now=NOW)

        assert result.success is True
        assert result.error is None
        merged = result.merged
        assert merged["id"] == "tgt"
        assert merged["email"] == "a@x.com"
        assert merged["phone"] == "555-1111"
        assert set(merged["tags"]) == {"VIP", "Ent"}
        assert merged["updated_at"] == NOW.isoformat()
        assert store.get(CONTACTS, "tgt")["email"] == "a@x.com"

    def test_source_removed(self, store):
        seed_contacts(store)

        merge_contacts(store, "src", "tgt")

        assert store.get(CONTACTS, "src") is None
        assert {c["id"] for c in store.select(CONTACTS)} == {"tgt", "other"}

    def test_interactions_repointed(self, store):
        seed_contacts(store)

        merge_contacts(store, "src", "tgt")

        assert store.select(INTERACTIONS, Eq("contact_id", "src")) == []
        moved = {i["id"] for i in store.select(INTERACTIONS, Eq("contact_id", "tgt"))}
        assert moved == {"i1", "i2"}
        assert store.get(INTERACTIONS, "i3")["contact_id"] == "other"

    @pytest.mark.parametrize("source,target,side", [
        ("missing", "tgt", "Source"),
        ("src", "missing", "Target"),
    ])
    def test_missing_side_named(self, store, source, target, side):
        seed_contacts(store)

        result = merge_contacts(store, source, target)

        assert result.success is False
        assert result.error.startswith(f"{side} contact not found")
        assert store.get(CONTACTS, "src") is not None
        assert store.get(CONTACTS, "tgt")["email"] is None

    def test_merge_into_itself_refused(self, store):
        seed_contacts(store)

        result = merge_contacts(store, "tgt", "tgt")

        assert result.success is False
        assert store.get(CONTACTS, "tgt") is not None

    def test_failed_source_delete_still_succeeds(self):
        store = FailingDeleteStore()
        seed_contacts(store)

        result = merge_contacts(store, "src", "tgt")

        assert result.success is True
        assert result.merged["email"] == "a@x.com"
        assert any("source not deleted" in w for w in result.warnings)
        assert store.get(CONTACTS, "src") is not None
        assert store.select(INTERACTIONS, Eq("contact_id", "src")) == []

    def test_failed_repoint_still_succeeds(self):
        store = FailingRepointStore()
        seed_contacts(store)

        result = merge_contacts(store, "src", "tgt")

        assert result.success is True
        assert any("references not re-pointed" in w for w in result.warnings)
        assert store.get(CONTACTS, "src") is None

    def test_store_without_tags_column(self, schema_without):
        store = FrameStore(schema=schema_without(CONTACTS, "tags"))
        store.insert(CONTACTS, {"id": "src", "first_name": "Ann", "last_name": "Lee", "email": "a@x.com"})
        store.insert(CONTACTS, {"id": "tgt", "first_name": "Ann", "last_name": "Lee", "phone": "555-1111"})

        result = merge_contacts(store, "src", "tgt")

        assert result.success is True
        assert result.merged["email"] == "a@x.com"
        assert "tags" not in result.merged


class TestMergeDeals:
    def test_amounts_summed(self, store):
        store.insert(DEALS, {"id": "d1", "name": "Renewal", "amount": 30000.0, "stage": "proposal"})
        store.insert(DEALS, {"id": "d2", "name": "Renewal", "amount": 50000.0, "tags": ["Q3"]})
        store.insert(INTERACTIONS, {"id": "i1", "type": "call", "deal_id": "d1"})

        result = merge_deals(store, "d1", "d2")

        assert result.success is True
        assert result.merged["amount"] == 80000
        assert result.merged["stage"] == "proposal"
        assert store.get(DEALS, "d1") is None
        assert store.get(INTERACTIONS, "i1")["deal_id"] == "d2"

    def test_missing_target(self, store):
        store.insert(DEALS, {"id": "d1", "name": "Renewal"})

        result = merge_deals(store, "d1", "nope")

        assert result.success is False
        assert result.error.startswith("Target deal not found")

    def test_contact_references_untouched(self, store):
        store.insert(DEALS, {"id": "d1", "name": "Renewal"})
        store.insert(DEALS, {"id": "d2", "name": "Renewal"})
        store.insert(INTERACTIONS, {"id": "i1", "type": "call", "contact_id": "d1"})

        merge_deals(store, "d1", "d2")

        assert store.get(INTERACTIONS, "i1")["contact_id"] == "d1"
