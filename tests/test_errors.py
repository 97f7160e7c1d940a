"""Tests for mapping raw store failures onto the error taxonomy."""

import pytest

from errors import (
    ErrorKind,
    RecordNotFound,
    SchemaSkew,
    StoreError,
    classify_error,
    column_from_message,
    store_error,
)


class TestClassifyError:
    @pytest.mark.parametrize("code,kind", [
        ("23505", ErrorKind.UNIQUE_VIOLATION),
        ("42703", ErrorKind.UNDEFINED_COLUMN),
        ("PGRST204", ErrorKind.UNDEFINED_COLUMN),
        ("42P01", ErrorKind.OTHER),
        ("23502", ErrorKind.OTHER),
        ("23514", ErrorKind.OTHER),
    ])
    def test_known_codes(self, code, kind):
        assert classify_error(code, "whatever the message says") is kind

    def test_code_beats_message(self):
        assert classify_error("23505", 'column "tags" does not exist') is ErrorKind.UNIQUE_VIOLATION

    @pytest.mark.parametrize("message,kind", [
        ('column "tags" of relation "contacts" does not exist', ErrorKind.UNDEFINED_COLUMN),
        ("Could not find the 'tags' column of 'contacts' in the schema cache", ErrorKind.UNDEFINED_COLUMN),
        ('duplicate key value violates unique constraint "contacts_email_key"', ErrorKind.UNIQUE_VIOLATION),
        ("connection reset by peer", ErrorKind.OTHER),
        ('null value in column "email" of relation "contacts" violates not-null constraint', ErrorKind.OTHER),
        ('relation "contacts" does not exist', ErrorKind.OTHER),
        ('new row for relation "deals" violates check constraint "deals_status_check"', ErrorKind.OTHER),
    ])
    def test_message_fallback(self, message, kind):
        assert classify_error(None, message) is kind


class TestColumnFromMessage:
    @pytest.mark.parametrize("message,column", [
        ('column "tags" of relation "contacts" does not exist', "tags"),
        ("column contacts.tags does not exist", "tags"),
        ("Could not find the 'tags' column of 'contacts' in the schema cache", "tags"),
        ("permission denied", None),
    ])
    def test_extracts_column(self, message, column):
        assert column_from_message(message) == column


class TestStoreError:
    def test_undefined_column_is_schema_skew(self):
        err = store_error("42703", 'column "tags" of relation "deals" does not exist')

        assert isinstance(err, SchemaSkew)
        assert err.column == "tags"
        assert err.code == "42703"

    def test_unique_violation(self):
        err = store_error("23505", "duplicate key value")

        assert type(err) is StoreError
        assert err.is_unique_violation

    def test_original_message_kept(self):
        err = store_error(None, "connection reset by peer")

        assert str(err) == "connection reset by peer"
        assert err.kind is ErrorKind.OTHER

    @pytest.mark.parametrize("message", [
        'null value in column "tags" of relation "contacts" violates not-null constraint',
        'relation "contacts" does not exist',
    ])
    def test_uncoded_failures_are_not_schema_skew(self, message):
        err = store_error(None, message)

        assert type(err) is StoreError
        assert err.column is None
        assert str(err) == message


class TestRecordNotFound:
    def test_names_side(self):
        assert str(RecordNotFound("contact", "c1", side="source")) == "Source contact not found: c1"

    def test_without_side(self):
        assert str(RecordNotFound("deal", "d1")) == "Deal not found: d1"
