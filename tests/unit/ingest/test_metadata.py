"""Unit tests for import schema extraction."""

from __future__ import annotations

import json
from typing import Any

import pytest

from core.errors import JtabConfigError, JtabLookupError
from core.types import ImportRequest, TableIdentity
from document.accessor import DocumentAccessor
from document.tree import parse_document
from ingest.encoding import EncodingPipeline
from ingest.metadata import extract_import_schema, summary_phrase


def _extract(
    payload: dict[str, Any],
    codec: str = "utf-8",
    request: ImportRequest | None = None,
) -> Any:
    document = parse_document(json.dumps(payload).encode(codec))
    pipeline = EncodingPipeline(document.encoding, None)
    return extract_import_schema(
        DocumentAccessor(document),
        pipeline,
        request or ImportRequest(input_path="document.json"),
    )


def _payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "table": "T1",
        "dsn": "LIB.PDS",
        "keys": ["ID"],
        "names": ["VAL"],
        "data": [],
    }
    payload.update(overrides)
    return payload


def test_extract_import_schema_reads_identity_and_fields() -> None:
    """Schema should carry the document identity and field lists."""
    schema = _extract(_payload(keys=["ID", "NAME"], names=["VAL", "NOTE"]))

    assert (schema.target, schema.key_fields, schema.value_fields) == (
        TableIdentity(store_location="LIB.PDS", table_name="T1"),
        ("ID", "NAME"),
        ("VAL", "NOTE"),
    )


def test_extract_import_schema_reads_legacy_document() -> None:
    """A cp037 document should yield the same schema as its UTF-8 twin."""
    schema = _extract(_payload(keys=["ID", "NAME"]), codec="cp037")

    assert (schema.target.table_name, schema.key_fields) == ("T1", ("ID", "NAME"))


def test_request_identity_overrides_document_fields() -> None:
    """Caller parameters should win over document identity fields."""
    request = ImportRequest(input_path="document.json", store_location="OTHER", table_name="T9")

    schema = _extract(_payload(), request=request)

    assert schema.target == TableIdentity(store_location="OTHER", table_name="T9")


def test_missing_store_location_raises_config_error() -> None:
    """An empty dsn with no caller override should fail."""
    with pytest.raises(JtabConfigError) as error_info:
        _extract(_payload(dsn=""))

    assert error_info.value.code == "MISSING_STORE_LOCATION"


def test_missing_table_name_raises_config_error() -> None:
    """A document without a table name and no override should fail."""
    payload = _payload()
    del payload["table"]

    with pytest.raises(JtabConfigError) as error_info:
        _extract(payload)

    assert error_info.value.code == "MISSING_TABLE_NAME"


def test_empty_names_raise_lookup_error() -> None:
    """A table needs at least one value field."""
    with pytest.raises(JtabLookupError) as error_info:
        _extract(_payload(names=[]))

    assert error_info.value.code == "EMPTY_VALUE_FIELDS"


def test_missing_keys_array_raises_lookup_error() -> None:
    """The keys array must be present even when it is empty."""
    payload = _payload()
    del payload["keys"]

    with pytest.raises(JtabLookupError) as error_info:
        _extract(payload)

    assert error_info.value.code == "NOT_FOUND"


def test_empty_keys_array_is_allowed() -> None:
    """Key-less tables are valid."""
    schema = _extract(_payload(keys=[]))

    assert schema.key_fields == ()


def test_null_field_name_raises_lookup_error() -> None:
    """Null entries in a field array should be rejected."""
    with pytest.raises(JtabLookupError) as error_info:
        _extract(_payload(names=["VAL", None]))

    assert error_info.value.code == "NULL_FIELD_NAME"


def test_field_in_keys_and_names_raises_lookup_error() -> None:
    """A field cannot be both a key and a value."""
    with pytest.raises(JtabLookupError) as error_info:
        _extract(_payload(keys=["ID"], names=["ID"]))

    assert "both keys and names" in str(error_info.value)


def test_blank_field_name_raises_lookup_error() -> None:
    """Field names containing whitespace should be rejected."""
    with pytest.raises(JtabLookupError) as error_info:
        _extract(_payload(names=["MY VAL"]))

    assert error_info.value.code == "BAD_FIELD_NAME"


@pytest.mark.parametrize(
    ("raw_count", "expected"),
    [(3, 3), ("4", 4), (None, 0), ("many", 0), (-2, 0)],
)
def test_row_count_hint_is_advisory(raw_count: Any, expected: int) -> None:
    """The row count hint should parse numbers and fall back to 0."""
    schema = _extract(_payload(num_rows=raw_count))

    assert schema.row_count_hint == expected


def test_absent_row_count_hint_is_zero() -> None:
    """Documents without num_rows report a zero hint."""
    assert _extract(_payload()).row_count_hint == 0


def test_summary_phrase_distinguishes_singular() -> None:
    """Exactly one row uses the singular phrase."""
    phrases = (summary_phrase(1), summary_phrase(0), summary_phrase(2))

    assert phrases == (
        "row has been processed",
        "rows have been processed",
        "rows have been processed",
    )


def test_null_store_location_raises_config_error() -> None:
    """A null dsn with no caller override counts as a missing library."""
    with pytest.raises(JtabConfigError) as error_info:
        _extract(_payload(dsn=None))

    assert error_info.value.code == "MISSING_STORE_LOCATION"


def test_null_table_name_raises_config_error() -> None:
    """A null table with no caller override counts as a missing name."""
    with pytest.raises(JtabConfigError) as error_info:
        _extract(_payload(table=None))

    assert error_info.value.code == "MISSING_TABLE_NAME"
