"""Unit tests for the keyed table store."""

from __future__ import annotations

from pathlib import Path

import pytest

from core.constants import LANCE_DIR_NAME, TABLE_MANIFEST_FILE_NAME
from core.errors import JtabStoreError, JtabTableExistsError, JtabTableNotFoundError
from core.types import CreateMode, OpenMode
from store.table_manifest import read_manifest_file
from store.table_store import TableStore


def _legacy(value: str) -> bytes:
    return value.encode("cp037")


def _write_table(store: TableStore, rows: list[dict[str, str]]) -> None:
    store.create_table("T1", ("ID",), ("VAL",), CreateMode.REPLACE)
    for row in rows:
        store.append_row("T1", {name: _legacy(value) for name, value in row.items()})
    store.close_table("T1")


def test_create_and_close_publishes_table_layout(tmp_path: Path) -> None:
    """Closing a new table should write its manifest and dataset."""
    store = TableStore(tmp_path / "LIB.PDS")

    _write_table(store, [{"ID": "1", "VAL": "x"}])
    table_dir = tmp_path / "LIB.PDS" / "T1.table"

    assert (table_dir / TABLE_MANIFEST_FILE_NAME).is_file() and (
        table_dir / LANCE_DIR_NAME
    ).is_dir()


def test_read_rows_returns_decoded_values(tmp_path: Path) -> None:
    """Persisted rows should read back as text in append order."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [{"ID": "1", "VAL": "x"}, {"ID": "2", "VAL": "y"}])

    rows = store.read_rows("T1")

    assert rows == [{"ID": "1", "VAL": "x"}, {"ID": "2", "VAL": "y"}]


def test_empty_table_writes_manifest_only(tmp_path: Path) -> None:
    """Zero-row tables should persist without a dataset."""
    store = TableStore(tmp_path / "LIB.PDS")

    _write_table(store, [])

    assert store.read_rows("T1") == []


def test_create_new_only_rejects_existing_table(tmp_path: Path) -> None:
    """NEW_ONLY creation should fail when the table already exists."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [])

    with pytest.raises(JtabTableExistsError) as error_info:
        store.create_table("T1", ("ID",), ("VAL",), CreateMode.NEW_ONLY)

    assert error_info.value.code == "TABLE_EXISTS"


def test_create_replace_supersedes_on_close(tmp_path: Path) -> None:
    """A replace create should swap in the new rows on close."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [{"ID": "1", "VAL": "old"}])

    _write_table(store, [{"ID": "2", "VAL": "new"}])

    assert store.read_rows("T1") == [{"ID": "2", "VAL": "new"}]


def test_discarded_replace_leaves_table_unchanged(tmp_path: Path) -> None:
    """Discarding an open replace should keep the persisted rows."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [{"ID": "1", "VAL": "old"}])
    store.create_table("T1", ("ID",), ("OTHER",), CreateMode.REPLACE)
    store.append_row("T1", {"ID": _legacy("9"), "OTHER": _legacy("z")})

    store.close_table("T1", discard=True)

    assert store.describe("T1").value_spec == "(VAL)"


def test_create_rejects_tables_without_value_fields(tmp_path: Path) -> None:
    """Tables need at least one value field."""
    store = TableStore(tmp_path / "LIB.PDS")

    with pytest.raises(JtabStoreError) as error_info:
        store.create_table("T1", ("ID",), (), CreateMode.NEW_ONLY)

    assert error_info.value.code == "NO_VALUE_FIELDS"


def test_open_missing_table_raises_not_found(tmp_path: Path) -> None:
    """Opening a missing table should raise a not-found store error."""
    store = TableStore(tmp_path / "LIB.PDS")

    with pytest.raises(JtabTableNotFoundError):
        store.open_table("T1", OpenMode.READ)

    assert not (tmp_path / "LIB.PDS").exists()


def test_query_table_wraps_field_lists(tmp_path: Path) -> None:
    """Structure queries should report parenthesised field lists."""
    store = TableStore(tmp_path / "LIB.PDS")
    store.create_table("T1", ("ID", "NAME"), ("VAL",), CreateMode.NEW_ONLY)

    structure = store.query_table("T1")

    assert (structure.key_spec, structure.value_spec) == ("(ID NAME)", "(VAL)")


def test_query_table_reports_empty_key_spec_for_key_less_table(tmp_path: Path) -> None:
    """Key-less tables should report an empty key spec."""
    store = TableStore(tmp_path / "LIB.PDS")
    store.create_table("T1", (), ("VAL",), CreateMode.NEW_ONLY)

    assert store.query_table("T1").key_spec == ""


def test_append_rejects_duplicate_keys(tmp_path: Path) -> None:
    """Keyed tables should reject a second row with the same key."""
    store = TableStore(tmp_path / "LIB.PDS")
    store.create_table("T1", ("ID",), ("VAL",), CreateMode.NEW_ONLY)
    store.append_row("T1", {"ID": _legacy("1"), "VAL": _legacy("x")})

    with pytest.raises(JtabStoreError) as error_info:
        store.append_row("T1", {"ID": _legacy("1"), "VAL": _legacy("y")})

    assert error_info.value.code == "DUPLICATE_KEY"


def test_append_rejects_mismatched_fields(tmp_path: Path) -> None:
    """Rows must carry exactly the table's fields."""
    store = TableStore(tmp_path / "LIB.PDS")
    store.create_table("T1", ("ID",), ("VAL",), CreateMode.NEW_ONLY)

    with pytest.raises(JtabStoreError) as error_info:
        store.append_row("T1", {"ID": _legacy("1"), "OTHER": _legacy("x")})

    assert error_info.value.code == "FIELD_MISMATCH"


def test_append_rejects_read_only_table(tmp_path: Path) -> None:
    """Read-mode tables cannot take appends."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [])
    store.open_table("T1", OpenMode.READ)

    with pytest.raises(JtabStoreError) as error_info:
        store.append_row("T1", {"ID": _legacy("1"), "VAL": _legacy("x")})

    assert error_info.value.code == "READ_ONLY"


def test_write_open_extends_persisted_rows(tmp_path: Path) -> None:
    """Write-mode opens should keep existing rows and append new ones."""
    store = TableStore(tmp_path / "LIB.PDS")
    _write_table(store, [{"ID": "1", "VAL": "x"}])
    store.open_table("T1", OpenMode.WRITE)
    store.append_row("T1", {"ID": _legacy("2"), "VAL": _legacy("y")})

    row_count = store.close_table("T1")

    assert row_count == 2


def test_explicit_encoding_is_recorded_in_manifest(tmp_path: Path) -> None:
    """Tables should remember the codec their values were written in."""
    store = TableStore(tmp_path / "LIB.PDS", "utf-8")
    store.create_table("T1", ("ID",), ("VAL",), CreateMode.NEW_ONLY)
    store.append_row("T1", {"ID": b"1", "VAL": "café".encode("utf-8")})
    store.close_table("T1")

    manifest = read_manifest_file(tmp_path / "LIB.PDS" / "T1.table")

    assert (manifest.encoding, manifest.row_count) == ("utf-8", 1)


def test_invalid_table_name_raises_store_error(tmp_path: Path) -> None:
    """Table names must not escape the library directory."""
    store = TableStore(tmp_path / "LIB.PDS")

    with pytest.raises(JtabStoreError) as error_info:
        store.table_exists("../T1")

    assert error_info.value.code == "BAD_TABLE_NAME"


def test_release_discards_open_tables(tmp_path: Path) -> None:
    """Releasing the library should publish nothing still open."""
    store = TableStore(tmp_path / "LIB.PDS")
    store.create_table("T1", ("ID",), ("VAL",), CreateMode.NEW_ONLY)

    store.release()

    assert not store.table_exists("T1")
