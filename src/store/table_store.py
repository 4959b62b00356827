"""Keyed table store over a library directory.

This module manages named tables inside one table library. A table is
created or opened, receives appended rows in memory, and is finalized
as one unit on close. Closing with ``discard=True`` releases the table
without publishing anything, so an aborted import leaves the
persisted table exactly as it was.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Mapping

from core.constants import LEGACY_CODEC, TABLE_DIR_SUFFIX, TABLE_MANIFEST_FILE_NAME
from core.errors import JtabStoreError, JtabTableExistsError, JtabTableNotFoundError
from core.logging_config import get_logger
from core.types import CreateMode, OpenMode, TableStructure
from store.lance_table import read_table_rows, write_table_rows
from store.table_manifest import TableManifest, read_manifest_file, write_manifest_file

_LOGGER = get_logger(__name__)


@dataclass
class _OpenTable:
    """In-memory state of one open table."""

    manifest: TableManifest
    mode: OpenMode
    rows: list[dict[str, str]] = field(default_factory=list)
    keys: set[tuple[str, ...]] = field(default_factory=set)


class TableStore:
    """Table library bound to one directory.

    Values handed to ``append_row`` are bytes in the store encoding;
    ``encoding=None`` selects the legacy codepage.
    """

    def __init__(self, library_path: Path, encoding: str | None = None) -> None:
        """Bind a table library.

        Args:
            library_path: Library directory; created on first table create.
            encoding: Codec for new tables, legacy codepage when None.
        """
        self._library_path = library_path
        self._encoding = encoding or LEGACY_CODEC
        self._open_tables: dict[str, _OpenTable] = {}

    @property
    def library_path(self) -> Path:
        return self._library_path

    @property
    def encoding(self) -> str:
        return self._encoding

    def table_exists(self, table_name: str) -> bool:
        """Return whether a table is persisted in the library."""
        return (self._table_dir(table_name) / TABLE_MANIFEST_FILE_NAME).exists()

    def is_open(self, table_name: str) -> bool:
        return table_name in self._open_tables

    def create_table(
        self,
        table_name: str,
        key_fields: tuple[str, ...],
        value_fields: tuple[str, ...],
        mode: CreateMode,
    ) -> None:
        """Create an empty table and leave it open for write.

        With ``CreateMode.REPLACE`` an existing table is superseded when
        the new one is closed; until then the persisted table is untouched.

        Raises:
            JtabTableExistsError: If the table exists and mode is NEW_ONLY.
            JtabStoreError: If the table is already open or fields are invalid.
        """
        self._ensure_not_open(table_name, "create")
        if mode is CreateMode.NEW_ONLY and self.table_exists(table_name):
            raise JtabTableExistsError(
                f"Table '{table_name}' already exists in {self._library_path}. "
                "Rerun with --replace to overwrite it.",
                operation="create",
                code="TABLE_EXISTS",
            )
        if not value_fields:
            raise JtabStoreError(
                f"Table '{table_name}' needs at least one value field.",
                operation="create",
                code="NO_VALUE_FIELDS",
            )
        columns = key_fields + value_fields
        if len(set(columns)) != len(columns):
            raise JtabStoreError(
                f"Table '{table_name}' has duplicate field names: {' '.join(columns)}.",
                operation="create",
                code="DUPLICATE_FIELDS",
            )
        manifest = TableManifest(
            table_name=table_name,
            key_fields=key_fields,
            value_fields=value_fields,
            encoding=self._encoding,
            row_count=0,
            updated_at=datetime.now(timezone.utc),
        )
        self._open_tables[table_name] = _OpenTable(manifest=manifest, mode=OpenMode.WRITE)
        _LOGGER.info(
            "table_created",
            library=str(self._library_path),
            table_name=table_name,
            mode=mode.value,
            key_fields=list(key_fields),
            value_fields=list(value_fields),
            encoding=self._encoding,
        )

    def open_table(self, table_name: str, mode: OpenMode) -> None:
        """Open an existing table.

        Write-mode opens load the persisted rows so appends extend them.

        Raises:
            JtabTableNotFoundError: If the table does not exist.
            JtabStoreError: If the table is already open or unreadable.
        """
        self._ensure_not_open(table_name, "open")
        if not self.table_exists(table_name):
            raise JtabTableNotFoundError(
                f"Table '{table_name}' does not exist in {self._library_path}.",
                operation="open",
                code="TABLE_NOT_FOUND",
            )
        table_dir = self._table_dir(table_name)
        manifest = read_manifest_file(table_dir)
        open_table = _OpenTable(manifest=manifest, mode=mode)
        if mode is OpenMode.WRITE:
            for row in read_table_rows(table_dir, manifest.columns):
                _add_row(open_table, row)
        self._open_tables[table_name] = open_table

    def query_table(self, table_name: str) -> TableStructure:
        """Describe an open table's field layout.

        Field lists are reported parenthesised, as ``(A B)``; a key-less
        table reports an empty key spec.
        """
        open_table = self._require_open(table_name, "query")
        manifest = open_table.manifest
        row_count = manifest.row_count
        if open_table.mode is OpenMode.WRITE:
            row_count = len(open_table.rows)
        return TableStructure(
            key_spec=_wrap_fields(manifest.key_fields),
            value_spec=_wrap_fields(manifest.value_fields),
            row_count=row_count,
            encoding=manifest.encoding,
        )

    def append_row(self, table_name: str, values: Mapping[str, bytes]) -> None:
        """Append one row to a table open for write.

        Args:
            table_name: Open table name.
            values: Field values encoded in the table's encoding.

        Raises:
            JtabStoreError: If the table is not open for write, fields are
                missing or unknown, a value cannot be decoded, or the key
                already exists.
        """
        open_table = self._require_open(table_name, "append")
        if open_table.mode is not OpenMode.WRITE:
            raise JtabStoreError(
                f"Table '{table_name}' is open read-only.",
                operation="append",
                code="READ_ONLY",
            )
        columns = open_table.manifest.columns
        missing = [name for name in columns if name not in values]
        unknown = [name for name in values if name not in columns]
        if missing or unknown:
            raise JtabStoreError(
                f"Row for table '{table_name}' does not match its fields: "
                f"missing={missing} unknown={unknown}.",
                operation="append",
                code="FIELD_MISMATCH",
            )
        encoding = open_table.manifest.encoding
        row = {name: _decode_value(values[name], encoding) for name in columns}
        _add_row(open_table, row)

    def close_table(self, table_name: str, discard: bool = False) -> int:
        """Close a table, persisting it when it was open for write.

        Args:
            table_name: Open table name.
            discard: Drop pending changes instead of persisting them.

        Returns:
            Number of rows in the table after close.
        """
        open_table = self._open_tables.pop(table_name, None)
        if open_table is None:
            raise JtabStoreError(
                f"Table '{table_name}' is not open.",
                operation="close",
                code="NOT_OPEN",
            )
        if open_table.mode is OpenMode.READ or discard:
            _LOGGER.info("table_closed", table_name=table_name, persisted=False)
            return open_table.manifest.row_count
        table_dir = self._table_dir(table_name)
        table_dir.mkdir(parents=True, exist_ok=True)
        manifest = replace(
            open_table.manifest,
            row_count=len(open_table.rows),
            updated_at=datetime.now(timezone.utc),
        )
        write_table_rows(table_dir, manifest.columns, open_table.rows)
        write_manifest_file(table_dir, manifest)
        _LOGGER.info(
            "table_closed",
            table_name=table_name,
            persisted=True,
            row_count=manifest.row_count,
        )
        return manifest.row_count

    def read_rows(self, table_name: str) -> list[dict[str, str]]:
        """Read all persisted rows of a table.

        Raises:
            JtabTableNotFoundError: If the table does not exist.
        """
        self.open_table(table_name, OpenMode.READ)
        try:
            manifest = self._open_tables[table_name].manifest
            return read_table_rows(self._table_dir(table_name), manifest.columns)
        finally:
            self.close_table(table_name)

    def describe(self, table_name: str) -> TableStructure:
        """Return the persisted field layout of a table."""
        self.open_table(table_name, OpenMode.READ)
        try:
            return self.query_table(table_name)
        finally:
            self.close_table(table_name)

    def release(self) -> None:
        """Release the library binding, discarding any table still open."""
        for table_name in list(self._open_tables):
            self.close_table(table_name, discard=True)

    def _table_dir(self, table_name: str) -> Path:
        if (
            not table_name
            or table_name in (".", "..")
            or "/" in table_name
            or "\\" in table_name
        ):
            raise JtabStoreError(
                f"Invalid table name '{table_name}'.",
                operation="resolve-table",
                code="BAD_TABLE_NAME",
            )
        return self._library_path / f"{table_name}{TABLE_DIR_SUFFIX}"

    def _ensure_not_open(self, table_name: str, operation: str) -> None:
        if table_name in self._open_tables:
            raise JtabStoreError(
                f"Table '{table_name}' is already open.",
                operation=operation,
                code="ALREADY_OPEN",
            )

    def _require_open(self, table_name: str, operation: str) -> _OpenTable:
        open_table = self._open_tables.get(table_name)
        if open_table is None:
            raise JtabStoreError(
                f"Table '{table_name}' is not open.",
                operation=operation,
                code="NOT_OPEN",
            )
        return open_table


def _add_row(open_table: _OpenTable, row: dict[str, str]) -> None:
    """Add a row, enforcing key uniqueness for keyed tables."""
    key_fields = open_table.manifest.key_fields
    if key_fields:
        key = tuple(row[name] for name in key_fields)
        if key in open_table.keys:
            raise JtabStoreError(
                f"Duplicate key {dict(zip(key_fields, key))} in table "
                f"'{open_table.manifest.table_name}'.",
                operation="append",
                code="DUPLICATE_KEY",
            )
        open_table.keys.add(key)
    open_table.rows.append(row)


def _decode_value(value: bytes, encoding: str) -> str:
    try:
        return value.decode(encoding)
    except (UnicodeError, LookupError) as error:
        raise JtabStoreError(
            f"Value is not valid {encoding}: {error}.",
            operation="append",
            code="BAD_VALUE_ENCODING",
        ) from error


def _wrap_fields(fields: tuple[str, ...]) -> str:
    if not fields:
        return ""
    return f"({' '.join(fields)})"
