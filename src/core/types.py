"""Shared typed models.

This module defines the data models used by the document, ingest,
store, and CLI layers to keep interfaces explicit and stable.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.constants import LEGACY_CODEC, UNICODE_CODEC


class NodeType(str, Enum):
    """Discoverable type of a document tree node."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"

    @property
    def is_composite(self) -> bool:
        return self in (NodeType.ARRAY, NodeType.OBJECT)


class DocumentEncoding(str, Enum):
    """Declared encoding of a parsed document."""

    LEGACY = "legacy"
    UNICODE = "unicode"

    @property
    def codec(self) -> str:
        """Python codec name used for this encoding."""
        return LEGACY_CODEC if self is DocumentEncoding.LEGACY else UNICODE_CODEC


class ReconciliationOutcome(str, Enum):
    """Decision produced before any destructive store operation."""

    NEW_TABLE = "new_table"
    REPLACE_SAME_SHAPE = "replace_same_shape"
    REPLACE_FORCED = "replace_forced"
    REJECT_MISMATCH = "reject_mismatch"

    @property
    def may_proceed(self) -> bool:
        return self is not ReconciliationOutcome.REJECT_MISMATCH


class CreateMode(str, Enum):
    """Table creation mode."""

    NEW_ONLY = "new_only"
    REPLACE = "replace"


class OpenMode(str, Enum):
    """Table open mode."""

    READ = "read"
    WRITE = "write"


@dataclass(frozen=True)
class TableIdentity:
    """Resolved output table identity.

    Attributes:
        store_location: Table library name or path.
        table_name: Table name inside the library.
    """

    store_location: str
    table_name: str


@dataclass(frozen=True)
class ImportRequest:
    """Caller-supplied import parameters.

    Attributes:
        input_path: Path of the JSON document to import.
        store_location: Optional table library; document ``dsn`` when omitted.
        table_name: Optional table name; document ``table`` when omitted.
        target_encoding: Optional explicit store encoding.
        replace: Replace an existing table with the same shape.
        force: Replace an existing table even when its shape differs.
    """

    input_path: str
    store_location: str | None = None
    table_name: str | None = None
    target_encoding: str | None = None
    replace: bool = False
    force: bool = False

    @property
    def replace_requested(self) -> bool:
        """Whether the run enters schema reconciliation.

        ``force`` implies ``replace``.
        """
        return self.replace or self.force


@dataclass(frozen=True)
class ImportSchema:
    """Schema metadata extracted from the document root.

    Attributes:
        target: Resolved table identity.
        row_count_hint: Advisory row count from the document, 0 when absent.
        key_fields: Ordered key field names.
        value_fields: Ordered non-key field names.
    """

    target: TableIdentity
    row_count_hint: int
    key_fields: tuple[str, ...]
    value_fields: tuple[str, ...]

    @property
    def key_spec(self) -> str:
        return " ".join(self.key_fields)

    @property
    def value_spec(self) -> str:
        return " ".join(self.value_fields)


@dataclass(frozen=True)
class TableStructure:
    """Field layout reported by the store for an existing table.

    Attributes:
        key_spec: Parenthesised, space-separated key field names.
        value_spec: Parenthesised, space-separated value field names.
        row_count: Number of rows currently stored.
        encoding: Codec the table's values were written in.
    """

    key_spec: str
    value_spec: str
    row_count: int
    encoding: str


@dataclass
class RunContext:
    """Mutable state for one import run.

    Attributes:
        request: Caller-supplied parameters.
        document_encoding: Declared encoding of the parsed document.
        target_encoding: Normalized explicit store encoding, None for default.
        schema: Extracted import schema, set after metadata extraction.
        outcome: Reconciliation outcome, set before any table is written.
        table_open: Whether a table is currently open for write.
        library_bound: Whether store library bindings are allocated.
        rows_imported: Number of rows appended so far.
    """

    request: ImportRequest
    document_encoding: DocumentEncoding
    target_encoding: str | None = None
    schema: ImportSchema | None = None
    outcome: ReconciliationOutcome | None = None
    table_open: bool = False
    library_bound: bool = False
    rows_imported: int = 0


@dataclass(frozen=True)
class ImportResult:
    """Completed import summary.

    Attributes:
        target: Table identity written.
        library_path: Resolved table library directory.
        outcome: Reconciliation outcome used for the run.
        row_count: Observed number of rows imported.
        row_count_hint: Advisory row count from the document, 0 when absent.
        key_fields: Final key field list.
        value_fields: Final value field list.
    """

    target: TableIdentity
    library_path: str
    outcome: ReconciliationOutcome
    row_count: int
    row_count_hint: int
    key_fields: tuple[str, ...]
    value_fields: tuple[str, ...]
