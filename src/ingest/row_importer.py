"""Row import from the document data array.

This module walks the root ``data`` array, resolves every key field then
every value field of each row object, transcodes the values into the
store encoding, and appends one record per row.
"""

from __future__ import annotations

from core.constants import ROOT_DATA_FIELD, ROOT_HANDLE
from core.errors import JtabLookupError
from core.logging_config import get_logger
from core.types import ImportSchema, NodeType
from document.accessor import NOT_FOUND, NULL_VALUE, DocumentAccessor
from ingest.encoding import EncodingPipeline
from store.table_store import TableStore

_LOGGER = get_logger(__name__)


def locate_rows(accessor: DocumentAccessor, pipeline: EncodingPipeline) -> int:
    """Return the handle of the root data array.

    Raises:
        JtabLookupError: If the document has no data array.
    """
    data_handle = accessor.find_by_name(
        ROOT_HANDLE, pipeline.document_name(ROOT_DATA_FIELD), NodeType.ARRAY
    )
    if data_handle is NOT_FOUND:
        raise JtabLookupError(
            f"Required root array '{ROOT_DATA_FIELD}' not found in document.",
            operation="find-by-name",
            code="NOT_FOUND",
        )
    return data_handle


def build_record(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    schema: ImportSchema,
    row_handle: int,
    row_index: int,
) -> dict[str, bytes]:
    """Resolve one row object into a store-encoded record.

    Raises:
        JtabLookupError: If the row lacks a field or a field is neither
            a string nor a number.
    """
    record: dict[str, bytes] = {}
    for field_name in schema.key_fields + schema.value_fields:
        try:
            raw_value = accessor.find_by_name(
                row_handle, pipeline.document_name(field_name), NodeType.STRING
            )
        except JtabLookupError as error:
            raise JtabLookupError(
                f"Row {row_index}: field '{field_name}' is unusable: {error}",
                operation=error.operation,
                code=error.code,
            ) from error
        if raw_value is NOT_FOUND or raw_value is NULL_VALUE:
            raise JtabLookupError(
                f"Row {row_index} has no value for field '{field_name}'. "
                "Every row must carry every key and value field.",
                operation="find-by-name",
                code="NOT_FOUND",
            )
        record[field_name] = pipeline.to_store(raw_value)
    return record


def import_rows(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    schema: ImportSchema,
    store: TableStore,
    data_handle: int,
) -> int:
    """Append every row of the data array to the open table.

    Args:
        accessor: Accessor over the parsed document.
        pipeline: Encoding pipeline for the run.
        schema: Resolved import schema.
        store: Library holding the table open for write.
        data_handle: Handle of the root data array.

    Returns:
        Number of rows appended.

    Raises:
        JtabLookupError: If any row lacks a field.
        JtabStoreError: If any append fails.
    """
    row_count = accessor.array_length(data_handle)
    for row_index in range(row_count):
        row_handle = accessor.array_entry(data_handle, row_index)
        record = build_record(accessor, pipeline, schema, row_handle, row_index)
        store.append_row(schema.target.table_name, record)
    _LOGGER.info(
        "rows_imported",
        table_name=schema.target.table_name,
        row_count=row_count,
    )
    return row_count
