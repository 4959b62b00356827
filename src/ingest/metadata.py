"""Import schema extraction from the document root.

This module resolves the target table identity, the advisory row count,
and the key and value field lists from well-known root members.
Root member names are transcoded into the document encoding before
lookup, and every extracted name is transcoded into the working encoding.
"""

from __future__ import annotations

from core.constants import (
    MULTI_ROW_PHRASE,
    ROOT_HANDLE,
    ROOT_KEY_FIELDS_FIELD,
    ROOT_ROW_COUNT_FIELD,
    ROOT_STORE_LOCATION_FIELD,
    ROOT_TABLE_FIELD,
    ROOT_VALUE_FIELDS_FIELD,
    SINGLE_ROW_PHRASE,
)
from core.errors import JtabConfigError, JtabLookupError
from core.logging_config import get_logger
from core.types import ImportRequest, ImportSchema, NodeType, TableIdentity
from document.accessor import NOT_FOUND, NULL_VALUE, DocumentAccessor
from ingest.encoding import EncodingPipeline

_LOGGER = get_logger(__name__)


def extract_import_schema(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    request: ImportRequest,
) -> ImportSchema:
    """Extract the import schema from the document root.

    Args:
        accessor: Accessor over the parsed document.
        pipeline: Encoding pipeline for the run.
        request: Caller-supplied parameters.

    Returns:
        Resolved import schema.

    Raises:
        JtabConfigError: If no store location or table name can be resolved.
        JtabLookupError: If the key or value field arrays are missing,
            the value field array is empty, or the field names are invalid.
    """
    target = TableIdentity(
        store_location=_resolve_store_location(accessor, pipeline, request),
        table_name=_resolve_table_name(accessor, pipeline, request),
    )
    key_fields = read_field_names(accessor, pipeline, ROOT_KEY_FIELDS_FIELD)
    value_fields = read_field_names(accessor, pipeline, ROOT_VALUE_FIELDS_FIELD)
    if not value_fields:
        raise JtabLookupError(
            f"Root array '{ROOT_VALUE_FIELDS_FIELD}' is empty: "
            "a table needs at least one non-key field.",
            operation="extract-metadata",
            code="EMPTY_VALUE_FIELDS",
        )
    _validate_field_names(key_fields, value_fields)
    schema = ImportSchema(
        target=target,
        row_count_hint=read_row_count_hint(accessor, pipeline),
        key_fields=key_fields,
        value_fields=value_fields,
    )
    _LOGGER.info(
        "import_schema_resolved",
        store_location=target.store_location,
        table_name=target.table_name,
        row_count_hint=schema.row_count_hint,
        key_fields=list(key_fields),
        value_fields=list(value_fields),
    )
    return schema


def read_field_names(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    array_name: str,
) -> tuple[str, ...]:
    """Read a root array of field names.

    The array must exist but may be empty.

    Raises:
        JtabLookupError: If the array is missing or an entry is not a string.
    """
    array_handle = accessor.find_by_name(
        ROOT_HANDLE, pipeline.document_name(array_name), NodeType.ARRAY
    )
    if array_handle is NOT_FOUND:
        raise JtabLookupError(
            f"Required root array '{array_name}' not found in document.",
            operation="find-by-name",
            code="NOT_FOUND",
        )
    names: list[str] = []
    for index in range(accessor.array_length(array_handle)):
        entry_handle = accessor.array_entry(array_handle, index)
        raw_name = accessor.value_of(entry_handle, NodeType.STRING)
        if raw_name is NULL_VALUE:
            raise JtabLookupError(
                f"Entry {index} of root array '{array_name}' is null.",
                operation="get-value",
                code="NULL_FIELD_NAME",
            )
        names.append(pipeline.working_text(pipeline.to_working(raw_name)))
    return tuple(names)


def read_row_count_hint(accessor: DocumentAccessor, pipeline: EncodingPipeline) -> int:
    """Read the optional advisory row count; 0 when absent or unusable."""
    field_name = pipeline.document_name(ROOT_ROW_COUNT_FIELD)
    try:
        raw_count = accessor.find_by_name(ROOT_HANDLE, field_name, NodeType.NUMBER)
    except JtabLookupError as error:
        _LOGGER.warning("row_count_hint_ignored", reason=str(error))
        return 0
    if raw_count is NOT_FOUND or raw_count is NULL_VALUE:
        return 0
    text = pipeline.working_text(pipeline.to_working(raw_count)).strip()
    try:
        return max(int(text), 0)
    except ValueError:
        _LOGGER.warning("row_count_hint_ignored", raw_value=text)
        return 0


def summary_phrase(row_count: int) -> str:
    """Return the completion phrase for a row count."""
    return SINGLE_ROW_PHRASE if row_count == 1 else MULTI_ROW_PHRASE


def _resolve_store_location(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    request: ImportRequest,
) -> str:
    if request.store_location:
        return request.store_location
    raw_value = _read_root_text(accessor, pipeline, ROOT_STORE_LOCATION_FIELD)
    location = pipeline.working_text(pipeline.to_working(raw_value)).strip()
    if not location:
        raise JtabConfigError(
            "No table library given: pass --dsn or set the document's "
            f"'{ROOT_STORE_LOCATION_FIELD}' field.",
            operation="resolve-identity",
            code="MISSING_STORE_LOCATION",
        )
    return location


def _resolve_table_name(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    request: ImportRequest,
) -> str:
    if request.table_name:
        return request.table_name
    raw_value = _read_root_text(accessor, pipeline, ROOT_TABLE_FIELD)
    table_name = pipeline.store_text(pipeline.to_store(raw_value)).strip()
    if not table_name:
        raise JtabConfigError(
            "No table name given: pass --table or set the document's "
            f"'{ROOT_TABLE_FIELD}' field.",
            operation="resolve-identity",
            code="MISSING_TABLE_NAME",
        )
    return table_name


def _read_root_text(
    accessor: DocumentAccessor,
    pipeline: EncodingPipeline,
    field_name: str,
) -> bytes:
    """Read an optional root string member; absent or null yields empty bytes."""
    raw_value = accessor.find_by_name(
        ROOT_HANDLE, pipeline.document_name(field_name), NodeType.STRING
    )
    if raw_value is NOT_FOUND or raw_value is NULL_VALUE:
        return b""
    return raw_value


def _validate_field_names(key_fields: tuple[str, ...], value_fields: tuple[str, ...]) -> None:
    """Check field names are non-blank, unique, and disjoint."""
    seen: set[str] = set()
    for name in key_fields + value_fields:
        if not name.strip() or any(character.isspace() for character in name):
            raise JtabLookupError(
                f"Invalid field name '{name}': names must be non-empty without whitespace.",
                operation="extract-metadata",
                code="BAD_FIELD_NAME",
            )
        if name in seen:
            overlaps = name in key_fields and name in value_fields
            where = "in both keys and names" if overlaps else "more than once"
            raise JtabLookupError(
                f"Field name '{name}' appears {where}.",
                operation="extract-metadata",
                code="DUPLICATE_FIELD_NAME",
            )
        seen.add(name)
