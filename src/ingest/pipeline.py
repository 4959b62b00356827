"""Import orchestration for one document.

This module drives a single import run: read and parse the document,
resolve the import schema, reconcile against any existing table,
create the table, append rows, and close it. Every exit path discards
any table left open and releases the library binding.
"""

from __future__ import annotations

from core.config import JtabConfig
from core.errors import JtabError
from core.logging_config import get_logger
from core.types import (
    CreateMode,
    ImportRequest,
    ImportResult,
    ImportSchema,
    ReconciliationOutcome,
    RunContext,
)
from document.accessor import DocumentAccessor
from document.tree import parse_document
from ingest.encoding import EncodingPipeline, normalize_target_encoding
from ingest.input_reader import read_document_bytes
from ingest.metadata import extract_import_schema, summary_phrase
from ingest.reconcile import ensure_may_proceed, reconcile_schema
from ingest.row_importer import import_rows, locate_rows
from store.table_store import TableStore

_LOGGER = get_logger(__name__)


class ImportPipelineRunner:
    """Runner for one document-to-table import."""

    def __init__(self, request: ImportRequest, config: JtabConfig) -> None:
        self._request = request
        self._config = config

    def run(self) -> ImportResult:
        """Execute the import and return its summary."""
        raw_document = read_document_bytes(self._request.input_path, self._config)
        document = parse_document(raw_document)
        _LOGGER.info(
            "document_parsed",
            input_path=self._request.input_path,
            size_bytes=len(raw_document),
            encoding=document.encoding.value,
            node_count=len(document.nodes),
        )
        context = RunContext(
            request=self._request,
            document_encoding=document.encoding,
            target_encoding=normalize_target_encoding(
                self._request.target_encoding or self._config.target_encoding
            ),
        )
        accessor = DocumentAccessor(document)
        pipeline = EncodingPipeline(context.document_encoding, context.target_encoding)
        context.schema = extract_import_schema(accessor, pipeline, self._request)
        data_handle = locate_rows(accessor, pipeline)
        library_path = self._config.resolve_store_location(context.schema.target.store_location)
        store = TableStore(library_path, context.target_encoding)
        context.library_bound = True
        try:
            self._write_table(context, store, accessor, pipeline, data_handle)
        except JtabError as error:
            _log_import_aborted(context, error)
            raise
        finally:
            _release_store(context, store)
        return _build_result(context, str(library_path))

    def _write_table(
        self,
        context: RunContext,
        store: TableStore,
        accessor: DocumentAccessor,
        pipeline: EncodingPipeline,
        data_handle: int,
    ) -> None:
        schema = _require_schema(context)
        context.outcome = self._reconcile(store, schema)
        ensure_may_proceed(context.outcome, schema)
        create_mode = CreateMode.REPLACE if self._request.replace_requested else CreateMode.NEW_ONLY
        store.create_table(
            schema.target.table_name,
            schema.key_fields,
            schema.value_fields,
            create_mode,
        )
        context.table_open = True
        context.rows_imported = import_rows(accessor, pipeline, schema, store, data_handle)
        store.close_table(schema.target.table_name)
        context.table_open = False

    def _reconcile(self, store: TableStore, schema: ImportSchema) -> ReconciliationOutcome:
        if not self._request.replace_requested:
            return ReconciliationOutcome.NEW_TABLE
        return reconcile_schema(store, schema, self._request.force)


def run_import(request: ImportRequest, config: JtabConfig) -> ImportResult:
    """Import one JSON document into a table.

    Args:
        request: Import parameters.
        config: Runtime configuration.

    Returns:
        Completed import summary.

    Raises:
        JtabIOError: If the document cannot be read.
        JtabParseError: If the document is malformed.
        JtabConfigError: If the table identity cannot be resolved.
        JtabLookupError: If a required document field is missing.
        JtabReconcileError: If an existing table has a different shape.
        JtabStoreError: If a table operation fails.
    """
    runner = ImportPipelineRunner(request, config)
    return runner.run()


def format_summary(result: ImportResult) -> list[str]:
    """Render the human-readable completion report lines."""
    reported_count = result.row_count_hint or result.row_count
    return [
        f"table={result.target.table_name}",
        f"library={result.library_path}",
        f"outcome={result.outcome.value}",
        f"{reported_count} {summary_phrase(reported_count)}",
        f"keys={' '.join(result.key_fields) or '-'}",
        f"names={' '.join(result.value_fields)}",
    ]


def _require_schema(context: RunContext) -> ImportSchema:
    if context.schema is None:
        raise JtabError("Import schema was not resolved before writing.", operation="import")
    return context.schema


def _release_store(context: RunContext, store: TableStore) -> None:
    """Discard any open table, then release the library binding."""
    if context.table_open and context.schema is not None:
        store.close_table(context.schema.target.table_name, discard=True)
        context.table_open = False
    if context.library_bound:
        store.release()
        context.library_bound = False


def _build_result(context: RunContext, library_path: str) -> ImportResult:
    schema = _require_schema(context)
    if schema.row_count_hint and schema.row_count_hint != context.rows_imported:
        _LOGGER.warning(
            "row_count_hint_mismatch",
            row_count_hint=schema.row_count_hint,
            rows_imported=context.rows_imported,
        )
    result = ImportResult(
        target=schema.target,
        library_path=library_path,
        outcome=context.outcome or ReconciliationOutcome.NEW_TABLE,
        row_count=context.rows_imported,
        row_count_hint=schema.row_count_hint,
        key_fields=schema.key_fields,
        value_fields=schema.value_fields,
    )
    _LOGGER.info(
        "import_completed",
        table_name=schema.target.table_name,
        library=library_path,
        outcome=result.outcome.value,
        row_count=result.row_count,
    )
    return result


def _log_import_aborted(context: RunContext, error: JtabError) -> None:
    _LOGGER.error(
        "import_aborted",
        input_path=context.request.input_path,
        table_name=context.schema.target.table_name if context.schema else None,
        outcome=context.outcome.value if context.outcome else None,
        rows_imported=context.rows_imported,
        operation=error.operation,
        code=error.code,
        error=str(error),
    )
