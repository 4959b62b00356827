"""Python SDK for table operations.

This module exposes high-level APIs for importing documents and
inspecting the tables they produce.
"""

from __future__ import annotations

from core.config import JtabConfig
from core.errors import JtabConfigError
from core.types import ImportRequest, ImportResult, TableStructure
from ingest.encoding import normalize_target_encoding
from ingest.pipeline import run_import
from store.table_store import TableStore


class JtabClient:
    """Primary SDK entry point."""

    def __init__(self, config: JtabConfig | None = None) -> None:
        """Create SDK client.

        Args:
            config: Optional runtime configuration.
        """
        self._config = config or JtabConfig.from_env()

    @property
    def config(self) -> JtabConfig:
        return self._config

    def import_document(self, request: ImportRequest) -> ImportResult:
        """Import a JSON document into a table.

        Args:
            request: Import parameters.

        Returns:
            Completed import summary.

        Raises:
            JtabError: If any stage of the import fails.
        """
        return run_import(request, self._config)

    def table(self, store_location: str, table_name: str) -> "Table":
        """Get a table handle by library and name.

        Raises:
            JtabConfigError: If either identifier is empty.
        """
        if not store_location or not table_name:
            raise JtabConfigError(
                "Both a table library (--dsn) and a table name are required.",
                operation="resolve-identity",
                code="MISSING_IDENTITY",
            )
        library_path = self._config.resolve_store_location(store_location)
        encoding = normalize_target_encoding(self._config.target_encoding)
        return Table(table_name, TableStore(library_path, encoding))


class Table:
    """Read-side handle for one persisted table."""

    def __init__(self, table_name: str, store: TableStore) -> None:
        self._table_name = table_name
        self._store = store

    @property
    def name(self) -> str:
        return self._table_name

    def exists(self) -> bool:
        return self._store.table_exists(self._table_name)

    def describe(self) -> TableStructure:
        """Return the table's key/value layout and row count.

        Raises:
            JtabTableNotFoundError: If the table does not exist.
        """
        return self._store.describe(self._table_name)

    def read_rows(self) -> list[dict[str, str]]:
        """Return all rows in stored order.

        Raises:
            JtabTableNotFoundError: If the table does not exist.
        """
        return self._store.read_rows(self._table_name)
