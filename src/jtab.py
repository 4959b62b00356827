"""Public SDK surface for Jtab.

This module provides a stable import path for library users.
It re-exports the primary client and typed request/result models.
"""

from __future__ import annotations

from core.config import JtabConfig
from core.errors import (
    JtabConfigError,
    JtabError,
    JtabLookupError,
    JtabReconcileError,
    JtabStoreError,
)
from core.types import ImportRequest, ImportResult, ReconciliationOutcome, TableStructure
from ingest.pipeline import format_summary, run_import
from store.table_sdk import JtabClient, Table

__all__ = [
    "ImportRequest",
    "ImportResult",
    "JtabClient",
    "JtabConfig",
    "JtabConfigError",
    "JtabError",
    "JtabLookupError",
    "JtabReconcileError",
    "JtabStoreError",
    "ReconciliationOutcome",
    "Table",
    "TableStructure",
    "format_summary",
    "run_import",
]
