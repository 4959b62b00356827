"""Lance table persistence helpers.

This module writes and reads table rows as Apache Lance datasets.
Rows are written to a staging dataset first and swapped into place,
so a table's data only changes once a write has fully succeeded.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Any

from core.constants import LANCE_DIR_NAME
from core.errors import JtabDependencyError, JtabStoreError

_STAGING_SUFFIX = ".staging"


def write_table_rows(
    table_dir: Path,
    columns: tuple[str, ...],
    rows: list[dict[str, str]],
) -> None:
    """Persist all rows of a table, replacing the previous data.

    Args:
        table_dir: Table directory.
        columns: Ordered column names.
        rows: Rows keyed by column name.

    Raises:
        JtabStoreError: If the Lance write fails.
    """
    data_dir = table_dir / LANCE_DIR_NAME
    staging_dir = table_dir / f"{LANCE_DIR_NAME}{_STAGING_SUFFIX}"
    _remove_tree(staging_dir)
    if not rows:
        # Empty tables keep no dataset; readers treat a missing one as zero rows.
        _remove_tree(data_dir)
        return
    lance, pa = _import_lance()
    table = pa.table(
        {column: [row[column] for row in rows] for column in columns},
        schema=pa.schema([(column, pa.string()) for column in columns]),
    )
    try:
        lance.write_dataset(table, str(staging_dir), mode="create")
    except Exception as error:
        _remove_tree(staging_dir)
        raise JtabStoreError(
            f"Failed to write Lance dataset at {staging_dir}: {error}. "
            "Validate lance/pyarrow compatibility and retry the import.",
            operation="close",
            code="LANCE_WRITE_FAILED",
        ) from error
    _remove_tree(data_dir)
    staging_dir.rename(data_dir)


def read_table_rows(table_dir: Path, columns: tuple[str, ...]) -> list[dict[str, str]]:
    """Load all rows of a table in stored order.

    Args:
        table_dir: Table directory.
        columns: Ordered column names.

    Returns:
        Rows keyed by column name; empty when the table holds no dataset.

    Raises:
        JtabStoreError: If the Lance dataset cannot be read.
    """
    data_dir = table_dir / LANCE_DIR_NAME
    if not data_dir.exists():
        return []
    lance, _ = _import_lance()
    try:
        payload = lance.dataset(str(data_dir)).to_table(columns=list(columns)).to_pylist()
    except Exception as error:
        raise JtabStoreError(
            f"Failed to read Lance dataset at {data_dir}: {error}. "
            "Recreate the table with --replace --force.",
            operation="open",
            code="LANCE_READ_FAILED",
        ) from error
    return [{column: str(row[column]) for column in columns} for row in payload]


def _import_lance() -> tuple[Any, Any]:
    """Import lance and pyarrow.

    Raises:
        JtabDependencyError: If either package is missing.
    """
    try:
        import lance
        import pyarrow as pa
    except ImportError as error:
        raise JtabDependencyError(
            "Table storage requires pylance and pyarrow, but they are not installed. "
            "Install pylance and pyarrow to read or write tables.",
            operation="bind",
            code="MISSING_DEPENDENCY",
        ) from error
    return lance, pa


def _remove_tree(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
