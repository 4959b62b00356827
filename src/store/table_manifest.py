"""Table manifest persistence helpers.

This module isolates the JSON manifest IO that records a table's field
layout, value encoding, and row count. The manifest's presence is what
makes a table exist inside its library.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

from core.constants import TABLE_MANIFEST_FILE_NAME
from core.errors import JtabStoreError


@dataclass(frozen=True)
class TableManifest:
    """Persisted table metadata.

    Attributes:
        table_name: Table identifier inside the library.
        key_fields: Ordered key field names.
        value_fields: Ordered value field names.
        encoding: Codec the appended values were encoded in.
        row_count: Number of persisted rows.
        updated_at: UTC timestamp of the last close.
    """

    table_name: str
    key_fields: tuple[str, ...]
    value_fields: tuple[str, ...]
    encoding: str
    row_count: int
    updated_at: datetime

    @property
    def columns(self) -> tuple[str, ...]:
        return self.key_fields + self.value_fields


def write_manifest_file(table_dir: Path, manifest: TableManifest) -> None:
    """Write the table manifest, replacing any previous one in one step.

    Args:
        table_dir: Table directory.
        manifest: Manifest payload.

    Raises:
        JtabStoreError: If the manifest cannot be written.
    """
    manifest_dict = asdict(manifest)
    manifest_dict["key_fields"] = list(manifest.key_fields)
    manifest_dict["value_fields"] = list(manifest.value_fields)
    manifest_dict["updated_at"] = manifest.updated_at.isoformat()
    manifest_path = table_dir / TABLE_MANIFEST_FILE_NAME
    staging_path = manifest_path.with_suffix(".tmp")
    try:
        staging_path.write_text(json.dumps(manifest_dict, indent=2) + "\n", encoding="utf-8")
        staging_path.replace(manifest_path)
    except OSError as error:
        raise JtabStoreError(
            f"Failed to write table manifest at {manifest_path}: {error}. "
            "Check write permissions and available disk space.",
            operation="close",
            code="MANIFEST_WRITE_FAILED",
        ) from error


def read_manifest_file(table_dir: Path) -> TableManifest:
    """Read and validate a table manifest.

    Args:
        table_dir: Table directory.

    Returns:
        Parsed manifest.

    Raises:
        JtabStoreError: If the manifest is unreadable or invalid.
    """
    manifest_path = table_dir / TABLE_MANIFEST_FILE_NAME
    try:
        payload = json.loads(manifest_path.read_text(encoding="utf-8"))
    except OSError as error:
        raise JtabStoreError(
            f"Failed to read table manifest at {manifest_path}: {error}.",
            operation="open",
            code="MANIFEST_READ_FAILED",
        ) from error
    except json.JSONDecodeError as error:
        raise JtabStoreError(
            f"Failed to parse table manifest at {manifest_path}: {error.msg}. "
            "Recreate the table with --replace --force.",
            operation="open",
            code="MANIFEST_CORRUPT",
        ) from error
    if not isinstance(payload, dict):
        raise JtabStoreError(
            f"Failed to parse table manifest at {manifest_path}: "
            "expected JSON object at top level.",
            operation="open",
            code="MANIFEST_CORRUPT",
        )
    return manifest_from_dict(payload)


def manifest_from_dict(payload: dict[str, Any]) -> TableManifest:
    """Deserialize a manifest payload from a dictionary.

    Raises:
        JtabStoreError: If required keys are missing.
    """
    try:
        return TableManifest(
            table_name=str(payload["table_name"]),
            key_fields=tuple(str(name) for name in payload["key_fields"]),
            value_fields=tuple(str(name) for name in payload["value_fields"]),
            encoding=str(payload["encoding"]),
            row_count=int(payload["row_count"]),
            updated_at=datetime.fromisoformat(str(payload["updated_at"])),
        )
    except (KeyError, TypeError, ValueError) as error:
        raise JtabStoreError(
            f"Invalid table manifest payload: {error}.",
            operation="open",
            code="MANIFEST_CORRUPT",
        ) from error
