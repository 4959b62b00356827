"""Runtime configuration model for Jtab.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os
from pathlib import Path

from core.constants import DEFAULT_DATA_ROOT, DEFAULT_MAX_DOCUMENT_BYTES
from core.errors import JtabConfigError


@dataclass(frozen=True)
class JtabConfig:
    """Validated runtime configuration.

    Attributes:
        data_root: Local root directory that relative store locations resolve under.
        target_encoding: Optional default store encoding when no CLI value is given.
        max_document_bytes: Largest input document accepted, in bytes.
    """

    data_root: Path
    target_encoding: str | None
    max_document_bytes: int

    @classmethod
    def from_env(cls) -> "JtabConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            JtabConfigError: If environment values are invalid.
        """
        data_root_value = os.getenv("JTAB_DATA_ROOT", str(DEFAULT_DATA_ROOT))
        target_encoding = os.getenv("JTAB_TARGET_ENCODING") or None
        max_bytes_value = os.getenv("JTAB_MAX_DOCUMENT_BYTES", str(DEFAULT_MAX_DOCUMENT_BYTES))
        return cls(
            data_root=Path(data_root_value).expanduser().resolve(),
            target_encoding=target_encoding,
            max_document_bytes=_parse_max_document_bytes(max_bytes_value),
        )

    def resolve_store_location(self, store_location: str) -> Path:
        """Resolve a store location into a table library directory.

        Args:
            store_location: Absolute path, or a name relative to the data root.

        Returns:
            Absolute library directory path.
        """
        location_path = Path(store_location).expanduser()
        if location_path.is_absolute():
            return location_path
        return self.data_root / location_path


def _parse_max_document_bytes(raw_value: str) -> int:
    """Parse the maximum document size environment value.

    Args:
        raw_value: Raw string from environment.

    Returns:
        Parsed positive integer.

    Raises:
        JtabConfigError: If value is not a positive integer.
    """
    try:
        parsed_value = int(raw_value)
    except ValueError as error:
        raise JtabConfigError(
            "Invalid JTAB_MAX_DOCUMENT_BYTES value: "
            f"expected integer, got '{raw_value}'. "
            "Set JTAB_MAX_DOCUMENT_BYTES to a numeric value."
        ) from error
    if parsed_value <= 0:
        raise JtabConfigError(
            "Invalid JTAB_MAX_DOCUMENT_BYTES value: "
            f"expected a positive integer, got {parsed_value}."
        )
    return parsed_value
