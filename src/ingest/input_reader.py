"""Input document reader.

This module reads the raw document bytes in one piece and enforces the
configured size limit before any parsing happens.
"""

from __future__ import annotations

from pathlib import Path

from core.config import JtabConfig
from core.errors import JtabIOError


def read_document_bytes(input_path: str, config: JtabConfig) -> bytes:
    """Read the whole input document.

    Args:
        input_path: Path of the JSON document.
        config: Runtime configuration holding the size limit.

    Returns:
        Raw document bytes.

    Raises:
        JtabIOError: If the path is missing, unreadable, or too large.
    """
    document_path = Path(input_path).expanduser()
    if not document_path.is_file():
        raise JtabIOError(
            f"Failed to read input at {document_path}: file does not exist. "
            "Provide an existing JSON document.",
            operation="read-input",
            code="NOT_FOUND",
        )
    try:
        size = document_path.stat().st_size
        if size > config.max_document_bytes:
            raise JtabIOError(
                f"Input at {document_path} is {size} bytes, above the "
                f"{config.max_document_bytes} byte limit. "
                "Split the document or raise JTAB_MAX_DOCUMENT_BYTES.",
                operation="read-input",
                code="TOO_LARGE",
            )
        return document_path.read_bytes()
    except OSError as error:
        raise JtabIOError(
            f"Failed to read input at {document_path}: {error}.",
            operation="read-input",
            code="READ_FAILED",
        ) from error
