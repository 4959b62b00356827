"""Core constants used across Jtab modules.

This module centralizes well-known document field names, store layout
names, codec names, and exit statuses.
Keeping values here avoids magic literals in business logic.
"""

from __future__ import annotations

from pathlib import Path

DEFAULT_DATA_ROOT = Path(".jtab")
DEFAULT_MAX_DOCUMENT_BYTES = 9_999_999
TABLE_MANIFEST_FILE_NAME = "table.json"
LANCE_DIR_NAME = "data.lance"
TABLE_DIR_SUFFIX = ".table"

ROOT_TABLE_FIELD = "table"
ROOT_STORE_LOCATION_FIELD = "dsn"
ROOT_ROW_COUNT_FIELD = "num_rows"
ROOT_KEY_FIELDS_FIELD = "keys"
ROOT_VALUE_FIELDS_FIELD = "names"
ROOT_DATA_FIELD = "data"

ROOT_HANDLE = 0
LEGACY_CODEC = "cp037"
UNICODE_CODEC = "utf-8"
WORKING_CODEC = LEGACY_CODEC
LEGACY_CODEC_ALIASES = frozenset(
    {"cp037", "cp-037", "ibm037", "ibm-037", "037", "ebcdic-cp-us", "default"}
)
RECORD_TERMINATOR = "\n"

SINGLE_ROW_PHRASE = "row has been processed"
MULTI_ROW_PHRASE = "rows have been processed"

EXIT_SUCCESS = 0
EXIT_MISSING_INPUT = 1
EXIT_CONFIG_ERROR = 3
EXIT_IO_ERROR = 4
EXIT_PARSE_ERROR = 5
EXIT_LOOKUP_ERROR = 6
EXIT_ENCODING_ERROR = 7
EXIT_RECONCILE_ERROR = 8
EXIT_STORE_ERROR = 9
EXIT_DEPENDENCY_ERROR = 10
