"""Schema reconciliation against an existing table.

This module decides whether a replace-style import may overwrite a
table of the same name. Field lists are compared as word-sorted sets,
so order differences never block a replace; only different names do.
"""

from __future__ import annotations

from core.errors import JtabReconcileError, JtabTableNotFoundError
from core.logging_config import get_logger
from core.types import ImportSchema, OpenMode, ReconciliationOutcome
from store.table_store import TableStore

_LOGGER = get_logger(__name__)


def reconcile_schema(
    store: TableStore,
    schema: ImportSchema,
    force: bool,
) -> ReconciliationOutcome:
    """Compare the import schema with an existing table of the same name.

    Args:
        store: Bound table library.
        schema: Schema of the new import.
        force: Allow replacing a table whose fields differ.

    Returns:
        ``NEW_TABLE`` when no table exists, ``REPLACE_SAME_SHAPE`` when the
        field sets match, otherwise ``REPLACE_FORCED`` or
        ``REJECT_MISMATCH`` depending on ``force``.

    Raises:
        JtabStoreError: If the probe open fails for a reason other than
            the table not existing, or the query fails.
    """
    table_name = schema.target.table_name
    try:
        store.open_table(table_name, OpenMode.READ)
    except JtabTableNotFoundError:
        _log_outcome(schema, ReconciliationOutcome.NEW_TABLE)
        return ReconciliationOutcome.NEW_TABLE
    try:
        structure = store.query_table(table_name)
    finally:
        store.close_table(table_name)
    keys_match = sort_words(schema.key_spec) == sort_words(strip_wrapping(structure.key_spec))
    values_match = sort_words(schema.value_spec) == sort_words(
        strip_wrapping(structure.value_spec)
    )
    if keys_match and values_match:
        outcome = ReconciliationOutcome.REPLACE_SAME_SHAPE
    elif force:
        outcome = ReconciliationOutcome.REPLACE_FORCED
    else:
        outcome = ReconciliationOutcome.REJECT_MISMATCH
    _log_outcome(
        schema,
        outcome,
        existing_keys=structure.key_spec,
        existing_values=structure.value_spec,
    )
    return outcome


def ensure_may_proceed(outcome: ReconciliationOutcome, schema: ImportSchema) -> None:
    """Stop the run when reconciliation rejected the import.

    Raises:
        JtabReconcileError: If ``outcome`` is ``REJECT_MISMATCH``.
    """
    if outcome.may_proceed:
        return
    raise JtabReconcileError(
        f"Table '{schema.target.table_name}' in '{schema.target.store_location}' "
        "exists with different key or value fields than the import "
        f"(keys: {schema.key_spec or '-'}; names: {schema.value_spec}). "
        "The table was left unchanged. Rerun with --force to replace it anyway.",
        operation="reconcile",
        code="SCHEMA_MISMATCH",
    )


def strip_wrapping(spec: str) -> str:
    """Remove the parentheses the store puts around field lists."""
    return spec.strip().removeprefix("(").removesuffix(")").strip()


def sort_words(spec: str) -> tuple[str, ...]:
    """Split a space-separated field list and sort it ascending."""
    return tuple(sorted(spec.split()))


def _log_outcome(schema: ImportSchema, outcome: ReconciliationOutcome, **fields: object) -> None:
    _LOGGER.info(
        "schema_reconciled",
        table_name=schema.target.table_name,
        outcome=outcome.value,
        key_fields=schema.key_spec,
        value_fields=schema.value_spec,
        **fields,
    )
