"""Derive the displayed columns from a query result."""

from __future__ import annotations

from ado_query_mailer.workitems.models import ColumnDescriptor


def extract_column_names(columns: list[ColumnDescriptor] | None) -> list[str]:
    """Return the reference names of *columns*, in query order.

    Columns without a reference name cannot be looked up in a work item's
    field map and are skipped.
    """
    if columns is None:
        return []
    return [col.reference_name for col in columns if col.reference_name]
