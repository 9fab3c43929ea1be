"""Order flat query results by the query's sort column."""

from __future__ import annotations

import functools
import locale
import logging

from ado_query_mailer.workitems.models import (
    FieldValue,
    Named,
    Number,
    Scalar,
    SortColumn,
    WorkItemRecord,
)

logger = logging.getLogger(__name__)


def compare_field_values(a: FieldValue | None, b: FieldValue | None) -> int:
    """Three-way comparison of two field values.

    Absent values sort after present ones.  Text and display names use
    the current locale's collation, numbers compare numerically, and
    mixed types fall back to comparing their text forms.
    """
    if a is None and b is None:
        return 0
    if a is None:
        return 1
    if b is None:
        return -1

    if isinstance(a, Scalar) and isinstance(b, Scalar):
        return locale.strcoll(a.text, b.text)
    if isinstance(a, Number) and isinstance(b, Number):
        diff = a.value - b.value
        return (diff > 0) - (diff < 0)
    if isinstance(a, Named) and isinstance(b, Named):
        return locale.strcoll(a.display_name, b.display_name)

    # Mixed types: no tie, so equal-looking values keep no particular order.
    return 1 if str(a) > str(b) else -1


def sort_work_items(
    sort_column: SortColumn | None,
    work_items: list[WorkItemRecord],
) -> list[WorkItemRecord]:
    """Return *work_items* ordered by *sort_column*.

    Without a sort column the items are returned in their current order.
    A descending column is applied by sorting ascending and then
    reversing the whole list, which also moves absent values first.
    """
    if sort_column is None:
        return list(work_items)

    reference_name = sort_column.reference_name
    logger.debug(
        "Ordering by %s %s",
        reference_name,
        "descending" if sort_column.descending else "ascending",
    )

    def _compare(a: WorkItemRecord, b: WorkItemRecord) -> int:
        return compare_field_values(a.get(reference_name), b.get(reference_name))

    ordered = sorted(work_items, key=functools.cmp_to_key(_compare))
    if sort_column.descending:
        ordered.reverse()
    return ordered
