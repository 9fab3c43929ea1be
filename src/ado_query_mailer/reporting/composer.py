"""Compose the HTML report for a saved work item query.

Runs the saved query, decides between the flat and the tree layout
from the result type, fetches the referenced work items in batches and
renders the ``query_report.html`` template: a link to the query
followed by the results table.
"""

from __future__ import annotations

import logging

from markupsafe import Markup

from ado_query_mailer.config import ReportConfig
from ado_query_mailer.reporting.columns import extract_column_names
from ado_query_mailer.reporting.fields import query_url
from ado_query_mailer.reporting.sorting import sort_work_items
from ado_query_mailer.reporting.tables import (
    get_environment,
    render_flat_table,
    render_tree_table,
)
from ado_query_mailer.reporting.threads import Thread, build_threads, thread_ids
from ado_query_mailer.workitems.base import BaseWorkItemService
from ado_query_mailer.workitems.batching import chunk_ids
from ado_query_mailer.workitems.models import (
    QueryResult,
    ResultShape,
    WorkItemRecord,
)

logger = logging.getLogger(__name__)


def fetch_work_items(
    service: BaseWorkItemService,
    column_names: list[str],
    ids: list[int],
) -> list[WorkItemRecord]:
    """Fetch *ids* chunk by chunk and drop records without fields.

    The returned records are in arrival order, which need not match the
    order of *ids*.
    """
    pending = list(ids)
    records: list[WorkItemRecord] = []
    for chunk in chunk_ids(pending):
        records.extend(service.fetch_items_batch(column_names, chunk))

    usable = [record for record in records if record.fields is not None]
    if len(usable) != len(records):
        logger.warning(
            "Dropped %d work items returned without fields",
            len(records) - len(usable),
        )
    return usable


def _fetch_fields(column_names: list[str], result: QueryResult) -> list[str]:
    """Fields to request: the displayed columns plus the sort column."""
    sort_column = result.sort_column
    if (
        not column_names
        or sort_column is None
        or sort_column.reference_name in column_names
    ):
        return column_names
    return column_names + [sort_column.reference_name]


def _flat_table(
    config: ReportConfig,
    service: BaseWorkItemService,
    result: QueryResult,
    column_names: list[str],
    ids: list[int],
) -> tuple[str, int]:
    work_items = fetch_work_items(service, _fetch_fields(column_names, result), ids)
    work_items = sort_work_items(result.sort_column, work_items)
    table = render_flat_table(
        column_names, work_items, config.org_url, config.project_id
    )
    return table, len(work_items)


def _tree_table(
    config: ReportConfig,
    service: BaseWorkItemService,
    threads: list[Thread],
    column_names: list[str],
    ids: list[int],
) -> tuple[str, int]:
    work_items = fetch_work_items(service, column_names, ids)
    records_by_id = {record.id: record for record in work_items}
    table = render_tree_table(
        column_names, threads, records_by_id, config.org_url, config.project_id
    )
    row_count = sum(1 + len(thread.child_ids) for thread in threads)
    return table, row_count


def compose_query_report(
    config: ReportConfig,
    service: BaseWorkItemService,
) -> dict | None:
    """Build the HTML report for ``config.query_id``.

    Args:
        config: Query, organization and empty-result policy.
        service: Work item service used for every remote call.

    Returns:
        ``None`` when the query matched nothing and
        ``config.send_on_empty`` is not true.  Otherwise a dict with keys:
            - ``html_body`` (str): The rendered HTML report.
            - ``shape`` (str): ``"flat"`` or ``"tree"``.
            - ``row_count`` (int): Number of data rows in the table.
            - ``query_path`` (str): Display path of the saved query.

    Raises:
        ConfigurationError: If the query's result type is unsupported.
        LinkStructureError: If a linked result cannot be grouped.
        WorkItemLookupError: If a linked item was not fetched.
        TransportError: If a call to the service fails.
    """
    result = service.fetch_query_result(config.query_id)
    shape = ResultShape.from_result_type(result.result_type)
    column_names = extract_column_names(result.columns)

    threads: list[Thread] = []
    if shape is ResultShape.FLAT_ITEMS:
        ids = list(result.work_item_ids)
    else:
        threads = build_threads(result.relations)
        ids = thread_ids(threads)

    if not ids and not config.send_on_empty:
        logger.info("Empty query. Not sending e-mail.")
        return None

    metadata = service.fetch_query_metadata(config.project_id, config.query_id)

    if shape is ResultShape.FLAT_ITEMS:
        table, row_count = _flat_table(config, service, result, column_names, ids)
    else:
        table, row_count = _tree_table(config, service, threads, column_names, ids)

    template = get_environment().get_template("query_report.html")
    html_body = template.render(
        query_url=query_url(config.org_url, config.project_id, config.query_id),
        query_path=metadata.display_path,
        table=Markup(table),
    )

    layout = "flat" if shape is ResultShape.FLAT_ITEMS else "tree"
    logger.info(
        "Composed %s report for query %s with %d rows",
        layout,
        metadata.display_path,
        row_count,
    )
    logger.debug("HTML: %s", html_body)

    return {
        "html_body": html_body,
        "shape": layout,
        "row_count": row_count,
        "query_path": metadata.display_path,
    }
