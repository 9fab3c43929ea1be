"""Render work items as an HTML table.

Two layouts are supported:

- flat -- one row per work item, in the order given;
- tree -- one row per thread parent, each followed by indented rows for
  its children.

Both layouts share the ``work_item_table.html`` Jinja2 template.
"""

from __future__ import annotations

import functools
import logging
import pathlib
from dataclasses import dataclass

from jinja2 import Environment, FileSystemLoader
from markupsafe import Markup

from ado_query_mailer.errors import WorkItemLookupError
from ado_query_mailer.reporting.fields import render_field
from ado_query_mailer.reporting.threads import Thread
from ado_query_mailer.workitems.models import WorkItemRecord

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = pathlib.Path(__file__).parent / "templates"

INDENT_MARKER = Markup("&nbsp;" * 4)


@dataclass(frozen=True)
class TableRow:
    cells: list[str]
    indent: bool = False


@functools.lru_cache(maxsize=None)
def get_environment() -> Environment:
    """Return the shared Jinja2 environment for the report templates."""
    return Environment(
        loader=FileSystemLoader(str(_TEMPLATE_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def build_row(
    work_item: WorkItemRecord,
    column_names: list[str],
    org_url: str,
    project_id: str,
    indent: bool = False,
) -> TableRow:
    cells = [
        render_field(work_item, name, org_url, project_id)
        for name in column_names
    ]
    return TableRow(cells=cells, indent=indent)


def build_tree_rows(
    threads: list[Thread],
    records_by_id: dict[int, WorkItemRecord],
    column_names: list[str],
    org_url: str,
    project_id: str,
) -> list[TableRow]:
    """Return the parent and indented child rows of every thread.

    Raises:
        WorkItemLookupError: If a thread references an id that is not in
            *records_by_id*.
    """

    def _lookup(work_item_id: int) -> WorkItemRecord:
        try:
            return records_by_id[work_item_id]
        except KeyError:
            raise WorkItemLookupError(work_item_id) from None

    rows: list[TableRow] = []
    for thread in threads:
        rows.append(
            build_row(_lookup(thread.parent_id), column_names, org_url, project_id)
        )
        for child_id in thread.child_ids:
            rows.append(
                build_row(
                    _lookup(child_id),
                    column_names,
                    org_url,
                    project_id,
                    indent=True,
                )
            )
    return rows


def render_table(column_names: list[str], rows: list[TableRow]) -> str:
    """Render a header row of *column_names* followed by *rows*."""
    template = get_environment().get_template("work_item_table.html")
    return template.render(
        header=column_names,
        rows=rows,
        indent_marker=INDENT_MARKER,
    )


def render_flat_table(
    column_names: list[str],
    work_items: list[WorkItemRecord],
    org_url: str,
    project_id: str,
) -> str:
    """Render already sorted and filtered *work_items*, one row each."""
    rows = [
        build_row(item, column_names, org_url, project_id) for item in work_items
    ]
    return render_table(column_names, rows)


def render_tree_table(
    column_names: list[str],
    threads: list[Thread],
    records_by_id: dict[int, WorkItemRecord],
    org_url: str,
    project_id: str,
) -> str:
    """Render *threads* with each parent followed by its indented children."""
    rows = build_tree_rows(threads, records_by_id, column_names, org_url, project_id)
    return render_table(column_names, rows)
