"""Resolve the display string of a single work item field."""

from __future__ import annotations

import logging

from markupsafe import Markup

from ado_query_mailer.workitems.models import ID_FIELD, WorkItemRecord

logger = logging.getLogger(__name__)


def work_item_url(org_url: str, project_id: str, work_item_id: object) -> str:
    """Return the web URL of a work item.

    Trailing slashes on *org_url* are ignored, so both
    ``https://dev.azure.com/org`` and ``https://dev.azure.com/org/``
    give the same link.
    """
    return f"{org_url.rstrip('/')}/{project_id}/_workItems/edit/{work_item_id}"


def query_url(org_url: str, project_id: str, query_id: str) -> str:
    """Return the web URL that opens a saved query's results."""
    return f"{org_url.rstrip('/')}/web/qr.aspx?pguid={project_id}&qid={query_id}"


def render_field(
    work_item: WorkItemRecord,
    reference_name: str,
    org_url: str,
    project_id: str,
) -> str:
    """Return the table cell content for one field of *work_item*.

    Missing or empty values give ``""``.  The ``System.Id`` field becomes
    a link to the work item and is returned as :class:`Markup` so the
    template does not escape it; every other value is plain text.
    """
    if work_item.fields is None:
        logger.debug("Work item %s has no fields", work_item.id)
        return ""

    value = work_item.fields.get(reference_name)
    if not value:
        return ""

    if reference_name == ID_FIELD:
        return Markup('<a href="{url}">{id}</a>').format(
            url=work_item_url(org_url, project_id, value),
            id=str(value),
        )

    return str(value)
