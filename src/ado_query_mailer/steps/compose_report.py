"""pypyr step: run the saved query and render the HTML report.

Usage in a pipeline YAML::

    steps:
      - name: ado_query_mailer.steps.compose_report

Context keys consumed:
    settings (Settings): Produced by ``load_settings``.

Context keys produced:
    report (dict | None): The composed report with keys ``html_body``,
        ``shape``, ``row_count`` and ``query_path``, or ``None`` when the
        query was empty and empty results are not sent.
"""

import logging

from ado_query_mailer.reporting.composer import compose_query_report
from ado_query_mailer.workitems.client import AzureDevOpsClient

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point: compose the query report.

    Errors from the work item service propagate so the pipeline fails.

    Args:
        context: The mutable pypyr context dictionary.
    """
    settings = context["settings"]

    client = context.get("work_item_service")
    if client is None:
        client = AzureDevOpsClient.from_settings(settings.connection)

    report = compose_query_report(settings.report, client)
    context["report"] = report

    if report is None:
        logger.info("Query returned no work items; nothing to send.")
    else:
        logger.info(
            "Report composed: %d rows (%s layout)",
            report["row_count"],
            report["shape"],
        )
