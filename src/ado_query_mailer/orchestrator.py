"""Run one query-to-email cycle and report how it ended.

A run moves through fetching the query, choosing the flat or tree
layout, fetching and rendering the work items, and dispatching the
email.  It always ends in one of the :class:`RunState` values; errors
are logged and turned into a ``FAILED`` result instead of propagating.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass

from ado_query_mailer.config import ReportConfig
from ado_query_mailer.errors import QueryMailerError
from ado_query_mailer.reporting.composer import compose_query_report
from ado_query_mailer.reporting.sender import BaseSender
from ado_query_mailer.workitems.base import BaseWorkItemService

logger = logging.getLogger(__name__)


class RunState(enum.Enum):
    RENDERED = "rendered"
    SENT = "sent"
    SKIPPED_EMPTY = "skipped_empty"
    FAILED = "failed"


@dataclass(frozen=True)
class RunResult:
    state: RunState
    message: str
    html_body: str | None = None
    row_count: int = 0

    @property
    def succeeded(self) -> bool:
        """Only failed runs count as failure; an empty skipped query is fine."""
        return self.state is not RunState.FAILED


class QueryMailer:
    """Mail the results of one saved query.

    Args:
        config: Query, organization, recipients and empty-result policy.
        service: Work item service for the query and batch fetches.
        sender: Mail transport; may be ``None`` for a dry run.
    """

    def __init__(
        self,
        config: ReportConfig,
        service: BaseWorkItemService,
        sender: BaseSender | None = None,
    ) -> None:
        self.config = config
        self.service = service
        self.sender = sender

    def compose(self) -> RunResult:
        """Render the report without sending it.

        A rendered report comes back as ``RENDERED`` with ``html_body``
        set.
        """
        try:
            report = compose_query_report(self.config, self.service)
        except QueryMailerError as exc:
            logger.error("Query %s failed: %s", self.config.query_id, exc)
            return RunResult(RunState.FAILED, str(exc))

        if report is None:
            return RunResult(
                RunState.SKIPPED_EMPTY, "Empty query. Not sending e-mail."
            )

        return RunResult(
            RunState.RENDERED,
            f"Rendered {report['row_count']} rows from {report['query_path']}",
            html_body=report["html_body"],
            row_count=report["row_count"],
        )

    def run(self) -> RunResult:
        """Compose the report and hand it to the sender."""
        if self.sender is None:
            raise ValueError("QueryMailer.run() requires a sender")

        composed = self.compose()
        if composed.state is not RunState.RENDERED:
            return composed

        recipients = list(self.config.recipients)
        if not self.sender.send(composed.html_body, recipients):
            message = "Failed to send email to " + ", ".join(recipients)
            logger.error(message)
            return RunResult(
                RunState.FAILED,
                message,
                html_body=composed.html_body,
                row_count=composed.row_count,
            )

        return RunResult(
            RunState.SENT,
            f"Sent {composed.row_count} rows to {len(recipients)} recipients",
            html_body=composed.html_body,
            row_count=composed.row_count,
        )


def run_query_mailer(
    config: ReportConfig,
    service: BaseWorkItemService,
    sender: BaseSender,
) -> RunResult:
    """Convenience wrapper around :meth:`QueryMailer.run`."""
    return QueryMailer(config, service, sender).run()
