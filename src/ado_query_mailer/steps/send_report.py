"""pypyr step: email the composed report.

Usage in a pipeline YAML::

    steps:
      - name: ado_query_mailer.steps.send_report

Context keys consumed:
    settings (Settings): Produced by ``load_settings``.
    report (dict | None): Produced by ``compose_report``.
    dry_run (bool, optional): Skip sending when true.

Context keys produced:
    email_sent (bool): Whether the email was dispatched successfully.
"""

import logging

from ado_query_mailer.errors import QueryMailerError
from ado_query_mailer.reporting.sender import build_sender

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point: send the report email.

    Raises:
        QueryMailerError: If the mail transport rejects the message.
    """
    report = context.get("report")
    if not report:
        logger.info("No report in context; skipping email send.")
        context["email_sent"] = False
        return

    if context.get("dry_run"):
        logger.info("Dry run; not sending the report.")
        context["email_sent"] = False
        return

    settings = context["settings"]
    recipients = list(settings.report.recipients)

    sender = build_sender(settings.mail)
    success = sender.send(report["html_body"], recipients)
    context["email_sent"] = success

    if not success:
        raise QueryMailerError(
            "Email delivery failed for " + ", ".join(recipients)
        )
    logger.info("Email sent to %s", ", ".join(recipients))
