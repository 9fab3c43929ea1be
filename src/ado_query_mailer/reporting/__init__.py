"""Reporting sub-package for the ado-query-mailer project.

Exports the main public functions:

- ``compose_query_report`` -- run a saved query and render the HTML report.
- ``build_sender`` -- pick the SMTP or SendGrid transport.

Usage::

    from ado_query_mailer.reporting import build_sender, compose_query_report

    report = compose_query_report(settings.report, client)
    if report is not None:
        build_sender(settings.mail).send(report["html_body"], recipients)
"""

from ado_query_mailer.reporting.composer import compose_query_report
from ado_query_mailer.reporting.sender import build_sender

__all__ = ["build_sender", "compose_query_report"]
