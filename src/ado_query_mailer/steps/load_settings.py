"""pypyr step: read and validate the pipeline inputs.

Usage in a pipeline YAML::

    steps:
      - name: ado_query_mailer.steps.load_settings

Context keys consumed:
    dry_run (bool, optional): When true the mail transport settings are
        not required.

Context keys produced:
    settings (Settings): The validated settings.
"""

import logging

from ado_query_mailer.config import load_settings

logger = logging.getLogger(__name__)


def run_step(context: dict) -> None:
    """pypyr entry-point: load settings from the environment.

    Args:
        context: The mutable pypyr context dictionary.
    """
    dry_run = bool(context.get("dry_run", False))
    settings = load_settings(require_mail=not dry_run)
    context["settings"] = settings

    logger.info(
        "Settings loaded for query %s (%d recipients)",
        settings.report.query_id,
        len(settings.report.recipients),
    )
