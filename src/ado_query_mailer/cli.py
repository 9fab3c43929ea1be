"""Click CLI for ado-query-mailer.

Commands:
    run      -- Run the saved query and email the results.
    pipeline -- Invoke the bundled pypyr pipeline.
"""

from __future__ import annotations

import locale
import logging

import click
from dotenv import load_dotenv

logger = logging.getLogger("ado_query_mailer.cli")

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
    )


def _use_system_collation() -> None:
    """Sort text with the user's locale rather than the C locale."""
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as exc:
        logger.warning("Could not apply system collation locale: %s", exc)


@click.group()
@click.option(
    "--env-file",
    default=None,
    type=click.Path(exists=True, dir_okay=False),
    help="Read environment variables from this file instead of ./.env.",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    default=False,
    help="Enable debug logging.",
)
@click.pass_context
def main(ctx: click.Context, env_file: str | None, verbose: bool) -> None:
    """ado-query-mailer: email the results of an Azure DevOps query."""
    load_dotenv(env_file)
    _configure_logging(verbose)
    _use_system_collation()
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


@main.command()
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Render the report and print it instead of sending it.",
)
@click.option(
    "--output",
    default=None,
    type=click.Path(dir_okay=False, writable=True),
    help="Also write the rendered HTML to this file.",
)
@click.pass_context
def run(ctx: click.Context, dry_run: bool, output: str | None) -> None:
    """Run the saved query and email the results table."""
    from ado_query_mailer.config import load_settings
    from ado_query_mailer.errors import ConfigurationError
    from ado_query_mailer.orchestrator import QueryMailer, RunState
    from ado_query_mailer.reporting.sender import build_sender
    from ado_query_mailer.workitems.client import AzureDevOpsClient

    try:
        settings = load_settings(require_mail=not dry_run)
        sender = None if dry_run else build_sender(settings.mail)
    except ConfigurationError as exc:
        click.echo(click.style(f"Configuration error: {exc}", fg="red"))
        raise SystemExit(1)

    click.echo(
        click.style(
            f"Running query {settings.report.query_id} "
            f"in project {settings.report.project_id}...",
            fg="cyan",
        )
    )

    client = AzureDevOpsClient.from_settings(settings.connection)
    mailer = QueryMailer(settings.report, client, sender)
    result = mailer.compose() if dry_run else mailer.run()

    if output and result.html_body is not None:
        with open(output, "w", encoding="utf-8") as fh:
            fh.write(result.html_body)
        click.echo(f"  HTML written to {output}")

    if result.state is RunState.FAILED:
        click.echo(click.style(f"Failed: {result.message}", fg="red"))
        raise SystemExit(1)

    if result.state is RunState.SKIPPED_EMPTY:
        click.echo(click.style(result.message, fg="yellow"))
        return

    if dry_run and not output:
        click.echo(result.html_body)
    click.echo(click.style(result.message, fg="green"))


@main.command()
@click.option(
    "--dry-run",
    is_flag=True,
    default=False,
    help="Run the pipeline without the send step.",
)
@click.pass_context
def pipeline(ctx: click.Context, dry_run: bool) -> None:
    """Run the bundled pypyr pipeline (load settings, compose, send)."""
    from pypyr import pipelinerunner
    from ado_query_mailer import PACKAGE_DIR

    pipeline_path = PACKAGE_DIR / "pipelines" / "query_mailer"
    click.echo(
        click.style(f"Running pipeline: {pipeline_path.name}", fg="cyan")
    )

    try:
        pipelinerunner.run(
            pipeline_name=str(pipeline_path),
            dict_in={"dry_run": dry_run},
        )
        click.echo(
            click.style(f"Pipeline '{pipeline_path.name}' completed.", fg="green")
        )
    except Exception as exc:
        logger.error("Pipeline failed: %s", exc)
        click.echo(click.style(f"Pipeline failed: {exc}", fg="red"))
        raise SystemExit(1)
