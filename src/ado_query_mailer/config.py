"""Pipeline inputs for ado-query-mailer.

All inputs are read from environment variables once, validated, and
frozen into the settings objects below.  The CLI calls
``load_dotenv()`` first, so a local ``.env`` file works too.

Query / connection:

- ``ADO_QUERY_TYPE`` -- ``My`` (personal access token) or ``Shared``
  (pipeline access token, default)
- ``ADO_QUERY_ID`` -- id of the saved query (required)
- ``ADO_PROJECT`` -- project id or name (falls back to ``SYSTEM_TEAMPROJECTID``)
- ``ADO_ORG_URL`` -- organization URL (``Shared`` falls back to
  ``SYSTEM_COLLECTIONURI``)
- ``ADO_AUTH_SCHEME`` -- ``Token`` (default) or ``UsernamePassword``
- ``ADO_PAT``, ``ADO_USERNAME``, ``ADO_PASSWORD``, ``SYSTEM_ACCESSTOKEN``

Report / mail:

- ``SEND_IF_EMPTY`` -- a JSON value read for its truthiness (``true``,
  ``1``); text that is not JSON counts as unset
- ``EMAIL_ADDRESSES`` -- recipients separated by whitespace or commas
- ``EMAIL_SUBJECT``, ``SEND_METHOD`` (``SMTP`` or ``SendGrid``)
- ``SMTP_HOST``, ``SMTP_PORT``, ``SMTP_TLS`` (``force``/``ignore``/``auto``),
  ``SMTP_USERNAME``, ``SMTP_PASSWORD``, ``SMTP_FROM_EMAIL``, ``SMTP_FROM_NAME``
- ``SENDGRID_API_KEY``, ``SENDGRID_SENDER_EMAIL``, ``SENDGRID_SENDER_NAME``
"""

from __future__ import annotations

import json
import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass

from ado_query_mailer.errors import ConfigurationError

logger = logging.getLogger(__name__)

QUERY_TYPES = ("My", "Shared")
AUTH_SCHEMES = ("Token", "UsernamePassword")
SEND_METHODS = ("SMTP", "SendGrid")
SMTP_TLS_OPTIONS = ("force", "ignore", "auto")

DEFAULT_SUBJECT = "Azure DevOps query results"

_ADDRESS_SPLIT_RE = re.compile(r"[\s,]+")
_EMAIL_RE = re.compile(r"^[^@\s,;<>]+@[^@\s,;<>]+\.[^@\s,;<>]+$")


@dataclass(frozen=True)
class ConnectionSettings:
    org_url: str
    project_id: str
    token: str | None = None
    username: str | None = None
    password: str | None = None
    bearer_token: str | None = None


@dataclass(frozen=True)
class ReportConfig:
    """Everything the report orchestrator needs besides its collaborators."""

    org_url: str
    project_id: str
    query_id: str
    send_on_empty: bool | None = False
    recipients: tuple[str, ...] = ()


@dataclass(frozen=True)
class SmtpSettings:
    host: str
    port: int
    tls: str = "auto"
    username: str | None = None
    password: str | None = None
    from_email: str = ""
    from_name: str = ""

    @property
    def sender(self) -> str:
        return format_sender(self.from_name, self.from_email)


@dataclass(frozen=True)
class SendGridSettings:
    api_key: str
    sender_email: str
    sender_name: str = ""

    @property
    def sender(self) -> str:
        return format_sender(self.sender_name, self.sender_email)


@dataclass(frozen=True)
class MailSettings:
    send_method: str
    subject: str = DEFAULT_SUBJECT
    smtp: SmtpSettings | None = None
    sendgrid: SendGridSettings | None = None


@dataclass(frozen=True)
class Settings:
    connection: ConnectionSettings
    report: ReportConfig
    mail: MailSettings | None


# ----------------------------------------------------------------------
# Parsing helpers
# ----------------------------------------------------------------------


def format_sender(name: str, email: str) -> str:
    """Return ``"Name <email>"``, or just the address when *name* is empty."""
    return f"{name} <{email}>" if name else email


def parse_bool(value: str | None) -> bool | None:
    """Parse *value* as JSON, case-insensitively, and return its truthiness.

    ``true`` and ``1`` are true; ``false``, ``0`` and ``null`` are false.
    Returns ``None`` when *value* is missing or is not valid JSON; callers
    treat that the same as ``False``.
    """
    if value is None:
        return None
    try:
        parsed = json.loads(value.strip().lower())
    except ValueError:
        return None
    return bool(parsed)


def split_email_addresses(raw: str) -> list[str]:
    """Split a recipient list on whitespace, commas and newlines."""
    addresses = [addr for addr in _ADDRESS_SPLIT_RE.split(raw) if addr]
    logger.debug("Split addresses: %s", addresses)
    return addresses


def is_valid_email(address: str) -> bool:
    return bool(_EMAIL_RE.match(address))


def validate_email_addresses(addresses: list[str]) -> None:
    """Raise :class:`ConfigurationError` for the first invalid address."""
    if not addresses:
        raise ConfigurationError("No recipient email addresses configured")
    for address in addresses:
        logger.debug('Validating e-mail address: "%s"', address)
        if not is_valid_email(address):
            raise ConfigurationError(f'Invalid email address: "{address}"')


def _choice(env: Mapping[str, str], name: str, choices: tuple, default: str) -> str:
    value = env.get(name) or default
    if value not in choices:
        raise ConfigurationError(f'{name} "{value}" is invalid')
    return value


def _required(env: Mapping[str, str], *names: str) -> str:
    """Return the first non-empty variable out of *names*."""
    for name in names:
        value = env.get(name)
        if value:
            return value
    raise ConfigurationError(f"{' or '.join(names)} must be set")


# ----------------------------------------------------------------------
# Loaders
# ----------------------------------------------------------------------


def load_connection_settings(env: Mapping[str, str]) -> ConnectionSettings:
    query_type = _choice(env, "ADO_QUERY_TYPE", QUERY_TYPES, "Shared")
    project_id = _required(env, "ADO_PROJECT", "SYSTEM_TEAMPROJECTID")

    if query_type == "Shared":
        return ConnectionSettings(
            org_url=_required(env, "ADO_ORG_URL", "SYSTEM_COLLECTIONURI"),
            project_id=project_id,
            bearer_token=_required(env, "SYSTEM_ACCESSTOKEN"),
        )

    org_url = _required(env, "ADO_ORG_URL")
    scheme = _choice(env, "ADO_AUTH_SCHEME", AUTH_SCHEMES, "Token")
    if scheme == "Token":
        return ConnectionSettings(
            org_url=org_url,
            project_id=project_id,
            token=_required(env, "ADO_PAT"),
        )
    return ConnectionSettings(
        org_url=org_url,
        project_id=project_id,
        username=_required(env, "ADO_USERNAME"),
        password=_required(env, "ADO_PASSWORD"),
    )


def load_mail_settings(env: Mapping[str, str]) -> MailSettings:
    send_method = _choice(env, "SEND_METHOD", SEND_METHODS, "SMTP")
    subject = env.get("EMAIL_SUBJECT") or DEFAULT_SUBJECT

    if send_method == "SendGrid":
        return MailSettings(
            send_method=send_method,
            subject=subject,
            sendgrid=SendGridSettings(
                api_key=_required(env, "SENDGRID_API_KEY"),
                sender_email=_required(env, "SENDGRID_SENDER_EMAIL"),
                sender_name=env.get("SENDGRID_SENDER_NAME", ""),
            ),
        )

    tls = _choice(env, "SMTP_TLS", SMTP_TLS_OPTIONS, "auto")
    default_port = "465" if tls == "force" else "587"
    port_raw = env.get("SMTP_PORT") or default_port
    try:
        port = int(port_raw)
    except ValueError:
        raise ConfigurationError(f'SMTP_PORT "{port_raw}" is not a number') from None

    return MailSettings(
        send_method=send_method,
        subject=subject,
        smtp=SmtpSettings(
            host=_required(env, "SMTP_HOST"),
            port=port,
            tls=tls,
            username=env.get("SMTP_USERNAME") or None,
            password=env.get("SMTP_PASSWORD") or None,
            from_email=_required(env, "SMTP_FROM_EMAIL"),
            from_name=env.get("SMTP_FROM_NAME", ""),
        ),
    )


def load_settings(
    environ: Mapping[str, str] | None = None,
    require_mail: bool = True,
) -> Settings:
    """Read and validate all pipeline inputs.

    Args:
        environ: Variables to read; defaults to ``os.environ``.
        require_mail: When ``False`` the mail transport settings are not
            read (used for dry runs) and ``Settings.mail`` is ``None``.

    Raises:
        ConfigurationError: If a required input is missing or invalid.
    """
    env = os.environ if environ is None else environ

    connection = load_connection_settings(env)
    recipients = split_email_addresses(env.get("EMAIL_ADDRESSES", ""))
    if require_mail:
        validate_email_addresses(recipients)

    send_if_empty = env.get("SEND_IF_EMPTY")
    send_on_empty = parse_bool(send_if_empty)
    if send_if_empty is not None and send_on_empty is None:
        logger.warning(
            'SEND_IF_EMPTY "%s" is not a boolean; treating it as false',
            send_if_empty,
        )

    report = ReportConfig(
        org_url=connection.org_url,
        project_id=connection.project_id,
        query_id=_required(env, "ADO_QUERY_ID"),
        send_on_empty=send_on_empty,
        recipients=tuple(recipients),
    )

    mail = load_mail_settings(env) if require_mail else None
    return Settings(connection=connection, report=report, mail=mail)
