"""Azure DevOps work item tracking client using the public REST API.

Only the three calls needed to mail a saved query are implemented:

- ``GET  {org}/_apis/wit/wiql/{id}`` -- run a saved query
- ``GET  {org}/{project}/_apis/wit/queries/{id}`` -- query metadata
- ``POST {org}/{project}/_apis/wit/workitemsbatch`` -- fetch work items

Failures are not retried; they surface as :class:`TransportError`.
"""

from __future__ import annotations

import logging

import requests

from ado_query_mailer.config import ConnectionSettings
from ado_query_mailer.errors import TransportError
from ado_query_mailer.workitems.base import MAX_BATCH_SIZE, BaseWorkItemService
from ado_query_mailer.workitems.models import (
    QueryMetadata,
    QueryResult,
    WorkItemRecord,
)

logger = logging.getLogger(__name__)

API_VERSION = "7.1"


class AzureDevOpsClient(BaseWorkItemService):
    """Work item service backed by an Azure DevOps organization.

    Exactly one authentication method is used: a personal access token,
    a username/password pair, or a bearer token (the pipeline's
    ``System.AccessToken``).
    """

    def __init__(
        self,
        org_url: str,
        project_id: str,
        token: str | None = None,
        username: str | None = None,
        password: str | None = None,
        bearer_token: str | None = None,
        timeout: float = 60,
        session: requests.Session | None = None,
    ) -> None:
        self.org_url = org_url.rstrip("/")
        self.project_id = project_id
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        if bearer_token:
            self.session.headers["Authorization"] = f"Bearer {bearer_token}"
        elif token:
            self.session.auth = ("", token)
        elif username:
            self.session.auth = (username, password or "")
        else:
            logger.warning("No Azure DevOps credentials configured")

    @classmethod
    def from_settings(cls, settings: ConnectionSettings) -> "AzureDevOpsClient":
        return cls(
            org_url=settings.org_url,
            project_id=settings.project_id,
            token=settings.token,
            username=settings.username,
            password=settings.password,
            bearer_token=settings.bearer_token,
        )

    # ------------------------------------------------------------------
    # BaseWorkItemService
    # ------------------------------------------------------------------

    def fetch_query_result(self, query_id: str) -> QueryResult:
        url = f"{self.org_url}/_apis/wit/wiql/{query_id}"
        payload = self._request("GET", url)
        result = _parse(QueryResult.from_api, payload, url)
        logger.info(
            "Query %s returned %d work items and %d relations",
            query_id,
            len(result.work_item_ids),
            len(result.relations),
        )
        return result

    def fetch_query_metadata(
        self, project_id: str, query_id: str
    ) -> QueryMetadata:
        url = f"{self.org_url}/{project_id}/_apis/wit/queries/{query_id}"
        return _parse(QueryMetadata.from_api, self._request("GET", url), url)

    def fetch_items_batch(
        self, field_names: list[str], ids: list[int]
    ) -> list[WorkItemRecord]:
        if len(ids) > MAX_BATCH_SIZE:
            raise ValueError(
                f"Batch of {len(ids)} ids exceeds the limit of {MAX_BATCH_SIZE}"
            )
        url = f"{self.org_url}/{self.project_id}/_apis/wit/workitemsbatch"
        body: dict = {"ids": ids}
        if field_names:
            body["fields"] = field_names

        payload = self._request("POST", url, json=body)
        records = [
            _parse(WorkItemRecord.from_api, item, url)
            for item in payload.get("value") or []
        ]
        logger.debug("Batch of %d ids returned %d work items", len(ids), len(records))
        return records

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _request(self, method: str, url: str, **kwargs) -> dict:
        """Send a request and return the decoded JSON body.

        Raises:
            TransportError: On connection errors, non-2xx responses and
                bodies that are not JSON objects.
        """
        logger.debug("%s %s", method, url)
        try:
            resp = self.session.request(
                method,
                url,
                params={"api-version": API_VERSION},
                timeout=self.timeout,
                **kwargs,
            )
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise TransportError(f"{method} {url} failed: {exc}") from exc

        try:
            data = resp.json()
        except ValueError as exc:
            raise TransportError(f"{method} {url} returned non-JSON response") from exc

        if not isinstance(data, dict):
            raise TransportError(f"{method} {url} returned unexpected payload")
        return data


def _parse(from_api, payload, url: str):
    """Apply a ``from_api`` constructor, reporting malformed payloads."""
    try:
        return from_api(payload)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        raise TransportError(f"{url} returned a malformed payload: {exc!r}") from exc
