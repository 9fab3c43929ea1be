"""Shared pytest fixtures for the ado-query-mailer test suite.

Provides:
    FakeWorkItemService -- in-memory work item service recording its calls
    FakeSender          -- mail sender recording what it was asked to send
    make_item           -- build a WorkItemRecord from raw JSON-like fields
    report_config       -- ReportConfig for a fictitious organization
"""

from __future__ import annotations

import pytest

from ado_query_mailer.config import ReportConfig
from ado_query_mailer.reporting.sender import BaseSender
from ado_query_mailer.workitems.base import BaseWorkItemService
from ado_query_mailer.workitems.models import (
    QueryMetadata,
    QueryResult,
    WorkItemRecord,
)

ORG_URL = "https://dev.azure.com/contoso"
PROJECT_ID = "Fabrikam"
QUERY_ID = "q-1"
QUERY_PATH = "Shared Queries/Open bugs"


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------

def make_item(work_item_id: int, **fields) -> WorkItemRecord:
    """Build a work item; keyword names use ``_`` in place of ``.``.

    ``make_item(7, System_Title="Crash")`` gives a record with
    ``System.Id`` 7 and ``System.Title`` "Crash".
    """
    raw = {"System.Id": work_item_id}
    for key, value in fields.items():
        raw[key.replace("_", ".")] = value
    return WorkItemRecord.from_api({"id": work_item_id, "fields": raw})


def flat_result(ids, columns=None, sort=None) -> QueryResult:
    """Build a flat QueryResult via the REST payload parser."""
    payload = {
        "queryResultType": "workItem",
        "columns": [
            {"referenceName": name, "name": name}
            for name in (columns or ["System.Id", "System.Title"])
        ],
        "workItems": [{"id": i} for i in ids],
    }
    if sort:
        name, descending = sort
        payload["sortColumns"] = [
            {"field": {"referenceName": name}, "descending": descending}
        ]
    return QueryResult.from_api(payload)


def tree_result(edges, columns=None) -> QueryResult:
    """Build a linked QueryResult from ``(rel, target_id)`` pairs."""
    return QueryResult.from_api({
        "queryResultType": "workItemLink",
        "columns": [
            {"referenceName": name}
            for name in (columns or ["System.Id", "System.Title"])
        ],
        "workItemRelations": [
            {"rel": rel, "target": {"id": target}} for rel, target in edges
        ],
    })


# ---------------------------------------------------------------------------
# Fakes
# ---------------------------------------------------------------------------

class FakeWorkItemService(BaseWorkItemService):
    """Serves a fixed query result and work items from memory.

    Batch responses come back in reverse order of the requested ids to
    mimic a service that does not preserve request order.
    """

    def __init__(self, result: QueryResult, items=(), path: str = QUERY_PATH):
        self.result = result
        self.items = {item.id: item for item in items}
        self.path = path
        self.batch_calls: list[list[int]] = []
        self.field_requests: list[list[str]] = []
        self.metadata_calls = 0

    def fetch_query_result(self, query_id: str) -> QueryResult:
        return self.result

    def fetch_query_metadata(self, project_id: str, query_id: str) -> QueryMetadata:
        self.metadata_calls += 1
        return QueryMetadata(display_path=self.path)

    def fetch_items_batch(self, field_names, ids):
        self.batch_calls.append(list(ids))
        self.field_requests.append(list(field_names))
        found = [self.items[i] for i in ids if i in self.items]
        return list(reversed(found))


class FakeSender(BaseSender):
    """Records every message instead of delivering it."""

    def __init__(self, success: bool = True):
        super().__init__("Test subject")
        self.success = success
        self.sent: list[tuple[str, list[str]]] = []

    def send(self, html_body, recipients):
        self.sent.append((html_body, list(recipients)))
        return self.success


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture()
def report_config() -> ReportConfig:
    return ReportConfig(
        org_url=ORG_URL,
        project_id=PROJECT_ID,
        query_id=QUERY_ID,
        send_on_empty=False,
        recipients=("dev@example.com", "lead@example.com"),
    )


@pytest.fixture()
def sender() -> FakeSender:
    return FakeSender()
