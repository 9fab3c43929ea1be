"""Tests for converting REST payloads into query results and work items."""

import pytest

from ado_query_mailer.errors import ConfigurationError
from ado_query_mailer.workitems.models import (
    Named,
    Number,
    QueryMetadata,
    QueryResult,
    ResultShape,
    Scalar,
    SortColumn,
    WorkItemRecord,
    resolve_field_value,
)


class TestResolveFieldValue:

    def test_string(self):
        assert resolve_field_value("Active") == Scalar("Active")

    def test_numbers(self):
        assert resolve_field_value(3) == Number(3)
        assert resolve_field_value(1.5) == Number(1.5)

    def test_identity(self):
        raw = {"displayName": "Ada Lovelace", "uniqueName": "ada@example.com"}
        assert resolve_field_value(raw) == Named("Ada Lovelace")

    def test_null_and_false_are_absent(self):
        assert resolve_field_value(None) is None
        assert resolve_field_value(False) is None

    def test_true(self):
        assert resolve_field_value(True) == Scalar("True")


class TestResultShape:

    def test_known_types(self):
        assert ResultShape.from_result_type("workItem") is ResultShape.FLAT_ITEMS
        assert ResultShape.from_result_type("workItemLink") is ResultShape.LINKED_TREE

    @pytest.mark.parametrize("value", [None, "", "WorkItem", "graph"])
    def test_unknown_types(self, value):
        with pytest.raises(ConfigurationError):
            ResultShape.from_result_type(value)


class TestQueryResultFromApi:

    def test_flat_payload(self):
        result = QueryResult.from_api({
            "queryType": "flat",
            "queryResultType": "workItem",
            "columns": [
                {"referenceName": "System.Id", "name": "ID"},
                {"name": "No reference"},
            ],
            "sortColumns": [
                {"field": {"referenceName": "System.Title"}, "descending": True},
                {"field": {"referenceName": "System.Id"}, "descending": False},
            ],
            "workItems": [{"id": 5, "url": "u"}, {"id": 3, "url": "u"}],
        })

        assert result.result_type == "workItem"
        assert [c.reference_name for c in result.columns] == ["System.Id", None]
        assert result.sort_column == SortColumn("System.Title", True)
        assert result.work_item_ids == [5, 3]
        assert result.relations == []

    def test_link_payload(self):
        result = QueryResult.from_api({
            "queryResultType": "workItemLink",
            "workItemRelations": [
                {"rel": None, "source": None, "target": {"id": 1}},
                {
                    "rel": "System.LinkTypes.Hierarchy-Forward",
                    "source": {"id": 1},
                    "target": {"id": 2},
                },
            ],
        })

        assert result.columns is None
        assert result.sort_column is None
        assert [(r.rel, r.source_id, r.target_id) for r in result.relations] == [
            (None, None, 1),
            ("System.LinkTypes.Hierarchy-Forward", 1, 2),
        ]


def test_work_item_from_api():
    record = WorkItemRecord.from_api({
        "id": 7,
        "rev": 3,
        "fields": {
            "System.Id": 7,
            "System.Title": "Crash on save",
            "System.AssignedTo": {"displayName": "Grace Hopper"},
            "Custom.Flag": None,
        },
    })

    assert record.id == 7
    assert record.get("System.Title") == Scalar("Crash on save")
    assert record.get("System.AssignedTo") == Named("Grace Hopper")
    assert record.get("Custom.Flag") is None
    assert "Custom.Flag" not in record.fields


def test_work_item_without_fields():
    record = WorkItemRecord.from_api({"id": 8})
    assert record.fields is None
    assert record.get("System.Title") is None


def test_query_metadata_from_api():
    meta = QueryMetadata.from_api(
        {"id": "q-1", "name": "Open bugs", "path": "Shared Queries/Open bugs"}
    )
    assert meta.display_path == "Shared Queries/Open bugs"
