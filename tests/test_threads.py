"""Tests for grouping linked query results into threads."""

import pytest

from ado_query_mailer.errors import LinkStructureError, QueryMailerError
from ado_query_mailer.reporting.threads import Thread, build_threads, thread_ids
from ado_query_mailer.workitems.models import RelationEdge

CHILD = "System.LinkTypes.Hierarchy-Forward"


def test_empty_relations():
    assert build_threads([]) == []


def test_parent_with_child_then_lone_parent():
    edges = [
        RelationEdge(target_id=1, rel=None),
        RelationEdge(target_id=2, rel="child"),
        RelationEdge(target_id=3, rel=None),
    ]
    assert build_threads(edges) == [
        Thread(parent_id=1, child_ids=[2]),
        Thread(parent_id=3, child_ids=[]),
    ]


def test_children_keep_encounter_order():
    edges = [
        RelationEdge(10, None),
        RelationEdge(13, CHILD, source_id=10),
        RelationEdge(11, CHILD, source_id=10),
        RelationEdge(12, CHILD, source_id=10),
    ]
    assert build_threads(edges) == [Thread(10, [13, 11, 12])]


def test_typed_edge_before_any_root_fails():
    edges = [RelationEdge(2, CHILD, source_id=1), RelationEdge(1, None)]
    with pytest.raises(LinkStructureError) as excinfo:
        build_threads(edges)

    assert isinstance(excinfo.value, QueryMailerError)
    assert isinstance(excinfo.value, ValueError)
    assert "before any top-level" in str(excinfo.value)


def test_thread_ids_deduplicates_in_first_seen_order():
    threads = [Thread(1, [2, 3]), Thread(4, [2]), Thread(3, [])]
    assert thread_ids(threads) == [1, 2, 3, 4]
