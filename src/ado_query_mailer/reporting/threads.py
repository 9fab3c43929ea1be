"""Group the relation edges of a linked query into parent/child threads."""

from __future__ import annotations

from dataclasses import dataclass, field

from ado_query_mailer.errors import LinkStructureError
from ado_query_mailer.workitems.models import RelationEdge


@dataclass
class Thread:
    parent_id: int
    child_ids: list[int] = field(default_factory=list)


def build_threads(relations: list[RelationEdge]) -> list[Thread]:
    """Group *relations* into threads in a single left-to-right pass.

    An edge without a link type starts a new thread rooted at its
    target; every following typed edge adds its target as a child of
    that thread.

    Raises:
        LinkStructureError: If a typed edge appears before any thread
            has been started.
    """
    threads: list[Thread] = []
    for index, edge in enumerate(relations):
        if edge.rel is None:
            threads.append(Thread(parent_id=edge.target_id))
            continue
        if not threads:
            raise LinkStructureError(
                f"Relation {index} ({edge.rel} -> {edge.target_id}) "
                "appears before any top-level work item"
            )
        threads[-1].child_ids.append(edge.target_id)
    return threads


def thread_ids(threads: list[Thread]) -> list[int]:
    """Return every parent and child id once, in first-seen order."""
    seen: dict[int, None] = {}
    for thread in threads:
        seen.setdefault(thread.parent_id)
        for child_id in thread.child_ids:
            seen.setdefault(child_id)
    return list(seen)
