"""Abstract work item service used by the report composer."""

import logging
from abc import ABC, abstractmethod

from ado_query_mailer.workitems.models import (
    QueryMetadata,
    QueryResult,
    WorkItemRecord,
)

logger = logging.getLogger(__name__)

# The work-tracking service rejects batch requests for more ids than this.
MAX_BATCH_SIZE = 200


class BaseWorkItemService(ABC):
    """Query and fetch capability of a work-tracking service.

    Concrete subclasses talk to a real backend; the report composer only
    depends on this interface.
    """

    @abstractmethod
    def fetch_query_result(self, query_id: str) -> QueryResult:
        """Execute the saved query *query_id* and return its raw result."""
        ...

    @abstractmethod
    def fetch_query_metadata(
        self, project_id: str, query_id: str
    ) -> QueryMetadata:
        """Return the saved query's metadata (its display path)."""
        ...

    @abstractmethod
    def fetch_items_batch(
        self, field_names: list[str], ids: list[int]
    ) -> list[WorkItemRecord]:
        """Fetch up to :data:`MAX_BATCH_SIZE` work items.

        Args:
            field_names: Reference names of the fields to return.
            ids: Work item ids; callers keep this at or below
                :data:`MAX_BATCH_SIZE`.

        Returns:
            The fetched records, in no particular order.
        """
        ...
