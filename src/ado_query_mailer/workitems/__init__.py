"""Work item sub-package -- Azure DevOps access and data model.

Public API
----------
- :class:`AzureDevOpsClient` -- REST implementation of the work item service
- :class:`BaseWorkItemService` -- the interface the reporting code consumes
- :func:`chunk_ids` -- split id lists into batch-fetch sized chunks
"""

from ado_query_mailer.workitems.base import MAX_BATCH_SIZE, BaseWorkItemService
from ado_query_mailer.workitems.batching import chunk_ids
from ado_query_mailer.workitems.client import AzureDevOpsClient

__all__ = [
    "AzureDevOpsClient",
    "BaseWorkItemService",
    "MAX_BATCH_SIZE",
    "chunk_ids",
]
