"""Exception hierarchy for ado-query-mailer.

Every failure that should end a run with a ``failed`` status derives from
:class:`QueryMailerError`, so the orchestrator and the CLI only need to
catch one type.
"""


class QueryMailerError(Exception):
    """Base class for all fatal ado-query-mailer errors."""


class ConfigurationError(QueryMailerError):
    """An enumerated option or required setting is missing or unsupported."""


class TransportError(QueryMailerError):
    """A call to the work-tracking service failed."""


class WorkItemLookupError(QueryMailerError, LookupError):
    """A work item referenced by the query result was not fetched."""

    def __init__(self, work_item_id: int) -> None:
        super().__init__(
            f"Work item {work_item_id} is referenced by the query result "
            "but was not returned by the batch fetch"
        )
        self.work_item_id = work_item_id


class LinkStructureError(QueryMailerError, ValueError):
    """Relation edges of a linked query result cannot be grouped."""
