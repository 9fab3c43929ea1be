"""In-memory representation of Azure DevOps query results and work items.

The REST payloads are converted once, right after they are fetched, so
the reporting code never has to guess at JSON shapes.  Field values are
resolved into one of three variants:

- :class:`Scalar` -- plain text (strings, dates, true booleans)
- :class:`Number` -- integers and floats
- :class:`Named` -- identity-like objects exposing a ``displayName``
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Union

from ado_query_mailer.errors import ConfigurationError

logger = logging.getLogger(__name__)

ID_FIELD = "System.Id"


class ResultShape(enum.Enum):
    """Shape of the items carried by a query result."""

    FLAT_ITEMS = "workItem"
    LINKED_TREE = "workItemLink"

    @classmethod
    def from_result_type(cls, result_type: str | None) -> "ResultShape":
        """Map the service's ``queryResultType`` onto a shape.

        Raises:
            ConfigurationError: If *result_type* is not a supported value.
        """
        for shape in cls:
            if shape.value == result_type:
                return shape
        raise ConfigurationError(
            f'Query result type "{result_type}" is not supported'
        )


# ----------------------------------------------------------------------
# Field values
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class Scalar:
    text: str

    def __bool__(self) -> bool:
        return bool(self.text)

    def __str__(self) -> str:
        return self.text


@dataclass(frozen=True)
class Number:
    value: Union[int, float]

    def __bool__(self) -> bool:
        return bool(self.value)

    def __str__(self) -> str:
        if isinstance(self.value, float) and self.value.is_integer():
            return str(int(self.value))
        return str(self.value)


@dataclass(frozen=True)
class Named:
    display_name: str

    def __bool__(self) -> bool:
        return bool(self.display_name)

    def __str__(self) -> str:
        return self.display_name


FieldValue = Union[Scalar, Number, Named]


def resolve_field_value(raw: Any) -> FieldValue | None:
    """Convert a raw JSON field value into a :data:`FieldValue`.

    Returns ``None`` for values that should be treated as absent
    (``null`` and ``false``).
    """
    if raw is None or raw is False:
        return None
    if raw is True:
        return Scalar("True")
    if isinstance(raw, (int, float)):
        return Number(raw)
    if isinstance(raw, dict):
        if "displayName" in raw:
            return Named(str(raw["displayName"] or ""))
        logger.debug("Field object without displayName: %s", raw)
        return Scalar(str(raw))
    return Scalar(str(raw))


# ----------------------------------------------------------------------
# Query result
# ----------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnDescriptor:
    reference_name: str | None


@dataclass(frozen=True)
class SortColumn:
    reference_name: str
    descending: bool = False


@dataclass(frozen=True)
class RelationEdge:
    """A link record of a ``workItemLink`` query result.

    ``rel`` is ``None`` for the first item of a new thread.
    """

    target_id: int
    rel: str | None = None
    source_id: int | None = None


@dataclass
class QueryResult:
    result_type: str | None
    columns: list[ColumnDescriptor] | None = None
    sort_columns: list[SortColumn] = field(default_factory=list)
    work_item_ids: list[int] = field(default_factory=list)
    relations: list[RelationEdge] = field(default_factory=list)

    @property
    def sort_column(self) -> SortColumn | None:
        """The first declared sort column; later ones are ignored."""
        return self.sort_columns[0] if self.sort_columns else None

    @classmethod
    def from_api(cls, payload: dict) -> "QueryResult":
        """Build a :class:`QueryResult` from a WIQL REST response."""
        columns = None
        if payload.get("columns") is not None:
            columns = [
                ColumnDescriptor(reference_name=col.get("referenceName"))
                for col in payload["columns"]
            ]

        sort_columns = []
        for sort in payload.get("sortColumns") or []:
            reference_name = (sort.get("field") or {}).get("referenceName")
            if not reference_name:
                continue
            sort_columns.append(
                SortColumn(reference_name, bool(sort.get("descending")))
            )

        work_item_ids = [
            int(ref["id"]) for ref in payload.get("workItems") or []
        ]

        relations = []
        for rel in payload.get("workItemRelations") or []:
            source = rel.get("source") or {}
            relations.append(
                RelationEdge(
                    target_id=int(rel["target"]["id"]),
                    rel=rel.get("rel"),
                    source_id=source.get("id"),
                )
            )

        return cls(
            result_type=payload.get("queryResultType"),
            columns=columns,
            sort_columns=sort_columns,
            work_item_ids=work_item_ids,
            relations=relations,
        )


@dataclass(frozen=True)
class QueryMetadata:
    display_path: str

    @classmethod
    def from_api(cls, payload: dict) -> "QueryMetadata":
        return cls(display_path=payload.get("path") or payload.get("name") or "")


# ----------------------------------------------------------------------
# Work items
# ----------------------------------------------------------------------


@dataclass
class WorkItemRecord:
    """A fetched work item.

    ``fields`` is ``None`` when the service returned the item without a
    field map; such records are dropped before rendering.
    """

    id: int
    fields: dict[str, FieldValue] | None

    def get(self, reference_name: str) -> FieldValue | None:
        if self.fields is None:
            return None
        return self.fields.get(reference_name)

    @classmethod
    def from_api(cls, payload: dict) -> "WorkItemRecord":
        raw_fields = payload.get("fields")
        fields = None
        if raw_fields is not None:
            fields = {}
            for name, raw in raw_fields.items():
                value = resolve_field_value(raw)
                if value is not None:
                    fields[name] = value
        return cls(id=int(payload["id"]), fields=fields)
