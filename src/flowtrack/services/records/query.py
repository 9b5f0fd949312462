"""
Query specs and per-resource field projections.

A projection lists every field a caller may read back from a record; a field
that is not projected is simply absent from the response.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Sequence, Tuple


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class WhereCondition:
    """A single filter clause, e.g. task_c EqualTo [12]."""
    field_name: str
    operator: str
    values: Tuple[Any, ...]
    include: bool = True

    def to_params(self) -> Dict[str, Any]:
        return {
            "FieldName": self.field_name,
            "Operator": self.operator,
            "Values": list(self.values),
            "Include": self.include,
        }


@dataclass(frozen=True)
class OrderBy:
    field_name: str
    direction: SortDirection = SortDirection.DESC

    def to_params(self) -> Dict[str, Any]:
        return {"fieldName": self.field_name, "sorttype": self.direction.value}


@dataclass(frozen=True)
class QuerySpec:
    """Fields to return, filters to apply and result ordering"""
    fields: Tuple[str, ...]
    where: Tuple[WhereCondition, ...] = ()
    order_by: Tuple[OrderBy, ...] = ()

    def to_params(self) -> Dict[str, Any]:
        """Serialize to the shape the backend expects. Empty sections are omitted."""
        params: Dict[str, Any] = {
            "fields": [{"field": {"Name": name}} for name in self.fields]
        }
        if self.where:
            params["where"] = [condition.to_params() for condition in self.where]
        if self.order_by:
            params["orderBy"] = [order.to_params() for order in self.order_by]
        return params


@dataclass(frozen=True)
class FieldProjection:
    """Static declaration of what a resource reads and how results are ordered."""
    fields: Tuple[str, ...]
    default_order: Tuple[OrderBy, ...] = field(
        default=(OrderBy("CreatedOn", SortDirection.DESC),)
    )

    def select(self) -> QuerySpec:
        """Projection only, no ordering. Used for single-record lookups."""
        return QuerySpec(fields=self.fields)

    def query(self, where: Sequence[WhereCondition] = ()) -> QuerySpec:
        return QuerySpec(
            fields=self.fields,
            where=tuple(where),
            order_by=self.default_order,
        )


def equal_to(field_name: str, value: Any) -> WhereCondition:
    return WhereCondition(field_name=field_name, operator="EqualTo", values=(value,))


TASK_PROJECTION = FieldProjection(
    fields=(
        "Id",
        "Name",
        "description_c",
        "priority_c",
        "status_c",
        "completed_at_c",
        "CreatedOn",
        "Tags",
        "file_attachments_c",
    )
)

FILE_PROJECTION = FieldProjection(
    fields=(
        "Id",
        "Name",
        "file_name_c",
        "file_size_c",
        "upload_date_c",
        "task_c",
        "file_c",
        "Tags",
        "CreatedOn",
    )
)
