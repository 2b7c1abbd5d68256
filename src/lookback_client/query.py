"""
Snapshot query builder for the Lookback API.

A ``LookbackQuery`` accumulates the find predicate, sort, projection,
hydration and paging of a single request. Every builder call returns the
same instance so queries can be written inline:

    result = (api.new_query()
              .add_find_clause("_TypeHierarchy", "Defect")
              .require_fields("ObjectID", "State")
              .sort_by("_ValidFrom", -1)
              .execute())
"""

from __future__ import annotations
from copy import deepcopy
from typing import TYPE_CHECKING, Any, Dict, List
import json

from .errors import (
    InvalidArgumentError,
    ConflictingProjectionError,
    MissingFilterError,
)

if TYPE_CHECKING:
    from .api import LookbackApi
    from .result import LookbackResult

DEFAULT_PAGE_SIZE = 20000
DEFAULT_START_INDEX = 0

ASCENDING = 1
DESCENDING = -1


class LookbackQuery:
    """
    Mutable specification of one snapshot query.

    Not thread-safe: a query must not be mutated from more than one thread
    at a time. Separate queries are independent.
    """

    def __init__(self, api: LookbackApi):
        """
        Initialize an empty query.

        Args:
            api: The client that will execute this query
        """
        self._api = api
        self.find: Dict[str, Any] = {}
        self.sort: Dict[str, int] = {}
        self.fields: List[str] = []
        self.fields_true: bool = False
        self.hydrate: List[str] = []
        self.properties: Dict[str, Any] = {}
        self.pagesize: int = DEFAULT_PAGE_SIZE
        self.start: int = DEFAULT_START_INDEX

    @property
    def api(self) -> LookbackApi:
        return self._api

    # =========================================================================
    # Builder calls
    # =========================================================================

    def set_page_size(self, pagesize: int) -> LookbackQuery:
        """Set the number of snapshots per page. Upper bounds are enforced by the service."""
        self.pagesize = pagesize
        return self

    def set_start_index(self, start: int) -> LookbackQuery:
        """Set the index of the first snapshot to return."""
        self.start = start
        return self

    def request_all_fields(self) -> LookbackQuery:
        """Ask for every field of each snapshot (``fields: true``)."""
        self.fields_true = True
        return self

    def require_fields(self, *names: str) -> LookbackQuery:
        """
        Add fields to the projection.

        Names already present are ignored. Conflicts with
        ``request_all_fields`` are only reported at execution.
        """
        for name in names:
            if name not in self.fields:
                self.fields.append(name)
        return self

    def sort_by(self, field: str, direction: int = ASCENDING) -> LookbackQuery:
        """
        Sort by a field.

        Calling again for the same field replaces its direction.

        Args:
            field: Field path to sort on
            direction: 1 for ascending, -1 for descending

        Raises:
            InvalidArgumentError: If direction is not 1 or -1
        """
        # bool is an int subclass; True must not pass as 1
        if isinstance(direction, bool) or direction not in (ASCENDING, DESCENDING):
            raise InvalidArgumentError(
                "Sort only supports values of 1 or -1",
                details={"field": field, "direction": direction},
            )
        self.sort[field] = direction
        return self

    def hydrate_fields(self, *names: str) -> LookbackQuery:
        """Ask the service to resolve these reference fields to readable values."""
        for name in names:
            if name not in self.hydrate:
                self.hydrate.append(name)
        return self

    def add_find_clause(self, field: str, value: Any) -> LookbackQuery:
        """
        Add a clause to the find predicate.

        ``value`` is sent as-is and may be a nested mapping or a list of
        mappings (for ``$or``/``$and``). A later clause for the same field
        replaces the earlier one.
        """
        self.find[field] = value
        return self

    def add_property(self, name: str, value: Any) -> LookbackQuery:
        """
        Add a top-level request parameter.

        Properties are merged last and override the named parameters
        (``find``, ``start``, ``pagesize``, ``fields``, ``hydrate``,
        ``sort``) when their names collide.
        """
        self.properties[name] = value
        return self

    # =========================================================================
    # Validation and serialization
    # =========================================================================

    def validate(self) -> None:
        """
        Check the query can be executed.

        Raises:
            ConflictingProjectionError: If fields=true and explicit fields are both set
            MissingFilterError: If there is no find clause
        """
        if self.fields_true and self.fields:
            raise ConflictingProjectionError(details={"fields": list(self.fields)})
        if not self.find:
            raise MissingFilterError()

    def to_request_dict(self) -> Dict[str, Any]:
        """
        Build the request document.

        Empty parameters are omitted rather than sent as null. Properties
        are applied last.
        """
        request: Dict[str, Any] = {
            "find": self.find,
            "start": self.start,
            "pagesize": self.pagesize,
        }
        if self.fields_true:
            request["fields"] = True
        elif self.fields:
            request["fields"] = list(self.fields)
        if self.hydrate:
            request["hydrate"] = list(self.hydrate)
        if self.sort:
            request["sort"] = dict(self.sort)

        request.update(self.properties)
        return request

    def get_request_json(self) -> str:
        """Serialize the request document to JSON text."""
        return json.dumps(self.to_request_dict())

    # =========================================================================
    # Execution
    # =========================================================================

    def execute(self) -> LookbackResult:
        """
        Execute the query through the owning client.

        Returns:
            The validated result page

        Raises:
            LookbackError: On any validation, configuration, transport or service failure
        """
        return self._api.execute(self)

    def copy(self) -> LookbackQuery:
        """
        Return an independent copy bound to the same client.

        Mutating the copy, including nested find values, never affects this
        query.
        """
        clone = LookbackQuery(self._api)
        clone.find = deepcopy(self.find)
        clone.sort = dict(self.sort)
        clone.fields = list(self.fields)
        clone.fields_true = self.fields_true
        clone.hydrate = list(self.hydrate)
        clone.properties = deepcopy(self.properties)
        clone.pagesize = self.pagesize
        clone.start = self.start
        return clone

    def __repr__(self) -> str:
        return (f"LookbackQuery(find={self.find!r}, start={self.start}, "
                f"pagesize={self.pagesize})")


__all__ = [
    "LookbackQuery",
    "DEFAULT_PAGE_SIZE",
    "DEFAULT_START_INDEX",
    "ASCENDING",
    "DESCENDING",
]
