"""
Lookback result envelope.

``LookbackResult`` is the typed form of one page returned by the snapshot
query endpoint. Field aliases match the service's JSON keys.
"""

from __future__ import annotations
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Optional, Union
import logging

from pydantic import BaseModel, Field, PrivateAttr, ValidationError, field_validator

from .errors import ServiceReportedError, TransportFailureError

if TYPE_CHECKING:
    from .query import LookbackQuery

logger = logging.getLogger(__name__)


class LookbackResult(BaseModel):
    """
    One page of snapshots returned by the Lookback API.

    Immutable once built. Unknown keys in the response are ignored and
    missing or null keys take their zero value.
    """
    api_major: str = Field(default="", alias="_rallyAPIMajor", description="Major API version that answered")
    api_minor: str = Field(default="", alias="_rallyAPIMinor", description="Minor API version that answered")
    errors: List[str] = Field(default_factory=list, alias="Errors")
    warnings: List[str] = Field(default_factory=list, alias="Warnings")
    thread_stats: Dict[str, Any] = Field(default_factory=dict, alias="ThreadStats")
    timings: Dict[str, Any] = Field(default_factory=dict, alias="Timings")
    generated_query: Dict[str, Any] = Field(default_factory=dict, alias="GeneratedQuery")
    total_result_count: int = Field(default=0, alias="TotalResultCount",
                                    description="Snapshots matching the query across all pages")
    start_index: int = Field(default=0, alias="StartIndex")
    page_size: int = Field(default=0, alias="PageSize")
    etl_date: Optional[str] = Field(default=None, alias="ETLDate")
    records: List[Dict[str, Any]] = Field(default_factory=list, alias="Results")

    model_config = {"populate_by_name": True, "frozen": True, "extra": "ignore"}

    # Query that produced this page; set by validate()
    _source_query: Optional[Any] = PrivateAttr(default=None)

    @field_validator("api_major", "api_minor", mode="before")
    @classmethod
    def coerce_version(cls, v: Any) -> str:
        """Versions may be sent as numbers or null."""
        if v is None:
            return ""
        return str(v)

    @field_validator("errors", "warnings", "records", mode="before")
    @classmethod
    def null_to_empty_list(cls, v: Any) -> Any:
        return [] if v is None else v

    @field_validator("thread_stats", "timings", "generated_query", mode="before")
    @classmethod
    def null_to_empty_dict(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("total_result_count", "start_index", "page_size", mode="before")
    @classmethod
    def null_to_zero(cls, v: Any) -> Any:
        return 0 if v is None else v

    @classmethod
    def from_json(cls, body: Union[bytes, str]) -> LookbackResult:
        """
        Parse a response body.

        Args:
            body: Raw JSON response

        Returns:
            Unvalidated result envelope

        Raises:
            TransportFailureError: If the body is not a JSON object of the expected shape
        """
        try:
            return cls.model_validate_json(body)
        except ValidationError as e:
            raise TransportFailureError(f"Invalid response body: {e}", cause=e)

    @property
    def source_query(self) -> Optional[LookbackQuery]:
        """The ``LookbackQuery`` this page answers, or None before validation."""
        return self._source_query

    def validate(self, query: LookbackQuery) -> LookbackResult:  # type: ignore[override]
        """
        Reject pages that carry service errors.

        This instance method replaces pydantic's deprecated
        ``BaseModel.validate`` classmethod; build envelopes with
        ``from_json`` or ``model_validate``.

        Args:
            query: The query that produced this page

        Returns:
            Self, with ``source_query`` attached

        Raises:
            ServiceReportedError: If the service reported any errors
        """
        if self.errors:
            raise ServiceReportedError(self.errors)
        if self.warnings:
            logger.warning(f"Lookback API returned warnings: {', '.join(self.warnings)}")
        self._source_query = query
        return self

    def has_warnings(self) -> bool:
        return len(self.warnings) > 0

    def has_more_pages(self) -> bool:
        """
        Check if further pages follow this one.

        Uses the number of records actually returned, so a short page or a
        service that ignored the requested page size is handled correctly.
        """
        return self.start_index + len(self.records) < self.total_result_count

    def iterate_records(self) -> Iterator[Dict[str, Any]]:
        """Iterate the snapshots on this page in returned order."""
        return iter(self.records)


__all__ = ["LookbackResult"]
