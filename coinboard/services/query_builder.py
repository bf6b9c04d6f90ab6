"""Translate a caller's query directive into listings-endpoint parameters.

The listings endpoint can sort by a native percent-change field but cannot
keep only positive changes, and has no 5m or 6h field. Those parts of a
directive are carried on the returned ``UpstreamQuery`` for the pipeline to
apply locally.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from coinboard.config.periods import (
    CATEGORY_FILTERS,
    CRYPTOCURRENCY_TYPES,
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT_BY,
    DEFAULT_SORT_DIRECTION,
    DEFAULT_SORT_PERIOD,
    DERIVED_WINDOWS,
    FILTERS,
    LISTING_FILTERS,
    LISTING_RANGES,
    MAX_LIMIT,
    MIN_LIMIT,
    PERCENT_WINDOWS,
    SORT_DIRECTIONS,
    SORT_FIELDS,
    SORT_PERIODS,
    UPSTREAM_PROXY_WINDOW,
)
from coinboard.services.errors import ApiError


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


@dataclass(frozen=True)
class QueryDirective:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    filter: Optional[str] = None
    sort_by: str = DEFAULT_SORT_BY
    sort_period: str = DEFAULT_SORT_PERIOD
    sort_direction: str = DEFAULT_SORT_DIRECTION
    search: str = ""
    convert: str = "USD"
    # Provider-side listing filters (price_min, tag, ...); only set keys are sent.
    listing_filters: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_query(
        cls,
        *,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_LIMIT,
        filter: Optional[str] = None,
        sort_by: Optional[str] = None,
        sort_period: Optional[str] = None,
        sort_direction: Optional[str] = None,
        search: Optional[str] = None,
        convert: Optional[str] = None,
        default_convert: str = "USD",
        listing_filters: Optional[Dict[str, Any]] = None,
    ) -> "QueryDirective":
        """Normalise raw query-string values; blank strings mean "not given"."""
        return cls(
            page=page,
            limit=limit,
            filter=_clean(filter).lower() or None,
            sort_by=_clean(sort_by).lower() or DEFAULT_SORT_BY,
            sort_period=_clean(sort_period).lower() or DEFAULT_SORT_PERIOD,
            sort_direction=_clean(sort_direction).lower() or DEFAULT_SORT_DIRECTION,
            search=_clean(search),
            convert=_clean(convert).upper() or default_convert,
            listing_filters={
                key: value.strip().lower() if isinstance(value, str) else value
                for key, value in (listing_filters or {}).items()
                if value is not None and not (isinstance(value, str) and not value.strip())
            },
        )

    @property
    def start(self) -> int:
        return (self.page - 1) * self.limit + 1


def validate_directive(directive: QueryDirective) -> None:
    """Raise a VALIDATION ApiError for the first offending parameter."""
    if not isinstance(directive.page, int) or directive.page < 1:
        raise ApiError.validation("page", directive.page, "an integer >= 1")
    if not isinstance(directive.limit, int) or not MIN_LIMIT <= directive.limit <= MAX_LIMIT:
        raise ApiError.validation("limit", directive.limit, f"an integer from {MIN_LIMIT} to {MAX_LIMIT}")
    if directive.filter is not None and directive.filter not in FILTERS:
        raise ApiError.validation("filter", directive.filter, FILTERS)
    if directive.sort_by not in SORT_FIELDS:
        raise ApiError.validation("sortBy", directive.sort_by, SORT_FIELDS)
    if directive.sort_period not in SORT_PERIODS:
        raise ApiError.validation("sortPeriod", directive.sort_period, SORT_PERIODS)
    if directive.sort_direction not in SORT_DIRECTIONS:
        raise ApiError.validation("sortDirection", directive.sort_direction, SORT_DIRECTIONS)
    if not directive.convert.isalpha():
        raise ApiError.validation("convert", directive.convert, "a currency code such as USD")
    validate_listing_filters(directive.listing_filters)


def validate_listing_filters(filters: Dict[str, Any]) -> None:
    for key in filters:
        if key not in LISTING_FILTERS:
            raise ApiError.validation(key, filters[key], LISTING_FILTERS)
    for low_key, high_key in LISTING_RANGES:
        low, high = filters.get(low_key), filters.get(high_key)
        if low is not None and high is not None and low > high:
            raise ApiError.validation(low_key, low, f"a value <= {high_key} ({high})")
    kind = filters.get("cryptocurrency_type")
    if kind is not None and kind not in CRYPTOCURRENCY_TYPES:
        raise ApiError.validation("cryptocurrency_type", kind, CRYPTOCURRENCY_TYPES)


def resolve_period(directive: QueryDirective) -> Optional[str]:
    """The window used for ordering, or None when ordering by a plain field.

    A filter always wins over sortBy: a window filter is its own period, and
    trending/gainers rank by sortPeriod.
    """
    if directive.filter in PERCENT_WINDOWS:
        return directive.filter
    if directive.filter in CATEGORY_FILTERS:
        return directive.sort_period
    if directive.sort_by == "percent_change":
        return directive.sort_period
    return None


def resolve_direction(directive: QueryDirective) -> str:
    if directive.filter in CATEGORY_FILTERS:
        return "desc"
    return directive.sort_direction


@dataclass(frozen=True)
class UpstreamQuery:
    params: Dict[str, Any] = field(default_factory=dict)
    start: int = 1
    period: Optional[str] = None
    sort_field: str = DEFAULT_SORT_BY
    direction: str = DEFAULT_SORT_DIRECTION
    positive_only: bool = False
    # True when the upstream sort is only a stand-in for the requested window.
    approximated: bool = False


def build_upstream_query(directive: QueryDirective) -> UpstreamQuery:
    validate_directive(directive)

    period = resolve_period(directive)
    direction = resolve_direction(directive)

    if period is not None:
        upstream_window = UPSTREAM_PROXY_WINDOW.get(period, period)
        sort = f"percent_change_{upstream_window}"
        sort_field = "percent_change"
    else:
        sort = directive.sort_by
        sort_field = directive.sort_by

    params = {
        "start": directive.start,
        "limit": directive.limit,
        "convert": directive.convert,
        "sort": sort,
        "sort_dir": direction,
    }
    params.update(directive.listing_filters)

    return UpstreamQuery(
        params=params,
        start=directive.start,
        period=period,
        sort_field=sort_field,
        direction=direction,
        positive_only=directive.filter == "gainers",
        approximated=period in DERIVED_WINDOWS,
    )
