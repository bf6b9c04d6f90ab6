"""The master query: one upstream page, enriched, narrowed, sorted and paged.

Stages run in a fixed order and never re-fetch:

1. validate the directive and build upstream parameters
2. fetch one page of listings sized to ``limit``
3. enrich with change estimates and transform to canonical records
4. drop non-positive records for ``filter=gainers``
5. keep records whose name or symbol contains the search term
6. stable sort on the resolved key, honouring the resolved direction
7. compute pagination metadata

When stage 4 or 5 ran, ``total_items`` is the size of what is left; the
upstream's ``total_count`` only describes the unfiltered listing.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Sequence

from coinboard.config.settings import Settings
from coinboard.schemas.market import CanonicalRecord, PaginationMeta
from coinboard.services import coinmarketcap
from coinboard.services.change_estimator import estimate_changes
from coinboard.services.errors import ApiError, UpstreamError
from coinboard.services.query_builder import QueryDirective, UpstreamQuery, build_upstream_query
from coinboard.services.transformer import transform_listing, transform_listings

logger = logging.getLogger("coinboard.master")


@dataclass
class MasterResult:
    data: List[CanonicalRecord]
    pagination: PaginationMeta
    period: Optional[str] = None
    sort_field: str = "market_cap"


def keep_gainers(records: Sequence[CanonicalRecord], period: str) -> List[CanonicalRecord]:
    return [r for r in records if r.raw_percent_change[period] > 0]


def search_records(records: Sequence[CanonicalRecord], term: str) -> List[CanonicalRecord]:
    needle = term.strip().lower()
    if not needle:
        return list(records)
    return [r for r in records if needle in r.name.lower() or needle in r.symbol.lower()]


def sort_records(records: Sequence[CanonicalRecord], query: UpstreamQuery) -> List[CanonicalRecord]:
    if query.sort_field == "percent_change":
        period = query.period

        def key(r: CanonicalRecord) -> float:
            return r.raw_percent_change[period]
    else:
        field = query.sort_field

        def key(r: CanonicalRecord) -> float:
            return getattr(r, field)

    # sorted() is stable with reverse=True too, so ties keep upstream order.
    return sorted(records, key=key, reverse=query.direction == "desc")


def reindex(records: Sequence[CanonicalRecord], start: int) -> List[CanonicalRecord]:
    return [r.model_copy(update={"index": start + i}) for i, r in enumerate(records)]


def build_pagination(page: int, limit: int, total_items: int) -> PaginationMeta:
    total_pages = math.ceil(total_items / limit) if total_items > 0 else 0
    return PaginationMeta(
        total_items=total_items,
        total_pages=total_pages,
        current_page=page,
        page_size=limit,
        has_next_page=page < total_pages,
        has_previous_page=page > 1 and total_pages > 0,
    )


async def run_master_query(directive: QueryDirective, settings: Settings) -> MasterResult:
    query = build_upstream_query(directive)

    upstream = await coinmarketcap.fetch_listings(query.params, settings)
    listings = upstream.data[: directive.limit]

    if not listings:
        return MasterResult(
            data=[],
            pagination=build_pagination(directive.page, directive.limit, 0),
            period=query.period,
            sort_field=query.sort_field,
        )

    estimates = await estimate_changes(
        [listing.symbol for listing in listings],
        settings,
        convert=directive.convert,
    )
    records = transform_listings(listings, estimates, query.start, directive.convert)

    narrowed = False
    if query.positive_only:
        records = keep_gainers(records, query.period)
        narrowed = True
    term = directive.search.strip()
    if term:
        records = search_records(records, term)
        narrowed = True

    records = reindex(sort_records(records, query), query.start)

    if narrowed:
        total_items = len(records)
    elif upstream.status.total_count is not None:
        total_items = upstream.status.total_count
    else:
        total_items = query.start - 1 + len(listings)

    logger.debug(
        "master query | page=%d limit=%d filter=%s period=%s approximated=%s upstream=%d served=%d",
        directive.page,
        directive.limit,
        directive.filter,
        query.period,
        query.approximated,
        len(listings),
        len(records),
    )

    return MasterResult(
        data=records,
        pagination=build_pagination(directive.page, directive.limit, total_items),
        period=query.period,
        sort_field=query.sort_field,
    )


async def lookup_symbol(symbol: str, settings: Settings, convert: str | None = None) -> CanonicalRecord:
    wanted = symbol.strip().upper()
    if not wanted or not wanted.isalnum():
        raise ApiError.validation("symbol", symbol, "an alphanumeric ticker such as BTC")
    currency = (convert or settings.CMC_CONVERT).upper()

    try:
        records = await coinmarketcap.fetch_quotes([wanted], settings, convert=currency)
    except UpstreamError as exc:
        # The provider answers 400 for symbols it does not know.
        if exc.upstream_status == 400:
            raise ApiError.not_found(f"Cryptocurrency with symbol {wanted} not found") from exc
        raise

    record = records.get(wanted)
    if record is None:
        raise ApiError.not_found(f"Cryptocurrency with symbol {wanted} not found")
    return transform_listing(record, None, 1, currency)
