from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query

from coinboard.config.periods import (
    DEFAULT_LIMIT,
    DEFAULT_PAGE,
    DEFAULT_SORT_PERIOD,
    PERCENT_WINDOWS,
)
from coinboard.config.settings import Settings, get_settings
from coinboard.schemas.market import MasterResponse, RecordResponse, SortEcho, StatusBlock
from coinboard.services.errors import ApiError
from coinboard.services.master_query import lookup_symbol, run_master_query
from coinboard.services.query_builder import QueryDirective, resolve_direction
from coinboard.utils.time import utcnow_iso

router = APIRouter(prefix="/api", tags=["market"])


def _ok_status() -> StatusBlock:
    return StatusBlock(timestamp=utcnow_iso(), error_code=0, error_message=None)


async def _serve(directive: QueryDirective, settings: Settings) -> MasterResponse:
    result = await run_master_query(directive, settings)
    return MasterResponse(
        status=_ok_status(),
        data=result.data,
        pagination=result.pagination,
        filter=directive.filter,
        sort=SortEcho(
            by=result.sort_field,
            period=result.period or directive.sort_period,
            direction=resolve_direction(directive),
        ),
        search=directive.search or None,
    )


@router.get("/master", response_model=MasterResponse)
async def get_master(
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    filter: Optional[str] = None,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_period: Optional[str] = Query(None, alias="sortPeriod"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    search: Optional[str] = None,
    convert: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    """
    Filtering, search, sorting and pagination in one call.
    Example: /api/master?page=1&limit=10&filter=gainers&sortPeriod=24h&search=bit
    """
    directive = QueryDirective.from_query(
        page=page,
        limit=limit,
        filter=filter,
        sort_by=sort_by,
        sort_period=sort_period,
        sort_direction=sort_direction,
        search=search,
        convert=convert,
        default_convert=settings.CMC_CONVERT,
    )
    return await _serve(directive, settings)


@router.get("/cryptocurrencies", response_model=MasterResponse)
async def get_cryptocurrencies(
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_period: Optional[str] = Query(None, alias="sortPeriod"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    search: Optional[str] = None,
    convert: Optional[str] = None,
    price_min: Optional[float] = None,
    price_max: Optional[float] = None,
    market_cap_min: Optional[float] = None,
    market_cap_max: Optional[float] = None,
    volume_24h_min: Optional[float] = None,
    volume_24h_max: Optional[float] = None,
    percent_change_24h_min: Optional[float] = None,
    percent_change_24h_max: Optional[float] = None,
    cryptocurrency_type: Optional[str] = None,
    tag: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    """
    Plain listings; range and tag filters are applied by the provider.
    Example: /api/cryptocurrencies?price_min=1&market_cap_min=1000000000&tag=defi
    """
    directive = QueryDirective.from_query(
        page=page,
        limit=limit,
        sort_by=sort_by,
        sort_period=sort_period,
        sort_direction=sort_direction,
        search=search,
        convert=convert,
        default_convert=settings.CMC_CONVERT,
        listing_filters={
            "price_min": price_min,
            "price_max": price_max,
            "market_cap_min": market_cap_min,
            "market_cap_max": market_cap_max,
            "volume_24h_min": volume_24h_min,
            "volume_24h_max": volume_24h_max,
            "percent_change_24h_min": percent_change_24h_min,
            "percent_change_24h_max": percent_change_24h_max,
            "cryptocurrency_type": cryptocurrency_type,
            "tag": tag,
        },
    )
    return await _serve(directive, settings)


@router.get("/trending", response_model=MasterResponse)
async def get_trending(
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_period: str = Query(DEFAULT_SORT_PERIOD, alias="sortPeriod"),
    convert: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    directive = QueryDirective.from_query(
        page=page,
        limit=limit,
        filter="trending",
        sort_period=sort_period,
        convert=convert,
        default_convert=settings.CMC_CONVERT,
    )
    return await _serve(directive, settings)


@router.get("/gainers", response_model=MasterResponse)
async def get_gainers(
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_period: str = Query(DEFAULT_SORT_PERIOD, alias="sortPeriod"),
    convert: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    directive = QueryDirective.from_query(
        page=page,
        limit=limit,
        filter="gainers",
        sort_period=sort_period,
        convert=convert,
        default_convert=settings.CMC_CONVERT,
    )
    return await _serve(directive, settings)


@router.get("/time-period/{period}", response_model=MasterResponse)
async def get_by_time_period(
    period: str,
    page: int = DEFAULT_PAGE,
    limit: int = DEFAULT_LIMIT,
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    convert: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    window = period.strip().lower()
    if window not in PERCENT_WINDOWS:
        raise ApiError.validation("period", period, PERCENT_WINDOWS)

    directive = QueryDirective.from_query(
        page=page,
        limit=limit,
        filter=window,
        sort_direction=sort_direction,
        convert=convert,
        default_convert=settings.CMC_CONVERT,
    )
    return await _serve(directive, settings)


@router.get("/cryptocurrencies/{symbol}", response_model=RecordResponse)
async def get_cryptocurrency(
    symbol: str,
    convert: Optional[str] = None,
    settings: Settings = Depends(get_settings),
):
    record = await lookup_symbol(symbol, settings, convert=convert)
    return RecordResponse(status=_ok_status(), data=record)
