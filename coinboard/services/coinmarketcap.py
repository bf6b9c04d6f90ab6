"""Helpers for interacting with the CoinMarketCap Pro API."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

import httpx
from pydantic import ValidationError

from coinboard.config.settings import Settings
from coinboard.schemas.market import ListingsPage, RawListing
from coinboard.services.errors import UpstreamError

logger = logging.getLogger("coinboard.upstream")

LISTINGS_PATH = "/cryptocurrency/listings/latest"
QUOTES_PATH = "/cryptocurrency/quotes/latest"

_BODY_LOG_LIMIT = 500


def client_factory(settings: Settings) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.CMC_BASE_URL,
        headers={
            "X-CMC_PRO_API_KEY": settings.CMC_API_KEY,
            "Accept": "application/json",
        },
        timeout=settings.HTTP_TIMEOUT_SECONDS,
    )


async def _get_json(settings: Settings, path: str, params: Mapping[str, Any]) -> Any:
    try:
        async with client_factory(settings) as client:
            response = await client.get(path, params=dict(params))
            response.raise_for_status()
            return response.json()
    except httpx.HTTPStatusError as exc:
        body = exc.response.text[:_BODY_LOG_LIMIT]
        logger.error(
            "upstream call failed | %s | status=%s | body=%s",
            path,
            exc.response.status_code,
            body,
        )
        raise UpstreamError(
            upstream_status=exc.response.status_code,
            upstream_body=body,
        ) from exc
    except httpx.HTTPError as exc:
        logger.error("upstream unreachable | %s | %s", path, exc)
        raise UpstreamError("Unable to reach the market data provider") from exc
    except ValueError as exc:
        logger.error("upstream returned a non-JSON body | %s", path)
        raise UpstreamError("Malformed response from the market data provider") from exc


async def fetch_listings(params: Mapping[str, Any], settings: Settings) -> ListingsPage:
    """Return one page of the latest listings, parsed into models."""

    payload = await _get_json(settings, LISTINGS_PATH, params)
    try:
        return ListingsPage.model_validate(payload)
    except ValidationError as exc:
        logger.error("upstream listings payload did not validate | %s", exc.errors()[:3])
        raise UpstreamError("Malformed response from the market data provider") from exc


async def fetch_quotes(
    symbols: Iterable[str],
    settings: Settings,
    convert: str | None = None,
) -> dict[str, RawListing]:
    """Return the latest quote record per symbol, keyed by symbol."""

    params = {
        "symbol": ",".join(symbols),
        "convert": convert or settings.CMC_CONVERT,
    }
    payload = await _get_json(settings, QUOTES_PATH, params)

    data = payload.get("data") if isinstance(payload, dict) else None
    if not isinstance(data, dict):
        logger.error("upstream quotes payload has no data mapping")
        raise UpstreamError("Malformed response from the market data provider")

    try:
        return {symbol: RawListing.model_validate(record) for symbol, record in data.items()}
    except ValidationError as exc:
        logger.error("upstream quotes payload did not validate | %s", exc.errors()[:3])
        raise UpstreamError("Malformed response from the market data provider") from exc
