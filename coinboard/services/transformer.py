from __future__ import annotations

import math
from typing import Dict, List, Mapping, Sequence

from coinboard.config.periods import LOGO_URL_TEMPLATE, PERCENT_WINDOWS
from coinboard.schemas.market import CanonicalRecord, RawListing
from coinboard.services.change_estimator import ChangeEstimate
from coinboard.services.formatters import format_currency, format_percentage, format_price


def _num(value: float | None) -> float:
    if value is None or not math.isfinite(value):
        return 0.0
    return float(value)


def raw_changes(listing: RawListing, estimate: ChangeEstimate | None, convert: str) -> Dict[str, float]:
    """Percent changes for every window, preferring the estimate when present."""
    quote = listing.quote_for(convert)
    if estimate is None:
        estimate = ChangeEstimate.from_quote(quote)

    changes = estimate.by_window()
    changes["7d"] = _num(quote.percent_change_7d)
    changes["30d"] = _num(quote.percent_change_30d)
    return {window: changes[window] for window in PERCENT_WINDOWS}


def transform_listing(
    listing: RawListing,
    estimate: ChangeEstimate | None,
    index: int,
    convert: str,
) -> CanonicalRecord:
    quote = listing.quote_for(convert)
    price = _num(quote.price)
    market_cap = _num(quote.market_cap)
    volume = _num(quote.volume_24h)
    supply = _num(listing.circulating_supply)
    changes = raw_changes(listing, estimate, convert)

    return CanonicalRecord(
        id=listing.id,
        name=listing.name,
        symbol=listing.symbol,
        slug=listing.slug,
        logo=LOGO_URL_TEMPLATE.format(id=listing.id),
        price=price,
        formatted_price=format_price(price),
        market_cap=market_cap,
        formatted_market_cap=format_currency(market_cap),
        volume_24h=volume,
        formatted_volume_24h=format_currency(volume),
        circulating_supply=supply,
        formatted_supply=format_currency(supply),
        total_supply=listing.total_supply,
        max_supply=listing.max_supply,
        percent_change={w: format_percentage(v) for w, v in changes.items()},
        raw_percent_change=changes,
        index=index,
    )


def transform_listings(
    listings: Sequence[RawListing],
    estimates: Mapping[str, ChangeEstimate],
    start_index: int,
    convert: str = "USD",
) -> List[CanonicalRecord]:
    """Map raw listings to canonical records, keeping input order.

    A symbol missing from ``estimates`` gets the same 5m/6h approximations
    computed from the listing's own quote.
    """
    return [
        transform_listing(listing, estimates.get(listing.symbol), start_index + position, convert)
        for position, listing in enumerate(listings)
    ]
