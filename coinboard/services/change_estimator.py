"""Best-effort percent changes for windows the provider does not publish.

The quotes endpoint only reports 1h and 24h (and longer) changes. The 5m and
6h figures are linear approximations from those: ``5m = 1h / 12`` and
``6h = 24h / 4``. They are not observations and can be far off around a
reversal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from pydantic import ValidationError

from coinboard.config.periods import DERIVED_WINDOWS
from coinboard.config.settings import Settings
from coinboard.schemas.market import RawQuote
from coinboard.services import coinmarketcap
from coinboard.services.errors import UpstreamError

logger = logging.getLogger("coinboard.estimator")


def derive(window: str, source_value: float) -> float:
    _, divisor = DERIVED_WINDOWS[window]
    return source_value / divisor


@dataclass(frozen=True)
class ChangeEstimate:
    percent_change_5m: float
    percent_change_1h: float
    percent_change_6h: float
    percent_change_24h: float

    @classmethod
    def from_changes(cls, change_1h: Optional[float], change_24h: Optional[float]) -> "ChangeEstimate":
        h1 = change_1h or 0.0
        h24 = change_24h or 0.0
        return cls(
            percent_change_5m=derive("5m", h1),
            percent_change_1h=h1,
            percent_change_6h=derive("6h", h24),
            percent_change_24h=h24,
        )

    @classmethod
    def from_quote(cls, quote: RawQuote) -> "ChangeEstimate":
        return cls.from_changes(quote.percent_change_1h, quote.percent_change_24h)

    def by_window(self) -> Dict[str, float]:
        return {
            "5m": self.percent_change_5m,
            "1h": self.percent_change_1h,
            "6h": self.percent_change_6h,
            "24h": self.percent_change_24h,
        }


async def estimate_changes(
    symbols: Iterable[str],
    settings: Settings,
    convert: str | None = None,
) -> Dict[str, ChangeEstimate]:
    """One batched quotes call for ``symbols``; ``{}`` on any failure."""

    unique = list(dict.fromkeys(s for s in symbols if s))
    if not unique:
        return {}

    currency = convert or settings.CMC_CONVERT
    try:
        records = await coinmarketcap.fetch_quotes(unique, settings, convert=currency)
        return {
            symbol: ChangeEstimate.from_quote(record.quote_for(currency))
            for symbol, record in records.items()
        }
    except (UpstreamError, ValidationError, KeyError, TypeError, ValueError) as exc:
        logger.warning(
            "change estimates unavailable, falling back to listing figures | symbols=%d | %s",
            len(unique),
            exc,
        )
        return {}
