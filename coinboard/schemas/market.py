"""Pydantic models for upstream payloads and the responses we serve."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


# ---------- Upstream (CoinMarketCap) ----------

class RawQuote(BaseModel):
    """One currency block of an upstream record; any figure may be null."""

    price: Optional[float] = None
    volume_24h: Optional[float] = None
    market_cap: Optional[float] = None
    percent_change_1h: Optional[float] = None
    percent_change_24h: Optional[float] = None
    percent_change_7d: Optional[float] = None
    percent_change_30d: Optional[float] = None


class RawListing(BaseModel):
    id: int
    name: str
    symbol: str
    slug: str = ""
    circulating_supply: Optional[float] = None
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    quote: Dict[str, RawQuote] = Field(default_factory=dict)

    def quote_for(self, convert: str) -> RawQuote:
        if convert in self.quote:
            return self.quote[convert]
        if self.quote:
            return next(iter(self.quote.values()))
        return RawQuote()


class UpstreamStatus(BaseModel):
    timestamp: Optional[str] = None
    error_code: int = 0
    error_message: Optional[str] = None
    total_count: Optional[int] = None


class ListingsPage(BaseModel):
    status: UpstreamStatus = Field(default_factory=UpstreamStatus)
    data: List[RawListing] = Field(default_factory=list)


# ---------- Served ----------

class CanonicalRecord(BaseModel):
    """A listing as served: numeric fields, display strings and both change blocks."""

    id: int
    name: str
    symbol: str
    slug: str
    logo: str
    price: float
    formatted_price: str
    market_cap: float
    formatted_market_cap: str
    volume_24h: float
    formatted_volume_24h: str
    circulating_supply: float
    formatted_supply: str
    total_supply: Optional[float] = None
    max_supply: Optional[float] = None
    percent_change: Dict[str, int]
    raw_percent_change: Dict[str, float]
    index: int


class PaginationMeta(BaseModel):
    total_items: int
    total_pages: int
    current_page: int
    page_size: int
    has_next_page: bool
    has_previous_page: bool


class StatusBlock(BaseModel):
    timestamp: str
    error_code: int = 0
    error_message: Optional[str] = None


class SortEcho(BaseModel):
    by: str
    period: str
    direction: str


class MasterResponse(BaseModel):
    status: StatusBlock
    data: List[CanonicalRecord]
    pagination: PaginationMeta
    filter: Optional[str] = None
    sort: SortEcho
    search: Optional[str] = None


class RecordResponse(BaseModel):
    status: StatusBlock
    data: CanonicalRecord
