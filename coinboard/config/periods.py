"""Lookup tables shared by the query builder and the master pipeline."""

# Every percent-change window a record exposes, shortest first.
PERCENT_WINDOWS = ("5m", "1h", "6h", "24h", "7d", "30d")

# Windows we approximate from a native one: window -> (source window, divisor).
# 5m ~ 1h / 12 and 6h ~ 24h / 4 assume a constant rate of change.
DERIVED_WINDOWS = {
    "5m": ("1h", 12),
    "6h": ("24h", 4),
}

# Native field the upstream sorts on when asked for a derived window.
UPSTREAM_PROXY_WINDOW = {
    "5m": "24h",
    "6h": "24h",
}

CATEGORY_FILTERS = ("trending", "gainers")
FILTERS = CATEGORY_FILTERS + PERCENT_WINDOWS

SORT_FIELDS = ("market_cap", "price", "volume_24h", "percent_change")
SORT_PERIODS = ("1h", "24h", "7d", "30d")
SORT_DIRECTIONS = ("asc", "desc")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MIN_LIMIT = 1
MAX_LIMIT = 100

DEFAULT_SORT_BY = "market_cap"
DEFAULT_SORT_PERIOD = "24h"
DEFAULT_SORT_DIRECTION = "desc"

LOGO_URL_TEMPLATE = "https://s2.coinmarketcap.com/static/img/coins/64x64/{id}.png"

# Filters the listings endpoint applies itself; forwarded as given.
LISTING_RANGES = (
    ("price_min", "price_max"),
    ("market_cap_min", "market_cap_max"),
    ("volume_24h_min", "volume_24h_max"),
    ("percent_change_24h_min", "percent_change_24h_max"),
)
LISTING_FILTERS = tuple(key for pair in LISTING_RANGES for key in pair) + ("cryptocurrency_type", "tag")
CRYPTOCURRENCY_TYPES = ("all", "coins", "tokens")
