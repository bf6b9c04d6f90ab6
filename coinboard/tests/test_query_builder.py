from __future__ import annotations

import pytest

from coinboard.services.errors import ApiError
from coinboard.services.query_builder import (
    QueryDirective,
    build_upstream_query,
    resolve_period,
    validate_directive,
)


def test_default_directive_sorts_by_market_cap():
    query = build_upstream_query(QueryDirective())
    assert query.params == {
        "start": 1,
        "limit": 10,
        "convert": "USD",
        "sort": "market_cap",
        "sort_dir": "desc",
    }
    assert query.period is None
    assert query.positive_only is False


@pytest.mark.parametrize(
    "page, limit, start",
    [(1, 10, 1), (2, 5, 6), (3, 100, 201), (7, 1, 7)],
)
def test_start_offset_is_one_based(page, limit, start):
    query = build_upstream_query(QueryDirective(page=page, limit=limit))
    assert query.params["start"] == start
    assert query.start == start


@pytest.mark.parametrize("period", ["1h", "24h", "7d", "30d"])
def test_percent_change_sort_uses_provider_field(period):
    directive = QueryDirective(sort_by="percent_change", sort_period=period, sort_direction="asc")
    query = build_upstream_query(directive)
    assert query.params["sort"] == f"percent_change_{period}"
    assert query.params["sort_dir"] == "asc"
    assert query.period == period


@pytest.mark.parametrize("window", ["5m", "6h"])
def test_derived_window_filter_uses_24h_proxy(window):
    query = build_upstream_query(QueryDirective(filter=window, sort_direction="asc"))
    assert query.params["sort"] == "percent_change_24h"
    assert query.params["sort_dir"] == "asc"
    assert query.period == window
    assert query.approximated is True


def test_filter_overrides_sort_by():
    directive = QueryDirective(filter="1h", sort_by="price")
    query = build_upstream_query(directive)
    assert query.params["sort"] == "percent_change_1h"
    assert query.sort_field == "percent_change"
    assert resolve_period(directive) == "1h"


def test_trending_forces_descending_on_sort_period():
    query = build_upstream_query(QueryDirective(filter="trending", sort_period="7d", sort_direction="asc"))
    assert query.params["sort"] == "percent_change_7d"
    assert query.params["sort_dir"] == "desc"
    assert query.positive_only is False


def test_gainers_sorts_descending_and_filters_locally():
    query = build_upstream_query(QueryDirective(filter="gainers", sort_direction="asc"))
    assert query.params["sort"] == "percent_change_24h"
    assert query.params["sort_dir"] == "desc"
    assert query.positive_only is True
    # The provider has no positivity primitive; nothing like a min bound is sent.
    assert not any(key.endswith("_min") for key in query.params)


@pytest.mark.parametrize(
    "directive, parameter",
    [
        (QueryDirective(page=0), "page"),
        (QueryDirective(limit=0), "limit"),
        (QueryDirective(limit=101), "limit"),
        (QueryDirective(filter="losers"), "filter"),
        (QueryDirective(sort_by="name"), "sortBy"),
        (QueryDirective(sort_period="5m"), "sortPeriod"),
        (QueryDirective(sort_direction="up"), "sortDirection"),
        (QueryDirective(convert="US1"), "convert"),
    ],
)
def test_validation_names_offending_parameter(directive, parameter):
    with pytest.raises(ApiError) as excinfo:
        validate_directive(directive)
    err = excinfo.value
    assert err.status_code == 400
    assert err.code == "VALIDATION"
    assert err.details["parameter"] == parameter
    assert parameter in err.message


def test_validation_lists_allowed_filters():
    with pytest.raises(ApiError) as excinfo:
        build_upstream_query(QueryDirective(filter="moon"))
    allowed = excinfo.value.details["allowed"]
    assert allowed == ["trending", "gainers", "5m", "1h", "6h", "24h", "7d", "30d"]


def test_from_query_normalises_blank_and_case():
    directive = QueryDirective.from_query(
        page=2,
        limit=20,
        filter="  ",
        sort_by="PRICE",
        sort_period="",
        sort_direction="ASC",
        search="  bit ",
        convert="eur",
    )
    assert directive.filter is None
    assert directive.sort_by == "price"
    assert directive.sort_period == "24h"
    assert directive.sort_direction == "asc"
    assert directive.search == "bit"
    assert directive.convert == "EUR"


def test_listing_filters_are_forwarded_only_when_set():
    directive = QueryDirective.from_query(
        listing_filters={"price_min": 0.5, "price_max": None, "tag": " DeFi ", "cryptocurrency_type": ""},
    )
    assert directive.listing_filters == {"price_min": 0.5, "tag": "defi"}

    params = build_upstream_query(directive).params
    assert params["price_min"] == 0.5
    assert params["tag"] == "defi"
    assert "price_max" not in params
    assert "cryptocurrency_type" not in params


@pytest.mark.parametrize(
    "filters, parameter",
    [
        ({"market_cap_min": 10.0, "market_cap_max": 1.0}, "market_cap_min"),
        ({"percent_change_24h_min": 5.0, "percent_change_24h_max": -5.0}, "percent_change_24h_min"),
        ({"cryptocurrency_type": "nft"}, "cryptocurrency_type"),
        ({"rank_min": 1}, "rank_min"),
    ],
)
def test_listing_filters_are_validated(filters, parameter):
    with pytest.raises(ApiError) as excinfo:
        validate_directive(QueryDirective(listing_filters=filters))
    assert excinfo.value.status_code == 400
    assert excinfo.value.details["parameter"] == parameter


def test_equal_range_bounds_are_accepted():
    validate_directive(QueryDirective(listing_filters={"price_min": 2.0, "price_max": 2.0}))
