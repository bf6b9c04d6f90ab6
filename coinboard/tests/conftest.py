from __future__ import annotations

import pytest

from coinboard.services import coinmarketcap
from coinboard.tests.factories import FakeProvider, make_settings


@pytest.fixture()
def settings():
    return make_settings()


@pytest.fixture()
def provider(monkeypatch):
    fake = FakeProvider()
    monkeypatch.setattr(coinmarketcap, "client_factory", fake.client_factory())
    return fake
