"""Pytest configuration and shared fixtures."""

from datetime import datetime

import pytest
from rest_framework.test import APIClient

from scheduling.stores.memory_store import InMemorySubscriptionStore
from tests.factories import MONDAY_MORNING, Clock, RecordingSink, ScriptedGateway


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def now() -> datetime:
    return MONDAY_MORNING


@pytest.fixture
def clock(now) -> Clock:
    return Clock(now)


@pytest.fixture
def store() -> InMemorySubscriptionStore:
    return InMemorySubscriptionStore()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def gateway() -> ScriptedGateway:
    return ScriptedGateway()
