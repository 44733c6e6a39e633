"""Pytest configuration and shared fixtures."""

import random

import pytest

from app.models.catalog import Catalog
from app.services.session_store import MemoryBlobStore
from tests.helpers import FakeClock, make_catalog


@pytest.fixture
def catalog() -> Catalog:
    return make_catalog()


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def store() -> MemoryBlobStore:
    return MemoryBlobStore()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
