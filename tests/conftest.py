# tests/conftest.py
import pytest

from flipwise.adapters.clock import FixedClock
from flipwise.adapters.memory_repo import InMemoryAnalysisRepository, InMemoryPropertyStore

from .fixtures.sales import AS_OF, sales_book, subject_property


@pytest.fixture
def clock():
    return FixedClock(AS_OF)


@pytest.fixture
def subject():
    return subject_property()


@pytest.fixture
def store():
    return InMemoryPropertyStore(sales_book())


@pytest.fixture
def analysis_repo():
    return InMemoryAnalysisRepository()
