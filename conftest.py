import pytest
from django.core.cache import cache


@pytest.fixture(autouse=True)
def _clear_cache():
    # Rate limiting and login lockout counters live in the cache
    cache.clear()
    yield
    cache.clear()
