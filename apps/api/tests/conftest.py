import pytest

from config import settings
from main import app
from routers import rate_limit
from services import result_cache


@pytest.fixture(autouse=True)
def reset_local_rate_limit_counters():
    """Keep in-memory rate-limit state isolated between tests."""
    previous = getattr(app.state, "disable_rate_limits", False)
    app.state.disable_rate_limits = True
    rate_limit._local_counters.clear()
    yield
    rate_limit._local_counters.clear()
    app.state.disable_rate_limits = previous


@pytest.fixture(autouse=True)
def local_result_cache(monkeypatch):
    """No Redis in tests: result caching runs on the in-process store."""
    monkeypatch.setattr(settings, "REDIS_URL", "")
    result_cache.clear_local_cache()
    yield
    result_cache.clear_local_cache()
