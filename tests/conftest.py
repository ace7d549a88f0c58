import sys
import os

import pytest

# Ensure repo root on sys.path for imports like `app...`
ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if ROOT not in sys.path:
    sys.path.insert(0, ROOT)
TESTS = os.path.dirname(__file__)
if TESTS not in sys.path:
    sys.path.insert(0, TESTS)

os.environ.setdefault("SUPABASE_URL", "https://fake.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-anon-key")
os.environ.setdefault("AUTO_ISSUE_CERTIFICATES", "false")

from fakesupabase import FakeSupabase, scenario_tables  # noqa: E402


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def fake_db(monkeypatch):
    """Scenario course loaded into a fake client that every repository will use."""
    from app.db import supabase as supabase_module

    fake = FakeSupabase(scenario_tables())

    async def _get_supabase():
        return fake

    monkeypatch.setattr(supabase_module, "get_supabase", _get_supabase)
    return fake
