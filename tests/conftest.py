"""Shared fixtures: a chainable stand-in for the Supabase client."""
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest


class FakeQuery:
    """Records every builder call; execute() returns the table's canned rows."""

    def __init__(self, client, table):
        self.client = client
        self.table = table
        self.calls = []

    def __getattr__(self, name):
        def _call(*args, **kwargs):
            self.calls.append((name, args, kwargs))
            return self
        return _call

    def execute(self):
        self.client.executed.append(self)
        if self.table in self.client.failures:
            raise self.client.failures[self.table]
        return SimpleNamespace(data=self.client.rows.get(self.table, []))

    def called(self, name):
        return [args for n, args, _ in self.calls if n == name]


class FakeSupabase:
    def __init__(self, rows=None):
        self.rows = rows or {}
        self.failures = {}
        self.executed = []

    def table(self, name):
        return FakeQuery(self, name)


@pytest.fixture
def fake_supabase():
    return FakeSupabase()


@pytest.fixture
def london():
    return ZoneInfo("Europe/London")


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch, tmp_path):
    for name in ("SUPABASE_URL", "SUPABASE_SERVICE_ROLE_KEY", "SUPABASE_SERVICE_KEY",
                 "HABITGRID_TZ", "TZ", "HABITGRID_USER_ID"):
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(name.lower(), raising=False)
    monkeypatch.setenv("HABITGRID_STATE_FILE", str(tmp_path / "display_times.json"))
    monkeypatch.chdir(tmp_path)
