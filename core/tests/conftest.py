from __future__ import annotations

from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

ADMIN_PASSWORD = "correct horse battery staple"


class FakeClock:
    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 1, 12, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sparkmindz_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.setenv("SPARKMINDZ_HOME", str(tmp_path))
    monkeypatch.setenv("ADMIN_PASSWORD", ADMIN_PASSWORD)
    for name in ("NODE_ENV", "SPARKMINDZ_ENV", "SESSION_SECRET", "PORT", "SPARKMINDZ_BIND"):
        monkeypatch.delenv(name, raising=False)
    return tmp_path
