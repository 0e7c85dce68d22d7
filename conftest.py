from __future__ import annotations

import os
from pathlib import Path

import pytest


_LIVE_API_PATHS = ("src/eduadmin/integrations/tests/test_live_admin_api.py",)


def _live_api_enabled() -> bool:
    flag = os.getenv("EDUADMIN_PYTEST_LIVE")
    if flag:
        return flag.strip().lower() in {"1", "true", "yes", "on"}
    return False


def pytest_ignore_collect(collection_path: Path, config: pytest.Config) -> bool:  # type: ignore[override]
    if _live_api_enabled():
        return False
    path_str = collection_path.as_posix()
    return any(path_str.endswith(marker) for marker in _LIVE_API_PATHS)


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line(
        "markers",
        "live_api: needs a reachable admin API (enable with EDUADMIN_PYTEST_LIVE=1)",
    )


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch):
    from eduadmin.config.settings import get_settings

    monkeypatch.delenv("EDUADMIN_DATA_SCOPE_RECLICK_CLEARS", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
