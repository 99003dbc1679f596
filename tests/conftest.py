from __future__ import annotations

import sys
from pathlib import Path
from typing import Iterator

import pytest


# Ensure src/ is importable for all tests (CI and local)
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for p in (ROOT, SRC):
    if str(p) not in sys.path:
        sys.path.insert(0, str(p))

from advanced_signal.config import CONFIG_ENV_VAR, reset_default_settings  # noqa: E402
from advanced_signal.scheduler import CallbackScheduler, set_default_scheduler  # noqa: E402


def pytest_collection_modifyitems(config, items):
    """Default all tests to 'unit' unless explicitly marked otherwise.

    - If a test has @pytest.mark.integ or @pytest.mark.smoke, leave it.
    - If it already has @pytest.mark.unit, leave it.
    - Else, add @pytest.mark.unit to make unit the default selection.
    """
    for item in items:
        marks = {m.name for m in item.iter_markers()}
        if not ("integ" in marks or "smoke" in marks or "unit" in marks):
            item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep settings files from the developer's checkout out of the tests."""

    monkeypatch.delenv(CONFIG_ENV_VAR, raising=False)
    monkeypatch.chdir(tmp_path)
    reset_default_settings()
    yield
    reset_default_settings()


@pytest.fixture
def scheduler() -> Iterator[CallbackScheduler]:
    sched = CallbackScheduler(name="test-worker")
    set_default_scheduler(sched)
    yield sched
    sched.shutdown()
    set_default_scheduler(None)
