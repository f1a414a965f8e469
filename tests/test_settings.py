from __future__ import annotations

import importlib

import pytest

import wkrscan.settings as settings

_VARIABLES = (
    "WKRSCAN_MAX_FILE_MB",
    "WKRSCAN_MEMORY_THRESHOLD",
    "WKRSCAN_MEMORY_LIMIT_MB",
    "WKRSCAN_BATCH_SIZE",
    "WKRSCAN_SKIP_SCHEMA_VALIDATION",
)


@pytest.fixture(autouse=True)
def reset_settings(monkeypatch):
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    yield
    for name in _VARIABLES:
        monkeypatch.delenv(name, raising=False)
    importlib.reload(settings)


def test_defaults():
    reloaded = importlib.reload(settings)
    assert reloaded.MAX_FILE_BYTES == 100 * 1024 * 1024
    assert reloaded.MEMORY_THRESHOLD == 80.0
    assert reloaded.MEMORY_LIMIT_BYTES is None
    assert reloaded.BATCH_SIZE == 1000
    assert reloaded.SKIP_SCHEMA_VALIDATION is False


def test_overrides(monkeypatch):
    monkeypatch.setenv("WKRSCAN_MAX_FILE_MB", "5")
    monkeypatch.setenv("WKRSCAN_MEMORY_THRESHOLD", "65,5")
    monkeypatch.setenv("WKRSCAN_MEMORY_LIMIT_MB", "256")
    monkeypatch.setenv("WKRSCAN_BATCH_SIZE", "50")
    monkeypatch.setenv("WKRSCAN_SKIP_SCHEMA_VALIDATION", "ja")
    reloaded = importlib.reload(settings)
    assert reloaded.MAX_FILE_BYTES == 5 * 1024 * 1024
    assert reloaded.MEMORY_THRESHOLD == 65.5
    assert reloaded.MEMORY_LIMIT_BYTES == 256 * 1024 * 1024
    assert reloaded.BATCH_SIZE == 50
    assert reloaded.SKIP_SCHEMA_VALIDATION is True


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("WKRSCAN_MAX_FILE_MB", "abc")
    monkeypatch.setenv("WKRSCAN_MEMORY_THRESHOLD", "150")
    monkeypatch.setenv("WKRSCAN_BATCH_SIZE", "-3")
    reloaded = importlib.reload(settings)
    assert reloaded.MAX_FILE_BYTES == 100 * 1024 * 1024
    assert reloaded.MEMORY_THRESHOLD == 80.0
    assert reloaded.BATCH_SIZE == 1000
