"""wkrscan: innlesing av XAF-revisjonsfiler og WKR-klassifisering."""

from __future__ import annotations

from importlib import import_module
from typing import Any

from .constants import APP_TITLE, XAF_NAMESPACE

__all__ = [
    "APP_TITLE",
    "XAF_NAMESPACE",
    "cli",
    "core",
    "filters",
    "pipeline",
    "reporting",
    "xaf",
]

_MODULE_MAP = {
    "cli": "wkrscan.cli",
    "core": "wkrscan.core",
    "filters": "wkrscan.filters",
    "pipeline": "wkrscan.pipeline",
    "reporting": "wkrscan.reporting",
    "xaf": "wkrscan.xaf",
}


def __getattr__(name: str) -> Any:
    """Last moduler først når de faktisk brukes."""

    if name in _MODULE_MAP:
        module = import_module(_MODULE_MAP[name])
        globals()[name] = module
        return module
    raise AttributeError(f"module 'wkrscan' has no attribute {name!r}")


def __dir__() -> list[str]:
    return sorted(set(__all__ + list(globals().keys())))
