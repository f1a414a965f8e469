"""Verktøy for sen import av tunge biblioteker."""

from __future__ import annotations

from importlib import import_module
from types import ModuleType
from typing import TYPE_CHECKING, Any, List, Optional, cast

if TYPE_CHECKING:  # pragma: no cover - kun for typekontroll
    import pandas as pd


class _LazyModule(ModuleType):
    """Proxy som importerer modulen først ved første attributtoppslag."""

    def __init__(self, module_name: str) -> None:
        super().__init__(module_name)
        self._module_name = module_name
        self._module: Optional[ModuleType] = None

    def _load(self) -> ModuleType:
        if self._module is None:
            self._module = import_module(self._module_name)
        return self._module

    def __getattr__(self, item: str) -> Any:
        return getattr(self._load(), item)

    def __dir__(self) -> List[str]:
        return dir(self._load())


_PANDAS_PROXY: Optional[_LazyModule] = None


def lazy_pandas() -> "pd":
    """Returnerer en proxy som importerer ``pandas`` først når den brukes."""

    global _PANDAS_PROXY
    if _PANDAS_PROXY is None:
        _PANDAS_PROXY = _LazyModule("pandas")
    return cast("pd", _PANDAS_PROXY)


__all__ = ["lazy_pandas"]
