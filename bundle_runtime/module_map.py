from __future__ import annotations

import importlib
from types import MappingProxyType, SimpleNamespace
from typing import Any, Dict, List, Mapping, Optional

from .helpers import helpers_namespace
from .primitives import UiPrimitives


class _Unsupported:
    """Marks a module name the host knows about but will not provide."""

    _instance: Optional["_Unsupported"] = None

    def __new__(cls) -> "_Unsupported":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSUPPORTED"

    def __bool__(self) -> bool:
        return False


UNSUPPORTED = _Unsupported()

UNSUPPORTED_MODULES = (
    "qt.multimedia",
    "qt.webengine",
    "qt.opengl",
    "async_storage",
    "navigation",
)


class LazyModule:
    """Imports the real module on first attribute access."""

    def __init__(self, module_name: str) -> None:
        self._module_name = module_name
        self._module: Any = None

    @property
    def module_name(self) -> str:
        return self._module_name

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if self._module is None:
            self._module = importlib.import_module(self._module_name)
        return getattr(self._module, name)

    def __repr__(self) -> str:
        return f"LazyModule({self._module_name!r})"


class HostModuleMap:
    """Fixed table of symbolic import names bundles may resolve."""

    def __init__(self, entries: Mapping[str, Any]) -> None:
        for name in entries:
            if not isinstance(name, str) or not name.strip():
                raise ValueError(f"module map names must be non-empty strings: {name!r}")
        self._entries: Mapping[str, Any] = MappingProxyType(dict(entries))

    @property
    def entries(self) -> Mapping[str, Any]:
        return self._entries

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, name: str) -> Any:
        """Return the mapped value, ``UNSUPPORTED``, or ``None`` when unknown."""
        return self._entries.get(name)

    def is_unsupported(self, name: str) -> bool:
        return self._entries.get(name) is UNSUPPORTED

    def names(self) -> List[str]:
        return sorted(self._entries)


def default_module_map() -> HostModuleMap:
    entries: Dict[str, Any] = {
        "qt.widgets": LazyModule("PyQt6.QtWidgets"),
        "qt.core": LazyModule("PyQt6.QtCore"),
        "qt.gui": LazyModule("PyQt6.QtGui"),
        "ui": UiPrimitives(),
        "bundle.helpers": helpers_namespace(),
        "base64_decode": SimpleNamespace(default=lambda data: data),
    }
    for name in UNSUPPORTED_MODULES:
        entries[name] = UNSUPPORTED
    return HostModuleMap(entries)
