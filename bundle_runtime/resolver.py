from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .module_map import UNSUPPORTED, HostModuleMap
from .primitives import UI_PRIMITIVE_NAMES

logger = logging.getLogger(__name__)


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


def _inert(*_args: Any, **_kwargs: Any) -> None:
    return None


class InertModule:
    """Stand-in for a module the host cannot provide. Every call does nothing."""

    def __init__(self, name: str, primitive_names: Sequence[str] = UI_PRIMITIVE_NAMES) -> None:
        self._name = name
        self._primitive_names = tuple(primitive_names)
        self.default = _inert
        for primitive in self._primitive_names:
            setattr(self, primitive, _inert)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("__"):
            raise AttributeError(name)
        return _inert

    def __call__(self, *_args: Any, **_kwargs: Any) -> None:
        return None

    def __repr__(self) -> str:
        return f"InertModule({self._name!r})"


class PackageView:
    """What ``import a.b`` binds to ``a``: the resolved package plus bound submodules."""

    def __init__(self, name: str, base: Any = None) -> None:
        self._name = name
        self._base = base
        self._children: Dict[str, Any] = {}

    @property
    def base(self) -> Any:
        return self._base

    @base.setter
    def base(self, value: Any) -> None:
        self._base = value

    def bind(self, name: str, value: Any) -> None:
        self._children[name] = value

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        if name in self._children:
            return self._children[name]
        if self._base is None:
            raise AttributeError(f"module {self._name!r} has no attribute {name!r}")
        return getattr(self._base, name)

    def __repr__(self) -> str:
        return f"PackageView({self._name!r})"


class ModuleResolver:
    """Resolves bundle ``require`` names against the host module map."""

    def __init__(self, module_map: HostModuleMap) -> None:
        self._module_map = module_map
        self._misses: List[Tuple[str, ResolutionStatus]] = []
        self._views: Dict[str, PackageView] = {}

    @property
    def module_map(self) -> HostModuleMap:
        return self._module_map

    @property
    def misses(self) -> List[Tuple[str, ResolutionStatus]]:
        return list(self._misses)

    def classify(self, name: str) -> ResolutionStatus:
        if name not in self._module_map:
            return ResolutionStatus.UNKNOWN
        value = self._module_map.get(name)
        if value is UNSUPPORTED or value is None:
            return ResolutionStatus.UNSUPPORTED
        return ResolutionStatus.RESOLVED

    def resolve(self, name: str) -> Any:
        status = self.classify(name) if isinstance(name, str) else ResolutionStatus.UNKNOWN
        if status is ResolutionStatus.RESOLVED:
            logger.debug("bundle require resolved: %s", name)
            return self._module_map.get(name)
        self._misses.append((str(name), status))
        if status is ResolutionStatus.UNSUPPORTED:
            logger.warning("bundle require unsupported by host, using inert fallback: %s", name)
        else:
            logger.warning("bundle require unknown to host, using inert fallback: %s", name)
        return InertModule(str(name))

    __call__ = resolve

    def import_hook(
        self,
        name: str,
        globals: Optional[dict] = None,
        locals: Optional[dict] = None,
        fromlist: Optional[Sequence[str]] = (),
        level: int = 0,
    ) -> Any:
        """``__import__`` replacement so ``import`` statements go through ``resolve``."""
        if level:
            logger.warning("bundle relative import not supported: %s (level %s)", name, level)
            return InertModule(name)
        resolved = self.resolve(name)
        if fromlist or "." not in name:
            return resolved
        # ``import a.b`` binds ``a``; submodules accumulate on one view per package.
        parts = name.split(".")
        parent = self._package_view(parts[0])
        for depth in range(1, len(parts)):
            prefix = ".".join(parts[: depth + 1])
            base = resolved if depth == len(parts) - 1 else None
            child = self._package_view(prefix, base)
            parent.bind(parts[depth], child)
            parent = child
        return self._package_view(parts[0])

    def _package_view(self, name: str, base: Any = None) -> "PackageView":
        view = self._views.get(name)
        if view is None:
            if base is None and self.classify(name) is ResolutionStatus.RESOLVED:
                base = self._module_map.get(name)
            view = PackageView(name, base)
            self._views[name] = view
        elif view.base is None and base is not None:
            view.base = base
        return view
