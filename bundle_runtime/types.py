from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional, Protocol, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from PyQt6 import QtWidgets


class ComponentTier(str, Enum):
    DEFAULT = "default"
    SESSION = "session"


class RegistryState(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    ACTIVE = "active"


class Component(Protocol):
    """Shape most bundle screens follow; any object can be registered."""

    def create_widget(self, ctx: Any) -> "QtWidgets.QWidget":
        ...

    def dispose(self) -> None:
        ...


@dataclass(frozen=True)
class RegisteredComponent:
    name: str
    implementation: Any
    tier: ComponentTier


@dataclass(frozen=True)
class RegisteredService:
    name: str
    implementation: Any


@dataclass
class SessionModule:
    """Normalized view of a bundle's exports."""

    screens: Dict[str, Any] = field(default_factory=dict)
    services: Dict[str, Any] = field(default_factory=dict)
    navigation: Any = None
    app: Any = None

    @property
    def is_empty(self) -> bool:
        return not (self.screens or self.services or self.navigation is not None or self.app is not None)


@dataclass(frozen=True)
class Session:
    id: str
    loaded_at: float
    component_count: int
    service_count: int
    has_app: bool
    has_navigation: bool

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "loaded_at": self.loaded_at,
            "component_count": self.component_count,
            "service_count": self.service_count,
            "has_app": self.has_app,
            "has_navigation": self.has_navigation,
        }


@dataclass(frozen=True)
class RegistryStats:
    total_components: int
    session_components: int
    last_update_time: float
    session_id: Optional[str]

    def to_dict(self) -> Dict[str, object]:
        return {
            "total_components": self.total_components,
            "session_components": self.session_components,
            "last_update_time": self.last_update_time,
            "session_id": self.session_id,
        }


@dataclass(frozen=True)
class ComponentListing:
    name: str
    is_session: bool
