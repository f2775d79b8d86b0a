from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from diagnostics.tracing import span
from runtime_bus import RuntimeBus, topics
from runtime_bus.messages import MessageEnvelope

from .errors import BundleExecutionError
from .executor import BundleExecutor
from .types import (
    ComponentListing,
    ComponentTier,
    RegisteredComponent,
    RegisteredService,
    RegistryState,
    RegistryStats,
    Session,
    SessionModule,
)

logger = logging.getLogger(__name__)

EVENT_SOURCE = "bundle_runtime.registry"


class ComponentRegistry:
    """Component store with a session tier layered over boot-time defaults.

    Session bundles are executed through the injected ``BundleExecutor``;
    their screens shadow same-name defaults until the session is cleared or
    replaced. Lifecycle notifications go out on the injected ``RuntimeBus``.
    """

    def __init__(
        self,
        executor: Optional[BundleExecutor] = None,
        bus: Optional[RuntimeBus] = None,
    ) -> None:
        self._executor = executor if executor is not None else BundleExecutor()
        self._bus = bus if bus is not None else RuntimeBus()
        self._default_components: Dict[str, Any] = {}
        self._session_components: Dict[str, Any] = {}
        self._session_services: Dict[str, Any] = {}
        self._session_app: Any = None
        self._session_navigation: Any = None
        self._session: Optional[Session] = None
        self._state = RegistryState.IDLE
        self._load_seq = 0
        self._last_update_time = time.time()

    @property
    def bus(self) -> RuntimeBus:
        return self._bus

    @property
    def executor(self) -> BundleExecutor:
        return self._executor

    @property
    def state(self) -> RegistryState:
        return self._state

    # --- events -----------------------------------------------------------

    def on(self, topic: str, handler: Callable[[MessageEnvelope], None]) -> str:
        return self._bus.subscribe(topic, handler)

    def off(self, topic: str, handler: Callable[[MessageEnvelope], None]) -> bool:
        return self._bus.unsubscribe_handler(topic, handler)

    def unsubscribe(self, sub_id: str) -> None:
        self._bus.unsubscribe(sub_id)

    def _emit(self, topic: str, payload: Optional[Dict[str, object]] = None) -> None:
        self._bus.publish(topic, payload or {}, source=EVENT_SOURCE)

    # --- default tier -----------------------------------------------------

    def register_default_component(self, name: str, implementation: Any) -> None:
        if not isinstance(name, str) or not name:
            raise ValueError("component name must be a non-empty string")
        if self._session is not None:
            logger.warning("default component %s registered while session %s is active", name, self._session.id)
        logger.info("registering default component: %s", name)
        self._default_components[name] = implementation
        self._touch()

    # --- session lifecycle ------------------------------------------------

    async def load_session_bundle(self, source: str, session_id: str) -> Optional[Session]:
        """Replace the active session with the one ``source`` defines.

        Returns the new ``Session``, or ``None`` when a later load or an
        explicit clear superseded this one before it finished.
        """
        started = time.time()
        with span("bundle.load", session_id=session_id):
            size = len(source) if isinstance(source, str) else 0
            logger.info("loading session bundle %s (%s chars)", session_id, size)
            self.clear_session_components()
            self._load_seq += 1
            ticket = self._load_seq
            self._state = RegistryState.LOADING
            try:
                module = await self._executor.execute(source, session_id)
            except BundleExecutionError as exc:
                elapsed_ms = (time.time() - started) * 1000.0
                logger.error("session bundle %s failed after %.1fms: %s", session_id, elapsed_ms, exc.message)
                self._emit(
                    topics.BUNDLE_EXECUTION_ERROR,
                    {"session_id": session_id, "error": exc.message, "phase": exc.phase},
                )
                raise
            finally:
                if ticket == self._load_seq and self._state is RegistryState.LOADING:
                    self._state = RegistryState.IDLE

            if ticket != self._load_seq:
                logger.info("session bundle %s superseded before registration; discarding", session_id)
                return None

            session = self._register_session_module(module, session_id)
            stats = self.get_stats()
            logger.info(
                "session bundle %s loaded in %.1fms: %s session + %s default components",
                session_id,
                (time.time() - started) * 1000.0,
                stats.session_components,
                stats.total_components - stats.session_components,
            )
            self._emit(topics.BUNDLE_EXECUTED, {"session_id": session_id, "stats": stats.to_dict()})
            return session

    def _register_session_module(self, module: SessionModule, session_id: str) -> Session:
        for name, component in module.screens.items():
            self._session_components[name] = component
            logger.debug("registered session screen: %s", name)
        for name, service in module.services.items():
            self._session_services[name] = service
            logger.debug("registered session service: %s", name)
        self._session_app = module.app
        self._session_navigation = module.navigation
        self._session = Session(
            id=session_id,
            loaded_at=time.time(),
            component_count=len(self._session_components),
            service_count=len(self._session_services),
            has_app=self._session_app is not None,
            has_navigation=self._session_navigation is not None,
        )
        self._state = RegistryState.ACTIVE
        self._touch()
        self._emit(
            topics.COMPONENTS_UPDATED,
            {
                "session_id": session_id,
                "components_count": self._session.component_count,
                "services_count": self._session.service_count,
                "has_app": self._session.has_app,
                "has_navigation": self._session.has_navigation,
            },
        )
        return self._session

    def clear_session_components(self) -> None:
        logger.info("clearing session components (%s components)", len(self._session_components))
        self._load_seq += 1
        self._session_components.clear()
        self._session_services.clear()
        self._session_app = None
        self._session_navigation = None
        self._session = None
        self._state = RegistryState.IDLE
        self._touch()
        self._emit(topics.SESSION_CLEARED)

    # --- lookups ----------------------------------------------------------

    def lookup(self, name: str) -> Optional[RegisteredComponent]:
        if name in self._session_components:
            return RegisteredComponent(name, self._session_components[name], ComponentTier.SESSION)
        if name in self._default_components:
            return RegisteredComponent(name, self._default_components[name], ComponentTier.DEFAULT)
        return None

    def get_component(self, name: str) -> Any:
        entry = self.lookup(name)
        if entry is None:
            logger.warning("component not found: %s", name)
            return None
        return entry.implementation

    def lookup_service(self, name: str) -> Optional[RegisteredService]:
        if name not in self._session_services:
            return None
        return RegisteredService(name, self._session_services[name])

    def get_service(self, name: str) -> Any:
        entry = self.lookup_service(name)
        return entry.implementation if entry is not None else None

    def get_session_app(self) -> Any:
        return self._session_app

    def get_session_navigation(self) -> Any:
        return self._session_navigation

    def get_session(self) -> Optional[Session]:
        return self._session

    def is_session_component(self, name: str) -> bool:
        return name in self._session_components

    def list_components(self) -> List[ComponentListing]:
        names = set(self._default_components) | set(self._session_components)
        return [ComponentListing(name=name, is_session=name in self._session_components) for name in sorted(names)]

    def get_stats(self) -> RegistryStats:
        return RegistryStats(
            total_components=len(self._default_components) + len(self._session_components),
            session_components=len(self._session_components),
            last_update_time=self._last_update_time,
            session_id=self._session.id if self._session else None,
        )

    def _touch(self) -> None:
        self._last_update_time = time.time()
