from __future__ import annotations

import logging
import time
from typing import List, Optional

from runtime_bus import topics

from .errors import BundleExecutionError, BundleLoadError
from .registry import ComponentRegistry
from .store import BundleInfo, BundleStore

logger = logging.getLogger(__name__)

EVENT_SOURCE = "bundle_runtime.loader"


class SessionBundleLoader:
    """Feeds bundles from a ``BundleStore`` into a ``ComponentRegistry``."""

    def __init__(
        self,
        registry: ComponentRegistry,
        store: BundleStore,
        *,
        execute_bundles: bool = True,
    ) -> None:
        self._registry = registry
        self._store = store
        self._execute_bundles = execute_bundles
        self._current_bundle: Optional[BundleInfo] = None

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    @property
    def store(self) -> BundleStore:
        return self._store

    @property
    def current_bundle(self) -> Optional[BundleInfo]:
        return self._current_bundle

    @property
    def execute_bundles(self) -> bool:
        return self._execute_bundles

    def set_execute_bundles(self, execute: bool) -> None:
        logger.info("bundle execution %s", "enabled" if execute else "disabled")
        self._execute_bundles = bool(execute)

    def get_history(self) -> List[BundleInfo]:
        return self._store.load_history()

    async def load_bundle(self, session_id: str) -> BundleInfo:
        started = time.time()
        self._publish(topics.BUNDLE_LOADING, {"session_id": session_id})
        try:
            source = self._store.read_bundle(session_id)
        except (OSError, ValueError) as exc:
            message = f"Failed to read bundle for session {session_id}: {exc}"
            logger.error(message)
            self._publish(topics.BUNDLE_LOAD_ERROR, {"session_id": session_id, "error": message})
            raise BundleLoadError(message, session_id=session_id) from exc

        info = self._store.describe(session_id, source)
        self._current_bundle = info
        self._store.add_to_history(info)
        logger.info(
            "bundle %s read: size=%s hash=%s version=%s",
            session_id,
            info.size,
            info.bundle_hash,
            info.version,
        )

        executed = False
        error: Optional[str] = None
        if self._execute_bundles:
            try:
                executed = await self._registry.load_session_bundle(source, session_id) is not None
            except BundleExecutionError as exc:
                # The registry already published bundle-execution-error.
                error = exc.message
        else:
            logger.info("bundle execution disabled; %s stored only", session_id)

        self._publish(
            topics.BUNDLE_LOADED,
            {
                "bundle_info": info.to_dict(),
                "executed": executed,
                "error": error,
                "total_ms": (time.time() - started) * 1000.0,
            },
        )
        return info

    async def reload_bundle(self) -> Optional[BundleInfo]:
        if self._current_bundle is None:
            logger.info("no bundle to reload")
            return None
        return await self.load_bundle(self._current_bundle.session_id)

    async def force_reload_and_execute(self) -> BundleInfo:
        if self._current_bundle is None:
            raise BundleLoadError("No current bundle to reload")
        logger.info("force reloading bundle %s", self._current_bundle.session_id)
        self._registry.clear_session_components()
        return await self.load_bundle(self._current_bundle.session_id)

    def _publish(self, topic: str, payload: dict) -> None:
        self._registry.bus.publish(topic, payload, source=EVENT_SOURCE)
