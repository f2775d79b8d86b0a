from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from runtime_bus import RuntimeBus

from .config import RuntimeConfig
from .executor import BundleExecutor
from .loader import SessionBundleLoader
from .module_map import HostModuleMap, default_module_map
from .registry import ComponentRegistry
from .store import BundleStore


@dataclass
class RuntimeContext:
    """Everything one running application needs to host session bundles."""

    config: RuntimeConfig
    bus: RuntimeBus
    executor: BundleExecutor
    registry: ComponentRegistry
    store: BundleStore
    loader: SessionBundleLoader


def create_runtime(
    config: Optional[RuntimeConfig] = None,
    module_map: Optional[HostModuleMap] = None,
    bus: Optional[RuntimeBus] = None,
) -> RuntimeContext:
    config = config or RuntimeConfig()
    bus = bus or RuntimeBus()
    executor = BundleExecutor(
        module_map if module_map is not None else default_module_map(),
        strict_imports=config.strict_imports,
        timeout_s=config.execution_timeout_s,
    )
    registry = ComponentRegistry(executor=executor, bus=bus)
    store = BundleStore(config.bundle_root, history_limit=config.history_limit)
    loader = SessionBundleLoader(registry, store, execute_bundles=config.execute_bundles)
    return RuntimeContext(
        config=config,
        bus=bus,
        executor=executor,
        registry=registry,
        store=store,
        loader=loader,
    )
