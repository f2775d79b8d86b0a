from .config import RuntimeConfig, load_runtime_config
from .context import RuntimeContext, create_runtime
from .errors import BundleExecutionError, BundleLoadError
from .executor import BundleExecutor
from .loader import SessionBundleLoader
from .module_map import UNSUPPORTED, HostModuleMap, default_module_map
from .registry import ComponentRegistry
from .resolver import InertModule, ModuleResolver, ResolutionStatus
from .store import BundleInfo, BundleStore
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

__all__ = [
    "RuntimeConfig",
    "load_runtime_config",
    "RuntimeContext",
    "create_runtime",
    "BundleExecutionError",
    "BundleLoadError",
    "BundleExecutor",
    "SessionBundleLoader",
    "UNSUPPORTED",
    "HostModuleMap",
    "default_module_map",
    "ComponentRegistry",
    "InertModule",
    "ModuleResolver",
    "ResolutionStatus",
    "BundleInfo",
    "BundleStore",
    "ComponentListing",
    "ComponentTier",
    "RegisteredComponent",
    "RegisteredService",
    "RegistryState",
    "RegistryStats",
    "Session",
    "SessionModule",
]
