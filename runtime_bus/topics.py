"""Topic constants for the runtime bus."""

# Registry lifecycle
COMPONENTS_UPDATED = "components-updated"
BUNDLE_EXECUTED = "bundle-executed"
BUNDLE_EXECUTION_ERROR = "bundle-execution-error"
SESSION_CLEARED = "session-cleared"

# Bundle loader
BUNDLE_LOADING = "bundle-loading"
BUNDLE_LOADED = "bundle-loaded"
BUNDLE_LOAD_ERROR = "bundle-load-error"

REGISTRY_TOPICS = (
    COMPONENTS_UPDATED,
    BUNDLE_EXECUTED,
    BUNDLE_EXECUTION_ERROR,
    SESSION_CLEARED,
)

__all__ = [
    "COMPONENTS_UPDATED",
    "BUNDLE_EXECUTED",
    "BUNDLE_EXECUTION_ERROR",
    "SESSION_CLEARED",
    "BUNDLE_LOADING",
    "BUNDLE_LOADED",
    "BUNDLE_LOAD_ERROR",
    "REGISTRY_TOPICS",
]
