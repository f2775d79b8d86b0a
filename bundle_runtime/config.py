# =============================================================================
# NAV INDEX (search these tags)
# [NAV-00] Imports / constants
# [NAV-10] Config model
# [NAV-20] Config loading
# [NAV-99] End
# =============================================================================

# === [NAV-00] Imports / constants ============================================
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_PATH = Path("data/roaming/bundle_config.json")
DEFAULT_BUNDLE_ROOT = Path("data/bundles")
_DEFAULT_CONFIG: Dict[str, Any] = {
    "strict_imports": False,
    "execution_timeout_s": 10.0,
    "history_limit": 10,
    "bundle_root": str(DEFAULT_BUNDLE_ROOT),
    "execute_bundles": True,
}


# === [NAV-10] Config model ===================================================
@dataclass
class RuntimeConfig:
    strict_imports: bool = False
    execution_timeout_s: Optional[float] = 10.0
    history_limit: int = 10
    bundle_root: Path = field(default_factory=lambda: DEFAULT_BUNDLE_ROOT)
    execute_bundles: bool = True

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RuntimeConfig":
        merged = dict(_DEFAULT_CONFIG)
        if isinstance(data, dict):
            merged.update({key: value for key, value in data.items() if key in _DEFAULT_CONFIG})
        timeout = merged.get("execution_timeout_s")
        if timeout is not None:
            try:
                timeout = float(timeout)
            except (TypeError, ValueError):
                timeout = _DEFAULT_CONFIG["execution_timeout_s"]
            if timeout <= 0:
                timeout = None
        try:
            history_limit = max(1, int(merged.get("history_limit")))
        except (TypeError, ValueError):
            history_limit = _DEFAULT_CONFIG["history_limit"]
        bundle_root = merged.get("bundle_root")
        if not isinstance(bundle_root, str) or not bundle_root.strip():
            bundle_root = _DEFAULT_CONFIG["bundle_root"]
        return cls(
            strict_imports=bool(merged.get("strict_imports")),
            execution_timeout_s=timeout,
            history_limit=history_limit,
            bundle_root=Path(bundle_root),
            execute_bundles=bool(merged.get("execute_bundles")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "strict_imports": self.strict_imports,
            "execution_timeout_s": self.execution_timeout_s,
            "history_limit": self.history_limit,
            "bundle_root": str(self.bundle_root),
            "execute_bundles": self.execute_bundles,
        }


# === [NAV-20] Config loading ==================================================
def load_runtime_config(path: Optional[Path] = None) -> RuntimeConfig:
    path = path or CONFIG_PATH
    if not path.exists():
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(_DEFAULT_CONFIG, indent=2), encoding="utf-8")
        return RuntimeConfig.from_dict({})
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.warning("bundle config unreadable at %s, using defaults: %s", path, exc)
        return RuntimeConfig.from_dict({})
    if not isinstance(data, dict):
        return RuntimeConfig.from_dict({})
    return RuntimeConfig.from_dict(data)


def save_runtime_config(config: RuntimeConfig, path: Optional[Path] = None) -> None:
    path = path or CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(config.to_dict(), indent=2), encoding="utf-8")


# === [NAV-99] End =============================================================
__all__ = [
    "CONFIG_PATH",
    "RuntimeConfig",
    "load_runtime_config",
    "save_runtime_config",
]
