from __future__ import annotations

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from bundle_runtime.executor import BundleExecutor  # noqa: E402
from bundle_runtime.module_map import default_module_map  # noqa: E402
from bundle_runtime.registry import ComponentRegistry  # noqa: E402
from runtime_bus import RuntimeBus  # noqa: E402


@pytest.fixture()
def bus() -> RuntimeBus:
    return RuntimeBus()


@pytest.fixture()
def registry(bus: RuntimeBus) -> ComponentRegistry:
    return ComponentRegistry(executor=BundleExecutor(default_module_map()), bus=bus)
