"""Session bundle demo / smoke test."""

from __future__ import annotations

import asyncio
import tempfile
from pathlib import Path

from runtime_bus import topics

from .config import RuntimeConfig
from .context import create_runtime
from .errors import BundleExecutionError

DEMO_BUNDLE = '''
__version__ = "1.2.0"

class HomeScreen:
    title = "Home (session)"

    def create_widget(self, ctx):
        return ui.QLabel(self.title)

class Greeter:
    def greet(self, name):
        return f"hello {name}"

log("demo bundle starting")
module.exports = {
    "screens": {"Home": HomeScreen, "Extra": HomeScreen},
    "services": {"greeter": Greeter()},
    "navigation": {"tabs": ["Home", "Extra"]},
}
'''


class DefaultHome:
    title = "Home (default)"


async def _run(root: Path) -> None:
    runtime = create_runtime(RuntimeConfig(bundle_root=root / "bundles"))
    registry = runtime.registry
    events = []
    for topic in topics.REGISTRY_TOPICS:
        registry.on(topic, lambda msg: events.append(f"{msg.type}({msg.session_id or '-'})"))

    registry.register_default_component("Home", DefaultHome)

    print("[demo] loading session bundle from store")
    runtime.store.write_bundle("demo-1", DEMO_BUNDLE)
    info = await runtime.loader.load_bundle("demo-1")
    print(f"[demo] bundle {info.session_id} hash={info.bundle_hash} version={info.version}")
    assert registry.is_session_component("Home")
    assert registry.get_component("Extra") is not None
    assert registry.get_service("greeter").greet("lab") == "hello lab"
    for listing in registry.list_components():
        owner = "session" if listing.is_session else "default"
        print(f"[demo]   {listing.name}: {owner}")

    print("[demo] clearing session")
    registry.clear_session_components()
    assert registry.get_component("Home") is DefaultHome
    assert registry.get_component("Extra") is None

    print("[demo] loading a failing bundle")
    try:
        await registry.load_session_bundle("raise RuntimeError('boom')", "demo-2")
    except BundleExecutionError as exc:
        print(f"[demo] rejected as expected: {exc.message}")
    else:
        raise SystemExit("failing bundle was accepted")
    assert registry.get_stats().session_components == 0
    print(f"[demo] events: {', '.join(events)}")
    print("[demo] session bundle demo complete")


def main() -> None:
    with tempfile.TemporaryDirectory(prefix="bundlehost_demo_") as tmp:
        asyncio.run(_run(Path(tmp)))


if __name__ == "__main__":
    main()
