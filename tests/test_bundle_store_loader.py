import asyncio
import json
from pathlib import Path

import pytest

from bundle_runtime.config import RuntimeConfig
from bundle_runtime.context import create_runtime
from bundle_runtime.errors import BundleLoadError
from bundle_runtime.store import BundleInfo, BundleStore, compute_bundle_hash, extract_version
from runtime_bus import topics

GOOD_BUNDLE = '__version__ = "2.1.0"\nmodule.exports = {"screens": {"Home": "session-home"}}\n'


def _runtime(tmp_path: Path, **overrides):
    config = RuntimeConfig(bundle_root=tmp_path / "bundles", **overrides)
    return create_runtime(config)


def _events(runtime) -> list:
    seen = []
    all_topics = topics.REGISTRY_TOPICS + (topics.BUNDLE_LOADING, topics.BUNDLE_LOADED, topics.BUNDLE_LOAD_ERROR)
    for topic in all_topics:
        runtime.bus.subscribe(topic, lambda msg: seen.append((msg.type, dict(msg.payload))))
    return seen


def test_hash_and_version_extraction() -> None:
    assert compute_bundle_hash("abc") == compute_bundle_hash("abc")
    assert len(compute_bundle_hash("abc")) == 8
    assert compute_bundle_hash("abc") != compute_bundle_hash("abd")
    assert extract_version('__version__ = "1.4.2"') == "1.4.2"
    assert extract_version("meta = {'version': '0.9'}") == "0.9"
    assert extract_version("# @version 3.0-beta") == "3.0-beta"
    assert extract_version("# built from v1.2.3") == "1.2.3"
    assert extract_version("nothing here").startswith("session-")


def test_store_paths_are_confined_to_root(tmp_path: Path) -> None:
    store = BundleStore(tmp_path)
    path = store.write_bundle("s-1", "pass")
    assert path == (tmp_path / "s-1" / "bundle.py").resolve()
    assert store.read_bundle("s-1") == "pass"
    assert store.list_bundles() == ["s-1"]
    for bad in ("../escape", "/abs", "a/b", ""):
        with pytest.raises(ValueError):
            store.bundle_path(bad)


def test_history_deduplicates_and_is_bounded(tmp_path: Path) -> None:
    store = BundleStore(tmp_path, history_limit=3)
    for idx in range(5):
        store.write_bundle(f"s{idx}", f"# {idx}")
        assert store.add_to_history(store.describe(f"s{idx}", f"# {idx}")) is True
    duplicate = store.describe("s4", "# 4")
    assert store.add_to_history(duplicate) is False

    history = store.load_history()
    assert [item.session_id for item in history] == ["s4", "s3", "s2"]
    raw = json.loads((tmp_path / "bundle_history.json").read_text(encoding="utf-8"))
    assert raw[0]["bundle_hash"] == compute_bundle_hash("# 4")


def test_history_tolerates_corrupt_file(tmp_path: Path) -> None:
    (tmp_path / "bundle_history.json").write_text("{not json", encoding="utf-8")
    assert BundleStore(tmp_path).load_history() == []
    assert BundleInfo.from_dict({"session_id": "x"}) is None


def test_loader_executes_bundle_and_reports(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path)
    seen = _events(runtime)
    runtime.registry.register_default_component("Home", "default-home")
    runtime.store.write_bundle("s1", GOOD_BUNDLE)

    info = asyncio.run(runtime.loader.load_bundle("s1"))

    assert info.version == "2.1.0"
    assert info.bundle_hash == compute_bundle_hash(GOOD_BUNDLE)
    assert runtime.loader.current_bundle == info
    assert runtime.registry.get_component("Home") == "session-home"
    names = [name for name, _ in seen]
    assert names[0] == "bundle-loading"
    assert names[-1] == "bundle-loaded"
    assert "bundle-executed" in names
    loaded = seen[-1][1]
    assert loaded["executed"] is True
    assert loaded["error"] is None
    assert [item.session_id for item in runtime.loader.get_history()] == ["s1"]


def test_loader_reports_execution_failure_without_raising(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path)
    seen = _events(runtime)
    runtime.store.write_bundle("bad", "raise ValueError('boom')")

    info = asyncio.run(runtime.loader.load_bundle("bad"))

    assert info.session_id == "bad"
    names = [name for name, _ in seen]
    assert names.count("bundle-execution-error") == 1
    loaded = seen[-1][1]
    assert loaded["executed"] is False
    assert "boom" in loaded["error"]
    assert runtime.registry.get_stats().session_components == 0


def test_loader_missing_bundle_raises_load_error(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path)
    seen = _events(runtime)
    with pytest.raises(BundleLoadError):
        asyncio.run(runtime.loader.load_bundle("absent"))
    assert [name for name, _ in seen] == ["bundle-loading", "bundle-load-error"]
    assert runtime.loader.current_bundle is None


def test_loader_can_skip_execution(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path, execute_bundles=False)
    runtime.store.write_bundle("s1", GOOD_BUNDLE)
    asyncio.run(runtime.loader.load_bundle("s1"))
    assert runtime.registry.get_component("Home") is None

    runtime.loader.set_execute_bundles(True)
    asyncio.run(runtime.loader.reload_bundle())
    assert runtime.registry.get_component("Home") == "session-home"


def test_reload_without_current_bundle(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path)
    assert asyncio.run(runtime.loader.reload_bundle()) is None
    with pytest.raises(BundleLoadError):
        asyncio.run(runtime.loader.force_reload_and_execute())


def test_force_reload_picks_up_changed_source(tmp_path: Path) -> None:
    runtime = _runtime(tmp_path)
    runtime.store.write_bundle("s1", GOOD_BUNDLE)
    asyncio.run(runtime.loader.load_bundle("s1"))

    runtime.store.write_bundle("s1", 'module.exports = {"screens": {"Home": "v2"}}')
    info = asyncio.run(runtime.loader.force_reload_and_execute())
    assert runtime.registry.get_component("Home") == "v2"
    assert len(runtime.loader.get_history()) == 2
    assert info.bundle_hash != compute_bundle_hash(GOOD_BUNDLE)


def test_demo_session_runs_end_to_end(capsys) -> None:
    from bundle_runtime import demo_session

    demo_session.main()
    out = capsys.readouterr().out
    assert "rejected as expected" in out
    assert "Home: session" in out
    assert "session bundle demo complete" in out
