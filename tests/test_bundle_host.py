import asyncio
import os
import textwrap

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")
QtWidgets = pytest.importorskip("PyQt6.QtWidgets")

from bundle_runtime.host import DynamicComponentHost, build_widget  # noqa: E402

SESSION_BUNDLE = textwrap.dedent(
    """
    class HomeScreen:
        def create_widget(self, ctx):
            return ui.QLabel("session home")

    module.exports = {"screens": {"Home": HomeScreen()}}
    """
)


class DefaultHome(QtWidgets.QLabel):
    def __init__(self) -> None:
        super().__init__("default home")


@pytest.fixture(scope="module")
def qapp():
    return QtWidgets.QApplication.instance() or QtWidgets.QApplication([])


def test_host_swaps_widget_with_session(qapp, registry) -> None:
    registry.register_default_component("Home", DefaultHome)
    host = DynamicComponentHost(registry, "Home")
    assert isinstance(host.component_widget, DefaultHome)

    asyncio.run(registry.load_session_bundle(SESSION_BUNDLE, "s1"))
    assert host.component_widget.text() == "session home"
    assert host.message is None

    registry.clear_session_components()
    assert isinstance(host.component_widget, DefaultHome)
    host.detach()
    host.close()


def test_host_shows_fallback_for_missing_component(qapp, registry) -> None:
    host = DynamicComponentHost(registry, "Nope")
    assert host.component_widget is None
    assert host.message == 'Component "Nope" not found'
    host.detach()


def test_host_shields_component_errors(qapp, registry) -> None:
    class Broken:
        def create_widget(self, ctx):
            raise RuntimeError("render failed")

    registry.register_default_component("Broken", Broken())
    host = DynamicComponentHost(registry, "Broken")
    assert host.component_widget is None
    assert "render failed" in host.message
    host.detach()


def test_build_widget_accepts_callables(qapp) -> None:
    factory = lambda ctx: QtWidgets.QLabel(str(ctx))  # noqa: E731
    component, widget = build_widget(factory, "ctx-value")
    assert component is factory
    assert widget.text() == "ctx-value"
    with pytest.raises(TypeError):
        build_widget(42, None)
    with pytest.raises(TypeError):
        build_widget(lambda ctx: "not a widget", None)


def test_class_component_instance_is_disposed_on_unmount(qapp, registry) -> None:
    disposed = []

    class Panel:
        def create_widget(self, ctx):
            return QtWidgets.QLabel("panel")

        def dispose(self):
            disposed.append(self)

    registry.register_default_component("Panel", Panel)
    host = DynamicComponentHost(registry, "Panel")
    assert host.component_widget.text() == "panel"

    host.unmount()
    assert len(disposed) == 1
    assert isinstance(disposed[0], Panel)
    host.detach()
