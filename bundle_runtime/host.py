from __future__ import annotations

import logging
from typing import Any, Optional, Tuple

from PyQt6 import QtCore, QtWidgets

from runtime_bus import topics

from .registry import ComponentRegistry

logger = logging.getLogger(__name__)


def build_widget(implementation: Any, context: Any) -> Tuple[Any, QtWidgets.QWidget]:
    """Turn a registered component handle into ``(component, widget)``.

    Classes are instantiated first; the returned component is the object
    whose ``dispose()`` the host calls on unmount.
    """
    if isinstance(implementation, type):
        if issubclass(implementation, QtWidgets.QWidget):
            widget = implementation()
            return widget, widget
        implementation = implementation()
    if hasattr(implementation, "create_widget"):
        widget = implementation.create_widget(context)
    elif callable(implementation):
        widget = implementation(context)
    else:
        raise TypeError(f"Unsupported component handle: {type(implementation).__name__}")
    if not isinstance(widget, QtWidgets.QWidget):
        raise TypeError("Component widget must extend QWidget")
    return implementation, widget


class DynamicComponentHost(QtWidgets.QWidget):
    """Renders a registry component by name and swaps it when sessions change."""

    def __init__(
        self,
        registry: ComponentRegistry,
        component_name: str,
        context: Any = None,
        parent: Optional[QtWidgets.QWidget] = None,
    ) -> None:
        super().__init__(parent)
        self._registry = registry
        self._component_name = component_name
        self._context = context
        self._component: Any = None
        self._component_widget: Optional[QtWidgets.QWidget] = None

        layout = QtWidgets.QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self._message_label = QtWidgets.QLabel("")
        self._message_label.setAlignment(QtCore.Qt.AlignmentFlag.AlignCenter)
        self._message_label.setStyleSheet("color: #666; font-size: 16px;")
        self._message_label.setVisible(False)
        layout.addWidget(self._message_label)

        self._container = QtWidgets.QWidget()
        self._container_layout = QtWidgets.QVBoxLayout(self._container)
        self._container_layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._container, stretch=1)

        self._sub_ids = [
            registry.on(topics.COMPONENTS_UPDATED, self._on_registry_changed),
            registry.on(topics.SESSION_CLEARED, self._on_registry_changed),
        ]
        self.refresh()

    @property
    def component_name(self) -> str:
        return self._component_name

    @property
    def component_widget(self) -> Optional[QtWidgets.QWidget]:
        return self._component_widget

    @property
    def message(self) -> Optional[str]:
        if not self._message_label.isVisibleTo(self):
            return None
        return self._message_label.text()

    def refresh(self) -> None:
        implementation = self._registry.get_component(self._component_name)
        if implementation is None:
            self.unmount()
            self._show_message(f'Component "{self._component_name}" not found')
            return
        self.mount(implementation)

    def mount(self, implementation: Any) -> None:
        self.unmount()
        try:
            component, widget = build_widget(implementation, self._context)
        except Exception as exc:
            logger.error("failed to open component %s: %s", self._component_name, exc)
            self._show_message(f"Failed to open component: {exc}")
            return
        self._component = component
        self._component_widget = widget
        self._container_layout.addWidget(widget)
        self._message_label.setVisible(False)

    def unmount(self) -> None:
        if self._component is not None:
            dispose = getattr(self._component, "dispose", None)
            if callable(dispose):
                try:
                    dispose()
                except Exception as exc:
                    logger.warning("component %s dispose failed: %s", self._component_name, exc)
            self._component = None
        if self._component_widget is not None:
            self._container_layout.removeWidget(self._component_widget)
            self._component_widget.deleteLater()
            self._component_widget = None
        self._message_label.setVisible(False)

    def detach(self) -> None:
        for sub_id in self._sub_ids:
            self._registry.unsubscribe(sub_id)
        self._sub_ids = []

    def _on_registry_changed(self, _envelope) -> None:
        self.refresh()

    def _show_message(self, message: str) -> None:
        self._message_label.setText(message)
        self._message_label.setVisible(True)

    def closeEvent(self, event) -> None:
        self.detach()
        self.unmount()
        super().closeEvent(event)
