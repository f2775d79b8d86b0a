"""UI primitive namespace handed to bundles as ``ui``."""

from __future__ import annotations

import importlib
from typing import Any, Dict, List, Tuple

QT_WIDGETS_MODULE = "PyQt6.QtWidgets"

UI_PRIMITIVE_NAMES: Tuple[str, ...] = (
    "QWidget",
    "QFrame",
    "QLabel",
    "QPushButton",
    "QLineEdit",
    "QTextEdit",
    "QTextBrowser",
    "QCheckBox",
    "QComboBox",
    "QSpinBox",
    "QSlider",
    "QProgressBar",
    "QListWidget",
    "QScrollArea",
    "QGroupBox",
    "QStackedWidget",
    "QVBoxLayout",
    "QHBoxLayout",
    "QGridLayout",
    "QFormLayout",
)


class UiPrimitives:
    """Exposes the supported PyQt6 widget classes, importing Qt on first use."""

    def __init__(self, names: Tuple[str, ...] = UI_PRIMITIVE_NAMES) -> None:
        self._names = tuple(names)
        self._cache: Dict[str, Any] = {}

    @property
    def names(self) -> Tuple[str, ...]:
        return self._names

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_") or name not in self._names:
            raise AttributeError(f"ui primitive not supported: {name}")
        if name not in self._cache:
            widgets = importlib.import_module(QT_WIDGETS_MODULE)
            self._cache[name] = getattr(widgets, name)
        return self._cache[name]

    def __dir__(self) -> List[str]:
        return sorted(self._names)

    def __repr__(self) -> str:
        return f"UiPrimitives({len(self._names)} names)"
