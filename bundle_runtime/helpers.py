"""Class-building shims bundles can require as ``bundle.helpers``.

Bundles run inside a function shell, so these give them a stable way to
assemble component classes without reaching for the host's own modules.
"""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any, Iterable, Mapping, Optional, Tuple


def create_class(
    name: str,
    bases: Tuple[type, ...] = (object,),
    namespace: Optional[Mapping[str, Any]] = None,
) -> type:
    """Build a class from a name, bases and attribute mapping."""
    if not isinstance(name, str) or not name:
        raise TypeError("class name must be a non-empty string")
    return type(name, tuple(bases) or (object,), dict(namespace or {}))


def inherits(sub_class: type, super_class: Optional[type]) -> type:
    """Return a copy of ``sub_class`` that also derives from ``super_class``."""
    if super_class is not None and not isinstance(super_class, type):
        raise TypeError("Super expression must either be None or a class")
    if super_class is None or issubclass(sub_class, super_class):
        return sub_class
    namespace = {
        key: value
        for key, value in vars(sub_class).items()
        if key not in ("__dict__", "__weakref__")
    }
    bases = tuple(base for base in sub_class.__bases__ if base is not object)
    return type(sub_class.__name__, bases + (super_class,), namespace)


def class_call_check(instance: Any, cls: type) -> None:
    if not isinstance(instance, cls):
        raise TypeError("Cannot call a class as a function")


def define_properties(target: Any, props: Iterable[Mapping[str, Any]]) -> Any:
    """Attach ``{"key": ..., "value": ...}`` descriptors to ``target``."""
    for descriptor in props:
        key = descriptor.get("key")
        if not isinstance(key, str) or not key:
            raise ValueError("property descriptor needs a 'key'")
        setattr(target, key, descriptor.get("value"))
    return target


def helpers_namespace() -> SimpleNamespace:
    return SimpleNamespace(
        create_class=create_class,
        inherits=inherits,
        class_call_check=class_call_check,
        define_properties=define_properties,
    )


__all__ = [
    "create_class",
    "inherits",
    "class_call_check",
    "define_properties",
    "helpers_namespace",
]
