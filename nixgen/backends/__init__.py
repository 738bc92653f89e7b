"""Rendering backends and discovery utilities."""

from __future__ import annotations

from importlib import metadata
from typing import Callable, Dict, Iterable

from .base import ATTRIBUTE_ORDER, RenderingBackend
from .nixos import nixos_backend

_ENTRY_POINT_GROUP = "nixgen.backends"

_BUILTIN_FACTORIES: dict[str, Callable[[], RenderingBackend]] = {
    "nixos": nixos_backend,
}

DEFAULT_BACKEND = "nixos"


def discover_backends() -> Dict[str, Callable[[], RenderingBackend]]:
    """Return backend factories keyed by name: built-ins first, then entry points."""
    factories: Dict[str, Callable[[], RenderingBackend]] = dict(_BUILTIN_FACTORIES)

    for entry in _iter_entry_points():
        name = entry.name.lower()
        if name in factories:
            continue
        try:
            loaded = entry.load()
        except Exception as exc:  # pragma: no cover - defensive guard
            raise RuntimeError(f"Failed to load backend entry point '{entry.name}': {exc}") from exc

        def _factory(obj: object = loaded) -> RenderingBackend:
            return _coerce_backend(obj)

        factories[name] = _factory

    return factories


def get_backend(name: str | None = None) -> RenderingBackend:
    """Instantiate the backend called ``name`` (defaults to NixOS)."""
    key = (name or DEFAULT_BACKEND).lower()
    factories = discover_backends()
    factory = factories.get(key)
    if factory is None:
        known = ", ".join(sorted(factories))
        raise ValueError(f"Unknown backend '{name}'. Available backends: {known}")
    return factory()


def _coerce_backend(obj: object) -> RenderingBackend:
    if isinstance(obj, RenderingBackend):
        return obj
    if callable(obj):
        instance = obj()
        if isinstance(instance, RenderingBackend):
            return instance
    raise TypeError("Backend entry point must be a RenderingBackend or a factory returning one")


def _iter_entry_points() -> Iterable[metadata.EntryPoint]:
    try:
        entry_points = metadata.entry_points()
    except Exception:  # pragma: no cover - defensive guard
        return []

    if hasattr(entry_points, "select"):
        return entry_points.select(group=_ENTRY_POINT_GROUP)  # type: ignore[return-value]

    return entry_points.get(_ENTRY_POINT_GROUP, [])  # type: ignore[return-value]


__all__ = [
    "ATTRIBUTE_ORDER",
    "DEFAULT_BACKEND",
    "RenderingBackend",
    "discover_backends",
    "get_backend",
    "nixos_backend",
]
