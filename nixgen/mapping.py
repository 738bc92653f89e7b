"""Mapping of type descriptors to schema expressions."""

from __future__ import annotations

from typing import Callable, List, Optional

from .backends import RenderingBackend
from .logging import get_logger
from .models import (
    CompositeKind,
    CompositeTypeSpec,
    CustomRef,
    ListOf,
    MapOf,
    OptionalOf,
    Primitive,
    PrimitiveKind,
    SetOf,
    TypeDescriptor,
    TypeGraph,
    Unknown,
)

_LOGGER = get_logger("mapping")

InlineOptions = Callable[[CompositeTypeSpec, int], Optional[List[str]]]
"""Returns the options block lines of a composite at an indentation level, or
``None`` when the composite cannot be embedded (it is already being embedded)."""


class TypeMapper:
    """Total mapping from type descriptors to schema-expression strings.

    In *named* mode custom references render as the generated name of the
    referenced type. In *inline* mode they embed the referenced type's options
    block as an anonymous composite, which needs the graph and an
    ``inline_options`` callback supplied by the emitter. Every shape the mapper
    cannot express degrades to the backend's opaque "any attributes" type.
    """

    def __init__(
        self,
        backend: RenderingBackend,
        *,
        graph: TypeGraph | None = None,
        inline_options: InlineOptions | None = None,
    ) -> None:
        self.backend = backend
        self.graph = graph
        self._inline_options = inline_options

    def map(self, descriptor: TypeDescriptor, *, named: bool = False, level: int = 0) -> str:
        """Map ``descriptor``; ``level`` is the indentation of the line holding the result."""
        backend = self.backend
        if isinstance(descriptor, Primitive):
            return backend.primitive(descriptor.kind)
        if isinstance(descriptor, OptionalOf):
            return backend.wrap(backend.nullable, self.map(descriptor.inner, named=named, level=level))
        if isinstance(descriptor, (ListOf, SetOf)):
            return backend.wrap(backend.list_of, self.map(descriptor.inner, named=named, level=level))
        if isinstance(descriptor, MapOf):
            if not _is_string_key(descriptor.key):
                _LOGGER.debug("Dropping non-string map key type %r", descriptor.key)
            return backend.wrap(backend.dict_of, self.map(descriptor.value, named=named, level=level))
        if isinstance(descriptor, CustomRef):
            if named:
                return backend.generated_name(descriptor.name)
            return self._inline(descriptor.name, level)
        if isinstance(descriptor, Unknown):
            _LOGGER.debug("No mapping for type %r; using %s", descriptor.spelling, backend.any_type)
        return backend.any_type

    def composite_expression(self, spec: CompositeTypeSpec) -> str:
        """Type expression standing for ``spec`` itself when referenced by name."""
        if spec.kind is CompositeKind.ENUM:
            return self.backend.enum_expression(spec.variants)
        if not spec.has_named_fields:
            return self.backend.any_type
        return self.backend.generated_name(spec.name)

    def _inline(self, name: str, level: int) -> str:
        backend = self.backend
        spec = self.graph.get(name) if self.graph is not None else None
        if spec is None:
            _LOGGER.debug("Type '%s' is not part of the model; using %s", name, backend.any_type)
            return backend.any_type
        if spec.kind is CompositeKind.ENUM:
            return backend.enum_expression(spec.variants)
        if not spec.has_named_fields or self._inline_options is None:
            return backend.any_type

        lines = self._inline_options(spec, level + 2)
        if lines is None:
            _LOGGER.debug("Recursive reference to '%s' embedded as %s", name, backend.any_type)
            return backend.any_type

        inner = backend.indent(level + 1)
        parts = [f"{backend.composite} {{", f"{inner}{backend.options_keyword} = {{"]
        parts.extend(lines)
        parts.append(f"{inner}}};")
        parts.append(f"{backend.indent(level)}}}")
        return "\n".join(parts)


def _is_string_key(key: TypeDescriptor) -> bool:
    return isinstance(key, Primitive) and key.kind is PrimitiveKind.STRING


__all__ = ["InlineOptions", "TypeMapper"]
