"""Discovery of custom composite types referenced by a composite's fields."""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from ..models import (
    CompositeTypeSpec,
    CustomRef,
    ListOf,
    MapOf,
    OptionalOf,
    SetOf,
    TypeDescriptor,
)
from ..typenames import is_builtin_type_name


def innermost_type(descriptor: TypeDescriptor) -> TypeDescriptor:
    """Unwrap Optional/List/Set and the value side of Map down to the element type."""
    while True:
        if isinstance(descriptor, (OptionalOf, ListOf, SetOf)):
            descriptor = descriptor.inner
        elif isinstance(descriptor, MapOf):
            descriptor = descriptor.value
        else:
            return descriptor


def custom_type_name(descriptor: TypeDescriptor) -> Optional[str]:
    """Name of the custom type at the core of ``descriptor``, if there is one."""
    inner = innermost_type(descriptor)
    if isinstance(inner, CustomRef) and not is_builtin_type_name(inner.name):
        return inner.name
    return None


class TypeGraphCollector:
    """Finds the custom types a composite references through its immediate fields.

    Only the given composite is inspected; callers re-invoke the collector on
    each newly discovered type to build a transitive closure.
    """

    def collect(self, spec: CompositeTypeSpec) -> List[str]:
        """Return referenced type names, first occurrence first, without duplicates."""
        if not spec.has_named_fields:
            return []
        return list(self._unique(custom_type_name(field.type) for field in spec.fields))

    @staticmethod
    def _unique(names: Iterable[Optional[str]]) -> Dict[str, None]:
        found: Dict[str, None] = {}
        for name in names:
            if name is not None:
                found.setdefault(name, None)
        return found


__all__ = ["TypeGraphCollector", "custom_type_name", "innermost_type"]
