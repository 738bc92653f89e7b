"""Core data models shared across nixgen components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple, Union


class SchemaError(RuntimeError):
    """Base class for every error raised while compiling a model."""


class DeclarationError(SchemaError):
    """Raised when a model declares something that cannot be compiled."""


class PrimitiveKind(Enum):
    BOOL = "bool"
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    PATH = "path"


@dataclass(frozen=True)
class Primitive:
    """A scalar type; ``spelling`` keeps the declared identifier (``u16``, ``f64``)."""

    kind: PrimitiveKind
    spelling: str = ""


@dataclass(frozen=True)
class OptionalOf:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class ListOf:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class SetOf:
    inner: "TypeDescriptor"


@dataclass(frozen=True)
class MapOf:
    key: "TypeDescriptor"
    value: "TypeDescriptor"


@dataclass(frozen=True)
class CustomRef:
    """Symbolic reference to another composite type by its declared name."""

    name: str


@dataclass(frozen=True)
class Unknown:
    """A type shape nixgen has no mapping for."""

    spelling: str = ""


TypeDescriptor = Union[Primitive, OptionalOf, ListOf, SetOf, MapOf, CustomRef, Unknown]

WRAPPER_TYPES = (OptionalOf, ListOf, SetOf, MapOf)


@dataclass(frozen=True)
class FieldSpec:
    """A declared field: type, raw attribute text for both namespaces and doc lines."""

    name: str
    type: TypeDescriptor
    attributes: str = ""
    compat_attributes: str = ""
    doc_lines: Tuple[str, ...] = ()


@dataclass(frozen=True)
class EffectiveFieldAttributes:
    """Resolved per-field attributes after merging both namespaces and docs."""

    name: str
    description: Optional[str] = None
    default: Optional[str] = None
    default_text: Optional[str] = None
    example: Optional[str] = None
    apply: Optional[str] = None
    internal: bool = False
    visible: Optional[str] = None
    read_only: bool = False
    related_packages: Optional[str] = None
    optional: bool = False
    skip: bool = False
    flatten: bool = False


class CompositeKind(Enum):
    STRUCT = "struct"
    ENUM = "enum"
    TUPLE = "tuple"
    UNIT = "unit"


@dataclass(frozen=True)
class CompositeTypeSpec:
    """A named record type (ordered fields) or enumeration (ordered variant names)."""

    name: str
    kind: CompositeKind = CompositeKind.STRUCT
    fields: Tuple[FieldSpec, ...] = ()
    variants: Tuple[str, ...] = ()
    auto_doc: bool = False

    @property
    def has_named_fields(self) -> bool:
        return self.kind is CompositeKind.STRUCT


class TypeGraph:
    """Lookup table of composite types keyed by name, with a distinguished root.

    Fields hold :class:`CustomRef` names rather than embedded copies, so
    self-referencing and mutually referencing types need no special structure.
    """

    def __init__(self, types: Iterable[CompositeTypeSpec], root: str) -> None:
        table: dict[str, CompositeTypeSpec] = {}
        for spec in types:
            if spec.name in table:
                raise DeclarationError(f"Type '{spec.name}' is declared more than once")
            table[spec.name] = spec
        if root not in table:
            raise DeclarationError(f"Root type '{root}' is not declared")
        self._types: Mapping[str, CompositeTypeSpec] = MappingProxyType(table)
        self.root = root

    @property
    def types(self) -> Mapping[str, CompositeTypeSpec]:
        return self._types

    @property
    def root_spec(self) -> CompositeTypeSpec:
        return self._types[self.root]

    def get(self, name: str) -> Optional[CompositeTypeSpec]:
        return self._types.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self._types

    def __getitem__(self, name: str) -> CompositeTypeSpec:
        return self._types[name]

    def with_root(self, root: str) -> "TypeGraph":
        """Return a graph sharing the same types but rooted at ``root``."""
        return TypeGraph(self._types.values(), root)


@dataclass(frozen=True)
class EmissionPlan:
    """Declaration order for a closure: dependencies first, root last."""

    names: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def root(self) -> str:
        return self.names[-1]

    @property
    def dependencies(self) -> Tuple[str, ...]:
        return self.names[:-1]

    def __iter__(self):
        return iter(self.names)

    def __len__(self) -> int:
        return len(self.names)


__all__ = [
    "CompositeKind",
    "CompositeTypeSpec",
    "CustomRef",
    "DeclarationError",
    "EffectiveFieldAttributes",
    "EmissionPlan",
    "FieldSpec",
    "ListOf",
    "MapOf",
    "OptionalOf",
    "Primitive",
    "PrimitiveKind",
    "SchemaError",
    "SetOf",
    "TypeDescriptor",
    "TypeGraph",
    "Unknown",
    "WRAPPER_TYPES",
]
