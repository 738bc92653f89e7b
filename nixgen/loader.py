"""Loading of YAML model documents into a :class:`TypeGraph`."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Callable, List, Mapping, Optional, Sequence, Tuple

import yaml

from .attributes import COMPAT_FLAGS, STRUCT_FLAGS, is_framework_flag, parse_struct_attributes
from .logging import get_logger
from .models import (
    CompositeKind,
    CompositeTypeSpec,
    CustomRef,
    DeclarationError,
    FieldSpec,
    ListOf,
    MapOf,
    OptionalOf,
    Primitive,
    PrimitiveKind,
    SchemaError,
    SetOf,
    TypeDescriptor,
    TypeGraph,
    Unknown,
)
from .typenames import (
    LIST_SPELLINGS,
    MAP_SPELLINGS,
    OPAQUE_SPELLINGS,
    OPTIONAL_SPELLINGS,
    PRIMITIVE_SPELLINGS,
    SET_SPELLINGS,
    TRANSPARENT_SPELLINGS,
)
from .values import format_nix_value

_LOGGER = get_logger("loader")

_TYPE_TOKEN = re.compile(
    r"\s*(?:(?P<ident>[A-Za-z_][A-Za-z0-9_]*(?:::[A-Za-z_][A-Za-z0-9_]*)*)"
    r"|(?P<lifetime>'[A-Za-z_]+)|(?P<punct>[<>\[\],&]))"
)

_OPEN = {"<": ">", "[": "]"}

UNION_GUIDANCE = (
    "Union types are not supported by nixgen.\n"
    "\n"
    "Unions have no field names to turn into options and no clear NixOS type\n"
    "mapping. Declare an enumeration of variants instead:\n"
    "\n"
    "  MyEnum:\n"
    "    enum: [Variant1, Variant2]"
)


class ModelError(SchemaError):
    """Raised when a model document is structurally invalid."""


def parse_type_expression(text: str) -> TypeDescriptor:
    """Parse ``Option<Vec<Server>>``, ``dict[str, int]``, ``PathBuf`` and friends."""
    tokens = _lex_type(text)
    if not tokens:
        raise ModelError(f"Empty type expression: {text!r}")
    descriptor, index = _parse_type(tokens, 0, text)
    if index != len(tokens):
        raise ModelError(f"Unexpected '{tokens[index][1]}' in type expression {text!r}")
    return descriptor


def load_model(path: Path, *, root: str | None = None) -> TypeGraph:
    """Read a YAML model document from ``path``."""
    path = Path(path).expanduser()
    if not path.exists():
        raise FileNotFoundError(f"Model file not found: {path}")
    text = path.read_text(encoding="utf-8")
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ModelError(f"Failed to parse {path.name}: {exc}") from exc
    return model_from_dict(data, root=root, source=path.name)


def model_from_dict(data: Any, *, root: str | None = None, source: str = "model") -> TypeGraph:
    """Build a :class:`TypeGraph` from an already parsed model document."""
    if not isinstance(data, Mapping):
        raise ModelError(f"{source} must contain a mapping at the root")
    types_data = data.get("types")
    if not isinstance(types_data, Mapping) or not types_data:
        raise ModelError(f"{source} must declare at least one type under 'types'")

    specs = [
        _composite_from_dict(_as_name(name, f"{source}:types"), body, f"{source}:types.{name}")
        for name, body in types_data.items()
    ]
    root_name = root or _as_str(data.get("root")) or specs[0].name
    _LOGGER.debug("Loaded %d type(s) from %s with root %s", len(specs), source, root_name)
    return TypeGraph(specs, root_name)


def check_map_keys(graph: TypeGraph) -> None:
    """Reject map fields whose key type is not a string."""
    for spec in graph.types.values():
        for field in spec.fields:
            key = _first_non_string_key(field.type)
            if key is not None:
                raise DeclarationError(
                    f"Field '{field.name}' of '{spec.name}' uses map key type {key!r}; "
                    "only string keys can be represented"
                )


def _composite_from_dict(name: str, body: Any, where: str) -> CompositeTypeSpec:
    if body is None:
        body = {}
    if not isinstance(body, Mapping):
        raise ModelError(f"{where} must be a mapping")

    variants = body.get("enum", body.get("variants"))
    kind_name = _as_str(body.get("kind")) or ("enum" if variants is not None else "struct")
    if kind_name == "union":
        raise DeclarationError(f"{where}: {UNION_GUIDANCE}")
    try:
        kind = CompositeKind(kind_name)
    except ValueError as exc:
        raise ModelError(f"{where}: unknown kind '{kind_name}'") from exc

    struct_attrs = parse_struct_attributes(
        _attributes_text(body.get("attributes"), where, is_flag=STRUCT_FLAGS.__contains__), where=name
    )
    auto_doc = struct_attrs.auto_doc or bool(body.get("auto_doc", False))

    if kind is CompositeKind.ENUM:
        if body.get("fields"):
            raise ModelError(f"{where}: an enum declares variants, not fields")
        names = _as_name_list(variants, f"{where}.enum")
        duplicates = sorted({variant for variant in names if names.count(variant) > 1})
        if duplicates:
            raise DeclarationError(f"{where}: variant(s) {', '.join(duplicates)} declared more than once")
        return CompositeTypeSpec(name=name, kind=kind, variants=tuple(names), auto_doc=auto_doc)

    if variants is not None:
        raise ModelError(f"{where}: only enums declare variants")
    if kind is not CompositeKind.STRUCT:
        return CompositeTypeSpec(name=name, kind=kind, auto_doc=auto_doc)

    fields_data = body.get("fields") or []
    if not isinstance(fields_data, Sequence) or isinstance(fields_data, (str, bytes)):
        raise ModelError(f"{where}.fields must be a list")
    fields = tuple(
        _field_from_dict(item, f"{where}.fields[{index}]") for index, item in enumerate(fields_data)
    )
    seen: set[str] = set()
    for field in fields:
        if field.name in seen:
            raise DeclarationError(f"{where}: field '{field.name}' is declared more than once")
        seen.add(field.name)
    return CompositeTypeSpec(name=name, kind=kind, fields=fields, auto_doc=auto_doc)


def _field_from_dict(item: Any, where: str) -> FieldSpec:
    if not isinstance(item, Mapping):
        raise ModelError(f"{where} must be a mapping")
    raw_name = item.get("name")
    name = _as_name(raw_name, f"{where}.name") if raw_name is not None else None
    if not name:
        raise ModelError(f"{where} is missing 'name'")
    type_text = _as_str(item.get("type"))
    if not type_text:
        raise ModelError(f"{where} ('{name}') is missing 'type'")
    return FieldSpec(
        name=name,
        type=parse_type_expression(type_text),
        attributes=_attributes_text(item.get("nixos"), f"{where}.nixos", is_flag=is_framework_flag),
        compat_attributes=_attributes_text(
            item.get("serde"), f"{where}.serde", is_flag=COMPAT_FLAGS.__contains__
        ),
        doc_lines=_doc_lines(item.get("doc"), f"{where}.doc"),
    )


def _attributes_text(value: Any, where: str, *, is_flag: Callable[[str], bool]) -> str:
    """Accept raw attribute text, or a mapping rendered into that syntax.

    Flags are written bare when true and left out when false or null. Every
    other value, ``false`` and ``null`` included, becomes a Nix literal.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        parts: List[str] = []
        for key, item in value.items():
            if is_flag(str(key)):
                if item:
                    parts.append(str(key))
            elif isinstance(item, str):
                parts.append(f'{key} = "{_escape_literal(item)}"')
            else:
                parts.append(f'{key} = "{_escape_literal(format_nix_value(item))}"')
        return ", ".join(parts)
    raise ModelError(f"{where} must be attribute text or a mapping")


def _doc_lines(value: Any, where: str) -> Tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return tuple(value.splitlines())
    return tuple(_as_str_list(value, where))


def _escape_literal(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


def _first_non_string_key(descriptor: TypeDescriptor) -> Optional[TypeDescriptor]:
    if isinstance(descriptor, MapOf):
        key = descriptor.key
        if not (isinstance(key, Primitive) and key.kind is PrimitiveKind.STRING):
            return key
        return _first_non_string_key(descriptor.value)
    if isinstance(descriptor, (OptionalOf, ListOf, SetOf)):
        return _first_non_string_key(descriptor.inner)
    return None


def _lex_type(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    position = 0
    stripped_end = len(text.rstrip())
    while position < stripped_end:
        match = _TYPE_TOKEN.match(text, position)
        if match is None or match.end() == position:
            raise ModelError(f"Invalid character {text[position]!r} in type expression {text!r}")
        kind = match.lastgroup or ""
        tokens.append((kind, match.group(kind)))
        position = match.end()
    return [token for token in tokens if token[0] != "lifetime" and token != ("punct", "&")]


def _parse_type(
    tokens: Sequence[Tuple[str, str]], index: int, text: str
) -> Tuple[TypeDescriptor, int]:
    kind, value = tokens[index]
    if kind != "ident":
        raise ModelError(f"Expected a type name, found '{value}' in {text!r}")
    name = value.split("::")[-1]
    index += 1

    args: List[TypeDescriptor] = []
    if index < len(tokens) and tokens[index][1] in _OPEN:
        closing = _OPEN[tokens[index][1]]
        index += 1
        while True:
            if index >= len(tokens):
                raise ModelError(f"Unclosed type arguments in {text!r}")
            arg, index = _parse_type(tokens, index, text)
            args.append(arg)
            if index >= len(tokens):
                raise ModelError(f"Unclosed type arguments in {text!r}")
            if tokens[index][1] == ",":
                index += 1
                continue
            if tokens[index][1] == closing:
                index += 1
                break
            raise ModelError(f"Unexpected '{tokens[index][1]}' in type expression {text!r}")

    return _descriptor(name, args), index


def _descriptor(name: str, args: List[TypeDescriptor]) -> TypeDescriptor:
    first = args[0] if args else Unknown()
    if name in PRIMITIVE_SPELLINGS:
        return Primitive(PRIMITIVE_SPELLINGS[name], name)
    if name in OPTIONAL_SPELLINGS:
        return OptionalOf(first)
    if name in LIST_SPELLINGS:
        return ListOf(first)
    if name in SET_SPELLINGS:
        return SetOf(first)
    if name in MAP_SPELLINGS:
        if len(args) >= 2:
            return MapOf(args[0], args[1])
        return MapOf(Primitive(PrimitiveKind.STRING, "String"), first)
    if name in TRANSPARENT_SPELLINGS:
        return first
    if name in OPAQUE_SPELLINGS:
        return Unknown(name)
    return CustomRef(name)


def _as_str(value: Any) -> Optional[str]:
    return str(value) if isinstance(value, (str, int, float)) and not isinstance(value, bool) else None


def _as_str_list(value: Any, where: str) -> List[str]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ModelError(f"{where} must be a list")
    return [str(item) for item in value]


def _as_name(value: Any, where: str) -> str:
    # YAML 1.1 reads unquoted On/Off/Yes/No as booleans.
    if not isinstance(value, str):
        raise ModelError(
            f"{where}: expected a name, got {value!r}; quote names such as On, Off, Yes or No"
        )
    return value


def _as_name_list(value: Any, where: str) -> List[str]:
    if isinstance(value, str) or not isinstance(value, Sequence):
        raise ModelError(f"{where} must be a list")
    return [_as_name(item, f"{where}[{index}]") for index, item in enumerate(value)]


__all__ = [
    "ModelError",
    "UNION_GUIDANCE",
    "check_map_keys",
    "load_model",
    "model_from_dict",
    "parse_type_expression",
]
