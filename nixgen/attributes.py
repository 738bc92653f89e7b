"""Attribute parsing and merging for model fields.

Two annotation namespaces are understood. The framework namespace (``nixos``)
is authoritative: its option names form a closed set and anything outside it
aborts the compilation. The compatibility namespace (``serde``) mirrors the
serialization-library convention and is read on a best-effort basis; options
nixgen does not use are ignored.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import re
from typing import Iterable, List, Optional, Sequence, Tuple

from .logging import get_logger
from .models import EffectiveFieldAttributes, FieldSpec, SchemaError

_LOGGER = get_logger("attributes")

_TOKEN_PATTERN = re.compile(
    r"""
    (?P<space>\s+)
    |(?P<ident>[A-Za-z_][A-Za-z0-9_]*)
    |(?P<string>"(?:[^"\\]|\\.)*")
    |(?P<punct>[=,()])
    """,
    re.VERBOSE | re.DOTALL,
)

_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "0": "\0", "\\": "\\", '"': '"', "'": "'"}


class AttributeParseError(SchemaError):
    """Raised when attribute text is malformed or names an unsupported option."""


class FrameworkOption(Enum):
    DESCRIPTION = "description"
    DEFAULT = "default"
    DEFAULT_TEXT = "default_text"
    EXAMPLE = "example"
    APPLY = "apply"
    INTERNAL = "internal"
    VISIBLE = "visible"
    READ_ONLY = "read_only"
    RELATED_PACKAGES = "related_packages"
    OPTIONAL = "optional"
    RENAME = "rename"
    SKIP = "skip"

    @property
    def is_flag(self) -> bool:
        return self in _FLAG_OPTIONS

    @classmethod
    def lookup(cls, name: str) -> Optional["FrameworkOption"]:
        alias = _ALIASES.get(name)
        if alias is not None:
            return alias
        try:
            return cls(name)
        except ValueError:
            return None


_FLAG_OPTIONS = frozenset(
    {
        FrameworkOption.INTERNAL,
        FrameworkOption.READ_ONLY,
        FrameworkOption.OPTIONAL,
        FrameworkOption.SKIP,
    }
)

_ALIASES = {
    "defaultText": FrameworkOption.DEFAULT_TEXT,
    "readOnly": FrameworkOption.READ_ONLY,
    "relatedPackages": FrameworkOption.RELATED_PACKAGES,
}

COMPAT_FLAGS = frozenset({"skip", "skip_serializing", "skip_deserializing", "flatten", "default"})
STRUCT_FLAGS = frozenset({"auto_doc"})


def is_framework_flag(name: str) -> bool:
    option = FrameworkOption.lookup(name)
    return option is not None and option.is_flag


@dataclass(frozen=True)
class RawAttribute:
    """One parsed item: ``name``, ``name = "value"`` or ``name(nested...)``."""

    name: str
    value: Optional[str] = None
    nested: Optional[Tuple["RawAttribute", ...]] = None


@dataclass(frozen=True)
class FrameworkAttribute:
    """A single recognized framework option with its value (``None`` for flags)."""

    option: FrameworkOption
    value: Optional[str] = None


@dataclass(frozen=True)
class FrameworkAttributes:
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
    rename: Optional[str] = None
    skip: bool = False

    @classmethod
    def from_items(cls, items: Iterable[FrameworkAttribute]) -> "FrameworkAttributes":
        values: dict[str, object] = {}
        for item in items:
            values[item.option.value] = True if item.option.is_flag else item.value
        return cls(**values)  # type: ignore[arg-type]


@dataclass(frozen=True)
class CompatAttributes:
    rename: Optional[str] = None
    skip: bool = False
    skip_serializing: bool = False
    skip_deserializing: bool = False
    has_default: bool = False
    flatten: bool = False


@dataclass(frozen=True)
class StructAttributes:
    auto_doc: bool = False


def tokenize_attributes(text: str) -> List[RawAttribute]:
    """Parse raw attribute text into a list of items without interpreting names."""
    tokens = _lex(text)
    items, index = _parse_items(tokens, 0, text)
    if index != len(tokens):
        raise AttributeParseError(f"Unexpected '{tokens[index][1]}' in attribute text: {text!r}")
    return items


def parse_framework_attributes(text: str, *, where: str = "field") -> Tuple[FrameworkAttribute, ...]:
    """Interpret framework-namespace text; unknown options are fatal."""
    parsed: List[FrameworkAttribute] = []
    for raw in tokenize_attributes(text):
        option = FrameworkOption.lookup(raw.name)
        if option is None:
            raise AttributeParseError(f"unsupported nixos attribute '{raw.name}' on {where}")
        if raw.nested is not None:
            raise AttributeParseError(f"nixos attribute '{raw.name}' on {where} does not accept arguments")
        if option.is_flag:
            if raw.value is not None:
                raise AttributeParseError(f"nixos attribute '{raw.name}' on {where} is a flag and takes no value")
            parsed.append(FrameworkAttribute(option))
        else:
            if raw.value is None:
                raise AttributeParseError(
                    f"nixos attribute '{raw.name}' on {where} expects a string value"
                )
            parsed.append(FrameworkAttribute(option, raw.value))
    return tuple(parsed)


def parse_compat_attributes(text: str) -> CompatAttributes:
    """Interpret compatibility-namespace text; unknown options are ignored."""
    values: dict[str, object] = {}
    for raw in tokenize_attributes(text):
        if raw.nested is not None:
            _LOGGER.debug("Ignoring serde attribute group '%s(...)'", raw.name)
            continue
        if raw.name == "rename" and raw.value is not None:
            values["rename"] = raw.value
        elif raw.name == "default":
            # Both `default` and `default = "path::to::fn"` supply a value externally.
            values["has_default"] = True
        elif raw.name in COMPAT_FLAGS:
            values[raw.name] = True
        else:
            _LOGGER.debug("Ignoring serde attribute '%s'", raw.name)
    return CompatAttributes(**values)  # type: ignore[arg-type]


def parse_struct_attributes(text: str, *, where: str = "struct") -> StructAttributes:
    auto_doc = False
    for raw in tokenize_attributes(text):
        if raw.name == "auto_doc" and raw.value is None and raw.nested is None:
            auto_doc = True
        else:
            raise AttributeParseError(f"unsupported nixos struct attribute '{raw.name}' on {where}")
    return StructAttributes(auto_doc=auto_doc)


def extract_doc_comment(lines: Sequence[str]) -> Optional[str]:
    """Join doc lines, dropping one leading space per line.

    A comment made only of blank lines counts as absent.
    """
    if not lines:
        return None
    docs = [line[1:] if line.startswith(" ") else line for line in lines]
    text = "\n".join(docs).strip()
    return text or None


def merge_attributes(
    declared_name: str,
    framework: FrameworkAttributes,
    compat: CompatAttributes,
    doc_comment: Optional[str],
    *,
    auto_doc: bool,
) -> EffectiveFieldAttributes:
    if auto_doc:
        description = doc_comment if doc_comment is not None else framework.description
    else:
        description = framework.description if framework.description is not None else doc_comment

    return EffectiveFieldAttributes(
        name=framework.rename or compat.rename or declared_name,
        description=description,
        default=framework.default,
        default_text=framework.default_text,
        example=framework.example,
        apply=framework.apply,
        internal=framework.internal,
        visible=framework.visible,
        read_only=framework.read_only,
        related_packages=framework.related_packages,
        optional=framework.optional or compat.has_default,
        skip=framework.skip or compat.skip,
        flatten=compat.flatten,
    )


def resolve_field_attributes(field: FieldSpec, *, auto_doc: bool) -> EffectiveFieldAttributes:
    """Compute the effective attributes for ``field``."""
    where = f"field '{field.name}'"
    framework = FrameworkAttributes.from_items(parse_framework_attributes(field.attributes, where=where))
    compat = parse_compat_attributes(field.compat_attributes)
    return merge_attributes(
        field.name,
        framework,
        compat,
        extract_doc_comment(field.doc_lines),
        auto_doc=auto_doc,
    )


def _lex(text: str) -> List[Tuple[str, str]]:
    tokens: List[Tuple[str, str]] = []
    position = 0
    while position < len(text):
        match = _TOKEN_PATTERN.match(text, position)
        if match is None:
            raise AttributeParseError(
                f"Invalid character {text[position]!r} in attribute text: {text!r}"
            )
        kind = match.lastgroup or ""
        if kind != "space":
            tokens.append((kind, match.group(kind)))
        position = match.end()
    return tokens


def _parse_items(
    tokens: Sequence[Tuple[str, str]], index: int, text: str
) -> Tuple[List[RawAttribute], int]:
    items: List[RawAttribute] = []
    while index < len(tokens):
        kind, value = tokens[index]
        if kind == "punct" and value == ")":
            break
        if kind == "punct" and value == ",":
            index += 1
            continue
        if kind != "ident":
            raise AttributeParseError(f"Expected attribute name, found '{value}' in {text!r}")
        name = value
        index += 1
        item = RawAttribute(name)
        if index < len(tokens) and tokens[index] == ("punct", "="):
            index += 1
            if index >= len(tokens) or tokens[index][0] != "string":
                raise AttributeParseError(f"Expected string literal after '{name} =' in {text!r}")
            item = RawAttribute(name, value=_unquote(tokens[index][1]))
            index += 1
        elif index < len(tokens) and tokens[index] == ("punct", "("):
            nested, index = _parse_items(tokens, index + 1, text)
            if index >= len(tokens) or tokens[index] != ("punct", ")"):
                raise AttributeParseError(f"Unclosed '(' after '{name}' in {text!r}")
            index += 1
            item = RawAttribute(name, nested=tuple(nested))
        items.append(item)
        if index < len(tokens) and tokens[index] not in {("punct", ","), ("punct", ")")}:
            raise AttributeParseError(f"Expected ',' after '{name}' in {text!r}")
    return items, index


def _unquote(literal: str) -> str:
    body = literal[1:-1]
    result: List[str] = []
    chars = iter(body)
    for char in chars:
        if char != "\\":
            result.append(char)
            continue
        escaped = next(chars, "")
        result.append(_ESCAPES.get(escaped, "\\" + escaped))
    return "".join(result)


__all__ = [
    "AttributeParseError",
    "COMPAT_FLAGS",
    "CompatAttributes",
    "FrameworkAttribute",
    "FrameworkAttributes",
    "FrameworkOption",
    "RawAttribute",
    "STRUCT_FLAGS",
    "StructAttributes",
    "extract_doc_comment",
    "is_framework_flag",
    "merge_attributes",
    "parse_compat_attributes",
    "parse_framework_attributes",
    "parse_struct_attributes",
    "resolve_field_attributes",
    "tokenize_attributes",
]
