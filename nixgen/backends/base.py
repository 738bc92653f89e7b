"""Rendering backend contract: keyword spellings of the target language."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ..models import PrimitiveKind
from ..values import format_attr_name, quote_nix_string

ATTRIBUTE_ORDER: tuple[str, ...] = (
    "description",
    "default",
    "default_text",
    "example",
    "apply",
    "internal",
    "visible",
    "read_only",
    "related_packages",
)


@dataclass(frozen=True)
class RenderingBackend:
    """Constants and small helpers that spell out schema expressions.

    Everything language-specific lives here so the emitter only decides
    structure, order and indentation.
    """

    name: str
    primitives: Mapping[PrimitiveKind, str] = field(hash=False)
    any_type: str
    nullable: str
    list_of: str
    dict_of: str
    enum: str
    composite: str
    option_constructor: str
    labels: Mapping[str, str] = field(hash=False)
    type_label: str = "type"
    options_keyword: str = "options"
    let_keyword: str = "let"
    in_keyword: str = "in"
    true_literal: str = "true"
    comment_prefix: str = "#"
    declaration_comment: str = "type definition for {name}"
    type_name_suffix: str = "Type"
    indent_unit: str = "  "

    def primitive(self, kind: PrimitiveKind) -> str:
        return self.primitives.get(kind, self.any_type)

    def label(self, attribute: str) -> str:
        return self.labels.get(attribute, attribute)

    def indent(self, level: int) -> str:
        return self.indent_unit * max(level, 0)

    def quote(self, text: str) -> str:
        return quote_nix_string(text)

    def attr_name(self, name: str) -> str:
        return format_attr_name(name)

    def wrap(self, wrapper: str, inner: str) -> str:
        """Apply ``wrapper`` to ``inner``, parenthesizing compound expressions."""
        if any(char.isspace() for char in inner):
            inner = f"({inner})"
        return f"{wrapper} {inner}"

    def enum_expression(self, variants: Sequence[str]) -> str:
        if not variants:
            return f"{self.enum} [ ]"
        quoted = " ".join(self.quote(variant) for variant in variants)
        return f"{self.enum} [ {quoted} ]"

    def generated_name(self, type_name: str) -> str:
        """``ServerConfig`` -> ``serverConfigType``."""
        if not type_name:
            return self.type_name_suffix.lower()
        return f"{type_name[0].lower()}{type_name[1:]}{self.type_name_suffix}"

    def comment(self, text: str) -> str:
        return f"{self.comment_prefix} {text}"


__all__ = ["ATTRIBUTE_ORDER", "RenderingBackend"]
