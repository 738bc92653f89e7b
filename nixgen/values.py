"""Formatting of plain Python data as Nix expression literals."""

from __future__ import annotations

from typing import Any, Mapping
import re

_BARE_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_'-]*$")
_KEYWORDS = frozenset({"assert", "else", "if", "in", "inherit", "let", "or", "rec", "then", "with"})


def escape_nix_string(text: str) -> str:
    """Escape ``text`` for use inside a double-quoted Nix string."""
    return (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
        .replace("\t", "\\t")
        .replace("${", "\\${")
    )


def quote_nix_string(text: str) -> str:
    return f'"{escape_nix_string(text)}"'


def format_nix_value(value: Any) -> str:
    """Render JSON-like data (``None``, bool, number, str, list, mapping) as Nix."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    if isinstance(value, str):
        return quote_nix_string(value)
    if isinstance(value, Mapping):
        if not value:
            return "{ }"
        attrs = " ".join(
            f"{format_attr_name(str(key))} = {format_nix_value(item)};" for key, item in value.items()
        )
        return f"{{ {attrs} }}"
    if isinstance(value, (list, tuple)):
        if not value:
            return "[ ]"
        items = " ".join(_format_list_item(item) for item in value)
        return f"[ {items} ]"
    raise TypeError(f"Cannot format value of type {type(value).__name__} as Nix")


def format_attr_name(key: str) -> str:
    """Attribute names that are not plain identifiers (or are keywords) get quoted."""
    if _BARE_KEY.match(key) and key not in _KEYWORDS:
        return key
    return quote_nix_string(key)


def _format_list_item(item: Any) -> str:
    rendered = format_nix_value(item)
    # Nix list elements cannot start with a bare unary minus.
    if isinstance(item, (int, float)) and not isinstance(item, bool) and item < 0:
        return f"({rendered})"
    return rendered


__all__ = ["escape_nix_string", "format_attr_name", "format_nix_value", "quote_nix_string"]
