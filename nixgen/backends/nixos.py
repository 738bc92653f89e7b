"""NixOS module system spellings."""

from __future__ import annotations

from ..models import PrimitiveKind
from .base import RenderingBackend


def nixos_backend() -> RenderingBackend:
    return RenderingBackend(
        name="nixos",
        primitives={
            PrimitiveKind.BOOL: "types.bool",
            PrimitiveKind.STRING: "types.str",
            PrimitiveKind.INT: "types.int",
            PrimitiveKind.FLOAT: "types.float",
            PrimitiveKind.PATH: "types.path",
        },
        any_type="types.attrs",
        nullable="types.nullOr",
        list_of="types.listOf",
        dict_of="types.attrsOf",
        enum="types.enum",
        composite="types.submodule",
        option_constructor="lib.mkOption",
        labels={
            "description": "description",
            "default": "default",
            "default_text": "defaultText",
            "example": "example",
            "apply": "apply",
            "internal": "internal",
            "visible": "visible",
            "read_only": "readOnly",
            "related_packages": "relatedPackages",
        },
        declaration_comment="NixOS type definition for {name}",
    )


__all__ = ["nixos_backend"]
