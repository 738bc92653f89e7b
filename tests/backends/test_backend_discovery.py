"""Tests for rendering backend discovery."""

from __future__ import annotations

from dataclasses import replace

import pytest

import nixgen.backends as backends
from nixgen.backends import RenderingBackend, discover_backends, get_backend, nixos_backend
from nixgen.models import PrimitiveKind


class _FakeEntryPoint:
    def __init__(self, name: str, target: object) -> None:
        self.name = name
        self._target = target

    def load(self) -> object:
        return self._target


def test_builtin_backend_is_default() -> None:
    backend = get_backend()

    assert backend.name == "nixos"
    assert get_backend("NixOS") == backend
    assert backend.primitive(PrimitiveKind.PATH) == "types.path"
    assert backend.label("read_only") == "readOnly"
    assert backend.label("description") == "description"


def test_unknown_backend_lists_available_ones() -> None:
    with pytest.raises(ValueError, match="Available backends: nixos"):
        get_backend("terraform")


def test_entry_point_backends_are_discovered(monkeypatch: pytest.MonkeyPatch) -> None:
    custom = replace(nixos_backend(), name="plain", option_constructor="mkOption")
    monkeypatch.setattr(
        backends,
        "_iter_entry_points",
        lambda: [
            _FakeEntryPoint("Plain", lambda: custom),
            _FakeEntryPoint("nixos", lambda: custom),
        ],
    )

    factories = discover_backends()

    assert sorted(factories) == ["nixos", "plain"]
    assert get_backend("plain").option_constructor == "mkOption"
    assert get_backend("nixos").option_constructor == "lib.mkOption"


def test_entry_point_must_provide_a_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(backends, "_iter_entry_points", lambda: [_FakeEntryPoint("bad", 42)])

    with pytest.raises(TypeError, match="RenderingBackend"):
        get_backend("bad")


def test_backend_helpers(backend: RenderingBackend) -> None:
    assert backend.generated_name("ServerConfig") == "serverConfigType"
    assert backend.generated_name("") == "type"
    assert backend.wrap("types.nullOr", "types.str") == "types.nullOr types.str"
    assert backend.wrap("types.listOf", "types.nullOr types.str") == "types.listOf (types.nullOr types.str)"
    assert backend.enum_expression([]) == "types.enum [ ]"
    assert backend.enum_expression(['say "hi"']) == 'types.enum [ "say \\"hi\\"" ]'
    assert backend.indent(2) == "    "
    assert backend.indent(-1) == ""
    assert backend.comment("x") == "# x"
