"""Tests for the three output modes of the module emitter."""

from __future__ import annotations

import logging

import pytest

from nixgen.backends import RenderingBackend
from nixgen.emit import ModuleEmitter, render_option
from nixgen.emit.emitter import _Emission
from nixgen.graph import CyclePolicy, DependencyCycleError, DependencyOrderer, DiscoveryMode, UnresolvedTypeError
from nixgen.models import CompositeKind, CompositeTypeSpec, EffectiveFieldAttributes
from tests._fixtures.model_builder import enum, field, graph, struct


def _pair():
    return graph("Pair", struct("Pair", field("a", "i32"), field("b", "Option<String>")))


def _outer_inner():
    return graph(
        "Outer",
        struct("Outer", field("inner", "Inner")),
        struct("Inner", field("v", "i32")),
    )


def _shared():
    return graph(
        "App",
        struct("App", field("p", "Shared"), field("q", "Shared")),
        struct("Shared", field("x", "i32")),
    )


def test_options_block_for_pair(emitter: ModuleEmitter) -> None:
    assert emitter.options(_pair()) == (
        "  a = lib.mkOption {\n"
        "    type = types.int;\n"
        "  };\n"
        "\n"
        "  b = lib.mkOption {\n"
        "    type = types.nullOr types.str;\n"
        "  };\n"
    )


def test_full_definition_declares_dependencies_first(emitter: ModuleEmitter) -> None:
    assert emitter.full_definition(_outer_inner()) == (
        "let\n"
        "  innerType = types.submodule {\n"
        "    options = {\n"
        "      v = lib.mkOption {\n"
        "        type = types.int;\n"
        "      };\n"
        "    };\n"
        "  };\n"
        "  outerType = types.submodule {\n"
        "    options = {\n"
        "      inner = lib.mkOption {\n"
        "        type = innerType;\n"
        "      };\n"
        "    };\n"
        "  };\n"
        "in outerType\n"
    )


def test_shared_type_is_declared_once(emitter: ModuleEmitter) -> None:
    text = emitter.full_definition(_shared())

    assert text.count("sharedType = types.submodule {") == 1
    assert text.count("type = sharedType;") == 2
    assert text.index("sharedType =") < text.index("appType =")
    assert text.endswith("in appType\n")


def test_type_definition_embeds_referenced_types(emitter: ModuleEmitter) -> None:
    assert emitter.type_definition(_outer_inner()) == (
        "# NixOS type definition for Outer\n"
        "outerType = types.submodule {\n"
        "  options = {\n"
        "    inner = lib.mkOption {\n"
        "      type = types.submodule {\n"
        "        options = {\n"
        "          v = lib.mkOption {\n"
        "            type = types.int;\n"
        "          };\n"
        "        };\n"
        "      };\n"
        "    };\n"
        "  };\n"
        "};\n"
    )


def test_type_definition_of_a_named_type(emitter: ModuleEmitter) -> None:
    assert emitter.type_definition(_outer_inner(), "Inner") == (
        "# NixOS type definition for Inner\n"
        "innerType = types.submodule {\n"
        "  options = {\n"
        "    v = lib.mkOption {\n"
        "      type = types.int;\n"
        "    };\n"
        "  };\n"
        "};\n"
    )


def test_enum_and_tuple_declarations(emitter: ModuleEmitter) -> None:
    model = graph(
        "App",
        struct("App", field("mode", "Mode"), field("pair", "Pair")),
        enum("Mode", "Fast", "Slow"),
        CompositeTypeSpec(name="Pair", kind=CompositeKind.TUPLE),
    )

    text = emitter.full_definition(model)

    assert '  modeType = types.enum [ "Fast" "Slow" ];\n' in text
    assert "  pairType = types.attrs;\n" in text
    assert "type = modeType;" in text
    assert "type = pairType;" in text
    assert emitter.options(model).count('types.enum [ "Fast" "Slow" ]') == 1
    assert emitter.type_definition(model, "Mode") == (
        "# NixOS type definition for Mode\n"
        'modeType = types.enum [ "Fast" "Slow" ];\n'
    )


def test_recursive_type_in_every_mode(emitter: ModuleEmitter) -> None:
    model = graph("Node", struct("Node", field("name", "String"), field("children", "Vec<Box<Node>>")))

    assert "type = types.listOf types.attrs;" in emitter.options(model)
    assert "type = types.listOf types.attrs;" in emitter.type_definition(model)
    full = emitter.full_definition(model)
    assert "type = types.listOf nodeType;" in full
    assert full.count("nodeType = types.submodule {") == 1


def test_skipped_fields_are_absent_from_every_mode(emitter: ModuleEmitter) -> None:
    model = graph(
        "App",
        struct(
            "App",
            field("visible_port", "u16"),
            field("secret_token", "String", serde="skip"),
            field("internal_cache", "Cache", nixos="skip"),
        ),
        struct("Cache", field("size", "u32")),
    )

    outputs = [
        emitter.options(model),
        emitter.type_definition(model),
        emitter.full_definition(model),
    ]
    for text in outputs:
        assert "visible_port" in text
        assert "secret_token" not in text
        assert "internal_cache" not in text


def test_attributes_render_in_fixed_order(emitter: ModuleEmitter) -> None:
    model = graph(
        "App",
        struct(
            "App",
            field(
                "port",
                "u16",
                nixos=(
                    'related_packages = "[ pkgs.curl ]", readOnly, visible = "false", internal, '
                    'apply = "toString", example = "9090", defaultText = "8080 (literal)", '
                    'default = "8080", description = "Port", optional'
                ),
            ),
        ),
    )

    assert emitter.options(model) == (
        "  port = lib.mkOption {\n"
        "    type = types.int;\n"
        '    description = "Port";\n'
        "    default = 8080;\n"
        "    defaultText = 8080 (literal);\n"
        "    example = 9090;\n"
        "    apply = toString;\n"
        "    internal = true;\n"
        "    visible = false;\n"
        "    readOnly = true;\n"
        "    relatedPackages = [ pkgs.curl ];\n"
        "  };\n"
    )


def test_description_is_escaped(emitter: ModuleEmitter) -> None:
    model = graph("App", struct("App", field("motd", "String", nixos=r'description = "say \"hi\"\nbye"')))

    text = emitter.options(model)

    assert '    description = "say \\"hi\\"\\nbye";\n' in text


def test_doc_comments_and_auto_doc(emitter: ModuleEmitter) -> None:
    model = graph(
        "App",
        struct(
            "App",
            field("port", "u16", nixos='description = "X"', doc=[" Y"]),
            auto_doc=True,
        ),
    )

    assert 'description = "Y";' in emitter.options(model)


def test_renamed_and_quoted_option_names(emitter: ModuleEmitter) -> None:
    model = graph(
        "App",
        struct(
            "App",
            field("listen_port", "u16", serde='rename = "listenPort"'),
            field("keyword", "bool", nixos='rename = "with"'),
        ),
    )

    text = emitter.options(model)

    assert "  listenPort = lib.mkOption {\n" in text
    assert '  "with" = lib.mkOption {\n' in text


def test_options_for_enum_root_is_empty(emitter: ModuleEmitter) -> None:
    assert emitter.options(graph("Mode", enum("Mode", "A"))) == ""


def test_type_expression(emitter: ModuleEmitter) -> None:
    model = _outer_inner()

    assert emitter.type_expression(model) == "outerType"
    assert emitter.type_expression(graph("Mode", enum("Mode", "A"))) == 'types.enum [ "A" ]'


def test_full_definition_for_a_non_root_type(emitter: ModuleEmitter) -> None:
    text = emitter.full_definition(_outer_inner(), "Inner")

    assert "outerType" not in text
    assert text.endswith("in innerType\n")


def test_full_definition_propagates_graph_errors(backend: RenderingBackend) -> None:
    unresolved = graph("App", struct("App", field("db", "Database")))
    with pytest.raises(UnresolvedTypeError):
        ModuleEmitter(backend).full_definition(unresolved)

    mutual = graph("A", struct("A", field("b", "B")), struct("B", field("a", "A")))
    strict = ModuleEmitter(backend, orderer=DependencyOrderer(cycles=CyclePolicy.ERROR))
    with pytest.raises(DependencyCycleError):
        strict.full_definition(mutual)


def test_mutual_references_emit_each_type_once(emitter: ModuleEmitter) -> None:
    mutual = graph("A", struct("A", field("b", "B")), struct("B", field("a", "Option<A>")))

    text = emitter.full_definition(mutual)

    assert text.count("aType = types.submodule {") == 1
    assert text.count("bType = types.submodule {") == 1
    assert "type = types.nullOr aType;" in text


def test_output_is_deterministic(emitter: ModuleEmitter) -> None:
    model = _shared()

    assert emitter.full_definition(model) == emitter.full_definition(_shared())
    assert emitter.options(model) == emitter.options(model)
    assert emitter.type_definition(model) == emitter.type_definition(model)


def test_render_option_without_attributes(backend: RenderingBackend) -> None:
    lines = render_option(backend, EffectiveFieldAttributes(name="enable"), "types.bool", 0)

    assert lines == ["enable = lib.mkOption {", "  type = types.bool;", "};"]


def test_direct_discovery_inlines_nested_references(backend: RenderingBackend) -> None:
    model = graph(
        "Root",
        struct("Root", field("mid", "Mid")),
        struct("Mid", field("leaf", "Option<Leaf>")),
        struct("Leaf", field("x", "u8")),
    )
    shallow = ModuleEmitter(backend, orderer=DependencyOrderer(mode=DiscoveryMode.DIRECT))

    assert shallow.full_definition(model) == (
        "let\n"
        "  midType = types.submodule {\n"
        "    options = {\n"
        "      leaf = lib.mkOption {\n"
        "        type = types.nullOr (types.submodule {\n"
        "          options = {\n"
        "            x = lib.mkOption {\n"
        "              type = types.int;\n"
        "            };\n"
        "          };\n"
        "        });\n"
        "      };\n"
        "    };\n"
        "  };\n"
        "  rootType = types.submodule {\n"
        "    options = {\n"
        "      mid = lib.mkOption {\n"
        "        type = midType;\n"
        "      };\n"
        "    };\n"
        "  };\n"
        "in rootType\n"
    )


def test_flattened_fields_render_as_nested_options(
    emitter: ModuleEmitter, caplog: pytest.LogCaptureFixture
) -> None:
    model = graph(
        "App",
        struct("App", field("extra", "Extra", serde="flatten")),
        struct("Extra", field("x", "u8")),
    )

    with caplog.at_level(logging.DEBUG, logger="nixgen.emit"):
        text = emitter.full_definition(model)

    assert "extra = lib.mkOption {\n        type = extraType;" in text
    assert "Field 'extra' is flattened by serde; rendering it as a nested option" in caplog.text


def test_field_attributes_are_resolved_once_per_emission(backend: RenderingBackend) -> None:
    model = _shared()
    spec = model["Shared"]
    first = _Emission(backend, model, named=True)
    second = _Emission(backend, model, named=True)

    resolved = first.attributes_for(spec.fields[0], auto_doc=False)

    assert first.attributes_for(spec.fields[0], auto_doc=False) is resolved
    assert second.attributes_for(spec.fields[0], auto_doc=False) is not resolved
    assert second.attributes_for(spec.fields[0], auto_doc=False) == resolved
