"""Compiler facade tying configuration, validation, ordering and emission together."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from .backends import RenderingBackend, get_backend
from .config import ConfigError, NixgenConfig, load_config
from .emit import ModuleEmitter, ModuleFileBuilder
from .graph import DependencyOrderer
from .loader import check_map_keys, load_model
from .logging import get_logger
from .models import TypeGraph


class OutputMode(Enum):
    OPTIONS = "options"
    TYPE = "type"
    FULL = "full"
    MODULE = "module"


class SchemaCompiler:
    """Turns a :class:`TypeGraph` into NixOS option text.

    The compiler owns no state between calls; every method takes the graph it
    renders, so one instance can serve any number of models.
    """

    def __init__(
        self,
        config: NixgenConfig | None = None,
        *,
        backend: RenderingBackend | None = None,
    ) -> None:
        self.config = config or NixgenConfig(root=Path.cwd())
        self.backend = backend or self._resolve_backend(self.config)
        orderer = DependencyOrderer(
            mode=self.config.discovery.mode,
            cycles=self.config.discovery.cycles,
        )
        self.emitter = ModuleEmitter(self.backend, orderer=orderer)
        self.logger = get_logger("compiler")

    @classmethod
    def from_config_path(cls, config_path: Path) -> "SchemaCompiler":
        return cls(load_config(config_path))

    def load(self, model_path: Path, *, root: str | None = None) -> TypeGraph:
        graph = load_model(model_path, root=root)
        self._validate(graph)
        return graph

    def options(self, graph: TypeGraph, name: str | None = None) -> str:
        """Options-only block for one type."""
        self._validate(graph)
        return self.emitter.options(graph, name)

    def type_definition(self, graph: TypeGraph, name: str | None = None) -> str:
        """Named declaration of exactly one type."""
        self._validate(graph)
        return self.emitter.type_definition(graph, name)

    def full_definition(self, graph: TypeGraph, name: str | None = None) -> str:
        """Dependency-closed ``let ... in`` module for the root type."""
        self._validate(graph)
        return self.emitter.full_definition(graph, name)

    def module_file(
        self,
        graph: TypeGraph,
        name: str | None = None,
        *,
        module_name: str | None = None,
    ) -> str:
        """Complete ``{ config, lib, pkgs, ... }:`` module declaring the type's options."""
        self._validate(graph)
        type_name = name or graph.root
        module_settings = self.config.module
        resolved_name = module_name or module_settings.name or default_module_name(type_name)

        builder = ModuleFileBuilder(
            resolved_name,
            backend=self.backend,
            templates_dir=self.config.templates_dir,
        )
        for path in module_settings.imports:
            builder.add_import(path)
        builder.add_options_text(self.emitter.options(graph, type_name, level=2))
        for line in module_settings.config_lines:
            builder.add_config_line(line)
        self.logger.debug("Building module file options.%s for %s", resolved_name, type_name)
        return builder.build()

    def compile(
        self,
        graph: TypeGraph,
        mode: OutputMode | str,
        *,
        name: str | None = None,
        module_name: str | None = None,
    ) -> str:
        """Dispatch to the renderer for ``mode``."""
        mode = OutputMode(mode)
        if mode is OutputMode.OPTIONS:
            return self.options(graph, name)
        if mode is OutputMode.TYPE:
            return self.type_definition(graph, name)
        if mode is OutputMode.FULL:
            return self.full_definition(graph, name)
        return self.module_file(graph, name, module_name=module_name)

    def _validate(self, graph: TypeGraph) -> None:
        if self.config.mapping.strict_map_keys:
            check_map_keys(graph)

    @staticmethod
    def _resolve_backend(config: NixgenConfig) -> RenderingBackend:
        try:
            return get_backend(config.backend)
        except ValueError as exc:
            raise ConfigError(str(exc)) from exc


def default_module_name(type_name: str) -> str:
    """``ServerConfig`` -> ``services.serverConfig``."""
    return f"services.{type_name[:1].lower()}{type_name[1:]}"


__all__ = ["OutputMode", "SchemaCompiler", "default_module_name"]
