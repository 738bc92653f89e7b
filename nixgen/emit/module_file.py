"""Complete NixOS module files built around generated options."""

from __future__ import annotations

from dataclasses import dataclass
import textwrap
from pathlib import Path
from typing import List, Optional

from jinja2 import Environment, FileSystemLoader, StrictUndefined

from ..backends import RenderingBackend, get_backend
from ..models import EffectiveFieldAttributes
from .emitter import render_option

_TEMPLATE_NAME = "module.nix.j2"
_OPTION_LEVEL = 2


@dataclass
class OptionEntry:
    """A hand-declared option added next to generated ones."""

    name: str
    type_expression: str
    description: Optional[str] = None
    default: Optional[str] = None
    example: Optional[str] = None

    def render(self, backend: RenderingBackend, level: int = _OPTION_LEVEL) -> str:
        attributes = EffectiveFieldAttributes(
            name=self.name,
            description=self.description,
            default=self.default,
            example=self.example,
        )
        return "\n".join(render_option(backend, attributes, self.type_expression, level))


class ModuleFileBuilder:
    """Assembles ``{ config, lib, pkgs, ... }:`` module files from options and config lines."""

    def __init__(
        self,
        module_name: str,
        *,
        backend: RenderingBackend | None = None,
        templates_dir: Path | None = None,
    ) -> None:
        self.module_name = module_name
        self.backend = backend or get_backend()
        self._options: List[str] = []
        self._imports: List[str] = []
        self._config_lines: List[str] = []
        self._env = self._create_env(templates_dir)

    def add_option(self, option: OptionEntry) -> "ModuleFileBuilder":
        self._options.append(option.render(self.backend))
        return self

    def add_options_text(self, text: str) -> "ModuleFileBuilder":
        """Add pre-rendered option entries (already indented for the options block)."""
        text = text.rstrip("\n")
        if text.strip():
            self._options.append(text)
        return self

    def add_import(self, path: str) -> "ModuleFileBuilder":
        self._imports.append(path)
        return self

    def add_config_line(self, line: str) -> "ModuleFileBuilder":
        self._config_lines.append(line)
        return self

    def build(self) -> str:
        template = self._env.get_template(_TEMPLATE_NAME)
        return template.render(
            module_name=self.module_name,
            imports=self._imports,
            options="\n\n".join(self._options),
            config_lines=self._config_lines,
        )

    @staticmethod
    def _create_env(templates_dir: Path | None) -> Environment:
        directories: List[str] = []
        if templates_dir:
            directories.append(str(templates_dir))
        default_dir = str(Path(__file__).with_name("templates"))
        if default_dir not in directories:
            directories.append(default_dir)
        return Environment(
            loader=FileSystemLoader(directories),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            undefined=StrictUndefined,
        )


def generate_module_file(
    module_name: str,
    options_text: str,
    config_text: str | None = None,
    *,
    backend: RenderingBackend | None = None,
) -> str:
    """Wrap rendered options (and optional config body) into a module file."""
    builder = ModuleFileBuilder(module_name, backend=backend)
    builder.add_options_text(options_text)
    if config_text:
        for line in textwrap.dedent(config_text).splitlines():
            if line.strip():
                builder.add_config_line(line.rstrip())
    return builder.build()


__all__ = ["ModuleFileBuilder", "OptionEntry", "generate_module_file"]
