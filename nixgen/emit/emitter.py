"""Rendering of options blocks, type declarations and closure modules."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ..attributes import resolve_field_attributes
from ..backends import ATTRIBUTE_ORDER, RenderingBackend, get_backend
from ..graph import DependencyOrderer, DiscoveryMode
from ..logging import get_logger
from ..mapping import TypeMapper
from ..models import CompositeKind, CompositeTypeSpec, EffectiveFieldAttributes, FieldSpec, TypeGraph

_FLAG_ATTRIBUTES = frozenset({"internal", "read_only"})
_QUOTED_ATTRIBUTES = frozenset({"description"})

_LOGGER = get_logger("emit")


def render_option(
    backend: RenderingBackend,
    attributes: EffectiveFieldAttributes,
    type_expression: str,
    level: int,
) -> List[str]:
    """Render one option entry: the type, then every present attribute in fixed order."""
    outer = backend.indent(level)
    inner = backend.indent(level + 1)
    lines = [f"{outer}{backend.attr_name(attributes.name)} = {backend.option_constructor} {{"]
    lines.append(f"{inner}{backend.type_label} = {type_expression};")

    for key in ATTRIBUTE_ORDER:
        value = getattr(attributes, key)
        if key in _FLAG_ATTRIBUTES:
            if not value:
                continue
            rendered = backend.true_literal
        elif value is None:
            continue
        elif key in _QUOTED_ATTRIBUTES:
            rendered = backend.quote(value)
        else:
            # Expression fragments are the author's responsibility; insert verbatim.
            rendered = value
        lines.append(f"{inner}{backend.label(key)} = {rendered};")

    lines.append(f"{outer}}};")
    return lines


class _Emission:
    """State owned by a single emission call.

    Holds the graph, the mapping mode, the embed stack and the resolved
    attributes of every field rendered so far.
    """

    def __init__(self, backend: RenderingBackend, graph: TypeGraph, *, named: bool) -> None:
        self.backend = backend
        self.graph = graph
        self.named = named
        self._embedding: List[str] = []
        self._attributes: Dict[Tuple[FieldSpec, bool], EffectiveFieldAttributes] = {}
        self.mapper = TypeMapper(backend, graph=graph, inline_options=self.embed)

    def embed(self, spec: CompositeTypeSpec, level: int) -> Optional[List[str]]:
        if spec.name in self._embedding:
            return None
        self._embedding.append(spec.name)
        try:
            return self.options_lines(spec, level)
        finally:
            self._embedding.pop()

    def attributes_for(self, field: FieldSpec, *, auto_doc: bool) -> EffectiveFieldAttributes:
        key = (field, auto_doc)
        attributes = self._attributes.get(key)
        if attributes is None:
            attributes = resolve_field_attributes(field, auto_doc=auto_doc)
            if attributes.flatten:
                _LOGGER.debug(
                    "Field '%s' is flattened by serde; rendering it as a nested option", field.name
                )
            self._attributes[key] = attributes
        return attributes

    def options_lines(self, spec: CompositeTypeSpec, level: int) -> List[str]:
        if not spec.has_named_fields:
            return []
        lines: List[str] = []
        for field in spec.fields:
            attributes = self.attributes_for(field, auto_doc=spec.auto_doc)
            if attributes.skip:
                continue
            type_expression = self.mapper.map(field.type, named=self.named, level=level + 1)
            if lines:
                lines.append("")
            lines.extend(render_option(self.backend, attributes, type_expression, level))
        return lines

    def declaration_lines(self, spec: CompositeTypeSpec, level: int) -> List[str]:
        backend = self.backend
        head = f"{backend.indent(level)}{backend.generated_name(spec.name)} = "
        if spec.kind is CompositeKind.ENUM:
            return [f"{head}{backend.enum_expression(spec.variants)};"]
        if not spec.has_named_fields:
            return [f"{head}{backend.any_type};"]

        inner = backend.indent(level + 1)
        lines = [f"{head}{backend.composite} {{", f"{inner}{backend.options_keyword} = {{"]
        body = self.embed(spec, level + 2)
        lines.extend(body or [])
        lines.append(f"{inner}}};")
        lines.append(f"{backend.indent(level)}}};")
        return lines


class ModuleEmitter:
    """Renders the three output modes over one per-field rendering routine.

    * :meth:`options` renders the options block of a single type;
    * :meth:`type_definition` wraps that block in a named declaration;
    * :meth:`full_definition` declares the whole dependency closure in a
      ``let`` block, dependencies first, and designates the root as result.
    """

    def __init__(
        self,
        backend: RenderingBackend | None = None,
        *,
        orderer: DependencyOrderer | None = None,
    ) -> None:
        self.backend = backend or get_backend()
        self.orderer = orderer or DependencyOrderer()
        self.logger = get_logger("emit")

    def options(self, graph: TypeGraph, name: str | None = None, *, level: int = 1) -> str:
        """Options-only block for ``name`` (default: the graph root)."""
        spec = graph[name or graph.root]
        emission = _Emission(self.backend, graph, named=False)
        lines = emission.embed(spec, level) or []
        return _join(lines)

    def type_expression(self, graph: TypeGraph, name: str | None = None) -> str:
        spec = graph[name or graph.root]
        return TypeMapper(self.backend, graph=graph).composite_expression(spec)

    def type_definition(self, graph: TypeGraph, name: str | None = None) -> str:
        """Single named declaration for exactly one type, without its dependencies."""
        spec = graph[name or graph.root]
        emission = _Emission(self.backend, graph, named=False)
        comment = self.backend.comment(self.backend.declaration_comment.format(name=spec.name))
        return _join([comment, *emission.declaration_lines(spec, 0)])

    def full_definition(self, graph: TypeGraph, name: str | None = None) -> str:
        """Dependency-closed module: every reachable type declared once, root last."""
        if name is not None and name != graph.root:
            graph = graph.with_root(name)
        plan = self.orderer.order(graph)
        self.logger.debug("Emitting %d declaration(s) for %s", len(plan), plan.root)

        backend = self.backend
        emission = _Emission(backend, graph, named=True)
        # Direct discovery declares only the root's own references, so their
        # bodies embed whatever they reference in turn.
        shallow = _Emission(backend, graph, named=False)
        direct = self.orderer.mode is DiscoveryMode.DIRECT
        lines = [backend.let_keyword]
        for type_name in plan:
            current = shallow if direct and type_name != plan.root else emission
            lines.extend(current.declaration_lines(graph[type_name], 1))
        lines.append(f"{backend.in_keyword} {backend.generated_name(plan.root)}")
        return _join(lines)


def _join(lines: List[str]) -> str:
    return "\n".join(lines) + "\n" if lines else ""


__all__ = ["ModuleEmitter", "render_option"]
