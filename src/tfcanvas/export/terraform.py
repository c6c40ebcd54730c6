from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional, Set, Tuple

from ..design.schema import Component, ComponentLike, ConnectionLike, coerce_components
from ..graph.hierarchy import Hierarchy, HierarchyResolver
from ..logging import get_logger
from ..registry import ComponentRegistry, get_default_registry
from ..util.errors import ExportError
from ..util.naming import resource_name
from .hcl import (
    comment,
    find_variable_references,
    format_output,
    format_provider_block,
    format_terraform_code,
    format_undeclared_variable,
    format_variable,
)

LOG = get_logger(__name__)

EMPTY_CANVAS_MESSAGE = "// No components added to the canvas yet."
TITLE = "AWS Infrastructure - Hierarchical Architecture"
DEFAULT_REGION = "us-west-2"


class TerraformGenerator:
    """
    Renders a design as a single Terraform document.

    Containers are emitted before their contents: each VPC with its subnets and
    their resources, then subnets outside any VPC, then security groups, then
    resources that are not placed anywhere.
    """

    def __init__(self, registry: Optional[ComponentRegistry] = None, region: str = DEFAULT_REGION) -> None:
        self.registry = registry or get_default_registry()
        self.region = region or DEFAULT_REGION

    def generate(self, components: Iterable[ComponentLike], connections: Iterable[ConnectionLike]) -> str:
        comps = coerce_components(components)
        if not comps:
            return EMPTY_CANVAS_MESSAGE
        comps = self.unique_labels(comps)

        hierarchy = HierarchyResolver(self.registry).resolve(comps, connections)
        resources = self.resource_blocks(hierarchy)
        LOG.debug(
            "Rendered resource blocks",
            extra={"components": len(hierarchy.components), "blocks": len(resources)},
        )
        return format_terraform_code(
            TITLE,
            format_provider_block(self.region),
            self.variable_blocks(resources),
            resources,
            self.output_blocks(hierarchy),
        )

    def unique_labels(self, components: List[Component]) -> List[Component]:
        """
        Rename components whose resource labels would clash within one Terraform type.

        The first holder keeps its label; later ones get a numeric suffix.
        """
        taken: Set[Tuple[str, str]] = set()
        out: List[Component] = []
        for comp in components:
            meta = self.registry.get_metadata(comp.type)
            if meta is None:
                out.append(comp)
                continue
            base = resource_name(meta.name_prefix, comp.name, comp.id)
            label = base
            n = 2
            while (meta.terraform_type, label) in taken:
                label = f"{base}_{n}"
                n += 1
            taken.add((meta.terraform_type, label))
            if label != base:
                LOG.warning(
                    "Resource label already in use; renaming",
                    extra={"component": comp.id, "label": base, "renamed_to": label},
                )
                comp = replace(comp, name=label)
            out.append(comp)
        return out

    def render(self, node: Component, parent: Optional[Component], hierarchy: Hierarchy) -> str:
        meta = self.registry.get_metadata(node.type)
        if meta is None or meta.template is None:
            return comment(f"Unsupported component type: {node.type}")
        try:
            return meta.template(node, parent, hierarchy.security_groups_for(node.id))
        except Exception as e:
            LOG.warning(
                "Template failed; emitting a placeholder comment",
                extra={"component": node.id, "component_type": node.type, "error": str(e)},
            )
            return comment(f"Failed to render {node.type} {node.id}: {e}")

    def _render_tree(
        self,
        node: Component,
        parent: Optional[Component],
        hierarchy: Hierarchy,
        rendered: Set[str],
        out: List[str],
    ) -> None:
        if node.id in rendered:
            return
        rendered.add(node.id)
        out.append(self.render(node, parent, hierarchy))
        for child in hierarchy.children_of(node.id):
            self._render_tree(child, node, hierarchy, rendered, out)

    def resource_blocks(self, hierarchy: Hierarchy) -> List[str]:
        out: List[str] = []
        rendered: Set[str] = set()
        for vpc in hierarchy.vpcs:
            self._render_tree(vpc, None, hierarchy, rendered, out)
        for subnet in hierarchy.standalone_subnets:
            self._render_tree(subnet, None, hierarchy, rendered, out)
        for sg in hierarchy.security_groups:
            if sg.id in rendered:
                continue
            rendered.add(sg.id)
            out.append(self.render(sg, hierarchy.discovered_vpc_for_security_group(sg.id), hierarchy))
        for resource in hierarchy.standalone_resources:
            self._render_tree(resource, None, hierarchy, rendered, out)
        return out

    def variable_blocks(self, resources: Iterable[str]) -> List[str]:
        blocks: List[str] = []
        for name in find_variable_references("\n".join(resources)):
            spec = self.registry.variable(name)
            blocks.append(format_variable(spec) if spec is not None else format_undeclared_variable(name))
        return blocks

    def output_blocks(self, hierarchy: Hierarchy) -> List[str]:
        blocks: List[str] = []
        for comp in hierarchy.components.values():
            meta = self.registry.get_metadata(comp.type)
            if meta is None or meta.output is None:
                continue
            spec = meta.output
            label = resource_name(meta.name_prefix, comp.name, comp.id)
            address = f"{meta.terraform_type}.{label}"
            value = f"{address}[*].{spec.attribute}" if spec.splat else f"{address}.{spec.attribute}"
            blocks.append(format_output(f"{label}_{spec.suffix}", spec.description, value))
        return blocks


def generate_infrastructure_code(
    components: Iterable[ComponentLike],
    connections: Iterable[ConnectionLike],
    registry: Optional[ComponentRegistry] = None,
    region: str = DEFAULT_REGION,
) -> str:
    return TerraformGenerator(registry, region).generate(components, connections)


def write_terraform(outdir: Path, text: str, filename: str = "main.tf") -> Path:
    path = Path(outdir) / filename
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text if text.endswith("\n") else text + "\n", encoding="utf-8")
    except OSError as e:
        raise ExportError(f"Failed to write Terraform file {path}: {e}") from e
    return path
