from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree

from ..design.schema import Component, Connection
from ..graph.hierarchy import Hierarchy
from ..registry import ComponentRegistry
from ..validate import ContainmentIssue, ValidationResult


def make_console(*, stderr: bool = False, width: Optional[int] = None) -> Console:
    return Console(stderr=stderr, width=width, highlight=False)


def _label(comp: Component) -> str:
    return f"{escape(comp.display_name)} [dim]({escape(comp.type)}, {escape(comp.id)})[/dim]"


def types_table(registry: ComponentRegistry) -> Table:
    table = Table(title="Component types")
    table.add_column("Type", style="bold")
    table.add_column("Category")
    table.add_column("Name")
    table.add_column("Container")
    table.add_column("Placed in")
    table.add_column("Connects to")
    for category, types in registry.categories().items():
        for ctype in types:
            meta = registry.get_metadata(ctype)
            if meta is None:
                continue
            placed_in = sorted(meta.must_be_contained_by) or sorted(meta.can_be_contained_by)
            table.add_row(
                meta.type,
                category,
                meta.display_name,
                "yes" if meta.is_container else "",
                ", ".join(placed_in),
                ", ".join(sorted(meta.allowed_connections)),
            )
    return table


def validation_table(results: Sequence[Tuple[Connection, ValidationResult]]) -> Table:
    table = Table(title="Connections")
    table.add_column("Connection")
    table.add_column("From")
    table.add_column("To")
    table.add_column("Result")
    table.add_column("Message")
    for conn, result in results:
        table.add_row(
            escape(conn.id),
            escape(conn.from_id),
            escape(conn.to_id),
            "[green]ok[/green]" if result.valid else "[red]rejected[/red]",
            escape(result.message),
        )
    return table


def containment_table(issues: Sequence[ContainmentIssue]) -> Table:
    table = Table(title="Containment warnings")
    table.add_column("Component")
    table.add_column("Type")
    table.add_column("Message")
    for issue in issues:
        table.add_row(escape(issue.component_id), escape(issue.component_type), escape(issue.message))
    return table


def _add_subtree(branch: Tree, comp: Component, hierarchy: Hierarchy, seen: set) -> None:
    if comp.id in seen:
        return
    seen.add(comp.id)
    node = branch.add(_label(comp))
    for sg in hierarchy.security_groups_for(comp.id):
        node.add(f"[yellow]secured by[/yellow] {escape(sg.display_name)}")
    for child in hierarchy.children_of(comp.id):
        _add_subtree(node, child, hierarchy, seen)


def hierarchy_tree(hierarchy: Hierarchy) -> Tree:
    root = Tree("[bold]Design[/bold]")
    seen: set = set()
    for vpc in hierarchy.vpcs:
        _add_subtree(root, vpc, hierarchy, seen)
    for subnet in hierarchy.standalone_subnets:
        _add_subtree(root, subnet, hierarchy, seen)
    if hierarchy.security_groups:
        groups = root.add("[bold]Security groups[/bold]")
        for sg in hierarchy.security_groups:
            groups.add(_label(sg))
    standalone = [c for c in hierarchy.standalone_resources if c.id not in seen]
    if standalone:
        branch = root.add("[bold]Standalone resources[/bold]")
        for comp in standalone:
            _add_subtree(branch, comp, hierarchy, seen)
    return root


def order_table(ordered: Sequence[Component], dependency_map: dict) -> Table:
    table = Table(title="Dependency order")
    table.add_column("#", justify="right")
    table.add_column("Component")
    table.add_column("Type")
    table.add_column("Depends on")
    for idx, comp in enumerate(ordered, start=1):
        deps: List[str] = list(dependency_map.get(comp.id, ()))
        table.add_row(str(idx), escape(comp.display_name), escape(comp.type), escape(", ".join(deps)))
    return table
