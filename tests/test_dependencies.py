from __future__ import annotations

from tfcanvas.graph.dependencies import build_dependency_map, topo_sort

COMPONENTS = [
    {"id": "ec2-1", "type": "ec2"},
    {"id": "sg-1", "type": "securityGroup"},
    {"id": "subnet-1", "type": "subnet"},
    {"id": "subnet-2", "type": "subnet"},
    {"id": "rds-1", "type": "rds"},
    {"id": "vpc-1", "type": "vpc"},
    {"id": "s3-1", "type": "s3"},
]

CONNECTIONS = [
    {"id": "c1", "from": "subnet-1", "to": "vpc-1"},
    {"id": "c2", "from": "vpc-1", "to": "subnet-2"},
    {"id": "c3", "from": "ec2-1", "to": "subnet-1"},
    {"id": "c4", "from": "sg-1", "to": "ec2-1"},
    {"id": "c5", "from": "rds-1", "to": "subnet-1"},
    {"id": "c6", "from": "subnet-2", "to": "rds-1"},
    {"id": "c7", "from": "ec2-1", "to": "s3-1"},
]


def test_dependency_map_from_containment_and_security_groups() -> None:
    deps = build_dependency_map(COMPONENTS, CONNECTIONS)
    assert deps == {
        "ec2-1": ["subnet-1", "sg-1"],
        "sg-1": [],
        "subnet-1": ["vpc-1"],
        "subnet-2": ["vpc-1"],
        "rds-1": ["subnet-1", "subnet-2"],
        "vpc-1": [],
        "s3-1": [],
    }


def test_dependency_map_has_no_duplicates() -> None:
    conns = CONNECTIONS + [{"id": "dup", "from": "subnet-1", "to": "ec2-1"}, {"id": "dup2", "from": "ec2-1", "to": "sg-1"}]
    deps = build_dependency_map(COMPONENTS, conns)
    for values in deps.values():
        assert len(values) == len(set(values))


def test_topo_sort_puts_dependencies_first() -> None:
    deps = build_dependency_map(COMPONENTS, CONNECTIONS)
    order = [c.id for c in topo_sort(COMPONENTS, deps)]
    assert sorted(order) == sorted(c["id"] for c in COMPONENTS)
    for node, node_deps in deps.items():
        for dep in node_deps:
            assert order.index(dep) < order.index(node)


def test_topo_sort_keeps_input_order_for_independent_nodes() -> None:
    comps = [{"id": "b", "type": "s3"}, {"id": "a", "type": "s3"}, {"id": "c", "type": "dynamodb"}]
    assert [c.id for c in topo_sort(comps, {})] == ["b", "a", "c"]


def test_topo_sort_skips_unknown_dependencies() -> None:
    comps = [{"id": "ec2-1", "type": "ec2"}, {"id": "subnet-1", "type": "subnet"}]
    order = topo_sort(comps, {"ec2-1": ["ghost", "subnet-1"], "subnet-1": ["vpc-missing"]})
    assert [c.id for c in order] == ["subnet-1", "ec2-1"]


def test_topo_sort_terminates_on_cycles() -> None:
    comps = [{"id": "a", "type": "s3"}, {"id": "b", "type": "s3"}]
    order = topo_sort(comps, {"a": ["b"], "b": ["a"]})
    assert sorted(c.id for c in order) == ["a", "b"]
