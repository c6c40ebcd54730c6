from __future__ import annotations

import pytest

from tfcanvas.design.store import Design
from tfcanvas.util.errors import DesignError


def _web_design() -> Design:
    design = Design()
    design.add_component("vpc", id="vpc-1", name="main")
    design.add_component("subnet", id="subnet-1", name="public")
    design.add_component("ec2", id="ec2-1", name="web")
    design.add_component("securityGroup", id="sg-1")
    assert design.connect("subnet-1", "vpc-1").valid
    assert design.connect("ec2-1", "subnet-1").valid
    assert design.connect("sg-1", "ec2-1").valid
    return design


def test_add_component_merges_registry_defaults() -> None:
    design = Design()
    comp = design.add_component("ec2", x=10, y=20, instance_type="t3.large")
    assert comp.id.startswith("ec2-")
    assert comp.get("instance_type") == "t3.large"
    assert comp.get("ami") == "ami-0c55b159cbfafe1f0"
    assert (comp.width, comp.height) == (40.0, 40.0)
    assert (comp.x, comp.y) == (10.0, 20.0)
    assert comp.display_name == f"EC2-{comp.id[-4:]}"

    vpc = design.add_component("vpc")
    assert (vpc.width, vpc.height) == (300.0, 250.0)
    assert vpc.id != comp.id


def test_add_component_rejects_unknown_type_and_duplicate_id() -> None:
    design = Design()
    design.add_component("s3", id="s3-1")
    with pytest.raises(DesignError):
        design.add_component("s3", id="s3-1")
    with pytest.raises(DesignError):
        design.add_component("mainframe")


def test_update_component_patches_attributes_only() -> None:
    design = _web_design()
    updated = design.update_component("ec2-1", instance_type="m5.large", x=55, name="api")
    assert updated.get("instance_type") == "m5.large"
    assert updated.x == 55.0
    assert updated.name == "api"
    assert design.get("ec2-1") == updated

    with pytest.raises(DesignError):
        design.update_component("ec2-1", type="rds")
    with pytest.raises(DesignError):
        design.update_component("ec2-1", id="ec2-2")
    with pytest.raises(DesignError):
        design.update_component("nope", x=1)


def test_remove_component_cascades_connections() -> None:
    design = _web_design()
    removed = design.remove_component("ec2-1")
    assert sorted(c.id for c in removed) == ["ec2-1-subnet-1", "sg-1-ec2-1"]
    assert "ec2-1" not in design
    ids = {c.id for c in design.components}
    for conn in design.connections:
        assert conn.from_id in ids and conn.to_id in ids
    assert [c.id for c in design.connections] == ["subnet-1-vpc-1"]


def test_connect_only_commits_valid_edges() -> None:
    design = _web_design()
    design.add_component("vpc", id="vpc-2")
    result = design.connect("subnet-1", "vpc-2")
    assert not result.valid
    assert result.message == "This subnet is already placed in a VPC"
    assert len(design.connections) == 3

    assert not design.connect("ec2-1", "ghost").valid
    assert not design.connect("ec2-1", "subnet-1").valid


def test_disconnect_and_clear() -> None:
    design = _web_design()
    conn = design.disconnect("sg-1-ec2-1")
    assert conn.from_id == "sg-1"
    with pytest.raises(DesignError):
        design.disconnect("sg-1-ec2-1")
    design.clear()
    assert design.components == []
    assert design.connections == []


def test_derived_views() -> None:
    design = _web_design()
    assert design.hierarchy().container_of == {"subnet-1": "vpc-1", "ec2-1": "subnet-1"}
    order = [c.id for c in design.dependency_order()]
    assert order.index("vpc-1") < order.index("subnet-1") < order.index("ec2-1")
    assert order.index("sg-1") < order.index("ec2-1")
    assert 'resource "aws_instance" "web"' in design.terraform()
    assert 'region = "ap-south-1"' in design.terraform(region="ap-south-1")


def test_to_dict_from_dict() -> None:
    design = _web_design()
    data = design.to_dict()
    assert data["connections"][0] == {"id": "subnet-1-vpc-1", "from": "subnet-1", "to": "vpc-1"}

    restored = Design.from_dict(data)
    assert [c.id for c in restored.components] == ["vpc-1", "subnet-1", "ec2-1", "sg-1"]
    assert restored.get("ec2-1").get("instance_type") == "t2.micro"
    assert restored.connections == design.connections


def test_from_dict_drops_dangling_connections_and_rejects_duplicates() -> None:
    design = Design.from_dict(
        {
            "components": [{"id": "a", "type": "s3"}],
            "connections": [{"id": "x", "from": "a", "to": "missing"}],
        }
    )
    assert design.connections == []

    with pytest.raises(DesignError):
        Design.from_dict({"components": [{"id": "a", "type": "s3"}, {"id": "a", "type": "ec2"}], "connections": []})
    with pytest.raises(DesignError):
        Design.from_dict({"components": "nope", "connections": []})


def test_from_dict_drops_self_and_duplicate_pair_connections() -> None:
    design = Design.from_dict(
        {
            "components": [{"id": "a", "type": "ec2"}, {"id": "b", "type": "s3"}],
            "connections": [
                {"id": "loop", "from": "a", "to": "a"},
                {"id": "ab", "from": "a", "to": "b"},
                {"id": "ba", "from": "b", "to": "a"},
            ],
        }
    )
    assert [c.id for c in design.connections] == ["ab"]
    assert not design.connect("b", "a").valid
