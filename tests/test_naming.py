from __future__ import annotations

from tfcanvas.design.schema import Component, Connection
from tfcanvas.util.naming import display_name, hcl_string, resource_name, sanitize_resource_name


def test_sanitize_resource_name() -> None:
    assert sanitize_resource_name("Web Server-1") == "web_server_1"
    assert sanitize_resource_name("db.prod/main") == "db_prod_main"
    assert sanitize_resource_name("") == ""
    assert sanitize_resource_name(None) == ""


def test_display_name_falls_back_to_type_and_id_suffix() -> None:
    assert display_name("ec2", None, "ec2-1234abcd") == "EC2-abcd"
    assert display_name("ec2", "web", "ec2-1234abcd") == "web"
    assert Component(id="vpc-0042", type="vpc").display_name == "VPC-0042"


def test_resource_name_uses_prefix_when_unnamed() -> None:
    assert resource_name("lb", None, "lb-99ff") == "lb_99ff"
    assert resource_name("lb", "Public LB", "lb-99ff") == "public_lb"


def test_hcl_string_escapes() -> None:
    assert hcl_string('say "hi"') == '"say \\"hi\\""'
    assert hcl_string("C:\\tmp") == '"C:\\\\tmp"'


def test_component_from_dict_splits_attributes() -> None:
    comp = Component.from_dict({"id": "s3-1", "type": "s3", "x": "12", "name": "assets", "versioning": True})
    assert comp.x == 12.0
    assert comp.name == "assets"
    assert comp.attributes == {"versioning": True}
    assert comp.to_dict()["versioning"] is True
    assert Component.from_dict({"id": "", "type": "s3"}) is None


def test_connection_from_dict() -> None:
    conn = Connection.from_dict({"from": "a", "to": "b"})
    assert conn.id == "a-b"
    assert conn.pair == frozenset({"a", "b"})
    assert conn.other("a") == "b"
    assert Connection.from_dict({"from": "a"}) is None


def test_hcl_string_escapes_newlines_and_templates() -> None:
    assert hcl_string("a\nb\tc") == '"a\\nb\\tc"'
    assert hcl_string("${var.x} %{if}") == '"$${var.x} %%{if}"'
