from __future__ import annotations

import logging

from tfcanvas.export.terraform import (
    EMPTY_CANVAS_MESSAGE,
    TerraformGenerator,
    generate_infrastructure_code,
    write_terraform,
)
from tfcanvas.registry import ComponentRegistry
from tfcanvas.registry.base import ComponentMetadata
from tfcanvas.validate import validate_connection

VPC = {"id": "vpc-0001", "type": "vpc", "name": "main-vpc", "cidr_block": "10.0.0.0/16"}
SUBNET = {"id": "subnet-0001", "type": "subnet", "name": "public-subnet", "cidr_block": "10.0.1.0/24"}
EC2 = {"id": "ec2-0001", "type": "ec2", "name": "web", "instance_type": "t2.micro", "instances": 1}


def _block_index(text: str, resource_type: str, label: str) -> int:
    return text.index(f'resource "{resource_type}" "{label}"')


def test_empty_canvas_placeholder() -> None:
    assert generate_infrastructure_code([], []) == EMPTY_CANVAS_MESSAGE
    assert generate_infrastructure_code([{"type": "ec2"}], []) == "// No components added to the canvas yet."


def test_vpc_subnet_ec2_end_to_end() -> None:
    components = [EC2, SUBNET, VPC]
    conn1 = {"id": "c1", "from": "subnet-0001", "to": "vpc-0001"}
    conn2 = {"id": "c2", "from": "ec2-0001", "to": "subnet-0001"}
    assert validate_connection(SUBNET, VPC, components, []).valid
    assert validate_connection(EC2, SUBNET, components, [conn1]).valid

    text = generate_infrastructure_code(components, [conn1, conn2])

    vpc_at = _block_index(text, "aws_vpc", "main_vpc")
    subnet_at = _block_index(text, "aws_subnet", "public_subnet")
    ec2_at = _block_index(text, "aws_instance", "web")
    assert vpc_at < subnet_at < ec2_at

    subnet_block = text[subnet_at:ec2_at]
    assert "aws_vpc.main_vpc.id" in subnet_block
    assert '"10.0.1.0/24"' in subnet_block
    ec2_block = text[ec2_at:]
    assert "aws_subnet.public_subnet.id" in ec2_block
    assert '"t2.micro"' in ec2_block


def test_document_sections() -> None:
    text = TerraformGenerator(region="eu-west-1").generate([VPC], [])
    assert text.startswith("# AWS Infrastructure - Hierarchical Architecture\n\nprovider \"aws\" {")
    assert 'region = "eu-west-1"' in text
    assert "variable \"" not in text
    assert 'output "main_vpc_id"' in text
    assert "aws_vpc.main_vpc.id" in text
    assert text.index("provider") < text.index("resource") < text.index("output")


def test_unsupported_component_type() -> None:
    text = generate_infrastructure_code([{"id": "w-1", "type": "widget"}], [])
    assert "// Unsupported component type: widget" in text


def test_standalone_subnet_references_variable() -> None:
    text = generate_infrastructure_code([SUBNET, {"id": "sg-1", "type": "securityGroup"}], [])
    assert text.count('variable "vpc_id"') == 1
    assert text.index('variable "vpc_id"') < text.index("resource")
    assert "= var.vpc_id" in text


def test_rds_declares_sensitive_password_variable() -> None:
    rds = {"id": "rds-0001", "type": "rds", "name": "app-db", "engine": "postgres"}
    text = generate_infrastructure_code(
        [VPC, SUBNET, rds],
        [{"from": "subnet-0001", "to": "vpc-0001"}, {"from": "rds-0001", "to": "subnet-0001"}],
    )
    assert 'variable "db_password"' in text
    assert "sensitive   = true" in text
    assert 'resource "aws_db_subnet_group" "app_db_subnet_group"' in text
    assert '"13.4"' in text
    assert 'output "app_db_endpoint"' in text


def test_security_group_uses_discovered_vpc_and_is_referenced() -> None:
    sg = {"id": "sg-0001", "type": "securityGroup", "name": "web-sg"}
    conns = [
        {"from": "subnet-0001", "to": "vpc-0001"},
        {"from": "ec2-0001", "to": "subnet-0001"},
        {"from": "sg-0001", "to": "ec2-0001"},
    ]
    text = generate_infrastructure_code([VPC, SUBNET, EC2, sg], conns)
    sg_at = _block_index(text, "aws_security_group", "web_sg")
    assert _block_index(text, "aws_instance", "web") < sg_at
    assert "aws_vpc.main_vpc.id" in text[sg_at:]
    assert "vpc_security_group_ids = [aws_security_group.web_sg.id]" in text
    assert 'variable "vpc_id"' not in text


def test_standalone_resources_and_outputs_in_input_order() -> None:
    s3 = {"id": "s3-0001", "type": "s3", "name": "assets", "versioning": True}
    lb = {"id": "lb-0001", "type": "loadBalancer"}
    text = generate_infrastructure_code([s3, lb], [])
    assert 'resource "aws_s3_bucket_versioning" "assets_versioning"' in text
    assert text.index('output "assets_bucket_name"') < text.index('output "lb_0001_dns_name"')


def test_ec2_output_uses_splat() -> None:
    text = generate_infrastructure_code([EC2], [])
    assert "aws_instance.web[*].public_ip" in text


def test_clashing_labels_get_numeric_suffix() -> None:
    first = {"id": "ec2-aaaa", "type": "ec2", "name": "web-1"}
    second = {"id": "ec2-bbbb", "type": "ec2", "name": "web_1"}
    unnamed = [{"id": "x-0009", "type": "s3"}, {"id": "y-0009", "type": "s3"}]
    text = generate_infrastructure_code([first, second, *unnamed], [])
    assert text.count('resource "aws_instance" "web_1"') == 1
    assert 'resource "aws_instance" "web_1_2"' in text
    assert text.count('output "web_1_ip"') == 1
    assert 'output "web_1_2_ip"' in text
    assert 'resource "aws_s3_bucket" "s3_0009"' in text
    assert 'resource "aws_s3_bucket" "s3_0009_2"' in text


def test_names_are_quoted_literally() -> None:
    s3 = {"id": "s3-0001", "type": "s3", "name": "logs", "bucket_name": "${var.secret}\nx"}
    text = generate_infrastructure_code([s3], [])
    assert 'bucket = "$${var.secret}\\nx"' in text
    assert 'variable "secret"' not in text


def test_template_failure_becomes_comment(caplog) -> None:
    def _broken(node, parent=None, security_groups=()):
        raise RuntimeError("boom")

    registry = ComponentRegistry(
        [
            ComponentMetadata(
                type="broken",
                category="misc",
                display_name="Broken",
                noun="broken thing",
                terraform_type="null_resource",
                name_prefix="broken",
                template=_broken,
            )
        ]
    )
    with caplog.at_level(logging.WARNING):
        text = generate_infrastructure_code([{"id": "b-1", "type": "broken"}], [], registry=registry)
    assert "// Failed to render broken b-1: boom" in text
    assert any(r.levelno == logging.WARNING for r in caplog.records)


def test_write_terraform(tmp_path) -> None:
    path = write_terraform(tmp_path / "out", "# hello", "infra.tf")
    assert path == tmp_path / "out" / "infra.tf"
    assert path.read_text(encoding="utf-8") == "# hello\n"
