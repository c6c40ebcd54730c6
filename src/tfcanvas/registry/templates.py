from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Tuple

from ..design.schema import Component
from ..util.naming import hcl_string, resource_name

# component type -> (terraform resource type, label prefix for unnamed components)
RESOURCE_LABELS: Dict[str, Tuple[str, str]] = {
    "vpc": ("aws_vpc", "vpc"),
    "subnet": ("aws_subnet", "subnet"),
    "securityGroup": ("aws_security_group", "sg"),
    "ec2": ("aws_instance", "ec2"),
    "lambda": ("aws_lambda_function", "lambda"),
    "s3": ("aws_s3_bucket", "s3"),
    "ebs": ("aws_ebs_volume", "ebs"),
    "rds": ("aws_db_instance", "rds"),
    "dynamodb": ("aws_dynamodb_table", "dynamodb"),
    "elasticache": ("aws_elasticache_cluster", "elasticache"),
    "loadBalancer": ("aws_lb", "lb"),
}

RDS_ENGINE_VERSIONS = {
    "mysql": "8.0",
    "postgres": "13.4",
    "mariadb": "10.5",
    "oracle-se2": "19.0",
    "sqlserver-ex": "15.00",
}

DEFAULT_SECURITY_GROUP_DESCRIPTION = "Security group created via tfcanvas"


def label(component: Component) -> str:
    _, prefix = RESOURCE_LABELS.get(component.type, ("", component.type))
    return resource_name(prefix, component.name, component.id)


def ref(component: Component, attribute: str = "id") -> str:
    tf_type, _ = RESOURCE_LABELS.get(component.type, ("", component.type))
    return f"{tf_type}.{label(component)}.{attribute}"


def _default_name(component: Component) -> str:
    _, prefix = RESOURCE_LABELS.get(component.type, ("", component.type))
    return component.name or f"{prefix}-{component.id[-4:]}"


def _flag(value: Any, default: bool) -> str:
    if value is None:
        return "true" if default else "false"
    return "true" if bool(value) else "false"


def _ref_list(components: Sequence[Component]) -> str:
    return "[" + ", ".join(ref(c) for c in components) + "]"


def _tags(component: Component, extra: Optional[Dict[str, str]] = None) -> List[str]:
    lines = ["", "  tags = {", f"    Name = {hcl_string(component.name or component.id)}"]
    for key, value in (extra or {}).items():
        lines.append(f"    {key} = {hcl_string(value)}")
    lines.append("  }")
    return lines


def _block(resource_type: str, name: str, body: List[str]) -> str:
    return "\n".join([f'resource "{resource_type}" "{name}" {{', *body, "}"])


def _assign(key: str, value: str, width: int) -> str:
    return f"  {key.ljust(width)} = {value}"


def _vpc_ref(parent: Optional[Component]) -> str:
    return ref(parent) if parent is not None else "var.vpc_id"


def vpc_template(node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()) -> str:
    w = 20
    body = [
        _assign("cidr_block", hcl_string(node.get("cidr_block") or "10.0.0.0/16"), w),
        _assign("enable_dns_support", _flag(node.get("enableDnsSupport"), True), w),
        _assign("enable_dns_hostnames", _flag(node.get("enableDnsHostnames"), True), w),
        *_tags(node),
    ]
    return _block("aws_vpc", label(node), body)


def subnet_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    w = 23
    body = [
        _assign("vpc_id", _vpc_ref(parent), w),
        _assign("cidr_block", hcl_string(node.get("cidr_block") or "10.0.1.0/24"), w),
        _assign("availability_zone", hcl_string(node.get("availability_zone") or "us-west-2a"), w),
        _assign("map_public_ip_on_launch", _flag(node.get("public"), True), w),
        *_tags(node),
    ]
    return _block("aws_subnet", label(node), body)


def security_group_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    w = 11
    body = [
        _assign("name", hcl_string(_default_name(node)), w),
        _assign("description", hcl_string(node.get("description") or DEFAULT_SECURITY_GROUP_DESCRIPTION), w),
        _assign("vpc_id", _vpc_ref(parent), w),
        "",
        "  ingress {",
        "    from_port   = 0",
        "    to_port     = 0",
        '    protocol    = "-1"',
        '    cidr_blocks = ["0.0.0.0/0"]',
        '    description = "Allow all inbound traffic"',
        "  }",
        "",
        "  egress {",
        "    from_port   = 0",
        "    to_port     = 0",
        '    protocol    = "-1"',
        '    cidr_blocks = ["0.0.0.0/0"]',
        '    description = "Allow all outbound traffic"',
        "  }",
        *_tags(node),
    ]
    return _block("aws_security_group", label(node), body)


def ec2_template(node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()) -> str:
    w = 13
    body = [
        _assign("count", str(node.get("instances") or 1), w),
        _assign("ami", hcl_string(node.get("ami") or "ami-0c55b159cbfafe1f0"), w),
        _assign("instance_type", hcl_string(node.get("instance_type") or "t2.micro"), w),
    ]
    if parent is not None:
        body.append(_assign("subnet_id", ref(parent), w))
    if security_groups:
        body.append(f"  vpc_security_group_ids = {_ref_list(security_groups)}")
    body += [
        "",
        "  root_block_device {",
        f"    volume_size = {node.get('ebs_volume_size') or 8}",
        f"    volume_type = {hcl_string(node.get('ebs_volume_type') or 'gp2')}",
        "  }",
        *_tags(node),
    ]
    return _block("aws_instance", label(node), body)


def lambda_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    w = 13
    name = label(node)
    body = [
        _assign("function_name", hcl_string(_default_name(node)), w),
        _assign("role", "var.lambda_role_arn", w),
        _assign("filename", hcl_string(f"{name}.zip"), w),
        _assign("handler", hcl_string(node.get("handler") or "index.handler"), w),
        _assign("runtime", hcl_string(node.get("runtime") or "nodejs18.x"), w),
        _assign("memory_size", str(node.get("memory") or 128), w),
        _assign("timeout", str(node.get("timeout") or 3), w),
    ]
    if parent is not None:
        body += [
            "",
            "  vpc_config {",
            f"    subnet_ids         = [{ref(parent)}]",
            f"    security_group_ids = {_ref_list(security_groups)}",
            "  }",
        ]
    body += _tags(node)
    return _block("aws_lambda_function", name, body)


def s3_template(node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()) -> str:
    name = label(node)
    bucket = node.get("bucket_name") or f"{node.name or node.id}-bucket"
    blocks = [
        _block(
            "aws_s3_bucket",
            name,
            [
                f"  bucket = {hcl_string(bucket)}",
                *_tags(node, {"EstimatedStorage": f"{node.get('storage') or 10} GB"}),
            ],
        )
    ]
    if node.get("versioning"):
        blocks.append(
            _block(
                "aws_s3_bucket_versioning",
                f"{name}_versioning",
                [
                    f"  bucket = aws_s3_bucket.{name}.id",
                    "",
                    "  versioning_configuration {",
                    '    status = "Enabled"',
                    "  }",
                ],
            )
        )
    if node.get("public_access"):
        w = 23
        blocks.append(
            _block(
                "aws_s3_bucket_public_access_block",
                f"{name}_public_access",
                [
                    _assign("bucket", f"aws_s3_bucket.{name}.id", w),
                    _assign("block_public_acls", "false", w),
                    _assign("block_public_policy", "false", w),
                    _assign("ignore_public_acls", "false", w),
                    _assign("restrict_public_buckets", "false", w),
                ],
            )
        )
    return "\n\n".join(blocks)


def ebs_template(node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()) -> str:
    w = 17
    zone = (parent.get("availability_zone") if parent is not None else None) or "us-west-2a"
    volume_type = node.get("volume_type") or "gp2"
    body = [
        _assign("availability_zone", hcl_string(zone), w),
        _assign("size", str(node.get("size") or 20), w),
        _assign("type", hcl_string(volume_type), w),
    ]
    if volume_type == "io1":
        body.append(_assign("iops", str(node.get("iops") or 100), w))
    body += _tags(node)
    return _block("aws_ebs_volume", label(node), body)


def rds_template(node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()) -> str:
    name = label(node)
    engine = node.get("engine") or "mysql"
    blocks: List[str] = []
    if parent is not None:
        blocks.append(
            _block(
                "aws_db_subnet_group",
                f"{name}_subnet_group",
                [
                    f"  name       = {hcl_string(name.replace('_', '-') + '-subnet-group')}",
                    f"  subnet_ids = [{ref(parent)}]",
                ],
            )
        )
    w = 20
    body = [
        _assign("allocated_storage", str(node.get("allocated_storage") or 20), w),
        _assign("engine", hcl_string(engine), w),
        _assign("engine_version", hcl_string(RDS_ENGINE_VERSIONS.get(engine, "8.0")), w),
        _assign("instance_class", hcl_string(node.get("instance_class") or "db.t2.micro"), w),
        _assign("db_name", hcl_string(name.replace("_", "")), w),
        _assign("username", hcl_string("admin"), w),
        _assign("password", "var.db_password", w),
        _assign("skip_final_snapshot", "true", w),
        _assign("multi_az", _flag(node.get("multi_az"), False), w),
    ]
    if parent is not None:
        body.append(_assign("db_subnet_group_name", f"aws_db_subnet_group.{name}_subnet_group.name", w))
    if security_groups:
        body.append(_assign("vpc_security_group_ids", _ref_list(security_groups), w))
    body += _tags(node)
    blocks.append(_block("aws_db_instance", name, body))
    return "\n\n".join(blocks)


def dynamodb_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    w = 14
    billing_mode = node.get("billing_mode") or "PROVISIONED"
    body = [
        _assign("name", hcl_string(_default_name(node)), w),
        _assign("billing_mode", hcl_string(billing_mode), w),
    ]
    if billing_mode != "PAY_PER_REQUEST":
        body += [
            _assign("read_capacity", str(node.get("read_capacity") or 5), w),
            _assign("write_capacity", str(node.get("write_capacity") or 5), w),
        ]
    body += [
        _assign("hash_key", hcl_string("id"), w),
        "",
        "  attribute {",
        '    name = "id"',
        '    type = "S"',
        "  }",
        *_tags(node),
    ]
    return _block("aws_dynamodb_table", label(node), body)


def elasticache_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    name = label(node)
    cluster_id = name.replace("_", "-")
    blocks: List[str] = []
    if parent is not None:
        blocks.append(
            _block(
                "aws_elasticache_subnet_group",
                f"{name}_subnet_group",
                [
                    f"  name       = {hcl_string(cluster_id + '-subnet-group')}",
                    f"  subnet_ids = [{ref(parent)}]",
                ],
            )
        )
    w = 18
    body = [
        _assign("cluster_id", hcl_string(cluster_id), w),
        _assign("engine", hcl_string(node.get("engine") or "redis"), w),
        _assign("node_type", hcl_string(node.get("node_type") or "cache.t3.micro"), w),
        _assign("num_cache_nodes", str(node.get("num_cache_nodes") or 1), w),
    ]
    if parent is not None:
        body.append(_assign("subnet_group_name", f"aws_elasticache_subnet_group.{name}_subnet_group.name", w))
    if security_groups:
        body.append(_assign("security_group_ids", _ref_list(security_groups), w))
    body += _tags(node)
    blocks.append(_block("aws_elasticache_cluster", name, body))
    return "\n\n".join(blocks)


def load_balancer_template(
    node: Component, parent: Optional[Component] = None, security_groups: Sequence[Component] = ()
) -> str:
    w = 18
    body = [
        _assign("name", hcl_string(_default_name(node)), w),
        _assign("internal", _flag(node.get("internal"), False), w),
        _assign("load_balancer_type", hcl_string(node.get("lb_type") or "application"), w),
    ]
    if security_groups:
        body.append(_assign("security_groups", _ref_list(security_groups), w))
    subnets = f"[{ref(parent)}]" if parent is not None else "[]"
    body.append(_assign("subnets", subnets, w))
    body += _tags(node)
    return _block("aws_lb", label(node), body)
