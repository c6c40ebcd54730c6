from __future__ import annotations

from typing import List, Tuple

from . import templates as tpl
from .base import ComponentMetadata, OutputSpec, VariableSpec

VPC = "vpc"
SUBNET = "subnet"
SECURITY_GROUP = "securityGroup"

# Resource types a security group may be attached to.
SECURITY_GROUP_TARGETS = frozenset({"ec2", "rds", "elasticache", "loadBalancer"})

VARIABLES: Tuple[VariableSpec, ...] = (
    VariableSpec(
        name="vpc_id",
        description="ID of an existing VPC for subnets and security groups not placed in a designed VPC",
    ),
    VariableSpec(
        name="db_password",
        description="Master password for RDS instances",
        sensitive=True,
    ),
    VariableSpec(
        name="lambda_role_arn",
        description="IAM role ARN assumed by Lambda functions",
    ),
)


def _labels(component_type: str) -> Tuple[str, str]:
    return tpl.RESOURCE_LABELS[component_type]


def aws_catalog() -> List[ComponentMetadata]:
    """Catalog order drives categories() and the CLI listing."""
    return [
        ComponentMetadata(
            type=VPC,
            category="networking",
            display_name="VPC",
            noun="VPC",
            terraform_type=_labels(VPC)[0],
            name_prefix=_labels(VPC)[1],
            allowed_connections=frozenset({SUBNET}),
            is_container=True,
            can_contain=frozenset({SUBNET}),
            default_attributes={"cidr_block": "10.0.0.0/16", "enableDnsSupport": True, "enableDnsHostnames": True},
            size=(300, 250),
            template=tpl.vpc_template,
            output=OutputSpec(suffix="id", description="ID of the VPC", attribute="id"),
        ),
        ComponentMetadata(
            type=SUBNET,
            category="networking",
            display_name="Subnet",
            noun="subnet",
            terraform_type=_labels(SUBNET)[0],
            name_prefix=_labels(SUBNET)[1],
            allowed_connections=frozenset({"ec2", "rds", "elasticache", "lambda", "loadBalancer", "ebs"}),
            is_container=True,
            can_contain=frozenset({"ec2", "rds", "elasticache", "lambda", "loadBalancer", "ebs"}),
            must_be_contained_by=frozenset({VPC}),
            default_attributes={"cidr_block": "10.0.1.0/24", "availability_zone": "us-west-2a", "public": True},
            size=(200, 150),
            template=tpl.subnet_template,
        ),
        ComponentMetadata(
            type=SECURITY_GROUP,
            category="networking",
            display_name="Security Group",
            noun="security group",
            terraform_type=_labels(SECURITY_GROUP)[0],
            name_prefix=_labels(SECURITY_GROUP)[1],
            allowed_connections=SECURITY_GROUP_TARGETS,
            default_attributes={"description": tpl.DEFAULT_SECURITY_GROUP_DESCRIPTION},
            template=tpl.security_group_template,
        ),
        ComponentMetadata(
            type="loadBalancer",
            category="networking",
            display_name="Load Balancer",
            noun="load balancer",
            terraform_type=_labels("loadBalancer")[0],
            name_prefix=_labels("loadBalancer")[1],
            allowed_connections=frozenset({"ec2", SECURITY_GROUP}),
            must_be_contained_by=frozenset({SUBNET}),
            default_attributes={"lb_type": "application", "internal": False},
            template=tpl.load_balancer_template,
            output=OutputSpec(suffix="dns_name", description="DNS name of the load balancer", attribute="dns_name"),
        ),
        ComponentMetadata(
            type="ec2",
            category="compute",
            display_name="EC2 Instance",
            noun="EC2 instance",
            terraform_type=_labels("ec2")[0],
            name_prefix=_labels("ec2")[1],
            allowed_connections=frozenset(
                {"s3", "rds", "dynamodb", "elasticache", SECURITY_GROUP, "loadBalancer", "ebs"}
            ),
            must_be_contained_by=frozenset({SUBNET}),
            default_attributes={
                "instance_type": "t2.micro",
                "ami": "ami-0c55b159cbfafe1f0",
                "instances": 1,
                "ebs_volume_size": 8,
                "ebs_volume_type": "gp2",
            },
            template=tpl.ec2_template,
            output=OutputSpec(
                suffix="ip", description="Public IP of the EC2 instance", attribute="public_ip", splat=True
            ),
        ),
        ComponentMetadata(
            type="lambda",
            category="compute",
            display_name="Lambda Function",
            noun="Lambda function",
            terraform_type=_labels("lambda")[0],
            name_prefix=_labels("lambda")[1],
            allowed_connections=frozenset({"s3", "dynamodb"}),
            can_be_contained_by=frozenset({SUBNET}),
            default_attributes={"runtime": "nodejs18.x", "memory": 128, "timeout": 3, "handler": "index.handler"},
            template=tpl.lambda_template,
        ),
        ComponentMetadata(
            type="s3",
            category="storage",
            display_name="S3 Bucket",
            noun="S3 bucket",
            terraform_type=_labels("s3")[0],
            name_prefix=_labels("s3")[1],
            allowed_connections=frozenset({"ec2", "lambda"}),
            default_attributes={"storage": 10, "bucket_name": "", "versioning": False, "public_access": False},
            template=tpl.s3_template,
            output=OutputSpec(suffix="bucket_name", description="Name of the S3 bucket", attribute="bucket"),
        ),
        ComponentMetadata(
            type="ebs",
            category="storage",
            display_name="EBS Volume",
            noun="EBS volume",
            terraform_type=_labels("ebs")[0],
            name_prefix=_labels("ebs")[1],
            allowed_connections=frozenset({"ec2"}),
            can_be_contained_by=frozenset({SUBNET}),
            default_attributes={"size": 20, "volume_type": "gp2", "iops": 100},
            template=tpl.ebs_template,
        ),
        ComponentMetadata(
            type="rds",
            category="database",
            display_name="RDS Database",
            noun="database",
            terraform_type=_labels("rds")[0],
            name_prefix=_labels("rds")[1],
            allowed_connections=frozenset({"ec2", "lambda", SECURITY_GROUP}),
            must_be_contained_by=frozenset({SUBNET}),
            # Multi-AZ deployments span several subnets.
            multi_placement=True,
            default_attributes={
                "engine": "mysql",
                "instance_class": "db.t2.micro",
                "allocated_storage": 20,
                "multi_az": False,
            },
            template=tpl.rds_template,
            output=OutputSpec(suffix="endpoint", description="Endpoint of the RDS instance", attribute="endpoint"),
        ),
        ComponentMetadata(
            type="dynamodb",
            category="database",
            display_name="DynamoDB Table",
            noun="DynamoDB table",
            terraform_type=_labels("dynamodb")[0],
            name_prefix=_labels("dynamodb")[1],
            allowed_connections=frozenset({"ec2", "lambda"}),
            default_attributes={"billing_mode": "PROVISIONED", "read_capacity": 5, "write_capacity": 5},
            template=tpl.dynamodb_template,
        ),
        ComponentMetadata(
            type="elasticache",
            category="database",
            display_name="ElastiCache Cluster",
            noun="cache cluster",
            terraform_type=_labels("elasticache")[0],
            name_prefix=_labels("elasticache")[1],
            allowed_connections=frozenset({"ec2", "lambda", SECURITY_GROUP}),
            must_be_contained_by=frozenset({SUBNET}),
            default_attributes={"engine": "redis", "node_type": "cache.t3.micro", "num_cache_nodes": 1},
            template=tpl.elasticache_template,
        ),
    ]
