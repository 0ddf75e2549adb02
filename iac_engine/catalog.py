"""
Resource Catalog Module.

Static registry of the resource kinds the diagram editor can place on the
canvas. Each kind maps to its Terraform resource type and the default
configuration used when the user has not supplied a value. Defaults are
ordered: the compiler renders known attributes in this order.

A default of ``None`` means "omit unless the user supplies it".
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .hcl import Expression


class ResourceKind(str, Enum):
    """Closed set of supported resource kinds; UNKNOWN is the explicit fallback."""

    VPC = "vpc"
    SUBNET = "subnet"
    SECURITY_GROUP = "security_group"
    INTERNET_GATEWAY = "internet_gateway"
    COMPUTE_INSTANCE = "ec2"
    FUNCTION = "lambda"
    OBJECT_BUCKET = "s3"
    RELATIONAL_DATABASE = "rds"
    KEY_VALUE_TABLE = "dynamodb"
    QUEUE = "sqs"
    LOAD_BALANCER = "alb"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Variable:
    """A Terraform input variable declared in the configuration preamble."""

    name: str
    description: str
    type: str = "string"
    default: Optional[str] = None
    sensitive: bool = False


@dataclass(frozen=True)
class CatalogEntry:
    """Catalog record for one resource kind."""

    kind: ResourceKind
    resource_type: str
    description: str
    defaults: Mapping[str, Any]
    variables: Tuple[str, ...] = ()


def _entry(
    kind: ResourceKind,
    resource_type: str,
    description: str,
    defaults: Dict[str, Any],
    variables: Tuple[str, ...] = (),
) -> CatalogEntry:
    return CatalogEntry(kind, resource_type, description, MappingProxyType(defaults), variables)


# Declaration order is the order variables appear in the preamble.
VARIABLES: Mapping[str, Variable] = MappingProxyType(
    {
        "aws_region": Variable("aws_region", "AWS region"),
        "lambda_role_arn": Variable(
            "lambda_role_arn", "IAM role ARN assumed by Lambda functions"
        ),
    }
)

CATALOG: Mapping[ResourceKind, CatalogEntry] = MappingProxyType(
    {
        ResourceKind.VPC: _entry(
            ResourceKind.VPC,
            "aws_vpc",
            "Virtual network",
            {
                "cidr_block": "10.0.0.0/16",
                "enable_dns_hostnames": True,
                "enable_dns_support": True,
                "instance_tenancy": "default",
            },
        ),
        ResourceKind.SUBNET: _entry(
            ResourceKind.SUBNET,
            "aws_subnet",
            "Subnet",
            {
                "vpc_id": None,
                "cidr_block": "10.0.1.0/24",
                "availability_zone": None,
                "map_public_ip_on_launch": True,
            },
        ),
        ResourceKind.SECURITY_GROUP: _entry(
            ResourceKind.SECURITY_GROUP,
            "aws_security_group",
            "Security group",
            {
                "name": None,
                "description": None,
                "vpc_id": None,
                "ingress_from_port": 443,
                "ingress_to_port": 443,
                "ingress_protocol": "tcp",
                "ingress_cidr_blocks": ("0.0.0.0/0",),
                "egress_cidr_blocks": ("0.0.0.0/0",),
            },
        ),
        ResourceKind.INTERNET_GATEWAY: _entry(
            ResourceKind.INTERNET_GATEWAY,
            "aws_internet_gateway",
            "Internet gateway",
            {"vpc_id": None},
        ),
        ResourceKind.COMPUTE_INSTANCE: _entry(
            ResourceKind.COMPUTE_INSTANCE,
            "aws_instance",
            "Compute instance",
            {
                "ami": "ami-0c55b159cbfafe1f0",
                "instance_type": "t3.micro",
                "key_name": None,
                "subnet_id": None,
                "vpc_security_group_ids": None,
                "associate_public_ip_address": None,
            },
        ),
        ResourceKind.FUNCTION: _entry(
            ResourceKind.FUNCTION,
            "aws_lambda_function",
            "Serverless function",
            {
                "function_name": None,
                "role": Expression("var.lambda_role_arn"),
                "filename": "lambda_function.zip",
                "handler": "index.handler",
                "runtime": "python3.12",
                "timeout": 30,
                "memory_size": 128,
                "subnet_ids": None,
                "security_group_ids": None,
            },
            variables=("lambda_role_arn",),
        ),
        ResourceKind.OBJECT_BUCKET: _entry(
            ResourceKind.OBJECT_BUCKET,
            "aws_s3_bucket",
            "Object storage bucket",
            {
                "bucket": None,
                "force_destroy": False,
                "versioning": True,
            },
        ),
        ResourceKind.RELATIONAL_DATABASE: _entry(
            ResourceKind.RELATIONAL_DATABASE,
            "aws_db_instance",
            "Relational database",
            {
                "identifier": None,
                "engine": "postgres",
                "engine_version": "16.3",
                "instance_class": "db.t3.micro",
                "allocated_storage": 20,
                "max_allocated_storage": 100,
                "storage_type": "gp2",
                "db_name": "appdb",
                "username": "dbadmin",
                "password": None,
                "manage_master_user_password": True,
                "storage_encrypted": True,
                "publicly_accessible": False,
                "skip_final_snapshot": True,
                "vpc_security_group_ids": None,
            },
        ),
        ResourceKind.KEY_VALUE_TABLE: _entry(
            ResourceKind.KEY_VALUE_TABLE,
            "aws_dynamodb_table",
            "Key-value table",
            {
                "name": None,
                "billing_mode": "PAY_PER_REQUEST",
                "hash_key": "id",
                "hash_key_type": "S",
                "read_capacity": None,
                "write_capacity": None,
            },
        ),
        ResourceKind.QUEUE: _entry(
            ResourceKind.QUEUE,
            "aws_sqs_queue",
            "Message queue",
            {
                "name": None,
                "fifo_queue": True,
                "visibility_timeout_seconds": 30,
                "message_retention_seconds": 345600,
            },
        ),
        ResourceKind.LOAD_BALANCER: _entry(
            ResourceKind.LOAD_BALANCER,
            "aws_lb",
            "Load balancer",
            {
                "name": None,
                "internal": False,
                "load_balancer_type": "application",
                "security_groups": None,
                "subnets": None,
            },
        ),
    }
)

_ALIASES: Mapping[str, ResourceKind] = MappingProxyType(
    {
        "vpcgroup": ResourceKind.VPC,
        "virtual_network": ResourceKind.VPC,
        "network": ResourceKind.VPC,
        "sg": ResourceKind.SECURITY_GROUP,
        "securitygroup": ResourceKind.SECURITY_GROUP,
        "gateway": ResourceKind.INTERNET_GATEWAY,
        "igw": ResourceKind.INTERNET_GATEWAY,
        "instance": ResourceKind.COMPUTE_INSTANCE,
        "compute": ResourceKind.COMPUTE_INSTANCE,
        "function": ResourceKind.FUNCTION,
        "bucket": ResourceKind.OBJECT_BUCKET,
        "database": ResourceKind.RELATIONAL_DATABASE,
        "db": ResourceKind.RELATIONAL_DATABASE,
        "table": ResourceKind.KEY_VALUE_TABLE,
        "queue": ResourceKind.QUEUE,
        "load_balancer": ResourceKind.LOAD_BALANCER,
        "loadbalancer": ResourceKind.LOAD_BALANCER,
        "lb": ResourceKind.LOAD_BALANCER,
        "elb": ResourceKind.LOAD_BALANCER,
    }
)


def resolve_kind(raw: Union[str, ResourceKind, None]) -> ResourceKind:
    """
    Resolve a kind as received from the editor into a ResourceKind.

    Accepts the enum value, a known alias, or the Terraform resource type
    (e.g. ``aws_instance``). Anything else resolves to UNKNOWN.
    """
    if isinstance(raw, ResourceKind):
        return raw
    if not raw:
        return ResourceKind.UNKNOWN
    key = str(raw).strip().lower().replace("-", "_")
    try:
        return ResourceKind(key)
    except ValueError:
        pass
    if key in _ALIASES:
        return _ALIASES[key]
    for entry in CATALOG.values():
        if entry.resource_type == key:
            return entry.kind
    return ResourceKind.UNKNOWN


def lookup(kind: ResourceKind) -> Optional[CatalogEntry]:
    """Catalog entry for a kind, or None for UNKNOWN."""
    return CATALOG.get(kind)
