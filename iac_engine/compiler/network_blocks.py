"""
Network Block Renderers Module.

This module contains the renderers for network resources: VPCs, subnets,
security groups, internet gateways and load balancers. Resources placed
inside a container on the canvas reference it by its local name.
"""

from typing import List

from ..catalog import ResourceKind
from ..hcl import Block
from .context import RenderContext, dns_name, literal_text


def render_vpc(ctx: RenderContext) -> List[Block]:
    block = ctx.resource()
    block.attributes(
        [
            ("cidr_block", ctx.setting("cidr_block")),
            ("enable_dns_hostnames", ctx.setting("enable_dns_hostnames")),
            ("enable_dns_support", ctx.setting("enable_dns_support")),
            ("instance_tenancy", ctx.setting("instance_tenancy")),
        ]
    )
    return [ctx.finish(block)]


def render_subnet(ctx: RenderContext) -> List[Block]:
    block = ctx.resource()
    block.attributes(
        [
            ("vpc_id", ctx.setting("vpc_id", ctx.reference(ResourceKind.VPC))),
            ("cidr_block", ctx.setting("cidr_block")),
            ("availability_zone", ctx.setting("availability_zone")),
            ("map_public_ip_on_launch", ctx.setting("map_public_ip_on_launch")),
        ]
    )
    return [ctx.finish(block)]


def render_security_group(ctx: RenderContext) -> List[Block]:
    """
    Render a security group with one ingress and one catch-all egress rule.

    Args:
        ctx: Render context for the security group node

    Returns:
        The aws_security_group block
    """
    block = ctx.resource()
    block.attributes(
        [
            ("name", ctx.setting("name", ctx.local_name)),
            ("description", ctx.setting("description", literal_text(f"Security group for {ctx.node.label}"))),
            ("vpc_id", ctx.setting("vpc_id", ctx.reference(ResourceKind.VPC))),
        ]
    )
    ingress = block.block("ingress")
    ingress.attributes(
        [
            ("from_port", ctx.setting("ingress_from_port")),
            ("to_port", ctx.setting("ingress_to_port")),
            ("protocol", ctx.setting("ingress_protocol")),
            ("cidr_blocks", ctx.setting("ingress_cidr_blocks")),
        ]
    )
    egress = block.block("egress")
    egress.attributes(
        [
            ("from_port", 0),
            ("to_port", 0),
            ("protocol", "-1"),
            ("cidr_blocks", ctx.setting("egress_cidr_blocks")),
        ]
    )
    return [ctx.finish(block)]


def render_internet_gateway(ctx: RenderContext) -> List[Block]:
    block = ctx.resource()
    block.attribute("vpc_id", ctx.setting("vpc_id", ctx.reference(ResourceKind.VPC)))
    return [ctx.finish(block)]


def render_load_balancer(ctx: RenderContext) -> List[Block]:
    # Load balancer names: 32 characters, alphanumerics and hyphens only
    block = ctx.resource()
    block.attributes(
        [
            ("name", ctx.setting("name", dns_name(ctx.local_name, 32))),
            ("internal", ctx.setting("internal")),
            ("load_balancer_type", ctx.setting("load_balancer_type")),
            (
                "security_groups",
                ctx.setting("security_groups", ctx.reference_list(ResourceKind.SECURITY_GROUP)),
            ),
            ("subnets", ctx.setting("subnets", ctx.reference_list(ResourceKind.SUBNET))),
        ]
    )
    return [ctx.finish(block)]
