"""
Compute Block Renderers Module.

This module contains the renderers for EC2 instances and Lambda functions.
"""

from typing import List

from ..catalog import ResourceKind
from ..hcl import Block
from .context import RenderContext


def render_instance(ctx: RenderContext) -> List[Block]:
    """
    Render an EC2 instance.

    An instance placed inside a subnet launches into it, and one placed inside
    a security group is attached to that group.

    Args:
        ctx: Render context for the instance node

    Returns:
        The aws_instance block
    """
    block = ctx.resource()
    block.attributes(
        [
            ("ami", ctx.setting("ami")),
            ("instance_type", ctx.setting("instance_type")),
            ("key_name", ctx.setting("key_name")),
            ("subnet_id", ctx.setting("subnet_id", ctx.reference(ResourceKind.SUBNET))),
            (
                "vpc_security_group_ids",
                ctx.setting(
                    "vpc_security_group_ids", ctx.reference_list(ResourceKind.SECURITY_GROUP)
                ),
            ),
            ("associate_public_ip_address", ctx.setting("associate_public_ip_address")),
        ]
    )
    return [ctx.finish(block)]


def render_function(ctx: RenderContext) -> List[Block]:
    """
    Render a Lambda function, with a vpc_config block when it sits in a subnet.

    Args:
        ctx: Render context for the function node

    Returns:
        The aws_lambda_function block
    """
    block = ctx.resource()
    block.attributes(
        [
            ("function_name", ctx.setting("function_name", ctx.local_name[:64])),
            ("role", ctx.setting("role")),
            ("filename", ctx.setting("filename")),
            ("handler", ctx.setting("handler")),
            ("runtime", ctx.setting("runtime")),
            ("timeout", ctx.setting("timeout")),
            ("memory_size", ctx.setting("memory_size")),
        ]
    )

    subnet_ids = ctx.setting("subnet_ids", ctx.reference_list(ResourceKind.SUBNET))
    if subnet_ids is not None:
        vpc_config = block.block("vpc_config")
        vpc_config.attributes(
            [
                ("subnet_ids", subnet_ids),
                (
                    "security_group_ids",
                    ctx.setting(
                        "security_group_ids",
                        ctx.reference_list(ResourceKind.SECURITY_GROUP) or [],
                    ),
                ),
            ]
        )
    return [ctx.finish(block)]
