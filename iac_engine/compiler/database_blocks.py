"""
Database Block Renderers Module.

This module contains the renderer for RDS database instances.
"""

from typing import List

from ..catalog import ResourceKind
from ..hcl import Block
from .context import RenderContext, dns_name


def render_database(ctx: RenderContext) -> List[Block]:
    """
    Render an RDS instance.

    The master password is managed by RDS unless the user supplies one, in
    which case the managed-password flag is dropped (the two are exclusive).

    Args:
        ctx: Render context for the database node

    Returns:
        The aws_db_instance block
    """
    password = ctx.setting("password")
    managed_password = None if password is not None else ctx.setting("manage_master_user_password")

    block = ctx.resource()
    block.attributes(
        [
            ("identifier", ctx.setting("identifier", dns_name(ctx.local_name, 63))),
            ("engine", ctx.setting("engine")),
            ("engine_version", ctx.setting("engine_version")),
            ("instance_class", ctx.setting("instance_class")),
            ("allocated_storage", ctx.setting("allocated_storage")),
            ("max_allocated_storage", ctx.setting("max_allocated_storage")),
            ("storage_type", ctx.setting("storage_type")),
            ("db_name", ctx.setting("db_name")),
            ("username", ctx.setting("username")),
            ("password", password),
            ("manage_master_user_password", managed_password),
            ("storage_encrypted", ctx.setting("storage_encrypted")),
            ("publicly_accessible", ctx.setting("publicly_accessible")),
            ("skip_final_snapshot", ctx.setting("skip_final_snapshot")),
            (
                "vpc_security_group_ids",
                ctx.setting(
                    "vpc_security_group_ids", ctx.reference_list(ResourceKind.SECURITY_GROUP)
                ),
            ),
        ]
    )
    return [ctx.finish(block)]
