"""
Storage Block Renderers Module.

This module contains the renderers for S3 buckets and DynamoDB tables.
"""

from typing import Any, List, Mapping

from ..hcl import Block, Expression
from .context import RenderContext, dns_name


def _versioning_status(value: Any) -> str:
    # Accepts a bool, {"enabled": bool}, or an explicit Terraform status string
    if isinstance(value, Mapping):
        value = value.get("enabled", False)
    if isinstance(value, str):
        return value if value in ("Enabled", "Suspended", "Disabled") else "Suspended"
    return "Enabled" if value else "Suspended"


def render_bucket(ctx: RenderContext) -> List[Block]:
    """
    Render an S3 bucket and its companion versioning resource.

    The bucket name is derived from the local name, so it is stable across
    compilations; S3 bucket names allow at most 63 lowercase characters and
    no underscores.

    Args:
        ctx: Render context for the bucket node

    Returns:
        The aws_s3_bucket and aws_s3_bucket_versioning blocks
    """
    bucket = ctx.resource()
    bucket.attributes(
        [
            ("bucket", ctx.setting("bucket", dns_name(f"{ctx.local_name}-bucket", 63))),
            ("force_destroy", ctx.setting("force_destroy")),
        ]
    )
    ctx.finish(bucket)

    versioning = ctx.resource("aws_s3_bucket_versioning", f"{ctx.local_name}_versioning")
    versioning.attribute("bucket", Expression(f"aws_s3_bucket.{ctx.local_name}.id"))
    versioning.block("versioning_configuration").attribute(
        "status", _versioning_status(ctx.settings.get("versioning"))
    )
    return [bucket, versioning]


def render_table(ctx: RenderContext) -> List[Block]:
    block = ctx.resource()
    hash_key = ctx.setting("hash_key")
    block.attributes(
        [
            ("name", ctx.setting("name", ctx.local_name)),
            ("billing_mode", ctx.setting("billing_mode")),
            ("hash_key", hash_key),
            ("read_capacity", ctx.setting("read_capacity")),
            ("write_capacity", ctx.setting("write_capacity")),
        ]
    )
    attribute = block.block("attribute")
    attribute.attributes([("name", hash_key), ("type", ctx.setting("hash_key_type"))])
    return [ctx.finish(block)]
