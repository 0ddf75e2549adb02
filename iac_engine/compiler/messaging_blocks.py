"""
Messaging Block Renderers Module.

This module contains the renderer for SQS queues.
"""

from typing import List

from ..hcl import Block
from .context import RenderContext


def render_queue(ctx: RenderContext) -> List[Block]:
    # FIFO queue names must carry the .fifo suffix
    fifo = bool(ctx.setting("fifo_queue"))
    name = str(ctx.setting("name", ctx.local_name))
    if fifo and not name.endswith(".fifo"):
        name = f"{name}.fifo"

    block = ctx.resource()
    block.attributes(
        [
            ("name", name),
            ("fifo_queue", ctx.setting("fifo_queue")),
            ("visibility_timeout_seconds", ctx.setting("visibility_timeout_seconds")),
            ("message_retention_seconds", ctx.setting("message_retention_seconds")),
        ]
    )
    return [ctx.finish(block)]
