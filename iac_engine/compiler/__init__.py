"""
Graph Compiler Package.

This package turns the design-time resource graph into Terraform
configuration. The base module orders nodes and dispatches them; each
family module renders the blocks for a group of related resource kinds.
"""

from .base import DEFAULT_REGION, compile_graph, process_project

__all__ = [
    "DEFAULT_REGION",
    "compile_graph",
    "process_project",
]
