"""
Base Graph Compiler Module.

This module contains the orchestration logic that turns a node/edge graph
into Terraform configuration text: it emits the provider preamble, derives
and checks local names, resolves container references, and dispatches each
node to the renderer for its kind.
"""

import copy
import json
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from ..catalog import VARIABLES, ResourceKind, lookup
from ..errors import IaCEngineError, NameCollision, ValidationError
from ..graph import Edge, ResourceNode
from ..hcl import Block, Expression
from ..models import CompiledConfiguration, ConfigurationBlock
from ..types import EdgeDocument, NodeDocument, ProjectDocument, ResultDict
from ..utils import setup_logging
from .compute_blocks import render_function, render_instance
from .context import RenderContext
from .database_blocks import render_database
from .messaging_blocks import render_queue
from .network_blocks import (
    render_internet_gateway,
    render_load_balancer,
    render_security_group,
    render_subnet,
    render_vpc,
)
from .storage_blocks import render_bucket, render_table

logger = setup_logging()

DEFAULT_REGION = "us-east-1"
PROVIDER_SOURCE = "hashicorp/aws"
PROVIDER_VERSION = "~> 5.0"

Renderer = Callable[[RenderContext], List[Block]]

RENDERERS: Mapping[ResourceKind, Renderer] = {
    ResourceKind.VPC: render_vpc,
    ResourceKind.SUBNET: render_subnet,
    ResourceKind.SECURITY_GROUP: render_security_group,
    ResourceKind.INTERNET_GATEWAY: render_internet_gateway,
    ResourceKind.COMPUTE_INSTANCE: render_instance,
    ResourceKind.FUNCTION: render_function,
    ResourceKind.OBJECT_BUCKET: render_bucket,
    ResourceKind.RELATIONAL_DATABASE: render_database,
    ResourceKind.KEY_VALUE_TABLE: render_table,
    ResourceKind.QUEUE: render_queue,
    ResourceKind.LOAD_BALANCER: render_load_balancer,
}


def compile_graph(
    nodes: Iterable[Union[ResourceNode, NodeDocument]],
    edges: Iterable[Union[Edge, EdgeDocument]] = (),
    region: str = DEFAULT_REGION,
) -> CompiledConfiguration:
    """
    Compiles a resource graph into Terraform configuration.

    Blocks are emitted in a fixed order: the provider preamble, then every VPC
    node, then the remaining nodes without a parent, then the remaining nodes
    with a parent, keeping graph order within each group. The output is a pure
    function of the inputs.

    Args:
        nodes: Nodes in graph order, as ResourceNode objects or documents
        edges: Edges between nodes; advisory only, they do not change the output
        region: Default value of the aws_region variable

    Returns:
        The compiled configuration

    Raises:
        ValidationError: If a node is malformed or two nodes share an id
        NameCollision: If two nodes normalise to the same local name
    """
    graph_nodes = _coerce_nodes(nodes)
    by_id = {node.id: node for node in graph_nodes}
    _check_edges(edges, by_id)

    names = _assign_local_names(graph_nodes)
    logger.info(f"Compiling {len(graph_nodes)} nodes into Terraform configuration")

    vpcs = [n for n in graph_nodes if n.kind is ResourceKind.VPC]
    others = [n for n in graph_nodes if n.kind is not ResourceKind.VPC]
    ordered = vpcs + [n for n in others if not n.parent] + [n for n in others if n.parent]

    resource_blocks = [_compile_node(node, names, by_id) for node in ordered]
    variables = _required_variables(graph_nodes, resource_blocks)
    preamble = ConfigurationBlock(None, None, None, _render_preamble(region, variables))
    return CompiledConfiguration((preamble,) + tuple(resource_blocks))


def _coerce_nodes(nodes: Iterable[Union[ResourceNode, NodeDocument]]) -> List[ResourceNode]:
    if nodes is None:
        return []
    result: List[ResourceNode] = []
    seen = set()
    for item in nodes:
        node = item if isinstance(item, ResourceNode) else ResourceNode.from_dict(item)
        if node.id in seen:
            raise ValidationError(f"Duplicate node id: {node.id}")
        seen.add(node.id)
        result.append(node)
    return result


def _check_edges(edges: Iterable[Union[Edge, EdgeDocument]], by_id: Mapping[str, ResourceNode]) -> None:
    # Edges do not drive code generation; malformed or dangling ones are only reported
    for item in edges or ():
        try:
            edge = item if isinstance(item, Edge) else Edge.from_dict(item)
        except ValidationError as e:
            logger.warning(f"Ignoring malformed edge {item!r}: {e}")
            continue
        for endpoint in (edge.source, edge.target):
            if endpoint not in by_id:
                logger.warning(f"Ignoring edge {edge.source} -> {edge.target}: unknown node {endpoint}")


def _assign_local_names(nodes: Sequence[ResourceNode]) -> Dict[str, str]:
    """Map node id to local name, failing on the first collision in graph order."""
    names: Dict[str, str] = {}
    owners: Dict[str, str] = {}
    for node in nodes:
        if node.kind is ResourceKind.UNKNOWN:
            continue
        name = node.local_name
        if name in owners:
            raise NameCollision(name, owners[name], node.id)
        owners[name] = node.id
        names[node.id] = name
    return names


def _ancestors(
    node: ResourceNode, names: Mapping[str, str], by_id: Mapping[str, ResourceNode]
) -> Dict[ResourceKind, str]:
    """Nearest ancestor of each kind along the parent chain, by local name."""
    found: Dict[ResourceKind, str] = {}
    visited = {node.id}
    current = by_id.get(node.parent) if node.parent else None
    while current is not None and current.id not in visited:
        visited.add(current.id)
        if current.id in names and current.kind not in found:
            found[current.kind] = names[current.id]
        current = by_id.get(current.parent) if current.parent else None
    return found


def _merge_config(
    defaults: Mapping[str, Any], config: Mapping[str, Any]
) -> Tuple[Dict[str, Any], List[Tuple[str, Any]], Dict[str, Any]]:
    settings = {key: copy.deepcopy(value) for key, value in defaults.items()}
    extras = []
    user_tags: Dict[str, Any] = {}
    for key, value in config.items():
        if key == "tags":
            if isinstance(value, Mapping):
                user_tags = dict(value)
            else:
                logger.warning(f"Ignoring non-mapping tags value: {value!r}")
        elif key in defaults:
            settings[key] = value
        else:
            extras.append((key, value))
    return settings, extras, user_tags


def _compile_node(
    node: ResourceNode, names: Mapping[str, str], by_id: Mapping[str, ResourceNode]
) -> ConfigurationBlock:
    entry = lookup(node.kind)
    if entry is None:
        logger.warning(f"Unsupported resource kind '{node.raw_kind}' for node {node.id}; emitting placeholder")
        return ConfigurationBlock(node.id, None, None, _render_placeholder(node, by_id))

    settings, extras, user_tags = _merge_config(entry.defaults, node.config)
    ctx = RenderContext(
        node=node,
        entry=entry,
        local_name=names[node.id],
        settings=settings,
        extras=extras,
        user_tags=user_tags,
        ancestors=_ancestors(node, names, by_id),
    )
    blocks = RENDERERS[node.kind](ctx)
    text = f"# {entry.description}: {_single_line(node.label)}\n" + "\n\n".join(b.render() for b in blocks) + "\n"
    return ConfigurationBlock(node.id, entry.resource_type, ctx.local_name, text)


def _single_line(text: str) -> str:
    # Labels end up in comments, which cannot span lines
    return " ".join(text.split())


def _render_placeholder(node: ResourceNode, by_id: Mapping[str, ResourceNode]) -> str:
    parent = by_id.get(node.parent) if node.parent else None
    dump = json.dumps(node.config, indent=2, sort_keys=True, default=str)
    lines = [
        f"# Unsupported resource: {_single_line(node.label)}",
        f"# Kind: {_single_line(node.raw_kind) or '(none)'}",
        f"# Node: {node.id}",
        f"# Parent: {_single_line(parent.label) if parent else 'None'}",
        "# Configuration:",
    ]
    lines.extend(f"#   {line}" for line in dump.splitlines())
    return "\n".join(lines) + "\n"


def _required_variables(
    nodes: Sequence[ResourceNode], blocks: Sequence[ConfigurationBlock]
) -> List[str]:
    """Kind-specific variables that the rendered blocks actually reference."""
    candidates = set()
    for node in nodes:
        entry = lookup(node.kind)
        if entry is not None:
            candidates.update(entry.variables)
    body = "\n".join(block.text for block in blocks)
    return [name for name in VARIABLES if name in candidates and f"var.{name}" in body]


def _render_preamble(region: str, variables: Sequence[str]) -> str:
    terraform = Block("terraform")
    terraform.block("required_providers").attribute(
        "aws", {"source": PROVIDER_SOURCE, "version": PROVIDER_VERSION}
    )
    provider = Block("provider", "aws").attribute("region", Expression("var.aws_region"))

    declared = [Block("variable", "aws_region").attributes(
        [
            ("description", VARIABLES["aws_region"].description),
            ("type", Expression("string")),
            ("default", region),
        ]
    )]
    for name in variables:
        variable = VARIABLES[name]
        block = Block("variable", name).attributes(
            [
                ("description", variable.description),
                ("type", Expression(variable.type)),
                ("default", variable.default),
            ]
        )
        if variable.sensitive:
            block.attribute("sensitive", True)
        declared.append(block)

    header = "# Generated Terraform configuration\n# Source: visual architecture diagram\n"
    parts = [terraform, provider] + declared
    return header + "\n" + "\n\n".join(p.render() for p in parts) + "\n"


def process_project(project: Optional[ProjectDocument], region: str = DEFAULT_REGION) -> ResultDict:
    """
    Compiles a stored project document into Terraform code.

    Never raises for compiler errors: failures come back as
    ``{"success": False, "error": ...}``.

    Args:
        project: Project document with 'nodes', optional 'edges', 'project_name',
            'created_at' and 'updated_at'
        region: Default value of the aws_region variable

    Returns:
        Dictionary with the generated code and project metadata
    """
    if not isinstance(project, Mapping) or not isinstance(project.get("nodes"), list):
        return {
            "success": False,
            "error": "Invalid project data: missing nodes",
            "terraform_code": None,
        }

    try:
        compiled = compile_graph(project["nodes"], project.get("edges") or [], region=region)
    except IaCEngineError as e:
        logger.warning(f"Compilation failed for project {project.get('project_name')}: {e}")
        return {"success": False, "error": str(e), "terraform_code": None}

    return {
        "success": True,
        "terraform_code": compiled.text,
        "project_name": project.get("project_name") or project.get("projectName"),
        "node_count": len(project["nodes"]),
        "created_at": project.get("created_at") or project.get("createdAt"),
        "updated_at": project.get("updated_at") or project.get("updatedAt"),
    }
