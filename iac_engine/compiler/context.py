"""
Render context shared by the per-family block renderers.
"""

import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from ..catalog import CATALOG, CatalogEntry, ResourceKind
from ..graph import ResourceNode
from ..hcl import Block, Expression, quote

BASE_TAGS = (("Environment", "production"), ("ManagedBy", "CloudArchitect"))

_NOT_DNS = re.compile(r"[^a-z0-9-]+")


def dns_name(name: str, max_length: int) -> str:
    """
    Hyphenated form of a local name for AWS names that forbid underscores
    (bucket names, database identifiers, load balancer names).

    Starts with a letter, never ends with a hyphen, at most ``max_length`` long.
    """
    candidate = _NOT_DNS.sub("-", name.lower().replace("_", "-"))
    candidate = re.sub(r"-{2,}", "-", candidate).strip("-")
    if not candidate or not candidate[0].isalpha():
        candidate = f"r-{candidate}".rstrip("-")
    return candidate[:max_length].rstrip("-")


def literal_text(text: str) -> Expression:
    """Free text such as a label, quoted so template sequences stay verbatim."""
    return Expression(quote(text, literal=True))


@dataclass
class RenderContext:
    """Everything a renderer needs to emit the blocks for one node."""

    node: ResourceNode
    entry: CatalogEntry
    local_name: str
    settings: Dict[str, Any]
    extras: List[Tuple[str, Any]] = field(default_factory=list)
    user_tags: Dict[str, Any] = field(default_factory=dict)
    ancestors: Dict[ResourceKind, str] = field(default_factory=dict)

    def resource(self, resource_type: Optional[str] = None, local_name: Optional[str] = None) -> Block:
        return Block("resource", resource_type or self.entry.resource_type, local_name or self.local_name)

    def setting(self, key: str, fallback: Any = None) -> Any:
        value = self.settings.get(key)
        return fallback if value is None else value

    def reference(self, kind: ResourceKind, attribute: str = "id") -> Optional[Expression]:
        """Reference to the nearest ancestor of ``kind``, if the node sits inside one."""
        name = self.ancestors.get(kind)
        if name is None:
            return None
        return Expression(f"{CATALOG[kind].resource_type}.{name}.{attribute}")

    def reference_list(self, kind: ResourceKind, attribute: str = "id") -> Optional[List[Expression]]:
        ref = self.reference(kind, attribute)
        return [ref] if ref is not None else None

    @property
    def tags(self) -> Dict[str, Any]:
        tags: Dict[str, Any] = {"Name": literal_text(self.node.label)}
        tags.update(BASE_TAGS)
        tags.update(self.user_tags)
        return tags

    def finish(self, block: Block, tagged: bool = True) -> Block:
        """Append pass-through settings and the tag map."""
        if self.extras:
            block.blank()
            block.attributes(self.extras)
        if tagged:
            block.blank()
            block.attribute("tags", self.tags)
        return block
