"""
Plan Output Parser Module.

Extracts per-resource change entries from the human-readable output of
`terraform plan`. This is a line grammar, not an HCL parser: a line counts
only if, after optional indentation, it starts with a change marker followed
by a resource address (`aws_instance.web`, optionally under `module.x.`) or
a resource header (`resource "aws_instance" "web"`). Everything else is
ignored. The parser never raises; markers it cannot classify are reported as
UNKNOWN so that no drift signal is lost.

Repeated markers for the same address are all kept, in order of appearance.
"""

import re
from typing import List

from ..models import ChangeAction, ResourceChange

_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")

# Replacement markers have no action of their own
MARKER_ACTIONS = {
    "+": ChangeAction.CREATE,
    "~": ChangeAction.UPDATE,
    "-": ChangeAction.DESTROY,
    "±": ChangeAction.UNKNOWN,
    "-/+": ChangeAction.UNKNOWN,
    "+/-": ChangeAction.UNKNOWN,
}

_CHANGE_LINE = re.compile(
    r"^\s*(?P<marker>-/\+|\+/-|[~+\-±])\s+"
    r"(?:"
    r"(?P<module>(?:module\.[A-Za-z0-9_-]+(?:\[[^\]]*\])?\.)*)"
    r"(?P<type>[a-z0-9]+_[a-z0-9_]+)\.(?P<name>[A-Za-z_][A-Za-z0-9_-]*(?:\[[^\]]*\])?)"
    r"|"
    r'resource\s+"(?P<header_type>[a-z0-9]+_[a-z0-9_]+)"\s+"(?P<header_name>[A-Za-z_][A-Za-z0-9_-]*)"'
    r")"
)


def parse_plan_output(plan_text: str) -> List[ResourceChange]:
    """
    Parses plan output into resource changes.

    Args:
        plan_text: Raw stdout of `terraform plan`

    Returns:
        One ResourceChange per matching line, in first-occurrence order
    """
    if not plan_text:
        return []

    changes: List[ResourceChange] = []
    for line in _ANSI_ESCAPE.sub("", plan_text).splitlines():
        match = _CHANGE_LINE.match(line)
        if not match:
            continue
        marker = match.group("marker")
        if match.group("type"):
            resource_type = match.group("type")
            identifier = match.group("name")
            module = match.group("module") or ""
        else:
            resource_type = match.group("header_type")
            identifier = match.group("header_name")
            module = ""
        changes.append(
            ResourceChange(
                resource_type=resource_type,
                identifier=identifier,
                action=MARKER_ACTIONS.get(marker, ChangeAction.UNKNOWN),
                address=f"{module}{resource_type}.{identifier}",
                marker=marker,
            )
        )
    return changes
