"""
Type definitions for the IaC engine.

This module contains shared type aliases used by the compiler, the auditor and
the drift services, so that signatures stay readable without resorting to Any
everywhere.
"""

from typing import Any, Callable, Dict, List, Union

# Node configuration values, as received from the diagram editor (JSON-like)
ConfigValue = Union[str, int, float, bool, List[Any], Dict[str, Any], None]
NodeConfig = Dict[str, ConfigValue]

# Serialised graph documents
NodeDocument = Dict[str, Any]
EdgeDocument = Dict[str, Any]
ProjectDocument = Dict[str, Any]

# Terraform state as returned by `terraform state pull`
TerraformState = Dict[str, Any]

# Result payloads handed to boundary layers
ResultDict = Dict[str, Any]

# Auditor rule predicate: configuration text in, "risk present" out
RulePredicate = Callable[[str], bool]
