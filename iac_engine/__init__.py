"""
IaC Engine Package.

Compiles a visual graph of AWS resources into Terraform configuration, audits
configuration text for common security risks, and detects drift between a
configuration and the live account by running `terraform plan` in a
short-lived workspace.
"""

from .auditor import audit
from .compiler import compile_graph, process_project
from .drift import compare_state, detect_drift, parse_plan_output
from .graph import ResourceGraph

__all__ = [
    "audit",
    "compare_state",
    "compile_graph",
    "detect_drift",
    "parse_plan_output",
    "process_project",
    "ResourceGraph",
]
