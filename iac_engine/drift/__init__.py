"""
Terraform Drift Detection Package.

This package compares a Terraform configuration with the live AWS account it
describes, by running `terraform plan` in a short-lived workspace.

The drift detection process:
1. Writes the configuration and per-call credentials into a scratch workspace
2. Runs terraform init and plan with -detailed-exitcode
3. Classifies the exit code and parses the plan output into resource changes
4. Removes the workspace
"""

from .core import compare_state, detect_drift
from .plan_parser import parse_plan_output

__all__ = ["compare_state", "detect_drift", "parse_plan_output"]
