"""
Configuration loader for the IaC engine.
"""

import os
from dataclasses import dataclass
from typing import Optional

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass
class Config:
    """Configuration class for the IaC engine."""

    terraform_binary: str = "terraform"
    aws_region: str = "us-east-1"
    log_level: str = "INFO"
    timeout_seconds: Optional[int] = None
    workspace_root: Optional[str] = None


def load_config() -> Config:
    """
    Loads and validates configuration from the environment.

    Returns:
        Config object with validated settings

    Raises:
        ValueError: If a configuration value is invalid
    """
    terraform_binary = os.environ.get("TERRAFORM_BINARY", "terraform").strip()
    if not terraform_binary:
        raise ValueError("TERRAFORM_BINARY must not be empty")

    aws_region = os.environ.get("AWS_REGION") or "us-east-1"

    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()
    if log_level not in VALID_LOG_LEVELS:
        raise ValueError(
            f"LOG_LEVEL must be one of {', '.join(VALID_LOG_LEVELS)}, got '{log_level}'"
        )

    # Optional; when unset the caller's own request timeout bounds each run
    timeout_seconds = None
    raw_timeout = os.environ.get("PLAN_TIMEOUT_SECONDS")
    if raw_timeout:
        try:
            timeout_seconds = int(raw_timeout)
        except ValueError:
            raise ValueError("PLAN_TIMEOUT_SECONDS must be an integer")
        if timeout_seconds <= 0:
            raise ValueError("PLAN_TIMEOUT_SECONDS must be positive")

    workspace_root = os.environ.get("WORKSPACE_ROOT") or None
    if workspace_root and not os.path.isdir(workspace_root):
        raise ValueError(f"WORKSPACE_ROOT must be an existing directory: {workspace_root}")

    return Config(
        terraform_binary=terraform_binary,
        aws_region=aws_region,
        log_level=log_level,
        timeout_seconds=timeout_seconds,
        workspace_root=workspace_root,
    )
