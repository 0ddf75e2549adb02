"""
Security Auditor Package.

Pattern-based static checks over generated Terraform configuration.
"""

from .base import audit
from .rules import DEFAULT_RULES, AuditRule

__all__ = [
    "audit",
    "AuditRule",
    "DEFAULT_RULES",
]
