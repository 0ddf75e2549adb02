"""
Base Security Auditor Module.

This module contains the entry point for auditing configuration text. The
audit answers "is this risk present", not "how many times": each matching
rule contributes exactly one finding, however often its pattern occurs.
"""

from typing import Iterable

from ..errors import ValidationError
from ..models import AuditResult
from ..utils import setup_logging
from .rules import DEFAULT_RULES, AuditRule

logger = setup_logging()


def audit(configuration_text: str, rules: Iterable[AuditRule] = DEFAULT_RULES) -> AuditResult:
    """
    Scans configuration text for security risk patterns.

    Args:
        configuration_text: Terraform configuration text to scan
        rules: Rules to evaluate; defaults to the built-in rule set

    Returns:
        AuditResult with one finding per matching rule, in rule order

    Raises:
        ValidationError: If the configuration is not a string
    """
    if not isinstance(configuration_text, str):
        raise ValidationError("Configuration text must be a string")

    findings = tuple(rule.finding() for rule in rules if rule.evaluate(configuration_text))
    result = AuditResult(findings)
    logger.info(
        f"Security audit complete: {result.summary['total_issues']} issues "
        f"({result.summary['high_risk']} high risk)"
    )
    return result
