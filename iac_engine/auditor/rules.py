"""
Audit Rule Definitions Module.

Each rule is an independent predicate over the configuration text. Rules
share no state, so they can be evaluated in any order.
"""

import re
from dataclasses import dataclass
from typing import Pattern, Tuple

from ..models import AuditFinding, Severity
from ..types import RulePredicate


@dataclass(frozen=True)
class AuditRule:
    """A risk category, its finding text, and the predicate that detects it."""

    category: str
    severity: Severity
    message: str
    recommendation: str
    predicate: RulePredicate

    def evaluate(self, text: str) -> bool:
        return self.predicate(text)

    def finding(self) -> AuditFinding:
        return AuditFinding(self.severity, self.category, self.message, self.recommendation)


def contains_any(*markers: str) -> RulePredicate:
    """Predicate that is true when any literal marker occurs in the text."""

    def predicate(text: str) -> bool:
        return any(marker in text for marker in markers)

    return predicate


def matches(pattern: str) -> RulePredicate:
    """Predicate that is true when the regular expression matches anywhere (multiline)."""
    compiled: Pattern[str] = re.compile(pattern, re.MULTILINE)

    def predicate(text: str) -> bool:
        return compiled.search(text) is not None

    return predicate


def any_of(*predicates: RulePredicate) -> RulePredicate:
    def predicate(text: str) -> bool:
        return any(p(text) for p in predicates)

    return predicate


NETWORK_EXPOSURE = AuditRule(
    category="network-exposure",
    severity=Severity.HIGH,
    message=(
        "High-risk security issue detected: Open security group rule (0.0.0.0/0) "
        "allows access from anywhere on the internet"
    ),
    recommendation=(
        "Restrict CIDR blocks to specific IP ranges or use security group "
        "references instead of 0.0.0.0/0"
    ),
    predicate=contains_any("0.0.0.0/0", "::/0"),
)

HARDCODED_SECRET = AuditRule(
    category="hardcoded-secret",
    severity=Severity.HIGH,
    message="Credentials or passwords are written as literal values in the configuration",
    recommendation=(
        "Use sensitive variables, manage_master_user_password, or a secrets manager "
        "instead of literal secrets"
    ),
    predicate=any_of(
        matches(r'^\s*(password|secret_key|access_key)\s*=\s*"[^"]+"'),
        matches(r"\b(AKIA|ASIA)[0-9A-Z]{16}\b"),
    ),
)

PUBLIC_DATABASE = AuditRule(
    category="public-database",
    severity=Severity.HIGH,
    message="A database instance is reachable from the public internet",
    recommendation="Set publicly_accessible = false and reach the database through private subnets",
    predicate=matches(r"^\s*publicly_accessible\s*=\s*true\b"),
)

UNENCRYPTED_STORAGE = AuditRule(
    category="unencrypted-storage",
    severity=Severity.MEDIUM,
    message="Database storage encryption is disabled",
    recommendation="Set storage_encrypted = true",
    predicate=matches(r"^\s*storage_encrypted\s*=\s*false\b"),
)

PUBLIC_BUCKET_ACL = AuditRule(
    category="public-bucket-acl",
    severity=Severity.MEDIUM,
    message="A bucket ACL grants public access",
    recommendation="Use a private ACL and grant access through bucket policies or CloudFront",
    predicate=matches(r'^\s*acl\s*=\s*"public-read(-write)?"'),
)

VERSIONING_DISABLED = AuditRule(
    category="versioning-disabled",
    severity=Severity.LOW,
    message="Bucket versioning is not enabled; overwritten or deleted objects cannot be recovered",
    recommendation='Set the versioning status to "Enabled"',
    predicate=matches(r'^\s*status\s*=\s*"(Suspended|Disabled)"'),
)

PUBLIC_SUBNET = AuditRule(
    category="public-subnet",
    severity=Severity.LOW,
    message="A subnet assigns public IP addresses to instances on launch",
    recommendation="Set map_public_ip_on_launch = false unless the subnet must be public",
    predicate=matches(r"^\s*map_public_ip_on_launch\s*=\s*true\b"),
)

NO_FINAL_SNAPSHOT = AuditRule(
    category="no-final-snapshot",
    severity=Severity.LOW,
    message="A database will be deleted without a final snapshot",
    recommendation="Set skip_final_snapshot = false for databases holding data you need to keep",
    predicate=matches(r"^\s*skip_final_snapshot\s*=\s*true\b"),
)

DEFAULT_RULES: Tuple[AuditRule, ...] = (
    NETWORK_EXPOSURE,
    HARDCODED_SECRET,
    PUBLIC_DATABASE,
    UNENCRYPTED_STORAGE,
    PUBLIC_BUCKET_ACL,
    VERSIONING_DISABLED,
    PUBLIC_SUBNET,
    NO_FINAL_SNAPSHOT,
)
