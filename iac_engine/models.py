"""
Data models for the IaC engine.

Results produced by the compiler, the auditor and the drift services. Each
result is created fresh per call; ``to_dict`` gives the JSON-ready shape the
boundary layers return.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .errors import ExternalToolError, ValidationError
from .types import ResultDict, TerraformState


def utc_timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


# Compiler

@dataclass(frozen=True)
class ConfigurationBlock:
    """One emitted block; the preamble has no node id."""

    node_id: Optional[str]
    resource_type: Optional[str]
    local_name: Optional[str]
    text: str


@dataclass(frozen=True)
class CompiledConfiguration:
    """Ordered, immutable compiler output."""

    blocks: Tuple[ConfigurationBlock, ...]

    @property
    def text(self) -> str:
        return "\n".join(block.text for block in self.blocks)

    def __str__(self) -> str:
        return self.text

    def offset_of(self, node_id: str) -> int:
        """Character offset at which the block for ``node_id`` starts, or -1."""
        offset = 0
        for block in self.blocks:
            if block.node_id == node_id:
                return offset
            offset += len(block.text) + 1
        return -1


# Auditor

class Severity(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


@dataclass(frozen=True)
class AuditFinding:
    severity: Severity
    category: str
    message: str
    recommendation: str

    def to_dict(self) -> ResultDict:
        return {
            "severity": self.severity.value,
            "category": self.category,
            "message": self.message,
            "recommendation": self.recommendation,
        }


@dataclass(frozen=True)
class AuditResult:
    findings: Tuple[AuditFinding, ...]

    @property
    def has_issues(self) -> bool:
        return bool(self.findings)

    @property
    def summary(self) -> Dict[str, int]:
        return {
            "total_issues": len(self.findings),
            "high_risk": sum(1 for f in self.findings if f.severity is Severity.HIGH),
            "medium_risk": sum(1 for f in self.findings if f.severity is Severity.MEDIUM),
            "low_risk": sum(1 for f in self.findings if f.severity is Severity.LOW),
        }

    def to_dict(self) -> ResultDict:
        return {
            "has_issues": self.has_issues,
            "findings": [f.to_dict() for f in self.findings],
            "summary": self.summary,
        }


# Plan output

class ChangeAction(str, Enum):
    CREATE = "create"
    UPDATE = "update"
    DESTROY = "destroy"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ResourceChange:
    resource_type: str
    identifier: str
    action: ChangeAction
    address: str = ""
    marker: str = ""

    def to_dict(self) -> ResultDict:
        return {
            "type": self.resource_type,
            "identifier": self.identifier,
            "action": self.action.value,
            "address": self.address or f"{self.resource_type}.{self.identifier}",
            "marker": self.marker,
        }


class PlanOutcome(str, Enum):
    NO_CHANGE = "no_change"
    CHANGES_PENDING = "changes_pending"
    ERROR = "error"


@dataclass(frozen=True)
class PlanResult:
    """Outcome of one init + plan run; ``step`` names the last step that ran."""

    outcome: PlanOutcome
    exit_code: int
    stdout: str
    stderr: str
    step: str = "plan"

    def raise_for_error(self) -> None:
        if self.outcome is PlanOutcome.ERROR:
            raise ExternalToolError(
                f"terraform {self.step} failed with exit code {self.exit_code}",
                step=self.step,
                exit_code=self.exit_code,
                stdout=self.stdout,
                stderr=self.stderr,
            )


@dataclass
class DriftRun:
    """Ephemeral record of one detection run; lives only as long as its workspace."""

    workspace_path: Path
    has_changes: bool
    resources: List[ResourceChange]
    raw_output: str
    outcome: PlanOutcome
    timestamp: str = field(default_factory=utc_timestamp)


# Credentials and entry-point results

@dataclass(frozen=True)
class Credentials:
    """Per-call AWS credentials; secrets are kept out of repr."""

    access_key_id: str
    secret_access_key: str = field(repr=False)
    region: str
    session_token: Optional[str] = field(default=None, repr=False)

    @classmethod
    def from_dict(cls, doc: Optional[Mapping[str, Any]]) -> "Credentials":
        """
        Build credentials from a camelCase or snake_case mapping.

        Raises:
            ValidationError: If any of access key id, secret access key or region is missing
        """
        if not isinstance(doc, Mapping):
            raise ValidationError("AWS credentials are required (accessKeyId, secretAccessKey, region)")
        values = {
            "access_key_id": doc.get("accessKeyId") or doc.get("access_key_id"),
            "secret_access_key": doc.get("secretAccessKey") or doc.get("secret_access_key"),
            "region": doc.get("region"),
        }
        missing = [name for name, value in values.items() if not value or not isinstance(value, str)]
        if missing:
            raise ValidationError(f"AWS credentials are missing: {', '.join(missing)}")
        token = doc.get("sessionToken") or doc.get("session_token") or None
        return cls(session_token=token, **values)


@dataclass
class DriftResult:
    success: bool
    has_drift: bool
    message: str
    drifted_resources: List[ResourceChange] = field(default_factory=list)
    raw_plan_output: str = ""
    outcome: Optional[PlanOutcome] = None
    error: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> ResultDict:
        return {
            "success": self.success,
            "has_drift": self.has_drift,
            "message": self.message,
            "drifted_resources": [r.to_dict() for r in self.drifted_resources],
            "raw_plan_output": self.raw_plan_output,
            "outcome": self.outcome.value if self.outcome else None,
            "error": self.error,
            "timestamp": self.timestamp,
        }


@dataclass
class ComparisonResult:
    success: bool
    message: str
    current_state: TerraformState = field(default_factory=dict)
    has_changes: bool = False
    changes: List[ResourceChange] = field(default_factory=list)
    plan_output: str = ""
    error: Optional[Dict[str, Any]] = None
    timestamp: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> ResultDict:
        return {
            "success": self.success,
            "message": self.message,
            "current_state": self.current_state,
            "has_changes": self.has_changes,
            "changes": [c.to_dict() for c in self.changes],
            "plan_output": self.plan_output,
            "error": self.error,
            "timestamp": self.timestamp,
        }
