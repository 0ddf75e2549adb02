"""
Exception hierarchy for the IaC engine.

Every failure the engine can report belongs to one of these types. The
drift entry points and the boundary layers convert them into result objects
with ``success=False``; nothing here is meant to escape to an end user as a
raw traceback.
"""

from typing import Optional


class IaCEngineError(Exception):
    """Base class for all errors raised by the IaC engine."""


class ValidationError(IaCEngineError, ValueError):
    """Missing or malformed input supplied by the caller (credentials, configuration, graph)."""


class NameCollision(IaCEngineError):
    """Two nodes normalise to the same Terraform local name."""

    def __init__(self, local_name: str, first_node_id: str, second_node_id: str) -> None:
        self.local_name = local_name
        self.first_node_id = first_node_id
        self.second_node_id = second_node_id
        super().__init__(
            f"Nodes '{first_node_id}' and '{second_node_id}' both resolve to "
            f"resource name '{local_name}'"
        )


class WorkspaceError(IaCEngineError):
    """The scratch workspace could not be prepared, or the planning tool is unavailable."""


class ExternalToolError(IaCEngineError):
    """The planning tool exited unexpectedly during one of its steps."""

    def __init__(
        self,
        message: str,
        step: str,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        super().__init__(message)
        self.step = step
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr

    def details(self) -> dict:
        """Captured tool output in the shape used by result objects."""
        return {
            "step": self.step,
            "exit_code": self.exit_code,
            "stdout": self.stdout,
            "stderr": self.stderr,
        }
