"""
Core drift detection orchestration logic.

This module contains the two drift entry points. Both follow the same shape:
validate the input, materialise a workspace, run the planning tool, interpret
its output, and remove the workspace. Neither raises; every failure is folded
into a result object with ``success=False``.
"""

from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

from ..config import Config
from ..errors import ExternalToolError, IaCEngineError, ValidationError, WorkspaceError
from ..models import ComparisonResult, Credentials, DriftResult, DriftRun, PlanOutcome
from ..utils import parse_terraform_state, setup_logging
from .orchestrator import plan, pull_state
from .plan_parser import parse_plan_output
from .workspace import with_workspace

logger = setup_logging()

PLAN_FILE = "tfplan"

CredentialsInput = Union[Credentials, Mapping[str, Any], None]


def _validate_configuration(configuration_text: Any) -> str:
    if not isinstance(configuration_text, str) or not configuration_text.strip():
        raise ValidationError("Terraform configuration is required")
    return configuration_text


def _resolve_credentials(credentials: CredentialsInput) -> Credentials:
    if isinstance(credentials, Credentials):
        return credentials
    return Credentials.from_dict(credentials)


def _error_details(error: Exception) -> Dict[str, Any]:
    if isinstance(error, ExternalToolError):
        return {"type": "tool_error", **error.details()}
    if isinstance(error, ValidationError):
        return {"type": "validation_error"}
    if isinstance(error, WorkspaceError):
        return {"type": "workspace_error"}
    return {"type": "internal_error", "detail": str(error)}


def _run_detection(workspace_path: Path, config: Config) -> DriftRun:
    result = plan(workspace_path, config.terraform_binary, config.timeout_seconds)
    result.raise_for_error()
    output = result.stdout or result.stderr
    return DriftRun(
        workspace_path=workspace_path,
        has_changes=result.outcome is PlanOutcome.CHANGES_PENDING,
        resources=parse_plan_output(result.stdout),
        raw_output=output,
        outcome=result.outcome,
    )


def detect_drift(
    configuration_text: str,
    credentials: CredentialsInput,
    config: Optional[Config] = None,
) -> DriftResult:
    """
    Main entry point for drift detection.

    This function:
    - Validates the configuration and credentials
    - Writes both into a fresh scratch workspace
    - Runs terraform init and plan against the live account
    - Parses the plan output into drifted resources
    - Removes the workspace, whatever happened

    Args:
        configuration_text: Terraform configuration to plan against
        credentials: Credentials object or mapping with accessKeyId, secretAccessKey, region
        config: Engine configuration; defaults apply when omitted

    Returns:
        DriftResult; ``success`` is False when the run itself failed
    """
    config = config or Config()
    try:
        _validate_configuration(configuration_text)
        resolved = _resolve_credentials(credentials)
        run = with_workspace(
            configuration_text,
            resolved,
            lambda path: _run_detection(path, config),
            root=config.workspace_root,
        )
    except IaCEngineError as e:
        logger.error(f"Drift detection failed: {e}")
        raw_output = ""
        if isinstance(e, ExternalToolError):
            raw_output = e.stdout or e.stderr
        return DriftResult(
            success=False,
            has_drift=False,
            message=str(e),
            raw_plan_output=raw_output,
            outcome=PlanOutcome.ERROR,
            error=_error_details(e),
        )
    except Exception as e:
        logger.exception("Unexpected error during drift detection")
        return DriftResult(
            success=False,
            has_drift=False,
            message=f"Drift detection failed: {e}",
            outcome=PlanOutcome.ERROR,
            error=_error_details(e),
        )

    message = "Drift detected in infrastructure" if run.has_changes else "No drift detected"
    logger.info(f"{message} ({len(run.resources)} resource changes)")
    return DriftResult(
        success=True,
        has_drift=run.has_changes,
        message=message,
        drifted_resources=run.resources,
        raw_plan_output=run.raw_output,
        outcome=run.outcome,
        timestamp=run.timestamp,
    )


def _run_comparison(workspace_path: Path, config: Config) -> ComparisonResult:
    result = plan(workspace_path, config.terraform_binary, config.timeout_seconds, out_file=PLAN_FILE)
    result.raise_for_error()
    state_text = pull_state(workspace_path, config.terraform_binary, config.timeout_seconds)
    try:
        state = parse_terraform_state(state_text)
    except ValueError as e:
        logger.error(f"Pulled state could not be parsed: {e}")
        return ComparisonResult(
            success=False,
            message="Pulled state could not be parsed",
            plan_output=result.stdout,
            error={"type": "state_parse_error", "detail": str(e)},
        )
    return ComparisonResult(
        success=True,
        message="State comparison complete",
        current_state=state,
        has_changes=result.outcome is PlanOutcome.CHANGES_PENDING,
        changes=parse_plan_output(result.stdout),
        plan_output=result.stdout,
    )


def compare_state(
    configuration_text: str,
    credentials: CredentialsInput,
    config: Optional[Config] = None,
) -> ComparisonResult:
    """
    Plans the configuration and returns it alongside the current state.

    Args:
        configuration_text: Terraform configuration to plan against
        credentials: Credentials object or mapping with accessKeyId, secretAccessKey, region
        config: Engine configuration; defaults apply when omitted

    Returns:
        ComparisonResult carrying the pulled state, the plan output and parsed changes
    """
    config = config or Config()
    try:
        _validate_configuration(configuration_text)
        resolved = _resolve_credentials(credentials)
        return with_workspace(
            configuration_text,
            resolved,
            lambda path: _run_comparison(path, config),
            root=config.workspace_root,
        )
    except IaCEngineError as e:
        logger.error(f"State comparison failed: {e}")
        plan_output = e.stdout if isinstance(e, ExternalToolError) else ""
        return ComparisonResult(
            success=False,
            message=str(e),
            plan_output=plan_output,
            error=_error_details(e),
        )
    except Exception as e:
        logger.exception("Unexpected error during state comparison")
        return ComparisonResult(
            success=False,
            message=f"State comparison failed: {e}",
            error=_error_details(e),
        )
