"""
Plan Orchestrator Module.

This module runs the Terraform CLI inside a prepared workspace. A plan run is
two sequential invocations: `terraform init`, then
`terraform plan -detailed-exitcode`. The plan exit code is the authoritative
signal: 0 means no changes, 2 means changes are pending, anything else is an
error. Nothing here retries; a failed invocation is reported to the caller.
"""

import os
import subprocess
from pathlib import Path
from typing import Optional, Sequence, Union

from ..errors import ExternalToolError, WorkspaceError
from ..models import PlanOutcome, PlanResult
from ..utils import setup_logging

logger = setup_logging()

INIT_ARGS = ("init", "-input=false", "-no-color")
PLAN_ARGS = ("plan", "-detailed-exitcode", "-input=false", "-no-color")
STATE_PULL_ARGS = ("state", "pull")


def classify_exit_code(exit_code: int) -> PlanOutcome:
    """Map a `plan -detailed-exitcode` exit code to a plan outcome."""
    if exit_code == 0:
        return PlanOutcome.NO_CHANGE
    if exit_code == 2:
        return PlanOutcome.CHANGES_PENDING
    return PlanOutcome.ERROR


def _text(output: Union[str, bytes, None]) -> str:
    if output is None:
        return ""
    if isinstance(output, bytes):
        return output.decode("utf-8", errors="replace")
    return output


def run_terraform(
    args: Sequence[str],
    workspace_path: Path,
    terraform_binary: str = "terraform",
    timeout: Optional[int] = None,
) -> "subprocess.CompletedProcess[str]":
    """
    Runs one Terraform command in the workspace and captures its output.

    Args:
        args: Terraform subcommand and flags
        workspace_path: Directory to run in
        terraform_binary: Name or path of the Terraform executable
        timeout: Optional limit in seconds; None leaves the bound to the caller

    Returns:
        The completed process, whatever its exit code

    Raises:
        WorkspaceError: If the Terraform executable cannot be started
        ExternalToolError: If the command exceeds the timeout
    """
    env = dict(os.environ, TF_IN_AUTOMATION="1", TF_INPUT="0")
    command = [terraform_binary, *args]
    logger.debug(f"Running {' '.join(command)} in {workspace_path}")
    try:
        return subprocess.run(
            command,
            cwd=str(workspace_path),
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            check=False,
        )
    except FileNotFoundError as e:
        raise WorkspaceError(f"Terraform executable '{terraform_binary}' was not found on this host") from e
    except subprocess.TimeoutExpired as e:
        raise ExternalToolError(
            f"terraform {args[0]} timed out after {timeout} seconds",
            step=args[0],
            stdout=_text(e.stdout),
            stderr=_text(e.stderr),
        ) from e
    except OSError as e:
        raise WorkspaceError(f"Unable to run '{terraform_binary}': {e}") from e


def plan(
    workspace_path: Path,
    terraform_binary: str = "terraform",
    timeout: Optional[int] = None,
    out_file: Optional[str] = None,
) -> PlanResult:
    """
    Initialises the workspace and computes a plan.

    If init fails, plan is not run and the result carries the init output.

    Args:
        workspace_path: Populated workspace directory
        terraform_binary: Name or path of the Terraform executable
        timeout: Optional per-command limit in seconds
        out_file: Save the plan to this file inside the workspace

    Returns:
        PlanResult with the outcome classified from the exit code
    """
    logger.info(f"Initializing Terraform in {workspace_path}")
    init = run_terraform(INIT_ARGS, workspace_path, terraform_binary, timeout)
    if init.returncode != 0:
        logger.error(f"terraform init failed with exit code {init.returncode}")
        return PlanResult(PlanOutcome.ERROR, init.returncode, init.stdout, init.stderr, step="init")

    args = PLAN_ARGS + ((f"-out={out_file}",) if out_file else ())
    logger.info("Running terraform plan")
    result = run_terraform(args, workspace_path, terraform_binary, timeout)
    outcome = classify_exit_code(result.returncode)
    if outcome is PlanOutcome.ERROR:
        logger.error(f"terraform plan failed with exit code {result.returncode}")
    else:
        logger.info(f"terraform plan finished: {outcome.value}")
    return PlanResult(outcome, result.returncode, result.stdout, result.stderr, step="plan")


def pull_state(
    workspace_path: Path,
    terraform_binary: str = "terraform",
    timeout: Optional[int] = None,
) -> str:
    """
    Reads the current state of an initialised workspace.

    Returns:
        Raw state text; empty when no state exists yet

    Raises:
        ExternalToolError: If `terraform state pull` fails
    """
    result = run_terraform(STATE_PULL_ARGS, workspace_path, terraform_binary, timeout)
    if result.returncode != 0:
        raise ExternalToolError(
            f"terraform state pull failed with exit code {result.returncode}",
            step="state pull",
            exit_code=result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result.stdout
