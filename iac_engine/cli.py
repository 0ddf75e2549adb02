#!/usr/bin/env python3
"""
Command-line interface for the IaC engine.

Compiles graph documents, audits configuration, and runs drift detection or
state comparison from a local machine. Drift commands need AWS credentials,
given explicitly or resolved from the AWS CLI configuration.

Usage:
    iac-engine compile project.json --audit --output main.tf
    iac-engine audit main.tf
    iac-engine detect-drift main.tf --profile staging --region eu-west-2
    iac-engine compare-state s3://my-bucket/stacks/main.tf --output-format json
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from .auditor import audit
from .compiler import process_project
from .config import VALID_LOG_LEVELS, load_config
from .drift import compare_state, detect_drift
from .errors import ValidationError
from .models import Credentials
from .types import ResultDict
from .utils import boundary_error_handler, read_configuration_source, resolve_session_credentials, setup_logging


def build_parser() -> argparse.ArgumentParser:
    """Builds the argument parser with one subcommand per operation."""
    parser = argparse.ArgumentParser(
        prog="iac-engine",
        description="Compile, audit and check Terraform infrastructure for drift",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  iac-engine compile project.json --audit
  iac-engine detect-drift s3://my-bucket/main.tf --profile prod --region us-west-2
        """,
    )
    parser.add_argument(
        "--log-level",
        choices=VALID_LOG_LEVELS,
        default=None,
        help="Logging level (default: LOG_LEVEL or INFO)",
    )
    parser.add_argument(
        "--output-format",
        choices=["json", "pretty"],
        default="pretty",
        help="Output format for the report (default: pretty)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    compile_parser = subparsers.add_parser("compile", help="Compile a graph document into Terraform")
    compile_parser.add_argument("source", help="Graph JSON file (local path or s3:// URL)")
    compile_parser.add_argument("--audit", action="store_true", help="Also audit the generated code")
    compile_parser.add_argument("--output", help="Write the generated code to this file")
    compile_parser.add_argument("--region", default=None, help="Default value of the aws_region variable")

    audit_parser = subparsers.add_parser("audit", help="Audit Terraform configuration for security risks")
    audit_parser.add_argument("source", help="Configuration file (local path or s3:// URL)")

    for name, help_text in (
        ("detect-drift", "Plan configuration against the live account"),
        ("compare-state", "Plan configuration and pull the current state"),
    ):
        drift_parser = subparsers.add_parser(name, help=help_text)
        drift_parser.add_argument("source", help="Configuration file (local path or s3:// URL)")
        drift_parser.add_argument("--profile", help="AWS CLI profile used to resolve credentials")
        drift_parser.add_argument("--region", help="AWS region (default: profile region or AWS_REGION)")
        drift_parser.add_argument("--access-key-id", help="AWS access key id")
        drift_parser.add_argument("--secret-access-key", help="AWS secret access key")
        drift_parser.add_argument("--session-token", help="AWS session token")

    return parser


def resolve_credentials(args: argparse.Namespace, default_region: str) -> Credentials:
    """
    Credentials from explicit arguments, or else from a boto3 session.

    Raises:
        ValidationError: If only one half of an access key pair is given or nothing resolves
    """
    if args.access_key_id or args.secret_access_key:
        if not (args.access_key_id and args.secret_access_key):
            raise ValidationError("--access-key-id and --secret-access-key must be given together")
        return Credentials(
            access_key_id=args.access_key_id,
            secret_access_key=args.secret_access_key,
            region=args.region or default_region,
            session_token=args.session_token,
        )

    access_key, secret_key, token, region = resolve_session_credentials(args.profile, args.region)
    return Credentials(
        access_key_id=access_key,
        secret_access_key=secret_key,
        region=region or default_region,
        session_token=token,
    )


def _load_project(source: str) -> Dict[str, Any]:
    try:
        project = json.loads(read_configuration_source(source))
    except json.JSONDecodeError as e:
        raise ValidationError(f"Graph document is not valid JSON: {e}")
    if not isinstance(project, dict):
        raise ValidationError("Graph document must be a JSON object")
    return project


@boundary_error_handler
def run_command(args: argparse.Namespace) -> ResultDict:
    """Runs the selected subcommand and returns its result document."""
    config = load_config()
    if args.log_level is None:
        setup_logging(config.log_level)

    if args.command == "compile":
        result = process_project(_load_project(args.source), region=args.region or config.aws_region)
        if result["success"] and args.audit:
            result["audit"] = audit(result["terraform_code"]).to_dict()
        if result["success"] and args.output:
            Path(args.output).write_text(result["terraform_code"], encoding="utf-8")
        return result

    configuration_text = read_configuration_source(args.source)
    if args.command == "audit":
        return {"success": True, **audit(configuration_text).to_dict()}

    credentials = resolve_credentials(args, config.aws_region)
    if args.command == "detect-drift":
        return detect_drift(configuration_text, credentials, config).to_dict()
    return compare_state(configuration_text, credentials, config).to_dict()


def exit_code_for(result: ResultDict) -> int:
    """1 when the command failed or found drift, else 0."""
    if not result.get("success", False):
        return 1
    if result.get("has_drift") or result.get("has_changes"):
        return 1
    return 0


def print_audit_report(audit_report: Dict[str, Any]) -> None:
    """Print a human-readable audit report."""
    summary = audit_report.get("summary", {})
    print(f"\n=== Security Findings ({summary.get('total_issues', 0)}) ===")
    print(
        f"High: {summary.get('high_risk', 0)}  "
        f"Medium: {summary.get('medium_risk', 0)}  "
        f"Low: {summary.get('low_risk', 0)}"
    )
    findings = audit_report.get("findings", [])
    if not findings:
        print("No security issues detected.")
    for i, finding in enumerate(findings, 1):
        print(f"{i}. [{finding['severity'].upper()}] {finding['category']}")
        print(f"   Message: {finding['message']}")
        print(f"   Recommendation: {finding['recommendation']}")


def print_changes(changes: List[Dict[str, Any]], title: str) -> None:
    print(f"\n=== {title} ({len(changes)}) ===")
    if not changes:
        print(f"No {title.lower()} detected.")
    for i, change in enumerate(changes, 1):
        print(f"{i}. {change['action'].upper():<8} {change.get('address') or change['type'] + '.' + change['identifier']}")


def print_report(command: str, result: ResultDict) -> None:
    """Print a human-readable report for any subcommand."""
    print("\n" + "=" * 60)
    print(f"IAC ENGINE: {command.upper()}")
    print("=" * 60)

    print(f"\nStatus: {'OK' if result.get('success') else 'FAILED'}")
    if result.get("message"):
        print(f"Message: {result['message']}")
    if not result.get("success"):
        error = result.get("error")
        if isinstance(error, dict) and error.get("stderr"):
            print(f"\n{error['stderr'].strip()}")
        elif isinstance(error, str):
            print(f"Error: {error}")

    if command == "compile" and result.get("success"):
        print(f"Project: {result.get('project_name') or 'Unnamed'} ({result.get('node_count', 0)} nodes)\n")
        print(result["terraform_code"])
        if "audit" in result:
            print_audit_report(result["audit"])
    elif command == "audit" and result.get("success"):
        print_audit_report(result)
    elif command == "detect-drift" and result.get("success"):
        print(f"Timestamp: {result.get('timestamp', 'Unknown')}")
        print_changes(result.get("drifted_resources", []), "Drifted Resources")
    elif command == "compare-state" and result.get("success"):
        resources = result.get("current_state", {}).get("resources", [])
        print(f"Resources in state: {len(resources)}")
        print_changes(result.get("changes", []), "Pending Changes")

    print("\n" + "=" * 60)


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for the command-line interface."""
    args = build_parser().parse_args(argv)
    logger = setup_logging(args.log_level)
    logger.info(f"Running {args.command} from command line")

    result = run_command(args)

    if args.output_format == "json":
        print(json.dumps(result, indent=2))
    else:
        print_report(args.command, result)

    code = exit_code_for(result)
    if code:
        logger.warning(f"{args.command} finished with exit code {code}")
    sys.exit(code)


if __name__ == "__main__":
    main()
