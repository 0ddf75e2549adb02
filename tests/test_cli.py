"""
Tests for the command-line interface.
"""

import io
import json
import os
import tempfile
import unittest
from contextlib import redirect_stdout
from unittest.mock import MagicMock, patch

from iac_engine.cli import build_parser, exit_code_for, main, resolve_credentials
from iac_engine.errors import ValidationError
from iac_engine.models import DriftResult, PlanOutcome


class TestCli(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.graph_path = os.path.join(self.tmp.name, "project.json")
        with open(self.graph_path, "w") as f:
            json.dump({"project_name": "Shop", "nodes": [{"id": "q", "kind": "sqs", "label": "Jobs"}]}, f)
        self.tf_path = os.path.join(self.tmp.name, "main.tf")
        with open(self.tf_path, "w") as f:
            f.write('resource "aws_sqs_queue" "jobs" {}\n')

    def run_cli(self, *argv: str):
        out = io.StringIO()
        with redirect_stdout(out), self.assertRaises(SystemExit) as exit_context:
            main(list(argv))
        return exit_context.exception.code, out.getvalue()

    @patch.dict("os.environ", {}, clear=True)
    def test_compile_writes_output_file(self) -> None:
        """compile --output writes the generated code to disk."""
        output = os.path.join(self.tmp.name, "out.tf")
        code, stdout = self.run_cli("--output-format", "json", "compile", self.graph_path, "--audit", "--output", output)
        self.assertEqual(code, 0)
        result = json.loads(stdout)
        self.assertTrue(result["success"])
        self.assertIn("audit", result)
        with open(output) as f:
            self.assertEqual(f.read(), result["terraform_code"])

    @patch.dict("os.environ", {}, clear=True)
    def test_compile_pretty(self) -> None:
        """compile prints the generated code in pretty mode."""
        code, stdout = self.run_cli("compile", self.graph_path)
        self.assertEqual(code, 0)
        self.assertIn("IAC ENGINE: COMPILE", stdout)
        self.assertIn('resource "aws_sqs_queue" "jobs"', stdout)

    @patch.dict("os.environ", {}, clear=True)
    def test_compile_invalid_json(self) -> None:
        """An unparsable graph document exits 1 with a validation error."""
        with open(self.graph_path, "w") as f:
            f.write("{not json")
        code, stdout = self.run_cli("--output-format", "json", "compile", self.graph_path)
        self.assertEqual(code, 1)
        self.assertEqual(json.loads(stdout)["error"], "validation_error")

    @patch.dict("os.environ", {}, clear=True)
    def test_audit(self) -> None:
        """audit on a clean file exits 0."""
        code, stdout = self.run_cli("audit", self.tf_path)
        self.assertEqual(code, 0)
        self.assertIn("No security issues detected.", stdout)

    @patch.dict("os.environ", {}, clear=True)
    def test_missing_file(self) -> None:
        """A missing source file exits 1."""
        code, _ = self.run_cli("audit", os.path.join(self.tmp.name, "missing.tf"))
        self.assertEqual(code, 1)

    @patch.dict("os.environ", {}, clear=True)
    @patch("iac_engine.cli.detect_drift")
    def test_detect_drift_exits_one_on_drift(self, mock_detect: MagicMock) -> None:
        """detect-drift exits 1 when drift is found and never prints secrets."""
        mock_detect.return_value = DriftResult(
            success=True, has_drift=True, message="Drift detected in infrastructure", outcome=PlanOutcome.CHANGES_PENDING
        )
        code, stdout = self.run_cli(
            "detect-drift", self.tf_path, "--access-key-id", "AK", "--secret-access-key", "SK", "--region", "eu-west-1"
        )
        self.assertEqual(code, 1)
        self.assertIn("Drifted Resources (0)", stdout)
        credentials = mock_detect.call_args.args[1]
        self.assertEqual(credentials.region, "eu-west-1")
        self.assertNotIn("SK", stdout)

    @patch.dict("os.environ", {}, clear=True)
    @patch("iac_engine.cli.resolve_session_credentials")
    @patch("iac_engine.cli.compare_state")
    def test_compare_state_uses_profile(self, mock_compare: MagicMock, mock_session: MagicMock) -> None:
        """compare-state resolves credentials from the named profile."""
        mock_session.return_value = ("AK", "SK", "TOKEN", None)
        mock_compare.return_value.to_dict.return_value = {"success": True, "has_changes": False, "changes": []}
        code, _ = self.run_cli("--output-format", "json", "compare-state", self.tf_path, "--profile", "staging")
        self.assertEqual(code, 0)
        mock_session.assert_called_once_with("staging", None)
        credentials = mock_compare.call_args.args[1]
        self.assertEqual(credentials.session_token, "TOKEN")
        self.assertEqual(credentials.region, "us-east-1")

    def test_half_an_access_key_pair_is_rejected(self) -> None:
        """An access key id without its secret is rejected."""
        args = build_parser().parse_args(["detect-drift", "main.tf", "--access-key-id", "AK"])
        with self.assertRaises(ValidationError):
            resolve_credentials(args, "us-east-1")

    def test_exit_code_for(self) -> None:
        """Exit code is 1 on failure, drift or pending changes."""
        self.assertEqual(exit_code_for({"success": True, "has_drift": False}), 0)
        self.assertEqual(exit_code_for({"success": True, "has_changes": True}), 1)
        self.assertEqual(exit_code_for({"success": False}), 1)


if __name__ == "__main__":
    unittest.main()
