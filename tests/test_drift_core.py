"""
Unit tests for the drift entry points.
The Terraform CLI is mocked; workspaces are real directories under a
temporary root so that cleanup can be checked on every path.
"""

import json
import os
import tempfile
import unittest
from unittest.mock import MagicMock, patch

from iac_engine.config import Config
from iac_engine.drift import compare_state, detect_drift
from iac_engine.models import Credentials, PlanOutcome

CONFIGURATION = 'resource "aws_sqs_queue" "jobs" {\n  name = "jobs"\n}\n'
CREDENTIALS = {"accessKeyId": "AKIDEXAMPLE", "secretAccessKey": "not-a-real-secret", "region": "us-east-1"}


def completed(returncode: int, stdout: str = "", stderr: str = "") -> MagicMock:
    process = MagicMock()
    process.returncode = returncode
    process.stdout = stdout
    process.stderr = stderr
    return process


@patch("iac_engine.drift.orchestrator.subprocess.run")
class TestDetectDrift(unittest.TestCase):
    def setUp(self) -> None:
        self.root = tempfile.TemporaryDirectory()
        self.addCleanup(self.root.cleanup)
        self.config = Config(workspace_root=self.root.name)

    def assertWorkspaceRemoved(self) -> None:
        self.assertEqual(os.listdir(self.root.name), [])

    def test_no_drift(self, mock_run: MagicMock) -> None:
        """Exit code 0 means no drift."""
        mock_run.side_effect = [completed(0), completed(0, "No changes. Your infrastructure matches the configuration.")]
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertTrue(result.success)
        self.assertFalse(result.has_drift)
        self.assertEqual(result.message, "No drift detected")
        self.assertEqual(result.drifted_resources, [])
        self.assertIs(result.outcome, PlanOutcome.NO_CHANGE)
        self.assertWorkspaceRemoved()

    def test_drift_detected(self, mock_run: MagicMock) -> None:
        """Exit code 2 means drift, with the changed resources parsed."""
        plan_output = "~ aws_instance.web\n+ aws_s3_bucket.data\n"
        mock_run.side_effect = [completed(0), completed(2, plan_output)]
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertTrue(result.success)
        self.assertTrue(result.has_drift)
        self.assertEqual(result.message, "Drift detected in infrastructure")
        self.assertEqual([r.identifier for r in result.drifted_resources], ["web", "data"])
        self.assertEqual(result.raw_plan_output, plan_output)
        self.assertWorkspaceRemoved()

    def test_exit_code_decides_drift(self, mock_run: MagicMock) -> None:
        """Drift follows the exit code even when nothing can be parsed."""
        # Exit code 2 with nothing parseable is still drift
        mock_run.side_effect = [completed(0), completed(2, "Note: Objects have changed outside of Terraform")]
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertTrue(result.has_drift)
        self.assertEqual(result.drifted_resources, [])

    def test_plan_failure(self, mock_run: MagicMock) -> None:
        """A failed plan is reported with its stderr."""
        mock_run.side_effect = [completed(0), completed(1, "", "Error: No valid credential sources found")]
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertFalse(result.has_drift)
        self.assertIn("terraform plan failed", result.message)
        self.assertEqual(result.error["type"], "tool_error")
        self.assertEqual(result.error["step"], "plan")
        self.assertIn("No valid credential sources", result.error["stderr"])
        self.assertWorkspaceRemoved()

    def test_init_failure(self, mock_run: MagicMock) -> None:
        """A failed init is reported and plan is never run."""
        mock_run.side_effect = [completed(1, "", "Error: Failed to install provider")]
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["step"], "init")
        self.assertEqual(mock_run.call_count, 1)
        self.assertWorkspaceRemoved()

    def test_missing_credentials(self, mock_run: MagicMock) -> None:
        """Missing credentials fail validation before terraform runs."""
        result = detect_drift(CONFIGURATION, {"accessKeyId": "AKIDEXAMPLE"}, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["type"], "validation_error")
        self.assertIn("secret_access_key", result.message)
        mock_run.assert_not_called()
        self.assertWorkspaceRemoved()

    def test_empty_configuration(self, mock_run: MagicMock) -> None:
        """Blank configuration text fails validation."""
        result = detect_drift("   ", CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["type"], "validation_error")
        mock_run.assert_not_called()

    def test_missing_terraform_binary(self, mock_run: MagicMock) -> None:
        """A missing terraform binary is a workspace error."""
        mock_run.side_effect = FileNotFoundError("terraform")
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["type"], "workspace_error")
        self.assertWorkspaceRemoved()

    def test_unexpected_crash(self, mock_run: MagicMock) -> None:
        """Unexpected exceptions become internal errors."""
        mock_run.side_effect = RuntimeError("segfault in provider")
        result = detect_drift(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["type"], "internal_error")
        self.assertWorkspaceRemoved()

    def test_accepts_credentials_object(self, mock_run: MagicMock) -> None:
        """A Credentials object is accepted as well as a mapping."""
        mock_run.side_effect = [completed(0), completed(0)]
        creds = Credentials(access_key_id="AKIDEXAMPLE", secret_access_key="s", region="eu-west-1")
        self.assertTrue(detect_drift(CONFIGURATION, creds, self.config).success)

    def test_to_dict_is_json_ready(self, mock_run: MagicMock) -> None:
        """The result document serialises to JSON."""
        mock_run.side_effect = [completed(0), completed(2, "~ aws_instance.web\n")]
        doc = detect_drift(CONFIGURATION, CREDENTIALS, self.config).to_dict()
        self.assertEqual(json.loads(json.dumps(doc))["drifted_resources"][0]["type"], "aws_instance")
        self.assertEqual(doc["outcome"], "changes_pending")


@patch("iac_engine.drift.orchestrator.subprocess.run")
class TestCompareState(unittest.TestCase):
    def setUp(self) -> None:
        self.root = tempfile.TemporaryDirectory()
        self.addCleanup(self.root.cleanup)
        self.config = Config(workspace_root=self.root.name)

    def test_state_and_changes(self, mock_run: MagicMock) -> None:
        """The pulled state and pending changes are both returned."""
        state = {"version": 4, "resources": [{"type": "aws_sqs_queue", "name": "jobs"}]}
        mock_run.side_effect = [completed(0), completed(2, "~ aws_sqs_queue.jobs\n"), completed(0, json.dumps(state))]
        result = compare_state(CONFIGURATION, CREDENTIALS, self.config)
        self.assertTrue(result.success)
        self.assertEqual(result.current_state, state)
        self.assertTrue(result.has_changes)
        self.assertEqual([c.address for c in result.changes], ["aws_sqs_queue.jobs"])
        self.assertIn("-out=tfplan", mock_run.call_args_list[1].args[0])
        self.assertEqual(mock_run.call_args_list[2].args[0][1:], ["state", "pull"])
        self.assertEqual(os.listdir(self.root.name), [])

    def test_empty_state_is_empty_dict(self, mock_run: MagicMock) -> None:
        """An empty state pull is an empty state."""
        mock_run.side_effect = [completed(0), completed(0), completed(0, "")]
        result = compare_state(CONFIGURATION, CREDENTIALS, self.config)
        self.assertTrue(result.success)
        self.assertEqual(result.current_state, {})
        self.assertFalse(result.has_changes)

    def test_invalid_state_is_reported(self, mock_run: MagicMock) -> None:
        """Unparsable state is a failed result, not an exception."""
        mock_run.side_effect = [completed(0), completed(0), completed(0, "not json")]
        result = compare_state(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.message, "Pulled state could not be parsed")
        self.assertEqual(result.error["type"], "state_parse_error")

    def test_state_pull_failure(self, mock_run: MagicMock) -> None:
        """A failed state pull is reported as a tool error."""
        mock_run.side_effect = [completed(0), completed(0), completed(1, "", "Error: state locked")]
        result = compare_state(CONFIGURATION, CREDENTIALS, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["step"], "state pull")
        self.assertEqual(os.listdir(self.root.name), [])

    def test_missing_credentials(self, mock_run: MagicMock) -> None:
        """Missing credentials fail validation before terraform runs."""
        result = compare_state(CONFIGURATION, None, self.config)
        self.assertFalse(result.success)
        self.assertEqual(result.error["type"], "validation_error")
        mock_run.assert_not_called()


if __name__ == "__main__":
    unittest.main()
