"""
Tests for configuration module.
"""

import tempfile
import unittest
from unittest.mock import patch

from iac_engine.config import Config, load_config


class TestConfig(unittest.TestCase):
    """Test configuration loading and validation."""

    @patch.dict("os.environ", {}, clear=True)
    def test_load_config_defaults(self) -> None:
        """Test that an empty environment yields the documented defaults."""
        config = load_config()
        self.assertIsInstance(config, Config)
        self.assertEqual(config.terraform_binary, "terraform")
        self.assertEqual(config.aws_region, "us-east-1")
        self.assertEqual(config.log_level, "INFO")
        self.assertIsNone(config.timeout_seconds)
        self.assertIsNone(config.workspace_root)

    @patch.dict("os.environ", {"LOG_LEVEL": "verbose"}, clear=True)
    def test_load_config_invalid_log_level(self) -> None:
        """Test that an unknown log level raises ValueError."""
        with self.assertRaises(ValueError) as context:
            load_config()
        self.assertIn("LOG_LEVEL", str(context.exception))

    @patch.dict("os.environ", {"PLAN_TIMEOUT_SECONDS": "soon"}, clear=True)
    def test_load_config_non_integer_timeout(self) -> None:
        """Test that a non-numeric timeout raises ValueError."""
        with self.assertRaises(ValueError) as context:
            load_config()
        self.assertIn("PLAN_TIMEOUT_SECONDS", str(context.exception))

    @patch.dict("os.environ", {"PLAN_TIMEOUT_SECONDS": "0"}, clear=True)
    def test_load_config_non_positive_timeout(self) -> None:
        """Test that a zero or negative plan timeout is rejected."""
        with self.assertRaises(ValueError):
            load_config()

    @patch.dict("os.environ", {"TERRAFORM_BINARY": "  "}, clear=True)
    def test_load_config_empty_binary(self) -> None:
        """Test that an empty terraform binary is rejected."""
        with self.assertRaises(ValueError):
            load_config()

    @patch.dict("os.environ", {"WORKSPACE_ROOT": "/definitely/not/a/real/dir"}, clear=True)
    def test_load_config_missing_workspace_root(self) -> None:
        """Test that a workspace root that does not exist is rejected."""
        with self.assertRaises(ValueError) as context:
            load_config()
        self.assertIn("WORKSPACE_ROOT", str(context.exception))

    def test_load_config_with_optional_values(self) -> None:
        """Test configuration loading with optional values."""
        with tempfile.TemporaryDirectory() as root:
            env = {
                "TERRAFORM_BINARY": "/usr/local/bin/terraform",
                "AWS_REGION": "eu-west-2",
                "LOG_LEVEL": "debug",
                "PLAN_TIMEOUT_SECONDS": "300",
                "WORKSPACE_ROOT": root,
            }
            with patch.dict("os.environ", env, clear=True):
                config = load_config()
        self.assertEqual(config.terraform_binary, "/usr/local/bin/terraform")
        self.assertEqual(config.aws_region, "eu-west-2")
        self.assertEqual(config.log_level, "DEBUG")
        self.assertEqual(config.timeout_seconds, 300)
        self.assertEqual(config.workspace_root, root)


if __name__ == "__main__":
    unittest.main()
