"""
Utility functions for the IaC engine.

Logging setup, the boundary error handler shared by the CLI and the Lambda
handler, and loaders for configuration text and Terraform state.
"""

import functools
import json
import logging
from pathlib import Path
from typing import Callable, Optional, Tuple, TypeVar, cast
from urllib.parse import urlparse

import boto3
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError, ProfileNotFound

from .errors import ValidationError
from .types import TerraformState

LOGGER_NAME = "iac_engine"


def setup_logging(log_level: Optional[str] = None) -> logging.Logger:
    """
    Sets up logging configuration for the IaC engine.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR). When omitted the
            current level is kept, defaulting to INFO on first use.

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(LOGGER_NAME)
    if log_level:
        logger.setLevel(getattr(logging, log_level.upper()))
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    # Prevent duplicate handlers
    if not logger.handlers:
        handler = logging.StreamHandler()
        formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        )
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


F = TypeVar("F", bound=Callable[..., dict])


def boundary_error_handler(func: F) -> F:
    """
    Decorator for the outermost request layer.

    Translates any exception escaping the wrapped call into the same
    ``success=False`` shape the core returns for its own failures, so that no
    call throws past the boundary. Validation problems keep their message;
    AWS client errors report the service error code.
    """

    @functools.wraps(func)
    def wrapper(*args: object, **kwargs: object) -> dict:
        logger = setup_logging()
        try:
            return func(*args, **kwargs)
        except ValidationError as e:
            logger.warning(f"Validation error in {func.__name__}: {e}")
            return {"success": False, "message": str(e), "error": "validation_error"}
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "Unknown")
            logger.error(f"AWS ClientError in {func.__name__}: {code}")
            return {"success": False, "message": f"AWS request failed ({code})", "error": "aws_error"}
        except Exception as e:
            logger.error(f"Unexpected error in {func.__name__}: {e}")
            return {"success": False, "message": str(e) or type(e).__name__, "error": "internal_error"}

    return cast(F, wrapper)


def download_s3_file(s3_path: str, logger: Optional[logging.Logger] = None) -> str:
    """
    Downloads a file from S3 and returns its content as a string.

    Args:
        s3_path: S3 path in format 's3://bucket/key'
        logger: Logger instance for error logging

    Returns:
        File content as string

    Raises:
        ValidationError: If S3 path is invalid
        Exception: If S3 download fails
    """
    if logger is None:
        logger = setup_logging()

    parsed = urlparse(s3_path)
    bucket = parsed.netloc
    key = parsed.path.lstrip("/")
    if parsed.scheme != "s3" or not bucket or not key:
        raise ValidationError(f"Invalid S3 path: {s3_path}")

    try:
        logger.info(f"Downloading S3 file: {s3_path}")
        s3_client = boto3.client("s3")
        response = s3_client.get_object(Bucket=bucket, Key=key)
        content_bytes = response["Body"].read()
        content = (
            content_bytes.decode("utf-8")
            if isinstance(content_bytes, bytes)
            else str(content_bytes)
        )
        logger.info(f"Successfully downloaded {len(content)} bytes from S3")
        return content

    except Exception as e:
        logger.error(f"Failed to download S3 file {s3_path}: {str(e)}")
        raise


def read_configuration_source(source: str, logger: Optional[logging.Logger] = None) -> str:
    """
    Reads configuration text from an S3 object or a local file.

    Args:
        source: 's3://bucket/key', 'local://path' or a plain filesystem path

    Returns:
        The configuration text

    Raises:
        ValidationError: If the source is empty or the local file does not exist
    """
    if logger is None:
        logger = setup_logging()

    if not source:
        raise ValidationError("A configuration source is required")

    if source.startswith("s3://"):
        return download_s3_file(source, logger)

    local_path = Path(source[len("local://"):] if source.startswith("local://") else source)
    if not local_path.is_file():
        raise ValidationError(f"Configuration file not found: {local_path}")
    logger.info(f"Reading configuration from {local_path}")
    return local_path.read_text(encoding="utf-8")


def resolve_session_credentials(
    profile_name: Optional[str] = None, region: Optional[str] = None
) -> Tuple[str, str, Optional[str], Optional[str]]:
    """
    Resolves AWS credentials from a boto3 session.

    Args:
        profile_name: Named AWS CLI profile, or None for the default chain
        region: Region override; falls back to the session's configured region

    Returns:
        Tuple of (access_key_id, secret_access_key, session_token, region)

    Raises:
        ValidationError: If the profile does not exist or no credentials are found
    """
    try:
        session = boto3.Session(profile_name=profile_name)
        credentials = session.get_credentials()
    except ProfileNotFound as e:
        raise ValidationError(str(e))
    except (NoCredentialsError, BotoCoreError) as e:
        raise ValidationError(f"Unable to resolve AWS credentials: {e}")

    if credentials is None:
        raise ValidationError("No AWS credentials found in the session")

    frozen = credentials.get_frozen_credentials()
    return frozen.access_key, frozen.secret_key, frozen.token, region or session.region_name


def parse_terraform_state(
    state_content: str, logger: Optional[logging.Logger] = None
) -> TerraformState:
    """
    Parses Terraform state file content into a Python dict.

    An empty pull (no state stored yet) is an empty state.

    Args:
        state_content: Raw state file content as string
        logger: Logger instance for error logging

    Returns:
        Parsed state data as dict

    Raises:
        ValueError: If state file contains invalid JSON or is not an object
    """
    if logger is None:
        logger = setup_logging()

    if not state_content.strip():
        logger.info("State is empty; no resources are tracked yet")
        return {}

    try:
        logger.info("Parsing Terraform state")
        state_data = json.loads(state_content)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in state: {e}")
        raise ValueError(f"Invalid JSON in state: {e}")

    if not isinstance(state_data, dict):
        raise ValueError("State did not parse to a dictionary.")
    logger.info(
        f"Successfully parsed state with "
        f"{len(state_data.get('resources', []))} resources"
    )
    return state_data
