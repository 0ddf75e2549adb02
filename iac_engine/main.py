"""
AWS Lambda entry point for the IaC engine.

The event selects an action with its ``action`` key:

- ``compile``: ``project`` holds a graph document (nodes, edges, metadata)
- ``audit``: ``configuration`` holds Terraform text
- ``detect_drift`` / ``compare_state``: ``configuration`` (or
  ``configuration_source``, an s3:// URL) plus ``credentials``
"""

import json
from typing import Any, Callable, Dict, Mapping

from .auditor import audit
from .compiler import process_project
from .config import Config, load_config
from .drift import compare_state, detect_drift
from .errors import ValidationError
from .types import ResultDict
from .utils import boundary_error_handler, read_configuration_source, setup_logging

JSON_HEADERS = {"Content-Type": "application/json"}


def _response(status_code: int, body: Mapping[str, Any]) -> dict:
    return {
        "statusCode": status_code,
        "body": json.dumps(body),
        "headers": dict(JSON_HEADERS),
    }


def _configuration_text(event: Mapping[str, Any]) -> str:
    text = event.get("configuration")
    if isinstance(text, str) and text.strip():
        return text
    source = event.get("configuration_source")
    if source:
        if not str(source).startswith("s3://"):
            raise ValidationError("configuration_source must be an s3:// URL")
        return read_configuration_source(source)
    raise ValidationError("Request must include 'configuration' or 'configuration_source'")


def _compile(event: Mapping[str, Any], config: Config) -> ResultDict:
    project = event.get("project")
    if project is None and "nodes" in event:
        project = event
    return process_project(project, region=event.get("region") or config.aws_region)


def _audit(event: Mapping[str, Any], config: Config) -> ResultDict:
    return {"success": True, **audit(_configuration_text(event)).to_dict()}


def _detect_drift(event: Mapping[str, Any], config: Config) -> ResultDict:
    return detect_drift(_configuration_text(event), event.get("credentials"), config).to_dict()


def _compare_state(event: Mapping[str, Any], config: Config) -> ResultDict:
    return compare_state(_configuration_text(event), event.get("credentials"), config).to_dict()


ACTIONS: Dict[str, Callable[[Mapping[str, Any], Config], ResultDict]] = {
    "compile": _compile,
    "audit": _audit,
    "detect_drift": _detect_drift,
    "compare_state": _compare_state,
}


@boundary_error_handler
def dispatch(event: Mapping[str, Any], config: Config) -> ResultDict:
    """Runs the action named in the event."""
    if not isinstance(event, Mapping):
        raise ValidationError("Event must be a JSON object")
    action = event.get("action")
    handler = ACTIONS.get(action)
    if handler is None:
        raise ValidationError(f"Unknown action '{action}'; expected one of {', '.join(ACTIONS)}")
    return handler(event, config)


def _status_code(result: Mapping[str, Any]) -> int:
    if result.get("success", False):
        return 200
    error = result.get("error")
    error_type = error.get("type") if isinstance(error, Mapping) else error
    if error_type == "internal_error":
        return 500
    # Compile failures carry a plain message and are caused by the submitted graph
    if error_type == "validation_error" or not isinstance(error, Mapping):
        return 400
    return 500


def lambda_handler(event: dict, context: object) -> dict:
    """
    AWS Lambda handler function.

    Args:
        event: Lambda event data
        context: Lambda context

    Returns:
        Dictionary with statusCode, body and headers
    """
    logger = setup_logging()
    try:
        config = load_config()
        logger = setup_logging(config.log_level)
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        return _response(400, {"error": "Configuration error", "message": str(e)})

    logger.info(f"Handling action: {event.get('action') if isinstance(event, Mapping) else None}")
    result = dispatch(event, config)
    status_code = _status_code(result)
    if status_code == 200:
        logger.info("Request completed successfully")
    else:
        logger.warning(f"Request failed with status {status_code}: {result.get('message') or result.get('error')}")
    return _response(status_code, result)
