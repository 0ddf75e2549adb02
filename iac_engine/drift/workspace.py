"""
Workspace Manager Module.

Each drift or comparison run gets its own scratch directory holding the
configuration, a provider block carrying the run's credentials, and whatever
Terraform writes there (plugin cache, lock file, plan file). The directory is
removed on every exit path, including exceptions and interpreter-level
interruptions raised while the run is in progress.
"""

import os
import re
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional, TypeVar

from ..errors import WorkspaceError
from ..hcl import Block, Expression, quote
from ..models import Credentials
from ..utils import setup_logging

logger = setup_logging()

T = TypeVar("T")

WORKSPACE_PREFIX = "terraform-drift-"
CONFIGURATION_FILE = "main.tf"
PROVIDER_FILE = "provider.tf"
# Terraform merges *_override.tf files into the matching block of the main files
PROVIDER_OVERRIDE_FILE = "provider_override.tf"

_AWS_PROVIDER_BLOCK = re.compile(r'^\s*provider\s+"aws"\s*\{', re.MULTILINE)


def render_credentials_block(credentials: Credentials) -> str:
    """
    Render the provider block that authenticates the run.

    Values are quoted literally so that no credential text is interpreted as
    a template sequence.
    """
    block = Block("provider", "aws")
    block.attributes(
        [
            ("access_key", Expression(quote(credentials.access_key_id, literal=True))),
            ("secret_key", Expression(quote(credentials.secret_access_key, literal=True))),
            ("region", Expression(quote(credentials.region, literal=True))),
        ]
    )
    if credentials.session_token:
        block.attribute("token", Expression(quote(credentials.session_token, literal=True)))
    return block.render() + "\n"


def provider_file_name(configuration_text: str) -> str:
    """Override file when the configuration declares its own aws provider, plain file otherwise."""
    if _AWS_PROVIDER_BLOCK.search(configuration_text):
        return PROVIDER_OVERRIDE_FILE
    return PROVIDER_FILE


def _write_private(path: Path, content: str) -> None:
    fd = os.open(str(path), os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        f.write(content)


def _populate(path: Path, configuration_text: str, credentials: Credentials) -> None:
    try:
        _write_private(path / CONFIGURATION_FILE, configuration_text)
        _write_private(path / provider_file_name(configuration_text), render_credentials_block(credentials))
    except OSError as e:
        raise WorkspaceError(f"Unable to write workspace files: {e}") from e


def _remove(path: Path) -> None:
    try:
        shutil.rmtree(path)
        logger.debug(f"Removed workspace {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error(f"Error cleaning up workspace {path}: {e}")


@contextmanager
def workspace(
    configuration_text: str,
    credentials: Credentials,
    root: Optional[str] = None,
    prefix: str = WORKSPACE_PREFIX,
) -> Iterator[Path]:
    """
    Scoped workspace populated with configuration and credentials.

    Args:
        configuration_text: Terraform configuration written to main.tf
        credentials: Credentials written to the provider file
        root: Parent directory for the workspace; the system temp dir by default
        prefix: Directory name prefix

    Yields:
        Path of the populated workspace directory

    Raises:
        WorkspaceError: If the directory or its files cannot be created
    """
    try:
        # mkdtemp creates the directory readable by the current user only
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=root))
    except OSError as e:
        raise WorkspaceError(f"Unable to create workspace: {e}") from e

    logger.info(f"Created workspace {path}")
    try:
        _populate(path, configuration_text, credentials)
        yield path
    finally:
        _remove(path)


def with_workspace(
    configuration_text: str,
    credentials: Credentials,
    fn: Callable[[Path], T],
    root: Optional[str] = None,
    prefix: str = WORKSPACE_PREFIX,
) -> T:
    """Run ``fn`` inside a fresh workspace and return its result."""
    with workspace(configuration_text, credentials, root=root, prefix=prefix) as path:
        return fn(path)
