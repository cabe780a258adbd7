"""Per-job scratch directories."""

import logging
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional
from uuid import uuid4

logger = logging.getLogger(__name__)


@contextmanager
def job_workspace(base_dir: Optional[str] = None) -> Iterator[Path]:
    """
    Create a unique ``job-<uuid>`` directory and remove it on exit.

    Args:
        base_dir: Parent directory (defaults to the system temp dir)

    Yields:
        Path to the workspace
    """
    parent = Path(base_dir or tempfile.gettempdir())
    parent.mkdir(parents=True, exist_ok=True)
    workspace = parent / f"job-{uuid4()}"
    workspace.mkdir()
    logger.debug(f"Created workspace {workspace}")
    try:
        yield workspace
    finally:
        shutil.rmtree(workspace, ignore_errors=True)
        logger.debug(f"Removed workspace {workspace}")
