"""
Ephemeral per-run working directory.

A :class:`Workspace` holds every intermediate file of one pipeline run.  It
is created when the run starts and removed when the run ends, whichever way
it ends.  Use it as a context manager so removal cannot be skipped::

    with Workspace.create() as workspace:
        audio = workspace.path / "audio.wav"
        ...
"""

from __future__ import annotations

import logging
import shutil
import tempfile
import time
from pathlib import Path
from typing import Optional

from .errors import WorkspaceError

logger = logging.getLogger(__name__)

WORKSPACE_PREFIX = "whisper-run-"


class Workspace:
    def __init__(self, path: Path, created_at: float) -> None:
        self.path = path
        self.created_at = created_at
        self._destroyed = False

    @classmethod
    def create(cls, root: Optional[str] = None) -> "Workspace":
        """Allocate a uniquely named directory under ``root``.

        Args:
            root: Parent directory.  Defaults to the system temporary directory.

        Raises:
            WorkspaceError: If the directory cannot be created.
        """
        try:
            path = Path(tempfile.mkdtemp(prefix=WORKSPACE_PREFIX, dir=root))
        except OSError as exc:
            raise WorkspaceError(f"Could not create workspace under {root or tempfile.gettempdir()}: {exc}") from exc
        logger.debug("Created workspace %s", path)
        return cls(path, time.time())

    @property
    def destroyed(self) -> bool:
        return self._destroyed

    def destroy(self) -> None:
        """Recursively delete the directory.

        Safe to call more than once.  Errors are logged and never raised so
        that they cannot hide the outcome of the run.
        """
        if self._destroyed:
            return
        self._destroyed = True
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError:
            logger.exception("Error cleaning up workspace %s", self.path)
        else:
            logger.debug("Removed workspace %s after %.1fs", self.path, time.time() - self.created_at)

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.destroy()

    def __repr__(self) -> str:
        return f"Workspace({str(self.path)!r})"
