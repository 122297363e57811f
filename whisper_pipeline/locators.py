"""
Output locators.

External tools do not always let us choose the exact output filename:
``yt-dlp`` picks the extension, ``whisper`` names its transcript after the
input.  A locator is the declared policy a stage uses to find the file a
tool produced inside the workspace.

All locators return ``None`` when nothing matches; the stage turns that
into :class:`~whisper_pipeline.errors.OutputNotFound`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class OutputLocator(ABC):
    @abstractmethod
    def locate(self, root: Path, stem: str = "") -> Optional[Path]:
        """Return the produced file under ``root`` or ``None``.

        Args:
            root: Workspace directory to search.
            stem: Base name (no extension) of the stage input, available to
                templates as ``{stem}``.
        """


class ExactPath(OutputLocator):
    """A path known in advance, relative to the workspace."""

    def __init__(self, template: str) -> None:
        self.template = template

    def locate(self, root: Path, stem: str = "") -> Optional[Path]:
        path = root / self.template.format(stem=stem)
        return path if path.is_file() else None

    def __repr__(self) -> str:
        return f"ExactPath({self.template!r})"


class GlobMatch(OutputLocator):
    """Any file matching a glob pattern; ties go to the lexically first path."""

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern

    def candidates(self, root: Path) -> list[Path]:
        return sorted(p for p in root.glob(self.pattern) if p.is_file())

    def locate(self, root: Path, stem: str = "") -> Optional[Path]:
        found = self.candidates(root)
        if not found:
            return None
        if len(found) > 1:
            logger.warning(
                "%d files match %s in %s; using %s",
                len(found), self.pattern, root, found[0].name,
            )
        return found[0]

    def __repr__(self) -> str:
        return f"GlobMatch({self.pattern!r})"


class FirstOf(OutputLocator):
    """Try each locator in order and keep the first hit."""

    def __init__(self, *locators: OutputLocator) -> None:
        self.locators = locators

    def locate(self, root: Path, stem: str = "") -> Optional[Path]:
        for locator in self.locators:
            path = locator.locate(root, stem)
            if path is not None:
                return path
        return None

    def __repr__(self) -> str:
        return "FirstOf(" + ", ".join(repr(l) for l in self.locators) + ")"
