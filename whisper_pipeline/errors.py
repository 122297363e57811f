"""Classified failures raised and reported by the transcription pipeline."""

from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    """Base class for every classified pipeline failure.

    Attributes:
        stage: Name of the stage the failure is attached to, or ``None`` when
            the failure happened outside any stage.
        detail: Diagnostic text captured from the external tool, if any.
    """

    kind = "PipelineError"

    def __init__(self, message: str, *, stage: Optional[str] = None, detail: str = "") -> None:
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.detail = detail

    def __str__(self) -> str:
        if self.stage:
            return f"[{self.stage}] {self.message}"
        return self.message


class LaunchFailure(PipelineError):
    """The external tool could not be started."""

    kind = "LaunchFailure"


class ExecutionFailure(PipelineError):
    """The external tool started but exited with a non-zero status."""

    kind = "ExecutionFailure"

    def __init__(self, message: str, *, exit_code: int, stage: Optional[str] = None, detail: str = "") -> None:
        super().__init__(message, stage=stage, detail=detail)
        self.exit_code = exit_code


class StageTimeout(PipelineError):
    """The external tool ran longer than its stage allows and was killed."""

    kind = "StageTimeout"

    def __init__(self, message: str, *, timeout: float, stage: Optional[str] = None, detail: str = "") -> None:
        super().__init__(message, stage=stage, detail=detail)
        self.timeout = timeout


class OutputNotFound(PipelineError):
    """The tool exited cleanly but its output file could not be located."""

    kind = "OutputNotFound"


class EmptyResult(PipelineError):
    """The transcript file exists but holds no text."""

    kind = "EmptyResult"


class WorkspaceError(PipelineError):
    """The per-run workspace directory could not be created."""

    kind = "WorkspaceError"
