"""
Core package for the Whisper transcript pipeline.

This package turns a YouTube video id into a transcript by chaining three
command-line tools inside a throwaway workspace: ``yt-dlp`` downloads the
audio, ``ffmpeg`` converts it to 16 kHz mono WAV and ``whisper`` transcribes
it.  :class:`TranscriptionPipeline` is the entry point; :mod:`.main` exposes
it over HTTP.
"""

from .config import PipelineSettings, load_settings
from .errors import (
    EmptyResult,
    ExecutionFailure,
    LaunchFailure,
    OutputNotFound,
    PipelineError,
    StageTimeout,
    WorkspaceError,
)
from .orchestrator import PipelineState, TranscriptionPipeline, TranscriptResult

__all__ = [
    "EmptyResult",
    "ExecutionFailure",
    "LaunchFailure",
    "OutputNotFound",
    "PipelineError",
    "PipelineSettings",
    "PipelineState",
    "StageTimeout",
    "TranscriptResult",
    "TranscriptionPipeline",
    "WorkspaceError",
    "load_settings",
]
