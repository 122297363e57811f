"""
Pipeline stages.

A stage is one external-tool invocation: it renders the tool's arguments for
the current workspace and input, runs the tool, and locates the file the
tool produced.  The three stages of the pipeline are:

* **Download** – ``yt-dlp`` fetches the best audio stream of a video.
* **Convert** – ``ffmpeg`` turns it into 16 kHz mono WAV.
* **Transcribe** – ``whisper`` writes a plain-text transcript.

Stages never retry and never raise for a classified failure; they return a
:class:`StageResult` and let the orchestrator decide what happens next.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Awaitable, Callable, Optional, Tuple

from .config import PipelineSettings
from .errors import OutputNotFound, PipelineError
from .locators import ExactPath, FirstOf, GlobMatch, OutputLocator
from .process_runner import ProcessOutput, run_process
from .workspace import Workspace

logger = logging.getLogger(__name__)

Runner = Callable[..., Awaitable[ProcessOutput]]

DOWNLOAD = "Download"
CONVERT = "Convert"
TRANSCRIBE = "Transcribe"

YOUTUBE_WATCH_URL = "https://www.youtube.com/watch?v={source}"
DOWNLOAD_BASENAME = "audio"
CONVERTED_FILENAME = "audio.16k.wav"
TRANSCRIPT_DIR = "whisper_output"


@dataclass(frozen=True)
class StageSpec:
    """Immutable description of one stage.

    ``args`` are templates: ``{source}`` is replaced by the stage input and
    ``{workspace}`` by the workspace directory.
    """

    name: str
    executable: str
    args: Tuple[str, ...]
    locator: OutputLocator
    timeout: Optional[float] = None
    output_dir: Optional[str] = None
    require_content: bool = True

    def render_args(self, workspace: Workspace, source: str) -> list[str]:
        return [arg.format(source=source, workspace=workspace.path) for arg in self.args]


@dataclass(frozen=True)
class StageResult:
    stage: str
    output: Optional[Path] = None
    failure: Optional[PipelineError] = None

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def diagnostics(self) -> str:
        return self.failure.detail if self.failure else ""


class Stage:
    def __init__(self, spec: StageSpec, runner: Runner = run_process) -> None:
        self.spec = spec
        self.runner = runner

    @property
    def name(self) -> str:
        return self.spec.name

    async def run(self, workspace: Workspace, source: str) -> StageResult:
        """Run the tool against ``source`` inside ``workspace``."""
        spec = self.spec
        if spec.output_dir:
            (workspace.path / spec.output_dir).mkdir(parents=True, exist_ok=True)

        try:
            await self.runner(
                spec.executable,
                spec.render_args(workspace, source),
                cwd=str(workspace.path),
                timeout=spec.timeout,
            )
        except PipelineError as exc:
            logger.error("%s stage failed: %s", spec.name, exc)
            if exc.detail:
                logger.error("%s error: %s", spec.executable, exc.detail)
            return StageResult(stage=spec.name, failure=exc)

        output = spec.locator.locate(workspace.path, Path(source).stem)
        if output is None:
            return self._missing(f"{spec.executable} exited cleanly but no output matched {spec.locator!r}")
        if spec.require_content and output.stat().st_size == 0:
            return self._missing(f"{spec.executable} exited cleanly but {output.name} is empty")
        logger.info("%s stage produced %s", spec.name, output.name)
        return StageResult(stage=spec.name, output=output)

    def _missing(self, message: str) -> StageResult:
        logger.error("%s stage failed: %s", self.spec.name, message)
        return StageResult(stage=self.spec.name, failure=OutputNotFound(message))


def download_spec(settings: PipelineSettings) -> StageSpec:
    return StageSpec(
        name=DOWNLOAD,
        executable=settings.ytdlp_binary,
        args=("-f", "bestaudio", "-o", "{workspace}/" + DOWNLOAD_BASENAME + ".%(ext)s", YOUTUBE_WATCH_URL),
        locator=GlobMatch(DOWNLOAD_BASENAME + ".*"),
        timeout=settings.download_timeout,
    )


def convert_spec(settings: PipelineSettings) -> StageSpec:
    return StageSpec(
        name=CONVERT,
        executable=settings.ffmpeg_binary,
        args=("-i", "{source}", "-ac", "1", "-ar", "16000", "{workspace}/" + CONVERTED_FILENAME, "-y"),
        locator=ExactPath(CONVERTED_FILENAME),
        timeout=settings.convert_timeout,
    )


def transcribe_spec(settings: PipelineSettings) -> StageSpec:
    # whisper names the transcript after the input; fall back to any .txt it wrote.
    return StageSpec(
        name=TRANSCRIBE,
        executable=settings.whisper_binary,
        args=(
            "{source}",
            "--model", settings.whisper_model,
            "--output_format", "txt",
            "--output_dir", "{workspace}/" + TRANSCRIPT_DIR,
        ),
        locator=FirstOf(
            ExactPath(TRANSCRIPT_DIR + "/{stem}.txt"),
            GlobMatch(TRANSCRIPT_DIR + "/*.txt"),
        ),
        timeout=settings.transcribe_timeout,
        output_dir=TRANSCRIPT_DIR,
        require_content=False,
    )


def default_stage_specs(settings: PipelineSettings) -> Tuple[StageSpec, StageSpec, StageSpec]:
    """The Download, Convert and Transcribe specs, in run order."""
    return download_spec(settings), convert_spec(settings), transcribe_spec(settings)
