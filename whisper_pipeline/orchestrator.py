"""
Orchestration layer for the transcription pipeline.

:class:`TranscriptionPipeline` turns a YouTube video id into transcript text:

1. Create a private workspace for the run.
2. Download the best audio stream with ``yt-dlp``.
3. Convert it to 16 kHz mono WAV with ``ffmpeg``.
4. Transcribe the WAV with ``whisper`` and read the transcript back.
5. Remove the workspace, whatever happened above.

The first failing stage ends the run.  Its classified failure, tagged with
the stage name, is returned in the :class:`TranscriptResult`; intermediate
files from earlier stages are discarded with the workspace.  Nothing is
retried.  Faults that are not classified failures (bugs, cancellation)
propagate to the caller after the workspace has been removed.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from .config import PipelineSettings, load_settings
from .errors import EmptyResult, PipelineError, WorkspaceError
from .process_runner import run_process
from .stages import TRANSCRIBE, Runner, Stage, StageSpec, default_stage_specs
from .workspace import Workspace

logger = logging.getLogger(__name__)


class PipelineState(str, Enum):
    CREATED = "Created"
    DOWNLOADING = "Downloading"
    CONVERTING = "Converting"
    TRANSCRIBING = "Transcribing"
    COMPLETED = "Completed"
    FAILED = "Failed"


# State entered before each stage, in run order.
STAGE_STATES = (PipelineState.DOWNLOADING, PipelineState.CONVERTING, PipelineState.TRANSCRIBING)


@dataclass(frozen=True)
class TranscriptResult:
    """Outcome of one run: either ``text`` or ``failure`` is set."""

    video_id: str
    text: Optional[str] = None
    failure: Optional[PipelineError] = None
    history: Tuple[PipelineState, ...] = ()

    @property
    def ok(self) -> bool:
        return self.failure is None

    @property
    def stage(self) -> Optional[str]:
        """Name of the stage that failed, if any."""
        return self.failure.stage if self.failure else None

    @property
    def state(self) -> PipelineState:
        return self.history[-1] if self.history else PipelineState.CREATED

    def unwrap(self) -> str:
        """Return the transcript text or raise the classified failure."""
        if self.failure is not None:
            raise self.failure
        return self.text or ""


class TranscriptionPipeline:
    """Sequences the Download, Convert and Transcribe stages for a video.

    One instance can serve any number of runs, concurrently or not: every
    run gets its own workspace and no state is kept between runs.

    Args:
        settings: Tool names, model and timeouts.  Read from the environment
            when omitted.
        runner: Coroutine used to launch tools; see
            :func:`whisper_pipeline.process_runner.run_process`.
        specs: Override the three stage specs, in run order.
    """

    def __init__(
        self,
        settings: Optional[PipelineSettings] = None,
        *,
        runner: Runner = run_process,
        specs: Optional[Sequence[StageSpec]] = None,
    ) -> None:
        self.settings = settings or load_settings()
        specs = tuple(specs) if specs is not None else default_stage_specs(self.settings)
        if len(specs) != len(STAGE_STATES):
            raise ValueError(f"Expected {len(STAGE_STATES)} stage specs, got {len(specs)}")
        self.stages = tuple(Stage(spec, runner) for spec in specs)

    async def run(self, video_id: str) -> TranscriptResult:
        """Produce the transcript for ``video_id``."""
        history: List[PipelineState] = [PipelineState.CREATED]
        started = time.monotonic()
        try:
            workspace = Workspace.create(self.settings.workspace_root)
        except WorkspaceError as exc:
            logger.error(json.dumps({"event": "workspace_error", "video_id": video_id, "error": str(exc)}))
            history.append(PipelineState.FAILED)
            return TranscriptResult(video_id, failure=exc, history=tuple(history))

        with workspace:
            logger.info(json.dumps({"event": "run_start", "video_id": video_id, "workspace": str(workspace.path)}))
            source = video_id
            for state, stage in zip(STAGE_STATES, self.stages):
                history.append(state)
                result = await stage.run(workspace, source)
                if not result.ok:
                    return self._failed(video_id, stage.name, result.failure, history)
                source = str(result.output)

            text = Path(source).read_text(encoding="utf-8", errors="replace").strip()
            if not text:
                failure = EmptyResult(f"Transcript {Path(source).name} is empty")
                return self._failed(video_id, TRANSCRIBE, failure, history)

            history.append(PipelineState.COMPLETED)
            logger.info(
                json.dumps(
                    {
                        "event": "run_complete",
                        "video_id": video_id,
                        "chars": len(text),
                        "seconds": round(time.monotonic() - started, 2),
                    }
                )
            )
            return TranscriptResult(video_id, text=text, history=tuple(history))

    @staticmethod
    def _failed(
        video_id: str, stage: str, failure: PipelineError, history: List[PipelineState]
    ) -> TranscriptResult:
        failure.stage = stage
        history.append(PipelineState.FAILED)
        logger.error(
            json.dumps({"event": "run_failed", "video_id": video_id, "stage": stage, "kind": failure.kind})
        )
        return TranscriptResult(video_id, failure=failure, history=tuple(history))
