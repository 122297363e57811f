"""
Environment-driven settings for the transcription pipeline.

Every knob is read from an environment variable with a sensible default so
the service can be configured per deployment without code changes.  A
``.env`` file in the working directory is honoured when the entrypoint
calls :func:`dotenv.load_dotenv` before :func:`load_settings`.

Timeouts are expressed in seconds; ``0`` disables the bound for that stage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional


DEFAULT_DOWNLOAD_TIMEOUT = 600.0
DEFAULT_CONVERT_TIMEOUT = 300.0
DEFAULT_TRANSCRIBE_TIMEOUT = 1800.0


@dataclass(frozen=True)
class PipelineSettings:
    ytdlp_binary: str = "yt-dlp"
    ffmpeg_binary: str = "ffmpeg"
    whisper_binary: str = "whisper"
    whisper_model: str = "tiny"
    workspace_root: Optional[str] = None  # None = system temp dir
    download_timeout: Optional[float] = DEFAULT_DOWNLOAD_TIMEOUT
    convert_timeout: Optional[float] = DEFAULT_CONVERT_TIMEOUT
    transcribe_timeout: Optional[float] = DEFAULT_TRANSCRIBE_TIMEOUT


def _timeout(env: Mapping[str, str], name: str, default: float) -> Optional[float]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value or None


def load_settings(env: Optional[Mapping[str, str]] = None) -> PipelineSettings:
    """Build :class:`PipelineSettings` from ``env`` (defaults to ``os.environ``).

    Raises:
        ValueError: If a timeout variable is not a non-negative number.
    """
    env = os.environ if env is None else env
    return PipelineSettings(
        ytdlp_binary=env.get("YTDLP_BINARY", "yt-dlp"),
        ffmpeg_binary=env.get("FFMPEG_BINARY", "ffmpeg"),
        whisper_binary=env.get("WHISPER_BINARY", "whisper"),
        whisper_model=env.get("WHISPER_MODEL", "tiny"),
        workspace_root=env.get("WORKSPACE_ROOT") or None,
        download_timeout=_timeout(env, "DOWNLOAD_TIMEOUT", DEFAULT_DOWNLOAD_TIMEOUT),
        convert_timeout=_timeout(env, "CONVERT_TIMEOUT", DEFAULT_CONVERT_TIMEOUT),
        transcribe_timeout=_timeout(env, "TRANSCRIBE_TIMEOUT", DEFAULT_TRANSCRIBE_TIMEOUT),
    )
