"""
HTTP entrypoint for the Whisper transcript pipeline.

Exposes a single route:

* ``GET /api/whispertranscript/<video_id>`` – runs the download, convert and
  transcribe pipeline for a YouTube video and returns the transcript as
  ``text/plain``.  Failures return ``500`` with a JSON problem body naming
  the stage that failed and the tool's diagnostic output.

Environment variables are documented in :mod:`whisper_pipeline.config`; a
``.env`` file is loaded at import time.  ``PORT`` selects the listen port
when the module is run directly (default ``3000``).
"""

import json
import logging
import os

from dotenv import load_dotenv
from flask import Flask, Response, jsonify

from .config import load_settings
from .orchestrator import TranscriptionPipeline
from .stages import CONVERT, DOWNLOAD, TRANSCRIBE

load_dotenv()
logging.basicConfig(level=logging.INFO, format="%(message)s")
logger = logging.getLogger(__name__)

app = Flask(__name__)
pipeline = TranscriptionPipeline(load_settings())

PROBLEM_TITLES = {
    DOWNLOAD: "Failed to download audio using yt-dlp.",
    CONVERT: "Failed to convert audio to WAV using ffmpeg.",
    TRANSCRIBE: "Failed to transcribe audio using Whisper.",
    None: "Failed to create a temporary workspace.",
}


def problem(title: str, status: int = 500, **extra):
    body = {"title": title, "status": status}
    body.update(extra)
    resp = jsonify(body)
    resp.status_code = status
    resp.mimetype = "application/problem+json"
    return resp


@app.route("/api/whispertranscript/<video_id>", methods=["GET"])
async def whisper_transcript(video_id):
    logger.info(json.dumps({"event": "request", "video_id": video_id}))
    try:
        result = await pipeline.run(video_id)
    except Exception as e:
        logger.exception("Error in /api/whispertranscript")
        return problem(f"Server error: {e}")

    if not result.ok:
        failure = result.failure
        return problem(
            PROBLEM_TITLES.get(result.stage, "Transcription failed."),
            stage=result.stage,
            kind=failure.kind,
            detail=failure.detail or str(failure),
        )
    return Response(result.text, status=200, mimetype="text/plain")


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 3000))
    app.run(host="0.0.0.0", port=port)
