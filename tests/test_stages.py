import asyncio
from pathlib import Path

from whisper_pipeline.config import PipelineSettings
from whisper_pipeline.errors import ExecutionFailure, OutputNotFound, StageTimeout
from whisper_pipeline.process_runner import ProcessOutput
from whisper_pipeline.stages import Stage, convert_spec, default_stage_specs, download_spec, transcribe_spec
from whisper_pipeline.workspace import Workspace


class FakeRunner:
    def __init__(self, error=None, write=None):
        self.error = error
        self.write = write
        self.calls = []

    async def __call__(self, executable, args, *, cwd=None, timeout=None):
        self.calls.append({"executable": executable, "args": args, "cwd": cwd, "timeout": timeout})
        if self.error:
            raise self.error
        if self.write:
            self.write(cwd)
        return ProcessOutput(0, "", "")


def test_default_specs_use_settings():
    settings = PipelineSettings(ytdlp_binary="ytdl", whisper_model="small", download_timeout=None)
    download, convert, transcribe = default_stage_specs(settings)
    assert (download.name, convert.name, transcribe.name) == ("Download", "Convert", "Transcribe")
    assert download.executable == "ytdl"
    assert download.timeout is None
    assert "small" in transcribe.args
    assert transcribe.output_dir == "whisper_output"


def test_render_args(tmp_path):
    with Workspace.create(str(tmp_path)) as ws:
        args = convert_spec(PipelineSettings()).render_args(ws, "/in/audio.opus")
        assert args == ["-i", "/in/audio.opus", "-ac", "1", "-ar", "16000", f"{ws.path}/audio.16k.wav", "-y"]


def test_stage_passes_timeout_and_cwd(tmp_path):
    runner = FakeRunner(write=lambda cwd: (Path(cwd) / "audio.opus").write_bytes(b"x"))
    spec = download_spec(PipelineSettings(download_timeout=42.0))
    with Workspace.create(str(tmp_path)) as ws:
        result = asyncio.run(Stage(spec, runner).run(ws, "abc123"))
        assert result.ok
        assert result.output == ws.path / "audio.opus"
        assert runner.calls[0]["cwd"] == str(ws.path)
        assert runner.calls[0]["timeout"] == 42.0


def test_stage_reports_execution_failure(tmp_path):
    error = ExecutionFailure("ffmpeg exited with status 1", exit_code=1, detail="Invalid data found")
    with Workspace.create(str(tmp_path)) as ws:
        result = asyncio.run(Stage(convert_spec(PipelineSettings()), FakeRunner(error=error)).run(ws, "in.webm"))
    assert not result.ok
    assert result.failure is error
    assert result.diagnostics == "Invalid data found"
    assert result.output is None


def test_stage_reports_timeout(tmp_path):
    error = StageTimeout("whisper did not finish", timeout=1.0)
    with Workspace.create(str(tmp_path)) as ws:
        result = asyncio.run(Stage(transcribe_spec(PipelineSettings()), FakeRunner(error=error)).run(ws, "a.wav"))
    assert isinstance(result.failure, StageTimeout)


def test_empty_download_is_output_not_found(tmp_path):
    runner = FakeRunner(write=lambda cwd: (Path(cwd) / "audio.webm").write_bytes(b""))
    with Workspace.create(str(tmp_path)) as ws:
        result = asyncio.run(Stage(download_spec(PipelineSettings()), runner).run(ws, "abc123"))
    assert isinstance(result.failure, OutputNotFound)


def test_transcribe_creates_output_dir(tmp_path):
    with Workspace.create(str(tmp_path)) as ws:
        asyncio.run(Stage(transcribe_spec(PipelineSettings()), FakeRunner()).run(ws, str(ws.path / "audio.wav")))
        assert (ws.path / "whisper_output").is_dir()
