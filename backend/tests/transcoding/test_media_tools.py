"""Tests for the ffprobe and ffmpeg wrappers.

Subprocesses are patched out; these tests check the commands we build and
how exit codes and output are interpreted.
"""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from app.modules.transcoding.ffmpeg import (
    FastStartTranscoder,
    RemuxFailedError,
    build_faststart_command,
    processed_output_path,
)
from app.modules.transcoding.models import VideoDimensions
from app.modules.transcoding.probe import (
    FFprobeIntrospector,
    MediaToolError,
    ProbeFailedError,
    build_probe_command,
    parse_probe_output,
)
from app.modules.transcoding.toolkit import FFmpegMediaToolkit


def completed(returncode: int = 0, stdout: str = "", stderr: str = "") -> MagicMock:
    result = MagicMock()
    result.returncode = returncode
    result.stdout = stdout
    result.stderr = stderr
    return result


class TestParseProbeOutput:
    """ffprobe JSON is turned into dimensions or rejected."""

    def test_reads_first_stream(self) -> None:
        output = json.dumps({"streams": [{"width": 1080, "height": 1920}, {"width": 1, "height": 1}]})
        assert parse_probe_output(output) == VideoDimensions(width=1080, height=1920)

    @pytest.mark.parametrize(
        "output",
        [
            "",
            "not json",
            "[]",
            json.dumps({}),
            json.dumps({"streams": []}),
            json.dumps({"streams": [{}]}),
            json.dumps({"streams": [{"width": "1920", "height": 1080}]}),
            json.dumps({"streams": [{"width": 1920}]}),
            json.dumps({"streams": [{"width": True, "height": 1080}]}),
            json.dumps({"streams": [{"width": 0, "height": 1080}]}),
            json.dumps({"streams": ["1920x1080"]}),
        ],
    )
    def test_rejects_unusable_output(self, output: str) -> None:
        with pytest.raises(ProbeFailedError):
            parse_probe_output(output)


class TestFFprobeIntrospector:
    """Running ffprobe against a staged file."""

    def test_builds_expected_command(self) -> None:
        assert build_probe_command("ffprobe", "/tmp/a.mp4") == [
            "ffprobe", "-v", "error", "-select_streams", "v:0",
            "-show_entries", "stream=width,height", "-of", "json", "/tmp/a.mp4",
        ]

    def test_probe_success(self) -> None:
        introspector = FFprobeIntrospector("/usr/bin/ffprobe", timeout=30)
        stdout = json.dumps({"streams": [{"width": 1920, "height": 1080}]})

        with patch("app.modules.transcoding.probe.subprocess.run", return_value=completed(stdout=stdout)) as run:
            dimensions = introspector.probe("/tmp/a.mp4")

        assert dimensions == VideoDimensions(width=1920, height=1080)
        args, kwargs = run.call_args
        assert args[0][0] == "/usr/bin/ffprobe"
        assert args[0][-1] == "/tmp/a.mp4"
        assert kwargs["timeout"] == 30
        assert kwargs["capture_output"] is True

    def test_non_zero_exit_fails(self) -> None:
        result = completed(returncode=1, stderr="moov atom not found")
        with patch("app.modules.transcoding.probe.subprocess.run", return_value=result):
            with pytest.raises(ProbeFailedError, match="moov atom not found"):
                FFprobeIntrospector().probe("/tmp/a.mp4")

    def test_non_zero_exit_fails_even_with_output(self) -> None:
        stdout = json.dumps({"streams": [{"width": 1920, "height": 1080}]})
        with patch("app.modules.transcoding.probe.subprocess.run", return_value=completed(1, stdout)):
            with pytest.raises(ProbeFailedError):
                FFprobeIntrospector().probe("/tmp/a.mp4")

    def test_timeout_fails(self) -> None:
        error = subprocess.TimeoutExpired(cmd="ffprobe", timeout=5)
        with patch("app.modules.transcoding.probe.subprocess.run", side_effect=error):
            with pytest.raises(ProbeFailedError, match="timed out"):
                FFprobeIntrospector(timeout=5).probe("/tmp/a.mp4")

    def test_missing_binary_fails(self) -> None:
        with patch("app.modules.transcoding.probe.subprocess.run", side_effect=FileNotFoundError("ffprobe")):
            with pytest.raises(ProbeFailedError):
                FFprobeIntrospector().probe("/tmp/a.mp4")


class TestFastStartTranscoder:
    """Running ffmpeg for a stream-copy fast-start remux."""

    @pytest.mark.parametrize(
        "input_path,expected",
        [
            ("/tmp/staging/abc.mp4", "/tmp/staging/abc.processed.mp4"),
            ("/tmp/staging/a-b_c.mov", "/tmp/staging/a-b_c.processed.mov"),
            ("relative.mp4", "relative.processed.mp4"),
        ],
    )
    def test_output_path_never_collides(self, input_path: str, expected: str) -> None:
        output = processed_output_path(input_path)
        assert output == expected
        assert output != input_path

    def test_builds_stream_copy_command(self) -> None:
        cmd = build_faststart_command("ffmpeg", "/tmp/in.mp4", "/tmp/in.processed.mp4")

        assert cmd == [
            "ffmpeg", "-i", "/tmp/in.mp4", "-movflags", "faststart",
            "-map_metadata", "0", "-codec", "copy", "-f", "mp4", "/tmp/in.processed.mp4",
        ]

    def test_remux_success_returns_output_path(self) -> None:
        transcoder = FastStartTranscoder("ffmpeg", timeout=60)

        with patch("app.modules.transcoding.ffmpeg.subprocess.run", return_value=completed()) as run:
            output = transcoder.remux("/tmp/staging/abc.mp4")

        assert output == "/tmp/staging/abc.processed.mp4"
        args, kwargs = run.call_args
        assert args[0][-1] == output
        assert kwargs["timeout"] == 60

    def test_remux_non_zero_exit_fails(self) -> None:
        stderr = "\n".join(f"line {i}" for i in range(20)) + "\nInvalid data found when processing input"
        with patch("app.modules.transcoding.ffmpeg.subprocess.run", return_value=completed(1, stderr=stderr)):
            with pytest.raises(RemuxFailedError, match="Invalid data found") as exc_info:
                FastStartTranscoder().remux("/tmp/staging/abc.mp4")

        assert "line 0" not in str(exc_info.value)
        assert isinstance(exc_info.value, MediaToolError)

    def test_remux_timeout_fails(self) -> None:
        error = subprocess.TimeoutExpired(cmd="ffmpeg", timeout=1)
        with patch("app.modules.transcoding.ffmpeg.subprocess.run", side_effect=error):
            with pytest.raises(RemuxFailedError):
                FastStartTranscoder(timeout=1).remux("/tmp/staging/abc.mp4")


class TestFFmpegMediaToolkit:
    def test_delegates_to_components(self) -> None:
        introspector = MagicMock()
        introspector.probe.return_value = VideoDimensions(640, 480)
        transcoder = MagicMock()
        transcoder.remux.return_value = "/tmp/x.processed.mp4"
        toolkit = FFmpegMediaToolkit(introspector=introspector, transcoder=transcoder)

        assert toolkit.probe("/tmp/x.mp4") == VideoDimensions(640, 480)
        assert toolkit.remux("/tmp/x.mp4") == "/tmp/x.processed.mp4"
        introspector.probe.assert_called_once_with("/tmp/x.mp4")
        transcoder.remux.assert_called_once_with("/tmp/x.mp4")
