# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for the meetcapture CLI."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from meetcapture.cli import main as cli_main
from meetcapture.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("MEETCAPTURE_MEET_URL", "MEETCAPTURE_DURATION_MS", "MEETCAPTURE_HEADLESS",
                 "MEETCAPTURE_LOG_LEVEL", "MEETCAPTURE_VIDEO_DIR",
                 "MEETCAPTURE_NAVIGATION_TIMEOUT_MS", "MEETCAPTURE_ELEMENT_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def _result(succeeded=True):
    result = MagicMock()
    result.succeeded = succeeded
    return result


class TestBuildParser:
    """Tests for build_parser()."""

    def test_defaults_come_from_settings(self, tmp_path):
        settings = Settings(video_dir=tmp_path, duration_ms=1234)

        args = cli_main.build_parser(settings).parse_args([])

        assert args.url == settings.meet_url
        assert args.duration == 1234
        assert args.output_dir == tmp_path
        assert args.name == "Meeting Bot"
        assert args.headless is False
        assert args.log_level == "INFO"

    def test_overrides(self):
        args = cli_main.build_parser(Settings()).parse_args([
            "https://meet.google.com/abc-defg-hij",
            "--duration", "60000",
            "--output-dir", "videos",
            "--name", "Notes Bot",
            "--headless",
            "--log-level", "debug",
        ])

        assert args.url == "https://meet.google.com/abc-defg-hij"
        assert args.duration == 60000
        assert args.output_dir == Path("videos")
        assert args.name == "Notes Bot"
        assert args.headless is True
        assert args.log_level == "DEBUG"


class TestMain:
    """Tests for main()."""

    def test_success_exit_code(self, clean_env, tmp_path):
        run_job = AsyncMock(return_value=_result(True))

        with patch.object(cli_main, "run_job", run_job), \
                patch.object(cli_main, "set_log_level"):
            code = cli_main.main([
                "https://meet.google.com/abc-defg-hij",
                "--duration", "5000",
                "--output-dir", str(tmp_path),
                "--headless",
            ])

        assert code == 0
        settings = run_job.await_args.args[0]
        assert settings.meet_url == "https://meet.google.com/abc-defg-hij"
        assert settings.duration_ms == 5000
        assert settings.video_dir == tmp_path
        assert settings.headless is True

    def test_failed_job_exit_code(self, clean_env, tmp_path):
        with patch.object(cli_main, "run_job", AsyncMock(return_value=_result(False))), \
                patch.object(cli_main, "set_log_level"):
            assert cli_main.main(["--output-dir", str(tmp_path)]) == 1

    def test_invalid_configuration(self, clean_env, tmp_path):
        run_job = AsyncMock()

        with patch.object(cli_main, "run_job", run_job), \
                patch.object(cli_main, "set_log_level"):
            code = cli_main.main(["--duration", "0", "--output-dir", str(tmp_path)])

        assert code == 1
        run_job.assert_not_called()

    def test_malformed_env_integer(self, clean_env, tmp_path):
        clean_env.setenv("MEETCAPTURE_DURATION_MS", "30s")
        run_job = AsyncMock()

        with patch.object(cli_main, "run_job", run_job):
            assert cli_main.main(["--output-dir", str(tmp_path)]) == 1

        run_job.assert_not_called()

    def test_invalid_env_log_level(self, clean_env, tmp_path):
        clean_env.setenv("MEETCAPTURE_LOG_LEVEL", "LOUD")
        run_job = AsyncMock()

        with patch.object(cli_main, "run_job", run_job), \
                patch.object(cli_main, "set_log_level") as set_level:
            assert cli_main.main(["--output-dir", str(tmp_path)]) == 1

        set_level.assert_not_called()
        run_job.assert_not_called()

    def test_unexpected_error(self, clean_env, tmp_path):
        run_job = AsyncMock(side_effect=RuntimeError("boom"))

        with patch.object(cli_main, "run_job", run_job), \
                patch.object(cli_main, "set_log_level"):
            assert cli_main.main(["--output-dir", str(tmp_path)]) == 1

    def test_log_level_applied(self, clean_env, tmp_path):
        with patch.object(cli_main, "run_job", AsyncMock(return_value=_result())), \
                patch.object(cli_main, "set_log_level") as set_level:
            cli_main.main(["--log-level", "warning", "--output-dir", str(tmp_path)])

        set_level.assert_called_once_with("WARNING")


class TestRunJob:
    """Tests for run_job()."""

    @pytest.mark.asyncio
    async def test_builds_recorder_from_settings(self, tmp_path):
        settings = Settings(video_dir=tmp_path, duration_ms=1000)
        result = _result()

        with patch.object(cli_main, "MeetRecorder") as recorder_cls:
            recorder_cls.return_value.start_recording = AsyncMock(return_value=result)
            assert await cli_main.run_job(settings) is result

        recorder_cls.assert_called_once_with(
            settings.meet_url, 1000, video_dir=tmp_path, settings=settings
        )
