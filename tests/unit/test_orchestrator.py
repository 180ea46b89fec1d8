# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Unit tests for MeetRecorder join-and-record orchestration."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from meetcapture.core.job import FailureKind, JobState
from meetcapture.core.media import MediaPermissionInterceptor
from meetcapture.core.navigator import (
    ASK_TO_JOIN_XPATH,
    CONTINUE_WITHOUT_DEVICES_XPATH,
    NAME_INPUT_XPATH,
)
from meetcapture.core.recording import RecorderState, RecordingLifecycle
from meetcapture.core.timer import CancellableDelay
from meetcapture.exceptions import (
    BrowserError,
    ConfigurationError,
    MeetCaptureError,
    RecorderError,
)
from meetcapture.orchestrator import MeetRecorder

MEET_URL = "https://meet.google.com/abc-defg-hij"


def _browser_factory(page, start_error=None, stop_error=None):
    """Factory double returning one BrowserManager-like mock."""
    browser = MagicMock()
    browser.start = AsyncMock(side_effect=start_error)
    browser.stop = AsyncMock(side_effect=stop_error)
    browser.page = page
    browser.interceptor.upgrade = AsyncMock(return_value=True)
    return MagicMock(return_value=browser), browser


@pytest.fixture
def full_delay():
    """Make the recording wait return at once as if the duration elapsed."""
    with patch.object(CancellableDelay, "wait", AsyncMock(return_value=True)) as wait:
        yield wait


@pytest.fixture
def make_recorder(settings, fake_recorder):
    """Build a MeetRecorder wired to doubles."""
    def _make(factory, duration=30000):
        return MeetRecorder(
            MEET_URL,
            duration,
            settings=settings,
            browser_factory=factory,
            lifecycle=RecordingLifecycle(recorder_factory=lambda cfg: fake_recorder),
        )
    return _make


class TestMeetRecorderInit:
    """Tests for MeetRecorder construction."""

    def test_creates_job_and_directory(self, settings, make_recorder):
        factory, _ = _browser_factory(MagicMock())

        recorder = make_recorder(factory)

        assert settings.video_dir.is_dir()
        assert recorder.job.output_path.parent == settings.video_dir
        assert recorder.job.output_path.name.startswith("meet_recording_")
        assert recorder.job.output_path.suffix == ".mp4"
        assert recorder.job.target_url == MEET_URL
        assert recorder._delay.seconds == 30.0
        assert recorder.state == JobState.LAUNCHING

    def test_explicit_video_dir(self, settings, tmp_path):
        target = tmp_path / "elsewhere"

        recorder = MeetRecorder(MEET_URL, 1000, video_dir=target, settings=settings)

        assert target.is_dir()
        assert recorder.job.output_path.parent == target

    @pytest.mark.parametrize("url,duration", [("", 1000), (MEET_URL, 0)])
    def test_invalid_job(self, settings, url, duration):
        with pytest.raises(ConfigurationError):
            MeetRecorder(url, duration, settings=settings)


class TestMeetRecorderScenarios:
    """End-to-end runs against page doubles."""

    @pytest.mark.asyncio
    async def test_all_prompts_present(
        self, page_factory, join_elements, make_recorder, fake_recorder, full_delay
    ):
        page = page_factory(join_elements)
        factory, browser = _browser_factory(page)
        recorder = make_recorder(factory)

        result = await recorder.start_recording()

        assert result.succeeded is True
        assert result.state == JobState.CLOSED
        assert [s.performed for s in result.steps] == [True, True, True]
        join_elements[CONTINUE_WITHOUT_DEVICES_XPATH].click.assert_awaited_once()
        join_elements[NAME_INPUT_XPATH].click.assert_awaited_once_with(click_count=3)
        join_elements[NAME_INPUT_XPATH].type.assert_awaited_once_with("Meeting Bot")
        join_elements[ASK_TO_JOIN_XPATH].click.assert_awaited_once()
        fake_recorder.start.assert_awaited_once_with(page, str(recorder.job.output_path))
        fake_recorder.stop.assert_awaited_once()
        assert result.recording["recording_id"] == "rec-1"
        assert result.stopped_early is False
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_device_prompt_absent(
        self, page_factory, join_elements, make_recorder, fake_recorder, full_delay
    ):
        del join_elements[CONTINUE_WITHOUT_DEVICES_XPATH]
        factory, browser = _browser_factory(page_factory(join_elements))

        result = await make_recorder(factory).start_recording()

        assert result.succeeded is True
        assert [s.performed for s in result.steps] == [False, True, True]
        fake_recorder.start.assert_awaited_once()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_prompts_still_records(
        self, page_factory, make_recorder, fake_recorder, full_delay
    ):
        factory, browser = _browser_factory(page_factory())

        result = await make_recorder(factory).start_recording()

        assert result.succeeded is True
        assert [s.performed for s in result.steps] == [False, False, False]
        fake_recorder.start.assert_awaited_once()
        fake_recorder.stop.assert_awaited_once()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigation_failure(
        self, page_factory, make_recorder, fake_recorder, full_delay
    ):
        page = page_factory()
        page.goto.side_effect = Exception("net::ERR_NAME_NOT_RESOLVED")
        factory, browser = _browser_factory(page)

        result = await make_recorder(factory).start_recording()

        assert result.state == JobState.FAILED
        assert result.failure_kind == FailureKind.NAVIGATION
        assert "net::ERR_NAME_NOT_RESOLVED" in result.error
        assert result.summary().startswith("Recording failed (navigation)")
        fake_recorder.start.assert_not_awaited()
        browser.stop.assert_awaited_once()


class TestMeetRecorderWiring:
    """Tests for how MeetRecorder drives its collaborators."""

    @pytest.mark.asyncio
    async def test_browser_built_with_settings(
        self, page_factory, make_recorder, full_delay
    ):
        factory, browser = _browser_factory(page_factory())

        await make_recorder(factory).start_recording()

        kwargs = factory.call_args.kwargs
        assert kwargs["headless"] is True
        assert isinstance(kwargs["interceptor"], MediaPermissionInterceptor)
        browser.start.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_navigates_and_upgrades_media(
        self, page_factory, make_recorder, full_delay
    ):
        page = page_factory()
        factory, browser = _browser_factory(page)

        await make_recorder(factory).start_recording()

        page.goto.assert_awaited_once_with(
            MEET_URL, wait_until="networkidle", timeout=60000
        )
        browser.interceptor.upgrade.assert_awaited_once_with(page)

    @pytest.mark.asyncio
    async def test_custom_display_name(
        self, page_factory, join_elements, settings, fake_recorder, full_delay
    ):
        settings.display_name = "Notes Bot"
        factory, _ = _browser_factory(page_factory(join_elements))
        recorder = MeetRecorder(
            MEET_URL,
            1000,
            settings=settings,
            browser_factory=factory,
            lifecycle=RecordingLifecycle(recorder_factory=lambda cfg: fake_recorder),
        )

        await recorder.start_recording()

        join_elements[NAME_INPUT_XPATH].type.assert_awaited_once_with("Notes Bot")


class TestMeetRecorderFailures:
    """Failure paths: classification and cleanup."""

    @pytest.mark.asyncio
    async def test_browser_start_failure(
        self, page_factory, make_recorder, fake_recorder, full_delay
    ):
        factory, browser = _browser_factory(
            page_factory(), start_error=BrowserError("Failed to start browser")
        )

        result = await make_recorder(factory).start_recording()

        assert result.state == JobState.FAILED
        assert result.failure_kind == FailureKind.BROWSER
        assert result.steps == []
        fake_recorder.start.assert_not_awaited()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_action_failure_skips_recording(
        self, page_factory, join_elements, make_recorder, fake_recorder, full_delay
    ):
        join_elements[ASK_TO_JOIN_XPATH].click.side_effect = Exception("detached")
        factory, browser = _browser_factory(page_factory(join_elements))

        result = await make_recorder(factory).start_recording()

        assert result.state == JobState.FAILED
        assert result.failure_kind == FailureKind.UNEXPECTED
        assert "Failed to click element" in result.error
        fake_recorder.start.assert_not_awaited()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_recorder_start_failure(
        self, page_factory, make_recorder, fake_recorder, full_delay
    ):
        fake_recorder.start.side_effect = RecorderError("ffmpeg not found in PATH")
        factory, browser = _browser_factory(page_factory())
        recorder = make_recorder(factory)

        result = await recorder.start_recording()

        assert result.failure_kind == FailureKind.RECORDER
        assert recorder.lifecycle.state == RecorderState.IDLE
        fake_recorder.stop.assert_not_awaited()
        full_delay.assert_not_awaited()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_recorder_stop_failure(
        self, page_factory, make_recorder, fake_recorder, full_delay
    ):
        fake_recorder.stop.side_effect = RecorderError("FFmpeg exited with code 1")
        factory, browser = _browser_factory(page_factory())

        result = await make_recorder(factory).start_recording()

        assert result.state == JobState.FAILED
        assert result.failure_kind == FailureKind.RECORDER
        fake_recorder.stop.assert_awaited_once()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failure_while_recording_stops_recorder(
        self, page_factory, make_recorder, fake_recorder
    ):
        factory, browser = _browser_factory(page_factory())
        recorder = make_recorder(factory)

        with patch.object(CancellableDelay, "wait", AsyncMock(side_effect=RuntimeError("boom"))):
            result = await recorder.start_recording()

        assert result.state == JobState.FAILED
        assert result.failure_kind == FailureKind.UNEXPECTED
        fake_recorder.stop.assert_awaited_once()
        assert recorder.lifecycle.state == RecorderState.FINALIZED
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_browser_close_failure_is_only_logged(
        self, page_factory, make_recorder, full_delay
    ):
        factory, browser = _browser_factory(
            page_factory(), stop_error=BrowserError("Failed to stop browser")
        )

        result = await make_recorder(factory).start_recording()

        assert result.succeeded is True
        browser.stop.assert_awaited_once()


class TestMeetRecorderEarlyStop:
    """Tests for request_stop()."""

    @pytest.mark.asyncio
    async def test_request_stop_before_wait(self, page_factory, make_recorder, fake_recorder):
        factory, browser = _browser_factory(page_factory())
        recorder = make_recorder(factory)
        recorder.request_stop()

        result = await recorder.start_recording()

        assert result.succeeded is True
        assert result.stopped_early is True
        fake_recorder.stop.assert_awaited_once()
        browser.stop.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_early_stop_reported(self, page_factory, make_recorder):
        factory, _ = _browser_factory(page_factory())
        recorder = make_recorder(factory)

        with patch.object(CancellableDelay, "wait", AsyncMock(return_value=False)):
            result = await recorder.start_recording()

        assert result.stopped_early is True
        assert result.state == JobState.CLOSED


class TestMeetRecorderSingleJob:
    """An instance runs exactly one job."""

    @pytest.mark.asyncio
    async def test_second_run_is_rejected_before_launch(
        self, page_factory, make_recorder, full_delay
    ):
        factory, browser = _browser_factory(page_factory())
        recorder = make_recorder(factory)
        first = await recorder.start_recording()

        with pytest.raises(MeetCaptureError, match="single job"):
            await recorder.start_recording()

        assert first.succeeded is True
        factory.assert_called_once()
        browser.start.assert_awaited_once()
        assert recorder.state == JobState.CLOSED

    @pytest.mark.asyncio
    async def test_failed_instance_is_not_reused(self, page_factory, make_recorder, full_delay):
        factory, _ = _browser_factory(
            page_factory(), start_error=BrowserError("Failed to start browser")
        )
        recorder = make_recorder(factory)
        await recorder.start_recording()

        with pytest.raises(MeetCaptureError):
            await recorder.start_recording()

        factory.assert_called_once()
