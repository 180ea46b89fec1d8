# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Join-and-record orchestration.

MeetRecorder runs one job end to end:

    LAUNCHING -> NAVIGATING -> RECORDING -> STOPPING -> CLOSED

Any failure moves the job to FAILED. Whatever state the job fails from,
cleanup runs in order: stop the recorder if it is recording, then close the
browser. Both are attempted even if the other fails, and cleanup errors are
logged rather than raised. The job outcome is returned as a JobResult.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Optional, Union

from meetcapture.config import Settings
from meetcapture.core.browser import BrowserManager
from meetcapture.core.ffmpeg_recorder import RecorderConfig
from meetcapture.core.job import FailureKind, JobResult, JobState, RecordingJob
from meetcapture.core.media import MediaPermissionInterceptor
from meetcapture.core.navigator import SessionNavigator
from meetcapture.core.page import PageController
from meetcapture.core.recording import RecordingLifecycle
from meetcapture.core.timer import CancellableDelay
from meetcapture.exceptions import ConfigurationError, MeetCaptureError
from meetcapture.utils.logger import logger


class MeetRecorder:
    """
    Joins a meeting as a bot and records it for a fixed duration.

    Each instance owns its own browser session and recorder and runs exactly
    one job, so several instances may run concurrently in one event loop.

    Attributes:
        job: Immutable RecordingJob for this run
        settings: Browser and navigation settings
        state: Current JobState

    Example:
        >>> recorder = MeetRecorder("https://meet.google.com/abc-defg-hij", 30000)
        >>> result = await recorder.start_recording()
        >>> print(result.summary())
    """

    def __init__(
        self,
        meet_url: str,
        recording_duration: int = 30000,
        video_dir: Optional[Union[str, Path]] = None,
        settings: Optional[Settings] = None,
        recorder_config: Optional[RecorderConfig] = None,
        browser_factory: Optional[Callable[..., BrowserManager]] = None,
        lifecycle: Optional[RecordingLifecycle] = None,
    ) -> None:
        """
        Create the job and its output directory.

        Args:
            meet_url: Meeting address to join
            recording_duration: Recording duration in milliseconds
            video_dir: Output directory, defaults to settings.video_dir
            settings: Browser and navigation settings
            recorder_config: Recorder configuration
            browser_factory: Builds the BrowserManager; defaults to BrowserManager
            lifecycle: Recording lifecycle; defaults to one built from recorder_config

        Raises:
            ConfigurationError: If the URL or duration is invalid
        """
        self.settings = settings or Settings()
        directory = Path(video_dir) if video_dir is not None else self.settings.video_dir
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigurationError(f"Cannot create video directory {directory}: {e}") from e

        self.job = RecordingJob.create(meet_url, recording_duration, directory)
        self.lifecycle = lifecycle or RecordingLifecycle(recorder_config)
        self._browser_factory = browser_factory or BrowserManager
        self._browser: Optional[BrowserManager] = None
        self._delay = CancellableDelay(self.job.duration_seconds)
        self.state = JobState.LAUNCHING
        self._started = False

    async def start_recording(self) -> JobResult:
        """
        Run the job: launch, join, record for the duration, clean up.

        Returns:
            JobResult describing the terminal state. Never raises for job
            failures; they are reported on the result.

        Raises:
            MeetCaptureError: If this instance already ran its job
        """
        if self._started:
            raise MeetCaptureError(
                "MeetRecorder runs a single job; create a new instance to record again"
            )
        self._started = True

        result = JobResult(job=self.job, state=self.state)
        try:
            self._transition(JobState.LAUNCHING)
            self._browser = self._browser_factory(
                headless=self.settings.headless,
                interceptor=MediaPermissionInterceptor(),
            )
            await self._browser.start()
            page = self._browser.page

            self._transition(JobState.NAVIGATING)
            controller = PageController(page)
            await controller.goto(
                self.job.target_url,
                wait_until="networkidle",
                timeout=self.settings.navigation_timeout_ms,
            )
            await self._browser.interceptor.upgrade(page)

            navigator = SessionNavigator(
                controller,
                display_name=self.settings.display_name,
                element_timeout_ms=self.settings.element_timeout_ms,
            )
            result.steps = await navigator.join()

            self._transition(JobState.RECORDING)
            await self.lifecycle.start(page, self.job.output_path)
            logger.info(f"Recording for {self.job.duration_seconds:.1f}s")
            completed = await self._delay.wait()
            result.stopped_early = not completed

            self._transition(JobState.STOPPING)
            metadata = await self.lifecycle.stop()
            if metadata is not None:
                result.recording = metadata.to_dict()
        except Exception as e:
            failed_from = self.state
            self._transition(JobState.FAILED)
            result.failure_kind = FailureKind.from_exception(e)
            result.error = str(e)
            logger.error(
                f"Error occurred during meet recording "
                f"(state={failed_from.value}, kind={result.failure_kind.value}): {e}"
            )
        finally:
            await self._cleanup()

        if self.state != JobState.FAILED:
            self._transition(JobState.CLOSED)
        result.state = self.state
        logger.info(result.summary())
        return result

    def request_stop(self) -> None:
        """End the recording wait early; the job then stops and closes normally."""
        logger.info("Early stop requested")
        self._delay.cancel()

    async def _cleanup(self) -> None:
        if self.lifecycle.is_recording:
            try:
                await self.lifecycle.stop()
            except Exception as e:
                logger.error(f"Failed to stop recorder during cleanup: {e}")

        if self._browser is not None:
            try:
                await self._browser.stop()
            except Exception as e:
                logger.error(f"Failed to close browser during cleanup: {e}")

    def _transition(self, state: JobState) -> None:
        logger.debug(f"Job state {self.state.value} -> {state.value}")
        self.state = state
