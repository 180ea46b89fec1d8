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
Recording lifecycle for one browser session.

RecordingLifecycle owns at most one recorder and moves it through
IDLE -> RECORDING -> FINALIZED exactly once. The state flips to FINALIZED
before the recorder is stopped, so stop() reaches the recorder once even
when it fails and is called again from a cleanup path.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Callable, Optional, Union

from playwright.async_api import Page

from meetcapture.core.ffmpeg_recorder import FFmpegRecorder, RecorderConfig, RecordingMetadata
from meetcapture.exceptions import RecorderError
from meetcapture.utils.logger import logger


class RecorderState(str, Enum):
    """State of the recorder bound to a session."""
    IDLE = "idle"
    RECORDING = "recording"
    FINALIZED = "finalized"


class RecordingLifecycle:
    """
    Starts and stops the screen recorder against a page.

    Attributes:
        config: Recorder configuration, fixed at construction
        state: Current RecorderState

    Example:
        >>> lifecycle = RecordingLifecycle(RecorderConfig())
        >>> await lifecycle.start(page, "report/video/meet_recording_1.mp4")
        >>> metadata = await lifecycle.stop()
    """

    def __init__(
        self,
        config: Optional[RecorderConfig] = None,
        recorder_factory: Callable[[RecorderConfig], FFmpegRecorder] = FFmpegRecorder,
    ) -> None:
        self.config = config or RecorderConfig()
        self._recorder_factory = recorder_factory
        self._recorder: Optional[FFmpegRecorder] = None
        self._state = RecorderState.IDLE
        self._metadata: Optional[RecordingMetadata] = None
        self.output_path: Optional[Path] = None

    @property
    def state(self) -> RecorderState:
        return self._state

    @property
    def is_recording(self) -> bool:
        return self._state == RecorderState.RECORDING

    @property
    def metadata(self) -> Optional[RecordingMetadata]:
        return self._metadata

    async def start(self, page: Page, output_path: Union[str, Path]) -> None:
        """
        Bind a recorder to page and start writing output_path.

        Call only once the page reached the state worth recording; this
        method does not check it.

        Raises:
            RecorderError: If a recording was already started on this
                lifecycle, or the recorder failed to start. After a failed
                start the state stays IDLE and there is nothing to stop.
        """
        if self._state != RecorderState.IDLE:
            raise RecorderError(f"Cannot start recording in state {self._state.value}")

        recorder = self._recorder_factory(self.config)
        try:
            await recorder.start(page, str(output_path))
        except RecorderError:
            raise
        except Exception as e:
            logger.error(f"Recorder failed to start: {e}")
            raise RecorderError(f"Failed to start recording: {e}") from e

        self._recorder = recorder
        self.output_path = Path(output_path)
        self._state = RecorderState.RECORDING
        logger.info(f"Recording started - saving to {self.output_path}")

    async def stop(self) -> Optional[RecordingMetadata]:
        """
        Finalize and flush the output file.

        Returns:
            Recording metadata, or None when nothing was recording

        Raises:
            RecorderError: If the recorder failed to finalize. The lifecycle
                is FINALIZED regardless.
        """
        if self._state != RecorderState.RECORDING:
            return None

        self._state = RecorderState.FINALIZED
        recorder, self._recorder = self._recorder, None
        logger.info("Stopping recording...")
        try:
            self._metadata = await recorder.stop()
        except RecorderError:
            raise
        except Exception as e:
            logger.error(f"Recorder failed to stop: {e}")
            raise RecorderError(f"Failed to stop recording: {e}") from e

        logger.info("Recording saved successfully!")
        return self._metadata
