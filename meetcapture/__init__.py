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
meetcapture - join a video meeting as a bot and record it to a video file.

The package launches Chromium with synthetic camera/microphone access,
walks the Google Meet pre-join screen, and records the page with ffmpeg for
a fixed duration, always finalizing the recording and closing the browser.
"""

__version__ = "0.1.0"
__author__ = "Firefly Software Solutions Inc"
__license__ = "Apache-2.0"

from meetcapture.config import Settings
from meetcapture.core.browser import BrowserManager
from meetcapture.core.ffmpeg_recorder import FFmpegRecorder, RecorderConfig
from meetcapture.core.job import FailureKind, JobResult, JobState, RecordingJob
from meetcapture.core.media import MediaPermissionInterceptor
from meetcapture.core.navigator import SessionNavigator
from meetcapture.core.page import PageController
from meetcapture.core.recording import RecordingLifecycle
from meetcapture.orchestrator import MeetRecorder

__all__ = [
    # Orchestration
    "MeetRecorder",
    "RecordingJob",
    "JobResult",
    "JobState",
    "FailureKind",
    "Settings",
    # Core
    "BrowserManager",
    "MediaPermissionInterceptor",
    "PageController",
    "SessionNavigator",
    # Recording
    "FFmpegRecorder",
    "RecorderConfig",
    "RecordingLifecycle",
]
