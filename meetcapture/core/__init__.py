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

"""Core browser, page, navigation and recording components."""

from meetcapture.core.browser import BrowserManager
from meetcapture.core.ffmpeg_recorder import FFmpegRecorder, RecorderConfig, RecordingMetadata
from meetcapture.core.job import (
    FailureKind,
    JobResult,
    JobState,
    RecordingJob,
    StepResult,
    StepStatus,
)
from meetcapture.core.media import MediaPermissionInterceptor
from meetcapture.core.navigator import JoinStep, SessionNavigator
from meetcapture.core.page import PageController
from meetcapture.core.recording import RecorderState, RecordingLifecycle
from meetcapture.core.timer import CancellableDelay

__all__ = [
    "BrowserManager",
    "CancellableDelay",
    "FailureKind",
    "FFmpegRecorder",
    "JobResult",
    "JobState",
    "JoinStep",
    "MediaPermissionInterceptor",
    "PageController",
    "RecorderConfig",
    "RecorderState",
    "RecordingJob",
    "RecordingLifecycle",
    "RecordingMetadata",
    "SessionNavigator",
    "StepResult",
    "StepStatus",
]
