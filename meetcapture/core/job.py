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

"""Job data model: the immutable job description and its reported outcome."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from meetcapture.exceptions import (
    BrowserError,
    ConfigurationError,
    ElementNotFoundError,
    NavigationError,
    RecorderError,
)

OUTPUT_FILE_PREFIX = "meet_recording_"
OUTPUT_FILE_SUFFIX = ".mp4"


class JobState(str, Enum):
    """Orchestrator states. FAILED is reachable from the first four."""
    LAUNCHING = "launching"
    NAVIGATING = "navigating"
    RECORDING = "recording"
    STOPPING = "stopping"
    CLOSED = "closed"
    FAILED = "failed"


class FailureKind(str, Enum):
    """Classification of a failed job."""
    ELEMENT_MISSING = "element_missing"
    NAVIGATION = "navigation"
    RECORDER = "recorder"
    BROWSER = "browser"
    UNEXPECTED = "unexpected"

    @classmethod
    def from_exception(cls, error: BaseException) -> "FailureKind":
        if isinstance(error, ElementNotFoundError):
            return cls.ELEMENT_MISSING
        if isinstance(error, NavigationError):
            return cls.NAVIGATION
        if isinstance(error, RecorderError):
            return cls.RECORDER
        if isinstance(error, BrowserError):
            return cls.BROWSER
        return cls.UNEXPECTED


class StepStatus(str, Enum):
    """Outcome of one optional join step."""
    PERFORMED = "performed"
    SKIPPED = "skipped"


@dataclass
class StepResult:
    """Observable record of a join step."""
    name: str
    status: StepStatus

    @property
    def performed(self) -> bool:
        return self.status == StepStatus.PERFORMED


@dataclass(frozen=True)
class RecordingJob:
    """One join-and-record execution.

    The output path is derived from the creation timestamp in milliseconds.
    Two jobs created in the same millisecond with the same directory get the
    same path; callers running jobs in parallel should give each its own
    directory or stagger creation.

    Attributes:
        target_url: Meeting address
        duration_ms: Recording duration in milliseconds
        output_path: Video file to write
        created_at_ms: Creation timestamp used in the file name
    """

    target_url: str
    duration_ms: int
    output_path: Path
    created_at_ms: int

    def __post_init__(self) -> None:
        if not self.target_url:
            raise ConfigurationError("target_url is required")
        if not isinstance(self.duration_ms, int) or self.duration_ms <= 0:
            raise ConfigurationError(
                f"duration_ms must be a positive integer, got {self.duration_ms!r}"
            )

    @classmethod
    def create(
        cls,
        target_url: str,
        duration_ms: int,
        video_dir: Union[str, Path],
        now_ms: Optional[int] = None,
    ) -> "RecordingJob":
        """Build a job whose output file lives in video_dir.

        Args:
            target_url: Meeting address
            duration_ms: Recording duration in milliseconds
            video_dir: Output directory (not created here)
            now_ms: Creation timestamp override, defaults to the current time

        Returns:
            New RecordingJob
        """
        created_at_ms = now_ms if now_ms is not None else int(time.time() * 1000)
        output_path = Path(video_dir) / output_file_name(created_at_ms)
        return cls(
            target_url=target_url,
            duration_ms=duration_ms,
            output_path=output_path,
            created_at_ms=created_at_ms,
        )

    @property
    def duration_seconds(self) -> float:
        return self.duration_ms / 1000.0


def output_file_name(created_at_ms: int) -> str:
    """File name for a recording created at the given millisecond timestamp."""
    return f"{OUTPUT_FILE_PREFIX}{created_at_ms}{OUTPUT_FILE_SUFFIX}"


@dataclass
class JobResult:
    """Terminal outcome of a job as reported to its caller."""

    job: RecordingJob
    state: JobState
    failure_kind: Optional[FailureKind] = None
    error: Optional[str] = None
    steps: List[StepResult] = field(default_factory=list)
    recording: Optional[Dict[str, Any]] = None
    stopped_early: bool = False

    @property
    def succeeded(self) -> bool:
        return self.state == JobState.CLOSED and self.failure_kind is None

    def summary(self) -> str:
        """Human-readable one-line status."""
        if self.succeeded:
            return f"Recording saved to {self.job.output_path}"
        kind = self.failure_kind.value if self.failure_kind else self.state.value
        return f"Recording failed ({kind}): {self.error}"
