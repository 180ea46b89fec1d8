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
Runtime settings for meetcapture.

Settings holds the job defaults (target URL, duration, output directory)
and the browser/navigation knobs. Values come from keyword arguments or
from MEETCAPTURE_* environment variables via Settings.from_env().
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from meetcapture.exceptions import ConfigurationError

DEFAULT_MEET_URL = "https://meet.google.com/emr-eqin-uak"
DEFAULT_DURATION_MS = 30000
DEFAULT_DISPLAY_NAME = "Meeting Bot"
DEFAULT_NAVIGATION_TIMEOUT_MS = 60000

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def default_video_dir() -> Path:
    """Conventional output directory: ./report/video under the working directory."""
    return Path.cwd() / "report" / "video"


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from None


@dataclass
class Settings:
    """Configuration for a recording job.

    Attributes:
        meet_url: Meeting address to join when none is given explicitly
        duration_ms: Recording duration in milliseconds
        video_dir: Directory receiving meet_recording_<ms>.mp4 files
        display_name: Name typed into the guest name field
        headless: Run the browser without a visible window
        navigation_timeout_ms: Ceiling for the initial page navigation
        element_timeout_ms: How long each optional join step polls for its
            element before it is skipped (0 means a single query)
        log_level: Logging level name
    """

    meet_url: str = DEFAULT_MEET_URL
    duration_ms: int = DEFAULT_DURATION_MS
    video_dir: Path = field(default_factory=default_video_dir)
    display_name: str = DEFAULT_DISPLAY_NAME
    headless: bool = False
    navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS
    element_timeout_ms: int = 5000
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        self.video_dir = Path(self.video_dir)
        self.log_level = self.log_level.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        """Create Settings from environment variables.

        Environment variables:
            MEETCAPTURE_MEET_URL: Meeting URL
            MEETCAPTURE_DURATION_MS: Recording duration (ms)
            MEETCAPTURE_VIDEO_DIR: Output directory
            MEETCAPTURE_DISPLAY_NAME: Guest display name
            MEETCAPTURE_HEADLESS: "true" to run headless
            MEETCAPTURE_NAVIGATION_TIMEOUT_MS: Navigation ceiling (ms)
            MEETCAPTURE_ELEMENT_TIMEOUT_MS: Per-step element poll budget (ms)
            MEETCAPTURE_LOG_LEVEL: Logging level

        Returns:
            Settings with values from environment

        Raises:
            ConfigurationError: If a numeric variable is not an integer
        """
        video_dir = os.environ.get("MEETCAPTURE_VIDEO_DIR")
        return cls(
            meet_url=os.environ.get("MEETCAPTURE_MEET_URL", DEFAULT_MEET_URL),
            duration_ms=_env_int("MEETCAPTURE_DURATION_MS", DEFAULT_DURATION_MS),
            video_dir=Path(video_dir) if video_dir else default_video_dir(),
            display_name=os.environ.get(
                "MEETCAPTURE_DISPLAY_NAME", DEFAULT_DISPLAY_NAME
            ),
            headless=_env_bool("MEETCAPTURE_HEADLESS", False),
            navigation_timeout_ms=_env_int(
                "MEETCAPTURE_NAVIGATION_TIMEOUT_MS", DEFAULT_NAVIGATION_TIMEOUT_MS
            ),
            element_timeout_ms=_env_int("MEETCAPTURE_ELEMENT_TIMEOUT_MS", 5000),
            log_level=os.environ.get("MEETCAPTURE_LOG_LEVEL", "INFO"),
        )

    def validate(self) -> List[str]:
        """Validate configuration and return list of errors."""
        errors = []

        if not self.meet_url:
            errors.append("meet_url is required")

        if self.duration_ms <= 0:
            errors.append("duration_ms must be a positive integer")

        if self.navigation_timeout_ms <= 0:
            errors.append("navigation_timeout_ms must be positive")

        if self.element_timeout_ms < 0:
            errors.append("element_timeout_ms must not be negative")

        if self.log_level not in VALID_LOG_LEVELS:
            errors.append(f"Invalid log level: {self.log_level}")

        return errors
