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
meetcapture command-line entry point.

Runs one join-and-record job. With no arguments it records the default
meeting for the default duration; settings can also come from MEETCAPTURE_*
environment variables.

Usage:
    meetcapture                                   # default meeting, 30s
    meetcapture https://meet.google.com/abc-defg-hij --duration 60000
    python -m meetcapture --output-dir ./videos --headless
"""

from __future__ import annotations

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from meetcapture.config import Settings
from meetcapture.core.job import JobResult
from meetcapture.exceptions import ConfigurationError
from meetcapture.orchestrator import MeetRecorder
from meetcapture.utils.logger import logger, set_log_level


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    """Build the argument parser with defaults taken from settings."""
    parser = argparse.ArgumentParser(
        prog="meetcapture",
        description="Join a Google Meet call as a bot and record the page to MP4.",
    )
    parser.add_argument(
        "url",
        nargs="?",
        default=settings.meet_url,
        help="Meeting URL (default: %(default)s)",
    )
    parser.add_argument(
        "--duration",
        type=int,
        default=settings.duration_ms,
        help="Recording duration in milliseconds (default: %(default)s)",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=settings.video_dir,
        help="Directory for the recording (default: %(default)s)",
    )
    parser.add_argument(
        "--name",
        default=settings.display_name,
        help="Display name typed into the guest name field",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        default=settings.headless,
        help="Run the browser without a visible window",
    )
    parser.add_argument(
        "--log-level",
        default=settings.log_level,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Logging level (default: %(default)s)",
    )
    return parser


async def run_job(settings: Settings) -> JobResult:
    """Run a single recording job described by settings."""
    recorder = MeetRecorder(
        settings.meet_url,
        settings.duration_ms,
        video_dir=settings.video_dir,
        settings=settings,
    )
    return await recorder.start_recording()


def main(argv: Optional[List[str]] = None) -> int:
    """
    Run one job and return a process exit code.

    Job-level errors are logged, never raised.

    Returns:
        0 if the recording was saved, 1 otherwise
    """
    try:
        settings = Settings.from_env()
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    args = build_parser(settings).parse_args(argv)

    settings.meet_url = args.url
    settings.duration_ms = args.duration
    settings.video_dir = Path(args.output_dir)
    settings.display_name = args.name
    settings.headless = args.headless
    settings.log_level = args.log_level.upper()

    errors = settings.validate()
    if errors:
        for error in errors:
            logger.error(f"Invalid configuration: {error}")
        return 1
    set_log_level(settings.log_level)

    try:
        result = asyncio.run(run_job(settings))
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 1
    except Exception as e:
        logger.error(f"Meet recording failed: {e}")
        return 1

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    raise SystemExit(main())
