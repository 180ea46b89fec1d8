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

"""FFmpeg-based screen recorder for the meeting page.

Frames come from Chrome DevTools Protocol Page.startScreencast, are
letterboxed to the configured frame size with Pillow and written as raw
RGB24 to an ffmpeg process at a constant frame rate:

- CDP screencast delivers JPEG frames on the event loop
- A writer thread feeds ffmpeg, duplicating the latest frame when the page
  renders slower than the configured rate
- ffmpeg encodes to an MP4 file with the configured codec, CRF, preset,
  bitrate and display aspect ratio
"""

from __future__ import annotations

import asyncio
import base64
import io
import os
import re
import shutil
import subprocess
import threading
import time
import uuid
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from PIL import Image, ImageOps
from playwright.async_api import Page

from meetcapture.exceptions import ConfigurationError, RecorderError
from meetcapture.utils.logger import logger

_ASPECT_RATIO_RE = re.compile(r"^\d+:\d+$")


@dataclass
class RecorderConfig:
    """Configuration for the screen recorder. Fixed once the recorder is built.

    Attributes:
        fps: Output frames per second
        width: Frame width in pixels
        height: Frame height in pixels
        crf: Constant Rate Factor (0-51, lower is better quality)
        codec: ffmpeg video encoder name
        preset: Encoding preset (ultrafast ... veryslow)
        bitrate_kbps: Target video bitrate in kbit/s
        autopad_color: Letterbox color used when a frame does not match the
            configured size
        aspect_ratio: Display aspect ratio written to the container
        follow_new_tab: Move the capture to pages opened later in the context
        ffmpeg_path: Path to ffmpeg binary (looked up on PATH if None)
        pixel_format: Pixel format for encoding
        jpeg_quality: Quality of screencast JPEG frames sent by Chrome
    """

    fps: int = 25
    width: int = 1920
    height: int = 1080
    crf: int = 18
    codec: str = "libx264"
    preset: str = "ultrafast"
    bitrate_kbps: int = 1000
    autopad_color: str = "black"
    aspect_ratio: str = "16:9"
    follow_new_tab: bool = True
    ffmpeg_path: Optional[str] = None
    pixel_format: str = "yuv420p"
    jpeg_quality: int = 90

    def __post_init__(self) -> None:
        if self.fps <= 0:
            raise ConfigurationError(f"fps must be positive, got {self.fps}")
        if self.width <= 0 or self.height <= 0:
            raise ConfigurationError(
                f"Invalid frame size {self.width}x{self.height}"
            )
        if not 0 <= self.crf <= 51:
            raise ConfigurationError(f"crf must be between 0 and 51, got {self.crf}")
        if self.bitrate_kbps <= 0:
            raise ConfigurationError("bitrate_kbps must be positive")
        if not _ASPECT_RATIO_RE.match(self.aspect_ratio):
            raise ConfigurationError(
                f"aspect_ratio must look like '16:9', got {self.aspect_ratio!r}"
            )

    @property
    def frame_size(self) -> tuple:
        return (self.width, self.height)

    def resolve_ffmpeg(self) -> str:
        """Return the ffmpeg binary to run.

        Raises:
            RecorderError: If ffmpeg is not configured and not on PATH
        """
        if self.ffmpeg_path:
            return self.ffmpeg_path
        ffmpeg_path = shutil.which("ffmpeg")
        if not ffmpeg_path:
            raise RecorderError(
                "ffmpeg not found in PATH. Please install ffmpeg or provide ffmpeg_path."
            )
        return ffmpeg_path


@dataclass
class RecordingMetadata:
    """Metadata for a recording session."""

    recording_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    started_at: float = field(default_factory=time.time)
    ended_at: Optional[float] = None
    file_path: Optional[str] = None
    codec: str = ""
    width: int = 0
    height: int = 0
    frame_rate: int = 0
    total_frames: int = 0
    frames_written: int = 0
    file_size_bytes: int = 0
    duration_seconds: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def frame_to_rgb(jpeg_data: bytes, config: RecorderConfig) -> bytes:
    """Decode a JPEG frame and letterbox it to the configured frame size."""
    img = Image.open(io.BytesIO(jpeg_data))
    if img.mode != "RGB":
        img = img.convert("RGB")
    if img.size != config.frame_size:
        img = ImageOps.pad(
            img,
            config.frame_size,
            method=Image.Resampling.BILINEAR,
            color=config.autopad_color,
        )
    return img.tobytes()


class ChromiumCDPCapture:
    """Frame capture using Chrome DevTools Protocol screencast.

    Chrome stops the screencast when the page navigates, so it is restarted
    on every load event. With follow_new_tab the capture moves to pages
    opened later in the same context.
    """

    def __init__(self, recorder: "FFmpegRecorder") -> None:
        self.recorder = recorder
        self._cdp_session = None
        self._page: Optional[Page] = None
        self._running = False
        self._pending: set = set()

    async def start(self, page: Page) -> None:
        """Attach to page and start the screencast."""
        self._running = True
        config = self.recorder.config
        logger.info(
            f"[CAPTURE] Starting CDP screencast "
            f"({config.width}x{config.height} @ {config.fps} fps)"
        )
        await self._attach(page)
        if config.follow_new_tab:
            page.context.on("page", self._on_new_page)

    async def _attach(self, page: Page) -> None:
        self._page = page
        self._cdp_session = await page.context.new_cdp_session(page)
        self._cdp_session.on("Page.screencastFrame", self._on_frame)
        page.on("load", self._on_page_load)
        await self._start_screencast()

    async def _start_screencast(self) -> None:
        config = self.recorder.config
        await self._cdp_session.send("Page.startScreencast", {
            "format": "jpeg",
            "quality": config.jpeg_quality,
            "maxWidth": config.width,
            "maxHeight": config.height,
            "everyNthFrame": 1,
        })

    async def _detach(self) -> None:
        page = self._page
        if page is not None:
            try:
                page.remove_listener("load", self._on_page_load)
            except Exception as e:
                logger.debug(f"[CAPTURE] Error removing load listener: {e}")
        if self._cdp_session is not None:
            try:
                await self._cdp_session.send("Page.stopScreencast")
                await self._cdp_session.detach()
            except Exception as e:
                logger.debug(f"[CAPTURE] Error detaching CDP session: {e}")
            self._cdp_session = None

    def _schedule(self, coro) -> None:
        task = asyncio.get_running_loop().create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc:
            logger.warning(f"[CAPTURE] Background task error: {exc}")

    def _on_page_load(self, *args) -> None:
        if not self._running or self._cdp_session is None:
            return
        logger.info("[CAPTURE] Page navigation detected, restarting screencast")
        self._schedule(self._restart_screencast())

    async def _restart_screencast(self) -> None:
        if self._cdp_session is None:
            return
        try:
            await self._cdp_session.send("Page.stopScreencast")
        except Exception as e:
            logger.debug(f"[CAPTURE] stopScreencast before restart failed: {e}")
        await self._start_screencast()

    def _on_new_page(self, page: Page) -> None:
        if not self._running:
            return
        logger.info("[CAPTURE] New tab opened, moving capture to it")
        self._schedule(self._switch_to(page))

    async def _switch_to(self, page: Page) -> None:
        await self._detach()
        if self._running:
            await self._attach(page)

    def _on_frame(self, params: dict) -> None:
        """Process an incoming screencast frame."""
        if not self._running:
            return

        session_id = params.get("sessionId")
        if self._cdp_session is not None and session_id is not None:
            self._schedule(self._ack(self._cdp_session, session_id))

        try:
            raw_frame = frame_to_rgb(base64.b64decode(params["data"]), self.recorder.config)
        except Exception as e:
            logger.warning(f"[CAPTURE] Frame processing error: {e}")
            return
        self.recorder._push_frame(raw_frame)

    async def _ack(self, cdp_session, session_id: int) -> None:
        try:
            await cdp_session.send("Page.screencastFrameAck", {"sessionId": session_id})
        except Exception as e:
            logger.debug(f"[CAPTURE] Frame ack failed for session {session_id}: {e}")

    async def stop(self) -> None:
        """Stop the screencast and drop listeners."""
        self._running = False
        page = self._page
        if page is not None and self.recorder.config.follow_new_tab:
            try:
                page.context.remove_listener("page", self._on_new_page)
            except Exception as e:
                logger.debug(f"[CAPTURE] Error removing new-tab listener: {e}")
        await self._detach()
        for task in list(self._pending):
            task.cancel()
        self._pending.clear()


class FFmpegRecorder:
    """Records a Playwright page to an MP4 file through ffmpeg.

    Example:
        >>> recorder = FFmpegRecorder(RecorderConfig())
        >>> await recorder.start(page, "report/video/meet_recording_1.mp4")
        >>> # ... meeting runs ...
        >>> metadata = await recorder.stop()
    """

    def __init__(self, config: RecorderConfig) -> None:
        self.config = config
        self._process: Optional[subprocess.Popen] = None
        self._recording = False
        self._stopping = False
        self._capture: Optional[ChromiumCDPCapture] = None
        self._writer_thread: Optional[threading.Thread] = None
        self._output_path: Optional[str] = None
        self._metadata = RecordingMetadata(
            codec=config.codec,
            width=config.width,
            height=config.height,
            frame_rate=config.fps,
        )

        self._latest_frame: Optional[bytes] = None
        self._frame_lock = threading.Lock()

    async def start(self, page: Page, output_path: str) -> str:
        """Start recording page into output_path.

        Args:
            page: Playwright page to record
            output_path: MP4 file to write

        Returns:
            Recording ID

        Raises:
            RecorderError: If ffmpeg or the screencast cannot be started
        """
        if self._recording:
            raise RecorderError("Recording already in progress")

        self._output_path = str(output_path)
        self._recording = True
        self._stopping = False
        self._metadata.started_at = time.time()

        try:
            self._start_ffmpeg_process()
            self._capture = ChromiumCDPCapture(self)
            await self._capture.start(page)
        except Exception as e:
            self._recording = False
            self._stopping = True
            await self._abort()
            if isinstance(e, RecorderError):
                raise
            raise RecorderError(f"Failed to start recording: {e}") from e

        logger.info(
            f"[RECORDER] Recording started: {self._metadata.recording_id} "
            f"({self.config.width}x{self.config.height}@{self.config.fps}fps -> {self._output_path})"
        )
        return self._metadata.recording_id

    async def _abort(self) -> None:
        if self._capture is not None:
            try:
                await self._capture.stop()
            except Exception as e:
                logger.debug(f"[RECORDER] Error stopping capture after failed start: {e}")
            self._capture = None
        loop = asyncio.get_running_loop()
        if self._writer_thread is not None and self._writer_thread.is_alive():
            await loop.run_in_executor(None, self._writer_thread.join, 1.0)
        if self._process is not None:
            if self._process.stdin:
                try:
                    self._process.stdin.close()
                except OSError as e:
                    logger.debug(f"[RECORDER] Error closing ffmpeg stdin: {e}")
            self._process.kill()
            await loop.run_in_executor(None, self._process.wait)

    def _start_ffmpeg_process(self) -> None:
        cmd = self._build_ffmpeg_command()
        logger.info(f"[RECORDER] FFmpeg command: {' '.join(cmd)}")

        try:
            self._process = subprocess.Popen(
                cmd,
                stdin=subprocess.PIPE,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                bufsize=0,
            )
        except FileNotFoundError:
            raise RecorderError("FFmpeg not found. Please install FFmpeg.")
        except OSError as e:
            raise RecorderError(f"Failed to start FFmpeg: {e}")

        self._writer_thread = threading.Thread(
            target=self._writer_thread_func,
            name="ffmpeg-writer",
            daemon=True,
        )
        self._writer_thread.start()

    def _build_ffmpeg_command(self) -> List[str]:
        """Build the ffmpeg command for raw RGB24 input on stdin."""
        config = self.config
        cmd = [config.resolve_ffmpeg(), "-y"]

        cmd.extend([
            "-f", "rawvideo",
            "-pix_fmt", "rgb24",
            "-s", f"{config.width}x{config.height}",
            "-r", str(config.fps),
            "-i", "pipe:0",
        ])

        cmd.extend([
            "-c:v", config.codec,
            "-preset", config.preset,
            "-crf", str(config.crf),
            "-b:v", f"{config.bitrate_kbps}k",
            "-pix_fmt", config.pixel_format,
            "-r", str(config.fps),
            "-aspect", config.aspect_ratio,
            "-movflags", "+faststart",
        ])

        cmd.append(self._output_path or "output.mp4")
        return cmd

    def _push_frame(self, raw_frame: bytes) -> None:
        with self._frame_lock:
            self._latest_frame = raw_frame
        self._metadata.total_frames += 1

    def _writer_thread_func(self) -> None:
        """Write frames to ffmpeg at constant frame rate.

        The latest frame is repeated when no new one arrived, so the output
        has exactly fps frames per second of wall-clock time.
        """
        frame_interval = 1.0 / self.config.fps
        next_write_time = time.monotonic()

        while self._recording and not self._stopping:
            with self._frame_lock:
                frame_data = self._latest_frame

            if frame_data is None:
                time.sleep(0.01)
                next_write_time = time.monotonic()
                continue

            sleep_time = next_write_time - time.monotonic()
            if sleep_time > 0:
                time.sleep(sleep_time)

            process = self._process
            if process is None or process.stdin is None:
                break
            try:
                process.stdin.write(frame_data)
                self._metadata.frames_written += 1
            except (BrokenPipeError, OSError) as e:
                logger.error(f"[WRITER] FFmpeg pipe error: {e}")
                break

            next_write_time += frame_interval
            # Fell behind: reset instead of bursting to catch up
            if time.monotonic() > next_write_time + frame_interval * 2:
                next_write_time = time.monotonic()

        logger.debug(f"[WRITER] Thread finished: {self._metadata.frames_written} frames written")

    async def stop(self) -> RecordingMetadata:
        """Stop recording, flush ffmpeg and return metadata.

        Raises:
            RecorderError: If ffmpeg fails to finalize the file
        """
        if not self._recording:
            return self._metadata

        self._stopping = True
        self._recording = False
        logger.info("[RECORDER] Stopping recording...")

        if self._capture is not None:
            try:
                await self._capture.stop()
            except Exception as e:
                logger.debug(f"[RECORDER] Error stopping capture: {e}")
            self._capture = None

        if self._writer_thread is not None and self._writer_thread.is_alive():
            await asyncio.get_running_loop().run_in_executor(
                None, self._writer_thread.join, 5.0
            )

        returncode = await asyncio.get_running_loop().run_in_executor(
            None, self._close_ffmpeg
        )

        self._metadata.ended_at = time.time()
        self._metadata.duration_seconds = self._metadata.ended_at - self._metadata.started_at
        if self._output_path and os.path.exists(self._output_path):
            self._metadata.file_path = self._output_path
            self._metadata.file_size_bytes = os.path.getsize(self._output_path)

        logger.info(
            f"[RECORDER] Recording stopped: {self._metadata.recording_id} "
            f"({self._metadata.total_frames} frames captured, "
            f"{self._metadata.frames_written} written, "
            f"{self._metadata.duration_seconds:.1f}s)"
        )

        if returncode not in (0, None):
            raise RecorderError(f"FFmpeg exited with code {returncode}")
        return self._metadata

    def _close_ffmpeg(self) -> Optional[int]:
        """Close stdin so ffmpeg writes the trailer, then wait for exit."""
        if self._process is None:
            return None
        try:
            if self._process.stdin:
                self._process.stdin.close()
            return self._process.wait(timeout=10)
        except subprocess.TimeoutExpired:
            logger.warning("[RECORDER] FFmpeg did not exit gracefully, killing...")
            self._process.kill()
            return self._process.wait()

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def metadata(self) -> RecordingMetadata:
        return self._metadata
