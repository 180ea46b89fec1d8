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
Synthetic camera/microphone access for the meeting page.

The interceptor works in two layers:

1. install(context): before any navigation the browser context is granted
   camera and microphone permissions and gets an init script that replaces
   navigator.mediaDevices with a stub. getUserMedia resolves immediately to
   a fake stream whose tracks have a no-op stop().
2. upgrade(page): after navigation the (possibly re-installed by the
   application) getUserMedia is wrapped so every call asks for both audio
   and video.

Layer 2 wraps whatever getUserMedia is present at that moment, so when the
layer 1 stub survived navigation the wrapper forwards into the stub.
Deeper device enumeration done by the application is not shimmed.
"""

from __future__ import annotations

from typing import List, Optional

from playwright.async_api import BrowserContext, Page

from meetcapture.exceptions import BrowserError, PageError
from meetcapture.utils.logger import logger

MEDIA_PERMISSIONS: List[str] = ["camera", "microphone"]

MEDIA_DEVICES_STUB_SCRIPT = """
(() => {
    const fakeTrack = () => ({ stop: () => {} });
    const fakeStream = () => {
        const video = [fakeTrack()];
        const audio = [fakeTrack()];
        return {
            getVideoTracks: () => video,
            getAudioTracks: () => audio,
            getTracks: () => video.concat(audio),
        };
    };
    Object.defineProperty(navigator, 'mediaDevices', {
        configurable: true,
        value: {
            getUserMedia: () => Promise.resolve(fakeStream()),
        },
    });
})();
"""

FORCE_AUDIO_VIDEO_SCRIPT = """
() => {
    const devices = navigator.mediaDevices;
    if (!devices || typeof devices.getUserMedia !== 'function') {
        return false;
    }
    if (devices.getUserMedia.__meetcaptureUpgraded) {
        return true;
    }
    const original = devices.getUserMedia.bind(devices);
    const upgraded = async (constraints) => original({ audio: true, video: true });
    upgraded.__meetcaptureUpgraded = true;
    devices.getUserMedia = upgraded;
    return true;
}
"""


class MediaPermissionInterceptor:
    """
    Makes the meeting application believe camera and microphone were granted.

    Example:
        >>> interceptor = MediaPermissionInterceptor()
        >>> await interceptor.install(context)   # before page.goto()
        >>> await page.goto(meet_url)
        >>> await interceptor.upgrade(page)      # after navigation
    """

    def __init__(self, permissions: Optional[List[str]] = None) -> None:
        self.permissions = list(permissions or MEDIA_PERMISSIONS)

    async def install(self, context: BrowserContext) -> None:
        """
        Install the configuration-time layer on a browser context.

        Args:
            context: Context whose pages have not navigated yet

        Raises:
            BrowserError: If permissions or the init script cannot be applied
        """
        try:
            await context.grant_permissions(self.permissions)
            await context.add_init_script(script=MEDIA_DEVICES_STUB_SCRIPT)
            logger.debug(f"Media stub installed (permissions={self.permissions})")
        except Exception as e:
            logger.error(f"Failed to install media stub: {e}")
            raise BrowserError(f"Failed to install media permission stub: {e}") from e

    async def upgrade(self, page: Page) -> bool:
        """
        Wrap getUserMedia on a navigated page to always request audio+video.

        Args:
            page: Page that finished navigating

        Returns:
            True if a getUserMedia entry point was found and wrapped

        Raises:
            PageError: If script evaluation fails
        """
        try:
            wrapped = bool(await page.evaluate(FORCE_AUDIO_VIDEO_SCRIPT))
        except Exception as e:
            logger.error(f"Failed to wrap getUserMedia: {e}")
            raise PageError(f"Failed to upgrade media constraints: {e}") from e

        if not wrapped:
            logger.warning("navigator.mediaDevices unavailable, getUserMedia not wrapped")
        return wrapped
