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
Browser session management for meetcapture.

This module provides the BrowserManager class which owns the single
Chromium process and page used by one recording job. It launches the
browser with the capability flags a meeting bot needs, creates an isolated
context (full-HD viewport, media permission stub) and opens the page.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from playwright.async_api import Browser, BrowserContext, Page, async_playwright

from meetcapture.core.media import MediaPermissionInterceptor
from meetcapture.exceptions import BrowserError
from meetcapture.utils.logger import logger

MEETING_BROWSER_ARGS: List[str] = [
    "--use-fake-ui-for-media-stream",
    "--disable-blink-features=AutomationControlled",
    "--start-fullscreen",
    "--disable-features=EnableEphemeralFlashPermission",
    "--disable-web-security",
    "--allow-file-access-from-files",
    "--allow-running-insecure-content",
    "--unsafely-treat-insecure-origin-as-secure",
]

FULL_HD_VIEWPORT: Dict[str, int] = {"width": 1920, "height": 1080}

EXTRA_HTTP_HEADERS: Dict[str, str] = {"Accept-Language": "en-US,en;q=0.9"}


class BrowserManager:
    """
    Owns one Chromium process, one context and one page.

    Attributes:
        headless: Whether browser runs without a visible window
        args: Chromium command-line flags
        viewport: Viewport applied to the context
        interceptor: Media permission layer installed on the context
        launch_options: Additional Playwright launch options

    Example:
        >>> manager = BrowserManager(headless=False)
        >>> await manager.start()
        >>> await manager.page.goto("https://meet.google.com/abc-defg-hij")
        >>> await manager.stop()
    """

    def __init__(
        self,
        headless: bool = False,
        args: Optional[List[str]] = None,
        viewport: Optional[Dict[str, int]] = None,
        interceptor: Optional[MediaPermissionInterceptor] = None,
        **launch_options: Any,
    ) -> None:
        """
        Initialize the browser manager with configuration.

        Args:
            headless: Run without a visible window. Default: False, since the
                meeting page is recorded full-screen.
            args: Chromium flags, defaults to MEETING_BROWSER_ARGS
            viewport: Context viewport, defaults to 1920x1080
            interceptor: Media permission interceptor installed before the
                page is created
            **launch_options: Additional Playwright launch options such as
                slow_mo or executable_path
        """
        self.headless = headless
        self.args = list(args) if args is not None else list(MEETING_BROWSER_ARGS)
        self.viewport = dict(viewport or FULL_HD_VIEWPORT)
        self.interceptor = interceptor or MediaPermissionInterceptor()
        self.launch_options = launch_options
        self._playwright = None
        self._browser: Optional[Browser] = None
        self._context: Optional[BrowserContext] = None
        self._page: Optional[Page] = None
        self._closed = False

    async def start(self) -> None:
        """
        Launch Chromium and open the job's page.

        This method:
        1. Initializes Playwright
        2. Launches Chromium with the meeting capability flags
        3. Creates a context with the full-HD viewport and media permissions
        4. Installs the media stub before any navigation
        5. Opens the page

        Raises:
            BrowserError: If any of the above fails
        """
        try:
            logger.info(f"Starting chromium browser (headless={self.headless})")
            self._playwright = await async_playwright().start()

            self._browser = await self._playwright.chromium.launch(
                headless=self.headless, args=self.args, **self.launch_options
            )

            self._context = await self._browser.new_context(
                viewport=self.viewport,
                permissions=self.interceptor.permissions,
                extra_http_headers=EXTRA_HTTP_HEADERS,
            )
            await self.interceptor.install(self._context)

            self._page = await self._context.new_page()

            logger.info("Browser started successfully")
        except BrowserError:
            raise
        except Exception as e:
            logger.error(f"Failed to start browser: {e}")
            raise BrowserError(f"Failed to start browser: {e}") from e

    async def stop(self) -> None:
        """
        Close the page, context, browser and Playwright driver.

        Safe to call after a partial start; a second call is a no-op. Every
        resource is closed even when an earlier one fails, so a crashed page
        never leaves the Chromium or driver process running.

        Raises:
            BrowserError: If any resource failed to close
        """
        if self._closed:
            return
        self._closed = True
        logger.info("Stopping browser")

        errors: List[str] = []
        closers = [
            ("page", self._page.close if self._page else None),
            ("context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright", self._playwright.stop if self._playwright else None),
        ]
        for name, close in closers:
            if close is None:
                continue
            try:
                await close()
            except Exception as e:
                logger.error(f"Error stopping {name}: {e}")
                errors.append(f"{name}: {e}")

        if errors:
            raise BrowserError(f"Failed to stop browser: {'; '.join(errors)}")
        logger.info("Browser stopped successfully")

    @property
    def is_closed(self) -> bool:
        return self._closed

    @property
    def page(self) -> Page:
        """Get the job's page."""
        if not self._page:
            raise BrowserError("No active page. Call start() first.")
        return self._page

    @property
    def context(self) -> BrowserContext:
        """Get the browser context."""
        if not self._context:
            raise BrowserError("Browser context not initialized. Call start() first.")
        return self._context

    @property
    def browser(self) -> Browser:
        """Get the browser instance."""
        if not self._browser:
            raise BrowserError("Browser not initialized. Call start() first.")
        return self._browser

    async def __aenter__(self) -> "BrowserManager":
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        await self.stop()
