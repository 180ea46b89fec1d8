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
Page controller for the meeting page.

This module provides the PageController class: navigation with a time
ceiling, the XPath element locator, and the click/type interaction
primitives used by the join flow.

The locator reports absence by returning None. The primitives treat a
None element as a caller bug and raise ElementNotFoundError.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

from playwright.async_api import ElementHandle, Page

from meetcapture.exceptions import (
    ActionError,
    ElementNotFoundError,
    NavigationError,
    PageError,
)
from meetcapture.utils.logger import logger


class PageController:
    """
    Controls page interactions for a single meeting page.

    Attributes:
        page: The underlying Playwright Page instance

    Example:
        >>> controller = PageController(page)
        >>> await controller.goto("https://meet.google.com/abc-defg-hij")
        >>> name_input = await controller.find_element('//input[@placeholder="Your name"]')
        >>> if name_input:
        ...     await controller.type_into(name_input, "Meeting Bot")
    """

    def __init__(self, page: Page) -> None:
        """
        Initialize the page controller.

        Args:
            page: Playwright Page instance to control
        """
        self.page = page

    async def goto(self, url: str, wait_until: str = "networkidle", timeout: int = 60000) -> None:
        """
        Navigate to a URL and wait for it to settle.

        Args:
            url: URL to navigate to (must include protocol, e.g., https://)
            wait_until: When to consider navigation succeeded. Options:
                - "networkidle": No network requests for 500ms (default)
                - "load": Wait for the load event
                - "domcontentloaded": Wait for DOMContentLoaded event
                - "commit": Wait for navigation to commit
            timeout: Navigation ceiling in milliseconds. Default: 60000

        Raises:
            NavigationError: If navigation fails or times out
        """
        try:
            logger.info(f"Navigating to {url}")
            await self.page.goto(url, wait_until=wait_until, timeout=timeout)
            logger.info(f"Successfully navigated to {url}")
        except Exception as e:
            logger.error(f"Navigation failed: {e}")
            raise NavigationError(f"Failed to navigate to {url}: {e}") from e

    async def find_element(self, xpath: str) -> Optional[ElementHandle]:
        """
        Locate the first element matching an XPath expression.

        Args:
            xpath: XPath expression, e.g. '//span[contains(text(), "Ask to join")]'

        Returns:
            The first match in document order, or None when nothing matches

        Raises:
            PageError: If the query itself fails (closed page, crashed browser)
        """
        try:
            return await self.page.query_selector(f"xpath={xpath}")
        except Exception as e:
            logger.error(f"Element query failed: {e}")
            raise PageError(f"Failed to query {xpath}: {e}") from e

    async def wait_for_element(
        self,
        xpath: str,
        timeout_ms: int = 0,
        initial_interval_ms: int = 100,
        max_interval_ms: int = 1000,
    ) -> Optional[ElementHandle]:
        """
        Poll for an element with exponential backoff before declaring it absent.

        Args:
            xpath: XPath expression
            timeout_ms: Total poll budget. 0 performs a single query.
            initial_interval_ms: First delay between queries
            max_interval_ms: Upper bound for the delay between queries

        Returns:
            The first match, or None if none appeared within timeout_ms
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout_ms / 1000.0
        interval = initial_interval_ms / 1000.0

        while True:
            element = await self.find_element(xpath)
            if element is not None:
                return element

            remaining = deadline - loop.time()
            if remaining <= 0:
                return None

            await asyncio.sleep(min(interval, remaining))
            interval = min(interval * 2, max_interval_ms / 1000.0)

    async def type_into(self, element: Optional[ElementHandle], text: str) -> None:
        """
        Replace the content of an input with text.

        Existing content is selected with a triple click and overwritten.

        Args:
            element: Element returned by the locator
            text: Text to type

        Raises:
            ElementNotFoundError: If element is None
            ActionError: If clicking or typing fails
        """
        if element is None:
            raise ElementNotFoundError("Element not found for typing")
        try:
            await element.click(click_count=3)
            await element.type(text)
        except Exception as e:
            logger.error(f"Typing failed: {e}")
            raise ActionError(f"Failed to type into element: {e}") from e

    async def click(self, element: Optional[ElementHandle]) -> None:
        """
        Click an element once.

        Args:
            element: Element returned by the locator

        Raises:
            ElementNotFoundError: If element is None
            ActionError: If the click fails
        """
        if element is None:
            raise ElementNotFoundError("Element not found for clicking")
        try:
            await element.click()
        except Exception as e:
            logger.error(f"Click failed: {e}")
            raise ActionError(f"Failed to click element: {e}") from e

    async def evaluate(self, script: str) -> Any:
        """
        Execute JavaScript in the page context.

        Args:
            script: JavaScript code to execute

        Returns:
            Result of the script execution
        """
        try:
            return await self.page.evaluate(script)
        except Exception as e:
            logger.error(f"Script evaluation failed: {e}")
            raise PageError(f"Failed to evaluate script: {e}") from e

    async def get_url(self) -> str:
        """Get the current page URL."""
        return self.page.url
