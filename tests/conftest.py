# Copyright 2026 Firefly Software Solutions Inc
# SPDX-License-Identifier: Apache-2.0

"""Shared fixtures for meetcapture tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from meetcapture.config import Settings
from meetcapture.core.ffmpeg_recorder import RecordingMetadata
from meetcapture.core.navigator import (
    ASK_TO_JOIN_XPATH,
    CONTINUE_WITHOUT_DEVICES_XPATH,
    NAME_INPUT_XPATH,
)


def _make_element():
    """Element handle double with awaitable click/type."""
    element = MagicMock()
    element.click = AsyncMock()
    element.type = AsyncMock()
    return element


def _make_page(present=None):
    """Page double whose query_selector finds only the given XPaths.

    Args:
        present: Mapping of XPath to element handle
    """
    present = dict(present or {})
    page = MagicMock()
    page.url = "https://meet.google.com/abc-defg-hij"
    page.goto = AsyncMock()
    page.evaluate = AsyncMock(return_value=True)

    async def query_selector(selector):
        assert selector.startswith("xpath=")
        return present.get(selector[len("xpath="):])

    page.query_selector = AsyncMock(side_effect=query_selector)
    return page


@pytest.fixture
def mock_playwright():
    """Playwright driver double with an awaitable chromium launcher."""
    browser = AsyncMock()
    context = AsyncMock()
    page = AsyncMock()
    browser.new_context = AsyncMock(return_value=context)
    context.new_page = AsyncMock(return_value=page)
    context.grant_permissions = AsyncMock()
    context.add_init_script = AsyncMock()

    playwright = MagicMock()
    playwright.chromium.launch = AsyncMock(return_value=browser)
    playwright.stop = AsyncMock()
    return playwright


@pytest.fixture
def join_elements():
    """One element per default join step."""
    return {
        CONTINUE_WITHOUT_DEVICES_XPATH: _make_element(),
        NAME_INPUT_XPATH: _make_element(),
        ASK_TO_JOIN_XPATH: _make_element(),
    }


@pytest.fixture
def settings(tmp_path):
    """Settings that never poll and write into a temp directory."""
    return Settings(
        video_dir=tmp_path / "video",
        element_timeout_ms=0,
        headless=True,
    )


@pytest.fixture
def fake_recorder():
    """Recorder double accepted by RecordingLifecycle's recorder_factory."""
    recorder = MagicMock()
    recorder.start = AsyncMock(return_value="rec-1")
    recorder.stop = AsyncMock(return_value=RecordingMetadata(recording_id="rec-1"))
    return recorder


@pytest.fixture
def element_factory():
    """Builds element handle doubles."""
    return _make_element


@pytest.fixture
def page_factory():
    """Builds page doubles; pass a mapping of XPath to element."""
    return _make_page
