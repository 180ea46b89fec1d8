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

"""Custom exceptions for meetcapture.

All exceptions inherit from MeetCaptureError so a job-level caller can
catch every meetcapture failure with one except clause.

Exception Hierarchy:
    MeetCaptureError (base)
    ├── BrowserError - Browser launch and lifecycle errors
    ├── PageError - Page queries and script evaluation errors
    ├── ElementNotFoundError - Interaction attempted on an absent element
    ├── ActionError - Click/type failures on a present element
    ├── NavigationError - Page did not load within the navigation ceiling
    ├── RecorderError - Screen recorder start/stop failures
    └── ConfigurationError - Invalid job or recorder configuration

Example:
    try:
        await controller.click(await controller.find_element(xpath))
    except ElementNotFoundError:
        # The caller passed a "not found" locator result
        raise
    except MeetCaptureError as e:
        logger.error(f"Job failed: {e}")
"""


class MeetCaptureError(Exception):
    """Base exception for all meetcapture errors."""
    pass


class BrowserError(MeetCaptureError):
    """Exception raised for browser-related errors.

    Examples:
        - Browser failed to launch
        - Browser process could not be closed
        - Accessing the page before the browser was started
    """
    pass


class PageError(MeetCaptureError):
    """Exception raised when a page-level driver call fails.

    An absent element is never a PageError; the locator reports absence by
    returning None. A PageError means the driver itself failed, which is
    also how a crashed browser surfaces during a query.
    """
    pass


class ElementNotFoundError(MeetCaptureError):
    """Exception raised when an interaction primitive gets an absent element.

    This is a caller-contract violation: primitives must only be handed
    elements the locator actually found. Always fatal to the current job.
    """
    pass


class ActionError(MeetCaptureError):
    """Exception raised when a click or typing action fails on a present element."""
    pass


class NavigationError(MeetCaptureError):
    """Exception raised when navigation fails.

    Examples:
        - URL is unreachable
        - Page did not reach a loaded state within the navigation ceiling
    """
    pass


class RecorderError(MeetCaptureError):
    """Exception raised when the screen recorder cannot start or stop.

    Examples:
        - ffmpeg binary missing or not executable
        - Screencast could not attach to the page
        - Recording started twice on the same lifecycle
    """
    pass


class ConfigurationError(MeetCaptureError):
    """Exception raised for invalid job, settings, or recorder configuration."""
    pass
