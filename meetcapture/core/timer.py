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

"""Cancellable fixed-duration wait."""

from __future__ import annotations

import asyncio
from typing import Optional


class CancellableDelay:
    """
    A sleep that another coroutine can end early.

    Example:
        >>> delay = CancellableDelay(30.0)
        >>> completed = await delay.wait()   # False if cancel() was called
    """

    def __init__(self, seconds: float) -> None:
        self.seconds = seconds
        self._task: Optional[asyncio.Task] = None
        self._cancel_requested = False

    async def wait(self) -> bool:
        """
        Sleep for the configured duration.

        Returns:
            True if the full duration elapsed, False if cancelled
        """
        if self._cancel_requested:
            return False
        self._task = asyncio.ensure_future(asyncio.sleep(self.seconds))
        try:
            await self._task
        except asyncio.CancelledError:
            # Only swallow our own cancellation; outer cancellation propagates.
            if not self._cancel_requested:
                raise
            return False
        finally:
            self._task = None
        return True

    def cancel(self) -> None:
        """End the wait early. Calling before wait() makes wait() return at once."""
        self._cancel_requested = True
        if self._task is not None and not self._task.done():
            self._task.cancel()

    @property
    def cancelled(self) -> bool:
        return self._cancel_requested
