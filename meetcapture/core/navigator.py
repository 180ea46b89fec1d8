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
Join flow for the meeting pre-join screen.

The flow is an ordered list of optional steps. Each step polls briefly for
its element and either acts on it or is skipped; a missing prompt is never
an error because the pre-join UI differs between accounts, browsers and
permission states. Every step is reported back as a StepResult.

The navigator does not confirm that the meeting actually admitted the bot.
With element_timeout_ms=0 every step is a single instantaneous query, which
can miss prompts that render late.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional

from meetcapture.core.job import StepResult, StepStatus
from meetcapture.core.page import PageController
from meetcapture.utils.logger import logger


class StepAction(str, Enum):
    """What a join step does with its element."""
    CLICK = "click"
    TYPE = "type"


@dataclass(frozen=True)
class JoinStep:
    """A single optional interaction: where to look and what to do."""
    name: str
    xpath: str
    action: StepAction
    text: Optional[str] = None


CONTINUE_WITHOUT_DEVICES_XPATH = '//span[contains(text(), "Continue without microphone and camera")]'
NAME_INPUT_XPATH = '//input[@placeholder="Your name"]'
ASK_TO_JOIN_XPATH = '//span[contains(text(), "Ask to join")]'


def default_join_steps(display_name: str) -> List[JoinStep]:
    """Google Meet guest flow: dismiss device prompt, enter name, ask to join."""
    return [
        JoinStep("dismiss_device_prompt", CONTINUE_WITHOUT_DEVICES_XPATH, StepAction.CLICK),
        JoinStep("enter_name", NAME_INPUT_XPATH, StepAction.TYPE, text=display_name),
        JoinStep("ask_to_join", ASK_TO_JOIN_XPATH, StepAction.CLICK),
    ]


class SessionNavigator:
    """
    Moves a loaded meeting page to the joined/waiting-to-join state.

    Attributes:
        controller: PageController for the meeting page
        steps: Ordered join steps
        element_timeout_ms: Poll budget per step before it is skipped
        current_step: Name of the step in progress, None when idle

    Example:
        >>> navigator = SessionNavigator(PageController(page), display_name="Meeting Bot")
        >>> results = await navigator.join()
        >>> [r.name for r in results if r.performed]
        ['enter_name', 'ask_to_join']
    """

    def __init__(
        self,
        controller: PageController,
        display_name: str = "Meeting Bot",
        element_timeout_ms: int = 0,
        steps: Optional[List[JoinStep]] = None,
    ) -> None:
        self.controller = controller
        self.display_name = display_name
        self.element_timeout_ms = element_timeout_ms
        self.steps = list(steps) if steps is not None else default_join_steps(display_name)
        self.current_step: Optional[str] = None

    async def join(self) -> List[StepResult]:
        """
        Run every join step in order.

        Returns:
            One StepResult per step, in order

        Raises:
            ElementNotFoundError, ActionError, PageError: From the page
                controller; these end the sequence
        """
        results: List[StepResult] = []
        try:
            for step in self.steps:
                self.current_step = step.name
                results.append(await self._run_step(step))
        finally:
            self.current_step = None
        return results

    async def _run_step(self, step: JoinStep) -> StepResult:
        element = await self.controller.wait_for_element(
            step.xpath, timeout_ms=self.element_timeout_ms
        )
        if element is None:
            logger.info(f"Join step '{step.name}' skipped: element not present")
            return StepResult(step.name, StepStatus.SKIPPED)

        if step.action == StepAction.TYPE:
            await self.controller.type_into(element, step.text or "")
        else:
            await self.controller.click(element)

        logger.info(f"Join step '{step.name}' performed")
        return StepResult(step.name, StepStatus.PERFORMED)
