"""
Bakery main menu call flow.

Every webhook maps to one state. Each state produces the PerCL document to
play and names the state the caller lands in next:

    Greeting -> MenuPrompt -> MenuDecision -> {Transfer, Hours, RetryPrompt} -> EndCall

Invalid or missing digits send the caller back to the prompt until the retry
limit is reached, at which point the call is ended.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

import structlog

from src.ivr import percl
from src.ivr.percl import CommandDocument, GetDigitsOptions
from src.ivr.retry import RetryStore

logger = structlog.get_logger(__name__)

GREETING = "Hello welcome to Innocent's bakery."
MENU_INTRO = "Please listen carefully as our menu options have changed"
INVALID_INPUT = "Error, please try again"
RETRY_LIMIT_REACHED = "Maximum retry limit was reached"
TRANSFER_NOTICE = "Please wait while we transfer you to an operator"
GOODBYE = "Thank you for calling Innocent's bakery, have a nice day"
HOURS = (
    "We are open from Monday to Friday from 8am to 5pm "
    "on Saturday we are open from 9am to 4pm and we are closed on Sundays"
)

PROMPT_PAUSE_MS = 100
MENU_DIGITS_OPTIONS = dict(
    max_digits=1,
    min_digits=1,
    initial_timeout_ms=12000,
    digit_timeout_ms=6000,
)


class MenuState(str, Enum):
    GREETING = "Greeting"
    MENU_PROMPT = "MenuPrompt"
    MENU_DECISION = "MenuDecision"
    TRANSFER = "Transfer"
    HOURS = "Hours"
    RETRY_PROMPT = "RetryPrompt"
    END_CALL = "EndCall"


# Webhook path FreeClimb is redirected to for each state that owns a route.
STATE_PATHS: Mapping[MenuState, str] = MappingProxyType({
    MenuState.GREETING: "/incomingCall",
    MenuState.MENU_PROMPT: "/mainMenuPrompt",
    MenuState.MENU_DECISION: "/mainMenu",
    MenuState.TRANSFER: "/transfer",
    MenuState.END_CALL: "/endCall",
})


@dataclass(frozen=True)
class MenuOption:
    digit: str
    script: str
    outcome: MenuState
    target: MenuState


MENU_OPTIONS: Mapping[str, MenuOption] = MappingProxyType({
    "1": MenuOption("1", "Redirecting your call to existing orders", MenuState.TRANSFER, MenuState.TRANSFER),
    "2": MenuOption("2", "Redirecting your call to new orders", MenuState.TRANSFER, MenuState.TRANSFER),
    "3": MenuOption("3", HOURS, MenuState.HOURS, MenuState.END_CALL),
})


class MenuFlow:
    """
    Decides the next PerCL document for each step of the bakery menu.

    Args:
        host_url: Public base URL FreeClimb can reach, without trailing slash
        retries: Per-call retry counters, shared across requests
    """

    def __init__(self, host_url: str, retries: Optional[RetryStore] = None):
        self.host_url = host_url
        self.retries = retries if retries is not None else RetryStore()

    def url_for(self, state: MenuState) -> str:
        return f"{self.host_url}{STATE_PATHS[state]}"

    def greeting(self) -> CommandDocument:
        return percl.build(
            percl.say(GREETING),
            percl.pause(PROMPT_PAUSE_MS),
            percl.redirect(self.url_for(MenuState.MENU_PROMPT)),
        )

    def menu_prompt(self) -> CommandDocument:
        options = GetDigitsOptions(
            prompts=(
                percl.say(MENU_INTRO),
                percl.pause(PROMPT_PAUSE_MS),
                percl.say("For existing cake orders press 1"),
                percl.say("For new cake orders press 2"),
                percl.say("For hours and locations press 3"),
            ),
            **MENU_DIGITS_OPTIONS,
        )
        return percl.build(percl.get_digits(self.url_for(MenuState.MENU_DECISION), options))

    def menu_decision(
        self,
        digits: Optional[str],
        call_id: str = "",
    ) -> Tuple[CommandDocument, MenuState]:
        """
        Act on the digits collected by the menu prompt.

        The limit check only runs when the input was valid or the count had
        already hit the limit, so a correct answer given after three misses
        still ends the call.

        Returns:
            Tuple of (document, next_state)
        """
        option = MENU_OPTIONS.get(digits) if digits else None
        attempts = self.retries.get(call_id)

        if option is None and attempts < self.retries.limit:
            attempts = self.retries.increment(call_id)
            logger.info("Invalid menu input", call_id=call_id, digits=digits, attempts=attempts)
            return (
                percl.build(
                    percl.say(INVALID_INPUT),
                    percl.redirect(self.url_for(MenuState.MENU_PROMPT)),
                ),
                MenuState.RETRY_PROMPT,
            )

        if attempts >= self.retries.limit:
            self.retries.reset(call_id)
            logger.info("Menu retry limit reached", call_id=call_id, digits=digits)
            return (
                percl.build(
                    percl.say(RETRY_LIMIT_REACHED),
                    percl.redirect(self.url_for(MenuState.END_CALL)),
                ),
                MenuState.END_CALL,
            )

        self.retries.reset(call_id)
        logger.info("Menu option selected", call_id=call_id, digit=option.digit, outcome=option.outcome.value)
        return (
            percl.build(
                percl.say(option.script),
                percl.redirect(self.url_for(option.target)),
            ),
            option.outcome,
        )

    def transfer(self) -> CommandDocument:
        return percl.build(
            percl.say(TRANSFER_NOTICE),
            percl.redirect(self.url_for(MenuState.END_CALL)),
        )

    def end_call(self, call_id: str = "") -> CommandDocument:
        self.retries.discard(call_id)
        return percl.build(
            percl.say(GOODBYE),
            percl.hangup(),
        )
