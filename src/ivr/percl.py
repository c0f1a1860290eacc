"""
PerCL (Performance Command Language) builders.

FreeClimb fetches a webhook and executes the returned JSON array of commands
strictly in order. Each command is a single-key object:

- Say: speak text to the caller
- Pause: silence for a number of milliseconds
- Redirect: fetch the next document from another URL
- GetDigits: play prompts, then collect key presses and POST them to a URL
- Hangup: end the call

Only the commands used by the bakery menu are modelled here.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Tuple

import msgspec

encoder = msgspec.json.Encoder()


class CommandName(str, Enum):
    """PerCL command names as they appear on the wire."""
    SAY = "Say"
    PAUSE = "Pause"
    REDIRECT = "Redirect"
    GET_DIGITS = "GetDigits"
    HANGUP = "Hangup"


@dataclass(frozen=True)
class Say:
    text: str

    name = CommandName.SAY

    def to_percl(self) -> Dict[str, Any]:
        return {self.name.value: {"text": self.text}}


@dataclass(frozen=True)
class Pause:
    length_ms: int

    name = CommandName.PAUSE

    def to_percl(self) -> Dict[str, Any]:
        return {self.name.value: {"length": self.length_ms}}


@dataclass(frozen=True)
class Redirect:
    action_url: str

    name = CommandName.REDIRECT

    def to_percl(self) -> Dict[str, Any]:
        return {self.name.value: {"actionUrl": self.action_url}}


@dataclass(frozen=True)
class Hangup:
    name = CommandName.HANGUP

    def to_percl(self) -> Dict[str, Any]:
        return {self.name.value: {}}


@dataclass(frozen=True)
class GetDigitsOptions:
    """
    Digit collection settings, passed through to FreeClimb untouched.

    Unset values are left out of the command so the platform defaults apply.
    """
    prompts: Tuple[Any, ...] = ()
    max_digits: Optional[int] = None
    min_digits: Optional[int] = None
    initial_timeout_ms: Optional[int] = None
    digit_timeout_ms: Optional[int] = None

    def to_percl(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {}
        if self.prompts:
            body["prompts"] = [prompt.to_percl() for prompt in self.prompts]
        for key, value in (
            ("maxDigits", self.max_digits),
            ("minDigits", self.min_digits),
            ("initialTimeoutMs", self.initial_timeout_ms),
            ("digitTimeoutMs", self.digit_timeout_ms),
        ):
            if value is not None:
                body[key] = value
        return body


@dataclass(frozen=True)
class GetDigits:
    action_url: str
    options: GetDigitsOptions = field(default_factory=GetDigitsOptions)

    name = CommandName.GET_DIGITS

    def to_percl(self) -> Dict[str, Any]:
        return {self.name.value: {"actionUrl": self.action_url, **self.options.to_percl()}}


@dataclass(frozen=True)
class CommandDocument:
    """Ordered PerCL script returned as a webhook response body."""
    actions: Tuple[Any, ...] = ()

    def __len__(self) -> int:
        return len(self.actions)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.actions)

    def __getitem__(self, index: int) -> Any:
        return self.actions[index]

    def to_percl(self) -> List[Dict[str, Any]]:
        return [action.to_percl() for action in self.actions]

    def encode(self) -> bytes:
        """Serialize to the JSON array FreeClimb expects."""
        return encoder.encode(self.to_percl())


def say(text: str) -> Say:
    return Say(text=text)


def pause(length_ms: int) -> Pause:
    return Pause(length_ms=length_ms)


def redirect(url: str) -> Redirect:
    return Redirect(action_url=url)


def get_digits(url: str, options: Optional[GetDigitsOptions] = None) -> GetDigits:
    return GetDigits(action_url=url, options=options or GetDigitsOptions())


def hangup() -> Hangup:
    return Hangup()


def build(*actions: Any) -> CommandDocument:
    """Wrap actions into one document, keeping their order."""
    return CommandDocument(actions=tuple(actions))
