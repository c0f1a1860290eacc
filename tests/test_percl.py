"""
Tests for PerCL command building.
"""

import json

from src.ivr import percl
from src.ivr.percl import CommandDocument, GetDigitsOptions


class TestActions:
    """Tests for single command serialization."""

    def test_say(self):
        assert percl.say("hello").to_percl() == {"Say": {"text": "hello"}}

    def test_pause(self):
        assert percl.pause(100).to_percl() == {"Pause": {"length": 100}}

    def test_redirect(self):
        assert percl.redirect("https://x/next").to_percl() == {
            "Redirect": {"actionUrl": "https://x/next"}
        }

    def test_hangup(self):
        assert percl.hangup().to_percl() == {"Hangup": {}}

    def test_get_digits_passes_options_through(self):
        options = GetDigitsOptions(
            prompts=(percl.say("press 1"), percl.pause(50)),
            max_digits=4,
            min_digits=2,
            initial_timeout_ms=12000,
            digit_timeout_ms=6000,
        )
        command = percl.get_digits("https://x/collect", options).to_percl()

        assert command == {
            "GetDigits": {
                "actionUrl": "https://x/collect",
                "prompts": [{"Say": {"text": "press 1"}}, {"Pause": {"length": 50}}],
                "maxDigits": 4,
                "minDigits": 2,
                "initialTimeoutMs": 12000,
                "digitTimeoutMs": 6000,
            }
        }

    def test_get_digits_omits_unset_options(self):
        command = percl.get_digits("https://x/collect").to_percl()
        assert command == {"GetDigits": {"actionUrl": "https://x/collect"}}


class TestBuild:
    """Tests for document building."""

    def test_empty_document(self):
        document = percl.build()
        assert len(document) == 0
        assert document.to_percl() == []
        assert document.encode() == b"[]"

    def test_preserves_order_and_count(self):
        actions = [
            percl.say("one"),
            percl.pause(10),
            percl.say("two"),
            percl.redirect("https://x/three"),
            percl.hangup(),
        ]
        document = percl.build(*actions)

        assert isinstance(document, CommandDocument)
        assert len(document) == len(actions)
        assert list(document) == actions
        assert document[0] == percl.say("one")
        assert document[-1] == percl.hangup()

    def test_encode_matches_to_percl(self):
        document = percl.build(percl.say("hi"), percl.hangup())
        assert json.loads(document.encode()) == [{"Say": {"text": "hi"}}, {"Hangup": {}}]
