from unittest.mock import MagicMock

import httpx

from ordersync.ai.gemini_provider import GeminiExtractor
from ordersync.ai.mock_provider import NullExtractor, RuleBasedExtractor
from ordersync.ai.service import build_order_content, get_extractor
from ordersync.services.outcomes import ErrorKind
from tests.fixtures_data import (
    EXPECTED_LABELLED_CONTENT,
    GEMINI_SUCCESS_BODY,
    LABELLED_ORDER_TEXT,
    UNPARSEABLE_ORDER_TEXT,
)


class _RaisingExtractor:
    name = "boom"

    def parse(self, raw_text):
        raise RuntimeError("provider exploded")


class _StaticExtractor:
    name = "static"

    def __init__(self, payload):
        self.payload = payload

    def parse(self, raw_text):
        return self.payload


def test_unparseable_text_is_stored_verbatim():
    content, outcome = build_order_content(UNPARSEABLE_ORDER_TEXT, RuleBasedExtractor())

    assert content == UNPARSEABLE_ORDER_TEXT
    assert outcome.error == ErrorKind.extraction_failed


def test_null_extractor_keeps_raw_text():
    content, outcome = build_order_content(UNPARSEABLE_ORDER_TEXT, NullExtractor())
    assert content == UNPARSEABLE_ORDER_TEXT
    assert not outcome


def test_labelled_text_is_formatted_as_structured_note():
    content, outcome = build_order_content(LABELLED_ORDER_TEXT, RuleBasedExtractor())

    assert outcome.ok
    assert content == EXPECTED_LABELLED_CONTENT
    assert outcome.value.clean_note == "Two dozen red roses, deliver before noon"


def test_extractor_exception_is_absorbed():
    content, outcome = build_order_content("Name: Jane", _RaisingExtractor())
    assert content == "Name: Jane"
    assert outcome.error == ErrorKind.extraction_failed


def test_payload_without_name_falls_back_to_raw_text():
    content, outcome = build_order_content("hello", _StaticExtractor({"phone": "555", "address": "x"}))
    assert content == "hello"
    assert outcome.error == ErrorKind.extraction_failed


def test_invalid_payload_falls_back_to_raw_text():
    content, outcome = build_order_content("hello", _StaticExtractor({"name": ["not", "a", "string"]}))
    assert content == "hello"
    assert "validation_error" in outcome.detail


def test_missing_phone_and_address_render_empty():
    content, _ = build_order_content("x", _StaticExtractor({"name": "Jane"}))
    assert content == "<b>Name: </b> Jane\n<b>Phone:</b> \n<b>Address:</b> "


def test_rule_based_detects_unlabelled_phone():
    parsed = RuleBasedExtractor().parse("Customer: Bob\ncall 555-123-4567 on arrival")
    assert parsed["name"] == "Bob"
    assert parsed["phone"] == "555-123-4567"


def test_get_extractor_selects_provider():
    assert isinstance(get_extractor("gemini"), GeminiExtractor)
    assert isinstance(get_extractor("none"), NullExtractor)
    assert isinstance(get_extractor("rules"), RuleBasedExtractor)


def test_gemini_extractor_parses_json_answer():
    client = MagicMock()
    client.post.return_value = httpx.Response(200, json=GEMINI_SUCCESS_BODY)
    extractor = GeminiExtractor(api_key="k", model="gemini-test", client=client)

    content, outcome = build_order_content("anything", extractor)

    assert outcome.ok
    assert content == "<b>Name: </b> Jane Doe\n<b>Phone:</b> 555-0102\n<b>Address:</b> 12 Garden Lane"
    url = client.post.call_args.args[0]
    assert url.endswith("/models/gemini-test:generateContent")
    body = client.post.call_args.kwargs["json"]
    assert body["generationConfig"]["responseMimeType"] == "application/json"


def test_gemini_extractor_returns_none_on_http_error_status():
    client = MagicMock()
    client.post.return_value = httpx.Response(500, text="boom")
    extractor = GeminiExtractor(api_key="k", client=client)
    assert extractor.parse("anything") is None


def test_gemini_extractor_returns_none_on_timeout():
    client = MagicMock()
    client.post.side_effect = httpx.ReadTimeout("slow")
    extractor = GeminiExtractor(api_key="k", client=client)

    content, outcome = build_order_content("raw order", extractor)

    assert content == "raw order"
    assert outcome.error == ErrorKind.extraction_failed


def test_gemini_extractor_without_key_does_not_call_out():
    client = MagicMock()
    extractor = GeminiExtractor(api_key="", client=client)
    assert extractor.parse("anything") is None
    client.post.assert_not_called()
