from unittest.mock import MagicMock

import pytest
from riskdesk.infrastructure import gemini_client
from riskdesk.infrastructure.gemini_client import GeminiClient, TrendSignal

@pytest.fixture
def fake_genai(monkeypatch):
    fake = MagicMock()
    monkeypatch.setattr(gemini_client, "genai", fake)
    return fake

def _respond(fake_genai, text=None, error=None):
    model = fake_genai.GenerativeModel.return_value
    if error:
        model.generate_content.side_effect = error
    else:
        model.generate_content.return_value = MagicMock(text=text)
    return model

def test_no_api_key_is_unavailable(fake_genai):
    signal = GeminiClient(api_key=None).get_btc_trend_signal()
    assert not signal.available
    assert signal.source == "unavailable"
    fake_genai.configure.assert_not_called()

def test_bullish_response(fake_genai):
    _respond(fake_genai, '{"is_bullish": true, "confidence": "high"}')
    signal = GeminiClient(api_key="key").get_btc_trend_signal()
    assert signal == TrendSignal(is_bullish=True, confidence="high", source="gemini")
    fake_genai.configure.assert_called_once_with(api_key="key")

def test_bearish_response(fake_genai):
    _respond(fake_genai, '{"is_bullish": false}')
    assert GeminiClient(api_key="key").get_btc_trend_signal().is_bullish is False

@pytest.mark.parametrize("text,error", [
    ("", None),
    ("not json", None),
    ('{"is_bullish": "yes"}', None),
    (None, RuntimeError("quota exceeded")),
])
def test_failures_fall_back(fake_genai, text, error):
    _respond(fake_genai, text, error)

    fallback = GeminiClient(api_key="key").get_btc_trend_signal()
    assert fallback.source == "fallback"
    assert fallback.is_bullish in (True, False)

    strict = GeminiClient(api_key="key", random_fallback=False).get_btc_trend_signal()
    assert not strict.available
