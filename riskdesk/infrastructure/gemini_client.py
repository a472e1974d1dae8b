import json
import random
from dataclasses import dataclass
from typing import Optional

import google.generativeai as genai
from riskdesk.config.logging import logger
from riskdesk.core.exceptions import SignalSourceError

TREND_PROMPT = (
    "Based on the very latest market data and news, is the current short-term "
    "(next 24 hours) price trend for BTC/USD more likely to be bullish or bearish? "
    "Respond ONLY with JSON of the form "
    '{"is_bullish": true|false, "confidence": "high"|"medium"|"low"}.'
)

@dataclass(frozen=True)
class TrendSignal:
    is_bullish: Optional[bool]   # None = no disponible
    confidence: str = ""
    source: str = "gemini"       # gemini | fallback | unavailable

    @property
    def available(self) -> bool:
        return self.is_bullish is not None

    @classmethod
    def unavailable(cls) -> "TrendSignal":
        return cls(is_bullish=None, confidence="", source="unavailable")

    @classmethod
    def random_fallback(cls) -> "TrendSignal":
        return cls(is_bullish=random.random() > 0.5, confidence="low", source="fallback")

class GeminiClient:
    """
    Best-effort BTC trend signal. One request, no retry; failures degrade to
    a fallback signal and are never raised to the caller.
    """

    def __init__(self, api_key: Optional[str], model_name: str = "gemini-1.5-flash", random_fallback: bool = True):
        self.api_key = api_key
        self.random_fallback = random_fallback
        self.model = None
        if not api_key:
            logger.warning("GEMINI_API_KEY is not set. Trend signal disabled.")
        else:
            genai.configure(api_key=api_key)
            self.model = genai.GenerativeModel(model_name)

    def _fallback(self) -> TrendSignal:
        return TrendSignal.random_fallback() if self.random_fallback else TrendSignal.unavailable()

    def _request_trend(self) -> TrendSignal:
        try:
            response = self.model.generate_content(
                TREND_PROMPT,
                generation_config={"response_mime_type": "application/json"}
            )
            text = (response.text or "").strip()
        except Exception as e:
            raise SignalSourceError(f"Gemini request failed: {e}")

        if not text:
            raise SignalSourceError("Gemini API returned an empty response.")

        try:
            result = json.loads(text)
        except json.JSONDecodeError as e:
            raise SignalSourceError(f"Gemini returned invalid JSON: {e}")

        if not isinstance(result, dict) or not isinstance(result.get("is_bullish"), bool):
            raise SignalSourceError(f"Gemini response missing is_bullish: {text}")

        return TrendSignal(
            is_bullish=result["is_bullish"],
            confidence=str(result.get("confidence", "")),
            source="gemini",
        )

    def get_btc_trend_signal(self) -> TrendSignal:
        if self.model is None:
            return TrendSignal.unavailable()
        try:
            return self._request_trend()
        except SignalSourceError as e:
            logger.error(f"Error fetching BTC trend from Gemini: {e}")
            return self._fallback()
