"""
Groq LLM Connector

Narrative flood-risk analysis via Groq's OpenAI-compatible chat API.
API Documentation: https://console.groq.com/docs/api-reference
"""

import os
import re
import json
import time
import logging
from typing import Callable, Dict, List, Optional

import requests

from risk_scoring.models import FloodAssessment, Measurement
from .cache import RateLimiter, TTLCache

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

FLOOD_SYSTEM_PROMPT = """You are a disaster safety expert. Assess flood risk from the weather data and give concrete actions.
Reply only with JSON in this format:
{
  "analysis": "situation analysis (2-3 sentences)",
  "riskLevel": "low|medium|high|critical",
  "recommendations": ["action 1", "action 2", "action 3"],
  "confidence": 0.0-1.0
}"""

_RETRY_AFTER = re.compile(r"try again in ([\d.]+)s")
_JSON_BLOCK = re.compile(r"```json\s*([\s\S]*?)\s*```")
_JSON_OBJECT = re.compile(r"\{[\s\S]*\}")


def parse_json_response(text: str) -> Optional[Dict]:
    """JSON object from a fenced block or the first {...} span; None for anything else"""
    match = _JSON_BLOCK.search(text) or _JSON_OBJECT.search(text)
    if not match:
        return None
    try:
        parsed = json.loads(match.group(1) if match.groups() else match.group(0))
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


def default_flood_recommendations(risk_score: float) -> List[str]:
    if risk_score >= 80:
        return ["Evacuate immediately", "Be ready to call emergency services", "Cut power and gas"]
    elif risk_score >= 60:
        return ["Check evacuation routes", "Watch for emergency alerts", "Move vehicles to high ground"]
    elif risk_score >= 40:
        return ["Avoid going out", "Check emergency supplies", "Monitor the weather"]
    return ["Currently safe", "Check the forecast"]


class GroqConnector:
    """Connector for the Groq chat completions API"""

    BASE_URL = "https://api.groq.com/openai/v1"
    DEFAULT_MODEL = "llama-3.1-8b-instant"

    MAX_RETRIES = 2

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: Optional[str] = None,
        cache: Optional[TTLCache] = None,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize Groq connector

        Args:
            api_key: Groq API key. If None, reads GROQ_API_KEY
            model: Model id. If None, reads GROQ_MODEL
            cache: Response cache (5 minute TTL, 50 entries if None)
            rate_limiter: Call spacing (2 seconds if None)
            sleep: Used for 429 backoff
        """
        self.api_key = api_key if api_key is not None else os.getenv("GROQ_API_KEY", "")
        self.model = model or os.getenv("GROQ_MODEL", self.DEFAULT_MODEL)
        self.cache = cache if cache is not None else TTLCache(ttl_seconds=5 * 60, max_entries=50)
        self.rate_limiter = rate_limiter if rate_limiter is not None else RateLimiter(min_interval=2.0)
        self.sleep = sleep
        self.session = requests.Session()

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key)

    def chat(self, messages: List[Dict[str, str]]) -> Optional[str]:
        """
        Run a chat completion

        Returns:
            Reply text, or None when unavailable
        """
        if not self.has_api_key:
            logger.warning("GROQ_API_KEY not set - skipping AI analysis")
            return None

        cache_key = json.dumps(messages, sort_keys=True)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.debug("Groq reply served from cache")
            return cached

        payload = {
            "model": self.model,
            "messages": messages,
            "temperature": 0.7,
            "max_tokens": 512,
        }
        headers = {"Authorization": f"Bearer {self.api_key}"}

        for attempt in range(self.MAX_RETRIES + 1):
            self.rate_limiter.wait()
            try:
                response = self.session.post(
                    f"{self.BASE_URL}/chat/completions",
                    json=payload,
                    headers=headers,
                    timeout=30
                )

                if response.status_code == 429 and attempt < self.MAX_RETRIES:
                    match = _RETRY_AFTER.search(response.text)
                    wait = float(match.group(1)) if match else 2 ** attempt
                    logger.warning(
                        f"Groq rate limit reached, retrying in {wait:.1f}s ({attempt + 1}/{self.MAX_RETRIES})"
                    )
                    self.sleep(wait)
                    continue

                response.raise_for_status()
                choices = response.json().get("choices") or []
                result = choices[0]["message"]["content"] if choices else None

                if result:
                    self.cache.set(cache_key, result)
                return result

            except (requests.exceptions.RequestException, ValueError, KeyError) as e:
                logger.error(f"Error calling Groq API: {e}")
                return None

        return None

    def analyze_flood_risk(self, measurement: Measurement, risk_score: float, location: Optional[str] = None) -> Dict:
        """
        LLM flood narrative for a measurement

        Returns:
            {"success", "analysis", "recommendations", "risk_level", "confidence"}
        """
        lines = [
            "Current weather:",
            f"- Precipitation: {measurement.precipitation}mm/h",
            f"- Elevation: {measurement.elevation}m",
            f"- Humidity: {measurement.humidity}%",
            f"- Temperature: {measurement.temperature}°C",
            f"- Wind speed: {measurement.wind_speed}m/s",
            f"- Rule-based risk score: {risk_score}/100",
        ]
        if location:
            lines.append(f"- Location: {location}")
        lines.append("\nAnalyse the flood risk for this situation.")

        reply = self.chat([
            {"role": "system", "content": FLOOD_SYSTEM_PROMPT},
            {"role": "user", "content": "\n".join(lines)},
        ])

        if not reply:
            return {
                "success": False,
                "analysis": "Using rule-based analysis of the weather data.",
                "recommendations": default_flood_recommendations(risk_score),
                "risk_level": None,
                "confidence": None,
            }

        parsed = parse_json_response(reply)
        if parsed:
            return {
                "success": True,
                "analysis": parsed.get("analysis") or reply,
                "recommendations": parsed.get("recommendations") or [],
                "risk_level": parsed.get("riskLevel"),
                "confidence": parsed.get("confidence"),
            }

        return {
            "success": True,
            "analysis": reply,
            "recommendations": [],
            "risk_level": None,
            "confidence": None,
        }

    def enrich_flood_assessment(
        self,
        assessment: FloodAssessment,
        measurement: Measurement
    ) -> FloodAssessment:
        """
        Overlay AI narrative on a rule-based flood assessment

        Score and level always stay rule-based; recommendations and confidence
        are replaced only when the model supplies them.
        """
        if not self.has_api_key:
            return assessment

        result = self.analyze_flood_risk(measurement, assessment.score)
        if not result["success"]:
            return assessment

        update = {"ai_analysis": result["analysis"]}
        if result["recommendations"]:
            update["recommendations"] = list(result["recommendations"])
        confidence = result["confidence"]
        if isinstance(confidence, (int, float)) and 0 <= confidence <= 1:
            update["confidence"] = float(confidence)

        return assessment.model_copy(update=update)
