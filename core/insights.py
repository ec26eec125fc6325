from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional, Sequence

import requests

from core.config import get_settings
from core.filters import describe_period
from core.metrics_usage import DashboardStats

logger = logging.getLogger(__name__)

_RETRYABLE_STATUS = {429, 500, 502, 503, 504}
EMPTY_INSIGHT = "No insights could be generated at this time."
FALLBACK_INSIGHT = "Sorry, we couldn't communicate with the AI service at this time."


class InsightConfigError(RuntimeError):
    """Raised when the text-generation API key is missing."""


class InsightServiceError(RuntimeError):
    """Raised when the text-generation call fails or returns an unusable body."""


def build_prompt(stats: DashboardStats, top_departments: Sequence[Dict[str, Any]], year: str, currency: str = "THB") -> str:
    dept_summary = "\n".join(f"- {d['name']}: {d['value']:,} sheets" for d in list(top_departments)[:5])
    return f"""You are an expert Environmental Data Analyst. Analyze the paper usage data for our organization ({describe_period(year)}).

**Key Statistics:**
- Total Sheets Used: {stats.total_sheets:,}
- Total Print Requests: {stats.total_requests:,}
- Estimated Cost: {stats.estimated_cost:,} {currency}
- Environmental Impact: {stats.trees_consumed} trees consumed, {stats.co2_emitted} kg CO2 emitted.
- Efficiency: {stats.sheets_saved:,} sheets saved via double-sided printing.

**Top 5 Departments by Usage:**
{dept_summary}

**Task:**
1. Provide a brief assessment of the current sustainability performance.
2. Identify the biggest area of concern based on the department usage.
3. Suggest 3 specific, actionable policies or tips to reduce paper consumption and costs.

Keep the tone professional yet encouraging (Eco-friendly vibe). Format with clear headings or bullet points. Keep it under 200 words.
"""


def _extract_text(data: Dict[str, Any]) -> str:
    try:
        parts = data["candidates"][0]["content"].get("parts") or []
    except (KeyError, IndexError, TypeError, AttributeError) as exc:
        raise InsightServiceError(f"Unexpected response shape: {str(data)[:160]}") from exc
    return "".join(p.get("text", "") for p in parts if isinstance(p, dict)).strip()


def generate_insights(
    stats: DashboardStats,
    top_departments: Sequence[Dict[str, Any]],
    year: str,
    *,
    retries: int = 3,
    timeout: Optional[int] = None,
) -> str:
    """Ask the Gemini ``generateContent`` endpoint for a short usage assessment."""
    settings = get_settings()
    api_key = settings.gemini_api_key
    if not api_key:
        raise InsightConfigError("Missing GEMINI_API_KEY environment variable")

    url = f"{settings.gemini_base_url.rstrip('/')}/models/{settings.gemini_model}:generateContent"
    headers = {"x-goog-api-key": api_key, "Content-Type": "application/json"}
    payload = {"contents": [{"parts": [{"text": build_prompt(stats, top_departments, year, settings.currency)}]}]}
    resolved_timeout = timeout or settings.gemini_timeout

    backoff = 1.0
    last_error: Optional[Exception] = None
    attempts = max(1, retries)
    for attempt in range(1, attempts + 1):
        try:
            response = requests.post(url, json=payload, headers=headers, timeout=resolved_timeout)
        except requests.RequestException as exc:
            last_error = InsightServiceError(f"Request failed: {exc}")
        else:
            if response.status_code == 200:
                try:
                    data = response.json()
                except ValueError as exc:
                    raise InsightServiceError("Response body is not JSON") from exc
                return _extract_text(data) or EMPTY_INSIGHT
            last_error = InsightServiceError(f"API {response.status_code}: {response.text[:160]}")
            if response.status_code not in _RETRYABLE_STATUS:
                break
        if attempt == attempts:
            break
        time.sleep(backoff)
        backoff = min(backoff * 2, 8)
    raise last_error or InsightServiceError("Insight generation failed")


def insight_or_fallback(stats: DashboardStats, top_departments: Sequence[Dict[str, Any]], year: str, **kwargs: Any) -> str:
    try:
        return generate_insights(stats, top_departments, year, **kwargs)
    except (InsightConfigError, InsightServiceError) as exc:
        logger.warning("AI insight generation failed: %s", exc)
        return FALLBACK_INSIGHT
