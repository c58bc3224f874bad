import json
import logging
from typing import Any, Dict, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from dosewatch.advisor.interfaces.llm_provider import GeneratedContent, LlmProvider
from dosewatch.advisor.services.request_rate_limiter import SlidingWindowRateLimiter
from dosewatch.core.domain.exceptions import AdvisorRateLimited, AdvisorUnavailable, GeminiApiError

logger = logging.getLogger(__name__)


class GeminiLlmProvider(LlmProvider):
    """
    HTTP client for the Gemini generateContent endpoint.
    Handles retries on 5xx, a local request budget and error normalization.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        max_retries: int = 3,
        timeout: float = 30.0,
        rate_limiter: Optional[SlidingWindowRateLimiter] = None,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.rate_limiter = rate_limiter or SlidingWindowRateLimiter(max_events=15, window_seconds=60)
        self.session = session or self._create_session(max_retries)

    def _create_session(self, max_retries: int) -> requests.Session:
        session = requests.Session()
        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=1.0,  # 1s, 2s, 4s...
            status_forcelist=[500, 502, 503, 504],
            allowed_methods=["POST"]
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        session.mount("https://", adapter)
        return session

    def generate(
        self,
        prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
        trace_id: Optional[str] = None,
    ) -> GeneratedContent:
        if not self.api_key:
            raise AdvisorUnavailable("GEMINI_API_KEY is not configured")

        allowed, retry_after = self.rate_limiter.allow()
        if not allowed:
            raise AdvisorRateLimited(retry_after)

        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": {"temperature": temperature, "maxOutputTokens": max_tokens},
        }
        data = self._post(f"{self.base_url}/models/{model}:generateContent", payload)
        return GeneratedContent(
            text=self._extract_text(data),
            provider="gemini",
            model=model,
            finish_reason=self._finish_reason(data),
            metadata={"trace_id": trace_id},
        )

    def _post(self, url: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        try:
            response = self.session.post(url, params={"key": self.api_key}, json=payload, timeout=self.timeout)
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Gemini network error: {e}")
            raise AdvisorUnavailable(f"Request failed: {str(e)}") from e
        except json.JSONDecodeError as e:
            logger.error(f"Gemini invalid JSON: {e}")
            raise AdvisorUnavailable("Invalid JSON response") from e

        if response.status_code >= 400 or data.get("error"):
            error = data.get("error") or {}
            message = error.get("message", "Unknown error")
            logger.warning(f"Gemini API Error {response.status_code}: {message}")
            if response.status_code == 429:
                raise AdvisorRateLimited(retry_after=60.0)
            raise GeminiApiError(response.status_code, message, error.get("status", ""))

        return data

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        parts = []
        for candidate in data.get("candidates") or []:
            content = candidate.get("content") or {}
            for part in content.get("parts") or []:
                if part.get("text"):
                    parts.append(part["text"])
            if parts:
                break
        if not parts:
            raise AdvisorUnavailable("Gemini returned no candidates")
        return "\n".join(parts).strip()

    @staticmethod
    def _finish_reason(data: Dict[str, Any]) -> Optional[str]:
        candidates = data.get("candidates") or []
        if not candidates:
            return None
        return candidates[0].get("finishReason")
