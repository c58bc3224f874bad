from datetime import datetime, timedelta, timezone

import pytest
import requests

from dosewatch.advisor.providers.gemini_provider import GeminiLlmProvider
from dosewatch.advisor.services.request_rate_limiter import SlidingWindowRateLimiter
from dosewatch.core.domain.exceptions import AdvisorRateLimited, AdvisorUnavailable, GeminiApiError


# --- Helpers ---

class FakeResponse:
    def __init__(self, status_code: int, payload):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def post(self, url, params=None, json=None, timeout=None):
        self.calls.append({"url": url, "params": params, "json": json, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response


def create_provider(session, api_key="secret", rate_limiter=None) -> GeminiLlmProvider:
    return GeminiLlmProvider(api_key=api_key, session=session, rate_limiter=rate_limiter, timeout=5)


def ok_payload(text: str):
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


# --- Tests ---

def test_generate_posts_expected_request():
    session = FakeSession(FakeResponse(200, ok_payload('{"action": "none"}')))
    content = create_provider(session).generate("prompt", "gemini-2.0-flash", 220, 0.2)

    assert content.text == '{"action": "none"}'
    assert content.provider == "gemini"
    call = session.calls[0]
    assert call["url"].endswith("/models/gemini-2.0-flash:generateContent")
    assert call["params"] == {"key": "secret"}
    assert call["json"]["generationConfig"] == {"temperature": 0.2, "maxOutputTokens": 220}
    assert call["json"]["contents"][0]["parts"][0]["text"] == "prompt"
    assert call["timeout"] == 5


def test_missing_key_is_unavailable():
    session = FakeSession(FakeResponse(200, ok_payload("x")))
    with pytest.raises(AdvisorUnavailable):
        create_provider(session, api_key="").generate("p", "m", 10, 0.2)
    assert session.calls == []


def test_rate_limited_by_server():
    session = FakeSession(FakeResponse(429, {"error": {"message": "quota", "status": "RESOURCE_EXHAUSTED"}}))
    with pytest.raises(AdvisorRateLimited):
        create_provider(session).generate("p", "m", 10, 0.2)


def test_api_error_is_normalized():
    session = FakeSession(FakeResponse(400, {"error": {"message": "bad model", "status": "INVALID_ARGUMENT"}}))
    with pytest.raises(GeminiApiError) as exc_info:
        create_provider(session).generate("p", "m", 10, 0.2)
    assert exc_info.value.status_code == 400
    assert exc_info.value.status == "INVALID_ARGUMENT"


def test_network_error_is_unavailable():
    session = FakeSession(error=requests.ConnectionError("unreachable"))
    with pytest.raises(AdvisorUnavailable):
        create_provider(session).generate("p", "m", 10, 0.2)


def test_empty_candidates_are_unavailable():
    session = FakeSession(FakeResponse(200, {"candidates": []}))
    with pytest.raises(AdvisorUnavailable):
        create_provider(session).generate("p", "m", 10, 0.2)


def test_local_request_budget():
    limiter = SlidingWindowRateLimiter(max_events=1, window_seconds=60)
    session = FakeSession(FakeResponse(200, ok_payload("ok")))
    provider = create_provider(session, rate_limiter=limiter)

    provider.generate("p", "m", 10, 0.2)
    with pytest.raises(AdvisorRateLimited) as exc_info:
        provider.generate("p", "m", 10, 0.2)
    assert exc_info.value.retry_after > 0
    assert len(session.calls) == 1


def test_rate_limiter_window_slides():
    limiter = SlidingWindowRateLimiter(max_events=2, window_seconds=60)
    t0 = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

    assert limiter.allow(t0) == (True, 0.0)
    assert limiter.allow(t0 + timedelta(seconds=10))[0]
    allowed, retry_after = limiter.allow(t0 + timedelta(seconds=20))
    assert not allowed
    assert retry_after == pytest.approx(40.0)
    assert limiter.allow(t0 + timedelta(seconds=61))[0]
    assert limiter.in_flight(t0 + timedelta(seconds=61)) == 2


def test_truncated_response_is_flagged():
    payload = ok_payload('{"action": "notify", "title": "Lo')
    payload["candidates"][0]["finishReason"] = "MAX_TOKENS"
    content = create_provider(FakeSession(FakeResponse(200, payload))).generate("p", "m", 10, 0.2)

    assert content.finish_reason == "MAX_TOKENS"
    assert content.truncated
