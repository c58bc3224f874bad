import threading
from typing import Optional

import pytest

from dosewatch.advisor.interfaces.llm_provider import GeneratedContent, LlmProvider
from dosewatch.advisor.providers.mock_provider import MockLlmProvider
from dosewatch.advisor.services.llm_advisor import LlmAdvisor
from dosewatch.agent.domain.advisor_context import AdvisorContext
from dosewatch.agent.domain.agent_decision import BreakDecision, NotifyDecision
from dosewatch.config.settings import AgentConfig


# --- Helpers ---

def create_context(level: Optional[float] = 88.4, quiet: bool = False) -> AdvisorContext:
    return AdvisorContext(
        dose_percent=62.7,
        burn_rate_per_hour=18.26,
        eta_seconds=2 * 3600 + 30,
        is_actively_listening=True,
        current_level_db=level,
        session_minutes=47,
        daily_exposure_limit_percent=100,
        volume_alert_threshold_db=85,
        quiet_hours_active=quiet,
    )


class BlockingProvider(LlmProvider):
    def __init__(self):
        self.release = threading.Event()

    def generate(self, prompt, model, max_tokens, temperature, trace_id=None) -> GeneratedContent:
        self.release.wait(5)
        return GeneratedContent(text='{"action": "break"}', provider="blocking", model=model)


class FailingProvider(LlmProvider):
    def generate(self, prompt, model, max_tokens, temperature, trace_id=None) -> GeneratedContent:
        raise RuntimeError("provider exploded")


@pytest.fixture
def advisor_factory():
    created = []

    def factory(provider, **kwargs):
        advisor = LlmAdvisor(provider, model="test-model", **kwargs)
        created.append(advisor)
        return advisor

    yield factory
    for advisor in created:
        advisor.close()


# --- Tests ---

def test_prompt_carries_context_facts(advisor_factory):
    provider = MockLlmProvider(['{"action": "break", "breakMinutes": 7}'])
    decision = advisor_factory(provider).decide(create_context())

    assert isinstance(decision, BreakDecision)
    assert decision.break_minutes == 7
    prompt = provider.prompts[0]
    assert "dosePercent: 62" in prompt
    assert "burnRatePerHour: 18.3" in prompt
    assert "etaMinutes: 120" in prompt
    assert "currentLevelDB: 88.4" in prompt
    assert "quietHoursActive: false" in prompt
    assert "within 70-100" in prompt


def test_unknown_level_is_rendered_explicitly(advisor_factory):
    provider = MockLlmProvider()
    advisor_factory(provider).decide(create_context(level=None))
    assert "currentLevelDB: unknown" in provider.prompts[0]


def test_response_with_prose_is_decoded(advisor_factory):
    provider = MockLlmProvider(['Decision: {"action": "notify", "title": "Easy", "body": "Lower it"} thanks'])
    decision = advisor_factory(provider).decide(create_context())
    assert isinstance(decision, NotifyDecision)


def test_unparseable_response_is_no_decision(advisor_factory):
    provider = MockLlmProvider(["I would suggest a break."])
    assert advisor_factory(provider).decide(create_context()) is None


def test_provider_error_is_no_decision(advisor_factory):
    assert advisor_factory(FailingProvider()).decide(create_context()) is None


def test_timeout_is_no_decision(advisor_factory):
    provider = BlockingProvider()
    advisor = advisor_factory(provider, timeout_seconds=0.05)
    try:
        assert advisor.decide(create_context()) is None
    finally:
        provider.release.set()


def test_from_config_requires_enabled_and_key():
    assert LlmAdvisor.from_config(AgentConfig(ADVISOR_ENABLED=False, GEMINI_API_KEY="k")) is None
    assert LlmAdvisor.from_config(AgentConfig(ADVISOR_ENABLED=True, GEMINI_API_KEY="")) is None

    advisor = LlmAdvisor.from_config(AgentConfig(ADVISOR_ENABLED=True, GEMINI_API_KEY="k", ADVISOR_TIMEOUT_SECONDS=3))
    try:
        assert advisor.timeout_seconds == 3
        assert advisor.model == "gemini-2.0-flash"
    finally:
        advisor.close()
