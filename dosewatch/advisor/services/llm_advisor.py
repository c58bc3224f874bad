from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Optional, Tuple

from dosewatch.advisor.interfaces.llm_provider import LlmProvider
from dosewatch.advisor.providers.gemini_provider import GeminiLlmProvider
from dosewatch.advisor.services.advisor_prompt import render_decision_prompt
from dosewatch.advisor.services.request_rate_limiter import SlidingWindowRateLimiter
from dosewatch.agent.domain.advisor_context import AdvisorContext
from dosewatch.agent.domain.agent_decision import AgentDecision
from dosewatch.agent.domain.user_settings import DAILY_LIMIT_BOUNDS, VOLUME_THRESHOLD_BOUNDS
from dosewatch.agent.interfaces.advisor_port import AdvisorPort
from dosewatch.agent.services.decision_parser import parse_decision
from dosewatch.config.settings import AgentConfig
from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger


class LlmAdvisor(AdvisorPort):
    """
    AdvisorPort backed by a text-generation provider.
    Waits at most timeout_seconds for the provider; on timeout or error there is no decision.
    """

    def __init__(
            self,
            provider: LlmProvider,
            model: str,
            timeout_seconds: float = 8.0,
            temperature: float = 0.2,
            max_output_tokens: int = 220,
            limit_bounds: Tuple[int, int] = DAILY_LIMIT_BOUNDS,
            threshold_bounds: Tuple[int, int] = VOLUME_THRESHOLD_BOUNDS,
            structured_logger: Optional[StructuredAgentLogger] = None
    ):
        self.provider = provider
        self.model = model
        self.timeout_seconds = timeout_seconds
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self.limit_bounds = limit_bounds
        self.threshold_bounds = threshold_bounds
        self.structured_logger = structured_logger or StructuredAgentLogger()
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="advisor")

    @classmethod
    def from_config(cls, settings: AgentConfig) -> Optional["LlmAdvisor"]:
        if not settings.ADVISOR_ENABLED or not settings.GEMINI_API_KEY:
            return None
        provider = GeminiLlmProvider(
            api_key=settings.GEMINI_API_KEY,
            base_url=settings.GEMINI_BASE_URL,
            max_retries=settings.GEMINI_MAX_RETRIES,
            timeout=settings.GEMINI_REQUEST_TIMEOUT_SECONDS,
            rate_limiter=SlidingWindowRateLimiter(settings.GEMINI_MAX_REQUESTS_PER_MINUTE, 60),
        )
        return cls(
            provider=provider,
            model=settings.GEMINI_MODEL,
            timeout_seconds=settings.ADVISOR_TIMEOUT_SECONDS,
            temperature=settings.ADVISOR_TEMPERATURE,
            max_output_tokens=settings.ADVISOR_MAX_OUTPUT_TOKENS,
            limit_bounds=(settings.DAILY_LIMIT_MIN, settings.DAILY_LIMIT_MAX),
            threshold_bounds=(settings.VOLUME_THRESHOLD_MIN_DB, settings.VOLUME_THRESHOLD_MAX_DB),
        )

    def decide(self, context: AdvisorContext) -> Optional[AgentDecision]:
        prompt = render_decision_prompt(context, self.limit_bounds, self.threshold_bounds)
        future = self._executor.submit(
            self.provider.generate,
            prompt,
            self.model,
            self.max_output_tokens,
            self.temperature,
        )
        try:
            content = future.result(timeout=self.timeout_seconds)
        except FutureTimeout:
            future.cancel()
            self.structured_logger.warn("advisor_timeout", timeout_seconds=self.timeout_seconds)
            return None
        except Exception as exc:
            self.structured_logger.warn("advisor_error", error=str(exc), error_type=type(exc).__name__)
            return None

        decision = parse_decision(content.text, self.limit_bounds, self.threshold_bounds)
        if decision is None:
            self.structured_logger.warn(
                "advisor_unparseable",
                provider=content.provider,
                truncated=content.truncated,
                text=content.text[:200],
            )
        return decision

    def close(self) -> None:
        self._executor.shutdown(wait=False)
