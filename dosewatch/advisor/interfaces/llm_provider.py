from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

TRUNCATED_FINISH_REASONS = ("MAX_TOKENS", "length")


@dataclass(frozen=True)
class GeneratedContent:
    text: str
    provider: str
    model: str
    finish_reason: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def truncated(self) -> bool:
        # A cut-off decision usually fails to parse
        return self.finish_reason in TRUNCATED_FINISH_REASONS


class LlmProvider(ABC):
    """
    Text generation backend behind the advisor.
    Implementations raise AdvisorUnavailable (or a subclass) when no text can be produced.
    """

    @abstractmethod
    def generate(
        self,
        prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
        trace_id: Optional[str] = None,
    ) -> GeneratedContent:
        pass
