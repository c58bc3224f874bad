from abc import ABC, abstractmethod
from typing import Optional

from dosewatch.agent.domain.advisor_context import AdvisorContext
from dosewatch.agent.domain.agent_decision import AgentDecision


class AdvisorPort(ABC):
    """
    Optional external decision source consulted before the built-in rules.
    Returns None when it has no usable decision.
    """
    @abstractmethod
    def decide(self, context: AdvisorContext) -> Optional[AgentDecision]:
        pass
