from abc import ABC, abstractmethod

from dosewatch.agent.domain.agent_state import AgentState


class AgentStateStore(ABC):
    @abstractmethod
    def load(self) -> AgentState:
        pass

    @abstractmethod
    def save(self, state: AgentState) -> None:
        pass
