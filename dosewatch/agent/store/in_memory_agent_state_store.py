from dataclasses import replace
from typing import Optional

from dosewatch.agent.domain.agent_state import AgentState
from dosewatch.agent.interfaces.agent_state_store import AgentStateStore


class InMemoryAgentStateStore(AgentStateStore):
    def __init__(self, initial: Optional[AgentState] = None):
        self._state = initial or AgentState()

    def load(self) -> AgentState:
        return replace(self._state)

    def save(self, state: AgentState) -> None:
        self._state = replace(state)
