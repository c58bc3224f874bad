from typing import List, Optional, Sequence

from dosewatch.advisor.interfaces.llm_provider import GeneratedContent, LlmProvider


class MockLlmProvider(LlmProvider):
    """
    Replays scripted responses in order; the last one repeats once the script runs out.
    """

    def __init__(self, responses: Sequence[str] = ('{"action": "none"}',), name: str = "mock"):
        self.responses = list(responses)
        self.name = name
        self.prompts: List[str] = []

    def generate(
        self,
        prompt: str,
        model: str,
        max_tokens: int,
        temperature: float,
        trace_id: Optional[str] = None,
    ) -> GeneratedContent:
        self.prompts.append(prompt)
        index = min(len(self.prompts) - 1, len(self.responses) - 1)
        return GeneratedContent(
            text=self.responses[index],
            provider=self.name,
            model=model,
            metadata={"trace_id": trace_id, "temperature": temperature},
        )
