import json
from typing import Any, Optional, Tuple

from dosewatch.agent.domain.agent_decision import AgentDecision
from dosewatch.agent.domain.user_settings import DAILY_LIMIT_BOUNDS, VOLUME_THRESHOLD_BOUNDS
from dosewatch.core.domain.exceptions import InvalidDecision


def extract_json_object(text: str) -> Optional[str]:
    """
    Returns the first balanced {...} span of text, skipping braces inside JSON strings.
    """
    start = text.find("{")
    while start != -1:
        depth = 0
        in_string = False
        escaped = False
        for index in range(start, len(text)):
            char = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif char == "\\":
                    escaped = True
                elif char == '"':
                    in_string = False
                continue
            if char == '"':
                in_string = True
            elif char == "{":
                depth += 1
            elif char == "}":
                depth -= 1
                if depth == 0:
                    return text[start:index + 1]
        # Unbalanced from this brace, try the next one
        start = text.find("{", start + 1)
    return None


def _load_object(text: str) -> Optional[Any]:
    try:
        return json.loads(text)
    except (json.JSONDecodeError, TypeError):
        return None


def parse_decision(
        response: Optional[str],
        limit_bounds: Tuple[int, int] = DAILY_LIMIT_BOUNDS,
        threshold_bounds: Tuple[int, int] = VOLUME_THRESHOLD_BOUNDS
) -> Optional[AgentDecision]:
    """
    Decodes an advisor response into a decision.
    Returns None for anything that is not a valid flat decision object.
    """
    if not response or not response.strip():
        return None

    payload = _load_object(response.strip())
    if not isinstance(payload, dict):
        span = extract_json_object(response)
        if span is None:
            return None
        payload = _load_object(span)
        if not isinstance(payload, dict):
            return None

    try:
        return AgentDecision.from_payload(payload, limit_bounds, threshold_bounds)
    except InvalidDecision:
        return None
