from typing import Tuple

from dosewatch.agent.domain.advisor_context import AdvisorContext

DECISION_PROMPT = """
You are a safety-first hearing assistant deciding the next action. Output ONLY valid JSON.

Current state:
- dosePercent: {dosePercent}
- burnRatePerHour: {burnRatePerHour}
- etaMinutes: {etaMinutes}
- isActivelyListening: {isActivelyListening}
- currentLevelDB: {currentLevelDB}
- sessionMinutes: {sessionMinutes}
- dailyExposureLimit: {dailyExposureLimit}
- volumeAlertThresholdDB: {volumeAlertThresholdDB}
- quietHoursActive: {quietHoursActive}

Guardrails:
- Do NOT send notifications when quietHoursActive is true.
- Daily limit can be adjusted only within {limit_min}-{limit_max}.
- Volume alert threshold can be adjusted only within {threshold_min}-{threshold_max}.
- Actions allowed: "none", "notify", "break", "sync", "adjust_settings".

JSON schema:
{{
  "action": "none|notify|break|sync|adjust_settings",
  "title": "string or null",
  "body": "string or null",
  "triggerSync": true|false|null,
  "setDailyLimit": number or null,
  "setVolumeThresholdDB": number or null,
  "breakMinutes": number or null,
  "reason": "string or null"
}}

Respond with JSON only.
"""


def _render(value) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def render_decision_prompt(
        context: AdvisorContext,
        limit_bounds: Tuple[int, int],
        threshold_bounds: Tuple[int, int]
) -> str:
    facts = {key: _render(value) for key, value in context.to_facts().items()}
    if facts["currentLevelDB"] == "null":
        facts["currentLevelDB"] = "unknown"
    return DECISION_PROMPT.format(
        limit_min=limit_bounds[0],
        limit_max=limit_bounds[1],
        threshold_min=threshold_bounds[0],
        threshold_max=threshold_bounds[1],
        **facts,
    ).strip()
