import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple

from dosewatch.agent.domain.user_settings import DAILY_LIMIT_BOUNDS, VOLUME_THRESHOLD_BOUNDS
from dosewatch.core.domain.exceptions import InvalidDecision


class DecisionAction(Enum):
    NONE = "none"
    NOTIFY = "notify"
    BREAK = "break"
    SYNC = "sync"
    ADJUST_SETTINGS = "adjust_settings"


@dataclass(frozen=True)
class AgentDecision:
    """
    Base of the closed decision union returned by an advisor.
    Build instances through from_payload so numeric fields are validated and clamped.
    """
    reason: Optional[str] = None

    @property
    def action(self) -> DecisionAction:
        raise NotImplementedError

    @classmethod
    def from_payload(
            cls,
            payload: Mapping[str, Any],
            limit_bounds: Tuple[int, int] = DAILY_LIMIT_BOUNDS,
            threshold_bounds: Tuple[int, int] = VOLUME_THRESHOLD_BOUNDS
    ) -> "AgentDecision":
        if not isinstance(payload, Mapping):
            raise InvalidDecision("Decision payload must be a JSON object")
        for key, value in payload.items():
            if isinstance(value, (dict, list)):
                raise InvalidDecision(f"Nested value for '{key}' is not allowed")

        raw_action = payload.get("action")
        try:
            action = DecisionAction(raw_action)
        except ValueError:
            raise InvalidDecision(f"Unknown action: {raw_action!r}")

        reason = _optional_str(payload, "reason")

        if action == DecisionAction.NOTIFY:
            return NotifyDecision(
                reason=reason,
                title=_optional_str(payload, "title"),
                body=_optional_str(payload, "body"),
            )
        if action == DecisionAction.BREAK:
            minutes = _optional_int(payload, "breakMinutes")
            return BreakDecision(reason=reason, break_minutes=minutes if minutes and minutes > 0 else None)
        if action == DecisionAction.SYNC:
            return SyncDecision(reason=reason, trigger_sync=_optional_bool(payload, "triggerSync"))
        if action == DecisionAction.ADJUST_SETTINGS:
            limit = _optional_int(payload, "setDailyLimit")
            threshold = _optional_int(payload, "setVolumeThresholdDB")
            return AdjustSettingsDecision(
                reason=reason,
                set_daily_limit=_clamp(limit, *limit_bounds) if limit is not None else None,
                set_volume_threshold_db=_clamp(threshold, *threshold_bounds) if threshold is not None else None,
            )
        return NoActionDecision(reason=reason)

    def to_payload(self) -> Dict[str, Any]:
        return {"action": self.action.value, "reason": self.reason}


@dataclass(frozen=True)
class NoActionDecision(AgentDecision):
    @property
    def action(self) -> DecisionAction:
        return DecisionAction.NONE


@dataclass(frozen=True)
class NotifyDecision(AgentDecision):
    title: Optional[str] = None
    body: Optional[str] = None

    @property
    def action(self) -> DecisionAction:
        return DecisionAction.NOTIFY

    @property
    def is_deliverable(self) -> bool:
        return bool(self.title) and bool(self.body)

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload.update({"title": self.title, "body": self.body})
        return payload


@dataclass(frozen=True)
class BreakDecision(AgentDecision):
    break_minutes: Optional[int] = None

    @property
    def action(self) -> DecisionAction:
        return DecisionAction.BREAK

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["breakMinutes"] = self.break_minutes
        return payload


@dataclass(frozen=True)
class SyncDecision(AgentDecision):
    trigger_sync: Optional[bool] = None

    @property
    def action(self) -> DecisionAction:
        return DecisionAction.SYNC

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload["triggerSync"] = self.trigger_sync
        return payload


@dataclass(frozen=True)
class AdjustSettingsDecision(AgentDecision):
    set_daily_limit: Optional[int] = None
    set_volume_threshold_db: Optional[int] = None

    @property
    def action(self) -> DecisionAction:
        return DecisionAction.ADJUST_SETTINGS

    def to_payload(self) -> Dict[str, Any]:
        payload = super().to_payload()
        payload.update({
            "setDailyLimit": self.set_daily_limit,
            "setVolumeThresholdDB": self.set_volume_threshold_db,
        })
        return payload


def _clamp(value: int, minimum: int, maximum: int) -> int:
    return max(minimum, min(maximum, value))


def _optional_str(payload: Mapping[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise InvalidDecision(f"'{key}' must be a string or null")
    return value


def _optional_int(payload: Mapping[str, Any], key: str) -> Optional[int]:
    value = payload.get(key)
    if value is None:
        return None
    # bool is an int subclass
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidDecision(f"'{key}' must be a number or null")
    if isinstance(value, float) and not math.isfinite(value):
        raise InvalidDecision(f"'{key}' must be finite")
    return int(round(value))


def _optional_bool(payload: Mapping[str, Any], key: str) -> Optional[bool]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, bool):
        raise InvalidDecision(f"'{key}' must be a boolean or null")
    return value
