from dosewatch.agent.domain.agent_decision import (
    AdjustSettingsDecision,
    BreakDecision,
    DecisionAction,
    NoActionDecision,
    NotifyDecision,
    SyncDecision,
)
from dosewatch.agent.services.decision_parser import extract_json_object, parse_decision


def test_plain_json_notify():
    decision = parse_decision('{"action": "notify", "title": "Heads up", "body": "Lower it", "reason": "pace"}')
    assert isinstance(decision, NotifyDecision)
    assert decision.is_deliverable
    assert decision.reason == "pace"


def test_json_embedded_in_prose():
    text = 'Sure! Here is my decision:\n```json\n{"action": "break", "breakMinutes": 10}\n```\nStay safe.'
    decision = parse_decision(text)
    assert isinstance(decision, BreakDecision)
    assert decision.break_minutes == 10


def test_braces_inside_strings_are_ignored():
    text = 'note {oops {"action": "notify", "title": "a}b", "body": "c"}'
    assert extract_json_object(text) == '{"action": "notify", "title": "a}b", "body": "c"}'


def test_adjust_settings_clamped():
    decision = parse_decision('{"action": "adjust_settings", "setDailyLimit": 150, "setVolumeThresholdDB": 99.6}')
    assert isinstance(decision, AdjustSettingsDecision)
    assert decision.set_daily_limit == 100
    assert decision.set_volume_threshold_db == 95


def test_non_positive_break_minutes_use_default():
    decision = parse_decision('{"action": "break", "breakMinutes": 0}')
    assert decision.break_minutes is None


def test_sync_flag():
    decision = parse_decision('{"action": "sync", "triggerSync": true}')
    assert isinstance(decision, SyncDecision)
    assert decision.trigger_sync is True


def test_none_action():
    decision = parse_decision('{"action": "none", "reason": "quiet pace"}')
    assert isinstance(decision, NoActionDecision)
    assert decision.action == DecisionAction.NONE


def test_malformed_responses_are_no_decision():
    assert parse_decision("") is None
    assert parse_decision("take a break") is None
    assert parse_decision('{"action": "notify", "title": ') is None
    assert parse_decision('["action", "notify"]') is None
    assert parse_decision('{"action": "shutdown"}') is None
    assert parse_decision('{"action": "notify", "title": {"nested": true}}') is None
    assert parse_decision('{"action": "break", "breakMinutes": "ten"}') is None
    assert parse_decision('{"action": "sync", "triggerSync": 1}') is None
    assert parse_decision('{"action": "adjust_settings", "setDailyLimit": Infinity}') is None
    assert parse_decision('{"action": "adjust_settings", "setVolumeThresholdDB": -Infinity}') is None
    assert parse_decision('{"action": "break", "breakMinutes": NaN}') is None
    assert parse_decision('{"action": "adjust_settings", "setDailyLimit": 1e999}') is None


def test_payload_round_trip_shape():
    decision = parse_decision('{"action": "adjust_settings", "setDailyLimit": 80}')
    assert decision.to_payload() == {
        "action": "adjust_settings",
        "reason": None,
        "setDailyLimit": 80,
        "setVolumeThresholdDB": None,
    }


def test_huge_integers_are_clamped():
    decision = parse_decision('{"action": "adjust_settings", "setDailyLimit": ' + "9" * 400 + "}")
    assert decision.set_daily_limit == 100
