import json
import logging
from uuid import uuid4

from dosewatch.core.logging.structured_agent_logger import StructuredAgentLogger


def test_emit_writes_one_json_line(caplog):
    intervention_id = uuid4()
    with caplog.at_level(logging.INFO, logger="dosewatch.agent"):
        StructuredAgentLogger().emit("intervention_recorded", intervention_id=intervention_id, dose_percent=71.5)

    record = caplog.records[-1]
    assert record.levelno == logging.INFO
    payload = json.loads(record.getMessage())
    assert payload["event_type"] == "intervention_recorded"
    assert payload["intervention_id"] == str(intervention_id)
    assert payload["dose_percent"] == 71.5
    assert "timestamp" in payload


def test_warn_uses_warning_level(caplog):
    logger = logging.getLogger("dosewatch.test")
    with caplog.at_level(logging.INFO, logger="dosewatch.test"):
        StructuredAgentLogger(logger).warn("advisor_fallback", reason="error")

    assert caplog.records[-1].levelno == logging.WARNING
    assert json.loads(caplog.records[-1].getMessage())["reason"] == "error"
