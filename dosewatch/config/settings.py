from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class AgentConfig(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DOSEWATCH_")

    # Evaluation cadence
    EVALUATION_COOLDOWN_SECONDS: float = 60.0
    INTERVENTION_COOLDOWN_SECONDS: float = 10 * 60.0
    ETA_WARNING_SECONDS: float = 30 * 60.0

    # Listening detection
    RECENT_SAMPLE_WINDOW_SECONDS: float = 10 * 60.0
    BURN_RATE_WINDOW_SECONDS: float = 30 * 60.0
    SESSION_GAP_SECONDS: float = 5 * 60.0

    # Compliance
    COMPLIANCE_WINDOW_SECONDS: float = 10 * 60.0
    COMPLIANCE_MIN_ELAPSED_SECONDS: float = 60.0
    COMPLIANCE_BEFORE_WINDOW_SECONDS: float = 5 * 60.0
    STOPPED_LISTENING_AFTER_SECONDS: float = 5 * 60.0
    VOLUME_DROP_THRESHOLD_DB: float = 3.0

    # Background resync
    SYNC_COOLDOWN_SECONDS: float = 10 * 60.0

    # Advisor guardrails
    DAILY_LIMIT_MIN: int = 70
    DAILY_LIMIT_MAX: int = 100
    VOLUME_THRESHOLD_MIN_DB: int = 60
    VOLUME_THRESHOLD_MAX_DB: int = 95

    # Quiet hours are expressed in the listener's wall clock
    LOCAL_TIMEZONE: str = "UTC"

    # Advisor
    ADVISOR_ENABLED: bool = False
    ADVISOR_TIMEOUT_SECONDS: float = 8.0
    ADVISOR_TEMPERATURE: float = 0.2
    ADVISOR_MAX_OUTPUT_TOKENS: int = 220

    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-2.0-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    GEMINI_REQUEST_TIMEOUT_SECONDS: float = 30.0
    GEMINI_MAX_RETRIES: int = 3
    GEMINI_MAX_REQUESTS_PER_MINUTE: int = 15

    # Persistence
    EVENT_STORE_DSN: Optional[str] = None


config = AgentConfig()
