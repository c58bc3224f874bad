class SettingOutOfRange(ValueError):
    """Raised when a settings setter receives a value outside its allowed bounds."""
    def __init__(self, name: str, value: float, minimum: float, maximum: float):
        super().__init__(f"{name}={value} outside [{minimum}, {maximum}]")
        self.name = name
        self.value = value
        self.minimum = minimum
        self.maximum = maximum

class InterventionAlreadyResolved(Exception):
    """Raised when an intervention is resolved a second time."""
    pass

class AdvisorUnavailable(Exception):
    """Raised when the advisory provider cannot be reached or is not configured."""
    pass

class AdvisorRateLimited(AdvisorUnavailable):
    """Raised when the local request budget for the advisory provider is exhausted."""
    def __init__(self, retry_after: float):
        super().__init__(f"Advisor rate limited, retry after {retry_after:.1f}s")
        self.retry_after = retry_after

class GeminiApiError(AdvisorUnavailable):
    """Error payload returned by the Gemini API."""
    def __init__(self, status_code: int, message: str, status: str = ""):
        super().__init__(f"Gemini API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.status = status

class InvalidDecision(ValueError):
    """Raised when an advisory payload does not match the closed decision schema."""
    pass
