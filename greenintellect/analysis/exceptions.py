class AnalysisError(Exception):
    """Raised when an AI analysis request fails."""


class ConfigurationError(AnalysisError):
    """Raised when the analysis provider is not configured, e.g. a missing prompt template."""


class TransportError(AnalysisError):
    """Raised when the request never produced a usable response (network/timeout).

    status_code is set when the failure is tied to an HTTP status.
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
