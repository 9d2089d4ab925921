from dataclasses import dataclass
from enum import Enum


class OutcomeKind(str, Enum):
    """Final classification of one analysis request."""

    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    UNAUTHORIZED = "unauthorized"
    PROVIDER_ERROR = "provider_error"
    MALFORMED_RESPONSE = "malformed_response"
    TRANSPORT_FAILURE = "transport_failure"
    CONFIGURATION_ERROR = "configuration_error"


_DEFAULT_STATUS: dict[OutcomeKind, int] = {
    OutcomeKind.SUCCESS: 200,
    OutcomeKind.RATE_LIMITED: 429,
    OutcomeKind.UNAUTHORIZED: 401,
    OutcomeKind.PROVIDER_ERROR: 502,
    OutcomeKind.MALFORMED_RESPONSE: 500,
    OutcomeKind.TRANSPORT_FAILURE: 502,
    OutcomeKind.CONFIGURATION_ERROR: 500,
}


@dataclass(frozen=True)
class AnalysisOutcome:
    """What the proxy hands back to the dashboard for one prompt."""

    kind: OutcomeKind
    analysis_text: str | None = None
    message: str = ""
    provider_status: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS

    @property
    def http_status(self) -> int:
        """Status the proxy answers with. Provider errors mirror the provider's status."""
        if self.kind is OutcomeKind.PROVIDER_ERROR and self.provider_status:
            return self.provider_status
        return _DEFAULT_STATUS[self.kind]

    @classmethod
    def success(cls, analysis_text: str, attempts: int = 1) -> "AnalysisOutcome":
        return cls(OutcomeKind.SUCCESS, analysis_text=analysis_text, attempts=attempts)

    @classmethod
    def failure(
        cls,
        kind: OutcomeKind,
        message: str,
        *,
        provider_status: int | None = None,
        attempts: int = 0,
    ) -> "AnalysisOutcome":
        return cls(kind, message=message, provider_status=provider_status, attempts=attempts)


@dataclass(frozen=True)
class CompanyScores:
    """Greenwashing scores for one company report, each on a 0-100 scale."""

    name: str
    industry: str
    report_year: int
    overall_score: int
    focus_score: int
    environment_score: int
    claims_score: int
    actions_score: int
    net_action_direction: str = "Neutral"
