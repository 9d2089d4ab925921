from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from greenintellect.analysis.example_client_adapter import ExampleAnalysisClient
from greenintellect.analysis.models import AnalysisOutcome, OutcomeKind
from greenintellect.api.app import create_app
from greenintellect.config.settings import Settings

ENDPOINT = "/functions/generate-ai-analysis"


def _client_with(outcome: AnalysisOutcome) -> tuple[TestClient, AsyncMock]:
    analysis_client = ExampleAnalysisClient()
    generate = AsyncMock(return_value=outcome)
    analysis_client.generate = generate  # type: ignore[method-assign]
    app = create_app(Settings(), analysis_client)
    return TestClient(app, raise_server_exceptions=False), generate


class TestGenerateAnalysis:
    def test_success_returns_analysis(self) -> None:
        client, generate = _client_with(AnalysisOutcome.success("Acme looks fine"))

        resp = client.post(ENDPOINT, json={"prompt": "Assess Acme"})

        assert resp.status_code == 200
        assert resp.json() == {"analysis": "Acme looks fine"}
        generate.assert_awaited_once_with("Assess Acme")

    @pytest.mark.parametrize("body", [{}, {"prompt": ""}, {"prompt": "   "}])
    def test_missing_prompt_is_rejected(self, body: dict) -> None:
        client, generate = _client_with(AnalysisOutcome.success("unused"))

        resp = client.post(ENDPOINT, json=body)

        assert resp.status_code == 400
        assert resp.json() == {"error": "Prompt is required"}
        generate.assert_not_awaited()

    def test_invalid_body_is_rejected(self) -> None:
        client, _generate = _client_with(AnalysisOutcome.success("unused"))

        resp = client.post(ENDPOINT, json={"prompt": ["not", "text"]})

        assert resp.status_code == 400
        assert "error" in resp.json()

    @pytest.mark.parametrize(
        ("outcome", "status"),
        [
            (AnalysisOutcome.failure(OutcomeKind.RATE_LIMITED, "slow down"), 429),
            (AnalysisOutcome.failure(OutcomeKind.UNAUTHORIZED, "bad key"), 401),
            (
                AnalysisOutcome.failure(
                    OutcomeKind.PROVIDER_ERROR, "provider broke", provider_status=503
                ),
                503,
            ),
            (AnalysisOutcome.failure(OutcomeKind.MALFORMED_RESPONSE, "garbled"), 500),
            (AnalysisOutcome.failure(OutcomeKind.CONFIGURATION_ERROR, "no key"), 500),
            (AnalysisOutcome.failure(OutcomeKind.TRANSPORT_FAILURE, "reset"), 502),
        ],
    )
    def test_failures_map_to_status(self, outcome: AnalysisOutcome, status: int) -> None:
        client, _generate = _client_with(outcome)

        resp = client.post(ENDPOINT, json={"prompt": "Assess Acme"})

        assert resp.status_code == status
        assert resp.json() == {"error": outcome.message}

    def test_unexpected_exception_is_hidden(self) -> None:
        analysis_client = ExampleAnalysisClient()
        analysis_client.generate = AsyncMock(side_effect=RuntimeError("secret detail"))  # type: ignore[method-assign]
        client = TestClient(create_app(Settings(), analysis_client), raise_server_exceptions=False)

        resp = client.post(
            ENDPOINT,
            json={"prompt": "Assess Acme"},
            headers={"Origin": "https://dashboard.example"},
        )

        assert resp.status_code == 500
        assert resp.json() == {
            "error": "An unexpected error occurred while generating analysis."
        }
        assert resp.headers["access-control-allow-origin"] == "*"


class TestCorsAndHealth:
    def test_preflight_allows_dashboard_headers(self) -> None:
        client, _generate = _client_with(AnalysisOutcome.success("unused"))

        resp = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://dashboard.example",
                "Access-Control-Request-Method": "POST",
                "Access-Control-Request-Headers": "authorization, content-type",
            },
        )

        assert resp.status_code == 200
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_health(self) -> None:
        client, _generate = _client_with(AnalysisOutcome.success("unused"))

        assert client.get("/health").json() == {"status": "ok"}


class TestLifespan:
    def test_builds_client_from_settings_when_not_injected(self) -> None:
        app = create_app(Settings(analysis_provider="example"))

        with TestClient(app) as client:
            resp = client.post(ENDPOINT, json={"prompt": "Assess Acme"})

        assert resp.status_code == 200
        assert resp.json() == {"analysis": ExampleAnalysisClient.DEFAULT_ANALYSIS}
