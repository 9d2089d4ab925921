import asyncio
import json
from collections.abc import Callable

import httpx

from greenintellect.analysis.chat_completion_client import (
    SYSTEM_PROMPT,
    ChatCompletionClient,
    is_transient_status,
)
from greenintellect.analysis.models import AnalysisOutcome, OutcomeKind
from greenintellect.analysis.retry import ResilientRequestExecutor

BASE_URL = "https://provider.test/v1"


def _make_client(
    handler: Callable[[httpx.Request], httpx.Response],
    sleep,
    *,
    api_key: str = "test-key",
    max_retries: int = 3,
    **kwargs: object,
) -> ChatCompletionClient:
    http_client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(handler))
    return ChatCompletionClient(
        api_key=api_key,
        base_url=BASE_URL,
        model="llama-3.1-8b-instant",
        executor=ResilientRequestExecutor(
            max_retries, sleep=sleep, should_retry_status=is_transient_status
        ),
        http_client=http_client,
        **kwargs,  # type: ignore[arg-type]
    )


def _generate(client: ChatCompletionClient, prompt: str = "Assess Acme") -> AnalysisOutcome:
    async def _go() -> AnalysisOutcome:
        try:
            return await client.generate(prompt)
        finally:
            await client.aclose()

    return asyncio.run(_go())


def _completion(content: str) -> dict:
    return {"choices": [{"message": {"content": content}}]}


class TestRequestShape:
    def test_sends_bearer_token_and_chat_body(self, recording_sleep) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=_completion("fine"))

        _generate(_make_client(handler, recording_sleep, max_tokens=123, temperature=0.2))

        request = seen[0]
        assert request.url == httpx.URL(f"{BASE_URL}/chat/completions")
        assert request.headers["Authorization"] == "Bearer test-key"
        body = json.loads(request.content)
        assert body["model"] == "llama-3.1-8b-instant"
        assert body["max_tokens"] == 123
        assert body["temperature"] == 0.2
        assert body["messages"] == [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": "Assess Acme"},
        ]


class TestOutcomes:
    def test_success_returns_analysis_text(self, recording_sleep) -> None:
        outcome = _generate(
            _make_client(lambda r: httpx.Response(200, json=_completion("ok")), recording_sleep)
        )

        assert outcome.ok
        assert outcome.analysis_text == "ok"
        assert outcome.http_status == 200

    def test_rate_limited_twice_then_success(self, recording_sleep) -> None:
        responses = iter(
            [httpx.Response(429), httpx.Response(429), httpx.Response(200, json=_completion("ok"))]
        )
        outcome = _generate(_make_client(lambda r: next(responses), recording_sleep))

        assert outcome.ok
        assert outcome.attempts == 3
        assert outcome.analysis_text == "ok"

    def test_persistent_rate_limit(self, recording_sleep) -> None:
        outcome = _generate(_make_client(lambda r: httpx.Response(429), recording_sleep))

        assert outcome.kind is OutcomeKind.RATE_LIMITED
        assert outcome.http_status == 429
        assert outcome.attempts == 3

    def test_unauthorized_is_not_retried(self, recording_sleep) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(401, json={"error": {"message": "bad key"}})

        outcome = _generate(_make_client(handler, recording_sleep))

        assert outcome.kind is OutcomeKind.UNAUTHORIZED
        assert outcome.http_status == 401
        assert len(calls) == 1
        assert recording_sleep.delays == []

    def test_client_error_is_terminal_provider_error(self, recording_sleep) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(400, json={"error": {"message": "context too long"}})

        outcome = _generate(_make_client(handler, recording_sleep))

        assert outcome.kind is OutcomeKind.PROVIDER_ERROR
        assert outcome.http_status == 400
        assert "context too long" in outcome.message
        assert len(calls) == 1

    def test_server_error_retried_then_reported(self, recording_sleep) -> None:
        outcome = _generate(_make_client(lambda r: httpx.Response(503), recording_sleep))

        assert outcome.kind is OutcomeKind.PROVIDER_ERROR
        assert outcome.http_status == 503
        assert outcome.attempts == 3
        assert recording_sleep.delays_ms == [1000, 2000]

    def test_missing_choices_is_malformed(self, recording_sleep) -> None:
        outcome = _generate(
            _make_client(lambda r: httpx.Response(200, json={"choices": []}), recording_sleep)
        )

        assert outcome.kind is OutcomeKind.MALFORMED_RESPONSE
        assert outcome.http_status == 500

    def test_non_json_success_is_malformed(self, recording_sleep) -> None:
        outcome = _generate(
            _make_client(lambda r: httpx.Response(200, text="<html>"), recording_sleep)
        )

        assert outcome.kind is OutcomeKind.MALFORMED_RESPONSE

    def test_network_failure_after_retries(self, recording_sleep) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection reset", request=request)

        outcome = _generate(_make_client(handler, recording_sleep, max_retries=2))

        assert outcome.kind is OutcomeKind.TRANSPORT_FAILURE
        assert outcome.attempts == 2
        assert "connection reset" in outcome.message


class TestGuards:
    def test_missing_api_key_makes_no_request(self, recording_sleep) -> None:
        calls: list[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json=_completion("ok"))

        outcome = _generate(_make_client(handler, recording_sleep, api_key=""))

        assert outcome.kind is OutcomeKind.CONFIGURATION_ERROR
        assert outcome.http_status == 500
        assert calls == []

    def test_requests_inside_min_interval_are_skipped(self, recording_sleep) -> None:
        calls: list[int] = []
        now = [100.0]

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(1)
            return httpx.Response(200, json=_completion("ok"))

        client = _make_client(
            handler, recording_sleep, min_interval_seconds=5.0, clock=lambda: now[0]
        )

        async def _go() -> list[AnalysisOutcome]:
            first = await client.generate("one")
            now[0] += 1.0
            second = await client.generate("two")
            now[0] += 10.0
            third = await client.generate("three")
            await client.aclose()
            return [first, second, third]

        first, second, third = asyncio.run(_go())

        assert first.ok
        assert second.kind is OutcomeKind.RATE_LIMITED
        assert third.ok
        assert len(calls) == 2
