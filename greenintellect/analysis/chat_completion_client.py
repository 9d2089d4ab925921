import time
from collections.abc import Callable
from typing import Any

import httpx

from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.models import AnalysisOutcome, OutcomeKind
from greenintellect.analysis.retry import ExecutionResult, ResilientRequestExecutor
from greenintellect.logging.logger import Log

SYSTEM_PROMPT = (
    "You are a professional sustainability and ESG analyst specializing in greenwashing "
    "detection. Provide detailed, actionable analysis based on company scoring data. Your "
    "analysis should be comprehensive, evidence-based, and suitable for investment "
    "decision-making. Format your response in clear sections with headers and bullet "
    "points for readability."
)


def is_transient_status(status_code: int) -> bool:
    """5xx is retried. 401 and other 4xx are terminal (429 is handled by the executor)."""
    return status_code >= 500


class ChatCompletionClient(BaseAnalysisClient):
    """Analysis client for any OpenAI-compatible chat completions endpoint."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str,
        model: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
        timeout_seconds: int = 60,
        executor: ResilientRequestExecutor | None = None,
        http_client: httpx.AsyncClient | None = None,
        min_interval_seconds: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._max_tokens = max_tokens
        self._executor = executor or ResilientRequestExecutor(
            should_retry_status=is_transient_status
        )
        self._client = http_client or httpx.AsyncClient(
            base_url=base_url, timeout=timeout_seconds
        )
        self._min_interval_seconds = min_interval_seconds
        self._clock = clock
        self._last_request_at: float | None = None

    async def generate(self, prompt: str) -> AnalysisOutcome:
        if not self._api_key:
            Log.error("Analysis API key not found in configuration")
            return AnalysisOutcome.failure(
                OutcomeKind.CONFIGURATION_ERROR,
                "Analysis API key is not configured. Please contact support.",
            )
        if self._throttled():
            Log.info("Rate limiting: skipping request")
            return AnalysisOutcome.failure(
                OutcomeKind.RATE_LIMITED,
                "AI service is temporarily busy. Please wait a moment before trying again.",
            )

        body = self._build_body(prompt)
        headers = {"Authorization": f"Bearer {self._api_key}"}

        async def send() -> httpx.Response:
            Log.debug(f"Requesting chat completion from model {self._model}")
            return await self._client.post("/chat/completions", json=body, headers=headers)

        result = await self._executor.execute(send)
        outcome = self._classify(result)
        if outcome.ok:
            Log.info(f"Received analysis after {outcome.attempts} attempt(s)")
        else:
            Log.error(f"Analysis request failed ({outcome.kind.value}): {outcome.message}")
        return outcome

    async def aclose(self) -> None:
        await self._client.aclose()

    def _throttled(self) -> bool:
        now = self._clock()
        last = self._last_request_at
        if last is not None and now - last < self._min_interval_seconds:
            return True
        self._last_request_at = now
        return False

    def _build_body(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self._model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "max_tokens": self._max_tokens,
            "temperature": self._temperature,
        }

    @staticmethod
    def _classify(result: ExecutionResult) -> AnalysisOutcome:
        attempts = result.attempts
        if result.error is not None:
            return AnalysisOutcome.failure(
                OutcomeKind.TRANSPORT_FAILURE,
                f"Analysis provider network error: {result.error}",
                provider_status=result.error.status_code,
                attempts=attempts,
            )

        response = result.unwrap()
        status = response.status_code
        if status == 429:
            return AnalysisOutcome.failure(
                OutcomeKind.RATE_LIMITED,
                "Analysis provider rate limit exceeded. Please try again in a few moments.",
                provider_status=status,
                attempts=attempts,
            )
        if status == 401:
            return AnalysisOutcome.failure(
                OutcomeKind.UNAUTHORIZED,
                "Invalid analysis API key. Please check your configuration.",
                provider_status=status,
                attempts=attempts,
            )

        payload = _json_or_none(response)
        if not response.is_success:
            detail = _error_message(payload)
            return AnalysisOutcome.failure(
                OutcomeKind.PROVIDER_ERROR,
                f"Analysis provider error: {response.reason_phrase}. {detail}".strip(),
                provider_status=status,
                attempts=attempts,
            )

        content = _message_content(payload)
        if content is None:
            Log.error(f"Invalid response format: {payload!r}")
            return AnalysisOutcome.failure(
                OutcomeKind.MALFORMED_RESPONSE,
                "Invalid response format from analysis provider",
                provider_status=status,
                attempts=attempts,
            )
        return AnalysisOutcome.success(content, attempts=attempts)


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _error_message(payload: Any) -> str:
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and isinstance(error.get("message"), str):
            return error["message"]
    return ""


def _message_content(payload: Any) -> str | None:
    """Return choices[0].message.content when present and non-empty."""
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str) or not content:
        return None
    return content
