"""HTTP proxy between the dashboard and the analysis provider.

The provider API key stays on the server. The browser only ever sends a
prompt and receives either the analysis text or an error message.
"""

import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.responses import Response

from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.factory import AnalysisClientFactory
from greenintellect.api.schemas import AnalysisRequest, AnalysisResponse, ErrorResponse
from greenintellect.config.settings import Settings
from greenintellect.logging.logger import Log

CORS_ALLOW_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]
UNEXPECTED_ERROR = "An unexpected error occurred while generating analysis."


def _error(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code, content=ErrorResponse(error=message).model_dump()
    )


def create_app(settings: Settings, client: BaseAnalysisClient | None = None) -> FastAPI:
    """Build the proxy app. A client can be injected; otherwise one is built from settings."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owns_client = app.state.analysis_client is None
        if owns_client:
            app.state.analysis_client = AnalysisClientFactory.create(settings)
        try:
            yield
        finally:
            if owns_client:
                await app.state.analysis_client.aclose()
                app.state.analysis_client = None

    app = FastAPI(title="GreenIntellect Analysis Proxy", lifespan=lifespan)
    app.state.analysis_client = client

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["POST", "OPTIONS"],
        allow_headers=CORS_ALLOW_HEADERS,
    )

    @app.middleware("http")
    async def log_requests(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        started = time.perf_counter()
        response = await call_next(request)
        latency_ms = round((time.perf_counter() - started) * 1000, 2)
        Log.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({latency_ms}ms)"
        )
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        Log.warning(f"Invalid request body on {request.url.path}: {len(exc.errors())} error(s)")
        return _error("Invalid request body", status.HTTP_400_BAD_REQUEST)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        Log.exception(f"Error in analysis proxy on {request.url.path}: {exc}")
        return _error(UNEXPECTED_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.post(
        "/functions/generate-ai-analysis",
        response_model=AnalysisResponse,
        responses={400: {"model": ErrorResponse}, 429: {"model": ErrorResponse}},
    )
    async def generate_ai_analysis(body: AnalysisRequest, request: Request) -> JSONResponse:
        prompt = body.prompt or ""
        if not prompt.strip():
            return _error("Prompt is required", status.HTTP_400_BAD_REQUEST)

        Log.info("Processing AI analysis request")
        analysis_client: BaseAnalysisClient = request.app.state.analysis_client
        # The 500 must still carry CORS headers.
        try:
            outcome = await analysis_client.generate(prompt)
        except Exception as exc:
            Log.exception(f"Error in analysis proxy on {request.url.path}: {exc}")
            return _error(UNEXPECTED_ERROR, status.HTTP_500_INTERNAL_SERVER_ERROR)
        if not outcome.ok:
            return _error(outcome.message, outcome.http_status)
        return JSONResponse(
            content=AnalysisResponse(analysis=outcome.analysis_text or "").model_dump()
        )

    return app
