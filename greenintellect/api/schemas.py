from pydantic import BaseModel


class AnalysisRequest(BaseModel):
    """Body sent by the dashboard to the analysis proxy."""

    prompt: str | None = None


class AnalysisResponse(BaseModel):
    analysis: str


class ErrorResponse(BaseModel):
    error: str
