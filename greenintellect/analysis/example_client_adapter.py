"""Example analysis client.

Use this module as a reference when adding a provider that does not speak the
OpenAI-compatible chat API. Implement BaseAnalysisClient and register the
provider in AnalysisClientFactory.
"""

from typing import ClassVar

from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.models import AnalysisOutcome


class ExampleAnalysisClient(BaseAnalysisClient):
    """Returns a fixed analysis without any network call.

    Useful for local development of the dashboard and for tests.
    """

    DEFAULT_ANALYSIS: ClassVar[str] = (
        "## Overall Assessment\n"
        "- Example analysis generated without contacting a provider.\n"
    )

    def __init__(self, analysis_text: str | None = None) -> None:
        self._analysis_text = analysis_text or self.DEFAULT_ANALYSIS
        self.prompts: list[str] = []

    async def generate(self, prompt: str) -> AnalysisOutcome:
        self.prompts.append(prompt)
        return AnalysisOutcome.success(self._analysis_text)
