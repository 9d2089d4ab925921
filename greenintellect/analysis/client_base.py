from abc import ABC, abstractmethod

from greenintellect.analysis.models import AnalysisOutcome


class BaseAnalysisClient(ABC):
    """Contract for provider-specific greenwashing analysis clients."""

    @abstractmethod
    async def generate(self, prompt: str) -> AnalysisOutcome:
        """Send one prompt to the provider and classify the final result.

        Implementations never raise for provider or network failures; every
        failure is returned as a non-success AnalysisOutcome.
        """

    async def aclose(self) -> None:
        """Release network resources held by the client."""
