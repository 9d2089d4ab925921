from greenintellect.analysis.client_base import BaseAnalysisClient
from greenintellect.analysis.factory import AnalysisClientFactory
from greenintellect.analysis.models import AnalysisOutcome, OutcomeKind
from greenintellect.analysis.retry import ExecutionResult, ResilientRequestExecutor

__all__ = [
    "AnalysisClientFactory",
    "AnalysisOutcome",
    "BaseAnalysisClient",
    "ExecutionResult",
    "OutcomeKind",
    "ResilientRequestExecutor",
]
