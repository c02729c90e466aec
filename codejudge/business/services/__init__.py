from .advisory import AdvisoryClient
from .grading import GradingService, round_half_up
from .runtimes import SUPPORTED_LANGUAGES, get_runtime, is_supported
from .sandbox import SandboxExecutor
from .test_runner import TestCaseRunner

__all__ = [
    "AdvisoryClient",
    "GradingService",
    "round_half_up",
    "SUPPORTED_LANGUAGES",
    "get_runtime",
    "is_supported",
    "SandboxExecutor",
    "TestCaseRunner",
]
