from .assessment import assessment_router
from .execution import execution_router
from .health import health_router
from .problem import analysis_router, problem_router
from .submission import submission_router

__all__ = [
    "assessment_router",
    "execution_router",
    "health_router",
    "analysis_router",
    "problem_router",
    "submission_router",
]
