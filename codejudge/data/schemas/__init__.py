from .base import CamelModel
from .enums import AssessmentType, ExitStatus, Language, SubmissionStatus
from .execution import (
    ExecuteRequest,
    ExecuteResponse,
    ExecutionResult,
    TestCaseResult,
    TestCodeRequest,
    TestRunResult,
)
from .grading import (
    CodeAnalysis,
    CodingQuestionResult,
    CodingTestResult,
    MCQAnswerResult,
    MCQTestResult,
)
from .problem import (
    Assessment,
    CodingProblem,
    CodingQuestion,
    MCQQuestion,
    PublicAssessment,
    Question,
)
from .submission import (
    AnalyzeRequest,
    CodingTestItem,
    CodingTestSubmissionRequest,
    MCQAnswer,
    MCQTestSubmissionRequest,
    Submission,
    SubmissionCreate,
    SubmissionResponse,
    SubmitSolutionRequest,
    SubmitSolutionResponse,
)
from .testcase import NamedParameter, TestCase

__all__ = [
    "CamelModel",
    "AssessmentType",
    "ExitStatus",
    "Language",
    "SubmissionStatus",
    "ExecuteRequest",
    "ExecuteResponse",
    "ExecutionResult",
    "TestCaseResult",
    "TestCodeRequest",
    "TestRunResult",
    "CodeAnalysis",
    "CodingQuestionResult",
    "CodingTestResult",
    "MCQAnswerResult",
    "MCQTestResult",
    "Assessment",
    "CodingProblem",
    "CodingQuestion",
    "MCQQuestion",
    "PublicAssessment",
    "Question",
    "AnalyzeRequest",
    "CodingTestItem",
    "CodingTestSubmissionRequest",
    "MCQAnswer",
    "MCQTestSubmissionRequest",
    "Submission",
    "SubmissionCreate",
    "SubmissionResponse",
    "SubmitSolutionRequest",
    "SubmitSolutionResponse",
    "NamedParameter",
    "TestCase",
]
