from typing import List, Optional

from pydantic import Field

from codejudge.data.schemas.base import CamelModel
from codejudge.data.schemas.execution import TestCaseResult


class CodingQuestionResult(CamelModel):
    problem_id: int
    passed: bool
    score: int = 0
    max_score: Optional[int] = None
    results: List[TestCaseResult] = Field(default_factory=list)
    error: Optional[str] = None
    submission_id: Optional[int] = None


class CodingTestResult(CamelModel):
    test_id: int
    user_id: int
    completed: bool = True
    score: int
    max_score: int
    results: List[CodingQuestionResult] = Field(default_factory=list)


class MCQAnswerResult(CamelModel):
    question_id: int
    correct: bool
    correct_answer_id: Optional[int] = None
    selected_answer_id: Optional[int] = None
    message: Optional[str] = None


class MCQTestResult(CamelModel):
    test_id: int
    user_id: int
    completed: bool = True
    score: int
    max_score: int
    percentage_score: int
    results: List[MCQAnswerResult] = Field(default_factory=list)


class CodeAnalysis(CamelModel):
    """Advisory feedback; never affects a verdict."""

    time_complexity: str = "unknown"
    space_complexity: str = "unknown"
    feedback: str = ""
    optimizations: List[str] = Field(default_factory=list)
