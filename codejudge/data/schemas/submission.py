from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import Field as PydanticField
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel

from codejudge.data.schemas.base import CamelModel
from codejudge.data.schemas.enums import Language, SubmissionStatus


class Submission(SQLModel, table=True):
    """One attempt at solving a problem or answering a test question."""

    __tablename__ = "submissions"

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(index=True, nullable=False)
    problem_id: Optional[int] = Field(default=None, index=True)
    test_id: Optional[int] = Field(default=None, index=True)
    code: str = Field(nullable=False)
    language: Language = Field(nullable=False)
    status: SubmissionStatus = Field(default=SubmissionStatus.PENDING, nullable=False)
    results: Optional[Dict[str, Any]] = Field(default=None, sa_column=Column(JSON))
    created_at: datetime = Field(default_factory=datetime.now, nullable=False)


class SubmissionCreate(CamelModel):
    user_id: int
    problem_id: Optional[int] = None
    test_id: Optional[int] = None
    code: str
    language: Language


class SubmissionResponse(CamelModel):
    id: int
    user_id: int
    problem_id: Optional[int] = None
    test_id: Optional[int] = None
    code: str
    language: Language
    status: SubmissionStatus
    results: Optional[Dict[str, Any]] = None
    created_at: datetime


class SubmitSolutionRequest(CamelModel):
    code: str = PydanticField(min_length=1)
    language: Language
    analyze: bool = False


class SubmitSolutionResponse(CamelModel):
    submission: SubmissionResponse
    passed: bool
    results: List[Dict[str, Any]] = PydanticField(default_factory=list)
    advisory: Optional[Dict[str, Any]] = None


class CodingTestItem(CamelModel):
    problem_id: int
    code: str
    language: Language


class CodingTestSubmissionRequest(CamelModel):
    submissions: List[CodingTestItem]


class MCQAnswer(CamelModel):
    question_id: int
    answer_id: int


class MCQTestSubmissionRequest(CamelModel):
    answers: List[MCQAnswer]


class AnalyzeRequest(CamelModel):
    code: str = PydanticField(min_length=1)
    language: Language
    problem_id: Optional[int] = None
