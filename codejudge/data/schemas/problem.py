from typing import Annotated, Dict, List, Literal, Optional, Union

from pydantic import Field

from codejudge.data.schemas.base import CamelModel
from codejudge.data.schemas.enums import AssessmentType
from codejudge.data.schemas.testcase import TestCase


class CodingProblem(CamelModel):
    """
    A standalone coding problem.

    Owned by the surrounding CRUD layer; read-only here.
    """

    id: int
    title: str
    description: str
    difficulty: str
    tags: List[str] = Field(default_factory=list)
    test_cases: List[TestCase] = Field(default_factory=list)
    function_name: Optional[str] = None
    boilerplate_code: Dict[str, str] = Field(default_factory=dict)
    solution_code: Dict[str, str] = Field(default_factory=dict)

    def public_view(self) -> "CodingProblem":
        return self.model_copy(
            update={
                "test_cases": [tc.public_view() for tc in self.test_cases],
                "solution_code": {},
            }
        )


class MCQQuestion(CamelModel):
    kind: Literal["mcq"] = "mcq"
    id: int
    text: str
    options: List[str]
    correct_answer_id: int
    explanation: Optional[str] = None


class CodingQuestion(CamelModel):
    kind: Literal["coding"] = "coding"
    id: int
    title: str
    description: str = ""
    test_cases: List[TestCase] = Field(default_factory=list)
    points: int = 10
    function_name: Optional[str] = None


Question = Annotated[Union[MCQQuestion, CodingQuestion], Field(discriminator="kind")]


class Assessment(CamelModel):
    """A scheduled LMS test made of MCQ and/or coding questions."""

    id: int
    title: str
    description: str = ""
    type: AssessmentType
    duration_minutes: int
    questions: List[Question] = Field(default_factory=list)

    @property
    def mcq_questions(self) -> List[MCQQuestion]:
        return [q for q in self.questions if isinstance(q, MCQQuestion)]

    @property
    def coding_questions(self) -> List[CodingQuestion]:
        return [q for q in self.questions if isinstance(q, CodingQuestion)]

    def public_view(self) -> "PublicAssessment":
        questions = []
        for question in self.questions:
            if isinstance(question, MCQQuestion):
                questions.append(
                    PublicMCQQuestion(
                        id=question.id, text=question.text, options=question.options
                    )
                )
            else:
                questions.append(
                    question.model_copy(
                        update={
                            "test_cases": [
                                tc.public_view() for tc in question.test_cases
                            ]
                        }
                    )
                )
        return PublicAssessment(
            id=self.id,
            title=self.title,
            description=self.description,
            type=self.type,
            duration_minutes=self.duration_minutes,
            questions=questions,
        )


class PublicMCQQuestion(CamelModel):
    kind: Literal["mcq"] = "mcq"
    id: int
    text: str
    options: List[str]


class PublicAssessment(CamelModel):
    id: int
    title: str
    description: str = ""
    type: AssessmentType
    duration_minutes: int
    questions: List[Union[PublicMCQQuestion, CodingQuestion]] = Field(
        default_factory=list
    )
