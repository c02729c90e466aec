import asyncio
import logging
import math
from fractions import Fraction
from numbers import Real
from typing import Any, Dict, Iterable, List, Optional, Union

from codejudge.business.services.advisory import AdvisoryClient
from codejudge.business.services.runtimes import get_runtime
from codejudge.business.services.test_runner import TestCaseRunner
from codejudge.data.repositories.catalog import ProblemCatalog
from codejudge.data.repositories.submission import SubmissionRepository
from codejudge.data.schemas.enums import Language, SubmissionStatus
from codejudge.data.schemas.execution import TestRunResult
from codejudge.data.schemas.grading import (
    CodeAnalysis,
    CodingQuestionResult,
    CodingTestResult,
    MCQAnswerResult,
    MCQTestResult,
)
from codejudge.data.schemas.submission import (
    CodingTestItem,
    MCQAnswer,
    Submission,
    SubmissionCreate,
    SubmissionResponse,
    SubmitSolutionResponse,
)
from codejudge.errors import (
    AdvisoryUnavailable,
    AppException,
    GradingFault,
    ResourceNotFoundException,
)

grading_logger = logging.getLogger("grading")

MCQ_POINTS = 10


def round_half_up(value: Real) -> int:
    """Round to the nearest integer, halves away from zero for non-negatives."""
    return math.floor(Fraction(value) + Fraction(1, 2))


def _error_message(exc: BaseException) -> str:
    if isinstance(exc, AppException):
        detail = exc.detail
        if isinstance(detail, dict):
            return str(detail.get("message", detail))
        return str(detail)
    return str(exc) or exc.__class__.__name__


def _dump_run(run: TestRunResult) -> Dict[str, Any]:
    return run.public_view().model_dump(mode="json", by_alias=True)


class GradingService:
    """
    Turns test runs into recorded verdicts and scores.

    A submission is created ``pending`` before anything runs and moves
    exactly once: to ``completed`` when the code was judged (whatever the
    verdict), or to ``failed`` when grading itself broke.
    """

    def __init__(
        self,
        runner: TestCaseRunner,
        repository: SubmissionRepository,
        catalog: ProblemCatalog,
        advisory: Optional[AdvisoryClient] = None,
    ):
        self.runner = runner
        self.repository = repository
        self.catalog = catalog
        self.advisory = advisory

    async def _mark_failed(self, submission: Submission, exc: BaseException) -> str:
        message = _error_message(exc)
        grading_logger.error(
            f"Grading failed: Submission ID {submission.id} - {message}"
        )
        await self.repository.update(
            submission.id, SubmissionStatus.FAILED, {"error": message}
        )
        return message

    async def _annotate(
        self, code: str, language: Language, problem_statement: str
    ) -> Dict[str, Any]:
        if self.advisory is None:
            return {"error": "Advisory service is not configured"}
        try:
            analysis = await self.advisory.analyze(code, language.value, problem_statement)
        except AdvisoryUnavailable as e:
            grading_logger.warning(f"Advisory unavailable: {e.detail}")
            return {"error": _error_message(e)}
        return analysis.model_dump(by_alias=True)

    async def submit_solution(
        self,
        user_id: int,
        problem_id: int,
        code: str,
        language: Union[str, Language],
        analyze: bool = False,
    ) -> SubmitSolutionResponse:
        """
        Grade one solution to a standalone problem and record the attempt.

        Raises:
            ResourceNotFoundException: unknown problem
            UnsupportedLanguageError: unsupported language
            GradingFault: grading broke; the submission was marked ``failed``
        """
        problem = self.catalog.get_problem(problem_id)
        language = get_runtime(language).language

        submission = await self.repository.create(
            SubmissionCreate(
                user_id=user_id, problem_id=problem_id, code=code, language=language
            )
        )
        grading_logger.info(
            f"Grading submission ID {submission.id}: Problem ID {problem_id}, "
            f"User ID {user_id}, Language: {language.value}"
        )

        try:
            run = await self.runner.test_code(
                code, language, problem.test_cases, problem.function_name
            )
            results = _dump_run(run)
            advisory = None
            if analyze:
                advisory = await self._annotate(code, language, problem.description)
                results["advisory"] = advisory

            updated = await self.repository.update(
                submission.id, SubmissionStatus.COMPLETED, results
            )
        except asyncio.CancelledError as e:
            await self._mark_failed(submission, e)
            raise
        except Exception as e:
            message = await self._mark_failed(submission, e)
            raise GradingFault(detail=message, submission_id=submission.id) from e

        grading_logger.info(
            f"Submission ID {submission.id} completed: "
            f"{run.passed_count}/{run.total_count} test cases passed"
        )
        return SubmitSolutionResponse(
            submission=SubmissionResponse.model_validate(updated or submission),
            passed=run.passed,
            results=results["results"],
            advisory=advisory,
        )

    async def _grade_coding_item(
        self, user_id: int, test_id: int, item: CodingTestItem, question
    ) -> CodingQuestionResult:
        submission = await self.repository.create(
            SubmissionCreate(
                user_id=user_id,
                problem_id=item.problem_id,
                test_id=test_id,
                code=item.code,
                language=item.language,
            )
        )
        try:
            run = await self.runner.test_code(
                item.code, item.language, question.test_cases, question.function_name
            )
            score = round_half_up(
                Fraction(question.points * run.passed_count, run.total_count)
            )
            results = _dump_run(run)
            results.update({"score": score, "maxScore": question.points})
            await self.repository.update(
                submission.id, SubmissionStatus.COMPLETED, results
            )
        except asyncio.CancelledError as e:
            await self._mark_failed(submission, e)
            raise
        except Exception as e:
            message = await self._mark_failed(submission, e)
            return CodingQuestionResult(
                problem_id=item.problem_id,
                passed=False,
                score=0,
                max_score=question.points,
                error=message,
                submission_id=submission.id,
            )

        return CodingQuestionResult(
            problem_id=item.problem_id,
            passed=run.passed,
            score=score,
            max_score=question.points,
            results=run.public_view().results,
            submission_id=submission.id,
        )

    async def submit_coding_test(
        self,
        user_id: int,
        test_id: int,
        submissions: Iterable[Union[CodingTestItem, dict]],
    ) -> CodingTestResult:
        """
        Grade every coding answer of one test attempt.

        Each item is graded independently; a fault in one item is recorded
        against it with a score of 0 and the remaining items still run.
        """
        test = self.catalog.get_test(test_id)
        questions = {question.id: question for question in test.coding_questions}
        max_score = sum(question.points for question in questions.values())

        grading_logger.info(
            f"Coding test submission: Test ID {test_id}, User ID {user_id}"
        )

        results: List[CodingQuestionResult] = []
        seen = set()
        for raw in submissions:
            item = raw if isinstance(raw, CodingTestItem) else CodingTestItem.model_validate(raw)
            question = questions.get(item.problem_id)
            if question is None:
                results.append(
                    CodingQuestionResult(
                        problem_id=item.problem_id,
                        passed=False,
                        score=0,
                        error="Problem not found in test",
                    )
                )
                continue
            if item.problem_id in seen:
                results.append(
                    CodingQuestionResult(
                        problem_id=item.problem_id,
                        passed=False,
                        score=0,
                        max_score=question.points,
                        error="Duplicate submission for problem",
                    )
                )
                continue
            seen.add(item.problem_id)
            results.append(await self._grade_coding_item(user_id, test_id, item, question))

        score = sum(result.score for result in results)
        grading_logger.info(
            f"Coding test graded: Test ID {test_id}, User ID {user_id}, "
            f"Score {score}/{max_score}"
        )
        return CodingTestResult(
            test_id=test_id,
            user_id=user_id,
            completed=True,
            score=score,
            max_score=max_score,
            results=results,
        )

    async def submit_mcq_test(
        self,
        user_id: int,
        test_id: int,
        answers: Iterable[Union[MCQAnswer, dict]],
    ) -> MCQTestResult:
        """
        Score a multiple-choice attempt: 10 points per exact index match.
        Only the first answer to a question counts.
        """
        test = self.catalog.get_test(test_id)
        questions = {question.id: question for question in test.mcq_questions}
        max_score = MCQ_POINTS * len(questions)

        results: List[MCQAnswerResult] = []
        answered = set()
        score = 0
        for raw in answers:
            answer = raw if isinstance(raw, MCQAnswer) else MCQAnswer.model_validate(raw)
            question = questions.get(answer.question_id)
            if question is None:
                results.append(
                    MCQAnswerResult(
                        question_id=answer.question_id,
                        correct=False,
                        selected_answer_id=answer.answer_id,
                        message="Question not found",
                    )
                )
                continue
            if answer.question_id in answered:
                results.append(
                    MCQAnswerResult(
                        question_id=answer.question_id,
                        correct=False,
                        selected_answer_id=answer.answer_id,
                        message="Duplicate answer for question",
                    )
                )
                continue
            answered.add(answer.question_id)

            correct = answer.answer_id == question.correct_answer_id
            if correct:
                score += MCQ_POINTS
            results.append(
                MCQAnswerResult(
                    question_id=answer.question_id,
                    correct=correct,
                    correct_answer_id=question.correct_answer_id,
                    selected_answer_id=answer.answer_id,
                )
            )

        percentage = round_half_up(Fraction(100 * score, max_score)) if max_score else 0
        grading_logger.info(
            f"MCQ test graded: Test ID {test_id}, User ID {user_id}, "
            f"Score {score}/{max_score} ({percentage}%)"
        )
        return MCQTestResult(
            test_id=test_id,
            user_id=user_id,
            completed=True,
            score=score,
            max_score=max_score,
            percentage_score=percentage,
            results=results,
        )

    async def analyze(
        self,
        code: str,
        language: Union[str, Language],
        problem_id: Optional[int] = None,
    ) -> CodeAnalysis:
        """
        Raises:
            AdvisoryUnavailable: the advisory service failed or is not configured
        """
        language = get_runtime(language).language
        statement = ""
        if problem_id is not None:
            statement = self.catalog.get_problem(problem_id).description
        if self.advisory is None:
            raise AdvisoryUnavailable(detail="Advisory service is not configured")
        return await self.advisory.analyze(code, language.value, statement)

    async def get_submission(self, submission_id: int) -> Submission:
        submission = await self.repository.get_by_id(submission_id)
        if not submission:
            grading_logger.warning(f"Submission not found: ID {submission_id}")
            raise ResourceNotFoundException(detail="Submission not found")
        return submission

    async def list_user_submissions(self, user_id: int) -> List[Submission]:
        return await self.repository.list_by_user(user_id)

    async def list_problem_submissions(self, problem_id: int) -> List[Submission]:
        self.catalog.get_problem(problem_id)
        return await self.repository.list_by_problem(problem_id)

    async def list_test_submissions(self, test_id: int) -> List[Submission]:
        self.catalog.get_test(test_id)
        return await self.repository.list_by_test(test_id)
