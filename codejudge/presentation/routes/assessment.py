from typing import List

from fastapi import APIRouter, Depends

from codejudge.business.services import GradingService
from codejudge.config import logger
from codejudge.data.repositories import ProblemCatalog
from codejudge.data.schemas import (
    CodingTestResult,
    CodingTestSubmissionRequest,
    MCQTestResult,
    MCQTestSubmissionRequest,
    PublicAssessment,
    SubmissionResponse,
)
from codejudge.presentation.dependencies import (
    get_catalog,
    get_current_user_id,
    get_grading_service,
)

assessment_logger = logger.getChild("assessment")
assessment_router = APIRouter(prefix="/tests", tags=["tests"])


@assessment_router.get(
    "",
    response_model=List[PublicAssessment],
    summary="List tests",
)
async def list_tests(
    catalog: ProblemCatalog = Depends(get_catalog),
    user_id: int = Depends(get_current_user_id),
):
    return [test.public_view() for test in catalog.list_tests()]


@assessment_router.get(
    "/{test_id}",
    response_model=PublicAssessment,
    summary="Get a test",
    description="Retrieves a test without MCQ answers or hidden test cases.",
)
async def get_test(
    test_id: int,
    catalog: ProblemCatalog = Depends(get_catalog),
    user_id: int = Depends(get_current_user_id),
):
    assessment_logger.info(f"Fetching test ID: {test_id}")
    return catalog.get_test(test_id).public_view()


@assessment_router.post(
    "/{test_id}/coding-submissions",
    response_model=CodingTestResult,
    summary="Submit coding answers",
    description="Grades every coding answer of a test attempt with partial credit.",
)
async def submit_coding_test(
    test_id: int,
    request: CodingTestSubmissionRequest,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    assessment_logger.info(
        f"Coding test submission: Test ID {test_id}, User ID {user_id}, "
        f"{len(request.submissions)} answers"
    )
    return await service.submit_coding_test(user_id, test_id, request.submissions)


@assessment_router.post(
    "/{test_id}/mcq-submissions",
    response_model=MCQTestResult,
    summary="Submit MCQ answers",
)
async def submit_mcq_test(
    test_id: int,
    request: MCQTestSubmissionRequest,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    assessment_logger.info(f"MCQ test submission: Test ID {test_id}, User ID {user_id}")
    return await service.submit_mcq_test(user_id, test_id, request.answers)


@assessment_router.get(
    "/{test_id}/submissions",
    response_model=List[SubmissionResponse],
    summary="List test submissions",
)
async def list_test_submissions(
    test_id: int,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    return await service.list_test_submissions(test_id)
