from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from codejudge.business.services import GradingService
from codejudge.config import logger
from codejudge.data.repositories import ProblemCatalog
from codejudge.data.schemas import (
    AnalyzeRequest,
    CodeAnalysis,
    CodingProblem,
    SubmissionResponse,
    SubmitSolutionRequest,
    SubmitSolutionResponse,
)
from codejudge.presentation.dependencies import (
    get_catalog,
    get_current_user_id,
    get_grading_service,
)

problem_logger = logger.getChild("problem")
problem_router = APIRouter(prefix="/problems", tags=["problems"])
analysis_router = APIRouter(tags=["analysis"])


@problem_router.get(
    "",
    response_model=List[CodingProblem],
    summary="List problems",
    description="Lists coding problems, optionally filtered by difficulty and tags.",
)
async def list_problems(
    difficulty: Optional[str] = None,
    tags: Optional[List[str]] = Query(default=None),
    catalog: ProblemCatalog = Depends(get_catalog),
    user_id: int = Depends(get_current_user_id),
):
    problem_logger.info(f"Listing problems: difficulty={difficulty}, tags={tags}")
    return [
        problem.public_view()
        for problem in catalog.list_problems(difficulty=difficulty, tags=tags)
    ]


@problem_router.get(
    "/{problem_id}",
    response_model=CodingProblem,
    summary="Get a problem",
    description="Retrieves a problem by its ID; hidden test cases are redacted.",
)
async def get_problem(
    problem_id: int,
    catalog: ProblemCatalog = Depends(get_catalog),
    user_id: int = Depends(get_current_user_id),
):
    problem_logger.info(f"Fetching problem ID: {problem_id}")
    return catalog.get_problem(problem_id).public_view()


@problem_router.post(
    "/{problem_id}/submit",
    response_model=SubmitSolutionResponse,
    summary="Submit a solution",
    description="Grades a solution against every test case of the problem and records the submission.",
)
async def submit_solution(
    problem_id: int,
    request: SubmitSolutionRequest,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    problem_logger.info(f"Processing submission for problem ID: {problem_id}")
    return await service.submit_solution(
        user_id, problem_id, request.code, request.language, analyze=request.analyze
    )


@problem_router.get(
    "/{problem_id}/submissions",
    response_model=List[SubmissionResponse],
    summary="List problem submissions",
    description="Lists every submission for a problem, newest first.",
)
async def list_problem_submissions(
    problem_id: int,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    return await service.list_problem_submissions(problem_id)


@analysis_router.post(
    "/analyze",
    response_model=CodeAnalysis,
    summary="Analyze code",
    description="Asks the advisory service for complexity and optimisation feedback. Never affects grading.",
)
async def analyze_code(
    request: AnalyzeRequest,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    problem_logger.info(
        f"Analysis request: User ID {user_id}, Language: {request.language.value}"
    )
    return await service.analyze(request.code, request.language, request.problem_id)
