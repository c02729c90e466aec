from typing import List

from fastapi import APIRouter, Depends

from codejudge.business.services import GradingService
from codejudge.config import logger
from codejudge.data.schemas import SubmissionResponse
from codejudge.presentation.dependencies import get_current_user_id, get_grading_service

submission_logger = logger.getChild("submission")
submission_router = APIRouter(prefix="/submissions", tags=["submissions"])


@submission_router.get(
    "",
    response_model=List[SubmissionResponse],
    summary="List my submissions",
    description="Lists the current user's submissions, newest first.",
)
async def list_my_submissions(
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    submission_logger.info(f"Listing submissions for user ID: {user_id}")
    return await service.list_user_submissions(user_id)


@submission_router.get(
    "/{submission_id}",
    response_model=SubmissionResponse,
    summary="Get a submission",
)
async def get_submission(
    submission_id: int,
    service: GradingService = Depends(get_grading_service),
    user_id: int = Depends(get_current_user_id),
):
    return await service.get_submission(submission_id)
