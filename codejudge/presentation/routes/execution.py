from fastapi import APIRouter, Depends

from codejudge.business.services import SandboxExecutor, TestCaseRunner
from codejudge.config import logger
from codejudge.data.schemas import (
    ExecuteRequest,
    ExecuteResponse,
    TestCodeRequest,
    TestRunResult,
)
from codejudge.presentation.dependencies import (
    get_current_user_id,
    get_executor,
    get_runner,
)

execution_logger = logger.getChild("execution")
execution_router = APIRouter(tags=["execution"])


@execution_router.post(
    "/execute",
    response_model=ExecuteResponse,
    summary="Run code once",
    description="Runs code in the sandbox with an optional stdin payload and returns its output or the error classification.",
)
async def execute_code(
    request: ExecuteRequest,
    executor: SandboxExecutor = Depends(get_executor),
    user_id: int = Depends(get_current_user_id),
):
    execution_logger.info(
        f"Execute request: User ID {user_id}, Language: {request.language.value}"
    )
    return await executor.execute_code(request.code, request.language, request.input)


@execution_router.post(
    "/test",
    response_model=TestRunResult,
    summary="Test code against test cases",
    description="Runs code against the supplied test cases without recording a submission.",
)
async def test_code(
    request: TestCodeRequest,
    runner: TestCaseRunner = Depends(get_runner),
    user_id: int = Depends(get_current_user_id),
):
    execution_logger.info(
        f"Test request: User ID {user_id}, Language: {request.language.value}, "
        f"{len(request.test_cases)} test cases"
    )
    result = await runner.test_code(
        request.code, request.language, request.test_cases, request.function_name
    )
    return result.public_view()
