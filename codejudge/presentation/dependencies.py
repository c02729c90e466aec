from fastapi import Depends, Request

from codejudge.business.services import GradingService, SandboxExecutor, TestCaseRunner
from codejudge.data.repositories import ProblemCatalog
from codejudge.errors import AuthenticationException


class UserIdFromHeader:
    """Reads the caller's numeric user id from a request header."""

    def __init__(self, header_name: str = "X-User-Id"):
        self.header_name = header_name

    async def __call__(self, request: Request) -> int:
        raw = request.headers.get(self.header_name)
        if not raw:
            raise AuthenticationException(detail=f"{self.header_name} header is required")
        try:
            user_id = int(raw)
        except ValueError:
            raise AuthenticationException(detail=f"Invalid {self.header_name} header") from None
        if user_id <= 0:
            raise AuthenticationException(detail=f"Invalid {self.header_name} header")
        return user_id


get_current_user_id = UserIdFromHeader()


def get_executor(request: Request) -> SandboxExecutor:
    return request.app.state.executor


def get_runner(executor: SandboxExecutor = Depends(get_executor)) -> TestCaseRunner:
    return TestCaseRunner(executor)


def get_catalog(request: Request) -> ProblemCatalog:
    return request.app.state.catalog


def get_grading_service(request: Request) -> GradingService:
    return request.app.state.grading_service
