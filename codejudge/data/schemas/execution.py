from typing import Any, List, Optional

from pydantic import Field, computed_field

from codejudge.data.schemas.base import CamelModel
from codejudge.data.schemas.enums import ExitStatus, Language
from codejudge.data.schemas.testcase import TestCase
from codejudge.errors import ExecutionFault


class ExecuteRequest(CamelModel):
    code: str = Field(min_length=1)
    language: Language
    input: Optional[str] = None


class ExecuteResponse(CamelModel):
    output: str = ""
    error: Optional[str] = None


class ExecutionResult(CamelModel):
    """Outcome of one sandboxed run."""

    stdout: str = ""
    stderr: Optional[str] = None
    status: ExitStatus = ExitStatus.NORMAL
    limit_exceeded: bool = False
    exit_code: Optional[int] = None
    duration_ms: int = 0
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ExitStatus.NORMAL

    def raise_for_status(self) -> None:
        if not self.ok:
            raise ExecutionFault(
                self.status,
                self.message or self.status.value,
                limit_exceeded=self.limit_exceeded,
            )

    def to_response(self) -> ExecuteResponse:
        if self.ok:
            return ExecuteResponse(output=self.stdout, error=self.stderr or None)
        return ExecuteResponse(output="", error=self.message or self.status.value)


class TestCaseResult(CamelModel):
    __test__ = False

    test_case: TestCase
    passed: bool
    actual_output: Any = None
    error: Optional[str] = None
    stderr: Optional[str] = None
    status: ExitStatus = ExitStatus.NORMAL
    duration_ms: int = 0

    def public_view(self) -> "TestCaseResult":
        if not self.test_case.hidden:
            return self
        return self.model_copy(
            update={"test_case": self.test_case.public_view(), "actual_output": None}
        )


class TestRunResult(CamelModel):
    __test__ = False

    passed: bool
    results: List[TestCaseResult] = Field(default_factory=list)

    @computed_field
    @property
    def passed_count(self) -> int:
        return sum(1 for result in self.results if result.passed)

    @computed_field
    @property
    def total_count(self) -> int:
        return len(self.results)

    def public_view(self) -> "TestRunResult":
        return TestRunResult(
            passed=self.passed, results=[r.public_view() for r in self.results]
        )


class TestCodeRequest(CamelModel):
    __test__ = False

    code: str = Field(min_length=1)
    language: Language
    test_cases: List[TestCase]
    function_name: Optional[str] = None
