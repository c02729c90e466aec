import shutil
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from codejudge.business.services import (
    GradingService,
    SandboxExecutor,
    TestCaseRunner,
)
from codejudge.config import logger
from codejudge.data.repositories import InMemorySubmissionRepository, ProblemCatalog
from codejudge.data.schemas import (
    ExecutionResult,
    ExitStatus,
    TestCase,
    TestCaseResult,
    TestRunResult,
)
from codejudge.main import app

requires_python = pytest.mark.skipif(
    shutil.which("python3") is None, reason="python3 is not installed"
)
requires_node = pytest.mark.skipif(
    shutil.which("node") is None, reason="node is not installed"
)
requires_java = pytest.mark.skipif(
    shutil.which("javac") is None or shutil.which("java") is None,
    reason="a JDK is not installed",
)
requires_cpp = pytest.mark.skipif(
    shutil.which("g++") is None, reason="g++ is not installed"
)


class FakeExecutor:
    """Sandbox double returning scripted results in call order."""

    def __init__(self, results: List[ExecutionResult]):
        self.results = list(results)
        self.calls = []

    async def execute(self, code, language, stdin=None, entry_class=None):
        self.calls.append(
            {"code": code, "language": language, "stdin": stdin, "entry_class": entry_class}
        )
        return self.results.pop(0)


def normal(stdout: str, stderr: Optional[str] = None) -> ExecutionResult:
    return ExecutionResult(stdout=stdout, stderr=stderr, status=ExitStatus.NORMAL, exit_code=0)


class FakeRunner:
    """Test case runner double returning one scripted run per call."""

    def __init__(self, runs):
        self.runs = list(runs)
        self.calls = []

    async def test_code(self, code, language, test_cases, function_name=None):
        self.calls.append(
            {"code": code, "language": language, "test_cases": test_cases, "function_name": function_name}
        )
        run = self.runs.pop(0)
        if isinstance(run, Exception):
            raise run
        return run


def make_run(outcomes: List[bool]) -> TestRunResult:
    return TestRunResult(
        passed=all(outcomes),
        results=[
            TestCaseResult(
                test_case=TestCase(id=i + 1, input=i, expected_output=i),
                passed=passed,
                actual_output=i if passed else None,
            )
            for i, passed in enumerate(outcomes)
        ],
    )


@pytest.fixture
def executor(tmp_path):
    return SandboxExecutor(
        timeout_seconds=5,
        memory_limit_mb=256,
        max_concurrency=4,
        scratch_root=str(tmp_path / "sandbox"),
    )


@pytest.fixture
def runner(executor):
    return TestCaseRunner(executor)


@pytest.fixture
def repository():
    return InMemorySubmissionRepository()


@pytest.fixture
def catalog():
    return ProblemCatalog()


@pytest.fixture
def make_service(repository, catalog):
    def _make(runner, advisory=None):
        return GradingService(runner, repository, catalog, advisory)

    return _make


# Create test client
@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers():
    return {"X-User-Id": "42"}


# Disable logging during tests
@pytest.fixture(autouse=True)
def disable_logging():
    logger.disabled = True
    yield
    logger.disabled = False
