from typing import List, Optional, Sequence, Union

from codejudge.business.services.comparison import parse_output, structurally_equal
from codejudge.business.services.harness import prepare_program
from codejudge.business.services.runtimes import get_runtime
from codejudge.business.services.sandbox import SandboxExecutor
from codejudge.config import logger
from codejudge.data.schemas.enums import Language
from codejudge.data.schemas.execution import TestCaseResult, TestRunResult
from codejudge.data.schemas.testcase import TestCase
from codejudge.errors import EmptyTestSuiteError, ExecutionFault

runner_logger = logger.getChild("test_runner")


class TestCaseRunner:
    """Runs one program against an ordered list of test cases."""

    __test__ = False

    def __init__(self, executor: SandboxExecutor):
        self.executor = executor

    async def test_code(
        self,
        code: str,
        language: Union[str, Language],
        test_cases: Sequence[Union[TestCase, dict]],
        function_name: Optional[str] = None,
    ) -> TestRunResult:
        """
        Run ``code`` once per test case, sequentially and in order.

        A failing case never stops the remaining ones: code-level faults are
        recorded as ``passed=False`` on that case. Infrastructure errors
        (``SandboxError``, undecodable inputs) propagate to the caller.

        Raises:
            UnsupportedLanguageError: the language is not supported
            EmptyTestSuiteError: no test case was supplied
        """
        runtime = get_runtime(language)
        cases = [
            case if isinstance(case, TestCase) else TestCase.model_validate(case)
            for case in test_cases
        ]
        if not cases:
            raise EmptyTestSuiteError()

        runner_logger.info(
            f"Testing {runtime.language.value} code against {len(cases)} test cases"
        )

        results: List[TestCaseResult] = []
        for index, case in enumerate(cases):
            result = await self._run_case(code, runtime.language, case, function_name)
            if not result.passed:
                runner_logger.debug(
                    f"Test case {index + 1}/{len(cases)} failed: {result.error or 'output mismatch'}"
                )
            results.append(result)

        passed = all(result.passed for result in results)
        runner_logger.info(
            f"Test run finished: {sum(r.passed for r in results)}/{len(results)} passed"
        )
        return TestRunResult(passed=passed, results=results)

    async def _run_case(
        self,
        code: str,
        language: Language,
        case: TestCase,
        function_name: Optional[str],
    ) -> TestCaseResult:
        program = prepare_program(code, language, case.input, function_name)
        execution = await self.executor.execute(
            program.source,
            language,
            stdin=program.stdin,
            entry_class=program.entry_class,
        )
        try:
            execution.raise_for_status()
        except ExecutionFault as fault:
            return TestCaseResult(
                test_case=case,
                passed=False,
                actual_output=None,
                error=fault.message,
                stderr=execution.stderr,
                status=fault.status,
                duration_ms=execution.duration_ms,
            )

        actual = parse_output(execution.stdout)
        return TestCaseResult(
            test_case=case,
            passed=structurally_equal(actual, case.expected_output),
            actual_output=actual,
            stderr=execution.stderr,
            status=execution.status,
            duration_ms=execution.duration_ms,
        )
