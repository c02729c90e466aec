from typing import Any, List, Optional

from pydantic import Field

from codejudge.data.schemas.base import CamelModel


class NamedParameter(CamelModel):
    """One named argument of a test case input."""

    name: str
    value: Any = None


class TestCase(CamelModel):
    """
    One input/expected-output pair attached to a problem.

    ``input`` is a scalar, an array, or a list of named parameters
    (``[{"name": "nums", "value": [2, 7]}, ...]``).
    """

    __test__ = False

    id: Optional[int] = None
    input: Any = None
    expected_output: Any = None
    explanation: Optional[str] = None
    hidden: bool = False

    def public_view(self) -> "TestCase":
        if not self.hidden:
            return self
        return TestCase(id=self.id, input=None, expected_output=None, hidden=True)


class TestCaseList(CamelModel):
    __test__ = False

    test_cases: List[TestCase] = Field(default_factory=list)
