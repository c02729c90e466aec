from unittest.mock import AsyncMock

from fastapi import status

from codejudge.data.schemas import CodeAnalysis
from codejudge.main import app

from conftest import requires_python

TWO_SUM_PYTHON = (
    "def twoSum(nums, target):\n"
    "    seen = {}\n"
    "    for i, value in enumerate(nums):\n"
    "        if target - value in seen:\n"
    "            return [seen[target - value], i]\n"
    "        seen[value] = i\n"
)


def test_health(client):
    response = client.get("/api/v1/health")

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["status"] == "ok"
    assert set(data["toolchains"]) == {"python", "javascript", "java", "cpp"}


def test_missing_user_header_is_rejected(client):
    response = client.get("/api/v1/problems")

    assert response.status_code == status.HTTP_401_UNAUTHORIZED
    assert "X-User-Id" in response.json()["detail"]


def test_invalid_user_header_is_rejected(client):
    response = client.get("/api/v1/problems", headers={"X-User-Id": "abc"})

    assert response.status_code == status.HTTP_401_UNAUTHORIZED


def test_list_problems_with_filters(client, auth_headers):
    response = client.get("/api/v1/problems", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert [p["title"] for p in response.json()] == [
        "Two Sum",
        "Valid Palindrome",
        "Maximum Subarray",
    ]

    response = client.get(
        "/api/v1/problems", params={"difficulty": "medium"}, headers=auth_headers
    )
    assert [p["title"] for p in response.json()] == ["Maximum Subarray"]

    response = client.get(
        "/api/v1/problems", params={"tags": ["Two Pointers"]}, headers=auth_headers
    )
    assert [p["title"] for p in response.json()] == ["Valid Palindrome"]


def test_get_problem_redacts_hidden_cases(client, auth_headers):
    response = client.get("/api/v1/problems/1", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["functionName"] == "twoSum"
    assert data["solutionCode"] == {}
    hidden = [tc for tc in data["testCases"] if tc["hidden"]]
    assert len(hidden) == 1
    assert hidden[0]["input"] is None
    assert hidden[0]["expectedOutput"] is None


def test_get_unknown_problem(client, auth_headers):
    response = client.get("/api/v1/problems/999", headers=auth_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"] == "Problem not found"


def test_get_test_hides_answers(client, auth_headers):
    response = client.get("/api/v1/tests/1", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    questions = response.json()["questions"]
    assert len(questions) == 2
    assert all("correctAnswerId" not in q for q in questions)


def test_list_tests(client, auth_headers):
    response = client.get("/api/v1/tests", headers=auth_headers)

    assert response.status_code == status.HTTP_200_OK
    assert [t["type"] for t in response.json()] == ["MCQ", "Coding"]


def test_submit_mcq_test(client, auth_headers):
    response = client.post(
        "/api/v1/tests/1/mcq-submissions",
        json={"answers": [{"questionId": 1, "answerId": 1}, {"questionId": 2, "answerId": 0}]},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["score"] == 10
    assert data["maxScore"] == 20
    assert data["percentageScore"] == 50
    assert data["userId"] == 42


def test_unsupported_language_fails_validation(client, auth_headers):
    response = client.post(
        "/api/v1/execute",
        json={"code": "puts 1", "language": "ruby"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


def test_empty_test_suite_is_rejected(client, auth_headers):
    response = client.post(
        "/api/v1/test",
        json={"code": "print(1)", "language": "python", "testCases": []},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["detail"] == "At least one test case is required"


def test_analyze_without_api_key(client, auth_headers):
    app.state.grading_service.advisory.api_key = None

    response = client.post(
        "/api/v1/analyze",
        json={"code": "print(1)", "language": "python", "problemId": 1},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE


def test_analyze_returns_advisory(client, auth_headers):
    advisory = AsyncMock()
    advisory.analyze.return_value = CodeAnalysis(time_complexity="O(1)")
    app.state.grading_service.advisory = advisory

    response = client.post(
        "/api/v1/analyze",
        json={"code": "print(1)", "language": "python"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json()["timeComplexity"] == "O(1)"


@requires_python
def test_execute_python(client, auth_headers):
    response = client.post(
        "/api/v1/execute",
        json={"code": "print(input()[::-1])", "language": "python", "input": "abc"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"output": "cba\n", "error": None}


@requires_python
def test_execute_runtime_error(client, auth_headers):
    response = client.post(
        "/api/v1/execute",
        json={"code": "1 / 0", "language": "python"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["output"] == ""
    assert "ZeroDivisionError" in data["error"]


@requires_python
def test_test_endpoint(client, auth_headers):
    response = client.post(
        "/api/v1/test",
        json={
            "code": "def double(x):\n    return x * 2\n",
            "language": "python",
            "functionName": "double",
            "testCases": [
                {"input": 2, "expectedOutput": 4},
                {"input": 3, "expectedOutput": 7, "hidden": True},
            ],
        },
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["passed"] is False
    assert [r["passed"] for r in data["results"]] == [True, False]
    assert data["results"][1]["testCase"]["input"] is None
    assert data["results"][1]["actualOutput"] is None


@requires_python
def test_submit_solution_and_query_submissions(client, auth_headers):
    response = client.post(
        "/api/v1/problems/1/submit",
        json={"code": TWO_SUM_PYTHON, "language": "python"},
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["passed"] is True
    assert data["submission"]["status"] == "completed"
    assert len(data["results"]) == 4
    submission_id = data["submission"]["id"]

    response = client.get(f"/api/v1/submissions/{submission_id}", headers=auth_headers)
    assert response.status_code == status.HTTP_200_OK
    assert response.json()["results"]["passed"] is True

    response = client.get("/api/v1/submissions", headers=auth_headers)
    assert [s["id"] for s in response.json()] == [submission_id]

    response = client.get("/api/v1/problems/1/submissions", headers=auth_headers)
    assert [s["id"] for s in response.json()] == [submission_id]


@requires_python
def test_submit_coding_test(client, auth_headers):
    response = client.post(
        "/api/v1/tests/2/coding-submissions",
        json={
            "submissions": [
                {
                    "problemId": 2,
                    "code": "def reverseList(items):\n    return items[::-1]\n",
                    "language": "python",
                },
                {"problemId": 7, "code": "x", "language": "python"},
            ]
        },
        headers=auth_headers,
    )

    assert response.status_code == status.HTTP_200_OK
    data = response.json()
    assert data["score"] == 10
    assert data["maxScore"] == 20
    assert data["results"][0]["passed"] is True
    assert data["results"][1]["error"] == "Problem not found in test"

    response = client.get("/api/v1/tests/2/submissions", headers=auth_headers)
    assert len(response.json()) == 1


def test_unknown_submission(client, auth_headers):
    response = client.get("/api/v1/submissions/999", headers=auth_headers)

    assert response.status_code == status.HTTP_404_NOT_FOUND
