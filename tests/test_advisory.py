import json
from unittest.mock import MagicMock, patch

import pytest
import requests

from codejudge.business.services.advisory import AdvisoryClient
from codejudge.errors import AdvisoryUnavailable


def completion(content):
    response = MagicMock()
    response.status_code = 200
    response.json.return_value = {"choices": [{"message": {"content": content}}]}
    return response


@pytest.fixture
def client():
    return AdvisoryClient(
        api_key="test-key",
        base_url="https://llm.example.com/v1/",
        model="test-model",
        timeout=5,
    )


@patch("codejudge.business.services.advisory.requests.post")
async def test_analyze_parses_json_content(mock_post, client):
    mock_post.return_value = completion(
        json.dumps(
            {
                "time_complexity": "O(n)",
                "space_complexity": "O(n)",
                "feedback": "Uses a hash map.",
                "optimizations": ["Return early"],
            }
        )
    )

    analysis = await client.analyze("def twoSum(n, t): ...", "python", "Two Sum")

    assert analysis.time_complexity == "O(n)"
    assert analysis.optimizations == ["Return early"]

    args, kwargs = mock_post.call_args
    assert args[0] == "https://llm.example.com/v1/chat/completions"
    assert kwargs["headers"]["Authorization"] == "Bearer test-key"
    assert kwargs["json"]["model"] == "test-model"
    assert kwargs["json"]["response_format"] == {"type": "json_object"}
    assert "Two Sum" in kwargs["json"]["messages"][0]["content"]
    assert kwargs["timeout"] == 5


@patch("codejudge.business.services.advisory.requests.post")
async def test_missing_keys_fall_back_to_defaults(mock_post, client):
    mock_post.return_value = completion('{"feedback": "ok", "optimizations": "none"}')

    analysis = await client.analyze("code", "python", "")

    assert analysis.time_complexity == "unknown"
    assert analysis.optimizations == ["none"]


async def test_missing_api_key_is_unavailable():
    client = AdvisoryClient(api_key="", base_url="https://llm.example.com/v1")

    with pytest.raises(AdvisoryUnavailable) as exc_info:
        await client.analyze("code", "python", "")

    assert exc_info.value.status_code == 503


@patch("codejudge.business.services.advisory.requests.post")
async def test_http_error_is_unavailable(mock_post, client):
    mock_post.return_value = MagicMock(status_code=500, text="upstream failure")

    with pytest.raises(AdvisoryUnavailable):
        await client.analyze("code", "python", "")


@patch("codejudge.business.services.advisory.requests.post")
async def test_timeout_is_unavailable(mock_post, client):
    mock_post.side_effect = requests.Timeout("timed out")

    with pytest.raises(AdvisoryUnavailable):
        await client.analyze("code", "python", "")


@patch("codejudge.business.services.advisory.requests.post")
async def test_unparsable_content_is_unavailable(mock_post, client):
    mock_post.return_value = completion("not json at all")

    with pytest.raises(AdvisoryUnavailable):
        await client.analyze("code", "python", "")
