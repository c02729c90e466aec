import asyncio
import json
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from codejudge.config import Config, logger
from codejudge.data.schemas.grading import CodeAnalysis
from codejudge.errors import AdvisoryUnavailable

# Create a module-specific logger
advisory_logger = logger.getChild("advisory")

ANALYSIS_PROMPT = """You are a coding expert analyzing a submission for the following problem:

{problem_statement}

Here is the code in {language}:

```{language}
{code}
```

Analyze this code and respond with a JSON object with exactly these keys:
- "time_complexity": the time complexity in big-O notation
- "space_complexity": the space complexity in big-O notation
- "feedback": a short paragraph on correctness, style and edge cases
- "optimizations": a list of concrete suggestions to improve the solution
"""


class AdvisoryClient:
    """
    Client for an OpenAI-compatible chat-completions endpoint.

    Only produces advisory annotations; its output never affects a verdict.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        model: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key if api_key is not None else Config.OPENAI_API_KEY
        self.base_url = (base_url or Config.OPENAI_BASE_URL).rstrip("/")
        self.model = model or Config.OPENAI_MODEL
        self.timeout = timeout or Config.ADVISORY_TIMEOUT_SECONDS

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def analyze(
        self, code: str, language: str, problem_statement: str
    ) -> CodeAnalysis:
        """
        Ask the model for complexity and optimisation feedback.

        Raises:
            AdvisoryUnavailable: no API key, transport or HTTP error, or an
                unusable response
        """
        if not self.configured:
            raise AdvisoryUnavailable(detail="Advisory service is not configured")

        language = getattr(language, "value", language)
        prompt = ANALYSIS_PROMPT.format(
            problem_statement=problem_statement or "(no problem statement)",
            language=language,
            code=code,
        )
        payload = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "response_format": {"type": "json_object"},
            "temperature": 0.3,
        }
        advisory_logger.info(f"Requesting code analysis: language={language}")
        body = await asyncio.to_thread(self._post, payload)
        return self._parse(body)

    def _post(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}/chat/completions"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            response = requests.post(
                url, json=payload, headers=headers, timeout=self.timeout
            )
        except requests.RequestException as e:
            advisory_logger.error(f"Advisory request failed: {str(e)}")
            raise AdvisoryUnavailable(detail="Advisory service unreachable") from e

        if response.status_code != 200:
            advisory_logger.error(
                f"Advisory API error: {response.status_code} - {response.text}"
            )
            raise AdvisoryUnavailable(
                detail=f"Advisory service returned {response.status_code}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise AdvisoryUnavailable(detail="Advisory service returned invalid JSON") from e

    def _parse(self, body: Dict[str, Any]) -> CodeAnalysis:
        try:
            content = body["choices"][0]["message"]["content"]
            data = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            advisory_logger.error(f"Unparsable advisory response: {str(e)}")
            raise AdvisoryUnavailable(detail="Advisory response could not be parsed") from e

        if not isinstance(data, dict):
            raise AdvisoryUnavailable(detail="Advisory response could not be parsed")

        optimizations = data.get("optimizations") or []
        if isinstance(optimizations, str):
            optimizations = [optimizations]
        try:
            return CodeAnalysis(
                time_complexity=str(data.get("time_complexity") or "unknown"),
                space_complexity=str(data.get("space_complexity") or "unknown"),
                feedback=str(data.get("feedback") or ""),
                optimizations=[str(item) for item in optimizations],
            )
        except ValidationError as e:
            raise AdvisoryUnavailable(detail="Advisory response could not be parsed") from e
