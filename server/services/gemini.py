"""
Gemini client for the repository assessment.

One schema-constrained generate_content call per analysis; the reply is
parsed and validated into an AssessmentResult. Nothing is retried.
"""

import json
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types
from pydantic import ValidationError

from analysis.schemas import AssessmentResult
from errors import AssessmentSynthesisError

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ["score", "rating_tier", "summary", "roadmap"]

ASSESSMENT_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "score": types.Schema(
            type=types.Type.NUMBER,
            description="The final rating from 0-100.",
        ),
        "rating_tier": types.Schema(
            type=types.Type.STRING,
            description="Beginner, Intermediate, or Advanced.",
        ),
        "summary": types.Schema(
            type=types.Type.STRING,
            description="A concise evaluation of strengths and weaknesses.",
        ),
        "roadmap": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(type=types.Type.STRING),
            description="3-5 actionable steps for improvement.",
        ),
    },
    required=REQUIRED_FIELDS,
)


def parse_assessment(text: Optional[str]) -> AssessmentResult:
    """Parse and validate the raw reply text."""
    if text is None or not text.strip():
        raise AssessmentSynthesisError("Assessment service returned an empty reply")

    text = text.strip()
    # Tolerate a markdown code fence around the JSON
    if text.startswith("```"):
        text = text.strip("`").strip()
        if text.lower().startswith("json"):
            text = text[4:].strip()

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise AssessmentSynthesisError(f"Failed to parse assessment reply: {e}") from e

    if not isinstance(payload, dict):
        raise AssessmentSynthesisError("Assessment reply is not a JSON object")

    missing = [name for name in REQUIRED_FIELDS if name not in payload]
    if missing:
        raise AssessmentSynthesisError(
            f"Assessment reply is missing required field(s): {', '.join(missing)}"
        )

    try:
        return AssessmentResult.model_validate(payload)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise AssessmentSynthesisError(f"Assessment reply failed validation: {problems}") from e


class AssessmentClient:
    """Wraps google-genai's async client with the assessment contract."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash",
        timeout: float = 60.0,
        client: Any = None,
    ):
        self.model = model
        self.timeout = timeout
        self._api_key = api_key
        self._client = client

    @property
    def client(self) -> Any:
        if self._client is None:
            if not self._api_key:
                raise AssessmentSynthesisError("GEMINI_API_KEY not configured")
            self._client = genai.Client(
                api_key=self._api_key,
                http_options=types.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    async def assess(self, prompt: str) -> AssessmentResult:
        """Issue the single assessment request and return the validated result."""
        logger.info("[LLM] Generating Score, Summary, and Roadmap...")
        try:
            response = await self.client.aio.models.generate_content(
                model=self.model,
                contents=prompt,
                config=types.GenerateContentConfig(
                    response_mime_type="application/json",
                    response_schema=ASSESSMENT_SCHEMA,
                ),
            )
        except genai_errors.APIError as e:
            raise AssessmentSynthesisError(f"Assessment service error: {e}") from e
        except httpx.HTTPError as e:
            # timeouts and connection failures from the underlying transport
            raise AssessmentSynthesisError(
                f"Assessment service unreachable: {str(e) or type(e).__name__}"
            ) from e

        return parse_assessment(getattr(response, "text", None))
