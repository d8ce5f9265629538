"""Editorial analysis of page text by a hosted Gemini model."""

from __future__ import annotations

import json
import logging
from typing import Any, Protocol

import google.generativeai as genai
from pydantic import ValidationError

from ..config import Settings
from ..domain.model import AnalysisResult, SpellingError
from ..utils.models import SpellSpiderError


logger = logging.getLogger(__name__)


class AnalysisError(SpellSpiderError):
    """The analysis model was unavailable or returned an unusable response."""


class AnalysisService(Protocol):
    """Anything that can turn page text into an editorial verdict."""

    async def analyze(self, text: str) -> AnalysisResult: ...


ANALYSIS_PROMPT = """You are a senior copy editor auditing website content with extreme precision.

Analyze the text provided below.

### 1. Detection categories
* Spelling and Grammar (High severity): actual typos, subject-verb disagreement, homophone misuse.
  Do NOT flag British vs American spelling unless it is inconsistent within the text.
* Style (Medium severity): passive voice that weakens a sentence, repetitive structure, awkward phrasing.
* Clarity (Medium/High severity): undefined acronyms on first use, run-on or ambiguous sentences.
* Conciseness (Low severity, report as Style): pleonasms and wordy constructions.
* Tone (Low/Medium severity): slang or casual language inside otherwise formal text.

### 2. Scoring and summary
* score: integer 0-100. 90-100 is publish-ready, below 60 needs a major rewrite.
* summary: a professional two-sentence summary of the writing quality.

### 3. Do NOT flag
* Brand names, proper nouns or technical jargon.
* Navigation items such as "Login", "Sign Up" or "Copyright".
* Fragments that are clearly headlines or buttons.

Respond with JSON only, shaped as:
{{"score": int, "summary": str, "errors": [{{"original": str, "suggestion": str, "context": str,
"type": "Spelling|Grammar|Style|Clarity|Tone", "severity": "Low|Medium|High", "explanation": str}}]}}

### Input text:
\"\"\"
{text}
\"\"\"
"""


def _strip_code_fences(text: str) -> str:
    return text.strip().replace("```json", "").replace("```", "").strip()


def parse_analysis_response(response_text: str | None) -> AnalysisResult:
    """Parse the model's JSON reply into an AnalysisResult.

    Missing score defaults to 100 and missing summary to "No summary provided.".
    Individual errors that fail validation are dropped with a warning.

    Raises:
        AnalysisError: If the reply is empty or not a JSON object
    """
    if not response_text or not response_text.strip():
        raise AnalysisError("No content analyzed.")

    try:
        data = json.loads(_strip_code_fences(response_text))
    except json.JSONDecodeError as e:
        logger.error(f"Failed to parse analysis response: {e}")
        raise AnalysisError("Failed to parse AI response") from e

    if not isinstance(data, dict):
        raise AnalysisError("Failed to parse AI response")

    errors: list[SpellingError] = []
    for raw in data.get("errors") or []:
        try:
            errors.append(SpellingError.model_validate(raw))
        except ValidationError as e:
            logger.warning(f"Dropping malformed analysis error entry: {e.error_count()} validation issue(s)")

    try:
        return AnalysisResult(errors=errors, score=data.get("score"), summary=data.get("summary"))
    except (ValidationError, TypeError, ValueError) as e:
        raise AnalysisError(f"Invalid analysis result: {e}") from e


class GeminiAnalysisService:
    """AnalysisService backed by google-generativeai."""

    def __init__(self, settings: Settings, model: Any | None = None):
        self.settings = settings
        self._model = model

    def _get_model(self) -> Any:
        if self._model is None:
            if not self.settings.gemini_api_key:
                raise AnalysisError("GEMINI_API_KEY is not configured")
            genai.configure(api_key=self.settings.gemini_api_key)
            self._model = genai.GenerativeModel(
                self.settings.analysis_model,
                generation_config={"response_mime_type": "application/json"},
            )
        return self._model

    async def analyze(self, text: str) -> AnalysisResult:
        """Audit ``text`` (truncated to ``analysis_max_chars``) for editorial issues."""
        model = self._get_model()
        truncated = text[: self.settings.analysis_max_chars]
        if len(truncated) < len(text):
            logger.debug(f"Truncated analysis input from {len(text)} to {len(truncated)} characters")

        try:
            response = await model.generate_content_async(ANALYSIS_PROMPT.format(text=truncated))
            response_text = response.text
        except Exception as e:
            logger.error(f"Analysis request failed: {e}")
            raise AnalysisError(f"Analysis request failed: {e}") from e

        result = parse_analysis_response(response_text)
        logger.info(f"Analysis complete: score={result.score}, errors={len(result.errors)}")
        return result
