"""
External LLM Reviewer for echocardiogram qualification.

Sends the raw notes to an OpenAI-compatible chat model with strict
instructions against hallucination and negation errors, and validates the
JSON it returns. Every failure is raised as ReviewerError so the caller can
fall back to the deterministic engine.
"""

import json
import re

from openai import AsyncOpenAI
from pydantic import ValidationError

from config.config import Settings, get_settings
from config.logging_config import get_logger
from models.reviewer_models import ReviewerResult

logger = get_logger(__name__)


class ReviewerError(Exception):
    """Raised when the reviewer is unavailable or returns unusable output."""


class LLMReviewer:
    """
    Reviews clinical notes with an external chat model.

    The model only ever reports what the notes state explicitly; its
    output is validated before use and never trusted blindly.
    """

    SYSTEM_PROMPT = """You review clinical notes to decide whether a patient qualifies for an echocardiogram.
Report ONLY findings that are written explicitly in the notes.

NO INFERENCE
- Never assume a condition that is not documented.
- Never fill gaps with what is typical for similar patients.

NEGATION
A negated condition is ABSENT. Examples:
- "no chest pain", "denies shortness of breath", "negative for edema", "without dyspnea"
- "nonsmoker" / "non-smoker" means the patient does not smoke
- "no history of MI", "MI ruled out"
- "asymptomatic" means no symptoms
A term that follows "no" or "denies" is never a confirmed finding.

UNCERTAINTY
Suspected conditions are uncertain, NOT confirmed:
- "possible CHF", "rule out MI", "r/o ACS", "? chest pain", "likely", "concerning for"

INSUFFICIENT INFORMATION
If the notes do not explicitly document enough to decide, answer "Insufficient Information".
"Review Needed" or "Insufficient Information" is always better than a guess.

QUALIFICATION CRITERIA
Qualified with ANY of:
- confirmed cardiac history (MI, CHF, valve disease, cardiomyopathy, ...)
- confirmed cardiac findings (abnormal EKG, elevated troponin, cardiomegaly, ...)
- 2 or more confirmed cardiac symptoms (chest pain, dyspnea, syncope, palpitations, ...)
- 1 cardiac symptom documented by cardiology or the emergency department
Not qualified with only risk factors, only negated findings, or only uncertain findings.

OUTPUT
Return one raw JSON object, no markdown:
{
  "confirmed_findings": [
    {"finding": "...", "category": "symptom" | "history" | "cardiac_finding" | "risk_factor",
     "evidence": "exact quote", "confidence": "high" | "medium"}
  ],
  "negated_findings": [{"finding": "...", "evidence": "exact quote"}],
  "uncertain_findings": [{"finding": "...", "evidence": "exact quote", "reason": "..."}],
  "primary_indication": "string or null",
  "qualification_status": "Qualified" | "Not Qualified" | "Review Needed" | "Insufficient Information",
  "qualification_reason": "brief explanation",
  "confidence": "high" | "medium" | "low",
  "warnings": ["data quality or ambiguity concerns"]
}"""

    USER_PROMPT = """Review these clinical notes for echocardiogram qualification.
Respect every negation and answer "Insufficient Information" if the notes are unclear.

CLINICAL NOTES:
---
{notes}
---

Return ONLY the JSON object."""

    def __init__(self, settings: Settings | None = None, client: AsyncOpenAI | None = None):
        self.settings = settings or get_settings()
        self.client = client or AsyncOpenAI(
            api_key=self.settings.reviewer_api_key,
            base_url=self.settings.reviewer_base_url,
            timeout=self.settings.reviewer_timeout_seconds,
        )
        self.model = self.settings.reviewer_model

    async def review(self, notes: str) -> ReviewerResult:
        """
        Review notes and return the validated reviewer result.

        Raises:
            ReviewerError: On transport failure, empty or malformed output.
        """
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": self.SYSTEM_PROMPT},
                    {"role": "user", "content": self.USER_PROMPT.format(notes=notes)},
                ],
                temperature=self.settings.reviewer_temperature,
                max_tokens=self.settings.reviewer_max_tokens,
            )
        except Exception as e:
            logger.error("Reviewer request failed", error=str(e), model=self.model)
            raise ReviewerError(f"Reviewer request failed: {e}") from e

        if not response.choices or not response.choices[0].message.content:
            raise ReviewerError("Reviewer returned no content")

        content = response.choices[0].message.content.strip()
        data = self._parse_json(content)
        if data is None:
            raise ReviewerError("Reviewer returned malformed JSON")

        try:
            result = ReviewerResult.model_validate(data)
        except ValidationError as e:
            logger.warning("Reviewer output failed validation", error=str(e))
            raise ReviewerError(f"Reviewer output failed validation: {e}") from e

        logger.info(
            "Reviewer completed",
            model=self.model,
            status=result.qualification_status.value,
            confirmed=len(result.confirmed_findings),
            negated=len(result.negated_findings),
            uncertain=len(result.uncertain_findings),
        )
        return result

    def _parse_json(self, content: str) -> dict | None:
        """Parse JSON from the model response."""
        # Remove markdown code blocks if present
        content = re.sub(r"```json\s*", "", content)
        content = re.sub(r"```\s*", "", content)
        content = content.strip()

        try:
            data = json.loads(content)
        except json.JSONDecodeError:
            # Try the outermost JSON object
            match = re.search(r"\{.*\}", content, re.DOTALL)
            if not match:
                logger.warning("JSON parse failed", content=content[:100])
                return None
            try:
                data = json.loads(match.group(0))
            except json.JSONDecodeError:
                logger.warning("JSON parse failed", content=content[:100])
                return None

        return data if isinstance(data, dict) else None


# Singleton instance
_reviewer: LLMReviewer | None = None


def get_llm_reviewer() -> LLMReviewer:
    """Get or create the reviewer singleton."""
    global _reviewer
    if _reviewer is None:
        _reviewer = LLMReviewer()
    return _reviewer
