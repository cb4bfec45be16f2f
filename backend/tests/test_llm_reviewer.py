"""
Unit Tests for the External LLM Reviewer

The chat client is mocked; no network calls are made.
"""

import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from config.config import Settings
from models.analysis_models import ConfidenceLevel, QualificationStatus
from services.llm_reviewer import LLMReviewer, ReviewerError


VALID_REVIEW = {
    "confirmed_findings": [
        {
            "finding": "Chest Pain",
            "category": "Symptom",
            "evidence": "Patient reports chest pain",
            "confidence": "high",
        },
        {
            "finding": "Dyspnea",
            "category": "symptom",
            "evidence": "chest pain and dyspnea",
        },
    ],
    "negated_findings": [],
    "uncertain_findings": [],
    "primary_indication": "Chest Pain",
    "qualification_status": "Qualified",
    "qualification_reason": "Two confirmed cardiac symptoms documented by cardiology.",
    "confidence": "high",
    "warnings": [],
}


def chat_response(content: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(reviewer_enabled=True, reviewer_api_key="test-key")


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.chat.completions.create = AsyncMock(
        return_value=chat_response(json.dumps(VALID_REVIEW))
    )
    return client


@pytest.fixture
def reviewer(settings, client) -> LLMReviewer:
    return LLMReviewer(settings=settings, client=client)


class TestReview:
    """Tests for successful reviews."""

    async def test_valid_response(self, reviewer):
        result = await reviewer.review("Cardiology consult: Patient reports chest pain and dyspnea.")

        assert result.qualification_status == QualificationStatus.QUALIFIED
        assert result.confidence == ConfidenceLevel.HIGH
        assert result.primary_indication == "Chest Pain"
        assert [f.category for f in result.confirmed_findings] == ["symptom", "symptom"]
        assert result.confirmed_findings[1].confidence == "medium"

    async def test_fenced_response(self, reviewer, client):
        client.chat.completions.create.return_value = chat_response(
            "```json\n" + json.dumps(VALID_REVIEW) + "\n```"
        )

        result = await reviewer.review("notes")

        assert result.qualification_status == QualificationStatus.QUALIFIED

    async def test_json_embedded_in_prose(self, reviewer, client):
        client.chat.completions.create.return_value = chat_response(
            "Here is my review: " + json.dumps(VALID_REVIEW) + " Let me know."
        )

        result = await reviewer.review("notes")

        assert result.primary_indication == "Chest Pain"

    async def test_request_contents(self, reviewer, client, settings):
        await reviewer.review("Patient denies chest pain.")

        kwargs = client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == settings.reviewer_model
        assert kwargs["temperature"] == settings.reviewer_temperature
        assert kwargs["max_tokens"] == settings.reviewer_max_tokens
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "NEGATION" in system["content"]
        assert "Patient denies chest pain." in user["content"]


class TestReviewFailures:
    """Every failure surfaces as ReviewerError."""

    async def test_transport_error(self, reviewer, client):
        client.chat.completions.create.side_effect = ConnectionError("connection refused")

        with pytest.raises(ReviewerError, match="connection refused"):
            await reviewer.review("notes")

    async def test_empty_content(self, reviewer, client):
        client.chat.completions.create.return_value = chat_response(None)

        with pytest.raises(ReviewerError, match="no content"):
            await reviewer.review("notes")

    async def test_no_choices(self, reviewer, client):
        client.chat.completions.create.return_value = SimpleNamespace(choices=[])

        with pytest.raises(ReviewerError):
            await reviewer.review("notes")

    async def test_malformed_json(self, reviewer, client):
        client.chat.completions.create.return_value = chat_response("I cannot decide.")

        with pytest.raises(ReviewerError, match="malformed JSON"):
            await reviewer.review("notes")

    async def test_json_array(self, reviewer, client):
        client.chat.completions.create.return_value = chat_response("[1, 2]")

        with pytest.raises(ReviewerError, match="malformed JSON"):
            await reviewer.review("notes")

    async def test_invalid_status(self, reviewer, client):
        bad = dict(VALID_REVIEW, qualification_status="Probably")
        client.chat.completions.create.return_value = chat_response(json.dumps(bad))

        with pytest.raises(ReviewerError, match="validation"):
            await reviewer.review("notes")

    async def test_invalid_category(self, reviewer, client):
        bad = dict(
            VALID_REVIEW,
            confirmed_findings=[{"finding": "Chest Pain", "category": "vibes", "evidence": "x"}],
        )
        client.chat.completions.create.return_value = chat_response(json.dumps(bad))

        with pytest.raises(ReviewerError):
            await reviewer.review("notes")
