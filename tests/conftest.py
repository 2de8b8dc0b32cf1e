# tests/conftest.py

"""
Pytest Fixtures - Shared surveys, answers and clients for engine and API tests

SURVEY FIXTURE REFERENCE:
- engagement_survey_data: two categories (cat1, cat2), no bands declared
    q1  rating, ratingScale=5, weight=2   -> cat1
    q2  rating, ratingScale=5, weight=3   -> cat2
    q3  multiple_choice A/B/C             -> cat2 (not scorable)
    q4  textarea                          -> cat1 (free text)
- banded_survey_data: one category with declared overall bands
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from app.main import app
from app.models.survey import Question, Survey, parse_answers


# =============================================================================
# FASTAPI TEST CLIENT FIXTURE
# =============================================================================

@pytest.fixture(scope="module")
def client():
    """Create a TestClient for FastAPI application."""
    with TestClient(app) as test_client:
        yield test_client


# =============================================================================
# QUESTION FIXTURES
# =============================================================================

@pytest.fixture
def make_question():
    """Factory for scorable questions using builder (camelCase) keys."""
    def _make(question_id="q1", question_type="rating", category="cat1", **fields):
        data = {
            "id": question_id,
            "type": question_type,
            "question": f"Question {question_id}",
            "scorable": True,
            "scoringCategory": category,
        }
        data.update(fields)
        return Question.model_validate(data)
    return _make


# =============================================================================
# SURVEY FIXTURES
# =============================================================================

@pytest.fixture
def engagement_survey_data():
    """Raw survey JSON as the builder stores it."""
    return {
        "id": "survey-1",
        "title": "Team Engagement Pulse",
        "questions": [
            {
                "id": "q1",
                "type": "rating",
                "question": "How supported do you feel by your manager?",
                "scorable": True,
                "scoringCategory": "cat1",
                "scoreWeight": 2,
                "ratingScale": 5,
            },
            {
                "id": "q2",
                "type": "rating",
                "question": "How clear are your goals this quarter?",
                "scorable": True,
                "scoringCategory": "cat2",
                "scoreWeight": 3,
                "ratingScale": 5,
            },
            {
                "id": "q3",
                "type": "multiple_choice",
                "question": "Which team are you on?",
                "options": ["A", "B", "C"],
            },
            {
                "id": "q4",
                "type": "textarea",
                "question": "Describe a time your manager helped you grow.",
                "scoringCategory": "cat1",
            },
        ],
        "scoreConfig": {
            "enabled": True,
            "categories": [
                {"id": "cat1", "name": "Support"},
                {"id": "cat2", "name": "Clarity"},
            ],
            "scoreRanges": [],
        },
    }


@pytest.fixture
def engagement_survey(engagement_survey_data):
    return Survey.model_validate(engagement_survey_data)


@pytest.fixture
def engagement_answers():
    """cat1: 4 x 2 = 8 of 10 (80%); cat2: 1 x 3 = 3 of 15 (20%)."""
    return parse_answers({"q1": "4", "q2": "1", "q3": "B"})


@pytest.fixture
def banded_survey_data():
    return {
        "id": "survey-2",
        "title": "Onboarding Check",
        "questions": [
            {
                "id": "q1",
                "type": "likert",
                "question": "I understand my role.",
                "scorable": True,
                "scoringCategory": "role",
                "likertPoints": 5,
            },
        ],
        "scoreConfig": {
            "enabled": True,
            "categories": [{"id": "role", "name": "Role Clarity"}],
            "scoreRanges": [
                {"id": "low", "min": 0, "max": 49, "label": "Unclear", "color": "#ff0000"},
                {"id": "high", "min": 50, "max": 100, "label": "Clear"},
            ],
        },
    }


@pytest.fixture
def banded_survey(banded_survey_data):
    return Survey.model_validate(banded_survey_data)


# =============================================================================
# SEMANTIC SCORER FIXTURES
# =============================================================================

class StubSemanticScorer:
    """Returns canned scores and records the items it was sent."""

    def __init__(self, scores=None, error=None, delay=0.0):
        self.scores = scores or {}
        self.error = error
        self.delay = delay
        self.calls = []

    async def score(self, items, categories):
        self.calls.append((list(items), list(categories)))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.scores


@pytest.fixture
def stub_scorer_factory():
    return StubSemanticScorer
