"""
Semantic Scorer
app/scoring/semantic_scorer.py

Free-text answers (text / textarea questions tagged with a category) are
scored by an external chat-completions service. One batched request per
scoring pass; the reply is a JSON object of category id -> score.

Acceptance rules for each returned entry:
    unknown category id  -> ignored, UnknownCategoryReference diagnostic
    non-finite value     -> ignored, ExternalScorerFailure diagnostic
    otherwise            -> value = clamp(round(value), 0, 5)
                            raw_total += value, max_total += 5, answered += 1
"""

import json
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional, Protocol, Sequence, Tuple

import httpx
import structlog

from app.core.exceptions import SemanticScorerException
from app.models.enumerations import DiagnosticCode, FREE_TEXT_TYPES
from app.models.scoring import Diagnostic, SemanticContribution
from app.models.survey import Answers, ScoreConfig, Survey
from app.scoring.category_aggregator import CategoryTotals
from app.scoring.utils import clamp, is_finite_number, round_half_up, to_decimal

logger = structlog.get_logger(__name__)

SEMANTIC_MAX_ITEM_SCORE = 5

SCORING_SYSTEM_PROMPT = """You are an expert assessment scorer. Score the following responses based on the assessment criteria.

Use ONLY the provided category IDs as JSON keys. Each score must be an integer between 0 and 5:
- 0: No evidence or completely off-topic
- 1: Minimal evidence, vague response
- 2: Some evidence, basic understanding
- 3: Good evidence, clear understanding
- 4: Strong evidence, detailed response
- 5: Excellent evidence, exceptional insight

Example 1:
Question: "Describe a time you demonstrated leadership"
Category: leadership-skills
Response: "I led our team through a difficult project deadline by delegating tasks and maintaining morale."
Score: 4 (Strong evidence of leadership with specific actions)

Example 2:
Question: "What did you learn about communication?"
Category: communication
Response: "It was good."
Score: 1 (Minimal evidence, too vague)

Return ONLY a JSON object with category IDs as keys and numeric scores as values. No other text."""


@dataclass(frozen=True)
class SemanticScoringItem:
    """One free-text answer sent to the semantic scorer."""
    question_id: str
    question_text: str
    category_id: str
    category_name: str
    response_text: str


class SemanticScorer(Protocol):
    """Anything that turns free-text items into category id -> score."""

    async def score(
        self,
        items: Sequence[SemanticScoringItem],
        categories: Sequence[Tuple[str, str]],
    ) -> Mapping[str, Any]:
        ...


def build_semantic_items(survey: Survey, answers: Answers, config: ScoreConfig) -> List[SemanticScoringItem]:
    """Collect answered free-text questions that carry a scoring category."""
    items = []
    for q in survey.questions:
        if q.question_type not in FREE_TEXT_TYPES or not q.scoring_category:
            continue
        answer = answers.get(q.id)
        text = ", ".join(answer) if isinstance(answer, list) else answer
        if not text or not text.strip():
            continue
        items.append(SemanticScoringItem(
            question_id=q.id,
            question_text=q.question,
            category_id=q.scoring_category,
            category_name=config.category_name(q.scoring_category),
            response_text=text,
        ))
    return items


def apply_semantic_scores(
    totals: Dict[str, CategoryTotals],
    semantic_scores: Optional[Mapping[str, Any]],
) -> Tuple[List[SemanticContribution], List[Diagnostic]]:
    """
    Fold collaborator scores into category totals.

    Mutates the totals it is given; returns the accepted contributions and
    any diagnostics for rejected entries.
    """
    contributions: List[SemanticContribution] = []
    diagnostics: List[Diagnostic] = []
    if not semantic_scores:
        return contributions, diagnostics

    for category_id, raw_value in semantic_scores.items():
        category = totals.get(category_id)
        if category is None:
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.UNKNOWN_CATEGORY_REFERENCE,
                message=f"Ignoring semantic score for unknown category: {category_id}",
                category_id=str(category_id),
            ))
            continue
        if not is_finite_number(raw_value):
            diagnostics.append(Diagnostic(
                code=DiagnosticCode.EXTERNAL_SCORER_FAILURE,
                message=f"Semantic score for category {category_id} is not a finite number; ignored",
                category_id=category_id,
            ))
            continue

        value = int(clamp(round_half_up(to_decimal(float(raw_value))), 0, SEMANTIC_MAX_ITEM_SCORE))
        category.add(to_decimal(value), to_decimal(SEMANTIC_MAX_ITEM_SCORE))
        contributions.append(SemanticContribution(
            category_id=category_id,
            category_name=category.category_name,
            raw_value=raw_value,
            value=value,
            max_value=SEMANTIC_MAX_ITEM_SCORE,
        ))
    return contributions, diagnostics


class ChatCompletionSemanticScorer:
    """
    Semantic scorer backed by an OpenAI-compatible chat-completions endpoint.

    Usage:
        scorer = ChatCompletionSemanticScorer(base_url="https://api.mistral.ai/v1", api_key="...")
        scores = await scorer.score(items, [("leadership", "Leadership")])
    """

    def __init__(
        self,
        base_url: str,
        api_key: Optional[str] = None,
        model: str = "mistral-medium-latest",
        temperature: float = 0.2,
        timeout: float = 20.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._model = model
        self._temperature = temperature
        self._timeout = timeout
        self._transport = transport

    def build_messages(
        self,
        items: Sequence[SemanticScoringItem],
        categories: Sequence[Tuple[str, str]],
    ) -> List[Dict[str, str]]:
        category_list = "\n".join(f'- ID: "{cid}" (Name: "{name}")' for cid, name in categories)
        responses = "\n\n".join(
            f'Question: "{item.question_text}"\n'
            f"Category: {item.category_name} (ID: {item.category_id})\n"
            f'Response: "{item.response_text}"'
            for item in items
        )
        user_prompt = (
            f"Categories (use ONLY these IDs as keys):\n{category_list}\n\n"
            f"Score these responses (0-5 integer for each category):\n\n{responses}\n\n"
            'Return ONLY valid JSON like: {"cat-1": 4, "cat-2": 3}'
        )
        return [
            {"role": "system", "content": SCORING_SYSTEM_PROMPT},
            {"role": "user", "content": user_prompt},
        ]

    async def score(
        self,
        items: Sequence[SemanticScoringItem],
        categories: Sequence[Tuple[str, str]],
    ) -> Mapping[str, Any]:
        if not items:
            return {}

        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        payload = {
            "model": self._model,
            "messages": self.build_messages(items, categories),
            "temperature": self._temperature,
            "response_format": {"type": "json_object"},
        }

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(f"{self._base_url}/chat/completions", headers=headers, json=payload)
                resp.raise_for_status()
                body = resp.json()
        except httpx.HTTPStatusError as e:
            raise SemanticScorerException(
                f"Semantic scorer returned HTTP {e.response.status_code}",
                status_code=e.response.status_code,
            ) from e
        except (httpx.HTTPError, ValueError) as e:
            raise SemanticScorerException(f"Semantic scorer request failed: {e}") from e

        try:
            content = body["choices"][0]["message"]["content"]
            scores = json.loads(content)
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise SemanticScorerException("Semantic scorer reply was not a JSON object") from e
        if not isinstance(scores, dict):
            raise SemanticScorerException("Semantic scorer reply was not a JSON object")

        logger.info("semantic_scores_received", items=len(items), categories=len(scores))
        return scores
