# tests/test_trace_builder.py
"""
End-to-end scoring pass tests for build_scoring_trace and score_response.
"""

import asyncio

import pytest

from app.models.enumerations import DiagnosticCode
from app.models.survey import ScoreConfig, Survey, parse_answers
from app.scoring.trace_builder import build_scoring_trace, score_response


@pytest.fixture
def answers_with_text():
    return parse_answers({
        "q1": "4",
        "q2": "1",
        "q4": "My manager paired with me on my first launch and reviewed every step.",
    })


class TestBuildScoringTrace:

    def test_two_category_scenario(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers)

        assert result.category("cat1").normalized_score == 80
        assert result.category("cat2").normalized_score == 20
        assert result.overall.score == 50
        assert result.overall.band.label == "Developing"
        assert result.summary() == {"score": 50, "band_id": "developing", "band_label": "Developing"}

    def test_category_bands_use_fallback_ranges(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers)
        # cat1 maps q1 and q4 -> scale 0-10; 80% projects to 8, the top third
        assert result.category("cat1").band.band_id == "cat1-fallback-3"
        assert result.category("cat1").band.label == "Excellent"
        # cat2 maps q2 only -> scale 0-5; 20% projects to 1, the bottom third
        assert result.category("cat2").band.band_id == "cat2-fallback-1"
        assert result.category("cat2").band.label == "Developing"

    def test_category_band_agrees_with_normalized_score(self, make_question):
        survey = Survey(
            id="s",
            questions=[make_question("q1", ratingScale=10)],
            score_config=ScoreConfig.model_validate({
                "enabled": True,
                "categories": [{"id": "cat1"}],
                "scoreRanges": [
                    {"id": "low", "min": 0, "max": 1, "label": "Low", "category": "cat1"},
                    {"id": "mid", "min": 2, "max": 3, "label": "Mid", "category": "cat1"},
                    {"id": "top", "min": 4, "max": 5, "label": "Top", "category": "cat1"},
                ],
            }),
        )
        result = build_scoring_trace(survey, {"q1": "5"})
        category = result.category("cat1")

        assert category.raw_score == 5
        assert category.normalized_score == 50
        # 50% of the 0-5 scale rounds half-up to 3
        assert category.band.band_id == "mid"

    def test_meta(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers, response_id="resp-9")
        assert result.meta.survey_id == "survey-1"
        assert result.meta.survey_title == "Team Engagement Pulse"
        assert result.meta.response_id == "resp-9"
        assert result.meta.scoring_engine_id == "engagement_v1"
        assert result.meta.scoring_enabled is True

    def test_survey_engine_id_wins(self, engagement_survey_data, engagement_answers):
        engagement_survey_data["scoringEngineId"] = "custom_v2"
        survey = Survey.model_validate(engagement_survey_data)
        result = build_scoring_trace(survey, engagement_answers, scoring_engine_id="engagement_v1")
        assert result.meta.scoring_engine_id == "custom_v2"

    def test_idempotent(self, engagement_survey, engagement_answers):
        first = build_scoring_trace(engagement_survey, engagement_answers, response_id="r1")
        second = build_scoring_trace(engagement_survey, engagement_answers, response_id="r1")
        assert first.model_dump_json() == second.model_dump_json()

    def test_config_snapshot_is_normalized(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers)
        assert result.config.ranges_for("cat1")
        assert result.has_error(DiagnosticCode.CONFIGURATION_ERROR)

    def test_scoring_disabled(self, engagement_survey_data, engagement_answers):
        engagement_survey_data["scoreConfig"]["enabled"] = False
        result = build_scoring_trace(Survey.model_validate(engagement_survey_data), engagement_answers)

        assert result.config is None
        assert result.categories == []
        assert result.overall is None
        assert result.meta.scoring_enabled is False
        assert result.has_error(DiagnosticCode.SCORING_DISABLED)

    def test_missing_score_config(self, engagement_answers):
        result = build_scoring_trace(Survey(id="s", questions=[]), engagement_answers)
        assert result.has_error(DiagnosticCode.SCORING_DISABLED)
        assert result.summary()["score"] is None

    def test_no_answers_gives_no_overall(self, engagement_survey):
        result = build_scoring_trace(engagement_survey, {})
        assert result.overall is None
        assert result.has_error(DiagnosticCode.NO_SCORABLE_DATA)
        assert all(c.normalized_score == 0 and c.answered_count == 0 for c in result.categories)

    def test_declared_global_bands(self, banded_survey):
        result = build_scoring_trace(banded_survey, {"q1": "5"})
        assert result.overall.score == 100
        assert result.overall.band.band_id == "high"
        assert result.overall.band.label == "Clear"


class TestSemanticScores:

    def test_accepted_score_adds_to_category(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers, semantic_scores={"cat1": 4})
        cat1 = result.category("cat1")

        assert cat1.raw_score == 12
        assert cat1.max_possible_score == 15
        assert cat1.answered_count == 2
        assert cat1.normalized_score == 80
        assert result.semantic[0].value == 4

    @pytest.mark.parametrize("raw,expected", [(7, 5), (-2, 0), (3.5, 4), ("4", 4)])
    def test_values_are_clamped_and_rounded(self, engagement_survey, engagement_answers, raw, expected):
        result = build_scoring_trace(engagement_survey, engagement_answers, semantic_scores={"cat1": raw})
        assert result.semantic[0].value == expected
        assert result.semantic[0].raw_value == raw

    def test_unknown_category_is_ignored(self, engagement_survey, engagement_answers):
        result = build_scoring_trace(engagement_survey, engagement_answers, semantic_scores={"ghost": 3})
        assert result.semantic == []
        assert result.has_error(DiagnosticCode.UNKNOWN_CATEGORY_REFERENCE)
        assert result.overall.score == 50

    @pytest.mark.parametrize("raw", [float("nan"), float("inf"), "high", None, True])
    def test_non_finite_values_are_ignored(self, engagement_survey, engagement_answers, raw):
        result = build_scoring_trace(engagement_survey, engagement_answers, semantic_scores={"cat1": raw})
        assert result.semantic == []
        assert result.category("cat1").max_possible_score == 10
        assert result.has_error(DiagnosticCode.EXTERNAL_SCORER_FAILURE)


class TestScoreResponse:

    def test_semantic_scorer_is_awaited_once(self, engagement_survey, answers_with_text, stub_scorer_factory):
        scorer = stub_scorer_factory(scores={"cat1": 5})
        result = asyncio.run(score_response(
            engagement_survey, answers_with_text, semantic_scorer=scorer, timeout=1.0,
        ))

        assert len(scorer.calls) == 1
        items, categories = scorer.calls[0]
        assert [i.question_id for i in items] == ["q4"]
        assert categories == [("cat1", "Support"), ("cat2", "Clarity")]
        assert result.category("cat1").raw_score == 13
        assert result.category("cat1").max_possible_score == 15

    def test_scorer_failure_keeps_numeric_scores(self, engagement_survey, answers_with_text, stub_scorer_factory):
        scorer = stub_scorer_factory(error=RuntimeError("upstream unavailable"))
        result = asyncio.run(score_response(
            engagement_survey, answers_with_text, semantic_scorer=scorer, timeout=1.0,
        ))

        assert result.has_error(DiagnosticCode.EXTERNAL_SCORER_FAILURE)
        assert result.category("cat1").normalized_score == 80
        assert result.overall.score == 50

    def test_scorer_timeout_keeps_numeric_scores(self, engagement_survey, answers_with_text, stub_scorer_factory):
        scorer = stub_scorer_factory(scores={"cat1": 5}, delay=1.0)
        result = asyncio.run(score_response(
            engagement_survey, answers_with_text, semantic_scorer=scorer, timeout=0.01,
        ))

        failures = [e for e in result.errors if e.code == DiagnosticCode.EXTERNAL_SCORER_FAILURE]
        assert "timed out" in failures[0].message
        assert result.semantic == []
        assert result.overall.score == 50

    def test_no_free_text_skips_scorer(self, engagement_survey, engagement_answers, stub_scorer_factory):
        scorer = stub_scorer_factory(scores={"cat1": 5})
        asyncio.run(score_response(engagement_survey, engagement_answers, semantic_scorer=scorer))
        assert scorer.calls == []

    def test_missing_scorer_is_reported(self, engagement_survey, answers_with_text):
        result = asyncio.run(score_response(engagement_survey, answers_with_text))
        assert result.has_error(DiagnosticCode.EXTERNAL_SCORER_FAILURE)
        assert result.overall.score == 50

    def test_disabled_survey_skips_scorer(self, engagement_survey_data, answers_with_text, stub_scorer_factory):
        engagement_survey_data["scoreConfig"]["enabled"] = False
        scorer = stub_scorer_factory(scores={"cat1": 5})
        result = asyncio.run(score_response(
            Survey.model_validate(engagement_survey_data), answers_with_text, semantic_scorer=scorer,
        ))
        assert scorer.calls == []
        assert result.has_error(DiagnosticCode.SCORING_DISABLED)
