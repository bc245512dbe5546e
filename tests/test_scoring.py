"""
Scoring engine tests.

Covers:
    - final score formula and the "all three axes present" rule
    - bucket boundaries (inclusive) including the negative-score sentinel
    - live recommendation treating unset axes as zero
    - justification prompt for discard / review buckets
"""

import pytest

from ideabox.services import scoring


class TestComputeFinalScore:
    def test_formula(self):
        assert scoring.compute_final_score(8, 6, 2) == 12

    def test_negative_result_is_allowed(self):
        assert scoring.compute_final_score(0, 0, 10) == -10

    @pytest.mark.parametrize("axes", [(None, 5, 5), (5, None, 5), (5, 5, None), (None, None, None)])
    def test_missing_axis_gives_none(self, axes):
        assert scoring.compute_final_score(*axes) is None

    def test_booleans_are_not_scores(self):
        assert scoring.compute_final_score(True, 5, 1) is None


class TestClassifyScore:
    @pytest.mark.parametrize(
        "score,kind",
        [
            (-1, "review"),
            (0, "discard"),
            (9, "discard"),
            (10, "adjust"),
            (14, "adjust"),
            (15, "approve"),
            (20, "approve"),
            (21, "priority"),
            (30, "priority"),
        ],
    )
    def test_boundaries(self, score, kind):
        assert scoring.classify_score(score).kind == kind

    def test_adjust_bucket_wording(self):
        assert scoring.final_classification(12) == {"label": "Ajustar e incubar", "range": "10-14"}

    def test_priority_bucket_wording(self):
        assert scoring.final_classification(25) == {
            "label": "Prioritário - aprovação imediata",
            "range": "21+",
        }

    def test_none_score_has_no_classification(self):
        assert scoring.final_classification(None) is None

    def test_evaluate_pairs_score_and_classification(self):
        assert scoring.evaluate(10, 10, 0) == (20, {"label": "Aprovar para Gestores", "range": "15-20"})
        assert scoring.evaluate(10, None, 0) == (None, None)


class TestRecommendation:
    def test_unset_axes_count_as_zero(self):
        assert scoring.live_score(7, None, None) == 7
        assert scoring.recommendation_bucket(7, None, None).kind == "discard"

    def test_uses_same_thresholds_as_persisted_classification(self):
        for axes in [(8, 6, 2), (10, 10, 0), (3, 3, 5), (0, 0, 3), (10, 10, 1)]:
            persisted = scoring.final_classification(scoring.compute_final_score(*axes))
            assert scoring.recommendation_bucket(*axes).as_classification() == persisted

    @pytest.mark.parametrize("kind,expected", [
        ("review", True), ("discard", True), ("adjust", False), ("approve", False), ("priority", False),
    ])
    def test_needs_justification(self, kind, expected):
        assert scoring.needs_justification(scoring.BUCKETS[kind]) is expected
