"""Tests for the answer scoring stage."""

import pytest

from qualification_engine.models.qualification_config import (
    KeywordConfig,
    QualificationConfig,
    create_default_qualification_config,
)
from qualification_engine.models.schemas import Question, QualificationStatus
from qualification_engine.stages.scoring import AnswerScoringStage, KeywordMatcher, round_half_up


def _q(qid, weight=1, order=0, active=True):
    return Question(id=qid, text=f"Question {qid}", order_index=order, scoring_weight=weight, is_active=active)


class TestAnswerScoringStage:
    """Tests for AnswerScoringStage."""

    def setup_method(self):
        self.scorer = AnswerScoringStage()

    def test_no_answers_is_cold_zero(self):
        """Nothing answered scores 0 and is cold."""
        result = self.scorer.process([_q("q1"), _q("q2", order=1)], {})
        assert result.score == 0
        assert result.status == QualificationStatus.COLD
        assert result.next_action == "Archive lead"
        assert result.total_weight == 0
        assert result.breakdown == []

    def test_no_active_questions_is_cold_zero(self):
        """Inactive questions never count, even when answered."""
        result = self.scorer.process([_q("q1", active=False)], {"q1": "Yes, definitely ready"})
        assert result.score == 0
        assert result.status == QualificationStatus.COLD

    def test_end_to_end_example(self):
        """Strong positive answer on the heavy question, blank light question."""
        questions = [_q("q1", weight=3), _q("q2", weight=1, order=1)]
        answers = {"q1": "Yes, we have budget approved and need this urgently", "q2": ""}

        result = self.scorer.process(questions, answers)

        assert result.score == 100
        assert result.status == QualificationStatus.HOT
        assert result.total_weight == 3
        assert result.answered_questions == 1
        assert result.breakdown[0].weighted_score == 15
        assert result.is_hot_deal
        assert result.follow_up_required
        assert result.next_action == "Schedule demo meeting"

    def test_whitespace_answer_counts(self):
        """Only empty answers are skipped; whitespace is scored on its raw length."""
        result = self.scorer.process([_q("q1"), _q("q2", order=1)], {"q1": "x" * 50, "q2": "   "})
        assert result.answered_questions == 2
        assert result.total_weight == 2
        assert result.breakdown[1].answer_length == 3
        assert result.score == 53

    def test_empty_answer_is_skipped(self):
        result = self.scorer.process([_q("q1"), _q("q2", order=1)], {"q1": "x" * 50, "q2": ""})
        assert result.answered_questions == 1
        assert result.score == 100

    def test_length_ramp(self):
        """Half the ramp length earns half the points."""
        result = self.scorer.process([_q("q1")], {"q1": "x" * 25})
        assert result.breakdown[0].answer_score == 2.5
        assert result.score == 50

    def test_length_capped_at_max_points(self):
        """Answers beyond the ramp length earn no extra credit."""
        result = self.scorer.process([_q("q1")], {"q1": "x" * 200})
        assert result.breakdown[0].answer_score == 5
        assert result.score == 100

    def test_score_monotonic_in_length(self):
        """Longer keyword-free answers never score lower."""
        scores = [
            self.scorer.process([_q("q1")], {"q1": "x" * n}).score
            for n in range(1, 61)
        ]
        assert scores == sorted(scores)

    def test_positive_keyword_floor(self):
        """A short answer with a positive keyword scores at least 4."""
        result = self.scorer.process([_q("q1")], {"q1": "ready"})
        assert result.breakdown[0].positive_matches == ["ready"]
        assert result.breakdown[0].answer_score >= 4
        assert result.score == 100

    def test_positive_phrase_match(self):
        """Multi-word keywords match across whitespace."""
        result = self.scorer.process([_q("q1")], {"q1": "We are looking   for a tool"})
        assert "looking for" in result.breakdown[0].positive_matches

    def test_negative_keyword_ceiling(self):
        """A negative keyword caps a long answer at 2."""
        answer = "We are not interested at all, please take us off the list for good"
        result = self.scorer.process([_q("q1")], {"q1": answer})
        assert "not interested" in result.breakdown[0].negative_matches
        assert result.breakdown[0].answer_score == 2
        assert result.score == 40

    def test_negative_overrides_positive(self):
        """The negative ceiling is applied after the positive floor."""
        result = self.scorer.process([_q("q1")], {"q1": "yes maybe"})
        assert result.breakdown[0].positive_matches == ["yes"]
        assert result.breakdown[0].negative_matches == ["maybe"]
        assert result.breakdown[0].answer_score == 2
        assert result.score == 40

    def test_negative_does_not_raise_short_answer(self):
        """The ceiling only lowers scores."""
        result = self.scorer.process([_q("q1")], {"q1": "no"})
        assert result.breakdown[0].answer_score == pytest.approx(0.2)
        assert result.status == QualificationStatus.COLD

    def test_substring_matching_by_default(self):
        """Keywords match inside longer words, so 'urgently' carries 'urgent'."""
        result = self.scorer.process([_q("q1")], {"q1": "Urgently."})
        assert result.breakdown[0].positive_matches == ["urgent"]
        assert result.score == 100
        assert result.status == QualificationStatus.HOT

    def test_substring_negative_inside_word(self):
        """'no' inside 'know' is a negative signal under substring matching."""
        result = self.scorer.process([_q("q1")], {"q1": "I know the team is now ready"})
        assert "no" in result.breakdown[0].negative_matches
        assert result.breakdown[0].answer_score == 2

    def test_whole_word_matching_when_configured(self):
        """Word-boundary matching can be switched on."""
        config = QualificationConfig(keywords=KeywordConfig(whole_word=True))
        scorer = AnswerScoringStage(config)
        result = scorer.process([_q("q1")], {"q1": "I know the team is now ready"})
        assert result.breakdown[0].negative_matches == []
        assert result.breakdown[0].answer_score == 5
        assert scorer.process([_q("q1")], {"q1": "Urgently."}).breakdown[0].positive_matches == []

    def test_weighted_average_rounds_half_up(self):
        """62.5 rounds to 63."""
        questions = [_q("q1", weight=3), _q("q2", weight=1, order=1)]
        result = self.scorer.process(questions, {"q1": "x" * 25, "q2": "yes"})
        assert result.score == 63
        assert result.status == QualificationStatus.WARM
        assert result.next_action == "Follow up call"

    def test_score_always_in_range(self):
        """Scores are integers between 0 and 100."""
        samples = ["", "no", "yes", "x" * 500, "maybe later", "urgent need, budget approved"]
        for answer in samples:
            result = self.scorer.process([_q("q1")], {"q1": answer})
            assert isinstance(result.score, int)
            assert 0 <= result.score <= 100

    def test_unknown_answer_ids_ignored(self):
        """Answers for ids outside the question set do not count."""
        result = self.scorer.process([_q("q1")], {"other": "yes definitely"})
        assert result.score == 0

    def test_custom_keywords(self):
        """Keyword lists are injectable."""
        config = create_default_qualification_config(positive_keywords=["synergy"], negative_keywords=["nope"])
        scorer = AnswerScoringStage(config)
        assert scorer.process([_q("q1")], {"q1": "synergy"}).score == 100
        assert scorer.process([_q("q1")], {"q1": "yes"}).breakdown[0].positive_matches == []


class TestThresholdTables:
    """Tests for status and next-action mapping."""

    def _score(self, table, answers, questions):
        scorer = AnswerScoringStage(create_default_qualification_config(threshold_table=table))
        return scorer.process(questions, answers)

    def test_standard_hot_boundary(self):
        """70 is hot on the standard table but not a hot deal."""
        questions = [_q("q1", weight=2), _q("q2", weight=3, order=1)]
        result = self._score("standard", {"q1": "yes", "q2": "x" * 25}, questions)
        assert result.score == 70
        assert result.status == QualificationStatus.HOT
        assert result.follow_up_required
        assert not result.is_hot_deal

    def test_enhanced_hot_boundary(self):
        """70 is only warm on the enhanced table."""
        questions = [_q("q1", weight=2), _q("q2", weight=3, order=1)]
        result = self._score("enhanced", {"q1": "yes", "q2": "x" * 25}, questions)
        assert result.score == 70
        assert result.status == QualificationStatus.WARM
        assert result.next_action == "Follow up in 1 week"
        assert result.threshold_table == "enhanced"

    def test_hot_deal_at_80(self):
        """80 and above marks a hot deal on both tables."""
        questions = [_q("q1", weight=3), _q("q2", weight=2, order=1)]
        for table in ("standard", "enhanced"):
            result = self._score(table, {"q1": "yes", "q2": "x" * 25}, questions)
            assert result.score == 80
            assert result.status == QualificationStatus.HOT
            assert result.is_hot_deal

    def test_warm_boundary(self):
        """40 is warm on standard and cold on enhanced."""
        questions = [_q("q1")]
        assert self._score("standard", {"q1": "yes maybe"}, questions).status == QualificationStatus.WARM
        enhanced = self._score("enhanced", {"q1": "yes maybe"}, questions)
        assert enhanced.status == QualificationStatus.COLD
        assert enhanced.next_action == "Archive lead"


class TestHelpers:
    """Tests for scoring helpers."""

    def test_round_half_up(self):
        assert round_half_up(62.5) == 63
        assert round_half_up(62.4) == 62
        assert round_half_up(0) == 0

    def test_keyword_matcher_distinct_in_order(self):
        matcher = KeywordMatcher(["yes", "need"])
        assert matcher.find("Need it. Yes yes yes") == ["yes", "need"]
