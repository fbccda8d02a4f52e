"""
Answer Scoring
==============
Deterministic scoring of free-text answers to weighted qualification questions.

Per answered question (0-5 points):
- Length ramp: up to full points at 50 characters
- Positive keyword floor: at least 4 (+1 bonus) when any positive keyword appears
- Negative keyword ceiling: at most 2 when any negative keyword appears

The weighted mean is rescaled to 0-100 and mapped onto a threshold table.
"""

import logging
import math
import re
import time
from typing import Optional, List, Union

from ..models.schemas import (
    AnswerStore,
    Question,
    QuestionSet,
    QuestionScore,
    ScoreResult,
    QualificationStatus,
    active_questions,
)
from ..models.qualification_config import QualificationConfig, KeywordConfig

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positive values"""
    return int(math.floor(value + 0.5))


class KeywordMatcher:
    """Case-insensitive keyword/phrase matcher compiled from a keyword list."""

    def __init__(self, keywords: List[str], whole_word: bool = False):
        self.keywords = list(keywords)
        self._patterns = [
            (keyword, re.compile(self._to_pattern(keyword, whole_word), re.IGNORECASE))
            for keyword in self.keywords
        ]

    @staticmethod
    def _to_pattern(keyword: str, whole_word: bool) -> str:
        body = r"\s+".join(re.escape(word) for word in keyword.split())
        if whole_word:
            return rf"(?<!\w){body}(?!\w)"
        return body

    def find(self, text: str) -> List[str]:
        """Distinct keywords present in text, in configuration order"""
        return [keyword for keyword, regex in self._patterns if regex.search(text)]


class AnswerScoringStage:
    """
    Score an AnswerStore against a question set.
    """

    def __init__(self, config: Optional[QualificationConfig] = None):
        """
        Initialize with a qualification config or use defaults.
        """
        self.config = config or QualificationConfig()
        self.rules = self.config.scoring_rules
        self.thresholds = self.config.thresholds
        keywords: KeywordConfig = self.config.keywords
        self.positive = KeywordMatcher(keywords.positive, keywords.whole_word)
        self.negative = KeywordMatcher(keywords.negative, keywords.whole_word)

    def process(
        self,
        questions: Union[QuestionSet, List[Question]],
        answers: Optional[AnswerStore] = None,
    ) -> ScoreResult:
        """
        Calculate the qualification score.

        Args:
            questions: Question set (inactive questions are ignored)
            answers: Mapping of question id to answer text

        Returns:
            ScoreResult with score, status, next action and per-question breakdown
        """
        start_time = time.time()
        answers = answers or {}

        total_score = 0.0
        total_weight = 0.0
        breakdown = []

        for question in active_questions(questions):
            answer = answers.get(question.id) or ""
            if not answer:
                # Only absent or empty answers stay out of the average
                continue

            scored = self.score_answer(question, answer)
            breakdown.append(scored)
            total_score += scored.weighted_score
            total_weight += scored.weight

        if total_weight > 0:
            score = round_half_up((total_score / total_weight) * self.rules.scale_factor)
            score = max(0, min(100, score))
        else:
            score = 0

        status = self.determine_status(score)
        processing_time = (time.time() - start_time) * 1000

        logger.debug(
            f"Scored {len(breakdown)} answers: {score}/100 ({status.value}, "
            f"table={self.thresholds.name})"
        )

        return ScoreResult(
            score=score,
            status=status,
            next_action=self.next_action(status),
            is_hot_deal=score >= self.thresholds.hot_deal,
            follow_up_required=score >= self.thresholds.follow_up,
            total_weight=total_weight,
            answered_questions=len(breakdown),
            breakdown=breakdown,
            threshold_table=self.thresholds.name,
            processing_time_ms=round(processing_time, 2),
        )

    def score_answer(self, question: Question, answer: str) -> QuestionScore:
        """Score one non-empty answer on the 0-5 point scale"""
        rules = self.rules

        # Length ramp
        base = min(len(answer) / rules.length_ramp_chars, 1) * rules.max_answer_points
        answer_score = base

        # Positive floor
        positive = self.positive.find(answer)
        if positive:
            bonus = min(len(positive), rules.positive_bonus_cap)
            answer_score = max(answer_score, rules.positive_floor + bonus)

        # Negative ceiling, always applied last
        negative = self.negative.find(answer)
        if negative:
            answer_score = min(answer_score, rules.negative_ceiling)

        return QuestionScore(
            question_id=question.id,
            answer_length=len(answer),
            base_score=round(base, 4),
            positive_matches=positive,
            negative_matches=negative,
            answer_score=answer_score,
            weight=question.scoring_weight,
            weighted_score=answer_score * question.scoring_weight,
        )

    # =========================================================================
    # Helper functions
    # =========================================================================

    def determine_status(self, score: int) -> QualificationStatus:
        """Map a score onto the configured threshold table"""
        if score >= self.thresholds.hot:
            return QualificationStatus.HOT
        elif score >= self.thresholds.warm:
            return QualificationStatus.WARM
        else:
            return QualificationStatus.COLD

    def next_action(self, status: QualificationStatus) -> str:
        """Recommended next action for a status"""
        if status == QualificationStatus.HOT:
            return self.thresholds.hot_action
        elif status == QualificationStatus.WARM:
            return self.thresholds.warm_action
        return self.thresholds.cold_action
