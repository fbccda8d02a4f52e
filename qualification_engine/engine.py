"""
Lead Qualification Engine - Main Orchestrator
=============================================
Ties the two stages together behind one configuration:
  Transcript Extraction → (rep edits in a session) → Answer Scoring

Key properties:
- Both stages are built once per configuration and shared by every session
- Sessions own their answers; the engine holds no per-lead state
"""

import logging
from typing import Optional, List, Dict, Any, Union

from .models.schemas import (
    AnswerStore,
    CallRecord,
    ExtractionResult,
    MergePolicy,
    Question,
    QuestionSet,
    ScoreResult,
)
from .models.qualification_config import (
    QualificationConfig,
    create_default_qualification_config,
)
from .session import QualificationSession
from .stages.extraction import TranscriptExtractionStage
from .stages.scoring import AnswerScoringStage
from .writers import CallRecordWriter

logger = logging.getLogger(__name__)


class QualificationEngine:
    """
    Main engine that owns the scoring and extraction stages.
    """

    def __init__(
        self,
        config: Optional[QualificationConfig] = None,
        writer: Optional[CallRecordWriter] = None,
    ):
        """
        Initialize the engine.

        Args:
            config: Qualification configuration (uses defaults if not provided)
            writer: Default call record writer for sessions started here
        """
        self.config = config or create_default_qualification_config()
        self.writer = writer

        # Initialize stages
        self.scorer = AnswerScoringStage(self.config)
        self.extractor = TranscriptExtractionStage(self.config)

        # Track statistics
        self.stats = self._empty_stats()

    def score_answers(
        self,
        questions: Union[QuestionSet, List[Question]],
        answers: Optional[AnswerStore] = None,
    ) -> ScoreResult:
        """
        Score a set of answers.

        Args:
            questions: Question configuration
            answers: Mapping of question id to answer text

        Returns:
            ScoreResult
        """
        result = self.scorer.process(questions, answers)
        self.stats["total_scored"] += 1
        self.stats["status_counts"][result.status.value] += 1
        self.stats["total_processing_time_ms"] += result.processing_time_ms
        return result

    def extract_answers(
        self,
        questions: Union[QuestionSet, List[Question]],
        transcript: Optional[str],
    ) -> ExtractionResult:
        """
        Pre-fill answers from a transcript.

        Args:
            questions: Question configuration
            transcript: Raw transcript text

        Returns:
            ExtractionResult holding only the questions that were answered
        """
        result = self.extractor.process(questions, transcript)
        self.stats["total_extractions"] += 1
        self.stats["answers_extracted"] += len(result.answers)
        self.stats["total_processing_time_ms"] += result.processing_time_ms
        return result

    def start_session(
        self,
        questions: Union[QuestionSet, List[Question]],
        client_id: Optional[str] = None,
        rep_id: Optional[str] = None,
        existing_record: Optional[CallRecord] = None,
        answers: Optional[AnswerStore] = None,
        transcript: Optional[str] = None,
        merge_policy: MergePolicy = MergePolicy.PREFER_EXTRACTED,
        writer: Optional[CallRecordWriter] = None,
    ) -> QualificationSession:
        """
        Open a qualification session.

        Args:
            questions: Question configuration, frozen for the session
            client_id: Lead being qualified
            rep_id: Rep running the call
            existing_record: Previously saved record to resume from
            answers: Initial answers (override those from existing_record)
            transcript: Initial transcript (overrides the existing_record one)
            merge_policy: Default extraction merge policy
            writer: Writer for this session (defaults to the engine writer)

        Returns:
            QualificationSession positioned on the first step
        """
        record_id = None
        if existing_record is not None:
            record_id = existing_record.record_id
            client_id = client_id or existing_record.client_id
            rep_id = rep_id or existing_record.rep_id
            if answers is None:
                answers = existing_record.answers
            if transcript is None:
                transcript = existing_record.transcript

        self.stats["sessions_started"] += 1

        return QualificationSession(
            questions,
            scorer=self.scorer,
            extractor=self.extractor,
            writer=writer or self.writer,
            client_id=client_id,
            rep_id=rep_id,
            answers=answers,
            transcript=transcript,
            merge_policy=merge_policy,
            record_id=record_id,
        )

    def update_config(self, new_config: QualificationConfig):
        """Update the configuration and rebuild both stages"""
        self.config = new_config
        self.scorer = AnswerScoringStage(new_config)
        self.extractor = TranscriptExtractionStage(new_config)
        logger.info(
            f"Engine configuration updated: {new_config.name} "
            f"(thresholds={new_config.thresholds.name})"
        )

    def get_stats(self) -> Dict[str, Any]:
        """Get engine statistics"""
        stats = dict(self.stats)
        stats["status_counts"] = dict(self.stats["status_counts"])
        if stats["total_scored"] > 0:
            stats["hot_rate"] = round(
                stats["status_counts"]["hot"] / stats["total_scored"] * 100, 1
            )
        if stats["total_extractions"] > 0:
            stats["avg_answers_extracted"] = round(
                stats["answers_extracted"] / stats["total_extractions"], 2
            )
        return stats

    def reset_stats(self):
        """Reset engine statistics"""
        self.stats = self._empty_stats()

    @staticmethod
    def _empty_stats() -> Dict[str, Any]:
        return {
            "total_scored": 0,
            "total_extractions": 0,
            "answers_extracted": 0,
            "sessions_started": 0,
            "status_counts": {"hot": 0, "warm": 0, "cold": 0},
            "total_processing_time_ms": 0,
        }


# =============================================================================
# Convenience Functions
# =============================================================================

def _to_questions(questions: List[Union[Question, Dict[str, Any]]]) -> QuestionSet:
    return QuestionSet(
        questions=[q if isinstance(q, Question) else Question(**q) for q in questions]
    )


def create_engine(
    threshold_table: Optional[str] = None,
    positive_keywords: Optional[List[str]] = None,
    negative_keywords: Optional[List[str]] = None,
    writer: Optional[CallRecordWriter] = None,
) -> QualificationEngine:
    """
    Factory function to create an engine with common settings.

    Args:
        threshold_table: "standard" (70/40) or "enhanced" (80/60)
        positive_keywords: Replacement positive keyword list
        negative_keywords: Replacement negative keyword list
        writer: Default call record writer

    Returns:
        Configured QualificationEngine instance
    """
    config = create_default_qualification_config(
        threshold_table=threshold_table,
        positive_keywords=positive_keywords,
        negative_keywords=negative_keywords,
    )
    return QualificationEngine(config=config, writer=writer)


def quick_score(
    questions: List[Union[Question, Dict[str, Any]]],
    answers: AnswerStore,
) -> ScoreResult:
    """
    Quick scoring function using the default configuration.

    Args:
        questions: Questions as models or dicts (camelCase or snake_case keys)
        answers: Mapping of question id to answer text

    Returns:
        ScoreResult
    """
    engine = QualificationEngine()
    return engine.score_answers(_to_questions(questions), answers)
