"""
Qualification Session
=====================
Multi-step qualification workflow for a single lead/call.

Steps 0..N-1 are the active questions in order, step N is the summary. The
rep can move freely between steps, edit answers at any step, pre-fill answers
from a transcript, and save from the summary step.
"""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple, Union

from .exceptions import (
    CallRecordWriteError,
    InvalidTransitionError,
    UnknownQuestionError,
)
from .models.schemas import (
    AnswerStore,
    CallRecord,
    ExtractionResult,
    MergePolicy,
    QualificationStatus,
    Question,
    QuestionSet,
    QuestionStep,
    ScoreResult,
    Step,
    SummaryStep,
    active_questions,
)
from .stages.extraction import TranscriptExtractionStage, merge_extracted_answers
from .stages.scoring import AnswerScoringStage
from .writers import CallRecordWriter

logger = logging.getLogger(__name__)


class QualificationSession:
    """
    One rep's qualification workflow for one lead.
    """

    def __init__(
        self,
        questions: Union[QuestionSet, List[Question]],
        scorer: Optional[AnswerScoringStage] = None,
        extractor: Optional[TranscriptExtractionStage] = None,
        writer: Optional[CallRecordWriter] = None,
        client_id: Optional[str] = None,
        rep_id: Optional[str] = None,
        answers: Optional[AnswerStore] = None,
        transcript: Optional[str] = None,
        merge_policy: MergePolicy = MergePolicy.PREFER_EXTRACTED,
        record_id: Optional[str] = None,
        session_id: Optional[str] = None,
    ):
        """
        Args:
            questions: Question configuration; the active subset is frozen here
            scorer: Scoring stage (defaults to the default configuration)
            extractor: Extraction stage (defaults to the default configuration)
            writer: Default destination for save()
            client_id: Lead being qualified
            rep_id: Rep running the call
            answers: Answers to resume from; ids outside the snapshot are dropped
            transcript: Transcript to resume from
            merge_policy: Default policy for apply_extraction()
            record_id: Id of a previously stored record being updated
        """
        self.session_id = session_id or str(uuid.uuid4())
        self.questions: Tuple[Question, ...] = tuple(active_questions(questions))
        self._question_ids = {q.id for q in self.questions}
        self.scorer = scorer or AnswerScoringStage()
        self.extractor = extractor or TranscriptExtractionStage()
        self.writer = writer
        self.client_id = client_id
        self.rep_id = rep_id
        self.transcript = transcript or ""
        self.merge_policy = merge_policy
        self.record_id = record_id
        self.created_at = datetime.now(timezone.utc)

        self.answers: AnswerStore = {}
        for question_id, answer in (answers or {}).items():
            if question_id in self._question_ids:
                self.answers[question_id] = answer
            else:
                logger.warning(
                    f"Session {self.session_id}: dropping answer for unknown "
                    f"or inactive question {question_id}"
                )

        self._current_step = 0
        self.last_record: Optional[CallRecord] = None
        self.save_count = 0

        logger.info(
            f"Started session {self.session_id} for client {client_id} "
            f"with {len(self.questions)} questions"
        )

    # =========================================================================
    # Step state
    # =========================================================================

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def total_steps(self) -> int:
        """Questions plus the summary step"""
        return len(self.questions) + 1

    @property
    def current_step(self) -> int:
        return self._current_step

    @property
    def step(self) -> Step:
        """The current step as a tagged value"""
        if self._current_step >= len(self.questions):
            return SummaryStep(index=self._current_step)
        return QuestionStep(
            index=self._current_step,
            question=self.questions[self._current_step],
        )

    @property
    def is_summary(self) -> bool:
        return self._current_step == len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        if self.is_summary:
            return None
        return self.questions[self._current_step]

    @property
    def progress(self) -> float:
        """Fraction of steps reached, for display only"""
        return (self._current_step + 1) / self.total_steps

    @property
    def progress_percent(self) -> float:
        return round(self.progress * 100, 1)

    def next(self) -> Step:
        """Advance one step, stopping at the summary"""
        self._current_step = min(self._current_step + 1, len(self.questions))
        return self.step

    def prev(self) -> Step:
        """Go back one step, stopping at the first question"""
        self._current_step = max(self._current_step - 1, 0)
        return self.step

    def go_to(self, step: int) -> Step:
        """Jump to a step between 0 and the summary step inclusive"""
        if not 0 <= step <= len(self.questions):
            raise InvalidTransitionError(
                f"Step {step} is outside 0..{len(self.questions)}",
                {"step": step, "summary_step": len(self.questions)},
            )
        self._current_step = step
        return self.step

    # =========================================================================
    # Answers and transcript
    # =========================================================================

    def set_answer(self, question_id: str, text: str):
        """Set the answer to one question; the current step does not change"""
        if question_id not in self._question_ids:
            raise UnknownQuestionError(question_id)
        self.answers[question_id] = text or ""

    def set_transcript(self, transcript: Optional[str]):
        """Replace the transcript without touching the answers"""
        self.transcript = transcript or ""

    def apply_extraction(
        self,
        transcript: Optional[str] = None,
        merge_policy: Optional[MergePolicy] = None,
    ) -> ExtractionResult:
        """
        Pre-fill answers from a transcript.

        Args:
            transcript: New transcript; the stored transcript is used when None
            merge_policy: Overrides the session's default merge policy

        Returns:
            The ExtractionResult that was merged
        """
        if transcript is not None:
            self.transcript = transcript
        policy = merge_policy or self.merge_policy

        result = self.extractor.process(list(self.questions), self.transcript)
        self.answers = merge_extracted_answers(self.answers, result.answers, policy)

        logger.info(
            f"Session {self.session_id}: extracted {len(result.answers)}/"
            f"{len(self.questions)} answers ({policy.value})"
        )
        return result

    # =========================================================================
    # Scoring and saving
    # =========================================================================

    def preview_score(self) -> ScoreResult:
        """Score the current answers without saving"""
        return self.scorer.process(list(self.questions), self.answers)

    def build_call_record(self) -> CallRecord:
        """Build the record that save() would hand to the writer"""
        result = self.preview_score()
        today = datetime.now(timezone.utc).date().isoformat()

        return CallRecord(
            record_id=self.record_id,
            client_id=self.client_id,
            rep_id=self.rep_id,
            answers=dict(self.answers),
            score=result.score,
            qualification_status=result.status,
            is_hot_deal=result.is_hot_deal,
            follow_up_required=result.follow_up_required,
            next_action=result.next_action,
            transcript=self.transcript,
            tags=_tags_for(result),
            comments=f"Qualification completed with score: {result.score}% on {today}",
        )

    def save(self, writer: Optional[CallRecordWriter] = None) -> CallRecord:
        """
        Score the answers and hand the record to a writer.

        Only allowed from the summary step. If the writer fails the session is
        left unchanged and save() can be retried.
        """
        if not self.is_summary:
            raise InvalidTransitionError(
                "save() is only allowed from the summary step",
                {"current_step": self._current_step, "summary_step": len(self.questions)},
            )

        writer = writer or self.writer
        if writer is None:
            raise CallRecordWriteError("No call record writer configured")

        record = self.build_call_record()
        try:
            stored = writer.write(record)
        except Exception as e:
            logger.warning(f"Session {self.session_id}: save failed: {e}")
            raise

        self.last_record = stored
        self.record_id = stored.record_id
        self.save_count += 1
        logger.info(
            f"Session {self.session_id}: saved record {stored.record_id} "
            f"(score {stored.score}, {stored.qualification_status.value})"
        )
        return stored

    def to_dict(self) -> Dict[str, Any]:
        """Serializable snapshot for the API"""
        return {
            "session_id": self.session_id,
            "client_id": self.client_id,
            "rep_id": self.rep_id,
            "current_step": self._current_step,
            "total_steps": self.total_steps,
            "step": self.step.model_dump(),
            "progress": self.progress_percent,
            "questions": [q.model_dump() for q in self.questions],
            "answers": dict(self.answers),
            "transcript": self.transcript,
            "merge_policy": self.merge_policy.value,
            "record_id": self.record_id,
            "save_count": self.save_count,
        }


def _tags_for(result: ScoreResult) -> List[str]:
    if result.status == QualificationStatus.HOT:
        return ["hot-lead", "high-priority"] if result.is_hot_deal else ["hot-lead"]
    elif result.status == QualificationStatus.WARM:
        return ["warm-lead"]
    return ["cold-lead"]
