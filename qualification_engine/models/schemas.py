"""
Pydantic schemas for the Lead Qualification Engine
"""

from enum import Enum
from typing import List, Dict, Optional, Literal, Union
from pydantic import BaseModel, Field, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, timezone


# Mapping of question id -> free-text answer. An absent key is an empty answer.
AnswerStore = Dict[str, str]


# =============================================================================
# ENUMS
# =============================================================================

class QualificationStatus(str, Enum):
    """Lead temperature"""
    HOT = "hot"
    WARM = "warm"
    COLD = "cold"


class ExtractionTechnique(str, Enum):
    """How an answer was pulled out of a transcript"""
    PATTERN = "pattern"
    FALLBACK = "fallback"


class MergePolicy(str, Enum):
    """Which side wins when an extracted answer meets an existing one"""
    PREFER_EXISTING = "prefer_existing"
    PREFER_EXTRACTED = "prefer_extracted"


# =============================================================================
# QUESTION CONFIGURATION
# =============================================================================

class Question(BaseModel):
    """A scripted qualification question"""
    id: str
    text: str
    script_text: Optional[str] = None
    order_index: int = 0
    scoring_weight: float = Field(1.0, gt=0)
    is_active: bool = True

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class QuestionSet(BaseModel):
    """Ordered question configuration, validated once before any session starts"""
    questions: List[Question] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique(self) -> "QuestionSet":
        seen_ids = set()
        seen_order = {}
        for q in self.questions:
            if q.id in seen_ids:
                raise ValueError(f"Duplicate question id: {q.id}")
            seen_ids.add(q.id)
            if not q.is_active:
                continue
            if q.order_index in seen_order:
                raise ValueError(
                    f"Duplicate order_index {q.order_index} "
                    f"for questions {seen_order[q.order_index]} and {q.id}"
                )
            seen_order[q.order_index] = q.id
        return self

    def active_questions(self) -> List[Question]:
        """Active questions in presentation order"""
        return active_questions(self.questions)


def active_questions(questions: Union[QuestionSet, List[Question]]) -> List[Question]:
    """Filter to active questions and sort by order_index"""
    if isinstance(questions, QuestionSet):
        questions = questions.questions
    return sorted((q for q in questions if q.is_active), key=lambda q: q.order_index)


# =============================================================================
# SCORING RESULT SCHEMAS
# =============================================================================

class QuestionScore(BaseModel):
    """Score contribution of a single answered question"""
    question_id: str
    answer_length: int
    base_score: float
    positive_matches: List[str] = Field(default_factory=list)
    negative_matches: List[str] = Field(default_factory=list)
    answer_score: float
    weight: float
    weighted_score: float


class ScoreResult(BaseModel):
    """Aggregate score, status and recommended next action"""
    score: int = Field(ge=0, le=100)
    status: QualificationStatus
    next_action: str
    is_hot_deal: bool = False
    follow_up_required: bool = False
    total_weight: float = 0
    answered_questions: int = 0
    breakdown: List[QuestionScore] = Field(default_factory=list)
    threshold_table: str = "standard"
    processing_time_ms: float = 0


# =============================================================================
# EXTRACTION RESULT SCHEMAS
# =============================================================================

class ExtractedAnswer(BaseModel):
    """An answer found in a transcript"""
    question_id: str
    category: str
    technique: ExtractionTechnique
    answer: str
    start: int
    end: int


class ExtractionResult(BaseModel):
    """Partial answer store produced from a transcript"""
    answers: AnswerStore = Field(default_factory=dict)
    matches: List[ExtractedAnswer] = Field(default_factory=list)
    processing_time_ms: float = 0


# =============================================================================
# SESSION STEPS
# =============================================================================

class QuestionStep(BaseModel):
    """The rep is on question `index`"""
    kind: Literal["question"] = "question"
    index: int
    question: Question

    class Config:
        frozen = True


class SummaryStep(BaseModel):
    """The rep is on the review and save step"""
    kind: Literal["summary"] = "summary"
    index: int

    class Config:
        frozen = True


Step = Union[QuestionStep, SummaryStep]


# =============================================================================
# OUTPUT RECORD
# =============================================================================

class CallRecord(BaseModel):
    """Finalized qualification handed to a CallRecordWriter"""
    record_id: Optional[str] = None
    client_id: Optional[str] = None
    rep_id: Optional[str] = None
    answers: AnswerStore = Field(default_factory=dict)
    score: int = Field(0, ge=0, le=100)
    qualification_status: QualificationStatus = QualificationStatus.COLD
    is_hot_deal: bool = False
    follow_up_required: bool = False
    next_action: str = ""
    transcript: str = ""
    tags: List[str] = Field(default_factory=list)
    comments: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


# =============================================================================
# API REQUEST SCHEMAS
# =============================================================================

class ScoreRequest(BaseModel):
    """Request to score a set of answers"""
    questions: List[Question]
    answers: AnswerStore = Field(default_factory=dict)
    threshold_table: Optional[str] = None


class ExtractRequest(BaseModel):
    """Request to extract answers from a transcript"""
    questions: List[Question]
    transcript: str = ""
    existing_answers: Optional[AnswerStore] = None
    merge_policy: MergePolicy = MergePolicy.PREFER_EXTRACTED


class SessionCreateRequest(BaseModel):
    """Request to open a qualification session for a lead"""
    questions: List[Question]
    client_id: Optional[str] = None
    rep_id: Optional[str] = None
    answers: Optional[AnswerStore] = None
    transcript: Optional[str] = None
    merge_policy: MergePolicy = MergePolicy.PREFER_EXTRACTED


class AnswerUpdateRequest(BaseModel):
    """Set the answer to one question"""
    answer: str = ""


class TranscriptRequest(BaseModel):
    """Attach a transcript to a session and pre-fill answers from it"""
    transcript: str
    merge_policy: Optional[MergePolicy] = None
