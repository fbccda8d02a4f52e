"""
Qualification Configuration Models
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator
from datetime import datetime, timezone
import uuid

from ..config.settings import (
    DEFAULT_KEYWORDS,
    DEFAULT_SCORING_RULES,
    THRESHOLD_TABLES,
    default_threshold_table,
    EXTRACTION_RULES,
    FALLBACK_STOP_WORDS,
    FALLBACK_MIN_WORD_LENGTH,
)
from ..exceptions import ConfigurationError


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeywordConfig(BaseModel):
    """Positive and negative answer keywords"""
    positive: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS["positive"]))
    negative: List[str] = Field(default_factory=lambda: list(DEFAULT_KEYWORDS["negative"]))
    whole_word: bool = DEFAULT_KEYWORDS["whole_word"]

    @field_validator("positive", "negative")
    @classmethod
    def _normalize(cls, keywords: List[str]) -> List[str]:
        normalized = []
        for keyword in keywords:
            keyword = " ".join(keyword.lower().split())
            if not keyword:
                raise ValueError("keywords must not be blank")
            if keyword not in normalized:
                normalized.append(keyword)
        return normalized


class ScoringRules(BaseModel):
    """Per-answer point rules"""
    length_ramp_chars: int = Field(DEFAULT_SCORING_RULES["length_ramp_chars"], gt=0)
    max_answer_points: float = Field(DEFAULT_SCORING_RULES["max_answer_points"], gt=0)
    positive_floor: float = Field(DEFAULT_SCORING_RULES["positive_floor"], ge=0)
    positive_bonus_cap: float = Field(DEFAULT_SCORING_RULES["positive_bonus_cap"], ge=0)
    negative_ceiling: float = Field(DEFAULT_SCORING_RULES["negative_ceiling"], ge=0)
    scale_factor: float = Field(DEFAULT_SCORING_RULES["scale_factor"], gt=0)


class ThresholdTable(BaseModel):
    """Score cutoffs (inclusive lower bounds) and the next action for each status"""
    name: str = "standard"
    hot: int = Field(70, ge=0, le=100)
    warm: int = Field(40, ge=0, le=100)
    hot_deal: int = Field(80, ge=0, le=100)
    follow_up: int = Field(70, ge=0, le=100)
    hot_action: str = "Schedule demo meeting"
    warm_action: str = "Follow up call"
    cold_action: str = "Archive lead"

    @model_validator(mode="after")
    def _check_order(self) -> "ThresholdTable":
        if self.warm > self.hot:
            raise ValueError(f"warm threshold {self.warm} exceeds hot threshold {self.hot}")
        return self


class ExtractionRule(BaseModel):
    """A question category and the transcript pattern used to answer it"""
    category: str
    question_terms: List[str]
    pattern: str

    @field_validator("question_terms")
    @classmethod
    def _lower_terms(cls, terms: List[str]) -> List[str]:
        terms = [t.lower().strip() for t in terms if t.strip()]
        if not terms:
            raise ValueError("an extraction rule needs at least one question term")
        return terms


class QualificationConfig(BaseModel):
    """Complete scoring and extraction configuration"""
    config_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: str = "Default Qualification"
    description: Optional[str] = None

    # Scoring
    keywords: KeywordConfig = Field(default_factory=KeywordConfig)
    scoring_rules: ScoringRules = Field(default_factory=ScoringRules)
    thresholds: ThresholdTable = Field(
        default_factory=lambda: get_threshold_table(default_threshold_table())
    )

    # Extraction
    extraction_rules: List[ExtractionRule] = Field(
        default_factory=lambda: [ExtractionRule(**r) for r in EXTRACTION_RULES]
    )
    fallback_stop_words: List[str] = Field(default_factory=lambda: list(FALLBACK_STOP_WORDS))
    fallback_min_word_length: int = Field(FALLBACK_MIN_WORD_LENGTH, ge=1)

    # Metadata
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def update(self, **kwargs):
        """Update configuration and set updated_at"""
        for key, value in kwargs.items():
            if hasattr(self, key):
                setattr(self, key, value)
        self.updated_at = _utcnow()
        return self


def get_threshold_table(name: str) -> ThresholdTable:
    """Look up a named threshold table"""
    try:
        return ThresholdTable(**THRESHOLD_TABLES[name])
    except KeyError:
        raise ConfigurationError(
            f"Unknown threshold table: {name}",
            {"available": sorted(THRESHOLD_TABLES)},
        ) from None


def create_default_qualification_config(
    threshold_table: Optional[str] = None,
    positive_keywords: Optional[List[str]] = None,
    negative_keywords: Optional[List[str]] = None,
    extraction_rules: Optional[List[ExtractionRule]] = None,
) -> QualificationConfig:
    """
    Factory function to create a qualification config with sensible defaults
    """
    config = QualificationConfig(
        thresholds=get_threshold_table(threshold_table or default_threshold_table())
    )

    if positive_keywords is not None:
        config.keywords = KeywordConfig(
            positive=positive_keywords,
            negative=config.keywords.negative,
            whole_word=config.keywords.whole_word,
        )

    if negative_keywords is not None:
        config.keywords = KeywordConfig(
            positive=config.keywords.positive,
            negative=negative_keywords,
            whole_word=config.keywords.whole_word,
        )

    if extraction_rules is not None:
        config.extraction_rules = list(extraction_rules)

    return config
