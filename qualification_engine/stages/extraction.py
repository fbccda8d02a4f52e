"""
Transcript Extraction
=====================
Pattern matching to pre-fill qualification answers from a call transcript.

Each question is classified by its text into one category, first match wins:
- Budget (amounts after the word "budget")
- Timeline (relative dates, durations, "soon", "immediately")
- Decision authority (approval language, senior titles)
- Pain (problems, challenges, struggles)

Anything unclassified, or classified but unmatched, falls back to the first
transcript sentence that shares a keyword with the question.
"""

import logging
import re
import time
from typing import List, Optional, Tuple, Union

from ..exceptions import ConfigurationError
from ..models.schemas import (
    AnswerStore,
    ExtractedAnswer,
    ExtractionResult,
    ExtractionTechnique,
    MergePolicy,
    Question,
    QuestionSet,
    active_questions,
)
from ..models.qualification_config import QualificationConfig

logger = logging.getLogger(__name__)

FALLBACK_CATEGORY = "fallback"
SENTENCE_GROUP = "sentence"
_SENTENCE_ENDS = ".!?"

_WORD_RE = re.compile(r"[a-z0-9']+")
_SENTENCE_RE = re.compile(r"[^.!?]+")


class TranscriptExtractionStage:
    """
    Extract answers to qualification questions from transcript text.
    """

    def __init__(self, config: Optional[QualificationConfig] = None):
        """
        Initialize with a qualification config or use defaults.
        """
        self.config = config or QualificationConfig()
        self.stop_words = {w.lower() for w in self.config.fallback_stop_words}
        self.min_word_length = self.config.fallback_min_word_length
        self._compile_patterns()

    def _compile_patterns(self):
        """Pre-compile regex patterns for each extraction rule"""
        self.compiled_rules = []

        for rule in self.config.extraction_rules:
            try:
                compiled = re.compile(rule.pattern, re.IGNORECASE)
            except re.error as e:
                raise ConfigurationError(
                    f"Invalid pattern for extraction rule '{rule.category}': {e}",
                    {"category": rule.category, "pattern": rule.pattern},
                ) from e
            self.compiled_rules.append({
                "category": rule.category,
                "terms": rule.question_terms,
                "regex": compiled,
            })

    def process(
        self,
        questions: Union[QuestionSet, List[Question]],
        transcript: Optional[str],
    ) -> ExtractionResult:
        """
        Extract answers from a transcript.

        Args:
            questions: Question set (inactive questions are ignored)
            transcript: Raw transcript text

        Returns:
            ExtractionResult whose answers only hold questions that produced a
            non-empty answer
        """
        start_time = time.time()
        result = ExtractionResult()

        if not transcript or not transcript.strip():
            return result

        for question in active_questions(questions):
            extracted = self.extract_answer(question, transcript)
            if extracted is None:
                logger.debug(f"No answer found for question {question.id}")
                continue
            result.answers[question.id] = extracted.answer
            result.matches.append(extracted)

        result.processing_time_ms = round((time.time() - start_time) * 1000, 2)
        logger.debug(
            f"Extracted {len(result.answers)} answers from "
            f"{len(transcript)} transcript characters"
        )
        return result

    def extract_answer(self, question: Question, transcript: str) -> Optional[ExtractedAnswer]:
        """Find an answer for one question, or None"""
        rule = self.classify(question.text)

        if rule is not None:
            match = rule["regex"].search(transcript)
            if match:
                start, end = match.start(), match.end()
                if match.groupdict().get(SENTENCE_GROUP) is not None:
                    start, end = _sentence_bounds(transcript, start, end)
                span = _trimmed_span(transcript, start, end)
                if span:
                    return ExtractedAnswer(
                        question_id=question.id,
                        category=rule["category"],
                        technique=ExtractionTechnique.PATTERN,
                        answer=transcript[span[0]:span[1]],
                        start=span[0],
                        end=span[1],
                    )

        span = self._fallback_sentence(question.text, transcript)
        if span:
            return ExtractedAnswer(
                question_id=question.id,
                category=rule["category"] if rule else FALLBACK_CATEGORY,
                technique=ExtractionTechnique.FALLBACK,
                answer=transcript[span[0]:span[1]],
                start=span[0],
                end=span[1],
            )
        return None

    def classify(self, question_text: str) -> Optional[dict]:
        """First extraction rule whose terms appear in the question text"""
        text = question_text.lower()
        for rule in self.compiled_rules:
            if any(term in text for term in rule["terms"]):
                return rule
        return None

    def question_keywords(self, question_text: str) -> List[str]:
        """Content words of a question used by the sentence fallback"""
        keywords = []
        for word in _WORD_RE.findall(question_text.lower()):
            if len(word) < self.min_word_length or word in self.stop_words:
                continue
            if word not in keywords:
                keywords.append(word)
        return keywords

    def _fallback_sentence(self, question_text: str, transcript: str) -> Optional[Tuple[int, int]]:
        keywords = self.question_keywords(question_text)
        if not keywords:
            return None

        for sentence in _SENTENCE_RE.finditer(transcript):
            lowered = sentence.group(0).lower()
            if any(keyword in lowered for keyword in keywords):
                span = _trimmed_span(transcript, sentence.start(), sentence.end())
                if span:
                    return span
        return None


def _sentence_bounds(text: str, start: int, end: int) -> Tuple[int, int]:
    """Grow [start, end) to the enclosing sentence, excluding its terminator"""
    sentence_start = max(text.rfind(mark, 0, start) for mark in _SENTENCE_ENDS) + 1
    ends = [i for i in (text.find(mark, end) for mark in _SENTENCE_ENDS) if i != -1]
    return sentence_start, min(ends) if ends else len(text)


def _trimmed_span(text: str, start: int, end: int) -> Optional[Tuple[int, int]]:
    """Shrink [start, end) past surrounding whitespace; None if nothing is left"""
    while start < end and text[start].isspace():
        start += 1
    while end > start and text[end - 1].isspace():
        end -= 1
    if start == end:
        return None
    return start, end


def merge_extracted_answers(
    existing: Optional[AnswerStore],
    extracted: AnswerStore,
    policy: MergePolicy = MergePolicy.PREFER_EXTRACTED,
) -> AnswerStore:
    """
    Merge extracted answers into an existing answer store.

    PREFER_EXTRACTED overwrites any existing answer for the same question.
    PREFER_EXISTING only fills questions whose answer is absent or blank.
    Empty extracted values never overwrite anything.
    """
    merged = dict(existing or {})
    for question_id, answer in extracted.items():
        if not answer or not answer.strip():
            continue
        if policy == MergePolicy.PREFER_EXISTING and (merged.get(question_id) or "").strip():
            continue
        merged[question_id] = answer
    return merged
