# Qualification stages module
from .extraction import TranscriptExtractionStage, merge_extracted_answers
from .scoring import AnswerScoringStage
