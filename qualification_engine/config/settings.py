"""
Configuration settings for the Lead Qualification Engine
"""

import os

# =============================================================================
# API CONFIGURATION
# =============================================================================

API_CONFIG = {
    "host": os.getenv("QUALIFICATION_API_HOST", "0.0.0.0"),
    "port": int(os.getenv("QUALIFICATION_API_PORT", "8000")),
    # Bound enforced by the HTTP layer only; the scoring core accepts any size
    "max_transcript_chars": int(os.getenv("MAX_TRANSCRIPT_CHARS", "1000000")),
    # Idle sessions older than this are dropped from the in-memory store
    "session_ttl_seconds": int(os.getenv("SESSION_TTL_SECONDS", "3600")),
}

LOG_CONFIG = {
    "level": os.getenv("LOG_LEVEL", "INFO"),
    "file": os.getenv("LOG_FILE", ""),
}

# =============================================================================
# KEYWORD SIGNALS
# =============================================================================

DEFAULT_KEYWORDS = {
    "positive": [
        "yes",
        "interested",
        "budget",
        "ready",
        "approved",
        "definitely",
        "looking for",
        "need",
        "urgent",
        "immediately",
    ],
    "negative": [
        "no",
        "not interested",
        "maybe",
        "unsure",
        "later",
        "thinking about it",
        "not sure",
        "not ready",
    ],
    "whole_word": False,  # plain substring membership; True for word boundaries
}

# =============================================================================
# PER-ANSWER SCORING RULES
# =============================================================================

DEFAULT_SCORING_RULES = {
    "length_ramp_chars": 50,  # answer length that earns full length credit
    "max_answer_points": 5.0,
    "positive_floor": 4.0,
    "positive_bonus_cap": 1.0,
    "negative_ceiling": 2.0,
    "scale_factor": 20.0,  # 5 points * 20 = 100
}

# =============================================================================
# THRESHOLD TABLES
# =============================================================================

THRESHOLD_TABLES = {
    "standard": {
        "name": "standard",
        "hot": 70,
        "warm": 40,
        "hot_deal": 80,
        "follow_up": 70,
        "hot_action": "Schedule demo meeting",
        "warm_action": "Follow up call",
        "cold_action": "Archive lead",
    },
    "enhanced": {
        "name": "enhanced",
        "hot": 80,
        "warm": 60,
        "hot_deal": 80,
        "follow_up": 70,
        "hot_action": "Schedule demo meeting",
        "warm_action": "Follow up in 1 week",
        "cold_action": "Archive lead",
    },
}


def default_threshold_table() -> str:
    """Table used when none is named; read on each call so CLI overrides apply"""
    return os.getenv("QUALIFICATION_THRESHOLD_TABLE", "standard")


# =============================================================================
# TRANSCRIPT EXTRACTION RULES
# =============================================================================

# Tried in order; the first rule whose question_terms appear in the question
# text owns that question.
EXTRACTION_RULES = [
    {
        "category": "budget",
        "question_terms": ["budget", "spend"],
        "pattern": (
            r"budget[^.!?]{0,80}?"
            r"(?:\$\s?|\b)\d(?:[\d,]*\d)?(?:\.\d+)?"
            r"(?:\s*(?:k|m|thousand|million)\b)?"
        ),
    },
    {
        "category": "timeline",
        "question_terms": ["timeline", "when"],
        "pattern": (
            r"\b(?:next\s+\w+"
            r"|within\s+(?:\d+\s*\w+|\w+)"
            r"|\d+\s*months?"
            r"|\d+\s*weeks?"
            r"|quarter"
            r"|immediately"
            r"|soon)\b"
        ),
    },
    {
        "category": "decision",
        "question_terms": ["decision", "authority"],
        # A match on the "sentence" group is widened to its whole sentence
        "pattern": (
            r"\b(?:decision|authority|approve)[^.!?]*"
            r"|(?P<sentence>\b(?:VP|director|manager|CEO|CTO)\b)"
        ),
    },
    {
        "category": "pain",
        "question_terms": ["pain", "problem", "challenge"],
        "pattern": r"\b(?:problem|challenge|issue|difficult|struggle)[^.!?]*",
    },
]

FALLBACK_STOP_WORDS = [
    "what",
    "when",
    "where",
    "who",
    "how",
    "are",
    "you",
    "the",
    "and",
    "for",
    "your",
    "this",
    "that",
]

FALLBACK_MIN_WORD_LENGTH = 4
