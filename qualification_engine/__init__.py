"""
Lead Qualification Engine
=========================
Scoring and transcript extraction for scripted sales-qualification calls:
  Extraction: pre-fill answers from a call transcript (pattern matching)
  Session:    step through the questions, edit answers, review
  Scoring:    weighted answer scoring to a 0-100 score and hot/warm/cold status
"""

__version__ = "1.0.0"
__author__ = "Lead Qualification Team"

from .engine import QualificationEngine, create_engine, quick_score
from .session import QualificationSession
from .writers import CallRecordWriter, InMemoryCallRecordWriter
