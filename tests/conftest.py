"""Shared fixtures for qualification engine tests."""

import pytest

from qualification_engine.exceptions import CallRecordWriteError
from qualification_engine.models.schemas import Question, QuestionSet
from qualification_engine.writers import InMemoryCallRecordWriter


@pytest.fixture
def questions():
    """One question per extraction category plus a generic one."""
    return [
        Question(id="budget", text="What budget have you allocated for this?", order_index=0, scoring_weight=3),
        Question(id="timeline", text="When do you plan to roll this out?", order_index=1, scoring_weight=2),
        Question(id="authority", text="Who has decision authority?", order_index=2, scoring_weight=2),
        Question(id="pain", text="What problem are you trying to solve?", order_index=3, scoring_weight=1),
        Question(id="crm", text="Which CRM platform do you use?", order_index=4, scoring_weight=1),
    ]


@pytest.fixture
def question_set(questions):
    return QuestionSet(questions=questions)


@pytest.fixture
def writer():
    return InMemoryCallRecordWriter()


@pytest.fixture
def transcript():
    return (
        "Thanks for taking the call. Our budget is $50k for this. "
        "We want to go live within 3 months. "
        "The final decision sits with our VP of Sales. "
        "The main problem is that reps forget to log calls. "
        "Today our sales platform is Salesforce."
    )


class FlakyCallRecordWriter(InMemoryCallRecordWriter):
    """Fails the first `failures` writes, then stores normally."""

    def __init__(self, failures=1, message="database unavailable"):
        super().__init__()
        self.failures = failures
        self.message = message

    def write(self, record):
        if self.failures > 0:
            self.failures -= 1
            raise CallRecordWriteError(self.message)
        return super().write(record)


@pytest.fixture
def flaky_writer():
    return FlakyCallRecordWriter()
