"""
Lead Qualification Engine - Usage Examples
==========================================
This file demonstrates how to use the Lead Qualification Engine
both programmatically and via the API.
"""

QUESTIONS = [
    {"id": "q-budget", "text": "What budget have you allocated?", "orderIndex": 0, "scoringWeight": 3},
    {"id": "q-timeline", "text": "When are you planning to roll this out?", "orderIndex": 1, "scoringWeight": 2},
    {"id": "q-authority", "text": "Who holds decision authority?", "orderIndex": 2, "scoringWeight": 2},
    {"id": "q-pain", "text": "What challenge is slowing your team down?", "orderIndex": 3, "scoringWeight": 1},
    {"id": "q-crm", "text": "Which CRM platform does your team use today?", "orderIndex": 4, "scoringWeight": 1},
]

TRANSCRIPT = (
    "Hi, thanks for calling. Our budget is $50k for this initiative. "
    "We want to launch within 3 months if possible. "
    "The decision sits with our VP of Operations. "
    "Our biggest problem is reps forgetting to log calls. "
    "Right now the whole team lives in a HubSpot CRM platform."
)


# =============================================================================
# EXAMPLE 1: Direct Scoring
# =============================================================================

def example_direct_scoring():
    """Score a set of answers directly"""
    from qualification_engine.engine import quick_score

    answers = {
        "q-budget": "Yes, we have budget approved and need this urgently",
        "q-timeline": "",
    }
    result = quick_score(QUESTIONS[:2], answers)

    print(f"Score: {result.score}/100")
    print(f"Status: {result.status.value}")
    print(f"Next Action: {result.next_action}")
    for item in result.breakdown:
        print(f"  {item.question_id}: {item.answer_score:.1f} x {item.weight} "
              f"(+{item.positive_matches} -{item.negative_matches})")


# =============================================================================
# EXAMPLE 2: Transcript Extraction
# =============================================================================

def example_extraction():
    """Pre-fill answers from a call transcript"""
    from qualification_engine.engine import QualificationEngine
    from qualification_engine.models.schemas import Question

    engine = QualificationEngine()
    questions = [Question(**q) for q in QUESTIONS]
    result = engine.extract_answers(questions, TRANSCRIPT)

    for match in result.matches:
        print(f"  {match.question_id} [{match.category}/{match.technique.value}]: {match.answer}")


# =============================================================================
# EXAMPLE 3: Full Session
# =============================================================================

def example_session():
    """Run a session from transcript to saved call record"""
    from qualification_engine import InMemoryCallRecordWriter, create_engine
    from qualification_engine.models.schemas import Question, QuestionSet

    writer = InMemoryCallRecordWriter()
    engine = create_engine(threshold_table="enhanced", writer=writer)
    question_set = QuestionSet(questions=[Question(**q) for q in QUESTIONS])

    session = engine.start_session(question_set, client_id="client-42", rep_id="rep-7")
    session.apply_extraction(TRANSCRIPT)
    session.set_answer("q-crm", "HubSpot, and yes we are ready to switch")

    while not session.is_summary:
        print(f"  Step {session.current_step + 1}/{session.total_steps} "
              f"({session.progress_percent}%): {session.current_question.text}")
        session.next()

    record = session.save()
    print(f"Saved record {record.record_id}: {record.score}/100 "
          f"{record.qualification_status.value} -> {record.next_action}")
    print(f"Lead status: {writer.lead_statuses['client-42']}")


# =============================================================================
# EXAMPLE 4: API Usage
# =============================================================================

def example_api_usage():
    """Example API calls (requires server running)"""
    BASE_URL = "http://localhost:8000"

    payload = {
        "questions": QUESTIONS[:2],
        "answers": {"q-budget": "Budget is approved, we are ready"},
        "threshold_table": "standard",
    }

    print("Request payload:")
    print(f"  POST {BASE_URL}/api/qualify/score")
    print(f"  {payload}")

    # Uncomment to actually make the request:
    # response = httpx.post(f"{BASE_URL}/api/qualify/score", json=payload)
    # print(f"\nResponse: {response.json()}")


# =============================================================================
# MAIN
# =============================================================================

if __name__ == "__main__":
    print("\n" + "=" * 60)
    print("LEAD QUALIFICATION ENGINE - USAGE EXAMPLES")
    print("=" * 60 + "\n")

    print("\n[Example 1: Direct Scoring]")
    example_direct_scoring()

    print("\n" + "-" * 60)
    print("\n[Example 2: Transcript Extraction]")
    example_extraction()

    print("\n" + "-" * 60)
    print("\n[Example 3: Full Session]")
    example_session()

    print("\n" + "-" * 60)
    print("\n[Example 4: API Usage]")
    example_api_usage()

    print("\n" + "=" * 60)
    print("EXAMPLES COMPLETE")
    print("=" * 60)
