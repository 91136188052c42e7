import json
import random
import pytest

from vconinsight.core.analytics import analyze, top_agent, pick_services, satisfaction_score, SERVICES
from vconinsight.core.models import CallQualityRecord
from conftest import make_doc

class FixedChoice:
    def __init__(self, value):
        self.value = value

    def choice(self, seq):
        return self.value

def _record(index, agent, score):
    return CallQualityRecord(file_id=1, call_index=index, agent_name=agent, quality_score=score,
                             has_greeting=False, has_closing=False, is_calm=False,
                             resolved_in_time=False, was_transferred=False, duration_seconds=0)

@pytest.fixture()
def sample_doc(sample_path):
    return json.loads(sample_path.read_text())

def test_sample_file(sample_doc):
    a, records = analyze(sample_doc, 9, rng=random.Random(1))
    assert [r.quality_score for r in records] == [10.0, 3.0, 8.0, 10.0, 8.5]
    assert a.file_id == 9 and all(r.file_id == 9 for r in records)
    assert a.total_calls == 5
    assert a.avg_wait_time_seconds == 273.0
    assert a.escalated_calls == 1
    assert a.top_complaints == ["wait", "slow", "problem", "issue", "frustrated"]
    assert a.top_compliments == ["thank", "good", "great", "excellent", "helpful"]
    assert a.satisfaction_score == 4.1
    assert a.avg_quality_score == 7.9
    assert a.calls_below_threshold == 1
    # Sarah Johnson and Alex Rodriguez both average 10.0, first seen wins
    assert a.top_performing_agent == "Sarah Johnson"

def test_empty_dialogs():
    a, records = analyze(make_doc(), 1)
    assert records == []
    assert a.total_calls == 0
    assert a.avg_wait_time_seconds == 0
    assert a.escalated_calls == 0
    assert a.satisfaction_score == 5.0
    assert a.avg_quality_score == 0
    assert a.calls_below_threshold == 0
    assert a.top_performing_agent == ""
    assert a.top_complaints == [] and a.top_compliments == []

def test_consistency_between_outputs():
    rng = random.Random(42)
    words = ["hello", "thank you", "angry", "supervisor", "billing", "great", "", "transfer", "goodbye"]
    dialogs = [{"duration": rng.randint(0, 1200), "transcript": " ".join(rng.sample(words, 3))} for _ in range(40)]
    a, records = analyze(make_doc(*dialogs), 3, rng=rng)
    scores = [r.quality_score for r in records]
    assert all(1.0 <= s <= 10.0 for s in scores)
    assert abs(a.avg_quality_score - sum(scores) / len(scores)) <= 0.05
    assert a.calls_below_threshold == sum(1 for s in scores if s < 6)
    assert a.escalated_calls <= a.total_calls == 40
    assert 1.0 <= a.satisfaction_score <= 5.0
    assert len(a.top_complaints) <= 5 and len(a.top_compliments) <= 5

def test_escalation_by_keyword_or_duration():
    doc = make_doc({"duration": 601, "transcript": "fine"},
                   {"duration": 600, "transcript": "fine"},
                   {"duration": 10, "body": "get me a manager"},
                   {"duration": 10, "transcript": "please escalate"})
    a, _ = analyze(doc, 1)
    assert a.escalated_calls == 3

def test_satisfaction_floor():
    assert satisfaction_score(10, 10, 5) == 2.5
    assert satisfaction_score(0, 0, 0) == 5.0
    assert satisfaction_score(10, 10, 50) == 1.0

def test_service_pick_is_reproducible():
    first = analyze(make_doc(), 1, rng=random.Random(7))[0]
    second = analyze(make_doc(), 1, rng=random.Random(7))[0]
    assert first.popular_service == second.popular_service
    assert first.popular_service in SERVICES
    assert first.least_engaged_service != first.popular_service

def test_least_engaged_is_first_other_service():
    assert pick_services(FixedChoice("Technical Support")) == ("Technical Support", "Billing Inquiries")
    assert pick_services(FixedChoice("Sales")) == ("Sales", "Technical Support")

def test_top_agent_first_seen_wins_ties():
    records = [_record(0, "Mike Chen", 8.0), _record(1, "Emily Davis", 9.0),
               _record(2, "Sarah Johnson", 9.0), _record(3, "Mike Chen", 10.0)]
    assert top_agent(records) == "Mike Chen"
    assert top_agent(records[1:3]) == "Emily Davis"
    assert top_agent([]) == ""
