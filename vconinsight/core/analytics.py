"""Batch analytics for one vCon document.

`analyze` is the entry point: normalize dialogs, score each call, then
aggregate over both. Everything here is pure except the service pick, which
draws from the `rng` passed in.
"""
import random
from typing import Dict, List, Optional, Sequence, Tuple

from .models import DialogEntry, CallQualityRecord, AggregateAnalytics
from .parser import normalize_dialogs
from .scoring import score_calls, round1
from .tags import COMPLAINT_KEYWORDS, COMPLIMENT_KEYWORDS, ESCALATION_WORDS, contains_any, top_keywords

SERVICES: List[str] = ["Technical Support", "Billing Inquiries", "General Questions", "Sales"]
FALLBACK_LEAST_ENGAGED = "Billing Inquiries"

ESCALATION_DURATION_SEC = 600
QUALITY_THRESHOLD = 6.0

def count_escalated(dialogs: Sequence[DialogEntry]) -> int:
    return sum(1 for d in dialogs
               if d.duration_seconds > ESCALATION_DURATION_SEC or contains_any(d.text, ESCALATION_WORDS))

def satisfaction_score(escalated: int, total: int, n_complaints: int) -> float:
    score = 5.0 - (escalated / max(total, 1)) * 2.0 - n_complaints / 10.0
    return round1(max(1.0, score))

def pick_services(rng: random.Random) -> Tuple[str, str]:
    popular = rng.choice(SERVICES)
    least = next((s for s in SERVICES if s != popular), FALLBACK_LEAST_ENGAGED)
    return popular, least

def top_agent(records: Sequence[CallQualityRecord]) -> str:
    by_agent: Dict[str, List[float]] = {}
    for r in records:
        by_agent.setdefault(r.agent_name, []).append(r.quality_score)

    # Only a strictly higher mean replaces the leader, so the first-seen agent wins ties
    best, best_avg = "", 0.0
    for agent, scores in by_agent.items():
        avg = sum(scores) / len(scores)
        if avg > best_avg:
            best, best_avg = agent, avg
    return best

def aggregate(dialogs: Sequence[DialogEntry], records: Sequence[CallQualityRecord],
              file_id: int, rng: random.Random) -> AggregateAnalytics:
    total = len(dialogs)
    texts = [d.text for d in dialogs]
    complaints = top_keywords(texts, COMPLAINT_KEYWORDS)
    compliments = top_keywords(texts, COMPLIMENT_KEYWORDS)
    escalated = count_escalated(dialogs)
    popular, least = pick_services(rng)
    scores = [r.quality_score for r in records]

    return AggregateAnalytics(
        file_id=file_id,
        total_calls=total,
        avg_wait_time_seconds=sum(d.duration_seconds for d in dialogs) / max(total, 1),
        escalated_calls=escalated,
        satisfaction_score=satisfaction_score(escalated, total, len(complaints)),
        top_complaints=complaints,
        top_compliments=compliments,
        popular_service=popular,
        least_engaged_service=least,
        avg_quality_score=round1(sum(scores) / max(len(scores), 1)),
        top_performing_agent=top_agent(records),
        calls_below_threshold=sum(1 for s in scores if s < QUALITY_THRESHOLD),
    )

def analyze(document: Dict, file_id: int,
            rng: Optional[random.Random] = None) -> Tuple[AggregateAnalytics, List[CallQualityRecord]]:
    dialogs = normalize_dialogs(document)
    records = score_calls(dialogs, file_id)
    analytics = aggregate(dialogs, records, file_id, rng or random.Random())
    return analytics, records
