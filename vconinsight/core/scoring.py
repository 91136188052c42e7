"""Per-call quality scoring.

A deterministic keyword and duration heuristic. Each dialog is scored on its
own, so `score_call` can be tested without any batch context.
"""
import math
from typing import List, Sequence

from .models import DialogEntry, CallQualityRecord
from .tags import (COMPLAINT_KEYWORDS, GREETING_PHRASES, CLOSING_PHRASES,
                   AGITATION_WORDS, TRANSFER_WORDS, contains_any)

AGENT_ROSTER: List[str] = ["Sarah Johnson", "Mike Chen", "Emily Davis", "Alex Rodriguez", "Jessica Wilson"]

RESOLUTION_LIMIT_SEC = 600
BASE_SCORE = 5.0
MIN_SCORE, MAX_SCORE = 1.0, 10.0

def round1(x: float) -> float:
    """Round half up to one decimal."""
    return math.floor(x * 10 + 0.5) / 10

def agent_for(call_index: int) -> str:
    return AGENT_ROSTER[call_index % len(AGENT_ROSTER)]

def score_call(dialog: DialogEntry, call_index: int, file_id: int) -> CallQualityRecord:
    text = dialog.text
    has_greeting = contains_any(text, GREETING_PHRASES)
    has_closing = contains_any(text, CLOSING_PHRASES)
    is_calm = not contains_any(text, AGITATION_WORDS) and not contains_any(text, COMPLAINT_KEYWORDS)
    resolved_in_time = dialog.duration_seconds < RESOLUTION_LIMIT_SEC
    was_transferred = contains_any(text, TRANSFER_WORDS)

    score = BASE_SCORE
    if has_greeting:
        score += 1.5
    if has_closing:
        score += 1.5
    if is_calm:
        score += 2.0
    if resolved_in_time:
        score += 1.5
    if was_transferred:
        score -= 2.0
    score = max(MIN_SCORE, min(MAX_SCORE, score))

    return CallQualityRecord(
        file_id=file_id,
        call_index=call_index,
        agent_name=agent_for(call_index),
        quality_score=round1(score),
        has_greeting=has_greeting,
        has_closing=has_closing,
        is_calm=is_calm,
        resolved_in_time=resolved_in_time,
        was_transferred=was_transferred,
        duration_seconds=dialog.duration_seconds,
    )

def score_calls(dialogs: Sequence[DialogEntry], file_id: int) -> List[CallQualityRecord]:
    return [score_call(d, i, file_id) for i, d in enumerate(dialogs)]
