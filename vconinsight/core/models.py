from dataclasses import dataclass, field, asdict
from typing import Any, Dict, List

@dataclass
class DialogEntry:
    duration_seconds: float = 0.0
    text: str = ""  # lowercased transcript or body

@dataclass(frozen=True)
class CallQualityRecord:
    file_id: int
    call_index: int
    agent_name: str
    quality_score: float
    has_greeting: bool
    has_closing: bool
    is_calm: bool
    resolved_in_time: bool
    was_transferred: bool
    duration_seconds: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass(frozen=True)
class AggregateAnalytics:
    file_id: int
    total_calls: int
    avg_wait_time_seconds: float
    escalated_calls: int
    satisfaction_score: float
    top_complaints: List[str]
    top_compliments: List[str]
    popular_service: str
    least_engaged_service: str
    avg_quality_score: float
    top_performing_agent: str
    calls_below_threshold: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

@dataclass
class VconFile:
    id: int
    filename: str
    uploaded_at: str
    data: Dict[str, Any] = field(repr=False)
    processed: bool = False

    def summary(self) -> Dict[str, Any]:
        return {"id": self.id, "filename": self.filename,
                "uploaded_at": self.uploaded_at, "processed": self.processed}
