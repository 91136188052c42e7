from typing import List, Iterable

# Order matters: ties in top_keywords keep this order.
COMPLAINT_KEYWORDS: List[str] = ["wait", "slow", "problem", "issue", "complaint", "frustrated", "angry", "billing", "connection"]
COMPLIMENT_KEYWORDS: List[str] = ["great", "excellent", "helpful", "fast", "quick", "thank", "good", "satisfied", "amazing"]

GREETING_PHRASES = ["hello", "good", "thank you for calling"]
CLOSING_PHRASES = ["thank you", "goodbye", "have a great day"]
AGITATION_WORDS = ["angry", "frustrated"]
TRANSFER_WORDS = ["transfer", "escalate", "supervisor"]
ESCALATION_WORDS = ["supervisor", "manager", "escalate"]

def contains_any(text: str, keywords: Iterable[str]) -> bool:
    # Plain substring match, so "thank" also hits "thanks" and "good" hits "goodbye"
    return any(k in text for k in keywords)

def top_keywords(texts: Iterable[str], keywords: List[str], limit: int = 5) -> List[str]:
    texts = [t for t in texts if t]
    counts = [(k, sum(1 for t in texts if k in t)) for k in keywords]
    counts = [c for c in counts if c[1] > 0]
    counts.sort(key=lambda x: x[1], reverse=True)  # stable
    return [k for k, _ in counts[:limit]]
