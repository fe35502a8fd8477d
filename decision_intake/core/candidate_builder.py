"""
Validation boundary between untrusted model output and internal candidates.

`build_candidate` is the only path from a RawModelCandidate to a Candidate:
it rejects items without decision/evidence text, normalizes wording and
evidence length, resolves the citation against the chunk, and assigns the
deterministic quality score and id.
"""
import re
from typing import Any, List, Optional

from decision_intake.models.schemas import (
    Candidate,
    CandidateSource,
    Chunk,
    EvidenceSource,
    RawModelCandidate,
)
from decision_intake.utils.text import (
    collapse_whitespace,
    normalize_decision_key,
    stable_hash,
    truncate_snippet,
)

# ===== Scoring =====

BASE_SCORE = 55
TEMPORAL_BONUS = 12
DIGIT_BONUS = 8
LENGTH_BONUS = 5
LENGTH_THRESHOLD = 60
MAX_SCORE = 100

TEMPORAL_RE = re.compile(
    r"\b(20\d{2}|q[1-4]|by end|this year|next year|next quarter|during|within)\b",
    re.IGNORECASE,
)

# ===== Verb handling =====

ACTION_VERBS = {
    "begin", "launch", "expand", "commission", "prepare", "invest", "increase",
    "reduce", "continue", "ramp", "start", "build", "deploy", "deliver",
    "introduce", "scale", "approve", "open", "acquire", "transition", "resume",
    "accelerate",
}

STOPWORDS = {
    "the", "a", "an", "to", "in", "for", "of", "on", "and", "or", "with", "by",
    "at", "from", "this", "that", "these", "those", "both", "their", "our",
    "its", "as", "be", "is", "are", "was", "were", "will", "plan", "plans",
    "planned", "target", "targeted", "expected", "expect", "aim", "aimed",
}

COMMITMENT_RE = re.compile(
    r"\b(?:will|plan to|plans to|expect to|aim to|target to|set to|scheduled to|committed to)\s+([^.;\n]+)",
    re.IGNORECASE,
)
ACTION_PHRASE_RE = re.compile(
    r"\b(" + "|".join(sorted(ACTION_VERBS)) + r")\b\s+([^.;\n]{6,120})",
    re.IGNORECASE,
)


def score_candidate(decision: str, evidence: str) -> int:
    """
    Deterministic quality score.

    Rewards time-bound and quantified evidence and more specific decisions.
    """
    score = BASE_SCORE
    if TEMPORAL_RE.search(evidence):
        score += TEMPORAL_BONUS
    if re.search(r"\d", evidence):
        score += DIGIT_BONUS
    if len(decision) > LENGTH_THRESHOLD:
        score += LENGTH_BONUS
    return min(MAX_SCORE, score)


def candidate_id(decision: str, file_name: str, page: int) -> str:
    """Deterministic id from (decision, fileName, page)."""
    return f"decision-{stable_hash(f'{decision}-{file_name}-{page}')}"


def ensure_verb_first(value: str) -> str:
    """Collapse whitespace and capitalize the leading word."""
    normalized = collapse_whitespace(value)
    if not normalized:
        return normalized
    return normalized[0].upper() + normalized[1:]


def _content_tokens(value: str) -> List[str]:
    tokens = [re.sub(r"[^a-z0-9]", "", token) for token in value.lower().split()]
    return [token for token in tokens if token]


def has_object_noun(value: str) -> bool:
    return any(
        token not in STOPWORDS and token not in ACTION_VERBS and len(token) > 2
        for token in _content_tokens(value)
    )


def is_too_vague(decision: str, evidence: str) -> bool:
    """A decision needs three words and some content word in it or its evidence."""
    if len(decision.split()) < 3:
        return True
    return not has_object_noun(decision) and not has_object_noun(evidence)


def repair_decision_with_evidence(decision: str, evidence: str) -> str:
    """Rebuild a vague decision from a commitment phrase in the evidence."""
    normalized = collapse_whitespace(evidence)
    commitment = COMMITMENT_RE.search(normalized)
    if commitment:
        return ensure_verb_first(commitment.group(1))
    action = ACTION_PHRASE_RE.search(normalized)
    if action:
        return ensure_verb_first(f"{action.group(1)} {action.group(2)}")
    return ensure_verb_first(decision)


def _clean_string(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def resolve_page(value: Any, fallback: int) -> int:
    """Accept a positive int or numeric string, otherwise use the fallback."""
    if isinstance(value, bool):
        return fallback
    if isinstance(value, int):
        page = value
    elif isinstance(value, float) and value.is_integer():
        page = int(value)
    elif isinstance(value, str) and re.fullmatch(r"\s*\d+\s*", value):
        page = int(value)
    else:
        return fallback
    return page if page > 0 else fallback


def _clean_tags(value: Any) -> Optional[List[str]]:
    if not isinstance(value, list):
        return None
    tags = [tag.strip() for tag in value if isinstance(tag, str) and tag.strip()]
    return tags or None


def build_candidate(
    raw: RawModelCandidate,
    chunk: Chunk,
    evidence_char_limit: int = 220,
    filter_vague: bool = False,
) -> Optional[Candidate]:
    """
    Validate and normalize one raw model candidate.

    Args:
        raw: Untrusted candidate from the model
        chunk: Chunk the candidate was extracted from
        evidence_char_limit: Maximum evidence length
        filter_vague: Repair or drop decisions that are too vague

    Returns:
        Candidate, or None if the item is dropped
    """
    decision_raw = _clean_string(raw.decision)
    evidence_raw = _clean_string(raw.evidence)
    if not decision_raw or not evidence_raw:
        return None

    evidence = truncate_snippet(evidence_raw, evidence_char_limit)
    decision = ensure_verb_first(decision_raw)
    if not evidence or not normalize_decision_key(decision):
        return None

    if filter_vague and is_too_vague(decision, evidence):
        repaired = repair_decision_with_evidence(decision_raw, evidence)
        if is_too_vague(repaired, evidence):
            return None
        decision = repaired

    source = raw.source if isinstance(raw.source, dict) else {}
    file_name = _clean_string(source.get("fileName")) or chunk.file_name
    fallback_page = chunk.pages[0].page_number if chunk.pages else 1
    page = resolve_page(source.get("page"), fallback_page)

    return Candidate(
        id=candidate_id(decision, file_name, page),
        decision=decision,
        evidence=evidence,
        source=CandidateSource(file_name=file_name, page=page),
        sources=[EvidenceSource(file_name=file_name, page=page, excerpt=evidence)],
        tags=_clean_tags(raw.tags),
        quality_score=score_candidate(decision, evidence),
    )
