"""
Text helpers shared by the pipeline stages.
"""
import hashlib
import re

_WHITESPACE_RE = re.compile(r"\s+")
_NON_WORD_RE = re.compile(r"[^\w\s]")

ELLIPSIS = "…"


def collapse_whitespace(value: str) -> str:
    """Collapse runs of whitespace into single spaces and trim."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def truncate_snippet(value: str, limit: int = 220) -> str:
    """
    Whitespace-normalize and cap a snippet at `limit` characters.

    Cuts at the last word boundary when one exists past the first 60
    characters, otherwise hard-cuts, and appends an ellipsis.
    """
    normalized = collapse_whitespace(value)
    if len(normalized) <= limit:
        return normalized
    sliced = normalized[:limit]
    last_space = sliced.rfind(" ")
    cut = last_space if last_space > 60 else limit
    return f"{sliced[:cut].strip()}{ELLIPSIS}"


def normalize_decision_key(value: str) -> str:
    """Dedup key: lowercase, punctuation stripped, whitespace collapsed."""
    lowered = value.lower()
    stripped = _NON_WORD_RE.sub("", lowered).replace("_", "")
    return collapse_whitespace(stripped)


def stable_hash(value: str, length: int = 12) -> str:
    """Short deterministic hex digest."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:length]
