"""
Prompt templates for decision extraction and summarization.

Both model calls share one set of templates so wording, limits and the JSON
contracts stay in a single place.
"""
import json
from typing import Dict, List, Tuple

from decision_intake.models.schemas import Candidate, Chunk

CANDIDATES_SCHEMA = (
    '{ "candidates": [ { "decision": string, "evidence": string, '
    '"source": { "fileName"?: string, "page"?: number }, "tags"?: string[] } ] }'
)

SUMMARY_SCHEMA = (
    '{ "key_decisions": [ { "decision": string, "why_it_matters"?: string, '
    '"source"?: { "fileName": string, "page": number } } ], '
    '"themes"?: string[], "unknowns"?: string[] }'
)


def build_extraction_prompts(
    chunk: Chunk, max_candidates: int, evidence_char_limit: int
) -> Tuple[str, str]:
    """
    Build the (system, user) prompt pair for one chunk.

    Args:
        chunk: Chunk to extract from
        max_candidates: Maximum candidates the model should return
        evidence_char_limit: Maximum evidence length in characters

    Returns:
        Tuple of (system_prompt, user_prompt)
    """
    system_prompt = " ".join([
        "You extract high-recall decision candidates from document text.",
        "Decision = committed intent under constraint.",
        "Decision statements must start with a verb.",
        f"Evidence must be a short quote/snippet from the text (<= {evidence_char_limit} chars).",
        "Include source fileName and page when possible.",
        f"Return JSON ONLY matching this schema: {CANDIDATES_SCHEMA}",
        f"Return up to {max_candidates} candidates. Prefer recall. No markdown.",
    ])

    page_list = ", ".join(str(number) for number in chunk.page_numbers)
    user_prompt = "\n".join([
        f"File: {chunk.file_name}",
        f"Pages in this chunk: {page_list}",
        "Text:",
        chunk.text,
    ])

    return system_prompt, user_prompt


def build_summary_prompts(decisions: List[Candidate]) -> Tuple[str, str]:
    """
    Build the (system, user) prompt pair for the narrative summary.

    Only decision, evidence and source are sent; ids and scores stay internal.

    Args:
        decisions: Final ranked candidates

    Returns:
        Tuple of (system_prompt, user_prompt)
    """
    system_prompt = " ".join([
        "You summarize structured decision items.",
        "Return 8-20 key decisions with why_it_matters when possible.",
        "Include source citations when available.",
        f"Return JSON ONLY matching this schema: {SUMMARY_SCHEMA}",
    ])

    compact: List[Dict] = [
        {
            "decision": decision.decision,
            "evidence": decision.evidence,
            "source": decision.source.model_dump(by_alias=True),
        }
        for decision in decisions
    ]
    user_prompt = json.dumps({"decisions": compact}, ensure_ascii=False)

    return system_prompt, user_prompt
