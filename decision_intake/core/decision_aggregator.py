"""
Decision aggregation: deduplication, ranking and capping.

Candidates whose normalized decision text matches are the same decision.
Exactly one survives per key (higher quality score, first-seen on ties) and
inherits the provenance of every variant it absorbed.
"""
from collections import OrderedDict
from typing import List

from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Candidate, EvidenceSource
from decision_intake.utils.logger import get_logger
from decision_intake.utils.text import normalize_decision_key

logger = get_logger(__name__)


def merge_sources(existing: List[EvidenceSource], incoming: List[EvidenceSource]) -> List[EvidenceSource]:
    """Union of two provenance lists, existing entries first, no duplicate triples."""
    merged = list(existing)
    seen = {(s.file_name, s.page, s.excerpt) for s in merged}
    for source in incoming:
        key = (source.file_name, source.page, source.excerpt)
        if key not in seen:
            seen.add(key)
            merged.append(source)
    return merged


class AggregationResult:
    """Ranked decisions plus advisory warnings."""

    def __init__(self, decisions: List[Candidate], unique_count: int, warnings: List[str]):
        self.decisions = decisions
        self.unique_count = unique_count  # Survivors before the size cap
        self.warnings = warnings


class DecisionAggregator:
    """Merges, scores and ranks extracted candidates."""

    def __init__(self, config: PipelineConfig):
        self.max_final = config.max_final_decisions
        self.min_rich = config.min_rich_decisions

    def deduplicate(self, candidates: List[Candidate]) -> List[Candidate]:
        """
        Collapse candidates that share a decision key.

        Args:
            candidates: Candidates in arrival (chunk) order

        Returns:
            One candidate per key, in first-seen key order
        """
        survivors: "OrderedDict[str, Candidate]" = OrderedDict()

        for candidate in candidates:
            key = normalize_decision_key(candidate.decision)
            existing = survivors.get(key)
            if existing is None:
                survivors[key] = candidate
                continue

            winner = candidate if candidate.quality_score > existing.quality_score else existing
            sources = merge_sources(existing.sources, candidate.sources)
            survivors[key] = winner.model_copy(update={"sources": sources})

        return list(survivors.values())

    def aggregate(self, candidates: List[Candidate], request_id: str = "-") -> AggregationResult:
        """
        Deduplicate, rank by quality score and cap the list.

        Args:
            candidates: Flat candidate list from extraction
            request_id: Request identifier for log correlation

        Returns:
            AggregationResult
        """
        unique = self.deduplicate(candidates)
        # sorted() is stable: equal scores keep first-seen order.
        ranked = sorted(unique, key=lambda c: c.quality_score, reverse=True)
        limited = ranked[: self.max_final]

        warnings: List[str] = []
        if len(ranked) > self.max_final:
            warnings.append(f"Trimmed decision list to the top {self.max_final} items for speed.")
        if 0 < len(limited) < self.min_rich:
            warnings.append(
                f"Fewer than {self.min_rich} decisions were extracted. "
                "Provide more explicit decision language for richer output."
            )

        logger.info(
            f"[{request_id}] Aggregation complete: {len(candidates)} candidates -> "
            f"{len(unique)} unique -> {len(limited)} final"
        )
        return AggregationResult(decisions=limited, unique_count=len(unique), warnings=warnings)
