"""
Decision extraction engine.

Runs one model call per chunk under a bounded worker pool. A chunk never
fails the batch: timeouts, transport errors and unparseable output all
resolve to zero candidates plus one warning for that chunk.
"""
import asyncio
from typing import Any, List, Optional

from openai import APITimeoutError

from decision_intake.core.candidate_builder import build_candidate
from decision_intake.core.extraction_prompts import build_extraction_prompts
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Candidate, Chunk, RawModelCandidate
from decision_intake.utils.concurrency import run_with_concurrency
from decision_intake.utils.json_parsing import parse_model_json
from decision_intake.utils.llm import invoke_with_timeout
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

TIMEOUT_WARNING = "Timed out while extracting decisions from one chunk."
FAILURE_WARNING = "Failed to extract decisions from one chunk."
INVALID_JSON_WARNING = "Could not parse decisions from one chunk."


class ChunkOutcome:
    """Result of extracting one chunk."""

    def __init__(
        self,
        candidates: Optional[List[Candidate]] = None,
        warning: Optional[str] = None,
        status: str = "ok",
    ):
        self.candidates = candidates or []
        self.warning = warning
        self.status = status  # ok | empty | invalid_json | timeout | failed


class ExtractionBatch:
    """Flattened extraction results across all chunks, in chunk order."""

    def __init__(self, outcomes: List[ChunkOutcome]):
        self.outcomes = outcomes
        self.candidates: List[Candidate] = [c for outcome in outcomes for c in outcome.candidates]
        self.warnings: List[str] = [outcome.warning for outcome in outcomes if outcome.warning]

    @property
    def failed_chunks(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.status in ("timeout", "failed", "invalid_json"))


class DecisionExtractor:
    """Extracts decision candidates from chunks with bounded concurrency."""

    def __init__(self, llm: Any, config: PipelineConfig):
        """
        Initialize decision extractor.

        Args:
            llm: Chat model exposing `ainvoke(messages)`
            config: Pipeline limits
        """
        self.llm = llm
        self.config = config
        logger.debug(
            f"Decision extractor initialized: model={config.model}, "
            f"concurrency={config.chunk_concurrency}, timeout={config.timeout_ms}ms"
        )

    async def extract_candidates(self, chunks: List[Chunk], request_id: str = "-") -> ExtractionBatch:
        """
        Extract candidates from all chunks.

        Args:
            chunks: Chunks to process
            request_id: Request identifier for log correlation

        Returns:
            ExtractionBatch with candidates in chunk order
        """
        total = len(chunks)
        logger.info(
            f"[{request_id}] Extracting from {total} chunks "
            f"(max {self.config.chunk_concurrency} concurrent requests)"
        )

        async def worker(chunk: Chunk, index: int) -> ChunkOutcome:
            return await self.extract_chunk(chunk, index + 1, total, request_id)

        outcomes = await run_with_concurrency(chunks, self.config.chunk_concurrency, worker)
        batch = ExtractionBatch(outcomes)

        logger.info(
            f"[{request_id}] Extraction complete: {len(batch.candidates)} candidates "
            f"from {total - batch.failed_chunks}/{total} chunks"
        )
        if batch.failed_chunks:
            logger.warning(f"[{request_id}] Failed chunks: {batch.failed_chunks}")

        return batch

    async def extract_chunk(
        self, chunk: Chunk, index: int = 1, total: int = 1, request_id: str = "-"
    ) -> ChunkOutcome:
        """
        Extract candidates from a single chunk. Never raises.

        Args:
            chunk: Chunk to process
            index: 1-based chunk position (logging)
            total: Total chunk count (logging)
            request_id: Request identifier for log correlation

        Returns:
            ChunkOutcome
        """
        label = f"[{request_id}] [Chunk {index}/{total}]"
        system_prompt, user_prompt = build_extraction_prompts(
            chunk, self.config.max_candidates_per_chunk, self.config.evidence_char_limit
        )

        logger.debug(f"{label} Extracting ({chunk.file_name}, pages {chunk.page_numbers}, {len(chunk.text)} chars)")

        try:
            content = await invoke_with_timeout(
                self.llm, system_prompt, user_prompt, self.config.timeout_seconds
            )
        except (asyncio.TimeoutError, APITimeoutError):
            logger.error(f"{label} Timeout after {self.config.timeout_ms}ms")
            return ChunkOutcome(warning=TIMEOUT_WARNING, status="timeout")
        except Exception as e:
            logger.error(f"{label} Error: [{type(e).__name__}] {e}")
            return ChunkOutcome(warning=FAILURE_WARNING, status="failed")

        if not content.strip():
            logger.warning(f"{label} Empty model response")
            return ChunkOutcome(status="empty")

        parsed = parse_model_json(content)
        if parsed is None:
            logger.error(f"{label} Model response was not valid JSON")
            return ChunkOutcome(warning=INVALID_JSON_WARNING, status="invalid_json")

        raw_items = parsed.get("candidates")
        if not isinstance(raw_items, list):
            logger.warning(f"{label} Missing candidates array in model response")
            return ChunkOutcome(status="empty")

        candidates = self._convert_to_candidates(raw_items, chunk)
        logger.info(f"{label} Complete: {len(candidates)}/{len(raw_items)} candidates kept")
        return ChunkOutcome(candidates=candidates)

    def _convert_to_candidates(self, raw_items: List[Any], chunk: Chunk) -> List[Candidate]:
        """Validate raw items, ignoring anything past the per-chunk cap."""
        candidates = []
        for item in raw_items[: self.config.max_candidates_per_chunk]:
            raw = RawModelCandidate.from_untrusted(item)
            if raw is None:
                continue
            candidate = build_candidate(
                raw,
                chunk,
                evidence_char_limit=self.config.evidence_char_limit,
                filter_vague=self.config.filter_vague_decisions,
            )
            if candidate is not None:
                candidates.append(candidate)
        return candidates
