"""
LangGraph Node Implementations for decision intake.

Each node runs one pipeline stage and returns a partial state update.
Stage failures are caught here and recorded in state so the graph can
route to the terminal error node.
"""
import asyncio
import functools
from typing import Any, Awaitable, Callable, Dict

from decision_intake.core.chunking_strategy import ChunkingStrategy
from decision_intake.core.decision_aggregator import DecisionAggregator
from decision_intake.core.decision_extractor import DecisionExtractor
from decision_intake.core.errors import InputError
from decision_intake.core.graph_state import IntakeState
from decision_intake.core.input_normalizer import NON_PDF_WARNING, InputNormalizer, has_input
from decision_intake.core.summarizer import DecisionSummarizer
from decision_intake.models.schemas import PipelineStage
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

NO_INPUT_MESSAGE = "Add PDFs or paste text to extract decisions."
NO_TEXT_MESSAGE = "No readable text found in the uploads."
INTERNAL_ERROR_MESSAGE = "Internal error while processing the decision intake."

NodeFn = Callable[[Any, IntakeState], Awaitable[Dict[str, Any]]]


class StageInputError(InputError):
    """Input error that still carries warnings gathered before it was raised."""

    def __init__(self, message: str, warnings=None, updates=None):
        super().__init__(message)
        self.warnings = list(warnings or [])
        self.updates = dict(updates or {})


def stage_node(stage: PipelineStage) -> Callable[[NodeFn], NodeFn]:
    """
    Mark a node as running `stage` and contain its failures.

    Input errors become client-class failures; anything else becomes a
    server-class failure with a generic message. The stage is written to
    state whether or not the node succeeds.
    """
    def decorator(func: NodeFn) -> NodeFn:
        @functools.wraps(func)
        async def wrapper(self, state: IntakeState) -> Dict[str, Any]:
            request_id = state["request_id"]
            logger.info(f"[{request_id}] ========== STAGE: {stage.value.upper()} ==========")
            try:
                update = await func(self, state)
            except StageInputError as e:
                logger.warning(f"[{request_id}] Input error at {stage.value}: {e}")
                update = dict(e.updates)
                update.update({
                    "warnings": e.warnings,
                    "is_failed": True,
                    "error_kind": "client",
                    "error_message": str(e),
                    "failed_stage": stage,
                })
            except InputError as e:
                logger.warning(f"[{request_id}] Input error at {stage.value}: {e}")
                update = {
                    "is_failed": True,
                    "error_kind": "client",
                    "error_message": str(e),
                    "failed_stage": stage,
                }
            except Exception as e:
                logger.error(
                    f"[{request_id}] Stage {stage.value} failed: {e}",
                    exc_info=True,
                    extra={"error_id": request_id, "stage": stage.value},
                )
                update = {
                    "is_failed": True,
                    "error_kind": "server",
                    "error_message": INTERNAL_ERROR_MESSAGE,
                    "failed_stage": stage,
                }
            update["stage"] = stage
            return update
        return wrapper
    return decorator


class IntakeNodes:
    """Pipeline stages bound to their components."""

    def __init__(
        self,
        normalizer: InputNormalizer,
        chunker: ChunkingStrategy,
        extractor: DecisionExtractor,
        aggregator: DecisionAggregator,
        summarizer: DecisionSummarizer,
    ):
        self.normalizer = normalizer
        self.chunker = chunker
        self.extractor = extractor
        self.aggregator = aggregator
        self.summarizer = summarizer

    @stage_node(PipelineStage.EXTRACT_TEXT)
    async def extract_text(self, state: IntakeState) -> Dict[str, Any]:
        """Normalize pasted text and documents into page records."""
        if not has_input(state["memo_text"], state["documents"]):
            skipped = [NON_PDF_WARNING] if state["documents"] else []
            raise StageInputError(NO_INPUT_MESSAGE, skipped)

        result = await asyncio.to_thread(
            self.normalizer.normalize,
            state["memo_text"],
            state["documents"],
            state["request_id"],
        )

        if not result.pages:
            raise StageInputError(NO_TEXT_MESSAGE, result.warnings, {"truncated": result.truncated})

        return {
            "pages": result.pages,
            "pages_processed": len(result.pages),
            "truncated": result.truncated,
            "warnings": result.warnings,
        }

    @stage_node(PipelineStage.CHUNK)
    async def chunk(self, state: IntakeState) -> Dict[str, Any]:
        """Group pages into bounded chunks."""
        result = self.chunker.chunk_pages(state["pages"])
        summary = self.chunker.get_chunk_summary(result)
        logger.info(
            f"[{state['request_id']}] Chunking complete: {summary['total_chunks']} chunks "
            f"({summary['natural_chunks']} before cap), {summary['total_chars']:,} chars"
        )

        warnings = []
        if result.truncated:
            warnings.append(f"Processed only the first {self.chunker.max_chunks} chunks for speed.")

        return {
            "chunks": result.chunks,
            "truncated": state["truncated"] or result.truncated,
            "warnings": warnings,
        }

    @stage_node(PipelineStage.EXTRACT_CANDIDATES)
    async def extract_candidates(self, state: IntakeState) -> Dict[str, Any]:
        """Fan out model calls over chunks and collect candidates."""
        batch = await self.extractor.extract_candidates(state["chunks"], state["request_id"])
        return {
            "candidates": batch.candidates,
            "chunks_processed": len(state["chunks"]),
            "candidates_extracted": len(batch.candidates),
            "warnings": batch.warnings,
        }

    @stage_node(PipelineStage.MERGE)
    async def merge(self, state: IntakeState) -> Dict[str, Any]:
        """Deduplicate, rank and cap candidates."""
        result = self.aggregator.aggregate(state["candidates"], state["request_id"])
        return {
            "decisions": result.decisions,
            "decisions_final": len(result.decisions),
            "warnings": result.warnings,
        }

    @stage_node(PipelineStage.SUMMARIZE)
    async def summarize(self, state: IntakeState) -> Dict[str, Any]:
        """Produce the optional narrative summary."""
        outcome = await self.summarizer.summarize(state["decisions"], state["request_id"])
        return {
            "summary": outcome.summary,
            "warnings": [outcome.warning] if outcome.warning else [],
        }

    async def done(self, state: IntakeState) -> Dict[str, Any]:
        logger.info(f"[{state['request_id']}] ========== PROCESSING COMPLETE ==========")
        return {"stage": PipelineStage.DONE}

    async def error(self, state: IntakeState) -> Dict[str, Any]:
        logger.error(
            f"[{state['request_id']}] Processing failed at {state.get('failed_stage')}: "
            f"{state.get('error_message')}"
        )
        return {"stage": PipelineStage.ERROR}


def check_for_errors(state: IntakeState) -> str:
    """
    Check if processing failed at any stage.

    Returns:
        "error" if failed
        "continue" otherwise
    """
    if state.get("is_failed", False):
        return "error"
    return "continue"


def route_after_merge(state: IntakeState) -> str:
    """
    Decide whether the summarize stage runs.

    Returns:
        "error" if failed
        "summarize" if the mode asks for a summary and decisions exist
        "done" otherwise
    """
    if state.get("is_failed", False):
        return "error"
    if state["mode"].wants_summary and state["decisions"]:
        return "summarize"
    return "done"
