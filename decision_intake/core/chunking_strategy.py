"""
Chunking Strategy for decision extraction.

Groups normalized pages into bounded chunks so each model call stays within
a safe prompt size:

- Pages are grouped by file (encounter order), never reordered within a file
- A chunk holds at most `chunk_page_limit` pages and `chunk_char_limit`
  characters of page text
- A single page longer than the character limit is split into equal-size
  slices, one chunk per slice
- The total number of chunks is capped at `max_chunks`
"""
from collections import OrderedDict
from typing import Any, Dict, List

from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Chunk, PageRecord
from decision_intake.utils.logger import get_logger
from decision_intake.utils.text import collapse_whitespace

logger = get_logger(__name__)


def page_marker(file_name: str, page_number: int) -> str:
    """Header line that precedes each page inside a chunk's text."""
    return f"FILE: {file_name} | PAGE: {page_number}"


def build_chunk_text(file_name: str, pages: List[PageRecord]) -> str:
    """Deterministic concatenation of marked pages."""
    return "\n\n".join(
        f"{page_marker(file_name, page.page_number)}\n{page.text}" for page in pages
    ).strip()


class ChunkingResult:
    """Complete result of the chunking process."""

    def __init__(self, chunks: List[Chunk], natural_count: int, truncated: bool):
        self.chunks = chunks
        self.natural_count = natural_count  # Chunk count before the cap
        self.truncated = truncated


class ChunkingStrategy:
    """Greedy, file-grouped page chunker."""

    def __init__(self, config: PipelineConfig):
        """
        Initialize chunking strategy.

        Args:
            config: Pipeline limits (chunk_char_limit, chunk_page_limit, max_chunks)
        """
        self.char_limit = config.chunk_char_limit
        self.page_limit = config.chunk_page_limit
        self.max_chunks = config.max_chunks

        logger.debug(
            f"Chunking init: char_limit={self.char_limit}, "
            f"page_limit={self.page_limit}, max_chunks={self.max_chunks}"
        )

    def chunk_pages(self, pages: List[PageRecord]) -> ChunkingResult:
        """
        Group pages into chunks.

        Args:
            pages: Ordered page records from the normalizer

        Returns:
            ChunkingResult with at most `max_chunks` chunks
        """
        grouped: "OrderedDict[str, List[PageRecord]]" = OrderedDict()
        for page in pages:
            grouped.setdefault(page.file_name, []).append(page)

        chunks: List[Chunk] = []
        for file_name, file_pages in grouped.items():
            chunks.extend(self._chunk_file(file_name, file_pages))

        natural_count = len(chunks)
        truncated = natural_count > self.max_chunks
        if truncated:
            logger.info(f"Chunk cap reached: keeping {self.max_chunks}/{natural_count} chunks")
            chunks = chunks[: self.max_chunks]

        return ChunkingResult(chunks=chunks, natural_count=natural_count, truncated=truncated)

    def _chunk_file(self, file_name: str, file_pages: List[PageRecord]) -> List[Chunk]:
        """Greedy accumulation of one file's pages."""
        chunks: List[Chunk] = []
        current: List[PageRecord] = []
        current_length = 0

        def flush() -> None:
            nonlocal current, current_length
            if current:
                text = build_chunk_text(file_name, current)
                if text:
                    chunks.append(Chunk(file_name=file_name, pages=current, text=text))
            current = []
            current_length = 0

        for page in file_pages:
            text = collapse_whitespace(page.text)
            if not text:
                continue

            if len(text) > self.char_limit:
                flush()
                for start in range(0, len(text), self.char_limit):
                    current = [self._with_text(page, text[start:start + self.char_limit])]
                    flush()
                continue

            if current and (
                len(current) + 1 > self.page_limit
                or current_length + len(text) > self.char_limit
            ):
                flush()

            current.append(self._with_text(page, text))
            current_length += len(text)

        flush()
        return chunks

    @staticmethod
    def _with_text(page: PageRecord, text: str) -> PageRecord:
        if text == page.text:
            return page
        return PageRecord(file_name=page.file_name, page_number=page.page_number, text=text)

    def get_chunk_summary(self, result: ChunkingResult) -> Dict[str, Any]:
        """
        Summary statistics for logging.

        Args:
            result: Chunking result

        Returns:
            Dictionary with counts and size statistics
        """
        sizes = [chunk.char_count for chunk in result.chunks]
        return {
            "total_chunks": len(result.chunks),
            "natural_chunks": result.natural_count,
            "truncated": result.truncated,
            "total_chars": sum(sizes),
            "avg_chars_per_chunk": (sum(sizes) / len(sizes)) if sizes else 0,
            "max_chars": max(sizes) if sizes else 0,
            "files": len({chunk.file_name for chunk in result.chunks}),
        }
