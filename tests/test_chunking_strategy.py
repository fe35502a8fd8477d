from decision_intake.core.chunking_strategy import ChunkingStrategy, build_chunk_text, page_marker
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import PageRecord


def pages(file_name, *texts, start=1):
    return [PageRecord(file_name=file_name, page_number=start + i, text=t) for i, t in enumerate(texts)]


def test_pages_grouped_per_file_with_page_limit():
    chunker = ChunkingStrategy(PipelineConfig(chunk_page_limit=2))
    result = chunker.chunk_pages(pages("Pasted text", "memo") + pages("a.pdf", "one", "two", "three"))

    assert [(c.file_name, c.page_numbers) for c in result.chunks] == [
        ("Pasted text", [1]),
        ("a.pdf", [1, 2]),
        ("a.pdf", [3]),
    ]
    assert not result.truncated


def test_chunk_text_carries_page_markers():
    chunker = ChunkingStrategy(PipelineConfig())
    chunk = chunker.chunk_pages(pages("a.pdf", "first  page", "second\npage")).chunks[0]

    assert chunk.text == "FILE: a.pdf | PAGE: 1\nfirst page\n\nFILE: a.pdf | PAGE: 2\nsecond page"
    assert page_marker("a.pdf", 7) == "FILE: a.pdf | PAGE: 7"
    assert build_chunk_text("a.pdf", chunk.pages) == chunk.text


def test_char_limit_starts_new_chunk():
    chunker = ChunkingStrategy(PipelineConfig(chunk_char_limit=10, chunk_page_limit=5))
    result = chunker.chunk_pages(pages("a.pdf", "aaaaaa", "bbbbbb", "cc"))

    assert [c.page_numbers for c in result.chunks] == [[1], [2, 3]]
    assert all(c.char_count <= 10 for c in result.chunks)


def test_oversized_page_is_split_into_own_chunks():
    chunker = ChunkingStrategy(PipelineConfig(chunk_char_limit=10, chunk_page_limit=2))
    result = chunker.chunk_pages(pages("a.pdf", "x", "y" * 25, "z"))

    assert [c.page_numbers for c in result.chunks] == [[1], [2], [2], [2], [3]]
    assert [c.char_count for c in result.chunks[1:4]] == [10, 10, 5]


def test_blank_pages_are_skipped():
    chunker = ChunkingStrategy(PipelineConfig())
    result = chunker.chunk_pages(pages("a.pdf", "  \n ", "text"))

    assert [c.page_numbers for c in result.chunks] == [[2]]


def test_chunk_cap_truncates():
    chunker = ChunkingStrategy(PipelineConfig(chunk_page_limit=1, max_chunks=2))
    result = chunker.chunk_pages(pages("a.pdf", "one", "two", "three"))

    assert len(result.chunks) == 2
    assert result.natural_count == 3
    assert result.truncated
    assert chunker.get_chunk_summary(result)["natural_chunks"] == 3


def test_files_are_never_mixed():
    chunker = ChunkingStrategy(PipelineConfig(chunk_page_limit=10))
    result = chunker.chunk_pages(pages("a.pdf", "one") + pages("b.pdf", "two"))

    assert [c.file_name for c in result.chunks] == ["a.pdf", "b.pdf"]
