from decision_intake.core.chunking_strategy import ChunkingStrategy
from decision_intake.core.input_normalizer import (
    NON_PDF_WARNING,
    PASTED_TEXT_FILE_NAME,
    InputNormalizer,
    has_input,
)
from decision_intake.core.pdf_processor import FALLBACK_WARNING
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Document, PageText

from tests.fakes import StaticPDFProcessor


def split_document(file_name, *texts):
    return Document(
        file_name=file_name,
        pages=[PageText(page_number=i, text=t) for i, t in enumerate(texts, start=1)],
    )


def normalizer(pdf_processor=None, **limits):
    return InputNormalizer(PipelineConfig(**limits), pdf_processor or StaticPDFProcessor())


def test_memo_becomes_first_page():
    result = normalizer().normalize("  We will open the plant.  ", [split_document("a.pdf", "page one")])

    assert [(p.file_name, p.page_number, p.text) for p in result.pages] == [
        (PASTED_TEXT_FILE_NAME, 1, "We will open the plant."),
        ("a.pdf", 1, "page one"),
    ]
    assert not result.truncated
    assert result.warnings == []


def test_blank_pages_are_skipped():
    result = normalizer().normalize(None, [split_document("a.pdf", "one", "   ", "three")])

    assert [p.page_number for p in result.pages] == [1, 3]


def test_page_cap_stops_processing():
    result = normalizer(max_pages=2).normalize(None, [split_document("a.pdf", "1", "2", "3")])

    assert [p.page_number for p in result.pages] == [1, 2]
    assert result.truncated
    assert result.warnings == ["Processed only the first 2 pages for speed."]


def test_char_budget_slices_and_stops():
    documents = [split_document("a.pdf", "abcdef"), split_document("b.pdf", "ghij")]
    result = normalizer(max_total_chars=10).normalize("12345", documents)

    assert [p.text for p in result.pages] == ["12345", "abcde"]
    assert result.total_chars == 10
    assert result.truncated
    assert result.warnings == ["Processed only the first 10 characters for speed."]


def test_memo_longer_than_budget_is_sliced():
    result = normalizer(max_total_chars=4).normalize("abcdefgh", [])

    assert result.pages[0].text == "abcd"
    assert result.truncated


def test_non_pdf_uploads_are_skipped_with_warning():
    documents = [
        Document(file_name="notes.txt", content=b"hello", content_type="text/plain"),
        split_document("a.pdf", "text"),
    ]
    result = normalizer().normalize(None, documents)

    assert [p.file_name for p in result.pages] == ["a.pdf"]
    assert result.warnings == [NON_PDF_WARNING]


def test_duplicate_uploads_processed_once():
    result = normalizer().normalize(None, [split_document("a.pdf", "text"), split_document("a.pdf", "text")])

    assert len(result.pages) == 1


def test_document_warnings_are_collected():
    processor = StaticPDFProcessor(fallback={"scan.pdf": "whole document text"})
    document = Document(file_name="scan.pdf", content=b"%PDF-1.4", content_type="application/pdf")
    result = normalizer(processor).normalize(None, [document])

    assert [(p.file_name, p.page_number) for p in result.pages] == [("scan.pdf", 1)]
    assert result.warnings == [FALLBACK_WARNING]


def test_has_input():
    assert not has_input(None, [])
    assert not has_input("   ", [])
    assert not has_input("", [Document(file_name="notes.txt", content=b"x", content_type="text/plain")])
    assert has_input("memo", [])
    assert has_input(None, [split_document("a.pdf", "x")])


def test_trailing_blank_pages_at_page_cap_are_not_truncation():
    result = normalizer(max_pages=1).normalize(None, [split_document("a.pdf", "only real page", "   ", "")])

    assert [p.text for p in result.pages] == ["only real page"]
    assert not result.truncated
    assert result.warnings == []


def test_uploads_sharing_a_name_stay_separate_documents():
    documents = [
        split_document("document.pdf", "alpha report page"),
        split_document("document.pdf", "beta memo page"),
        split_document("document.pdf", "gamma notes page"),
    ]
    result = normalizer().normalize(None, documents)

    assert [(p.file_name, p.text) for p in result.pages] == [
        ("document.pdf", "alpha report page"),
        ("document.pdf (2)", "beta memo page"),
        ("document.pdf (3)", "gamma notes page"),
    ]

    chunks = ChunkingStrategy(PipelineConfig()).chunk_pages(result.pages).chunks
    assert len(chunks) == 3
    assert "beta memo page" not in chunks[0].text
