from decision_intake.core.pdf_processor import (
    FALLBACK_WARNING,
    PDFProcessor,
    clean_page_texts,
    merge_wrapped_lines,
)
from decision_intake.models.schemas import Document, PageText

from tests.fakes import StaticPDFProcessor


def pdf(file_name="report.pdf", content=b"%PDF-1.4 stub"):
    return Document(file_name=file_name, content=content, content_type="application/pdf")


def test_page_aware_extraction_keeps_page_numbers():
    processor = StaticPDFProcessor(pages={"report.pdf": ["first page", "", "third page"]})
    result = processor.extract_document(pdf())

    assert [(p.page_number, p.text) for p in result.pages] == [(1, "first page"), (3, "third page")]
    assert result.warnings == []
    assert not result.used_fallback


def test_fallback_yields_single_page_with_warning():
    processor = StaticPDFProcessor(fallback={"report.pdf": "  all the text  "})
    result = processor.extract_document(pdf())

    assert [(p.page_number, p.text) for p in result.pages] == [(1, "all the text")]
    assert result.warnings == [FALLBACK_WARNING]
    assert result.used_fallback


def test_failed_fallback_reports_both_warnings():
    result = StaticPDFProcessor().extract_document(pdf())

    assert result.pages == []
    assert result.warnings == [FALLBACK_WARNING, "Fallback PDF parsing failed for report.pdf."]


def test_empty_fallback_reports_unreadable():
    processor = StaticPDFProcessor(fallback={"report.pdf": "   "})
    result = processor.extract_document(pdf())

    assert result.pages == []
    assert result.warnings == [FALLBACK_WARNING, "Unable to extract readable text from report.pdf."]


def test_missing_content():
    result = PDFProcessor().extract_document(Document(file_name="empty.pdf", content_type="application/pdf"))

    assert result.pages == []
    assert result.warnings == ["Unable to extract text from empty.pdf."]


def test_presplit_pages_pass_through():
    document = Document(file_name="a.pdf", pages=[PageText(page_number=2, text="two")])
    result = PDFProcessor().extract_document(document)

    assert [(p.page_number, p.text) for p in result.pages] == [(2, "two")]


def test_unreadable_bytes_go_through_both_parsers():
    result = PDFProcessor().extract_document(pdf("broken.pdf", b"this is not a pdf"))

    assert result.pages == []
    assert result.warnings == [FALLBACK_WARNING, "Fallback PDF parsing failed for broken.pdf."]


def test_clean_page_texts_removes_headers_footers_and_page_numbers():
    pages = [
        PageText(page_number=n, text=f"ACME Strategy Review\nBody line {n}.\nPage {n} of 3")
        for n in range(1, 4)
    ]
    cleaned = clean_page_texts(pages)

    assert [p.text for p in cleaned] == ["Body line 1.", "Body line 2.", "Body line 3."]


def test_merge_wrapped_lines():
    assert merge_wrapped_lines(["The board will expand", "operations in 2025."]) == [
        "The board will expand operations in 2025."
    ]
    assert merge_wrapped_lines(["Imple-", "mentation begins."]) == ["Implementation begins."]
    assert merge_wrapped_lines(["First sentence.", "Second sentence."]) == [
        "First sentence.",
        "Second sentence.",
    ]
