"""
PDF page extraction with a whole-document fallback.

Primary extraction is page-aware (pdfplumber). When it fails, the document
is re-read with PyPDF2 as a single synthetic page 1, and the result carries
a warning that citations for the file are approximate.
"""
import io
import math
import re
from collections import Counter
from typing import List, Optional

import pdfplumber
import PyPDF2

from decision_intake.core.errors import PDFExtractionError
from decision_intake.models.schemas import Document, PageText
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

FALLBACK_WARNING = "Page-aware extraction failed; used fallback parser (page citations approximated)."

PAGE_NUMBER_RE = re.compile(r"^(page\s*)?\d+(\s*of\s*\d+)?$", re.IGNORECASE)
_HEADER_FOOTER_MAX_LEN = 80


class DocumentPages:
    """Outcome of extracting one document: pages plus any warnings."""

    def __init__(
        self,
        file_name: str,
        pages: List[PageText],
        warnings: Optional[List[str]] = None,
        used_fallback: bool = False,
    ):
        self.file_name = file_name
        self.pages = pages
        self.warnings = warnings or []
        self.used_fallback = used_fallback


# =============================================================================
# Page text cleanup
# =============================================================================

def _normalize_line(line: str) -> str:
    return re.sub(r"\s+", " ", line).strip()


def merge_wrapped_lines(lines: List[str]) -> List[str]:
    """
    Join lines that were hard-wrapped by the PDF layout.

    A trailing hyphen followed by a lowercase continuation is joined without
    a space; any line that does not end a sentence and is followed by a
    lowercase/digit/paren start is joined with a space.
    """
    merged: List[str] = []
    buffer = ""

    for line in lines:
        if not buffer:
            buffer = line
            continue

        ends_with_hyphen = re.search(r"[A-Za-z]-$", buffer) is not None
        next_starts_lower = re.match(r"^[a-z0-9(]", line) is not None
        ends_sentence = re.search(r"[.!?\"”)]$", buffer) is not None

        if ends_with_hyphen and next_starts_lower:
            buffer = f"{buffer[:-1]}{line}"
            continue

        if not ends_sentence and next_starts_lower:
            buffer = f"{buffer} {line}".strip()
            continue

        merged.append(buffer)
        buffer = line

    if buffer:
        merged.append(buffer)
    return merged


def clean_page_texts(pages: List[PageText]) -> List[PageText]:
    """
    Remove page-number lines and repeated headers/footers, then unwrap lines.

    A short line among the first/last two lines of a page counts as a
    header/footer when it repeats on at least max(2, ceil(40%)) of pages.
    """
    cleaned = [
        (page.page_number, [line for line in map(_normalize_line, page.text.splitlines()) if line])
        for page in pages
    ]

    counts: Counter = Counter()
    for _, lines in cleaned:
        edge_lines = set(lines[:2] + lines[-2:])
        for line in edge_lines:
            if len(line) <= _HEADER_FOOTER_MAX_LEN and not PAGE_NUMBER_RE.match(line):
                counts[line] += 1

    threshold = max(2, math.ceil(len(cleaned) * 0.4))
    repeated = {line for line, count in counts.items() if count >= threshold}
    if repeated:
        logger.debug(f"[PDFProcessor] Removing {len(repeated)} repeated header/footer lines")

    result = []
    for page_number, lines in cleaned:
        kept = [line for line in lines if line not in repeated and not PAGE_NUMBER_RE.match(line)]
        text = "\n".join(merge_wrapped_lines(kept)).strip()
        result.append(PageText(page_number=page_number, text=text))
    return result


# =============================================================================
# PDF Processor
# =============================================================================

class PDFProcessor:
    """
    Page-aware PDF text extractor used by the input normalizer.

    Documents that already carry page texts are passed through; raw PDF
    bytes are read with pdfplumber, falling back to PyPDF2 whole-document
    text when page-aware extraction fails.
    """

    def __init__(self, clean_text: bool = True):
        """
        Initialize the PDF processor.

        Args:
            clean_text: Strip headers/footers/page numbers and unwrap lines
        """
        self.clean_text = clean_text

    def extract_document(self, document: Document) -> DocumentPages:
        """
        Extract page texts for one document. Never raises.

        Args:
            document: Uploaded document

        Returns:
            DocumentPages with pages in original order and any warnings
        """
        file_name = document.file_name

        if document.pages is not None:
            return DocumentPages(file_name, list(document.pages))

        if not document.content:
            return DocumentPages(file_name, [], [f"Unable to extract text from {file_name}."])

        try:
            pages = self.extract_pages(document.content, file_name)
        except PDFExtractionError as e:
            logger.warning(f"[PDFProcessor] Page-aware extraction failed for {file_name}: {e}")
            return self._extract_with_fallback(document)

        if self.clean_text:
            pages = clean_page_texts(pages)
        pages = [page for page in pages if page.text.strip()]

        if not pages:
            return DocumentPages(file_name, [], [f"Unable to extract readable text from {file_name}."])

        logger.info(f"[PDFProcessor] Extracted {len(pages)} pages from {file_name}")
        return DocumentPages(file_name, pages)

    def _extract_with_fallback(self, document: Document) -> DocumentPages:
        """Whole-document extraction as a single synthetic page 1."""
        file_name = document.file_name
        warnings = [FALLBACK_WARNING]

        try:
            text = self.extract_text(document.content or b"", file_name).strip()
        except PDFExtractionError as e:
            logger.error(f"[PDFProcessor] Fallback parsing failed for {file_name}: {e}")
            warnings.append(f"Fallback PDF parsing failed for {file_name}.")
            return DocumentPages(file_name, [], warnings, used_fallback=True)

        if not text:
            warnings.append(f"Unable to extract readable text from {file_name}.")
            return DocumentPages(file_name, [], warnings, used_fallback=True)

        logger.info(f"[PDFProcessor] Fallback extracted {len(text)} chars from {file_name}")
        return DocumentPages(
            file_name,
            [PageText(page_number=1, text=text)],
            warnings,
            used_fallback=True,
        )

    def extract_pages(self, pdf_bytes: bytes, file_name: str = "document.pdf") -> List[PageText]:
        """
        Page-aware extraction with pdfplumber.

        Raises:
            PDFExtractionError: If the document cannot be read page by page
        """
        pages: List[PageText] = []
        try:
            with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
                for page_num, page in enumerate(pdf.pages, start=1):
                    text = page.extract_text() or ""
                    if text.strip():
                        pages.append(PageText(page_number=page_num, text=text))
        except Exception as e:
            raise PDFExtractionError(file_name, str(e)) from e
        return pages

    def extract_text(self, pdf_bytes: bytes, file_name: str = "document.pdf") -> str:
        """
        Whole-document extraction with PyPDF2.

        Raises:
            PDFExtractionError: If the fallback parser cannot read the document
        """
        try:
            reader = PyPDF2.PdfReader(io.BytesIO(pdf_bytes))
            texts = [page.extract_text() or "" for page in reader.pages]
        except Exception as e:
            raise PDFExtractionError(file_name, str(e)) from e
        return "\n\n".join(text.strip() for text in texts if text.strip())
