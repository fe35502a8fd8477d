"""
Input normalization: pasted text and documents -> ordered page records.

Applies the global page and character budgets, tracking truncation, and
funnels every document through the PDF processor's fallback-aware
extraction.
"""
import hashlib
from typing import List, Optional, Sequence, Set, Tuple

from decision_intake.core.pdf_processor import PDFProcessor
from decision_intake.core.pipeline_config import PipelineConfig
from decision_intake.models.schemas import Document, PageRecord
from decision_intake.utils.logger import get_logger

logger = get_logger(__name__)

PASTED_TEXT_FILE_NAME = "Pasted text"
NON_PDF_WARNING = "Non-PDF files were skipped."


class NormalizationResult:
    """Ordered page records plus truncation bookkeeping."""

    def __init__(self):
        self.pages: List[PageRecord] = []
        self.total_chars = 0
        self.truncated = False
        self.warnings: List[str] = []


def has_input(memo_text: Optional[str], documents: Sequence[Document]) -> bool:
    """Whether a request carries any text or PDF documents at all."""
    return bool(memo_text and memo_text.strip()) or any(document.is_pdf for document in documents)


def _document_key(document: Document) -> Tuple[str, str]:
    digest = hashlib.sha256()
    if document.content:
        digest.update(document.content)
    for page in document.pages or []:
        digest.update(f"{page.page_number}\x00{page.text}\x00".encode("utf-8"))
    return document.file_name, digest.hexdigest()


def _unique_file_name(file_name: str, used_names: Set[str]) -> str:
    if file_name not in used_names:
        return file_name
    suffix = 2
    while f"{file_name} ({suffix})" in used_names:
        suffix += 1
    return f"{file_name} ({suffix})"


class InputNormalizer:
    """Builds the page list consumed by the chunker."""

    def __init__(self, config: PipelineConfig, pdf_processor: Optional[PDFProcessor] = None):
        """
        Initialize the normalizer.

        Args:
            config: Pipeline limits
            pdf_processor: Page extractor for documents (default PDFProcessor)
        """
        self.config = config
        self.pdf_processor = pdf_processor or PDFProcessor()

    def normalize(
        self,
        memo_text: Optional[str],
        documents: Sequence[Document],
        request_id: str = "-",
    ) -> NormalizationResult:
        """
        Normalize raw input into page records.

        Pasted text becomes page 1 of "Pasted text" and is counted first.
        Documents follow in upload order, pages in original order, blank
        pages skipped. Processing stops entirely once the page cap or the
        character budget is reached; a page that only partly fits is sliced.

        Args:
            memo_text: Pasted text (optional)
            documents: Uploaded documents
            request_id: Request identifier for log correlation

        Returns:
            NormalizationResult
        """
        result = NormalizationResult()

        memo = (memo_text or "").strip()
        if memo:
            self._add_page(result, PASTED_TEXT_FILE_NAME, 1, memo)

        for document in self._select_documents(documents, result):
            if self._budget_exhausted(result):
                break

            extraction = self.pdf_processor.extract_document(document)
            result.warnings.extend(extraction.warnings)

            stopped = False
            for page in extraction.pages:
                text = page.text.strip()
                if not text:
                    continue
                if self._budget_exhausted(result):
                    stopped = True
                    break
                self._add_page(result, document.file_name, page.page_number, text)
            if stopped:
                break

        logger.info(
            f"[{request_id}] Normalized input: {len(result.pages)} pages, "
            f"{result.total_chars:,} chars, truncated={result.truncated}"
        )
        return result

    def _select_documents(
        self, documents: Sequence[Document], result: NormalizationResult
    ) -> List[Document]:
        """
        Drop non-PDF uploads and exact duplicates, keeping upload order.

        Distinct uploads sharing a file name are renamed "name (2)", "name (3)"
        so their pages never share a chunk or a citation.
        """
        selected: List[Document] = []
        seen = set()
        used_names = {PASTED_TEXT_FILE_NAME}
        skipped_non_pdf = False

        for document in documents:
            if not document.is_pdf:
                skipped_non_pdf = True
                logger.debug(f"Skipping non-PDF upload {document.file_name}")
                continue
            key = _document_key(document)
            if key in seen:
                logger.debug(f"Skipping duplicate upload {document.file_name}")
                continue
            seen.add(key)
            file_name = _unique_file_name(document.file_name, used_names)
            if file_name != document.file_name:
                logger.debug(f"Renaming repeated upload {document.file_name} to {file_name}")
                document = document.model_copy(update={"file_name": file_name})
            used_names.add(file_name)
            selected.append(document)

        if skipped_non_pdf:
            result.warnings.append(NON_PDF_WARNING)
        return selected

    def _budget_exhausted(self, result: NormalizationResult) -> bool:
        """Check both global caps, recording truncation on the first hit."""
        if len(result.pages) >= self.config.max_pages:
            self._mark_truncated(
                result, f"Processed only the first {self.config.max_pages} pages for speed."
            )
            return True
        if result.total_chars >= self.config.max_total_chars:
            self._mark_truncated(
                result,
                f"Processed only the first {self.config.max_total_chars:,} characters for speed.",
            )
            return True
        return False

    @staticmethod
    def _mark_truncated(result: NormalizationResult, warning: str) -> None:
        result.truncated = True
        if warning not in result.warnings:
            result.warnings.append(warning)

    def _add_page(self, result: NormalizationResult, file_name: str, page_number: int, text: str) -> None:
        remaining = max(0, self.config.max_total_chars - result.total_chars)
        sliced = text[:remaining]
        if len(sliced) < len(text):
            result.truncated = True
        if not sliced:
            return
        result.pages.append(PageRecord(file_name=file_name, page_number=page_number, text=sliced))
        result.total_chars += len(sliced)
