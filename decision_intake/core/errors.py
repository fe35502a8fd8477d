"""
Exception types raised inside the intake pipeline.
"""


class DecisionIntakeError(Exception):
    """Base class for intake pipeline errors."""


class InputError(DecisionIntakeError):
    """The request carries nothing that can be processed (client error)."""


class PDFExtractionError(DecisionIntakeError):
    """Page-aware PDF text extraction failed for one document."""

    def __init__(self, file_name: str, message: str):
        super().__init__(f"{file_name}: {message}")
        self.file_name = file_name
