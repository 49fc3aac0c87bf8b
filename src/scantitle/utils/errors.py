"""
Error types for the scan title pipeline.

A low-confidence OCR pass is not an error; it only drives the rotation
retry loop. Everything below aborts the document.
"""

from typing import Optional


class TitleExtractionError(Exception):
    """Base error carrying the failing stage and candidate."""

    def __init__(
        self,
        message: str,
        stage: str = "",
        document: Optional[str] = None,
        angle: Optional[int] = None
    ):
        super().__init__(message)
        self.message = message
        self.stage = stage
        self.document = document
        self.angle = angle

    def with_context(
        self,
        document: Optional[str] = None,
        angle: Optional[int] = None
    ) -> "TitleExtractionError":
        """Fill in document/candidate details known only to the caller."""
        if self.document is None:
            self.document = document
        if self.angle is None:
            self.angle = angle
        return self

    def __str__(self) -> str:
        parts = []
        if self.stage:
            parts.append(f"[{self.stage}]")
        if self.document:
            parts.append(f"document={self.document}")
        if self.angle is not None:
            parts.append(f"angle={self.angle}")
        parts.append(self.message)
        return " ".join(parts)


class ParseError(TitleExtractionError, ValueError):
    """OCR markup is malformed or lacks the page scope / required fields."""

    def __init__(self, message: str, **kwargs):
        kwargs.setdefault("stage", "parse")
        super().__init__(message, **kwargs)


class ExternalToolError(TitleExtractionError, RuntimeError):
    """Rasterizer, rotator or OCR engine failed or produced no output."""
