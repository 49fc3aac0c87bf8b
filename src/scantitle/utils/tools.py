"""
Interfaces to the external tools the title pipeline drives.

Each capability is a blocking call that either produces its files at the
requested location or raises ExternalToolError. Concrete implementations
live in images.py (pdf2image / OpenCV) and ocr_text.py (Tesseract); tests
substitute in-memory fakes.
"""

from abc import ABC, abstractmethod
from pathlib import Path


class Rasterizer(ABC):
    """Renders a source document to a single raster image file."""

    @abstractmethod
    def rasterize(self, pdf_path: Path, out_path: Path) -> Path:
        raise NotImplementedError


class Rotator(ABC):
    """Writes a rotated copy of a raster image."""

    @abstractmethod
    def rotate(self, image_path: Path, angle: int, out_path: Path) -> Path:
        """Rotate clockwise by `angle` degrees into `out_path`."""
        raise NotImplementedError


class Recognizer(ABC):
    """Runs OCR on a raster image."""

    @abstractmethod
    def recognize(self, image_path: Path, output_prefix: Path) -> None:
        """
        Write at least `<output_prefix>.hocr` and `<output_prefix>.txt`.

        A searchable `<output_prefix>.pdf` is written too when the engine
        supports it.
        """
        raise NotImplementedError
