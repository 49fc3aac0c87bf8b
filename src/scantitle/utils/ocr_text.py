"""
Tesseract OCR for the scan title pipeline.

Runs Tesseract on a raster image and writes the artifacts the rest of the
pipeline reads back:
- <prefix>.hocr  word markup with font size and confidence
- <prefix>.txt   plain transcript
- <prefix>.pdf   searchable PDF (optional)
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .errors import ExternalToolError
from .tools import Recognizer
from ..config import OCRConfig, HOCR_SUFFIX, TEXT_SUFFIX, PDF_SUFFIX

logger = logging.getLogger(__name__)


class TesseractRecognizer(Recognizer):
    """OCR using Tesseract via pytesseract."""

    def __init__(
        self,
        language: str = "deu+eng",
        hocr_font_info: bool = True,
        create_pdf: bool = True,
        extra_config: str = "",
        timeout_s: float = 0
    ):
        try:
            import pytesseract
            self.pytesseract = pytesseract
        except ImportError as e:
            raise ImportError(
                f"pytesseract not available: {e}\n"
                "Install with: pip install pytesseract\n"
                "Also install Tesseract: https://github.com/tesseract-ocr/tesseract"
            )

        self.language = language
        self.hocr_font_info = hocr_font_info
        self.create_pdf = create_pdf
        self.extra_config = extra_config
        self.timeout_s = timeout_s

    @classmethod
    def from_config(cls, config: OCRConfig) -> "TesseractRecognizer":
        return cls(
            language=config.language,
            hocr_font_info=config.hocr_font_info,
            create_pdf=config.create_pdf,
            extra_config=config.extra_config,
            timeout_s=config.timeout_s
        )

    @property
    def config_string(self) -> str:
        parts = []
        if self.hocr_font_info:
            # x_fsize is only emitted with font info enabled
            parts.append("-c hocr_font_info=1")
        if self.extra_config:
            parts.append(self.extra_config)
        return " ".join(parts)

    @property
    def output_config(self) -> str:
        """Output switches so a single run writes every artifact."""
        parts = ["-c tessedit_create_hocr=1", "-c tessedit_create_txt=1"]
        if self.create_pdf:
            parts.append("-c tessedit_create_pdf=1")
        return " ".join(parts)

    def version(self) -> Optional[str]:
        try:
            return str(self.pytesseract.get_tesseract_version())
        except self.pytesseract.TesseractNotFoundError:
            return None

    def recognize(self, image_path: Path, output_prefix: Path) -> None:
        """Run Tesseract once, writing hOCR, text and (optionally) PDF outputs."""
        image_path = Path(image_path)
        if not image_path.exists():
            raise ExternalToolError(f"OCR input not found: {image_path}", stage="ocr")

        output_prefix = Path(output_prefix)
        output_prefix.parent.mkdir(parents=True, exist_ok=True)
        config = " ".join(p for p in (self.config_string, self.output_config) if p)
        logger.info(f"Running tesseract: {image_path} -> {output_prefix} ({self.language})")

        try:
            self.pytesseract.pytesseract.run_tesseract(
                str(image_path),
                str(output_prefix),
                extension=None,
                lang=self.language,
                config=config,
                timeout=self.timeout_s
            )
        except self.pytesseract.TesseractNotFoundError as e:
            raise ExternalToolError("tesseract binary not found on PATH", stage="ocr") from e
        except RuntimeError as e:
            # TesseractError and timeouts
            raise ExternalToolError(f"Tesseract failed on {image_path}: {e}", stage="ocr") from e

        missing = [
            p for p in self.output_paths(output_prefix) if not p.exists()
        ]
        if missing:
            raise ExternalToolError(f"Tesseract wrote no {missing[0].name}", stage="ocr")
        logger.debug(f"Wrote OCR outputs for {output_prefix}")

    def output_paths(self, output_prefix: Union[str, Path]) -> List[Path]:
        suffixes = [HOCR_SUFFIX, TEXT_SUFFIX]
        if self.create_pdf:
            suffixes.append(PDF_SUFFIX)
        return [Path(str(output_prefix) + suffix) for suffix in suffixes]
