"""
Document pipeline for scanned PDFs.

Provides:
- Per-document work directories
- Rasterize -> rotation retry -> filing orchestration
- Result envelope for JSON output
"""

import hashlib
import logging
import re
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, List, Union

from .io import create_temp_dir, cleanup_dir, ensure_dir
from .publish import LocalFiler, FiledDocument
from .rotation import RotationRetryController, RetryOutcome
from .tools import Rasterizer, Rotator, Recognizer
from ..config import PipelineConfig, RASTER_EXTENSION

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class DocumentResult:
    """Outcome of processing one scanned document."""
    source: str
    doc_id: str
    outcome: RetryOutcome
    filed: Optional[FiledDocument] = None
    work_dir: Optional[Path] = None
    processing_time_seconds: float = 0.0
    created_at: str = ""

    def __post_init__(self):
        if not self.created_at:
            self.created_at = datetime.now().isoformat(timespec="seconds")

    @property
    def title(self) -> str:
        return self.outcome.display_title

    @property
    def confidence(self) -> float:
        return self.outcome.confidence

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "doc_id": self.doc_id,
            "created_at": self.created_at,
            "result": self.outcome.to_dict(),
            "filed": self.filed.to_dict() if self.filed else None,
            "processing_time_seconds": round(self.processing_time_seconds, 2),
        }


def make_doc_id(pdf_path: Union[str, Path]) -> str:
    """Readable, collision-resistant identifier for artifact names."""
    pdf_path = Path(pdf_path)
    slug = re.sub(r"[^A-Za-z0-9_-]+", "_", pdf_path.stem).strip("_")[:48] or "doc"
    digest = hashlib.sha1(str(pdf_path.resolve()).encode("utf-8")).hexdigest()[:8]
    return f"{slug}-{digest}"


# ============================================================================
# Pipeline
# ============================================================================

class TitlePipeline:
    """
    Extracts a title from a scanned PDF and files the result.

    Collaborators are created lazily from the configuration unless passed
    in, so tests can inject fakes for any of them.
    """

    def __init__(
        self,
        config: Optional[PipelineConfig] = None,
        rasterizer: Optional[Rasterizer] = None,
        rotator: Optional[Rotator] = None,
        recognizer: Optional[Recognizer] = None,
        filer: Optional[LocalFiler] = None
    ):
        self.config = config or PipelineConfig()
        self._rasterizer = rasterizer
        self._rotator = rotator
        self._recognizer = recognizer
        self.filer = filer

    @property
    def rasterizer(self) -> Rasterizer:
        if self._rasterizer is None:
            from .images import PdfRasterizer
            raster = self.config.raster
            self._rasterizer = PdfRasterizer(
                dpi=raster.dpi,
                thread_count=raster.thread_count,
                timeout_s=raster.timeout_s
            )
        return self._rasterizer

    @property
    def rotator(self) -> Rotator:
        if self._rotator is None:
            from .images import ImageRotator
            self._rotator = ImageRotator()
        return self._rotator

    @property
    def recognizer(self) -> Recognizer:
        if self._recognizer is None:
            from .ocr_text import TesseractRecognizer
            self._recognizer = TesseractRecognizer.from_config(self.config.ocr)
        return self._recognizer

    @property
    def keep_artifacts(self) -> bool:
        return self.config.retry.keep_artifacts or self.config.debug_mode

    def _work_dir(self, doc_id: str) -> Path:
        if self.config.work_dir is not None:
            return ensure_dir(Path(self.config.work_dir) / doc_id)
        return create_temp_dir(prefix=f"scantitle_{doc_id}_")

    def process_document(
        self,
        pdf_path: Union[str, Path],
        display_name: Optional[str] = None
    ) -> DocumentResult:
        """
        Process one scanned PDF.

        Args:
            pdf_path: Scanned document
            display_name: Name used for rotation directives and filing
                (defaults to the file name)

        Returns:
            DocumentResult with the chosen title and filing details

        Raises:
            TitleExtractionError: Any stage failed; nothing is filed and the
                work directory is removed unless artifacts are kept
        """
        start_time = time.time()
        pdf_path = Path(pdf_path)
        source = display_name or pdf_path.name
        doc_id = make_doc_id(pdf_path)
        work_dir = self._work_dir(doc_id)

        logger.info(f"Processing {source} ({doc_id}) in {work_dir}")

        try:
            raster_path = self.rasterizer.rasterize(pdf_path, work_dir / f"{doc_id}{RASTER_EXTENSION}")
            raster_path = Path(raster_path)

            controller = RotationRetryController(self.rotator, self.recognizer, self.config)
            outcome = controller.run(raster_path, doc_id, display_name=source, work_dir=work_dir)

            filed = None
            if self.filer is not None:
                filed = self.filer.file(outcome, source, source_path=pdf_path)
        except Exception:
            if self.keep_artifacts:
                logger.info(f"Keeping artifacts of failed document in {work_dir}")
            else:
                cleanup_dir(work_dir, force=True)
            raise

        result = DocumentResult(
            source=source,
            doc_id=doc_id,
            outcome=outcome,
            filed=filed,
            work_dir=work_dir,
            processing_time_seconds=time.time() - start_time
        )

        # Winning artifacts stay until the filer has consumed them
        if filed is not None and not self.keep_artifacts:
            cleanup_dir(work_dir, force=True)
            result.work_dir = None

        return result

    def process_folder(
        self,
        pdf_paths: List[Path],
        force: bool = False
    ) -> List[DocumentResult]:
        """
        Process several scans in order, skipping ones already filed.

        A failure aborts the run; documents filed before it stay filed.
        """
        results = []
        for pdf_path in pdf_paths:
            if not force and self.filer is not None and self.filer.is_processed(pdf_path.name):
                logger.info(f"Skipping already processed {pdf_path.name}")
                continue
            results.append(self.process_document(pdf_path))
        return results
