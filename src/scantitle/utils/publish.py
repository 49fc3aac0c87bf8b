"""
Local filing of processed scans.

The winning OCR pass is filed under its extracted title: the searchable PDF
is copied into the output folder, a description file holds the transcript
and where the scan came from, and a manifest remembers which sources were
already handled so a folder can be re-run safely.
"""

import logging
import re
import shutil
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Optional, Dict, Any, List, Union

from .errors import ExternalToolError
from .io import ensure_dir, load_json, save_json
from .rotation import RetryOutcome
from ..config import UNREADABLE_TITLE

logger = logging.getLogger(__name__)

MANIFEST_NAME = "processed.json"
MAX_FILENAME_LENGTH = 120

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|\x00-\x1f]+')
_WHITESPACE = re.compile(r"\s+")


@dataclass
class FiledDocument:
    """Where a processed scan ended up."""
    source: str
    title: str
    confidence: float
    angle: int
    pdf_path: Path
    description_path: Path
    processed_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "title": self.title,
            "confidence": round(self.confidence, 3),
            "angle": self.angle,
            "filed_as": self.pdf_path.name,
            "description": self.description_path.name,
            "processed_at": self.processed_at,
        }


def safe_filename(title: str, max_length: int = MAX_FILENAME_LENGTH) -> str:
    """Turn an OCR title into something usable as a file name."""
    name = _WHITESPACE.sub(" ", title)
    name = _UNSAFE_CHARS.sub("_", name).strip(" ._")
    name = name[:max_length].rstrip(" ._")
    return name or UNREADABLE_TITLE


def unique_path(directory: Path, stem: str, suffix: str) -> Path:
    """First `<stem><suffix>`, `<stem> (2)<suffix>`, ... that does not exist."""
    candidate = directory / f"{stem}{suffix}"
    n = 2
    while candidate.exists():
        candidate = directory / f"{stem} ({n}){suffix}"
        n += 1
    return candidate


class LocalFiler:
    """Files processed scans into an output folder."""

    def __init__(self, output_dir: Union[str, Path], manifest_name: str = MANIFEST_NAME):
        self.output_dir = ensure_dir(output_dir)
        self.manifest_path = self.output_dir / manifest_name

    def records(self) -> List[Dict[str, Any]]:
        if not self.manifest_path.exists():
            return []
        return load_json(self.manifest_path)

    def is_processed(self, source: str) -> bool:
        return any(r.get("source") == source for r in self.records())

    def file(
        self,
        outcome: RetryOutcome,
        source: str,
        source_path: Optional[Path] = None
    ) -> FiledDocument:
        """
        Copy the winning artifacts into the output folder.

        Falls back to the original scan when the OCR engine wrote no
        searchable PDF.

        Args:
            outcome: Result of the rotation retry controller
            source: Display name of the scanned document
            source_path: Original scan on disk

        Returns:
            FiledDocument describing the written files
        """
        pdf_source = outcome.pdf_path
        if not pdf_source.exists():
            if source_path is None or not Path(source_path).exists():
                raise ExternalToolError(f"No PDF to file for {source}: {pdf_source}", stage="file")
            logger.warning(f"No searchable PDF for {source}, filing the original scan")
            pdf_source = Path(source_path)

        stem = safe_filename(outcome.display_title)
        pdf_path = unique_path(self.output_dir, stem, ".pdf")
        shutil.copyfile(pdf_source, pdf_path)

        description_path = pdf_path.with_suffix(".txt")
        description_path.write_text(
            self._description(outcome, source, source_path),
            encoding="utf-8"
        )

        filed = FiledDocument(
            source=source,
            title=outcome.display_title,
            confidence=outcome.confidence,
            angle=outcome.angle,
            pdf_path=pdf_path,
            description_path=description_path,
            processed_at=datetime.now().isoformat(timespec="seconds"),
        )

        records = self.records()
        records.append(filed.to_dict())
        save_json(records, self.manifest_path)

        logger.info(f"Filed {source} as {pdf_path.name}")
        return filed

    def _description(
        self,
        outcome: RetryOutcome,
        source: str,
        source_path: Optional[Path]
    ) -> str:
        ocr_text = ""
        if outcome.text_path.exists():
            ocr_text = outcome.text_path.read_text(encoding="utf-8")

        lines = [ocr_text, f"Source: {source}"]
        if source_path is not None:
            source_path = Path(source_path)
            lines.append(str(source_path.resolve()))
            if source_path.exists():
                created = datetime.fromtimestamp(source_path.stat().st_mtime)
                lines.append(created.isoformat(timespec="seconds"))
        return "\n".join(lines) + "\n"
