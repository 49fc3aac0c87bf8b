"""
Rotation retry controller.

Scans often come out of the feeder upside down or sideways. Each candidate
angle gets one OCR pass; the first pass whose confidence clears the
good-enough threshold wins and stops the loop. Otherwise the first pass
that produced a non-empty title is kept.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional, Dict, Any

from .errors import ParseError, ExternalToolError, TitleExtractionError
from .hocr import read_hocr_file
from .scoring import WordScorer
from .title import TitleResult, synthesize_title, format_word_dump
from .tools import Rotator, Recognizer
from ..config import (
    PipelineConfig,
    RetryConfig,
    HOCR_SUFFIX,
    TEXT_SUFFIX,
    PDF_SUFFIX,
    WORD_DUMP_SUFFIX,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

class CandidateState(str, Enum):
    PENDING = "pending"
    ACTIVE = "active"
    DONE = "done"
    FAILED = "failed"  # markup could not be parsed
    SKIPPED = "skipped"  # never reached after an early stop


@dataclass
class RotationCandidate:
    """One OCR attempt at a given rotation angle."""
    angle: int
    ocr_input: Path
    output_prefix: Path
    owns_input: bool = False  # rotated raster created for this attempt
    state: CandidateState = CandidateState.PENDING
    result: Optional[TitleResult] = None
    error: Optional[str] = None

    def _path(self, suffix: str) -> Path:
        return Path(str(self.output_prefix) + suffix)

    @property
    def hocr_path(self) -> Path:
        return self._path(HOCR_SUFFIX)

    @property
    def text_path(self) -> Path:
        return self._path(TEXT_SUFFIX)

    @property
    def pdf_path(self) -> Path:
        return self._path(PDF_SUFFIX)

    @property
    def dump_path(self) -> Path:
        return self._path(WORD_DUMP_SUFFIX)

    @property
    def title(self) -> str:
        return self.result.title if self.result else ""

    @property
    def confidence(self) -> float:
        return self.result.confidence if self.result else 0.0

    def artifact_paths(self) -> List[Path]:
        paths = [self.hocr_path, self.text_path, self.pdf_path, self.dump_path]
        if self.owns_input:
            paths.append(self.ocr_input)
        return paths

    def to_dict(self) -> Dict[str, Any]:
        return {
            "angle": self.angle,
            "state": self.state.value,
            "title": self.title,
            "confidence": round(self.confidence, 3),
            "output_prefix": str(self.output_prefix),
            "error": self.error,
        }


@dataclass
class RetryOutcome:
    """Best result across all evaluated candidates."""
    title: str
    confidence: float
    output_prefix: Path
    angle: int
    attempts: List[RotationCandidate] = field(default_factory=list)

    @property
    def display_title(self) -> str:
        return self.title.strip()

    @property
    def text_path(self) -> Path:
        return Path(str(self.output_prefix) + TEXT_SUFFIX)

    @property
    def pdf_path(self) -> Path:
        return Path(str(self.output_prefix) + PDF_SUFFIX)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.display_title,
            "confidence": round(self.confidence, 3),
            "angle": self.angle,
            "output_prefix": str(self.output_prefix),
            "attempts": [a.to_dict() for a in self.attempts],
        }


# ============================================================================
# Candidate Planning
# ============================================================================

def requested_angle(display_name: str, pattern: str = RetryConfig.rotate_pattern) -> Optional[int]:
    """Angle forced by a `_rotate<degrees>` directive in the name, if any."""
    match = re.search(pattern, display_name or "")
    if match:
        return int(match.group(1))
    return None


def candidate_angles(display_name: str, config: Optional[RetryConfig] = None) -> List[int]:
    config = config or RetryConfig()
    forced = requested_angle(display_name, config.rotate_pattern)
    if forced is not None:
        logger.info(f"Rotation directive in {display_name!r}: only trying {forced}°")
        return [forced]
    return list(config.angles)


def plan_candidates(
    raster_path: Path,
    doc_id: str,
    angles: List[int],
    work_dir: Optional[Path] = None
) -> List[RotationCandidate]:
    """
    Derive input and output locations for every candidate.

    Angle 0 reads the source raster directly; other angles read a rotated
    copy named `<raster>-r<angle>.tiff`.
    """
    raster_path = Path(raster_path)
    work_dir = Path(work_dir) if work_dir else raster_path.parent

    candidates = []
    for angle in angles:
        if angle == 0:
            candidates.append(RotationCandidate(
                angle=angle,
                ocr_input=raster_path,
                output_prefix=work_dir / f"ocr-{doc_id}",
            ))
        else:
            candidates.append(RotationCandidate(
                angle=angle,
                ocr_input=raster_path.parent / f"{raster_path.name}-r{angle}.tiff",
                output_prefix=work_dir / f"ocr-{doc_id}-r{angle}",
                owns_input=True,
            ))
    return candidates


# ============================================================================
# Controller
# ============================================================================

class RotationRetryController:
    """
    Drives OCR passes over candidate rotations and keeps the best result.

    Candidates run strictly one after another. Tool failures abort the
    document; only a low-confidence result moves on to the next angle.
    """

    def __init__(
        self,
        rotator: Rotator,
        recognizer: Recognizer,
        config: Optional[PipelineConfig] = None
    ):
        self.rotator = rotator
        self.recognizer = recognizer
        self.config = config or PipelineConfig()
        self.scorer = WordScorer(self.config.scoring)

    @property
    def retry(self) -> RetryConfig:
        return self.config.retry

    def run(
        self,
        raster_path: Path,
        doc_id: str,
        display_name: Optional[str] = None,
        work_dir: Optional[Path] = None
    ) -> RetryOutcome:
        """
        Evaluate candidates until one is good enough or all are tried.

        Args:
            raster_path: Rasterized document
            doc_id: Identifier used in artifact names
            display_name: Human-readable name, checked for a rotation directive
            work_dir: Directory for OCR artifacts (defaults to the raster's)

        Returns:
            RetryOutcome for the chosen candidate

        Raises:
            ExternalToolError: A rotation or OCR call failed
            ParseError: No candidate produced parseable markup, or parse
                failures are not tolerated
        """
        name = display_name or doc_id
        angles = candidate_angles(name, self.retry)
        candidates = plan_candidates(raster_path, doc_id, angles, work_dir)

        best: Optional[RotationCandidate] = None
        for candidate in candidates:
            candidate.state = CandidateState.ACTIVE
            try:
                candidate.result = self._attempt(candidate, raster_path)
            except ParseError as e:
                e.with_context(document=name, angle=candidate.angle)
                if not self.retry.tolerate_parse_errors:
                    raise
                logger.warning(f"Skipping unparseable candidate: {e}")
                candidate.state = CandidateState.FAILED
                candidate.error = str(e)
                self._discard(candidate)
                continue
            except TitleExtractionError as e:
                raise e.with_context(document=name, angle=candidate.angle)
            candidate.state = CandidateState.DONE

            good_enough = candidate.confidence > self.retry.good_enough
            logger.info(
                f"Confidence: {candidate.confidence:.2f} for title {candidate.title!r} "
                f"(angle {candidate.angle}°)"
            )

            if self._should_replace(best, candidate, good_enough):
                if best is not None:
                    self._discard(best)
                best = candidate
            else:
                self._discard(candidate)

            if good_enough:
                break

        for candidate in candidates:
            if candidate.state == CandidateState.PENDING:
                candidate.state = CandidateState.SKIPPED

        if best is None:
            raise ParseError(
                "No rotation candidate produced parseable OCR output",
                document=name
            )

        logger.info(
            f"Selected angle {best.angle}° with confidence {best.confidence:.2f}: "
            f"{best.title.strip()!r}"
        )
        return RetryOutcome(
            title=best.title,
            confidence=best.confidence,
            output_prefix=best.output_prefix,
            angle=best.angle,
            attempts=candidates,
        )

    def _should_replace(
        self,
        best: Optional[RotationCandidate],
        candidate: RotationCandidate,
        good_enough: bool
    ) -> bool:
        if best is None or not best.title or good_enough:
            return True
        if self.retry.prefer_higher_confidence:
            return candidate.confidence > best.confidence
        return False

    def _attempt(self, candidate: RotationCandidate, raster_path: Path) -> TitleResult:
        """Rotate (if needed), OCR, parse, score and synthesize one candidate."""
        if candidate.angle != 0:
            self.rotator.rotate(raster_path, candidate.angle, candidate.ocr_input)

        self.recognizer.recognize(candidate.ocr_input, candidate.output_prefix)
        if not candidate.text_path.exists():
            raise ExternalToolError(f"OCR output missing: {candidate.text_path}", stage="ocr")

        words = read_hocr_file(candidate.hocr_path)
        self.scorer.score_all(words)
        result = synthesize_title(words, self.config.title)

        candidate.dump_path.write_text(format_word_dump(result), encoding="utf-8")
        return result

    def _discard(self, candidate: RotationCandidate) -> None:
        """Delete artifacts of a candidate that can no longer win."""
        if self.retry.keep_artifacts:
            return
        for path in candidate.artifact_paths():
            if path.exists():
                path.unlink()
