"""
Title synthesis from weighted OCR words.

Provides:
- Ranking of words by weight (stable, document order on ties)
- Title assembly under a length cap and a per-word confidence gate
- Per-character confidence aggregation
- The per-candidate word dump written next to the OCR outputs
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Any, Optional

import numpy as np

from .hocr import WordRecord
from ..config import TitleConfig

logger = logging.getLogger(__name__)


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class TitleResult:
    """Synthesized title and its aggregate confidence for one OCR pass."""
    title: str
    confidence: float
    ranked: List[WordRecord] = field(default_factory=list)
    considered: int = 0  # ranked words walked before the length cap hit
    sample_count: int = 0

    @property
    def display_title(self) -> str:
        return self.title.strip()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "title": self.title,
            "confidence": self.confidence,
            "considered": self.considered,
            "sample_count": self.sample_count,
        }


# ============================================================================
# Synthesis
# ============================================================================

def is_title_char(ch: str) -> bool:
    """Letters and decimal digits count; punctuation and symbols do not."""
    return ch.isalpha() or ch.isdecimal()


def rank_words(words: List[WordRecord]) -> List[WordRecord]:
    """Sort by weight, highest first. Equal weights keep reading order."""
    return sorted(words, key=lambda w: w.weight, reverse=True)


def synthesize_title(
    words: List[WordRecord],
    config: Optional[TitleConfig] = None
) -> TitleResult:
    """
    Build a title from scored words.

    Every letter/digit of a walked word adds one confidence sample, whether
    or not the word makes it into the title. A word joins the title (with a
    trailing space) when it has a letter/digit and its confidence is above
    the gate. Walking stops once the title is longer than the cap; the word
    that crossed it stays whole.

    Args:
        words: Words with `weight` already set
        config: Title parameters (defaults if None)

    Returns:
        TitleResult with the raw title and mean per-character confidence
    """
    config = config or TitleConfig()
    ranked = rank_words(words)

    title = ""
    samples: List[int] = []
    considered = 0

    for word in ranked:
        considered += 1
        letters = sum(1 for ch in word.text if is_title_char(ch))
        samples.extend([word.confidence] * letters)

        if letters > 0 and word.confidence > config.word_confidence_threshold:
            title += word.text + " "

        if len(title) > config.max_length:
            break

    confidence = float(np.mean(samples)) if samples else 0.0

    return TitleResult(
        title=title,
        confidence=confidence,
        ranked=ranked,
        considered=considered,
        sample_count=len(samples)
    )


def format_word_dump(result: TitleResult) -> str:
    """Render every ranked word and the resulting title for debugging."""
    lines = []
    for word in result.ranked:
        lines.append(
            f"weight={word.weight} fsize={word.font_size} conf={word.confidence} "
            f"height={word.height} strong={word.is_strong} em={word.is_em} "
            f"text={word.text!r}"
        )
    lines.append("")
    lines.append(result.title)
    return "\n".join(lines) + "\n"
