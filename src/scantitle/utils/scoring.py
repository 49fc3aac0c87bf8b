"""
Word weighting for title selection.

Weight is a pure function of font size, vertical position and text; larger
print ranks first, words low on the page and known non-title tokens sink.
"""

import logging
from typing import List, Optional

from .hocr import WordRecord
from ..config import ScoringConfig

logger = logging.getLogger(__name__)


def score_word(word: WordRecord, config: Optional[ScoringConfig] = None) -> int:
    """
    Compute the ranking weight of a single word.

    Args:
        word: Parsed word record
        config: Scoring parameters (defaults if None)

    Returns:
        Integer weight, possibly negative
    """
    config = config or ScoringConfig()

    weight = word.font_size * config.font_size_factor

    if word.height > config.tall_box_height:
        weight -= config.tall_box_penalty

    if word.text in config.denylist:
        weight -= config.denylist_penalty

    if word.is_strong:
        weight += config.strong_bonus
    if word.is_em:
        weight += config.em_bonus

    return weight


class WordScorer:
    """Assigns weights to parsed words."""

    def __init__(self, config: Optional[ScoringConfig] = None):
        self.config = config or ScoringConfig()

    def score(self, word: WordRecord) -> int:
        return score_word(word, self.config)

    def score_all(self, words: List[WordRecord]) -> List[WordRecord]:
        """Set `weight` on every word and return the same list."""
        for word in words:
            word.weight = self.score(word)

        denied = sum(1 for w in words if w.text in self.config.denylist)
        if denied:
            logger.debug(f"{denied} denylisted word(s) demoted")
        return words
