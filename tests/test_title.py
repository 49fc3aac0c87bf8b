"""
Tests for title synthesis.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


def weighted(text, weight, confidence=90, font_size=0):
    from scantitle.utils.hocr import WordRecord
    return WordRecord(text=text, font_size=font_size, confidence=confidence, weight=weight)


class TestRanking:
    """Test word ordering."""

    def test_highest_weight_first(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([
            weighted("small", 100),
            weighted("BIG", 300),
            weighted("medium", 200),
        ])

        assert result.title == "BIG medium small "

    def test_ties_keep_reading_order(self):
        from scantitle.utils.title import rank_words

        words = [weighted("a", 100), weighted("b", 200), weighted("c", 100), weighted("d", 200)]

        assert [w.text for w in rank_words(words)] == ["b", "d", "a", "c"]


class TestSynthesis:
    """Test title assembly and confidence."""

    def test_empty_input(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([])

        assert result.title == ""
        assert result.confidence == 0.0
        assert result.sample_count == 0

    def test_confidence_is_per_character(self):
        from scantitle.utils.title import synthesize_title

        # 2 chars at 95, 3 chars at 60
        result = synthesize_title([weighted("ab", 200, 95), weighted("cde", 100, 60)])

        assert result.title == "ab "
        assert result.confidence == pytest.approx((2 * 95 + 3 * 60) / 5)
        assert result.sample_count == 5

    def test_low_confidence_words_still_sampled(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("Hello", 300, 50), weighted("World", 200, 98)])

        assert result.title == "World "
        assert result.confidence == pytest.approx(74.0)

    def test_confidence_gate_is_strict(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("Seventy", 100, 70), weighted("Ok", 90, 71)])

        assert result.title == "Ok "

    def test_punctuation_only_words(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("---", 300, 99), weighted("§", 200, 99)])

        assert result.title == ""
        assert result.confidence == 0.0

    def test_punctuation_not_sampled(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("Nr.:", 300, 80), weighted("42", 200, 90)])

        assert result.title == "Nr.: 42 "
        # "N", "r" at 80 and "4", "2" at 90
        assert result.confidence == pytest.approx(85.0)

    def test_unicode_letters_count(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("Grüße", 100, 80)])

        assert result.title == "Grüße "
        assert result.sample_count == 5

    def test_length_cap_keeps_crossing_word(self):
        from scantitle.utils.title import synthesize_title

        words = [weighted("x" * 50, 300), weighted("y" * 40, 200), weighted("zzz", 100)]
        result = synthesize_title(words)

        assert result.title == "x" * 50 + " " + "y" * 40 + " "
        assert len(result.title) == 92
        assert result.considered == 2

    def test_words_after_cap_not_sampled(self):
        from scantitle.utils.title import synthesize_title

        words = [weighted("a" * 85, 300, 90), weighted("bbbb", 100, 10)]
        result = synthesize_title(words)

        assert result.sample_count == 85
        assert result.confidence == pytest.approx(90.0)

    def test_cap_counts_characters(self):
        from scantitle.utils.title import synthesize_title

        # 40 two-byte chars + space = 41 characters, under the cap
        words = [weighted("ä" * 40, 300), weighted("b", 200)]
        result = synthesize_title(words)

        assert result.title == "ä" * 40 + " b "

    def test_custom_limits(self):
        from scantitle.utils.title import synthesize_title
        from scantitle.config import TitleConfig

        config = TitleConfig(max_length=3, word_confidence_threshold=50)
        result = synthesize_title(
            [weighted("abc", 300, 60), weighted("def", 200, 60)],
            config
        )

        assert result.title == "abc "

    def test_display_title_strips(self):
        from scantitle.utils.title import synthesize_title

        result = synthesize_title([weighted("Invoice", 100)])

        assert result.title == "Invoice "
        assert result.display_title == "Invoice"


class TestWordDump:
    """Test the debug word dump."""

    def test_dump_lists_ranked_words_then_title(self):
        from scantitle.utils.title import synthesize_title, format_word_dump

        result = synthesize_title([weighted("Big", 300), weighted("small", 100, 40)])
        dump = format_word_dump(result)
        lines = dump.splitlines()

        assert lines[0].startswith("weight=300 ")
        assert "text='Big'" in lines[0]
        assert "text='small'" in lines[1]
        assert lines[2] == ""
        assert lines[3] == "Big "
