"""
hOCR word markup parsing.

Provides:
- WordRecord, the per-word unit used by scoring and title synthesis
- Property string parsing ("bbox 1 2 3 4; x_wconf 95; x_fsize 12")
- First-page word extraction from Tesseract hOCR output
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Dict, Any, Union

from .errors import ParseError, ExternalToolError

logger = logging.getLogger(__name__)

PAGE_SCOPE_ID = "page_1"
WORD_CLASS = "ocrx_word"


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class WordRecord:
    """
    One recognized word.

    `height` is the second bbox coordinate as reported by the engine, i.e.
    the distance of the word's top edge from the top of the page.
    `weight` is derived by the scorer and recomputed on every pass.
    """
    text: str
    font_size: int = 0
    confidence: int = 0
    height: int = 0
    is_strong: bool = False
    is_em: bool = False
    weight: int = 0
    props: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "text": self.text,
            "font_size": self.font_size,
            "confidence": self.confidence,
            "height": self.height,
            "is_strong": self.is_strong,
            "is_em": self.is_em,
            "weight": self.weight,
        }


# ============================================================================
# Property Parsing
# ============================================================================

def _to_int(value: Any) -> int:
    """Integer field value, 0 when missing or not numeric."""
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def parse_properties(title: str) -> Dict[str, str]:
    """
    Split an hOCR property string into a name -> value map.

    Properties are separated by ';' and each is "<name> <value>". A property
    without a value makes the whole document unusable.
    """
    props = {}
    for prop in title.split(";"):
        name, sep, value = prop.lstrip(" ").partition(" ")
        if not sep:
            raise ParseError(f"Malformed hOCR property {prop!r} in {title!r}")
        props[name] = value
    return props


def word_from_element(element) -> WordRecord:
    """Build a WordRecord from a BeautifulSoup ocrx_word element."""
    props = parse_properties(element.get("title", ""))

    bbox = props.get("bbox")
    if bbox is None:
        raise ParseError(f"Word without bbox: {element.get('title', '')!r}")
    coords = bbox.split(" ")
    if len(coords) < 2:
        raise ParseError(f"Truncated bbox {bbox!r}")

    return WordRecord(
        text=element.get_text(),
        font_size=_to_int(props.get("x_fsize")),
        confidence=_to_int(props.get("x_wconf")),
        height=_to_int(coords[1]),
        is_strong=element.find("strong") is not None,
        is_em=element.find("em") is not None,
        props=props,
    )


# ============================================================================
# Document Parsing
# ============================================================================

def parse_hocr(markup: Union[str, bytes]) -> List[WordRecord]:
    """
    Parse hOCR markup into word records.

    Only words inside the first page element are returned, in the order the
    markup lists them.

    Args:
        markup: hOCR document (str, or UTF-8 bytes as written by Tesseract)

    Returns:
        List of WordRecord in document order

    Raises:
        ParseError: If the markup cannot be decoded, contains no elements,
            lacks the first page, or a word carries malformed properties
    """
    from bs4 import BeautifulSoup

    if isinstance(markup, bytes):
        try:
            markup = markup.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError(f"hOCR is not valid UTF-8: {e}")

    soup = BeautifulSoup(markup, "html.parser")
    if soup.find() is None:
        raise ParseError("hOCR contains no markup elements")

    page = soup.find(id=PAGE_SCOPE_ID)
    if page is None:
        raise ParseError(f"hOCR has no #{PAGE_SCOPE_ID} element")

    words = [word_from_element(el) for el in page.find_all(class_=WORD_CLASS)]
    logger.debug(f"Parsed {len(words)} words from #{PAGE_SCOPE_ID}")
    return words


def read_hocr_file(hocr_path: Union[str, Path]) -> List[WordRecord]:
    """
    Load and parse an hOCR file written by the OCR engine.

    A missing file means the engine did not produce its output, which is an
    engine failure rather than a markup problem.
    """
    hocr_path = Path(hocr_path)
    if not hocr_path.exists():
        raise ExternalToolError(f"OCR output missing: {hocr_path}", stage="ocr")

    return parse_hocr(hocr_path.read_bytes())
