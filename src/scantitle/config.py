"""
Configuration and constants for the scan title pipeline.

This module provides:
- Logging setup
- Word scoring and title synthesis parameters
- Rotation retry policy
- OCR and rasterization settings
"""

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple, FrozenSet, Iterable
from pathlib import Path
import logging

# ============================================================================
# Logging Configuration
# ============================================================================

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logging.basicConfig(
    level=logging.INFO,
    format=LOG_FORMAT
)
logger = logging.getLogger("scantitle")


# ============================================================================
# Defaults
# ============================================================================

# Tokens that show up in large print on most scanned mail but never make a
# useful title (salutations, generic street words). Personal names, street
# names and postal codes are site data: add them through
# SCANTITLE_DENYLIST or a denylist file.
DEFAULT_DENYLIST: FrozenSet[str] = frozenset({
    "Mister",
    "Herr",
    "Frau",
    "Strasse",
    "Straße",
    "Str.",
})

DEFAULT_ANGLES: Tuple[int, ...] = (0, 180, 90, 270)


# ============================================================================
# Processing Configuration
# ============================================================================

@dataclass
class ScoringConfig:
    """Word weighting parameters."""
    font_size_factor: int = 10
    tall_box_height: int = 1400  # pixels
    tall_box_penalty: int = 50
    denylist_penalty: int = 100
    denylist: FrozenSet[str] = DEFAULT_DENYLIST
    # Emphasis is parsed but carries no weight unless these are raised
    strong_bonus: int = 0
    em_bonus: int = 0


@dataclass
class TitleConfig:
    """Title synthesis parameters."""
    max_length: int = 80
    word_confidence_threshold: int = 70


@dataclass
class RetryConfig:
    """Rotation retry policy."""
    angles: Tuple[int, ...] = DEFAULT_ANGLES
    good_enough: float = 70.0
    rotate_pattern: str = r"_rotate([0-9]+)"
    # False keeps the first non-empty title unless a later one is good enough
    prefer_higher_confidence: bool = False
    tolerate_parse_errors: bool = True
    keep_artifacts: bool = False


@dataclass
class OCRConfig:
    """Tesseract configuration."""
    language: str = "deu+eng"
    hocr_font_info: bool = True
    create_pdf: bool = True
    extra_config: str = ""
    timeout_s: float = 0  # 0 = no timeout


@dataclass
class RasterConfig:
    """PDF rasterization configuration."""
    dpi: int = 300
    thread_count: int = 4
    timeout_s: Optional[float] = None


@dataclass
class PipelineConfig:
    """Main pipeline configuration."""
    scoring: ScoringConfig = field(default_factory=ScoringConfig)
    title: TitleConfig = field(default_factory=TitleConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    ocr: OCRConfig = field(default_factory=OCRConfig)
    raster: RasterConfig = field(default_factory=RasterConfig)

    # Global settings
    work_dir: Optional[Path] = None  # None = fresh temp dir per document
    debug_mode: bool = False


# ============================================================================
# Default Configuration Instance
# ============================================================================

def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").lower() in ("1", "true", "yes")


def parse_token_list(value: str) -> FrozenSet[str]:
    """Split a comma separated token list, ignoring blanks."""
    return frozenset(t.strip() for t in value.split(",") if t.strip())


def load_denylist_file(path: Path) -> FrozenSet[str]:
    """
    Load denylist tokens from a text file.

    One token per line; blank lines and lines starting with '#' are skipped.
    Tokens are matched against the exact word text, so no case folding is
    applied here.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Denylist file not found: {path}")

    tokens = []
    with open(path, 'r', encoding='utf-8') as f:
        for line in f:
            token = line.strip()
            if token and not token.startswith("#"):
                tokens.append(token)

    logger.debug(f"Loaded {len(tokens)} denylist tokens from {path}")
    return frozenset(tokens)


def extend_denylist(config: PipelineConfig, tokens: Iterable[str]) -> PipelineConfig:
    """Add tokens to the scoring denylist in place and return the config."""
    config.scoring.denylist = frozenset(config.scoring.denylist) | frozenset(tokens)
    return config


def get_config() -> PipelineConfig:
    """Get the default pipeline configuration with environment overrides."""
    config = PipelineConfig()

    # Override from environment variables
    if os.environ.get("SCANTITLE_LANG"):
        config.ocr.language = os.environ["SCANTITLE_LANG"]

    if os.environ.get("SCANTITLE_DENYLIST"):
        extend_denylist(config, parse_token_list(os.environ["SCANTITLE_DENYLIST"]))

    if _env_flag("SCANTITLE_KEEP_ARTIFACTS"):
        config.retry.keep_artifacts = True

    if _env_flag("SCANTITLE_DEBUG"):
        config.debug_mode = True
        config.retry.keep_artifacts = True

    return config


# ============================================================================
# Artifact Naming
# ============================================================================

HOCR_SUFFIX = ".hocr"
TEXT_SUFFIX = ".txt"
PDF_SUFFIX = ".pdf"
WORD_DUMP_SUFFIX = "-title.txt"

RASTER_EXTENSION = ".tiff"
UNREADABLE_TITLE = "UNREADABLE"
