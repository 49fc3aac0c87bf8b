"""
Utility modules for the scan title pipeline.
"""

from .errors import TitleExtractionError, ParseError, ExternalToolError
from .hocr import WordRecord, parse_hocr, read_hocr_file
from .scoring import WordScorer, score_word
from .title import TitleResult, synthesize_title
from .rotation import RotationRetryController, RotationCandidate, RetryOutcome, candidate_angles
from .tools import Rasterizer, Rotator, Recognizer
from .io import save_json, load_json, ensure_dir
from .publish import LocalFiler, FiledDocument
from .pipeline import TitlePipeline, DocumentResult

__all__ = [
    # Errors
    "TitleExtractionError", "ParseError", "ExternalToolError",
    # Words
    "WordRecord", "parse_hocr", "read_hocr_file", "WordScorer", "score_word",
    # Titles
    "TitleResult", "synthesize_title",
    # Rotation
    "RotationRetryController", "RotationCandidate", "RetryOutcome", "candidate_angles",
    # Collaborators
    "Rasterizer", "Rotator", "Recognizer",
    # IO / filing
    "save_json", "load_json", "ensure_dir", "LocalFiler", "FiledDocument",
    # Pipeline
    "TitlePipeline", "DocumentResult",
]
