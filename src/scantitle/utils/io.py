"""
I/O utilities for the scan title pipeline.

Handles:
- JSON serialization
- Work directory management
- Input discovery (single PDF or a folder of scans)
"""

import json
import logging
import shutil
import tempfile
from dataclasses import asdict
from enum import Enum
from pathlib import Path
from typing import List, Union, Any

import numpy as np

logger = logging.getLogger(__name__)

TEMP_PREFIX = "scantitle_"


# ============================================================================
# JSON Serialization
# ============================================================================

class EnhancedJSONEncoder(json.JSONEncoder):
    """JSON encoder that handles numpy scalars, dataclasses, enums and paths."""

    def default(self, obj):
        if isinstance(obj, np.ndarray):
            return obj.tolist()
        if isinstance(obj, np.integer):
            return int(obj)
        if isinstance(obj, np.floating):
            return float(obj)
        if isinstance(obj, Enum):
            return obj.value
        if hasattr(obj, 'to_dict'):
            return obj.to_dict()
        if hasattr(obj, '__dataclass_fields__'):
            return asdict(obj)
        if isinstance(obj, Path):
            return str(obj)
        return super().default(obj)


def save_json(
    data: Any,
    output_path: Union[str, Path],
    indent: int = 2,
    ensure_ascii: bool = False
) -> Path:
    """
    Save data to a JSON file.

    Args:
        data: Data to serialize (dict, list, dataclass, etc.)
        output_path: Path to save the JSON file
        indent: Indentation level for pretty printing
        ensure_ascii: If True, escape non-ASCII characters

    Returns:
        Path to the saved file
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(data, f, indent=indent, ensure_ascii=ensure_ascii, cls=EnhancedJSONEncoder)

    logger.debug(f"Saved JSON: {output_path}")
    return output_path


def load_json(json_path: Union[str, Path]) -> Any:
    """Load data from a JSON file."""
    json_path = Path(json_path)
    if not json_path.exists():
        raise FileNotFoundError(f"JSON file not found: {json_path}")

    with open(json_path, 'r', encoding='utf-8') as f:
        return json.load(f)


# ============================================================================
# Directory Management
# ============================================================================

def ensure_dir(path: Union[str, Path]) -> Path:
    """Ensure a directory exists, creating it if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def create_temp_dir(prefix: str = TEMP_PREFIX) -> Path:
    """Create a temporary working directory."""
    temp_dir = Path(tempfile.mkdtemp(prefix=prefix))
    logger.debug(f"Created temp directory: {temp_dir}")
    return temp_dir


def cleanup_dir(path: Union[str, Path], force: bool = False) -> bool:
    """
    Remove a directory and its contents.

    Args:
        path: Path to the directory
        force: If True, remove even if not a temp directory

    Returns:
        True if successfully removed
    """
    path = Path(path)
    if not path.exists():
        return True

    if not force and TEMP_PREFIX not in str(path):
        logger.warning(f"Refusing to delete non-temp directory: {path}")
        return False

    try:
        shutil.rmtree(path)
        logger.debug(f"Removed directory: {path}")
        return True
    except OSError as e:
        logger.error(f"Failed to remove directory {path}: {e}")
        return False


# ============================================================================
# Input Discovery
# ============================================================================

def detect_input_type(input_path: Union[str, Path]) -> str:
    """
    Detect the type of input file or directory.

    Returns:
        One of: 'pdf', 'pdf_folder', 'image', 'unknown'
    """
    input_path = Path(input_path)

    if input_path.is_dir():
        return 'pdf_folder' if list_pdfs(input_path) else 'unknown'

    if not input_path.exists():
        return 'unknown'

    suffix = input_path.suffix.lower()
    if suffix == '.pdf':
        return 'pdf'
    elif suffix in ('.png', '.jpg', '.jpeg', '.tiff', '.tif', '.bmp'):
        return 'image'

    return 'unknown'


def list_pdfs(folder_path: Union[str, Path]) -> List[Path]:
    """All PDF files directly inside a folder, sorted by name."""
    folder_path = Path(folder_path)
    if not folder_path.is_dir():
        raise NotADirectoryError(f"Not a directory: {folder_path}")

    return sorted(
        f for f in folder_path.iterdir()
        if f.is_file() and f.suffix.lower() == '.pdf'
    )
