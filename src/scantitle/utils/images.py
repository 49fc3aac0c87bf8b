"""
Raster image handling for the scan title pipeline.

Provides:
- PDF rendering to page images (pdf2image / poppler)
- Multi-page TIFF read/write
- Clockwise rotation by arbitrary angles
- Rasterizer and Rotator implementations used by the pipeline
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .errors import ExternalToolError
from .tools import Rasterizer, Rotator

logger = logging.getLogger(__name__)


# ============================================================================
# PDF to Image Conversion
# ============================================================================

def load_pdf(
    pdf_path: Union[str, Path],
    dpi: int = 300,
    thread_count: int = 4,
    timeout: Optional[float] = None
) -> List[np.ndarray]:
    """
    Convert PDF pages to images using pdf2image (poppler backend).

    Args:
        pdf_path: Path to the PDF file
        dpi: Resolution for rendering (300 works well for Tesseract)
        thread_count: Poppler rendering threads
        timeout: Seconds before poppler is killed (None = wait forever)

    Returns:
        List of numpy arrays (BGR format), one per page

    Raises:
        ExternalToolError: If the file is missing, poppler is missing, or
            the PDF cannot be rendered
    """
    pdf_path = Path(pdf_path)
    if not pdf_path.exists():
        raise ExternalToolError(f"PDF file not found: {pdf_path}", stage="rasterize")

    from pdf2image import convert_from_path
    from pdf2image.exceptions import PDFInfoNotInstalledError

    logger.info(f"Converting PDF to images: {pdf_path} at {dpi} DPI")
    try:
        pil_images = convert_from_path(
            pdf_path,
            dpi=dpi,
            fmt='png',
            thread_count=thread_count,
            timeout=timeout
        )
    except PDFInfoNotInstalledError as e:
        raise ExternalToolError(
            "Poppler is not installed (pdfinfo/pdftoppm not found on PATH)",
            stage="rasterize"
        ) from e
    except Exception as e:
        raise ExternalToolError(f"Failed to render PDF {pdf_path}: {e}", stage="rasterize") from e

    # RGB -> BGR for OpenCV
    images = []
    for pil_img in pil_images:
        img_array = np.array(pil_img.convert("RGB"))
        images.append(img_array[:, :, ::-1].copy())

    if not images:
        raise ExternalToolError(f"PDF rendered no pages: {pdf_path}", stage="rasterize")

    logger.info(f"Converted {len(images)} pages from PDF")
    return images


# ============================================================================
# Multi-page TIFF
# ============================================================================

def write_multipage(images: List[np.ndarray], out_path: Union[str, Path]) -> Path:
    """Write one or more pages into a single TIFF file."""
    import cv2

    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)

    if not cv2.imwritemulti(str(out_path), list(images)):
        raise ExternalToolError(f"Could not write image: {out_path}")

    logger.debug(f"Wrote {len(images)} page(s) to {out_path}")
    return out_path


def read_multipage(image_path: Union[str, Path]) -> List[np.ndarray]:
    """Read every page of a (possibly multi-page) image file."""
    import cv2

    image_path = Path(image_path)
    if not image_path.exists():
        raise ExternalToolError(f"Image file not found: {image_path}")

    ok, pages = cv2.imreadmulti(str(image_path), flags=cv2.IMREAD_UNCHANGED)
    if not ok or not pages:
        raise ExternalToolError(f"Could not decode image: {image_path}")

    return list(pages)


# ============================================================================
# Rotation
# ============================================================================

def rotate_image(image: np.ndarray, angle: int) -> np.ndarray:
    """
    Rotate an image clockwise by `angle` degrees.

    Right angles are exact transposes; anything else goes through an affine
    warp onto an enlarged white canvas so no content is clipped.
    """
    import cv2

    angle = angle % 360
    if angle == 0:
        return image.copy()
    if angle == 90:
        return cv2.rotate(image, cv2.ROTATE_90_CLOCKWISE)
    if angle == 180:
        return cv2.rotate(image, cv2.ROTATE_180)
    if angle == 270:
        return cv2.rotate(image, cv2.ROTATE_90_COUNTERCLOCKWISE)

    h, w = image.shape[:2]
    center = (w // 2, h // 2)
    # OpenCV angles are counter-clockwise
    rotation_matrix = cv2.getRotationMatrix2D(center, -angle, 1.0)

    # Calculate new bounding box size
    cos = abs(rotation_matrix[0, 0])
    sin = abs(rotation_matrix[0, 1])
    new_w = int(h * sin + w * cos)
    new_h = int(h * cos + w * sin)

    # Adjust rotation matrix for new size
    rotation_matrix[0, 2] += (new_w - w) / 2
    rotation_matrix[1, 2] += (new_h - h) / 2

    return cv2.warpAffine(
        image,
        rotation_matrix,
        (new_w, new_h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_CONSTANT,
        borderValue=(255, 255, 255) if len(image.shape) == 3 else 255
    )


# ============================================================================
# Pipeline Collaborators
# ============================================================================

class PdfRasterizer(Rasterizer):
    """Renders every page of a PDF into one multi-page TIFF."""

    def __init__(
        self,
        dpi: int = 300,
        thread_count: int = 4,
        timeout_s: Optional[float] = None
    ):
        self.dpi = dpi
        self.thread_count = thread_count
        self.timeout_s = timeout_s

    def rasterize(self, pdf_path: Path, out_path: Path) -> Path:
        pages = load_pdf(
            pdf_path,
            dpi=self.dpi,
            thread_count=self.thread_count,
            timeout=self.timeout_s
        )
        try:
            return write_multipage(pages, out_path)
        except ExternalToolError as e:
            e.stage = "rasterize"
            raise


class ImageRotator(Rotator):
    """Rotates every page of a raster file with OpenCV."""

    def rotate(self, image_path: Path, angle: int, out_path: Path) -> Path:
        logger.info(f"Rotating {image_path} by {angle}° -> {out_path}")
        try:
            pages = read_multipage(image_path)
            rotated = [rotate_image(page, angle) for page in pages]
            return write_multipage(rotated, out_path)
        except ExternalToolError as e:
            e.stage = "rotate"
            e.angle = angle
            raise
