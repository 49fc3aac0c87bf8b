#!/usr/bin/env python
"""
Command-line interface for the Scan Title Pipeline.

Usage:
    scantitle --input <pdf_or_folder> --output <filing_dir> [options]
    scantitle --inspect <image>

Examples:
    # Name and file a single scan
    scantitle --input scan_0042.pdf --output ./filed

    # File every new scan in a folder, keeping OCR artifacts for debugging
    scantitle --input ./inbox --output ./filed --keep-artifacts --work-dir ./work

    # Show how the words of one page are ranked
    scantitle --inspect page.tiff
"""

import sys
import argparse
import logging
import time
from pathlib import Path
from typing import List

from . import __version__
from .config import (
    LOG_FORMAT,
    PipelineConfig,
    get_config,
    load_denylist_file,
    extend_denylist,
)

logger = logging.getLogger("scantitle")


def setup_argparser() -> argparse.ArgumentParser:
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="scantitle",
        description="Scan Title Pipeline - name scanned PDFs after their most prominent text",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  File a single scan:
    scantitle --input scan.pdf --output ./filed

  File a whole inbox folder (already filed scans are skipped):
    scantitle --input ./inbox --output ./filed

  Force one rotation (same as naming the file scan_rotate90.pdf):
    scantitle --input scan.pdf --output ./filed --rotate 90

  Inspect word ranking on an image:
    scantitle --inspect page.tiff
        """
    )

    source = parser.add_mutually_exclusive_group(required=True)
    source.add_argument(
        "--input", "-i",
        help="Scanned PDF file or folder of PDFs"
    )
    source.add_argument(
        "--inspect",
        metavar="IMAGE",
        help="OCR one image and print its highest ranked words"
    )

    parser.add_argument(
        "--output", "-o",
        help="Filing directory for titled PDFs (required with --input)"
    )

    parser.add_argument(
        "--work-dir",
        default=None,
        help="Directory for intermediate artifacts (default: temp directory)"
    )

    parser.add_argument(
        "--lang",
        default=None,
        help="Tesseract languages (default: deu+eng)"
    )

    parser.add_argument(
        "--dpi",
        type=int,
        default=300,
        help="DPI for PDF to image conversion (default: 300)"
    )

    parser.add_argument(
        "--rotate",
        type=int,
        default=None,
        help="Only try this rotation angle (degrees clockwise)"
    )

    parser.add_argument(
        "--denylist-file",
        default=None,
        help="File with extra tokens that never belong in a title, one per line"
    )

    parser.add_argument(
        "--prefer-higher-confidence",
        action="store_true",
        help="Let a later, more confident rotation replace an earlier title"
    )

    parser.add_argument(
        "--strict-parse",
        action="store_true",
        help="Abort on the first unparseable OCR output instead of trying the next rotation"
    )

    parser.add_argument(
        "--keep-artifacts",
        action="store_true",
        help="Keep rasters, hOCR and word dumps of every rotation"
    )

    parser.add_argument(
        "--force",
        action="store_true",
        help="Process scans even if they were filed before"
    )

    parser.add_argument(
        "--json",
        action="store_true",
        help="Also write results.json with every attempt to the output directory"
    )

    parser.add_argument(
        "--timeout",
        type=float,
        default=0,
        help="Seconds before an external tool is killed (default: 0 = no limit)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--quiet", "-q",
        action="store_true",
        help="Suppress non-error output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}"
    )

    return parser


def build_config(args) -> PipelineConfig:
    """Apply command-line options on top of the environment configuration."""
    config = get_config()

    if args.lang:
        config.ocr.language = args.lang
    config.raster.dpi = args.dpi
    if args.timeout:
        config.ocr.timeout_s = args.timeout
        config.raster.timeout_s = args.timeout
    if args.rotate is not None:
        config.retry.angles = (args.rotate,)
    if args.denylist_file:
        extend_denylist(config, load_denylist_file(Path(args.denylist_file)))
    if args.prefer_higher_confidence:
        config.retry.prefer_higher_confidence = True
    if args.strict_parse:
        config.retry.tolerate_parse_errors = False
    if args.keep_artifacts:
        config.retry.keep_artifacts = True
    if args.work_dir:
        config.work_dir = Path(args.work_dir)

    return config


def check_dependencies() -> bool:
    """Check if required dependencies are available."""
    missing = []

    try:
        import cv2  # noqa: F401
    except ImportError:
        missing.append("opencv-python")

    try:
        import bs4  # noqa: F401
    except ImportError:
        missing.append("beautifulsoup4")

    try:
        import pytesseract
        try:
            pytesseract.get_tesseract_version()
        except pytesseract.TesseractNotFoundError:
            missing.append("tesseract-ocr (system package)")
    except ImportError:
        missing.append("pytesseract")

    try:
        import pdf2image  # noqa: F401
    except ImportError:
        missing.append("pdf2image (and poppler-utils)")

    if missing:
        logger.error("Missing required dependencies:")
        for dep in missing:
            logger.error(f"  - {dep}")
        logger.error("\nInstall with: pip install -e .")
        return False

    return True


def select_inspection_words(words, min_confidence: int = 75, min_length: int = 3):
    """Confident words of reasonable length, largest print first."""
    ranked = sorted(words, key=lambda w: w.font_size, reverse=True)
    return [w for w in ranked if w.confidence > min_confidence and len(w.text) >= min_length]


def run_inspect(args, config: PipelineConfig) -> int:
    """OCR one image and print the ranked word table."""
    from .utils.io import create_temp_dir, cleanup_dir
    from .utils.hocr import read_hocr_file
    from .utils.ocr_text import TesseractRecognizer
    from .utils.scoring import WordScorer

    image_path = Path(args.inspect)
    work_dir = create_temp_dir()
    try:
        recognizer = TesseractRecognizer.from_config(config.ocr)
        recognizer.create_pdf = False
        logger.info(f"Tesseract {recognizer.version()}")
        prefix = work_dir / "inspect"
        recognizer.recognize(image_path, prefix)
        words = WordScorer(config.scoring).score_all(read_hocr_file(Path(f"{prefix}.hocr")))
    finally:
        cleanup_dir(work_dir)

    print(f"{'fsize':>5} {'conf':>4} {'weight':>6}  text")
    for word in select_inspection_words(words):
        print(f"{word.font_size:>5} {word.confidence:>4} {word.weight:>6}  {word.text}")
    return 0


def run_pipeline(args, config: PipelineConfig) -> int:
    """Run the title pipeline over the input scans."""
    from .utils.io import detect_input_type, list_pdfs, save_json
    from .utils.pipeline import TitlePipeline
    from .utils.publish import LocalFiler

    start_time = time.time()

    if not args.output:
        logger.error("--output is required with --input")
        return 1

    input_path = Path(args.input)
    input_type = detect_input_type(input_path)
    logger.info(f"Input type detected: {input_type}")

    filer = LocalFiler(args.output)
    pipeline = TitlePipeline(config=config, filer=filer)

    if input_type == "pdf":
        # An explicitly named scan is processed even if it was filed before
        results = [pipeline.process_document(input_path)]
    elif input_type == "pdf_folder":
        results = pipeline.process_folder(list_pdfs(input_path), force=args.force)
    else:
        logger.error(f"Unsupported input type: {input_type}")
        return 1

    if args.json:
        json_path = Path(args.output) / "results.json"
        save_json([r.to_dict() for r in results], json_path)
        logger.info(f"Saved JSON: {json_path}")

    elapsed = time.time() - start_time

    if not args.quiet:
        print("\n" + "=" * 60)
        print("SCAN TITLES")
        print("=" * 60)
        for result in results:
            filed_as = result.filed.pdf_path.name if result.filed else "-"
            print(f"{result.source}")
            print(f"  Title: {result.title or '(none)'}")
            print(f"  Confidence: {result.confidence:.1f}  Angle: {result.outcome.angle}°")
            print(f"  Filed as: {filed_as}")
        print()
        print(f"Documents processed: {len(results)}")
        print(f"Processing time: {elapsed:.2f}s")
        print("=" * 60)

    return 0


def main(argv: List[str] = None):
    """Main entry point."""
    from .utils.errors import TitleExtractionError

    parser = setup_argparser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    # Configure logging level
    if args.verbose:
        logging.getLogger().setLevel(logging.DEBUG)
    elif args.quiet:
        logging.getLogger().setLevel(logging.ERROR)

    if not check_dependencies():
        sys.exit(1)

    try:
        config = build_config(args)
        if args.inspect:
            exit_code = run_inspect(args, config)
        else:
            exit_code = run_pipeline(args, config)
        sys.exit(exit_code)
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        sys.exit(130)
    except (TitleExtractionError, FileNotFoundError) as e:
        logger.error(f"Processing failed: {e}")
        if args.verbose:
            raise
        sys.exit(1)


if __name__ == "__main__":
    main()
