#!/usr/bin/env python
"""
Generate synthetic scanned letters for trying out the title pipeline.

This script creates single-page PDFs with:
- A large heading that should become the title
- A salutation in large print that the denylist should demote
- Body text and a footer in small print
- Upside-down and sideways variants, as a sheet feeder produces them

It also writes expected_titles.json for eval.py.

Usage:
    python examples/generate_samples.py
    scantitle --input examples/sample_scans --output examples/filed
    python eval.py --input examples/filed/processed.json --expected examples/sample_scans/expected_titles.json
"""

import json
from pathlib import Path

import numpy as np


def create_letter_page(heading: str, reference: str):
    """Create a white A4-ish page at 150 DPI with a typical letter layout."""
    import cv2

    img = np.ones((1754, 1240, 3), dtype=np.uint8) * 255

    # Sender block
    y = 120
    for line in ["Example Services GmbH", "Hauptstrasse 1", "12345 Musterstadt"]:
        cv2.putText(img, line, (80, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 1)
        y += 32

    # Heading
    cv2.putText(img, heading, (80, 420), cv2.FONT_HERSHEY_DUPLEX, 2.0, (0, 0, 0), 4)
    cv2.putText(img, reference, (80, 500), cv2.FONT_HERSHEY_SIMPLEX, 1.1, (0, 0, 0), 2)

    # Salutation in large print
    cv2.putText(img, "Herr", (80, 620), cv2.FONT_HERSHEY_SIMPLEX, 1.4, (0, 0, 0), 3)

    y = 700
    body = [
        "thank you for your order. Please find the details below.",
        "The amount is due within 14 days of receipt.",
        "Keep this document for your records.",
    ]
    for line in body:
        cv2.putText(img, line, (80, y), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 0, 0), 1)
        y += 34

    # Footer
    cv2.putText(img, "Page 1 of 1", (540, 1700), cv2.FONT_HERSHEY_SIMPLEX, 0.6, (80, 80, 80), 1)

    return img


def save_pdf(img: np.ndarray, path: Path, dpi: int = 150) -> Path:
    """Save a BGR page image as a single-page PDF."""
    from PIL import Image

    rgb = img[:, :, ::-1]
    Image.fromarray(rgb).save(path, "PDF", resolution=float(dpi))
    return path


def main():
    import cv2

    samples_dir = Path(__file__).parent / "sample_scans"
    samples_dir.mkdir(exist_ok=True)

    letters = [
        ("scan_invoice", "INVOICE 2024-113", "Customer 4711"),
        ("scan_contract", "RENTAL CONTRACT", "Flat 3 left"),
        ("scan_reminder", "PAYMENT REMINDER", "Invoice 2024-098"),
    ]

    expected = {}
    for name, heading, reference in letters:
        page = create_letter_page(heading, reference)

        # Upright scan
        path = save_pdf(page, samples_dir / f"{name}.pdf")
        expected[path.name] = heading
        print(f"Created: {path}")

        # Fed upside down: found by the retry loop
        path = save_pdf(cv2.rotate(page, cv2.ROTATE_180), samples_dir / f"{name}_upside_down.pdf")
        expected[path.name] = heading
        print(f"Created: {path}")

    # Sideways scan with a rotation directive in its name
    page = create_letter_page("DELIVERY NOTE", "Parcel 2 of 2")
    path = save_pdf(
        cv2.rotate(page, cv2.ROTATE_90_COUNTERCLOCKWISE),
        samples_dir / "scan_delivery_rotate90.pdf"
    )
    expected[path.name] = "DELIVERY NOTE"
    print(f"Created: {path}")

    expected_path = samples_dir / "expected_titles.json"
    with open(expected_path, 'w', encoding='utf-8') as f:
        json.dump(expected, f, indent=2)
    print(f"Created: {expected_path}")

    print("\nSample generation complete!")
    print("Titles are only as good as Tesseract's reading of the Hershey fonts; expect some misses.")


if __name__ == "__main__":
    main()
