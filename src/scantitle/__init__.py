"""
Scan Title Pipeline
===================

Names scanned documents after what is printed on them. A scanned PDF is
rasterized, OCR'd at up to four rotations, and the largest, most confident
words on the first page become the document title.

Main components:
- hOCR word parsing
- Word weighting (font size, page position, denylist)
- Title synthesis with a per-character confidence score
- Rotation retry with early stop
- Local filing of the searchable PDF under its title
"""

__version__ = "1.0.0"
__author__ = "Scan Title Team"
