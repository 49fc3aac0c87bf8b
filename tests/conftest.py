"""
Shared fixtures: in-memory stand-ins for the external tools.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from scantitle.utils.tools import Rasterizer, Rotator, Recognizer  # noqa: E402


def build_page(words):
    """hOCR document with one page holding (text, confidence, font_size) words."""
    spans = "".join(
        f"<span class='ocrx_word' title='bbox 10 {100 + i * 40} 200 {130 + i * 40}; "
        f"x_wconf {conf}; x_fsize {fsize}'>{text}</span>"
        for i, (text, conf, fsize) in enumerate(words)
    )
    return (
        "<html><body><div class='ocr_page' id='page_1' title='bbox 0 0 2480 3508'>"
        f"{spans}</div></body></html>"
    )


def mixed_page(text, filler_conf, text_conf=90):
    """
    Page whose title is `text` and whose confidence is pulled down by a
    same-length filler word read at `filler_conf`.
    """
    return build_page([(text, text_conf, 30), ("z" * len(text), filler_conf, 10)])


class FakeRasterizer(Rasterizer):
    def __init__(self, fail_with=None):
        self.calls = []
        self.fail_with = fail_with

    def rasterize(self, pdf_path, out_path):
        self.calls.append((Path(pdf_path), Path(out_path)))
        if self.fail_with is not None:
            raise self.fail_with
        Path(out_path).write_bytes(b"raster")
        return Path(out_path)


class FakeRotator(Rotator):
    def __init__(self):
        self.calls = []

    def rotate(self, image_path, angle, out_path):
        self.calls.append(angle)
        Path(out_path).write_bytes(Path(image_path).read_bytes() + f"-r{angle}".encode())
        return Path(out_path)


class FakeRecognizer(Recognizer):
    """
    Returns the queued pages in call order. A queued exception is raised
    instead; `write_text=False` leaves out the transcript.
    """

    def __init__(self, pages, write_text=True, write_pdf=True):
        self.pages = list(pages)
        self.calls = []
        self.write_text = write_text
        self.write_pdf = write_pdf

    def recognize(self, image_path, output_prefix):
        self.calls.append((Path(image_path), Path(output_prefix)))
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        prefix = str(output_prefix)
        Path(prefix + ".hocr").write_text(page, encoding="utf-8")
        if self.write_text:
            Path(prefix + ".txt").write_text(f"transcript of {Path(image_path).name}\n", encoding="utf-8")
        if self.write_pdf:
            Path(prefix + ".pdf").write_bytes(b"%PDF-1.4 fake")


@pytest.fixture
def page_builder():
    return build_page


@pytest.fixture
def mixed_page_builder():
    return mixed_page


@pytest.fixture
def fake_rasterizer():
    return FakeRasterizer()


@pytest.fixture
def rasterizer_factory():
    return FakeRasterizer


@pytest.fixture
def fake_rotator():
    return FakeRotator()


@pytest.fixture
def recognizer_factory():
    return FakeRecognizer


@pytest.fixture
def raster_file(tmp_path):
    path = tmp_path / "doc.tiff"
    path.write_bytes(b"raster")
    return path
