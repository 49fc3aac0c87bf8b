"""
Tests for the Tesseract recognizer.

Tesseract itself is replaced by a monkeypatched pytesseract runner, so these
run without the binary installed.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def image_file(tmp_path):
    path = tmp_path / "page.tiff"
    path.write_bytes(b"not really a tiff")
    return path


@pytest.fixture
def fake_tesseract(monkeypatch):
    """Record runner calls and write the outputs the config switches ask for."""
    import pytesseract

    calls = []

    def run_tesseract(input_filename, output_filename_base, extension, lang, config="", nice=0, timeout=0):
        calls.append({
            "input": input_filename,
            "base": output_filename_base,
            "extension": extension,
            "lang": lang,
            "config": config,
            "timeout": timeout,
        })
        if "tessedit_create_hocr=1" in config:
            Path(output_filename_base + ".hocr").write_bytes(b"<html><body><div id='page_1'></div></body></html>")
        if "tessedit_create_txt=1" in config:
            Path(output_filename_base + ".txt").write_text("Rechnung\n", encoding="utf-8")
        if "tessedit_create_pdf=1" in config:
            Path(output_filename_base + ".pdf").write_bytes(b"%PDF-1.4")

    monkeypatch.setattr(pytesseract.pytesseract, "run_tesseract", run_tesseract)
    return calls


class TestTesseractRecognizer:
    """Test recognizer configuration and outputs."""

    def test_config_string(self):
        from scantitle.utils.ocr_text import TesseractRecognizer

        assert TesseractRecognizer().config_string == "-c hocr_font_info=1"
        assert TesseractRecognizer(hocr_font_info=False).config_string == ""
        assert TesseractRecognizer(extra_config="--psm 3").config_string == "-c hocr_font_info=1 --psm 3"

    def test_output_config(self):
        from scantitle.utils.ocr_text import TesseractRecognizer

        assert "tessedit_create_pdf=1" in TesseractRecognizer().output_config
        assert "tessedit_create_pdf=1" not in TesseractRecognizer(create_pdf=False).output_config

    def test_from_config(self):
        from scantitle.utils.ocr_text import TesseractRecognizer
        from scantitle.config import OCRConfig

        recognizer = TesseractRecognizer.from_config(OCRConfig(language="eng", create_pdf=False, timeout_s=5))

        assert recognizer.language == "eng"
        assert recognizer.create_pdf is False
        assert recognizer.timeout_s == 5

    def test_single_run_writes_all_outputs(self, tmp_path, image_file, fake_tesseract):
        from scantitle.utils.ocr_text import TesseractRecognizer

        prefix = tmp_path / "out" / "ocr-doc"
        TesseractRecognizer(timeout_s=30).recognize(image_file, prefix)

        assert (tmp_path / "out" / "ocr-doc.hocr").read_bytes().startswith(b"<html>")
        assert (tmp_path / "out" / "ocr-doc.txt").read_text(encoding="utf-8") == "Rechnung\n"
        assert (tmp_path / "out" / "ocr-doc.pdf").read_bytes() == b"%PDF-1.4"

        assert len(fake_tesseract) == 1
        call = fake_tesseract[0]
        assert call["input"] == str(image_file)
        assert call["base"] == str(prefix)
        assert call["extension"] is None
        assert call["lang"] == "deu+eng"
        assert "hocr_font_info=1" in call["config"]
        assert call["timeout"] == 30

    def test_without_pdf(self, tmp_path, image_file, fake_tesseract):
        from scantitle.utils.ocr_text import TesseractRecognizer

        TesseractRecognizer(create_pdf=False).recognize(image_file, tmp_path / "ocr")

        assert (tmp_path / "ocr.hocr").exists()
        assert (tmp_path / "ocr.txt").exists()
        assert not (tmp_path / "ocr.pdf").exists()
        assert len(fake_tesseract) == 1

    def test_missing_output(self, tmp_path, image_file, monkeypatch):
        import pytesseract
        from scantitle.utils.ocr_text import TesseractRecognizer
        from scantitle.utils.errors import ExternalToolError

        def writes_nothing(*args, **kwargs):
            return None

        monkeypatch.setattr(pytesseract.pytesseract, "run_tesseract", writes_nothing)

        with pytest.raises(ExternalToolError, match="ocr.hocr"):
            TesseractRecognizer().recognize(image_file, tmp_path / "ocr")

    def test_missing_input(self, tmp_path):
        from scantitle.utils.ocr_text import TesseractRecognizer
        from scantitle.utils.errors import ExternalToolError

        with pytest.raises(ExternalToolError) as exc_info:
            TesseractRecognizer().recognize(tmp_path / "missing.tiff", tmp_path / "ocr")

        assert exc_info.value.stage == "ocr"

    def test_binary_missing(self, tmp_path, image_file, monkeypatch):
        import pytesseract
        from scantitle.utils.ocr_text import TesseractRecognizer
        from scantitle.utils.errors import ExternalToolError

        def not_found(*args, **kwargs):
            raise pytesseract.TesseractNotFoundError()

        monkeypatch.setattr(pytesseract.pytesseract, "run_tesseract", not_found)

        with pytest.raises(ExternalToolError, match="not found"):
            TesseractRecognizer().recognize(image_file, tmp_path / "ocr")

        assert not (tmp_path / "ocr.hocr").exists()

    def test_tesseract_failure(self, tmp_path, image_file, monkeypatch):
        import pytesseract
        from scantitle.utils.ocr_text import TesseractRecognizer
        from scantitle.utils.errors import ExternalToolError

        def failed(*args, **kwargs):
            raise pytesseract.TesseractError(1, "Error opening data file deu.traineddata")

        monkeypatch.setattr(pytesseract.pytesseract, "run_tesseract", failed)

        with pytest.raises(ExternalToolError, match="traineddata"):
            TesseractRecognizer().recognize(image_file, tmp_path / "ocr")
