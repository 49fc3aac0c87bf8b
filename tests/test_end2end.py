"""
End-to-end tests for the document pipeline with stand-in tools.
"""

import pytest
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))


@pytest.fixture
def scan(tmp_path):
    path = tmp_path / "inbox" / "scan_0042.pdf"
    path.parent.mkdir()
    path.write_bytes(b"%PDF-1.4 scanned")
    return path


def make_pipeline(tmp_path, rasterizer, rotator, recognizer, keep=False, filer=True):
    from scantitle.config import PipelineConfig
    from scantitle.utils.pipeline import TitlePipeline
    from scantitle.utils.publish import LocalFiler

    config = PipelineConfig()
    config.work_dir = tmp_path / "work"
    config.retry.keep_artifacts = keep
    return TitlePipeline(
        config=config,
        rasterizer=rasterizer,
        rotator=rotator,
        recognizer=recognizer,
        filer=LocalFiler(tmp_path / "filed") if filer else None,
    )


class TestDocId:
    """Test artifact identifiers."""

    def test_readable_and_stable(self, tmp_path):
        from scantitle.utils.pipeline import make_doc_id

        doc_id = make_doc_id(tmp_path / "Scan 0042 (copy).pdf")

        assert doc_id.startswith("Scan_0042_copy-")
        assert doc_id == make_doc_id(tmp_path / "Scan 0042 (copy).pdf")
        assert doc_id != make_doc_id(tmp_path / "other" / "Scan 0042 (copy).pdf")


class TestProcessDocument:
    """Test single-document processing."""

    def test_upside_down_scan(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([
            page_builder([("mmnnuu", 30, 20)]),
            page_builder([("RECHNUNG", 95, 40), ("Herr", 96, 45), ("Seite", 90, 8)]),
        ])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        result = pipeline.process_document(scan)

        assert result.source == "scan_0042.pdf"
        assert result.title == "RECHNUNG Herr Seite"
        assert result.outcome.angle == 180
        assert result.filed.pdf_path.name == "RECHNUNG Herr Seite.pdf"
        assert fake_rasterizer.calls[0][0] == scan

    def test_denylisted_word_ranks_last(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([
            page_builder([("Herr", 96, 12), ("Vertrag", 95, 11), ("Seite", 90, 5)]),
        ])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        result = pipeline.process_document(scan)

        # Herr: 120 - 100 = 20, below Seite at 50
        assert result.outcome.title == "Vertrag Seite Herr "

    def test_work_dir_removed_after_filing(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([page_builder([("Invoice", 95, 30)])])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        result = pipeline.process_document(scan)

        assert result.work_dir is None
        assert list((tmp_path / "work").iterdir()) == []
        assert result.filed.pdf_path.exists()

    def test_keep_artifacts(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([page_builder([("Invoice", 95, 30)])])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer, keep=True)

        result = pipeline.process_document(scan)

        assert result.work_dir.exists()
        assert (result.work_dir / f"ocr-{result.doc_id}.hocr").exists()
        assert (result.work_dir / f"ocr-{result.doc_id}-title.txt").exists()

    def test_without_filer(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([page_builder([("Invoice", 95, 30)])])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer, filer=False)

        result = pipeline.process_document(scan)

        assert result.filed is None
        assert result.work_dir.exists()

    def test_display_name_directive(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([page_builder([("Lieferschein", 60, 30)])])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        result = pipeline.process_document(scan, display_name="delivery_rotate270.pdf")

        assert fake_rotator.calls == [270]
        assert result.outcome.angle == 270
        assert result.source == "delivery_rotate270.pdf"

    def test_rasterize_failure_files_nothing(self, tmp_path, scan, rasterizer_factory, fake_rotator, recognizer_factory):
        from scantitle.utils.errors import ExternalToolError

        rasterizer = rasterizer_factory(fail_with=ExternalToolError("poppler missing", stage="rasterize"))
        pipeline = make_pipeline(tmp_path, rasterizer, fake_rotator, recognizer_factory([]))

        with pytest.raises(ExternalToolError):
            pipeline.process_document(scan)

        assert pipeline.filer.records() == []

    def test_result_dict(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([page_builder([("Invoice", 95, 30)])])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        data = pipeline.process_document(scan).to_dict()

        assert data["source"] == "scan_0042.pdf"
        assert data["result"]["title"] == "Invoice"
        assert data["result"]["attempts"][0]["state"] == "done"
        assert data["filed"]["filed_as"] == "Invoice.pdf"


class TestFailedDocumentCleanup:
    """Test that a failed document leaves no work directory behind."""

    NO_PAGE = "<html><body>no page</body></html>"

    @pytest.fixture
    def temp_root(self, tmp_path, monkeypatch):
        import tempfile

        root = tmp_path / "tmp"
        root.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(root))
        return root

    def make_pipeline(self, rasterizer, rotator, recognizer, work_dir=None, keep=False, debug=False):
        from scantitle.config import PipelineConfig
        from scantitle.utils.pipeline import TitlePipeline

        config = PipelineConfig()
        config.work_dir = work_dir
        config.retry.keep_artifacts = keep
        config.debug_mode = debug
        return TitlePipeline(config=config, rasterizer=rasterizer, rotator=rotator, recognizer=recognizer)

    def test_temp_dir_removed_on_parse_error(self, temp_root, scan, fake_rasterizer, fake_rotator, recognizer_factory):
        from scantitle.utils.errors import ParseError

        pipeline = self.make_pipeline(fake_rasterizer, fake_rotator, recognizer_factory([self.NO_PAGE] * 4))

        with pytest.raises(ParseError):
            pipeline.process_document(scan)

        assert list(temp_root.glob("scantitle_*")) == []

    def test_temp_dir_removed_on_rasterize_error(self, temp_root, scan, rasterizer_factory, fake_rotator, recognizer_factory):
        from scantitle.utils.errors import ExternalToolError

        rasterizer = rasterizer_factory(fail_with=ExternalToolError("poppler missing", stage="rasterize"))
        pipeline = self.make_pipeline(rasterizer, fake_rotator, recognizer_factory([]))

        with pytest.raises(ExternalToolError):
            pipeline.process_document(scan)

        assert list(temp_root.glob("scantitle_*")) == []

    def test_configured_work_dir_removed(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory):
        from scantitle.utils.errors import ParseError

        work = tmp_path / "work"
        pipeline = self.make_pipeline(fake_rasterizer, fake_rotator, recognizer_factory([self.NO_PAGE] * 4), work_dir=work)

        with pytest.raises(ParseError):
            pipeline.process_document(scan)

        assert list(work.iterdir()) == []

    @pytest.mark.parametrize("keep,debug", [(True, False), (False, True)])
    def test_kept_for_debugging(self, temp_root, scan, fake_rasterizer, fake_rotator, recognizer_factory, keep, debug):
        from scantitle.utils.errors import ParseError

        pipeline = self.make_pipeline(
            fake_rasterizer, fake_rotator, recognizer_factory([self.NO_PAGE] * 4), keep=keep, debug=debug
        )

        with pytest.raises(ParseError):
            pipeline.process_document(scan)

        leftover = list(temp_root.glob("scantitle_*"))
        assert len(leftover) == 1
        assert list(leftover[0].glob("*.tiff"))


class TestProcessFolder:
    """Test batch processing."""

    def test_skips_processed(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        other = scan.parent / "scan_0043.pdf"
        other.write_bytes(b"%PDF-1.4 scanned")
        recognizer = recognizer_factory([
            page_builder([("Invoice", 95, 30)]),
            page_builder([("Contract", 95, 30)]),
        ])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        first = pipeline.process_folder([scan])
        second = pipeline.process_folder([scan, other])

        assert [r.title for r in first] == ["Invoice"]
        assert [r.title for r in second] == ["Contract"]
        assert len(recognizer.calls) == 2

    def test_force_reprocesses(self, tmp_path, scan, fake_rasterizer, fake_rotator, recognizer_factory, page_builder):
        recognizer = recognizer_factory([
            page_builder([("Invoice", 95, 30)]),
            page_builder([("Invoice", 95, 30)]),
        ])
        pipeline = make_pipeline(tmp_path, fake_rasterizer, fake_rotator, recognizer)

        pipeline.process_folder([scan])
        again = pipeline.process_folder([scan], force=True)

        assert again[0].filed.pdf_path.name == "Invoice (2).pdf"
