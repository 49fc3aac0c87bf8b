#!/usr/bin/env python
"""
Streamlit Web UI for the Scan Title Pipeline.

Run with:
    streamlit run src/scantitle/app.py

Features:
- Upload a scanned PDF
- Every rotation attempt with its title and confidence
- Download the searchable PDF under its extracted title
"""

import sys
from pathlib import Path

# Add src directory to path for imports when running as script
_src_dir = Path(__file__).resolve().parents[1]
if str(_src_dir) not in sys.path:
    sys.path.insert(0, str(_src_dir))

import streamlit as st
import tempfile
from typing import Optional


# Page config must be first Streamlit command
st.set_page_config(
    page_title="Scan Titles",
    page_icon="📄",
    layout="wide"
)


def init_session_state():
    """Initialize session state variables."""
    if "result" not in st.session_state:
        st.session_state.result = None
    if "pdf_bytes" not in st.session_state:
        st.session_state.pdf_bytes = None
    if "filed_name" not in st.session_state:
        st.session_state.filed_name = None


@st.cache_data(ttl=300)
def tesseract_version() -> Optional[str]:
    """Installed Tesseract version, None if missing."""
    try:
        import pytesseract
        return str(pytesseract.get_tesseract_version())
    except Exception:
        return None


def render_sidebar() -> dict:
    """Render sidebar settings."""
    from scantitle.config import DEFAULT_ANGLES

    st.sidebar.header("⚙️ Settings")

    language = st.sidebar.text_input("Tesseract languages", value="deu+eng")
    dpi = st.sidebar.select_slider("Rasterization DPI", options=[150, 200, 300, 400], value=300)
    angle = st.sidebar.selectbox(
        "Rotation",
        ["auto"] + [str(a) for a in DEFAULT_ANGLES],
        help="'auto' tries every rotation until one is confident enough"
    )
    prefer_higher = st.sidebar.checkbox(
        "Prefer higher confidence",
        value=False,
        help="Let a later, more confident rotation replace an earlier title"
    )
    extra_denylist = st.sidebar.text_input(
        "Extra denylist",
        value="",
        help="Comma separated tokens that never belong in a title"
    )

    version = tesseract_version()
    if version:
        st.sidebar.caption(f"Tesseract {version}")
    else:
        st.sidebar.error("Tesseract not found on PATH")

    return {
        "language": language,
        "dpi": dpi,
        "angle": angle,
        "prefer_higher": prefer_higher,
        "extra_denylist": extra_denylist,
    }


def process_upload(uploaded_file, settings: dict) -> Optional[dict]:
    """Run the pipeline on the uploaded scan."""
    from scantitle.config import get_config, parse_token_list, extend_denylist
    from scantitle.utils.errors import TitleExtractionError
    from scantitle.utils.pipeline import TitlePipeline
    from scantitle.utils.publish import LocalFiler

    config = get_config()
    config.ocr.language = settings["language"]
    config.raster.dpi = settings["dpi"]
    config.retry.prefer_higher_confidence = settings["prefer_higher"]
    if settings["angle"] != "auto":
        config.retry.angles = (int(settings["angle"]),)
    extend_denylist(config, parse_token_list(settings["extra_denylist"]))

    with tempfile.TemporaryDirectory(prefix="scantitle_app_") as temp_dir:
        temp_dir = Path(temp_dir)
        input_path = temp_dir / uploaded_file.name
        with open(input_path, "wb") as f:
            f.write(uploaded_file.getbuffer())

        config.work_dir = temp_dir / "work"
        pipeline = TitlePipeline(config=config, filer=LocalFiler(temp_dir / "filed"))

        try:
            result = pipeline.process_document(input_path, display_name=uploaded_file.name)
        except TitleExtractionError as e:
            st.error(f"Processing error: {e}")
            return None

        st.session_state.pdf_bytes = result.filed.pdf_path.read_bytes()
        st.session_state.filed_name = result.filed.pdf_path.name
        return result.to_dict()


def render_result(result: dict):
    """Render the chosen title and every attempt."""
    best = result["result"]

    cols = st.columns(3)
    with cols[0]:
        st.metric("Confidence", f"{best['confidence']:.1f}")
    with cols[1]:
        st.metric("Rotation", f"{best['angle']}°")
    with cols[2]:
        st.metric("Time", f"{result['processing_time_seconds']:.1f}s")

    st.subheader("Title")
    st.code(best["title"] or "(no title found)", language=None)

    st.subheader("Rotation attempts")
    st.dataframe(
        [
            {
                "angle": a["angle"],
                "state": a["state"],
                "confidence": a["confidence"],
                "title": a["title"].strip(),
            }
            for a in best["attempts"]
        ],
        use_container_width=True
    )


def main():
    """Main application."""
    init_session_state()

    st.title("📄 Scan Titles")
    st.caption("Name scanned documents after their most prominent text")

    settings = render_sidebar()

    st.markdown("---")

    uploaded_file = st.file_uploader(
        "Upload a scanned PDF",
        type=["pdf"],
        help="Add _rotate90 (or 180/270) to the file name to force a rotation"
    )

    if uploaded_file:
        st.info(f"📁 **{uploaded_file.name}** ({uploaded_file.size / 1024:.1f} KB)")
        if st.button("🚀 Extract Title", type="primary"):
            with st.spinner("Running OCR..."):
                st.session_state.result = process_upload(uploaded_file, settings)

    if st.session_state.result:
        st.markdown("---")
        render_result(st.session_state.result)

        if st.session_state.pdf_bytes:
            st.download_button(
                "📥 Download searchable PDF",
                data=st.session_state.pdf_bytes,
                file_name=st.session_state.filed_name,
                mime="application/pdf"
            )

        with st.expander("Raw JSON"):
            st.json(st.session_state.result)


if __name__ == "__main__":
    main()
