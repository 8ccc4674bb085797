"""
Tests for guide PDF rendering and storage (pdf_generator.py).
All functions should return non-empty, structurally valid output.
"""
from datetime import date
from pathlib import Path

import pytest
from factories import long_guide

from startup_companion.models import DocumentType
from startup_companion.pdf_generator import (
    BlockKind,
    classify_line,
    classify_lines,
    format_generated_on,
    guide_file_name,
    render_guide_pdf,
    store_guide_pdf,
)


def _page_count(data: bytes) -> int:
    return data.count(b"/Type /Page") - data.count(b"/Type /Pages")


# ─── Line classification ──────────────────────────────────────────────────────

class TestClassifyLine:
    @pytest.mark.parametrize("line, kind, text", [
        ("# Title",          BlockKind.H1,     "Title"),
        ("## Section",       BlockKind.H2,     "Section"),
        ("### Sub",          BlockKind.H3,     "Sub"),
        ("- item",           BlockKind.BULLET, "item"),
        ("* item",           BlockKind.BULLET, "item"),
        ("**Bold line**",    BlockKind.BOLD,   "Bold line"),
        ("plain **mixed**",  BlockKind.TEXT,   "plain mixed"),
        ("   ",              BlockKind.SPACER, ""),
    ])
    def test_line_kinds(self, line, kind, text):
        block = classify_line(line)
        assert block.kind is kind
        assert block.text == text

    def test_short_double_asterisk_is_text(self):
        assert classify_line("**").kind is BlockKind.TEXT

    def test_hash_without_space_is_text(self):
        assert classify_line("#hashtag").kind is BlockKind.TEXT

    def test_one_block_per_line(self):
        blocks = classify_lines("# A\n\n- b\ntext")
        assert [b.kind for b in blocks] == [
            BlockKind.H1, BlockKind.SPACER, BlockKind.BULLET, BlockKind.TEXT,
        ]


# ─── render_guide_pdf ─────────────────────────────────────────────────────────

class TestRenderGuidePdf:
    def test_returns_pdf_bytes(self):
        data = render_guide_pdf(long_guide(), DocumentType.HR, "Acme")
        assert isinstance(data, bytes)
        assert data[:4] == b"%PDF", "Output must start with %PDF header"

    def test_short_content_single_page(self):
        data = render_guide_pdf("# Hello\nJust one line.", DocumentType.BRANDING, "Acme")
        assert _page_count(data) == 1

    def test_long_content_paginates(self):
        data = render_guide_pdf(long_guide(sections=40), DocumentType.COMPLIANCE, "Acme")
        assert _page_count(data) > 1

    def test_invalid_type_still_renders(self):
        data = render_guide_pdf("# Hello", "not-a-type", "Acme")
        assert data[:4] == b"%PDF"

    def test_empty_content_renders(self):
        data = render_guide_pdf("", DocumentType.HR)
        assert data[:4] == b"%PDF"

    def test_very_long_line_wraps_without_error(self):
        data = render_guide_pdf("word " * 2000, DocumentType.REGISTRATION, "Acme")
        assert _page_count(data) >= 1

    def test_date_format(self):
        assert format_generated_on(date(2026, 3, 7)) == "March 7, 2026"


# ─── Storage ──────────────────────────────────────────────────────────────────

class TestStoreGuidePdf:
    def test_file_name_layout(self):
        name = guide_file_name("u1", DocumentType.HR, date(2026, 1, 2))
        assert name == "u1/hr/hr-guide-2026-01-02.pdf"

    def test_empty_user_id_stays_relative(self):
        name = guide_file_name("", DocumentType.HR, date(2026, 1, 2))
        assert not name.startswith("/")

    def test_writes_file_under_pdf_dir(self, isolated_storage):
        artifact = store_guide_pdf("u1", DocumentType.BRANDING, long_guide(), "Acme")
        assert artifact is not None
        path = Path(artifact.pdf_url)
        assert path.exists()
        assert path.read_bytes()[:4] == b"%PDF"
        assert str(path).startswith(str(isolated_storage / "pdfs"))

    def test_public_url_used_when_configured(self, monkeypatch):
        monkeypatch.setenv("PDF_PUBLIC_BASE_URL", "https://files.example.com/business-documents/")
        artifact = store_guide_pdf("u1", DocumentType.HR, long_guide(), "Acme")
        assert artifact.pdf_url == f"https://files.example.com/business-documents/{artifact.file_name}"

    def test_same_day_overwrites(self):
        first  = store_guide_pdf("u1", DocumentType.HR, long_guide(), "Acme")
        second = store_guide_pdf("u1", DocumentType.HR, long_guide(sections=5), "Acme")
        assert first.file_name == second.file_name
