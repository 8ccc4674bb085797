"""
pdf_generator.py – Guide PDF rendering and storage
===================================================
Turns the markdown-flavoured text returned by the LLM into a paginated A4
PDF and files it under the document output directory.

  classify_lines(content) → list[StyledBlock]
    Forward-only pass over the text, one block per line:
    ``# `` / ``## `` / ``### `` headings, ``- `` / ``* `` bullets, whole-line
    ``**bold**``, plain text (inline ``**`` stripped) and blank spacers.
    Has no dependency on the rendering backend.

  render_guide_pdf(content, document_type, business_name) → bytes
    Title block in the document type's colour, "Generated for" and date
    lines, a rule, then the styled blocks.  A new page starts once the
    cursor passes PAGE_BREAK_Y; a fixed footer closes the last page.

  store_guide_pdf(user_id, document_type, content, business_name) → PdfArtifact | None
    Renders and writes ``{user}/{type}/{type}-guide-{date}.pdf``.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Optional

from startup_companion.config import get_settings
from startup_companion.models import DOCUMENT_META, DocumentType, document_title

logger = logging.getLogger(__name__)


# ─── Layout constants (points, measured from the top of the page) ───────────

MARGIN       = 50
CONTENT_W    = 495
PAGE_BREAK_Y = 720
FOOTER_Y     = 750
FOOTER_TEXT  = "Generated by StartUP Companion - Your Business Launch Partner"

BODY_COLOUR    = "#1F2937"
SUBTLE_COLOUR  = "#374151"
MUTED_COLOUR   = "#6B7280"
FAINT_COLOUR   = "#9CA3AF"
RULE_COLOUR    = "#E5E7EB"
DEFAULT_COLOUR = "#3B82F6"


# ─── Line classification ─────────────────────────────────────────────────────

class BlockKind(str, Enum):
    H1     = "h1"
    H2     = "h2"
    H3     = "h3"
    BULLET = "bullet"
    BOLD   = "bold"
    TEXT   = "text"
    SPACER = "spacer"


@dataclass(frozen=True)
class StyledBlock:
    kind: BlockKind
    text: str = ""


def classify_line(line: str) -> StyledBlock:
    stripped = line.strip()
    if stripped.startswith("# "):
        return StyledBlock(BlockKind.H1, stripped[2:])
    if stripped.startswith("## "):
        return StyledBlock(BlockKind.H2, stripped[3:])
    if stripped.startswith("### "):
        return StyledBlock(BlockKind.H3, stripped[4:])
    if stripped.startswith("- ") or stripped.startswith("* "):
        return StyledBlock(BlockKind.BULLET, stripped[2:])
    if stripped.startswith("**") and stripped.endswith("**") and len(stripped) >= 4:
        return StyledBlock(BlockKind.BOLD, stripped.replace("**", ""))
    if stripped:
        return StyledBlock(BlockKind.TEXT, stripped.replace("**", ""))
    return StyledBlock(BlockKind.SPACER)


def classify_lines(content: str) -> list[StyledBlock]:
    return [classify_line(line) for line in content.split("\n")]


# (font, size, colour, space before, space after) in line-height units
_BLOCK_STYLE: dict[BlockKind, tuple[str, int, Optional[str], float, float]] = {
    BlockKind.H1:     ("Helvetica",      18, None,          0.8, 0.5),
    BlockKind.H2:     ("Helvetica",      14, None,          0.6, 0.3),
    BlockKind.H3:     ("Helvetica",      12, SUBTLE_COLOUR, 0.4, 0.2),
    BlockKind.BULLET: ("Helvetica",      11, BODY_COLOUR,   0.0, 0.0),
    BlockKind.BOLD:   ("Helvetica-Bold", 11, SUBTLE_COLOUR, 0.2, 0.0),
    BlockKind.TEXT:   ("Helvetica",      11, BODY_COLOUR,   0.0, 0.0),
}


# ─── Rendering ───────────────────────────────────────────────────────────────

def _rl_colour(hex_str: str):
    """Convert a CSS hex colour string to a reportlab Color."""
    from reportlab.lib import colors as rl_colors
    h = hex_str.lstrip("#")
    if len(h) == 3:
        h = "".join(c * 2 for c in h)
    r, g, b = int(h[0:2], 16) / 255, int(h[2:4], 16) / 255, int(h[4:6], 16) / 255
    return rl_colors.Color(r, g, b)


def format_generated_on(day: date) -> str:
    """``October 18, 2026`` style date used on the title block."""
    return f"{day:%B} {day.day}, {day.year}"


class _PageWriter:
    """Top-down cursor over a reportlab canvas."""

    def __init__(self, canvas, page_height: float) -> None:
        self.c      = canvas
        self.page_h = page_height
        self.y      = MARGIN
        self.pages  = 1

    def move_down(self, lines: float, size: float) -> None:
        self.y += lines * size * 1.2

    def ensure_room(self) -> None:
        if self.y > PAGE_BREAK_Y:
            self.c.showPage()
            self.pages += 1
            self.y = MARGIN

    def write(self, text: str, font: str, size: float, colour: str,
              indent: float = 0, centred: bool = False) -> None:
        from reportlab.lib.utils import simpleSplit

        width = CONTENT_W - indent
        for chunk in simpleSplit(text, font, size, width) or [""]:
            self.ensure_room()
            self.y += size
            self.c.setFont(font, size)
            self.c.setFillColor(_rl_colour(colour))
            baseline = self.page_h - self.y
            if centred:
                self.c.drawCentredString(MARGIN + CONTENT_W / 2, baseline, chunk)
            else:
                self.c.drawString(MARGIN + indent, baseline, chunk)
            self.y += size * 0.2

    def bullet(self, text: str, size: float, colour: str) -> None:
        self.ensure_room()
        self.c.setFillColor(_rl_colour(colour))
        self.c.circle(MARGIN + 10, self.page_h - (self.y + size * 0.65), 2, stroke=0, fill=1)
        self.write(text, "Helvetica", size, colour, indent=20)

    def rule(self, colour: str) -> None:
        self.c.setStrokeColor(_rl_colour(colour))
        self.c.setLineWidth(1)
        y = self.page_h - self.y
        self.c.line(MARGIN, y, MARGIN + CONTENT_W, y)


def render_guide_pdf(
    content: str,
    document_type: DocumentType | str,
    business_name: str = "Business",
    generated_on: Optional[date] = None,
) -> bytes:
    """Render *content* as a guide PDF and return the raw bytes."""
    from reportlab.lib.pagesizes import A4
    from reportlab.pdfgen import canvas as rl_canvas

    try:
        doc_type = DocumentType(document_type)
        title    = document_title(doc_type)
        primary  = DOCUMENT_META[doc_type]["colour"]
    except ValueError:
        title, primary = "Business Guide", DEFAULT_COLOUR

    buf = io.BytesIO()
    _, page_h = A4
    c = rl_canvas.Canvas(buf, pagesize=A4)
    c.setTitle(title)
    w = _PageWriter(c, page_h)

    # ── Title block ───────────────────────────────────────────────────────────
    w.write(title, "Helvetica", 24, primary, centred=True)
    w.move_down(0.5, 24)
    w.write(f"Generated for: {business_name}", "Helvetica", 14, MUTED_COLOUR, centred=True)
    w.move_down(0.3, 14)
    day = generated_on or date.today()
    w.write(f"Date: {format_generated_on(day)}", "Helvetica", 10, FAINT_COLOUR, centred=True)
    w.move_down(2, 10)
    w.rule(RULE_COLOUR)
    w.move_down(1, 10)

    # ── Body ─────────────────────────────────────────────────────────────────
    for block in classify_lines(content):
        w.ensure_room()
        if block.kind is BlockKind.SPACER:
            w.move_down(0.3, 11)
            continue
        font, size, colour, before, after = _BLOCK_STYLE[block.kind]
        colour = colour or primary
        w.move_down(before, size)
        if block.kind is BlockKind.BULLET:
            w.bullet(block.text, size, colour)
        else:
            w.write(block.text, font, size, colour)
        w.move_down(after, size)

    # ── Footer ───────────────────────────────────────────────────────────────
    c.setFont("Helvetica", 8)
    c.setFillColor(_rl_colour(FAINT_COLOUR))
    c.drawCentredString(MARGIN + CONTENT_W / 2, page_h - FOOTER_Y, FOOTER_TEXT)

    c.save()
    return buf.getvalue()


# ─── Storage ─────────────────────────────────────────────────────────────────

@dataclass
class PdfArtifact:
    pdf_url:   str
    file_name: str


def guide_file_name(user_id: str, document_type: DocumentType, day: Optional[date] = None) -> str:
    stamp = (day or date.today()).isoformat()
    kind  = DocumentType(document_type).value
    owner = user_id.strip("/") or "anonymous"
    return f"{owner}/{kind}/{kind}-guide-{stamp}.pdf"


def store_guide_pdf(
    user_id: str,
    document_type: DocumentType,
    content: str,
    business_name: str = "Business",
) -> Optional[PdfArtifact]:
    """
    Render the guide and write it under PDF_OUTPUT_DIR, overwriting any
    file generated for the same user, type and day.  Returns None when
    rendering or writing fails.
    """
    storage   = get_settings().storage
    file_name = guide_file_name(user_id, document_type)
    target    = storage.pdf_dir / file_name
    try:
        pdf_bytes = render_guide_pdf(content, document_type, business_name)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(pdf_bytes)
    except Exception:
        logger.exception("Error generating PDF %s", file_name)
        return None

    if storage.public_base_url:
        pdf_url = f"{storage.public_base_url}/{file_name}"
    else:
        pdf_url = str(target)
    return PdfArtifact(pdf_url=pdf_url, file_name=file_name)
