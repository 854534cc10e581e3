"""
PDF Renderer

Renders a DocumentModel to PDF bytes with reportlab platypus.
render() returns only once the document is fully materialized in memory;
any reportlab failure surfaces as UpstreamError("render").
"""
import base64
import logging
import re
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import letter
from reportlab.lib.styles import ParagraphStyle as PdfStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Image, PageBreak, Paragraph as PdfParagraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from ...errors import UpstreamError
from ...models.document_model import (
    CheckboxRow, DocumentModel, KeyValueRow, Paragraph, ParagraphStyle, Section, SignatureBlock,
)

logger = logging.getLogger(__name__)

SIGNATURE_MAX_WIDTH = 200
SIGNATURE_MAX_HEIGHT = 100


@dataclass(frozen=True)
class RenderedDocument:
    """A fully materialized binary document."""
    file_name: str
    content: bytes
    content_type: str = "application/pdf"

    @property
    def size_bytes(self) -> int:
        return len(self.content)


def _slug(value: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", value.lower()).strip("-")


def file_name_for(document: DocumentModel) -> str:
    """'complete-package-<case>-<epoch ms>.pdf'"""
    stamp = int(document.generated_at.timestamp() * 1000) if document.generated_at else 0
    case_part = _slug(document.case_id) if document.case_id else "case"
    return f"{_slug(document.kind.value)}-{case_part}-{stamp}.pdf"


class PdfRenderer:
    """Maps document blocks onto platypus flowables."""

    def __init__(self, pagesize=letter, margin: float = 40):
        self.pagesize = pagesize
        self.margin = margin
        self.styles = self._build_styles()

    def _build_styles(self):
        base = getSampleStyleSheet()
        return {
            "title": PdfStyle(
                "DocTitle", parent=base["Heading1"], fontSize=18, alignment=TA_CENTER,
                textColor=colors.HexColor("#1e40af"), spaceAfter=12,
            ),
            "subtitle": PdfStyle("DocSubtitle", parent=base["Normal"], fontSize=11, spaceAfter=12),
            "section": PdfStyle(
                "SectionTitle", parent=base["Heading2"], fontSize=13,
                textColor=colors.HexColor("#1e40af"), spaceBefore=10, spaceAfter=6,
            ),
            ParagraphStyle.BODY: PdfStyle("Body", parent=base["Normal"], fontSize=10, spaceAfter=4),
            ParagraphStyle.HEADING: PdfStyle("Heading", parent=base["Heading2"], alignment=TA_CENTER),
            ParagraphStyle.SUBHEADING: PdfStyle(
                "Subheading", parent=base["Normal"], fontName="Helvetica-Bold", fontSize=10.5,
                spaceBefore=6, spaceAfter=3,
            ),
            ParagraphStyle.NOTE: PdfStyle(
                "Note", parent=base["Normal"], fontSize=9, textColor=colors.HexColor("#6b7280"),
            ),
            ParagraphStyle.BULLET: PdfStyle("Bullet", parent=base["Normal"], fontSize=9.5, bulletIndent=6),
            ParagraphStyle.POSITIVE: PdfStyle(
                "Positive", parent=base["Normal"], fontSize=10, textColor=colors.darkgreen,
            ),
            ParagraphStyle.WARNING: PdfStyle("Warning", parent=base["Normal"], fontSize=10, textColor=colors.red),
        }

    def render(self, document: DocumentModel, file_name: Optional[str] = None) -> RenderedDocument:
        """Render to PDF bytes; raises UpstreamError on any rendering failure."""
        file_name = file_name or file_name_for(document)
        buffer = BytesIO()
        try:
            doc = SimpleDocTemplate(
                buffer,
                pagesize=self.pagesize,
                leftMargin=self.margin,
                rightMargin=self.margin,
                topMargin=self.margin,
                bottomMargin=self.margin,
                title=document.title,
            )
            story = self._story(document)
            on_page = self._watermark(document.watermark) if document.watermark else None
            if on_page:
                doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
            else:
                doc.build(story)
        except Exception as e:
            logger.error(f"Failed to render {document.kind.value} for case {document.case_id}: {e}")
            raise UpstreamError("render", f"PDF rendering failed: {e}", {"file_name": file_name}) from e

        content = buffer.getvalue()
        logger.info(f"Rendered {file_name} ({len(content)} bytes)")
        return RenderedDocument(file_name=file_name, content=content)

    # =========================================================================
    # STORY
    # =========================================================================

    def _story(self, document: DocumentModel) -> List:
        story = [PdfParagraph(escape(document.title), self.styles["title"])]
        if document.subtitle:
            story.append(PdfParagraph(escape(document.subtitle), self.styles["subtitle"]))

        for section in document.sections:
            if section.new_page:
                story.append(PageBreak())
            story.extend(self._section(section))
        return story

    def _section(self, section: Section) -> List:
        # A section without blocks is a page heading
        heading_style = self.styles["section"] if section.blocks else self.styles[ParagraphStyle.HEADING]
        flowables = [PdfParagraph(escape(section.title), heading_style)]

        pending_rows: List[KeyValueRow] = []
        for block in section.blocks:
            if isinstance(block, KeyValueRow):
                pending_rows.append(block)
                continue
            if pending_rows:
                flowables.append(self._table(pending_rows))
                pending_rows = []
            flowables.extend(self._block(block))
        if pending_rows:
            flowables.append(self._table(pending_rows))

        flowables.append(Spacer(1, 0.15 * inch))
        return flowables

    def _table(self, rows: List[KeyValueRow]) -> Table:
        data = [
            [
                PdfParagraph(f"{'&nbsp;' * 4 * row.indent}<b>{escape(row.label)}:</b>", self.styles[ParagraphStyle.BODY]),
                PdfParagraph(escape(row.value), self.styles[ParagraphStyle.BODY]),
            ]
            for row in rows
        ]
        table = Table(data, colWidths=[2.6 * inch, 4.4 * inch])
        table.setStyle(TableStyle([
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 2),
            ('TOPPADDING', (0, 0), (-1, -1), 2),
        ]))
        return table

    def _block(self, block) -> List:
        if isinstance(block, Paragraph):
            style = self.styles[block.style]
            indent = "&nbsp;" * 4 * block.indent
            if block.style == ParagraphStyle.BULLET:
                return [PdfParagraph(f"{indent}&bull; {escape(block.text)}", style)]
            return [PdfParagraph(f"{indent}{escape(block.text)}", style)]

        if isinstance(block, CheckboxRow):
            mark = "[X]" if block.checked else "[&nbsp;&nbsp;]"
            line = f"{mark} <b>{escape(block.label)}:</b>"
            if block.text:
                line += f" {escape(block.text)}"
            if block.detail:
                line += f" {escape(block.detail)}"
            return [PdfParagraph(line, self.styles[ParagraphStyle.BODY])]

        if isinstance(block, SignatureBlock):
            return self._signature(block)

        raise TypeError(f"Unsupported block type: {type(block).__name__}")

    def _signature(self, block: SignatureBlock) -> List:
        body = self.styles[ParagraphStyle.BODY]
        if block.image_base64 is None:
            return [
                Spacer(1, 0.2 * inch),
                PdfParagraph(f"{escape(block.label)}: _______________________________", body),
                PdfParagraph(escape(block.printed_name), body),
                PdfParagraph("Date: ____________________", body),
            ]

        flowables = [PdfParagraph(f"{escape(block.label)}:", body)]
        try:
            raw = base64.b64decode(block.image_base64, validate=True)
            width, height = ImageReader(BytesIO(raw)).getSize()
            scale = min(SIGNATURE_MAX_WIDTH / width, SIGNATURE_MAX_HEIGHT / height, 1)
            image = Image(BytesIO(raw), width=width * scale, height=height * scale)
            image.hAlign = "LEFT"
            flowables.append(image)
        except Exception as e:
            # Undecodable base64 or an image format reportlab/Pillow cannot read
            logger.warning(f"Could not render signature image: {e}")
            flowables.append(PdfParagraph("Error rendering signature", self.styles[ParagraphStyle.WARNING]))
        if block.signed_at_text:
            flowables.append(PdfParagraph(escape(block.signed_at_text), self.styles[ParagraphStyle.NOTE]))
        return flowables

    def _watermark(self, text: str):
        def draw(canvas, doc):
            canvas.saveState()
            canvas.setFont("Helvetica-Bold", 60)
            canvas.setFillColor(colors.Color(220 / 255, 53 / 255, 69 / 255, alpha=0.3))
            canvas.translate(self.pagesize[0] / 2, self.pagesize[1] / 2)
            canvas.rotate(45)
            canvas.drawCentredString(0, 0, text)
            canvas.restoreState()
        return draw
