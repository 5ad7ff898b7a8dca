"""
Render generated stories into printable, paginated PDFs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from io import BytesIO
from pathlib import Path
from typing import Optional, Sequence
from xml.sax.saxutils import escape

import requests
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY
from reportlab.lib.pagesizes import A4, LETTER
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import inch, mm
from reportlab.lib.utils import ImageReader
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas
from reportlab.platypus import Frame, Paragraph

from storybook_ai.story_generation.schema import Page, Story

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageLayoutConfig:
    text_background: colors.Color
    image_background: colors.Color
    cover_background: colors.Color
    accent_color: colors.Color
    text_color: colors.Color
    caption_color: colors.Color


DEFAULT_LAYOUT = PageLayoutConfig(
    text_background=colors.HexColor("#EEF2FF"),
    image_background=colors.HexColor("#F9FAFB"),
    cover_background=colors.HexColor("#4F46E5"),
    accent_color=colors.HexColor("#818CF8"),
    text_color=colors.HexColor("#1F2937"),
    caption_color=colors.HexColor("#4B5563"),
)


PAGE_SIZES = {
    "a4": A4,
    "letter": LETTER,
    "square": (8 * inch, 8 * inch),
}


def format_created_at(created_at: str) -> str:
    """Human-friendly creation date, falling back to the raw value."""
    try:
        return datetime.fromisoformat(created_at).strftime("%B %d, %Y")
    except ValueError:
        return created_at


class StorybookPDFBuilder:
    """
    Render a :class:`Story` as a printable book.

    The builder creates:
      * A cover page with the title, reader age range, theme, and creation date.
      * One text page per story page, each followed by its illustration when the
        page has an ``image_url``.
    """

    def __init__(
        self,
        *,
        page_size: tuple[float, float] = PAGE_SIZES["square"],
        margin_mm: float = 18.0,
        layout: PageLayoutConfig = DEFAULT_LAYOUT,
        request_timeout: float = 30.0,
    ) -> None:
        self.page_size = page_size
        self.margin = margin_mm * mm
        self.layout = layout
        self.request_timeout = request_timeout

        self.body_font, self.body_bold_font = self._configure_story_fonts()

        self.title_style = ParagraphStyle(
            name="StoryTitle",
            fontName="Helvetica-Bold",
            fontSize=30,
            leading=34,
            alignment=TA_CENTER,
            textColor=colors.white,
            spaceAfter=16,
        )
        self.subtitle_style = ParagraphStyle(
            name="StorySubtitle",
            fontName="Helvetica",
            fontSize=15,
            leading=20,
            alignment=TA_CENTER,
            textColor=colors.white,
            spaceAfter=10,
        )
        self.body_style = ParagraphStyle(
            name="Body",
            fontName=self.body_font,
            fontSize=18,
            leading=27,
            alignment=TA_JUSTIFY,
            textColor=self.layout.text_color,
            spaceAfter=16,
        )
        self.footer_style = ParagraphStyle(
            name="Footer",
            fontName="Helvetica-Oblique",
            fontSize=10,
            leading=12,
            alignment=TA_CENTER,
            textColor=self.layout.caption_color,
        )

    def build(self, story: Story, output_path: Path | str) -> Path:
        output_file = Path(output_path)
        output_file.parent.mkdir(parents=True, exist_ok=True)

        pdf = canvas.Canvas(str(output_file), pagesize=self.page_size)
        pdf.setTitle(story.title)
        width, height = self.page_size

        self._draw_cover_page(pdf, story, width, height)

        total_pages = len(story.pages)
        for page_number, page in enumerate(story.pages, start=1):
            self._draw_text_page(pdf, story, page, page_number, total_pages, width, height)
            if page.image_url:
                self._draw_image_page(pdf, page, page_number, width, height)

        pdf.save()
        logger.info("Rendered %d pages of '%s' to %s.", total_pages, story.title, output_file)
        return output_file

    # ------------------------------------------------------------------ cover rendering

    def _draw_cover_page(
        self,
        pdf: canvas.Canvas,
        story: Story,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.cover_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        options = story.metadata.options
        frame = Frame(
            self.margin,
            self.margin,
            width - 2 * self.margin,
            height - 2 * self.margin,
            showBoundary=0,
        )

        intro = [
            Paragraph(escape(story.title), self.title_style),
            Paragraph(f"A story for ages {escape(options.age_range)}", self.subtitle_style),
        ]
        if options.theme:
            intro.append(Paragraph(f"Theme: {escape(options.theme)}", self.subtitle_style))
        intro.append(
            Paragraph(
                f"{len(story.pages)} pages &bull; Created {escape(format_created_at(story.metadata.created_at))}",
                self.subtitle_style,
            )
        )

        frame.addFromList(intro, pdf)
        pdf.showPage()

    # ------------------------------------------------------------------ text pages

    def _draw_text_page(
        self,
        pdf: canvas.Canvas,
        story: Story,
        page: Page,
        page_number: int,
        total_pages: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.text_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        bubble_width = width - (self.margin * 2 * 0.6)
        bubble_height = height - (self.margin * 2 * 0.6)
        bubble_x = (width - bubble_width) / 2
        bubble_y = (height - bubble_height) / 2

        pdf.saveState()
        pdf.setFillColor(self._lighten(self.layout.accent_color, 0.8))
        pdf.roundRect(bubble_x, bubble_y, bubble_width, bubble_height, 26, stroke=0, fill=1)
        pdf.restoreState()

        content_width = bubble_width - (self.margin * 2 * 0.3)
        content_height = bubble_height - (self.margin * 2 * 0.3)
        frame = Frame(
            bubble_x + (bubble_width - content_width) / 2,
            bubble_y + (bubble_height - content_height) / 2,
            content_width,
            content_height,
            showBoundary=0,
        )

        paragraphs = [
            Paragraph(escape(block).replace("\n", "<br/>"), self.body_style)
            for block in filter(None, (part.strip() for part in page.content.split("\n\n")))
        ]
        frame.addFromList(paragraphs, pdf)

        self._draw_footer(pdf, f"Page {page_number} of {total_pages} &bull; {escape(story.title)}", width)
        pdf.showPage()

    # ------------------------------------------------------------------ image pages

    def _draw_image_page(
        self,
        pdf: canvas.Canvas,
        page: Page,
        page_number: int,
        width: float,
        height: float,
    ) -> None:
        pdf.setFillColor(self.layout.image_background)
        pdf.rect(0, 0, width, height, stroke=0, fill=1)

        image_reader = self._fetch_image(page.image_url) if page.image_url else None

        if image_reader is not None:
            img_width, img_height = image_reader.getSize()
            scale = min(width / img_width, height / img_height)
            draw_width = img_width * scale
            draw_height = img_height * scale
            pdf.drawImage(
                image_reader,
                (width - draw_width) / 2,
                (height - draw_height) / 2,
                draw_width,
                draw_height,
                preserveAspectRatio=True,
                mask="auto",
            )

        self._draw_footer(pdf, f"Illustration for Page {page_number}", width)
        pdf.showPage()

    # ------------------------------------------------------------------ helpers

    def _draw_footer(self, pdf: canvas.Canvas, text: str, width: float) -> None:
        footer_frame = Frame(
            self.margin,
            10,
            width - 2 * self.margin,
            20,
            showBoundary=0,
        )
        footer_frame.addFromList([Paragraph(text, self.footer_style)], pdf)

    def _fetch_image(self, url: str) -> Optional[ImageReader]:
        try:
            response = requests.get(url, timeout=self.request_timeout)
            response.raise_for_status()
        except requests.RequestException:
            logger.warning("Could not download illustration from %s.", url)
            return None
        return ImageReader(BytesIO(response.content))

    @staticmethod
    def _lighten(color: colors.Color, amount: float = 0.5) -> colors.Color:
        amount = max(0.0, min(amount, 1.0))
        r = color.red + (1 - color.red) * amount
        g = color.green + (1 - color.green) * amount
        b = color.blue + (1 - color.blue) * amount
        return colors.Color(r, g, b)

    def _configure_story_fonts(self) -> tuple[str, str]:
        search_roots = [
            Path("/Library/Fonts"),
            Path("/System/Library/Fonts"),
            Path.home() / "Library" / "Fonts",
            Path("C:/Windows/Fonts"),
            Path("/usr/share/fonts/truetype/dejavu"),
            Path("/usr/share/fonts"),
        ]

        regular_ready = self._register_font_if_available(
            "StoryRounded", ["Comic Sans MS.ttf", "ComicSansMS.ttf", "DejaVuSans.ttf"], search_roots
        )
        bold_ready = self._register_font_if_available(
            "StoryRounded-Bold",
            ["Comic Sans MS Bold.ttf", "ComicSansMS-Bold.ttf", "DejaVuSans-Bold.ttf"],
            search_roots,
        )
        if regular_ready and bold_ready:
            return "StoryRounded", "StoryRounded-Bold"

        return "Helvetica", "Helvetica-Bold"

    @staticmethod
    def _register_font_if_available(
        font_name: str,
        candidate_filenames: Sequence[str],
        search_roots: Sequence[Path],
    ) -> bool:
        if font_name in pdfmetrics.getRegisteredFontNames():
            return True

        for root in search_roots:
            for candidate in candidate_filenames:
                font_path = root / candidate
                if font_path.exists():
                    try:
                        pdfmetrics.registerFont(TTFont(font_name, str(font_path)))
                        return True
                    except Exception:
                        logger.debug("Skipping unreadable font %s.", font_path)
                        continue
        return False
