"""
Letterhead PDF layout shared by the patient agreement documents.

Layout is expressed in millimetres measured from the top of an A4 page;
``LetterheadDocument`` converts to reportlab's bottom-left origin. Every
page gets the watermark, header and footer; the letterhead banner is
drawn on the first page only. Page numbers ("Page i of n") are stamped
once the whole document has been laid out.
"""
import base64
import binascii
import io
import logging
import os

from flask import current_app, has_app_context
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Table, TableStyle

logger = logging.getLogger(__name__)

BRAND = colors.HexColor('#375BDC')
LIGHT_BRAND = colors.HexColor('#F0F5FF')
ROW_SHADE = colors.HexColor('#FAFAFA')

PAGE_WIDTH_MM = A4[0] / mm
PAGE_HEIGHT_MM = A4[1] / mm
MARGIN = 15
FOOTER_RESERVED = 25
TOP_MARGIN = 5
LOGO_WIDTH = 50
DEFAULT_LOGO_HEIGHT = 15
LETTERHEAD_HEIGHT = 60
WATERMARK_WIDTH = 100

FONT = 'Helvetica'
FONT_BOLD = 'Helvetica-Bold'
FONT_ITALIC = 'Helvetica-Oblique'

DEFAULT_PRACTICE = {
    'website': 'www.nydentalimplants.com',
    'name': 'New York Dental Implants',
    'tagline': ['Restoring Smiles,', 'Returning Health and confidence'],
    'phones': ['(585)-684-1149', '(585)-394-5910'],
    'email': 'contact@nysdentalimplants.com',
    'address': ['344 N. Main St, Canandaigua,', 'New York, 14424'],
}

ASSET_FILES = {
    'logo': 'logo.png',
    'letterhead': 'letterhead.png',
    'watermark': 'watermark.png',
}


def needs_page_break(y, required, page_height=PAGE_HEIGHT_MM, margin=MARGIN, footer_reserved=FOOTER_RESERVED):
    """True when ``required`` mm starting at ``y`` would run into the footer."""
    return y + required > page_height - margin - footer_reserved


def letterhead_settings():
    """Practice details and asset folder, from app config when available."""
    practice = dict(DEFAULT_PRACTICE)
    assets_path = os.getenv('PDF_ASSETS_PATH', 'assets')
    if has_app_context():
        cfg = current_app.config
        assets_path = cfg.get('PDF_ASSETS_PATH', assets_path)
        practice.update({
            'website': cfg.get('PRACTICE_WEBSITE') or practice['website'],
            'name': cfg.get('PRACTICE_NAME') or practice['name'],
            'phones': cfg.get('PRACTICE_PHONES') or practice['phones'],
            'email': cfg.get('PRACTICE_EMAIL') or practice['email'],
            'address': cfg.get('PRACTICE_ADDRESS') or practice['address'],
        })
    return practice, assets_path


def load_asset(assets_path, name):
    """ImageReader for a letterhead asset, or None when it is missing."""
    path = os.path.join(assets_path or '', ASSET_FILES[name])
    if not os.path.isfile(path):
        return None
    try:
        return ImageReader(path)
    except Exception as e:
        logger.warning("Could not load %s image from %s: %s", name, path, e)
        return None


def image_from_data_url(data_url):
    """ImageReader for a ``data:image/...;base64,`` URL, or None."""
    if not data_url or not isinstance(data_url, str) or ',' not in data_url:
        return None
    try:
        raw = base64.b64decode(data_url.split(',', 1)[1], validate=True)
        return ImageReader(io.BytesIO(raw))
    except (binascii.Error, ValueError, OSError) as e:
        logger.warning("Could not decode signature image: %s", e)
        return None


def format_money(value, default='0.00'):
    if value in (None, ''):
        return default
    try:
        return f"{float(value):.2f}"
    except (TypeError, ValueError):
        return str(value)


class NumberedCanvas(canvas.Canvas):
    """Canvas that defers page output so "Page i of n" can be stamped."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._saved_page_states = []
        self.page_count = 0

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        total = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self.draw_page_number(total)
            super().showPage()
        self.page_count = total
        super().save()

    def draw_page_number(self, total):
        footer_y = PAGE_HEIGHT_MM - MARGIN - 5
        self.setFont(FONT, 8)
        self.setFillColor(colors.black)
        self.drawRightString(
            (PAGE_WIDTH_MM - MARGIN - 5) * mm,
            (PAGE_HEIGHT_MM - (footer_y - 3)) * mm,
            f"Page {self._pageNumber} of {total}",
        )


class LetterheadDocument:
    """
    Flowing writer over a NumberedCanvas.

    ``self.y`` is the next free position in mm from the top of the page.
    Callers reserve space with ``ensure_space`` before drawing a block so
    a block is never split by the footer.
    """

    def __init__(self, date_text, title=None, practice=None, assets_path=None):
        default_practice, default_assets = letterhead_settings()
        self.practice = practice or default_practice
        self.date_text = date_text or ''
        self.buffer = io.BytesIO()
        self.canvas = NumberedCanvas(self.buffer, pagesize=A4)
        if title:
            self.canvas.setTitle(title)
        assets_path = assets_path if assets_path is not None else default_assets
        self.logo = load_asset(assets_path, 'logo')
        self.letterhead = load_asset(assets_path, 'letterhead')
        self.watermark = load_asset(assets_path, 'watermark')
        self.logo_height = self._scaled_height(self.logo, LOGO_WIDTH) if self.logo else DEFAULT_LOGO_HEIGHT
        self.width = PAGE_WIDTH_MM - 2 * MARGIN
        self.pages = 1
        self.y = 0
        self._start_page(first=True)

    @staticmethod
    def _scaled_height(image, width):
        w, h = image.getSize()
        return (h / w) * width if w else DEFAULT_LOGO_HEIGHT

    @staticmethod
    def _x(x_mm):
        return (MARGIN + x_mm) * mm

    @staticmethod
    def _y(y_mm):
        return (PAGE_HEIGHT_MM - y_mm) * mm

    # -- page furniture -------------------------------------------------

    def _start_page(self, first=False):
        self._draw_watermark()
        rule_y = self._draw_header()
        self._draw_footer()
        y = rule_y + 8 + 6
        if first and self.letterhead:
            self.canvas.drawImage(self.letterhead, MARGIN * mm, self._y(y + LETTERHEAD_HEIGHT),
                                  width=self.width * mm, height=LETTERHEAD_HEIGHT * mm, mask='auto')
            y += LETTERHEAD_HEIGHT
        elif not first:
            y += 6
        self.y = y + 10

    def _draw_watermark(self):
        if not self.watermark:
            return
        height = self._scaled_height(self.watermark, WATERMARK_WIDTH)
        x = (PAGE_WIDTH_MM - WATERMARK_WIDTH) / 2
        y = (PAGE_HEIGHT_MM - height) / 2
        c = self.canvas
        c.saveState()
        c.setFillAlpha(0.1)
        c.setStrokeAlpha(0.1)
        c.drawImage(self.watermark, x * mm, self._y(y + height),
                    width=WATERMARK_WIDTH * mm, height=height * mm, mask='auto')
        c.restoreState()

    def _draw_header(self):
        c = self.canvas
        y = TOP_MARGIN
        if self.logo:
            c.drawImage(self.logo, MARGIN * mm, self._y(y + self.logo_height),
                        width=LOGO_WIDTH * mm, height=self.logo_height * mm, mask='auto')
        y += self.logo_height + 1

        c.setStrokeColor(BRAND)
        c.setLineWidth(1 * mm)
        c.line(MARGIN * mm, self._y(y), (PAGE_WIDTH_MM - MARGIN) * mm, self._y(y))

        c.setFont(FONT, 12)
        c.setFillColor(BRAND)
        c.drawRightString((PAGE_WIDTH_MM - MARGIN) * mm, self._y(y - 5), self.practice['website'])

        c.setFont(FONT, 10)
        c.setFillColor(colors.black)
        c.drawRightString((PAGE_WIDTH_MM - MARGIN) * mm, self._y(y + 8), f"Date: {self.date_text}")
        return y

    def _draw_footer(self):
        c = self.canvas
        footer_y = PAGE_HEIGHT_MM - MARGIN - 5
        content_y = footer_y + 5

        c.setStrokeColor(BRAND)
        c.setLineWidth(0.5 * mm)
        c.line(MARGIN * mm, self._y(footer_y), (PAGE_WIDTH_MM - MARGIN) * mm, self._y(footer_y))

        c.setFillColor(BRAND)
        c.setFont(FONT_BOLD, 9)
        for i, line in enumerate(self.practice['tagline']):
            c.drawString(MARGIN * mm, self._y(content_y + 5 * i), line)

        columns = (
            (60, 'Phone:', self.practice['phones']),
            (90, 'Email:', [self.practice['email']]),
            (140, 'Address:', self.practice['address']),
        )
        for separator in (55, 85, 135):
            c.line((MARGIN + separator) * mm, self._y(content_y - 2),
                   (MARGIN + separator) * mm, self._y(content_y + 12))
        for offset, label, lines in columns:
            c.setFont(FONT_BOLD, 8)
            c.drawString((MARGIN + offset) * mm, self._y(content_y), label)
            c.setFont(FONT, 8)
            for i, line in enumerate(lines):
                c.drawString((MARGIN + offset) * mm, self._y(content_y + 5 * (i + 1)), line)
        c.setFillColor(colors.black)

    # -- flow -----------------------------------------------------------

    def new_page(self):
        self.canvas.showPage()
        self.pages += 1
        self._start_page()

    def ensure_space(self, required):
        if needs_page_break(self.y, required):
            self.new_page()

    def space(self, amount):
        self.y += amount

    def title(self, text, size=16):
        self.ensure_space(12)
        c = self.canvas
        c.setFont(FONT_BOLD, size)
        c.setFillColor(BRAND)
        c.drawCentredString(PAGE_WIDTH_MM / 2 * mm, self._y(self.y), text)
        c.setFillColor(colors.black)
        self.y += 12

    def section(self, text, required=20):
        """Section heading; keeps at least ``required`` mm of the section with it."""
        self.ensure_space(required)
        c = self.canvas
        c.setFont(FONT_BOLD, 12)
        c.setFillColor(BRAND)
        c.drawString(MARGIN * mm, self._y(self.y), text)
        c.setFillColor(colors.black)
        self.y += 8

    def subheading(self, text, size=10, color=BRAND):
        self.ensure_space(6)
        c = self.canvas
        c.setFont(FONT_BOLD, size)
        c.setFillColor(color)
        c.drawString(MARGIN * mm, self._y(self.y), text)
        c.setFillColor(colors.black)
        self.y += 6

    def label_value(self, label, value, x=0, value_offset=45, size=9, advance=True):
        c = self.canvas
        if advance:
            self.ensure_space(5)
        c.setFont(FONT_BOLD, size)
        c.drawString((MARGIN + x) * mm, self._y(self.y), label)
        c.setFont(FONT, size)
        c.drawString((MARGIN + x + value_offset) * mm, self._y(self.y), str(value if value not in (None, '') else ''))
        if advance:
            self.y += 5

    def wrap(self, text, width_mm, size=9, font=FONT):
        return simpleSplit(str(text or ''), font, size, width_mm * mm)

    def paragraph(self, text, size=9, indent=0, leading=4, font=FONT, color=colors.black, width=None):
        lines = self.wrap(text, (width or self.width) - indent, size, font)
        self.ensure_space(len(lines) * leading + 2)
        c = self.canvas
        c.setFont(font, size)
        c.setFillColor(color)
        for line in lines:
            c.drawString((MARGIN + indent) * mm, self._y(self.y), line)
            self.y += leading
        c.setFillColor(colors.black)
        self.y += 2

    def bullets(self, items, size=9, indent=4, leading=4.5):
        for item in items:
            self.paragraph(f"• {item}", size=size, indent=indent, leading=leading)
            self.y -= 2

    def checkbox(self, label, checked, indent=0, size=9, width=None):
        lines = self.wrap(label, (width or self.width) - indent - 7, size)
        self.ensure_space(len(lines) * 4 + 2)
        c = self.canvas
        box_x = (MARGIN + indent) * mm
        c.setStrokeColor(BRAND)
        c.setLineWidth(0.3)
        c.rect(box_x, self._y(self.y + 1), 3.5 * mm, 3.5 * mm, stroke=1, fill=0)
        if checked:
            c.setFont(FONT_BOLD, 9)
            c.setFillColor(BRAND)
            c.drawString(box_x + 0.6 * mm, self._y(self.y + 0.2), 'X')
        c.setFillColor(colors.black)
        c.setFont(FONT, size)
        for line in lines:
            c.drawString(box_x + 6.5 * mm, self._y(self.y + 0.5), line)
            self.y += 4
        self.y += 1.5

    def initials(self, label, value, size=9):
        """Right-aligned "Patient initials: [__]" box on its own line."""
        self.ensure_space(9)
        c = self.canvas
        box_x = PAGE_WIDTH_MM - MARGIN - 20
        c.setFont(FONT_BOLD, size)
        c.drawRightString((box_x - 2) * mm, self._y(self.y), label)
        c.setStrokeColor(BRAND)
        c.setLineWidth(0.3)
        c.rect(box_x * mm, self._y(self.y + 2), 20 * mm, 6 * mm, stroke=1, fill=0)
        if value:
            c.setFont(FONT, size)
            c.drawCentredString((box_x + 10) * mm, self._y(self.y), str(value))
        self.y += 9

    def _available(self):
        return PAGE_HEIGHT_MM - MARGIN - FOOTER_RESERVED - self.y

    def table(self, data, col_widths, header_rows=1, size=8):
        """
        Draw a platypus Table at the current position. Tables taller than
        the rest of the page are split across pages, repeating the header.
        """
        table = Table(data, colWidths=[w * mm for w in col_widths], repeatRows=header_rows)
        style = [
            ('FONTNAME', (0, 0), (-1, -1), FONT),
            ('FONTSIZE', (0, 0), (-1, -1), size),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('BOX', (0, 0), (-1, -1), 0.3, BRAND),
        ]
        if header_rows:
            style += [
                ('BACKGROUND', (0, 0), (-1, header_rows - 1), LIGHT_BRAND),
                ('FONTNAME', (0, 0), (-1, header_rows - 1), FONT_BOLD),
                ('LINEBELOW', (0, header_rows - 1), (-1, header_rows - 1), 0.3, BRAND),
            ]
        for row in range(header_rows, len(data)):
            if (row - header_rows) % 2 == 0:
                style.append(('BACKGROUND', (0, row), (-1, row), ROW_SHADE))
        table.setStyle(TableStyle(style))

        fresh_page = False
        while True:
            _, height = table.wrapOn(self.canvas, self.width * mm, PAGE_HEIGHT_MM * mm)
            if height / mm + 2 <= self._available():
                break
            parts = table.split(self.width * mm, self._available() * mm)
            if len(parts) < 2:
                if fresh_page:
                    break
                # not even one body row fits here
                self.new_page()
                fresh_page = True
                continue
            head, table = parts[0], parts[1]
            _, head_height = head.wrapOn(self.canvas, self.width * mm, self._available() * mm)
            head.drawOn(self.canvas, MARGIN * mm, self._y(self.y) - head_height)
            self.new_page()
            fresh_page = True

        table.drawOn(self.canvas, MARGIN * mm, self._y(self.y) - height)
        self.y += height / mm + 2

    def signature(self, data_url, x, width=50, height=18):
        """Draw a signature image with its top at the current line; skipped if undecodable."""
        image = image_from_data_url(data_url)
        if image is None:
            return False
        self.canvas.drawImage(image, (MARGIN + x) * mm, self._y(self.y + height),
                              width=width * mm, height=height * mm, mask='auto', preserveAspectRatio=True)
        return True

    def boxed(self, height, fill=LIGHT_BRAND, stroke=BRAND):
        """Background box of ``height`` mm starting at the current line."""
        self.ensure_space(height)
        c = self.canvas
        c.saveState()
        c.setFillColor(fill)
        c.setStrokeColor(stroke)
        c.setLineWidth(0.3)
        c.rect(MARGIN * mm, self._y(self.y + height), self.width * mm, height * mm, stroke=1, fill=1)
        c.restoreState()

    def finish(self):
        """Close the last page, stamp page numbers and return the PDF bytes."""
        self.canvas.showPage()
        self.canvas.save()
        return self.buffer.getvalue()
