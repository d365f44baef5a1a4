from __future__ import annotations

import io
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Tuple

from reportlab.lib import colors
from reportlab.lib.styles import ParagraphStyle
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas
from reportlab.platypus import Paragraph

from ..config import DEFAULT_FONT, DEFAULT_LAYOUT, Color, LayoutConfig

PT_TO_MM = 25.4 / 72.0
CELL_PADDING = 1.0  # mm, left/right inside a text cell

_FONT_VARIANTS = {
    "Helvetica": {"": "Helvetica", "B": "Helvetica-Bold", "I": "Helvetica-Oblique", "BI": "Helvetica-BoldOblique"},
    "Courier": {"": "Courier", "B": "Courier-Bold", "I": "Courier-Oblique", "BI": "Courier-BoldOblique"},
    "Times": {"": "Times-Roman", "B": "Times-Bold", "I": "Times-Italic", "BI": "Times-BoldItalic"},
}


def font_name(family: str, style: str = "") -> str:
    variant = "".join(flag for flag in "BI" if flag in (style or "").upper())
    variants = _FONT_VARIANTS.get(family)
    if variants is None:
        return family
    return variants[variant]


def _rgb(color: Color) -> colors.Color:
    r, g, b = color
    return colors.Color(r / 255.0, g / 255.0, b / 255.0)


class DrawingSurface(Protocol):
    """Page-drawing primitives the layout engine relies on. Units are mm, origin top-left."""

    def move_cursor(self, x: float, y: float) -> None: ...

    def set_x(self, x: float) -> None: ...

    def set_y(self, y: float) -> None: ...

    def get_x(self) -> float: ...

    def get_y(self) -> float: ...

    def add_page(self) -> None: ...

    def page_number(self) -> int: ...

    def set_font(self, family: str, style: str, size: float) -> None: ...

    def font_size_mm(self) -> float: ...

    def set_text_color(self, color: Color) -> None: ...

    def set_right_margin(self, margin: float) -> None: ...

    def draw_filled_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None: ...

    def draw_text(self, w: float, h: float, text: str, align: str = "L") -> None: ...

    def draw_multiline_text(self, w: float, h: float, text: str, border: str = "", align: str = "L") -> None: ...

    def render_basic_markup(self, text: str, line_height: float) -> None: ...

    def on_page_start(self, hook: "PageHook") -> None: ...

    def on_page_end(self, hook: "PageHook") -> None: ...


PageHook = Callable[[DrawingSurface], None]


class ReportlabSurface:
    """
    DrawingSurface backed by a reportlab canvas.

    ReportLab measures in points from the bottom-left corner; everything here
    is converted from millimetres measured from the top-left, so callers can
    think in the same terms as a printed sheet.
    """

    def __init__(self, config: LayoutConfig = DEFAULT_LAYOUT, title: str = "") -> None:
        self.config = config
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=(config.page_width * mm, config.page_height * mm))
        if title:
            self._canvas.setTitle(title)

        self._left_margin = config.base_margin
        self._right_margin = config.base_margin
        self._top_margin = config.base_margin_top
        self._x = self._left_margin
        self._y = self._top_margin

        self._font: Tuple[str, str, float] = (DEFAULT_FONT, "", 12.0)
        self._text_color: Color = (0, 0, 0)

        self._pages = 0
        self._page_open = False
        self._finished = False
        self._page_start_hooks: List[PageHook] = []
        self._page_end_hooks: List[PageHook] = []

    # -------------------- cursor --------------------
    def move_cursor(self, x: float, y: float) -> None:
        self._x = x
        self._y = y

    def set_x(self, x: float) -> None:
        self._x = x

    def set_y(self, y: float) -> None:
        # Moving vertically starts a new line at the left margin.
        self._x = self._left_margin
        self._y = y

    def get_x(self) -> float:
        return self._x

    def get_y(self) -> float:
        return self._y

    def set_right_margin(self, margin: float) -> None:
        self._right_margin = margin

    # -------------------- pages --------------------
    def on_page_start(self, hook: PageHook) -> None:
        self._page_start_hooks.append(hook)

    def on_page_end(self, hook: PageHook) -> None:
        self._page_end_hooks.append(hook)

    def page_number(self) -> int:
        return self._pages

    def _run_hooks(self, hooks: List[PageHook]) -> None:
        saved = (self._x, self._y, self._font, self._text_color)
        for hook in hooks:
            hook(self)
        self._x, self._y, self._font, self._text_color = saved
        self._apply_font()

    def add_page(self) -> None:
        if self._finished:
            raise RuntimeError("Surface already serialized")
        if self._page_open:
            self._run_hooks(self._page_end_hooks)
            self._canvas.showPage()
        self._pages += 1
        self._page_open = True
        self._x = self._left_margin
        self._y = self._top_margin
        # showPage() drops the graphics state
        self._apply_font()
        self._run_hooks(self._page_start_hooks)

    # -------------------- style --------------------
    def _apply_font(self) -> None:
        family, style, size = self._font
        self._canvas.setFont(font_name(family, style), size)

    def set_font(self, family: str, style: str, size: float) -> None:
        self._font = (family, style, float(size))
        self._apply_font()

    def font_size_mm(self) -> float:
        return self._font[2] * PT_TO_MM

    def set_text_color(self, color: Color) -> None:
        self._text_color = tuple(color)

    def string_width(self, text: str) -> float:
        family, style, size = self._font
        return self._canvas.stringWidth(text, font_name(family, style), size) / mm

    def _py(self, y: float) -> float:
        return (self.config.page_height - y) * mm

    # -------------------- drawing --------------------
    def draw_filled_rect(self, x: float, y: float, w: float, h: float, color: Color) -> None:
        self._canvas.setFillColor(_rgb(color))
        self._canvas.rect(x * mm, self._py(y + h), w * mm, h * mm, stroke=0, fill=1)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float) -> None:
        self._canvas.setStrokeColor(_rgb(self._text_color))
        self._canvas.setLineWidth(0.2 * mm)
        self._canvas.line(x1 * mm, self._py(y1), x2 * mm, self._py(y2))

    def draw_text(self, w: float, h: float, text: str, align: str = "L") -> None:
        """Single-line cell of width `w` at the cursor; the cursor moves right by `w`."""
        align = (align or "L").upper()
        text = text or ""
        if w <= 0:
            w = self.config.page_width - self._right_margin - self._x

        if text:
            width = self.string_width(text)
            if "R" in align:
                tx = self._x + w - CELL_PADDING - width
            elif "C" in align:
                tx = self._x + (w - width) / 2
            else:
                tx = self._x + CELL_PADDING

            font_h = self.font_size_mm()
            if "T" in align:
                baseline = self._y + 0.85 * font_h
            elif "B" in align:
                baseline = self._y + h - 0.25 * font_h
            else:
                baseline = self._y + h / 2 + 0.3 * font_h

            self._canvas.setFillColor(_rgb(self._text_color))
            self._canvas.drawString(tx * mm, self._py(baseline), text)

        self._x += w

    def draw_multiline_text(self, w: float, h: float, text: str, border: str = "", align: str = "L") -> None:
        """Word-wrapped text, `h` per line; afterwards the cursor sits below it at the left margin."""
        if w <= 0:
            w = self.config.page_width - self._right_margin - self._x
        family, style, size = self._font
        lines = simpleSplit(text or "", font_name(family, style), size, (w - 2 * CELL_PADDING) * mm) or [""]

        x = self._x
        top = self._y
        for line in lines:
            if self._page_open and self._y + h > self.config.page_break_trigger and self._y > self._top_margin:
                self.add_page()
                top = self._y
            self._x = x
            self.draw_text(w, h, line, align)
            self._y += h

        border = (border or "").upper()
        if border == "1":
            self._canvas.setStrokeColor(_rgb(self._text_color))
            self._canvas.rect(x * mm, self._py(self._y), w * mm, (self._y - top) * mm, stroke=1, fill=0)
        else:
            if "T" in border:
                self.draw_line(x, top, x + w, top)
            if "B" in border:
                self.draw_line(x, self._y, x + w, self._y)

        self._x = self._left_margin

    def render_basic_markup(self, text: str, line_height: float) -> None:
        """
        Flow <b>, <i>, <u>, <a> and <br> markup between the cursor and the right margin.

        Text that does not fit above the page break trigger is split and
        continued at the top of the next page, at the same x.
        """
        family, style, size = self._font
        para_style = ParagraphStyle(
            "notes",
            fontName=font_name(family, style),
            fontSize=size,
            leading=line_height * mm,
            textColor=_rgb(self._text_color),
        )
        markup = (text or "").replace("<br>", "<br/>").replace("\n", "<br/>")
        para: Optional[Paragraph] = Paragraph(markup, para_style)

        x = self._x
        avail_w = (self.config.page_width - self._right_margin - x) * mm
        while para is not None:
            avail_h = (self.config.page_break_trigger - self._y) * mm
            _, height = para.wrapOn(self._canvas, avail_w, avail_h)
            parts = [] if height <= avail_h else para.split(avail_w, avail_h)
            if len(parts) == 2:
                head, para = parts
                _, head_height = head.wrapOn(self._canvas, avail_w, avail_h)
                head.drawOn(self._canvas, x * mm, self._py(self._y) - head_height)
            elif height <= avail_h or self._y <= self._top_margin:
                # fits, or not even one line fits on an empty page
                para.drawOn(self._canvas, x * mm, self._py(self._y) - height)
                self._y += height / mm
                para = None
                continue
            self.add_page()
            self._x = x

    # -------------------- output --------------------
    def finish(self) -> None:
        if self._finished:
            return
        if self._page_open:
            self._run_hooks(self._page_end_hooks)
        self._canvas.save()
        self._finished = True

    def to_bytes(self) -> bytes:
        self.finish()
        return self._buffer.getvalue()

    def save(self, path: Path) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.to_bytes())
        return path


def make_surface(config: Optional[LayoutConfig] = None, title: str = "") -> ReportlabSurface:
    return ReportlabSurface(config or DEFAULT_LAYOUT, title=title)
