from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import List, Optional

from ..config import DEFAULT_FONT, DEFAULT_LAYOUT, LayoutConfig
from ..models import Contact, Discount, Document, HeaderFooter, LineItem, Options, Tax
from .formatting import format_money, format_quantity
from .surface import DrawingSurface
from .totals import Totals, describe_discount

logger = logging.getLogger(__name__)

TITLE_X = 120.0
TITLE_W = 80.0
TOTALS_LABEL_X = 120.0
TOTALS_VALUE_X = 160.0
TOTALS_CELL_W = 40.0
CONTACT_W = 80.0
CONTACT_CUSTOMER_X = 120.0
CONTACT_NAME_H = 8.0
CONTACT_LINE_H = 4.0
TABLE_HEADER_H = 6.0
ITEM_LINE_H = 4.0
ITEM_DESC_LINE_H = 3.5


# -------------------- cursor arithmetic --------------------
@dataclass(frozen=True)
class Cursor:
    x: float
    y: float
    page: int = 1


def at(cursor: Cursor, x: float, y: float) -> Cursor:
    return replace(cursor, x=x, y=y)


def advance(cursor: Cursor, dy: float, x: Optional[float] = None) -> Cursor:
    return replace(cursor, x=cursor.x if x is None else x, y=cursor.y + dy)


def next_page(cursor: Cursor, config: LayoutConfig) -> Cursor:
    return Cursor(x=config.base_margin, y=config.base_margin_top, page=cursor.page + 1)


def exceeds(y: float, config: LayoutConfig) -> bool:
    return y > config.max_page_height


def totals_block_height(has_discount: bool, config: LayoutConfig) -> float:
    height = config.totals_block_height
    if has_discount:
        height += config.totals_discount_extra_height
    return height


def needs_break_before(y: float, height: float, config: LayoutConfig) -> bool:
    return exceeds(y + height, config)


def contact_lines(contact: Contact) -> List[str]:
    lines = contact.address.lines() if contact.address else []
    return lines + [info for info in contact.additional_info if info]


def contact_block_height(contact: Contact) -> float:
    lines = contact_lines(contact)
    if not lines:
        return CONTACT_NAME_H
    return CONTACT_NAME_H + len(lines) * CONTACT_LINE_H + 2.0


def adjustment_label(adjustment: Optional[Tax | Discount], options: Options, sign: str = "") -> str:
    if adjustment is None:
        return ""
    if adjustment.is_percent:
        return f"{sign}{adjustment.value} %"
    return sign + format_money(adjustment.value, options)


# -------------------- page chrome --------------------
def draw_header(surface: DrawingSurface, header: HeaderFooter, config: LayoutConfig) -> None:
    if surface.page_number() == 1 and not header.use_on_first_page:
        return
    surface.set_font(DEFAULT_FONT, "", header.font_size)
    surface.set_text_color(config.grey_text_color)
    surface.move_cursor(config.base_margin, config.header_margin_top)
    surface.draw_text(config.content_width / 2, 5, header.text, "L")
    if header.pagination:
        surface.draw_text(config.content_width / 2, 5, str(surface.page_number()), "R")


def draw_footer(surface: DrawingSurface, footer: HeaderFooter, config: LayoutConfig) -> None:
    if surface.page_number() == 1 and not footer.use_on_first_page:
        return
    y = config.page_height - config.base_margin - 5
    surface.set_font(DEFAULT_FONT, "", footer.font_size)
    surface.set_text_color(config.grey_text_color)
    surface.move_cursor(config.base_margin, y)
    surface.draw_text(config.content_width / 2, 5, footer.text, "L")
    if footer.pagination:
        surface.draw_text(config.content_width / 2, 5, str(surface.page_number()), "R")


# -------------------- engine --------------------
class LayoutEngine:
    """
    Single-pass writer for one document.

    Blocks are laid out top to bottom; the engine owns the vertical cursor
    and only reads the surface back after blocks whose height depends on
    text wrapping. Not reusable: create one engine per build.
    """

    def __init__(self, surface: DrawingSurface, options: Options, config: LayoutConfig = DEFAULT_LAYOUT) -> None:
        self.surface = surface
        self.options = options
        self.config = config
        self.cursor = Cursor(x=config.base_margin, y=config.base_margin_top)
        self.page_breaks = 0
        self._started = False

    def _goto(self, cursor: Cursor) -> None:
        self.cursor = cursor
        self.surface.move_cursor(cursor.x, cursor.y)

    def _sync_y(self) -> None:
        self.cursor = replace(self.cursor, y=self.surface.get_y(), page=self.surface.page_number())

    def _money(self, value: Decimal) -> str:
        return format_money(value, self.options)

    def start(self) -> None:
        if self._started:
            raise RuntimeError("LayoutEngine already used for a document")
        self._started = True
        self.surface.add_page()
        self.surface.set_text_color(self.config.base_text_color)
        self.surface.set_font(DEFAULT_FONT, "", 12)
        self._goto(Cursor(x=self.config.base_margin, y=self.config.base_margin_top))

    def _new_page(self) -> None:
        self.surface.add_page()
        self.page_breaks += 1
        self.surface.set_text_color(self.config.base_text_color)
        self._goto(next_page(self.cursor, self.config))
        logger.debug("Page break -> page %d", self.cursor.page)

    def paginate(self) -> None:
        """New page that continues the item table."""
        self._new_page()
        self.render_table_header()
        self.surface.set_font(DEFAULT_FONT, "", self.config.base_text_font_size)

    # -------------------- title / metas / contacts --------------------
    def render_title(self, title: str) -> None:
        c = self.config
        self._goto(at(self.cursor, TITLE_X, c.base_margin_top))
        self.surface.draw_filled_rect(TITLE_X, c.base_margin_top, TITLE_W, 10, c.dark_bg_color)
        self.surface.set_font(DEFAULT_FONT, "", 14)
        self.surface.draw_text(TITLE_W, 10, title, "C")

    def render_metas(self, document: Document) -> None:
        o = self.options
        top = self.config.base_margin_top
        lines = [(11, f"{o.text_ref_title}: {document.ref}")]
        if document.version:
            lines.append((15, f"{o.text_version_title}: {document.version}"))
        lines.append((19, f"{o.text_date_title}: {document.display_date()}"))

        self.surface.set_font(DEFAULT_FONT, "", self.config.base_text_font_size)
        for offset, text in lines:
            self._goto(at(self.cursor, TITLE_X, top + offset))
            self.surface.draw_text(TITLE_W, 4, text, "R")

    def _render_contact(self, contact: Contact, x: float, fill) -> float:
        c = self.config
        y = c.base_margin_top + 30
        self.surface.draw_filled_rect(x, y, CONTACT_W, CONTACT_NAME_H, fill)
        self._goto(at(self.cursor, x, y))
        self.surface.set_font(DEFAULT_FONT, "B", c.large_text_font_size)
        self.surface.draw_text(CONTACT_W, CONTACT_NAME_H, contact.name, "L")

        lines = contact_lines(contact)
        if lines:
            body_h = contact_block_height(contact) - CONTACT_NAME_H
            self.surface.draw_filled_rect(x, y + CONTACT_NAME_H, CONTACT_W, body_h, c.grey_bg_color)
            self.surface.set_font(DEFAULT_FONT, "", c.base_text_font_size)
            line_y = y + CONTACT_NAME_H + 1.0
            for line in lines:
                self._goto(at(self.cursor, x, line_y))
                self.surface.draw_text(CONTACT_W, CONTACT_LINE_H, line, "L")
                line_y += CONTACT_LINE_H
        return y + contact_block_height(contact)

    def render_contacts(self, company: Contact, customer: Optional[Contact]) -> None:
        company_bottom = self._render_contact(company, self.config.base_margin, self.config.dark_bg_color)
        customer_bottom = 0.0
        if customer is not None:
            customer_bottom = self._render_contact(customer, CONTACT_CUSTOMER_X, self.config.dark_bg_color)
        self._goto(at(self.cursor, self.config.base_margin, max(company_bottom, customer_bottom)))

    def render_description(self, description: str) -> None:
        if not description:
            return
        self._goto(advance(self.cursor, self.config.block_gap, x=self.config.base_margin))
        self.surface.set_font(DEFAULT_FONT, "", self.config.large_text_font_size)
        self.surface.draw_multiline_text(self.config.content_width, 5, description, "B", "L")
        self._sync_y()

    # -------------------- item table --------------------
    def _columns(self) -> List[tuple]:
        c = self.config
        o = self.options
        right = c.page_width - c.base_margin
        return [
            (c.item_col_name_offset, c.item_col_unit_price_offset, o.text_items_name_title),
            (c.item_col_unit_price_offset, c.item_col_quantity_offset, o.text_items_unit_cost_title),
            (c.item_col_quantity_offset, c.item_col_total_ht_offset, o.text_items_quantity_title),
            (c.item_col_total_ht_offset, c.item_col_tax_offset, o.text_items_total_ht_title),
            (c.item_col_tax_offset, c.item_col_discount_offset, o.text_items_tax_title),
            (c.item_col_discount_offset, c.item_col_total_ttc_offset, o.text_items_discount_title),
            (c.item_col_total_ttc_offset, right, o.text_items_total_ttc_title),
        ]

    def render_table_header(self) -> None:
        c = self.config
        y = self.cursor.y + 5
        self._goto(at(self.cursor, c.base_margin, y))
        self.surface.set_font(DEFAULT_FONT, "B", c.base_text_font_size)
        self.surface.draw_filled_rect(c.base_margin, y, c.content_width, TABLE_HEADER_H, c.grey_bg_color)
        for start, end, label in self._columns():
            self.surface.set_x(start)
            self.surface.draw_text(end - start, TABLE_HEADER_H, label, "L")
        self._goto(at(self.cursor, c.base_margin, y + TABLE_HEADER_H + c.item_row_gap))

    def render_item(self, item: LineItem) -> None:
        """One table row; the name column wraps, so the row height is read back from the surface."""
        c = self.config
        top = self.cursor.y
        page = self.surface.page_number()
        columns = self._columns()

        name_start, name_end, _ = columns[0]
        self._goto(at(self.cursor, name_start, top))
        self.surface.set_font(DEFAULT_FONT, "", c.base_text_font_size)
        self.surface.draw_multiline_text(name_end - name_start, ITEM_LINE_H, item.name, "", "L")
        if item.description:
            self.surface.set_x(name_start)
            self.surface.set_font(DEFAULT_FONT, "", c.small_text_font_size)
            self.surface.set_text_color(c.grey_text_color)
            self.surface.draw_multiline_text(name_end - name_start, ITEM_DESC_LINE_H, item.description, "", "L")
            self.surface.set_text_color(c.base_text_color)
            self.surface.set_font(DEFAULT_FONT, "", c.base_text_font_size)
        bottom = self.surface.get_y()
        if self.surface.page_number() != page:
            # name ran past the page break trigger; values follow it onto the new page
            top = c.base_margin_top
            self.cursor = replace(self.cursor, page=self.surface.page_number())

        values = [
            self._money(item.unit_price),
            format_quantity(item.quantity),
            self._money(item.total_without_tax_and_with_discount()),
            adjustment_label(item.tax, self.options),
            adjustment_label(item.discount, self.options, sign="-"),
            self._money(item.total_with_tax_and_discount()),
        ]
        self.surface.move_cursor(name_end, top)
        for (start, end, _), value in zip(columns[1:], values):
            self.surface.set_x(start)
            self.surface.draw_text(end - start, ITEM_LINE_H, value, "L")

        self._goto(at(self.cursor, c.base_margin, bottom))

    def render_items(self, items: List[LineItem]) -> None:
        self.render_table_header()
        self.surface.set_font(DEFAULT_FONT, "", self.config.base_text_font_size)
        for item in items:
            self.render_item(item)
            if exceeds(self.cursor.y, self.config):
                self.paginate()
            else:
                self._goto(advance(self.cursor, self.config.item_row_gap, x=self.config.base_margin))

    # -------------------- notes / totals / payment term --------------------
    def ensure_room_for_totals(self, has_discount: bool) -> None:
        height = totals_block_height(has_discount, self.config)
        if needs_break_before(self.cursor.y, height, self.config):
            self._new_page()

    def render_notes(self, notes: str) -> None:
        """Notes sit on the left half beside the totals; the cursor is left where it was."""
        if not notes:
            return
        c = self.config
        start = self.cursor
        self.surface.set_font(DEFAULT_FONT, "", 9)
        self.surface.set_right_margin(c.page_width - TOTALS_LABEL_X + c.base_margin)
        self.surface.move_cursor(c.base_margin, start.y + c.block_gap)
        self.surface.render_basic_markup(notes, self.surface.font_size_mm())
        self.surface.set_right_margin(c.base_margin)
        # long notes may have continued on later pages; the totals follow them there
        self._goto(replace(start, page=self.surface.page_number()))

    def _totals_row(self, y: float, label: str, value: str, height: float = 10.0) -> None:
        c = self.config
        self.surface.draw_filled_rect(TOTALS_LABEL_X, y, TOTALS_CELL_W, height, c.dark_bg_color)
        self._goto(at(self.cursor, TOTALS_LABEL_X, y))
        self.surface.draw_text(TOTALS_CELL_W - 2, height, label, "R")
        self.surface.draw_filled_rect(TOTALS_VALUE_X, y, TOTALS_CELL_W, height, c.grey_bg_color)
        self.surface.set_x(TOTALS_VALUE_X + 2)
        self.surface.draw_text(TOTALS_CELL_W, height, value, "L")

    def render_totals(self, totals: Totals, discount: Optional[Discount]) -> None:
        c = self.config
        o = self.options
        self.surface.set_font(DEFAULT_FONT, "", c.large_text_font_size)
        self.surface.set_text_color(c.base_text_color)

        y = self.cursor.y + c.block_gap
        self._totals_row(y, o.text_total_total, self._money(totals.total))
        y += 10

        if discount is not None:
            h = c.totals_discount_extra_height
            self.surface.draw_filled_rect(TOTALS_LABEL_X, y, TOTALS_CELL_W, h, c.dark_bg_color)
            self._goto(at(self.cursor, TOTALS_LABEL_X, y))
            self.surface.draw_text(TOTALS_CELL_W - 2, h / 2, o.text_total_discounted, "BR")

            self._goto(at(self.cursor, TOTALS_LABEL_X, y + h / 2))
            self.surface.set_font(DEFAULT_FONT, "", c.base_text_font_size)
            self.surface.set_text_color(c.grey_text_color)
            self.surface.draw_text(TOTALS_CELL_W - 2, h / 2, describe_discount(discount, totals, self._money), "TR")
            self.surface.set_font(DEFAULT_FONT, "", c.large_text_font_size)
            self.surface.set_text_color(c.base_text_color)

            self.surface.draw_filled_rect(TOTALS_VALUE_X, y, TOTALS_CELL_W, h, c.grey_bg_color)
            self._goto(at(self.cursor, TOTALS_VALUE_X + 2, y))
            self.surface.draw_text(TOTALS_CELL_W, h, self._money(totals.total_after_discount), "L")
            y += h

        self._totals_row(y, o.text_total_tax, self._money(totals.total_tax))
        y += 10
        self._totals_row(y, o.text_total_with_tax, self._money(totals.grand_total))
        self._goto(at(self.cursor, c.base_margin, y))

    def render_payment_term(self, payment_term: str) -> None:
        if not payment_term:
            return
        y = self.cursor.y + 15
        self._goto(at(self.cursor, TITLE_X, y))
        self.surface.set_font(DEFAULT_FONT, "B", self.config.large_text_font_size)
        self.surface.draw_text(TITLE_W, 4, f"{self.options.text_payment_term_title}: {payment_term}", "R")
