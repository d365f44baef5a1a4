from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..config import DEFAULT_LAYOUT, LayoutConfig
from ..models import Document
from .autoprint import apply_autoprint
from .layout import LayoutEngine, draw_footer, draw_header
from .surface import DrawingSurface, make_surface
from .totals import Totals, compute_totals

logger = logging.getLogger(__name__)


def document_totals(document: Document) -> Totals:
    return compute_totals(document.resolved_items(), document.discount)


def build_document(
    document: Document,
    surface: Optional[DrawingSurface] = None,
    config: Optional[LayoutConfig] = None,
) -> DrawingSurface:
    """
    Lay the whole document out on `surface` (a fresh reportlab surface by default).

    Validation runs first; an invalid document raises before anything is drawn.
    Block order: page chrome, title, metas, contacts, description, items,
    notes, totals, payment term.
    """
    document.ensure_valid()
    config = config or DEFAULT_LAYOUT
    if surface is None:
        surface = make_surface(config, title=f"{document.type_label()} {document.ref}")

    if document.header is not None:
        header = document.header
        surface.on_page_start(lambda s: draw_header(s, header, config))
    if document.footer is not None:
        footer = document.footer
        surface.on_page_end(lambda s: draw_footer(s, footer, config))

    # default tax is resolved once and the same items feed layout and totals
    items = document.resolved_items()

    engine = LayoutEngine(surface, document.options, config)
    engine.start()
    engine.render_title(document.type_label())
    engine.render_metas(document)
    engine.render_contacts(document.company, document.customer)
    engine.render_description(document.description)
    engine.render_items(items)

    engine.ensure_room_for_totals(document.discount is not None)
    engine.render_notes(document.notes)

    totals = compute_totals(items, document.discount)
    engine.render_totals(totals, document.discount)
    engine.render_payment_term(document.payment_term)

    logger.info(
        "Built %s %s: %d item(s), %d page break(s), grand total %s",
        document.type.value,
        document.ref,
        len(items),
        engine.page_breaks,
        totals.grand_total,
    )
    return surface


def render_document(document: Document, output_path: Path, config: Optional[LayoutConfig] = None) -> Path:
    config = config or DEFAULT_LAYOUT
    surface = make_surface(config, title=f"{document.type_label()} {document.ref}")
    build_document(document, surface=surface, config=config)
    data = surface.to_bytes()
    if document.options.auto_print:
        data = apply_autoprint(data)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)
    return output_path
