from __future__ import annotations

from decimal import Decimal
import tempfile
from pathlib import Path
import unittest

import fitz

from conftest import RecordingSurface
from docgen.errors import ValidationError
from docgen.models import Address, Contact, Discount, Document, HeaderFooter, LineItem, Options, Tax
from docgen.pipeline.build import build_document, document_totals, render_document
from docgen.pipeline.surface import make_surface


def _document(**overrides) -> Document:
    fields = dict(
        ref="INV-001",
        date="05/06/2024",
        description="Spring maintenance",
        notes="Paid by <b>transfer</b>",
        payment_term="Net 30",
        company=Contact(name="Acme Studio", address=Address(address="1 Main St", city="Paris")),
        customer=Contact(name="Globex Corp", additional_info=["VAT FR99"]),
        items=[
            LineItem(name="Design", quantity=Decimal(2), unit_price=Decimal(100), tax=Tax.percent(20)),
            LineItem(name="Hosting", quantity=Decimal(1), unit_price=Decimal(50)),
        ],
        default_tax=Tax.percent(10),
    )
    fields.update(overrides)
    return Document(**fields)


def _pdf_text(data: bytes) -> str:
    with fitz.open(stream=data, filetype="pdf") as doc:
        return "\n".join(page.get_text() for page in doc)


class BuildTests(unittest.TestCase):
    def setUp(self) -> None:
        self.temp_dir = tempfile.TemporaryDirectory()

    def tearDown(self) -> None:
        self.temp_dir.cleanup()

    def test_blocks_are_drawn_in_order(self) -> None:
        surface = RecordingSurface()
        build_document(_document(), surface=surface)
        options = Options()
        order = [
            options.text_type_invoice,
            "Ref.: INV-001",
            "Date: 05/06/2024",
            "Acme Studio",
            "Globex Corp",
            "Spring maintenance",
            options.text_items_name_title,
            "Design",
            "Hosting",
            "Paid by",
            options.text_total_total,
            options.text_total_tax,
            options.text_total_with_tax,
            "Payment term: Net 30",
        ]
        positions = [surface.index_of(needle) for needle in order]
        self.assertEqual(positions, sorted(positions))

    def test_default_tax_feeds_totals(self) -> None:
        totals = document_totals(_document())
        self.assertEqual(totals.total, Decimal(250))
        self.assertEqual(totals.total_tax, Decimal(45))
        self.assertEqual(totals.grand_total, Decimal(295))

    def test_invalid_document_draws_nothing(self) -> None:
        surface = RecordingSurface()
        with self.assertRaises(ValidationError):
            build_document(_document(items=[]), surface=surface)
        self.assertEqual(surface.ops, [])

    def test_header_and_footer_on_every_page(self) -> None:
        surface = RecordingSurface()
        items = [LineItem(name=f"Row {i}", unit_price=Decimal(1)) for i in range(80)]
        document = _document(
            items=items,
            header=HeaderFooter(text="ACME HEADER"),
            footer=HeaderFooter(text="ACME FOOTER", pagination=True),
        )
        build_document(document, surface=surface)
        pages = surface.page_count()
        self.assertGreater(pages, 1)
        self.assertEqual(surface.texts().count("ACME HEADER"), pages)
        # the recording surface never closes its last page
        self.assertEqual(surface.texts().count("ACME FOOTER"), pages - 1)

    def test_long_description_continues_on_next_page(self) -> None:
        lines = [f"desc-line-{i:02d}" for i in range(70)]
        surface = make_surface()
        build_document(_document(description="\n".join(lines)), surface=surface)
        text = _pdf_text(surface.to_bytes())
        missing = [line for line in lines if line not in text]
        self.assertEqual(missing, [])
        self.assertGreater(surface.page_number(), 1)

    def test_long_notes_continue_on_next_page(self) -> None:
        lines = [f"note-row-{i:02d}" for i in range(90)]
        surface = make_surface()
        build_document(_document(notes="<br>".join(lines)), surface=surface)
        text = _pdf_text(surface.to_bytes())
        missing = [line for line in lines if line not in text]
        self.assertEqual(missing, [])
        self.assertIn(Options().text_total_with_tax, text)

    def test_render_document_writes_pdf(self) -> None:
        out = Path(self.temp_dir.name) / "invoice.pdf"
        render_document(_document(discount=Discount.amount(50)), out)
        data = out.read_bytes()
        self.assertTrue(data.startswith(b"%PDF"))
        self.assertNotIn(b"JavaScript", data)

    def test_render_long_document_with_header(self) -> None:
        out = Path(self.temp_dir.name) / "long.pdf"
        items = [
            LineItem(name=f"Row {i} " + "long name " * (i % 4), description="detail" if i % 3 else None,
                     unit_price=Decimal("9.99"))
            for i in range(90)
        ]
        document = _document(items=items, header=HeaderFooter(text="Acme", pagination=True),
                             footer=HeaderFooter(text="Thanks"))
        render_document(document, out)
        self.assertTrue(out.read_bytes().startswith(b"%PDF"))

    def test_auto_print_adds_open_action(self) -> None:
        out = Path(self.temp_dir.name) / "print.pdf"
        render_document(_document(options=Options(auto_print=True)), out)
        data = out.read_bytes()
        self.assertTrue(data.startswith(b"%PDF"))
        self.assertIn(b"JavaScript", data)
        self.assertIn(b"OpenAction", data)


if __name__ == "__main__":
    unittest.main()
