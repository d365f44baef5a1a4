from __future__ import annotations

from decimal import Decimal
from typing import Callable, List

import pytest

from docgen.models import Address, Contact, Document, LineItem, Tax

PT_TO_MM = 25.4 / 72.0


class RecordingSurface:
    """In-memory DrawingSurface: records calls and moves the cursor like the real one."""

    def __init__(self, left: float = 10.0, top: float = 20.0) -> None:
        self.left = left
        self.top = top
        self.x = left
        self.y = top
        self.pages = 0
        self.font = ("Helvetica", "", 12.0)
        self.right_margin = 10.0
        self.ops: List[tuple] = []
        self.start_hooks: List[Callable] = []
        self.end_hooks: List[Callable] = []

    def move_cursor(self, x: float, y: float) -> None:
        self.x, self.y = x, y

    def set_x(self, x: float) -> None:
        self.x = x

    def set_y(self, y: float) -> None:
        self.x, self.y = self.left, y

    def get_x(self) -> float:
        return self.x

    def get_y(self) -> float:
        return self.y

    def _run(self, hooks: List[Callable]) -> None:
        saved = (self.x, self.y)
        for hook in hooks:
            hook(self)
        self.x, self.y = saved

    def add_page(self) -> None:
        if self.pages:
            self._run(self.end_hooks)
        self.pages += 1
        self.x, self.y = self.left, self.top
        self.ops.append(("add_page",))
        self._run(self.start_hooks)

    def page_number(self) -> int:
        return self.pages

    def set_font(self, family: str, style: str, size: float) -> None:
        self.font = (family, style, float(size))
        self.ops.append(("font", family, style, size))

    def font_size_mm(self) -> float:
        return self.font[2] * PT_TO_MM

    def set_text_color(self, color) -> None:
        pass

    def set_right_margin(self, margin: float) -> None:
        self.right_margin = margin
        self.ops.append(("right_margin", margin))

    def draw_filled_rect(self, x, y, w, h, color) -> None:
        self.ops.append(("rect", x, y, w, h))

    def draw_text(self, w, h, text, align="L") -> None:
        self.ops.append(("text", self.x, self.y, text))
        self.x += w

    def draw_multiline_text(self, w, h, text, border="", align="L") -> None:
        lines = max(1, len(text.split("\n")))
        self.ops.append(("multiline", self.x, self.y, text))
        self.y += h * lines
        self.x = self.left

    def render_basic_markup(self, text, line_height) -> None:
        self.ops.append(("markup", self.x, self.y, text))
        self.y += line_height * (text.count("<br>") + 1)

    def on_page_start(self, hook) -> None:
        self.start_hooks.append(hook)

    def on_page_end(self, hook) -> None:
        self.end_hooks.append(hook)

    # helpers for assertions
    def texts(self) -> List[str]:
        return [op[3] for op in self.ops if op[0] in ("text", "multiline", "markup")]

    def index_of(self, needle: str) -> int:
        for index, op in enumerate(self.ops):
            if op[0] in ("text", "multiline", "markup") and needle in op[3]:
                return index
        raise AssertionError(f"{needle!r} was never drawn")

    def page_count(self) -> int:
        return sum(1 for op in self.ops if op[0] == "add_page")


@pytest.fixture
def surface() -> RecordingSurface:
    return RecordingSurface()


def make_items(count: int, price: str = "10") -> List[LineItem]:
    return [LineItem(name=f"Item {i}", quantity=Decimal(1), unit_price=Decimal(price)) for i in range(count)]


@pytest.fixture
def sample_document() -> Document:
    return Document(
        ref="INV-2024-001",
        version="2",
        date="01/02/2024",
        description="Website redesign",
        notes="Thanks for your <b>trust</b>",
        payment_term="30 days",
        company=Contact(
            name="Acme Studio",
            address=Address(address="1 Main St", postal_code="75001", city="Paris", country="France"),
        ),
        customer=Contact(name="Globex", additional_info=["VAT FR123"]),
        items=[
            LineItem(name="Design", quantity=Decimal(2), unit_price=Decimal(100), tax=Tax.percent(20)),
            LineItem(name="Hosting", quantity=Decimal(1), unit_price=Decimal(50)),
        ],
        default_tax=Tax.percent(10),
    )
