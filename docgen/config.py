from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Optional, Tuple
import json


BASE_DIR = Path(__file__).resolve().parents[1]
OUT_DIR = BASE_DIR / "out"
LAYOUT_PRESET_PATH = BASE_DIR / "assets" / "layout" / "a4.json"

Color = Tuple[int, int, int]

DATE_FORMAT = "%d/%m/%Y"
DEFAULT_FONT = "Helvetica"


@dataclass(frozen=True)
class LayoutConfig:
    """Fixed geometry of the page, in millimetres from the top-left corner."""

    page_width: float = 210.0
    page_height: float = 297.0
    base_margin: float = 10.0
    base_margin_top: float = 20.0
    header_margin_top: float = 5.0
    max_page_height: float = 260.0

    base_text_font_size: float = 8.0
    small_text_font_size: float = 7.0
    large_text_font_size: float = 10.0

    base_text_color: Color = (35, 35, 35)
    grey_text_color: Color = (82, 82, 82)
    grey_bg_color: Color = (232, 232, 232)
    dark_bg_color: Color = (212, 212, 212)

    item_col_name_offset: float = 10.0
    item_col_unit_price_offset: float = 80.0
    item_col_quantity_offset: float = 103.0
    item_col_total_ht_offset: float = 113.0
    item_col_tax_offset: float = 140.0
    item_col_discount_offset: float = 157.0
    item_col_total_ttc_offset: float = 175.0

    item_row_gap: float = 2.0
    block_gap: float = 10.0
    totals_block_height: float = 30.0
    totals_discount_extra_height: float = 15.0

    # flowing text (descriptions, notes) continues on a new page below this margin
    page_break_margin: float = 20.0

    @property
    def content_width(self) -> float:
        return self.page_width - 2 * self.base_margin

    @property
    def page_break_trigger(self) -> float:
        return self.page_height - self.page_break_margin


DEFAULT_LAYOUT = LayoutConfig()


def load_layout_config(path: Optional[Path] = None) -> LayoutConfig:
    """
    Read a JSON preset and overlay it on the default layout.
    Unknown keys are rejected so a typo never silently falls back to a default.
    """
    preset_path = path or LAYOUT_PRESET_PATH
    if not preset_path.exists():
        if path is not None:
            raise FileNotFoundError(f"Layout preset not found: {preset_path}")
        return DEFAULT_LAYOUT
    with preset_path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    if not isinstance(raw, dict):
        raise ValueError(f"Layout preset must be a JSON object: {preset_path}")

    known = {f.name: f for f in fields(LayoutConfig)}
    unknown = sorted(set(raw) - set(known))
    if unknown:
        raise ValueError(f"Unknown layout keys: {', '.join(unknown)}")

    overrides = {}
    for key, value in raw.items():
        if key.endswith("_color"):
            overrides[key] = tuple(int(c) for c in value)
        else:
            overrides[key] = float(value)
    return replace(DEFAULT_LAYOUT, **overrides)


def set_out_dir(path: Path) -> None:
    global OUT_DIR
    OUT_DIR = path
