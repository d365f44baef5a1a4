"""
Document totals.

Without a document discount every item keeps its own tax. With one, the
discount is turned into an effective percentage and spread over the items
so that percent-typed taxes are recomputed on the reduced base, while
amount-typed taxes pass through untouched.

An amount discount is converted against the *discounted* total
(amount * 100 / total_after_discount). That base differs from the one used
for the human-readable label below and is kept as is.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Iterable, List, Optional

from ..models import Discount, LineItem
from ..money import HUNDRED, ZERO, quantize, safe_div

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Totals:
    total: Decimal
    total_after_discount: Decimal
    total_tax: Decimal
    grand_total: Decimal
    discount_percent: Optional[Decimal] = None

    def as_dict(self) -> dict:
        return {
            "total": str(self.total),
            "total_after_discount": str(self.total_after_discount),
            "total_tax": str(self.total_tax),
            "grand_total": str(self.grand_total),
            "discount_percent": None if self.discount_percent is None else str(self.discount_percent),
        }


def _sum(values: Iterable[Decimal]) -> Decimal:
    return sum(values, ZERO)


def effective_discount_percent(discount: Discount, total: Decimal, total_after_discount: Decimal) -> Decimal:
    """Percentage used to spread the document discount over the items; zero on a zero total."""
    # Also for percent discounts: lines that cancel out (+100 / -100) keep their full tax.
    if total == ZERO:
        return ZERO
    if discount.is_percent:
        return discount.value
    return safe_div(discount.value * HUNDRED, total_after_discount)


def _item_tax_after_discount(item: LineItem, discount_percent: Decimal) -> Decimal:
    if item.tax is None:
        return ZERO
    if item.tax.is_amount:
        return item.tax.value
    item_total = item.total_without_tax_and_with_discount()
    item_total_discounted = item_total - discount_percent * item_total / HUNDRED
    return item.tax.value * item_total_discounted / HUNDRED


def compute_totals(items: List[LineItem], discount: Optional[Discount] = None) -> Totals:
    """
    Items are expected to carry their resolved tax already
    (see Document.resolved_items); no default is applied here.
    """
    total = _sum(item.total_without_tax_and_with_discount() for item in items)

    if discount is None:
        total_tax = _sum(item.tax_with_discount() for item in items)
        totals = Totals(
            total=total,
            total_after_discount=total,
            total_tax=total_tax,
            grand_total=total + total_tax,
        )
    else:
        total_after_discount = total - discount.resolve(total)
        discount_percent = effective_discount_percent(discount, total, total_after_discount)
        total_tax = _sum(_item_tax_after_discount(item, discount_percent) for item in items)
        totals = Totals(
            total=total,
            total_after_discount=total_after_discount,
            total_tax=total_tax,
            grand_total=total_after_discount + total_tax,
            discount_percent=discount_percent,
        )

    logger.debug(
        "Totals: total=%s after_discount=%s tax=%s grand=%s",
        totals.total,
        totals.total_after_discount,
        totals.total_tax,
        totals.grand_total,
    )
    return totals


def describe_discount(discount: Discount, totals: Totals, format_money: Callable[[Decimal], str]) -> str:
    """Label shown under the discounted total, e.g. "-10 % / -€ 20.00"."""
    if discount.is_percent:
        removed = totals.total - totals.total_after_discount
        return f"-{discount.value} % / -{format_money(removed)}"
    percent = safe_div(discount.value * HUNDRED, totals.total)
    return f"-{format_money(discount.value)} / -{quantize(percent, 2)} %"
