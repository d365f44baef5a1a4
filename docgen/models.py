from __future__ import annotations

import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .config import DATE_FORMAT
from .errors import ValidationError
from .money import HUNDRED, ZERO, Numeric, to_decimal


class DocumentType(str, Enum):
    INVOICE = "invoice"
    QUOTATION = "quotation"
    CREDIT_NOTE = "credit_note"
    DELIVERY_NOTE = "delivery_note"


class _Adjustment(BaseModel):
    """A percentage of a base amount, or a flat amount."""

    model_config = ConfigDict(frozen=True)

    type: Literal["percent", "amount"]
    value: Decimal

    @classmethod
    def percent(cls, value: Numeric):
        return cls(type="percent", value=to_decimal(value))

    @classmethod
    def amount(cls, value: Numeric):
        return cls(type="amount", value=to_decimal(value))

    @property
    def is_percent(self) -> bool:
        return self.type == "percent"

    @property
    def is_amount(self) -> bool:
        return self.type == "amount"

    def resolve(self, base: Decimal) -> Decimal:
        if self.is_percent:
            return base * self.value / HUNDRED
        return self.value


class Discount(_Adjustment):
    """Subtracted from the base it resolves against."""


class Tax(_Adjustment):
    """Added on top of the base it resolves against."""


class LineItem(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    description: Optional[str] = None
    quantity: Decimal = Decimal(1)
    unit_price: Decimal = ZERO
    discount: Optional[Discount] = None
    tax: Optional[Tax] = None

    def subtotal(self) -> Decimal:
        return self.quantity * self.unit_price

    def total_without_tax_and_with_discount(self) -> Decimal:
        subtotal = self.subtotal()
        if self.discount is None:
            return subtotal
        return subtotal - self.discount.resolve(subtotal)

    def tax_with_discount(self) -> Decimal:
        if self.tax is None:
            return ZERO
        return self.tax.resolve(self.total_without_tax_and_with_discount())

    def total_with_tax_and_discount(self) -> Decimal:
        return self.total_without_tax_and_with_discount() + self.tax_with_discount()

    def with_default_tax(self, default_tax: Optional[Tax]) -> "LineItem":
        if self.tax is not None or default_tax is None:
            return self
        return self.model_copy(update={"tax": default_tax})


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    address: str = ""
    address2: str = ""
    postal_code: str = ""
    city: str = ""
    country: str = ""

    def lines(self) -> List[str]:
        city_line = " ".join(part for part in (self.postal_code, self.city) if part)
        return [line for line in (self.address, self.address2, city_line, self.country) if line]


class Contact(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    address: Optional[Address] = None
    additional_info: List[str] = Field(default_factory=list)


class HeaderFooter(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str = ""
    font_size: float = 7
    pagination: bool = False
    use_on_first_page: bool = True


class Options(BaseModel):
    model_config = ConfigDict(frozen=True)

    auto_print: bool = False

    currency_symbol: str = "€ "
    currency_precision: int = Field(default=2, ge=0)
    currency_decimal: str = "."
    currency_thousand: str = " "

    text_type_invoice: str = "INVOICE"
    text_type_quotation: str = "QUOTATION"
    text_type_credit_note: str = "CREDIT NOTE"
    text_type_delivery_note: str = "DELIVERY NOTE"

    text_ref_title: str = "Ref."
    text_version_title: str = "Version"
    text_date_title: str = "Date"
    text_payment_term_title: str = "Payment term"

    text_items_name_title: str = "Name"
    text_items_unit_cost_title: str = "Unit price"
    text_items_quantity_title: str = "Quantity"
    text_items_total_ht_title: str = "Total no tax"
    text_items_tax_title: str = "Tax"
    text_items_discount_title: str = "Discount"
    text_items_total_ttc_title: str = "Total incl. tax"

    text_total_total: str = "TOTAL"
    text_total_discounted: str = "TOTAL DISCOUNTED"
    text_total_tax: str = "TAX"
    text_total_with_tax: str = "TOTAL WITH TAX"


class Document(BaseModel):
    """Aggregate root: everything one rendered document is made of."""

    model_config = ConfigDict(frozen=True)

    type: DocumentType = DocumentType.INVOICE
    ref: str = ""
    version: str = ""
    date: str = ""
    description: str = ""
    notes: str = ""
    payment_term: str = ""

    company: Contact
    customer: Optional[Contact] = None
    items: List[LineItem] = Field(default_factory=list)
    discount: Optional[Discount] = None
    default_tax: Optional[Tax] = None

    header: Optional[HeaderFooter] = None
    footer: Optional[HeaderFooter] = None
    options: Options = Field(default_factory=Options)

    def validation_errors(self) -> List[str]:
        errors: List[str] = []
        if not self.ref.strip():
            errors.append("Document ref is required")
        if not self.company.name.strip():
            errors.append("Company name is required")
        if not self.items:
            errors.append("Document must contain at least one item")
        return errors

    def ensure_valid(self) -> None:
        errors = self.validation_errors()
        if errors:
            raise ValidationError(errors)

    def resolved_items(self) -> List[LineItem]:
        return [item.with_default_tax(self.default_tax) for item in self.items]

    def type_label(self) -> str:
        labels = {
            DocumentType.INVOICE: self.options.text_type_invoice,
            DocumentType.QUOTATION: self.options.text_type_quotation,
            DocumentType.CREDIT_NOTE: self.options.text_type_credit_note,
            DocumentType.DELIVERY_NOTE: self.options.text_type_delivery_note,
        }
        return labels[self.type]

    def display_date(self, today: Optional[datetime.date] = None) -> str:
        if self.date:
            return self.date
        return (today or datetime.date.today()).strftime(DATE_FORMAT)
