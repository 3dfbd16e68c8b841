# backend/app/api/totals_runtime.py
from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional

TWOPLACES = Decimal("0.01")
HUNDRED = Decimal("100")
ZERO = Decimal("0")


def _d(v) -> Decimal:
    if isinstance(v, Decimal):
        return v
    if v is None:
        return ZERO
    return Decimal(str(v))


def money(v) -> Decimal:
    return _d(v).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


@dataclass
class LineInput:
    quantity: Decimal
    price: Decimal
    tax_rate: Decimal  # yüzde, 0..100


@dataclass
class LineResult:
    base: Decimal        # quantity × price
    tax: Decimal         # vergi uygulanmıyorsa 0
    total: Decimal       # base + tax (2 hane)


@dataclass
class DocumentTotals:
    subtotal: Decimal = ZERO
    tax_amount: Decimal = ZERO
    total: Decimal = ZERO
    lines: List[LineResult] = field(default_factory=list)


def line_total(item: LineInput, apply_tax: bool) -> LineResult:
    base = _d(item.quantity) * _d(item.price)
    tax = base * _d(item.tax_rate) / HUNDRED if apply_tax else ZERO
    return LineResult(base=base, tax=tax, total=money(base + tax))


def compute_totals(items: Iterable[LineInput], apply_tax: bool) -> DocumentTotals:
    """
    subtotal   = Σ quantity × price  (vergisiz taban)
    tax_amount = apply_tax ? Σ quantity × price × tax_rate / 100 : 0
    total      = subtotal + tax_amount

    Vergi oranı satır bazlıdır; farklı oranlar ortalanmaz. Boş liste geçerlidir
    ve sıfır toplam verir. Negatif miktar/fiyat bu noktaya gelmeden şemada reddedilir.
    """
    lines = [line_total(it, apply_tax) for it in items]
    subtotal = sum((ln.base for ln in lines), ZERO)
    tax_amount = sum((ln.tax for ln in lines), ZERO)
    subtotal_q = money(subtotal)
    tax_q = money(tax_amount)
    return DocumentTotals(
        subtotal=subtotal_q,
        tax_amount=tax_q,
        total=subtotal_q + tax_q,
        lines=lines,
    )


def proposal_amounts(plant_capacity, price_per_kw, gst_rate) -> dict:
    """Tek satırlık hesap: kapasite × kW fiyatı, üstüne GST."""
    amount = _d(plant_capacity) * _d(price_per_kw)
    gst_amount = amount * _d(gst_rate) / HUNDRED
    amount_q = money(amount)
    gst_q = money(gst_amount)
    return {
        "amount": amount_q,
        "gst_amount": gst_q,
        "total_amount": amount_q + gst_q,
    }


def percent_change(current: int, previous: int) -> int:
    if previous == 0:
        return 100 if current > 0 else 0
    pct = (Decimal(current) - Decimal(previous)) / Decimal(previous) * HUNDRED
    return int(pct.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def to_float(v: Optional[Decimal]) -> Optional[float]:
    return float(v) if v is not None else None
