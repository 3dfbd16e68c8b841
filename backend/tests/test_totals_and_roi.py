# backend/tests/test_totals_and_roi.py
from datetime import datetime
from decimal import Decimal

from app.api.dashboard import one_month_ago
from app.api.roi_runtime import default_roi, resolve_roi
from app.api.totals_runtime import (
    LineInput,
    compute_totals,
    money,
    percent_change,
    proposal_amounts,
)


def _line(q, p, t):
    return LineInput(quantity=Decimal(str(q)), price=Decimal(str(p)), tax_rate=Decimal(str(t)))


def test_totals_with_and_without_tax():
    items = [_line(2, 100, 18)]
    with_tax = compute_totals(items, True)
    assert with_tax.subtotal == Decimal("200.00")
    assert with_tax.tax_amount == Decimal("36.00")
    assert with_tax.total == Decimal("236.00")

    without = compute_totals(items, False)
    assert without.subtotal == Decimal("200.00")
    assert without.tax_amount == Decimal("0.00")
    assert without.total == Decimal("200.00")
    assert without.lines[0].total == Decimal("200.00")


def test_mixed_tax_rates_are_per_line():
    t = compute_totals([_line(1, 1000, 5), _line(3, 50, 28)], True)
    assert t.subtotal == Decimal("1150.00")
    assert t.tax_amount == Decimal("92.00")  # 50 + 42
    assert t.total == Decimal("1242.00")
    assert [ln.total for ln in t.lines] == [Decimal("1050.00"), Decimal("192.00")]


def test_empty_items_give_zero_totals():
    t = compute_totals([], True)
    assert (t.subtotal, t.tax_amount, t.total) == (Decimal("0.00"), Decimal("0.00"), Decimal("0.00"))


def test_money_rounds_half_up():
    assert money("2.675") == Decimal("2.68")
    assert money(Decimal("0.005")) == Decimal("0.01")


def test_proposal_amounts():
    out = proposal_amounts(Decimal("10"), Decimal("45000"), Decimal("8.9"))
    assert out["amount"] == Decimal("450000.00")
    assert out["gst_amount"] == Decimal("40050.00")
    assert out["total_amount"] == Decimal("490050.00")


def test_default_roi_for_ten_kw():
    roi = default_roi(10)
    assert roi["energy_generation_per_year"] == 16000
    assert roi["co2_savings_per_year"] == 13.0
    assert roi["trees_equivalent"] == 620
    assert roi["co2_eliminated_total"] == 286
    assert roi["total_savings_25_years"] == 2816000
    assert (roi["payback_period_min"], roi["payback_period_max"]) == (2.5, 3.5)


def test_default_roi_is_deterministic():
    assert default_roi(Decimal("7.5")) == default_roi(Decimal("7.5"))


def test_resolve_roi_keeps_overrides_and_fills_the_rest():
    roi = resolve_roi(10, {"trees_equivalent": 700, "payback_period_max": None})
    assert roi["trees_equivalent"] == 700
    assert roi["payback_period_max"] == 3.5
    assert roi["energy_generation_per_year"] == 16000


def test_percent_change():
    assert percent_change(0, 0) == 0
    assert percent_change(5, 0) == 100
    assert percent_change(15, 10) == 50
    assert percent_change(5, 10) == -50
    assert percent_change(4, 3) == 33


def test_one_month_ago_clamps_day():
    assert one_month_ago(datetime(2024, 3, 31, 12, 0)) == datetime(2024, 2, 29, 12, 0)
    assert one_month_ago(datetime(2025, 1, 15)) == datetime(2024, 12, 15)
