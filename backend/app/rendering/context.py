# backend/app/rendering/context.py
"""
Render bağlamı: kayıtlı belge + BusinessProfile -> şablonların tükettiği düz dict.

Burada toplam hesabı yapılmaz. Tutarlar belgede ne ise o biçimlendirilir;
eksik profil alanları sabit varsayılanlara düşer.
"""
from __future__ import annotations

from copy import deepcopy
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Mapping, Optional, Sequence

DEFAULT_PROFILE: Dict[str, Any] = {
    "business_name": "Your Business Name",
    "tagline": "Generate Your Own Power",
    "gst_number": "",
    "phone": "",
    "email": "",
    "website": "",
    "logo": "",
    "signature": "",
    "address": {
        "street": "",
        "city": "",
        "state": "",
        "pincode": "",
        "country": "India",
    },
    "bank_details": {
        "account_name": "Account Holder Name",
        "bank_name": "Bank Name",
        "account_number": "XXXXXXXXXXXX",
        "ifsc_code": "XXXX0000000",
        "branch": "",
    },
}

DOCUMENT_TITLES = {"quotation": "QUOTATION", "invoice": "TAX INVOICE"}


# ---------------------------
# Formatting
# ---------------------------
def format_inr(value: Any, places: int = 2) -> str:
    """Hint gruplaması: 1234567.5 -> '12,34,567.50'."""
    q = Decimal(1).scaleb(-places) if places else Decimal(1)
    d = Decimal(str(value if value is not None else 0)).quantize(q, rounding=ROUND_HALF_UP)
    sign = "-" if d < 0 else ""
    whole, _, frac = f"{abs(d):.{places}f}".partition(".")
    if len(whole) > 3:
        head, tail = whole[:-3], whole[-3:]
        groups: List[str] = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        whole = ",".join(groups + [tail])
    return sign + whole + (f".{frac}" if frac else "")


def format_number(value: Any) -> str:
    if value is None:
        return ""
    d = Decimal(str(value))
    if d == d.to_integral_value():
        return str(d.quantize(Decimal(1)))
    return format(d.normalize(), "f")


def format_lakh(value: Any) -> str:
    return f"{Decimal(str(value or 0)) / Decimal(100000):.2f}"


def format_date(value: Any) -> str:
    if not value:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime):
        value = value.date()
    if isinstance(value, date):
        return value.strftime("%d-%m-%Y")
    return str(value)


def address_lines(address: Optional[Mapping[str, Any]]) -> List[str]:
    if not address:
        return []
    lines = []
    if address.get("street"):
        lines.append(address["street"])
    city_line = ", ".join(p for p in (address.get("city"), address.get("state")) if p)
    if address.get("pincode"):
        city_line = f"{city_line} - {address['pincode']}" if city_line else address["pincode"]
    if city_line:
        lines.append(city_line)
    if address.get("country") and lines:
        lines.append(address["country"])
    return lines


# ---------------------------
# Profile
# ---------------------------
def merge_profile(profile: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Boş veya eksik alanlar DEFAULT_PROFILE değerini alır (iç içe dict'ler dahil)."""
    merged = deepcopy(DEFAULT_PROFILE)
    for key, value in (profile or {}).items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            for sub_key, sub_value in value.items():
                if sub_value not in (None, ""):
                    merged[key][sub_key] = sub_value
        elif value not in (None, ""):
            merged[key] = value
    merged["address_lines"] = address_lines(merged["address"])
    return merged


# ---------------------------
# Quotation / Invoice
# ---------------------------
def document_context(
    kind: str,
    doc: Mapping[str, Any],
    profile: Optional[Mapping[str, Any]],
    brand_images: Sequence[str] = (),
) -> Dict[str, Any]:
    number = doc.get(f"{kind}_number", "")
    show_tax = bool(doc.get("include_gst", True)) if kind == "quotation" else True
    show_prices = not doc.get("hide_item_prices", False)

    items = []
    for idx, it in enumerate(doc.get("items") or [], start=1):
        items.append({
            "no": idx,
            "name": it.get("product_name", ""),
            "description": it.get("description") or "",
            "quantity": format_number(it.get("quantity")),
            "unit": it.get("unit") or "",
            "price": format_inr(it.get("price")),
            "tax_rate": format_number(it.get("tax_rate")),
            "total": format_inr(it.get("total")),
        })

    if kind == "quotation":
        date_label, date_value = "Valid Until", doc.get("valid_until")
    else:
        date_label, date_value = "Due Date", doc.get("due_date")

    return {
        "kind": kind,
        "title": DOCUMENT_TITLES.get(kind, kind.upper()),
        "number": number,
        "date": format_date(doc.get("created_at")) or format_date(date.today()),
        "secondary_date_label": date_label,
        "secondary_date": format_date(date_value),
        "status": doc.get("status", ""),
        "customer": {
            "name": doc.get("customer_name", ""),
            "email": doc.get("customer_email") or "",
            "phone": doc.get("customer_phone") or "",
            "address_lines": address_lines(doc.get("customer_address")),
        },
        "show_tax": show_tax,
        "show_prices": show_prices,
        "items": items,
        "subtotal": format_inr(doc.get("subtotal")),
        "tax_amount": format_inr(doc.get("tax_amount")),
        "total": format_inr(doc.get("total")),
        "notes": doc.get("notes") or "",
        "terms": doc.get("terms") or "",
        "business": merge_profile(profile),
        "brand_images": [u for u in brand_images if u] if kind == "quotation" else [],
    }


# ---------------------------
# Proposal
# ---------------------------
def _terms(terms: Sequence[str]) -> List[Dict[str, Any]]:
    # Çok satırlı madde: ilk satır başlık, kalanlar alt satır
    out = []
    for term in terms or []:
        lines = str(term).split("\n")
        out.append({"text": lines[0], "sub": [ln.strip() for ln in lines[1:] if ln.strip()]})
    return out


def proposal_context(doc: Mapping[str, Any], profile: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    business = merge_profile(profile)
    roi = doc.get("roi") or {}
    capacity = format_number(doc.get("plant_capacity"))
    payback_min = format_number(roi.get("payback_period_min"))
    payback_max = format_number(roi.get("payback_period_max"))

    technical = doc.get("technical_summary") or (
        f"The {capacity} KW rooftop solar system is estimated to generate "
        f"{format_inr(roi.get('energy_generation_per_year'), 0)} kWh/year, avoiding "
        f"{format_number(roi.get('co2_savings_per_year'))} tonnes of CO2 annually."
    )
    financial = doc.get("financial_summary") or (
        f"With an installed cost of Rs. {format_lakh(doc.get('total_amount'))} Lakh "
        f"(Rs. {format_inr(doc.get('price_per_kw'))}/kW), your electricity costs can be eliminated. "
        f"Typical simple payback is between {payback_min} to {payback_max} years depending on the tariff. "
        f"After payback, enjoy effectively free electricity for decades."
    )

    return {
        "business": business,
        "proposal_number": doc.get("proposal_number", ""),
        "date": format_date(doc.get("date")),
        "valid_until": format_date(doc.get("valid_until")),
        "client_name": doc.get("client_name", ""),
        "project_location": doc.get("project_location", ""),
        "plant_capacity": capacity,
        "project_type": doc.get("project_type", ""),
        "system_type": str(doc.get("project_type", "")).replace(" Solar", ""),
        "roof_type": doc.get("roof_type", ""),
        "price_per_kw": format_inr(doc.get("price_per_kw")),
        "amount": format_inr(doc.get("amount")),
        "gst_rate": format_number(doc.get("gst_rate")),
        "gst_amount": format_inr(doc.get("gst_amount")),
        "total_amount": format_inr(doc.get("total_amount")),
        "advance_percent": format_number(doc.get("advance_percent")),
        "balance_percent": format_number(doc.get("balance_percent")),
        "payment_terms_notes": doc.get("payment_terms_notes") or "",
        "materials": [
            {
                "no": idx,
                "description": m.get("description", ""),
                "specification": m.get("specification", ""),
                "warranty": m.get("warranty", ""),
            }
            for idx, m in enumerate(doc.get("materials") or [], start=1)
        ],
        "roi": {
            "energy_generation_per_year": format_inr(roi.get("energy_generation_per_year"), 0),
            "co2_savings_per_year": format_number(roi.get("co2_savings_per_year")),
            "payback_period_min": payback_min,
            "payback_period_max": payback_max,
            "total_savings_25_years": format_inr(roi.get("total_savings_25_years"), 0),
            "total_savings_lakh": format_lakh(roi.get("total_savings_25_years")),
            "trees_equivalent": format_inr(roi.get("trees_equivalent"), 0),
            "co2_eliminated_total": format_number(roi.get("co2_eliminated_total")),
        },
        "technical_summary": technical,
        "financial_summary": financial,
        "terms": _terms(doc.get("terms") or []),
    }
