# backend/app/rendering/pdf.py
from __future__ import annotations

import logging
from io import BytesIO
from typing import Any, Dict, List, Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import (
    Image,
    PageBreak,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from ..core.images import decode_data_uri

logger = logging.getLogger(__name__)

PAGE_W, PAGE_H = A4
MARGIN = 18 * mm
CONTENT_W = PAGE_W - 2 * MARGIN

PRIMARY = colors.HexColor("#0056b3")
ACCENT = colors.HexColor("#00a152")
DARK = colors.HexColor("#1f2937")
MUTED = colors.HexColor("#6b7280")
LIGHT = colors.HexColor("#f1f5f9")
BORDER = colors.HexColor("#d1d5db")

# Standart Helvetica'da ₹ glifi yok
CURRENCY = "Rs."


# ---------------------------
# Styles / small helpers
# ---------------------------
def _styles() -> Dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle("DocBody", parent=base["Normal"], fontName="Helvetica", fontSize=9.5, leading=13, textColor=DARK)
    return {
        "body": body,
        "small": ParagraphStyle("DocSmall", parent=body, fontSize=8, leading=10, textColor=MUTED),
        "right": ParagraphStyle("DocRight", parent=body, alignment=TA_RIGHT),
        "center": ParagraphStyle("DocCenter", parent=body, alignment=TA_CENTER),
        "brand": ParagraphStyle("DocBrand", parent=body, fontName="Helvetica-Bold", fontSize=16, leading=20, textColor=PRIMARY),
        "title": ParagraphStyle("DocTitle", parent=body, fontName="Helvetica-Bold", fontSize=18, leading=22, alignment=TA_RIGHT, textColor=DARK),
        "h2": ParagraphStyle("DocH2", parent=body, fontName="Helvetica-Bold", fontSize=13, leading=17, textColor=PRIMARY, spaceBefore=8, spaceAfter=6),
        "h3": ParagraphStyle("DocH3", parent=body, fontName="Helvetica-Bold", fontSize=10.5, leading=14, textColor=DARK, spaceBefore=6, spaceAfter=3),
        "cover": ParagraphStyle("DocCover", parent=body, fontName="Helvetica-Bold", fontSize=26, leading=32, alignment=TA_CENTER, textColor=PRIMARY),
        "quote": ParagraphStyle("DocQuote", parent=body, fontName="Helvetica-Oblique", fontSize=11, leading=15, alignment=TA_CENTER, textColor=DARK),
        "cell": ParagraphStyle("DocCell", parent=body, fontSize=8.5, leading=11),
        "cell_head": ParagraphStyle("DocCellHead", parent=body, fontName="Helvetica-Bold", fontSize=8.5, leading=11, textColor=colors.white),
    }


def _p(text: Any, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape(str(text or "")).replace("\n", "<br/>"), style)


def _money(value: str) -> str:
    return f"{CURRENCY} {value}"


def _image(data_uri: str, max_w: float, max_h: float) -> Optional[Image]:
    raw = decode_data_uri(data_uri)
    if not raw:
        return None
    try:
        reader = ImageReader(BytesIO(raw))
        w, h = reader.getSize()
        # yalnızca başlığı sağlam dosyalar çizimde patlar; burada tam decode
        reader.getRGBData()
    except (OSError, ValueError, SyntaxError):
        logger.warning("Skipping unreadable embedded image")
        return None
    ratio = min(max_w / w, max_h / h)
    return Image(BytesIO(raw), width=w * ratio, height=h * ratio)


def _grid_style(header_bg=PRIMARY) -> TableStyle:
    return TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), header_bg),
        ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, LIGHT]),
        ("TOPPADDING", (0, 0), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
    ])


def _bank_block(business: Dict[str, Any], st: Dict[str, ParagraphStyle]) -> Table:
    bank = business["bank_details"]
    rows = [
        ["Account Name", bank.get("account_name", "")],
        ["Bank", bank.get("bank_name", "")],
        ["Account No.", bank.get("account_number", "")],
        ["IFSC", bank.get("ifsc_code", "")],
    ]
    if bank.get("branch"):
        rows.append(["Branch", bank["branch"]])
    if business.get("gst_number"):
        rows.append(["GSTIN", business["gst_number"]])
    t = Table([[_p(k, st["cell"]), _p(v, st["cell"])] for k, v in rows], colWidths=[30 * mm, 60 * mm], hAlign="LEFT")
    t.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("BOX", (0, 0), (-1, -1), 0.5, BORDER),
        ("BACKGROUND", (0, 0), (-1, -1), LIGHT),
    ]))
    return t


def _signature_block(business: Dict[str, Any], st: Dict[str, ParagraphStyle]) -> List[Any]:
    out: List[Any] = [Spacer(1, 10 * mm)]
    sig = _image(business.get("signature", ""), 45 * mm, 20 * mm) if business.get("signature") else None
    if sig is not None:
        sig.hAlign = "RIGHT"
        out.append(sig)
    out.append(_p(f"For {business['business_name']}", st["right"]))
    out.append(_p("Authorized Signatory", st["right"]))
    return out


def _build(story: List[Any], title: str, author: str, on_page=None) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=(30 * mm) if on_page else MARGIN,
        bottomMargin=(20 * mm) if on_page else MARGIN,
        title=title,
        author=author,
    )
    if on_page:
        doc.build(story, onFirstPage=on_page, onLaterPages=on_page)
    else:
        doc.build(story)
    return buffer.getvalue()


# ---------------------------
# Quotation / Invoice
# ---------------------------
def _items_table(ctx: Dict[str, Any], st: Dict[str, ParagraphStyle]) -> Table:
    show_prices, show_tax = ctx["show_prices"], ctx["show_tax"]

    cols = [("#", 8 * mm), ("Item", None), ("Qty", 16 * mm), ("Unit", 14 * mm)]
    if show_prices:
        cols.append(("Price", 26 * mm))
    if show_tax:
        cols.append(("Tax %", 14 * mm))
    if show_prices:
        cols.append(("Amount", 28 * mm))
    fixed = sum(w for _, w in cols if w)
    widths = [w if w else CONTENT_W - fixed for _, w in cols]

    data = [[_p(name, st["cell_head"]) for name, _ in cols]]
    for it in ctx["items"]:
        name = escape(it["name"])
        if it["description"]:
            name += f'<br/><font size="7.5" color="#6b7280">{escape(it["description"])}</font>'
        row = [_p(it["no"], st["cell"]), Paragraph(name, st["cell"]), _p(it["quantity"], st["cell"]), _p(it["unit"], st["cell"])]
        if show_prices:
            row.append(_p(it["price"], st["cell"]))
        if show_tax:
            row.append(_p(it["tax_rate"], st["cell"]))
        if show_prices:
            row.append(_p(it["total"], st["cell"]))
        data.append(row)

    t = Table(data, colWidths=widths, repeatRows=1)
    t.setStyle(_grid_style())
    return t


def _totals_table(ctx: Dict[str, Any], st: Dict[str, ParagraphStyle]) -> Table:
    rows = [["Subtotal", _money(ctx["subtotal"])]]
    if ctx["show_tax"]:
        rows.append(["GST", _money(ctx["tax_amount"])])
    rows.append(["Total", _money(ctx["total"])])
    t = Table(rows, colWidths=[35 * mm, 40 * mm], hAlign="RIGHT")
    t.setStyle(TableStyle([
        ("ALIGN", (1, 0), (1, -1), "RIGHT"),
        ("FONTNAME", (0, -1), (-1, -1), "Helvetica-Bold"),
        ("LINEABOVE", (0, -1), (-1, -1), 1, DARK),
        ("FONTSIZE", (0, 0), (-1, -1), 9.5),
    ]))
    return t


def _document_header(ctx: Dict[str, Any], st: Dict[str, ParagraphStyle]) -> Table:
    business = ctx["business"]
    left: List[Any] = []
    logo = _image(business["logo"], 30 * mm, 30 * mm) if business.get("logo") else None
    if logo is not None:
        logo.hAlign = "LEFT"
        left.append(logo)
    left.append(_p(business["business_name"], st["brand"]))
    for line in business["address_lines"]:
        left.append(_p(line, st["small"]))
    contact = " | ".join(v for v in (business.get("phone"), business.get("email")) if v)
    if contact:
        left.append(_p(contact, st["small"]))
    if business.get("gst_number"):
        left.append(_p(f"GSTIN: {business['gst_number']}", st["small"]))

    right = [
        _p(ctx["title"], st["title"]),
        _p(f"No: {ctx['number']}", st["right"]),
        _p(f"Date: {ctx['date']}", st["right"]),
    ]
    if ctx["secondary_date"]:
        right.append(_p(f"{ctx['secondary_date_label']}: {ctx['secondary_date']}", st["right"]))

    t = Table([[left, right]], colWidths=[CONTENT_W * 0.6, CONTENT_W * 0.4])
    t.setStyle(TableStyle([("VALIGN", (0, 0), (-1, -1), "TOP")]))
    return t


def render_document_pdf(ctx: Dict[str, Any]) -> bytes:
    """Tek sayfalık kalem tablosu; teklifte ek olarak "Our Work" galerisi."""
    st = _styles()
    business = ctx["business"]
    customer = ctx["customer"]

    story: List[Any] = [_document_header(ctx, st), Spacer(1, 6 * mm)]

    story.append(_p("Bill To", st["h3"]))
    story.append(_p(customer["name"], st["body"]))
    for line in customer["address_lines"]:
        story.append(_p(line, st["small"]))
    for v in (customer["phone"], customer["email"]):
        if v:
            story.append(_p(v, st["small"]))
    story.append(Spacer(1, 5 * mm))

    story.append(_items_table(ctx, st))
    story.append(Spacer(1, 4 * mm))
    story.append(_totals_table(ctx, st))

    if ctx["notes"]:
        story += [_p("Notes", st["h3"]), _p(ctx["notes"], st["body"])]
    if ctx["terms"]:
        story += [_p("Terms & Conditions", st["h3"]), _p(ctx["terms"], st["body"])]

    story += [_p("Bank Details", st["h3"]), _bank_block(business, st)]
    story += _signature_block(business, st)

    images = [img for img in (_image(u, 52 * mm, 52 * mm) for u in ctx.get("brand_images") or []) if img is not None]
    if images:
        story += [PageBreak(), _p("Our Work", st["h2"])]
        rows = [images[i:i + 3] for i in range(0, len(images), 3)]
        rows[-1] += [""] * (3 - len(rows[-1]))
        grid = Table(rows, colWidths=[CONTENT_W / 3] * 3)
        grid.setStyle(TableStyle([
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]))
        story.append(grid)

    return _build(story, f"{ctx['title']} {ctx['number']}", business["business_name"])


# ---------------------------
# Proposal (5 sayfa)
# ---------------------------
def _proposal_decorator(ctx: Dict[str, Any]):
    business = ctx["business"]

    def _draw(c, d) -> None:
        c.saveState()
        top = PAGE_H - 12 * mm
        x0, x1 = d.leftMargin, PAGE_W - d.rightMargin

        c.setFont("Helvetica-Bold", 14)
        c.setFillColor(PRIMARY)
        c.drawString(x0, top - 4 * mm, business["business_name"])
        c.setFont("Helvetica-Oblique", 9)
        c.setFillColor(MUTED)
        c.drawString(x0, top - 9 * mm, business["tagline"])
        if business.get("phone"):
            c.setFont("Helvetica", 9)
            c.drawRightString(x1, top - 4 * mm, business["phone"])

        c.setStrokeColor(ACCENT)
        c.setLineWidth(1.5)
        c.line(x0, PAGE_H - d.topMargin + 3 * mm, x1, PAGE_H - d.topMargin + 3 * mm)

        c.setStrokeColor(BORDER)
        c.setLineWidth(0.5)
        c.line(x0, 14 * mm, x1, 14 * mm)
        c.setFont("Helvetica", 8)
        c.setFillColor(MUTED)
        c.drawString(x0, 9 * mm, business.get("website") or "")
        c.drawCentredString(PAGE_W / 2, 9 * mm, f"Page {d.page:02d}")
        c.drawRightString(x1, 9 * mm, business.get("email") or "")
        c.restoreState()

    return _draw


def _cover_page(ctx, st) -> List[Any]:
    business = ctx["business"]
    out: List[Any] = []
    logo = _image(business["logo"], 40 * mm, 40 * mm) if business.get("logo") else None
    if logo is not None:
        out += [logo, Spacer(1, 6 * mm)]
    out += [
        Spacer(1, 10 * mm),
        _p("Project Proposal", st["cover"]),
        Spacer(1, 4 * mm),
        _p('"Let The Sun Pay Your Bills"', st["quote"]),
        Spacer(1, 12 * mm),
        _p("Project Proposal for,", st["center"]),
        _p(ctx["client_name"], ParagraphStyle("CoverClient", parent=st["cover"], fontSize=20, leading=26, textColor=DARK)),
        Spacer(1, 10 * mm),
        _p(
            "Thank you for giving an opportunity to work with you. Following our recent discussion, "
            "we have prepared a well-structured, competitive, and attractive proposal tailored to your requirements.",
            st["center"],
        ),
        Spacer(1, 10 * mm),
    ]
    specs = Table(
        [
            ["Plant Capacity", f"{ctx['plant_capacity']} kW"],
            ["System Type", ctx["system_type"]],
            ["Roof Type", ctx["roof_type"]],
            ["Location", ctx["project_location"]],
            ["Proposal No.", ctx["proposal_number"]],
            ["Date", ctx["date"]],
            ["Valid Until", ctx["valid_until"]],
        ],
        colWidths=[45 * mm, 80 * mm],
    )
    specs.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("BOX", (0, 0), (-1, -1), 0.8, PRIMARY),
        ("INNERGRID", (0, 0), (-1, -1), 0.3, BORDER),
        ("BACKGROUND", (0, 0), (0, -1), LIGHT),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]))
    out.append(specs)
    return out


def _pricing_page(ctx, st) -> List[Any]:
    head = [_p(h, st["cell_head"]) for h in ("Description", "Price Per kW", f"Amount ({CURRENCY})")]
    rows = [
        head,
        [
            _p(
                f"Design, Supply, Installation & commissioning of {ctx['plant_capacity']}KW Solar panels "
                f"({ctx['roof_type']}) including all materials, labour and tools.",
                st["cell"],
            ),
            _p(_money(ctx["price_per_kw"]), st["cell"]),
            _p(_money(ctx["amount"]), st["cell"]),
        ],
        ["", _p(f"GST ({ctx['gst_rate']}%)", st["cell"]), _p(_money(ctx["gst_amount"]), st["cell"])],
        ["", Paragraph("<b>TOTAL PROJECT COST</b>", st["cell"]), Paragraph(f"<b>{escape(_money(ctx['total_amount']))}</b>", st["cell"])],
    ]
    pricing = Table(rows, colWidths=[CONTENT_W * 0.55, CONTENT_W * 0.2, CONTENT_W * 0.25])
    pricing.setStyle(_grid_style())

    out: List[Any] = [
        _p(f"Investment Proposal: {ctx['roof_type']}", st["h2"]),
        pricing,
        Spacer(1, 8 * mm),
        _p("Payment Schedule", st["h3"]),
        Paragraph(f"<b>{ctx['advance_percent']}% Advance</b> along with order confirmation", st["body"]),
        Paragraph(f"<b>{ctx['balance_percent']}% Balance</b> after installation completion", st["body"]),
    ]
    if ctx["payment_terms_notes"]:
        out.append(_p(f"* {ctx['payment_terms_notes']}", st["small"]))
    out += [Spacer(1, 6 * mm), _p("Account Details", st["h3"]), _bank_block(ctx["business"], st)]
    return out


def _materials_page(ctx, st) -> List[Any]:
    data = [[_p(h, st["cell_head"]) for h in ("#", "Component", "Specification", "Warranty")]]
    for m in ctx["materials"]:
        data.append([
            _p(m["no"], st["cell"]),
            _p(m["description"], st["cell"]),
            _p(m["specification"], st["cell"]),
            _p(m["warranty"], st["cell"]),
        ])
    if len(data) == 1:
        data.append(["", _p("To be finalised on order confirmation", st["cell"]), "", ""])
    t = Table(data, colWidths=[10 * mm, CONTENT_W * 0.32, CONTENT_W * 0.38, CONTENT_W * 0.30 - 10 * mm], repeatRows=1)
    t.setStyle(_grid_style())
    return [_p("Bill of Materials", st["h2"]), t]


def _roi_page(ctx, st) -> List[Any]:
    roi = ctx["roi"]
    rows = [
        ["Annual Generation", f"{roi['energy_generation_per_year']} kWh/year"],
        ["Annual CO2 Avoided", f"{roi['co2_savings_per_year']} tonnes"],
        ["Payback Period", f"{roi['payback_period_min']} to {roi['payback_period_max']} years"],
        ["Total Financial Savings For 22 years", f"{CURRENCY} {roi['total_savings_25_years']} ({roi['total_savings_lakh']} L)"],
        ["Planted Around", f"{roi['trees_equivalent']} Trees"],
        ["CO2 Eliminated", f"{roi['co2_eliminated_total']} Tons"],
    ]
    t = Table([[_p(k, st["cell"]), _p(v, st["cell"])] for k, v in rows], colWidths=[CONTENT_W * 0.55, CONTENT_W * 0.45])
    t.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 0.5, BORDER),
        ("ROWBACKGROUNDS", (0, 0), (-1, -1), [colors.white, LIGHT]),
        ("TOPPADDING", (0, 0), (-1, -1), 6),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
    ]))
    name = ctx["business"]["business_name"]
    return [
        _p("Financial & Environmental Impact", st["h2"]),
        _p("Technical & Environmental :", st["h3"]),
        _p(ctx["technical_summary"], st["body"]),
        _p("Financial summary :", st["h3"]),
        _p(ctx["financial_summary"], st["body"]),
        Spacer(1, 4 * mm),
        _p("Return On Investment (ROI)", st["h3"]),
        t,
        Spacer(1, 10 * mm),
        _p(f'"Eliminate your EB bills with {name} and start saving from day one."', st["quote"]),
        _p('"Invest once, enjoy free electricity for 25+ years."', st["quote"]),
    ]


def _terms_page(ctx, st) -> List[Any]:
    bullet = ParagraphStyle("TermBullet", parent=st["body"], leftIndent=12, spaceAfter=4)
    sub = ParagraphStyle("TermSub", parent=st["body"], leftIndent=28, spaceAfter=2)
    out: List[Any] = [_p("TERMS AND CONDITIONS", st["h2"])]
    for term in ctx["terms"]:
        out.append(Paragraph(escape(term["text"]), bullet, bulletText="•"))
        for line in term["sub"]:
            out.append(_p(line, sub))
    out += [
        Spacer(1, 14 * mm),
        Paragraph("<b>Thank you,</b>", st["center"]),
        _p("Awaiting your favorable order", st["center"]),
    ]
    out += _signature_block(ctx["business"], st)
    return out


def render_proposal_pdf(ctx: Dict[str, Any]) -> bytes:
    """
    Beş sayfa: kapak, fiyat/ödeme/banka, malzeme listesi, ROI, şartlar.
    Her sayfaya üst bilgi ve alt bilgi canvas üzerinden çizilir.
    """
    st = _styles()
    pages = [_cover_page, _pricing_page, _materials_page, _roi_page, _terms_page]
    story: List[Any] = []
    for i, page in enumerate(pages):
        if i:
            story.append(PageBreak())
        story += page(ctx, st)
    return _build(
        story,
        f"Proposal {ctx['proposal_number']}",
        ctx["business"]["business_name"],
        on_page=_proposal_decorator(ctx),
    )
