"""Order invoice as a PDF.

Smartphone lines (EUR) and all other lines (MKD) are printed in separate
sections with their own total; amounts in different currencies are never
added together.
"""
from decimal import Decimal

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from poscrm.core_settings import Settings
from poscrm.domain.models import EUR, MKD

SECTION_TITLES = {
    EUR: "EUR Products (Smartphones)",
    MKD: "MKD Products (Accessories)",
}

# (header, width in mm); A4 minus the default 10 mm margins is 190 mm
COLUMNS = (("Product", 65), ("Details", 45), ("Qty", 15), ("Price", 30), ("Total", 35))

ROW_HEIGHT = 7


def _text(value) -> str:
    # Core PDF fonts are latin-1 only
    return str(value if value is not None else "").encode("latin-1", "replace").decode("latin-1")


def _money(amount: Decimal, currency: str) -> str:
    return f"{amount:.2f} {currency}"


def _line(pdf: FPDF, text, height: float = 6, align: str = "L") -> None:
    pdf.cell(0, height, _text(text), align=align, new_x=XPos.LMARGIN, new_y=YPos.NEXT)


def display_name(item: dict) -> str:
    if item.get("subcategory") and item.get("model"):
        return f"{item['subcategory']} / {item['model']}"
    return item["product_name"]


def details(item: dict) -> str:
    parts = [p for p in (item.get("storage_gb"), item.get("color")) if p]
    return " / ".join(parts) if parts else "-"


def bill_to(order: dict) -> list[str]:
    if order.get("client_name"):
        lines = [order["client_name"], order.get("client_email")]
    else:
        lines = [order.get("guest_name"), order.get("guest_email"), order.get("guest_phone")]
    return [line for line in lines if line]


def render_invoice(order: dict, settings: Settings) -> bytes:
    """Render an order as returned by ``OrderService.get``."""
    pdf = FPDF(format="A4")
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    pdf.set_font("Helvetica", "B", 24)
    _line(pdf, "INVOICE", height=14, align="C")
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 14)
    _line(pdf, settings.COMPANY_NAME, height=8)
    pdf.set_font("Helvetica", "", 10)
    for value in (
        settings.COMPANY_ADDRESS,
        settings.COMPANY_CITY_STATE,
        f"Phone: {settings.COMPANY_PHONE}" if settings.COMPANY_PHONE else None,
        f"Email: {settings.COMPANY_EMAIL}" if settings.COMPANY_EMAIL else None,
    ):
        if value:
            _line(pdf, value)
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 12)
    _line(pdf, "INVOICE DETAILS", height=8)
    pdf.set_font("Helvetica", "", 10)
    _line(pdf, f"Invoice #: {order['id']}")
    _line(pdf, f"Date: {(order.get('created_at') or '')[:10]}")
    _line(pdf, f"Status: {order['status'].upper()}")
    pdf.ln(4)

    pdf.set_font("Helvetica", "B", 12)
    _line(pdf, "BILL TO:", height=8)
    pdf.set_font("Helvetica", "", 10)
    for value in bill_to(order):
        _line(pdf, value)
    pdf.ln(6)

    pdf.set_font("Helvetica", "B", 10)
    pdf.set_fill_color(243, 244, 246)
    for header, width in COLUMNS:
        pdf.cell(width, ROW_HEIGHT + 1, header, border=1, fill=True)
    pdf.ln(ROW_HEIGHT + 1)

    totals = {}
    for currency in (EUR, MKD):
        items = [i for i in order["items"] if i["currency"] == currency]
        if not items:
            continue
        pdf.set_font("Helvetica", "B", 10)
        _line(pdf, SECTION_TITLES[currency], height=ROW_HEIGHT + 1)
        pdf.set_font("Helvetica", "", 10)
        total = Decimal("0")
        for item in items:
            price = Decimal(str(item["price"]))
            line_total = price * item["quantity"]
            total += line_total
            values = (display_name(item), details(item), item["quantity"],
                      _money(price, currency), _money(line_total, currency))
            for (_, width), value in zip(COLUMNS, values):
                pdf.cell(width, ROW_HEIGHT, _text(value), border="B")
            pdf.ln(ROW_HEIGHT)
        totals[currency] = total
        pdf.ln(2)

    pdf.ln(4)
    pdf.set_font("Helvetica", "B", 12)
    for currency, total in totals.items():
        _line(pdf, f"Total {currency}: {_money(total, currency)}", height=8, align="R")

    pdf.ln(10)
    pdf.set_font("Helvetica", "", 10)
    _line(pdf, "Thank you for your business!", align="C")

    return bytes(pdf.output())
