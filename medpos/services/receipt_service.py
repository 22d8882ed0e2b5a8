"""
Receipt PDF generation for completed sales.

The layout is built with reportlab's platypus flowables, so long orders
spill onto extra pages on their own.
"""
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from medpos.config import get_settings
from medpos.core.dates import as_utc, utcnow
from medpos.core.money import format_money, round_money
from medpos.models.order import Order

_ITEM_COLUMNS = [2.6 * inch, 0.6 * inch, 1.0 * inch, 0.8 * inch, 1.2 * inch]


def _styles():
    styles = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReceiptTitle",
            parent=styles["Heading1"],
            fontSize=20,
            textColor=colors.HexColor("#1a56db"),
            alignment=TA_CENTER,
            spaceAfter=6,
        ),
        "heading": ParagraphStyle(
            "ReceiptHeading",
            parent=styles["Heading2"],
            fontSize=12,
            textColor=colors.HexColor("#1f2937"),
            spaceAfter=4,
        ),
        "normal": ParagraphStyle(
            "ReceiptNormal",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#374151"),
        ),
        "center": ParagraphStyle(
            "ReceiptCenter",
            parent=styles["Normal"],
            fontSize=9,
            alignment=TA_CENTER,
        ),
        "footer": ParagraphStyle(
            "ReceiptFooter",
            parent=styles["Normal"],
            fontSize=8,
            textColor=colors.grey,
            alignment=TA_CENTER,
        ),
    }


def _store_header(settings, styles):
    lines = [f"<b>{escape(settings.STORE_NAME)}</b>"]
    for value in (settings.STORE_ADDRESS, settings.STORE_PHONE, settings.STORE_EMAIL):
        if value:
            lines.append(escape(value))
    return [
        Paragraph("SALES RECEIPT", styles["title"]),
        Paragraph("<br/>".join(lines), styles["center"]),
        Spacer(1, 0.25 * inch),
    ]


def _order_details(order: Order, styles):
    created_at = as_utc(order.created_at) or utcnow()
    left = (
        f"<b>Order #:</b> {escape(order.order_number)}<br/>"
        f"<b>Date:</b> {created_at.strftime('%d %b %Y, %I:%M %p')}<br/>"
        f"<b>Status:</b> {escape(order.status.upper())}"
    )
    right = f"<b>Customer:</b> {escape(order.customer_name or '')}"
    if order.customer_phone:
        right += f"<br/><b>Phone:</b> {escape(order.customer_phone)}"
    table = Table(
        [[Paragraph(left, styles["normal"]), Paragraph(right, styles["normal"])]],
        colWidths=[3.3 * inch, 2.9 * inch],
    )
    table.setStyle(
        TableStyle(
            [
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 4),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 4),
            ]
        )
    )
    return [table, Spacer(1, 0.2 * inch)]


def _items_table(order: Order, symbol: str):
    data = [["Item", "Qty", "Rate", "Disc %", "Total"]]
    for item in order.items:
        label = item.name
        if item.manufacturer:
            label = f"{item.name} ({item.manufacturer})"
        data.append(
            [
                label,
                str(item.quantity),
                format_money(item.retail_price, symbol),
                f"{round_money(item.discount_percent)}",
                format_money(item.total_price, symbol),
            ]
        )
    table = Table(data, colWidths=_ITEM_COLUMNS, repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#f3f4f6")),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 9),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#fafafa")]),
                ("TOPPADDING", (0, 0), (-1, -1), 5),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
            ]
        )
    )
    return [table, Spacer(1, 0.15 * inch)]


def _totals_table(order: Order, symbol: str):
    data = [
        ["", "Subtotal:", format_money(order.subtotal, symbol)],
        ["", f"Tax ({round_money(order.tax_percent)}%):", format_money(order.tax_amount, symbol)],
        ["", "Discount:", "-" + format_money(order.discount_amount, symbol)],
        ["", "GRAND TOTAL:", format_money(order.total, symbol)],
        ["", "Payment:", (order.payment_method or "").upper()],
    ]
    table = Table(data, colWidths=[3.2 * inch, 1.5 * inch, 1.5 * inch])
    table.setStyle(
        TableStyle(
            [
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("FONTNAME", (1, 3), (-1, 3), "Helvetica-Bold"),
                ("LINEABOVE", (1, 3), (-1, 3), 1, colors.black),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
            ]
        )
    )
    return [table, Spacer(1, 0.4 * inch)]


def generate_receipt_pdf(order: Order) -> BytesIO:
    """
    Render a receipt for ``order``.

    Returns:
        BytesIO buffer positioned at the start of the PDF data
    """
    settings = get_settings()
    symbol = settings.CURRENCY_SYMBOL
    styles = _styles()

    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        topMargin=0.5 * inch,
        bottomMargin=0.5 * inch,
        title=f"Receipt {order.order_number}",
    )

    elements = []
    elements.extend(_store_header(settings, styles))
    elements.extend(_order_details(order, styles))
    elements.extend(_items_table(order, symbol))
    elements.extend(_totals_table(order, symbol))
    elements.append(Paragraph("Thank you for your purchase!", styles["footer"]))
    elements.append(
        Paragraph(
            f"Receipt generated on {utcnow().strftime('%d %b %Y at %I:%M %p')} UTC",
            styles["footer"],
        )
    )

    doc.build(elements)
    buffer.seek(0)
    return buffer
