# medistock/utils/receipt_pdf.py
"""
Reservation and delivery receipts rendered with reportlab.
The engine supplies plain dicts; nothing here reads the database.
"""

import json
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.graphics import renderSVG
from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

BRAND = "MEDISTOCK"

ITEM_TABLE_STYLE = TableStyle(
    [
        ("BACKGROUND", (0, 0), (-1, 0), colors.grey),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.whitesmoke),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("BOTTOMPADDING", (0, 0), (-1, 0), 8),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 1), (-1, -1), 9),
        ("GRID", (0, 0), (-1, -1), 1, colors.black),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 1), (-1, -1), 4),
        ("BOTTOMPADDING", (0, 1), (-1, -1), 4),
    ]
)

INFO_TABLE_STYLE = TableStyle(
    [
        ("FONTNAME", (0, 0), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
        ("ALIGN", (0, 0), (-1, -1), "LEFT"),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
    ]
)


def qr_payload(code: str) -> str:
    return json.dumps({"code": code})


def build_qr_drawing(payload: str, size: float = 40 * mm) -> Drawing:
    widget = QrCodeWidget(payload)
    x1, y1, x2, y2 = widget.getBounds()
    width, height = x2 - x1, y2 - y1
    drawing = Drawing(size, size, transform=[size / width, 0, 0, size / height, 0, 0])
    drawing.add(widget)
    return drawing


def generate_qr_svg(code: str) -> str:
    """SVG markup of the QR code a terminal scans to redeem ``code``."""
    return renderSVG.drawToString(build_qr_drawing(qr_payload(code)))


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    return {
        "title": ParagraphStyle(
            "ReceiptTitle",
            parent=base["Heading1"],
            fontSize=20,
            alignment=TA_CENTER,
            spaceAfter=4,
            fontName="Helvetica-Bold",
        ),
        "subtitle": ParagraphStyle(
            "ReceiptSubtitle",
            parent=base["Heading2"],
            fontSize=14,
            alignment=TA_CENTER,
            spaceAfter=8,
        ),
        "heading": ParagraphStyle(
            "ReceiptHeading",
            parent=base["Heading2"],
            fontSize=12,
            spaceAfter=4,
            fontName="Helvetica-Bold",
        ),
        "normal": ParagraphStyle("ReceiptNormal", parent=base["Normal"], fontSize=10, spaceAfter=4),
        "small": ParagraphStyle(
            "ReceiptSmall",
            parent=base["Normal"],
            fontSize=8,
            alignment=TA_CENTER,
            spaceAfter=2,
        ),
    }


def _new_document(buffer: BytesIO) -> SimpleDocTemplate:
    return SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=20 * mm,
        leftMargin=20 * mm,
        topMargin=15 * mm,
        bottomMargin=10 * mm,
    )


def _info_table(rows: list[list[str]]) -> Table:
    table = Table(rows, colWidths=[50 * mm, 120 * mm])
    table.setStyle(INFO_TABLE_STYLE)
    return table


def generate_reservation_pdf(data: dict) -> BytesIO:
    """
    Reservation receipt: pickup code + QR, validity, patient, pickup point, items.

    Expected keys: code, created_at, expires_at, patient_name, patient_cc,
    patient_phone, dispenser_name, dispenser_location, lat, lng,
    items [{label, units}], total_units, ttl_hours.
    """
    buffer = BytesIO()
    doc = _new_document(buffer)
    styles = _styles()
    elements = [
        Paragraph(BRAND, styles["title"]),
        Paragraph("Reservation Receipt", styles["subtitle"]),
        Paragraph(f"PICKUP CODE: <b>{escape(data.get('code') or 'N/A')}</b>", styles["subtitle"]),
        build_qr_drawing(qr_payload(data.get("code", ""))),
        Spacer(1, 4 * mm),
        _info_table(
            [
                ["Reserved at:", data.get("created_at") or "N/A"],
                ["Valid until:", data.get("expires_at") or "N/A"],
            ]
        ),
        Spacer(1, 4 * mm),
        Paragraph("Patient", styles["heading"]),
        _info_table(
            [
                ["Name:", data.get("patient_name") or "N/A"],
                ["Document:", data.get("patient_cc") or "N/A"],
                ["Phone:", data.get("patient_phone") or "N/A"],
            ]
        ),
        Spacer(1, 4 * mm),
        Paragraph("Pickup point", styles["heading"]),
    ]

    pickup_rows = [
        ["Dispenser:", data.get("dispenser_name") or "N/A"],
        ["Location:", data.get("dispenser_location") or "N/A"],
    ]
    if data.get("lat") is not None and data.get("lng") is not None:
        pickup_rows.append(["Coordinates:", f"{data['lat']:.4f}, {data['lng']:.4f}"])
    elements.append(_info_table(pickup_rows))
    elements.append(Spacer(1, 4 * mm))

    elements.append(Paragraph("Reserved medicines", styles["heading"]))
    item_rows = [["#", "Medicine", "Units"]]
    for index, item in enumerate(data.get("items", []), start=1):
        item_rows.append([str(index), item.get("label") or "N/A", str(item.get("units", 0))])
    item_rows.append(["", "TOTAL", str(data.get("total_units", 0))])
    items_table = Table(item_rows, colWidths=[10 * mm, 130 * mm, 30 * mm])
    items_table.setStyle(ITEM_TABLE_STYLE)
    elements.append(items_table)

    elements.append(Spacer(1, 8 * mm))
    elements.append(Paragraph("1. Go to the dispenser shown above.", styles["small"]))
    elements.append(Paragraph("2. Enter or scan the pickup code at the terminal.", styles["small"]))
    elements.append(
        Paragraph(
            f"3. The code is valid for {data.get('ttl_hours', 24)} hours from the reservation.",
            styles["small"],
        )
    )

    doc.build(elements)
    buffer.seek(0)
    return buffer


def generate_delivery_pdf(data: dict) -> BytesIO:
    """
    Delivery receipt with what was handed over, what is still pending and
    where the pending medicines are in stock.

    Expected keys: delivered_at, patient_name, patient_cc, dispenser_name,
    dispenser_location, delivered [{label, units}],
    pending [{label, rx_number, pending, max_units}],
    alternatives {medicine label: [{dispenser_name, location, stock}]}.
    """
    buffer = BytesIO()
    doc = _new_document(buffer)
    styles = _styles()
    elements = [
        Paragraph(BRAND, styles["title"]),
        Paragraph("Delivery Receipt", styles["subtitle"]),
        _info_table(
            [
                ["Delivered at:", data.get("delivered_at") or "N/A"],
                ["Patient:", data.get("patient_name") or "N/A"],
                ["Document:", data.get("patient_cc") or "N/A"],
                ["Dispenser:", data.get("dispenser_name") or "N/A"],
                ["Location:", data.get("dispenser_location") or "N/A"],
            ]
        ),
        Spacer(1, 4 * mm),
        Paragraph("Delivered medicines", styles["heading"]),
    ]

    delivered = data.get("delivered", [])
    if delivered:
        rows = [["Medicine", "Units"]] + [[d.get("label") or "N/A", str(d.get("units", 0))] for d in delivered]
        table = Table(rows, colWidths=[140 * mm, 30 * mm])
        table.setStyle(ITEM_TABLE_STYLE)
        elements.append(table)
    else:
        elements.append(Paragraph("No medicines were delivered in this transaction.", styles["normal"]))
    elements.append(Spacer(1, 4 * mm))

    elements.append(Paragraph("Pending medicines", styles["heading"]))
    pending = data.get("pending", [])
    if pending:
        rows = [["Medicine", "Prescription", "Pending"]]
        for p in pending:
            rows.append(
                [p.get("label") or "N/A", p.get("rx_number") or "-", f"{p.get('pending', 0)} of {p.get('max_units', 0)}"]
            )
        table = Table(rows, colWidths=[100 * mm, 35 * mm, 35 * mm])
        table.setStyle(ITEM_TABLE_STYLE)
        elements.append(table)
    else:
        elements.append(Paragraph("You have no pending medicines on your prescriptions.", styles["normal"]))

    alternatives = data.get("alternatives", {})
    if alternatives:
        elements.append(Spacer(1, 4 * mm))
        elements.append(Paragraph("Where to pick up pending medicines", styles["heading"]))
        for label, options in alternatives.items():
            elements.append(Paragraph(f"<b>{escape(label)}</b>", styles["normal"]))
            for option in options:
                elements.append(
                    Paragraph(
                        f"{escape(option.get('dispenser_name') or 'N/A')} - {escape(option.get('location') or 'N/A')}: "
                        f"{option.get('stock', 0)} units available",
                        styles["normal"],
                    )
                )

    elements.append(Spacer(1, 8 * mm))
    elements.append(Paragraph("This receipt certifies delivery of the medicines listed above.", styles["small"]))
    elements.append(
        Paragraph("Pending medicines can be reserved at any dispenser with available stock.", styles["small"])
    )

    doc.build(elements)
    buffer.seek(0)
    return buffer
