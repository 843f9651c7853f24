"""ReportLab Membership Card Rendering

Implements CardDocumentService using ReportLab.
"""

import json
from io import BytesIO

from reportlab.graphics.barcode.qr import QrCodeWidget
from reportlab.graphics.shapes import Drawing
from reportlab.lib import colors
from reportlab.lib.pagesizes import A6, landscape
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import mm
from reportlab.platypus import (
    SimpleDocTemplate,
    Table,
    TableStyle,
    Paragraph,
    Spacer,
)

from src.app.services.card_document_service import CardDocumentService
from src.domain.membership_card import MembershipCard
from src.domain.subscription import Subscription

QR_SIZE = 32 * mm


def _qr_drawing(payload: str, size: float = QR_SIZE) -> Drawing:
    widget = QrCodeWidget(payload)
    x1, y1, x2, y2 = widget.getBounds()
    drawing = Drawing(size, size, transform=[size / (x2 - x1), 0, 0, size / (y2 - y1), 0, 0])
    drawing.add(widget)
    return drawing


class ReportLabCardDocumentService(CardDocumentService):
    """
    ReportLab implementation of CardDocumentService

    Renders a one-page landscape A6 card: header, holder details on the
    left and the QR payload on the right.
    """

    def render_card(
        self,
        card: MembershipCard,
        subscription: Subscription,
        organization_name: str = "Elverra Global",
    ) -> bytes:
        buffer = BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=landscape(A6),
            rightMargin=6 * mm,
            leftMargin=6 * mm,
            topMargin=6 * mm,
            bottomMargin=6 * mm,
            title=card.card_identifier,
        )

        styles = getSampleStyleSheet()
        title_style = ParagraphStyle(
            "CardTitle",
            parent=styles["Heading2"],
            fontSize=14,
            spaceAfter=2,
            textColor=colors.HexColor("#1B4F72"),
        )
        kind_style = ParagraphStyle(
            "CardKind",
            parent=styles["Normal"],
            fontSize=9,
            textColor=colors.HexColor("#CA6F1E"),
        )
        footer_style = ParagraphStyle(
            "CardFooter",
            parent=styles["Normal"],
            fontSize=7,
            textColor=colors.HexColor("#7F8C8D"),
        )

        lifecycle = subscription.get_lifecycle()
        kind_label = "CARTE ENFANT" if subscription.is_child else "CARTE MEMBRE"
        if lifecycle.product_name:
            kind_label = f"{kind_label} - {lifecycle.product_name}"

        elements = [
            Paragraph(organization_name, title_style),
            Paragraph(kind_label, kind_style),
            Spacer(1, 3 * mm),
        ]

        details = [
            ["Titulaire :", card.holder_full_name],
            ["Carte N° :", card.card_identifier],
            ["Ville :", card.holder_city or "-"],
            ["Émise le :", card.issued_at.strftime("%d/%m/%Y")],
            ["Expire le :", card.card_expiry_date.strftime("%d/%m/%Y")],
            ["Statut :", card.status.value.upper()],
        ]
        details_table = Table(details, colWidths=[20 * mm, 48 * mm])
        details_table.setStyle(
            TableStyle(
                [
                    ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                    ("FONTSIZE", (0, 0), (-1, -1), 8),
                    ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor("#7F8C8D")),
                    ("VALIGN", (0, 0), (-1, -1), "TOP"),
                    ("BOTTOMPADDING", (0, 0), (-1, -1), 2),
                ]
            )
        )

        qr_payload = json.dumps(card.qr_data, separators=(",", ":"), sort_keys=True)
        layout = Table(
            [[details_table, _qr_drawing(qr_payload)]],
            colWidths=[70 * mm, _remaining_width(doc.width, 70 * mm)],
        )
        layout.setStyle(
            TableStyle(
                [
                    ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                    ("ALIGN", (1, 0), (1, 0), "CENTER"),
                    ("BOX", (0, 0), (-1, -1), 0.75, colors.HexColor("#1B4F72")),
                ]
            )
        )
        elements.append(layout)
        elements.append(Spacer(1, 2 * mm))
        elements.append(Paragraph(card.qr_code, footer_style))

        doc.build(elements)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        return pdf_bytes


def _remaining_width(total: float, used: float) -> float:
    return max(total - used, QR_SIZE + 4 * mm)
