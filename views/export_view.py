import html
import io
import logging
from datetime import datetime
from typing import Callable, Optional

import streamlit as st
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import Image, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from use_cases.domain_models import Suggestion

log = logging.getLogger(__name__)

MAX_PDF_IMAGES = 3
IMAGE_WIDTH = 12 * cm


def pdf_filename(suggestion: Suggestion) -> str:
    return f"sugerencia_{suggestion.id[:8]}.pdf"


def _image_flowable(content: bytes) -> Image:
    reader = ImageReader(io.BytesIO(content))
    width, height = reader.getSize()
    scaled_height = IMAGE_WIDTH * height / float(width)
    return Image(io.BytesIO(content), width=IMAGE_WIDTH, height=scaled_height)


def build_suggestion_pdf(
    suggestion: Suggestion,
    fetch_image: Optional[Callable[[str], Optional[bytes]]] = None,
) -> bytes:
    """Render a single suggestion as a one-report PDF.

    ``fetch_image`` returns the bytes for an image URL or None; images that
    cannot be fetched or decoded are skipped.
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=1.5 * cm,
        leftMargin=1.5 * cm,
        topMargin=1.5 * cm,
        bottomMargin=1.5 * cm,
    )

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        'ReportTitle',
        parent=styles['Heading1'],
        fontSize=20,
        textColor=colors.HexColor('#1e5631'),
        spaceAfter=6,
    )
    small_style = ParagraphStyle(
        'ReportSmall',
        parent=styles['Normal'],
        fontSize=9,
        textColor=colors.HexColor('#718096'),
    )
    cell_style = ParagraphStyle('ReportCell', parent=styles['Normal'], fontSize=10)

    content = [
        Paragraph("Reporte de Sugerencia", title_style),
        Paragraph(f"Generado: {datetime.now().strftime('%d/%m/%Y')}", small_style),
        Spacer(1, 14),
    ]

    created = suggestion.created_at[:10] if suggestion.created_at else "-"
    rows = [
        ["Estado", suggestion.status.label],
        ["Fecha", created],
        ["Zona", suggestion.zona or "-"],
        ["Área", suggestion.area_name or "-"],
        ["Usuario", suggestion.reporter or "-"],
        ["Email", suggestion.email or "-"],
        ["Descripción", Paragraph(html.escape(suggestion.descripcion or "-"), cell_style)],
    ]
    table = Table(rows, colWidths=[4 * cm, 13 * cm])
    table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (0, -1), colors.HexColor('#e2efe6')),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (1, 0), (1, -1), 'Helvetica'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#cbd5e0')),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('TOPPADDING', (0, 0), (-1, -1), 6),
        ('BOTTOMPADDING', (0, 0), (-1, -1), 6),
    ]))
    content.append(table)

    images = []
    if fetch_image is not None:
        for url in suggestion.images[:MAX_PDF_IMAGES]:
            data = fetch_image(url)
            if not data:
                continue
            try:
                images.append(_image_flowable(data))
            except Exception as e:
                log.warning(f"⚠️ Skipping unreadable image {url}: {e}")

    if images:
        content.append(Spacer(1, 16))
        content.append(Paragraph("<b>Evidencias adjuntas:</b>", styles['Normal']))
        for image in images:
            content.append(Spacer(1, 8))
            content.append(image)

    doc.build(content)
    pdf_bytes = buffer.getvalue()
    buffer.close()
    return pdf_bytes


def render_download_button(suggestion: Suggestion, storage):
    """PDF is generated on demand so the detail view stays fast."""
    key = f"pdf_{suggestion.id}"
    if st.button("📄 Generar PDF", key=f"{key}_build"):
        with st.spinner("Generando PDF..."):
            st.session_state[key] = build_suggestion_pdf(suggestion, storage.download_image)
    if st.session_state.get(key):
        st.download_button(
            "⬇️ Descargar PDF",
            data=st.session_state[key],
            file_name=pdf_filename(suggestion),
            mime="application/pdf",
            key=f"{key}_download",
        )
