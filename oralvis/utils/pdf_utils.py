"""
PDF rendering for submission reports using ReportLab
"""
import io
import logging
from datetime import datetime
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.units import cm
from reportlab.lib.utils import ImageReader
from reportlab.platypus import SimpleDocTemplate, Paragraph, Spacer, Table, TableStyle, Image

logger = logging.getLogger(__name__)

VARIANT_PATIENT = 'patient'
VARIANT_ADMIN = 'admin'

REPORT_TITLES = {
    VARIANT_PATIENT: 'OralVis Report',
    VARIANT_ADMIN: 'OralVis Healthcare Report',
}

# Bounding box for the embedded annotated image, in points
IMAGE_BOX = (500, 400)


def _na(value):
    """Return 'N/A' for None or blank strings"""
    if value is None:
        return 'N/A'
    if isinstance(value, str) and not value.strip():
        return 'N/A'
    return value


def fit_within(width, height, box=IMAGE_BOX):
    """Scale (width, height) to fit inside box, keeping aspect ratio"""
    box_w, box_h = box
    if width <= 0 or height <= 0:
        return 0, 0
    scale = min(box_w / float(width), box_h / float(height))
    return width * scale, height * scale


def _link(url, style):
    safe = escape(url, {'"': '&quot;'})
    return Paragraph(f'<link href="{safe}" color="blue">{safe}</link>', style)


def build_report_pdf(submission, variant=VARIANT_PATIENT, annotated_image=None):
    """
    Render a submission report and return the PDF bytes.

    Args:
        submission: Submission record
        variant: 'patient' or 'admin'
        annotated_image: raw bytes of the annotated image, embedded in the
            admin variant when given

    Returns:
        bytes: the PDF document
    """
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=1.5 * cm,
        rightMargin=1.5 * cm,
        topMargin=2 * cm,
        bottomMargin=2 * cm,
        title=REPORT_TITLES.get(variant, REPORT_TITLES[VARIANT_PATIENT]),
    )
    styles = getSampleStyleSheet()
    title_style = ParagraphStyle(
        name="ReportTitle",
        parent=styles["Heading1"],
        fontSize=20,
        textColor=colors.HexColor("#0066cc"),
        alignment=1,
    )
    normal = styles["Normal"]
    story = []

    story.append(Paragraph(REPORT_TITLES.get(variant, REPORT_TITLES[VARIANT_PATIENT]), title_style))
    story.append(Spacer(1, 12))

    uploaded = submission.created_at.strftime('%Y-%m-%d %H:%M:%S') if submission.created_at else 'N/A'
    details = [
        ["Patient Name", str(_na(submission.name))],
        ["Patient ID", str(_na(submission.patient_id))],
        ["Email", str(_na(submission.email))],
        ["Note", Paragraph(escape(str(_na(submission.note))), normal)],
        ["Upload Date", uploaded],
        ["Original Image", _link(submission.image_url, normal)],
    ]
    if submission.annotated_image_url:
        details.append(["Annotated Image", _link(submission.annotated_image_url, normal)])

    table = Table(details, colWidths=[4 * cm, 13 * cm])
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (0, -1), colors.HexColor("#f5f5f5")),
                ("FONTNAME", (0, 0), (0, -1), "Helvetica-Bold"),
                ("FONTSIZE", (0, 0), (-1, -1), 11),
                ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
            ]
        )
    )
    story.append(table)

    if variant == VARIANT_ADMIN and annotated_image:
        reader = ImageReader(io.BytesIO(annotated_image))
        img_w, img_h = reader.getSize()
        draw_w, draw_h = fit_within(img_w, img_h)
        story.append(Spacer(1, 20))
        flowable = Image(io.BytesIO(annotated_image), width=draw_w, height=draw_h)
        flowable.hAlign = 'CENTER'
        story.append(flowable)

    story.append(Spacer(1, 20))
    story.append(Paragraph(f"Generated: {datetime.utcnow().strftime('%Y-%m-%d %H:%M:%S')} UTC", normal))

    doc.build(story)
    pdf_bytes = buffer.getvalue()
    logger.debug(f"Rendered {variant} report for submission {submission.id} ({len(pdf_bytes)} bytes)")
    return pdf_bytes
