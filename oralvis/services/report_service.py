"""
Report Service
Renders a submission report, uploads it and records the terminal transition
"""
import logging
from typing import Optional

from oralvis.errors import ValidationError
from oralvis.models import Submission, User
from oralvis.services.artifact_store import FOLDER_REPORTS, RESOURCE_RAW, get_artifact_store
from oralvis.services.submission_service import commit, next_status
from oralvis.utils.audit import log_audit
from oralvis.utils.pdf_utils import VARIANT_ADMIN, VARIANT_PATIENT, build_report_pdf

logger = logging.getLogger(__name__)


def generate_report(submission: Submission, variant: str = VARIANT_PATIENT, user: Optional[User] = None) -> str:
    """
    Generate the PDF report for a submission and mark it reported.

    Steps run in order: render, upload, persist. The submission is only
    modified after the upload succeeded, so a failed upload leaves it as it was.

    Args:
        submission: annotated submission
        variant: 'patient' or 'admin'; the admin variant embeds the annotated image
        user: requester, for the audit trail

    Returns:
        str: durable URL of the uploaded report
    """
    if not submission.annotated_image_url:
        raise ValidationError('Annotated image is required to generate PDF',
                              errors=[{'field': 'annotatedImageUrl', 'message': 'Submission has no annotated image'}])
    target = next_status(submission, 'report')

    store = get_artifact_store()
    annotated_image = None
    if variant == VARIANT_ADMIN:
        annotated_image = store.fetch(submission.annotated_image_url)

    pdf_bytes = build_report_pdf(submission, variant=variant, annotated_image=annotated_image)

    report_url = store.upload(
        pdf_bytes,
        folder=FOLDER_REPORTS,
        public_id=f"report-{submission.id}",
        resource_type=RESOURCE_RAW,
        extension='pdf',
    )

    submission.report_url = report_url
    submission.status = target
    commit()

    logger.info(f"Report generated for submission {submission.id} ({variant}): {report_url}")
    log_audit('submission', 'report', user_id=user.id if user else None,
              entity_id=submission.id, details={'report_url': report_url, 'variant': variant})
    return report_url
