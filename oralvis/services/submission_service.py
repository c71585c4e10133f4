"""
Submission Service
Lifecycle of a submission: uploaded -> annotated -> reported
"""
import logging
from typing import List, Optional

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from oralvis.errors import ExternalServiceError, NotFound, ValidationError
from oralvis.extensions import db
from oralvis.models import Submission, User
from oralvis.models.submission import STATUS_UPLOADED, STATUS_ANNOTATED, STATUS_REPORTED
from oralvis.schemas import UploadRequest
from oralvis.services.artifact_store import (
    FOLDER_ANNOTATED,
    FOLDER_SUBMISSIONS,
    RESOURCE_IMAGE,
    get_artifact_store,
    timestamp_id,
)
from oralvis.utils.audit import log_audit
from oralvis.utils.images import ImagePayload

logger = logging.getLogger(__name__)

# (from_status, action) -> to_status; anything else is rejected. No entry moves backwards.
TRANSITIONS = {
    (STATUS_UPLOADED, 'save_annotated_image'): STATUS_ANNOTATED,
    (STATUS_ANNOTATED, 'save_annotated_image'): STATUS_ANNOTATED,
    (STATUS_UPLOADED, 'annotate'): STATUS_ANNOTATED,
    (STATUS_ANNOTATED, 'annotate'): STATUS_ANNOTATED,
    (STATUS_ANNOTATED, 'report'): STATUS_REPORTED,
}


def next_status(submission: Submission, action: str) -> str:
    """
    Status the submission moves to when `action` is applied.

    Raises ValidationError when the action is not allowed from the
    current status.
    """
    target = TRANSITIONS.get((submission.status, action))
    if target is None:
        if submission.status == STATUS_REPORTED:
            raise ValidationError('Submission has already been reported',
                                  errors=[{'field': 'status', 'message': 'Reported submissions cannot be modified'}])
        raise ValidationError(f'Cannot {action.replace("_", " ")} a submission in status {submission.status}',
                              errors=[{'field': 'status', 'message': f'Invalid transition from {submission.status}'}])
    return target


def commit():
    """Commit the session; record store failures become ExternalServiceError"""
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Record store commit failed: {e}")
        raise ExternalServiceError('Failed to save submission') from e


def _image_extension(image: ImagePayload) -> str:
    ext = image.format or 'png'
    return 'jpg' if ext == 'jpeg' else ext


def create_submission(user: User, fields: UploadRequest, image: ImagePayload) -> Submission:
    """
    Upload the original image and record a new submission in status 'uploaded'.

    Args:
        user: owning patient
        fields: validated upload form
        image: validated image payload

    Returns:
        Submission: the persisted record
    """
    store = get_artifact_store()
    image_url = store.upload(
        image.data,
        folder=FOLDER_SUBMISSIONS,
        public_id=timestamp_id(image.stem),
        resource_type=RESOURCE_IMAGE,
        extension=_image_extension(image),
    )

    submission = Submission(
        patient_user_id=user.id,
        name=fields.name,
        patient_id=fields.patient_id,
        email=fields.email,
        note=fields.note,
        image_url=image_url,
        status=STATUS_UPLOADED,
    )
    db.session.add(submission)
    commit()

    logger.info(f"Submission {submission.id} uploaded by user {user.id}")
    log_audit('submission', 'create', user_id=user.id, entity_id=submission.id, details={'image_url': image_url})
    return submission


def list_patient_submissions(user: User) -> List[Submission]:
    """Submissions owned by `user`, newest first"""
    return (Submission.query
            .filter_by(patient_user_id=user.id)
            .order_by(Submission.created_at.desc(), Submission.id.desc())
            .all())


def list_all_submissions() -> List[Submission]:
    """Every submission, newest first"""
    return (Submission.query
            .order_by(Submission.created_at.desc(), Submission.id.desc())
            .all())


def get_patient_submission(submission_id: int, user: User) -> Submission:
    """
    Owner-scoped lookup. Submissions owned by someone else are reported as
    missing, never as forbidden.
    """
    submission = Submission.query.filter_by(id=submission_id, patient_user_id=user.id).first()
    if submission is None:
        raise NotFound('Submission not found')
    return submission


def get_submission(submission_id: int) -> Submission:
    """Unscoped lookup for admins"""
    submission = db.session.get(Submission, submission_id)
    if submission is None:
        raise NotFound('Submission not found')
    return submission


def save_annotated_image(submission: Submission, image: ImagePayload, user: Optional[User] = None) -> Submission:
    """Store a new annotated image for the submission and mark it annotated"""
    target = next_status(submission, 'save_annotated_image')

    url = get_artifact_store().upload(
        image.data,
        folder=FOLDER_ANNOTATED,
        public_id=timestamp_id('annotated'),
        resource_type=RESOURCE_IMAGE,
        extension=_image_extension(image),
    )

    submission.annotated_image_url = url
    submission.status = target
    commit()

    logger.info(f"Submission {submission.id} annotated image saved")
    log_audit('submission', 'save_annotated_image', user_id=user.id if user else None,
              entity_id=submission.id, details={'annotated_image_url': url})
    return submission


def annotate_submission(submission: Submission, annotation_json, image: ImagePayload,
                        user: Optional[User] = None) -> Submission:
    """Record an admin's annotation payload and annotated image"""
    target = next_status(submission, 'annotate')

    url = get_artifact_store().upload(
        image.data,
        folder=FOLDER_ANNOTATED,
        public_id=timestamp_id('annotated'),
        resource_type=RESOURCE_IMAGE,
        extension=_image_extension(image),
    )

    submission.annotation_json = annotation_json
    submission.annotated_image_url = url
    submission.status = target
    commit()

    logger.info(f"Submission {submission.id} annotated by admin {user.id if user else 'unknown'}")
    log_audit('submission', 'annotate', user_id=user.id if user else None,
              entity_id=submission.id, details={'annotated_image_url': url})
    return submission


def max_image_size() -> int:
    return current_app.config.get('MAX_IMAGE_SIZE', 5 * 1024 * 1024)
