"""
Patient API Routes
Upload, list and read own submissions, save annotated images, generate reports
"""
from flask import Blueprint, request, jsonify

from oralvis.errors import ValidationError
from oralvis.models.user import ROLE_PATIENT
from oralvis.schemas import UploadRequest, validate_payload
from oralvis.services.report_service import generate_report
from oralvis.services.submission_service import (
    create_submission,
    get_patient_submission,
    list_patient_submissions,
    max_image_size,
    save_annotated_image,
)
from oralvis.utils.decorators import auth_required, require_role, get_current_user
from oralvis.utils.images import decode_image_data, read_image_upload
from oralvis.utils.pdf_utils import VARIANT_PATIENT

patient_bp = Blueprint('patient', __name__, url_prefix='/api/patient')


@patient_bp.route('/upload', methods=['POST'])
@auth_required
@require_role(ROLE_PATIENT)
def upload():
    """
    Upload a new submission

    Multipart form:
        image: image file (required, max 5MB)
        name, patientId, email: required
        note: optional
    """
    fields = validate_payload(UploadRequest, request.form.to_dict())
    image = read_image_upload(request.files.get('image'), max_image_size())

    submission = create_submission(get_current_user(), fields, image)
    return jsonify({
        'message': 'Submission uploaded successfully',
        'submission': submission.to_dict()
    }), 201


@patient_bp.route('/submissions', methods=['GET'])
@auth_required
@require_role(ROLE_PATIENT)
def list_submissions():
    submissions = list_patient_submissions(get_current_user())
    return jsonify({
        'message': 'OK',
        'submissions': [s.to_dict() for s in submissions]
    }), 200


@patient_bp.route('/submissions/<int:submission_id>', methods=['GET'])
@auth_required
@require_role(ROLE_PATIENT)
def get_submission(submission_id):
    submission = get_patient_submission(submission_id, get_current_user())
    return jsonify({'message': 'OK', 'submission': submission.to_dict()}), 200


@patient_bp.route('/submissions/<int:submission_id>/annotated-image', methods=['POST'])
@auth_required
@require_role(ROLE_PATIENT)
def save_annotated(submission_id):
    """
    Save the patient's annotated copy of their image

    Accepts either a multipart `image` file or JSON {"annotatedImage": "<data URL>"}.
    """
    user = get_current_user()
    submission = get_patient_submission(submission_id, user)

    if 'image' in request.files:
        image = read_image_upload(request.files.get('image'), max_image_size())
    else:
        body = request.get_json(silent=True) or {}
        if not body.get('annotatedImage'):
            raise ValidationError('Annotated image is required',
                                  errors=[{'field': 'annotatedImage', 'message': 'Annotated image is required'}])
        image = decode_image_data(body.get('annotatedImage'), max_image_size())

    submission = save_annotated_image(submission, image, user=user)
    return jsonify({
        'message': 'Annotated image saved successfully',
        'submission': submission.to_dict()
    }), 200


@patient_bp.route('/generate-report/<int:submission_id>', methods=['POST'])
@auth_required
@require_role(ROLE_PATIENT)
def generate_patient_report(submission_id):
    user = get_current_user()
    submission = get_patient_submission(submission_id, user)

    report_url = generate_report(submission, variant=VARIANT_PATIENT, user=user)
    return jsonify({
        'message': 'Report generated successfully',
        'reportUrl': report_url
    }), 200
