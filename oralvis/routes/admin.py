"""
Admin API Routes
Unscoped access to every submission: review, annotate, generate PDF reports
"""
from flask import Blueprint, request, jsonify

from oralvis.models.user import ROLE_ADMIN
from oralvis.schemas import AnnotateRequest, validate_payload
from oralvis.services.report_service import generate_report
from oralvis.services.submission_service import (
    annotate_submission,
    get_submission,
    list_all_submissions,
    max_image_size,
)
from oralvis.utils.decorators import auth_required, require_role, get_current_user
from oralvis.utils.images import decode_image_data
from oralvis.utils.pdf_utils import VARIANT_ADMIN

admin_bp = Blueprint('admin', __name__, url_prefix='/api/admin')


@admin_bp.route('/submissions', methods=['GET'])
@auth_required
@require_role(ROLE_ADMIN)
def list_submissions():
    submissions = list_all_submissions()
    return jsonify({
        'message': 'OK',
        'submissions': [s.to_dict(include_patient=True) for s in submissions]
    }), 200


@admin_bp.route('/submissions/<int:submission_id>', methods=['GET'])
@auth_required
@require_role(ROLE_ADMIN)
def get_submission_detail(submission_id):
    submission = get_submission(submission_id)
    return jsonify({'message': 'OK', 'submission': submission.to_dict(include_patient=True)}), 200


@admin_bp.route('/submissions/<int:submission_id>/annotate', methods=['POST'])
@auth_required
@require_role(ROLE_ADMIN)
def annotate(submission_id):
    """
    Save annotation data and the annotated image

    Body:
        annotationJson: annotation object (required)
        annotatedImage: data URL or base64 image (required)
    """
    data = validate_payload(AnnotateRequest, request.get_json(silent=True), message='Annotation data is required')
    image = decode_image_data(data.annotated_image, max_image_size())

    submission = get_submission(submission_id)
    submission = annotate_submission(submission, data.annotation_json, image, user=get_current_user())
    return jsonify({
        'message': 'Annotation saved successfully',
        'submission': submission.to_dict(include_patient=True)
    }), 200


@admin_bp.route('/submissions/<int:submission_id>/generate-pdf', methods=['POST'])
@auth_required
@require_role(ROLE_ADMIN)
def generate_pdf(submission_id):
    submission = get_submission(submission_id)

    report_url = generate_report(submission, variant=VARIANT_ADMIN, user=get_current_user())
    return jsonify({
        'message': 'PDF generated successfully',
        'reportUrl': report_url
    }), 200
