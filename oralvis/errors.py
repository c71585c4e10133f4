"""
API error taxonomy and the Flask handlers that turn it into JSON responses
"""
import logging

from flask import jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base class for errors that map onto an HTTP response"""
    status_code = 500
    default_message = 'Server error'

    def __init__(self, message=None, errors=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message
        self.errors = errors

    def to_dict(self):
        body = {'message': self.message}
        if self.errors:
            body['errors'] = self.errors
        return body


class ValidationError(ApiError):
    """Missing or malformed input. `errors` is a list of {field, message}."""
    status_code = 400
    default_message = 'Validation failed'


class Unauthenticated(ApiError):
    status_code = 401
    default_message = 'Authentication required.'


class Forbidden(ApiError):
    status_code = 403
    default_message = 'Access denied. Insufficient permissions.'


class NotFound(ApiError):
    status_code = 404
    default_message = 'Not found'


class ExternalServiceError(ApiError):
    """Artifact store or record store failure"""
    status_code = 500
    default_message = 'External service failure'


def register_error_handlers(app):
    """Map the taxonomy above (and anything uncaught) to JSON bodies."""

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        if error.status_code >= 500:
            logger.error(f"{type(error).__name__}: {error.message}", exc_info=error.__cause__ or error)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'message': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'message': 'Method not allowed'}), 405

    @app.errorhandler(413)
    def payload_too_large(error):
        body = ValidationError(
            'Image file is too large',
            errors=[{'field': 'image', 'message': 'Request body exceeds the upload size limit'}],
        )
        return jsonify(body.to_dict()), body.status_code

    @app.errorhandler(Exception)
    def handle_exception(e):
        if isinstance(e, HTTPException):
            return jsonify({'message': e.description}), e.code
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        return jsonify({'message': 'Something went wrong!'}), 500
