"""
Health check endpoints for monitoring and load balancers
"""
import logging

from flask import Blueprint, jsonify
from sqlalchemy.exc import SQLAlchemyError

from oralvis.extensions import db
from datetime import datetime

logger = logging.getLogger(__name__)

health_bp = Blueprint('health', __name__, url_prefix='/health')


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
def health_check():
    """Basic health check - no database connection"""
    return jsonify({
        'message': 'healthy',
        'status': 'healthy',
        'timestamp': datetime.utcnow().isoformat(),
        'service': 'oralvis-backend'
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """Readiness check - includes database connection"""
    try:
        db.session.execute(db.text('SELECT 1'))
        db_status = 'connected'
    except SQLAlchemyError as e:
        logger.error(f"Readiness check database error: {e}")
        db_status = 'error'

    ready = db_status == 'connected'
    return jsonify({
        'message': 'ready' if ready else 'not_ready',
        'status': 'ready' if ready else 'not_ready',
        'database': db_status,
        'timestamp': datetime.utcnow().isoformat()
    }), 200 if ready else 503


@health_bp.route('/live', methods=['GET'])
def liveness_check():
    """Liveness check for Kubernetes/containers"""
    return jsonify({
        'message': 'alive',
        'status': 'alive',
        'timestamp': datetime.utcnow().isoformat()
    }), 200
