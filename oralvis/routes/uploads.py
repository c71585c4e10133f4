"""
Serves artifacts written by the local artifact store
"""
from flask import Blueprint, abort, send_from_directory

from oralvis.services.artifact_store import LocalArtifactStore, get_artifact_store

uploads_bp = Blueprint('uploads', __name__, url_prefix='/uploads')


@uploads_bp.route('/<path:filename>', methods=['GET'])
def serve_upload(filename):
    store = get_artifact_store()
    if not isinstance(store, LocalArtifactStore):
        abort(404)
    return send_from_directory(store.storage_path, filename)
