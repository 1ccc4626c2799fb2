import os

from flask import Blueprint, jsonify, send_file

from frontdesk.services.errors import StorageError
from frontdesk.services.storage_service import get_storage

storage_bp = Blueprint('storage', __name__, url_prefix='/storage')


@storage_bp.route('/<bucket>/<path:path>', methods=['GET'])
def serve_object(bucket, path):
    """Serve a stored object by its public URL path."""
    try:
        full_path = get_storage().open(bucket, path)
    except StorageError:
        return jsonify({'success': False, 'error': 'Object not found'}), 404
    if not os.path.isfile(full_path):
        return jsonify({'success': False, 'error': 'Object not found'}), 404

    response = send_file(full_path, max_age=3600)
    response.headers['Cache-Control'] = 'private, max-age=3600'
    return response
