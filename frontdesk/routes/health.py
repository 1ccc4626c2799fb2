"""
Health endpoints for load balancers and container probes
"""
import os
from datetime import datetime

from flask import Blueprint, current_app, jsonify

from frontdesk.extensions import db

health_bp = Blueprint('health', __name__, url_prefix='/health')


def _database_status():
    try:
        db.session.execute(db.text('SELECT 1'))
        return 'connected'
    except Exception as e:
        db.session.rollback()
        return f'error: {e}'


def _storage_status():
    root = current_app.config['STORAGE_ROOT']
    try:
        os.makedirs(root, exist_ok=True)
    except OSError as e:
        return f'error: {e}'
    return 'writable' if os.access(root, os.W_OK) else 'error: not writable'


@health_bp.route('', methods=['GET'])
@health_bp.route('/ping', methods=['GET'])
def health_check():
    """Process is up; touches nothing else"""
    return jsonify({
        'status': 'healthy',
        'service': 'frontdesk',
        'timestamp': datetime.utcnow().isoformat(),
    }), 200


@health_bp.route('/ready', methods=['GET'])
def readiness_check():
    """Database reachable and object storage writable"""
    checks = {
        'database': _database_status(),
        'storage': _storage_status(),
    }
    ready = checks['database'] == 'connected' and checks['storage'] == 'writable'
    return jsonify({
        'status': 'ready' if ready else 'not_ready',
        'checks': checks,
        'timestamp': datetime.utcnow().isoformat(),
    }), 200 if ready else 503


@health_bp.route('/live', methods=['GET'])
def liveness_check():
    return jsonify({'status': 'alive', 'timestamp': datetime.utcnow().isoformat()}), 200
