import logging

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.extensions import db
from frontdesk.models import UserProfile
from frontdesk.models.user_profile import ROLES
from frontdesk.services.consultation_service import list_assignable_users
from frontdesk.services.data_port import get_data_port
from frontdesk.utils.audit import log_audit
from frontdesk.utils.decorators import require_role

logger = logging.getLogger(__name__)

user_bp = Blueprint('user', __name__, url_prefix='/api/users')


@user_bp.route('/assignable', methods=['GET'])
@jwt_required()
def assignable_users():
    """Active users an appointment can be assigned to"""
    users = list_assignable_users(get_data_port())
    return jsonify({'success': True, 'data': users}), 200


@user_bp.route('', methods=['GET'])
@jwt_required()
@require_role('admin')
def list_users():
    users = UserProfile.query.order_by(UserProfile.full_name).all()
    return jsonify({'success': True, 'data': [u.to_dict() for u in users]}), 200


@user_bp.route('', methods=['POST'])
@jwt_required()
@require_role('admin')
def create_user():
    """
    Create a staff user
    Body: username, email, password, full_name, role, phone (optional)
    """
    data = request.get_json(silent=True) or {}

    # Step 1: Validate required fields
    missing = [f for f in ('username', 'email', 'password', 'full_name', 'role') if not data.get(f)]
    if missing:
        return jsonify({
            'success': False,
            'error': f'Missing required fields: {", ".join(missing)}'
        }), 400
    if data['role'] not in ROLES:
        return jsonify({
            'success': False,
            'error': f'Role must be one of: {", ".join(ROLES)}'
        }), 400

    # Step 2: Uniqueness
    if UserProfile.query.filter(
        (UserProfile.username == data['username']) | (UserProfile.email == data['email'])
    ).first():
        return jsonify({
            'success': False,
            'error': 'Username or email already exists'
        }), 409

    # Step 3: Create
    user = UserProfile(
        username=data['username'],
        email=data['email'],
        full_name=data['full_name'],
        role=data['role'],
        phone=data.get('phone'),
    )
    user.set_password(data['password'])
    db.session.add(user)
    db.session.commit()
    logger.info("Created user %s (%s)", user.username, user.role)
    log_audit('user', 'create', user_id=get_jwt_identity(), entity_id=user.id, details={'role': user.role})

    return jsonify({'success': True, 'data': user.to_dict()}), 201
