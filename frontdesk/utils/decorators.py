from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt_identity

from frontdesk.extensions import db
from frontdesk.models import UserProfile


def current_user():
    """The UserProfile behind the current JWT, or None."""
    user_id = get_jwt_identity()
    if not user_id:
        return None
    return db.session.get(UserProfile, str(user_id))


def require_role(*roles):
    """
    Decorator to require specific roles
    Usage: @require_role('admin', 'receptionist')
    Must be used together with @jwt_required() on the route.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            user = current_user()
            if not user or not user.is_active:
                return jsonify({
                    'success': False,
                    'error': 'Authentication required'
                }), 401

            if not user.has_any_role(*roles):
                return jsonify({
                    'success': False,
                    'error': f'Permission denied. Required roles: {", ".join(roles)}'
                }), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator
