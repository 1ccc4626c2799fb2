from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.models import FieldVisibilityRule, LabScript
from frontdesk.services.ai_enhancement import enhance_lab_instructions
from frontdesk.services.data_port import get_data_port
from frontdesk.services.field_visibility import evaluate_rules, visible_fields
from frontdesk.services.lab_script_service import create_lab_script, get_lab_script
from frontdesk.utils.audit import log_audit
from frontdesk.utils.decorators import current_user

lab_script_bp = Blueprint('lab_script', __name__, url_prefix='/api/lab-scripts')


@lab_script_bp.route('', methods=['GET'])
@jwt_required()
def list_lab_scripts():
    """Query params: patient_id, status"""
    query = LabScript.query
    if request.args.get('patient_id'):
        query = query.filter_by(patient_id=request.args['patient_id'])
    if request.args.get('status'):
        query = query.filter_by(status=request.args['status'])
    scripts = query.order_by(LabScript.created_at.desc()).all()
    return jsonify({'success': True, 'data': [s.to_dict() for s in scripts]}), 200


@lab_script_bp.route('', methods=['POST'])
@jwt_required()
def create():
    """
    Create a lab script
    Body: the lab script form (camelCase or snake_case keys) plus optional notes
    """
    user = current_user()
    author = {'full_name': user.full_name, 'role': user.role} if user else None
    script = create_lab_script(request.get_json(silent=True) or {}, get_data_port(), author=author)
    log_audit('lab_script', 'create', user_id=get_jwt_identity(), entity_id=script['id'])
    return jsonify({'success': True, 'data': script}), 201


@lab_script_bp.route('/<script_id>', methods=['GET'])
@jwt_required()
def get(script_id):
    return jsonify({'success': True, 'data': get_lab_script(script_id, get_data_port())}), 200


@lab_script_bp.route('/visibility', methods=['POST'])
@jwt_required()
def visibility():
    """
    Which conditional fields the form should show for the current selections.
    ``fields`` are the built-in rules; ``configured`` applies the active
    field visibility rules to every field they mention.
    """
    selections = request.get_json(silent=True) or {}
    rules = FieldVisibilityRule.query.filter_by(is_active=True).order_by(FieldVisibilityRule.display_order).all()
    configured = {
        name: evaluate_rules(rules, name, selections)
        for name in sorted({r.field_name for r in rules})
    }
    return jsonify({
        'success': True,
        'data': {'fields': visible_fields(selections), 'configured': configured},
    }), 200


@lab_script_bp.route('/enhance-instructions', methods=['POST'])
@jwt_required()
def enhance_instructions():
    """Body: {"instructions": "..."}"""
    data = request.get_json(silent=True) or {}
    enhanced = enhance_lab_instructions(data.get('instructions'))
    return jsonify({'success': True, 'data': {'enhanced_instructions': enhanced}}), 200
