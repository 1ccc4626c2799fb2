from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.extensions import db
from frontdesk.models import FieldVisibilityRule
from frontdesk.models.field_visibility_rule import CONDITION_FIELDS, RULE_TYPES
from frontdesk.services.errors import NotFoundError, ValidationError
from frontdesk.utils.audit import log_audit
from frontdesk.utils.decorators import require_role

visibility_rule_bp = Blueprint('field_visibility_rule', __name__, url_prefix='/api/field-visibility-rules')


def _validate(data, partial=False):
    errors = []
    if not partial or 'field_name' in data:
        if not (data.get('field_name') or '').strip():
            errors.append("field_name is required")
    if not partial or 'rule_type' in data:
        if data.get('rule_type') not in RULE_TYPES:
            errors.append(f"rule_type must be one of: {', '.join(RULE_TYPES)}")
    if not partial or 'condition_field' in data:
        if data.get('condition_field') not in CONDITION_FIELDS:
            errors.append(f"condition_field must be one of: {', '.join(CONDITION_FIELDS)}")
    if not partial or 'condition_values' in data:
        values = data.get('condition_values')
        if not isinstance(values, list) or not all(isinstance(v, str) for v in values):
            errors.append("condition_values must be a list of strings")
    if data.get('arch_type') and data['arch_type'] not in ('upper', 'lower'):
        errors.append("arch_type must be 'upper', 'lower' or null")
    if errors:
        raise ValidationError(errors)


def _apply(rule, data):
    for attr in ('field_name', 'rule_type', 'condition_field', 'arch_type', 'is_active', 'display_order'):
        if attr in data:
            setattr(rule, attr, data[attr])
    if 'condition_values' in data:
        rule.condition_values = data['condition_values']


def _get_rule(rule_id):
    rule = db.session.get(FieldVisibilityRule, rule_id)
    if rule is None:
        raise NotFoundError('Rule not found')
    return rule


@visibility_rule_bp.route('', methods=['GET'])
@jwt_required()
def list_rules():
    """Query params: field_name, active_only (true/false)"""
    query = FieldVisibilityRule.query
    if request.args.get('field_name'):
        query = query.filter_by(field_name=request.args['field_name'])
    if request.args.get('active_only', 'false').lower() == 'true':
        query = query.filter_by(is_active=True)
    rules = query.order_by(FieldVisibilityRule.field_name, FieldVisibilityRule.display_order).all()
    return jsonify({'success': True, 'data': [r.to_dict() for r in rules]}), 200


@visibility_rule_bp.route('', methods=['POST'])
@jwt_required()
@require_role('admin')
def create_rule():
    data = request.get_json(silent=True) or {}
    _validate(data)
    rule = FieldVisibilityRule()
    _apply(rule, data)
    db.session.add(rule)
    db.session.commit()
    log_audit('field_visibility_rule', 'create', user_id=get_jwt_identity(), entity_id=rule.id)
    return jsonify({'success': True, 'data': rule.to_dict()}), 201


@visibility_rule_bp.route('/<rule_id>', methods=['GET'])
@jwt_required()
def get_rule(rule_id):
    return jsonify({'success': True, 'data': _get_rule(rule_id).to_dict()}), 200


@visibility_rule_bp.route('/<rule_id>', methods=['PUT'])
@jwt_required()
@require_role('admin')
def update_rule(rule_id):
    rule = _get_rule(rule_id)
    data = request.get_json(silent=True) or {}
    _validate(data, partial=True)
    _apply(rule, data)
    db.session.commit()
    log_audit('field_visibility_rule', 'edit', user_id=get_jwt_identity(), entity_id=rule.id)
    return jsonify({'success': True, 'data': rule.to_dict()}), 200


@visibility_rule_bp.route('/<rule_id>', methods=['DELETE'])
@jwt_required()
@require_role('admin')
def delete_rule(rule_id):
    rule = _get_rule(rule_id)
    db.session.delete(rule)
    db.session.commit()
    log_audit('field_visibility_rule', 'delete', user_id=get_jwt_identity(), entity_id=rule_id)
    return jsonify({'success': True, 'message': 'Rule deleted'}), 200
