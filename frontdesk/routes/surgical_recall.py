import json
import logging

from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.services.data_port import get_data_port
from frontdesk.services.errors import ValidationError
from frontdesk.services.storage_service import get_storage
from frontdesk.services.surgical_recall_service import (
    delete_surgical_recall_sheet, get_surgical_recall_sheet, list_surgical_recall_sheets,
    save_surgical_recall_sheet, validate_sheet,
)
from frontdesk.utils.audit import log_audit

logger = logging.getLogger(__name__)

surgical_recall_bp = Blueprint('surgical_recall', __name__, url_prefix='/api/surgical-recall-sheets')


def _read_payload():
    """
    JSON body, or multipart with the JSON in a ``data`` field and pictures
    keyed ``implant_picture:<ref>``, ``mua_picture:<ref>``,
    ``graft_membrane:<ref>``.
    """
    if request.files or request.form:
        try:
            payload = json.loads(request.form.get('data') or '{}')
        except json.JSONDecodeError:
            raise ValidationError("Field 'data' must be valid JSON")
        files = {
            key: (upload.filename or key, upload.read(), upload.mimetype)
            for key, upload in request.files.items()
        }
        return _check_shape(payload), files
    return _check_shape(request.get_json(silent=True) or {}), {}


def _check_shape(payload):
    """Reject bodies whose sheet / item collections have the wrong JSON types."""
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    errors = []
    if not isinstance(payload.get('sheet') or {}, dict):
        errors.append("sheet must be an object")
    for key in ('implants', 'grafts_membranes'):
        items = payload.get(key) or []
        if not isinstance(items, list) or not all(isinstance(item, dict) for item in items):
            errors.append(f"{key} must be a list of objects")
    if errors:
        raise ValidationError(errors)
    return payload


@surgical_recall_bp.route('', methods=['POST'])
@jwt_required()
def create_sheet():
    """
    Save a surgical recall sheet with its implants and grafts/membranes.
    Returns 201 once the sheet exists; per-item failures are listed under
    ``warnings``.
    """
    # Step 1: Parse
    payload, files = _read_payload()
    sheet = dict(payload.get('sheet') or {})
    sheet['created_by'] = get_jwt_identity()

    # Step 2: Validate
    errors = validate_sheet(sheet)
    if errors:
        raise ValidationError(errors)

    # Step 3: Save (sheet first, items best-effort)
    outcome = save_surgical_recall_sheet(
        sheet,
        payload.get('implants') or [],
        payload.get('grafts_membranes') or [],
        files,
        get_data_port(),
        get_storage(),
    )
    log_audit('surgical_recall_sheet', 'create', user_id=get_jwt_identity(), entity_id=outcome.sheet['id'],
              details={'warnings': outcome.warnings} if outcome.warnings else None)

    return jsonify({'success': True, 'data': outcome.to_dict()}), 201


@surgical_recall_bp.route('', methods=['GET'])
@jwt_required()
def list_sheets():
    """Query params: patient_id (required)"""
    patient_id = request.args.get('patient_id')
    if not patient_id:
        return jsonify({
            'success': False,
            'error': 'patient_id is required'
        }), 400
    return jsonify({'success': True, 'data': list_surgical_recall_sheets(patient_id, get_data_port())}), 200


@surgical_recall_bp.route('/<sheet_id>', methods=['GET'])
@jwt_required()
def get_sheet(sheet_id):
    return jsonify({'success': True, 'data': get_surgical_recall_sheet(sheet_id, get_data_port())}), 200


@surgical_recall_bp.route('/<sheet_id>', methods=['DELETE'])
@jwt_required()
def delete_sheet(sheet_id):
    summary = delete_surgical_recall_sheet(sheet_id, get_data_port(), get_storage())
    log_audit('surgical_recall_sheet', 'delete', user_id=get_jwt_identity(), entity_id=sheet_id, details=summary)
    return jsonify({'success': True, 'data': summary}), 200
