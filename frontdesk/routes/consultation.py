import logging

from flask import Blueprint, current_app, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.services.consultation_service import (
    build_consultation_request, create_consultation, search_patients,
)
from frontdesk.services.data_port import get_data_port
from frontdesk.utils.audit import log_audit

logger = logging.getLogger(__name__)

consultation_bp = Blueprint('consultation', __name__, url_prefix='/api/consultations')


@consultation_bp.route('', methods=['POST'])
@jwt_required()
def book_consultation():
    """
    Book a consultation
    Body: patient_type (new|consultation|active), consultation_date,
    consultation_time, consultation_end_time (optional), assigned_user_id
    (optional); first_name/last_name/date_of_birth/gender for new patients,
    selected_patient_id otherwise.

    Returns 201 once the appointment exists, even when later steps failed;
    those are listed under ``warnings``.
    """
    port = get_data_port()

    # Step 1: Validate (400 with every problem listed)
    consultation_request = build_consultation_request(request.get_json(silent=True), port)

    # Step 2: Run the booking (502 if the appointment itself fails)
    duration = current_app.config.get('DEFAULT_CONSULTATION_MINUTES', 30)
    outcome = create_consultation(consultation_request, port, duration_minutes=duration)

    # Step 3: Audit
    log_audit('consultation', 'create', user_id=get_jwt_identity(),
              entity_id=outcome.appointment['id'],
              details={'category': outcome.category, 'warnings': outcome.warnings})

    return jsonify({
        'success': True,
        'message': outcome.message,
        'data': outcome.to_dict(),
    }), 201


@consultation_bp.route('/patients/search', methods=['GET'])
@jwt_required()
def search_consultation_patients():
    """Query params: type (consultation|active), q (2+ characters)"""
    results = search_patients(get_data_port(), request.args.get('type', ''), request.args.get('q', ''))
    return jsonify({'success': True, 'data': results}), 200


@consultation_bp.route('/<consultation_id>', methods=['GET'])
@jwt_required()
def get_consultation(consultation_id):
    port = get_data_port()
    consultation = port.get('consultations', consultation_id)
    if consultation is None:
        return jsonify({
            'success': False,
            'error': 'Consultation not found'
        }), 404
    consultation['appointment'] = port.get('appointments', consultation['appointment_id'])
    return jsonify({'success': True, 'data': consultation}), 200
