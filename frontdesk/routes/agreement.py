"""
Agreement form endpoints. ``<kind>`` is ``financial-agreement`` or
``thank-you-pre-surgery``.
"""
import io
import logging

from flask import Blueprint, request, jsonify, send_file
from flask_jwt_extended import jwt_required, get_jwt_identity

from frontdesk.services import agreement_service
from frontdesk.utils.audit import log_audit

logger = logging.getLogger(__name__)

agreement_bp = Blueprint('agreement', __name__, url_prefix='/api/agreements')


@agreement_bp.route('/patient/<patient_id>', methods=['GET'])
@jwt_required()
def forms_for_patient(patient_id):
    return jsonify({'success': True, 'data': agreement_service.list_forms_for_patient(patient_id)}), 200


@agreement_bp.route('/<kind>', methods=['POST'])
@jwt_required()
def create_form(kind):
    """Body: patient_name, patient_id / lead_id / new_patient_packet_id (optional), form_data"""
    form = agreement_service.create_form(kind, request.get_json(silent=True), user_id=get_jwt_identity())
    log_audit(kind, 'create', user_id=get_jwt_identity(), entity_id=form.id)
    return jsonify({'success': True, 'data': form.to_dict()}), 201


@agreement_bp.route('/<kind>/<form_id>', methods=['GET'])
@jwt_required()
def get_form(kind, form_id):
    return jsonify({'success': True, 'data': agreement_service.get_form(kind, form_id).to_dict()}), 200


@agreement_bp.route('/<kind>/<form_id>', methods=['PUT'])
@jwt_required()
def save_form(kind, form_id):
    """Explicit save; replaces form_data and cancels any pending auto-save."""
    form = agreement_service.save_form(kind, form_id, request.get_json(silent=True), user_id=get_jwt_identity())
    log_audit(kind, 'edit', user_id=get_jwt_identity(), entity_id=form_id)
    return jsonify({'success': True, 'data': form.to_dict()}), 200


@agreement_bp.route('/<kind>/<form_id>/autosave', methods=['PATCH'])
@jwt_required()
def autosave_form(kind, form_id):
    """
    Queue changed fields for the debounced write. Body: the changed
    form_data fields. Responds 202 with everything pending for the form.
    """
    pending = agreement_service.schedule_autosave(kind, form_id, request.get_json(silent=True))
    return jsonify({'success': True, 'data': {'pending': pending}}), 202


@agreement_bp.route('/<kind>/<form_id>/sign', methods=['POST'])
@jwt_required()
def sign_form(kind, form_id):
    """Body: patient_signature (PNG data URL), patient_print_name, form_data (optional final fields)"""
    data = request.get_json(silent=True) or {}
    form = agreement_service.sign_form(
        kind, form_id,
        data.get('patient_signature'),
        data.get('patient_print_name'),
        extra=data.get('form_data'),
        user_id=get_jwt_identity(),
    )
    log_audit(kind, 'sign', user_id=get_jwt_identity(), entity_id=form_id)
    return jsonify({'success': True, 'data': form.to_dict()}), 200


@agreement_bp.route('/<kind>/<form_id>', methods=['DELETE'])
@jwt_required()
def delete_form(kind, form_id):
    agreement_service.delete_form(kind, form_id)
    log_audit(kind, 'delete', user_id=get_jwt_identity(), entity_id=form_id)
    return jsonify({'success': True, 'message': 'Form deleted'}), 200


@agreement_bp.route('/<kind>/<form_id>/pdf', methods=['GET'])
@jwt_required()
def download_pdf(kind, form_id):
    form = agreement_service.get_form(kind, form_id)
    pdf = agreement_service.render_form_pdf(kind, form)
    log_audit(kind, 'export', user_id=get_jwt_identity(), entity_id=form_id)

    safe_name = '_'.join(form.patient_name.split()) or 'patient'
    return send_file(
        io.BytesIO(pdf),
        mimetype='application/pdf',
        as_attachment=request.args.get('download', 'true').lower() == 'true',
        download_name=f"{kind}_{safe_name}.pdf",
    )


@agreement_bp.route('/<kind>/<form_id>/pdf/async', methods=['POST'])
@jwt_required()
def generate_pdf_async(kind, form_id):
    """Render and store the PDF in the background; the form's pdf_url is set when done."""
    from tasks.pdf_tasks import generate_agreement_pdf

    agreement_service.get_form(kind, form_id)
    result = generate_agreement_pdf.delay(kind, form_id)
    return jsonify({
        'success': True,
        'message': 'PDF generation queued',
        'data': {'task_id': result.id},
    }), 202
