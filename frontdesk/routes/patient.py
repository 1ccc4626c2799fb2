from flask import Blueprint, request, jsonify
from flask_jwt_extended import jwt_required, get_jwt_identity
from sqlalchemy import or_

from frontdesk.extensions import db
from frontdesk.models import Patient
from frontdesk.utils.audit import log_audit
from frontdesk.utils.decorators import require_role

patient_bp = Blueprint('patient', __name__, url_prefix='/api/patients')

PATIENT_FIELDS = (
    'first_name', 'last_name', 'date_of_birth', 'gender', 'phone', 'email',
    'street', 'city', 'state', 'zip_code', 'status', 'treatment_type',
)


@patient_bp.route('', methods=['GET'])
@jwt_required()
def list_patients():
    """
    List active patients with pagination and search
    Query params: page, limit, search
    """
    # Step 1: Get query parameters
    page = request.args.get('page', 1, type=int)
    limit = request.args.get('limit', 20, type=int)
    search = request.args.get('search', '', type=str).strip()

    # Step 2: Validate pagination
    if page < 1:
        page = 1
    if limit < 1 or limit > 100:
        limit = 20

    # Step 3: Apply search filter if provided
    query = Patient.query
    if search:
        query = query.filter(or_(
            Patient.first_name.ilike(f'%{search}%'),
            Patient.last_name.ilike(f'%{search}%'),
            Patient.phone.ilike(f'%{search}%'),
            Patient.email.ilike(f'%{search}%'),
        ))

    # Step 4: Paginate
    patients = query.order_by(Patient.last_name, Patient.first_name).paginate(
        page=page,
        per_page=limit,
        error_out=False
    )

    return jsonify({
        'success': True,
        'data': [p.to_dict() for p in patients.items],
        'pagination': {
            'page': page,
            'limit': limit,
            'total': patients.total,
            'pages': patients.pages,
            'has_next': patients.has_next,
            'has_prev': patients.has_prev
        }
    }), 200


@patient_bp.route('/<patient_id>', methods=['GET'])
@jwt_required()
def get_patient(patient_id):
    patient = db.session.get(Patient, patient_id)
    if not patient:
        return jsonify({
            'success': False,
            'error': 'Patient not found'
        }), 404
    return jsonify({'success': True, 'data': patient.to_dict()}), 200


@patient_bp.route('', methods=['POST'])
@jwt_required()
@require_role('admin', 'receptionist', 'doctor', 'assistant')
def create_patient():
    """
    Create an active patient
    Required: first_name, last_name
    """
    data = request.get_json(silent=True) or {}

    # Step 1: Validate required fields
    missing = [f for f in ('first_name', 'last_name') if not (data.get(f) or '').strip()]
    if missing:
        return jsonify({
            'success': False,
            'error': f'Missing required fields: {", ".join(missing)}'
        }), 400

    # Step 2: Create
    patient = Patient(**{f: data[f] for f in PATIENT_FIELDS if f in data})
    patient.status = patient.status or 'active'
    db.session.add(patient)
    db.session.commit()

    log_audit('patient', 'create', user_id=get_jwt_identity(), entity_id=patient.id)
    return jsonify({'success': True, 'data': patient.to_dict()}), 201
