"""
Consultation intake.

Booking a consultation writes up to five records. The Appointment is the
anchor: if it cannot be created nothing else is attempted and
AppointmentCreationError is raised. Every later write (Lead,
ConsultationPatient, the active patient back-link, packet lookup,
Consultation) is best-effort: failures are logged, recorded on the
outcome and never undo the appointment.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional, Union

from frontdesk.services.errors import AppointmentCreationError, DataPortError, ValidationError
from frontdesk.services.patient_packet_service import find_existing_patient_packet

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30
SEARCH_MIN_CHARS = 2
SEARCH_LIMIT = 10

PATIENT_TYPES = ('new', 'consultation', 'active')

# StepResult.status values
CREATED = 'created'
REUSED = 'reused'
LINKED = 'linked'
SKIPPED = 'skipped'
NOT_FOUND = 'not_found'
FAILED = 'failed'


@dataclass(frozen=True)
class SelectedPatient:
    """An existing consultation patient or active patient picked from search."""
    id: str
    first_name: str
    last_name: str
    date_of_birth: Optional[str] = None
    gender: Optional[str] = None


@dataclass(frozen=True)
class NewPatient:
    first_name: str
    last_name: str
    date_of_birth: str
    gender: str

    category = 'new'


@dataclass(frozen=True)
class FollowUpPatient:
    selected: SelectedPatient

    category = 'consultation'


@dataclass(frozen=True)
class ActivePatient:
    selected: SelectedPatient

    category = 'active'


PatientChoice = Union[NewPatient, FollowUpPatient, ActivePatient]


@dataclass(frozen=True)
class ConsultationRequest:
    patient: PatientChoice
    consultation_date: str  # YYYY-MM-DD
    consultation_time: str  # HH:MM
    consultation_end_time: Optional[str] = None
    assigned_user_id: Optional[str] = None

    @property
    def identity(self):
        source = self.patient if isinstance(self.patient, NewPatient) else self.patient.selected
        return {
            'first_name': source.first_name,
            'last_name': source.last_name,
            'date_of_birth': source.date_of_birth,
            'gender': source.gender,
        }

    @property
    def patient_name(self):
        identity = self.identity
        return f"{identity['first_name']} {identity['last_name']}"


@dataclass
class StepResult:
    status: str
    id: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self):
        return {'status': self.status, 'id': self.id, 'error': self.error}


@dataclass
class ConsultationOutcome:
    category: str
    appointment: dict
    message: str = ''
    lead: StepResult = field(default_factory=lambda: StepResult(SKIPPED))
    consultation_patient: StepResult = field(default_factory=lambda: StepResult(SKIPPED))
    patient_link: StepResult = field(default_factory=lambda: StepResult(SKIPPED))
    patient_packet: StepResult = field(default_factory=lambda: StepResult(SKIPPED))
    consultation: StepResult = field(default_factory=lambda: StepResult(SKIPPED))

    @property
    def steps(self) -> Dict[str, StepResult]:
        return {
            'lead': self.lead,
            'consultation_patient': self.consultation_patient,
            'patient_link': self.patient_link,
            'patient_packet': self.patient_packet,
            'consultation': self.consultation,
        }

    @property
    def warnings(self) -> List[str]:
        return [
            f"{name}: {step.error or step.status}"
            for name, step in self.steps.items()
            if step.status == FAILED
        ]

    @property
    def complete(self):
        return not self.warnings

    def to_dict(self):
        return {
            'category': self.category,
            'message': self.message,
            'appointment': self.appointment,
            'steps': {name: step.to_dict() for name, step in self.steps.items()},
            'warnings': self.warnings,
        }


def compute_end_time(start_time: str, minutes: int = DEFAULT_DURATION_MINUTES) -> str:
    """Add ``minutes`` to an HH:MM time, wrapping past midnight."""
    start = datetime.strptime(start_time, '%H:%M')
    return (start + timedelta(minutes=minutes)).strftime('%H:%M')


def _valid_date(value):
    try:
        datetime.strptime(value, '%Y-%m-%d')
        return True
    except (TypeError, ValueError):
        return False


def _valid_time(value):
    try:
        datetime.strptime(value, '%H:%M')
        return True
    except (TypeError, ValueError):
        return False


def _selected_from_row(row):
    return SelectedPatient(
        id=row['id'],
        first_name=row.get('first_name') or '',
        last_name=row.get('last_name') or '',
        date_of_birth=row.get('date_of_birth'),
        gender=row.get('gender'),
    )


def _text(payload, field, label, errors):
    """Stripped string value of ``field``; None (with an error) when it is not text."""
    value = payload.get(field)
    if value is None:
        return ''
    if not isinstance(value, str):
        errors.append(f"{label} must be text")
        return None
    return value.strip()


def build_consultation_request(payload, port):
    """
    Parse and validate a consultation booking payload.

    All validation errors are collected and raised together as one
    ValidationError. The selected patient (follow-up / active) is read
    back so the identity used downstream is the stored one.
    """
    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        raise ValidationError("Request body must be a JSON object")
    errors = []

    patient_type = payload.get('patient_type') or 'new'
    if not isinstance(patient_type, str) or patient_type not in PATIENT_TYPES:
        errors.append(f"patient_type must be one of: {', '.join(PATIENT_TYPES)}")

    consultation_date = _text(payload, 'consultation_date', 'Consultation date', errors)
    consultation_time = _text(payload, 'consultation_time', 'Consultation time', errors)
    end_time = _text(payload, 'consultation_end_time', 'Consultation end time', errors) or None

    if consultation_date == '':
        errors.append("Consultation date is required")
    elif consultation_date and not _valid_date(consultation_date):
        errors.append("Consultation date must be YYYY-MM-DD")
    if consultation_time == '':
        errors.append("Consultation time is required")
    elif consultation_time and not _valid_time(consultation_time):
        errors.append("Consultation time must be HH:MM")
    if end_time and not _valid_time(end_time):
        errors.append("Consultation end time must be HH:MM")

    patient = None
    if patient_type == 'new':
        first_name = _text(payload, 'first_name', 'First name', errors)
        last_name = _text(payload, 'last_name', 'Last name', errors)
        date_of_birth = _text(payload, 'date_of_birth', 'Date of birth', errors)
        gender = _text(payload, 'gender', 'Gender', errors)
        if first_name == '':
            errors.append("First name is required")
        if last_name == '':
            errors.append("Last name is required")
        if date_of_birth == '':
            errors.append("Date of birth is required")
        if gender == '':
            errors.append("Gender is required")
        if not errors:
            patient = NewPatient(first_name, last_name, date_of_birth, gender)
    elif patient_type in ('consultation', 'active'):
        selected_id = payload.get('selected_patient_id')
        if not selected_id:
            errors.append("Please select a patient")
        elif not isinstance(selected_id, (str, int)) or isinstance(selected_id, bool):
            errors.append("selected_patient_id must be a string")
        elif not errors:
            table = 'consultation_patients' if patient_type == 'consultation' else 'patients'
            row = port.get(table, str(selected_id))
            if row is None:
                errors.append("Selected patient was not found")
            else:
                selected = _selected_from_row(row)
                patient = FollowUpPatient(selected) if patient_type == 'consultation' else ActivePatient(selected)

    assigned_user_id = _text(payload, 'assigned_user_id', 'Assigned user', errors)

    if errors:
        raise ValidationError(errors)

    return ConsultationRequest(
        patient=patient,
        consultation_date=consultation_date,
        consultation_time=consultation_time,
        consultation_end_time=end_time,
        assigned_user_id=assigned_user_id or None,
    )


def _appointment_notes(patient):
    if isinstance(patient, FollowUpPatient):
        return "Follow-up consultation for existing patient"
    if isinstance(patient, ActivePatient):
        return "Additional consultation for existing patient"
    return None


def _success_message(patient):
    if isinstance(patient, NewPatient):
        return ('Consultation appointment created for new patient! '
                'Use "Add New Patient Packet" button to create their patient packet.')
    if isinstance(patient, FollowUpPatient):
        return (f"New consultation appointment created for existing patient "
                f"{patient.selected.first_name} {patient.selected.last_name}!")
    return "Consultation appointment created successfully for active patient!"


def _create_lead(request, port):
    identity = request.identity
    try:
        lead = port.insert('new_patient_leads', {
            'first_name': identity['first_name'],
            'last_name': identity['last_name'],
            'personal_first_name': identity['first_name'],
            'personal_last_name': identity['last_name'],
            'date_of_birth': identity['date_of_birth'],
            'gender': identity['gender'],
            'phone': '',
            'email': '',
            'personal_phone': '',
            'personal_email': '',
            'best_contact_time': request.consultation_time,
            'reason_for_visit': 'Consultation appointment',
            'status': 'scheduled',
            'source': 'consultation_form',
        })
        return StepResult(CREATED, lead['id'])
    except DataPortError as e:
        logger.warning("Failed to create lead entry: %s", e)
        return StepResult(FAILED, error=str(e))


def _insert_consultation_patient(request, port, lead_id=None):
    identity = request.identity
    row = port.insert('consultation_patients', {
        'first_name': identity['first_name'],
        'last_name': identity['last_name'],
        'date_of_birth': identity['date_of_birth'],
        'gender': identity['gender'],
        'consultation_date': request.consultation_date,
        'consultation_time': request.consultation_time,
        'lead_id': lead_id,
        'status': 'scheduled',
    })
    return row['id']


def _link_active_patient(request, port):
    """
    Reuse the active patient's consultation patient, or create one and
    write it back. Returns (consultation_patient_step, patient_link_step).
    """
    patient_id = request.patient.selected.id
    try:
        patient = port.get('patients', patient_id)
    except DataPortError as e:
        logger.warning("Failed to read active patient %s: %s", patient_id, e)
        return StepResult(FAILED, error=str(e)), StepResult(FAILED, error=str(e))

    if patient is None:
        logger.warning("Active patient %s disappeared before linking", patient_id)
        return StepResult(FAILED, error='patient not found'), StepResult(SKIPPED)

    if patient.get('consultation_patient_id'):
        existing = patient['consultation_patient_id']
        return StepResult(REUSED, existing), StepResult(REUSED, existing)

    try:
        new_id = _insert_consultation_patient(request, port)
    except DataPortError as e:
        logger.warning("Failed to create consultation patient for active patient %s: %s", patient_id, e)
        return StepResult(FAILED, error=str(e)), StepResult(SKIPPED)

    try:
        updated = port.update(
            'patients',
            {'consultation_patient_id': new_id},
            {'id': patient_id, 'consultation_patient_id': None},
        )
    except DataPortError as e:
        logger.warning("Failed to link patient %s to consultation patient %s: %s", patient_id, new_id, e)
        return StepResult(CREATED, new_id), StepResult(FAILED, error=str(e))

    if updated:
        return StepResult(CREATED, new_id), StepResult(LINKED, new_id)

    # Another booking linked the patient between our read and write; adopt its link.
    try:
        winner = port.get('patients', patient_id)
    except DataPortError as e:
        logger.warning("Failed to re-read patient %s after lost link race: %s", patient_id, e)
        return StepResult(CREATED, new_id), StepResult(FAILED, error=str(e))

    winning_id = (winner or {}).get('consultation_patient_id')
    if winning_id:
        logger.info("Patient %s already linked to %s; orphaned consultation patient %s",
                    patient_id, winning_id, new_id)
        return StepResult(REUSED, winning_id), StepResult(REUSED, winning_id)
    return StepResult(CREATED, new_id), StepResult(FAILED, error='link update matched no rows')


def _resolve_consultation_patient(request, port, lead_id):
    patient = request.patient
    if isinstance(patient, FollowUpPatient):
        return StepResult(REUSED, patient.selected.id), StepResult(SKIPPED)
    if isinstance(patient, ActivePatient):
        return _link_active_patient(request, port)
    try:
        return StepResult(CREATED, _insert_consultation_patient(request, port, lead_id)), StepResult(SKIPPED)
    except DataPortError as e:
        logger.warning("Failed to create consultation patient entry: %s", e)
        return StepResult(FAILED, error=str(e)), StepResult(SKIPPED)


def _lookup_packet(request, packet_lookup, port):
    try:
        packet = packet_lookup(request.identity, port)
    except DataPortError as e:
        logger.warning("Patient packet lookup failed: %s", e)
        return StepResult(FAILED, error=str(e))
    if packet is None:
        return StepResult(NOT_FOUND)
    return StepResult(LINKED, packet['id'])


def create_consultation(request: ConsultationRequest, port,
                        packet_lookup: Callable = find_existing_patient_packet,
                        duration_minutes: int = DEFAULT_DURATION_MINUTES) -> ConsultationOutcome:
    """
    Book a consultation: appointment first, then best-effort enrichment.

    Raises AppointmentCreationError if the appointment insert fails; no
    other write is attempted in that case.
    """
    patient = request.patient

    # Step 1: Work out the slot
    end_time = request.consultation_end_time or compute_end_time(request.consultation_time, duration_minutes)

    # Step 2: Only active patients are referenced directly from the appointment
    patient_id = patient.selected.id if isinstance(patient, ActivePatient) else None

    # Step 3: Anchor write
    try:
        appointment = port.insert('appointments', {
            'patient_name': request.patient_name,
            'patient_id': patient_id,
            'assigned_user_id': request.assigned_user_id,
            'title': f"Consultation - {request.patient_name}",
            'date': request.consultation_date,
            'start_time': request.consultation_time,
            'end_time': end_time,
            'appointment_type': 'consultation',
            'status': 'pending',
            'notes': _appointment_notes(patient),
        })
    except DataPortError as e:
        logger.error("Failed to create consultation appointment: %s", e, exc_info=True)
        raise AppointmentCreationError() from e

    outcome = ConsultationOutcome(category=patient.category, appointment=appointment)

    # Step 4: Lead, new patients only
    if isinstance(patient, NewPatient):
        outcome.lead = _create_lead(request, port)

    # Step 5: Consultation patient
    outcome.consultation_patient, outcome.patient_link = _resolve_consultation_patient(
        request, port, outcome.lead.id
    )

    # Step 6: Shared patient packet
    outcome.patient_packet = _lookup_packet(request, packet_lookup, port)

    # Step 7: Consultation row tying it together
    try:
        consultation = port.insert('consultations', {
            'appointment_id': appointment['id'],
            'consultation_patient_id': outcome.consultation_patient.id,
            'patient_id': patient_id,
            'new_patient_packet_id': outcome.patient_packet.id,
            'patient_name': request.patient_name,
            'consultation_date': request.consultation_date,
            'consultation_status': 'draft',
        })
        outcome.consultation = StepResult(CREATED, consultation['id'])
    except DataPortError as e:
        logger.warning("Failed to create consultation record: %s", e)
        outcome.consultation = StepResult(FAILED, error=str(e))

    # Step 8: Report
    outcome.message = _success_message(patient)
    if outcome.warnings:
        logger.warning("Consultation %s booked with partial failures: %s",
                       appointment['id'], ', '.join(outcome.warnings))
    else:
        logger.info("Consultation booked for %s (%s)", request.patient_name, patient.category)
    return outcome


def search_patients(port, patient_type, query):
    """Return up to 10 follow-up or active patients whose name contains ``query``."""
    query = (query or '').strip()
    if len(query) < SEARCH_MIN_CHARS:
        return []
    if patient_type == 'consultation':
        table = 'consultation_patients'
    elif patient_type == 'active':
        table = 'patients'
    else:
        raise ValidationError("type must be 'consultation' or 'active'")
    return port.search(table, ('first_name', 'last_name'), query, limit=SEARCH_LIMIT, order_by='first_name')


def list_assignable_users(port):
    """Active users that appointments can be assigned to, by full name."""
    return [
        {'id': u['id'], 'full_name': u['full_name'], 'role': u['role'], 'email': u['email']}
        for u in port.select('user_profiles', {'status': 'active'}, order_by='full_name')
    ]
