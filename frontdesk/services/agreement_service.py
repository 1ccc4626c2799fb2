"""
Patient agreement forms (financial agreement, thank-you & pre-surgery).

Forms are edited as drafts, auto-saved while the patient fills them in,
and become read-only once signed.
"""
import base64
import binascii
import logging
from datetime import datetime

from frontdesk.extensions import db, autosave
from frontdesk.models import FinancialAgreement, ThankYouPreSurgeryForm
from frontdesk.services.errors import FormLockedError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

FINANCIAL_AGREEMENT = 'financial-agreement'
THANK_YOU_PRE_SURGERY = 'thank-you-pre-surgery'

FORM_MODELS = {
    FINANCIAL_AGREEMENT: FinancialAgreement,
    THANK_YOU_PRE_SURGERY: ThankYouPreSurgeryForm,
}

SIGNATURE_PREFIX = 'data:image/png;base64,'


def model_for(kind):
    model = FORM_MODELS.get(kind)
    if model is None:
        raise NotFoundError(f"Unknown form type: {kind}")
    return model


def _key(kind, form_id):
    return (kind, form_id)


def get_form(kind, form_id):
    form = db.session.get(model_for(kind), form_id)
    if form is None:
        raise NotFoundError('Form not found')
    return form


def _ensure_editable(form):
    if form.is_locked:
        raise FormLockedError('Signed forms cannot be modified')


def create_form(kind, data, user_id=None):
    model = model_for(kind)
    data = data or {}
    form_data = data.get('form_data') or {}
    patient_name = (data.get('patient_name') or form_data.get('patient_name') or '').strip()
    if not patient_name:
        raise ValidationError("Patient name is required")

    form = model(
        patient_id=data.get('patient_id'),
        lead_id=data.get('lead_id'),
        new_patient_packet_id=data.get('new_patient_packet_id'),
        patient_name=patient_name,
        status='draft',
        form_version=data.get('form_version') or '1.0',
        created_by=user_id,
        updated_by=user_id,
    )
    form.form_data = form_data
    db.session.add(form)
    db.session.commit()
    logger.info("Created %s %s for %s", kind, form.id, patient_name)
    return form


def list_forms_for_patient(patient_id):
    return {
        kind: [
            f.to_dict() for f in
            model.query.filter_by(patient_id=patient_id).order_by(model.created_at.desc()).all()
        ]
        for kind, model in FORM_MODELS.items()
    }


def save_form(kind, form_id, data, user_id=None):
    """Explicit full save; replaces form_data and drops any pending auto-save."""
    autosave.cancel(_key(kind, form_id))
    form = get_form(kind, form_id)
    _ensure_editable(form)

    data = data or {}
    if 'form_data' in data:
        form.form_data = data['form_data'] or {}
    if data.get('patient_name'):
        form.patient_name = data['patient_name'].strip()
    for attr in ('patient_id', 'lead_id', 'new_patient_packet_id'):
        if attr in data:
            setattr(form, attr, data[attr])
    form.updated_by = user_id or form.updated_by
    db.session.commit()
    logger.info("Saved %s %s", kind, form_id)
    return form


def apply_autosave(kind, form_id, patch):
    """Merge ``patch`` into a draft form's data."""
    form = get_form(kind, form_id)
    _ensure_editable(form)
    form.form_data = {**form.form_data, **(patch or {})}
    db.session.commit()
    logger.debug("Auto-saved %d field(s) on %s %s", len(patch or {}), kind, form_id)
    return form


def schedule_autosave(kind, form_id, patch):
    """Validate the form can be edited, then queue the debounced write."""
    form = get_form(kind, form_id)
    _ensure_editable(form)
    if not isinstance(patch, dict) or not patch:
        raise ValidationError("Auto-save patch must be a non-empty object")
    return autosave.schedule(_key(kind, form_id), patch)


def flush_autosave(key, patch):
    """Timer callback registered with the debouncer."""
    kind, form_id = key
    try:
        apply_autosave(kind, form_id, patch)
    except (NotFoundError, FormLockedError) as e:
        logger.info("Dropped auto-save for %s %s: %s", kind, form_id, e)


def _valid_signature(signature):
    if not isinstance(signature, str) or not signature.startswith(SIGNATURE_PREFIX):
        return False
    try:
        return len(base64.b64decode(signature[len(SIGNATURE_PREFIX):], validate=True)) > 0
    except (binascii.Error, ValueError):
        return False


def sign_form(kind, form_id, signature, print_name, extra=None, user_id=None):
    """
    Sign a draft form. Requires a PNG data URL signature and the
    patient's printed name. The form is locked afterwards.
    """
    autosave.cancel(_key(kind, form_id))
    form = get_form(kind, form_id)
    _ensure_editable(form)

    errors = []
    if not signature:
        errors.append("Patient signature is required")
    elif not _valid_signature(signature):
        errors.append("Patient signature must be a PNG image")
    if not (print_name or '').strip():
        errors.append("Patient printed name is required")
    if errors:
        raise ValidationError(errors)

    now = datetime.utcnow()
    data = {**form.form_data, **(extra or {})}
    data['patient_print_name'] = print_name.strip()
    data.setdefault('patient_signature_date', now.strftime('%Y-%m-%d'))
    data.setdefault('patient_signature_time', now.strftime('%H:%M'))
    form.form_data = data
    form.patient_signature = signature
    form.status = 'signed'
    form.signed_at = now
    form.updated_by = user_id or form.updated_by
    db.session.commit()
    logger.info("Signed %s %s", kind, form_id)
    return form


def delete_form(kind, form_id):
    autosave.cancel(_key(kind, form_id))
    form = get_form(kind, form_id)
    db.session.delete(form)
    db.session.commit()
    logger.info("Deleted %s %s", kind, form_id)


def set_pdf_url(kind, form_id, url):
    """Record where the rendered PDF was stored. Allowed on signed forms."""
    form = get_form(kind, form_id)
    form.pdf_url = url
    db.session.commit()
    return form


def render_form_pdf(kind, form):
    """Render ``form`` (a model instance) to PDF bytes."""
    from frontdesk.utils.financial_agreement_pdf import generate_financial_agreement_pdf
    from frontdesk.utils.thank_you_pdf import generate_thank_you_pre_surgery_pdf

    renderers = {
        FINANCIAL_AGREEMENT: generate_financial_agreement_pdf,
        THANK_YOU_PRE_SURGERY: generate_thank_you_pre_surgery_pdf,
    }
    model_for(kind)
    data = {'patient_name': form.patient_name, **form.form_data}
    if form.patient_signature:
        data['patient_signature'] = form.patient_signature
    pdf = renderers[kind](data)
    logger.info("Rendered %s %s (%d bytes)", kind, form.id, len(pdf))
    return pdf
