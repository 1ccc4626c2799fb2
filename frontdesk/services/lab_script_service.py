import logging

from frontdesk.services.errors import DataPortError, NotFoundError, ValidationError
from frontdesk.services.field_visibility import (
    NIGHTGUARD_QUESTION, SCREW_TYPE, VDO_DETAILS, should_show, validate_lab_script,
)

logger = logging.getLogger(__name__)

# (column, camelCase form key)
FORM_FIELDS = (
    ('patient_id', 'patientId'),
    ('patient_name', 'patientName'),
    ('arch_type', 'archType'),
    ('upper_appliance_type', 'upperApplianceType'),
    ('lower_appliance_type', 'lowerApplianceType'),
    ('upper_treatment_type', 'upperTreatmentType'),
    ('lower_treatment_type', 'lowerTreatmentType'),
    ('screw_type', 'screwType'),
    ('custom_screw_type', 'customScrewType'),
    ('material', 'material'),
    ('shade', 'shade'),
    ('vdo_details', 'vdoDetails'),
    ('is_nightguard_needed', 'isNightguardNeeded'),
    ('requested_date', 'requestedDate'),
    ('due_date', 'dueDate'),
    ('instructions', 'instructions'),
)


def _row_from_form(form):
    row = {}
    for column, camel in FORM_FIELDS:
        value = form.get(column)
        if value in (None, ''):
            value = form.get(camel)
        row[column] = None if value == '' else value
    return row


def create_lab_script(form, port, author=None):
    """
    Validate and insert a lab script.

    Values for fields hidden by the arch/appliance selection are dropped.
    Optional ``notes`` become the first comment (best-effort).
    """
    errors = validate_lab_script(form)
    if errors:
        raise ValidationError(errors)

    row = _row_from_form(form)
    arch = row['arch_type']
    if arch == 'upper':
        row['lower_appliance_type'] = row['lower_treatment_type'] = None
    elif arch == 'lower':
        row['upper_appliance_type'] = row['upper_treatment_type'] = None

    if not should_show(SCREW_TYPE, row):
        row['screw_type'] = row['custom_screw_type'] = None
    elif (row['screw_type'] or '').lower() != 'other':
        row['custom_screw_type'] = None
    if not should_show(VDO_DETAILS, row):
        row['vdo_details'] = None
    if not should_show(NIGHTGUARD_QUESTION, row):
        row['is_nightguard_needed'] = None
    row['status'] = 'pending'

    script = port.insert('lab_scripts', row)
    logger.info("Created lab script %s for %s", script['id'], script['patient_name'])

    notes = (form.get('notes') or '').strip()
    if notes:
        try:
            comment = port.insert('lab_script_comments', {
                'lab_script_id': script['id'],
                'comment_text': notes,
                'author_name': (author or {}).get('full_name'),
                'author_role': (author or {}).get('role'),
            })
            script['comments'] = [comment]
        except DataPortError as e:
            logger.warning("Failed to add notes comment to lab script %s: %s", script['id'], e)
            script['comments'] = []
    return script


def get_lab_script(script_id, port):
    script = port.get('lab_scripts', script_id)
    if script is None:
        raise NotFoundError('Lab script not found')
    script['comments'] = port.select('lab_script_comments', {'lab_script_id': script_id}, order_by='created_at')
    return script
