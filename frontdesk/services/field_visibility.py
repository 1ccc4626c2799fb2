"""
Visibility of the conditional lab script fields.

The three built-in rules depend only on the arch selection and the
appliance type chosen for each arch. ``screw_type`` and ``vdo_details``
stay visible on a dual arch unless BOTH arches exclude them, while
``nightguard_question`` shows on a dual arch when EITHER arch qualifies.
"""
from typing import Iterable, List, Mapping

SCREW_TYPE = 'screw_type'
VDO_DETAILS = 'vdo_details'
NIGHTGUARD_QUESTION = 'nightguard_question'

FIELDS = (SCREW_TYPE, VDO_DETAILS, NIGHTGUARD_QUESTION)

NO_SCREW_APPLIANCES = frozenset({'night-guard', 'denture'})
NO_VDO_APPLIANCES = frozenset({'night-guard'})
NO_NIGHTGUARD_APPLIANCES = frozenset({'denture', 'night-guard'})

ARCHES = ('upper', 'lower', 'dual')

_KEYS = {
    'arch': ('archType', 'arch_type'),
    'upper': ('upperApplianceType', 'upper_appliance_type'),
    'lower': ('lowerApplianceType', 'lower_appliance_type'),
    'upper_treatment': ('upperTreatmentType', 'upper_treatment_type'),
    'lower_treatment': ('lowerTreatmentType', 'lower_treatment_type'),
}


def _pick(selections, name):
    for key in _KEYS[name]:
        value = selections.get(key)
        if value:
            return value
    return ''


def _normalize(selections):
    selections = selections or {}
    return _pick(selections, 'arch'), _pick(selections, 'upper'), _pick(selections, 'lower')


def _excluded_unless_both(arch, upper, lower, excluded):
    if arch == 'upper':
        return upper not in excluded
    if arch == 'lower':
        return lower not in excluded
    if arch == 'dual':
        return not (upper in excluded and lower in excluded)
    return False


def _asks_nightguard(appliance):
    return bool(appliance) and appliance not in NO_NIGHTGUARD_APPLIANCES


def should_show(field_name: str, selections: Mapping) -> bool:
    """
    Decide whether ``field_name`` is shown for the given arch/appliance
    selections. Unknown field names and an empty arch yield False.
    """
    arch, upper, lower = _normalize(selections)

    if field_name == SCREW_TYPE:
        return _excluded_unless_both(arch, upper, lower, NO_SCREW_APPLIANCES)
    if field_name == VDO_DETAILS:
        return _excluded_unless_both(arch, upper, lower, NO_VDO_APPLIANCES)
    if field_name == NIGHTGUARD_QUESTION:
        if arch == 'upper':
            return _asks_nightguard(upper)
        if arch == 'lower':
            return _asks_nightguard(lower)
        if arch == 'dual':
            return _asks_nightguard(upper) or _asks_nightguard(lower)
        return False
    return False


def visible_fields(selections: Mapping) -> dict:
    return {name: should_show(name, selections) for name in FIELDS}


def validate_lab_script(form: Mapping) -> List[str]:
    """Return every missing required field of a lab script form, in display order."""
    errors = []
    arch, upper, lower = _normalize(form)

    if not (form.get('patient_id') or form.get('patientId')) or not (
            form.get('patient_name') or form.get('patientName')):
        errors.append("Patient selection is required")

    if not arch:
        errors.append("Arch type is required")
    elif arch not in ARCHES:
        errors.append(f"Arch type must be one of: {', '.join(ARCHES)}")

    if arch in ('upper', 'dual') and not upper:
        errors.append("Upper appliance type is required")
    if arch in ('lower', 'dual') and not lower:
        errors.append("Lower appliance type is required")

    screw_type = form.get('screw_type') or form.get('screwType') or ''
    if should_show(SCREW_TYPE, form) and not screw_type:
        errors.append("Screw type is required")

    custom_screw = form.get('custom_screw_type') or form.get('customScrewType') or ''
    if screw_type.lower() == 'other' and not custom_screw.strip():
        errors.append("Custom screw type specification is required")

    if should_show(VDO_DETAILS, form) and not (form.get('vdo_details') or form.get('vdoDetails')):
        errors.append("VDO details selection is required")

    if should_show(NIGHTGUARD_QUESTION, form) and not (
            form.get('is_nightguard_needed') or form.get('isNightguardNeeded')):
        errors.append("Nightguard needed selection is required")

    if not (form.get('requested_date') or form.get('requestedDate')):
        errors.append("Requested date is required")
    if not (form.get('due_date') or form.get('dueDate')):
        errors.append("Due date is required")

    instructions = form.get('instructions') or ''
    if not instructions.strip():
        errors.append("Special instructions are required")

    return errors


def _rule_value(rule, key):
    if isinstance(rule, Mapping):
        return rule.get(key)
    return getattr(rule, key, None)


def _arch_allows(rules, arch, treatment_type, appliance_type):
    for rule in rules:
        rule_arch = _rule_value(rule, 'arch_type')
        if rule_arch and rule_arch != arch:
            continue

        if _rule_value(rule, 'condition_field') == 'treatment_type':
            value = treatment_type
        else:
            value = appliance_type
        if not value:
            continue

        matches = value in (_rule_value(rule, 'condition_values') or [])
        rule_type = _rule_value(rule, 'rule_type')
        if rule_type == 'hide_when' and matches:
            return False
        if rule_type == 'show_when' and not matches:
            return False
    return True


def evaluate_rules(rules: Iterable, field_name: str, form: Mapping) -> bool:
    """
    Apply configurable FieldVisibilityRule rows to ``field_name``.

    Inactive rules are ignored. A field with no rules is shown, as is
    every field while no arch is selected.
    """
    field_rules = [
        r for r in rules
        if _rule_value(r, 'field_name') == field_name and _rule_value(r, 'is_active') is not False
    ]
    if not field_rules:
        return True

    form = form or {}
    arch = _pick(form, 'arch')
    upper = (_pick(form, 'upper_treatment'), _pick(form, 'upper'))
    lower = (_pick(form, 'lower_treatment'), _pick(form, 'lower'))

    if arch == 'upper':
        return _arch_allows(field_rules, 'upper', *upper)
    if arch == 'lower':
        return _arch_allows(field_rules, 'lower', *lower)
    if arch == 'dual':
        return _arch_allows(field_rules, 'upper', *upper) or _arch_allows(field_rules, 'lower', *lower)
    return True
