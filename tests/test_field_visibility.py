import pytest

from frontdesk.services.field_visibility import (
    NIGHTGUARD_QUESTION, SCREW_TYPE, VDO_DETAILS, evaluate_rules, should_show, validate_lab_script,
    visible_fields,
)

APPLIANCES = ('hybrid', 'denture', 'night-guard', 'overdenture', '')


def sel(arch, upper='', lower=''):
    return {'arch_type': arch, 'upper_appliance_type': upper, 'lower_appliance_type': lower}


# ==================== Single arch ====================

@pytest.mark.parametrize('appliance,screw,vdo,nightguard', [
    ('hybrid', True, True, True),
    ('overdenture', True, True, True),
    ('denture', False, True, False),
    ('night-guard', False, False, False),
    ('', True, True, False),
])
@pytest.mark.parametrize('arch', ['upper', 'lower'])
def test_single_arch(arch, appliance, screw, vdo, nightguard):
    selections = sel(arch, upper=appliance) if arch == 'upper' else sel(arch, lower=appliance)
    assert visible_fields(selections) == {
        SCREW_TYPE: screw,
        VDO_DETAILS: vdo,
        NIGHTGUARD_QUESTION: nightguard,
    }


def test_single_arch_ignores_other_arch_appliance():
    assert should_show(SCREW_TYPE, sel('upper', upper='hybrid', lower='night-guard')) is True
    assert should_show(SCREW_TYPE, sel('lower', upper='hybrid', lower='night-guard')) is False


# ==================== Dual arch ====================

@pytest.mark.parametrize('upper', APPLIANCES)
@pytest.mark.parametrize('lower', APPLIANCES)
def test_dual_arch_polarity(upper, lower):
    shown = visible_fields(sel('dual', upper, lower))

    no_screw = {'night-guard', 'denture'}
    assert shown[SCREW_TYPE] is not (upper in no_screw and lower in no_screw)
    assert shown[VDO_DETAILS] is not (upper == 'night-guard' and lower == 'night-guard')

    def asks(appliance):
        return bool(appliance) and appliance not in ('denture', 'night-guard')
    assert shown[NIGHTGUARD_QUESTION] is (asks(upper) or asks(lower))


def test_dual_arch_denture_and_night_guard():
    shown = visible_fields(sel('dual', 'denture', 'night-guard'))
    assert shown == {SCREW_TYPE: False, VDO_DETAILS: True, NIGHTGUARD_QUESTION: False}


# ==================== Edge cases ====================

@pytest.mark.parametrize('field', [SCREW_TYPE, VDO_DETAILS, NIGHTGUARD_QUESTION])
def test_no_arch_hides_everything(field):
    assert should_show(field, sel('', 'hybrid', 'hybrid')) is False
    assert should_show(field, {}) is False
    assert should_show(field, None) is False


def test_unknown_field_is_hidden():
    assert should_show('shade', sel('upper', 'hybrid')) is False


def test_camel_case_keys():
    selections = {'archType': 'upper', 'upperApplianceType': 'night-guard'}
    assert should_show(SCREW_TYPE, selections) is False
    assert should_show(VDO_DETAILS, selections) is False


# ==================== Form validation ====================

def valid_form(**overrides):
    form = {
        'patient_id': 'p1',
        'patient_name': 'Jane Doe',
        'arch_type': 'upper',
        'upper_appliance_type': 'hybrid',
        'screw_type': 'multi-unit',
        'vdo_details': 'open-4mm',
        'is_nightguard_needed': 'yes',
        'requested_date': '2026-01-05',
        'due_date': '2026-01-20',
        'instructions': 'Please match the existing shade.',
    }
    form.update(overrides)
    return form


def test_valid_form_has_no_errors():
    assert validate_lab_script(valid_form()) == []


def test_hidden_fields_are_not_required():
    form = valid_form(upper_appliance_type='night-guard', screw_type='', vdo_details='',
                      is_nightguard_needed='')
    assert validate_lab_script(form) == []


def test_missing_fields_are_reported_in_order():
    errors = validate_lab_script({'arch_type': 'dual'})
    assert errors[:3] == [
        "Patient selection is required",
        "Upper appliance type is required",
        "Lower appliance type is required",
    ]
    assert errors[-3:] == [
        "Requested date is required",
        "Due date is required",
        "Special instructions are required",
    ]


def test_other_screw_type_needs_specification():
    errors = validate_lab_script(valid_form(screw_type='Other', custom_screw_type='  '))
    assert errors == ["Custom screw type specification is required"]


def test_invalid_arch():
    errors = validate_lab_script(valid_form(arch_type='middle'))
    assert "Arch type must be one of: upper, lower, dual" in errors


# ==================== Configurable rules ====================

def rule(**kwargs):
    base = {
        'field_name': 'shade',
        'rule_type': 'hide_when',
        'condition_field': 'appliance_type',
        'condition_values': ['night-guard'],
        'arch_type': None,
        'is_active': True,
    }
    base.update(kwargs)
    return base


def test_no_rules_shows_field():
    assert evaluate_rules([], 'shade', sel('upper', 'night-guard')) is True


def test_hide_when_rule():
    rules = [rule()]
    assert evaluate_rules(rules, 'shade', sel('upper', 'night-guard')) is False
    assert evaluate_rules(rules, 'shade', sel('upper', 'hybrid')) is True


def test_show_when_rule():
    rules = [rule(rule_type='show_when', condition_values=['hybrid'])]
    assert evaluate_rules(rules, 'shade', sel('lower', lower='hybrid')) is True
    assert evaluate_rules(rules, 'shade', sel('lower', lower='denture')) is False


def test_rules_for_other_fields_and_inactive_rules_are_ignored():
    rules = [rule(field_name='material'), rule(is_active=False)]
    assert evaluate_rules(rules, 'shade', sel('upper', 'night-guard')) is True


def test_arch_scoped_rule_on_dual_arch():
    rules = [rule(arch_type='upper')]
    assert evaluate_rules(rules, 'shade', sel('dual', 'night-guard', 'night-guard')) is True
    assert evaluate_rules(rules, 'shade', sel('upper', 'night-guard')) is False


def test_treatment_type_condition():
    rules = [rule(condition_field='treatment_type', condition_values=['extraction'])]
    form = {'arch_type': 'upper', 'upper_treatment_type': 'extraction', 'upper_appliance_type': 'hybrid'}
    assert evaluate_rules(rules, 'shade', form) is False


def test_rules_show_everything_without_arch():
    assert evaluate_rules([rule()], 'shade', {}) is True
