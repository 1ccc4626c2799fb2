from types import SimpleNamespace

import pytest

from frontdesk.models import LabScript, LabScriptComment
from frontdesk.services import ai_enhancement
from frontdesk.services.ai_enhancement import build_prompt, enhance_lab_instructions
from frontdesk.services.errors import EnhancementError, ValidationError
from frontdesk.services.lab_script_service import create_lab_script


def lab_form(**overrides):
    form = {
        'patientId': 'p1',
        'patientName': 'Ana Ruiz',
        'archType': 'upper',
        'upperApplianceType': 'hybrid',
        'lowerApplianceType': 'denture',
        'screwType': 'multi-unit',
        'customScrewType': 'leftover',
        'vdoDetails': 'open-4mm',
        'isNightguardNeeded': 'yes',
        'material': 'zirconia',
        'shade': 'A2',
        'requestedDate': '2026-03-01',
        'dueDate': '2026-03-15',
        'instructions': 'Match the existing lower arch.',
    }
    form.update(overrides)
    return form


class FakeModels:

    def __init__(self, text=None, error=None):
        self.text = text
        self.error = error
        self.calls = []

    def generate_content(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        return SimpleNamespace(text=self.text)


def fake_client(text=None, error=None):
    return SimpleNamespace(models=FakeModels(text, error))


# ==================== Service ====================

def test_hidden_and_other_arch_values_are_dropped(fake_port):
    script = create_lab_script(lab_form(), fake_port)

    assert script['lower_appliance_type'] is None
    assert script['custom_screw_type'] is None
    assert script['screw_type'] == 'multi-unit'
    assert script['status'] == 'pending'


def test_hidden_fields_cleared_for_night_guard(fake_port):
    script = create_lab_script(
        lab_form(upperApplianceType='night-guard', screwType='', vdoDetails='', isNightguardNeeded='no'),
        fake_port,
    )
    assert script['screw_type'] is None
    assert script['vdo_details'] is None
    assert script['is_nightguard_needed'] is None


def test_invalid_form_writes_nothing(fake_port):
    with pytest.raises(ValidationError) as exc:
        create_lab_script(lab_form(dueDate=''), fake_port)
    assert exc.value.errors == ["Due date is required"]
    assert not fake_port.calls


def test_notes_become_first_comment(fake_port):
    script = create_lab_script(lab_form(notes='Rush please'), fake_port,
                               author={'full_name': 'Dr Smith', 'role': 'doctor'})

    assert [c['comment_text'] for c in script['comments']] == ['Rush please']
    assert fake_port.tables['lab_script_comments'][0]['author_role'] == 'doctor'


def test_comment_failure_keeps_script(fake_port):
    fake_port.fail('insert', 'lab_script_comments')
    script = create_lab_script(lab_form(notes='Rush please'), fake_port)
    assert script['comments'] == []
    assert len(fake_port.tables['lab_scripts']) == 1


# ==================== AI enhancement ====================

@pytest.mark.parametrize('text,message', [
    ('', 'Please enter some instructions first before enhancing.'),
    ('   ', 'Please enter some instructions first before enhancing.'),
    ('too short', 'Please enter more detailed instructions before enhancing.'),
])
def test_enhancement_needs_real_instructions(app, text, message):
    client = fake_client('unused')
    with pytest.raises(ValidationError, match=message):
        enhance_lab_instructions(text, client=client)
    assert client.models.calls == []


def test_enhancement_calls_model(app):
    client = fake_client('  Please fabricate a zirconia bridge for teeth #3-14.  ')

    result = enhance_lab_instructions('make zirconia bridge 3-14 pls', client=client)

    assert result == 'Please fabricate a zirconia bridge for teeth #3-14.'
    call = client.models.calls[0]
    assert call['model'] == app.config['GEMINI_MODEL']
    assert call['contents'] == build_prompt('make zirconia bridge 3-14 pls')
    assert call['config'].temperature == 0.3


def test_empty_model_response(app):
    with pytest.raises(EnhancementError, match='No enhanced text received'):
        enhance_lab_instructions('make zirconia bridge 3-14', client=fake_client(''))


@pytest.mark.parametrize('error,message', [
    (RuntimeError('API key not valid'), 'Invalid Gemini API key'),
    (RuntimeError('429 quota exhausted'), 'quota exceeded'),
    (RuntimeError('response blocked by SAFETY'), 'safety filters'),
    (RuntimeError('connection reset'), 'Failed to enhance instructions'),
])
def test_model_errors_are_translated(app, error, message):
    with pytest.raises(EnhancementError, match=message):
        enhance_lab_instructions('make zirconia bridge 3-14', client=fake_client(error=error))


def test_missing_api_key(app):
    with pytest.raises(EnhancementError, match='GEMINI_API_KEY'):
        enhance_lab_instructions('make zirconia bridge 3-14')


# ==================== Endpoints ====================

def test_create_and_get_lab_script(client, auth_headers):
    response = client.post('/api/lab-scripts', headers=auth_headers, json=lab_form(notes='Call before shipping'))

    assert response.status_code == 201
    script_id = response.get_json()['data']['id']
    assert LabScript.query.count() == 1
    comment = LabScriptComment.query.one()
    assert comment.author_name == 'Office Admin'

    detail = client.get(f'/api/lab-scripts/{script_id}', headers=auth_headers).get_json()['data']
    assert detail['comments'][0]['comment_text'] == 'Call before shipping'

    listing = client.get('/api/lab-scripts?patient_id=p1', headers=auth_headers).get_json()['data']
    assert [s['id'] for s in listing] == [script_id]


def test_create_lab_script_validation(client, auth_headers):
    response = client.post('/api/lab-scripts', headers=auth_headers, json={'archType': 'dual'})
    assert response.status_code == 400
    assert "Upper appliance type is required" in response.get_json()['errors']


def test_missing_lab_script(client, auth_headers):
    assert client.get('/api/lab-scripts/none', headers=auth_headers).status_code == 404


def test_visibility_endpoint(client, auth_headers):
    client.post('/api/field-visibility-rules', headers=auth_headers, json={
        'field_name': 'shade',
        'rule_type': 'hide_when',
        'condition_field': 'appliance_type',
        'condition_values': ['night-guard'],
    })

    response = client.post('/api/lab-scripts/visibility', headers=auth_headers,
                           json={'archType': 'dual', 'upperApplianceType': 'night-guard',
                                 'lowerApplianceType': 'denture'})

    data = response.get_json()['data']
    assert data['fields'] == {'screw_type': False, 'vdo_details': True, 'nightguard_question': False}
    assert data['configured'] == {'shade': True}


def test_enhance_endpoint(client, auth_headers, monkeypatch):
    monkeypatch.setattr(ai_enhancement, '_client', lambda: fake_client('Fabricate a night guard.'))

    response = client.post('/api/lab-scripts/enhance-instructions', headers=auth_headers,
                           json={'instructions': 'make a night guard pls'})

    assert response.status_code == 200
    assert response.get_json()['data'] == {'enhanced_instructions': 'Fabricate a night guard.'}


def test_enhance_endpoint_without_key(client, auth_headers):
    response = client.post('/api/lab-scripts/enhance-instructions', headers=auth_headers,
                           json={'instructions': 'make a night guard pls'})
    assert response.status_code == 502
    assert 'not configured' in response.get_json()['error']
