import io
import json
import os

import pytest
from PIL import Image

from frontdesk.extensions import db
from frontdesk.models import Patient, SurgicalRecallImplant, SurgicalRecallSheet
from frontdesk.services.errors import SheetCreationError
from frontdesk.services.storage_service import LocalObjectStorage, get_storage
from frontdesk.services.surgical_recall_service import (
    delete_surgical_recall_sheet, save_surgical_recall_sheet, validate_sheet,
)


def png_bytes(color='red'):
    buffer = io.BytesIO()
    Image.new('RGB', (4, 4), color).save(buffer, format='PNG')
    return buffer.getvalue()


SHEET = {
    'patient_id': 'p1',
    'patient_name': 'Ana Ruiz',
    'surgery_date': '2026-04-01',
    'arch_type': 'upper',
}


@pytest.fixture
def storage(tmp_path):
    return LocalObjectStorage(str(tmp_path / 'objects'), 'http://testserver/storage')


@pytest.fixture
def patient(app):
    patient = Patient(first_name='Ana', last_name='Ruiz')
    db.session.add(patient)
    db.session.commit()
    return patient


# ==================== Validation ====================

def test_validate_sheet():
    assert validate_sheet(SHEET) == []
    assert validate_sheet({'arch_type': 'both'}) == [
        "Patient is required",
        "Patient name is required",
        "Surgery date is required",
        "Arch type must be one of: upper, lower, dual",
    ]


# ==================== Service ====================

def test_sheet_failure_raises_and_saves_nothing(app, fake_port, storage):
    fake_port.fail('insert', 'surgical_recall_sheets')

    with pytest.raises(SheetCreationError):
        save_surgical_recall_sheet(SHEET, [{'id': 'i1', 'arch_type': 'upper', 'position': '8'}],
                                   [], {}, fake_port, storage)

    assert fake_port.calls == [('insert', 'surgical_recall_sheets')]


def test_pictures_are_uploaded_and_linked(app, fake_port, storage):
    files = {
        'implant_picture:i1': ('implant.png', png_bytes(), 'image/png'),
        'graft_membrane:g1': ('graft.png', png_bytes('blue'), 'image/png'),
    }
    outcome = save_surgical_recall_sheet(
        SHEET,
        [{'id': 'i1', 'arch_type': 'upper', 'position': '8', 'implant_brand': 'Nobel'}],
        [{'id': 'g1', 'type': 'graft', 'brand_type': 'Bio-Oss'}],
        files, fake_port, storage,
    )

    assert outcome.warnings == []
    assert [(i.kind, i.saved) for i in outcome.items] == [('graft', True), ('implant', True)]

    sheet_id = outcome.sheet['id']
    assert outcome.sheet['status'] == 'draft'
    implant = fake_port.tables['surgical_recall_implants'][0]
    assert implant['implant_picture_url'].startswith(
        f'http://testserver/storage/surgical-recall-images/implants/{sheet_id}/')
    graft = fake_port.tables['surgical_recall_grafts_membranes'][0]
    assert f'/graft/{sheet_id}/g1/' in graft['picture_url']

    path = storage.path_from_public_url('surgical-recall-images', implant['implant_picture_url'])
    assert os.path.isfile(storage.open('surgical-recall-images', path))


def test_bad_picture_is_reported_but_item_saved(app, fake_port, storage):
    files = {'mua_picture:i1': ('mua.png', b'not an image', 'image/png')}

    outcome = save_surgical_recall_sheet(
        SHEET, [{'id': 'i1', 'arch_type': 'upper', 'position': '8'}], [], files, fake_port, storage)

    item = outcome.items[0]
    assert item.saved is True
    assert item.errors and item.errors[0].startswith('upload failed')
    assert fake_port.tables['surgical_recall_implants'][0]['mua_picture_url'] is None
    assert len(outcome.warnings) == 1


def test_item_insert_failure_is_isolated(app, fake_port, storage):
    fake_port.fail('insert', 'surgical_recall_implants')

    outcome = save_surgical_recall_sheet(
        SHEET,
        [{'id': 'i1', 'arch_type': 'upper', 'position': '8'}],
        [{'id': 'g1', 'type': 'membrane', 'brand_type': 'Collagen'}],
        {}, fake_port, storage,
    )

    assert [(i.kind, i.saved) for i in outcome.items] == [('membrane', True), ('implant', False)]
    assert len(fake_port.tables['surgical_recall_sheets']) == 1


def test_delete_attempts_every_image(app, fake_port, storage):
    good = storage.upload('surgical-recall-images', 'implants/s1/a.png', png_bytes())
    sheet = fake_port.seed('surgical_recall_sheets', **SHEET)
    fake_port.seed('surgical_recall_implants', surgical_recall_sheet_id=sheet['id'],
                   implant_picture_url='http://elsewhere/unrelated.png', mua_picture_url=good)
    fake_port.seed('surgical_recall_grafts_membranes', surgical_recall_sheet_id=sheet['id'],
                   picture_url='http://testserver/storage/surgical-recall-images/graft/s1/missing.png')

    summary = delete_surgical_recall_sheet(sheet['id'], fake_port, storage)

    assert summary == {'id': sheet['id'], 'images_total': 3, 'images_failed': 1}
    assert not os.path.exists(storage.open('surgical-recall-images', 'implants/s1/a.png'))
    assert not fake_port.tables['surgical_recall_sheets']
    assert not fake_port.tables['surgical_recall_implants']
    assert not fake_port.tables['surgical_recall_grafts_membranes']


# ==================== Endpoints ====================

def test_create_sheet_multipart(app, client, auth_headers, patient):
    payload = {
        'sheet': dict(SHEET, patient_id=patient.id),
        'implants': [{'id': 'i1', 'arch_type': 'upper', 'position': '8', 'implant_brand': 'Nobel'}],
        'grafts_membranes': [],
    }
    response = client.post(
        '/api/surgical-recall-sheets',
        headers=auth_headers,
        data={
            'data': json.dumps(payload),
            'implant_picture:i1': (io.BytesIO(png_bytes()), 'implant.png', 'image/png'),
        },
        content_type='multipart/form-data',
    )

    assert response.status_code == 201
    body = response.get_json()['data']
    assert body['warnings'] == []
    assert SurgicalRecallSheet.query.count() == 1
    implant = SurgicalRecallImplant.query.one()

    # stored picture is served back through the storage route
    path = implant.implant_picture_url[len(app.config['STORAGE_PUBLIC_URL'].rstrip('/')) + 1:]
    served = client.get(f'/storage/{path}')
    assert served.status_code == 200
    assert served.data == png_bytes()

    listing = client.get(f'/api/surgical-recall-sheets?patient_id={patient.id}', headers=auth_headers)
    assert len(listing.get_json()['data']) == 1


def test_create_sheet_validation(client, auth_headers):
    response = client.post('/api/surgical-recall-sheets', headers=auth_headers, json={'sheet': {}})
    assert response.status_code == 400
    assert "Patient is required" in response.get_json()['errors']


def test_list_requires_patient(client, auth_headers):
    assert client.get('/api/surgical-recall-sheets', headers=auth_headers).status_code == 400


def test_get_and_delete_sheet(client, auth_headers, patient):
    created = client.post('/api/surgical-recall-sheets', headers=auth_headers, json={
        'sheet': dict(SHEET, patient_id=patient.id),
        'implants': [{'id': 'i1', 'arch_type': 'upper', 'position': '9'}],
    }).get_json()['data']
    sheet_id = created['sheet']['id']

    detail = client.get(f'/api/surgical-recall-sheets/{sheet_id}', headers=auth_headers).get_json()
    assert [i['position'] for i in detail['data']['implants']] == ['9']

    deleted = client.delete(f'/api/surgical-recall-sheets/{sheet_id}', headers=auth_headers)
    assert deleted.get_json()['data']['images_total'] == 0
    assert client.get(f'/api/surgical-recall-sheets/{sheet_id}', headers=auth_headers).status_code == 404


def test_storage_route_rejects_missing_objects(client, app):
    get_storage().upload('agreement-pdfs', 'a/b.pdf', b'%PDF-1.4')
    assert client.get('/storage/agreement-pdfs/a/b.pdf').status_code == 200
    assert client.get('/storage/agreement-pdfs/a/none.pdf').status_code == 404


@pytest.mark.parametrize('body,error', [
    ([1, 2], "Request body must be a JSON object"),
    ({'sheet': ['x']}, "sheet must be an object"),
    ({'sheet': {}, 'implants': 'none'}, "implants must be a list of objects"),
    ({'sheet': {}, 'grafts_membranes': [1]}, "grafts_membranes must be a list of objects"),
])
def test_create_sheet_rejects_malformed_body(client, auth_headers, body, error):
    response = client.post('/api/surgical-recall-sheets', headers=auth_headers, json=body)

    assert response.status_code == 400
    assert error in response.get_json()['errors']
