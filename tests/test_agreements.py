import base64
import io
import threading

import pytest
from PIL import Image

from frontdesk.extensions import db
from frontdesk.models import FinancialAgreement
from frontdesk.services import agreement_service
from frontdesk.services.agreement_service import FINANCIAL_AGREEMENT, THANK_YOU_PRE_SURGERY
from frontdesk.services.autosave import AutoSaveDebouncer
from frontdesk.services.errors import FormLockedError, NotFoundError, ValidationError


def signature_data_url():
    buffer = io.BytesIO()
    Image.new('RGBA', (20, 8), (0, 0, 0, 255)).save(buffer, format='PNG')
    return 'data:image/png;base64,' + base64.b64encode(buffer.getvalue()).decode('ascii')


@pytest.fixture
def form(app):
    return agreement_service.create_form(FINANCIAL_AGREEMENT, {
        'patient_id': 'p1',
        'patient_name': 'Ana Ruiz',
        'form_data': {'chart_number': 'C-100', 'total_cost_of_treatment': '25000'},
    })


# ==================== Debouncer ====================

class TestAutoSaveDebouncer:

    def make(self, fake_timer, app):
        flushed = []
        debouncer = AutoSaveDebouncer(timer_factory=fake_timer)
        debouncer.init_app(app, lambda key, patch: flushed.append((key, patch)))
        return debouncer, flushed

    def test_patches_merge_and_restart_the_timer(self, fake_timer, app):
        debouncer, flushed = self.make(fake_timer, app)

        debouncer.schedule('k', {'a': 1, 'b': 1})
        merged = debouncer.schedule('k', {'b': 2})

        assert merged == {'a': 1, 'b': 2}
        first, second = fake_timer.instances
        assert first.cancelled and not second.cancelled
        assert second.started and second.daemon
        assert second.interval == app.config['AUTOSAVE_DELAY_SECONDS']

        first.fire()
        assert flushed == []
        second.fire()
        assert flushed == [('k', {'a': 1, 'b': 2})]
        assert debouncer.pending('k') is None

    def test_cancel(self, fake_timer, app):
        debouncer, flushed = self.make(fake_timer, app)
        debouncer.schedule('k', {'a': 1})

        assert debouncer.cancel('k') is True
        assert debouncer.cancel('k') is False
        fake_timer.instances[0].fire()
        assert flushed == []

    def test_keys_are_independent(self, fake_timer, app):
        debouncer, flushed = self.make(fake_timer, app)
        debouncer.schedule('a', {'x': 1})
        debouncer.schedule('b', {'y': 2})

        debouncer.flush_all()

        assert sorted(flushed) == [('a', {'x': 1}), ('b', {'y': 2})]

    def test_cancel_waits_for_write_in_progress(self, fake_timer, app):
        writing, release = threading.Event(), threading.Event()
        order = []

        def slow_flush(key, patch):
            writing.set()
            release.wait(5)
            order.append('autosave')
        debouncer = AutoSaveDebouncer(timer_factory=fake_timer)
        debouncer.init_app(app, slow_flush)
        debouncer.schedule('k', {'a': 1})

        timer_thread = threading.Thread(target=fake_timer.instances[0].fire)
        timer_thread.start()
        assert writing.wait(5)

        def explicit_save():
            debouncer.cancel('k')
            order.append('save')
        saver = threading.Thread(target=explicit_save)
        saver.start()
        saver.join(0.2)
        assert saver.is_alive()

        release.set()
        saver.join(5)
        timer_thread.join(5)
        assert order == ['autosave', 'save']

    def test_cancel_from_the_writing_thread_does_not_block(self, fake_timer, app):
        results = []
        debouncer = AutoSaveDebouncer(timer_factory=fake_timer, flush_wait=0.01)
        debouncer.init_app(app, lambda key, patch: results.append(debouncer.cancel(key)))
        debouncer.schedule('k', {'a': 1})

        fake_timer.instances[0].fire()

        assert results == [False]

    def test_flush_errors_are_logged(self, fake_timer, app, caplog):
        debouncer = AutoSaveDebouncer(timer_factory=fake_timer)

        def boom(key, patch):
            raise RuntimeError('db down')
        debouncer.init_app(app, boom)
        debouncer.schedule('k', {'a': 1})
        fake_timer.instances[0].fire()

        assert 'Autosave for k failed' in caplog.text


# ==================== Service ====================

def test_create_requires_patient_name(app):
    with pytest.raises(ValidationError, match='Patient name is required'):
        agreement_service.create_form(THANK_YOU_PRE_SURGERY, {'form_data': {}})


def test_unknown_form_kind(app):
    with pytest.raises(NotFoundError):
        agreement_service.create_form('consent', {'patient_name': 'x'})


def test_autosave_writes_merged_patch(app, form, fake_timer):
    agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {'lab_fee_initials': 'AR'})
    pending = agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {'chart_number': 'C-200'})
    assert pending == {'lab_fee_initials': 'AR', 'chart_number': 'C-200'}

    fake_timer.instances[-1].fire()
    db.session.expire_all()

    saved = agreement_service.get_form(FINANCIAL_AGREEMENT, form.id).form_data
    assert saved == {'chart_number': 'C-200', 'total_cost_of_treatment': '25000', 'lab_fee_initials': 'AR'}


def test_explicit_save_cancels_pending_autosave(app, form, fake_timer):
    agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {'chart_number': 'stale'})

    agreement_service.save_form(FINANCIAL_AGREEMENT, form.id, {'form_data': {'chart_number': 'C-300'}})

    assert fake_timer.instances[0].cancelled
    fake_timer.instances[0].fire()
    db.session.expire_all()
    assert agreement_service.get_form(FINANCIAL_AGREEMENT, form.id).form_data == {'chart_number': 'C-300'}


def test_autosave_rejects_empty_patch(app, form, fake_timer):
    with pytest.raises(ValidationError):
        agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {})


def test_sign_locks_form(app, form):
    signed = agreement_service.sign_form(FINANCIAL_AGREEMENT, form.id, signature_data_url(), ' Ana Ruiz ',
                                         extra={'terms_agreed': True})

    assert signed.status == 'signed'
    assert signed.signed_at is not None
    assert signed.form_data['patient_print_name'] == 'Ana Ruiz'
    assert signed.form_data['terms_agreed'] is True
    assert signed.form_data['patient_signature_date']

    with pytest.raises(FormLockedError, match='Signed forms cannot be modified'):
        agreement_service.save_form(FINANCIAL_AGREEMENT, form.id, {'form_data': {}})
    with pytest.raises(FormLockedError):
        agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {'a': 1})
    with pytest.raises(FormLockedError):
        agreement_service.sign_form(FINANCIAL_AGREEMENT, form.id, signature_data_url(), 'Ana Ruiz')


def test_autosave_dropped_after_signing(app, form, fake_timer):
    agreement_service.schedule_autosave(FINANCIAL_AGREEMENT, form.id, {'chart_number': 'late'})
    agreement_service.sign_form(FINANCIAL_AGREEMENT, form.id, signature_data_url(), 'Ana Ruiz')

    agreement_service.flush_autosave((FINANCIAL_AGREEMENT, form.id), {'chart_number': 'late'})

    db.session.expire_all()
    assert agreement_service.get_form(FINANCIAL_AGREEMENT, form.id).form_data['chart_number'] == 'C-100'


@pytest.mark.parametrize('signature,print_name,expected', [
    (None, 'Ana', ["Patient signature is required"]),
    ('data:image/jpeg;base64,AAAA', 'Ana', ["Patient signature must be a PNG image"]),
    ('data:image/png;base64,not-base64!', 'Ana', ["Patient signature must be a PNG image"]),
    ('data:image/png;base64,', 'Ana', ["Patient signature must be a PNG image"]),
    ('data:image/png;base64,iVBORw0KGgo=', '  ', ["Patient printed name is required"]),
])
def test_sign_validation(app, form, signature, print_name, expected):
    with pytest.raises(ValidationError) as exc:
        agreement_service.sign_form(FINANCIAL_AGREEMENT, form.id, signature, print_name)
    assert exc.value.errors == expected
    assert agreement_service.get_form(FINANCIAL_AGREEMENT, form.id).status == 'draft'


def test_signed_form_can_be_deleted(app, form):
    agreement_service.sign_form(FINANCIAL_AGREEMENT, form.id, signature_data_url(), 'Ana Ruiz')
    agreement_service.delete_form(FINANCIAL_AGREEMENT, form.id)
    assert FinancialAgreement.query.count() == 0


# ==================== Endpoints ====================

def test_form_lifecycle_over_http(client, auth_headers, fake_timer):
    created = client.post('/api/agreements/thank-you-pre-surgery', headers=auth_headers, json={
        'patient_id': 'p9',
        'patient_name': 'Sam Lee',
        'form_data': {'phone': '555-0101'},
    })
    assert created.status_code == 201
    form_id = created.get_json()['data']['id']
    base = f'/api/agreements/thank-you-pre-surgery/{form_id}'

    patched = client.patch(f'{base}/autosave', headers=auth_headers,
                           json={'medical_conditions': {'diabetes': True}})
    assert patched.status_code == 202
    assert patched.get_json()['data']['pending'] == {'medical_conditions': {'diabetes': True}}

    fake_timer.instances[-1].fire()
    db.session.expire_all()
    data = client.get(base, headers=auth_headers).get_json()['data']
    assert data['form_data']['medical_conditions'] == {'diabetes': True}

    signed = client.post(f'{base}/sign', headers=auth_headers, json={
        'patient_signature': signature_data_url(),
        'patient_print_name': 'Sam Lee',
    })
    assert signed.status_code == 200

    locked = client.put(base, headers=auth_headers, json={'form_data': {}})
    assert locked.status_code == 409
    assert locked.get_json() == {'success': False, 'error': 'Signed forms cannot be modified'}

    listing = client.get('/api/agreements/patient/p9', headers=auth_headers).get_json()['data']
    assert [f['id'] for f in listing['thank-you-pre-surgery']] == [form_id]
    assert listing['financial-agreement'] == []


def test_sign_without_signature_is_400(client, auth_headers, form):
    response = client.post(f'/api/agreements/financial-agreement/{form.id}/sign', headers=auth_headers,
                           json={'patient_print_name': 'Ana Ruiz'})
    assert response.status_code == 400
    assert response.get_json()['errors'] == ["Patient signature is required"]


def test_pdf_download(client, auth_headers, form):
    response = client.get(f'/api/agreements/financial-agreement/{form.id}/pdf', headers=auth_headers)

    assert response.status_code == 200
    assert response.mimetype == 'application/pdf'
    assert response.data.startswith(b'%PDF')


def test_async_pdf_stores_url(app, client, auth_headers, form):
    response = client.post(f'/api/agreements/financial-agreement/{form.id}/pdf/async', headers=auth_headers)
    assert response.status_code == 202

    db.session.expire_all()
    url = agreement_service.get_form(FINANCIAL_AGREEMENT, form.id).pdf_url
    prefix = f"{app.config['STORAGE_PUBLIC_URL'].rstrip('/')}/agreement-pdfs/"
    assert url.startswith(f'{prefix}financial-agreement/{form.id}/')

    path = url[len(prefix):]
    assert client.get(f'/storage/agreement-pdfs/{path}').data.startswith(b'%PDF')


def test_unknown_form_is_404(client, auth_headers):
    response = client.get('/api/agreements/financial-agreement/missing', headers=auth_headers)
    assert response.status_code == 404
    assert response.get_json()['error'] == 'Form not found'
