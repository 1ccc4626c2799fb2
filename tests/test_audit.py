"""Audit trail written by the blueprints."""
from frontdesk.extensions import db
from frontdesk.models import AuditLog
from frontdesk.utils.audit import log_audit


def test_log_audit_stores_details(app, admin):
    entry = log_audit('surgical_recall_sheet', 'delete', user_id=admin.id, entity_id=42,
                      details={'images_removed': 3})

    assert entry.entity_id == '42'
    assert AuditLog.history('surgical_recall_sheet', 42)[0].to_dict()['details'] == {'images_removed': 3}


def test_log_audit_failure_is_swallowed(app, monkeypatch, caplog):
    def broken_commit():
        raise RuntimeError('disk full')
    monkeypatch.setattr(db.session, 'commit', broken_commit)

    assert log_audit('consultation', 'create', entity_id='c1') is None
    assert 'Could not record create consultation c1' in caplog.text


def test_agreement_actions_are_audited(client, auth_headers, admin):
    created = client.post('/api/agreements/financial-agreement', headers=auth_headers,
                          json={'patient_name': 'Ana Ruiz', 'form_data': {}})
    form_id = created.get_json()['data']['id']
    client.put(f'/api/agreements/financial-agreement/{form_id}', headers=auth_headers,
               json={'form_data': {'chart_number': 'C-1'}})
    client.delete(f'/api/agreements/financial-agreement/{form_id}', headers=auth_headers)

    history = AuditLog.history('financial-agreement', form_id)
    assert [e.action for e in history] == ['create', 'edit', 'delete']
    assert {e.user_id for e in history} == {admin.id}
