import pytest

from frontdesk.services.data_port import SQLAlchemyDataPort, get_data_port
from frontdesk.services.errors import DataPortError


@pytest.fixture
def port(app):
    return SQLAlchemyDataPort()


def add_patient(port, first, last, **extra):
    return port.insert('patients', dict(first_name=first, last_name=last, **extra))


def test_insert_returns_serialized_row(port):
    row = add_patient(port, 'Ana', 'Ruiz', date_of_birth='1990-01-01')

    assert row['id']
    assert row['full_name'] == 'Ana Ruiz'
    assert row['consultation_patient_id'] is None
    assert port.get('patients', row['id'])['first_name'] == 'Ana'


def test_get_missing_returns_none(port):
    assert port.get('patients', 'nope') is None


def test_select_filters_and_ordering(port):
    add_patient(port, 'Cara', 'Diaz', status='active')
    add_patient(port, 'Abe', 'Lin', status='active')
    add_patient(port, 'Bo', 'Kim', status='inactive')

    rows = port.select('patients', {'status': 'active'}, order_by='first_name')
    assert [r['first_name'] for r in rows] == ['Abe', 'Cara']

    rows = port.select('patients', {'first_name': ['Bo', 'Cara']}, order_by='-first_name', limit=1)
    assert [r['first_name'] for r in rows] == ['Cara']


def test_null_filter(port):
    add_patient(port, 'Ana', 'Ruiz')
    add_patient(port, 'Ben', 'Roe', consultation_patient_id='cp-1')

    rows = port.select('patients', {'consultation_patient_id': None})
    assert [r['first_name'] for r in rows] == ['Ana']


def test_conditional_update_returns_only_matched_rows(port):
    patient = add_patient(port, 'Ana', 'Ruiz')

    first = port.update('patients', {'consultation_patient_id': 'cp-1'},
                        {'id': patient['id'], 'consultation_patient_id': None})
    second = port.update('patients', {'consultation_patient_id': 'cp-2'},
                         {'id': patient['id'], 'consultation_patient_id': None})

    assert [r['consultation_patient_id'] for r in first] == ['cp-1']
    assert second == []
    assert port.get('patients', patient['id'])['consultation_patient_id'] == 'cp-1'


def test_delete_returns_count(port):
    add_patient(port, 'Ana', 'Ruiz', status='inactive')
    add_patient(port, 'Ben', 'Roe', status='inactive')
    add_patient(port, 'Cy', 'Poe', status='active')

    assert port.delete('patients', {'status': 'inactive'}) == 2
    assert len(port.select('patients')) == 1


def test_search_is_case_insensitive(port):
    add_patient(port, 'Anna', 'Smith')
    add_patient(port, 'Bob', 'Hanan')
    add_patient(port, 'Carl', 'Jones')

    rows = port.search('patients', ('first_name', 'last_name'), 'AN', order_by='first_name')
    assert [r['first_name'] for r in rows] == ['Anna', 'Bob']


def test_unknown_table(port):
    with pytest.raises(DataPortError, match='Unknown table'):
        port.select('invoices')


def test_unknown_column(port):
    with pytest.raises(DataPortError, match='Unknown column'):
        port.insert('patients', {'first_name': 'Ana', 'last_name': 'Ruiz', 'shoe_size': 9})


def test_constraint_violation_is_wrapped(port):
    with pytest.raises(DataPortError, match='insert on patients failed'):
        port.insert('patients', {'first_name': 'Ana'})

    # session is usable again after the rollback
    assert add_patient(port, 'Ana', 'Ruiz')['id']


def test_port_is_cached_per_app(app):
    assert get_data_port() is get_data_port()
