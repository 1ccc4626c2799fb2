"""
Shared fixtures.

- ``app`` / ``client``: the Flask app on the testing config with a fresh
  in-memory SQLite schema per test.
- ``admin`` / ``auth_headers``: a seeded admin user and its bearer token.
- ``fake_port``: an in-memory DataPort that records calls and can be told
  to fail specific (action, table) pairs.
"""
import copy
import uuid
from collections import defaultdict

import pytest
from flask_jwt_extended import create_access_token

from frontdesk import create_app
from frontdesk.extensions import db
from frontdesk.models import UserProfile
from frontdesk.services.data_port import DataPort
from frontdesk.services.errors import DataPortError


class FakeDataPort(DataPort):

    def __init__(self):
        self.tables = defaultdict(list)
        self.calls = []
        self.failures = set()
        self.before_update = None

    def fail(self, action, table):
        self.failures.add((action, table))

    def seed(self, table, **row):
        row.setdefault('id', str(uuid.uuid4()))
        self.tables[table].append(row)
        return copy.deepcopy(row)

    def calls_for(self, action=None, table=None):
        return [c for c in self.calls
                if (action is None or c[0] == action) and (table is None or c[1] == table)]

    def _check(self, action, table):
        self.calls.append((action, table))
        if (action, table) in self.failures:
            raise DataPortError(f"{action} on {table} failed: simulated")

    @staticmethod
    def _matches(row, filters):
        for key, value in (filters or {}).items():
            if value is None:
                if row.get(key) is not None:
                    return False
            elif isinstance(value, (list, tuple, set)):
                if row.get(key) not in value:
                    return False
            elif row.get(key) != value:
                return False
        return True

    def insert(self, table, row):
        self._check('insert', table)
        return self.seed(table, **copy.deepcopy(row))

    def select(self, table, filters=None, order_by=None, limit=None):
        self._check('select', table)
        rows = [copy.deepcopy(r) for r in self.tables[table] if self._matches(r, filters)]
        if order_by:
            name = order_by.lstrip('-')
            rows.sort(key=lambda r: (r.get(name) is None, r.get(name) or ''), reverse=order_by.startswith('-'))
        return rows[:limit] if limit else rows

    def update(self, table, patch, filters):
        self._check('update', table)
        if self.before_update:
            self.before_update(table, patch, filters)
        updated = []
        for row in self.tables[table]:
            if self._matches(row, filters):
                row.update(patch)
                updated.append(copy.deepcopy(row))
        return updated

    def delete(self, table, filters):
        self._check('delete', table)
        keep = [r for r in self.tables[table] if not self._matches(r, filters)]
        count = len(self.tables[table]) - len(keep)
        self.tables[table] = keep
        return count

    def search(self, table, columns, term, limit=None, order_by=None):
        self._check('search', table)
        term = term.lower()
        rows = [copy.deepcopy(r) for r in self.tables[table]
                if any(term in (r.get(c) or '').lower() for c in columns)]
        if order_by:
            rows.sort(key=lambda r: r.get(order_by.lstrip('-')) or '')
        return rows[:limit] if limit else rows


class FakeTimer:
    """Stands in for threading.Timer; fire() runs the callback synchronously."""

    instances = []

    def __init__(self, interval, function, args=None, kwargs=None):
        self.interval = interval
        self.function = function
        self.args = args or ()
        self.kwargs = kwargs or {}
        self.daemon = False
        self.started = False
        self.cancelled = False
        FakeTimer.instances.append(self)

    def start(self):
        self.started = True

    def cancel(self):
        self.cancelled = True

    def fire(self):
        if not self.cancelled:
            self.function(*self.args, **self.kwargs)


@pytest.fixture
def app(tmp_path):
    app = create_app('testing')
    app.config['STORAGE_ROOT'] = str(tmp_path / 'storage')
    app.config['PDF_ASSETS_PATH'] = str(tmp_path / 'assets')

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def admin(app):
    user = UserProfile(
        username='admin',
        email='admin@test.local',
        full_name='Office Admin',
        role='admin',
    )
    user.set_password('secret123')
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def receptionist(app):
    user = UserProfile(
        username='reception',
        email='reception@test.local',
        full_name='Front Desk',
        role='receptionist',
    )
    user.set_password('secret123')
    db.session.add(user)
    db.session.commit()
    return user


def bearer(user):
    return {'Authorization': f'Bearer {create_access_token(identity=user.id)}'}


@pytest.fixture
def auth_headers(admin):
    return bearer(admin)


@pytest.fixture
def fake_port():
    return FakeDataPort()


@pytest.fixture
def fake_timer(app):
    from frontdesk.extensions import autosave

    FakeTimer.instances = []
    original = autosave.timer_factory
    autosave.timer_factory = FakeTimer
    yield FakeTimer
    autosave.timer_factory = original
    FakeTimer.instances = []


@pytest.fixture
def headers_for(app):
    return bearer
