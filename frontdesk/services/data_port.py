"""
Relational data access behind a small table-oriented interface.

Services talk to ``DataPort`` with plain dicts so the consultation and
surgical recall workflows can be exercised against an in-memory fake in
tests and against SQLAlchemy in the app.
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional

from flask import current_app
from sqlalchemy import or_, update
from sqlalchemy.exc import SQLAlchemyError

from frontdesk.extensions import db
from frontdesk import models
from frontdesk.services.errors import DataPortError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]
Filters = Optional[Dict[str, Any]]


class DataPort(ABC):
    """
    Table-level CRUD.

    Filter values: ``None`` matches ``IS NULL``, a list/tuple matches
    ``IN``, anything else matches equality. ``order_by`` is a column
    name, prefixed with ``-`` for descending order.
    """

    @abstractmethod
    def insert(self, table: str, row: Row) -> Row:
        ...

    @abstractmethod
    def select(self, table: str, filters: Filters = None, order_by: Optional[str] = None,
               limit: Optional[int] = None) -> List[Row]:
        ...

    @abstractmethod
    def update(self, table: str, patch: Row, filters: Dict[str, Any]) -> List[Row]:
        """Apply ``patch`` to rows matching ``filters``; return the rows actually updated."""

    @abstractmethod
    def delete(self, table: str, filters: Dict[str, Any]) -> int:
        ...

    @abstractmethod
    def search(self, table: str, columns: Iterable[str], term: str, limit: Optional[int] = None,
               order_by: Optional[str] = None) -> List[Row]:
        """Case-insensitive substring match of ``term`` against any of ``columns``."""

    def get(self, table: str, row_id: str) -> Optional[Row]:
        rows = self.select(table, {'id': row_id}, limit=1)
        return rows[0] if rows else None


TABLES = {
    'user_profiles': models.UserProfile,
    'patients': models.Patient,
    'appointments': models.Appointment,
    'new_patient_leads': models.Lead,
    'consultation_patients': models.ConsultationPatient,
    'consultations': models.Consultation,
    'new_patient_packets': models.PatientPacket,
    'lab_scripts': models.LabScript,
    'lab_script_comments': models.LabScriptComment,
    'field_visibility_rules': models.FieldVisibilityRule,
    'surgical_recall_sheets': models.SurgicalRecallSheet,
    'surgical_recall_implants': models.SurgicalRecallImplant,
    'surgical_recall_grafts_membranes': models.SurgicalRecallGraftMembrane,
    'financial_agreements': models.FinancialAgreement,
    'thank_you_pre_surgery_forms': models.ThankYouPreSurgeryForm,
}


class SQLAlchemyDataPort(DataPort):
    """DataPort over the Flask-SQLAlchemy session. Every write commits."""

    def __init__(self, session=None):
        self.session = session or db.session

    def _model(self, table):
        model = TABLES.get(table)
        if model is None:
            raise DataPortError(f"Unknown table: {table}")
        return model

    def _columns(self, model, keys):
        columns = model.__table__.columns
        unknown = [k for k in keys if k not in columns]
        if unknown:
            raise DataPortError(f"Unknown column(s) for {model.__tablename__}: {', '.join(unknown)}")
        return columns

    def _conditions(self, model, filters):
        columns = self._columns(model, (filters or {}).keys())
        conditions = []
        for key, value in (filters or {}).items():
            column = columns[key]
            if value is None:
                conditions.append(column.is_(None))
            elif isinstance(value, (list, tuple, set)):
                conditions.append(column.in_(list(value)))
            else:
                conditions.append(column == value)
        return conditions

    def _ordering(self, model, order_by):
        if not order_by:
            return None
        name = order_by.lstrip('-')
        column = self._columns(model, [name])[name]
        return column.desc() if order_by.startswith('-') else column.asc()

    def _fail(self, action, table, error):
        self.session.rollback()
        logger.warning("Data port %s on %s failed: %s", action, table, error)
        raise DataPortError(f"{action} on {table} failed: {error}") from error

    def insert(self, table, row):
        model = self._model(table)
        self._columns(model, row.keys())
        try:
            record = model(**row)
            self.session.add(record)
            self.session.commit()
            return record.to_dict()
        except SQLAlchemyError as e:
            self._fail('insert', table, e)

    def select(self, table, filters=None, order_by=None, limit=None):
        model = self._model(table)
        query = model.query.filter(*self._conditions(model, filters))
        ordering = self._ordering(model, order_by)
        if ordering is not None:
            query = query.order_by(ordering)
        if limit:
            query = query.limit(limit)
        try:
            return [record.to_dict() for record in query.all()]
        except SQLAlchemyError as e:
            self._fail('select', table, e)

    def update(self, table, patch, filters):
        model = self._model(table)
        self._columns(model, patch.keys())
        conditions = self._conditions(model, filters)
        try:
            ids = [r.id for r in self.session.query(model.id).filter(*conditions).all()]
            if not ids:
                return []
            # Conditions are re-applied in the UPDATE itself so a concurrent
            # writer that changed a filtered column makes this a no-op.
            result = self.session.execute(
                update(model)
                .where(model.id.in_(ids), *conditions)
                .values(**patch)
                .execution_options(synchronize_session=False)
            )
            self.session.commit()
            if not result.rowcount:
                return []
            updated = model.query.filter(model.id.in_(ids)).all()
            return [
                record.to_dict() for record in updated
                if all(getattr(record, key) == value for key, value in patch.items())
            ][:result.rowcount]
        except SQLAlchemyError as e:
            self._fail('update', table, e)

    def delete(self, table, filters):
        model = self._model(table)
        conditions = self._conditions(model, filters)
        try:
            count = model.query.filter(*conditions).delete(synchronize_session=False)
            self.session.commit()
            return count
        except SQLAlchemyError as e:
            self._fail('delete', table, e)

    def search(self, table, columns, term, limit=None, order_by=None):
        model = self._model(table)
        cols = self._columns(model, list(columns))
        query = model.query.filter(or_(*[cols[name].ilike(f'%{term}%') for name in columns]))
        ordering = self._ordering(model, order_by)
        if ordering is not None:
            query = query.order_by(ordering)
        if limit:
            query = query.limit(limit)
        try:
            return [record.to_dict() for record in query.all()]
        except SQLAlchemyError as e:
            self._fail('search', table, e)


def get_data_port() -> DataPort:
    """Return the port for the current app, creating it on first use."""
    port = current_app.extensions.get('frontdesk_data_port')
    if port is None:
        port = SQLAlchemyDataPort()
        current_app.extensions['frontdesk_data_port'] = port
    return port
