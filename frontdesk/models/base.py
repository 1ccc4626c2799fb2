import uuid
from datetime import datetime

from frontdesk.extensions import db


def generate_uuid():
    return str(uuid.uuid4())


class TimestampMixin:
    """Adds created_at / updated_at columns maintained by SQLAlchemy."""
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


def isoformat(value):
    """Serialize date/datetime columns for JSON responses."""
    return value.isoformat() if value is not None else None
