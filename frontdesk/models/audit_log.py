import json
from datetime import datetime

from frontdesk.extensions import db

# Verbs written by the blueprints
AUDIT_ACTIONS = ('create', 'edit', 'sign', 'delete', 'export')


class AuditLog(db.Model):
    """
    Who did what to which front-office record: a consultation booked, an
    agreement signed or exported, a recall sheet removed, a staff account
    created. ``entity_type`` is the record kind (agreement kinds use their
    URL slug, e.g. ``financial-agreement``).
    """
    __tablename__ = "audit_logs"

    id = db.Column(db.Integer, primary_key=True)
    entity_type = db.Column(db.String(64), nullable=False, index=True)
    entity_id = db.Column(db.String(64), nullable=True, index=True)
    action = db.Column(db.String(32), nullable=False, index=True)
    user_id = db.Column(db.String(36), db.ForeignKey("user_profiles.id"), nullable=True, index=True)
    details = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)

    @classmethod
    def history(cls, entity_type, entity_id):
        """Entries for one record, oldest first."""
        return (cls.query
                .filter_by(entity_type=entity_type, entity_id=str(entity_id))
                .order_by(cls.created_at, cls.id)
                .all())

    def to_dict(self):
        return {
            "id": self.id,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "action": self.action,
            "user_id": self.user_id,
            "details": json.loads(self.details) if self.details else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
