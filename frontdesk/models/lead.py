from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class Lead(db.Model, TimestampMixin):
    """Prospective patient captured before their first visit."""
    __tablename__ = 'new_patient_leads'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    personal_first_name = db.Column(db.String(100))
    personal_last_name = db.Column(db.String(100))
    date_of_birth = db.Column(db.String(10))
    gender = db.Column(db.String(20))

    phone = db.Column(db.String(20), default='')
    email = db.Column(db.String(120), default='')
    personal_phone = db.Column(db.String(20), default='')
    personal_email = db.Column(db.String(120), default='')

    best_contact_time = db.Column(db.String(50))
    reason_for_visit = db.Column(db.String(255))
    status = db.Column(db.String(30), default='new', index=True)
    source = db.Column(db.String(50))

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'personal_first_name': self.personal_first_name,
            'personal_last_name': self.personal_last_name,
            'date_of_birth': self.date_of_birth,
            'gender': self.gender,
            'phone': self.phone,
            'email': self.email,
            'personal_phone': self.personal_phone,
            'personal_email': self.personal_email,
            'best_contact_time': self.best_contact_time,
            'reason_for_visit': self.reason_for_visit,
            'status': self.status,
            'source': self.source,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<Lead {self.first_name} {self.last_name} ({self.status})>"
