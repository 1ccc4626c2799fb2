from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class PatientPacket(db.Model, TimestampMixin):
    """Intake packet filled in by the patient. Read-only here."""
    __tablename__ = 'new_patient_packets'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    first_name = db.Column(db.String(100), nullable=False, index=True)
    last_name = db.Column(db.String(100), nullable=False, index=True)
    date_of_birth = db.Column(db.String(10), index=True)
    email = db.Column(db.String(120))
    phone = db.Column(db.String(20))
    submission_source = db.Column(db.String(30))
    submitted_at = db.Column(db.DateTime)

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'date_of_birth': self.date_of_birth,
            'email': self.email,
            'phone': self.phone,
            'submission_source': self.submission_source,
            'submitted_at': isoformat(self.submitted_at),
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<PatientPacket {self.first_name} {self.last_name} {self.date_of_birth}>"
