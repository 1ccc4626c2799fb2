from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class Patient(db.Model, TimestampMixin):
    """Active (treatment) patient."""
    __tablename__ = 'patients'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.String(10), nullable=True)  # YYYY-MM-DD
    gender = db.Column(db.String(20))
    phone = db.Column(db.String(20))
    email = db.Column(db.String(120))
    street = db.Column(db.String(255))
    city = db.Column(db.String(100))
    state = db.Column(db.String(50))
    zip_code = db.Column(db.String(20))
    status = db.Column(db.String(30), default='active')
    treatment_type = db.Column(db.String(100))

    # Written once, the first time the patient is booked for a consultation
    consultation_patient_id = db.Column(
        db.String(36), db.ForeignKey('consultation_patients.id'), nullable=True, index=True
    )

    @property
    def full_name(self):
        return f"{self.first_name} {self.last_name}".strip()

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'full_name': self.full_name,
            'date_of_birth': self.date_of_birth,
            'gender': self.gender,
            'phone': self.phone,
            'email': self.email,
            'street': self.street,
            'city': self.city,
            'state': self.state,
            'zip_code': self.zip_code,
            'status': self.status,
            'treatment_type': self.treatment_type,
            'consultation_patient_id': self.consultation_patient_id,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Patient {self.id} - {self.full_name}>"
