from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class Appointment(db.Model, TimestampMixin):
    __tablename__ = 'appointments'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    patient_name = db.Column(db.String(200), nullable=False)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=True, index=True)
    assigned_user_id = db.Column(db.String(36), db.ForeignKey('user_profiles.id'), nullable=True, index=True)

    title = db.Column(db.String(255), nullable=False)
    date = db.Column(db.String(10), nullable=False, index=True)  # YYYY-MM-DD
    start_time = db.Column(db.String(5), nullable=False)  # HH:MM
    end_time = db.Column(db.String(5), nullable=False)  # HH:MM

    # e.g. consultation, surgery, follow-up
    appointment_type = db.Column(db.String(50), nullable=False, index=True)
    # pending, confirmed, completed, cancelled
    status = db.Column(db.String(30), default='pending', nullable=False)
    notes = db.Column(db.Text, nullable=True)

    def to_dict(self):
        return {
            'id': self.id,
            'patient_name': self.patient_name,
            'patient_id': self.patient_id,
            'assigned_user_id': self.assigned_user_id,
            'title': self.title,
            'date': self.date,
            'start_time': self.start_time,
            'end_time': self.end_time,
            'appointment_type': self.appointment_type,
            'status': self.status,
            'notes': self.notes,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Appointment {self.patient_name} on {self.date} {self.start_time}-{self.end_time}>"
