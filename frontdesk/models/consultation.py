from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class ConsultationPatient(db.Model, TimestampMixin):
    """Person seen for a consultation, before or alongside treatment."""
    __tablename__ = 'consultation_patients'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    first_name = db.Column(db.String(100), nullable=False)
    last_name = db.Column(db.String(100), nullable=False)
    date_of_birth = db.Column(db.String(10))
    gender = db.Column(db.String(20))
    consultation_date = db.Column(db.String(10))
    consultation_time = db.Column(db.String(5))
    lead_id = db.Column(db.String(36), db.ForeignKey('new_patient_leads.id'), nullable=True, index=True)
    status = db.Column(db.String(30), default='scheduled')

    def to_dict(self):
        return {
            'id': self.id,
            'first_name': self.first_name,
            'last_name': self.last_name,
            'date_of_birth': self.date_of_birth,
            'gender': self.gender,
            'consultation_date': self.consultation_date,
            'consultation_time': self.consultation_time,
            'lead_id': self.lead_id,
            'status': self.status,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<ConsultationPatient {self.first_name} {self.last_name}>"


class Consultation(db.Model, TimestampMixin):
    """Links one consultation appointment to the people and packet involved."""
    __tablename__ = 'consultations'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    appointment_id = db.Column(db.String(36), db.ForeignKey('appointments.id'), nullable=False, index=True)
    consultation_patient_id = db.Column(
        db.String(36), db.ForeignKey('consultation_patients.id'), nullable=True, index=True
    )
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=True, index=True)
    new_patient_packet_id = db.Column(
        db.String(36), db.ForeignKey('new_patient_packets.id'), nullable=True, index=True
    )
    patient_name = db.Column(db.String(200), nullable=False)
    consultation_date = db.Column(db.String(10))
    # draft, in-progress, completed
    consultation_status = db.Column(db.String(30), default='draft')

    appointment = db.relationship('Appointment', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'appointment_id': self.appointment_id,
            'consultation_patient_id': self.consultation_patient_id,
            'patient_id': self.patient_id,
            'new_patient_packet_id': self.new_patient_packet_id,
            'patient_name': self.patient_name,
            'consultation_date': self.consultation_date,
            'consultation_status': self.consultation_status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<Consultation {self.id} - {self.patient_name}>"
