import json

from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class AgreementFormMixin(TimestampMixin):
    """
    Columns shared by the signed patient agreement forms.

    Section answers live in ``form_data_json`` (JSON object) so the form
    layout can change without a migration; only the fields used for
    lookup, locking and signing are real columns.
    """
    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    patient_id = db.Column(db.String(36), nullable=True, index=True)
    lead_id = db.Column(db.String(36), nullable=True, index=True)
    new_patient_packet_id = db.Column(db.String(36), nullable=True)
    patient_name = db.Column(db.String(200), nullable=False)

    form_data_json = db.Column(db.Text, nullable=False, default='{}')

    # draft / signed
    status = db.Column(db.String(20), default='draft', nullable=False, index=True)
    form_version = db.Column(db.String(10), default='1.0')
    patient_signature = db.Column(db.Text, nullable=True)  # PNG data URL
    signed_at = db.Column(db.DateTime, nullable=True)
    pdf_url = db.Column(db.String(500), nullable=True)

    created_by = db.Column(db.String(36), nullable=True)
    updated_by = db.Column(db.String(36), nullable=True)

    @property
    def form_data(self):
        try:
            data = json.loads(self.form_data_json or '{}')
        except (TypeError, json.JSONDecodeError):
            return {}
        return data if isinstance(data, dict) else {}

    @form_data.setter
    def form_data(self, value):
        self.form_data_json = json.dumps(value or {}, default=str)

    @property
    def is_locked(self):
        return self.status == 'signed'

    def to_dict(self):
        return {
            'id': self.id,
            'patient_id': self.patient_id,
            'lead_id': self.lead_id,
            'new_patient_packet_id': self.new_patient_packet_id,
            'patient_name': self.patient_name,
            'form_data': self.form_data,
            'status': self.status,
            'form_version': self.form_version,
            'patient_signature': self.patient_signature,
            'signed_at': isoformat(self.signed_at),
            'pdf_url': self.pdf_url,
            'created_by': self.created_by,
            'updated_by': self.updated_by,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }


class FinancialAgreement(db.Model, AgreementFormMixin):
    __tablename__ = 'financial_agreements'

    def __repr__(self):
        return f"<FinancialAgreement {self.id} - {self.patient_name} ({self.status})>"


class ThankYouPreSurgeryForm(db.Model, AgreementFormMixin):
    __tablename__ = 'thank_you_pre_surgery_forms'

    def __repr__(self):
        return f"<ThankYouPreSurgeryForm {self.id} - {self.patient_name} ({self.status})>"
