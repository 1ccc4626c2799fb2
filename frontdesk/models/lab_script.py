from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class LabScript(db.Model, TimestampMixin):
    """Prescription sent to the dental lab for an appliance."""
    __tablename__ = 'lab_scripts'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=True, index=True)
    patient_name = db.Column(db.String(200), nullable=False)

    # upper / lower / dual
    arch_type = db.Column(db.String(10), nullable=False)
    upper_appliance_type = db.Column(db.String(50))
    lower_appliance_type = db.Column(db.String(50))
    upper_treatment_type = db.Column(db.String(50))
    lower_treatment_type = db.Column(db.String(50))

    screw_type = db.Column(db.String(50))
    custom_screw_type = db.Column(db.String(100))
    material = db.Column(db.String(50))
    shade = db.Column(db.String(20))
    vdo_details = db.Column(db.String(100))
    is_nightguard_needed = db.Column(db.String(10))

    requested_date = db.Column(db.String(10), nullable=False)
    due_date = db.Column(db.String(10))
    instructions = db.Column(db.Text)
    # pending, in-progress, completed, delayed, hold
    status = db.Column(db.String(20), default='pending', nullable=False, index=True)

    comments = db.relationship(
        'LabScriptComment',
        backref='lab_script',
        cascade='all, delete-orphan',
        order_by='LabScriptComment.created_at',
        lazy=True,
    )

    def to_dict(self, include_comments=False):
        data = {
            'id': self.id,
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'arch_type': self.arch_type,
            'upper_appliance_type': self.upper_appliance_type,
            'lower_appliance_type': self.lower_appliance_type,
            'upper_treatment_type': self.upper_treatment_type,
            'lower_treatment_type': self.lower_treatment_type,
            'screw_type': self.screw_type,
            'custom_screw_type': self.custom_screw_type,
            'material': self.material,
            'shade': self.shade,
            'vdo_details': self.vdo_details,
            'is_nightguard_needed': self.is_nightguard_needed,
            'requested_date': self.requested_date,
            'due_date': self.due_date,
            'instructions': self.instructions,
            'status': self.status,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_comments:
            data['comments'] = [c.to_dict() for c in self.comments]
        return data

    def __repr__(self):
        return f"<LabScript {self.id} - {self.patient_name} ({self.arch_type})>"


class LabScriptComment(db.Model, TimestampMixin):
    __tablename__ = 'lab_script_comments'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    lab_script_id = db.Column(db.String(36), db.ForeignKey('lab_scripts.id'), nullable=False, index=True)
    comment_text = db.Column(db.Text, nullable=False)
    author_name = db.Column(db.String(200))
    author_role = db.Column(db.String(20))

    def to_dict(self):
        return {
            'id': self.id,
            'lab_script_id': self.lab_script_id,
            'comment_text': self.comment_text,
            'author_name': self.author_name,
            'author_role': self.author_role,
            'created_at': isoformat(self.created_at),
        }
