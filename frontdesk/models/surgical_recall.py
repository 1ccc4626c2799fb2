from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat


class SurgicalRecallSheet(db.Model, TimestampMixin):
    """Record of the implants, abutments and grafts placed in one surgery."""
    __tablename__ = 'surgical_recall_sheets'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    patient_id = db.Column(db.String(36), db.ForeignKey('patients.id'), nullable=False, index=True)
    patient_name = db.Column(db.String(200), nullable=False)
    surgery_date = db.Column(db.String(10), nullable=False)
    # upper / lower / dual
    arch_type = db.Column(db.String(10), nullable=False)
    upper_surgery_type = db.Column(db.String(100))
    lower_surgery_type = db.Column(db.String(100))
    is_graft_used = db.Column(db.Boolean, default=False)
    is_membrane_used = db.Column(db.Boolean, default=False)
    # draft / completed
    status = db.Column(db.String(20), default='draft', nullable=False)
    created_by = db.Column(db.String(36), db.ForeignKey('user_profiles.id'), nullable=True)

    implants = db.relationship('SurgicalRecallImplant', backref='sheet', lazy=True)
    grafts_membranes = db.relationship('SurgicalRecallGraftMembrane', backref='sheet', lazy=True)

    def to_dict(self, include_children=False):
        data = {
            'id': self.id,
            'patient_id': self.patient_id,
            'patient_name': self.patient_name,
            'surgery_date': self.surgery_date,
            'arch_type': self.arch_type,
            'upper_surgery_type': self.upper_surgery_type,
            'lower_surgery_type': self.lower_surgery_type,
            'is_graft_used': self.is_graft_used,
            'is_membrane_used': self.is_membrane_used,
            'status': self.status,
            'created_by': self.created_by,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
        if include_children:
            data['implants'] = [i.to_dict() for i in self.implants]
            data['grafts_membranes'] = [g.to_dict() for g in self.grafts_membranes]
        return data

    def __repr__(self):
        return f"<SurgicalRecallSheet {self.id} - {self.patient_name} {self.surgery_date}>"


class SurgicalRecallImplant(db.Model, TimestampMixin):
    __tablename__ = 'surgical_recall_implants'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    surgical_recall_sheet_id = db.Column(
        db.String(36), db.ForeignKey('surgical_recall_sheets.id'), nullable=False, index=True
    )
    arch_type = db.Column(db.String(10), nullable=False)
    position = db.Column(db.String(20), nullable=False)  # tooth number
    implant_brand = db.Column(db.String(100))
    implant_subtype = db.Column(db.String(100))
    implant_size = db.Column(db.String(50))
    implant_picture_url = db.Column(db.String(500))
    mua_brand = db.Column(db.String(100))
    mua_subtype = db.Column(db.String(100))
    mua_size = db.Column(db.String(50))
    mua_picture_url = db.Column(db.String(500))

    def to_dict(self):
        return {
            'id': self.id,
            'surgical_recall_sheet_id': self.surgical_recall_sheet_id,
            'arch_type': self.arch_type,
            'position': self.position,
            'implant_brand': self.implant_brand,
            'implant_subtype': self.implant_subtype,
            'implant_size': self.implant_size,
            'implant_picture_url': self.implant_picture_url,
            'mua_brand': self.mua_brand,
            'mua_subtype': self.mua_subtype,
            'mua_size': self.mua_size,
            'mua_picture_url': self.mua_picture_url,
        }


class SurgicalRecallGraftMembrane(db.Model, TimestampMixin):
    __tablename__ = 'surgical_recall_grafts_membranes'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    surgical_recall_sheet_id = db.Column(
        db.String(36), db.ForeignKey('surgical_recall_sheets.id'), nullable=False, index=True
    )
    # graft / membrane
    type = db.Column(db.String(20), nullable=False)
    brand_type = db.Column(db.String(200), nullable=False)
    picture_url = db.Column(db.String(500))

    def to_dict(self):
        return {
            'id': self.id,
            'surgical_recall_sheet_id': self.surgical_recall_sheet_id,
            'type': self.type,
            'brand_type': self.brand_type,
            'picture_url': self.picture_url,
        }
