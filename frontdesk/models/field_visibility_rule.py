import json

from frontdesk.extensions import db
from .base import TimestampMixin, generate_uuid, isoformat

RULE_TYPES = ('hide_when', 'show_when')
CONDITION_FIELDS = ('treatment_type', 'appliance_type')


class FieldVisibilityRule(db.Model, TimestampMixin):
    """
    Configurable visibility rule for a lab script field.

    ``hide_when`` hides the field when the condition value is in
    ``condition_values``; ``show_when`` hides it when the value is not.
    A null ``arch_type`` applies the rule to both arches.
    """
    __tablename__ = 'field_visibility_rules'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    field_name = db.Column(db.String(100), nullable=False, index=True)
    rule_type = db.Column(db.String(20), nullable=False)
    condition_field = db.Column(db.String(30), nullable=False)
    # JSON list of strings
    condition_values_json = db.Column(db.Text, nullable=False, default='[]')
    arch_type = db.Column(db.String(10), nullable=True)
    is_active = db.Column(db.Boolean, default=True, nullable=False)
    display_order = db.Column(db.Integer, default=0, nullable=False)

    @property
    def condition_values(self):
        try:
            data = json.loads(self.condition_values_json or '[]')
        except (TypeError, json.JSONDecodeError):
            return []
        return data if isinstance(data, list) else []

    @condition_values.setter
    def condition_values(self, values):
        self.condition_values_json = json.dumps(list(values or []))

    def to_dict(self):
        return {
            'id': self.id,
            'field_name': self.field_name,
            'rule_type': self.rule_type,
            'condition_field': self.condition_field,
            'condition_values': self.condition_values,
            'arch_type': self.arch_type,
            'is_active': self.is_active,
            'display_order': self.display_order,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }

    def __repr__(self):
        return f"<FieldVisibilityRule {self.field_name} {self.rule_type} {self.condition_field}>"
