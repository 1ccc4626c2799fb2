from .health import health_bp
from .auth import auth_bp
from .user import user_bp
from .patient import patient_bp
from .consultation import consultation_bp
from .lab_script import lab_script_bp
from .field_visibility_rule import visibility_rule_bp
from .surgical_recall import surgical_recall_bp
from .agreement import agreement_bp
from .storage import storage_bp

__all__ = [
    'health_bp', 'auth_bp', 'user_bp', 'patient_bp', 'consultation_bp', 'lab_script_bp',
    'visibility_rule_bp', 'surgical_recall_bp', 'agreement_bp', 'storage_bp',
]
