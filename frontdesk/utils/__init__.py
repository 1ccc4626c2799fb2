from .decorators import require_role, current_user

from .audit import log_audit

__all__ = [
    # Decorators
    "require_role",
    "current_user",
    # Audit
    "log_audit",
]
