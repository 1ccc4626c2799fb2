from frontdesk.extensions import db, bcrypt
from .base import TimestampMixin, generate_uuid, isoformat

ROLES = ('admin', 'doctor', 'assistant', 'receptionist', 'lab')


class UserProfile(db.Model, TimestampMixin):
    __tablename__ = 'user_profiles'

    id = db.Column(db.String(36), primary_key=True, default=generate_uuid)
    username = db.Column(db.String(80), unique=True, nullable=False, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    full_name = db.Column(db.String(200), nullable=False)
    phone = db.Column(db.String(20))

    # One of ROLES
    role = db.Column(db.String(20), nullable=False, index=True)
    # 'active' / 'inactive'
    status = db.Column(db.String(20), default='active', nullable=False, index=True)

    last_login = db.Column(db.DateTime, nullable=True)
    login_count = db.Column(db.Integer, default=0)

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    @property
    def is_active(self):
        return self.status == 'active'

    def has_any_role(self, *role_names):
        return self.role in role_names

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'phone': self.phone,
            'role': self.role,
            'status': self.status,
            'last_login': isoformat(self.last_login),
            'login_count': self.login_count,
            'created_at': isoformat(self.created_at),
        }

    def __repr__(self):
        return f"<UserProfile {self.username} ({self.full_name}) - {self.role}>"
