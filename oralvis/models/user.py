from oralvis.extensions import db, bcrypt
from .base import TimestampMixin

ROLE_PATIENT = 'patient'
ROLE_ADMIN = 'admin'


class User(db.Model, TimestampMixin):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    # Required for patients only
    patient_id = db.Column(db.String(50), nullable=True, index=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(255), nullable=False)

    # Role - 'patient' or 'admin'
    role = db.Column(db.String(20), nullable=False, index=True)

    submissions = db.relationship('Submission', back_populates='patient', lazy='dynamic')

    def set_password(self, password):
        """Hash and set password"""
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        """Check if provided password matches hash"""
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'patientId': self.patient_id,
            'email': self.email,
            'role': self.role,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<User {self.email} - {self.role}>"
