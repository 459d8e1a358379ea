from app import db
from datetime import datetime
from werkzeug.security import generate_password_hash, check_password_hash

from models.choices import ROLES, VERIFICATION_STATUSES


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(255), unique=True, nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255), nullable=False)
    role = db.Column(db.Enum(*ROLES, name='user_role'), nullable=False, default='resident')
    municipality_id = db.Column(db.Integer, db.ForeignKey('municipalities.id', ondelete='SET NULL'))
    barangay_id = db.Column(db.Integer, db.ForeignKey('barangays.id', ondelete='SET NULL'))
    phone_number = db.Column(db.String(20))
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    # Residents only; null for staff accounts
    verification_status = db.Column(db.Enum(*VERIFICATION_STATUSES, name='verification_status'))
    verification_documents = db.Column(db.JSON)
    verification_notes = db.Column(db.Text)
    verified_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    verified_at = db.Column(db.DateTime)

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    municipality = db.relationship('Municipality')
    barangay = db.relationship('Barangay')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_verified(self):
        return self.verification_status == 'verified'

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
            'email': self.email,
            'full_name': self.full_name,
            'role': self.role,
            'phone_number': self.phone_number,
            'is_active': self.is_active,
            'verification_status': self.verification_status,
            'municipality': self.municipality.to_dict() if self.municipality else None,
            'barangay': self.barangay.to_dict() if self.barangay else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
