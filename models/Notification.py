from app import db
from datetime import datetime

from models.choices import NOTIFICATION_TYPES


class Notification(db.Model):
    __tablename__ = 'notifications'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id', ondelete='CASCADE'))
    notification_type = db.Column(db.Enum(*NOTIFICATION_TYPES, name='notification_type'), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    message = db.Column(db.Text, nullable=False)
    is_read = db.Column(db.Boolean, nullable=False, default=False)
    read_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)

    def mark_as_read(self, now=None):
        # read is terminal; a second call keeps the original read_at
        if self.is_read:
            return False
        self.is_read = True
        self.read_at = now or datetime.utcnow()
        return True

    def to_dict(self):
        return {
            'id': self.id,
            'notification_type': self.notification_type,
            'title': self.title,
            'message': self.message,
            'is_read': self.is_read,
            'read_at': self.read_at.isoformat() if self.read_at else None,
            'incident': {
                'id': self.incident.id,
                'title': self.incident.title,
                'status': self.incident.status,
            } if self.incident else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
        }
