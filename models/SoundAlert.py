from app import db
from datetime import datetime

from models.choices import SOUND_ALERT_TYPES

DEFAULT_SOUND = 'default'


class SoundAlert(db.Model):
    __tablename__ = 'sound_alerts'

    id = db.Column(db.Integer, primary_key=True)
    alert_type = db.Column(db.Enum(*SOUND_ALERT_TYPES, name='sound_alert_type'), unique=True, nullable=False)
    sound_file_path = db.Column(db.String(500), nullable=False, default=DEFAULT_SOUND)
    sound_file_name = db.Column(db.String(255), nullable=False, default=DEFAULT_SOUND)
    volume = db.Column(db.Float, nullable=False, default=0.7)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'))
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_default(self):
        return self.sound_file_path == DEFAULT_SOUND

    def to_dict(self):
        from services import storage

        return {
            'alert_type': self.alert_type,
            'sound_file_path': self.sound_file_path,
            'sound_file_name': self.sound_file_name,
            'public_url': None if self.is_default else storage.url(self.sound_file_path),
            'volume': self.volume,
            'is_active': self.is_active,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }
