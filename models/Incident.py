from app import db
from datetime import datetime

from models.choices import INCIDENT_TYPES, URGENCY_LEVELS, INCIDENT_STATUSES, UPDATE_TYPES


class Incident(db.Model):
    __tablename__ = 'incidents'

    id = db.Column(db.Integer, primary_key=True)
    reporter_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    incident_type = db.Column(db.Enum(*INCIDENT_TYPES, name='incident_type'), nullable=False)
    title = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False)
    location_address = db.Column(db.String(500), nullable=False)
    latitude = db.Column(db.Numeric(10, 8), nullable=False)
    longitude = db.Column(db.Numeric(11, 8), nullable=False)
    barangay_id = db.Column(db.Integer, db.ForeignKey('barangays.id', ondelete='SET NULL'))
    municipality_id = db.Column(db.Integer, db.ForeignKey('municipalities.id', ondelete='SET NULL'))
    urgency_level = db.Column(db.Enum(*URGENCY_LEVELS, name='urgency_level'), nullable=False, default='medium')
    status = db.Column(db.Enum(*INCIDENT_STATUSES, name='incident_status'), nullable=False, default='reported')
    contact_number = db.Column(db.String(20))
    resolved_at = db.Column(db.DateTime)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, index=True)

    # Reporter (resident who submitted the incident)
    reporter = db.relationship('User', foreign_keys=[reporter_id])
    municipality = db.relationship('Municipality')
    barangay = db.relationship('Barangay')

    # Owned rows go away with the incident
    media = db.relationship('IncidentMedia', backref='incident', cascade='all, delete-orphan',
                            order_by='IncidentMedia.id')
    updates = db.relationship('IncidentUpdate', backref='incident', cascade='all, delete-orphan',
                              order_by='IncidentUpdate.id')
    assignments = db.relationship('Assignment', backref='incident', cascade='all, delete-orphan',
                                  order_by='Assignment.id')
    notifications = db.relationship('Notification', backref='incident', cascade='all, delete-orphan')
    acknowledgements = db.relationship('IncidentAcknowledgement', backref='incident',
                                       cascade='all, delete-orphan')

    def to_dict(self, detail=False, viewer=None):
        data = {
            'id': self.id,
            'incident_type': self.incident_type,
            'title': self.title,
            'description': self.description,
            'location_address': self.location_address,
            'latitude': float(self.latitude),
            'longitude': float(self.longitude),
            'urgency_level': self.urgency_level,
            'status': self.status,
            'contact_number': self.contact_number,
            'reporter': {
                'id': self.reporter.id,
                'full_name': self.reporter.full_name,
                'phone_number': self.reporter.phone_number,
            } if self.reporter else None,
            'municipality': {'id': self.municipality.id, 'name': self.municipality.name}
            if self.municipality else None,
            'barangay': {'id': self.barangay.id, 'name': self.barangay.name}
            if self.barangay else None,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
            'resolved_at': self.resolved_at.isoformat() if self.resolved_at else None,
        }
        if viewer is not None:
            data['acknowledged'] = any(a.user_id == viewer.id for a in self.acknowledgements)
        if detail:
            data['media'] = [m.to_dict() for m in self.media]
            data['assignments'] = [a.to_dict() for a in self.assignments]
            data['updates'] = [u.to_dict() for u in self.updates]
        return data


class IncidentMedia(db.Model):
    __tablename__ = 'incident_media'

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False)
    file_path = db.Column(db.String(500), nullable=False)
    file_name = db.Column(db.String(255), nullable=False)
    file_type = db.Column(db.String(20), nullable=False)
    file_size = db.Column(db.Integer)
    mime_type = db.Column(db.String(100))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        from services import storage

        return {
            'id': self.id,
            'file_path': storage.url(self.file_path),
            'file_name': self.file_name,
            'file_type': self.file_type,
            'file_size': self.file_size,
            'mime_type': self.mime_type,
        }


class IncidentUpdate(db.Model):
    """Append-only audit entry; rows are never modified after insert."""

    __tablename__ = 'incident_updates'

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False)
    updated_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    update_type = db.Column(db.Enum(*UPDATE_TYPES, name='update_type'), nullable=False)
    update_message = db.Column(db.Text, nullable=False)
    previous_status = db.Column(db.Enum(*INCIDENT_STATUSES, name='incident_status'))
    new_status = db.Column(db.Enum(*INCIDENT_STATUSES, name='incident_status'))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    author = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'update_type': self.update_type,
            'message': self.update_message,
            'previous_status': self.previous_status,
            'new_status': self.new_status,
            'updated_by': self.author.full_name if self.author else None,
            'updated_at': self.created_at.isoformat() if self.created_at else None,
        }


class IncidentAcknowledgement(db.Model):
    __tablename__ = 'incident_acknowledgements'
    __table_args__ = (db.UniqueConstraint('incident_id', 'user_id'),)

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    acknowledged_at = db.Column(db.DateTime, default=datetime.utcnow)
