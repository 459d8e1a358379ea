from app import db
from datetime import datetime


class Assignment(db.Model):
    __tablename__ = 'assignments'

    id = db.Column(db.Integer, primary_key=True)
    incident_id = db.Column(db.Integer, db.ForeignKey('incidents.id', ondelete='CASCADE'), nullable=False)
    responder_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    assigned_by = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='RESTRICT'), nullable=False)
    status = db.Column(db.String(20), nullable=False, default='assigned')
    notes = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    responder = db.relationship('User', foreign_keys=[responder_id])
    assigner = db.relationship('User', foreign_keys=[assigned_by])

    def to_dict(self):
        return {
            'id': self.id,
            'incident_id': self.incident_id,
            'responder': {
                'id': self.responder.id,
                'full_name': self.responder.full_name,
            } if self.responder else None,
            'assigned_by': self.assigner.full_name if self.assigner else None,
            'status': self.status,
            'notes': self.notes,
            'assigned_at': self.created_at.isoformat() if self.created_at else None,
        }
