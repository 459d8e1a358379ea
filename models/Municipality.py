from app import db
from datetime import datetime


class Municipality(db.Model):
    __tablename__ = 'municipalities'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(10), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    barangays = db.relationship('Barangay', backref='municipality', lazy='dynamic',
                                cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'code': self.code,
        }


class Barangay(db.Model):
    __tablename__ = 'barangays'
    __table_args__ = (db.UniqueConstraint('municipality_id', 'code'),)

    id = db.Column(db.Integer, primary_key=True)
    municipality_id = db.Column(db.Integer, db.ForeignKey('municipalities.id', ondelete='CASCADE'),
                                nullable=False)
    name = db.Column(db.String(255), nullable=False)
    code = db.Column(db.String(20), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'municipality_id': self.municipality_id,
            'name': self.name,
            'code': self.code,
        }
