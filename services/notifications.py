import logging
from datetime import datetime

from app import db
from models import Notification, User
from services.errors import NotFound

logger = logging.getLogger(__name__)


def mdrrmo_staff(municipality_id):
    if municipality_id is None:
        return []
    return User.query.filter_by(role='mdrrmo', municipality_id=municipality_id, is_active=True).all()


def barangay_officials(barangay_id):
    if barangay_id is None:
        return []
    return User.query.filter_by(role='barangay_official', barangay_id=barangay_id, is_active=True).all()


def record(incident, notices):
    """Append one row per notice; the caller commits with the triggering write."""
    rows = []
    for notice in notices:
        row = Notification(
            user_id=notice.user_id,
            incident=incident,
            notification_type=notice.notification_type,
            title=notice.title,
            message=notice.message,
        )
        db.session.add(row)
        rows.append(row)
    logger.debug('Queued %d %s notification(s) for incident %s',
                 len(rows), notices[0].notification_type if notices else '-', incident.id)
    return rows


def for_user(user, unread_only=False, since=None):
    query = Notification.query.filter_by(user_id=user.id)
    if unread_only:
        query = query.filter_by(is_read=False)
    if since is not None:
        query = query.filter(Notification.created_at > since)
    return query.order_by(Notification.created_at.desc(), Notification.id.desc())


def mark_read(user, notification_id):
    notification = Notification.query.filter_by(id=notification_id, user_id=user.id).first()
    if notification is None:
        raise NotFound('Notification not found')
    if notification.mark_as_read():
        db.session.commit()
    return notification


def mark_all_read(user):
    count = (Notification.query
             .filter_by(user_id=user.id, is_read=False)
             .update({'is_read': True, 'read_at': datetime.utcnow()}, synchronize_session=False))
    db.session.commit()
    return count


def mark_incident_read(user, incident_id):
    count = (Notification.query
             .filter_by(user_id=user.id, incident_id=incident_id, is_read=False)
             .update({'is_read': True, 'read_at': datetime.utcnow()}, synchronize_session=False))
    db.session.commit()
    return count


def unread_count(user):
    return Notification.query.filter_by(user_id=user.id, is_read=False).count()
