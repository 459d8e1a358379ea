import logging

from app import db
from models import SoundAlert
from models.SoundAlert import DEFAULT_SOUND
from models.choices import SOUND_ALERT_TYPES
from services import policy, storage
from services.errors import Forbidden, NotFound, ValidationFailed
from services.validation import Validator

logger = logging.getLogger(__name__)


def _ensure_admin(user):
    if not policy.can_manage_sound_alerts(policy.Actor.from_user(user)):
        raise Forbidden('Only administrators can manage sound alerts')


def _check_type(alert_type):
    if alert_type not in SOUND_ALERT_TYPES:
        raise NotFound(f'Unknown alert type: {alert_type}')


def active_alerts():
    return SoundAlert.query.filter_by(is_active=True).order_by(SoundAlert.alert_type).all()


def upload(user, alert_type, file, data):
    _ensure_admin(user)
    _check_type(alert_type)

    v = Validator(data)
    volume = v.number('volume', minimum=0, maximum=1)
    if file is None or not file.filename:
        v.add_error('file', 'The file field is required.')
    elif storage.extension(file.filename) not in storage.SOUND_EXTENSIONS:
        v.add_error('file', f"The file must be a file of type: {', '.join(sorted(storage.SOUND_EXTENSIONS))}.")
    v.validate()

    key = storage.save(storage.SOUND_ALERTS, file, prefix=f'{alert_type}/{alert_type}_')
    alert = SoundAlert.query.filter_by(alert_type=alert_type).first()
    if alert is None:
        alert = SoundAlert(alert_type=alert_type)
        db.session.add(alert)
    elif not alert.is_default:
        storage.delete(alert.sound_file_path)

    alert.sound_file_path = key
    alert.sound_file_name = file.filename
    alert.volume = 0.7 if volume is None else volume
    alert.is_active = True
    alert.created_by = user.id
    db.session.commit()
    logger.info('Sound alert %s replaced by user %s', alert_type, user.id)
    return alert


def update(user, alert_type, data):
    _ensure_admin(user)
    _check_type(alert_type)
    alert = SoundAlert.query.filter_by(alert_type=alert_type).first()
    if alert is None:
        raise NotFound('Sound alert not found')

    v = Validator(data)
    v.number('volume', minimum=0, maximum=1)
    v.boolean('is_active')
    cleaned = v.validate()
    if not cleaned:
        raise ValidationFailed({'volume': ['Nothing to update.']})

    if 'volume' in cleaned:
        alert.volume = cleaned['volume']
    if 'is_active' in cleaned:
        alert.is_active = cleaned['is_active']
    db.session.commit()
    return alert


def reset(user, alert_type):
    """Drop the uploaded file and fall back to the built-in sound."""
    _ensure_admin(user)
    _check_type(alert_type)
    alert = SoundAlert.query.filter_by(alert_type=alert_type).first()
    if alert is None:
        raise NotFound('Sound alert not found')

    if not alert.is_default:
        storage.delete(alert.sound_file_path)
    alert.sound_file_path = DEFAULT_SOUND
    alert.sound_file_name = DEFAULT_SOUND
    db.session.commit()
    return alert
