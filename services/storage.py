"""Object storage for incident media, verification documents and alert sounds.

Files are kept under ``STORAGE_ROOT`` and addressed by a relative key such as
``incident-media/12_1700000000_ab12cd.png``. Only ``save``, ``url`` and
``delete`` are used by the rest of the app, so a hosted bucket can replace
this module without touching callers.
"""
import logging
import os
import secrets
import time

from flask import current_app, send_from_directory, url_for
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from services.errors import ServiceError

logger = logging.getLogger(__name__)

INCIDENT_MEDIA = 'incident-media'
USER_DOCUMENTS = 'user-documents'
SOUND_ALERTS = 'sound-alerts'

MEDIA_EXTENSIONS = {'jpeg', 'jpg', 'png', 'gif', 'mp4', 'mov'}
SOUND_EXTENSIONS = {'mp3', 'wav', 'ogg', 'm4a'}
DOCUMENT_EXTENSIONS = {'jpeg', 'jpg', 'png', 'pdf'}

# Served without a token; everything else goes through an authorized route
PUBLIC_BUCKETS = (INCIDENT_MEDIA, SOUND_ALERTS)


class StorageError(ServiceError):
    status_code = 503


def _root():
    return current_app.config['STORAGE_ROOT']


def extension(filename):
    if not filename or '.' not in filename:
        return ''
    return filename.rsplit('.', 1)[1].lower()


def file_size(file):
    stream = file.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


def save(bucket, file, prefix=''):
    """Store an uploaded ``FileStorage`` and return its key."""
    original = secure_filename(file.filename or '')
    ext = extension(original)
    name = f'{prefix}{int(time.time() * 1000)}_{secrets.token_hex(3)}'
    if ext:
        name = f'{name}.{ext}'
    key = f'{bucket}/{name}'
    path = safe_join(_root(), key)
    if path is None:
        raise StorageError(f'Refusing to store outside storage root: {key}')
    try:
        os.makedirs(os.path.dirname(path), exist_ok=True)
        file.save(path)
    except OSError as exc:
        raise StorageError(f'Could not store {original or "upload"}: {exc}') from exc
    return key


def delete(key):
    path = safe_join(_root(), key) if key else None
    if path is None or not os.path.isfile(path):
        return False
    try:
        os.remove(path)
    except OSError:
        logger.warning('Failed to delete stored file %s', key, exc_info=True)
        return False
    return True


def url(key):
    return url_for('storage.serve', key=key, _external=True)


def is_public(key):
    return bool(key) and key.split('/', 1)[0] in PUBLIC_BUCKETS


def send(key):
    return send_from_directory(_root(), key)
