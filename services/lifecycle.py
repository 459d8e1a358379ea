"""Incident lifecycle: reported -> assigned -> in_progress -> resolved.

``cancelled`` can be entered from any open state. ``resolved`` and
``cancelled`` are terminal. Each operation appends exactly one
IncidentUpdate and commits it together with the incident change and the
resulting notifications, so callers see all three once the call returns.
Concurrent writers are not serialized: the last commit wins.
"""
import logging
from datetime import datetime

from flask import current_app

from app import db
from models import Assignment, Barangay, Incident, IncidentMedia, IncidentUpdate, Municipality, User
from models.choices import INCIDENT_STATUSES, INCIDENT_TYPES, URGENCY_LEVELS
from services import fanout, mailer, notifications, policy, storage
from services.errors import ValidationFailed
from services.validation import Validator

logger = logging.getLogger(__name__)

REPORTED = 'reported'
ASSIGNED = 'assigned'
IN_PROGRESS = 'in_progress'
RESOLVED = 'resolved'
CANCELLED = 'cancelled'

PROGRESSION = (REPORTED, ASSIGNED, IN_PROGRESS, RESOLVED)
TERMINAL = (RESOLVED, CANCELLED)

GPS_UNAVAILABLE_MARKER = ' (GPS not available)'


def is_terminal(status):
    return status in TERMINAL


def allowed_transitions(current):
    if is_terminal(current):
        return ()
    later = PROGRESSION[PROGRESSION.index(current) + 1:]
    return later + (CANCELLED,)


def check_transition(current, new):
    if new not in INCIDENT_STATUSES:
        raise ValidationFailed({'status': [f'Unknown status: {new}']})
    if new not in allowed_transitions(current):
        if is_terminal(current):
            message = f'Incident is already {current} and can no longer change status.'
        else:
            message = f'Cannot change status from {current} to {new}.'
        raise ValidationFailed({'status': [message]})


def _log_update(incident, user, update_type, message, previous_status=None, new_status=None):
    update = IncidentUpdate(
        incident=incident,
        updated_by=user.id,
        update_type=update_type,
        update_message=message,
        previous_status=previous_status,
        new_status=new_status,
    )
    db.session.add(update)
    incident.updated_at = datetime.utcnow()
    return update


def _validate_location(v):
    municipality_id = v.integer('municipality_id')
    barangay_id = v.integer('barangay_id')
    municipality = barangay = None
    if municipality_id is not None:
        municipality = db.session.get(Municipality, municipality_id)
        if municipality is None:
            v.add_error('municipality_id', 'The selected municipality_id is invalid.')
    if barangay_id is not None:
        barangay = db.session.get(Barangay, barangay_id)
        if barangay is None:
            v.add_error('barangay_id', 'The selected barangay_id is invalid.')
        elif municipality is not None and barangay.municipality_id != municipality.id:
            v.add_error('barangay_id', 'The selected barangay does not belong to the selected municipality.')
    return municipality, barangay


def validate_new_incident(data):
    v = Validator(data)
    v.choice('incident_type', INCIDENT_TYPES, required=True)
    v.string('title', required=True, max_length=255)
    v.string('description', required=True)
    v.string('location_address', required=True, max_length=500)
    v.choice('urgency_level', URGENCY_LEVELS, required=True)
    v.string('contact_number', max_length=20)
    gps_available = v.boolean('gps_available')
    if gps_available is False:
        v.cleaned['latitude'] = v.cleaned['longitude'] = 0.0
    else:
        v.number('latitude', required=True, minimum=-90, maximum=90)
        v.number('longitude', required=True, minimum=-180, maximum=180)
    municipality, barangay = _validate_location(v)
    cleaned = v.validate()

    if barangay is not None and municipality is None:
        municipality = barangay.municipality
    cleaned['municipality'] = municipality
    cleaned['barangay'] = barangay
    if gps_available is False:
        cleaned['location_address'] = cleaned['location_address'][:500 - len(GPS_UNAVAILABLE_MARKER)] \
            + GPS_UNAVAILABLE_MARKER
    return cleaned


def open_incident(user, data, media_files=()):
    policy.ensure_can_create_incident(policy.Actor.from_user(user))
    cleaned = validate_new_incident(data)

    incident = Incident(
        reporter=user,
        incident_type=cleaned['incident_type'],
        title=cleaned['title'],
        description=cleaned['description'],
        location_address=cleaned['location_address'],
        latitude=cleaned['latitude'],
        longitude=cleaned['longitude'],
        municipality=cleaned['municipality'],
        barangay=cleaned['barangay'],
        urgency_level=cleaned['urgency_level'],
        contact_number=cleaned.get('contact_number') or user.phone_number,
        status=REPORTED,
    )
    db.session.add(incident)
    _log_update(incident, user, 'reported', 'Incident reported', new_status=REPORTED)
    db.session.flush()

    notices = fanout.plan_new_incident(
        incident,
        notifications.mdrrmo_staff(incident.municipality_id),
        notifications.barangay_officials(incident.barangay_id),
    )
    notifications.record(incident, notices)
    db.session.commit()
    logger.info('Incident %s reported by user %s; %d notification(s)', incident.id, user.id, len(notices))

    if media_files:
        attach_media(incident, media_files)
    return incident


def attach_media(incident, files, max_size=None):
    """Store each file independently; a failed file is logged and skipped."""
    max_size = max_size or current_app.config['MAX_MEDIA_SIZE']
    stored = 0
    for file in files:
        name = file.filename or 'upload'
        ext = storage.extension(name)
        if ext not in storage.MEDIA_EXTENSIONS:
            logger.warning('Skipping media %s for incident %s: unsupported type', name, incident.id)
            continue
        size = storage.file_size(file)
        if size > max_size:
            logger.warning('Skipping media %s for incident %s: %d bytes exceeds limit', name, incident.id, size)
            continue
        try:
            key = storage.save(storage.INCIDENT_MEDIA, file, prefix=f'{incident.id}_')
        except storage.StorageError as e:
            logger.warning('Media upload failed for incident %s: %s', incident.id, e)
            continue
        mime_type = file.mimetype or ''
        db.session.add(IncidentMedia(
            incident=incident,
            file_path=key,
            file_name=name,
            file_type='image' if mime_type.startswith('image/') or ext in ('jpeg', 'jpg', 'png', 'gif')
            else 'video',
            file_size=size,
            mime_type=mime_type,
        ))
        stored += 1
    db.session.commit()
    if stored < len(files):
        logger.warning('Only %d of %d media files uploaded successfully for incident %s',
                       stored, len(files), incident.id)
    return stored


def assign_responder(user, incident, data):
    policy.ensure_can_assign(policy.Actor.from_user(user))

    v = Validator(data)
    responder_id = v.integer('responder_id', required=True)
    v.string('notes')
    responder = None
    if responder_id is not None:
        responder = db.session.get(User, responder_id)
        if responder is None:
            v.add_error('responder_id', 'The selected responder_id is invalid.')
        elif not policy.is_responder_capable(responder):
            v.add_error('responder_id', 'Selected user is not a responder')
    if is_terminal(incident.status):
        v.add_error('status', f'Cannot assign responders to a {incident.status} incident.')
    cleaned = v.validate()

    assignment = Assignment(
        incident=incident,
        responder_id=responder.id,
        assigned_by=user.id,
        status='assigned',
        notes=cleaned.get('notes'),
    )
    db.session.add(assignment)

    message = f'Responder {responder.full_name} assigned to this incident'
    if incident.status == REPORTED:
        incident.status = ASSIGNED
        _log_update(incident, user, 'assignment', message, previous_status=REPORTED, new_status=ASSIGNED)
    else:
        _log_update(incident, user, 'assignment', message)

    notifications.record(incident, fanout.plan_assignment(incident, responder))
    db.session.commit()
    logger.info('User %s assigned responder %s to incident %s', user.id, responder.id, incident.id)
    return assignment


def change_status(user, incident, data):
    policy.ensure_can_update_status(policy.Actor.from_user(user), incident)
    v = Validator(data)
    new_status = v.choice('status', INCIDENT_STATUSES, required=True)
    v.string('update_message')
    cleaned = v.validate()

    previous_status = incident.status
    check_transition(previous_status, new_status)

    incident.status = new_status
    if new_status == RESOLVED:
        incident.resolved_at = datetime.utcnow()
    _log_update(
        incident, user, 'status_change',
        cleaned.get('update_message') or f'Status changed from {previous_status} to {new_status}',
        previous_status=previous_status, new_status=new_status,
    )

    responder_ids = [a.responder_id for a in incident.assignments]
    notices = fanout.plan_status_change(incident, responder_ids)
    notifications.record(incident, notices)
    db.session.commit()
    logger.info('Incident %s moved %s -> %s by user %s', incident.id, previous_status, new_status, user.id)
    return incident


def request_escalation(user, incident, data):
    policy.ensure_can_escalate(policy.Actor.from_user(user), incident)

    v = Validator(data)
    reason = v.string('reason', required=True)
    v.validate()

    update = _log_update(incident, user, 'escalation', f'Municipal assistance requested: {reason}')
    staff = notifications.mdrrmo_staff(incident.municipality_id)
    notices = fanout.plan_escalation(
        incident, staff, reason, incident.barangay.name if incident.barangay else None,
    )
    notifications.record(incident, notices)
    db.session.commit()
    logger.info('Incident %s escalated by user %s; %d municipal recipient(s)', incident.id, user.id, len(notices))

    recipient_ids = {n.user_id for n in notices}
    mailer.escalation_alert(incident, [s for s in staff if s.id in recipient_ids], reason, user)
    return update
