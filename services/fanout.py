"""Who gets notified about an incident event, and with what text.

Functions here only plan notifications; :mod:`services.notifications` writes
them. Each plan holds at most one notice per recipient.
"""
from collections import namedtuple

Notice = namedtuple('Notice', 'user_id notification_type title message')

NEW_INCIDENT = 'new_incident'
INCIDENT_ASSIGNED = 'incident_assigned'
STATUS_UPDATE = 'status_update'
ESCALATION_REQUEST = 'escalation_request'


def unique_recipients(notices):
    """Drop later notices addressed to a user who already has one in this event."""
    seen = set()
    result = []
    for notice in notices:
        if notice.user_id is None or notice.user_id in seen:
            continue
        seen.add(notice.user_id)
        result.append(notice)
    return result


def _active(users):
    return [u for u in users if u.is_active]


def plan_new_incident(incident, mdrrmo_staff, barangay_officials):
    """Municipal MDRRMO staff and the incident's barangay officials.

    Municipal admins and other municipal roles are only alerted through
    escalation, never at creation.
    """
    notices = []
    if incident.municipality_id is not None:
        for staff in _active(mdrrmo_staff):
            if staff.role == 'mdrrmo' and staff.municipality_id == incident.municipality_id:
                notices.append(Notice(
                    staff.id, NEW_INCIDENT, 'New Incident Reported',
                    f'New {incident.incident_type} incident reported: {incident.title}',
                ))
    if incident.barangay_id is not None:
        for official in _active(barangay_officials):
            if official.role == 'barangay_official' and official.barangay_id == incident.barangay_id:
                notices.append(Notice(
                    official.id, NEW_INCIDENT, 'New Incident in Your Area',
                    f'New incident reported in your barangay: {incident.title}',
                ))
    return unique_recipients(notices)


def plan_assignment(incident, responder):
    return [Notice(
        responder.id, INCIDENT_ASSIGNED, 'New Incident Assignment',
        f'You have been assigned to incident: {incident.title}',
    )]


def plan_status_change(incident, responder_ids):
    notices = [Notice(
        incident.reporter_id, STATUS_UPDATE, 'Incident Status Updated',
        f'Your incident status has been updated to: {incident.status}',
    )]
    for responder_id in responder_ids:
        if responder_id == incident.reporter_id:
            continue
        notices.append(Notice(
            responder_id, STATUS_UPDATE, 'Incident Status Updated',
            f'Incident status updated to: {incident.status}',
        ))
    return unique_recipients(notices)


def plan_escalation(incident, mdrrmo_staff, reason, barangay_name=None):
    if incident.municipality_id is None:
        return []
    where = f' from Barangay {barangay_name}' if barangay_name else ''
    notices = [
        Notice(
            staff.id, ESCALATION_REQUEST, 'Municipal Assistance Requested',
            f'Assistance requested{where} for incident "{incident.title}": {reason}',
        )
        for staff in _active(mdrrmo_staff)
        if staff.role == 'mdrrmo' and staff.municipality_id == incident.municipality_id
    ]
    return unique_recipients(notices)
