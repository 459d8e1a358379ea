import logging
import smtplib

from flask_mail import Message

from app import mail

logger = logging.getLogger(__name__)


def send_best_effort(subject, recipients, body):
    """Send a plain-text mail; failures are logged and reported as False."""
    recipients = [r for r in recipients if r]
    if not recipients:
        return False
    try:
        mail.send(Message(subject=subject, recipients=recipients, body=body))
    except (smtplib.SMTPException, OSError) as e:
        logger.warning('Failed to send "%s" to %d recipient(s): %s', subject, len(recipients), e)
        return False
    return True


def escalation_alert(incident, staff, reason, requested_by):
    body = f"""An incident in your municipality needs municipal assistance.

Incident: {incident.title} ({incident.incident_type}, {incident.urgency_level})
Location: {incident.location_address}
Status: {incident.status}
Requested by: {requested_by.full_name}
Reason: {reason}
"""
    return send_best_effort('Municipal assistance requested', [s.email for s in staff], body)


def verification_result(user):
    if user.verification_status == 'verified':
        body = f"""Hello {user.full_name},

Your resident account has been verified. You can now report incidents.
"""
    else:
        body = f"""Hello {user.full_name},

Your resident account verification was not approved.
{('Notes: ' + user.verification_notes) if user.verification_notes else ''}
Please contact your municipal office for assistance.
"""
    return send_best_effort('Account verification update', [user.email], body)


def welcome(user):
    body = f"""Hello {user.full_name},

An account has been created for you in the emergency incident reporting system.

Role: {user.role}
Username: {user.username}
Email: {user.email}

Please login and change your password after first login for security.
"""
    return send_best_effort('Welcome to the incident reporting system', [user.email], body)
