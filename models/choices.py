ROLES = (
    'super_admin',
    'municipal_admin',
    'admin',
    'mdrrmo',
    'barangay_official',
    'resident',
    'responder',  # legacy, assignment-based
)

VERIFICATION_STATUSES = ('pending', 'verified', 'rejected')

INCIDENT_TYPES = ('fire', 'medical', 'accident', 'natural_disaster', 'crime', 'other')

URGENCY_LEVELS = ('low', 'medium', 'high', 'critical')

INCIDENT_STATUSES = ('reported', 'assigned', 'in_progress', 'resolved', 'cancelled')

UPDATE_TYPES = ('reported', 'status_change', 'assignment', 'escalation')

NOTIFICATION_TYPES = ('new_incident', 'incident_assigned', 'status_update', 'escalation_request')

SOUND_ALERT_TYPES = ('emergency', 'assignment', 'escalation')
