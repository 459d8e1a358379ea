from models.Municipality import Municipality, Barangay
from models.User import User
from models.Incident import Incident, IncidentMedia, IncidentUpdate, IncidentAcknowledgement
from models.Assignment import Assignment
from models.Notification import Notification
from models.SoundAlert import SoundAlert
from models.TokenBlocklist import TokenBlocklist

__all__ = [
    'Municipality',
    'Barangay',
    'User',
    'Incident',
    'IncidentMedia',
    'IncidentUpdate',
    'IncidentAcknowledgement',
    'Assignment',
    'Notification',
    'SoundAlert',
    'TokenBlocklist',
]
