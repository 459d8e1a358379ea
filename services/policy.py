"""Role and scope rules for incidents.

Every rule here is a plain function of the acting user and, where relevant,
the incident. The read scope is described once by :class:`ReadScope` and turned
into either a SQLAlchemy criterion (for list/detail queries) or an in-memory
predicate, so query filtering and object checks always agree.
"""
from collections import namedtuple

from services.errors import Forbidden

SUPER_ADMIN = 'super_admin'
MUNICIPAL_ADMIN = 'municipal_admin'
ADMIN = 'admin'
MDRRMO = 'mdrrmo'
BARANGAY_OFFICIAL = 'barangay_official'
RESIDENT = 'resident'
RESPONDER = 'responder'

ADMIN_ROLES = (SUPER_ADMIN, MUNICIPAL_ADMIN, ADMIN)
STATUS_UPDATE_ROLES = (ADMIN, MDRRMO, BARANGAY_OFFICIAL, MUNICIPAL_ADMIN)
ASSIGN_ROLES = (ADMIN, MDRRMO)
RESPONDER_ROLES = (RESPONDER,)
VERIFIER_ROLES = (SUPER_ADMIN, MUNICIPAL_ADMIN, ADMIN, MDRRMO)
EXPORT_ROLES = (SUPER_ADMIN, MUNICIPAL_ADMIN, ADMIN, MDRRMO, BARANGAY_OFFICIAL)
DELETE_ROLES = (SUPER_ADMIN, ADMIN)

_EMERGENCY_ROLES = (MDRRMO, BARANGAY_OFFICIAL, RESIDENT)
CREATABLE_ROLES = {
    SUPER_ADMIN: (MUNICIPAL_ADMIN,),
    MUNICIPAL_ADMIN: _EMERGENCY_ROLES,
    ADMIN: _EMERGENCY_ROLES + (RESPONDER, ADMIN),
}


class Actor(namedtuple('Actor', 'id role municipality_id barangay_id verification_status')):
    __slots__ = ()

    @classmethod
    def from_user(cls, user):
        return cls(user.id, user.role, user.municipality_id, user.barangay_id,
                   user.verification_status)


# Scope kinds
ALL = 'all'
NONE = 'none'
OWN_REPORTS = 'own_reports'
ASSIGNED = 'assigned'
BARANGAY = 'barangay'
MUNICIPALITY = 'municipality'


class ReadScope(namedtuple('ReadScope', 'kind value')):
    __slots__ = ()

    def matches(self, incident):
        if self.kind == ALL:
            return True
        if self.kind == OWN_REPORTS:
            return incident.reporter_id == self.value
        if self.kind == ASSIGNED:
            return any(a.responder_id == self.value for a in incident.assignments)
        if self.kind == BARANGAY:
            return self.value is not None and incident.barangay_id == self.value
        if self.kind == MUNICIPALITY:
            return self.value is not None and incident.municipality_id == self.value
        return False

    def criterion(self):
        """SQL expression equivalent of :meth:`matches`, or None for no filter."""
        from models import Assignment, Incident
        from sqlalchemy import false

        if self.kind == ALL:
            return None
        if self.kind == OWN_REPORTS:
            return Incident.reporter_id == self.value
        if self.kind == ASSIGNED:
            return Incident.assignments.any(Assignment.responder_id == self.value)
        if self.kind == BARANGAY and self.value is not None:
            return Incident.barangay_id == self.value
        if self.kind == MUNICIPALITY and self.value is not None:
            return Incident.municipality_id == self.value
        return false()


def read_scope(actor):
    role = actor.role
    if role in (SUPER_ADMIN, ADMIN, MDRRMO):
        return ReadScope(ALL, None)
    if role == MUNICIPAL_ADMIN:
        return ReadScope(MUNICIPALITY, actor.municipality_id)
    if role == BARANGAY_OFFICIAL:
        return ReadScope(BARANGAY, actor.barangay_id)
    if role == RESPONDER:
        return ReadScope(ASSIGNED, actor.id)
    if role == RESIDENT:
        return ReadScope(OWN_REPORTS, actor.id)
    return ReadScope(NONE, None)


def can_read(actor, incident):
    return read_scope(actor).matches(incident)


def can_create_incident(actor):
    return actor.role == RESIDENT and actor.verification_status == 'verified'


def can_update_status(actor, incident):
    return actor.role in STATUS_UPDATE_ROLES or incident.reporter_id == actor.id


def can_assign(actor):
    return actor.role in ASSIGN_ROLES


def is_responder_capable(user):
    return user.role in RESPONDER_ROLES and bool(user.is_active)


def can_escalate(actor, incident):
    return actor.role == BARANGAY_OFFICIAL and incident.status != 'resolved'


def can_verify_residents(actor):
    return actor.role in VERIFIER_ROLES


def can_manage_user(actor, user):
    """Admins manage accounts; municipal admins only inside their municipality."""
    if actor.role in (SUPER_ADMIN, ADMIN):
        return True
    if actor.role == MUNICIPAL_ADMIN:
        return actor.municipality_id is not None and user.municipality_id == actor.municipality_id
    return False


def can_verify_user(actor, user):
    if not can_verify_residents(actor):
        return False
    if actor.role == MUNICIPAL_ADMIN:
        return can_manage_user(actor, user)
    return True


def creatable_roles(creator_role):
    return CREATABLE_ROLES.get(creator_role, ())


def can_manage_sound_alerts(actor):
    return actor.role in ADMIN_ROLES


def can_export(actor):
    return actor.role in EXPORT_ROLES


def can_delete_incident(actor):
    return actor.role in DELETE_ROLES


def ensure_can_create_incident(actor):
    if actor.role != RESIDENT:
        raise Forbidden('Only residents can report incidents.')
    if not can_create_incident(actor):
        raise Forbidden('Your account must be verified before reporting incidents. '
                        'Please wait for account verification.')


def ensure_can_update_status(actor, incident):
    if not can_update_status(actor, incident):
        raise Forbidden('Unauthorized to update this incident')


def ensure_can_assign(actor):
    if not can_assign(actor):
        raise Forbidden('Unauthorized to assign responders')


def ensure_can_escalate(actor, incident):
    if actor.role != BARANGAY_OFFICIAL:
        raise Forbidden('Only barangay officials can request municipal assistance')
    if not can_escalate(actor, incident):
        raise Forbidden('Resolved incidents cannot be escalated')
