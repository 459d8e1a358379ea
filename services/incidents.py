import logging
from collections import OrderedDict
from datetime import datetime, timedelta

from sqlalchemy.orm import selectinload

from app import db
from models import Assignment, Incident, IncidentAcknowledgement, IncidentUpdate
from models.choices import INCIDENT_STATUSES, INCIDENT_TYPES, URGENCY_LEVELS
from services import policy, storage
from services.errors import Forbidden, NotFound, ValidationFailed
from services.validation import Validator

logger = logging.getLogger(__name__)

MONTH_NAMES = ('Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun', 'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec')


def visible_query(actor):
    query = Incident.query
    criterion = policy.read_scope(actor).criterion()
    if criterion is not None:
        query = query.filter(criterion)
    return query


def get_visible(actor, incident_id, detail=False):
    """Incidents outside the actor's scope are reported as missing."""
    query = visible_query(actor).filter(Incident.id == incident_id)
    if detail:
        query = query.options(
            selectinload(Incident.media),
            selectinload(Incident.assignments).selectinload(Assignment.responder),
            selectinload(Incident.updates).selectinload(IncidentUpdate.author),
        )
    incident = query.first()
    if incident is None:
        raise NotFound('Incident not found')
    return incident


def parse_filters(args):
    v = Validator(args)
    v.choice('status', INCIDENT_STATUSES)
    v.choice('incident_type', INCIDENT_TYPES)
    v.choice('urgency_level', URGENCY_LEVELS)
    v.integer('municipality_id')
    v.integer('barangay_id')
    v.date('date_from')
    v.date('date_to')
    v.timestamp('updated_since')
    return v.validate()


def apply_filters(query, filters):
    for field in ('status', 'incident_type', 'urgency_level', 'municipality_id', 'barangay_id'):
        if filters.get(field) is not None:
            query = query.filter(getattr(Incident, field) == filters[field])
    if filters.get('date_from'):
        query = query.filter(Incident.created_at >= filters['date_from'])
    if filters.get('date_to'):
        # inclusive of the whole end day
        query = query.filter(Incident.created_at < filters['date_to'] + timedelta(days=1))
    if filters.get('updated_since'):
        query = query.filter(Incident.updated_at > filters['updated_since'])
    return query


def search(actor, args):
    filters = parse_filters(args)
    query = apply_filters(visible_query(actor), filters)
    return query.order_by(Incident.created_at.desc(), Incident.id.desc())


def acknowledge(user, incident):
    existing = IncidentAcknowledgement.query.filter_by(incident_id=incident.id, user_id=user.id).first()
    if existing is not None:
        return existing, False
    ack = IncidentAcknowledgement(incident_id=incident.id, user_id=user.id)
    db.session.add(ack)
    db.session.commit()
    return ack, True


def delete(actor, incident):
    if not policy.can_delete_incident(actor):
        raise Forbidden('Unauthorized to delete this incident')
    incident_id = incident.id
    keys = [m.file_path for m in incident.media]
    db.session.delete(incident)
    db.session.commit()
    for key in keys:
        storage.delete(key)
    logger.info('Incident %s deleted by user %s (%d media file(s))', incident_id, actor.id, len(keys))


def _month_key(dt):
    return f'{dt.year}-{dt.month:02d}'


def _months_back(now, months):
    year, month = now.year, now.month
    keys = []
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def monthly_statistics(actor, args, now=None):
    v = Validator(args)
    barangay_id = v.integer('barangay_id')
    municipality_id = v.integer('municipality_id')
    months = v.integer('months', minimum=1, maximum=24) or 12
    v.validate()
    if barangay_id is None and municipality_id is None:
        raise ValidationFailed({'barangay_id': ['Either barangay_id or municipality_id is required.']})

    now = now or datetime.utcnow()
    slots = _months_back(now, months)
    start = datetime(slots[0][0], slots[0][1], 1)

    query = visible_query(actor).filter(Incident.created_at >= start)
    if barangay_id is not None:
        query = query.filter(Incident.barangay_id == barangay_id)
    if municipality_id is not None:
        query = query.filter(Incident.municipality_id == municipality_id)

    monthly = OrderedDict()
    for year, month in slots:
        key = f'{year}-{month:02d}'
        monthly[key] = {
            'month': f'{MONTH_NAMES[month - 1]} {year}',
            'date': key,
            'total': 0,
            'byType': {},
            'byStatus': {},
            'byUrgency': {},
        }

    for incident in query.all():
        bucket = monthly.get(_month_key(incident.created_at))
        if bucket is None:
            continue
        bucket['total'] += 1
        for field, name in (('byType', incident.incident_type),
                            ('byStatus', incident.status),
                            ('byUrgency', incident.urgency_level)):
            bucket[field][name] = bucket[field].get(name, 0) + 1
    return list(monthly.values())
