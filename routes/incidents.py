from flask import Blueprint, Response, current_app, jsonify, request
from flask_jwt_extended import jwt_required
from sqlalchemy.orm import joinedload

from models import Incident
from routes import get_current_user, paginate, request_data
from services import incidents, lifecycle, notifications, policy
from services.errors import Forbidden

incidents_bp = Blueprint('incidents', __name__)


def _actor():
    user = get_current_user()
    return user, policy.Actor.from_user(user)


@incidents_bp.route('/incidents', methods=['GET'])
@jwt_required()
def list_incidents():
    user, actor = _actor()
    query = incidents.search(actor, request.args).options(
        joinedload(Incident.reporter),
        joinedload(Incident.municipality),
        joinedload(Incident.barangay),
    )
    return jsonify(paginate(
        query,
        current_app.config['INCIDENTS_PER_PAGE'],
        lambda incident: incident.to_dict(viewer=user),
    )), 200


@incidents_bp.route('/incidents', methods=['POST'])
@jwt_required()
def create_incident():
    user = get_current_user()
    media_files = [f for f in request.files.getlist('media') if f and f.filename]
    incident = lifecycle.open_incident(user, request_data(), media_files)

    return jsonify({
        'message': 'Incident reported successfully',
        'incident': incident.to_dict(detail=True),
    }), 201


@incidents_bp.route('/incidents/export', methods=['GET'])
@jwt_required()
def export_incidents():
    user, actor = _actor()
    if not policy.can_export(actor):
        raise Forbidden('Access forbidden')

    rows = incidents.search(actor, request.args).options(
        joinedload(Incident.reporter),
        joinedload(Incident.barangay),
        joinedload(Incident.municipality),
    ).all()

    def csv_field(value):
        text = '' if value is None else str(value)
        return '"' + text.replace('"', '""') + '"'

    # CSV generation
    def generate_csv():
        yield 'Incident ID,Type,Title,Urgency,Status,Barangay,Municipality,Reporter,Reported At,Resolved At\n'
        for r in rows:
            yield ','.join([
                str(r.id),
                r.incident_type,
                csv_field(r.title),
                r.urgency_level,
                r.status,
                csv_field(r.barangay.name if r.barangay else ''),
                csv_field(r.municipality.name if r.municipality else ''),
                csv_field(r.reporter.full_name if r.reporter else ''),
                r.created_at.strftime('%Y-%m-%d %H:%M:%S') if r.created_at else '',
                r.resolved_at.strftime('%Y-%m-%d %H:%M:%S') if r.resolved_at else '',
            ]) + '\n'

    return Response(
        generate_csv(),
        mimetype='text/csv',
        headers={'Content-Disposition': 'attachment; filename=incidents.csv'}
    )


@incidents_bp.route('/incidents/<int:incident_id>', methods=['GET'])
@jwt_required()
def get_incident(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id, detail=True)
    return jsonify({'incident': incident.to_dict(detail=True, viewer=user)}), 200


@incidents_bp.route('/incidents/<int:incident_id>/update-status', methods=['POST'])
@jwt_required()
def update_status(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    lifecycle.change_status(user, incident, request_data())

    return jsonify({
        'message': 'Incident status updated successfully',
        'incident': incident.to_dict(),
    }), 200


@incidents_bp.route('/incidents/<int:incident_id>/assign', methods=['POST'])
@jwt_required()
def assign_responder(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    assignment = lifecycle.assign_responder(user, incident, request_data())

    return jsonify({
        'message': 'Responder assigned successfully',
        'assignment': assignment.to_dict(),
        'incident': incident.to_dict(),
    }), 200


@incidents_bp.route('/incidents/<int:incident_id>/escalate', methods=['POST'])
@jwt_required()
def escalate(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    update = lifecycle.request_escalation(user, incident, request_data())

    return jsonify({
        'message': 'Municipal assistance requested',
        'update': update.to_dict(),
        'incident': incident.to_dict(),
    }), 200


@incidents_bp.route('/incidents/<int:incident_id>/acknowledge', methods=['POST'])
@jwt_required()
def acknowledge(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    ack, created = incidents.acknowledge(user, incident)

    return jsonify({
        'message': 'Incident acknowledged' if created else 'Incident already acknowledged',
        'acknowledged_at': ack.acknowledged_at.isoformat(),
    }), 201 if created else 200


@incidents_bp.route('/incidents/<int:incident_id>/notifications/read', methods=['POST'])
@jwt_required()
def read_incident_notifications(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    count = notifications.mark_incident_read(user, incident.id)

    return jsonify({
        'message': 'Incident notifications marked as read',
        'updated': count,
    }), 200


@incidents_bp.route('/incidents/<int:incident_id>', methods=['DELETE'])
@jwt_required()
def delete_incident(incident_id):
    user, actor = _actor()
    incident = incidents.get_visible(actor, incident_id)
    incidents.delete(actor, incident)
    return jsonify({'message': 'Incident deleted successfully'}), 200


@incidents_bp.route('/statistics/monthly', methods=['GET'])
@jwt_required()
def monthly_statistics():
    user, actor = _actor()
    return jsonify(incidents.monthly_statistics(actor, request.args)), 200
