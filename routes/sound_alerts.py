from flask import Blueprint, jsonify, request
from flask_jwt_extended import jwt_required

from routes import get_current_user, request_data
from services import sound_alerts

sound_alerts_bp = Blueprint('sound_alerts', __name__)


@sound_alerts_bp.route('/sound-alerts', methods=['GET'])
@jwt_required()
def list_sound_alerts():
    get_current_user()
    return jsonify([a.to_dict() for a in sound_alerts.active_alerts()]), 200


@sound_alerts_bp.route('/sound-alerts/<alert_type>', methods=['POST'])
@jwt_required()
def upload_sound_alert(alert_type):
    alert = sound_alerts.upload(get_current_user(), alert_type, request.files.get('file'), request.form)
    return jsonify(alert.to_dict()), 201


@sound_alerts_bp.route('/sound-alerts/<alert_type>', methods=['PUT'])
@jwt_required()
def update_sound_alert(alert_type):
    alert = sound_alerts.update(get_current_user(), alert_type, request_data())
    return jsonify(alert.to_dict()), 200


@sound_alerts_bp.route('/sound-alerts/<alert_type>', methods=['DELETE'])
@jwt_required()
def reset_sound_alert(alert_type):
    alert = sound_alerts.reset(get_current_user(), alert_type)
    return jsonify(alert.to_dict()), 200
