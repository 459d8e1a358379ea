from flask import Blueprint, current_app, jsonify, request
from flask_jwt_extended import jwt_required

from routes import get_current_user, paginate
from services import notifications
from services.validation import Validator

notifications_bp = Blueprint('notifications', __name__)


@notifications_bp.route('/notifications', methods=['GET'])
@jwt_required()
def list_notifications():
    user = get_current_user()

    v = Validator(request.args)
    unread_only = v.boolean('unread_only')
    since = v.timestamp('since')
    v.validate()

    query = notifications.for_user(user, unread_only=bool(unread_only), since=since)
    return jsonify(paginate(
        query,
        current_app.config['NOTIFICATIONS_PER_PAGE'],
        lambda n: n.to_dict(),
    )), 200


@notifications_bp.route('/notifications/unread-count', methods=['GET'])
@jwt_required()
def unread_count():
    return jsonify({'unread_count': notifications.unread_count(get_current_user())}), 200


@notifications_bp.route('/notifications/<int:notification_id>/read', methods=['POST'])
@jwt_required()
def mark_as_read(notification_id):
    notification = notifications.mark_read(get_current_user(), notification_id)

    return jsonify({
        'message': 'Notification marked as read',
        'notification': notification.to_dict(),
    }), 200


@notifications_bp.route('/notifications/read-all', methods=['POST'])
@jwt_required()
def mark_all_as_read():
    count = notifications.mark_all_read(get_current_user())

    return jsonify({
        'message': 'All notifications marked as read',
        'updated': count,
    }), 200
