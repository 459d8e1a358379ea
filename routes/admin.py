from flask import Blueprint, jsonify, request, url_for
from flask_jwt_extended import jwt_required

from routes import get_current_user, paginate, request_data
from services import accounts

admin_bp = Blueprint('admin', __name__, url_prefix='/admin')


@admin_bp.route('/users', methods=['GET'])
@jwt_required()
def list_users():
    query = accounts.list_users(get_current_user(), request.args)
    return jsonify(paginate(query, 50, lambda u: u.to_dict())), 200


@admin_bp.route('/users', methods=['POST'])
@jwt_required()
def create_user():
    user = accounts.create_account(get_current_user(), request_data())

    return jsonify({
        'message': f'{user.role} account created successfully',
        'user': user.to_dict(),
    }), 201


@admin_bp.route('/users/<int:user_id>/status', methods=['PUT'])
@jwt_required()
def set_user_status(user_id):
    user = accounts.set_active(get_current_user(), user_id, request_data())

    return jsonify({
        'message': f"User {user.email} {'activated' if user.is_active else 'deactivated'}",
        'user': user.to_dict(),
    }), 200


@admin_bp.route('/residents/pending', methods=['GET'])
@jwt_required()
def pending_residents():
    residents = accounts.pending_residents(get_current_user())

    result = []
    for resident in residents:
        data = resident.to_dict()
        data['verification_documents'] = {
            field: url_for('auth.verification_document', user_id=resident.id, field=field, _external=True)
            for field in (resident.verification_documents or {})
        }
        result.append(data)
    return jsonify(result), 200


@admin_bp.route('/residents/<int:user_id>/verify', methods=['POST'])
@jwt_required()
def verify_resident(user_id):
    user = accounts.verify_resident(get_current_user(), user_id, request_data())

    return jsonify({
        'message': f'Resident account {user.verification_status} successfully',
        'user': user.to_dict(),
    }), 200
