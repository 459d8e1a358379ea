from flask import Blueprint, jsonify, request
from flask_jwt_extended import create_access_token, get_jwt, jwt_required

from app import db
from models.TokenBlocklist import TokenBlocklist
from routes import get_current_user, request_data
from services import accounts, storage

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/')
def home():
    return {'message': 'Incident reporting API is working!'}


@auth_bp.route('/register', methods=['POST'])
def register():
    user = accounts.register_resident(request_data())

    # Create token with identity as string to avoid "Subject must be a string" error
    access_token = create_access_token(identity=str(user.id))

    return jsonify({
        'message': 'User registered successfully',
        'user': user.to_dict(),
        'token': access_token,
    }), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    user = accounts.authenticate(request_data())
    access_token = create_access_token(identity=str(user.id))

    return jsonify({
        'message': 'Login successful',
        'token': access_token,
        'user': user.to_dict(),
    }), 200


@auth_bp.route('/logout', methods=['POST'])
@jwt_required()
def logout():
    claims = get_jwt()
    db.session.add(TokenBlocklist(jti=claims['jti'], user_id=int(claims['sub'])))
    db.session.commit()
    return jsonify({'message': 'Logged out successfully'}), 200


@auth_bp.route('/user', methods=['GET'])
@jwt_required()
def me():
    return jsonify({'user': get_current_user().to_dict()}), 200


@auth_bp.route('/user/verification-documents', methods=['POST'])
@jwt_required()
def upload_verification_documents():
    user = accounts.upload_verification_documents(get_current_user(), request.files)
    return jsonify({
        'message': 'Verification documents uploaded',
        'user': user.to_dict(),
    }), 200


@auth_bp.route('/users/<int:user_id>/verification-documents/<field>', methods=['GET'])
@jwt_required()
def verification_document(user_id, field):
    key = accounts.verification_document(get_current_user(), user_id, field)
    return storage.send(key)
