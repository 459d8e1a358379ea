import logging

from flask import Flask, jsonify, request
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from flask_migrate import Migrate
from flask_mail import Mail
from werkzeug.exceptions import HTTPException
from config import Config

db = SQLAlchemy()
jwt = JWTManager()
migrate = Migrate()
mail = Mail()


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.logger.setLevel(getattr(logging, str(app.config['LOG_LEVEL']).upper(), logging.INFO))

    db.init_app(app)
    jwt.init_app(app)
    CORS(app)
    migrate.init_app(app, db)
    mail.init_app(app)

    # Import models so Alembic sees them
    import models  # noqa: F401

    from routes import register_blueprints
    register_blueprints(app)

    register_jwt_callbacks()
    register_error_handlers(app)

    from seed import seed_command
    app.cli.add_command(seed_command)

    return app


def register_jwt_callbacks():
    from models.TokenBlocklist import TokenBlocklist
    from models.User import User

    @jwt.token_in_blocklist_loader
    def check_if_token_revoked(jwt_header, jwt_payload):
        return TokenBlocklist.is_revoked(jwt_payload['jti'])

    @jwt.user_lookup_loader
    def load_user(jwt_header, jwt_data):
        return db.session.get(User, int(jwt_data['sub']))

    @jwt.unauthorized_loader
    def missing_token(reason):
        return jsonify({'message': 'Unauthenticated.', 'detail': reason}), 401

    @jwt.invalid_token_loader
    def invalid_token(reason):
        return jsonify({'message': 'Unauthenticated.', 'detail': reason}), 401

    @jwt.expired_token_loader
    def expired_token(jwt_header, jwt_payload):
        return jsonify({'message': 'Token has expired.'}), 401

    @jwt.revoked_token_loader
    def revoked_token(jwt_header, jwt_payload):
        return jsonify({'message': 'Token has been revoked.'}), 401

    @jwt.user_lookup_error_loader
    def unknown_user(jwt_header, jwt_data):
        return jsonify({'message': 'Unauthenticated.'}), 401


def register_error_handlers(app):
    from services.errors import ServiceError

    @app.errorhandler(ServiceError)
    def handle_service_error(error):
        if error.status_code == 403:
            app.logger.info('Denied %s %s: %s', request.method, request.path, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({'message': error.description}), error.code


if __name__ == "__main__":
    # import through the module name so models and routes share this db instance
    from app import create_app as factory
    app = factory()
    app.run(debug=True)
