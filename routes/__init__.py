from flask import current_app, request
from flask_jwt_extended import get_current_user as current_jwt_user

from services.errors import Forbidden, ValidationFailed


def request_data():
    """JSON body, or form fields for multipart uploads."""
    data = request.get_json(silent=True)
    if data is None:
        data = request.form
    elif not isinstance(data, dict):
        raise ValidationFailed({'body': ['The request body must be a JSON object.']})
    return data


def get_current_user():
    user = current_jwt_user()
    if not user.is_active:
        raise Forbidden('Your account is inactive. Please contact administrator.')
    return user


def paginate(query, default_per_page, serialize):
    try:
        page = int(request.args.get('page', 1))
        per_page = int(request.args.get('per_page', default_per_page))
    except ValueError:
        raise ValidationFailed({'page': ['The page and per_page parameters must be integers.']})
    page = max(page, 1)
    per_page = min(max(per_page, 1), current_app.config['MAX_PER_PAGE'])

    result = query.paginate(page=page, per_page=per_page, error_out=False)
    return {
        'data': [serialize(item) for item in result.items],
        'meta': {
            'current_page': result.page,
            'per_page': result.per_page,
            'total': result.total,
            'last_page': max(result.pages, 1),
        },
    }


def register_blueprints(app):
    from routes.auth import auth_bp
    from routes.municipalities import municipalities_bp
    from routes.incidents import incidents_bp
    from routes.notifications import notifications_bp
    from routes.admin import admin_bp
    from routes.sound_alerts import sound_alerts_bp
    from routes.storage import storage_bp

    app.register_blueprint(auth_bp)
    app.register_blueprint(municipalities_bp)
    app.register_blueprint(incidents_bp)
    app.register_blueprint(notifications_bp)
    app.register_blueprint(admin_bp)
    app.register_blueprint(sound_alerts_bp)
    app.register_blueprint(storage_bp)
