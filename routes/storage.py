from flask import Blueprint

from services import storage
from services.errors import NotFound

storage_bp = Blueprint('storage', __name__)


@storage_bp.route('/storage/<path:key>')
def serve(key):
    # verification documents are only reachable through /users/<id>/verification-documents/<field>
    if not storage.is_public(key):
        raise NotFound('File not found')
    return storage.send(key)
