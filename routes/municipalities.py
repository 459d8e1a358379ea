from flask import Blueprint, jsonify

from app import db
from models import Barangay, Municipality
from services.errors import NotFound

municipalities_bp = Blueprint('municipalities', __name__)


@municipalities_bp.route('/municipalities', methods=['GET'])
def list_municipalities():
    municipalities = Municipality.query.order_by(Municipality.name).all()
    return jsonify([m.to_dict() for m in municipalities]), 200


@municipalities_bp.route('/municipalities/<int:municipality_id>/barangays', methods=['GET'])
def list_barangays(municipality_id):
    if db.session.get(Municipality, municipality_id) is None:
        raise NotFound('Municipality not found')

    barangays = (
        Barangay.query
        .filter_by(municipality_id=municipality_id)
        .order_by(Barangay.name)
        .all()
    )
    return jsonify([b.to_dict() for b in barangays]), 200
