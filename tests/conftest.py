from types import SimpleNamespace

import pytest
from flask_jwt_extended import create_access_token

from app import create_app, db
from config import TestConfig
from models import Barangay, Municipality, User
from seed import seed_locations


@pytest.fixture
def app(tmp_path):
    app = create_app(TestConfig)
    app.config['STORAGE_ROOT'] = str(tmp_path / 'storage')

    with app.app_context():
        db.create_all()
        seed_locations()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def places(app):
    with app.app_context():
        m1 = Municipality.query.filter_by(code='SI').one()
        m2 = Municipality.query.filter_by(code='VIC').one()
        return SimpleNamespace(
            m1=m1.id,
            m2=m2.id,
            b1=Barangay.query.filter_by(code='SI-01').one().id,
            b2=Barangay.query.filter_by(code='SI-02').one().id,
            b_m2=Barangay.query.filter_by(code='VIC-01').one().id,
        )


def make_user(username, role, municipality_id=None, barangay_id=None, **extra):
    user = User(
        username=username,
        email=f'{username}@example.com',
        full_name=username.replace('_', ' ').title(),
        role=role,
        municipality_id=municipality_id,
        barangay_id=barangay_id,
        phone_number='09171234567',
        **extra
    )
    user.set_password('password123')
    db.session.add(user)
    db.session.flush()
    return user.id


@pytest.fixture
def users(app, places):
    with app.app_context():
        ids = SimpleNamespace(
            resident=make_user('resident_a', 'resident', places.m1, places.b1, verification_status='verified'),
            resident_b=make_user('resident_b', 'resident', places.m1, places.b1, verification_status='verified'),
            pending=make_user('resident_pending', 'resident', places.m1, places.b1,
                              verification_status='pending'),
            mdrrmo=make_user('mdrrmo_m1', 'mdrrmo', places.m1),
            mdrrmo_inactive=make_user('mdrrmo_m1_inactive', 'mdrrmo', places.m1, is_active=False),
            mdrrmo_m2=make_user('mdrrmo_m2', 'mdrrmo', places.m2),
            official=make_user('official_b1', 'barangay_official', places.m1, places.b1),
            official_b2=make_user('official_b2', 'barangay_official', places.m1, places.b2),
            official_m2=make_user('official_m2', 'barangay_official', places.m2, places.b_m2),
            responder=make_user('responder_r', 'responder', places.m1),
            responder_2=make_user('responder_s', 'responder', places.m1),
            admin=make_user('admin', 'admin'),
            municipal_admin=make_user('municipal_admin_m1', 'municipal_admin', places.m1),
            super_admin=make_user('super_admin', 'super_admin'),
        )
        db.session.commit()
    return ids


@pytest.fixture
def auth(app):
    def headers(user_id):
        with app.app_context():
            token = create_access_token(identity=str(user_id))
        return {'Authorization': f'Bearer {token}'}
    return headers


@pytest.fixture
def incident_payload(places):
    def build(**overrides):
        data = {
            'incident_type': 'fire',
            'title': 'House fire near the chapel',
            'description': 'Smoke coming out of a two storey house.',
            'location_address': 'Purok 3, Alegria',
            'latitude': 12.41234567,
            'longitude': 124.31234567,
            'urgency_level': 'critical',
            'municipality_id': places.m1,
            'barangay_id': places.b1,
        }
        data.update(overrides)
        return data
    return build


@pytest.fixture
def report(client, auth, users, incident_payload):
    """POST an incident as a resident and return its id."""
    def submit(reporter=None, **overrides):
        response = client.post('/incidents', json=incident_payload(**overrides),
                               headers=auth(reporter or users.resident))
        assert response.status_code == 201, response.get_json()
        return response.get_json()['incident']['id']
    return submit
