import io
import smtplib

import pytest

from app import db, mail
from models import Incident, IncidentMedia, IncidentUpdate, Notification, User
from services import storage
from services.incidents import visible_query
from services.policy import Actor, read_scope


def notifications_for(incident_id, notification_type=None):
    query = Notification.query.filter_by(incident_id=incident_id)
    if notification_type:
        query = query.filter_by(notification_type=notification_type)
    return query.all()


def test_create_incident_notifies_local_responders(app, users, report):
    incident_id = report()

    with app.app_context():
        incident = db.session.get(Incident, incident_id)
        assert incident.status == 'reported'
        assert incident.resolved_at is None
        assert [(u.update_type, u.new_status) for u in incident.updates] == [('reported', 'reported')]

        recipients = sorted(n.user_id for n in notifications_for(incident_id))
        assert recipients == sorted([users.mdrrmo, users.official])
        assert {n.notification_type for n in notifications_for(incident_id)} == {'new_incident'}


def test_create_incident_defaults_contact_number_to_reporter_phone(client, auth, users, incident_payload):
    response = client.post('/incidents', json=incident_payload(), headers=auth(users.resident))
    assert response.status_code == 201
    assert response.get_json()['incident']['contact_number'] == '09171234567'


def test_pending_resident_cannot_report(app, client, auth, users, incident_payload):
    response = client.post('/incidents', json=incident_payload(), headers=auth(users.pending))

    assert response.status_code == 403
    assert 'verified' in response.get_json()['message']
    with app.app_context():
        assert Incident.query.count() == 0
        assert Notification.query.count() == 0


def test_staff_cannot_report(client, auth, users, incident_payload):
    response = client.post('/incidents', json=incident_payload(), headers=auth(users.mdrrmo))
    assert response.status_code == 403


def test_unknown_enum_values_are_rejected(client, auth, users, incident_payload):
    response = client.post('/incidents', json=incident_payload(urgency_level='extreme', incident_type='flood'),
                           headers=auth(users.resident))

    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert 'urgency_level' in errors
    assert 'incident_type' in errors


def test_missing_coordinates_are_rejected(client, auth, users, incident_payload):
    payload = incident_payload()
    del payload['latitude']
    response = client.post('/incidents', json=payload, headers=auth(users.resident))

    assert response.status_code == 422
    assert 'latitude' in response.get_json()['errors']


def test_non_finite_coordinates_are_rejected(client, auth, users, incident_payload):
    response = client.post('/incidents', json=incident_payload(latitude='nan', longitude='inf'),
                           headers=auth(users.resident))

    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert errors['latitude'] == ['The latitude must be a finite number.']
    assert errors['longitude'] == ['The longitude must be a finite number.']


def test_body_must_be_a_json_object(client, auth, users):
    response = client.post('/incidents', json=[1, 2], headers=auth(users.resident))

    assert response.status_code == 422
    assert response.get_json()['errors'] == {'body': ['The request body must be a JSON object.']}


def test_gps_unavailable_falls_back_to_origin(client, auth, users, incident_payload):
    payload = incident_payload(gps_available=False)
    del payload['latitude'], payload['longitude']
    response = client.post('/incidents', json=payload, headers=auth(users.resident))

    assert response.status_code == 201
    incident = response.get_json()['incident']
    assert incident['latitude'] == 0.0
    assert incident['longitude'] == 0.0
    assert incident['location_address'] == 'Purok 3, Alegria (GPS not available)'


def test_barangay_must_belong_to_municipality(client, auth, users, places, incident_payload):
    response = client.post('/incidents', json=incident_payload(barangay_id=places.b_m2),
                           headers=auth(users.resident))
    assert response.status_code == 422
    assert 'barangay_id' in response.get_json()['errors']


def test_municipality_is_derived_from_barangay(client, auth, users, places, incident_payload):
    payload = incident_payload()
    del payload['municipality_id']
    response = client.post('/incidents', json=payload, headers=auth(users.resident))

    assert response.status_code == 201
    assert response.get_json()['incident']['municipality']['id'] == places.m1


def test_media_failures_do_not_fail_creation(app, client, auth, users, incident_payload):
    form = {k: str(v) for k, v in incident_payload().items()}
    form['media'] = [
        (io.BytesIO(b'\x89PNG fake image'), 'scene.png'),
        (io.BytesIO(b'MZ not media'), 'payload.exe'),
    ]
    response = client.post('/incidents', data=form, content_type='multipart/form-data',
                           headers=auth(users.resident))

    assert response.status_code == 201
    media = response.get_json()['incident']['media']
    assert len(media) == 1
    assert media[0]['file_name'] == 'scene.png'
    assert media[0]['file_type'] == 'image'

    served = client.get(media[0]['file_path'])
    assert served.status_code == 200
    assert served.data == b'\x89PNG fake image'


def test_storage_outage_still_creates_incident(app, client, auth, users, incident_payload, monkeypatch):
    def broken_save(bucket, file, prefix=''):
        raise storage.StorageError('bucket unavailable')

    monkeypatch.setattr(storage, 'save', broken_save)
    form = {k: str(v) for k, v in incident_payload().items()}
    form['media'] = [(io.BytesIO(b'img'), 'scene.jpg')]
    response = client.post('/incidents', data=form, content_type='multipart/form-data',
                           headers=auth(users.resident))

    assert response.status_code == 201
    assert response.get_json()['incident']['media'] == []
    with app.app_context():
        assert Incident.query.count() == 1
        assert IncidentMedia.query.count() == 0


def test_full_incident_lifecycle(app, client, auth, users, report):
    incident_id = report()

    # mdrrmo assigns a responder
    response = client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                           headers=auth(users.mdrrmo))
    assert response.status_code == 200
    assert response.get_json()['incident']['status'] == 'assigned'
    with app.app_context():
        assigned = notifications_for(incident_id, 'incident_assigned')
        assert [n.user_id for n in assigned] == [users.responder]
        last = IncidentUpdate.query.filter_by(incident_id=incident_id).order_by(IncidentUpdate.id.desc()).first()
        assert (last.update_type, last.previous_status, last.new_status) == ('assignment', 'reported', 'assigned')

    # barangay official asks for municipal help
    response = client.post(f'/incidents/{incident_id}/escalate', json={'reason': 'need police support'},
                           headers=auth(users.official))
    assert response.status_code == 200
    assert response.get_json()['incident']['status'] == 'assigned'
    with app.app_context():
        last = IncidentUpdate.query.filter_by(incident_id=incident_id).order_by(IncidentUpdate.id.desc()).first()
        assert last.update_type == 'escalation'
        assert last.previous_status is None and last.new_status is None
        assert last.update_message == 'Municipal assistance requested: need police support'
        escalated = notifications_for(incident_id, 'escalation_request')
        assert [n.user_id for n in escalated] == [users.mdrrmo]

    # mdrrmo resolves it
    response = client.post(f'/incidents/{incident_id}/update-status', json={'status': 'resolved'},
                           headers=auth(users.mdrrmo))
    assert response.status_code == 200
    with app.app_context():
        incident = db.session.get(Incident, incident_id)
        assert incident.status == 'resolved'
        assert incident.resolved_at is not None
        status_updates = notifications_for(incident_id, 'status_update')
        assert sorted(n.user_id for n in status_updates) == sorted([users.resident, users.responder])

        # each status-changing update starts from the status its predecessor left behind
        status = None
        for update in incident.updates:
            if update.new_status is None:
                continue
            assert update.previous_status == status
            status = update.new_status
        assert status == 'resolved'


def test_second_assignment_is_informational(app, client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                headers=auth(users.mdrrmo))
    response = client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder_2},
                           headers=auth(users.admin))

    assert response.status_code == 200
    assert response.get_json()['incident']['status'] == 'assigned'
    with app.app_context():
        last = IncidentUpdate.query.filter_by(incident_id=incident_id).order_by(IncidentUpdate.id.desc()).first()
        assert last.update_type == 'assignment'
        assert last.new_status is None


def test_assigning_non_responder_is_validation_error(client, auth, users, report):
    incident_id = report()
    response = client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.official},
                           headers=auth(users.mdrrmo))

    assert response.status_code == 422
    assert response.get_json()['errors']['responder_id'] == ['Selected user is not a responder']


def test_barangay_official_cannot_assign(client, auth, users, report):
    incident_id = report()
    response = client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                           headers=auth(users.official))
    assert response.status_code == 403


def test_backward_transition_is_rejected(app, client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/update-status', json={'status': 'in_progress'},
                headers=auth(users.mdrrmo))
    response = client.post(f'/incidents/{incident_id}/update-status', json={'status': 'assigned'},
                           headers=auth(users.mdrrmo))

    assert response.status_code == 422
    with app.app_context():
        assert db.session.get(Incident, incident_id).status == 'in_progress'


def test_reporter_can_cancel_own_incident(app, client, auth, users, report):
    incident_id = report()
    response = client.post(f'/incidents/{incident_id}/update-status',
                           json={'status': 'cancelled', 'update_message': 'False alarm'},
                           headers=auth(users.resident))

    assert response.status_code == 200
    with app.app_context():
        incident = db.session.get(Incident, incident_id)
        assert incident.status == 'cancelled'
        assert incident.resolved_at is None
        assert incident.updates[-1].update_message == 'False alarm'

    response = client.post(f'/incidents/{incident_id}/update-status', json={'status': 'resolved'},
                           headers=auth(users.mdrrmo))
    assert response.status_code == 422


def test_assigned_responder_cannot_change_status(client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                headers=auth(users.mdrrmo))
    response = client.post(f'/incidents/{incident_id}/update-status', json={'status': 'in_progress'},
                           headers=auth(users.responder))
    assert response.status_code == 403


def test_responder_without_permission_gets_forbidden_before_validation(client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                headers=auth(users.mdrrmo))
    response = client.post(f'/incidents/{incident_id}/update-status', json={'status': 'bogus'},
                           headers=auth(users.responder))
    assert response.status_code == 403


def test_escalation_rejected_after_resolution(client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/update-status', json={'status': 'resolved'},
                headers=auth(users.mdrrmo))
    response = client.post(f'/incidents/{incident_id}/escalate', json={'reason': 'late request'},
                           headers=auth(users.official))
    assert response.status_code == 403


def test_escalation_requires_reason(client, auth, users, report):
    incident_id = report()
    response = client.post(f'/incidents/{incident_id}/escalate', json={}, headers=auth(users.official))
    assert response.status_code == 422
    assert 'reason' in response.get_json()['errors']


def test_escalation_mails_active_municipal_staff_only(client, auth, users, report):
    incident_id = report()
    with mail.record_messages() as outbox:
        response = client.post(f'/incidents/{incident_id}/escalate', json={'reason': 'road blocked'},
                               headers=auth(users.official))

    assert response.status_code == 200
    assert len(outbox) == 1
    assert outbox[0].subject == 'Municipal assistance requested'
    assert outbox[0].recipients == ['mdrrmo_m1@example.com']
    assert 'Reason: road blocked' in outbox[0].body


def test_escalation_survives_mail_failure(app, client, auth, users, report, monkeypatch):
    incident_id = report()

    def refuse(message):
        raise smtplib.SMTPException('relay refused')

    monkeypatch.setattr(mail, 'send', refuse)
    response = client.post(f'/incidents/{incident_id}/escalate', json={'reason': 'road blocked'},
                           headers=auth(users.official))

    assert response.status_code == 200
    with app.app_context():
        escalated = notifications_for(incident_id, 'escalation_request')
        assert [n.user_id for n in escalated] == [users.mdrrmo]


def test_resident_sees_only_own_incidents(client, auth, users, places, report):
    own = report()
    report(reporter=users.resident_b, title='Flooded road')

    for query in ('', '?status=reported', f'?barangay_id={places.b1}', '?incident_type=fire&urgency_level=critical'):
        response = client.get(f'/incidents{query}', headers=auth(users.resident))
        assert response.status_code == 200
        assert [i['id'] for i in response.get_json()['data']] == [own]


def test_other_residents_incident_is_not_found(client, auth, users, report):
    other = report(reporter=users.resident_b)
    response = client.get(f'/incidents/{other}', headers=auth(users.resident))
    assert response.status_code == 404


def test_list_filters_and_pagination(client, auth, users, report):
    first = report(urgency_level='low')
    second = report(incident_type='medical')
    third = report()

    response = client.get('/incidents?per_page=2', headers=auth(users.mdrrmo))
    body = response.get_json()
    assert [i['id'] for i in body['data']] == [third, second]
    assert body['meta'] == {'current_page': 1, 'per_page': 2, 'total': 3, 'last_page': 2}

    response = client.get('/incidents?urgency_level=low', headers=auth(users.mdrrmo))
    assert [i['id'] for i in response.get_json()['data']] == [first]

    response = client.get('/incidents?status=unknown', headers=auth(users.mdrrmo))
    assert response.status_code == 422


def test_scoped_queries_agree_with_object_checks(app, users, report):
    report()
    report(reporter=users.resident_b, barangay_id=None)

    with app.app_context():
        incidents = Incident.query.all()
        for user in User.query.all():
            actor = Actor.from_user(user)
            scope = read_scope(actor)
            expected = {i.id for i in incidents if scope.matches(i)}
            assert {i.id for i in visible_query(actor).all()} == expected


def test_detail_includes_history(client, auth, users, report):
    incident_id = report()
    response = client.get(f'/incidents/{incident_id}', headers=auth(users.official))

    assert response.status_code == 200
    incident = response.get_json()['incident']
    assert incident['updates'][0]['new_status'] == 'reported'
    assert incident['media'] == []
    assert incident['assignments'] == []
    assert incident['acknowledged'] is False


def test_official_of_other_barangay_cannot_see_incident(client, auth, users, report):
    incident_id = report()
    response = client.get(f'/incidents/{incident_id}', headers=auth(users.official_b2))
    assert response.status_code == 404


def test_acknowledge_is_per_user_and_idempotent(client, auth, users, report):
    incident_id = report()

    first = client.post(f'/incidents/{incident_id}/acknowledge', headers=auth(users.mdrrmo))
    second = client.post(f'/incidents/{incident_id}/acknowledge', headers=auth(users.mdrrmo))
    assert first.status_code == 201
    assert second.status_code == 200
    assert first.get_json()['acknowledged_at'] == second.get_json()['acknowledged_at']

    mine = client.get(f'/incidents/{incident_id}', headers=auth(users.mdrrmo)).get_json()['incident']
    theirs = client.get(f'/incidents/{incident_id}', headers=auth(users.official)).get_json()['incident']
    assert mine['acknowledged'] is True
    assert theirs['acknowledged'] is False


def test_export_csv(client, auth, users, report):
    report(title='Fire, with "quotes"')

    response = client.get('/incidents/export', headers=auth(users.mdrrmo))
    assert response.status_code == 200
    assert response.mimetype == 'text/csv'
    lines = response.get_data(as_text=True).splitlines()
    assert lines[0].startswith('Incident ID,Type,Title')
    assert '"Fire, with ""quotes"""' in lines[1]

    assert client.get('/incidents/export', headers=auth(users.resident)).status_code == 403


def test_delete_removes_dependent_rows(app, client, auth, users, report):
    incident_id = report()
    client.post(f'/incidents/{incident_id}/assign', json={'responder_id': users.responder},
                headers=auth(users.mdrrmo))

    assert client.delete(f'/incidents/{incident_id}', headers=auth(users.resident)).status_code == 403
    response = client.delete(f'/incidents/{incident_id}', headers=auth(users.admin))

    assert response.status_code == 200
    with app.app_context():
        assert db.session.get(Incident, incident_id) is None
        assert IncidentUpdate.query.filter_by(incident_id=incident_id).count() == 0
        assert Notification.query.filter_by(incident_id=incident_id).count() == 0


def test_monthly_statistics(client, auth, users, places, report):
    report()
    report(incident_type='medical', urgency_level='low')

    response = client.get(f'/statistics/monthly?municipality_id={places.m1}&months=3',
                          headers=auth(users.mdrrmo))
    assert response.status_code == 200
    buckets = response.get_json()
    assert len(buckets) == 3
    current = buckets[-1]
    assert current['total'] == 2
    assert current['byType'] == {'fire': 1, 'medical': 1}
    assert current['byStatus'] == {'reported': 2}
    assert buckets[0]['total'] == 0


def test_monthly_statistics_requires_area(client, auth, users):
    response = client.get('/statistics/monthly', headers=auth(users.mdrrmo))
    assert response.status_code == 422


@pytest.mark.parametrize('path', ['/incidents', '/incidents/1', '/notifications', '/statistics/monthly'])
def test_protected_endpoints_require_token(client, path):
    response = client.get(path)
    assert response.status_code == 401
    assert response.get_json()['message'] == 'Unauthenticated.'
