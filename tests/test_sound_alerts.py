import io
import os

from app import db
from models import SoundAlert


def upload(client, headers, alert_type='emergency', filename='siren.mp3', volume='0.5'):
    return client.post(f'/sound-alerts/{alert_type}', headers=headers, content_type='multipart/form-data',
                       data={'file': (io.BytesIO(b'ID3 fake audio'), filename), 'volume': volume})


def test_upload_and_list(app, client, auth, users):
    response = upload(client, auth(users.admin))

    assert response.status_code == 201
    alert = response.get_json()
    assert alert['alert_type'] == 'emergency'
    assert alert['volume'] == 0.5
    assert alert['sound_file_name'] == 'siren.mp3'
    assert alert['public_url'].endswith(alert['sound_file_path'])

    listed = client.get('/sound-alerts', headers=auth(users.resident)).get_json()
    assert [a['alert_type'] for a in listed] == ['emergency']


def test_replacing_sound_removes_old_file(app, client, auth, users):
    first = upload(client, auth(users.admin)).get_json()
    second = upload(client, auth(users.admin), filename='horn.wav').get_json()

    root = app.config['STORAGE_ROOT']
    assert not os.path.exists(os.path.join(root, first['sound_file_path']))
    assert os.path.exists(os.path.join(root, second['sound_file_path']))
    with app.app_context():
        assert SoundAlert.query.count() == 1


def test_update_volume_and_visibility(client, auth, users):
    headers = auth(users.admin)
    upload(client, headers)

    response = client.put('/sound-alerts/emergency', json={'volume': 1.5}, headers=headers)
    assert response.status_code == 422

    response = client.put('/sound-alerts/emergency', json={'volume': 0.9, 'is_active': False}, headers=headers)
    assert response.status_code == 200
    assert response.get_json()['volume'] == 0.9
    assert client.get('/sound-alerts', headers=headers).get_json() == []


def test_reset_to_default(app, client, auth, users):
    headers = auth(users.admin)
    uploaded = upload(client, headers).get_json()

    response = client.delete('/sound-alerts/emergency', headers=headers)
    assert response.status_code == 200
    alert = response.get_json()
    assert alert['sound_file_path'] == 'default'
    assert alert['public_url'] is None
    assert not os.path.exists(os.path.join(app.config['STORAGE_ROOT'], uploaded['sound_file_path']))


def test_rules(client, auth, users):
    assert upload(client, auth(users.mdrrmo)).status_code == 403
    assert upload(client, auth(users.admin), alert_type='doorbell').status_code == 404
    assert upload(client, auth(users.admin), filename='siren.exe').status_code == 422
    assert client.put('/sound-alerts/assignment', json={'volume': 0.3},
                      headers=auth(users.admin)).status_code == 404


def test_missing_alert_reset_is_not_found(app, client, auth, users):
    with app.app_context():
        assert db.session.query(SoundAlert).count() == 0
    assert client.delete('/sound-alerts/escalation', headers=auth(users.super_admin)).status_code == 404
