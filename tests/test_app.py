import io

from sqlalchemy.exc import SQLAlchemyError

from oralvis import create_app
from oralvis.extensions import db
from oralvis.services.artifact_store import LocalArtifactStore


def test_health_endpoints(client):
    assert client.get('/health').get_json()['status'] == 'healthy'
    assert client.get('/health/live').status_code == 200
    resp = client.get('/health/ready')
    assert resp.status_code == 200
    assert resp.get_json()['database'] == 'connected'


def test_unknown_endpoint_is_json(client):
    resp = client.get('/api/nope')
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Endpoint not found'


def test_uploads_are_served_by_local_store(tmp_path):
    store = LocalArtifactStore(str(tmp_path), 'http://testserver')
    app = create_app('testing', artifact_store=store)
    with app.app_context():
        db.create_all()
        url = store.upload(b'\x89PNG fake', folder='oralvis/submissions', public_id='1_scan', extension='png')

        client = app.test_client()
        resp = client.get(url.replace('http://testserver', ''))
        assert resp.status_code == 200
        assert resp.data == b'\x89PNG fake'
        assert client.get('/uploads/oralvis/submissions/missing.png').status_code == 404


def test_uploads_not_served_for_remote_store(client):
    assert client.get('/uploads/oralvis/submissions/1_scan.png').status_code == 404


def test_security_headers(client):
    resp = client.get('/health')
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['X-Frame-Options'] == 'DENY'


def test_readiness_hides_database_errors(client, monkeypatch):
    def fail(*args, **kwargs):
        raise SQLAlchemyError('could not connect to postgres://user:secret@db')

    monkeypatch.setattr(db.session, 'execute', fail)
    resp = client.get('/health/ready')
    assert resp.status_code == 503
    assert resp.get_json()['database'] == 'error'
    assert 'secret' not in resp.get_data(as_text=True)


def test_oversized_body_is_a_validation_error(app, client, patient, auth_header, png):
    app.config['MAX_CONTENT_LENGTH'] = 64
    resp = client.post('/api/patient/upload', data={
        'name': 'Jane Doe', 'patientId': 'P-100', 'email': 'jane@x.com',
        'image': (io.BytesIO(png), 'scan.png', 'image/png'),
    }, headers=auth_header(patient), content_type='multipart/form-data')
    assert resp.status_code == 400
    body = resp.get_json()
    assert body['message'] == 'Image file is too large'
    assert body['errors'][0]['field'] == 'image'
