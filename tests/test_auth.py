from datetime import timedelta

import pytest
from flask import g
from flask_jwt_extended import create_access_token

from oralvis.errors import Forbidden, Unauthenticated
from oralvis.extensions import db
from oralvis.models import Submission
from oralvis.models.user import ROLE_ADMIN
from oralvis.utils.decorators import require_role


GATED = [
    ('get', '/api/patient/submissions'),
    ('get', '/api/patient/submissions/1'),
    ('post', '/api/patient/upload'),
    ('post', '/api/patient/submissions/1/annotated-image'),
    ('post', '/api/patient/generate-report/1'),
    ('get', '/api/admin/submissions'),
    ('get', '/api/admin/submissions/1'),
    ('post', '/api/admin/submissions/1/annotate'),
    ('post', '/api/admin/submissions/1/generate-pdf'),
    ('get', '/api/auth/me'),
]


def test_register_and_login(client):
    resp = client.post('/api/auth/register', json={
        'name': 'Jane Doe', 'patientId': 'P-100', 'email': 'Jane@X.com', 'password': 'secret123',
    })
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['user']['role'] == 'patient'
    assert body['user']['email'] == 'jane@x.com'
    assert 'password_hash' not in body['user']
    assert body['token']

    resp = client.post('/api/auth/login', json={'email': 'jane@x.com', 'password': 'secret123'})
    assert resp.status_code == 200
    assert 'token=' in resp.headers.get('Set-Cookie', '')

    resp = client.get('/api/auth/me', headers={'Authorization': f"Bearer {resp.get_json()['token']}"})
    assert resp.status_code == 200
    assert resp.get_json()['user']['patientId'] == 'P-100'


def test_register_duplicate_email(client, patient):
    resp = client.post('/api/auth/register', json={
        'name': 'Jane', 'patientId': 'P-9', 'email': 'jane@x.com', 'password': 'secret123',
    })
    assert resp.status_code == 400
    assert resp.get_json()['errors'][0]['field'] == 'email'


def test_register_requires_patient_id(client):
    resp = client.post('/api/auth/register', json={'name': 'Jane', 'email': 'j@x.com', 'password': 'secret123'})
    assert resp.status_code == 400
    fields = [e['field'] for e in resp.get_json()['errors']]
    assert 'patientId' in fields


def test_login_wrong_password(client, patient):
    resp = client.post('/api/auth/login', json={'email': 'jane@x.com', 'password': 'nope'})
    assert resp.status_code == 401
    assert resp.get_json()['message']


def test_no_token_is_rejected_everywhere(client):
    for method, path in GATED:
        resp = getattr(client, method)(path)
        assert resp.status_code == 401, path
        assert 'message' in resp.get_json()
    assert Submission.query.count() == 0


def test_malformed_and_expired_tokens_look_the_same(client, patient):
    expired = create_access_token(identity=str(patient.id), expires_delta=timedelta(seconds=-10))
    for token in ('not-a-jwt', expired):
        resp = client.get('/api/patient/submissions', headers={'Authorization': f'Bearer {token}'})
        assert resp.status_code == 401
        assert resp.get_json()['message'] == 'Invalid token.'


def test_token_signed_with_other_secret(app, client, patient):
    secret = app.config['JWT_SECRET_KEY']
    app.config['JWT_SECRET_KEY'] = 'some-other-secret'
    token = create_access_token(identity=str(patient.id))
    app.config['JWT_SECRET_KEY'] = secret

    resp = client.get('/api/patient/submissions', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 401


def test_token_for_deleted_user(client, make_user, auth_header):
    user = make_user('gone@x.com')
    headers = auth_header(user)
    db.session.delete(user)
    db.session.commit()

    resp = client.get('/api/auth/me', headers=headers)
    assert resp.status_code == 401


def test_cookie_takes_precedence_over_header(client, patient, admin, auth_header):
    client.set_cookie('token', create_access_token(identity=str(patient.id)))
    resp = client.get('/api/auth/me', headers=auth_header(admin))
    assert resp.status_code == 200
    assert resp.get_json()['user']['id'] == patient.id


def test_logout_clears_cookie(client, patient):
    client.post('/api/auth/login', json={'email': 'jane@x.com', 'password': 'secret123'})
    resp = client.post('/api/auth/logout')
    assert resp.status_code == 200
    assert 'token=;' in resp.headers.get('Set-Cookie', '')


def test_role_gate(client, patient, admin, auth_header):
    assert client.get('/api/admin/submissions', headers=auth_header(patient)).status_code == 403
    assert client.get('/api/patient/submissions', headers=auth_header(admin)).status_code == 403
    assert client.get('/api/admin/submissions', headers=auth_header(admin)).status_code == 200
    assert client.get('/api/patient/submissions', headers=auth_header(patient)).status_code == 200


def test_role_gate_without_identity(app):
    @require_role(ROLE_ADMIN)
    def admin_view():
        return 'ok'

    with app.test_request_context('/api/admin/submissions'):
        with pytest.raises(Unauthenticated):
            admin_view()


def test_role_gate_with_no_roles_rejects_everyone(app, admin):
    @require_role()
    def closed_view():
        return 'ok'

    with app.test_request_context('/api/admin/submissions'):
        g.current_user = admin
        with pytest.raises(Forbidden):
            closed_view()
