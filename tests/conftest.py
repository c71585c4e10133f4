import io

import pytest
from flask_jwt_extended import create_access_token
from PIL import Image

from oralvis import create_app
from oralvis.errors import ExternalServiceError
from oralvis.extensions import db
from oralvis.models import User
from oralvis.services.artifact_store import ArtifactStore


class MemoryArtifactStore(ArtifactStore):
    """Keeps uploads in a dict; can be told to fail uploads or fetches"""

    def __init__(self):
        self.objects = {}
        self.fail_uploads = False
        self.fail_fetches = False
        self.uploads = []

    def upload(self, data, folder, public_id, resource_type='image', extension=None):
        if self.fail_uploads:
            raise ExternalServiceError('Failed to upload file')
        name = f"{public_id}.{extension}" if extension else public_id
        url = f"https://artifacts.test/{folder}/{len(self.uploads)}/{name}"
        self.objects[url] = data
        self.uploads.append((folder, public_id, resource_type, url))
        return url

    def fetch(self, url):
        if self.fail_fetches or url not in self.objects:
            raise ExternalServiceError('Failed to fetch stored file')
        return self.objects[url]


def make_png(size=(64, 48), color=(200, 30, 30)):
    buf = io.BytesIO()
    Image.new('RGB', size, color).save(buf, format='PNG')
    return buf.getvalue()


@pytest.fixture
def store():
    return MemoryArtifactStore()


@pytest.fixture
def app(store):
    app = create_app('testing', artifact_store=store)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make(email, role='patient', name='Test User', patient_id='P-1', password='secret123'):
        user = User(name=name, email=email, role=role, patient_id=patient_id if role == 'patient' else None)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        return user
    return _make


@pytest.fixture
def patient(make_user):
    return make_user('jane@x.com', name='Jane Doe', patient_id='P-100')


@pytest.fixture
def other_patient(make_user):
    return make_user('bob@x.com', name='Bob Roe', patient_id='P-200')


@pytest.fixture
def admin(make_user):
    return make_user('admin@x.com', role='admin', name='Admin')


def bearer(user):
    return {'Authorization': f'Bearer {create_access_token(identity=str(user.id))}'}


@pytest.fixture
def png():
    return make_png()


@pytest.fixture
def upload(client, png):
    """Upload a submission as `user` and return the JSON body"""
    def _upload(user, **fields):
        form = {
            'name': 'Jane Doe',
            'patientId': 'P-100',
            'email': 'jane@x.com',
            'note': '',
        }
        form.update(fields)
        form['image'] = (io.BytesIO(png), 'scan.png', 'image/png')
        resp = client.post('/api/patient/upload', data=form, headers=bearer(user),
                           content_type='multipart/form-data')
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()['submission']
    return _upload


@pytest.fixture
def auth_header(app):
    return bearer


@pytest.fixture
def image_bytes():
    return make_png
