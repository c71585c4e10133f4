import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import pytest
import requests

from oralvis.errors import ExternalServiceError
from oralvis.services import artifact_store
from oralvis.services.artifact_store import (
    CloudinaryArtifactStore,
    LocalArtifactStore,
    create_artifact_store,
)


class FakeResponse:
    def __init__(self, status_code=200, content=b''):
        self.status_code = status_code
        self.content = content

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


def test_local_store_round_trip(tmp_path):
    store = LocalArtifactStore(str(tmp_path), 'http://localhost:5000/')
    url = store.upload(b'abc', folder='oralvis/reports', public_id='report-1', resource_type='raw', extension='pdf')

    assert url == 'http://localhost:5000/uploads/oralvis/reports/report-1.pdf'
    assert (tmp_path / 'oralvis' / 'reports' / 'report-1.pdf').read_bytes() == b'abc'
    assert store.fetch(url) == b'abc'


def test_local_store_rejects_traversal(tmp_path):
    store = LocalArtifactStore(str(tmp_path / 'root'), 'http://localhost:5000')
    with pytest.raises(ExternalServiceError):
        store.upload(b'x', folder='../outside', public_id='evil')
    with pytest.raises(ExternalServiceError):
        store.fetch('http://localhost:5000/uploads/../../etc/passwd')


def test_local_store_fetches_foreign_urls_over_http(tmp_path, monkeypatch):
    calls = []

    def fake_get(url, timeout):
        calls.append((url, timeout))
        return FakeResponse(content=b'remote')

    monkeypatch.setattr(artifact_store.requests, 'get', fake_get)
    store = LocalArtifactStore(str(tmp_path), 'http://localhost:5000', timeout=7)
    assert store.fetch('https://cdn.example.com/a.png') == b'remote'
    assert calls == [('https://cdn.example.com/a.png', 7)]


def test_cloudinary_upload(monkeypatch):
    captured = {}

    def fake_upload(file, **options):
        captured.update(options, data=file.read())
        return {'secure_url': 'https://res.cloudinary.com/demo/raw/upload/oralvis/reports/report-1'}

    monkeypatch.setattr(cloudinary.uploader, 'upload', fake_upload)
    store = CloudinaryArtifactStore('demo', 'key', 'secret', timeout=5)
    url = store.upload(b'%PDF', folder='oralvis/reports', public_id='report-1', resource_type='raw', extension='pdf')

    assert url == 'https://res.cloudinary.com/demo/raw/upload/oralvis/reports/report-1'
    assert captured['data'] == b'%PDF'
    assert captured['folder'] == 'oralvis/reports'
    assert captured['public_id'] == 'report-1'
    assert captured['resource_type'] == 'raw'
    assert captured['filename'] == 'report-1.pdf'
    assert captured['timeout'] == 5
    assert cloudinary.config().cloud_name == 'demo'


def test_cloudinary_missing_secure_url(monkeypatch):
    monkeypatch.setattr(cloudinary.uploader, 'upload', lambda file, **options: {'public_id': 'p'})
    store = CloudinaryArtifactStore('demo', 'key', 'secret')
    with pytest.raises(ExternalServiceError):
        store.upload(b'x', folder='f', public_id='p')


def test_cloudinary_timeout(monkeypatch):
    def upload_fails(file, **options):
        raise cloudinary.exceptions.GeneralError('Socket error: timed out')

    def get_fails(*args, **kwargs):
        raise requests.Timeout('timed out')

    monkeypatch.setattr(cloudinary.uploader, 'upload', upload_fails)
    monkeypatch.setattr(artifact_store.requests, 'get', get_fails)
    store = CloudinaryArtifactStore('demo', 'key', 'secret', timeout=0.1)
    with pytest.raises(ExternalServiceError):
        store.upload(b'x', folder='f', public_id='p')
    with pytest.raises(ExternalServiceError):
        store.fetch('https://res.cloudinary.com/demo/image/upload/x.png')


def test_create_artifact_store(tmp_path):
    local = create_artifact_store({'ARTIFACT_BACKEND': 'local', 'ARTIFACT_STORAGE_PATH': str(tmp_path)})
    assert isinstance(local, LocalArtifactStore)

    cloud = create_artifact_store({
        'ARTIFACT_BACKEND': 'cloudinary',
        'CLOUDINARY_CLOUD_NAME': 'demo',
        'CLOUDINARY_API_KEY': 'key',
        'CLOUDINARY_API_SECRET': 'secret',
    })
    assert isinstance(cloud, CloudinaryArtifactStore)

    with pytest.raises(ValueError):
        create_artifact_store({'ARTIFACT_BACKEND': 'cloudinary'})
    with pytest.raises(ValueError):
        create_artifact_store({'ARTIFACT_BACKEND': 's3'})


def test_http_fetch_rejects_error_status(monkeypatch):
    monkeypatch.setattr(artifact_store.requests, 'get', lambda url, timeout: FakeResponse(status_code=404))
    with pytest.raises(ExternalServiceError):
        artifact_store.http_fetch('https://cdn.example.com/missing.png', timeout=3)
