"""
Artifact Store
Binary object storage returning durable, publicly dereferenceable URLs
"""
import io
import logging
import os
import time
from typing import Optional

import cloudinary
import cloudinary.exceptions
import cloudinary.uploader
import requests
from flask import current_app

from oralvis.errors import ExternalServiceError

logger = logging.getLogger(__name__)

RESOURCE_IMAGE = 'image'
RESOURCE_RAW = 'raw'

FOLDER_SUBMISSIONS = 'oralvis/submissions'
FOLDER_ANNOTATED = 'oralvis/annotated'
FOLDER_REPORTS = 'oralvis/reports'


def timestamp_id(suffix: str) -> str:
    """Public id of the form <epoch millis>_<suffix>"""
    return f"{int(time.time() * 1000)}_{suffix}"


class ArtifactStore:
    """Interface shared by the storage backends"""

    def upload(self, data: bytes, folder: str, public_id: str,
               resource_type: str = RESOURCE_IMAGE, extension: Optional[str] = None) -> str:
        raise NotImplementedError

    def fetch(self, url: str) -> bytes:
        raise NotImplementedError


class LocalArtifactStore(ArtifactStore):
    """
    Files under a storage directory, served back by the uploads blueprint.

    URLs look like <public_base_url>/uploads/<folder>/<file>.
    """

    def __init__(self, storage_path: str, public_base_url: str, timeout: float = 30):
        self.storage_path = os.path.abspath(storage_path)
        self.public_base_url = public_base_url.rstrip('/')
        self.timeout = timeout

    @property
    def url_prefix(self):
        return f"{self.public_base_url}/uploads/"

    def _resolve(self, relative: str) -> str:
        path = os.path.abspath(os.path.join(self.storage_path, relative))
        if not path.startswith(self.storage_path + os.sep):
            raise ExternalServiceError(f'Invalid artifact path: {relative}')
        return path

    def upload(self, data, folder, public_id, resource_type=RESOURCE_IMAGE, extension=None):
        filename = f"{public_id}.{extension}" if extension else public_id
        relative = f"{folder.strip('/')}/{filename}"
        path = self._resolve(relative)
        try:
            os.makedirs(os.path.dirname(path), exist_ok=True, mode=0o755)
            with open(path, 'wb') as f:
                f.write(data)
        except OSError as e:
            logger.error(f"Local artifact write failed for {relative}: {e}")
            raise ExternalServiceError('Failed to store file') from e

        logger.info(f"Stored {resource_type} artifact {relative} ({len(data)} bytes)")
        return f"{self.url_prefix}{relative}"

    def fetch(self, url):
        if url.startswith(self.url_prefix):
            path = self._resolve(url[len(self.url_prefix):])
            try:
                with open(path, 'rb') as f:
                    return f.read()
            except OSError as e:
                raise ExternalServiceError('Failed to read stored file') from e
        return http_fetch(url, self.timeout)


class CloudinaryArtifactStore(ArtifactStore):
    """Uploads through the Cloudinary SDK"""

    def __init__(self, cloud_name: str, api_key: str, api_secret: str, timeout: float = 30):
        if not (cloud_name and api_key and api_secret):
            raise ValueError('Cloudinary backend requires CLOUDINARY_CLOUD_NAME, CLOUDINARY_API_KEY and CLOUDINARY_API_SECRET')
        self.timeout = timeout
        cloudinary.config(cloud_name=cloud_name, api_key=api_key, api_secret=api_secret, secure=True)

    def upload(self, data, folder, public_id, resource_type=RESOURCE_IMAGE, extension=None):
        filename = f"{public_id}.{extension}" if extension else public_id
        try:
            result = cloudinary.uploader.upload(
                io.BytesIO(data),
                filename=filename,
                folder=folder,
                public_id=public_id,
                resource_type=resource_type,
                timeout=self.timeout,
            )
        except cloudinary.exceptions.Error as e:
            logger.error(f"Cloudinary upload error ({folder}/{public_id}): {e}")
            raise ExternalServiceError('Failed to upload file') from e

        secure_url = (result or {}).get('secure_url')
        if not secure_url:
            raise ExternalServiceError('Invalid response from artifact store: missing secure_url')
        logger.info(f"Uploaded {resource_type} artifact {folder}/{public_id}")
        return secure_url

    def fetch(self, url):
        return http_fetch(url, self.timeout)


def http_fetch(url: str, timeout: float) -> bytes:
    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Artifact fetch failed for {url}: {e}")
        raise ExternalServiceError('Failed to fetch stored file') from e
    return r.content


def create_artifact_store(config) -> ArtifactStore:
    """Build the configured backend from an app config mapping"""
    backend = config.get('ARTIFACT_BACKEND', 'local')
    timeout = config.get('ARTIFACT_STORE_TIMEOUT', 30)
    if backend == 'cloudinary':
        return CloudinaryArtifactStore(
            cloud_name=config.get('CLOUDINARY_CLOUD_NAME'),
            api_key=config.get('CLOUDINARY_API_KEY'),
            api_secret=config.get('CLOUDINARY_API_SECRET'),
            timeout=timeout,
        )
    if backend == 'local':
        return LocalArtifactStore(
            storage_path=config.get('ARTIFACT_STORAGE_PATH', 'uploads'),
            public_base_url=config.get('PUBLIC_BASE_URL', 'http://localhost:5000'),
            timeout=timeout,
        )
    raise ValueError(f"Unknown ARTIFACT_BACKEND: {backend}")


def get_artifact_store() -> ArtifactStore:
    """The store built at startup for the current app"""
    return current_app.extensions['artifact_store']
