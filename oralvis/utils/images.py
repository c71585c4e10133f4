"""
Image payload helpers: multipart files and base64 / data-URL strings
"""
import base64
import binascii
import io
import logging
import os
import re
from dataclasses import dataclass

from PIL import Image, UnidentifiedImageError

from oralvis.errors import ValidationError

logger = logging.getLogger(__name__)

_DATA_URL_RE = re.compile(r'^data:(?P<mime>[\w/+.-]+)?(;[\w=-]+)*;base64,(?P<data>.*)$', re.DOTALL)


@dataclass
class ImagePayload:
    data: bytes
    filename: str
    content_type: str
    format: str

    @property
    def stem(self):
        return os.path.splitext(os.path.basename(self.filename))[0] or 'image'


def _inspect(data, field, max_size):
    if not data:
        raise ValidationError('Image file is required', errors=[{'field': field, 'message': 'Image file is required'}])
    if len(data) > max_size:
        raise ValidationError(
            'Image file is too large',
            errors=[{'field': field, 'message': f'Image must be at most {max_size} bytes'}],
        )
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.verify()
            fmt = (img.format or 'png').lower()
    except (UnidentifiedImageError, OSError, SyntaxError) as e:
        logger.info(f"Rejected non-image payload for '{field}': {e}")
        raise ValidationError(
            'Only image files are allowed!',
            errors=[{'field': field, 'message': 'Payload is not a readable image'}],
        ) from e
    return fmt


def read_image_upload(file_storage, max_size, field='image'):
    """Validate a werkzeug FileStorage and return its bytes as an ImagePayload"""
    if file_storage is None or not file_storage.filename:
        raise ValidationError('Image file is required', errors=[{'field': field, 'message': 'Image file is required'}])

    mimetype = file_storage.mimetype or ''
    if not mimetype.startswith('image/'):
        raise ValidationError(
            'Only image files are allowed!',
            errors=[{'field': field, 'message': f'Unsupported content type: {mimetype or "unknown"}'}],
        )

    data = file_storage.read()
    fmt = _inspect(data, field, max_size)
    return ImagePayload(data=data, filename=file_storage.filename, content_type=mimetype, format=fmt)


def decode_image_data(value, max_size, field='annotatedImage'):
    """Decode a data URL (data:image/png;base64,...) or bare base64 string"""
    if not isinstance(value, str) or not value.strip():
        raise ValidationError('Annotated image is required', errors=[{'field': field, 'message': 'Annotated image is required'}])

    value = value.strip()
    match = _DATA_URL_RE.match(value)
    mime = None
    if match:
        mime = match.group('mime')
        value = match.group('data')
        if mime and not mime.startswith('image/'):
            raise ValidationError(
                'Only image files are allowed!',
                errors=[{'field': field, 'message': f'Unsupported content type: {mime}'}],
            )

    try:
        data = base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValidationError(
            'Annotated image must be base64 encoded',
            errors=[{'field': field, 'message': 'Invalid base64 image data'}],
        ) from e

    fmt = _inspect(data, field, max_size)
    return ImagePayload(
        data=data,
        filename=f'{field}.{fmt}',
        content_type=mime or f'image/{fmt}',
        format=fmt,
    )
