"""
Request schemas, one per operation

Each handler validates its input once, up front, through validate_payload().
Account credentials are normalised (trimmed, lower-cased email); submission
snapshots are checked but stored exactly as submitted.
"""
import json
import re
from typing import Annotated, Any, Optional, Union

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, ValidationError as PydanticValidationError, field_validator

from oralvis.errors import ValidationError

_EMAIL_RE = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')


def _check_email(value: str) -> str:
    if not _EMAIL_RE.match(value):
        raise ValueError('Invalid email address')
    return value


def _lower(value: str) -> str:
    return value.lower()


def _not_blank(value: str) -> str:
    if not value.strip():
        raise ValueError('Field is required')
    return value


Email = Annotated[str, AfterValidator(_check_email)]
NormalizedEmail = Annotated[str, AfterValidator(_check_email), AfterValidator(_lower)]
NonBlank = Annotated[str, AfterValidator(_not_blank)]


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class _CredentialSchema(_Schema):
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True, extra='ignore')


class RegisterRequest(_CredentialSchema):
    name: str = Field(..., min_length=1, max_length=120)
    patient_id: str = Field(..., alias='patientId', min_length=1, max_length=50)
    email: NormalizedEmail = Field(..., min_length=3, max_length=120)
    password: str = Field(..., min_length=6, max_length=128)


class LoginRequest(_CredentialSchema):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

    @field_validator('email')
    @classmethod
    def lower_email(cls, value):
        return value.lower()


class UploadRequest(_Schema):
    name: NonBlank = Field(..., min_length=1, max_length=120)
    patient_id: NonBlank = Field(..., alias='patientId', min_length=1, max_length=50)
    email: Email = Field(..., min_length=3, max_length=120)
    note: Optional[str] = None


class AnnotateRequest(_Schema):
    annotation_json: Union[dict, list] = Field(..., alias='annotationJson')
    annotated_image: str = Field(..., alias='annotatedImage', min_length=1)

    @field_validator('annotation_json', mode='before')
    @classmethod
    def parse_annotation(cls, value: Any):
        if isinstance(value, str):
            try:
                value = json.loads(value)
            except ValueError:
                raise ValueError('Annotation JSON must be valid JSON')
        if value is None or (isinstance(value, (dict, list)) and not value):
            raise ValueError('Annotation JSON is required')
        return value


def _field_errors(exc: PydanticValidationError):
    errors = []
    for err in exc.errors():
        field = '.'.join(str(part) for part in err.get('loc', ())) or 'body'
        message = err.get('msg', 'Invalid value')
        if message.startswith('Value error, '):
            message = message[len('Value error, '):]
        errors.append({'field': field, 'message': message})
    return errors


def validate_payload(schema, data, message='Missing required fields'):
    """Validate `data` against `schema`, raising ValidationError with field detail"""
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object', errors=[{'field': 'body', 'message': 'Expected an object'}])
    try:
        return schema.model_validate(data)
    except PydanticValidationError as e:
        raise ValidationError(message, errors=_field_errors(e)) from e
