from .decorators import auth_required, require_role, get_current_user

from .audit import log_audit

from .images import ImagePayload, read_image_upload, decode_image_data

__all__ = [
    # Decorators
    "auth_required",
    "require_role",
    "get_current_user",
    # Audit
    "log_audit",
    # Images
    "ImagePayload",
    "read_image_upload",
    "decode_image_data",
]
