from .user import User
from .submission import Submission
from .audit_log import AuditLog

__all__ = ["User", "Submission", "AuditLog"]
