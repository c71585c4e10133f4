from .auth import auth_bp
from .patient import patient_bp
from .admin import admin_bp
from .uploads import uploads_bp
from .health import health_bp

__all__ = ['auth_bp', 'patient_bp', 'admin_bp', 'uploads_bp', 'health_bp']
