from flask import Flask
from .extensions import db, migrate, bcrypt, jwt
import click
import logging
import os

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config_name=None, artifact_store=None):
    """
    Create Flask application factory

    Args:
        config_name: key of oralvis.config.config; defaults to FLASK_ENV
        artifact_store: pre-built ArtifactStore, otherwise one is built from config
    """
    app = Flask(__name__)

    # Load configuration
    from oralvis.config import config, get_config
    config_class = config.get(config_name, config['default']) if config_name else get_config()
    if hasattr(config_class, 'check'):
        config_class.check()
    app.config.from_object(config_class)

    logging.getLogger().setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)

    # Initialize CORS
    from oralvis.utils.cors import init_cors
    init_cors(app)

    # Artifact store is built once from config and shared by all requests
    if artifact_store is None:
        from oralvis.services.artifact_store import create_artifact_store
        artifact_store = create_artifact_store(app.config)
    app.extensions['artifact_store'] = artifact_store

    from oralvis.errors import register_error_handlers
    register_error_handlers(app)

    from oralvis.middleware import setup_middleware
    setup_middleware(app)

    # File logging outside debug/testing
    if not app.debug and not app.testing:
        from logging.handlers import RotatingFileHandler

        log_dir = app.config.get('LOG_DIR', 'logs')
        os.makedirs(log_dir, exist_ok=True)

        file_handler = RotatingFileHandler(
            os.path.join(log_dir, 'app.log'),
            maxBytes=10240000,
            backupCount=10
        )
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        app.logger.setLevel(logging.INFO)
        app.logger.info('Application startup')

    with app.app_context():
        # Import models to register them with SQLAlchemy
        from .models import User, Submission, AuditLog  # noqa: F401

        from .routes import auth_bp, patient_bp, admin_bp, uploads_bp, health_bp
        app.register_blueprint(health_bp)
        app.register_blueprint(auth_bp)
        app.register_blueprint(patient_bp)
        app.register_blueprint(admin_bp)
        app.register_blueprint(uploads_bp)

    @app.cli.command('init-db')
    def init_db():
        """Create all tables without running migrations."""
        db.create_all()
        click.echo("Database tables created.")

    return app
