from flask import Flask, jsonify, request, has_app_context
from werkzeug.exceptions import HTTPException

from .extensions import db, migrate, bcrypt, jwt, celery, autosave
import logging
import os

# Setup basic logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s %(levelname)s: %(message)s'
)
logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """Create Flask application factory"""
    app = Flask(__name__)

    # Load configuration
    if config_name:
        from frontdesk.config import config
        config_class = config.get(config_name, config['default'])
    else:
        from frontdesk.config import get_config
        config_class = get_config()
    if hasattr(config_class, 'validate'):
        config_class.validate()
    app.config.from_object(config_class)

    # Ensure production mode if FLASK_ENV is production
    if os.getenv('FLASK_ENV') == 'production':
        app.config['DEBUG'] = False
        app.config['TESTING'] = False

    logging.getLogger().setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    # Initialize extensions first (before error handlers)
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)

    from frontdesk.utils.cors import init_cors
    init_cors(app)

    # Initialize Celery
    celery.conf.update(
        broker_url=app.config['CELERY_BROKER_URL'],
        result_backend=app.config['CELERY_RESULT_BACKEND'],
        task_serializer=app.config['CELERY_TASK_SERIALIZER'],
        accept_content=app.config['CELERY_ACCEPT_CONTENT'],
        result_serializer=app.config['CELERY_RESULT_SERIALIZER'],
        timezone=app.config['CELERY_TIMEZONE'],
        enable_utc=app.config['CELERY_ENABLE_UTC'],
        task_always_eager=app.config['CELERY_TASK_ALWAYS_EAGER'],
    )

    # Make celery tasks work with Flask app context
    class FlaskAppContextTask(celery.Task):
        """Make celery tasks work with Flask app context."""
        def __call__(self, *args, **kwargs):
            # Eager tasks run inside the caller's context
            if has_app_context():
                return self.run(*args, **kwargs)
            with app.app_context():
                return self.run(*args, **kwargs)

    celery.Task = FlaskAppContextTask

    # Agreement form auto-save writes back through the agreement service
    from frontdesk.services.agreement_service import flush_autosave
    autosave.init_app(app, flush_autosave)

    register_error_handlers(app)

    # Setup logging
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
        app.logger.info('Front desk startup')

    from frontdesk.middleware import setup_middleware
    setup_middleware(app)

    with app.app_context():
        from . import models  # noqa: F401  registers tables with SQLAlchemy

        from .routes import (
            health_bp, auth_bp, user_bp, patient_bp, consultation_bp, lab_script_bp,
            visibility_rule_bp, surgical_recall_bp, agreement_bp, storage_bp,
        )
        app.register_blueprint(health_bp)  # Register health check first
        app.register_blueprint(auth_bp)
        app.register_blueprint(user_bp)
        app.register_blueprint(patient_bp)
        app.register_blueprint(consultation_bp)
        app.register_blueprint(lab_script_bp)
        app.register_blueprint(visibility_rule_bp)
        app.register_blueprint(surgical_recall_bp)
        app.register_blueprint(agreement_bp)
        app.register_blueprint(storage_bp)

    return app


def register_error_handlers(app):
    from frontdesk.services.errors import FrontDeskError, ValidationError, http_status_for

    @app.errorhandler(FrontDeskError)
    def handle_front_desk_error(error):
        body = {'success': False, 'error': error.message}
        if isinstance(error, ValidationError):
            body['errors'] = error.errors
        status = http_status_for(error)
        if status >= 500:
            logger.error("%s on %s %s: %s", type(error).__name__, request.method, request.path, error)
        return jsonify(body), status

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'success': False,
            'error': 'Endpoint not found'
        }), 404

    @app.errorhandler(413)
    def too_large(error):
        return jsonify({
            'success': False,
            'error': 'Upload too large'
        }), 413

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({
            'success': False,
            'error': error.description
        }), error.code

    @app.errorhandler(Exception)
    def handle_exception(e):
        logger.error(f"Unhandled exception: {e}", exc_info=True)
        db.session.rollback()
        return jsonify({
            'success': False,
            'error': 'Internal server error. Check server logs for details.'
        }), 500
