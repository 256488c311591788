# python imports
import logging
import time

# package imports
from flask import Flask
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_cors import CORS
from flask_smorest import Api
from werkzeug.exceptions import HTTPException

# app imports
from main.config import settings
from main.logger import setup_logging
from main.errors import handle_error
from main.middleware import RequestLogMiddleware
from main.routes import register_blueprints, create_root_routes
from main.tasks import create_celery_app

logger = logging.getLogger(__name__)


def configure_app(app, config_overrides=None):
    """Configure Flask application"""
    app.config.from_object(settings)
    if config_overrides:
        app.config.update(config_overrides)

    # Setup extensions
    login_manager = LoginManager(app)

    from external.database import db

    db.init_app(app)
    Migrate(app, db)
    CORS(app, supports_credentials=True, origins=["*"])

    # Initialize Flask-Smorest API
    api = Api(app)

    # Register error handlers; the HTTPException one replaces flask-smorest's
    app.register_error_handler(Exception, handle_error)
    app.register_error_handler(HTTPException, handle_error)

    create_celery_app(app)

    return login_manager, api


def create_app(config_overrides=None):
    """Application factory"""
    overrides = config_overrides or {}
    setup_logging(overrides.get("LOG_DIR"), overrides.get("LOG_LEVEL"))

    app = Flask(__name__)
    app.wsgi_app = RequestLogMiddleware(app.wsgi_app)

    # Track application start time for health checks
    app.start_time = time.time()

    login_manager, api = configure_app(app, config_overrides)

    with app.app_context():
        from app.libs.errors import AuthError

        # Setup user loader
        from app.users.models import User

        @login_manager.user_loader
        def load_user(user_id):
            from external.database import db

            return db.session.get(User, str(user_id))

        @login_manager.unauthorized_handler
        def unauthorized():
            raise AuthError()

        # Register routes
        register_blueprints(app, api)
        create_root_routes(app)

    logger.info("Application initialized")
    return app
