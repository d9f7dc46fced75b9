from flask import Flask
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()

AUTHZ_EXTENSION = 'salonops.authz'


def _error_body(status: int, title: str, detail: str):
    # 'message' keeps the flat shape dashboard clients read; 'error' carries the structured form
    return {
        'message': detail,
        'error': {
            'status': status,
            'title': title,
            'detail': detail,
        }
    }


def create_app(config: Optional[Dict[str, Any]] = None):
    global db_engine, SessionLocal
    app = Flask(__name__)

    app.config['JWT_SECRET_KEY'] = os.getenv('JWT_SECRET_KEY', 'dev-secret')
    app.config['DATABASE_URL'] = os.getenv('DATABASE_URL', 'sqlite:///dev.db')
    app.config['LOG_LEVEL'] = os.getenv('LOG_LEVEL', 'INFO')

    if config:
        # allow tests or callers to override default config values
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])

    # Database
    db_url = app.config['DATABASE_URL']
    if db_url.endswith(':memory:'):
        # Ensure a single shared in-memory SQLite database across all sessions
        db_engine = create_engine(
            db_url,
            echo=False,
            future=True,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    else:
        db_engine = create_engine(db_url, echo=False, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))

    # Register every model on the shared metadata before any query runs
    from .models import authz, audit, client, onboarding, reminder  # noqa: F401

    jwt.init_app(app)

    # Access configuration is built once and shared by request gating and the permission check endpoint
    from .services.policy import AccessConfig, AuthorizationEngine
    app.extensions[AUTHZ_EXTENSION] = AuthorizationEngine(AccessConfig.default())

    from .routes.iam import iam_bp
    from .routes.clients import clients_bp
    from .routes.onboarding import onboarding_bp
    from .routes.reminders import reminders_bp
    from .routes.reports import rpt_bp
    app.register_blueprint(iam_bp, url_prefix='/iam')
    app.register_blueprint(clients_bp, url_prefix='/clients')
    app.register_blueprint(onboarding_bp, url_prefix='/onboarding')
    app.register_blueprint(reminders_bp, url_prefix='/reminders')
    app.register_blueprint(rpt_bp, url_prefix='/reports')

    @app.teardown_appcontext
    def _remove_session(exc=None):
        # each request starts from an empty identity map
        SessionLocal.remove()

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @jwt.unauthorized_loader
    def _missing_token(reason):
        return _error_body(401, 'Unauthorized', 'Unauthorized'), 401

    @jwt.invalid_token_loader
    def _invalid_token(reason):
        return _error_body(401, 'Unauthorized', 'Unauthorized'), 401

    @jwt.expired_token_loader
    def _expired_token(jwt_header, jwt_payload):
        return _error_body(401, 'Unauthorized', 'Token expired'), 401

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        # no partial writes survive an error response
        SessionLocal.rollback()
        if isinstance(e, HTTPException):
            return _error_body(e.code, e.name, e.description), e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error_body(500, 'Internal Server Error', 'Unexpected error'), 500

    return app


def get_db():
    return SessionLocal()


def get_authz():
    from flask import current_app
    return current_app.extensions[AUTHZ_EXTENSION]
