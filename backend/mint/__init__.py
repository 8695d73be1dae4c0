from flask import Flask, current_app
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from dotenv import load_dotenv
from dataclasses import dataclass
from typing import Optional, Dict, Any
import logging

from mint.config.settings import load_settings
from mint.db import Database
from mint.errors import MintError
from mint.services.assignment import RoleAssignmentEngine
from mint.services.auth import AuthService
from mint.services.catalog import PermissionCatalog
from mint.services.credentials import CredentialStore
from mint.services.passwords import PasswordHasher
from mint.services.policy import Authorizer
from mint.services.roles import RoleRegistry
from mint.services.tokens import TokenService

load_dotenv()

jwt = JWTManager()


@dataclass
class Core:
    """Authorization/authentication components sharing one database handle."""
    db: Database
    catalog: PermissionCatalog
    registry: RoleRegistry
    credentials: CredentialStore
    assignment: RoleAssignmentEngine
    hasher: PasswordHasher
    tokens: TokenService
    auth: AuthService
    authorizer: Authorizer


def build_core(db: Database, settings: Dict[str, Any]) -> Core:
    catalog = PermissionCatalog(db)
    registry = RoleRegistry(db, catalog)
    credentials = CredentialStore(db)
    assignment = RoleAssignmentEngine(db, registry, settings['DEFAULT_ROLE_NAMES'])
    hasher = PasswordHasher(settings['BCRYPT_ROUNDS'])
    tokens = TokenService()
    auth = AuthService(credentials, assignment, hasher, tokens)
    return Core(
        db=db, catalog=catalog, registry=registry, credentials=credentials, assignment=assignment,
        hasher=hasher, tokens=tokens, auth=auth, authorizer=Authorizer(assignment),
    )


def create_app(config: Optional[Dict[str, Any]] = None, db: Optional[Database] = None):
    app = Flask(__name__)

    # allow tests or callers to override default config values
    settings = load_settings(config)
    app.config.update(settings)
    logging.getLogger('mint').setLevel(app.config['LOG_LEVEL'])

    if db is None:
        db = Database(app.config['DATABASE_URL'])
    app.extensions['mint'] = build_core(db, settings)

    jwt.init_app(app)

    from .routes.auth import auth_bp
    from .routes.iam import iam_bp
    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(iam_bp, url_prefix='/iam')

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    @app.errorhandler(MintError)
    def handle_core_errors(e):  # type: ignore
        return _error_payload(e.status, e.title, e.detail), e.status

    # Unified error handler producing standardized JSON shape
    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return _error_payload(e.code, e.name, e.description), e.code
        # Unhandled exception
        app.logger.exception('Unhandled exception')
        return _error_payload(500, 'Internal Server Error', 'Unexpected error'), 500

    return app


def _error_payload(status: int, title: str, detail: str):
    return {'error': {'status': status, 'title': title, 'detail': detail}}


@jwt.unauthorized_loader
def _missing_token(reason):
    return _error_payload(401, 'Unauthorized', reason), 401


@jwt.invalid_token_loader
def _invalid_token(reason):
    return _error_payload(401, 'Unauthorized', 'Invalid token'), 401


@jwt.expired_token_loader
def _expired_token(jwt_header, jwt_payload):
    return _error_payload(401, 'Unauthorized', 'Token has expired'), 401


def get_core() -> Core:
    return current_app.extensions['mint']
