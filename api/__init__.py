import logging

import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config, DEV_JWT_SECRET
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from models.credential_store import CredentialStore
from models.enums import Role
from utils.decorators import AuthorizationGuard
from utils.refresh_tokens import RefreshTokenManager
from utils.security import CredentialHasher
from utils.session import SessionOrchestrator
from utils.tokens import AccessTokenIssuer, RefreshTokenSigner, access_verifier, refresh_verifier

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Activity Logger API",
        "version": "1.0.0",
        "description": "REST API for recording study activity logs, with rotating per-device sessions.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def init_security(app: Flask) -> None:
    """
    Build the credential/session components from config and attach them to
    app.extensions. The signing key is passed in explicitly here and read
    nowhere else.
    """
    secret = app.config["JWT_SECRET"]
    algorithm = app.config["JWT_ALGORITHM"]

    hasher = CredentialHasher(
        time_cost=app.config["HASH_TIME_COST"],
        memory_cost=app.config["HASH_MEMORY_COST"],
        parallelism=app.config["HASH_PARALLELISM"],
    )
    store = CredentialStore(storage)
    issuer = AccessTokenIssuer(secret, algorithm, app.config["ACCESS_TOKEN_EXPIRES"])
    refresh_tokens = RefreshTokenManager(
        storage,
        RefreshTokenSigner(secret, algorithm, app.config["REFRESH_TOKEN_EXPIRES"]),
        hasher,
    )

    app.extensions["credential_store"] = store
    app.extensions["guard"] = AuthorizationGuard(
        access_verifier(secret, algorithm),
        refresh_verifier(secret, algorithm),
    )
    app.extensions["session"] = SessionOrchestrator(
        store,
        hasher,
        issuer,
        refresh_tokens,
        rotate_on_reauth=app.config["ROTATE_REFRESH_TOKENS"],
    )


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))
    if not app.debug and not app.testing and app.config["JWT_SECRET"] == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET must be set outside development")

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)
    init_security(app)

    from .health import bp as health_bp
    from .session import bp as session_bp
    from .users import bp as users_bp
    from .logs import bp as logs_bp

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(session_bp, url_prefix="/api")
    app.register_blueprint(users_bp, url_prefix="/api")
    app.register_blueprint(logs_bp, url_prefix="/api")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Activity Logger API",
            "docs": "/apidocs/",
            "health": "/api/health",
        }, 200

    @app.cli.command("create-admin")
    @click.argument("email")
    @click.argument("display_name")
    @click.password_option()
    def create_admin(email, display_name, password):
        """Create an ADMIN user (registration always creates USERs)."""
        user = app.extensions["session"].register(email, display_name, password, role=Role.ADMIN)
        click.echo(f"created admin {user.email} (id={user.id})")

    return app
