import click
from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
from argon2 import PasswordHasher

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "ByteFood API",
        "version": "1.0.0",
        "description": "GraphQL API for ByteFood: accounts, sessions and token refresh.",
    },
    "basePath": "/",
    "schemes": ["http", "https"],
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

ph = PasswordHasher()


def create_app(config_name: str | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    config_name picks dev/test/prod settings; APP_ENV decides when it is None.
    """
    app = Flask(__name__)

    app.config.from_object(get_config(config_name))

    # The SPA calls refreshToken with credentials, so the cookie needs an explicit origin list
    CORS(
        app,
        resources={r"/*": {"origins": app.config.get("CORS_ORIGINS")}},
        supports_credentials=True,
    )

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    register_error_handlers(app)

    from .health import bp as health_bp
    from .graphql import bp as graphql_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(graphql_bp)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.cli.command("purge-refresh-tokens")
    def purge_refresh_tokens():
        """Delete expired refresh tokens."""
        from utils import ledger
        removed = ledger.purge_expired()
        click.echo(f"Removed {removed} expired refresh token(s)")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to ByteFood API",
            "graphql": "/graphql",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
