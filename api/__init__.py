import logging

from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import get_config
from .errors import register_error_handlers
from models import storage  # DBStorage singleton (scoped_session)
from utils.token_builder import JWTBuilder
from worker.distributor import RedisTaskDistributor, TaskDistributor

SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Budget API",
        "version": "1.0.0",
        "description": "REST API for personal budgets: accounts, categories, payees and transactions.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http", "https"],
    "tags": [
        {"name": "Auth", "description": "Login, token renewal, email verification"},
        {"name": "User", "description": "Account lifecycle"},
        {"name": "Budget"},
        {"name": "Accounts"},
        {"name": "Categories"},
        {"name": "Payees"},
        {"name": "Transactions"},
    ],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Access token from /api/v1/login as `Bearer <access_token>`."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: rule.rule.startswith("/api/"),
            "model_filter": lambda tag: True,
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_name: str | None = None, task_distributor: TaskDistributor | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    The token builder and the task distributor are built once from the
    configuration and shared through app.extensions; tests pass their own
    distributor.
    """
    app = Flask(__name__)

    # APP_ENV picks the config class when config_name is not given
    app.config.from_object(get_config(config_name))
    configure_logging(app.config["LOG_LEVEL"])

    # Behind a proxy remote_addr is the proxy; take the client from X-Forwarded-For
    proxies = app.config.get("PROXY_FIX_X_FOR", 0)
    if proxies:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxies, x_proto=proxies)

    # Fails at startup when SECRET_KEY is shorter than 32 characters
    app.extensions["token_builder"] = JWTBuilder(app.config["SECRET_KEY"])
    app.extensions["task_distributor"] = task_distributor or RedisTaskDistributor.from_url(app.config["REDIS_URL"])

    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Uniform error envelope
    register_error_handlers(app)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .users import bp as users_bp
    from .budgets import bp as budgets_bp
    from .accounts import bp as accounts_bp
    from .category_groups import bp as category_groups_bp
    from .categories import bp as categories_bp
    from .payees import bp as payees_bp
    from .transactions import bp as tx_bp

    for blueprint in (
        health_bp, auth_bp, users_bp, budgets_bp, accounts_bp,
        category_groups_bp, categories_bp, payees_bp, tx_bp,
    ):
        app.register_blueprint(blueprint, url_prefix="/api/v1")

    @app.teardown_appcontext
    def remove_session(exception=None):
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Budget API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
