import logging

from flask import Flask, jsonify, request
from flask_cors import CORS
from dotenv import load_dotenv
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from app.crm import models as _models  # noqa: F401  (tables must be on Base before blueprints import them)
from app.crm.config import load_config
from app.crm.db import init_db, init_schema, rollback_db_session, teardown_db_session
from app.crm.routes import bp as routes_bp
from app.crm.modules.customers.api import bp as customers_bp


def create_app() -> Flask:
    load_dotenv()
    app = Flask(__name__)
    app.config.from_mapping(load_config())

    level = app.config["LOG_LEVEL"]
    app.logger.setLevel(level)
    logging.getLogger("app.crm").setLevel(level)

    # Production guardrails (fail fast with clear logs)
    env = (app.config.get("ENV") or "").strip().lower()
    if env in ("prod", "production"):
        if not app.config.get("DATABASE_URL") or str(app.config["DATABASE_URL"]).strip() == "":
            raise RuntimeError("DATABASE_URL is required in production.")
        if str(app.config["DATABASE_URL"]).startswith("sqlite"):
            raise RuntimeError("DATABASE_URL must be Postgres in production (not sqlite).")
        if not app.config.get("SECRET_KEY") or str(app.config["SECRET_KEY"]) in ("", "change-me"):
            raise RuntimeError("SECRET_KEY must be set to a strong value in production (not default).")

    init_db(app)
    init_schema(app)

    app.register_blueprint(routes_bp)
    app.register_blueprint(customers_bp, url_prefix="/api")
    app.teardown_appcontext(teardown_db_session)

    # browser UI is served from another origin
    CORS(app, resources={r"/api/*": {"origins": list(app.config["CORS_ORIGINS"])}})

    @app.errorhandler(SQLAlchemyError)
    def _err_storage(e: SQLAlchemyError):
        rollback_db_session()
        app.logger.exception("Storage error on %s %s", request.method, request.path)
        orig = getattr(e, "orig", None)
        return jsonify({"error": str(orig or e)}), 500

    @app.errorhandler(HTTPException)
    def _err_http(e: HTTPException):
        if not request.path.startswith("/api/"):
            return e
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _err_500(e: Exception):
        rollback_db_session()
        app.logger.exception("Unhandled 500 on %s %s", request.method, request.path)
        return jsonify({"error": "Internal server error"}), 500

    app.logger.info("create_app() complete; app ready to serve")

    return app
