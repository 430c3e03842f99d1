from datetime import datetime, timedelta, timezone
import logging
import time

import click
from flask import Flask, jsonify, request
from flask_migrate import Migrate
from werkzeug.exceptions import HTTPException

from config import Config
from database import db
from errors import AppError, InternalError
from realtime import EventBroadcaster, init_socketio
from routes import Services, json_response

migrate = Migrate()


def create_app(config_object=Config):
    """Build the Flask app, its Socket.IO server and the service objects.

    Everything process-wide (signing secret, database handle, broadcaster) is
    read from ``config_object`` here and passed into constructors.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    logging.basicConfig(
        level=getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    app.config["STARTED_AT"] = time.monotonic()

    db.init_app(app)
    # Models import should be after initializing db
    import models  # noqa: F401

    # Create flask command lines to update the db based on the model
    # Useage:
    # > flask --app app db migrate -m "Describe the change"
    # > flask --app app db upgrade
    migrate.init_app(app, db)

    broadcaster = EventBroadcaster()
    init_socketio(app, broadcaster)
    app.extensions["tablecraft"] = _build_services(app, broadcaster)
    app.extensions["broadcaster"] = broadcaster

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_meta_routes(app)
    _register_cli(app)

    @app.after_request
    def add_cors_headers(response):
        origin = app.config.get("CORS_ORIGIN")
        if origin:
            response.headers.setdefault("Access-Control-Allow-Origin", origin)
            response.headers.setdefault("Access-Control-Allow-Headers", "Authorization, Content-Type")
            response.headers.setdefault("Access-Control-Allow-Methods", "GET, POST, PUT, DELETE, OPTIONS")
        return response

    return app


def _build_services(app, broadcaster):
    from services.ai_service import AIService
    from services.auth_service import AuthService
    from services.project_service import ProjectService
    from services.task_service import TaskService
    from services.user_service import UserService

    return Services(
        auth=AuthService(
            db.session,
            app.config["JWT_SECRET"],
            algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
            expires_in=timedelta(hours=int(app.config.get("JWT_EXPIRATION_HOURS", 24 * 7))),
        ),
        tasks=TaskService(db.session, broadcaster),
        projects=ProjectService(db.session, broadcaster),
        users=UserService(db.session, broadcaster),
        ai=AIService(db.session),
    )


def _register_blueprints(app):
    from routes.ai import ai_bp
    from routes.auth import auth_bp
    from routes.projects import projects_bp
    from routes.tasks import tasks_bp
    from routes.users import users_bp

    for blueprint in (auth_bp, tasks_bp, projects_bp, users_bp, ai_bp):
        app.register_blueprint(blueprint)


# Error Handling
# ------------------------------
def _register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(error):
        if isinstance(error, InternalError):
            logging.error("Internal error on %s %s: %s", request.method, request.path, error.message)
            return jsonify(InternalError().to_dict()), 500
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        payload = {"success": False, "message": error.description, "error": error.name}
        return jsonify(payload), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        db.session.rollback()
        logging.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify(InternalError().to_dict()), 500


# Liveness & Info
# ------------------------------
def _register_meta_routes(app):
    @app.route("/health")
    def health():
        return json_response(
            {
                "status": "OK",
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "uptime": round(time.monotonic() - app.config["STARTED_AT"], 3),
                "environment": app.config.get("APP_ENV", "development"),
            }
        )

    @app.route("/api")
    def api_info():
        return json_response(
            {
                "name": "TableCraft API",
                "version": app.config.get("API_VERSION", "1.0.0"),
                "endpoints": {
                    "health": "/health",
                    "auth": "/api/auth",
                    "tasks": "/api/tasks",
                    "projects": "/api/projects",
                    "users": "/api/users",
                    "ai": "/api/ai",
                },
            },
            message="Welcome to TableCraft API",
        )


def _register_cli(app):
    @app.cli.command("init-db")
    def init_db():
        """Create all tables without running migrations."""
        db.create_all()
        click.echo("Database tables created.")


# Application Execution
# ------------------------------
if __name__ == "__main__":
    app = create_app()
    app.extensions["socketio"].run(app, debug=True)
    # app.extensions["socketio"].run(app, host="0.0.0.0", port=5000)
