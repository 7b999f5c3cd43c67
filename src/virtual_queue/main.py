from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask
from flask_socketio import SocketIO

from config import get_settings_module

from .common.logging_setup import configure_logging
from .common.web import register_error_handlers
from .container import Container, build_container, connection_from_settings
from .counters.controller import register as register_counters
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_admin_account, list_tables
from .feedback.controller import register as register_feedback
from .notifications import socket_handlers
from .notifications.publisher import SocketIOPublisher
from .queueing.controller import register as register_queueing
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[2]


def create_app(*, container: Container | None = None, settings_module: str | None = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["PUBLIC_BASE_URL"] = getattr(settings, "PUBLIC_BASE_URL", "")

    configure_logging(
        getattr(settings, "LOG_LEVEL", "INFO"),
        json_format=bool(getattr(settings, "LOG_JSON", True)),
    )
    logger.info(
        "starting with settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    register_error_handlers(app)

    socketio = SocketIO(app, cors_allowed_origins=getattr(settings, "SOCKETIO_CORS_ORIGINS", None) or None)

    if container is None:
        conn = connection_from_settings(db_config)

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            apply_schema(conn, schema_path=REPO_ROOT / "database" / "schema.sql")
            logger.info("schema ready (tables=%d)", len(list_tables(conn)))
        if bool(getattr(settings, "AUTO_SEED_DB", False)):
            apply_seed_sql(conn, seed_path=REPO_ROOT / "database" / "seed.sql")
            admin_email = getattr(settings, "ADMIN_EMAIL", "")
            admin_password = getattr(settings, "ADMIN_PASSWORD", "")
            if admin_email and admin_password:
                ensure_admin_account(
                    conn,
                    email=admin_email,
                    password=admin_password,
                    full_name=getattr(settings, "ADMIN_NAME", "Administrator"),
                )
            logger.info("seed ready")

        container = build_container(conn=conn, publisher=SocketIOPublisher(socketio))

    register_users(app, container)
    register_counters(app, container)
    register_queueing(app, container)
    register_feedback(app, container)
    socket_handlers.register(socketio, container)

    return app


def run() -> None:
    app = create_app()
    socketio: SocketIO = app.extensions["socketio"]
    socketio.run(
        app,
        host=os.getenv("HOST", "127.0.0.1"),
        port=int(os.getenv("PORT", "5000")),
        debug=app.config["DEBUG"],
        allow_unsafe_werkzeug=app.config["DEBUG"],
    )


if __name__ == "__main__":
    run()
