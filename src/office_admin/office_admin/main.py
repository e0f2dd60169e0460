from __future__ import annotations

import importlib
import logging
from pathlib import Path

from dotenv import load_dotenv
from flask import Flask, jsonify

from config import get_settings_module

from .container import build_container
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_employees, list_tables
from .devices.controller import register as register_devices
from .leaves.controller import register as register_leaves
from .rooms.controller import register as register_rooms
from .web.errors import register as register_error_handlers

logger = logging.getLogger(__name__)


def create_app() -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))

    logging.basicConfig(
        level=getattr(settings, "LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info(
        "settings=%s db=%s@%s:%s/%s",
        settings_module,
        db_config.get("user"),
        db_config.get("host"),
        db_config.get("port", 3306),
        db_config.get("database"),
    )

    repo_root = Path(__file__).resolve().parents[3]
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=repo_root / "database" / "schema.sql")
        logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=repo_root / "database" / "seed.sql")
        ensure_demo_employees(db_config)
        logger.info("demo seed ready")

    container = build_container(
        db_config=db_config,
        lock_wait_timeout=getattr(settings, "DB_LOCK_WAIT_TIMEOUT", None),
    )

    @app.route("/health", methods=["GET"], endpoint="health")
    def health():
        return jsonify({"status": "ok"})

    register_devices(app, container)
    register_rooms(app, container)
    register_leaves(app, container)
    register_error_handlers(app)

    return app
