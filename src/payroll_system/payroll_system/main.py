from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .attendance.controller import register as register_attendance
from .common.log import configure_logging
from .container import Container, build_container
from .core.constants import DEFAULT_TIMEZONE
from .database.bootstrap import apply_schema, apply_seed_sql, ensure_demo_users, list_tables
from .deductions.controller import register as register_deductions
from .leaves.controller import register as register_leaves
from .overload.controller import register as register_overload
from .payroll.controller import register as register_payroll
from .scheduling.controller import register as register_scheduling
from .settings.controller import register as register_settings
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DATABASE_DIR = Path(__file__).resolve().parents[3] / "database"


def _bootstrap_database(settings, db_config: dict) -> None:
    if bool(getattr(settings, "AUTO_INIT_DB", False)):
        apply_schema(db_config, schema_path=DATABASE_DIR / "schema.sql")
        logger.info("Schema ready (tables=%s)", len(list_tables(db_config)))
    if bool(getattr(settings, "AUTO_SEED_DB", False)):
        apply_seed_sql(db_config, seed_path=DATABASE_DIR / "seed.sql")
        ensure_demo_users(db_config)
        logger.info("Demo seed ready")


def create_app(container: Optional[Container] = None) -> Flask:
    """Application factory.

    With no `container`, settings come from the module chosen by APP_ENV and the app is
    wired to MySQL (optionally creating and seeding the schema first).
    """
    load_dotenv(override=False)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    app = Flask(__name__)
    app.secret_key = getattr(settings, "SECRET_KEY")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))
    app.config["TIMEZONE"] = getattr(settings, "TIMEZONE", DEFAULT_TIMEZONE)
    app.config["CRON_TOKEN"] = getattr(settings, "CRON_TOKEN", "")

    if container is None:
        db_config = getattr(settings, "DB_CONFIG")
        logger.info(
            "settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"),
            db_config.get("host"),
            db_config.get("port", 3306),
            db_config.get("database"),
        )
        _bootstrap_database(settings, db_config)
        container = build_container(db_config=db_config, tz_name=app.config["TIMEZONE"])

    register_users(app, container)
    register_settings(app, container)
    register_attendance(app, container)
    register_leaves(app, container)
    register_deductions(app, container)
    register_overload(app, container)
    register_payroll(app, container)
    register_scheduling(app, container)

    return app
