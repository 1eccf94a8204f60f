from __future__ import annotations

import importlib
import logging
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .checkio.controller import register as register_checkio
from .common.http import register_error_handlers
from .container import Container, build_container
from .core.constants import USERS_TABLE
from .core.enums import Role
from .database.bootstrap import apply_schema, ensure_demo_admin, list_tables
from .logs.controller import register as register_logs
from .users.controller import register as register_users

logger = logging.getLogger(__name__)

DEMO_ADMIN_PIN = "0000"


def _seed_memory_admin(container: Container) -> None:
    if container.users_repo.get_by_pin(DEMO_ADMIN_PIN):
        return
    container.store.insert(
        USERS_TABLE,
        [{"first_name": "Admin", "last_name": "Demo", "role": Role.ADMIN.value, "pin": DEMO_ADMIN_PIN}],
    )


def create_app(*, container: Optional[Container] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = get_settings_module()
    settings = importlib.import_module(settings_module)
    app.secret_key = getattr(settings, "SECRET_KEY")
    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    logging.basicConfig(
        level=str(getattr(settings, "LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    store_backend = str(getattr(settings, "STORE_BACKEND", "mysql")).lower()
    logger.info("settings=%s store=%s", settings_module, store_backend)

    if container is None:
        if store_backend == "mysql":
            # Helpful startup info to avoid "connected but no tables" confusion.
            logger.debug(
                "db=%s@%s:%s/%s",
                db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
            )
            if bool(getattr(settings, "AUTO_INIT_DB", False)):
                schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
                apply_schema(db_config, schema_path=schema_path)
                logger.info("schema ready (tables=%d)", len(list_tables(db_config)))
            if bool(getattr(settings, "AUTO_SEED_DB", False)):
                ensure_demo_admin(db_config, pin=DEMO_ADMIN_PIN)

        container = build_container(
            db_config=db_config,
            store_backend=store_backend,
            pin_verify_url=str(getattr(settings, "PIN_VERIFY_URL", "") or ""),
            pin_verify_timeout=getattr(settings, "PIN_VERIFY_TIMEOUT", None),
            export_grace_minutes=int(getattr(settings, "EXPORT_GRACE_MINUTES", 5)),
            background_workers=int(getattr(settings, "BACKGROUND_WORKERS", 4)),
        )
        if store_backend == "memory" and bool(getattr(settings, "AUTO_SEED_DB", False)):
            _seed_memory_admin(container)

    app.extensions["checkin_container"] = container

    register_error_handlers(app)
    register_users(app, container)
    register_checkio(app, container)
    register_logs(app, container)

    return app
