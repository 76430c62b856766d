from __future__ import annotations

import importlib
import logging
from functools import partial
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from flask import Flask

from config import get_settings_module

from .database.bootstrap import apply_schema, list_tables

from .common.http import register_error_handlers
from .container import Container, build_container
from .adjustments.controller import register as register_adjustments
from .balance.controller import register as register_balance
from .closures.controller import register as register_closures
from .entries.controller import register as register_entries
from .integrations.controller import register as register_integrations
from .integrations.scheduler import AutoSyncScheduler
from .settings.controller import register as register_settings

logger = logging.getLogger(__name__)


def _configure_logging(level_name: str) -> None:
    level = getattr(logging, str(level_name).upper(), logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


def create_app(container: Optional[Container] = None, *, settings_module: Optional[str] = None) -> Flask:
    load_dotenv(override=False)
    app = Flask(__name__)

    settings_module = settings_module or get_settings_module()
    settings = importlib.import_module(settings_module)
    _configure_logging(getattr(settings, "LOG_LEVEL", "INFO"))

    db_config = getattr(settings, "DB_CONFIG")
    app.config["DEBUG"] = bool(getattr(settings, "DEBUG", False))
    app.config["TESTING"] = bool(getattr(settings, "TESTING", False))

    if container is None:
        logger.info(
            "starting time bank settings=%s db=%s@%s:%s/%s",
            settings_module,
            db_config.get("user"), db_config.get("host"), db_config.get("port", 3306), db_config.get("database"),
        )

        if bool(getattr(settings, "AUTO_INIT_DB", False)):
            schema_path = Path(__file__).resolve().parents[3] / "database" / "schema.sql"
            apply_schema(db_config, schema_path=schema_path)
            logger.info("schema ready tables=%d", len(list_tables(db_config)))

        container = build_container(
            db_config=db_config,
            lock_timeout=float(getattr(settings, "LOCK_TIMEOUT_SECONDS", 10.0)),
            clockify_base_url=getattr(settings, "CLOCKIFY_BASE_URL", "https://api.clockify.me/api/v1"),
            clockify_timeout=float(getattr(settings, "CLOCKIFY_TIMEOUT_SECONDS", 30.0)),
            clockify_max_attempts=int(getattr(settings, "CLOCKIFY_MAX_ATTEMPTS", 3)),
        )

    app.extensions["time_bank"] = container
    register_error_handlers(app)

    register_entries(app, container)
    register_settings(app, container)
    register_balance(app, container)
    register_adjustments(app, container)
    register_closures(app, container)
    register_integrations(app, container)

    if bool(getattr(settings, "CLOCKIFY_AUTO_SYNC_ENABLED", False)):
        scheduler = AutoSyncScheduler(
            partial(
                container.clockify_service.run_auto_sync,
                lookback_days=max(int(getattr(settings, "CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS", 7)), 1),
            ),
            hour_utc=getattr(settings, "CLOCKIFY_AUTO_SYNC_HOUR_UTC", 3),
        )
        scheduler.start()
        app.extensions["time_bank_scheduler"] = scheduler

    return app
