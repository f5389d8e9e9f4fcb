# backend/dairy_api/__init__.py
import logging
import os

from flask import Flask, send_from_directory
from flask_cors import CORS

from .config import Config
from .errors import register_error_handlers
from .extensions import db, migrate


def create_app(config=None) -> Flask:
    """
    Application factory.

    config may be a config class/object or a dict of overrides applied on top
    of Config (tests pass TestConfig).
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(Config)
    if isinstance(config, dict):
        app.config.update(config)
    elif config is not None:
        app.config.from_object(config)

    app.logger.setLevel(getattr(logging, str(app.config.get("LOG_LEVEL", "INFO")).upper(), logging.INFO))
    logging.getLogger("dairy_api").setLevel(app.logger.level)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(app.config.get("CORS_ORIGINS", ()))}},
        allow_headers=["Authorization", "Content-Type"],
        methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    )

    # Import models so Alembic can discover metadata reliably
    from . import models  # noqa: F401

    register_error_handlers(app)

    # Register blueprints
    from .routes.system import system_bp
    from .routes.auth import auth_bp
    from .routes.products import products_bp
    from .routes.depots import depots_bp, variants_bp
    from .routes.delivery_addresses import addresses_bp
    from .routes.subscriptions import subscriptions_bp
    from .routes.product_orders import orders_bp
    from .routes.delivery_schedules import delivery_schedules_bp
    from .routes.wallet import wallet_bp
    from .routes.admin import admin_bp
    from .routes.partners import agencies_bp, supervisors_bp, vendors_bp
    from .routes.transfers import transfers_bp
    from .routes.purchases import purchases_bp
    from .routes.purchase_payments import purchase_payments_bp
    from .routes.vendor_orders import vendor_orders_bp
    from .routes.wastage import wastage_bp
    from .routes.stock_ledgers import stock_ledgers_bp
    from .routes.leads import leads_bp
    from .routes.invoices import invoices_bp
    from .routes.reports import reports_bp

    for bp in (
        system_bp,
        auth_bp,
        products_bp,
        depots_bp,
        variants_bp,
        addresses_bp,
        subscriptions_bp,
        orders_bp,
        delivery_schedules_bp,
        wallet_bp,
        admin_bp,
        agencies_bp,
        supervisors_bp,
        vendors_bp,
        transfers_bp,
        purchases_bp,
        purchase_payments_bp,
        vendor_orders_bp,
        wastage_bp,
        stock_ledgers_bp,
        leads_bp,
        invoices_bp,
        reports_bp,
    ):
        app.register_blueprint(bp)

    @app.get("/uploads/<path:filename>")
    def uploaded_file(filename: str):
        return send_from_directory(os.path.abspath(app.config["UPLOAD_FOLDER"]), filename)

    # Register CLI commands
    from .cli import register_commands
    register_commands(app)

    return app
